"""
horizon_sdk.tier0_core.errors
───────────────────────────────
Standard error taxonomy for the SDK. Every error carries a stable
machine-readable ``code`` and a human-readable message.

Ordinary network and HTTP conditions are never raised to SDK callers: the
request executor converts them into failed response envelopes whose
``error_code`` is one of the codes below. Only programmer errors
(bad configuration, using the app before ``initialize()``) are raised.
"""
from __future__ import annotations

from typing import Any


# ── Base error ────────────────────────────────────────────────────────────────

class HorizonError(Exception):
    """
    Base class for all SDK errors. Every error has:
    - code: stable machine-readable string (snake_case)
    - message: human-readable description
    - status_code: HTTP status of the exchange that produced it (0 if none)
    - retryable: whether the retry engine may attempt the call again
    """

    code: str = "horizon_error"
    retryable: bool = False

    def __init__(
        self,
        message: str = "An unexpected SDK error occurred.",
        *,
        code: str | None = None,
        status_code: int = 0,
        **metadata: Any,
    ) -> None:
        self.code = code or self.__class__.code
        self.message = message
        self.status_code = status_code
        self.metadata = metadata
        super().__init__(message)


# ── Preconditions ─────────────────────────────────────────────────────────────

class NoActiveHostError(HorizonError):
    """No backend host has been selected yet."""
    code = "no_active_host"

    def __init__(
        self,
        message: str = "No active host. Call HorizonApp.connect() first.",
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)


class NotInitializedError(HorizonError):
    """SDK component used before it was given a configuration."""
    code = "not_initialized"

    def __init__(
        self,
        message: str = "Request executor not initialized with a retry policy.",
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)


class ConfigurationError(HorizonError):
    """Misconfiguration detected at startup."""
    code = "configuration_error"


# ── Transport / HTTP outcomes ─────────────────────────────────────────────────

class ConnectionFailure(HorizonError):
    """DNS failure, timeout or refused connection."""
    code = "connection_error"
    retryable = True


class ServerError(HorizonError):
    """Backend answered with a 5xx status."""
    code = "server_error"
    retryable = True


class RateLimitError(HorizonError):
    """Backend answered 429; retry after the server-directed delay."""
    code = "rate_limited"
    retryable = True

    def __init__(
        self,
        message: str = "Too many requests",
        retry_after: float | None = None,
        **kwargs: Any,
    ) -> None:
        self.retry_after = retry_after
        kwargs.setdefault("status_code", 429)
        super().__init__(message, **kwargs)


class ClientError(HorizonError):
    """Backend rejected the request with a non-429 4xx status."""
    code = "client_error"


class DecodeError(HorizonError):
    """Response body did not match the expected shape."""
    code = "decode_error"


class RetriesExhaustedError(HorizonError):
    """The full attempt budget was consumed by retryable failures."""
    code = "retries_exhausted"


# ── Event bus ─────────────────────────────────────────────────────────────────

class EventBusReentrancyError(HorizonError):
    """A handler tried to call back into the bus that is dispatching to it."""
    code = "event_bus_reentrancy"


__all__ = [
    "HorizonError",
    "NoActiveHostError",
    "NotInitializedError",
    "ConfigurationError",
    "ConnectionFailure",
    "ServerError",
    "RateLimitError",
    "ClientError",
    "DecodeError",
    "RetriesExhaustedError",
    "EventBusReentrancyError",
]
