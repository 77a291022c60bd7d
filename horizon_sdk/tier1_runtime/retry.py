"""
horizon_sdk.tier1_runtime.retry
───────────────────────────────────
Attempt loop for one logical backend call: classify every exchange, back off
on rate limits and transient failures, stop on success or terminal failure.
Backed by Tenacity.

Per-call state machine::

    Attempting ─┬─ 2xx ───────────────────────────► Success
                ├─ 429 ──► RateLimitedWait ──► Attempting
                ├─ 5xx / connection error ─► RetryWait ──► Attempting
                └─ other 4xx / undecodable body / budget spent ──► Failed

The budget is ``max_retry_attempts + 1`` attempts. A rate-limit wait uses
up an attempt exactly like a transient-failure retry. Nothing sleeps after
the last attempt.
"""
from __future__ import annotations

import asyncio
import email.utils
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Union

import httpx
from pydantic import ValidationError
from tenacity import AsyncRetrying, RetryCallState, retry_if_result, stop_after_attempt

from horizon_sdk.tier0_core.config import RetryPolicy
from horizon_sdk.tier0_core.errors import (
    ClientError,
    ConnectionFailure,
    DecodeError,
    HorizonError,
    NoActiveHostError,
    NotInitializedError,
    RateLimitError,
    RetriesExhaustedError,
    ServerError,
)
from horizon_sdk.tier0_core.http import HTTP, ErrorResponse
from horizon_sdk.tier0_core.logging import get_logger, request_context
from horizon_sdk.tier1_runtime.events import (
    EventBus,
    EventKey,
    NetworkErrorData,
    NetworkRequestData,
    NetworkRetryData,
    NetworkSuccessData,
    RateLimitData,
)
from horizon_sdk.tier1_runtime.session import SessionSnapshot, SessionState

log = get_logger(__name__)


# ── Calls and outcomes ────────────────────────────────────────────────────────

@dataclass(frozen=True)
class EndpointCall:
    """One logical request. ``body`` is JSON-encodable, raw bytes, or None."""
    path: str
    method: str = "GET"
    body: Any = None
    requires_session: bool = False
    binary: bool = False

    def __post_init__(self) -> None:
        if self.method not in ("GET", "POST"):
            raise ValueError(f"Unsupported HTTP method: {self.method}")


@dataclass(frozen=True)
class Success:
    status_code: int
    raw_payload: bytes
    found: bool = True
    value: Any = None


@dataclass(frozen=True)
class RateLimited:
    retry_after_seconds: float
    status_code: int = HTTP.TOO_MANY_REQUESTS
    message: str = "Too many requests"
    error_code: str = RateLimitError.code


@dataclass(frozen=True)
class RetryableFailure:
    status_code: int
    message: str
    error_code: str


@dataclass(frozen=True)
class TerminalFailure:
    status_code: int
    message: str
    error_code: str


Outcome = Union[Success, RateLimited, RetryableFailure, TerminalFailure]

Sender = Callable[[str, SessionSnapshot], Awaitable[httpx.Response]]
Sleeper = Callable[[float], Awaitable[Any]]


# ── Classification ────────────────────────────────────────────────────────────

def parse_retry_after(value: str | None, default: float) -> float:
    """
    Seconds from a ``Retry-After`` header, given either as delta-seconds or
    as an HTTP-date (a date in the past means no wait). ``default`` if the
    header is missing or unparsable.
    """
    if value is None or not value.strip():
        return default
    try:
        seconds = float(value.strip())
    except ValueError:
        try:
            when = email.utils.parsedate_to_datetime(value)
        except (TypeError, ValueError):
            return default
        if when.tzinfo is None:
            when = when.replace(tzinfo=timezone.utc)
        return max(0.0, (when - datetime.now(timezone.utc)).total_seconds())
    if seconds != seconds or seconds < 0:  # NaN or negative
        return default
    return seconds


def parse_error_message(body: bytes | None, status_code: int, fallback: str | None = None) -> str:
    """
    Error text for a failed exchange: the ``message`` of a ``{message, code}``
    body if present, else ``fallback``, else ``"HTTP {status}"``.
    """
    if body:
        try:
            error = ErrorResponse.model_validate_json(body)
        except ValidationError:
            error = None
        if error is not None and error.message:
            return error.message
    if fallback:
        return fallback
    return f"HTTP {status_code}"


def outcome_for(error: HorizonError) -> Outcome:
    """Outcome carrying ``error``; its ``retryable`` flag decides whether the call loops."""
    if isinstance(error, RateLimitError):
        return RateLimited(error.retry_after or 0.0, error.status_code, error.message, error.code)
    if error.retryable:
        return RetryableFailure(error.status_code, error.message, error.code)
    return TerminalFailure(error.status_code, error.message, error.code)


def _request_error(exc: httpx.RequestError) -> HorizonError:
    """Taxonomy error for an exchange that produced no usable response."""
    message = str(exc) or type(exc).__name__
    if isinstance(exc, httpx.DecodingError):
        return DecodeError(f"Response body could not be decoded: {message}")
    return ConnectionFailure(message)


def classify(
    response: httpx.Response | None,
    policy: RetryPolicy,
    *,
    transport_error: httpx.RequestError | None = None,
    binary_get: bool = False,
) -> Outcome:
    """Map one transport exchange to an Outcome."""
    if response is None:
        if transport_error is None:
            return outcome_for(ConnectionFailure("No response received"))
        return outcome_for(_request_error(transport_error))

    status = response.status_code
    if binary_get and status == HTTP.NO_CONTENT:
        return Success(status, b"", found=False)
    if HTTP.is_success(status):
        return Success(status, response.content)
    if status == HTTP.TOO_MANY_REQUESTS:
        delay = parse_retry_after(response.headers.get("Retry-After"), policy.fixed_delay_seconds)
        return outcome_for(RateLimitError(retry_after=delay))

    message = parse_error_message(response.content, status)
    if HTTP.is_server_error(status):
        return outcome_for(ServerError(message, status_code=status))
    return outcome_for(ClientError(message, status_code=status))


def check_preconditions(
    snapshot: SessionSnapshot, policy: RetryPolicy | None
) -> RetryPolicy | TerminalFailure:
    """The policy to run the call with, or the failure to return without touching the network."""
    error: HorizonError
    if not snapshot.has_host:
        error = NoActiveHostError()
    elif policy is None:
        error = NotInitializedError()
    else:
        return policy
    return TerminalFailure(error.status_code, error.message, error.code)


def _should_retry(outcome: Outcome) -> bool:
    return isinstance(outcome, (RateLimited, RetryableFailure))


# ── Engine ────────────────────────────────────────────────────────────────────

class RetryEngine:
    """
    Drives the attempt loop for executor calls and reports every transition
    on the event bus.

    Args:
        bus:     Event bus receiving request lifecycle events.
        session: Host/token state, re-read at every attempt.
        policy:  Retry policy; ``None`` makes every call fail as not initialized.
        sleep:   Async sleep used for backoff (tests inject a fake).
    """

    def __init__(
        self,
        bus: EventBus,
        session: SessionState,
        policy: RetryPolicy | None,
        *,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self._bus = bus
        self._session = session
        self._policy = policy
        self._sleep = sleep

    @property
    def policy(self) -> RetryPolicy | None:
        return self._policy

    async def run(
        self,
        call: EndpointCall,
        send: Sender,
        decode: Callable[[Success], Any] | None = None,
    ) -> Success | TerminalFailure:
        """
        Execute ``call`` through ``send`` until success or terminal failure.

        ``decode`` turns the successful payload into ``Success.value``; a
        DecodeError it raises makes the call fail (never retried).
        """
        with request_context(endpoint=call.path, method=call.method):
            return await self._execute(call, send, decode)

    async def _execute(
        self,
        call: EndpointCall,
        send: Sender,
        decode: Callable[[Success], Any] | None,
    ) -> Success | TerminalFailure:
        snapshot = self._session.snapshot()
        checked = check_preconditions(snapshot, self._policy)
        if isinstance(checked, TerminalFailure):
            self._report_failure(call, f"{snapshot.active_host or ''}{call.path}", checked)
            return checked

        policy = checked
        max_attempts = policy.max_attempts
        binary_get = call.binary and call.method == "GET"
        last_url = f"{snapshot.active_host}{call.path}"
        attempts_made = 0

        async def attempt() -> Outcome:
            nonlocal last_url, attempts_made
            attempts_made += 1
            current = self._session.snapshot()
            url = f"{current.active_host}{call.path}"
            last_url = url
            self._bus.publish(
                EventKey.NETWORK_REQUEST_STARTED,
                NetworkRequestData(url=url, method=call.method, attempt=attempts_made),
            )
            log.debug("request.started", method=call.method, url=url, attempt=attempts_made)
            try:
                response = await send(url, current)
            except httpx.RequestError as exc:
                return classify(None, policy, transport_error=exc)
            return classify(response, policy, binary_get=binary_get)

        def wait(state: RetryCallState) -> float:
            outcome = state.outcome.result()
            if isinstance(outcome, RateLimited):
                return outcome.retry_after_seconds
            return policy.fixed_delay_seconds

        def before_sleep(state: RetryCallState) -> None:
            outcome = state.outcome.result()
            delay = wait(state)
            if isinstance(outcome, RateLimited):
                self._bus.publish(
                    EventKey.NETWORK_RATE_LIMITED,
                    RateLimitData(retry_after=delay, attempt=state.attempt_number),
                )
                log.warning(
                    "request.rate_limited",
                    url=last_url,
                    retry_after=delay,
                    attempt=state.attempt_number,
                    max_attempts=max_attempts,
                )
            else:
                self._bus.publish(
                    EventKey.NETWORK_RETRY_ATTEMPT,
                    NetworkRetryData(
                        attempt=state.attempt_number,
                        max_attempts=max_attempts,
                        error=outcome.message,
                    ),
                )
                log.warning(
                    "request.retrying",
                    url=last_url,
                    error=outcome.message,
                    attempt=state.attempt_number,
                    max_attempts=max_attempts,
                    delay=delay,
                )

        def exhausted(state: RetryCallState) -> TerminalFailure:
            outcome = state.outcome.result()
            return TerminalFailure(
                outcome.status_code,
                f"Max retry attempts ({max_attempts}) exceeded: {outcome.message}",
                RetriesExhaustedError.code,
            )

        retrying = AsyncRetrying(
            stop=stop_after_attempt(max_attempts),
            wait=wait,
            retry=retry_if_result(_should_retry),
            before_sleep=before_sleep,
            retry_error_callback=exhausted,
            sleep=self._sleep,
        )
        result: Success | TerminalFailure = await retrying(attempt)

        if isinstance(result, Success) and decode is not None and result.found:
            try:
                result = replace(result, value=decode(result))
            except DecodeError as exc:
                log.warning(
                    "response.decode_failed",
                    url=last_url,
                    body=result.raw_payload[:512].decode("utf-8", errors="replace"),
                )
                result = TerminalFailure(result.status_code, exc.message, exc.code)

        if isinstance(result, Success):
            self._bus.publish(
                EventKey.NETWORK_REQUEST_SUCCESS,
                NetworkSuccessData(url=last_url, method=call.method, status_code=result.status_code),
            )
            log.debug("request.succeeded", method=call.method, url=last_url, status=result.status_code)
        else:
            self._report_failure(call, last_url, result)
        return result

    def _report_failure(self, call: EndpointCall, url: str, failure: TerminalFailure) -> None:
        self._bus.publish(
            EventKey.NETWORK_REQUEST_FAILED,
            NetworkErrorData(
                url=url,
                method=call.method,
                status_code=failure.status_code,
                error=failure.message,
                error_code=failure.error_code,
            ),
        )
        log.error(
            "request.failed",
            method=call.method,
            url=url,
            status=failure.status_code,
            error=failure.message,
            error_code=failure.error_code,
        )


__all__ = [
    "EndpointCall",
    "Success",
    "RateLimited",
    "RetryableFailure",
    "TerminalFailure",
    "Outcome",
    "RetryEngine",
    "classify",
    "check_preconditions",
    "outcome_for",
    "parse_retry_after",
    "parse_error_message",
]
