"""
horizon_sdk.tier1_runtime.events
───────────────────────────────────
In-process, typed publish/subscribe used by every SDK component to observe
request, connection and lifecycle events.

Each topic keeps an ordered list of ``(payload_type, handler)``
registrations plus the last published payload. A handler subscribing after
a publish is replayed that payload immediately, as long as the payload is
still alive somewhere else in the process:

* weak-referenceable payloads (dataclass instances, models, ...) are held
  through ``weakref.ref``, so the bus never keeps them alive;
* payloads that cannot be weakly referenced (``None``, ``str``, ``int``,
  ``datetime``, plain ``dict``/``list``) sit in a last-value slot that is
  evicted ``replay_ttl_seconds`` after the publish.

Handlers run synchronously, in registration order, while the bus lock is
held. A handler must not call subscribe/unsubscribe/publish/clear on the
same bus from inside its callback: such calls raise EventBusReentrancyError
(which the bus then logs like any other handler failure).
"""
from __future__ import annotations

import threading
import time
import weakref
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from horizon_sdk.tier0_core.errors import EventBusReentrancyError
from horizon_sdk.tier0_core.logging import get_logger

log = get_logger(__name__)


class EventKey(str, Enum):
    # network
    NETWORK_REQUEST_STARTED = "network.request_started"
    NETWORK_REQUEST_SUCCESS = "network.request_success"
    NETWORK_REQUEST_FAILED = "network.request_failed"
    NETWORK_RATE_LIMITED = "network.rate_limited"
    NETWORK_RETRY_ATTEMPT = "network.retry_attempt"
    # connection / session
    CONNECTION_STATUS_CHANGED = "connection.status_changed"
    SESSION_CHANGED = "session.changed"
    # lifecycle
    SERVICE_INITIALIZED = "lifecycle.service_initialized"
    SDK_INITIALIZED = "lifecycle.sdk_initialized"
    SDK_SHUTDOWN = "lifecycle.sdk_shutdown"
    MANAGER_INITIALIZED = "lifecycle.manager_initialized"
    # managers
    CACHE_HIT = "cache.hit"
    CACHE_CLEARED = "cache.cleared"
    CONFIG_DATA_LOADED = "remote_config.loaded"
    NEWS_DATA_LOADED = "news.loaded"
    FEEDBACK_SUBMITTED = "feedback.submitted"
    CLOUD_SAVE_DATA_CHANGED = "cloud_save.changed"
    CLOUD_SAVE_DATA_LOADED = "cloud_save.loaded"
    CLOUD_SAVE_BYTES_LOADED = "cloud_save.bytes_loaded"
    LEADERBOARD_DATA_CHANGED = "leaderboard.changed"
    LEADERBOARD_DATA_LOADED = "leaderboard.loaded"
    GIFT_CODE_REDEEMED = "gift_code.redeemed"
    GIFT_CODE_VALIDATED = "gift_code.validated"
    USER_LOG_CREATED = "user_log.created"


class _NoData:
    """Payload of a publish that carries no data."""

    def __repr__(self) -> str:
        return "NO_DATA"


NO_DATA = _NoData()


# ── Event payloads ─────────────────────────────────────────────────────────────

@dataclass
class NetworkRequestData:
    url: str
    method: str
    attempt: int


@dataclass
class NetworkSuccessData:
    url: str
    method: str
    status_code: int


@dataclass
class NetworkErrorData:
    url: str
    method: str
    status_code: int
    error: str
    error_code: str | None = None


@dataclass
class NetworkRetryData:
    attempt: int
    max_attempts: int
    error: str


@dataclass
class RateLimitData:
    retry_after: float
    attempt: int


class ConnectionStatus(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    FAILED = "failed"


@dataclass
class ConnectionStatusData:
    status: ConnectionStatus
    host: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


# ── Bus internals ──────────────────────────────────────────────────────────────

Handler = Callable[[Any], None]


@dataclass
class _Registration:
    handler: Handler
    payload_type: type


class _LastValue:
    """Cached last payload of a topic: weak when possible, TTL-bounded otherwise."""

    __slots__ = ("_ref", "_value", "_expires_at")

    def __init__(self, value: Any, ttl: float, now: float) -> None:
        try:
            self._ref: weakref.ref | None = weakref.ref(value)
            self._value: Any = None
            self._expires_at = 0.0
        except TypeError:
            self._ref = None
            self._value = value
            self._expires_at = now + ttl

    def get(self, now: float) -> tuple[bool, Any]:
        """Return ``(alive, value)``."""
        if self._ref is not None:
            value = self._ref()
            return value is not None, value
        if now >= self._expires_at:
            self._value = None
            return False, None
        return True, self._value


class EventBus:
    """
    Topic-keyed publish/subscribe with replay for late subscribers.

    Usage::

        bus = EventBus()
        bus.subscribe(EventKey.SDK_INITIALIZED, on_ready, datetime)
        bus.publish(EventKey.SDK_INITIALIZED, datetime.now(timezone.utc))
    """

    def __init__(
        self,
        *,
        replay_ttl_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._handlers: dict[Any, list[_Registration]] = {}
        self._last: dict[Any, _LastValue] = {}
        self._lock = threading.RLock()
        self._local = threading.local()
        self._ttl = replay_ttl_seconds
        self._clock = clock

    # ── dispatch guard ────────────────────────────────────────────────────────

    def _depth(self) -> int:
        return getattr(self._local, "depth", 0)

    def _guard(self, operation: str, topic: Any) -> None:
        if self._depth() > 0:
            raise EventBusReentrancyError(
                f"Handler called {operation}({topic!r}) on the bus that is dispatching to it"
            )

    def _invoke(self, topic: Any, registration: _Registration, value: Any) -> None:
        self._local.depth = self._depth() + 1
        try:
            registration.handler(value)
        except Exception as exc:
            log.error(
                "event.handler_failed",
                topic=str(topic),
                handler=getattr(registration.handler, "__qualname__", repr(registration.handler)),
                error=str(exc),
                exc_info=True,
            )
        finally:
            self._local.depth -= 1

    # ── public API ────────────────────────────────────────────────────────────

    def subscribe(
        self, topic: Any, handler: Handler | None, payload_type: type = object
    ) -> None:
        """
        Register ``handler`` for ``topic``. If a payload of ``payload_type``
        was published earlier and is still alive, the handler is invoked with
        it before this call returns.
        """
        if handler is None:
            log.warning("event.subscribe_without_handler", topic=str(topic))
            return

        with self._lock:
            self._guard("subscribe", topic)
            registration = _Registration(handler, payload_type)
            self._handlers.setdefault(topic, []).append(registration)

            cached = self._last.get(topic)
            if cached is None:
                return
            alive, value = cached.get(self._clock())
            if alive and isinstance(value, payload_type):
                self._invoke(topic, registration, value)

    def unsubscribe(self, topic: Any, handler: Handler | None) -> None:
        """Remove one registration of ``handler``; unknown handlers are ignored."""
        if handler is None:
            return

        with self._lock:
            self._guard("unsubscribe", topic)
            registrations = self._handlers.get(topic)
            if not registrations:
                return
            for index in range(len(registrations) - 1, -1, -1):
                if registrations[index].handler == handler:
                    del registrations[index]
                    break
            if not registrations:
                del self._handlers[topic]

    def publish(self, topic: Any, value: Any = NO_DATA) -> None:
        """
        Cache ``value`` as the topic's last payload and deliver it to every
        handler currently registered, in registration order.
        """
        with self._lock:
            self._guard("publish", topic)
            self._last[topic] = _LastValue(value, self._ttl, self._clock())

            for registration in list(self._handlers.get(topic, ())):
                if not isinstance(value, registration.payload_type):
                    log.warning(
                        "event.type_mismatch",
                        topic=str(topic),
                        expected=registration.payload_type.__name__,
                        got=type(value).__name__,
                    )
                    continue
                self._invoke(topic, registration, value)

    def has_subscribers(self, topic: Any) -> bool:
        with self._lock:
            return bool(self._handlers.get(topic))

    def subscriber_count(self, topic: Any) -> int:
        with self._lock:
            return len(self._handlers.get(topic, ()))

    def clear_topic(self, topic: Any) -> None:
        """Drop handlers and the cached payload for one topic."""
        with self._lock:
            self._guard("clear_topic", topic)
            self._handlers.pop(topic, None)
            self._last.pop(topic, None)

    def clear_all(self) -> None:
        """Drop every handler and cached payload. Used at SDK shutdown and in tests."""
        with self._lock:
            self._guard("clear_all", None)
            self._handlers.clear()
            self._last.clear()


__all__ = [
    "EventBus",
    "EventKey",
    "NO_DATA",
    "NetworkRequestData",
    "NetworkSuccessData",
    "NetworkErrorData",
    "NetworkRetryData",
    "RateLimitData",
    "ConnectionStatus",
    "ConnectionStatusData",
]
