"""
horizon_sdk test configuration.

All HTTP traffic goes through httpx.MockTransport and all backoff through a
recording fake sleep: no network, no real waiting.
"""
from __future__ import annotations

import os
from collections.abc import Callable

import httpx
import pytest

# ── Deterministic settings ─────────────────────────────────────────────────
# These must be set before any horizon_sdk config is loaded.

os.environ.setdefault("HORIZON_API_KEY", "test-api-key-0123456789")
os.environ.setdefault("HORIZON_BACKEND_DOMAINS", '["https://api.test.horizon"]')
os.environ.setdefault("HORIZON_LOG_LEVEL", "DEBUG")
os.environ.setdefault("HORIZON_LOG_FORMAT", "console")

HOST = "https://api.test.horizon"


# ── Fixtures ───────────────────────────────────────────────────────────────

@pytest.fixture(autouse=True)
def reset_config():
    """Drop the cached HorizonConfig so env changes in one test never leak."""
    from horizon_sdk.tier0_core.config import _reset_config

    _reset_config()
    yield
    _reset_config()


class RecordingSleep:
    """Async sleep stand-in that records requested delays and returns immediately."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class Recorder:
    """Event handler that keeps every payload it receives."""

    def __init__(self) -> None:
        self.received: list = []

    def __call__(self, payload) -> None:
        self.received.append(payload)


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture
def bus():
    from horizon_sdk.tier1_runtime.events import EventBus

    return EventBus()


@pytest.fixture
def session():
    """Session state with the test host already active."""
    from horizon_sdk.tier1_runtime.session import SessionState

    state = SessionState()
    state.set_active_host(HOST)
    return state


@pytest.fixture
def policy():
    from horizon_sdk.tier0_core.config import RetryPolicy

    return RetryPolicy(max_retry_attempts=3, fixed_delay_seconds=1.0, connection_timeout_seconds=10)


@pytest.fixture
def make_executor(bus, session, policy, sleep):
    """
    Factory: ``make_executor(handler)`` builds a RequestExecutor whose client
    answers every request with ``handler(request)``.
    """
    from horizon_sdk.tier3_platform.api_client import RequestExecutor

    def _make(
        handler: Callable[[httpx.Request], httpx.Response],
        *,
        api_key: str = "test-api-key-0123456789",
        retry_policy=policy,
    ) -> RequestExecutor:
        executor = RequestExecutor(
            bus,
            session,
            retry_policy,
            api_key=api_key,
            transport=httpx.MockTransport(handler),
            sleep=sleep,
        )
        return executor

    return _make


@pytest.fixture
def make_config():
    def _make(**overrides):
        from horizon_sdk.tier0_core.config import HorizonConfig

        values = {
            "api_key": "test-api-key-0123456789",
            "backend_domains": [HOST],
            "retry_delay_seconds": 1.0,
        }
        values.update(overrides)
        return HorizonConfig(**values)

    return _make
