"""
horizon_sdk.tier3_platform.app
─────────────────────────────────
HorizonApp: the SDK context object. Owns the config, the event bus, the
session state, the request executor and the registered managers. There are
no module-level singletons apart from the cached ``get_config()``.

Usage:
    async with HorizonApp() as app:
        await app.connect()
        app.register_manager(RemoteConfigManager())
        remote = app.get_manager(RemoteConfigManager)
        motd = await remote.get_string("motd")
"""
from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any, TypeVar

import httpx

from horizon_sdk.tier0_core.config import HorizonConfig, get_config
from horizon_sdk.tier0_core.errors import NotInitializedError
from horizon_sdk.tier0_core.logging import configure_logging, get_logger
from horizon_sdk.tier1_runtime.events import (
    ConnectionStatus,
    ConnectionStatusData,
    EventBus,
    EventKey,
)
from horizon_sdk.tier1_runtime.retry import Sleeper
from horizon_sdk.tier1_runtime.session import SessionState
from horizon_sdk.tier2_reliability.health import HostProber, select_host
from horizon_sdk.tier3_platform.api_client import RequestExecutor
from horizon_sdk.tier3_platform.managers import BaseManager

log = get_logger(__name__)

ManagerT = TypeVar("ManagerT", bound=BaseManager)


class HorizonApp:
    """
    Args:
        config:    Settings; defaults to ``get_config()`` (HORIZON_* env vars).
        transport: Optional httpx transport for the executor's client
                   (tests pass ``httpx.MockTransport``).
        sleep:     Async sleep used for retry backoff.
    """

    def __init__(
        self,
        config: HorizonConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Sleeper | None = None,
    ) -> None:
        self.config = config or get_config()
        self.bus = EventBus(replay_ttl_seconds=self.config.replay_ttl_seconds)
        self.session = SessionState()
        self._transport = transport
        self._sleep = sleep or asyncio.sleep
        self.executor = self._build_executor()
        self._executor_closed = False
        self._managers: list[BaseManager] = []
        self._initialized = False
        self._status = ConnectionStatus.DISCONNECTED

    def _build_executor(self) -> RequestExecutor:
        return RequestExecutor(
            self.bus,
            self.session,
            self.config.retry_policy(),
            api_key=self.config.api_key,
            transport=self._transport,
            sleep=self._sleep,
        )

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def connection_status(self) -> ConnectionStatus:
        return self._status

    # ── lifecycle ─────────────────────────────────────────────────────────────

    def initialize(self) -> bool:
        if self._initialized:
            log.warning("sdk.already_initialized")
            return True

        configure_logging(self.config.log_level, self.config.log_format)
        log.info("sdk.initializing")
        if not self.config.is_valid():
            log.error(
                "sdk.invalid_config",
                has_api_key=bool(self.config.api_key),
                backend_domains=len(self.config.backend_domains),
            )
        if self._executor_closed:
            self.executor = self._build_executor()
            self._executor_closed = False

        for service in ("EventBus", "SessionState", "RequestExecutor"):
            self.bus.publish(EventKey.SERVICE_INITIALIZED, service)

        self._initialized = True
        log.info("sdk.initialized")
        self.bus.publish(EventKey.SDK_INITIALIZED, datetime.now(timezone.utc))
        return True

    async def connect(self) -> bool:
        """Probe the configured backend domains and make the fastest reachable one active."""
        hosts = self.config.backend_domains
        if not hosts:
            log.error("connection.no_backend_domains")
            self._set_status(ConnectionStatus.FAILED)
            return False

        self._set_status(ConnectionStatus.CONNECTING)
        prober = HostProber(
            self.executor.client,
            api_key=self.config.api_key,
            health_path=self.config.health_path,
            timeout=float(self.config.connection_timeout_seconds),
        )
        results = await prober.probe_all(hosts)
        host = select_host(results)
        if host is None:
            log.error(
                "connection.failed",
                hosts=hosts,
                details=[r.detail for r in results],
            )
            self._set_status(ConnectionStatus.FAILED)
            return False

        self.session.set_active_host(host)
        latency = next(r.latency_ms for r in results if r.host == host)
        log.info("connection.connected", host=host, latency_ms=latency)
        self._set_status(ConnectionStatus.CONNECTED, self.session.active_host)
        return True

    async def shutdown(self) -> None:
        if not self._initialized:
            return
        log.info("sdk.shutting_down")
        self.bus.publish(EventKey.SDK_SHUTDOWN, datetime.now(timezone.utc))

        for manager in self._managers:
            manager.unregister_events()
        self._managers.clear()
        self.bus.clear_all()

        await self.executor.aclose()
        self._executor_closed = True
        self._initialized = False
        self._status = ConnectionStatus.DISCONNECTED
        log.info("sdk.shutdown_complete")

    async def __aenter__(self) -> HorizonApp:
        self.initialize()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.shutdown()

    # ── session ───────────────────────────────────────────────────────────────

    def sign_in(self, token: str) -> None:
        self.session.set_session_token(token)
        self.bus.publish(EventKey.SESSION_CHANGED, True)

    def sign_out(self) -> None:
        self.session.clear_session_token()
        self.bus.publish(EventKey.SESSION_CHANGED, False)

    # ── managers ──────────────────────────────────────────────────────────────

    def register_manager(self, manager: BaseManager) -> bool:
        if not self._initialized:
            raise NotInitializedError(
                "Cannot register a manager before HorizonApp.initialize()"
            )
        if manager in self._managers:
            log.warning("manager.already_registered", manager=manager.name)
            return True

        if not manager.init(self):
            log.error("manager.init_failed", manager=manager.name)
            return False
        try:
            manager.register_events()
        except Exception as exc:
            log.error("manager.register_failed", manager=manager.name, error=str(exc))
            manager.unregister_events()
            return False

        self._managers.append(manager)
        log.info("manager.registered", manager=manager.name)
        self.bus.publish(EventKey.MANAGER_INITIALIZED, manager.name)
        return True

    def get_manager(self, manager_type: type[ManagerT]) -> ManagerT | None:
        if not self._initialized:
            raise NotInitializedError("Cannot get a manager before HorizonApp.initialize()")
        for manager in self._managers:
            if isinstance(manager, manager_type):
                return manager
        return None

    def _set_status(self, status: ConnectionStatus, host: str | None = None) -> None:
        self._status = status
        self.bus.publish(
            EventKey.CONNECTION_STATUS_CHANGED, ConnectionStatusData(status=status, host=host)
        )


__all__ = ["HorizonApp"]
