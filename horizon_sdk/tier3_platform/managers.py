"""
horizon_sdk.tier3_platform.managers
──────────────────────────────────────
Base class for feature managers (remote config, news, feedback, cloud save,
leaderboard, gift codes, user logs).

A manager is attached to one HorizonApp via ``init(app)`` and reaches the
executor, the event bus and the session through it. Event subscriptions
made with ``register_event`` are tracked and dropped automatically by
``unregister_events()`` when the app shuts down.
"""
from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from horizon_sdk.tier0_core.errors import NotInitializedError
from horizon_sdk.tier0_core.logging import get_logger
from horizon_sdk.tier1_runtime.events import EventBus
from horizon_sdk.tier3_platform.api_client import RequestExecutor

if TYPE_CHECKING:
    from horizon_sdk.tier3_platform.app import HorizonApp


@dataclass
class _EventRegistration:
    topic: Any
    handler: Callable[[Any], None]


class BaseManager:
    """
    Subclasses override ``on_init`` for setup and ``register_events`` to
    subscribe to bus topics.
    """

    def __init__(self) -> None:
        self._app: HorizonApp | None = None
        self._registrations: list[_EventRegistration] = []
        self.log = get_logger(f"horizon_sdk.{type(self).__name__}")

    @property
    def name(self) -> str:
        return type(self).__name__

    @property
    def app(self) -> HorizonApp:
        if self._app is None:
            raise NotInitializedError(f"{self.name} is not registered with a HorizonApp")
        return self._app

    @property
    def network(self) -> RequestExecutor:
        return self.app.executor

    @property
    def events(self) -> EventBus:
        return self.app.bus

    def init(self, app: HorizonApp) -> bool:
        """Attach to ``app``. Returns False if ``on_init`` fails."""
        self._app = app
        try:
            self.on_init()
        except Exception as exc:
            self.log.warning("manager.init_failed", manager=self.name, error=str(exc))
            self._app = None
            return False
        return True

    def on_init(self) -> None:
        """Hook for subclass setup."""

    def register_events(self) -> None:
        """Hook for subclass event subscriptions."""

    def register_event(
        self, topic: Any, handler: Callable[[Any], None], payload_type: type = object
    ) -> None:
        """Subscribe ``handler`` and remember it for ``unregister_events``."""
        self.events.subscribe(topic, handler, payload_type)
        self._registrations.append(_EventRegistration(topic, handler))

    def unregister_events(self) -> None:
        if self._app is not None:
            for registration in self._registrations:
                self._app.bus.unsubscribe(registration.topic, registration.handler)
        self._registrations.clear()


__all__ = ["BaseManager"]
