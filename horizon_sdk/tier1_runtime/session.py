"""
horizon_sdk.tier1_runtime.session
────────────────────────────────────
Host and session state shared by every in-flight request: the active
backend base URL and the bearer token attached to authenticated calls.

State is published as an immutable SessionSnapshot. Writers swap the
snapshot under a lock; readers grab the current reference and never see a
half-updated host/token pair. The executor reads a fresh snapshot at the
start of every attempt, so a token refreshed mid-retry is picked up on the
next attempt.
"""
from __future__ import annotations

import threading
from dataclasses import dataclass, replace

from horizon_sdk.tier0_core.logging import get_logger

log = get_logger(__name__)


# ── Domain model ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class SessionSnapshot:
    """Point-in-time view of host/session state."""
    active_host: str | None = None
    session_token: str | None = None

    @property
    def has_host(self) -> bool:
        return bool(self.active_host)

    @property
    def has_token(self) -> bool:
        return bool(self.session_token)


class SessionState:
    """Mutable holder of the current SessionSnapshot. One per HorizonApp."""

    def __init__(self) -> None:
        self._snapshot = SessionSnapshot()
        self._write_lock = threading.Lock()

    def snapshot(self) -> SessionSnapshot:
        return self._snapshot

    @property
    def active_host(self) -> str | None:
        return self._snapshot.active_host

    @property
    def is_signed_in(self) -> bool:
        return self._snapshot.has_token

    def set_active_host(self, url: str) -> None:
        """Replace the base URL prefixed to every subsequent endpoint."""
        host = url.strip().rstrip("/")
        with self._write_lock:
            self._snapshot = replace(self._snapshot, active_host=host or None)
        log.info("session.active_host_set", host=host)

    def set_session_token(self, token: str) -> None:
        with self._write_lock:
            self._snapshot = replace(self._snapshot, session_token=token or None)
        log.info("session.token_updated")

    def clear_session_token(self) -> None:
        with self._write_lock:
            self._snapshot = replace(self._snapshot, session_token=None)
        log.info("session.token_cleared")


__all__ = ["SessionSnapshot", "SessionState"]
