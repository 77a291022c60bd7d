"""
horizon_sdk.tier2_reliability.cache
───────────────────────────────────────
In-process TTL cache used by managers to memoize backend reads
(remote config values, the news page, leaderboard pages). Entries without
a TTL live until deleted or cleared.

Concurrent misses on the same key are collapsed by a per-key asyncio.Lock
in ``get_or_set``.
"""
from __future__ import annotations

import asyncio
import inspect
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any


@dataclass
class _Entry:
    value: Any
    expires_at: float | None  # None: never expires


class TTLCache:
    """Key/value store with optional per-entry expiry and an injectable clock."""

    def __init__(
        self,
        default_ttl: float | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._entries: dict[str, _Entry] = {}
        self._inflight: dict[str, asyncio.Lock] = {}
        self._default_ttl = default_ttl
        self._clock = clock

    def _live(self, key: str) -> _Entry | None:
        entry = self._entries.get(key)
        if entry is not None and entry.expires_at is not None and self._clock() > entry.expires_at:
            del self._entries[key]
            return None
        return entry

    def get(self, key: str) -> Any | None:
        entry = self._live(key)
        return None if entry is None else entry.value

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        ttl = self._default_ttl if ttl is None else ttl
        expires_at = self._clock() + ttl if ttl else None
        self._entries[key] = _Entry(value, expires_at)

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def keys(self) -> list[str]:
        return [key for key in list(self._entries) if self._live(key) is not None]

    def __len__(self) -> int:
        return len(self.keys())

    async def get_or_set(
        self, key: str, factory: Callable[[], Any], ttl: float | None = None
    ) -> Any:
        """
        Cached value for ``key``, or the result of ``factory()`` (awaited when
        it is awaitable), stored when it is not None.
        """
        cached = self.get(key)
        if cached is not None:
            return cached
        lock = self._inflight.setdefault(key, asyncio.Lock())
        try:
            async with lock:
                cached = self.get(key)
                if cached is not None:
                    return cached
                value = factory()
                if inspect.isawaitable(value):
                    value = await value
                if value is not None:
                    self.set(key, value, ttl)
                return value
        finally:
            # waiters keep their reference; later misses get a fresh lock
            if self._inflight.get(key) is lock:
                del self._inflight[key]

    def clear(self) -> None:
        self._entries.clear()
        self._inflight.clear()


__all__ = ["TTLCache"]
