"""
horizon_sdk.tier3_platform.leaderboard
─────────────────────────────────────────
Score submission and leaderboard queries. Top and around-the-user pages are
memoized per user and page size for a minute; a successful submission
invalidates every cached page.

Usage:
    board = app.get_manager(LeaderboardManager)
    await board.submit_score(user_id, 4200)
    top = await board.get_top(user_id, limit=10)
"""
from __future__ import annotations

import time
from collections.abc import Callable
from urllib.parse import urlencode

from pydantic import Field

from horizon_sdk.tier0_core.http import WireModel
from horizon_sdk.tier1_runtime.events import EventKey
from horizon_sdk.tier2_reliability.cache import TTLCache
from horizon_sdk.tier3_platform.managers import BaseManager

LEADERBOARD_PATH = "/api/v1/app/leaderboard"
LEADERBOARD_CACHE_TTL_SECONDS = 60.0
MAX_TOP_LIMIT = 100


class SubmitScoreRequest(WireModel):
    user_id: str
    score: int


class LeaderboardEntry(WireModel):
    position: int = 0
    username: str = ""
    score: int = 0


class LeaderboardPage(WireModel):
    """Body of the ``top`` and ``around`` endpoints."""
    entries: list[LeaderboardEntry] | None = None


class UserRank(WireModel):
    position: int = 0
    username: str = ""
    score: int = 0


class LeaderboardManager(BaseManager):

    def __init__(self, *, clock: Callable[[], float] = time.monotonic) -> None:
        super().__init__()
        self._cache = TTLCache(default_ttl=LEADERBOARD_CACHE_TTL_SECONDS, clock=clock)

    async def submit_score(self, user_id: str, score: int) -> bool:
        """Submit ``score``; the backend keeps only the user's best."""
        if not user_id:
            self.log.error("leaderboard.user_required")
            return False

        # the endpoint answers 200 with an empty body
        response = await self.network.post(
            f"{LEADERBOARD_PATH}/submit", SubmitScoreRequest(user_id=user_id, score=score)
        )
        if not response.is_success:
            self.log.error("leaderboard.submit_failed", error=response.error)
            return False

        self._cache.clear()
        self.log.info("leaderboard.score_submitted", score=score)
        self.events.publish(EventKey.LEADERBOARD_DATA_CHANGED, score)
        return True

    async def get_top(
        self, user_id: str, limit: int = 10, use_cache: bool = True
    ) -> list[LeaderboardEntry] | None:
        if not user_id:
            self.log.error("leaderboard.user_required")
            return None
        if limit > MAX_TOP_LIMIT:
            self.log.warning("leaderboard.limit_capped", requested=limit, limit=MAX_TOP_LIMIT)
            limit = MAX_TOP_LIMIT

        query = urlencode({"userId": user_id, "limit": limit})
        return await self._page(f"top:{user_id}:{limit}", f"{LEADERBOARD_PATH}/top?{query}", use_cache)

    async def get_around(
        self, user_id: str, range_size: int = 10, use_cache: bool = True
    ) -> list[LeaderboardEntry] | None:
        """``range_size`` entries on each side of the user's position."""
        if not user_id:
            self.log.error("leaderboard.user_required")
            return None

        query = urlencode({"userId": user_id, "range": range_size})
        return await self._page(
            f"around:{user_id}:{range_size}", f"{LEADERBOARD_PATH}/around?{query}", use_cache
        )

    async def get_rank(self, user_id: str) -> UserRank | None:
        if not user_id:
            self.log.error("leaderboard.user_required")
            return None

        response = await self.network.get(
            f"{LEADERBOARD_PATH}/rank?{urlencode({'userId': user_id})}", UserRank
        )
        if not response.is_success or response.data is None:
            self.log.error("leaderboard.rank_failed", error=response.error)
            return None

        self.log.info("leaderboard.rank", position=response.data.position, score=response.data.score)
        return response.data

    def clear_cache(self) -> None:
        self._cache.clear()
        self.events.publish(EventKey.CACHE_CLEARED, "Leaderboard")
        self.log.info("leaderboard.cache_cleared")

    async def _page(self, key: str, path: str, use_cache: bool) -> list[LeaderboardEntry] | None:
        if use_cache:
            cached = self._cache.get(key)
            if cached is not None:
                self.events.publish(EventKey.CACHE_HIT, key)
                return list(cached)
        else:
            self._cache.delete(key)

        entries = await self._cache.get_or_set(key, lambda: self._fetch(path))
        return None if entries is None else list(entries)

    async def _fetch(self, path: str) -> list[LeaderboardEntry] | None:
        response = await self.network.get(path, LeaderboardPage)
        if not response.is_success or response.data is None or response.data.entries is None:
            self.log.error("leaderboard.load_failed", path=path, error=response.error)
            return None

        entries = list(response.data.entries)
        self.log.info("leaderboard.loaded", count=len(entries))
        self.events.publish(EventKey.LEADERBOARD_DATA_LOADED, entries)
        return entries


__all__ = [
    "LeaderboardManager",
    "LeaderboardEntry",
    "LeaderboardPage",
    "SubmitScoreRequest",
    "UserRank",
    "LEADERBOARD_CACHE_TTL_SECONDS",
    "MAX_TOP_LIMIT",
]
