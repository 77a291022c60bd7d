"""
horizon_sdk.tier3_platform.news
──────────────────────────────────
In-game news feed. The backend answers with a bare JSON array of entries;
the last page is cached for five minutes.
"""
from __future__ import annotations

import time
from collections.abc import Callable
from urllib.parse import urlencode

from horizon_sdk.tier0_core.http import WireModel
from horizon_sdk.tier1_runtime.events import EventKey
from horizon_sdk.tier2_reliability.cache import TTLCache
from horizon_sdk.tier3_platform.managers import BaseManager

NEWS_PATH = "/api/v1/app/news"
NEWS_CACHE_TTL_SECONDS = 300.0
MAX_NEWS_LIMIT = 100

_CACHE_KEY = "news"


class NewsEntry(WireModel):
    id: str
    title: str = ""
    message: str = ""
    release_date: str | None = None
    language_code: str | None = None


class NewsManager(BaseManager):

    def __init__(self, *, clock: Callable[[], float] = time.monotonic) -> None:
        super().__init__()
        self._cache = TTLCache(default_ttl=NEWS_CACHE_TTL_SECONDS, clock=clock)

    async def load_news(
        self,
        limit: int = 20,
        language_code: str | None = None,
        use_cache: bool = True,
    ) -> list[NewsEntry] | None:
        """
        Fetch up to ``limit`` entries (capped at 100), optionally filtered by
        language. A fresh cached page is returned as-is regardless of the
        arguments. Returns None if the request failed.
        """
        if use_cache:
            cached = self._cache.get(_CACHE_KEY)
            if cached:
                self.events.publish(EventKey.CACHE_HIT, "News")
                return list(cached)

        if limit > MAX_NEWS_LIMIT:
            self.log.warning("news.limit_capped", requested=limit, limit=MAX_NEWS_LIMIT)
            limit = MAX_NEWS_LIMIT

        params: dict[str, str | int] = {"limit": limit}
        if language_code:
            params["languageCode"] = language_code

        response = await self.network.get(f"{NEWS_PATH}?{urlencode(params)}", list[NewsEntry])
        if not response.is_success or response.data is None:
            self.log.error("news.load_failed", error=response.error)
            return None

        entries = list(response.data)
        self._cache.set(_CACHE_KEY, entries)
        self.log.info("news.loaded", count=len(entries))
        self.events.publish(EventKey.NEWS_DATA_LOADED, entries)
        return list(entries)

    def get_news_by_id(self, news_id: str) -> NewsEntry | None:
        for entry in self._cache.get(_CACHE_KEY) or []:
            if entry.id == news_id:
                return entry
        return None

    def clear_cache(self) -> None:
        self._cache.clear()
        self.events.publish(EventKey.CACHE_CLEARED, "News")
        self.log.info("news.cache_cleared")


__all__ = ["NewsManager", "NewsEntry", "NEWS_CACHE_TTL_SECONDS", "MAX_NEWS_LIMIT"]
