"""
horizon_sdk.tier3_platform.remote_config
───────────────────────────────────────────
Remote configuration: string key/value pairs managed in the horizOn
dashboard, fetched one at a time or all at once and cached in-process.

Usage:
    remote = app.get_manager(RemoteConfigManager)
    speed = await remote.get_float("player_speed", 1.0)
"""
from __future__ import annotations

from typing import ClassVar
from urllib.parse import quote

from pydantic import Field

from horizon_sdk.tier0_core.http import WireModel
from horizon_sdk.tier1_runtime.events import EventKey
from horizon_sdk.tier2_reliability.cache import TTLCache
from horizon_sdk.tier3_platform.managers import BaseManager

CONFIG_PATH = "/api/v1/app/remote-config"


class RemoteConfigValue(WireModel):
    config_key: str | None = None
    config_value: str | None = None
    found: bool = False


class RemoteConfigsResponse(WireModel):
    """``{"total": N, "configs": {"key": "value", ...}}``; configs is read by the map parser."""
    __map_field__: ClassVar[str] = "configs"

    total: int = 0
    configs: dict[str, str] = Field(default_factory=dict)


class RemoteConfigManager(BaseManager):

    def __init__(self) -> None:
        super().__init__()
        self._cache = TTLCache()

    async def get_config(self, key: str, use_cache: bool = True) -> str | None:
        """Value for ``key``, or None if it is unknown or the request failed."""
        if not key:
            self.log.error("remote_config.key_required")
            return None

        if use_cache:
            cached = self._cache.get(key)
            if cached is not None:
                self.events.publish(EventKey.CACHE_HIT, f"Config:{key}")
                return cached

        response = await self.network.get(
            f"{CONFIG_PATH}/{quote(key, safe='')}", RemoteConfigValue
        )
        data = response.data
        if response.is_success and data is not None and data.found:
            value = data.config_value or ""
            self._cache.set(key, value)
            self.events.publish(EventKey.CONFIG_DATA_LOADED, value)
            return value

        self.log.warning("remote_config.get_failed", key=key, error=response.error)
        return None

    async def get_all_configs(self, use_cache: bool = True) -> dict[str, str] | None:
        if use_cache and len(self._cache) > 0:
            self.events.publish(EventKey.CACHE_HIT, "AllConfigs")
            return self._snapshot()

        response = await self.network.get(f"{CONFIG_PATH}/all", RemoteConfigsResponse)
        if not response.is_success or response.data is None:
            self.log.error("remote_config.get_all_failed", error=response.error)
            return None

        self._cache.clear()
        for key, value in response.data.configs.items():
            self._cache.set(key, value)
        configs = self._snapshot()
        self.log.info("remote_config.loaded", count=len(configs))
        self.events.publish(EventKey.CONFIG_DATA_LOADED, configs)
        return configs

    # ── typed accessors ───────────────────────────────────────────────────────

    async def get_string(self, key: str, default: str = "", use_cache: bool = True) -> str:
        value = await self.get_config(key, use_cache)
        return default if value is None else value

    async def get_int(self, key: str, default: int = 0, use_cache: bool = True) -> int:
        value = await self.get_config(key, use_cache)
        if value is None:
            return default
        try:
            return int(value.strip())
        except ValueError:
            return default

    async def get_float(self, key: str, default: float = 0.0, use_cache: bool = True) -> float:
        value = await self.get_config(key, use_cache)
        if value is None:
            return default
        try:
            return float(value.strip())
        except ValueError:
            return default

    async def get_bool(self, key: str, default: bool = False, use_cache: bool = True) -> bool:
        value = await self.get_config(key, use_cache)
        if value is None:
            return default
        normalized = value.strip().lower()
        if normalized == "true":
            return True
        if normalized == "false":
            return False
        return default

    def clear_cache(self) -> None:
        self._cache.clear()
        self.events.publish(EventKey.CACHE_CLEARED, "RemoteConfig")
        self.log.info("remote_config.cache_cleared")

    def _snapshot(self) -> dict[str, str]:
        return {key: self._cache.get(key) for key in self._cache.keys()}


__all__ = ["RemoteConfigManager", "RemoteConfigValue", "RemoteConfigsResponse"]
