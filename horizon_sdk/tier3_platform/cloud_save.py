"""
horizon_sdk.tier3_platform.cloud_save
────────────────────────────────────────
Per-user cloud save slot. Text saves go through the JSON endpoints
(``{userId, saveData}``); byte saves use the same paths with the user id in
the query string and an octet-stream body. A binary load answered with 204
means the user has no save yet.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import TypeVar
from urllib.parse import urlencode

from pydantic import BaseModel, ValidationError

from horizon_sdk.tier0_core.http import WireModel
from horizon_sdk.tier1_runtime.events import EventKey
from horizon_sdk.tier3_platform.managers import BaseManager

SAVE_PATH = "/api/v1/app/cloud-save/save"
LOAD_PATH = "/api/v1/app/cloud-save/load"

M = TypeVar("M", bound=BaseModel)


# ── Wire models ───────────────────────────────────────────────────────────────

class SaveCloudDataRequest(WireModel):
    user_id: str
    save_data: str


class LoadCloudDataRequest(WireModel):
    user_id: str


class SaveCloudResponse(WireModel):
    success: bool = False
    data_size_bytes: int = 0


class LoadCloudResponse(WireModel):
    found: bool = False
    save_data: str | None = None


# ── Event payloads ────────────────────────────────────────────────────────────

@dataclass
class CloudSaveLoadedData:
    user_id: str
    data: str
    size_bytes: int


@dataclass
class CloudSaveBytesLoadedData:
    user_id: str
    data: bytes
    size_bytes: int


class CloudSaveManager(BaseManager):

    async def save(self, user_id: str, data: str) -> bool:
        if not data:
            self.log.error("cloud_save.data_required")
            return False
        if not user_id:
            self.log.error("cloud_save.user_required")
            return False

        request = SaveCloudDataRequest(user_id=user_id, save_data=data)
        response = await self.network.post(SAVE_PATH, request, SaveCloudResponse)
        if response.is_success and response.data is not None and response.data.success:
            self.log.info("cloud_save.saved", size_bytes=response.data.data_size_bytes)
            self.events.publish(EventKey.CLOUD_SAVE_DATA_CHANGED, user_id)
            return True

        self.log.error("cloud_save.save_failed", error=response.error)
        return False

    async def load(self, user_id: str) -> str | None:
        """Saved text for ``user_id``, or None if absent or the request failed."""
        if not user_id:
            self.log.error("cloud_save.user_required")
            return None

        response = await self.network.post(
            LOAD_PATH, LoadCloudDataRequest(user_id=user_id), LoadCloudResponse
        )
        data = response.data
        if not response.is_success or data is None:
            self.log.error("cloud_save.load_failed", error=response.error)
            return None
        if not data.found or data.save_data is None:
            self.log.info("cloud_save.not_found", user_id=user_id)
            return None

        size_bytes = len(data.save_data.encode("utf-8"))
        self.log.info("cloud_save.loaded", size_bytes=size_bytes)
        self.events.publish(
            EventKey.CLOUD_SAVE_DATA_LOADED,
            CloudSaveLoadedData(user_id=user_id, data=data.save_data, size_bytes=size_bytes),
        )
        return data.save_data

    async def save_bytes(self, user_id: str, data: bytes) -> bool:
        if not data:
            self.log.error("cloud_save.data_required")
            return False
        if not user_id:
            self.log.error("cloud_save.user_required")
            return False

        response = await self.network.post_binary(
            f"{SAVE_PATH}?{urlencode({'userId': user_id})}", data, SaveCloudResponse
        )
        if response.is_success and response.data is not None and response.data.success:
            self.log.info("cloud_save.saved_bytes", size_bytes=response.data.data_size_bytes)
            self.events.publish(EventKey.CLOUD_SAVE_DATA_CHANGED, user_id)
            return True

        self.log.error("cloud_save.save_bytes_failed", error=response.error)
        return False

    async def load_bytes(self, user_id: str) -> bytes | None:
        """Saved bytes for ``user_id``; None on 204 (no save) or failure."""
        if not user_id:
            self.log.error("cloud_save.user_required")
            return None

        response = await self.network.get_binary(f"{LOAD_PATH}?{urlencode({'userId': user_id})}")
        if not response.is_success:
            self.log.error("cloud_save.load_bytes_failed", error=response.error)
            return None
        if not response.found:
            self.log.info("cloud_save.not_found", user_id=user_id)
            return None

        payload = response.data or b""
        self.log.info("cloud_save.loaded_bytes", size_bytes=len(payload))
        self.events.publish(
            EventKey.CLOUD_SAVE_BYTES_LOADED,
            CloudSaveBytesLoadedData(user_id=user_id, data=payload, size_bytes=len(payload)),
        )
        return payload

    # ── model helpers ─────────────────────────────────────────────────────────

    async def save_object(self, user_id: str, obj: BaseModel) -> bool:
        return await self.save(user_id, obj.model_dump_json())

    async def load_object(self, user_id: str, model: type[M]) -> M | None:
        raw = await self.load(user_id)
        if not raw:
            return None
        try:
            return model.model_validate_json(raw)
        except ValidationError as exc:
            self.log.error("cloud_save.object_invalid", model=model.__name__, error=str(exc))
            return None


__all__ = [
    "CloudSaveManager",
    "CloudSaveLoadedData",
    "CloudSaveBytesLoadedData",
    "SaveCloudDataRequest",
    "LoadCloudDataRequest",
    "SaveCloudResponse",
    "LoadCloudResponse",
]
