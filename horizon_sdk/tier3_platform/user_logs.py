"""
horizon_sdk.tier3_platform.user_logs
───────────────────────────────────────
Server-side user logs for monitoring and debugging. Messages are capped at
1000 characters and error codes at 50; longer values are truncated with a
warning. The feature is unavailable on FREE accounts (the backend answers
403).
"""
from __future__ import annotations

from enum import Enum

from horizon_sdk.tier0_core.http import HTTP, WireModel
from horizon_sdk.tier1_runtime.events import EventKey
from horizon_sdk.tier3_platform.managers import BaseManager

USER_LOGS_PATH = "/api/v1/app/user-logs/create"
MAX_MESSAGE_LENGTH = 1000
MAX_ERROR_CODE_LENGTH = 50


class LogType(str, Enum):
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"


class CreateUserLogRequest(WireModel):
    message: str
    type: LogType
    user_id: str
    error_code: str | None = None


class CreateUserLogResponse(WireModel):
    id: str | None = None
    created_at: str | None = None


class UserLogManager(BaseManager):

    async def create_log(
        self,
        log_type: LogType,
        message: str,
        user_id: str,
        error_code: str | None = None,
    ) -> CreateUserLogResponse | None:
        """Store one log entry; returns its id and timestamp, or None on failure."""
        if not message:
            self.log.error("user_log.message_required")
            return None
        if not user_id:
            self.log.error("user_log.user_required")
            return None

        if len(message) > MAX_MESSAGE_LENGTH:
            self.log.warning("user_log.message_truncated", length=len(message))
            message = message[:MAX_MESSAGE_LENGTH]
        if error_code and len(error_code) > MAX_ERROR_CODE_LENGTH:
            self.log.warning("user_log.error_code_truncated", length=len(error_code))
            error_code = error_code[:MAX_ERROR_CODE_LENGTH]

        request = CreateUserLogRequest(
            message=message, type=log_type, user_id=user_id, error_code=error_code
        )
        response = await self.network.post(USER_LOGS_PATH, request, CreateUserLogResponse)
        if response.is_success and response.data is not None and response.data.id:
            self.events.publish(EventKey.USER_LOG_CREATED, response.data)
            return response.data

        error = response.error or "Unknown error"
        if response.status_code == HTTP.FORBIDDEN:
            error = "User log feature is not available for FREE accounts"
        self.log.warning("user_log.create_failed", status=response.status_code, error=error)
        return None

    async def info(
        self, message: str, user_id: str, error_code: str | None = None
    ) -> CreateUserLogResponse | None:
        return await self.create_log(LogType.INFO, message, user_id, error_code)

    async def warn(
        self, message: str, user_id: str, error_code: str | None = None
    ) -> CreateUserLogResponse | None:
        return await self.create_log(LogType.WARN, message, user_id, error_code)

    async def error(
        self, message: str, user_id: str, error_code: str | None = None
    ) -> CreateUserLogResponse | None:
        return await self.create_log(LogType.ERROR, message, user_id, error_code)


__all__ = [
    "UserLogManager",
    "LogType",
    "CreateUserLogRequest",
    "CreateUserLogResponse",
    "MAX_MESSAGE_LENGTH",
    "MAX_ERROR_CODE_LENGTH",
]
