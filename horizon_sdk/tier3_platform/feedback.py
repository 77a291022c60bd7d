"""
horizon_sdk.tier3_platform.feedback
──────────────────────────────────────
Player feedback submission (bug reports, feature requests, general notes).
The endpoint may answer with plain text, which the decoder turns into a
successful MessageResponse.
"""
from __future__ import annotations

import platform
import sys

from horizon_sdk.tier0_core.http import MessageResponse, WireModel
from horizon_sdk.tier1_runtime.events import EventKey
from horizon_sdk.tier3_platform.managers import BaseManager

FEEDBACK_PATH = "/api/v1/app/user-feedback/submit"

CATEGORY_BUG = "BUG"
CATEGORY_FEATURE = "FEATURE"
CATEGORY_GENERAL = "GENERAL"


class FeedbackRequest(WireModel):
    user_id: str = ""
    title: str
    category: str = CATEGORY_GENERAL
    message: str
    email: str | None = None
    device_info: str | None = None


def device_info() -> str:
    """One-line description of the runtime, attached to bug reports."""
    return (
        f"Python {platform.python_version()} | "
        f"{platform.system()} {platform.release()} | "
        f"{platform.machine() or 'unknown'} | "
        f"{sys.implementation.name}"
    )


class FeedbackManager(BaseManager):

    async def submit(
        self,
        title: str,
        category: str | None,
        message: str,
        email: str | None = None,
        user_id: str | None = None,
        include_device_info: bool = True,
    ) -> bool:
        if not title:
            self.log.error("feedback.title_required")
            return False
        if not message:
            self.log.error("feedback.message_required")
            return False

        request = FeedbackRequest(
            user_id=user_id or "",
            title=title,
            category=category or CATEGORY_GENERAL,
            message=message,
            email=email,
            device_info=device_info() if include_device_info else None,
        )
        response = await self.network.post(FEEDBACK_PATH, request, MessageResponse)
        if response.is_success and response.data is not None and response.data.success:
            self.log.info("feedback.submitted", category=request.category)
            self.events.publish(EventKey.FEEDBACK_SUBMITTED, request)
            return True

        error = response.error or (response.data.message if response.data else None)
        self.log.error("feedback.submit_failed", error=error)
        return False

    async def report_bug(
        self, title: str, message: str, email: str | None = None, user_id: str | None = None
    ) -> bool:
        return await self.submit(title, CATEGORY_BUG, message, email, user_id, include_device_info=True)

    async def request_feature(
        self, title: str, message: str, email: str | None = None, user_id: str | None = None
    ) -> bool:
        return await self.submit(
            title, CATEGORY_FEATURE, message, email, user_id, include_device_info=False
        )

    async def send_general(
        self, title: str, message: str, email: str | None = None, user_id: str | None = None
    ) -> bool:
        return await self.submit(
            title, CATEGORY_GENERAL, message, email, user_id, include_device_info=False
        )


__all__ = [
    "FeedbackManager",
    "FeedbackRequest",
    "device_info",
    "CATEGORY_BUG",
    "CATEGORY_FEATURE",
    "CATEGORY_GENERAL",
]
