"""
horizon_sdk.tier3_platform.gift_codes
────────────────────────────────────────
Gift code validation and redemption. A redeemed code carries its reward as
an opaque JSON string (``gift_data``) defined in the dashboard.
"""
from __future__ import annotations

from horizon_sdk.tier0_core.http import WireModel
from horizon_sdk.tier1_runtime.events import EventKey
from horizon_sdk.tier3_platform.managers import BaseManager

GIFT_CODES_PATH = "/api/v1/app/gift-codes"


class GiftCodeRequest(WireModel):
    code: str
    user_id: str


class RedeemGiftCodeResponse(WireModel):
    success: bool = False
    message: str | None = None
    gift_data: str | None = None


class ValidateGiftCodeResponse(WireModel):
    valid: bool = False


class GiftCodeManager(BaseManager):

    async def redeem(self, code: str, user_id: str) -> RedeemGiftCodeResponse | None:
        """Redeem ``code`` for ``user_id``; None if it was rejected or the request failed."""
        if not code:
            self.log.error("gift_code.code_required")
            return None
        if not user_id:
            self.log.error("gift_code.user_required")
            return None

        response = await self.network.post(
            f"{GIFT_CODES_PATH}/redeem",
            GiftCodeRequest(code=code, user_id=user_id),
            RedeemGiftCodeResponse,
        )
        data = response.data
        if response.is_success and data is not None and data.success:
            self.log.info("gift_code.redeemed", code=code)
            self.events.publish(EventKey.GIFT_CODE_REDEEMED, data)
            return data

        error = response.error or (data.message if data else None)
        self.log.error("gift_code.redeem_failed", code=code, error=error)
        return None

    async def validate(self, code: str, user_id: str) -> bool | None:
        """Whether ``code`` is redeemable without redeeming it; None if the request failed."""
        if not code:
            self.log.error("gift_code.code_required")
            return None
        if not user_id:
            self.log.error("gift_code.user_required")
            return None

        response = await self.network.post(
            f"{GIFT_CODES_PATH}/validate",
            GiftCodeRequest(code=code, user_id=user_id),
            ValidateGiftCodeResponse,
        )
        if not response.is_success or response.data is None:
            self.log.error("gift_code.validate_failed", code=code, error=response.error)
            return None

        valid = response.data.valid
        self.log.info("gift_code.validated", code=code, valid=valid)
        self.events.publish(EventKey.GIFT_CODE_VALIDATED, valid)
        return valid


__all__ = [
    "GiftCodeManager",
    "GiftCodeRequest",
    "RedeemGiftCodeResponse",
    "ValidateGiftCodeResponse",
]
