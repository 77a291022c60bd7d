"""
horizon_sdk.tier0_core.http
─────────────────────────────
HTTP primitives: status codes the SDK branches on, the response envelopes
returned by every executor call, and the wire models shared by all
managers (error body, plain message envelope).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


# ── Status code constants ──────────────────────────────────────────────────

class HTTP:
    """HTTP status codes the request executor classifies on."""

    OK = 200
    NO_CONTENT = 204

    BAD_REQUEST = 400
    UNAUTHORIZED = 401
    FORBIDDEN = 403
    NOT_FOUND = 404
    TOO_MANY_REQUESTS = 429

    INTERNAL_SERVER_ERROR = 500
    SERVICE_UNAVAILABLE = 503

    @staticmethod
    def is_success(status: int) -> bool:
        return 200 <= status < 300

    @staticmethod
    def is_server_error(status: int) -> bool:
        return status >= 500


# ── Response envelopes ────────────────────────────────────────────────────

@dataclass(frozen=True)
class TypedResponse(Generic[T]):
    """Result of a structured call. ``data`` is set only on success."""
    is_success: bool
    data: T | None = None
    error: str | None = None
    status_code: int = 0
    error_code: str | None = None

    @property
    def ok(self) -> bool:
        return self.is_success

    @classmethod
    def success(cls, data: T | None, status_code: int = 200) -> TypedResponse[T]:
        return cls(is_success=True, data=data, status_code=status_code)

    @classmethod
    def failure(
        cls, error: str, status_code: int = 0, error_code: str | None = None
    ) -> TypedResponse[T]:
        return cls(
            is_success=False, error=error, status_code=status_code, error_code=error_code
        )


@dataclass(frozen=True)
class BinaryResponse:
    """
    Result of a raw GET. ``found=False`` with ``is_success=True`` means the
    backend answered 204 No Content, which is not a failure.
    """
    is_success: bool
    found: bool = False
    data: bytes | None = None
    error: str | None = None
    status_code: int = 0
    error_code: str | None = None

    @classmethod
    def success(cls, data: bytes, status_code: int = 200) -> BinaryResponse:
        return cls(is_success=True, found=True, data=data, status_code=status_code)

    @classmethod
    def not_found(cls) -> BinaryResponse:
        return cls(is_success=True, found=False, status_code=HTTP.NO_CONTENT)

    @classmethod
    def failure(
        cls, error: str, status_code: int = 0, error_code: str | None = None
    ) -> BinaryResponse:
        return cls(
            is_success=False, error=error, status_code=status_code, error_code=error_code
        )


# ── Wire models ───────────────────────────────────────────────────────────

class WireModel(BaseModel):
    """Base for backend JSON bodies: camelCase on the wire, snake_case in Python."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class ErrorResponse(WireModel):
    """Standard error body: ``{"message": ..., "code": ...}``."""
    message: str | None = None
    code: str | None = None


class MessageResponse(WireModel):
    """
    Generic ``{success, message}`` envelope. Some endpoints answer with plain
    text instead of JSON; the decoder wraps such bodies as
    ``MessageResponse(success=True, message=<body>)``.
    """
    success: bool = False
    message: str = ""


__all__ = [
    "HTTP",
    "TypedResponse",
    "BinaryResponse",
    "WireModel",
    "ErrorResponse",
    "MessageResponse",
]
