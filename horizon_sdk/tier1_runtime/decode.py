"""
horizon_sdk.tier1_runtime.decode
───────────────────────────────────
Request body encoding and response decoding for the backend's JSON API.

Decoding is driven by the declared response shape:

* ``MessageResponse``: bodies that are not a JSON object are plain text and
  become ``MessageResponse(success=True, message=<body>)``.
* models declaring ``__map_field__``: the named key→string map is read by
  a scan-based parser (see :func:`parse_string_map`), the other fields
  are validated normally.
* ``list[X]`` / ``tuple[X, ...]``: the bare array is wrapped as
  ``{"items": ...}``, validated, and unwrapped.
* anything else: ``pydantic.TypeAdapter(shape).validate_json``.

Every failure surfaces as DecodeError. Binary bodies are never decoded.
"""
from __future__ import annotations

import json
import re
from collections.abc import Mapping
from functools import lru_cache
from typing import Any, get_origin

from pydantic import BaseModel, TypeAdapter, ValidationError, create_model

from horizon_sdk.tier0_core.errors import DecodeError
from horizon_sdk.tier0_core.http import MessageResponse


# ── Request bodies ─────────────────────────────────────────────────────────────

def encode_body(obj: BaseModel | Mapping[str, Any] | None) -> bytes:
    """
    Serialize a request body to JSON bytes.

    Pydantic models are dumped by alias (camelCase on the wire). ``None``
    values and empty strings are dropped, since the backend rejects empty
    strings on optional fields. A missing body encodes as ``{}``.
    """
    if obj is None:
        return b"{}"
    if isinstance(obj, BaseModel):
        payload = obj.model_dump(mode="json", by_alias=True, exclude_none=True)
    elif isinstance(obj, Mapping):
        payload = dict(obj)
    else:
        raise TypeError(f"Unsupported request body type: {type(obj).__name__}")

    payload = {k: v for k, v in payload.items() if v is not None and v != ""}
    return json.dumps(payload, default=str).encode()


# ── Map-shaped payloads ────────────────────────────────────────────────────────

def _find_matching_brace(text: str, open_index: int) -> int:
    """Index of the ``}`` closing the ``{`` at ``open_index``, or -1."""
    depth = 0
    in_quotes = False
    escaped = False
    for i in range(open_index, len(text)):
        ch = text[i]
        if in_quotes:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_quotes = False
            continue
        if ch == '"':
            in_quotes = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i
    return -1


def _split_top_level(text: str) -> list[str]:
    """Split on commas that are outside quoted strings."""
    parts: list[str] = []
    start = 0
    in_quotes = False
    escaped = False
    for i, ch in enumerate(text):
        if in_quotes:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_quotes = False
        elif ch == '"':
            in_quotes = True
        elif ch == ",":
            parts.append(text[start:i])
            start = i + 1
    if start < len(text):
        parts.append(text[start:])
    return parts


def _unquote(token: str) -> str:
    token = token.strip()
    if len(token) >= 2 and token[0] == '"' and token[-1] == '"':
        try:
            return json.loads(token)
        except json.JSONDecodeError:
            pass
    return token.strip('"')


def parse_string_map(raw: str, field: str) -> dict[str, str]:
    """
    Extract the ``field`` object of a JSON document as a flat ``str → str``
    dict without a structured decode of the map itself.

    A missing field yields an empty dict. An unterminated object raises
    DecodeError.

    Example:
        >>> parse_string_map('{"total":2,"configs":{"a":"1","b":"two, three"}}', "configs")
        {'a': '1', 'b': 'two, three'}
    """
    match = re.search(r'"' + re.escape(field) + r'"\s*:', raw)
    if match is None:
        return {}

    brace_start = raw.find("{", match.end())
    if brace_start < 0:
        return {}
    brace_end = _find_matching_brace(raw, brace_start)
    if brace_end < 0:
        raise DecodeError(f"Unterminated object for field {field!r}")

    inner = raw[brace_start + 1:brace_end]
    result: dict[str, str] = {}
    if not inner.strip():
        return result

    for pair in _split_top_level(inner):
        colon = pair.find(":")
        if colon <= 0:
            continue
        key = _unquote(pair[:colon])
        result[key] = _unquote(pair[colon + 1:])
    return result


# ── Response decoding ──────────────────────────────────────────────────────────

@lru_cache(maxsize=256)
def _adapter(shape: Any) -> TypeAdapter:
    return TypeAdapter(shape)


@lru_cache(maxsize=64)
def _array_wrapper(shape: Any) -> type[BaseModel]:
    return create_model("ArrayWrapper", items=(shape, ...))


def _is_array_shape(shape: Any) -> bool:
    return shape in (list, tuple) or get_origin(shape) in (list, tuple)


def _map_field(shape: Any) -> str | None:
    if isinstance(shape, type) and issubclass(shape, BaseModel):
        return getattr(shape, "__map_field__", None)
    return None


class ResponseDecoder:
    """Turns a raw response body plus a declared shape into a typed value."""

    def decode(self, raw: bytes | str, shape: Any) -> Any:
        """
        Decode ``raw`` as ``shape``. A ``None`` shape skips decoding and
        returns ``None``. Raises DecodeError on malformed bodies.
        """
        if shape is None:
            return None
        text = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw

        if isinstance(shape, type) and issubclass(shape, MessageResponse):
            if not text.lstrip().startswith("{"):
                return shape(success=True, message=text)

        try:
            if not text.strip():
                return _adapter(shape).validate_python(None)

            map_field = _map_field(shape)
            if map_field is not None:
                return self._decode_map_shape(text, shape, map_field)

            if _is_array_shape(shape):
                wrapped = '{"items":' + text + "}"
                return _array_wrapper(shape).model_validate_json(wrapped).items

            return _adapter(shape).validate_json(text)
        except DecodeError:
            raise
        except (ValidationError, ValueError, TypeError) as exc:
            raise DecodeError(f"Deserialization failed: {exc}") from exc

    @staticmethod
    def _decode_map_shape(text: str, shape: type[BaseModel], map_field: str) -> BaseModel:
        document = json.loads(text)
        if not isinstance(document, dict):
            raise DecodeError(
                f"Deserialization failed: expected a JSON object for {shape.__name__}"
            )
        field_info = shape.model_fields[map_field]
        wire_name = field_info.alias or map_field
        document.pop(wire_name, None)
        document[wire_name] = parse_string_map(text, wire_name)
        return shape.model_validate(document)


__all__ = ["ResponseDecoder", "encode_body", "parse_string_map"]
