"""
horizon_sdk.tier3_platform.api_client
────────────────────────────────────────
Request executor: the single entry point managers use to call the horizOn
backend. Adds the API key and bearer token, drives the retry engine, and
decodes the body into the declared response model.

Callers never see exceptions for network or HTTP conditions: every call
returns a TypedResponse / BinaryResponse, and failures are also published
on the event bus.

Backed by: httpx (async HTTP).
"""
from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import Any

import httpx
from pydantic import BaseModel

from horizon_sdk.tier0_core.config import RetryPolicy
from horizon_sdk.tier0_core.http import BinaryResponse, TypedResponse
from horizon_sdk.tier0_core.logging import get_logger, mask_key
from horizon_sdk.tier1_runtime.decode import ResponseDecoder, encode_body
from horizon_sdk.tier1_runtime.events import EventBus
from horizon_sdk.tier1_runtime.retry import (
    EndpointCall,
    RetryEngine,
    Sender,
    Sleeper,
    Success,
    TerminalFailure,
)
from horizon_sdk.tier1_runtime.session import SessionSnapshot, SessionState

log = get_logger(__name__)

JSON_CONTENT = "application/json"
BINARY_CONTENT = "application/octet-stream"

_DEFAULT_TIMEOUT = 10.0


class RequestExecutor:
    """
    Async executor for horizOn API calls.

    Usage::

        executor = RequestExecutor(bus, session, config.retry_policy(), api_key=config.api_key)
        response = await executor.get("/api/v1/app/news?limit=5", list[NewsEntry])
        if response.is_success:
            ...
    """

    def __init__(
        self,
        bus: EventBus,
        session: SessionState,
        policy: RetryPolicy | None,
        *,
        api_key: str = "",
        client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Sleeper = asyncio.sleep,
        decoder: ResponseDecoder | None = None,
    ) -> None:
        self._session = session
        self._api_key = api_key
        self._engine = RetryEngine(bus, session, policy, sleep=sleep)
        self._decoder = decoder or ResponseDecoder()
        if client is not None:
            self._client = client
            self._owns_client = False
        else:
            timeout = float(policy.connection_timeout_seconds) if policy else _DEFAULT_TIMEOUT
            self._client = httpx.AsyncClient(timeout=timeout, transport=transport)
            self._owns_client = True

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client

    @property
    def session(self) -> SessionState:
        return self._session

    # ── public API ────────────────────────────────────────────────────────────

    async def get(
        self,
        endpoint: str,
        response_model: Any = None,
        *,
        use_session: bool = False,
    ) -> TypedResponse[Any]:
        call = EndpointCall(path=endpoint, method="GET", requires_session=use_session)
        return await self._typed(call, response_model)

    async def post(
        self,
        endpoint: str,
        body: BaseModel | Mapping[str, Any] | None = None,
        response_model: Any = None,
        *,
        use_session: bool = False,
    ) -> TypedResponse[Any]:
        call = EndpointCall(path=endpoint, method="POST", body=body, requires_session=use_session)
        return await self._typed(call, response_model)

    async def post_binary(
        self,
        endpoint: str,
        data: bytes | None,
        response_model: Any = None,
        *,
        use_session: bool = False,
    ) -> TypedResponse[Any]:
        call = EndpointCall(
            path=endpoint,
            method="POST",
            body=bytes(data or b""),
            requires_session=use_session,
            binary=True,
        )
        return await self._typed(call, response_model)

    async def get_binary(self, endpoint: str, *, use_session: bool = False) -> BinaryResponse:
        call = EndpointCall(path=endpoint, method="GET", requires_session=use_session, binary=True)
        result = await self._engine.run(call, self._sender(call))
        if isinstance(result, TerminalFailure):
            return BinaryResponse.failure(result.message, result.status_code, result.error_code)
        if not result.found:
            log.info("response.binary_not_found", endpoint=endpoint)
            return BinaryResponse.not_found()
        log.info("response.binary", endpoint=endpoint, size_bytes=len(result.raw_payload))
        return BinaryResponse.success(result.raw_payload, result.status_code)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> RequestExecutor:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # ── internals ─────────────────────────────────────────────────────────────

    async def _typed(self, call: EndpointCall, response_model: Any) -> TypedResponse[Any]:
        def decode(success: Success) -> Any:
            return self._decoder.decode(success.raw_payload, response_model)

        result = await self._engine.run(call, self._sender(call), decode)
        if isinstance(result, TerminalFailure):
            return TypedResponse.failure(result.message, result.status_code, result.error_code)
        return TypedResponse.success(result.value, result.status_code)

    def _build_headers(self, call: EndpointCall, snapshot: SessionSnapshot) -> dict[str, str]:
        headers: dict[str, str] = {}
        if call.binary and call.method == "GET":
            headers["Accept"] = BINARY_CONTENT
        elif call.method == "POST":
            headers["Content-Type"] = BINARY_CONTENT if call.binary else JSON_CONTENT

        if not self._api_key:
            log.error("request.missing_api_key", endpoint=call.path)
        else:
            log.debug("request.api_key", key=mask_key(self._api_key))
        headers["X-API-Key"] = self._api_key

        if call.requires_session and snapshot.has_token:
            headers["Authorization"] = f"Bearer {snapshot.session_token}"
        return headers

    def _sender(self, call: EndpointCall) -> Sender:
        if call.method == "POST":
            content = call.body if call.binary else encode_body(call.body)
        else:
            content = None

        async def send(url: str, snapshot: SessionSnapshot) -> httpx.Response:
            return await self._client.request(
                call.method,
                url,
                content=content,
                headers=self._build_headers(call, snapshot),
            )

        return send


__all__ = ["RequestExecutor"]
