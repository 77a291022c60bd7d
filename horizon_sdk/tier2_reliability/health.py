"""
horizon_sdk.tier2_reliability.health
────────────────────────────────────────
Connection selection: probe every configured backend domain and pick the
one to use as the active host.

A host is reachable when ``GET {host}{health_path}`` completes with any
status below 500 within the timeout. Among reachable hosts the lowest
latency wins; ties keep configuration order.

Usage:
    prober = HostProber(client, api_key="...", health_path="/")
    results = await prober.probe_all(["https://eu.example.com", "https://us.example.com"])
    host = select_host(results)
"""
from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass

import httpx

from horizon_sdk.tier0_core.logging import get_logger

log = get_logger(__name__)


@dataclass
class ProbeResult:
    host: str
    status: str           # "ok" | "failed"
    latency_ms: float
    status_code: int = 0
    detail: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"


class HostProber:
    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        api_key: str = "",
        health_path: str = "/",
        timeout: float = 5.0,
    ) -> None:
        self._client = client
        self._api_key = api_key
        self._health_path = health_path if health_path.startswith("/") else f"/{health_path}"
        self._timeout = timeout

    async def probe(self, host: str) -> ProbeResult:
        """Time one health request against ``host``."""
        start = time.monotonic()
        url = f"{host.rstrip('/')}{self._health_path}"
        try:
            response = await self._client.get(
                url, headers={"X-API-Key": self._api_key}, timeout=self._timeout
            )
            status_code = response.status_code
            status = "ok" if status_code < 500 else "failed"
            detail = None if status == "ok" else f"HTTP {status_code}"
        except httpx.HTTPError as exc:
            status_code = 0
            status = "failed"
            detail = str(exc) or type(exc).__name__

        result = ProbeResult(
            host=host.rstrip("/"),
            status=status,
            status_code=status_code,
            latency_ms=round((time.monotonic() - start) * 1000, 2),
            detail=detail,
        )
        log.debug(
            "connection.probe",
            host=result.host,
            status=result.status,
            latency_ms=result.latency_ms,
            detail=result.detail,
        )
        return result

    async def probe_all(self, hosts: list[str]) -> list[ProbeResult]:
        """Probe all hosts concurrently; results keep the order of ``hosts``."""
        return list(await asyncio.gather(*(self.probe(h) for h in hosts)))


def select_host(results: list[ProbeResult]) -> str | None:
    """Lowest-latency reachable host, or None if every probe failed."""
    reachable = [r for r in results if r.ok]
    if not reachable:
        return None
    return min(reachable, key=lambda r: r.latency_ms).host


__all__ = ["ProbeResult", "HostProber", "select_host"]
