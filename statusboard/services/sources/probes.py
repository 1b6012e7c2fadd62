"""Liveness probes used purely for latency and uptime sampling."""

import time

import httpx

from statusboard.schemas.records import LatencyProbe
from statusboard.services.sources.base import SourceAdapter


class RegistryPingAdapter(SourceAdapter):
    """npm registry ``/-/ping``; any 2xx means the registry is up."""

    source_id = "registry_ping"

    async def _collect(self) -> LatencyProbe:
        start = time.perf_counter()
        response = await self._get("/-/ping")
        return self.normalize(response, (time.perf_counter() - start) * 1000)

    def normalize(self, response: httpx.Response, latency_ms: float) -> LatencyProbe:
        return LatencyProbe(
            url=str(response.request.url),
            status_code=response.status_code,
            latency_ms=round(latency_ms, 1),
        )


class PageLatencyAdapter(SourceAdapter):
    """Probe of the dashboard's own published origin.

    Mirrors a browser ``no-cors`` fetch: the status code is opaque, so any
    HTTP response counts as alive and only transport failures fail the probe.
    """

    source_id = "page_latency"

    async def _collect(self) -> LatencyProbe:
        start = time.perf_counter()
        response = await self._client.get(
            f"{self.base_url}/",
            params={"probe": int(time.time())},  # bypass intermediary caches
            headers={"Cache-Control": "no-store"},
        )
        return self.normalize(response, (time.perf_counter() - start) * 1000)

    def normalize(self, response: httpx.Response, latency_ms: float) -> LatencyProbe:
        return LatencyProbe(url=self.base_url, status_code=response.status_code, latency_ms=round(latency_ms, 1))
