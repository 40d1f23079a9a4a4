from datetime import datetime
from typing import Optional

import httpx

from app.models.telemetry import (
    SeriesPoint,
    SeriesResult,
    TimeWindow,
    as_utc,
    parse_value,
)


class DashboardClient:
    """Async client for the dashboard HTTP API."""

    def __init__(self, base_url: str = "", client: Optional[httpx.AsyncClient] = None):
        self.client = client or httpx.AsyncClient(base_url=base_url)

    async def close(self):
        await self.client.aclose()

    async def _get(self, path: str, params: Optional[dict] = None):
        response = await self.client.get(path, params=params)
        response.raise_for_status()
        return response.json()

    async def list_devices(self) -> list[str]:
        return await self._get("/api/devices")

    async def list_parameters(self, source: str) -> list[str]:
        return await self._get("/api/device-parameters", {"source": source})

    async def fetch_series(
        self, source: str, parameter: str, window: Optional[TimeWindow] = None
    ) -> SeriesResult:
        params = {"source": source, "parameter": parameter}
        if window is not None:
            params["startTime"] = window.start.isoformat()
            params["endTime"] = window.end.isoformat()

        payload = await self._get("/api/device-details", params)

        suggested = payload.get("suggestedRange")
        return SeriesResult(
            data=_points(payload.get("data", []), parameter),
            suggested_range=TimeWindow(**suggested) if suggested else None,
        )


def _points(items: list[dict], parameter: str):
    for item in items:
        value = parse_value((item.get("Body") or {}).get(parameter))
        if value is None:
            continue
        yield SeriesPoint(
            timestamp=as_utc(datetime.fromisoformat(item["timestamp"])), value=value
        )
