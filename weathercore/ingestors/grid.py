"""Resolve a coordinate to National Weather Service grid metadata."""

from __future__ import annotations

import logging
import math

import httpx

from weathercore.config import settings
from weathercore.errors import InvalidURL, WeatherError
from weathercore.ingestors.http import ProviderClient, decode
from weathercore.models import Coordinate, GridReference
from weathercore.models.nws import PointsResponse

logger = logging.getLogger("weathercore.ingestors.grid")


def format_point(coord: Coordinate) -> str:
    """Encode a coordinate the way the points endpoint expects (4 decimals)."""

    lat, lon = coord.latitude, coord.longitude
    if not (math.isfinite(lat) and math.isfinite(lon)):
        raise InvalidURL(f"Coordinate is not finite: {lat}, {lon}")
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0):
        raise InvalidURL(f"Coordinate out of range: {lat}, {lon}")
    return f"{lat:.4f},{lon:.4f}"


class GridResolver(ProviderClient):
    """Look up the forecast office, grid cell and endpoints for a point."""

    def __init__(
        self,
        *,
        base_url: str | None = None,
        timeout: float | None = None,
        user_agent: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(
            base_url=base_url or settings.nws_base_url,
            timeout=timeout,
            user_agent=user_agent,
            transport=transport,
        )

    async def resolve(self, coord: Coordinate) -> GridReference:
        url = f"{self.base_url}/points/{format_point(coord)}"
        try:
            payload = await self.get_json(url, label="NWS points")
            points = decode(PointsResponse, payload, label="NWS points")
        except WeatherError as exc:
            logger.error("Grid resolution failed for %s: %s", coord.key, exc)
            raise

        props = points.properties
        relative = props.relative_location.properties if props.relative_location else None
        grid = GridReference(
            office=props.grid_id,
            grid_x=props.grid_x,
            grid_y=props.grid_y,
            timezone=props.time_zone,
            forecast_url=props.forecast,
            forecast_hourly_url=props.forecast_hourly,
            city=relative.city if relative else "",
            state=relative.state if relative else "",
        )
        logger.debug("Resolved %s to %s/%s", coord.key, grid.office, grid.grid_key)
        return grid


__all__ = ["GridResolver", "format_point"]
