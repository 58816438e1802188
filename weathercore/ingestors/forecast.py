"""Fetch raw day/night and hourly forecast periods for a resolved grid."""

from __future__ import annotations

import asyncio
import logging

import httpx

from weathercore.errors import WeatherError
from weathercore.ingestors.http import ProviderClient, decode, require_http_url
from weathercore.models import GridReference, RawPeriod
from weathercore.models.nws import ForecastResponse

logger = logging.getLogger("weathercore.ingestors.forecast")


class ForecastFetcher(ProviderClient):
    """Retrieve forecast periods from the URLs published by the points lookup."""

    def __init__(
        self,
        *,
        timeout: float | None = None,
        user_agent: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(timeout=timeout, user_agent=user_agent, transport=transport)

    async def fetch_daily(self, grid: GridReference) -> list[RawPeriod]:
        return await self._fetch_periods(grid.forecast_url, label="NWS daily forecast")

    async def fetch_hourly(self, grid: GridReference) -> list[RawPeriod]:
        return await self._fetch_periods(grid.forecast_hourly_url, label="NWS hourly forecast")

    async def fetch_both(self, grid: GridReference) -> tuple[list[RawPeriod], list[RawPeriod]]:
        """Fetch daily and hourly periods concurrently.

        Both calls are required; the first failure cancels the sibling call
        and propagates unchanged.
        """

        daily_task = asyncio.create_task(self.fetch_daily(grid))
        hourly_task = asyncio.create_task(self.fetch_hourly(grid))
        try:
            daily, hourly = await asyncio.gather(daily_task, hourly_task)
        except BaseException:
            for task in (daily_task, hourly_task):
                task.cancel()
            await asyncio.gather(daily_task, hourly_task, return_exceptions=True)
            raise
        return daily, hourly

    async def _fetch_periods(self, url: str, *, label: str) -> list[RawPeriod]:
        try:
            payload = await self.get_json(require_http_url(url, label=label), label=label)
            forecast = decode(ForecastResponse, payload, label=label)
        except WeatherError as exc:
            logger.error("%s failed: %s", label, exc)
            raise

        logger.debug("%s returned %s periods", label, len(forecast.properties.periods))
        return forecast.properties.periods


__all__ = ["ForecastFetcher"]
