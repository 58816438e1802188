"""Best-effort retrieval of active weather alerts for a point."""

from __future__ import annotations

from datetime import datetime, timezone
import logging

import httpx

from weathercore.config import settings
from weathercore.domain import AlertSeverity
from weathercore.errors import WeatherError
from weathercore.ingestors.grid import format_point
from weathercore.ingestors.http import ProviderClient, decode
from weathercore.models import Coordinate, WeatherAlert
from weathercore.models.nws import AlertProperties, AlertResponse

logger = logging.getLogger("weathercore.ingestors.alerts")


def _parse_timestamp(ts: str | None) -> datetime | None:
    if not ts:
        return None
    if ts.endswith("Z"):
        ts = ts.replace("Z", "+00:00")
    try:
        return datetime.fromisoformat(ts)
    except ValueError:
        logger.debug("Unparseable alert timestamp: %s", ts)
        return None


def map_severity(raw: str | None) -> AlertSeverity:
    """Map the provider severity label onto the four supported levels."""

    value = (raw or "").strip().lower()
    if value == "extreme":
        return AlertSeverity.EXTREME
    if value == "severe":
        return AlertSeverity.SEVERE
    if value == "moderate":
        return AlertSeverity.MODERATE
    return AlertSeverity.MINOR


def convert_alert(props: AlertProperties) -> WeatherAlert:
    start = (
        _parse_timestamp(props.effective)
        or _parse_timestamp(props.onset)
        or datetime.now(tz=timezone.utc)
    )
    return WeatherAlert(
        id=props.id,
        headline=props.headline or props.event,
        description=props.description,
        severity=map_severity(props.severity),
        event=props.event,
        start=start,
        end=_parse_timestamp(props.expires) or _parse_timestamp(props.ends),
    )


class AlertFetcher(ProviderClient):
    """Fetch active alerts; failures degrade to an empty list."""

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

    async def fetch_alerts(self, coord: Coordinate) -> list[WeatherAlert]:
        try:
            params = {"point": format_point(coord)}
            payload = await self.get_json(
                f"{self.base_url}/alerts/active", params=params, label="NWS alerts"
            )
            response = decode(AlertResponse, payload, label="NWS alerts")
        except WeatherError as exc:
            logger.warning("Alert fetching failed for %s: %s", coord.key, exc)
            return []

        alerts = [convert_alert(feature.properties) for feature in response.features]
        logger.debug("Fetched %s active alerts for %s", len(alerts), coord.key)
        return alerts


__all__ = ["AlertFetcher", "convert_alert", "map_severity"]
