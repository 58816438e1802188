"""Global forecast provider backed by Open-Meteo.

Used for coordinates outside National Weather Service coverage. Produces the
same canonical daily/hourly records as the NWS path so the aggregator can
treat both providers alike.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
import logging
from typing import Optional

import httpx
from pydantic import BaseModel, Field

from weathercore.config import settings
from weathercore.domain import IconCategory, TemperatureUnit
from weathercore.errors import DecodingError, WeatherError
from weathercore.ingestors.grid import format_point
from weathercore.ingestors.http import ProviderClient, decode
from weathercore.models import Coordinate, DailyForecast, HourlyForecast, Wind
from weathercore.services.estimators import compass_direction, estimate_sky_cover, hour_label

logger = logging.getLogger("weathercore.ingestors.open_meteo")

_DAILY_FIELDS = (
    "weather_code,temperature_2m_max,temperature_2m_min,precipitation_probability_max,"
    "uv_index_max,wind_speed_10m_max,wind_direction_10m_dominant"
)
_HOURLY_FIELDS = "temperature_2m,weather_code,wind_speed_10m,wind_direction_10m,is_day"

# WMO weather interpretation codes -> (description, icon kind)
_WEATHER_CODES: dict[int, tuple[str, str]] = {
    0: ("Clear", "clear"),
    1: ("Mostly Clear", "clear"),
    2: ("Partly Cloudy", "partly"),
    3: ("Cloudy", "cloudy"),
    45: ("Fog", "fog"),
    48: ("Freezing Fog", "fog"),
    51: ("Light Drizzle", "rain"),
    53: ("Drizzle", "rain"),
    55: ("Heavy Drizzle", "rain"),
    56: ("Freezing Drizzle", "sleet"),
    57: ("Freezing Drizzle", "sleet"),
    61: ("Light Rain", "rain"),
    63: ("Rain", "rain"),
    65: ("Heavy Rain", "rain"),
    66: ("Freezing Rain", "sleet"),
    67: ("Freezing Rain", "sleet"),
    71: ("Light Snow", "snow"),
    73: ("Snow", "snow"),
    75: ("Heavy Snow", "snow"),
    77: ("Snow Grains", "snow"),
    80: ("Rain Showers", "rain"),
    81: ("Rain Showers", "rain"),
    82: ("Heavy Rain Showers", "rain"),
    85: ("Snow Showers", "snow"),
    86: ("Heavy Snow Showers", "snow"),
    95: ("Thunderstorms", "rain"),
    96: ("Thunderstorms With Hail", "rain"),
    99: ("Thunderstorms With Hail", "rain"),
}


class _DailySeries(BaseModel):
    time: list[str]
    weather_code: list[Optional[int]] = Field(default_factory=list)
    temperature_2m_max: list[Optional[float]] = Field(default_factory=list)
    temperature_2m_min: list[Optional[float]] = Field(default_factory=list)
    precipitation_probability_max: list[Optional[float]] = Field(default_factory=list)
    uv_index_max: list[Optional[float]] = Field(default_factory=list)
    wind_speed_10m_max: list[Optional[float]] = Field(default_factory=list)
    wind_direction_10m_dominant: list[Optional[float]] = Field(default_factory=list)


class _HourlySeries(BaseModel):
    time: list[str]
    temperature_2m: list[Optional[float]] = Field(default_factory=list)
    weather_code: list[Optional[int]] = Field(default_factory=list)
    wind_speed_10m: list[Optional[float]] = Field(default_factory=list)
    wind_direction_10m: list[Optional[float]] = Field(default_factory=list)
    is_day: list[Optional[int]] = Field(default_factory=list)


class _ForecastPayload(BaseModel):
    timezone: str = "UTC"
    utc_offset_seconds: int = 0
    daily: _DailySeries
    hourly: _HourlySeries


@dataclass
class OpenMeteoForecast:
    """Canonical records for one Open-Meteo response."""

    timezone: str
    daily: list[DailyForecast] = field(default_factory=list)
    hourly: list[HourlyForecast] = field(default_factory=list)


def _value(values: list, idx: int, default=None):
    if idx < len(values) and values[idx] is not None:
        return values[idx]
    return default


def describe_weather_code(code: int | None) -> str:
    if code is None:
        return ""
    return _WEATHER_CODES.get(code, ("", "cloudy"))[0]


def weather_code_icon(code: int | None, is_daytime: bool = True) -> IconCategory:
    kind = _WEATHER_CODES.get(code, ("", "cloudy"))[1] if code is not None else "cloudy"
    if kind == "clear":
        return IconCategory.CLEAR_DAY if is_daytime else IconCategory.CLEAR_NIGHT
    if kind == "partly":
        return IconCategory.PARTLY_CLOUDY_DAY if is_daytime else IconCategory.PARTLY_CLOUDY_NIGHT
    return IconCategory(kind)


def _daily_records(series: _DailySeries) -> list[DailyForecast]:
    records: list[DailyForecast] = []
    for idx, raw_day in enumerate(series.time):
        day = date.fromisoformat(raw_day)
        high = _value(series.temperature_2m_max, idx)
        low = _value(series.temperature_2m_min, idx)
        if high is None or low is None:
            logger.debug("Skipping Open-Meteo day %s without temperatures", raw_day)
            continue
        code = _value(series.weather_code, idx)
        description = describe_weather_code(code)
        precipitation = _value(series.precipitation_probability_max, idx, 0.0)
        records.append(
            DailyForecast(
                id=f"day-{len(records)}",
                day=day.strftime("%a"),
                full_day=day.strftime("%A"),
                date=day,
                temp_high=float(high),
                temp_low=float(low),
                precipitation_chance=min(max(float(precipitation), 0.0), 100.0),
                uv_index=int(round(_value(series.uv_index_max, idx, 0.0))),
                wind=Wind(
                    speed=float(_value(series.wind_speed_10m_max, idx, 0.0)),
                    direction=compass_direction(_value(series.wind_direction_10m_dominant, idx)),
                ),
                icon=weather_code_icon(code, True),
                short_forecast=description,
                detailed_forecast=description,
                sky_cover=estimate_sky_cover(description),
            )
        )
    return records


def _hourly_records(
    series: _HourlySeries, offset: timezone, now: datetime
) -> list[HourlyForecast]:
    current_hour = now.astimezone(offset).replace(minute=0, second=0, microsecond=0)
    records: list[HourlyForecast] = []
    for idx, raw_time in enumerate(series.time):
        start = datetime.fromisoformat(raw_time).replace(tzinfo=offset)
        if start < current_hour:
            continue
        temperature = _value(series.temperature_2m, idx)
        if temperature is None:
            continue
        is_daytime = bool(_value(series.is_day, idx, 1))
        code = _value(series.weather_code, idx)
        records.append(
            HourlyForecast(
                id=f"hour-{len(records)}",
                time=hour_label(start),
                start_time=start,
                temperature=float(temperature),
                icon=weather_code_icon(code, is_daytime),
                short_forecast=describe_weather_code(code),
                wind_speed=float(_value(series.wind_speed_10m, idx, 0.0)),
                wind_direction=compass_direction(_value(series.wind_direction_10m, idx)),
                is_daytime=is_daytime,
            )
        )
        if len(records) == 24:
            break
    return records


class OpenMeteoProvider(ProviderClient):
    """Fetch a 7-day daily and next-24-hour forecast from Open-Meteo."""

    def __init__(
        self,
        *,
        base_url: str | None = None,
        timeout: float | None = None,
        user_agent: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(
            base_url=base_url or settings.open_meteo_base_url,
            timeout=timeout,
            user_agent=user_agent,
            transport=transport,
        )

    async def fetch_forecast(
        self,
        coord: Coordinate,
        unit: TemperatureUnit = TemperatureUnit.FAHRENHEIT,
        *,
        now: datetime | None = None,
    ) -> OpenMeteoForecast:
        format_point(coord)
        params = {
            "latitude": f"{coord.latitude:.4f}",
            "longitude": f"{coord.longitude:.4f}",
            "daily": _DAILY_FIELDS,
            "hourly": _HOURLY_FIELDS,
            "temperature_unit": unit.value,
            "wind_speed_unit": "mph",
            "timezone": "auto",
            "forecast_days": 7,
        }

        try:
            body = await self.get_json(self.base_url, params=params, label="Open-Meteo")
            payload = decode(_ForecastPayload, body, label="Open-Meteo")
            offset = timezone(timedelta(seconds=payload.utc_offset_seconds))
            forecast = OpenMeteoForecast(
                timezone=payload.timezone,
                daily=_daily_records(payload.daily),
                hourly=_hourly_records(
                    payload.hourly, offset, now or datetime.now(tz=timezone.utc)
                ),
            )
        except ValueError as exc:
            logger.error("Open-Meteo returned malformed series for %s: %s", coord.key, exc)
            raise DecodingError("Open-Meteo returned malformed series") from exc
        except WeatherError as exc:
            logger.error("Open-Meteo forecast failed for %s: %s", coord.key, exc)
            raise

        logger.debug(
            "Open-Meteo forecast ingested for %s: %s days, %s hours",
            coord.key,
            len(forecast.daily),
            len(forecast.hourly),
        )
        return forecast


__all__ = [
    "OpenMeteoForecast",
    "OpenMeteoProvider",
    "describe_weather_code",
    "weather_code_icon",
]
