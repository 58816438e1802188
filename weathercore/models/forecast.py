"""Canonical forecast models produced by the pipeline."""

from __future__ import annotations

import datetime as dt
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from weathercore.domain import AlertSeverity, IconCategory, ProviderKind, TemperatureUnit
from weathercore.models.location import Coordinate


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class GridReference(_Frozen):
    """Provider grid addressing resolved for a coordinate."""

    office: str = Field(..., description="Forecast office / region identifier")
    grid_x: int = Field(..., description="Grid cell X index")
    grid_y: int = Field(..., description="Grid cell Y index")
    timezone: Optional[str] = Field(default=None, description="IANA timezone of the grid cell")
    forecast_url: str = Field(..., description="Endpoint for day/night periods")
    forecast_hourly_url: str = Field(..., description="Endpoint for hourly periods")
    city: str = Field(default="", description="Nearest named place reported by the provider")
    state: str = Field(default="", description="State of the nearest named place")

    @property
    def grid_key(self) -> str:
        return f"{self.grid_x},{self.grid_y}"


class Wind(_Frozen):
    speed: float = Field(default=0.0, description="Wind speed in the provider's unit (mph)")
    direction: str = Field(default="", description="Compass direction, e.g. NW")


class DailyForecast(_Frozen):
    """One calendar day built from a day/night period pair."""

    id: str = Field(..., description="Stable identifier, e.g. day-3")
    day: str = Field(..., description="Abbreviated weekday label (Mon)")
    full_day: str = Field(..., description="Full weekday label (Monday)")
    date: dt.date = Field(..., description="Local calendar date of the forecast")
    temp_high: float = Field(..., description="High temperature in the snapshot unit")
    temp_low: float = Field(..., description="Low temperature in the snapshot unit")
    precipitation_chance: float = Field(
        default=0.0, ge=0, le=100, description="Chance of precipitation in percent"
    )
    uv_index: int = Field(default=0, description="Estimated UV index")
    wind: Wind = Field(default_factory=Wind)
    icon: IconCategory = Field(default=IconCategory.CLOUDY)
    short_forecast: str = Field(default="")
    detailed_forecast: str = Field(default="")
    humidity: Optional[float] = Field(default=None, description="Relative humidity percent")
    dewpoint: Optional[float] = Field(default=None, description="Dewpoint temperature")
    pressure: Optional[float] = Field(default=None, description="Pressure in hPa")
    sky_cover: Optional[float] = Field(default=None, description="Cloud cover percent")


class HourlyForecast(_Frozen):
    id: str = Field(..., description="Positional identifier, e.g. hour-0")
    time: str = Field(..., description="Display label such as 3pm")
    start_time: dt.datetime = Field(..., description="Start of the hour (provider local offset)")
    temperature: float = Field(..., description="Temperature in the snapshot unit")
    icon: IconCategory = Field(default=IconCategory.CLOUDY)
    short_forecast: str = Field(default="")
    wind_speed: float = Field(default=0.0)
    wind_direction: str = Field(default="")
    is_daytime: bool = Field(default=True)


class WeatherAlert(_Frozen):
    id: str = Field(..., description="Provider alert identifier")
    headline: str = Field(..., description="Alert headline")
    description: str = Field(default="", description="Full alert text")
    severity: AlertSeverity = Field(default=AlertSeverity.MINOR)
    event: str = Field(..., description="Event label, e.g. Heat Advisory")
    start: dt.datetime = Field(..., description="When the alert takes effect")
    end: Optional[dt.datetime] = Field(default=None, description="When the alert expires")


class SnapshotMetadata(_Frozen):
    provider: ProviderKind = Field(..., description="Provider that produced the forecast")
    region_id: str = Field(default="", description="Forecast office or region identifier")
    grid_key: str = Field(default="", description="Provider grid key, e.g. 124,67")
    timezone: str = Field(default="UTC", description="IANA timezone of the location")
    generated_at: dt.datetime = Field(..., description="When the snapshot was built (UTC)")
    unit: TemperatureUnit = Field(..., description="Unit of every temperature in the snapshot")
    resolved_coordinate: Coordinate = Field(
        ..., description="Coordinate the forecast was actually fetched for"
    )
    substituted: bool = Field(
        default=False,
        description="True when an uncovered coordinate was mapped to a covered fallback point",
    )


class WeatherSnapshot(_Frozen):
    """Complete, immutable result of one pipeline run for a location."""

    location: str = Field(..., description="Display name of the location")
    coordinate: Coordinate = Field(..., description="Coordinate the caller asked for")
    metadata: SnapshotMetadata
    daily: tuple[DailyForecast, ...] = Field(default=())
    hourly: tuple[HourlyForecast, ...] = Field(default=())
    alerts: tuple[WeatherAlert, ...] = Field(default=())

    def with_alerts(self, alerts) -> "WeatherSnapshot":
        """Return a new snapshot carrying ``alerts``; this instance is left untouched."""

        return self.model_copy(update={"alerts": tuple(alerts)})

    def with_hourly(self, hourly) -> "WeatherSnapshot":
        return self.model_copy(update={"hourly": tuple(hourly)})


class AlertList(_Frozen):
    """Cache envelope for an alert list."""

    alerts: tuple[WeatherAlert, ...] = Field(default=())


class HourlyList(_Frozen):
    """Cache envelope for hourly records, which expire sooner than the daily ones."""

    hourly: tuple[HourlyForecast, ...] = Field(default=())


__all__ = [
    "AlertList",
    "DailyForecast",
    "GridReference",
    "HourlyForecast",
    "HourlyList",
    "SnapshotMetadata",
    "WeatherAlert",
    "WeatherSnapshot",
    "Wind",
]
