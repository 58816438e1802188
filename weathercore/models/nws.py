"""Wire models for National Weather Service API payloads."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class _NWSModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class QuantitativeValue(_NWSModel):
    value: Optional[float] = None


class RelativeLocationProperties(_NWSModel):
    city: str = ""
    state: str = ""


class RelativeLocation(_NWSModel):
    properties: RelativeLocationProperties


class PointProperties(_NWSModel):
    grid_id: str = Field(..., alias="gridId")
    grid_x: int = Field(..., alias="gridX")
    grid_y: int = Field(..., alias="gridY")
    forecast: str
    forecast_hourly: str = Field(..., alias="forecastHourly")
    relative_location: Optional[RelativeLocation] = Field(default=None, alias="relativeLocation")
    time_zone: Optional[str] = Field(default=None, alias="timeZone")


class PointsResponse(_NWSModel):
    properties: PointProperties


class RawPeriod(_NWSModel):
    """Provider-native forecast period (day, night or single hour)."""

    number: int
    name: str = ""
    start_time: str = Field(..., alias="startTime")
    end_time: str = Field(..., alias="endTime")
    is_daytime: bool = Field(..., alias="isDaytime")
    temperature: float
    temperature_unit: str = Field(default="F", alias="temperatureUnit")
    wind_speed: str = Field(default="", alias="windSpeed")
    wind_direction: str = Field(default="", alias="windDirection")
    icon: str = ""
    short_forecast: str = Field(default="", alias="shortForecast")
    detailed_forecast: str = Field(default="", alias="detailedForecast")
    probability_of_precipitation: Optional[QuantitativeValue] = Field(
        default=None, alias="probabilityOfPrecipitation"
    )
    relative_humidity: Optional[QuantitativeValue] = Field(
        default=None, alias="relativeHumidity"
    )


class ForecastProperties(_NWSModel):
    periods: list[RawPeriod]
    updated: Optional[str] = None


class ForecastResponse(_NWSModel):
    properties: ForecastProperties


class AlertProperties(_NWSModel):
    id: str
    event: str
    headline: Optional[str] = None
    description: str = ""
    severity: str = ""
    effective: Optional[str] = None
    onset: Optional[str] = None
    expires: Optional[str] = None
    ends: Optional[str] = None


class AlertFeature(_NWSModel):
    properties: AlertProperties


class AlertResponse(_NWSModel):
    features: list[AlertFeature] = Field(default_factory=list)


__all__ = [
    "AlertFeature",
    "AlertProperties",
    "AlertResponse",
    "ForecastResponse",
    "PointProperties",
    "PointsResponse",
    "QuantitativeValue",
    "RawPeriod",
]
