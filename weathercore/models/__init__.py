"""Pydantic models for the weathercore pipeline."""

from .forecast import (
    AlertList,
    DailyForecast,
    GridReference,
    HourlyForecast,
    HourlyList,
    SnapshotMetadata,
    WeatherAlert,
    WeatherSnapshot,
    Wind,
)
from .location import Coordinate, LocationInfo
from .nws import RawPeriod

__all__ = [
    "AlertList",
    "Coordinate",
    "DailyForecast",
    "GridReference",
    "HourlyForecast",
    "HourlyList",
    "LocationInfo",
    "RawPeriod",
    "SnapshotMetadata",
    "WeatherAlert",
    "WeatherSnapshot",
    "Wind",
]
