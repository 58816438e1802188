"""Enumerations shared across the forecast pipeline."""

from __future__ import annotations

from enum import Enum


class ProviderKind(str, Enum):
    """Data providers the pipeline can route a coordinate to."""

    NWS = "nws"
    OPEN_METEO = "open_meteo"

    @property
    def display_name(self) -> str:
        if self is ProviderKind.NWS:
            return "National Weather Service"
        return "Open-Meteo"


class TemperatureUnit(str, Enum):
    FAHRENHEIT = "fahrenheit"
    CELSIUS = "celsius"

    @property
    def symbol(self) -> str:
        return "F" if self is TemperatureUnit.FAHRENHEIT else "C"


class AlertSeverity(str, Enum):
    MINOR = "minor"
    MODERATE = "moderate"
    SEVERE = "severe"
    EXTREME = "extreme"


class IconCategory(str, Enum):
    """Icon identifiers understood by the app and widget renderers."""

    CLEAR_DAY = "clear-day"
    CLEAR_NIGHT = "clear-night"
    PARTLY_CLOUDY_DAY = "partly-cloudy-day"
    PARTLY_CLOUDY_NIGHT = "partly-cloudy-night"
    CLOUDY = "cloudy"
    RAIN = "rain"
    SNOW = "snow"
    SLEET = "sleet"
    FOG = "fog"
    WIND = "wind"


class DataKind(str, Enum):
    """Kinds of payload stored per location in the shared cache."""

    SNAPSHOT = "snapshot"
    HOURLY = "hourly"
    ALERTS = "alerts"


class PipelineState(str, Enum):
    IDLE = "idle"
    RESOLVING_LOCATION = "resolving_location"
    RESOLVING_GRID = "resolving_grid"
    FETCHING_FORECASTS = "fetching_forecasts"
    FETCHING_ALERTS = "fetching_alerts"
    NORMALIZING = "normalizing"
    CACHED = "cached"
    DONE = "done"
    FAILED = "failed"


class FailureKind(str, Enum):
    INVALID_URL = "invalid_url"
    NETWORK = "network"
    SERVER = "server"
    DECODING = "decoding"
    LOCATION_NOT_FOUND = "location_not_found"
    GEOCODING = "geocoding"
    NOT_COVERED = "not_covered"
    TIMEOUT = "timeout"


__all__ = [
    "AlertSeverity",
    "DataKind",
    "FailureKind",
    "IconCategory",
    "PipelineState",
    "ProviderKind",
    "TemperatureUnit",
]
