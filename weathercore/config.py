"""Configuration settings for the weathercore forecast pipeline."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger("weathercore.config")

_INTERNATIONAL_STRATEGIES = {"global_provider", "nearest_point", "strict"}


def _get_float(env_var: str, default: float) -> float:
    """Parse an environment variable into a float, keeping the default on bad input."""

    value = os.getenv(env_var)
    if value is None or value == "":
        return default
    try:
        return float(value)
    except ValueError:
        logger.warning("Ignoring non-numeric value for %s: %r", env_var, value)
        return default


def _default_cache_dir() -> str:
    return os.getenv(
        "WEATHERCORE_CACHE_DIR", str(Path.home() / ".cache" / "weathercore")
    )


def _international_strategy() -> str:
    value = os.getenv("WEATHERCORE_INTERNATIONAL_STRATEGY", "global_provider").lower()
    if value not in _INTERNATIONAL_STRATEGIES:
        logger.warning("Unknown international strategy %r; using global_provider", value)
        return "global_provider"
    return value


@dataclass
class Settings:
    """Pipeline configuration loaded from environment variables."""

    log_level: str = os.getenv("WEATHERCORE_LOG_LEVEL", "INFO")
    user_agent: str = os.getenv(
        "WEATHERCORE_USER_AGENT", "weathercore/1.0 (weather-dashboard)"
    )

    # Provider endpoints
    nws_base_url: str = os.getenv("NWS_BASE_URL", "https://api.weather.gov")
    open_meteo_base_url: str = os.getenv(
        "OPEN_METEO_BASE_URL", "https://api.open-meteo.com/v1/forecast"
    )
    geocoding_base_url: str = os.getenv(
        "GEOCODING_BASE_URL", "https://geocoding-api.open-meteo.com/v1/search"
    )
    reverse_geocoding_base_url: str = os.getenv(
        "REVERSE_GEOCODING_BASE_URL", "https://nominatim.openstreetmap.org/reverse"
    )

    # Timing
    request_timeout: float = _get_float("WEATHERCORE_REQUEST_TIMEOUT", 10.0)
    request_deadline: float = _get_float("WEATHERCORE_REQUEST_DEADLINE", 30.0)

    temperature_unit: str = os.getenv("WEATHERCORE_TEMPERATURE_UNIT", "fahrenheit").lower()

    # Shared cache
    daily_ttl_minutes: float = _get_float("WEATHERCORE_DAILY_TTL_MINUTES", 180.0)
    hourly_ttl_minutes: float = _get_float("WEATHERCORE_HOURLY_TTL_MINUTES", 60.0)
    alerts_ttl_minutes: float = _get_float("WEATHERCORE_ALERTS_TTL_MINUTES", 15.0)
    cache_namespace: str = os.getenv(
        "WEATHERCORE_CACHE_NAMESPACE", "group.com.weatherapp.shared"
    )
    cache_dir: str = _default_cache_dir()
    cache_db_url: str = os.getenv("WEATHERCORE_CACHE_DB_URL", "")

    # Coverage of the primary provider
    coverage_min_lat: float = _get_float("COVERAGE_MIN_LAT", 18.0)
    coverage_max_lat: float = _get_float("COVERAGE_MAX_LAT", 72.0)
    coverage_min_lon: float = _get_float("COVERAGE_MIN_LON", -180.0)
    coverage_max_lon: float = _get_float("COVERAGE_MAX_LON", -66.0)
    territory_radius_km: float = _get_float("COVERAGE_TERRITORY_RADIUS_KM", 100.0)
    international_strategy: str = _international_strategy()

    def __post_init__(self) -> None:
        if not self.cache_db_url:
            path = Path(self.cache_dir).expanduser() / self.cache_namespace / "cache.db"
            self.cache_db_url = f"sqlite:///{path}"


settings = Settings()

__all__ = ["settings", "Settings"]
