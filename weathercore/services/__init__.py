"""Service-layer helpers for the forecast pipeline.

The aggregator is exported from the top-level package; the provider
ingestors depend on the estimators here.
"""

from .location import CoverageArea, LocationResolver, haversine_km
from .normalizer import group_day_night, normalize_daily, normalize_hourly

__all__ = [
    "CoverageArea",
    "LocationResolver",
    "group_day_night",
    "haversine_km",
    "normalize_daily",
    "normalize_hourly",
]
