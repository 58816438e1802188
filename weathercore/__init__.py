"""weathercore: coordinate-to-forecast pipeline with a shared snapshot cache."""

from .cache import CacheKey, CacheStore
from .config import Settings, settings
from .errors import WeatherError
from .models import Coordinate, WeatherSnapshot
from .services.aggregator import Aggregator, PipelineRun, open_shared_cache

__all__ = [
    "Aggregator",
    "CacheKey",
    "CacheStore",
    "Coordinate",
    "PipelineRun",
    "Settings",
    "WeatherError",
    "WeatherSnapshot",
    "open_shared_cache",
    "settings",
]
