"""Provider ingestors for the forecast pipeline."""

from .alerts import AlertFetcher
from .forecast import ForecastFetcher
from .grid import GridResolver
from .http import ProviderClient
from .open_meteo import OpenMeteoForecast, OpenMeteoProvider

__all__ = [
    "AlertFetcher",
    "ForecastFetcher",
    "GridResolver",
    "OpenMeteoForecast",
    "OpenMeteoProvider",
    "ProviderClient",
]
