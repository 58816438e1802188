"""Error taxonomy for the forecast pipeline."""

from __future__ import annotations

from weathercore.domain import FailureKind


class WeatherError(Exception):
    """Base class for failures surfaced by the pipeline."""

    kind: FailureKind = FailureKind.NETWORK

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.kind.value.replace("_", " "))


class InvalidURL(WeatherError):
    """The request URL could not be built from the given input."""

    kind = FailureKind.INVALID_URL


class NetworkError(WeatherError):
    """Transport-level failure (DNS, connection reset, TLS, ...)."""

    kind = FailureKind.NETWORK


class ServerError(WeatherError):
    """The provider answered with a non-2xx status."""

    kind = FailureKind.SERVER

    def __init__(self, status: int, message: str | None = None) -> None:
        self.status = status
        super().__init__(message or f"Server error: {status}")


class DecodingError(WeatherError):
    """The response body did not match the expected schema."""

    kind = FailureKind.DECODING


class LocationNotFound(WeatherError):
    kind = FailureKind.LOCATION_NOT_FOUND


class GeocodingError(WeatherError):
    kind = FailureKind.GEOCODING


class NotCovered(WeatherError):
    """Coordinate is outside every supported provider's service area."""

    kind = FailureKind.NOT_COVERED


class RequestTimeout(WeatherError):
    kind = FailureKind.TIMEOUT


__all__ = [
    "DecodingError",
    "GeocodingError",
    "InvalidURL",
    "LocationNotFound",
    "NetworkError",
    "NotCovered",
    "RequestTimeout",
    "ServerError",
    "WeatherError",
]
