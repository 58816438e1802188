"""Coverage classification and (reverse) geocoding."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import math
from typing import Optional

import httpx
from pydantic import BaseModel, Field

from weathercore.config import settings
from weathercore.domain import ProviderKind
from weathercore.errors import GeocodingError, LocationNotFound, WeatherError
from weathercore.ingestors.http import ProviderClient, decode
from weathercore.models import Coordinate, LocationInfo

logger = logging.getLogger("weathercore.services.location")

EARTH_RADIUS_KM = 6371.0
DEFAULT_FALLBACK_POINT = Coordinate(latitude=39.8283, longitude=-98.5795)

TERRITORY_CENTERS: dict[str, Coordinate] = {
    "Puerto Rico": Coordinate(latitude=18.2208, longitude=-66.5901),
    "US Virgin Islands": Coordinate(latitude=18.3358, longitude=-64.8963),
    "Guam": Coordinate(latitude=13.4443, longitude=144.7937),
    "American Samoa": Coordinate(latitude=-14.2710, longitude=-170.1322),
    "Northern Mariana Islands": Coordinate(latitude=15.0979, longitude=145.6739),
}

BOUNDARY_POINTS: dict[str, Coordinate] = {
    "San Diego": Coordinate(latitude=32.5343, longitude=-117.1251),
    "San Francisco": Coordinate(latitude=37.7749, longitude=-122.4194),
    "Seattle": Coordinate(latitude=47.6062, longitude=-122.3321),
    "Miami": Coordinate(latitude=25.7617, longitude=-80.1918),
    "New York": Coordinate(latitude=40.7128, longitude=-74.0060),
    "Boston": Coordinate(latitude=42.3601, longitude=-71.0589),
    "North Dakota border": Coordinate(latitude=48.5, longitude=-97.0),
    "Texas border": Coordinate(latitude=26.0, longitude=-97.5),
    "Fairbanks": Coordinate(latitude=64.2008, longitude=-149.4937),
    "Honolulu": Coordinate(latitude=21.3069, longitude=-157.8583),
}

_LOCALITY_KEYS = ("city", "town", "village", "hamlet", "municipality", "county")


def haversine_km(a: Coordinate, b: Coordinate) -> float:
    lat1, lon1 = math.radians(a.latitude), math.radians(a.longitude)
    lat2, lon2 = math.radians(b.latitude), math.radians(b.longitude)
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(h)))


@dataclass(frozen=True)
class CoverageArea:
    """Service area of the primary provider: a bounding box plus territory discs."""

    min_lat: float = 18.0
    max_lat: float = 72.0
    min_lon: float = -180.0
    max_lon: float = -66.0
    territory_centers: tuple[Coordinate, ...] = tuple(TERRITORY_CENTERS.values())
    territory_radius_km: float = 100.0
    fallback_candidates: tuple[Coordinate, ...] = field(
        default=tuple(TERRITORY_CENTERS.values()) + tuple(BOUNDARY_POINTS.values())
    )

    @classmethod
    def from_settings(cls) -> "CoverageArea":
        return cls(
            min_lat=settings.coverage_min_lat,
            max_lat=settings.coverage_max_lat,
            min_lon=settings.coverage_min_lon,
            max_lon=settings.coverage_max_lon,
            territory_radius_km=settings.territory_radius_km,
        )

    def contains(self, coord: Coordinate) -> bool:
        if (
            self.min_lat <= coord.latitude <= self.max_lat
            and self.min_lon <= coord.longitude <= self.max_lon
        ):
            return True
        return any(
            haversine_km(coord, center) <= self.territory_radius_km
            for center in self.territory_centers
        )


class _GeocodingResult(BaseModel):
    name: str
    latitude: float
    longitude: float
    admin1: str = ""
    country: str = ""
    country_code: str = ""


class _GeocodingResponse(BaseModel):
    results: list[_GeocodingResult] = Field(default_factory=list)


class _ReverseResponse(BaseModel):
    address: Optional[dict[str, str]] = None


class LocationResolver:
    """Decide which provider serves a coordinate and translate places to coordinates."""

    def __init__(
        self,
        *,
        coverage: CoverageArea | None = None,
        geocoding_url: str | None = None,
        reverse_geocoding_url: str | None = None,
        timeout: float | None = None,
        user_agent: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.coverage = coverage or CoverageArea.from_settings()
        self._geocoder = ProviderClient(
            base_url=geocoding_url or settings.geocoding_base_url,
            timeout=timeout,
            user_agent=user_agent,
            transport=transport,
        )
        self._reverse_geocoder = ProviderClient(
            base_url=reverse_geocoding_url or settings.reverse_geocoding_base_url,
            timeout=timeout,
            user_agent=user_agent,
            transport=transport,
        )

    # Coverage

    def is_covered(self, coord: Coordinate) -> bool:
        return self.coverage.contains(coord)

    def select_provider(self, coord: Coordinate) -> ProviderKind:
        return ProviderKind.NWS if self.is_covered(coord) else ProviderKind.OPEN_METEO

    def nearest_covered_point(self, coord: Coordinate) -> Coordinate:
        """Closest candidate point inside coverage; never raises."""

        candidates = self.coverage.fallback_candidates
        if not candidates:
            return DEFAULT_FALLBACK_POINT
        nearest = min(candidates, key=lambda candidate: haversine_km(coord, candidate))
        logger.debug("Nearest covered point for %s is %s", coord.key, nearest.key)
        return nearest

    # Geocoding

    async def lookup_place(self, place_name: str) -> LocationInfo:
        name = (place_name or "").strip()
        if not name:
            raise LocationNotFound("Place name is empty")

        params = {"name": name, "count": 1, "language": "en", "format": "json"}
        try:
            payload = await self._geocoder.get_json(
                self._geocoder.base_url, params=params, label="Geocoding"
            )
            response = decode(_GeocodingResponse, payload, label="Geocoding")
        except WeatherError as exc:
            logger.error("Geocoding failed for %r: %s", name, exc)
            raise GeocodingError(f"Geocoding failed for {name!r}: {exc}") from exc

        if not response.results:
            raise LocationNotFound(f"No location found for {name!r}")

        result = response.results[0]
        return LocationInfo(
            display_name=_format_display_name(
                result.name, result.admin1, result.country, result.country_code
            ),
            locality=result.name,
            region=result.admin1,
            country=result.country,
            country_code=result.country_code.upper(),
            coordinate=Coordinate(latitude=result.latitude, longitude=result.longitude),
        )

    async def geocode(self, place_name: str) -> Coordinate:
        place = await self.lookup_place(place_name)
        return place.coordinate

    async def reverse_geocode(self, coord: Coordinate) -> LocationInfo:
        params = {
            "lat": f"{coord.latitude:.4f}",
            "lon": f"{coord.longitude:.4f}",
            "format": "jsonv2",
            "zoom": 10,
        }
        try:
            payload = await self._reverse_geocoder.get_json(
                self._reverse_geocoder.base_url, params=params, label="Reverse geocoding"
            )
            response = decode(_ReverseResponse, payload, label="Reverse geocoding")
        except WeatherError as exc:
            logger.error("Reverse geocoding failed for %s: %s", coord.key, exc)
            raise GeocodingError(f"Reverse geocoding failed for {coord.key}: {exc}") from exc

        if not response.address:
            raise LocationNotFound(f"No address found for {coord.key}")

        address = response.address
        locality = next((address[key] for key in _LOCALITY_KEYS if address.get(key)), "")
        region = address.get("state", "")
        country = address.get("country", "")
        country_code = address.get("country_code", "").upper()
        return LocationInfo(
            display_name=_format_display_name(locality, region, country, country_code),
            locality=locality,
            region=region,
            country=country,
            country_code=country_code,
            coordinate=coord,
        )


def _format_display_name(locality: str, region: str, country: str, country_code: str) -> str:
    second = region if country_code.upper() == "US" else country
    parts = [part for part in (locality, second) if part]
    return ", ".join(parts) if parts else "Unknown Location"


__all__ = [
    "BOUNDARY_POINTS",
    "CoverageArea",
    "DEFAULT_FALLBACK_POINT",
    "LocationResolver",
    "TERRITORY_CENTERS",
    "haversine_km",
]
