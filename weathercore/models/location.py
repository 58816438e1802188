"""Location models: coordinates and geocoding results."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Coordinate(BaseModel):
    """WGS84 coordinate in decimal degrees."""

    model_config = ConfigDict(frozen=True)

    latitude: float = Field(..., description="Latitude in decimal degrees")
    longitude: float = Field(..., description="Longitude in decimal degrees")

    @property
    def key(self) -> str:
        """Stable identifier used to key cached data for this coordinate."""

        return f"{self.latitude:.4f},{self.longitude:.4f}"


class LocationInfo(BaseModel):
    """Place information returned by (reverse) geocoding."""

    model_config = ConfigDict(frozen=True)

    display_name: str = Field(..., description="Human-readable place name")
    locality: str = Field(default="", description="City, town or village")
    region: str = Field(default="", description="State or administrative area")
    country: str = Field(default="", description="Country name")
    country_code: str = Field(default="", description="ISO 3166-1 alpha-2 country code")
    coordinate: Optional[Coordinate] = Field(
        default=None, description="Coordinate of the place, when known"
    )


__all__ = ["Coordinate", "LocationInfo"]
