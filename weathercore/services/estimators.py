"""Pure estimators for fields the provider leaves out or only hints at in text.

Each function takes plain values (text, numbers) and returns an estimate, so
they can be exercised without any network or cache setup.
"""

from __future__ import annotations

from datetime import datetime
import re
from typing import Optional

from weathercore.domain import IconCategory, TemperatureUnit
from weathercore.models.nws import RawPeriod

# Units


def fahrenheit_to_celsius(value: float) -> float:
    return (value - 32) * 5 / 9


def celsius_to_fahrenheit(value: float) -> float:
    return value * 9 / 5 + 32


def unit_from_symbol(symbol: str | None) -> TemperatureUnit:
    """Map a provider unit symbol ("F", "C") to a TemperatureUnit; F when unknown."""

    if symbol and symbol.strip().upper().startswith("C"):
        return TemperatureUnit.CELSIUS
    return TemperatureUnit.FAHRENHEIT


def convert_temperature(
    value: float, source: TemperatureUnit | str, target: TemperatureUnit
) -> float:
    """Convert ``value`` from ``source`` to ``target``; identity when they match."""

    source_unit = source if isinstance(source, TemperatureUnit) else unit_from_symbol(source)
    if source_unit is target:
        return float(value)
    if target is TemperatureUnit.CELSIUS:
        return fahrenheit_to_celsius(value)
    return celsius_to_fahrenheit(value)


# Precipitation

_PRECIP_PATTERNS = [
    re.compile(r"chance of precipitation is (\d+)%", re.IGNORECASE),
    re.compile(r"(\d+)% chance of precipitation", re.IGNORECASE),
    re.compile(r"(\d+)% chance of rain", re.IGNORECASE),
    re.compile(r"(\d+)% chance of snow", re.IGNORECASE),
]
_PRECIP_KEYWORDS = ("Rain", "Showers", "Thunderstorms")


def extract_precipitation_chance(detailed_forecast: str) -> int:
    for pattern in _PRECIP_PATTERNS:
        match = pattern.search(detailed_forecast or "")
        if match:
            return int(match.group(1))
    return 0


def estimate_precipitation_chance(short_forecast: str) -> int:
    """Keyword tier used when neither a number nor a percentage phrase is available."""

    text = short_forecast or ""
    if not any(keyword in text for keyword in _PRECIP_KEYWORDS):
        return 0
    if "Slight Chance" in text:
        return 20
    if "Chance" in text:
        return 40
    if "Likely" in text:
        return 70
    if "Definite" in text or "Heavy" in text:
        return 90
    return 50


def resolve_precipitation_chance(period: RawPeriod) -> float:
    probability = period.probability_of_precipitation
    explicit = probability.value if probability else None
    if explicit:
        return float(explicit)
    extracted = extract_precipitation_chance(period.detailed_forecast)
    if extracted:
        return float(extracted)
    return float(estimate_precipitation_chance(period.short_forecast))


def combined_precipitation_chance(day: RawPeriod, night: Optional[RawPeriod]) -> float:
    day_chance = resolve_precipitation_chance(day)
    night_chance = resolve_precipitation_chance(night) if night is not None else 0.0
    return max(day_chance, night_chance)


# Other text heuristics

_UV_RE = re.compile(r"UV index\D*(\d+)")
_LEADING_NUMBER_RE = re.compile(r"\d+(?:\.\d+)?")


def estimate_uv_index(detailed_forecast: str) -> int:
    text = detailed_forecast or ""
    match = _UV_RE.search(text)
    if match:
        return int(match.group(1))

    lowered = text.lower()
    if "partly sunny" in lowered:
        return 5
    if "sunny" in lowered:
        return 8
    if "cloudy" in lowered:
        return 2
    return 3


def estimate_humidity(detailed_forecast: str, explicit: Optional[float] = None) -> float:
    if explicit is not None:
        return float(explicit)

    lowered = (detailed_forecast or "").lower()
    if "rain" in lowered or "shower" in lowered:
        return 85.0
    if "fog" in lowered or "mist" in lowered:
        return 95.0
    if "humid" in lowered:
        return 80.0
    if "dry" in lowered:
        return 30.0
    return 60.0


# Most specific phrases first: "Mostly Sunny" also contains "Sunny".
_SKY_COVER_BANDS = [
    (("Mostly Clear", "Mostly Sunny"), 25.0),
    (("Partly Cloudy", "Partly Sunny"), 50.0),
    (("Mostly Cloudy",), 75.0),
    (("Clear", "Sunny"), 0.0),
    (("Cloudy",), 100.0),
]


def estimate_sky_cover(short_forecast: str) -> float:
    text = short_forecast or ""
    for phrases, cover in _SKY_COVER_BANDS:
        if any(phrase in text for phrase in phrases):
            return cover
    return 50.0


def parse_wind_speed(wind_speed: str | None) -> float:
    """Leading number of a free-text wind speed ("10 to 15 mph" -> 10)."""

    match = _LEADING_NUMBER_RE.search(wind_speed or "")
    return float(match.group(0)) if match else 0.0


_COMPASS = [
    "N", "NNE", "NE", "ENE", "E", "ESE", "SE", "SSE",
    "S", "SSW", "SW", "WSW", "W", "WNW", "NW", "NNW",
]


def compass_direction(degrees: float | None) -> str:
    if degrees is None:
        return ""
    return _COMPASS[int((degrees % 360 + 11.25) / 22.5) % 16]


# Icons

_NWS_ICON_CODES = {
    "skc": "clear",
    "few": "clear",
    "sct": "partly",
    "bkn": "partly",
    "ovc": "cloudy",
    "wind_skc": "wind",
    "wind_few": "wind",
    "wind_sct": "wind",
    "wind_bkn": "wind",
    "wind_ovc": "wind",
    "snow": "snow",
    "rain_snow": "sleet",
    "rain_sleet": "sleet",
    "snow_sleet": "sleet",
    "fzra": "sleet",
    "rain_fzra": "sleet",
    "snow_fzra": "sleet",
    "sleet": "sleet",
    "rain": "rain",
    "rain_showers": "rain",
    "rain_showers_hi": "rain",
    "tsra": "rain",
    "tsra_sct": "rain",
    "tsra_hi": "rain",
    "blizzard": "snow",
    "fog": "fog",
    "haze": "fog",
    "smoke": "fog",
    "dust": "fog",
}


def _category(kind: str, is_daytime: bool) -> IconCategory:
    if kind == "clear":
        return IconCategory.CLEAR_DAY if is_daytime else IconCategory.CLEAR_NIGHT
    if kind == "partly":
        return IconCategory.PARTLY_CLOUDY_DAY if is_daytime else IconCategory.PARTLY_CLOUDY_NIGHT
    return IconCategory(kind)


def icon_category(icon: str | None, is_daytime: bool = True) -> IconCategory:
    """Map an NWS icon URL (…/icons/land/day/tsra,40?size=medium) to an IconCategory.

    Falls back to keyword matching for references that do not follow the
    icon-code scheme.
    """

    reference = (icon or "").lower()
    if "/night/" in reference:
        is_daytime = False

    path = reference.split("?", 1)[0]
    segments = [segment for segment in path.split("/") if segment]
    if segments:
        code = segments[-1].split(",", 1)[0]
        kind = _NWS_ICON_CODES.get(code)
        if kind:
            return _category(kind, is_daytime)

    if "sunny" in reference or "clear" in reference:
        return _category("clear", is_daytime)
    if "cloudy" in reference:
        return _category("partly", is_daytime) if "partly" in reference else IconCategory.CLOUDY
    if "rain" in reference or "shower" in reference or "thunder" in reference:
        return IconCategory.RAIN
    if "snow" in reference:
        return IconCategory.SNOW
    if "sleet" in reference or "ice" in reference:
        return IconCategory.SLEET
    if "fog" in reference:
        return IconCategory.FOG
    if "wind" in reference:
        return IconCategory.WIND
    return IconCategory.CLOUDY


# Labels


def hour_label(moment: datetime) -> str:
    """Short hour label such as 3pm or 12am."""

    hour = moment.hour % 12 or 12
    return f"{hour}{'am' if moment.hour < 12 else 'pm'}"


__all__ = [
    "celsius_to_fahrenheit",
    "combined_precipitation_chance",
    "compass_direction",
    "convert_temperature",
    "estimate_humidity",
    "estimate_precipitation_chance",
    "estimate_sky_cover",
    "estimate_uv_index",
    "extract_precipitation_chance",
    "fahrenheit_to_celsius",
    "hour_label",
    "icon_category",
    "parse_wind_speed",
    "resolve_precipitation_chance",
    "unit_from_symbol",
]
