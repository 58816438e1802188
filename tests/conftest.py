from datetime import datetime, timedelta, timezone

import pytest

from weathercore.models import RawPeriod

SEATTLE_OFFSET = timezone(timedelta(hours=-8))
ICON_BASE = "https://api.weather.gov/icons/land"


@pytest.fixture
def anyio_backend():
    return "asyncio"


def points_payload(office="SEW", grid_x=124, grid_y=67, city="Seattle", state="WA"):
    base = f"https://api.weather.gov/gridpoints/{office}/{grid_x},{grid_y}"
    return {
        "properties": {
            "gridId": office,
            "gridX": grid_x,
            "gridY": grid_y,
            "forecast": f"{base}/forecast",
            "forecastHourly": f"{base}/forecast/hourly",
            "timeZone": "America/Los_Angeles",
            "relativeLocation": {"properties": {"city": city, "state": state}},
        }
    }


def daily_periods_payload(days=7, start=None, lead_with_night=False):
    """Alternating day/night periods as served by the forecast endpoint."""

    start = start or datetime.now(SEATTLE_OFFSET).replace(hour=6, minute=0, second=0, microsecond=0)
    periods = []
    number = 1
    if lead_with_night:
        night_start = start - timedelta(hours=12)
        periods.append(_daily_period(number, night_start, False, 44, "Tonight"))
        number += 1
    for day in range(days):
        day_start = start + timedelta(days=day)
        periods.append(_daily_period(number, day_start, True, 60 + day, day_start.strftime("%A")))
        periods.append(
            _daily_period(number + 1, day_start + timedelta(hours=12), False, 45 + day, "Night")
        )
        number += 2
    return {"properties": {"periods": periods}}


def _daily_period(number, start, is_daytime, temperature, name):
    return {
        "number": number,
        "name": name,
        "startTime": start.isoformat(),
        "endTime": (start + timedelta(hours=12)).isoformat(),
        "isDaytime": is_daytime,
        "temperature": temperature,
        "temperatureUnit": "F",
        "windSpeed": "5 to 10 mph",
        "windDirection": "SW",
        "icon": f"{ICON_BASE}/{'day' if is_daytime else 'night'}/sct?size=medium",
        "shortForecast": "Partly Sunny" if is_daytime else "Partly Cloudy",
        "detailedForecast": "Partly sunny, with a high near 60.",
        "probabilityOfPrecipitation": {"unitCode": "wmoUnit:percent", "value": None},
    }


def hourly_periods_payload(hours=48, start=None):
    start = start or datetime.now(SEATTLE_OFFSET).replace(minute=0, second=0, microsecond=0)
    periods = []
    for hour in range(hours):
        hour_start = start + timedelta(hours=hour)
        periods.append(
            {
                "number": hour + 1,
                "startTime": hour_start.isoformat(),
                "endTime": (hour_start + timedelta(hours=1)).isoformat(),
                "isDaytime": 6 <= hour_start.hour < 18,
                "temperature": 50 + hour % 10,
                "temperatureUnit": "F",
                "windSpeed": "7 mph",
                "windDirection": "S",
                "icon": f"{ICON_BASE}/day/rain,40?size=small",
                "shortForecast": "Chance Light Rain",
                "detailedForecast": "",
                "probabilityOfPrecipitation": {"value": 40},
                "relativeHumidity": {"value": 88},
            }
        )
    return {"properties": {"periods": periods}}


def alerts_payload():
    return {
        "features": [
            {
                "properties": {
                    "id": "urn:oid:2.49.0.1.840.0.1",
                    "event": "Wind Advisory",
                    "headline": "Wind Advisory issued for Seattle",
                    "description": "Southwest winds 25 to 35 mph.",
                    "severity": "Moderate",
                    "effective": "2024-01-15T10:00:00-08:00",
                    "expires": "2024-01-16T04:00:00-08:00",
                }
            }
        ]
    }


def raw_period(**overrides):
    data = {
        "number": 1,
        "name": "Today",
        "startTime": "2024-01-15T06:00:00-08:00",
        "endTime": "2024-01-15T18:00:00-08:00",
        "isDaytime": True,
        "temperature": 50,
        "temperatureUnit": "F",
        "windSpeed": "10 mph",
        "windDirection": "N",
        "icon": f"{ICON_BASE}/day/few?size=medium",
        "shortForecast": "Sunny",
        "detailedForecast": "Sunny, with a high near 50.",
    }
    data.update(overrides)
    return RawPeriod.model_validate(data)
