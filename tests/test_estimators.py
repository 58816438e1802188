from datetime import datetime

import pytest

from conftest import raw_period
from weathercore.domain import IconCategory, TemperatureUnit
from weathercore.services.estimators import (
    celsius_to_fahrenheit,
    combined_precipitation_chance,
    compass_direction,
    convert_temperature,
    estimate_humidity,
    estimate_precipitation_chance,
    estimate_sky_cover,
    estimate_uv_index,
    extract_precipitation_chance,
    fahrenheit_to_celsius,
    hour_label,
    icon_category,
    parse_wind_speed,
    resolve_precipitation_chance,
)


def test_fahrenheit_to_celsius_is_exact():
    assert fahrenheit_to_celsius(212) == 100
    assert fahrenheit_to_celsius(50) == (50 - 32) * 5 / 9


@pytest.mark.parametrize("fahrenheit", [-40, 0, 32, 71.3, 98.6, 212])
def test_fahrenheit_celsius_round_trip(fahrenheit):
    assert celsius_to_fahrenheit(fahrenheit_to_celsius(fahrenheit)) == pytest.approx(
        fahrenheit, abs=0.01
    )


def test_convert_temperature_only_when_units_differ():
    assert convert_temperature(72, "F", TemperatureUnit.FAHRENHEIT) == 72
    assert convert_temperature(72, "F", TemperatureUnit.CELSIUS) == pytest.approx(22.2222222)
    assert convert_temperature(20, "C", TemperatureUnit.FAHRENHEIT) == pytest.approx(68)
    assert celsius_to_fahrenheit(-40) == -40
    assert convert_temperature(20, TemperatureUnit.CELSIUS, TemperatureUnit.CELSIUS) == 20


@pytest.mark.parametrize(
    "text, expected",
    [
        ("Showers likely. Chance of precipitation is 60%.", 60),
        ("A 30% chance of rain after 2pm.", 30),
        ("There is a 20% CHANCE OF SNOW tonight.", 20),
        ("Sunny, with a high near 75.", 0),
    ],
)
def test_extract_precipitation_chance(text, expected):
    assert extract_precipitation_chance(text) == expected


@pytest.mark.parametrize(
    "short, expected",
    [
        ("Slight Chance Rain Showers", 20),
        ("Chance Showers And Thunderstorms", 40),
        ("Chance of Showers", 40),
        ("Rain Likely", 70),
        ("Heavy Rain", 90),
        ("Rain", 50),
        ("Chance Of Sunshine", 0),
        ("Mostly Sunny", 0),
    ],
)
def test_estimate_precipitation_chance(short, expected):
    assert estimate_precipitation_chance(short) == expected


def test_resolve_precipitation_prefers_explicit_value():
    period = raw_period(
        probabilityOfPrecipitation={"value": 35},
        detailedForecast="Chance of precipitation is 80%.",
    )
    assert resolve_precipitation_chance(period) == 35


def test_resolve_precipitation_falls_back_when_explicit_is_zero():
    period = raw_period(
        probabilityOfPrecipitation={"value": 0},
        detailedForecast="Rain. Chance of precipitation is 80%.",
    )
    assert resolve_precipitation_chance(period) == 80

    period = raw_period(probabilityOfPrecipitation={"value": None}, shortForecast="Rain Likely")
    assert resolve_precipitation_chance(period) == 70


def test_combined_precipitation_takes_the_wetter_half():
    day = raw_period(shortForecast="Sunny")
    night = raw_period(number=2, isDaytime=False, shortForecast="Chance Rain Showers")
    assert combined_precipitation_chance(day, night) == 40
    assert combined_precipitation_chance(day, None) == 0


@pytest.mark.parametrize(
    "detailed, expected",
    [
        ("Sunny, with a UV index of 7.", 7),
        ("Partly sunny, with a high near 60.", 5),
        ("Sunny and warm.", 8),
        ("Mostly cloudy.", 2),
        ("Areas of fog.", 3),
    ],
)
def test_estimate_uv_index(detailed, expected):
    assert estimate_uv_index(detailed) == expected


@pytest.mark.parametrize(
    "detailed, explicit, expected",
    [
        ("Rain showers likely.", None, 85),
        ("Patchy fog before 10am.", None, 95),
        ("Hot and humid.", None, 80),
        ("Dry and breezy.", None, 30),
        ("Sunny.", None, 60),
        ("Rain showers likely.", 42.0, 42),
    ],
)
def test_estimate_humidity(detailed, explicit, expected):
    assert estimate_humidity(detailed, explicit) == expected


@pytest.mark.parametrize(
    "short, expected",
    [
        ("Sunny", 0),
        ("Clear", 0),
        ("Mostly Sunny", 25),
        ("Mostly Clear", 25),
        ("Partly Cloudy", 50),
        ("Partly Sunny", 50),
        ("Mostly Cloudy", 75),
        ("Cloudy", 100),
        ("Rain", 50),
    ],
)
def test_estimate_sky_cover(short, expected):
    assert estimate_sky_cover(short) == expected


@pytest.mark.parametrize(
    "text, expected",
    [("10 mph", 10), ("5 to 15 mph", 5), ("", 0), ("calm", 0)],
)
def test_parse_wind_speed(text, expected):
    assert parse_wind_speed(text) == expected


def test_icon_category_reads_nws_icon_codes():
    base = "https://api.weather.gov/icons/land"
    assert icon_category(f"{base}/day/skc?size=medium") is IconCategory.CLEAR_DAY
    assert icon_category(f"{base}/night/few?size=medium", True) is IconCategory.CLEAR_NIGHT
    assert icon_category(f"{base}/night/bkn?size=small") is IconCategory.PARTLY_CLOUDY_NIGHT
    assert icon_category(f"{base}/day/ovc") is IconCategory.CLOUDY
    assert icon_category(f"{base}/day/tsra,40?size=medium") is IconCategory.RAIN
    assert icon_category(f"{base}/day/snow,60") is IconCategory.SNOW
    assert icon_category(f"{base}/day/fzra") is IconCategory.SLEET
    assert icon_category(f"{base}/day/fog") is IconCategory.FOG
    assert icon_category(f"{base}/day/wind_few") is IconCategory.WIND


def test_icon_category_falls_back_to_keywords():
    assert icon_category("Mostly Sunny") is IconCategory.CLEAR_DAY
    assert icon_category("Partly Cloudy", False) is IconCategory.PARTLY_CLOUDY_NIGHT
    assert icon_category("Light Snow") is IconCategory.SNOW
    assert icon_category("") is IconCategory.CLOUDY


def test_compass_direction_and_hour_label():
    assert compass_direction(0) == "N"
    assert compass_direction(350) == "N"
    assert compass_direction(225) == "SW"
    assert compass_direction(None) == ""
    assert hour_label(datetime(2024, 1, 1, 0)) == "12am"
    assert hour_label(datetime(2024, 1, 1, 12)) == "12pm"
    assert hour_label(datetime(2024, 1, 1, 15)) == "3pm"
