"""Turn raw NWS forecast periods into canonical daily and hourly records."""

from __future__ import annotations

from datetime import datetime, timezone
import logging
from typing import Iterable, Optional, Sequence

from weathercore.domain import TemperatureUnit
from weathercore.models import DailyForecast, HourlyForecast, RawPeriod, Wind
from weathercore.services.estimators import (
    combined_precipitation_chance,
    convert_temperature,
    estimate_humidity,
    estimate_sky_cover,
    estimate_uv_index,
    hour_label,
    icon_category,
    parse_wind_speed,
)

logger = logging.getLogger("weathercore.services.normalizer")

HOURLY_LIMIT = 24
MISSING_LOW_DELTA = 10.0


def _parse_timestamp(ts: str | None) -> Optional[datetime]:
    if not ts:
        return None
    if ts.endswith("Z"):
        ts = ts.replace("Z", "+00:00")
    try:
        parsed = datetime.fromisoformat(ts)
    except ValueError:
        logger.debug("Unparseable period timestamp: %s", ts)
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def _closes_pair(last: RawPeriod, period: RawPeriod) -> bool:
    # A night may only be followed into the same group by an odd-numbered day.
    if last.is_daytime and not period.is_daytime:
        return True
    return not last.is_daytime and period.is_daytime and period.number % 2 == 1


def group_day_night(periods: Iterable[RawPeriod]) -> list[list[RawPeriod]]:
    """Pair consecutive day/night periods.

    A day followed by its night forms a group of two. A period without a
    partner (a lone leading night, a trailing day) forms a group of one.
    """

    groups: list[list[RawPeriod]] = []
    current: list[RawPeriod] = []
    for period in periods:
        if not current:
            current.append(period)
        elif _closes_pair(current[-1], period):
            current.append(period)
            if len(current) == 2:
                groups.append(current)
                current = []
        else:
            groups.append(current)
            current = [period]

    if current:
        groups.append(current)
    return groups


def to_daily(group: Sequence[RawPeriod], unit: TemperatureUnit) -> DailyForecast:
    primary = next((period for period in group if period.is_daytime), group[0])
    # A lone night is both primary and night, so high == low.
    night = next((period for period in group if not period.is_daytime), None)

    start = _parse_timestamp(primary.start_time) or datetime.now(tz=timezone.utc)
    temp_high = primary.temperature
    temp_low = night.temperature if night is not None else temp_high - MISSING_LOW_DELTA

    humidity_value = primary.relative_humidity.value if primary.relative_humidity else None

    return DailyForecast(
        id=f"day-{primary.number}",
        day=start.strftime("%a"),
        full_day=start.strftime("%A"),
        date=start.date(),
        temp_high=convert_temperature(temp_high, primary.temperature_unit, unit),
        temp_low=convert_temperature(temp_low, primary.temperature_unit, unit),
        precipitation_chance=min(combined_precipitation_chance(primary, night), 100.0),
        uv_index=estimate_uv_index(primary.detailed_forecast),
        wind=Wind(
            speed=parse_wind_speed(primary.wind_speed),
            direction=primary.wind_direction,
        ),
        icon=icon_category(primary.icon, primary.is_daytime),
        short_forecast=primary.short_forecast,
        detailed_forecast=primary.detailed_forecast,
        humidity=estimate_humidity(primary.detailed_forecast, humidity_value),
        sky_cover=estimate_sky_cover(primary.short_forecast),
    )


def normalize_daily(periods: Iterable[RawPeriod], unit: TemperatureUnit) -> list[DailyForecast]:
    daily = [to_daily(group, unit) for group in group_day_night(periods)]
    return sorted(daily, key=lambda day: day.date)


def to_hourly(period: RawPeriod, index: int, unit: TemperatureUnit) -> HourlyForecast:
    start = _parse_timestamp(period.start_time) or datetime.now(tz=timezone.utc)
    return HourlyForecast(
        id=f"hour-{index}",
        time=hour_label(start),
        start_time=start,
        temperature=convert_temperature(period.temperature, period.temperature_unit, unit),
        icon=icon_category(period.icon, period.is_daytime),
        short_forecast=period.short_forecast,
        wind_speed=parse_wind_speed(period.wind_speed),
        wind_direction=period.wind_direction,
        is_daytime=period.is_daytime,
    )


def normalize_hourly(
    periods: Iterable[RawPeriod],
    unit: TemperatureUnit,
    now: datetime | None = None,
) -> list[HourlyForecast]:
    """Upcoming hours in chronological order, at most 24.

    Periods that ended at or before ``now`` are dropped. A period whose start
    cannot be parsed sorts as if it started at ``now``.
    """

    now = now or datetime.now(tz=timezone.utc)
    upcoming: list[tuple[datetime, RawPeriod]] = []
    for period in periods:
        start = _parse_timestamp(period.start_time)
        end = _parse_timestamp(period.end_time)
        if end is not None and end <= now:
            continue
        upcoming.append((start or now, period))

    upcoming.sort(key=lambda item: item[0])
    return [
        to_hourly(period, index, unit)
        for index, (_, period) in enumerate(upcoming[:HOURLY_LIMIT])
    ]


__all__ = [
    "group_day_night",
    "normalize_daily",
    "normalize_hourly",
    "to_daily",
    "to_hourly",
]
