"""Orchestrate location, grid, forecast and alert retrieval into a snapshot.

The aggregator is a small state machine. A run moves through
``idle -> resolving_location -> resolving_grid -> fetching_forecasts ->
fetching_alerts -> normalizing -> cached -> done``. The alert fetch starts
as soon as the coordinate is known and runs beside grid resolution and the
forecast fetches; ``fetching_alerts`` marks the join point. Only the location,
grid and forecast stages can fail a run.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
import logging
from typing import Any, Awaitable, Callable, Optional

from sqlalchemy.exc import SQLAlchemyError

from weathercore.cache import CacheKey, CacheStore
from weathercore.config import settings
from weathercore.domain import DataKind, FailureKind, PipelineState, ProviderKind, TemperatureUnit
from weathercore.errors import NotCovered, RequestTimeout, WeatherError
from weathercore.ingestors import AlertFetcher, ForecastFetcher, GridResolver, OpenMeteoProvider
from weathercore.models import (
    AlertList,
    Coordinate,
    GridReference,
    HourlyList,
    SnapshotMetadata,
    WeatherAlert,
    WeatherSnapshot,
)
from weathercore.services.location import LocationResolver
from weathercore.services.normalizer import normalize_daily, normalize_hourly

logger = logging.getLogger("weathercore.services.aggregator")

_FAILABLE_STATES = {
    PipelineState.RESOLVING_LOCATION,
    PipelineState.RESOLVING_GRID,
    PipelineState.FETCHING_FORECASTS,
}


@dataclass
class PipelineRun:
    """Observable progress of a single fetch."""

    state: PipelineState = PipelineState.IDLE
    history: list[PipelineState] = field(default_factory=lambda: [PipelineState.IDLE])
    failure: Optional[FailureKind] = None
    from_cache: bool = False

    def advance(self, state: PipelineState) -> None:
        logger.debug("Pipeline %s -> %s", self.state.value, state.value)
        self.state = state
        self.history.append(state)

    def fail(self, kind: FailureKind) -> None:
        if self.state not in _FAILABLE_STATES:
            return
        self.failure = kind
        self.advance(PipelineState.FAILED)

    @property
    def finished(self) -> bool:
        return self.state in (PipelineState.DONE, PipelineState.FAILED)


@dataclass
class _Route:
    provider: ProviderKind
    target: Coordinate
    substituted: bool = False


class _Deadline:
    def __init__(self, seconds: float) -> None:
        self._loop = asyncio.get_running_loop()
        self._expires_at = self._loop.time() + seconds

    def remaining(self) -> float:
        return max(self._expires_at - self._loop.time(), 0.0)


def _resolve_unit(unit: TemperatureUnit | str | None) -> TemperatureUnit:
    if isinstance(unit, TemperatureUnit):
        return unit
    value = (unit or settings.temperature_unit).lower()
    try:
        return TemperatureUnit(value)
    except ValueError:
        logger.warning("Unknown temperature unit %r; using fahrenheit", value)
        return TemperatureUnit.FAHRENHEIT


async def _cancel(task: Optional[asyncio.Task]) -> None:
    if task is None or task.done():
        return
    task.cancel()
    await asyncio.gather(task, return_exceptions=True)


class Aggregator:
    """Build immutable weather snapshots from the provider stack."""

    def __init__(
        self,
        *,
        location_resolver: Optional[LocationResolver] = None,
        grid_resolver: Optional[GridResolver] = None,
        forecast_fetcher: Optional[ForecastFetcher] = None,
        alert_fetcher: Optional[AlertFetcher] = None,
        global_provider: Optional[OpenMeteoProvider] = None,
        cache: Optional[CacheStore] = None,
        international_strategy: str | None = None,
        deadline: float | None = None,
        daily_ttl: timedelta | None = None,
        hourly_ttl: timedelta | None = None,
        alerts_ttl: timedelta | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.location_resolver = location_resolver or LocationResolver()
        self.grid_resolver = grid_resolver or GridResolver()
        self.forecast_fetcher = forecast_fetcher or ForecastFetcher()
        self.alert_fetcher = alert_fetcher or AlertFetcher()
        self.global_provider = global_provider or OpenMeteoProvider()
        self.cache = cache
        self.international_strategy = international_strategy or settings.international_strategy
        self.deadline = deadline or settings.request_deadline
        self.daily_ttl = daily_ttl or timedelta(minutes=settings.daily_ttl_minutes)
        self.hourly_ttl = hourly_ttl or timedelta(minutes=settings.hourly_ttl_minutes)
        self.alerts_ttl = alerts_ttl or timedelta(minutes=settings.alerts_ttl_minutes)
        self._clock = clock or (lambda: datetime.now(tz=timezone.utc))

    # Public API

    async def fetch(
        self,
        coord: Coordinate,
        *,
        unit: TemperatureUnit | str | None = None,
        use_cache: bool = True,
        timeout: float | None = None,
        display_name: str | None = None,
        run: Optional[PipelineRun] = None,
    ) -> WeatherSnapshot:
        run = run or PipelineRun()
        target_unit = _resolve_unit(unit)
        deadline = _Deadline(timeout if timeout is not None else self.deadline)

        if use_cache and self.cache is not None:
            cached = await self._from_cache(coord, target_unit, deadline)
            if cached is not None:
                run.from_cache = True
                run.advance(PipelineState.DONE)
                return cached

        return await self._run(coord, target_unit, display_name, deadline, run)

    async def fetch_for_place(self, place_name: str, **kwargs: Any) -> WeatherSnapshot:
        """Geocode ``place_name`` and fetch its forecast; LocationNotFound propagates."""

        place = await self.location_resolver.lookup_place(place_name)
        display_name = kwargs.pop("display_name", None) or place.display_name
        return await self.fetch(place.coordinate, display_name=display_name, **kwargs)

    async def refresh(self, coord: Coordinate, **kwargs: Any) -> WeatherSnapshot:
        """Drop cached data for ``coord`` and fetch fresh data."""

        if self.cache is not None:
            self.cache.invalidate_location(coord.key)
        kwargs.pop("use_cache", None)
        return await self.fetch(coord, use_cache=False, **kwargs)

    def cached_snapshot(
        self,
        coord: Coordinate,
        *,
        unit: TemperatureUnit | str | None = None,
        allow_stale: bool = True,
    ) -> Optional[WeatherSnapshot]:
        """Assemble whatever the cache holds for ``coord`` without touching the network.

        With ``allow_stale`` (the default) expired entries are used too, so a
        caller whose fetch failed can still show the last known forecast.
        """

        if self.cache is None:
            return None
        snapshot = self.cache.load_model(
            CacheKey(coord.key, DataKind.SNAPSHOT), WeatherSnapshot, allow_stale=allow_stale
        )
        if snapshot is None or snapshot.metadata.unit is not _resolve_unit(unit):
            return None
        hourly = self.cache.load_model(
            CacheKey(coord.key, DataKind.HOURLY), HourlyList, allow_stale=allow_stale
        )
        alerts = self.cache.load_model(
            CacheKey(coord.key, DataKind.ALERTS), AlertList, allow_stale=allow_stale
        )
        return snapshot.with_hourly(hourly.hourly if hourly else ()).with_alerts(
            alerts.alerts if alerts else ()
        )

    # Pipeline

    async def _run(
        self,
        coord: Coordinate,
        unit: TemperatureUnit,
        display_name: str | None,
        deadline: _Deadline,
        run: PipelineRun,
    ) -> WeatherSnapshot:
        alert_task: Optional[asyncio.Task] = None
        place_task: Optional[asyncio.Task] = None
        try:
            run.advance(PipelineState.RESOLVING_LOCATION)
            route = self._route(coord)
            if route.provider is ProviderKind.NWS:
                alert_task = asyncio.create_task(self.alert_fetcher.fetch_alerts(route.target))
            needs_place = route.substituted or route.provider is ProviderKind.OPEN_METEO
            if display_name is None and needs_place:
                place_task = asyncio.create_task(self.location_resolver.reverse_geocode(coord))

            if route.provider is ProviderKind.NWS:
                run.advance(PipelineState.RESOLVING_GRID)
                grid = await self._required(self.grid_resolver.resolve(route.target), deadline)

                run.advance(PipelineState.FETCHING_FORECASTS)
                daily_periods, hourly_periods = await self._required(
                    self.forecast_fetcher.fetch_both(grid), deadline
                )

                run.advance(PipelineState.FETCHING_ALERTS)
                alerts = await self._best_effort(alert_task, deadline, [], "alert fetch")

                run.advance(PipelineState.NORMALIZING)
                now = self._clock()
                snapshot = WeatherSnapshot(
                    location=await self._display_name(
                        display_name, place_task, deadline, grid, coord
                    ),
                    coordinate=coord,
                    metadata=SnapshotMetadata(
                        provider=ProviderKind.NWS,
                        region_id=grid.office,
                        grid_key=grid.grid_key,
                        timezone=grid.timezone or "UTC",
                        generated_at=now,
                        unit=unit,
                        resolved_coordinate=route.target,
                        substituted=route.substituted,
                    ),
                    daily=tuple(normalize_daily(daily_periods, unit)),
                    hourly=tuple(normalize_hourly(hourly_periods, unit, now=now)),
                    alerts=tuple(alerts),
                )
            else:
                run.advance(PipelineState.FETCHING_FORECASTS)
                now = self._clock()
                forecast = await self._required(
                    self.global_provider.fetch_forecast(route.target, unit, now=now), deadline
                )

                run.advance(PipelineState.NORMALIZING)
                snapshot = WeatherSnapshot(
                    location=await self._display_name(
                        display_name, place_task, deadline, None, coord
                    ),
                    coordinate=coord,
                    metadata=SnapshotMetadata(
                        provider=ProviderKind.OPEN_METEO,
                        timezone=forecast.timezone,
                        generated_at=now,
                        unit=unit,
                        resolved_coordinate=route.target,
                    ),
                    daily=tuple(forecast.daily),
                    hourly=tuple(forecast.hourly),
                )
        except WeatherError as exc:
            stage = run.state
            run.fail(exc.kind)
            logger.error("Pipeline failed for %s during %s: %s", coord.key, stage.value, exc)
            raise
        finally:
            await _cancel(alert_task)
            await _cancel(place_task)

        if self.cache is not None:
            run.advance(PipelineState.CACHED)
            self._store(coord, snapshot)

        run.advance(PipelineState.DONE)
        logger.info(
            "Snapshot ready for %s via %s: %s days, %s hours, %s alerts",
            snapshot.location,
            snapshot.metadata.provider.display_name,
            len(snapshot.daily),
            len(snapshot.hourly),
            len(snapshot.alerts),
        )
        return snapshot

    def _route(self, coord: Coordinate) -> _Route:
        provider = self.location_resolver.select_provider(coord)
        if provider is ProviderKind.NWS:
            return _Route(provider=ProviderKind.NWS, target=coord)

        if self.international_strategy == "strict":
            raise NotCovered(f"{coord.key} is outside {ProviderKind.NWS.display_name} coverage")
        if self.international_strategy == "nearest_point":
            target = self.location_resolver.nearest_covered_point(coord)
            logger.info("Substituting %s with nearest covered point %s", coord.key, target.key)
            return _Route(provider=ProviderKind.NWS, target=target, substituted=True)
        return _Route(provider=ProviderKind.OPEN_METEO, target=coord)

    async def _required(self, awaitable: Awaitable, deadline: _Deadline):
        try:
            return await asyncio.wait_for(awaitable, timeout=deadline.remaining())
        except asyncio.TimeoutError as exc:
            raise RequestTimeout("Forecast request exceeded its deadline") from exc

    async def _best_effort(
        self, task: Optional[asyncio.Task], deadline: _Deadline, default, label: str
    ):
        if task is None:
            return default
        try:
            return await asyncio.wait_for(task, timeout=deadline.remaining())
        except asyncio.TimeoutError:
            logger.warning("%s did not finish before the deadline", label.capitalize())
        except WeatherError as exc:
            logger.warning("%s unavailable: %s", label.capitalize(), exc)
        return default

    async def _display_name(
        self,
        display_name: str | None,
        place_task: Optional[asyncio.Task],
        deadline: _Deadline,
        grid: Optional[GridReference],
        coord: Coordinate,
    ) -> str:
        if display_name:
            return display_name
        place = await self._best_effort(place_task, deadline, None, "reverse geocoding")
        if place is not None:
            return place.display_name
        if grid is not None and grid.city:
            return ", ".join(part for part in (grid.city, grid.state) if part)
        return coord.key

    # Cache

    async def _from_cache(
        self, coord: Coordinate, unit: TemperatureUnit, deadline: _Deadline
    ) -> Optional[WeatherSnapshot]:
        snapshot = self.cache.load_model(CacheKey(coord.key, DataKind.SNAPSHOT), WeatherSnapshot)
        if snapshot is None:
            return None
        if snapshot.metadata.unit is not unit:
            logger.debug(
                "Cached snapshot for %s is in %s; refetching",
                coord.key,
                snapshot.metadata.unit.value,
            )
            return None

        hourly_key = CacheKey(coord.key, DataKind.HOURLY)
        cached_hourly = self.cache.load_model(hourly_key, HourlyList)
        if cached_hourly is not None:
            snapshot = snapshot.with_hourly(cached_hourly.hourly)
        else:
            snapshot = snapshot.with_hourly(await self._refresh_hourly(snapshot, deadline))

        if snapshot.metadata.provider is not ProviderKind.NWS:
            return snapshot

        alerts_key = CacheKey(coord.key, DataKind.ALERTS)
        cached_alerts = self.cache.load_model(alerts_key, AlertList)
        if cached_alerts is not None:
            return snapshot.with_alerts(cached_alerts.alerts)

        task = asyncio.create_task(
            self.alert_fetcher.fetch_alerts(snapshot.metadata.resolved_coordinate)
        )
        try:
            alerts: list[WeatherAlert] = await self._best_effort(
                task, deadline, [], "alert refresh"
            )
        finally:
            await _cancel(task)
        self.cache.save_model(alerts_key, AlertList(alerts=tuple(alerts)), self.alerts_ttl)
        return snapshot.with_alerts(alerts)

    async def _refresh_hourly(self, snapshot: WeatherSnapshot, deadline: _Deadline):
        """Fetch only hourly records for a snapshot whose daily records are still fresh.

        Failures fall back to the last stored hourly records, or none.
        """

        key = CacheKey(snapshot.coordinate.key, DataKind.HOURLY)
        meta = snapshot.metadata
        try:
            hourly = await self._required(
                self._fetch_hourly(meta.provider, meta.resolved_coordinate, meta.unit), deadline
            )
        except WeatherError as exc:
            logger.warning("Hourly refresh for %s failed: %s", snapshot.coordinate.key, exc)
            stale = self.cache.load_model(key, HourlyList, allow_stale=True)
            return stale.hourly if stale is not None else ()

        self.cache.save_model(key, HourlyList(hourly=tuple(hourly)), self.hourly_ttl)
        logger.debug("Refreshed hourly records for %s", snapshot.coordinate.key)
        return hourly

    async def _fetch_hourly(
        self, provider: ProviderKind, target: Coordinate, unit: TemperatureUnit
    ) -> list:
        now = self._clock()
        if provider is ProviderKind.NWS:
            grid = await self.grid_resolver.resolve(target)
            periods = await self.forecast_fetcher.fetch_hourly(grid)
            return normalize_hourly(periods, unit, now=now)
        forecast = await self.global_provider.fetch_forecast(target, unit, now=now)
        return list(forecast.hourly)

    def _store(self, coord: Coordinate, snapshot: WeatherSnapshot) -> None:
        self.cache.save_model(
            CacheKey(coord.key, DataKind.SNAPSHOT),
            snapshot.with_hourly(()).with_alerts(()),
            self.daily_ttl,
        )
        self.cache.save_model(
            CacheKey(coord.key, DataKind.HOURLY),
            HourlyList(hourly=snapshot.hourly),
            self.hourly_ttl,
        )
        if snapshot.metadata.provider is ProviderKind.NWS:
            self.cache.save_model(
                CacheKey(coord.key, DataKind.ALERTS),
                AlertList(alerts=snapshot.alerts),
                self.alerts_ttl,
            )


def open_shared_cache(db_url: str | None = None) -> Optional[CacheStore]:
    """Open the shared cache, or return None when the store is unavailable."""

    try:
        return CacheStore(db_url)
    except (SQLAlchemyError, OSError) as exc:
        logger.warning("Shared cache unavailable; continuing without it: %s", exc)
        return None


__all__ = ["Aggregator", "PipelineRun", "open_shared_cache"]
