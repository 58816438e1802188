"""Cross-process key/value cache for snapshots and alert lists.

Entries live in a SQLite file inside the shared namespace directory. Every
operation runs in its own short transaction, so the application and the
widget extension see whole payloads or nothing. Expired, missing and
undecodable entries all read as a miss.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
import logging
import time
from typing import Callable, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError
from sqlalchemy import delete, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from weathercore.db import create_cache_engine, init_db, make_session_factory
from weathercore.db_models import CacheEntryRecord
from weathercore.domain import DataKind

logger = logging.getLogger("weathercore.cache")

ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass(frozen=True)
class CacheKey:
    location_id: str
    data_kind: DataKind

    def __str__(self) -> str:
        return f"{self.location_id}/{self.data_kind.value}"


def _ttl_seconds(ttl: timedelta | float) -> float:
    return ttl.total_seconds() if isinstance(ttl, timedelta) else float(ttl)


class CacheStore:
    """Persisted TTL cache keyed by (location id, data kind)."""

    def __init__(
        self,
        db_url: str | None = None,
        *,
        engine: Engine | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.engine = engine or create_cache_engine(db_url)
        self._session_factory = make_session_factory(self.engine)
        self._clock = clock
        init_db(self.engine)

    def save(self, key: CacheKey, payload: str, ttl: timedelta | float) -> bool:
        """Upsert ``payload`` under ``key``; last write wins. Returns False on storage errors."""

        now = self._clock()
        values = {
            "location_id": key.location_id,
            "data_kind": key.data_kind.value,
            "payload": payload,
            "expires_at": now + _ttl_seconds(ttl),
            "updated_at": now,
        }
        stmt = sqlite_insert(CacheEntryRecord).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=["location_id", "data_kind"],
            set_={
                "payload": stmt.excluded.payload,
                "expires_at": stmt.excluded.expires_at,
                "updated_at": stmt.excluded.updated_at,
            },
        )
        try:
            with self._session_factory() as session:
                session.execute(stmt)
                session.commit()
        except SQLAlchemyError as exc:
            logger.warning("Cache write failed for %s: %s", key, exc)
            return False

        logger.debug("Cached %s for %.0fs", key, _ttl_seconds(ttl))
        return True

    def load(self, key: CacheKey, *, allow_stale: bool = False) -> Optional[str]:
        """Return the payload under ``key``.

        Expired rows read as a miss unless ``allow_stale`` is set, which lets
        callers fall back to old data when a refresh is impossible.
        """

        stmt = select(CacheEntryRecord.payload).where(
            CacheEntryRecord.location_id == key.location_id,
            CacheEntryRecord.data_kind == key.data_kind.value,
        )
        if not allow_stale:
            stmt = stmt.where(CacheEntryRecord.expires_at > self._clock())
        try:
            with self._session_factory() as session:
                payload = session.execute(stmt).scalar_one_or_none()
        except SQLAlchemyError as exc:
            logger.warning("Cache read failed for %s: %s", key, exc)
            return None

        logger.debug("Cache %s for %s", "hit" if payload is not None else "miss", key)
        return payload

    def save_model(self, key: CacheKey, model: BaseModel, ttl: timedelta | float) -> bool:
        return self.save(key, model.model_dump_json(), ttl)

    def load_model(
        self, key: CacheKey, model_type: Type[ModelT], *, allow_stale: bool = False
    ) -> Optional[ModelT]:
        payload = self.load(key, allow_stale=allow_stale)
        if payload is None:
            return None
        try:
            return model_type.model_validate_json(payload)
        except ValidationError as exc:
            logger.warning("Discarding undecodable cache entry %s: %s", key, exc.error_count())
            self.invalidate(key)
            return None

    def has_entry(self, key: CacheKey) -> bool:
        """True when a row exists for ``key``, fresh or expired."""

        return self.entry_age(key) is not None

    def entry_age(self, key: CacheKey) -> Optional[float]:
        """Seconds since ``key`` was last written, or None when there is no row."""

        stmt = select(CacheEntryRecord.updated_at).where(
            CacheEntryRecord.location_id == key.location_id,
            CacheEntryRecord.data_kind == key.data_kind.value,
        )
        try:
            with self._session_factory() as session:
                updated_at = session.execute(stmt).scalar_one_or_none()
        except SQLAlchemyError as exc:
            logger.warning("Cache age lookup failed for %s: %s", key, exc)
            return None
        if updated_at is None:
            return None
        return max(self._clock() - updated_at, 0.0)

    def invalidate(self, key: CacheKey) -> bool:
        return self._delete(
            delete(CacheEntryRecord).where(
                CacheEntryRecord.location_id == key.location_id,
                CacheEntryRecord.data_kind == key.data_kind.value,
            ),
            str(key),
        ) is not None

    def invalidate_location(self, location_id: str) -> bool:
        """Remove every kind of entry for a location."""

        return self._delete(
            delete(CacheEntryRecord).where(CacheEntryRecord.location_id == location_id),
            location_id,
        ) is not None

    def invalidate_all(self) -> bool:
        return self._delete(delete(CacheEntryRecord), "all entries") is not None

    def purge_expired(self) -> int:
        """Delete entries past expiry and return how many were removed."""

        removed = self._delete(
            delete(CacheEntryRecord).where(CacheEntryRecord.expires_at <= self._clock()),
            "expired entries",
        )
        return removed or 0

    def _delete(self, stmt, label: str) -> Optional[int]:
        try:
            with self._session_factory() as session:
                result = session.execute(stmt)
                session.commit()
        except SQLAlchemyError as exc:
            logger.warning("Cache invalidation failed for %s: %s", label, exc)
            return None

        logger.debug("Invalidated %s (%s rows)", label, result.rowcount)
        return result.rowcount


__all__ = ["CacheKey", "CacheStore"]
