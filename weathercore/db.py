"""Database configuration for the shared forecast cache."""

from __future__ import annotations

import logging
from pathlib import Path

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import declarative_base, sessionmaker

from weathercore.config import settings

Base = declarative_base()

logger = logging.getLogger("weathercore.db")

# Milliseconds a connection waits on a lock held by the other process.
BUSY_TIMEOUT_MS = 5000


def _ensure_sqlite_directory(url: str) -> None:
    database = make_url(url).database
    if not database or database == ":memory:":
        return
    Path(database).expanduser().parent.mkdir(parents=True, exist_ok=True)


def _configure_sqlite_connection(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    try:
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute(f"PRAGMA busy_timeout={BUSY_TIMEOUT_MS}")
        cursor.execute("PRAGMA synchronous=NORMAL")
    finally:
        cursor.close()


def create_cache_engine(url: str | None = None) -> Engine:
    """Create an engine for the cache database.

    SQLite connections are switched to WAL journaling with a busy timeout so
    the application and the widget extension can share the file.
    """

    database_url = url or settings.cache_db_url
    is_sqlite = database_url.startswith("sqlite")
    if is_sqlite:
        _ensure_sqlite_directory(database_url)

    engine = create_engine(
        database_url,
        connect_args={"check_same_thread": False} if is_sqlite else {},
    )
    if is_sqlite:
        event.listen(engine, "connect", _configure_sqlite_connection)
    logger.debug("Cache engine created for %s", engine.url)
    return engine


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(engine: Engine) -> None:
    """Create cache tables if they do not exist."""

    import weathercore.db_models  # noqa: F401 - models are imported for side effects

    Base.metadata.create_all(bind=engine)


__all__ = ["Base", "create_cache_engine", "init_db", "make_session_factory"]
