"""SQLAlchemy ORM models for the shared forecast cache."""

from __future__ import annotations

from sqlalchemy import Float, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from weathercore.db import Base


class CacheEntryRecord(Base):
    """One cached payload per (location, data kind); expiry is epoch seconds."""

    __tablename__ = "cache_entries"
    __table_args__ = (Index("ix_cache_entries_expires_at", "expires_at"),)

    location_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    data_kind: Mapped[str] = mapped_column(String(32), primary_key=True)
    payload: Mapped[str] = mapped_column(Text, nullable=False)
    expires_at: Mapped[float] = mapped_column(Float, nullable=False)
    updated_at: Mapped[float] = mapped_column(Float, nullable=False)
