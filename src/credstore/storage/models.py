"""SQLAlchemy ORM model for SQL-persisted tables.

Every logical table is stored as ordered rows of ``cs_sheet_rows``: one row per
table row, keyed by (sheet, position), with the raw cells held in a JSON list.
Positions are dense and 1-based; the header lives at position 1.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Index, Integer, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from credstore.core.clock import utc_now

# JSONB on PostgreSQL, JSON on SQLite
JSONType = JSONB().with_variant(JSON(), "sqlite")


class Base(DeclarativeBase):
    """Base class for credstore ORM models."""

    pass


class SheetRow(Base):
    """A single row of a logical table."""

    __tablename__ = "cs_sheet_rows"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    sheet: Mapped[str] = mapped_column(String(255), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    cells: Mapped[list[Any]] = mapped_column(JSONType, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    # Not unique: deleting a row renumbers later positions one by one
    __table_args__ = (Index("ix_cs_sheet_rows_sheet_position", "sheet", "position"),)
