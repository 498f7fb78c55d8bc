"""SQL-persisted table backend.

Stores every logical table in the shared ``cs_sheet_rows`` table (see
``credstore.storage.models``) on SQLite or PostgreSQL. The database is used
strictly as a row medium: no foreign keys, no per-entity DDL, no SQL-level
filtering beyond locating a (sheet, position) pair.
"""

from __future__ import annotations

import logging
from itertools import count
from typing import TYPE_CHECKING

from sqlalchemy import delete, func, select, update

from credstore.core.clock import utc_now
from credstore.exceptions import StorageError
from credstore.storage.base import Row
from credstore.storage.models import Base, SheetRow

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

    from credstore.core.connection import DatabaseConnection

logger = logging.getLogger(__name__)

_private_ids = count(1)


class SqlSheetBackend:
    """Positional row storage on top of a SQLAlchemy engine."""

    def __init__(self, connection: DatabaseConnection) -> None:
        """Initialize the backend and create ``cs_sheet_rows`` if needed.

        Args:
            connection: Database connection to use
        """
        self._connection = connection
        Base.metadata.create_all(self._connection.engine)
        self._identity = f"sql:{connection.safe_url}"
        if connection.is_private_memory:
            # Each private in-memory SQLite database is its own store
            self._identity += f"#{next(_private_ids)}"

    @property
    def identity(self) -> str:
        return self._identity

    def _session(self) -> Session:
        return self._connection.get_session()

    def _last_position(self, session: Session, table: str) -> int:
        return session.scalar(
            select(func.coalesce(func.max(SheetRow.position), 0)).where(SheetRow.sheet == table)
        )

    def table_exists(self, table: str) -> bool:
        with self._session() as session:
            return self._last_position(session, table) > 0

    def create_table(self, table: str, header: Row) -> None:
        with self._session() as session:
            if self._last_position(session, table) > 0:
                raise StorageError(f"Table '{table}' already exists", table=table)
            session.add(SheetRow(sheet=table, position=1, cells=list(header)))
            session.commit()
        logger.info(f"Created table '{table}' with {len(header)} columns")

    def read_all(self, table: str) -> list[Row]:
        with self._session() as session:
            cells = session.scalars(
                select(SheetRow.cells).where(SheetRow.sheet == table).order_by(SheetRow.position)
            ).all()
        if not cells:
            raise StorageError(f"Table '{table}' does not exist", table=table)
        return [list(row) for row in cells]

    def row_count(self, table: str) -> int:
        with self._session() as session:
            return self._last_position(session, table)

    def read_row(self, table: str, position: int) -> Row:
        with self._session() as session:
            cells = session.scalar(
                select(SheetRow.cells).where(
                    SheetRow.sheet == table, SheetRow.position == position
                )
            )
        if cells is None:
            raise StorageError(
                f"Row {position} does not exist in '{table}'", table=table, position=position
            )
        return list(cells)

    def write_row(self, table: str, position: int, values: Row) -> None:
        with self._session() as session:
            result = session.execute(
                update(SheetRow)
                .where(SheetRow.sheet == table, SheetRow.position == position)
                .values(cells=list(values), updated_at=utc_now())
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                session.rollback()
                raise StorageError(
                    f"Row {position} does not exist in '{table}'", table=table, position=position
                )
            session.commit()

    def append_row(self, table: str, values: Row) -> int:
        with self._session() as session:
            last = self._last_position(session, table)
            if last == 0:
                raise StorageError(f"Table '{table}' does not exist", table=table)
            session.add(SheetRow(sheet=table, position=last + 1, cells=list(values)))
            session.commit()
            return last + 1

    def delete_row(self, table: str, position: int) -> None:
        with self._session() as session:
            result = session.execute(
                delete(SheetRow)
                .where(SheetRow.sheet == table, SheetRow.position == position)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                session.rollback()
                raise StorageError(
                    f"Row {position} does not exist in '{table}'", table=table, position=position
                )
            session.execute(
                update(SheetRow)
                .where(SheetRow.sheet == table, SheetRow.position > position)
                .values(position=SheetRow.position - 1)
                .execution_options(synchronize_session=False)
            )
            session.commit()

    def drop_table(self, table: str) -> None:
        with self._session() as session:
            session.execute(delete(SheetRow).where(SheetRow.sheet == table))
            session.commit()

    def close(self) -> None:
        self._connection.close()
