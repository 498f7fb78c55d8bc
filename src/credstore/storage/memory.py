"""In-process table backend.

Used by tests and by ``memory://`` stores. Rows are copied on the way in and
out so callers never alias stored lists.
"""

from __future__ import annotations

from itertools import count

from credstore.exceptions import StorageError
from credstore.storage.base import Row

_instance_ids = count(1)


class InMemoryBackend:
    """Keeps each table as a list of rows in a dict."""

    def __init__(self) -> None:
        self._tables: dict[str, list[Row]] = {}
        self._identity = f"memory://{next(_instance_ids)}"

    @property
    def identity(self) -> str:
        return self._identity

    def _table(self, table: str) -> list[Row]:
        try:
            return self._tables[table]
        except KeyError:
            raise StorageError(f"Table '{table}' does not exist", table=table) from None

    def _check_position(self, table: str, rows: list[Row], position: int) -> None:
        if position < 1 or position > len(rows):
            raise StorageError(
                f"Row {position} is out of range for '{table}' (1..{len(rows)})",
                table=table,
                position=position,
            )

    def table_exists(self, table: str) -> bool:
        return table in self._tables

    def create_table(self, table: str, header: Row) -> None:
        if table in self._tables:
            raise StorageError(f"Table '{table}' already exists", table=table)
        self._tables[table] = [list(header)]

    def read_all(self, table: str) -> list[Row]:
        return [list(row) for row in self._table(table)]

    def row_count(self, table: str) -> int:
        return len(self._table(table))

    def read_row(self, table: str, position: int) -> Row:
        rows = self._table(table)
        self._check_position(table, rows, position)
        return list(rows[position - 1])

    def write_row(self, table: str, position: int, values: Row) -> None:
        rows = self._table(table)
        self._check_position(table, rows, position)
        rows[position - 1] = list(values)

    def append_row(self, table: str, values: Row) -> int:
        rows = self._table(table)
        rows.append(list(values))
        return len(rows)

    def delete_row(self, table: str, position: int) -> None:
        rows = self._table(table)
        self._check_position(table, rows, position)
        del rows[position - 1]

    def drop_table(self, table: str) -> None:
        self._tables.pop(table, None)

    def close(self) -> None:
        pass
