"""Storage backend protocol.

A backend stores named tables as ordered lists of rows. Row positions are
1-based and the header occupies position 1, mirroring a spreadsheet. Backends
only know about raw cells; width validation, versioning and cache
invalidation live in ``StorageAdapter``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

Row = list[Any]


@dataclass(frozen=True)
class WriteReceipt:
    """Returned by every mutating adapter call."""

    table: str
    version: int
    rows_affected: int = 1


class StorageBackend(Protocol):
    """Raw row storage that all backends must implement."""

    @property
    def identity(self) -> str:
        """Stable identifier of the physical store (used to key caches)."""
        ...

    def table_exists(self, table: str) -> bool:
        """Return True if the table has been created."""
        ...

    def create_table(self, table: str, header: Row) -> None:
        """Create a table whose first row is ``header``."""
        ...

    def read_all(self, table: str) -> list[Row]:
        """Return every row of the table, header first."""
        ...

    def row_count(self, table: str) -> int:
        """Return the number of rows including the header."""
        ...

    def read_row(self, table: str, position: int) -> Row:
        """Return the row at a 1-based position."""
        ...

    def write_row(self, table: str, position: int, values: Row) -> None:
        """Replace the row at a 1-based position."""
        ...

    def append_row(self, table: str, values: Row) -> int:
        """Append a row and return its position."""
        ...

    def delete_row(self, table: str, position: int) -> None:
        """Remove the row at a position, shifting later rows up by one."""
        ...

    def close(self) -> None:
        """Release any resources held by the backend."""
        ...
