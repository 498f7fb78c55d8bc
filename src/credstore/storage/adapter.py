"""Storage adapter: the single read/write path to backing tables.

The adapter adds three things on top of a raw ``StorageBackend``:

- row width validation against the table header,
- a per-table version counter that increases on every mutation,
- synchronous invalidation of subscribed caches before a mutation returns.

Versions are shared by every adapter in the process and keyed by the physical
identity of a table, so a write through one adapter invalidates the caches of
every other adapter open on the same store before it returns. A write made by
another process is not observed until the local caches are invalidated or
expire.
"""

from __future__ import annotations

import logging
import threading
import weakref
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any

from credstore.exceptions import StorageError
from credstore.storage.base import Row, StorageBackend, WriteReceipt

logger = logging.getLogger(__name__)

InvalidationListener = Callable[[str], None]

# Table identity -> version, shared across adapters
_table_versions: dict[str, int] = {}
_live_adapters: weakref.WeakSet[StorageAdapter] = weakref.WeakSet()
_registry_lock = threading.Lock()


class StorageAdapter:
    """Validated, versioned access to the tables of one backend."""

    HEADER_POSITION = 1

    def __init__(self, backend: StorageBackend) -> None:
        self._backend = backend
        self._listeners: list[InvalidationListener] = []
        with _registry_lock:
            _live_adapters.add(self)

    @property
    def backend(self) -> StorageBackend:
        return self._backend

    def identity(self, table: str) -> str:
        """Physical identity of a table; caches key on this, never on the bare name."""
        return f"{self._backend.identity}/{table}"

    def version(self, table: str) -> int:
        """Current version of a table (0 until its first mutation in this process)."""
        return _table_versions.get(self.identity(table), 0)

    def subscribe(self, listener: InvalidationListener) -> None:
        """Register a callback invoked with the table identity after each mutation."""
        self._listeners.append(listener)

    @contextmanager
    def _io(self, table: str, action: str) -> Iterator[None]:
        try:
            yield
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to {action} '{table}': {e}", table=table) from e

    def _notify(self, key: str) -> None:
        for listener in self._listeners:
            listener(key)

    def _mutated(self, table: str, rows_affected: int = 1) -> WriteReceipt:
        key = self.identity(table)
        with _registry_lock:
            version = _table_versions.get(key, 0) + 1
            _table_versions[key] = version
            peers = [
                adapter
                for adapter in _live_adapters
                if adapter._backend.identity == self._backend.identity
            ]
        for adapter in peers:
            adapter._notify(key)
        return WriteReceipt(table=table, version=version, rows_affected=rows_affected)

    def _check_data_position(self, table: str, position: int) -> None:
        if position <= self.HEADER_POSITION:
            raise StorageError(
                f"Position {position} is not a data row of '{table}' (data rows start at 2)",
                table=table,
                position=position,
            )

    def _check_width(self, table: str, values: Row) -> None:
        width = len(self.header(table))
        if len(values) != width:
            raise StorageError(
                f"Row width {len(values)} does not match the {width} columns of '{table}'",
                table=table,
                expected=width,
                actual=len(values),
            )

    # === Table lifecycle ===

    def table_exists(self, table: str) -> bool:
        with self._io(table, "inspect"):
            return self._backend.table_exists(table)

    def ensure_table(self, table: str, columns: list[str]) -> bool:
        """Create a table with the given header, or verify an existing header.

        Returns:
            True if the table was created

        Raises:
            StorageError: If an existing header differs from ``columns``
        """
        if self.table_exists(table):
            header = [str(cell) for cell in self.header(table)]
            if header != list(columns):
                raise StorageError(
                    f"Header of '{table}' does not match its declared columns",
                    table=table,
                    expected=list(columns),
                    actual=header,
                )
            return False

        with self._io(table, "create"):
            self._backend.create_table(table, list(columns))
        self._mutated(table)
        return True

    # === Reads ===

    def header(self, table: str) -> Row:
        with self._io(table, "read header of"):
            return self._backend.read_row(table, self.HEADER_POSITION)

    def read_all(self, table: str) -> list[Row]:
        """Return all rows of the table, header first."""
        with self._io(table, "read"):
            return self._backend.read_all(table)

    def row_count(self, table: str) -> int:
        with self._io(table, "count rows of"):
            return self._backend.row_count(table)

    def read_row_range(self, table: str, position: int, width: int) -> Row:
        """Read ``width`` cells of the row at ``position`` (short rows are padded with "")."""
        with self._io(table, "read row of"):
            row = self._backend.read_row(table, position)
        cells = list(row[:width])
        cells.extend("" for _ in range(width - len(cells)))
        return cells

    # === Mutations ===

    def append(self, table: str, row: Row) -> WriteReceipt:
        """Append one row at the end of the table."""
        self._check_width(table, row)
        with self._io(table, "append to"):
            position = self._backend.append_row(table, list(row))
        logger.debug(f"Appended row {position} to '{table}'")
        return self._mutated(table)

    def write_row_range(self, table: str, position: int, values: Row) -> WriteReceipt:
        """Overwrite the data row at ``position``."""
        self._check_data_position(table, position)
        self._check_width(table, values)
        with self._io(table, "write row of"):
            self._backend.write_row(table, position, list(values))
        logger.debug(f"Rewrote row {position} of '{table}'")
        return self._mutated(table)

    def delete_row(self, table: str, position: int) -> WriteReceipt:
        """Delete the data row at ``position``; later rows shift up by one."""
        self._check_data_position(table, position)
        with self._io(table, "delete row of"):
            self._backend.delete_row(table, position)
        logger.debug(f"Deleted row {position} of '{table}'")
        return self._mutated(table)

    def delete_rows_where(self, table: str, column_index: int, value: Any) -> WriteReceipt:
        """Delete every data row whose cell at ``column_index`` equals ``value``.

        Matching positions are collected first and deleted from the bottom up,
        so earlier deletions never shift a pending position.
        """
        target = str(value)
        rows = self.read_all(table)
        positions = [
            index
            for index, row in enumerate(rows[1:], start=self.HEADER_POSITION + 1)
            if column_index < len(row) and str(row[column_index]) == target
        ]

        try:
            with self._io(table, "delete rows of"):
                for position in sorted(positions, reverse=True):
                    self._backend.delete_row(table, position)
        finally:
            # Even a partial bulk delete has shifted rows
            receipt = self._mutated(table, rows_affected=len(positions))

        if positions:
            logger.debug(
                f"Deleted {len(positions)} rows of '{table}' "
                f"where column {column_index} = {target!r}"
            )
        return receipt
