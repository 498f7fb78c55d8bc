"""Process-wide coherent caches over the storage adapter.

``RowIndexCache`` maps a key column's values to 1-based row positions so a
record can be located without scanning its table. ``TableSnapshotCache`` keeps
fully decoded tables for a short time for read-heavy joins and listings.

Both caches subscribe to the adapter and drop a table's entries as soon as it
is mutated. They also remember the table version an entry was built at and
rebuild on mismatch. Versions are shared by every adapter in the process, so
an entry can never outlive a write made by any store in this process. Writes
made by other processes are only seen after an entry is invalidated or (for
snapshots) expires.
"""

from __future__ import annotations

import copy
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from credstore.data.codec import decode_row
from credstore.exceptions import DecodeError

if TYPE_CHECKING:
    from credstore.schema.models import EntitySchema
    from credstore.storage.adapter import StorageAdapter

logger = logging.getLogger(__name__)


@dataclass
class _IndexEntry:
    version: int
    positions: dict[str, int]


class RowIndexCache:
    """Lazily built key -> row position maps, one per (table, key column)."""

    def __init__(self, adapter: StorageAdapter) -> None:
        self._adapter = adapter
        self._entries: dict[tuple[str, int], _IndexEntry] = {}
        self.builds = 0
        adapter.subscribe(self._invalidate_identity)

    def get(self, table: str, key_column_index: int) -> dict[str, int]:
        """Return the key -> position map of a table, rebuilding it if stale."""
        identity = self._adapter.identity(table)
        version = self._adapter.version(table)
        entry = self._entries.get((identity, key_column_index))
        if entry is None or entry.version != version:
            entry = _IndexEntry(version=version, positions=self._build(table, key_column_index))
            self._entries[(identity, key_column_index)] = entry
        return entry.positions

    def lookup(self, table: str, key_column_index: int, key: Any) -> int | None:
        """Row position of ``key``, or None if no row has it."""
        return self.get(table, key_column_index).get(str(key))

    def _build(self, table: str, key_column_index: int) -> dict[str, int]:
        rows = self._adapter.read_all(table)
        positions: dict[str, int] = {}
        for position, row in enumerate(rows[1:], start=2):
            if key_column_index >= len(row):
                continue
            key = str(row[key_column_index])
            if key:
                # Duplicate keys: first occurrence wins
                positions.setdefault(key, position)
        self.builds += 1
        logger.debug(
            f"Built row index for '{table}' column {key_column_index}: {len(positions)} keys"
        )
        return positions

    def invalidate(self, table: str) -> None:
        self._invalidate_identity(self._adapter.identity(table))

    def _invalidate_identity(self, identity: str) -> None:
        for key in [key for key in self._entries if key[0] == identity]:
            del self._entries[key]

    def clear(self) -> None:
        self._entries.clear()


@dataclass
class TableSnapshot:
    """A decoded copy of a whole table."""

    table: str
    version: int
    loaded_at: float
    rows: list[dict[str, Any]] = field(default_factory=list)
    skipped: list[dict[str, Any]] = field(default_factory=list)

    def records(self) -> list[dict[str, Any]]:
        """Copies of the decoded records, safe for callers to mutate."""
        return copy.deepcopy(self.rows)


class TableSnapshotCache:
    """Short-TTL cache of fully decoded tables."""

    def __init__(
        self,
        adapter: StorageAdapter,
        ttl_seconds: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._adapter = adapter
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[str, TableSnapshot] = {}
        self.loads = 0
        adapter.subscribe(self._invalidate_identity)

    def get(self, schema: EntitySchema) -> TableSnapshot:
        """Decoded snapshot of ``schema``'s table.

        Rows that fail to decode are left out of ``rows`` and reported in
        ``skipped`` instead of failing the whole snapshot.
        """
        identity = self._adapter.identity(schema.table)
        version = self._adapter.version(schema.table)
        snapshot = self._entries.get(identity)
        now = self._clock()
        if (
            snapshot is not None
            and snapshot.version == version
            and now - snapshot.loaded_at < self._ttl
        ):
            return snapshot

        snapshot = self._load(schema, version, now)
        self._entries[identity] = snapshot
        return snapshot

    def _load(self, schema: EntitySchema, version: int, now: float) -> TableSnapshot:
        raw_rows = self._adapter.read_all(schema.table)
        snapshot = TableSnapshot(table=schema.table, version=version, loaded_at=now)
        for position, raw_row in enumerate(raw_rows[1:], start=2):
            try:
                snapshot.rows.append(decode_row(raw_row, schema.columns, position))
            except DecodeError as e:
                logger.warning(f"Skipping undecodable row in '{schema.table}': {e}")
                snapshot.skipped.append(e.to_dict())
        self.loads += 1
        return snapshot

    def invalidate(self, table: str) -> None:
        self._invalidate_identity(self._adapter.identity(table))

    def _invalidate_identity(self, identity: str) -> None:
        self._entries.pop(identity, None)

    def clear(self) -> None:
        self._entries.clear()
