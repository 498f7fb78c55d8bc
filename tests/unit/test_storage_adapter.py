"""Tests for the storage adapter and the in-memory backend."""

import pytest

from credstore.exceptions import StorageError
from credstore.storage import InMemoryBackend, StorageAdapter


class TestTables:
    """Table creation and header checks."""

    def test_ensure_table_creates_once(self) -> None:
        adapter = StorageAdapter(InMemoryBackend())
        assert adapter.ensure_table("T", ["ID", "Name"]) is True
        assert adapter.ensure_table("T", ["ID", "Name"]) is False
        assert adapter.header("T") == ["ID", "Name"]
        assert adapter.row_count("T") == 1

    def test_header_mismatch(self, adapter: StorageAdapter) -> None:
        with pytest.raises(StorageError, match="does not match"):
            adapter.ensure_table("People", ["ID", "Name"])

    def test_missing_table(self, adapter: StorageAdapter) -> None:
        assert not adapter.table_exists("Nope")
        with pytest.raises(StorageError):
            adapter.read_all("Nope")

    def test_identity_is_per_backend(self) -> None:
        first = StorageAdapter(InMemoryBackend())
        second = StorageAdapter(InMemoryBackend())
        assert first.identity("T") != second.identity("T")
        assert first.identity("T").endswith("/T")


class TestRows:
    """Positional reads and writes."""

    def test_append_and_read(self, adapter: StorageAdapter) -> None:
        adapter.append("People", ["p1", "Ann", "t1"])
        adapter.append("People", ["p2", "Bob", "t1"])
        assert adapter.read_all("People") == [
            ["ID", "Name", "Team ID"],
            ["p1", "Ann", "t1"],
            ["p2", "Bob", "t1"],
        ]
        assert adapter.read_row_range("People", 3, 3) == ["p2", "Bob", "t1"]

    def test_read_row_range_pads(self, adapter: StorageAdapter) -> None:
        adapter.backend.append_row("People", ["p1"])
        assert adapter.read_row_range("People", 2, 3) == ["p1", "", ""]

    def test_width_mismatch_rejected(self, adapter: StorageAdapter) -> None:
        with pytest.raises(StorageError, match="width"):
            adapter.append("People", ["p1", "Ann"])
        adapter.append("People", ["p1", "Ann", "t1"])
        with pytest.raises(StorageError, match="width"):
            adapter.write_row_range("People", 2, ["p1", "Ann", "t1", "extra"])

    def test_header_is_not_writable(self, adapter: StorageAdapter) -> None:
        with pytest.raises(StorageError, match="not a data row"):
            adapter.write_row_range("People", 1, ["a", "b", "c"])
        with pytest.raises(StorageError, match="not a data row"):
            adapter.delete_row("People", 1)

    def test_delete_shifts_rows_up(self, adapter: StorageAdapter) -> None:
        for key in ("p1", "p2", "p3"):
            adapter.append("People", [key, key.upper(), "t1"])
        adapter.delete_row("People", 2)
        assert [row[0] for row in adapter.read_all("People")[1:]] == ["p2", "p3"]

    def test_rows_are_copied(self, adapter: StorageAdapter) -> None:
        row = ["p1", "Ann", "t1"]
        adapter.append("People", row)
        row[1] = "Changed"
        adapter.read_all("People")[1][1] = "Changed again"
        assert adapter.read_row_range("People", 2, 3)[1] == "Ann"


class TestVersions:
    """Version counters and invalidation listeners."""

    def test_every_mutation_bumps_version(self, adapter: StorageAdapter) -> None:
        start = adapter.version("People")
        r1 = adapter.append("People", ["p1", "Ann", "t1"])
        r2 = adapter.write_row_range("People", 2, ["p1", "Anne", "t1"])
        r3 = adapter.delete_row("People", 2)
        assert [r1.version, r2.version, r3.version] == [start + 1, start + 2, start + 3]
        assert adapter.version("People") == start + 3

    def test_reads_do_not_bump_version(self, adapter: StorageAdapter) -> None:
        version = adapter.version("People")
        adapter.read_all("People")
        adapter.header("People")
        assert adapter.version("People") == version

    def test_listeners_notified_with_identity(self, adapter: StorageAdapter) -> None:
        seen: list[str] = []
        adapter.subscribe(seen.append)
        adapter.append("People", ["p1", "Ann", "t1"])
        assert seen == [adapter.identity("People")]

    def test_failed_write_does_not_bump_version(self, adapter: StorageAdapter) -> None:
        version = adapter.version("People")
        with pytest.raises(StorageError):
            adapter.write_row_range("People", 9, ["p9", "X", "t1"])
        assert adapter.version("People") == version


class TestDeleteRowsWhere:
    """Bulk deletion by column value."""

    def test_deletes_all_matches(self, adapter: StorageAdapter) -> None:
        rows = [["p1", "A", "t1"], ["p2", "B", "t2"], ["p3", "C", "t1"], ["p4", "D", "t1"]]
        for row in rows:
            adapter.append("People", row)
        receipt = adapter.delete_rows_where("People", 2, "t1")
        assert receipt.rows_affected == 3
        assert adapter.read_all("People")[1:] == [["p2", "B", "t2"]]

    def test_deletes_bottom_up(self) -> None:
        deleted: list[int] = []

        class RecordingBackend(InMemoryBackend):
            def delete_row(self, table: str, position: int) -> None:
                deleted.append(position)
                super().delete_row(table, position)

        adapter = StorageAdapter(RecordingBackend())
        adapter.ensure_table("People", ["ID", "Name", "Team ID"])
        for key, team in (("p1", "t1"), ("p2", "t2"), ("p3", "t1"), ("p4", "t1")):
            adapter.append("People", [key, key, team])
        adapter.delete_rows_where("People", 2, "t1")
        assert deleted == [5, 4, 2]

    def test_no_matches(self, adapter: StorageAdapter) -> None:
        adapter.append("People", ["p1", "A", "t1"])
        receipt = adapter.delete_rows_where("People", 2, "zzz")
        assert receipt.rows_affected == 0
        assert adapter.row_count("People") == 2

    def test_partial_failure_still_bumps_version(self) -> None:
        class FailingBackend(InMemoryBackend):
            calls = 0

            def delete_row(self, table: str, position: int) -> None:
                FailingBackend.calls += 1
                if FailingBackend.calls == 2:
                    raise OSError("disk gone")
                super().delete_row(table, position)

        adapter = StorageAdapter(FailingBackend())
        adapter.ensure_table("People", ["ID", "Name", "Team ID"])
        for key in ("p1", "p2", "p3"):
            adapter.append("People", [key, key, "t1"])
        version = adapter.version("People")
        with pytest.raises(StorageError, match="disk gone"):
            adapter.delete_rows_where("People", 2, "t1")
        assert adapter.version("People") == version + 1
