"""Shared test fixtures for CredStore."""

from collections.abc import Generator
from itertools import count

import pytest

from credstore import CredStore, MemoryAuditLog
from credstore.storage import InMemoryBackend, StorageAdapter

ACTOR = "ops@example.com"


class SequentialIds:
    """Predictable ids ("id-1", "id-2", ...) for assertions."""

    def __init__(self, prefix: str = "id") -> None:
        self._prefix = prefix
        self._counter = count(1)

    def new_id(self) -> str:
        return f"{self._prefix}-{next(self._counter)}"


@pytest.fixture(autouse=True)
def _no_ambient_actor(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's CREDSTORE_* environment out of the tests."""
    for variable in (
        "CREDSTORE_ACTOR",
        "CREDSTORE_URL",
        "CREDSTORE_ECHO",
        "CREDSTORE_SNAPSHOT_TTL",
        "CREDSTORE_PAGE_SIZE",
        "CREDSTORE_PAGE_SIZES",
        "CREDSTORE_CREATE_TABLES",
    ):
        monkeypatch.delenv(variable, raising=False)


@pytest.fixture
def audit() -> MemoryAuditLog:
    return MemoryAuditLog()


@pytest.fixture
def store(audit: MemoryAuditLog) -> Generator[CredStore, None, None]:
    """CredStore on an in-memory backend with a known actor."""
    instance = CredStore(
        "memory://",
        actor=ACTOR,
        audit_log=audit,
        id_generator=SequentialIds(),
    )
    yield instance
    instance.close()


@pytest.fixture
def sqlite_store(audit: MemoryAuditLog) -> Generator[CredStore, None, None]:
    """CredStore persisting rows in SQLite in-memory."""
    instance = CredStore(
        "sqlite:///:memory:",
        actor=ACTOR,
        audit_log=audit,
        id_generator=SequentialIds(),
    )
    yield instance
    instance.close()


@pytest.fixture(params=["memory", "sqlite"])
def any_store(request: pytest.FixtureRequest) -> CredStore:
    """Runs a test against both backends."""
    return request.getfixturevalue("store" if request.param == "memory" else "sqlite_store")


@pytest.fixture
def adapter() -> StorageAdapter:
    """Adapter over a fresh in-memory backend with a three-column table."""
    instance = StorageAdapter(InMemoryBackend())
    instance.ensure_table("People", ["ID", "Name", "Team ID"])
    return instance
