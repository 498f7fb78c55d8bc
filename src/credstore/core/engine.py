"""Main CredStore facade and Entity handle."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from credstore.config import StoreSettings, get_database_url
from credstore.core.collaborators import (
    AuditLog,
    EnvIdentity,
    IdGenerator,
    Identity,
    LoggingAuditLog,
    StaticIdentity,
    UuidGenerator,
    record_audit,
)
from credstore.core.connection import DatabaseConnection
from credstore.core.types import AuditKind, ListOptions, OperationResult, Record
from credstore.data.cache import RowIndexCache, TableSnapshotCache
from credstore.data.service import EntityService
from credstore.schema.credentialing import SEARCH_FIELDS, credentialing_registry
from credstore.storage.adapter import StorageAdapter
from credstore.storage.memory import InMemoryBackend
from credstore.storage.sql import SqlSheetBackend

if TYPE_CHECKING:
    from credstore.schema.registry import SchemaRegistry
    from credstore.storage.base import StorageBackend

logger = logging.getLogger(__name__)


class Entity:
    """Operations bound to one entity.

    All methods return ``OperationResult`` objects; nothing raises for a
    missing record or a storage failure.
    """

    def __init__(self, name: str, store: CredStore) -> None:
        """Initialize entity.

        Args:
            name: Entity name
            store: Parent CredStore instance
        """
        self._name = name
        self._store = store

    @property
    def name(self) -> str:
        return self._name

    def create(
        self, data: dict[str, Any], defaults: dict[str, Any] | None = None
    ) -> OperationResult:
        """Create a record; see ``EntityService.create``."""
        return self._store.create_entity(self._name, data, defaults=defaults)

    def get(self, record_id: str) -> OperationResult:
        """Fetch a record with its child relations."""
        return self._store.get_entity_details(self._name, record_id)

    def find_by_id(self, record_id: str) -> Record | None:
        """Record with children, or None if it cannot be fetched."""
        result = self.get(record_id)
        return result.data if result.success else None

    def list(self, options: ListOptions | dict[str, Any] | None = None) -> OperationResult:
        """List records (filter, search, sort, paginate)."""
        return self._store.list_entities(self._name, options)

    def patch(self, record_id: str, partial: dict[str, Any]) -> OperationResult:
        """Update only the fields that changed."""
        return self._store.patch_entity(self._name, record_id, partial)

    def delete(self, record_id: str) -> OperationResult:
        """Delete a record and its child rows."""
        return self._store.delete_entity_cascade(self._name, record_id)


class CredStore:
    """Schema-driven tabular record store for credentialing data.

    Wires a storage backend, the schema registry, both caches and the entity
    service together. Tables are plain positional row stores; credstore adds
    primary-key lookup, parent/child resolution and cascading deletes on top.

    Example:
        store = CredStore("memory://", actor="ops@example.com")
        facility = store.create_entity("Facilities", {"name": "Acme Clinic"}).data
        store.create_entity(
            "FacilitySpecialties", {"facilityId": facility["id"], "taxonomyId": "T1"}
        )
        details = store.get_entity_details("Facilities", facility["id"]).data
        print(details["specialties"])
    """

    def __init__(
        self,
        url: str | None = None,
        *,
        settings: StoreSettings | None = None,
        registry: SchemaRegistry | None = None,
        backend: StorageBackend | None = None,
        identity: Identity | None = None,
        audit_log: AuditLog | None = None,
        id_generator: IdGenerator | None = None,
        actor: str | None = None,
        search_fields: dict[str, list[str]] | None = None,
    ) -> None:
        """Initialize CredStore.

        Args:
            url: Store URL (memory://, sqlite:///..., postgresql://...);
                overrides ``settings.database_url``
            settings: Runtime settings (defaults to ``StoreSettings()``)
            registry: Entity schemas (defaults to the credentialing schemas)
            backend: Pre-built storage backend; ``url`` is then ignored
            identity: Source of the current actor
            audit_log: Audit sink (defaults to the ``credstore.audit`` logger)
            id_generator: Primary key generator (defaults to uuid4)
            actor: Shortcut for a static identity with this email
            search_fields: Per-entity free-text search fields for listings
        """
        settings = settings or StoreSettings()
        if url is not None:
            settings = settings.model_copy(update={"database_url": url})
        if actor is not None:
            settings = settings.model_copy(update={"actor": actor})
        self._settings = settings

        self._backend = backend if backend is not None else self._create_backend(settings)
        self._registry = registry if registry is not None else credentialing_registry()
        self._adapter = StorageAdapter(self._backend)
        self._row_index = RowIndexCache(self._adapter)
        self._snapshots = TableSnapshotCache(
            self._adapter, ttl_seconds=settings.snapshot_ttl_seconds
        )
        self._identity = identity or (
            StaticIdentity(settings.actor) if settings.actor else EnvIdentity()
        )
        self._audit_log = audit_log or LoggingAuditLog()
        self._search_fields = dict(SEARCH_FIELDS if search_fields is None else search_fields)
        self._service = EntityService(
            registry=self._registry,
            adapter=self._adapter,
            row_index=self._row_index,
            snapshots=self._snapshots,
            identity=self._identity,
            audit_log=self._audit_log,
            id_generator=id_generator or UuidGenerator(),
            default_page_size=settings.default_page_size,
            page_sizes=settings.page_sizes,
        )
        self._entities: dict[str, Entity] = {}

        if settings.create_tables:
            self.ensure_tables()

    @staticmethod
    def _create_backend(settings: StoreSettings) -> StorageBackend:
        url = get_database_url(settings.database_url)
        if url.startswith("memory"):
            return InMemoryBackend()
        return SqlSheetBackend(DatabaseConnection(url, echo=settings.echo))

    # === Components ===

    @property
    def settings(self) -> StoreSettings:
        return self._settings

    @property
    def registry(self) -> SchemaRegistry:
        return self._registry

    @property
    def adapter(self) -> StorageAdapter:
        return self._adapter

    @property
    def service(self) -> EntityService:
        return self._service

    @property
    def row_index(self) -> RowIndexCache:
        return self._row_index

    @property
    def snapshots(self) -> TableSnapshotCache:
        return self._snapshots

    @property
    def audit_log(self) -> AuditLog:
        return self._audit_log

    def close(self) -> None:
        """Release the backend and drop cached state."""
        self._row_index.clear()
        self._snapshots.clear()
        self._backend.close()

    def __enter__(self) -> CredStore:
        return self

    def __exit__(self, exc_type: object, exc_val: object, exc_tb: object) -> None:
        self.close()

    # === Schema ===

    def ensure_tables(self) -> list[str]:
        """Create missing tables and verify existing headers.

        Returns:
            Names of the tables that were created

        Raises:
            StorageError: If an existing table's header differs from its schema
        """
        created = [
            schema.table
            for schema in self._registry
            if self._adapter.ensure_table(schema.table, list(schema.columns))
        ]
        if created:
            logger.info(f"Created tables: {', '.join(created)}")
            record_audit(
                self._audit_log, AuditKind.SYSTEM, "Created tables", {"tables": created}
            )
        return created

    def describe(self) -> dict[str, Any]:
        """Registered schemas as a JSON-serializable dict."""
        return self._registry.describe()

    def entity_names(self) -> list[str]:
        return self._registry.names()

    def entity(self, name: str) -> Entity:
        """Get an entity handle.

        Raises:
            SchemaNotFoundError: If no entity or table has this name
        """
        schema = self._registry.require(name)
        if schema.name not in self._entities:
            self._entities[schema.name] = Entity(schema.name, self)
        return self._entities[schema.name]

    # === Entity operations ===

    def create_entity(
        self,
        entity_type: str,
        data: dict[str, Any],
        defaults: dict[str, Any] | None = None,
    ) -> OperationResult:
        return self._service.create(entity_type, data, defaults)

    def get_entity_details(self, entity_type: str, record_id: str) -> OperationResult:
        return self._service.fetch_with_children(entity_type, record_id)

    def list_entities(
        self,
        entity_type: str,
        options: ListOptions | dict[str, Any] | None = None,
    ) -> OperationResult:
        """List records of an entity.

        ``options`` may be a ``ListOptions`` or a dict using either
        snake_case or camelCase keys. Search fields default to the entity's
        configured search fields, or all of its fields when none are configured.
        """
        if options is None:
            options = ListOptions()
        elif isinstance(options, dict):
            options = ListOptions.model_validate(options)
        if not options.search_fields:
            schema = self._registry.resolve(entity_type)
            fields = self._search_fields.get(schema.name if schema else entity_type) or (
                list(schema.fields) if schema else []
            )
            options = options.model_copy(update={"search_fields": list(fields)})
        return self._service.list(entity_type, options)

    def patch_entity(
        self, entity_type: str, record_id: str, partial: dict[str, Any]
    ) -> OperationResult:
        return self._service.patch(entity_type, record_id, partial)

    def delete_entity_cascade(self, entity_type: str, record_id: str) -> OperationResult:
        return self._service.cascade_delete(entity_type, record_id)
