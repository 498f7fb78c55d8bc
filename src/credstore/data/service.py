"""Schema-driven entity service: create, fetch with children, patch, cascade delete.

Every public operation returns an ``OperationResult``; exceptions never escape
an operation. Failures are logged and recorded as ``Error`` audit events.

Operations are atomic only per positional write. ``patch`` locates, reads and
rewrites a row without any lock, so concurrent patches of one row can lose an
update. ``cascade_delete`` removes the parent first and then each child
relation independently; an interruption can leave orphaned children.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from credstore.core.clock import utc_now_iso
from credstore.core.collaborators import record_audit
from credstore.core.types import AuditKind, ListOptions, OperationResult, Record
from credstore.data.codec import (
    decode_cell,
    decode_row,
    encode_cell,
    encode_record,
    field_to_column,
    values_equal,
)
from credstore.exceptions import (
    CredStoreError,
    DecodeError,
    RecordNotFoundError,
    StorageError,
    UnauthorizedError,
)
from credstore.query.engine import DEFAULT_PAGE_SIZE, list_records

if TYPE_CHECKING:
    from credstore.core.collaborators import AuditLog, IdGenerator, Identity
    from credstore.data.cache import RowIndexCache, TableSnapshotCache
    from credstore.schema.models import ChildRelation, EntitySchema
    from credstore.schema.registry import SchemaRegistry
    from credstore.storage.adapter import StorageAdapter
    from credstore.storage.base import Row

logger = logging.getLogger(__name__)

CREATED_AT = "createdAt"
CREATED_BY = "createdBy"
UPDATED_AT = "updatedAt"
UPDATED_BY = "updatedBy"

NO_CHANGES = "No changes detected"


class EntityService:
    """Generic CRUD over the tables declared in a ``SchemaRegistry``."""

    def __init__(
        self,
        registry: SchemaRegistry,
        adapter: StorageAdapter,
        row_index: RowIndexCache,
        snapshots: TableSnapshotCache,
        identity: Identity,
        audit_log: AuditLog,
        id_generator: IdGenerator,
        default_page_size: int = DEFAULT_PAGE_SIZE,
        page_sizes: dict[str, int] | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            registry: Schemas of all entities
            adapter: Storage adapter for every table
            row_index: Key -> row position cache
            snapshots: Decoded table cache used for children and listings
            identity: Source of the current actor
            audit_log: Audit sink
            id_generator: Primary key generator for new records
            default_page_size: Page size when a listing does not ask for one
            page_sizes: Per-entity page size defaults (e.g. {"Requests": 25})
        """
        self._registry = registry
        self._adapter = adapter
        self._row_index = row_index
        self._snapshots = snapshots
        self._identity = identity
        self._audit_log = audit_log
        self._id_generator = id_generator
        self._default_page_size = default_page_size
        self._page_sizes = dict(page_sizes or {})

    @property
    def registry(self) -> SchemaRegistry:
        return self._registry

    # === Operation plumbing ===

    def _run(
        self,
        operation: str,
        entity_name: str,
        func: Callable[[], OperationResult],
    ) -> OperationResult:
        try:
            return func()
        except CredStoreError as e:
            return self._fail(operation, entity_name, e)
        except Exception as e:
            logger.exception(f"Unexpected error during {operation} on '{entity_name}'")
            return self._fail(operation, entity_name, e)

    def _fail(self, operation: str, entity_name: str, error: Exception) -> OperationResult:
        result = OperationResult.from_error(error)
        logger.error(f"{operation} on '{entity_name}' failed: {error}")
        record_audit(
            self._audit_log,
            AuditKind.ERROR,
            f"{operation} {entity_name} failed: {error}",
            {
                "operation": operation,
                "entity": entity_name,
                "error": result.error,
                **result.context,
            },
        )
        return result

    def _actor_email(self, schema: EntitySchema, operation: str) -> str:
        actor = self._identity.current()
        email = actor.email if actor else ""
        if schema.require_actor and not email:
            raise UnauthorizedError(operation, schema.name)
        return email

    def _locate(self, schema: EntitySchema, record_id: Any) -> tuple[int, Row] | None:
        """Find the row position and raw cells of a record, or None.

        A cached position whose row no longer holds the key (the table was
        changed outside this process) triggers one index rebuild.
        """
        width = len(schema.columns)
        key = str(record_id)
        for _ in range(2):
            position = self._row_index.lookup(schema.table, schema.key_index, key)
            if position is None:
                return None
            raw = self._adapter.read_row_range(schema.table, position, width)
            if str(raw[schema.key_index]) == key:
                return position, raw
            logger.warning(
                f"Row index for '{schema.table}' is stale (row {position} no longer holds {key!r})"
            )
            self._row_index.invalidate(schema.table)
        return None

    # === Create ===

    def create(
        self,
        entity_name: str,
        data: dict[str, Any],
        defaults: dict[str, Any] | None = None,
    ) -> OperationResult:
        """Append a new record.

        A primary key is generated when ``data`` lacks one. Fields missing from
        ``data`` take the value in ``defaults``, else "".

        Returns:
            Result whose data is the stored record
        """
        return self._run("create", entity_name, lambda: self._create(entity_name, data, defaults))

    def _create(
        self,
        entity_name: str,
        data: dict[str, Any],
        defaults: dict[str, Any] | None,
    ) -> OperationResult:
        schema = self._registry.require(entity_name)
        actor = self._actor_email(schema, "create")
        record = dict(data)

        key_field = schema.primary_field
        key = record.get(key_field)
        if key is None or not str(key).strip():
            record[key_field] = self._id_generator.new_id()
        elif self._row_index.lookup(schema.table, schema.key_index, key) is not None:
            raise StorageError(
                f"{schema.name} record '{key}' already exists",
                table=schema.table,
                record_id=str(key),
            )

        now = utc_now_iso()
        for field, value in (
            (CREATED_AT, now),
            (CREATED_BY, actor),
            (UPDATED_AT, now),
            (UPDATED_BY, actor),
        ):
            if schema.has_field(field) and not record.get(field):
                record[field] = value

        row = encode_record(record, schema.columns, defaults)
        receipt = self._adapter.append(schema.table, row)
        stored = decode_row(row, schema.columns)

        logger.info(f"Created {schema.name} {stored[key_field]} (v{receipt.version})")
        record_audit(
            self._audit_log,
            AuditKind.REQUEST,
            f"Create {schema.name}",
            {"entity": schema.name, "id": stored[key_field], "actor": actor},
        )
        return OperationResult.ok(stored, message=f"{schema.name} created")

    # === Read ===

    def fetch_with_children(self, entity_name: str, record_id: Any) -> OperationResult:
        """Fetch one record and populate every declared child relation.

        A child relation that cannot be read yields ``[]`` for its key; it
        never fails the fetch.
        """
        return self._run(
            "fetch", entity_name, lambda: self._fetch_with_children(entity_name, record_id)
        )

    def _fetch_with_children(self, entity_name: str, record_id: Any) -> OperationResult:
        schema = self._registry.require(entity_name)
        key = str(record_id)

        rows = self._adapter.read_all(schema.table)
        record: Record | None = None
        for position, raw in enumerate(rows[1:], start=2):
            if schema.key_index < len(raw) and str(raw[schema.key_index]) == key:
                record = decode_row(raw, schema.columns, position)
                break
        if record is None:
            return self._fail("fetch", schema.name, RecordNotFoundError(key, schema.name))

        for child in schema.children:
            record[child.key] = self._children_of(schema, child, key)
        return OperationResult.ok(record)

    def _children_of(self, parent: EntitySchema, child: ChildRelation, parent_id: str) -> list:
        try:
            child_schema = self._registry.require(child.child_entity)
            parent_field = child.parent_id_field
            return [
                record
                for record in self._snapshots.get(child_schema).records()
                if str(record.get(parent_field, "")) == parent_id
            ]
        except Exception as e:
            logger.warning(f"Could not load '{child.key}' of {parent.name} {parent_id}: {e}")
            record_audit(
                self._audit_log,
                AuditKind.WARNING,
                f"Child relation '{child.key}' of {parent.name} unavailable: {e}",
                {"entity": parent.name, "id": parent_id, "relation": child.key},
            )
            return []

    def list(self, entity_name: str, options: ListOptions | None = None) -> OperationResult:
        """List records of an entity through the query engine.

        Returns:
            Result whose data is a ``ListResult`` dict (data, total_records,
            page, page_size, skipped)
        """
        return self._run("list", entity_name, lambda: self._list(entity_name, options))

    def _list(self, entity_name: str, options: ListOptions | None) -> OperationResult:
        schema = self._registry.require(entity_name)
        snapshot = self._snapshots.get(schema)
        result = list_records(
            snapshot.records(),
            options,
            default_page_size=self.page_size_for(schema.name),
        )
        result.skipped = list(snapshot.skipped)
        return OperationResult.ok(result.model_dump())

    def page_size_for(self, entity_name: str) -> int:
        return self._page_sizes.get(entity_name, self._default_page_size)

    # === Patch ===

    def patch(self, name: str, record_id: Any, partial: dict[str, Any]) -> OperationResult:
        """Update the fields of ``partial`` whose value differs from storage.

        ``name`` may be an entity name or a table name. The primary key, child
        keys and unknown fields are ignored. When nothing differs the row is not
        written and no audit event is recorded.
        """
        return self._run("patch", name, lambda: self._patch(name, record_id, partial))

    def _patch(self, name: str, record_id: Any, partial: dict[str, Any]) -> OperationResult:
        schema = self._registry.require(name)
        actor = self._actor_email(schema, "update")
        key = str(record_id)

        located = self._locate(schema, key)
        if located is None:
            return self._fail("patch", schema.name, RecordNotFoundError(key, schema.name))
        position, current = located

        width = len(schema.columns)
        header = [str(cell) for cell in self._adapter.read_row_range(schema.table, 1, width)]
        column_index = {column: index for index, column in enumerate(header)}
        skip = {schema.primary_field, *(child.key for child in schema.children)}

        updated = list(current)
        changed: list[str] = []
        for field, value in partial.items():
            if field in skip:
                continue
            column = field_to_column(schema, field)
            if column is None:
                logger.debug(f"Ignoring unknown field '{field}' for {schema.name}")
                continue
            index = column_index.get(column)
            if index is None:
                raise StorageError(
                    f"Column '{column}' is missing from the header of '{schema.table}'",
                    table=schema.table,
                    column=column,
                )
            try:
                unchanged = values_equal(decode_cell(current[index], column, position), value)
            except DecodeError:
                unchanged = False
            if unchanged:
                continue
            updated[index] = encode_cell(value, column)
            changed.append(field)

        if not changed:
            return OperationResult.ok({"id": key, "changed": []}, message=NO_CHANGES)

        for field, value in ((UPDATED_AT, utc_now_iso()), (UPDATED_BY, actor)):
            column = field_to_column(schema, field)
            if column is not None and field not in changed and column in column_index:
                updated[column_index[column]] = encode_cell(value, column)

        receipt = self._adapter.write_row_range(schema.table, position, updated)
        logger.info(f"Updated {schema.name} {key}: {', '.join(changed)} (v{receipt.version})")
        record_audit(
            self._audit_log,
            AuditKind.REQUEST,
            f"Update {schema.name}",
            {"entity": schema.name, "id": key, "fields": changed, "actor": actor},
        )
        return OperationResult.ok(
            {"id": key, "changed": changed},
            message=f"Updated {len(changed)} field(s)",
        )

    # === Delete ===

    def cascade_delete(self, entity_name: str, record_id: Any) -> OperationResult:
        """Delete a record and, best effort, the rows of every child relation.

        A failing child relation is logged and audited as a warning; the
        remaining relations are still processed and the result is a success.
        """
        return self._run(
            "delete", entity_name, lambda: self._cascade_delete(entity_name, record_id)
        )

    def _cascade_delete(self, entity_name: str, record_id: Any) -> OperationResult:
        schema = self._registry.require(entity_name)
        actor = self._actor_email(schema, "delete")
        key = str(record_id)

        located = self._locate(schema, key)
        if located is None:
            return self._fail("delete", schema.name, RecordNotFoundError(key, schema.name))
        position, _ = located
        self._adapter.delete_row(schema.table, position)

        deleted: dict[str, int] = {}
        failed: list[str] = []
        for child in schema.children:
            try:
                child_schema = self._registry.require(child.child_entity)
                receipt = self._adapter.delete_rows_where(
                    child_schema.table,
                    child_schema.column_index(child.parent_id_column),
                    key,
                )
                deleted[child.key] = receipt.rows_affected
            except Exception as e:
                failed.append(child.key)
                logger.warning(f"Cascade of '{child.key}' for {schema.name} {key} failed: {e}")
                record_audit(
                    self._audit_log,
                    AuditKind.WARNING,
                    f"Cascade delete of '{child.key}' failed: {e}",
                    {"entity": schema.name, "id": key, "relation": child.key},
                )

        self._row_index.invalidate(schema.table)
        logger.info(f"Deleted {schema.name} {key} with children {deleted}")
        record_audit(
            self._audit_log,
            AuditKind.REQUEST,
            f"Delete {schema.name}",
            {"entity": schema.name, "id": key, "children": deleted, "actor": actor},
        )
        return OperationResult.ok(
            {"id": key, "deleted_children": deleted, "failed_relations": failed},
            message=f"{schema.name} deleted",
        )
