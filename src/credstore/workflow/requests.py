"""Credentialing request desk.

Read-heavy views over the Requests table. Owner names are resolved against the
Users directory from the snapshot cache, so a listing costs one decoded read
per table no matter how many requests it returns.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from credstore.core.collaborators import record_audit
from credstore.core.types import AuditKind, ListOptions, OperationResult
from credstore.exceptions import CredStoreError, InvalidValueError, RecordNotFoundError
from credstore.query.engine import count_by, list_records
from credstore.schema.credentialing import SEARCH_FIELDS

if TYPE_CHECKING:
    from credstore.core.engine import CredStore

logger = logging.getLogger(__name__)

REQUESTS = "Requests"
USERS = "Users"
COMMENTS = "RequestComments"

REQUEST_STATUSES = ("New", "In Progress", "Pending Info", "Approved", "Denied", "Closed")
OPEN_STATUSES = ("New", "In Progress", "Pending Info")


class RequestDesk:
    """Listing, dashboards and status changes for credentialing requests."""

    def __init__(self, store: CredStore) -> None:
        self._store = store

    def _owner_directory(self) -> dict[str, str]:
        users = self._store.registry.require(USERS)
        snapshot = self._store.snapshots.get(users)
        return {
            str(user.get("email", "")).strip().lower(): str(user.get("name", ""))
            for user in snapshot.rows
        }

    def _requests_with_owners(self) -> tuple[list[dict[str, Any]], list[dict[str, Any]]]:
        schema = self._store.registry.require(REQUESTS)
        snapshot = self._store.snapshots.get(schema)
        try:
            directory = self._owner_directory()
        except CredStoreError as e:
            logger.warning(f"User directory unavailable, owner names left blank: {e}")
            directory = {}
        records = snapshot.records()
        for record in records:
            owner = str(record.get("ownerEmail", "")).strip().lower()
            record["ownerName"] = directory.get(owner, "")
        return records, list(snapshot.skipped)

    def _fail(self, operation: str, error: Exception) -> OperationResult:
        result = OperationResult.from_error(error)
        logger.error(f"{operation} failed: {error}")
        record_audit(
            self._store.audit_log,
            AuditKind.ERROR,
            f"{operation} failed: {error}",
            {"operation": operation, "error": result.error},
        )
        return result

    def list_requests(self, options: ListOptions | dict[str, Any] | None = None) -> OperationResult:
        """List requests joined with their owner's name ("ownerName")."""
        if options is None:
            options = ListOptions()
        elif isinstance(options, dict):
            options = ListOptions.model_validate(options)
        if not options.search_fields:
            options = options.model_copy(update={"search_fields": SEARCH_FIELDS[REQUESTS]})

        try:
            records, skipped = self._requests_with_owners()
        except CredStoreError as e:
            return self._fail("list requests", e)

        result = list_records(
            records, options, default_page_size=self._store.service.page_size_for(REQUESTS)
        )
        result.skipped = skipped
        return OperationResult.ok(result.model_dump())

    def status_counts(self, owner_email: str | None = None) -> OperationResult:
        """Number of requests per status, optionally for one owner."""
        try:
            records, _ = self._requests_with_owners()
        except CredStoreError as e:
            return self._fail("request status counts", e)

        if owner_email:
            wanted = owner_email.strip().lower()
            records = [r for r in records if str(r.get("ownerEmail", "")).lower() == wanted]
        counts = {status: 0 for status in REQUEST_STATUSES}
        counts.update(count_by(records, "status"))
        return OperationResult.ok(
            {
                "counts": counts,
                "open": sum(counts.get(status, 0) for status in OPEN_STATUSES),
                "total": len(records),
            }
        )

    def transition(self, request_id: str, status: str, note: str | None = None) -> OperationResult:
        """Move a request to a new status, optionally leaving a comment."""
        if status not in REQUEST_STATUSES:
            return self._fail("transition", InvalidValueError("status", status, REQUEST_STATUSES))

        result = self._store.patch_entity(REQUESTS, request_id, {"status": status})
        if not result.success or not note:
            return result

        comment = self.add_comment(request_id, note)
        if not comment.success:
            return comment
        return result

    def add_comment(self, request_id: str, body: str) -> OperationResult:
        """Attach a comment to an existing request."""
        schema = self._store.registry.require(REQUESTS)
        try:
            position = self._store.row_index.lookup(schema.table, schema.key_index, request_id)
        except CredStoreError as e:
            return self._fail("add comment", e)
        if position is None:
            return self._fail("add comment", RecordNotFoundError(str(request_id), REQUESTS))
        return self._store.create_entity(COMMENTS, {"requestId": request_id, "body": body})
