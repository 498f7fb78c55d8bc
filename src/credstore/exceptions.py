"""Custom exceptions for credstore.

Errors carry a human-readable message plus a context dict so that callers
(CLI, HTTP handlers, audit sinks) can render them without string parsing.
"""

from __future__ import annotations

from typing import Any


class CredStoreError(Exception):
    """Base exception for all credstore errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        """Return error as JSON-serializable dict."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
        }


class ConnectionError(CredStoreError):
    """Failed to connect to the backing store."""

    pass


class SchemaNotFoundError(CredStoreError):
    """No schema is registered under the given entity or table name."""

    def __init__(self, entity_name: str, available_entities: list[str] | None = None) -> None:
        available = available_entities or []
        if available:
            message = (
                f"Entity '{entity_name}' not found. Available entities: {', '.join(available)}"
            )
        else:
            message = f"Entity '{entity_name}' not found. No entities are registered."

        super().__init__(message, {"entity_name": entity_name, "available_entities": available})
        self.entity_name = entity_name
        self.available_entities = available


class SchemaDefinitionError(CredStoreError):
    """A schema declaration is inconsistent (missing key column, bad relation, ...)."""

    def __init__(self, entity_name: str, reason: str) -> None:
        message = f"Invalid schema for '{entity_name}': {reason}"
        super().__init__(message, {"entity_name": entity_name, "reason": reason})
        self.entity_name = entity_name
        self.reason = reason


class RecordNotFoundError(CredStoreError):
    """Record with given ID does not exist."""

    def __init__(self, record_id: str, entity_name: str) -> None:
        message = f"Record '{record_id}' not found in '{entity_name}'."
        super().__init__(message, {"record_id": record_id, "entity_name": entity_name})
        self.record_id = record_id
        self.entity_name = entity_name


class DecodeError(CredStoreError):
    """A stored cell could not be decoded (malformed JSON)."""

    def __init__(self, column: str, row_number: int | None, detail: str) -> None:
        where = f"row {row_number}" if row_number is not None else "unknown row"
        message = f"Cannot decode column '{column}' at {where}: {detail}"
        super().__init__(message, {"column": column, "row": row_number, "detail": detail})
        self.column = column
        self.row_number = row_number


class StorageError(CredStoreError):
    """Storage adapter I/O failure or row shape mismatch."""

    def __init__(self, message: str, table: str | None = None, **context: Any) -> None:
        super().__init__(message, {"table": table, **context})
        self.table = table


class UnauthorizedError(CredStoreError):
    """A write path requires an authenticated actor and none is available."""

    def __init__(self, operation: str, entity_name: str) -> None:
        message = (
            f"Cannot {operation} '{entity_name}' without an authenticated actor. "
            "Configure an identity (e.g. set CREDSTORE_ACTOR)."
        )
        super().__init__(message, {"operation": operation, "entity_name": entity_name})
        self.operation = operation
        self.entity_name = entity_name


class InvalidValueError(CredStoreError):
    """A field was given a value outside its allowed set."""

    def __init__(self, field: str, value: Any, valid: tuple[str, ...] | list[str]) -> None:
        message = f"Invalid {field} '{value}'. Valid: {', '.join(valid)}"
        super().__init__(message, {"field": field, "value": value, "valid": list(valid)})
        self.field = field
        self.value = value
