"""Core types shared across credstore.

All result types are JSON-serializable so they can cross a process or HTTP
boundary unchanged.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel

from credstore.exceptions import (
    CredStoreError,
    DecodeError,
    InvalidValueError,
    RecordNotFoundError,
    SchemaNotFoundError,
    StorageError,
    UnauthorizedError,
)

Record = dict[str, Any]


class ErrorKind(StrEnum):
    """Failure categories reported by entity operations."""

    SCHEMA_NOT_FOUND = "schema_not_found"
    NOT_FOUND = "not_found"
    DECODE_ERROR = "decode_error"
    STORAGE_ERROR = "storage_error"
    UNAUTHORIZED = "unauthorized"
    INVALID_VALUE = "invalid_value"
    INTERNAL = "internal"

    @classmethod
    def from_exception(cls, error: Exception) -> ErrorKind:
        """Map an exception to the error kind reported to callers."""
        if isinstance(error, SchemaNotFoundError):
            return cls.SCHEMA_NOT_FOUND
        if isinstance(error, RecordNotFoundError):
            return cls.NOT_FOUND
        if isinstance(error, DecodeError):
            return cls.DECODE_ERROR
        if isinstance(error, StorageError):
            return cls.STORAGE_ERROR
        if isinstance(error, UnauthorizedError):
            return cls.UNAUTHORIZED
        if isinstance(error, InvalidValueError):
            return cls.INVALID_VALUE
        return cls.INTERNAL


class AuditKind(StrEnum):
    """Audit event categories."""

    REQUEST = "Request"
    SYSTEM = "System"
    ERROR = "Error"
    WARNING = "Warning"


class Actor(BaseModel):
    """The authenticated user performing an operation."""

    email: str = ""

    model_config = {"frozen": True}


class OperationResult(BaseModel):
    """Uniform result shape returned by every entity operation."""

    success: bool
    data: Any = None
    message: str | None = None
    error: ErrorKind | None = None
    context: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def ok(cls, data: Any = None, message: str | None = None) -> OperationResult:
        return cls(success=True, data=data, message=message)

    @classmethod
    def fail(
        cls,
        error: ErrorKind,
        message: str,
        context: dict[str, Any] | None = None,
    ) -> OperationResult:
        return cls(success=False, error=error, message=message, context=context or {})

    @classmethod
    def from_error(cls, error: Exception) -> OperationResult:
        """Build a failure result from an exception caught at an operation boundary."""
        context = error.context if isinstance(error, CredStoreError) else {}
        return cls.fail(ErrorKind.from_exception(error), str(error), context)

    def to_dict(self) -> dict[str, Any]:
        """Return the result as a plain dict, omitting unset fields."""
        return self.model_dump(mode="json", exclude_none=True)


class ListOptions(BaseModel):
    """Options for in-memory listing (filter, search, sort, paginate)."""

    search_term: str | None = None
    search_fields: list[str] = Field(
        default_factory=list, description="Fields matched by free-text search"
    )
    filters: dict[str, Any] = Field(
        default_factory=dict,
        description="field -> expected value or list of values (comma-separated for status fields)",
    )
    sort_by: str | None = None
    sort_order: Literal["asc", "desc"] = "asc"
    page: int | None = None
    page_size: int | None = None
    date_fields: list[str] = Field(
        default_factory=list, description="Fields compared as timestamps when sorting"
    )

    # Accepts both search_term and searchTerm style keys
    model_config = {"alias_generator": to_camel, "populate_by_name": True}

    @field_validator("sort_order", mode="before")
    @classmethod
    def _normalize_sort_order(cls, value: Any) -> Any:
        if value is None:
            return "asc"
        return str(value).strip().lower()


class ListResult(BaseModel):
    """A page of records plus the filtered (unpaginated) total."""

    data: list[Record]
    total_records: int
    page: int = 1
    page_size: int = 15
    skipped: list[dict[str, Any]] = Field(
        default_factory=list, description="Rows skipped because they failed to decode"
    )
