"""Core components for credstore."""

from credstore.core.connection import DatabaseConnection
from credstore.core.types import (
    Actor,
    AuditKind,
    ErrorKind,
    ListOptions,
    ListResult,
    OperationResult,
    Record,
)

__all__ = [
    "DatabaseConnection",
    "Actor",
    "AuditKind",
    "ErrorKind",
    "ListOptions",
    "ListResult",
    "OperationResult",
    "Record",
]
