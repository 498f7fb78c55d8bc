"""Collaborators the entity service calls out to.

Identity lookup, audit logging and id generation are owned by the host
application; credstore only depends on these small protocols. Default
implementations cover the CLI and tests.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime
from typing import Any, Protocol
from uuid import uuid4

from pydantic import BaseModel, Field

from credstore.core.clock import utc_now
from credstore.core.types import Actor, AuditKind

logger = logging.getLogger(__name__)
audit_logger = logging.getLogger("credstore.audit")


class Identity(Protocol):
    """Source of the current actor."""

    def current(self) -> Actor | None: ...


class AuditLog(Protocol):
    """Sink for audit events. Implementations may raise; callers never propagate."""

    def record(self, kind: AuditKind, message: str, context: dict[str, Any]) -> None: ...


class IdGenerator(Protocol):
    """Produces globally unique opaque identifiers."""

    def new_id(self) -> str: ...


class StaticIdentity:
    """Always reports the same actor (or none when email is empty)."""

    def __init__(self, email: str | None = None) -> None:
        self._actor = Actor(email=email) if email else None

    def current(self) -> Actor | None:
        return self._actor


class EnvIdentity:
    """Reads the actor email from an environment variable on every call."""

    def __init__(self, variable: str = "CREDSTORE_ACTOR") -> None:
        self._variable = variable

    def current(self) -> Actor | None:
        email = os.getenv(self._variable, "").strip()
        return Actor(email=email) if email else None


class UuidGenerator:
    """uuid4-based identifiers."""

    def new_id(self) -> str:
        return str(uuid4())


class AuditEvent(BaseModel):
    """One recorded audit event."""

    kind: AuditKind
    message: str
    context: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=utc_now)


_LEVELS = {
    AuditKind.REQUEST: logging.INFO,
    AuditKind.SYSTEM: logging.INFO,
    AuditKind.WARNING: logging.WARNING,
    AuditKind.ERROR: logging.ERROR,
}


class LoggingAuditLog:
    """Writes audit events to the ``credstore.audit`` logger."""

    def record(self, kind: AuditKind, message: str, context: dict[str, Any]) -> None:
        audit_logger.log(_LEVELS.get(kind, logging.INFO), f"[{kind}] {message} {context}")


class MemoryAuditLog:
    """Keeps audit events in a list (tests, diagnostics)."""

    def __init__(self) -> None:
        self.events: list[AuditEvent] = []

    def record(self, kind: AuditKind, message: str, context: dict[str, Any]) -> None:
        self.events.append(AuditEvent(kind=kind, message=message, context=dict(context)))

    def of_kind(self, kind: AuditKind) -> list[AuditEvent]:
        return [event for event in self.events if event.kind == kind]

    def clear(self) -> None:
        self.events.clear()


def record_audit(
    audit_log: AuditLog,
    kind: AuditKind,
    message: str,
    context: dict[str, Any] | None = None,
) -> None:
    """Record an audit event; a failing sink is logged and otherwise ignored."""
    try:
        audit_log.record(kind, message, context or {})
    except Exception:
        logger.exception(f"Audit log failed while recording {kind} event: {message}")
