"""Time helpers."""

from __future__ import annotations

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Get current UTC timestamp."""
    return datetime.now(UTC)


def utc_now_iso() -> str:
    """Current UTC timestamp as an ISO-8601 string."""
    return utc_now().isoformat()
