"""Request-centric views built on top of the entity operations."""

from credstore.workflow.requests import OPEN_STATUSES, REQUEST_STATUSES, RequestDesk

__all__ = ["OPEN_STATUSES", "REQUEST_STATUSES", "RequestDesk"]
