"""Table storage for credstore: backends and the validating adapter."""

from credstore.storage.adapter import StorageAdapter
from credstore.storage.base import Row, StorageBackend, WriteReceipt
from credstore.storage.memory import InMemoryBackend
from credstore.storage.sql import SqlSheetBackend

__all__ = [
    "StorageAdapter",
    "StorageBackend",
    "WriteReceipt",
    "Row",
    "InMemoryBackend",
    "SqlSheetBackend",
]
