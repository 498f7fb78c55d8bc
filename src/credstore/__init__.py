"""CredStore - schema-driven record store for provider credentialing data.

Tables are plain positional row stores (an in-memory grid or rows persisted
through SQLAlchemy). Each table's first row is its header; entity schemas map
"Header Case" columns to camelCase record fields and declare parent/child
relations. CredStore adds primary-key lookup, child resolution, change-only
patches and cascading deletes on top, and reports every outcome as an
``OperationResult`` instead of raising.

Example:
    from credstore import CredStore

    store = CredStore("memory://", actor="ops@example.com")

    facility = store.create_entity("Facilities", {"name": "Acme Clinic"}).data
    store.create_entity(
        "FacilitySpecialties",
        {"facilityId": facility["id"], "taxonomyId": "207Q00000X"},
    )

    details = store.get_entity_details("Facilities", facility["id"])
    print(details.data["specialties"])

    store.patch_entity("Facilities", facility["id"], {"status": "Active"})
    store.delete_entity_cascade("Facilities", facility["id"])
"""

from credstore.config import StoreSettings
from credstore.core.collaborators import (
    AuditEvent,
    EnvIdentity,
    LoggingAuditLog,
    MemoryAuditLog,
    StaticIdentity,
    UuidGenerator,
)
from credstore.core.engine import CredStore, Entity
from credstore.core.types import (
    Actor,
    AuditKind,
    ErrorKind,
    ListOptions,
    ListResult,
    OperationResult,
    Record,
)
from credstore.exceptions import (
    ConnectionError,
    CredStoreError,
    DecodeError,
    InvalidValueError,
    RecordNotFoundError,
    SchemaDefinitionError,
    SchemaNotFoundError,
    StorageError,
    UnauthorizedError,
)
from credstore.schema import ChildRelation, EntitySchema, SchemaRegistry, credentialing_registry
from credstore.storage import InMemoryBackend, SqlSheetBackend, StorageAdapter
from credstore.workflow import RequestDesk

__version__ = "0.1.0"

__all__ = [
    # Main classes
    "CredStore",
    "Entity",
    "RequestDesk",
    "StoreSettings",
    # Types
    "Actor",
    "AuditKind",
    "ErrorKind",
    "ListOptions",
    "ListResult",
    "OperationResult",
    "Record",
    # Schemas
    "ChildRelation",
    "EntitySchema",
    "SchemaRegistry",
    "credentialing_registry",
    # Storage
    "StorageAdapter",
    "InMemoryBackend",
    "SqlSheetBackend",
    # Collaborators
    "AuditEvent",
    "EnvIdentity",
    "LoggingAuditLog",
    "MemoryAuditLog",
    "StaticIdentity",
    "UuidGenerator",
    # Exceptions
    "CredStoreError",
    "ConnectionError",
    "SchemaNotFoundError",
    "SchemaDefinitionError",
    "RecordNotFoundError",
    "DecodeError",
    "InvalidValueError",
    "StorageError",
    "UnauthorizedError",
]
