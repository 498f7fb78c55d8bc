"""Entity schemas and the schema registry."""

from credstore.schema.credentialing import CREDENTIALING_SCHEMAS, credentialing_registry
from credstore.schema.models import ChildRelation, EntitySchema
from credstore.schema.registry import SchemaRegistry

__all__ = [
    "ChildRelation",
    "EntitySchema",
    "SchemaRegistry",
    "CREDENTIALING_SCHEMAS",
    "credentialing_registry",
]
