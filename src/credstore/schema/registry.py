"""Schema registry.

An immutable collection of ``EntitySchema`` objects, validated as a whole when
it is constructed (unique names and tables, resolvable child relations). The
registry is injected into the services that need it; there is no global one.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from types import MappingProxyType
from typing import Any

from pydantic import ValidationError

from credstore.exceptions import SchemaDefinitionError, SchemaNotFoundError
from credstore.schema.models import EntitySchema

logger = logging.getLogger(__name__)


class SchemaRegistry:
    """Read-only map of entity name -> schema."""

    def __init__(self, schemas: Iterable[EntitySchema | dict[str, Any]]) -> None:
        """Build and validate the registry.

        Args:
            schemas: Schemas, or dicts accepted by ``EntitySchema``

        Raises:
            SchemaDefinitionError: If any schema or relation is inconsistent
        """
        by_name: dict[str, EntitySchema] = {}
        by_table: dict[str, EntitySchema] = {}
        for item in schemas:
            schema = self._coerce(item)
            if schema.name in by_name:
                raise SchemaDefinitionError(schema.name, "entity is declared twice")
            if schema.table in by_table:
                raise SchemaDefinitionError(
                    schema.name,
                    f"table '{schema.table}' is already used by '{by_table[schema.table].name}'",
                )
            by_name[schema.name] = schema
            by_table[schema.table] = schema

        self._schemas = MappingProxyType(by_name)
        self._tables = MappingProxyType(by_table)
        self._validate_relations()

    @staticmethod
    def _coerce(item: EntitySchema | dict[str, Any]) -> EntitySchema:
        if isinstance(item, EntitySchema):
            return item
        try:
            return EntitySchema.model_validate(item)
        except ValidationError as e:
            name = item.get("name", "<unnamed>") if isinstance(item, dict) else "<unnamed>"
            raise SchemaDefinitionError(str(name), str(e)) from e

    def _validate_relations(self) -> None:
        for schema in self._schemas.values():
            for child in schema.children:
                target = self._schemas.get(child.child_entity)
                if target is None:
                    raise SchemaDefinitionError(
                        schema.name,
                        f"child relation '{child.key}' targets unknown entity "
                        f"'{child.child_entity}'",
                    )
                if child.parent_id_column not in target.columns:
                    raise SchemaDefinitionError(
                        schema.name,
                        f"child relation '{child.key}' links on '{child.parent_id_column}', "
                        f"which is not a column of '{target.name}'",
                    )

    def __iter__(self) -> Iterator[EntitySchema]:
        return iter(self._schemas.values())

    def __len__(self) -> int:
        return len(self._schemas)

    def __contains__(self, name: object) -> bool:
        return name in self._schemas

    def names(self) -> list[str]:
        return sorted(self._schemas)

    def get(self, name: str) -> EntitySchema | None:
        """Schema registered under an entity name, or None."""
        return self._schemas.get(name)

    def resolve(self, name: str) -> EntitySchema | None:
        """Schema by entity name, falling back to table name."""
        return self._schemas.get(name) or self._tables.get(name)

    def require(self, name: str) -> EntitySchema:
        """Like ``resolve`` but raises when nothing matches.

        Raises:
            SchemaNotFoundError: If no entity or table has this name
        """
        schema = self.resolve(name)
        if schema is None:
            raise SchemaNotFoundError(name, self.names())
        return schema

    def parents_of(self, entity_name: str) -> list[tuple[EntitySchema, str]]:
        """(parent schema, child key) pairs whose relations point at ``entity_name``."""
        return [
            (schema, child.key)
            for schema in self._schemas.values()
            for child in schema.children
            if child.child_entity == entity_name
        ]

    def describe(self) -> dict[str, Any]:
        return {
            "entities": {name: self._schemas[name].to_dict() for name in self.names()},
            "total_entities": len(self._schemas),
        }
