"""Declarative entity schemas.

A schema binds an entity name to a physical table and its ordered column list.
Schemas are frozen pydantic models: they are built once at startup and never
mutated afterwards.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, model_validator

from credstore.data.codec import column_to_field, is_json_column


class ChildRelation(BaseModel):
    """One-to-many link from a parent entity to rows of a child entity."""

    key: str = Field(..., description="Field populated with the child rows (e.g. 'specialties')")
    child_entity: str = Field(..., description="Entity name of the child rows")
    parent_id_column: str = Field(
        ..., description="Child column holding the parent's primary key (e.g. 'Facility ID')"
    )

    model_config = {"frozen": True}

    @property
    def parent_id_field(self) -> str:
        return column_to_field(self.parent_id_column)


class EntitySchema(BaseModel):
    """Schema of one entity: table, ordered columns, key and child relations."""

    name: str
    table: str
    columns: tuple[str, ...]
    primary_key: str = "ID"
    children: tuple[ChildRelation, ...] = ()
    require_actor: bool = Field(
        default=False, description="Writes fail with Unauthorized when no actor is known"
    )
    description: str | None = None

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_columns(self) -> EntitySchema:
        if not self.columns:
            raise ValueError(f"'{self.name}' declares no columns")
        if self.primary_key not in self.columns:
            raise ValueError(
                f"primary key column '{self.primary_key}' is not one of the columns "
                f"of '{self.name}'"
            )
        if len(set(self.columns)) != len(self.columns):
            raise ValueError(f"'{self.name}' declares duplicate columns")
        fields = [column_to_field(column) for column in self.columns]
        if len(set(fields)) != len(fields):
            raise ValueError(f"columns of '{self.name}' map to duplicate field names")
        keys = [child.key for child in self.children]
        if len(set(keys)) != len(keys):
            raise ValueError(f"'{self.name}' declares duplicate child keys")
        clashing = set(keys) & set(fields)
        if clashing:
            raise ValueError(f"child keys {sorted(clashing)} clash with fields of '{self.name}'")
        return self

    @property
    def fields(self) -> list[str]:
        """Field identifiers in column order."""
        return [column_to_field(column) for column in self.columns]

    @property
    def primary_field(self) -> str:
        return column_to_field(self.primary_key)

    @property
    def key_index(self) -> int:
        """0-based index of the primary key column."""
        return self.columns.index(self.primary_key)

    @property
    def json_columns(self) -> list[str]:
        return [column for column in self.columns if is_json_column(column)]

    def column_index(self, column: str) -> int:
        return self.columns.index(column)

    def has_field(self, field: str) -> bool:
        return field in self.fields

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "table": self.table,
            "primary_key": self.primary_key,
            "columns": [
                {"column": column, "field": column_to_field(column), "json": is_json_column(column)}
                for column in self.columns
            ],
            "children": [child.model_dump() for child in self.children],
            "require_actor": self.require_actor,
            "description": self.description,
        }
