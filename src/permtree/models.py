"""Collaborator-supplied data contracts.

The topology (databases -> tables carrying a schema name) and the group list
are read-only inputs to the permission tree. These are Pydantic models so
payloads from the metadata and group endpoints validate on the way in.
"""

from __future__ import annotations

from typing import Any, Optional, Union

from pydantic import BaseModel, Field

# Ids are whatever the upstream endpoints use; they are never renumbered.
EntityKey = Union[int, str]

NO_SCHEMA = ""


class Table(BaseModel):
    """A table as seen by the permission tree."""

    model_config = {"populate_by_name": True, "frozen": True}

    id: EntityKey
    display_name: str = ""
    schema_name: Optional[str] = Field(default=None, alias="schema")

    @property
    def schema_key(self) -> str:
        """Schema name with ``None`` mapped to the no-schema sentinel."""
        return self.schema_name or NO_SCHEMA


class Database(BaseModel):
    """A database and its tables."""

    model_config = {"frozen": True}

    id: EntityKey
    name: str = ""
    tables: tuple[Table, ...] = ()

    def schema_names(self) -> list[str]:
        """Distinct schema names in table order; ``""`` for tables without one."""
        names: list[str] = []
        for table in self.tables:
            if table.schema_key not in names:
                names.append(table.schema_key)
        return names

    def tables_in_schema(self, schema_name: Optional[str]) -> list[Table]:
        key = schema_name or NO_SCHEMA
        return [table for table in self.tables if table.schema_key == key]

    def table(self, table_id: EntityKey) -> Optional[Table]:
        for table in self.tables:
            if table.id == table_id:
                return table
        return None


class Topology(BaseModel):
    """Read-only database/schema/table hierarchy."""

    model_config = {"frozen": True}

    databases: tuple[Database, ...] = ()

    @classmethod
    def from_payload(cls, payload: Any) -> "Topology":
        """Accept either ``{"databases": [...]}`` or a bare list of databases."""
        if isinstance(payload, dict):
            return cls.model_validate(payload)
        return cls.model_validate({"databases": list(payload)})

    def database(self, database_id: EntityKey) -> Optional[Database]:
        for database in self.databases:
            if database.id == database_id:
                return database
        return None

    def schema_names_of(self, database_id: EntityKey) -> list[str]:
        database = self.database(database_id)
        return database.schema_names() if database else []

    def table_ids_of(self, database_id: EntityKey, schema_name: Optional[str]) -> list[EntityKey]:
        database = self.database(database_id)
        if database is None:
            return []
        return [table.id for table in database.tables_in_schema(schema_name)]


class Group(BaseModel):
    """A named collection of users sharing one permission set."""

    model_config = {"frozen": True}

    id: EntityKey
    name: str
    editable: bool = True


__all__ = [
    "NO_SCHEMA",
    "Database",
    "EntityKey",
    "Group",
    "Table",
    "Topology",
]
