"""Render-agnostic permission grids.

A grid is a matrix at one scope level:

- ``database``: rows are databases, columns ``native`` and ``schemas``;
- ``schema``: rows are the schemas of one database, column ``tables``;
- ``table``: rows are the tables of one schema, column ``fields``.

Each row × group cell carries its resolved value, the transitions currently
allowed and whether the group may be edited. Updating a cell goes through the
column's updater; navigation the update asks for (e.g. "open the schema list
after switching to controlled") comes back as a :class:`GridLocation` rather
than being performed here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Hashable, Iterable, Optional, Union
from urllib.parse import quote

from pydantic import BaseModel

from ..exceptions import InvalidTransitionError, MalformedPathError
from ..models import NO_SCHEMA, Database, EntityKey, Group, Topology
from .access import get_fields_access, get_native_access, get_schemas_access, get_tables_access
from .constants import PERMISSION_TYPES, Access, PermissionType
from .tree import PermissionsState
from .updaters import (
    allowed_options,
    update_fields_permission,
    update_native_permission,
    update_schemas_permission,
    update_tables_permission,
)

logger = logging.getLogger(__name__)

ADMIN_PERMISSIONS_PATH = "/admin/permissions/databases"


class GridType:
    """Scope level of a grid."""

    DATABASE = "database"
    SCHEMA = "schema"
    TABLE = "table"


class GridLocation(BaseModel):
    """Where a grid lives: all databases, one database's schemas, or one schema's tables."""

    model_config = {"frozen": True}

    database_id: Optional[EntityKey] = None
    schema_name: Optional[str] = None

    @property
    def grid_type(self) -> str:
        if self.database_id is None:
            return GridType.DATABASE
        if self.schema_name is None:
            return GridType.SCHEMA
        return GridType.TABLE

    @property
    def path(self) -> str:
        """Admin route for this location.

        Tables of the no-schema sentinel get their own route since an empty
        path segment cannot be routed.
        """
        if self.database_id is None:
            return ADMIN_PERMISSIONS_PATH
        base = f"{ADMIN_PERMISSIONS_PATH}/{self.database_id}"
        if self.schema_name is None:
            return f"{base}/schemas"
        if self.schema_name == NO_SCHEMA:
            return f"{base}/tables"
        return f"{base}/schemas/{quote(self.schema_name, safe='')}/tables"


class EntityId(BaseModel):
    """Identifies a grid row."""

    model_config = {"frozen": True}

    database_id: EntityKey
    schema_name: Optional[str] = None
    table_id: Optional[EntityKey] = None


class EntityLink(BaseModel):
    model_config = {"frozen": True}

    name: str
    location: GridLocation


class GridEntity(BaseModel):
    """A grid row header."""

    model_config = {"frozen": True}

    id: EntityId
    name: str
    link: Optional[EntityLink] = None


class GridCell(BaseModel):
    """One permission of one row for one group."""

    model_config = {"frozen": True}

    value: str
    options: tuple[str, ...]
    editable: bool


# (state, group_id, entity_id, value) -> state
Updater = Callable[[PermissionsState, Hashable, EntityId, Any], PermissionsState]
# (group_id, entity_id, value) -> location to navigate to, if any
PostAction = Callable[[Hashable, EntityId, Any], Optional[GridLocation]]


class PermissionColumn:
    """A permission column of a grid and how to write it.

    Args:
        name: Permission identifier (see :class:`PermissionType`).
        updater: Applies a new value to a state.
        post_action: Optional navigation request after an update.
    """

    __slots__ = ("name", "header", "option_titles", "updater", "post_action")

    def __init__(
        self,
        *,
        name: str,
        updater: Updater,
        post_action: Optional[PostAction] = None,
    ) -> None:
        self.name = name
        self.header = PERMISSION_TYPES[name]["header"]
        self.option_titles = PERMISSION_TYPES[name]["options"]
        self.updater = updater
        self.post_action = post_action

    def __repr__(self) -> str:
        return f"PermissionColumn(name={self.name!r})"


@dataclass(frozen=True)
class GridUpdate:
    """Result of updating a cell."""

    state: PermissionsState
    post_action: Optional[GridLocation] = None


class PermissionsGrid:
    """Matrix of entities × groups at one scope level.

    Attributes:
        type: One of :class:`GridType`.
        location: The location this grid was built for.
        groups: Column groups, in order.
        permissions: Permission columns by name, in display order.
        entities: Row headers.
        data: ``data[row][column]`` maps permission name to :class:`GridCell`.
    """

    def __init__(
        self,
        *,
        type: str,
        location: GridLocation,
        groups: list[Group],
        permissions: dict[str, PermissionColumn],
        entities: list[GridEntity],
        data: list[list[dict[str, GridCell]]],
    ) -> None:
        self.type = type
        self.location = location
        self.groups = groups
        self.permissions = permissions
        self.entities = entities
        self.data = data

    def cell(self, entity_id: Union[EntityId, dict[str, Any]], group_id: Hashable, permission: str) -> GridCell:
        """Look up a cell by row id, group id and permission name."""
        row = self._row_index(EntityId.model_validate(entity_id))
        column = self._group_index(group_id)
        try:
            return self.data[row][column][permission]
        except KeyError:
            raise InvalidTransitionError(
                f"No {permission!r} permission in a {self.type} grid",
                permission=permission,
            )

    def update(
        self,
        state: PermissionsState,
        group_id: Hashable,
        entity_id: Union[EntityId, dict[str, Any]],
        permission: str,
        value: Any,
    ) -> GridUpdate:
        """Apply a new value to one cell.

        Raises:
            MalformedPathError: Unknown group or row.
            InvalidTransitionError: Non-editable group, unknown column, or
                a value outside the cell's options.
        """
        entity_id = EntityId.model_validate(entity_id)
        self._row_index(entity_id)
        group = self.groups[self._group_index(group_id)]
        if not group.editable:
            raise InvalidTransitionError(
                f"Permissions of group {group.name!r} cannot be edited",
                group_id=group.id,
            )
        column = self.permissions.get(permission)
        if column is None:
            raise InvalidTransitionError(
                f"No {permission!r} permission in a {self.type} grid",
                permission=permission,
            )

        new_state = column.updater(state, group.id, entity_id, value)
        post_action = column.post_action(group.id, entity_id, value) if column.post_action else None
        logger.info(
            "Updated %s permission for group %s on %s to %s",
            permission,
            group.id,
            entity_id.model_dump(exclude_none=True),
            getattr(value, "value", value),
        )
        return GridUpdate(state=new_state, post_action=post_action)

    def _row_index(self, entity_id: EntityId) -> int:
        for index, entity in enumerate(self.entities):
            if entity.id == entity_id:
                return index
        raise MalformedPathError(f"No row {entity_id.model_dump()!r} in a {self.type} grid")

    def _group_index(self, group_id: Hashable) -> int:
        for index, group in enumerate(self.groups):
            if group.id == group_id:
                return index
        raise MalformedPathError(f"Unknown group {group_id!r}", group_id=group_id)

    def __repr__(self) -> str:
        return f"PermissionsGrid(type={self.type!r}, rows={len(self.entities)}, groups={len(self.groups)})"


# ── Builders ───────────────────────────────────────────


def _cells(
    values: dict[str, str],
    state: PermissionsState,
    group: Group,
    database_id: Hashable,
) -> dict[str, GridCell]:
    return {
        permission: GridCell(
            value=value,
            options=allowed_options(permission, state, group.id, database_id),
            editable=group.editable,
        )
        for permission, value in values.items()
    }


def _database_grid(groups: list[Group], topology: Topology, state: PermissionsState) -> PermissionsGrid:
    def native_updater(perms, group_id, entity_id, value):
        return update_native_permission(perms, group_id, entity_id.database_id, value, topology)

    def schemas_updater(perms, group_id, entity_id, value):
        return update_schemas_permission(perms, group_id, entity_id.database_id, value, topology)

    def schemas_post_action(group_id, entity_id, value):
        if getattr(value, "value", value) == Access.CONTROLLED.value:
            return GridLocation(database_id=entity_id.database_id)
        return None

    entities = []
    data = []
    for database in topology.databases:
        schema_names = database.schema_names()
        if len(schema_names) == 1:
            link = EntityLink(
                name="View tables",
                location=GridLocation(database_id=database.id, schema_name=schema_names[0]),
            )
        else:
            link = EntityLink(name="View schemas", location=GridLocation(database_id=database.id))
        entities.append(GridEntity(id=EntityId(database_id=database.id), name=database.name, link=link))
        data.append(
            [
                _cells(
                    {
                        PermissionType.NATIVE: get_native_access(state, group.id, database.id).value,
                        PermissionType.SCHEMAS: get_schemas_access(state, group.id, database.id).value,
                    },
                    state,
                    group,
                    database.id,
                )
                for group in groups
            ]
        )

    return PermissionsGrid(
        type=GridType.DATABASE,
        location=GridLocation(),
        groups=groups,
        permissions={
            PermissionType.NATIVE: PermissionColumn(name=PermissionType.NATIVE, updater=native_updater),
            PermissionType.SCHEMAS: PermissionColumn(
                name=PermissionType.SCHEMAS,
                updater=schemas_updater,
                post_action=schemas_post_action,
            ),
        },
        entities=entities,
        data=data,
    )


def _schema_grid(
    groups: list[Group],
    topology: Topology,
    state: PermissionsState,
    database: Database,
) -> PermissionsGrid:
    def tables_updater(perms, group_id, entity_id, value):
        return update_tables_permission(perms, group_id, entity_id.database_id, entity_id.schema_name, value, topology)

    def tables_post_action(group_id, entity_id, value):
        if getattr(value, "value", value) == Access.CONTROLLED.value:
            return GridLocation(database_id=entity_id.database_id, schema_name=entity_id.schema_name)
        return None

    schema_names = database.schema_names()
    return PermissionsGrid(
        type=GridType.SCHEMA,
        location=GridLocation(database_id=database.id),
        groups=groups,
        permissions={
            PermissionType.TABLES: PermissionColumn(
                name=PermissionType.TABLES,
                updater=tables_updater,
                post_action=tables_post_action,
            ),
        },
        entities=[
            GridEntity(
                id=EntityId(database_id=database.id, schema_name=schema_name),
                name=schema_name,
                link=EntityLink(
                    name="View tables",
                    location=GridLocation(database_id=database.id, schema_name=schema_name),
                ),
            )
            for schema_name in schema_names
        ],
        data=[
            [
                _cells(
                    {PermissionType.TABLES: get_tables_access(state, group.id, database.id, schema_name).value},
                    state,
                    group,
                    database.id,
                )
                for group in groups
            ]
            for schema_name in schema_names
        ],
    )


def _table_grid(
    groups: list[Group],
    topology: Topology,
    state: PermissionsState,
    database: Database,
    schema_name: str,
) -> PermissionsGrid:
    def fields_updater(perms, group_id, entity_id, value):
        return update_fields_permission(
            perms,
            group_id,
            entity_id.database_id,
            entity_id.schema_name,
            entity_id.table_id,
            value,
            topology,
        )

    tables = database.tables_in_schema(schema_name)
    return PermissionsGrid(
        type=GridType.TABLE,
        location=GridLocation(database_id=database.id, schema_name=schema_name),
        groups=groups,
        permissions={
            PermissionType.FIELDS: PermissionColumn(name=PermissionType.FIELDS, updater=fields_updater),
        },
        entities=[
            GridEntity(
                id=EntityId(database_id=database.id, schema_name=schema_name, table_id=table.id),
                name=table.display_name,
            )
            for table in tables
        ],
        data=[
            [
                _cells(
                    {
                        PermissionType.FIELDS: get_fields_access(
                            state, group.id, database.id, schema_name, table.id
                        ).value
                    },
                    state,
                    group,
                    database.id,
                )
                for group in groups
            ]
            for table in tables
        ],
    )


def build_permissions_grid(
    groups: Iterable[Group],
    topology: Topology,
    state: PermissionsState,
    database_id: Optional[EntityKey] = None,
    schema_name: Optional[str] = None,
) -> PermissionsGrid:
    """Build the grid for a scope level.

    - no ``database_id``: database grid;
    - ``database_id`` only: schema grid of that database;
    - ``database_id`` and ``schema_name`` (``""`` for tables without a
      schema): table grid of that schema.

    Raises:
        MalformedPathError: Unknown database or schema.
    """
    groups = list(groups)
    if database_id is None:
        return _database_grid(groups, topology, state)

    database = topology.database(database_id)
    if database is None:
        raise MalformedPathError(f"Unknown database {database_id!r}", database_id=database_id)
    if schema_name is None:
        return _schema_grid(groups, topology, state, database)

    if schema_name not in database.schema_names():
        raise MalformedPathError(
            f"Unknown schema {schema_name!r} in database {database_id!r}",
            database_id=database_id,
            schema_name=schema_name,
        )
    return _table_grid(groups, topology, state, database, schema_name)


__all__ = [
    "EntityId",
    "EntityLink",
    "GridCell",
    "GridEntity",
    "GridLocation",
    "GridType",
    "GridUpdate",
    "PermissionColumn",
    "PermissionsGrid",
    "build_permissions_grid",
]
