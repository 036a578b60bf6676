"""Level-specific updaters composing the generic updater with cascade rules.

Cascades keep native and schema access consistent:

- granting native ``write`` forces schema access to ``all``;
- revoking schema access (``none``) forces native access to ``none``;
- partial (``controlled``) schema access downgrades native ``write`` to ``read``.

Every updater validates its path against the topology and its value against
the cell's allowed options before writing, and returns a new state. None of
them prompts; confirming a change is the caller's business.
"""

from __future__ import annotations

import logging
from typing import Any, Hashable, Optional

from ..exceptions import InvalidTransitionError, MalformedPathError
from ..models import Database, Topology
from .access import get_fields_access, get_native_access, get_schemas_access, get_tables_access
from .constants import PERMISSION_OPTIONS, Access, NativeAccess, PermissionType
from .tree import PermissionsState, _value_of, update_permission

logger = logging.getLogger(__name__)


def allowed_options(
    permission: str,
    state: PermissionsState,
    group_id: Hashable,
    database_id: Hashable,
) -> tuple[str, ...]:
    """Transitions currently allowed for a cell.

    Native access collapses to ``("none",)`` while schema access is ``none``;
    every other column always offers its full option list.

    Raises:
        InvalidTransitionError: Unknown permission column.
    """
    try:
        options = PERMISSION_OPTIONS[permission]
    except KeyError:
        raise InvalidTransitionError(f"Unknown permission {permission!r}", permission=permission)
    if permission == PermissionType.NATIVE:
        if get_schemas_access(state, group_id, database_id) is Access.NONE:
            return (NativeAccess.NONE.value,)
    return options


def _check_transition(
    permission: str,
    value: Any,
    state: PermissionsState,
    group_id: Hashable,
    database_id: Hashable,
) -> str:
    value = _value_of(value)
    options = allowed_options(permission, state, group_id, database_id)
    if value not in options:
        raise InvalidTransitionError(
            f"Cannot set {permission} to {value!r}; allowed: {', '.join(options)}",
            permission=permission,
            value=value,
            options=options,
            group_id=group_id,
            database_id=database_id,
        )
    return value


def _require_database(topology: Topology, database_id: Hashable) -> Database:
    database = topology.database(database_id)
    if database is None:
        raise MalformedPathError(f"Unknown database {database_id!r}", database_id=database_id)
    return database


def _require_schema(database: Database, schema_name: Optional[str]) -> str:
    schema_key = schema_name or ""
    if schema_key not in database.schema_names():
        raise MalformedPathError(
            f"Unknown schema {schema_key!r} in database {database.id!r}",
            database_id=database.id,
            schema_name=schema_key,
        )
    return schema_key


def _require_table(database: Database, schema_key: str, table_id: Hashable) -> None:
    table = database.table(table_id)
    if table is None or table.schema_key != schema_key:
        raise MalformedPathError(
            f"Unknown table {table_id!r} in schema {schema_key!r} of database {database.id!r}",
            database_id=database.id,
            schema_name=schema_key,
            table_id=table_id,
        )


def _downgrade_native(state: PermissionsState, group_id: Hashable, database_id: Hashable) -> PermissionsState:
    """Drop native write to read once schema access is no longer ``all``."""
    if get_schemas_access(state, group_id, database_id) is not Access.CONTROLLED:
        return state
    if get_native_access(state, group_id, database_id) is not NativeAccess.WRITE:
        return state
    logger.debug("Partial schema access for group %s on database %s: native set to read", group_id, database_id)
    return update_permission(state, (group_id, database_id, PermissionType.NATIVE), NativeAccess.READ)


def update_native_permission(
    state: PermissionsState,
    group_id: Hashable,
    database_id: Hashable,
    value: Any,
    topology: Topology,
) -> PermissionsState:
    """Set native query access, granting all schemas first when ``value`` is write."""
    _require_database(topology, database_id)
    value = _check_transition(PermissionType.NATIVE, value, state, group_id, database_id)

    if value == NativeAccess.WRITE.value:
        cascaded = update_permission(state, (group_id, database_id, PermissionType.SCHEMAS), Access.ALL)
        if cascaded is not state:
            logger.debug("Native write for group %s on database %s: schemas set to all", group_id, database_id)
        state = cascaded
    return update_permission(state, (group_id, database_id, PermissionType.NATIVE), value)


def update_schemas_permission(
    state: PermissionsState,
    group_id: Hashable,
    database_id: Hashable,
    value: Any,
    topology: Topology,
) -> PermissionsState:
    """Set schema access for a database.

    ``none`` revokes native access first; ``controlled`` expands to one entry
    per schema in the database, each keeping the previous value.
    """
    database = _require_database(topology, database_id)
    value = _check_transition(PermissionType.SCHEMAS, value, state, group_id, database_id)

    if value == Access.NONE.value:
        cascaded = update_permission(state, (group_id, database_id, PermissionType.NATIVE), NativeAccess.NONE)
        if cascaded is not state:
            logger.debug("Schemas revoked for group %s on database %s: native set to none", group_id, database_id)
        state = cascaded
    state = update_permission(
        state,
        (group_id, database_id, PermissionType.SCHEMAS),
        value,
        database.schema_names() if value == Access.CONTROLLED.value else None,
    )
    return _downgrade_native(state, group_id, database_id)


def update_tables_permission(
    state: PermissionsState,
    group_id: Hashable,
    database_id: Hashable,
    schema_name: Optional[str],
    value: Any,
    topology: Topology,
) -> PermissionsState:
    """Set table access for one schema.

    Schema access becomes ``controlled`` with every other schema keeping the
    database's previous value; ``controlled`` here expands to the schema's
    tables the same way.
    """
    database = _require_database(topology, database_id)
    schema_key = _require_schema(database, schema_name)
    value = _check_transition(PermissionType.TABLES, value, state, group_id, database_id)

    if value != Access.CONTROLLED.value and get_tables_access(state, group_id, database_id, schema_key) == value:
        return state

    table_ids = None
    if value == Access.CONTROLLED.value:
        table_ids = [table.id for table in database.tables_in_schema(schema_key)]

    schemas_path = (group_id, database_id, PermissionType.SCHEMAS)
    state = update_permission(state, schemas_path, Access.CONTROLLED, database.schema_names())
    state = update_permission(state, schemas_path + (schema_key,), value, table_ids)
    return _downgrade_native(state, group_id, database_id)


def update_fields_permission(
    state: PermissionsState,
    group_id: Hashable,
    database_id: Hashable,
    schema_name: Optional[str],
    table_id: Hashable,
    value: Any,
    topology: Topology,
) -> PermissionsState:
    """Set access to a single table (``all`` or ``none``).

    Schemas and the table's schema are expanded to ``controlled`` first, with
    every sibling keeping its previous effective value.
    """
    database = _require_database(topology, database_id)
    schema_key = _require_schema(database, schema_name)
    _require_table(database, schema_key, table_id)
    value = _check_transition(PermissionType.FIELDS, value, state, group_id, database_id)

    if get_fields_access(state, group_id, database_id, schema_key, table_id) == value:
        return state

    schemas_path = (group_id, database_id, PermissionType.SCHEMAS)
    state = update_permission(state, schemas_path, Access.CONTROLLED, database.schema_names())
    state = update_permission(
        state,
        schemas_path + (schema_key,),
        Access.CONTROLLED,
        [table.id for table in database.tables_in_schema(schema_key)],
    )
    state = update_permission(state, schemas_path + (schema_key, table_id), value)
    return _downgrade_native(state, group_id, database_id)


__all__ = [
    "allowed_options",
    "update_fields_permission",
    "update_native_permission",
    "update_schemas_permission",
    "update_tables_permission",
]
