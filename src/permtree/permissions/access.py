"""Getters resolving effective access at each level of the tree.

Every getter looks up the raw node for its level and resolves it with
:func:`~permtree.permissions.tree.resolve_access`. A level whose parent
resolves to anything other than ``controlled`` inherits the parent's value
without any storage of its own.
"""

from __future__ import annotations

from typing import Hashable, Optional

from ..exceptions import StaleSnapshotError
from .constants import Access, NativeAccess, PermissionType
from .tree import Expanded, Node, PermissionsState, Scalar, get_node, resolve_access


_SCALAR_VALUES = frozenset({Access.ALL.value, Access.NONE.value})


def _schema_key(schema_name: Optional[str]) -> str:
    return schema_name or ""


def _as_access(value: str, path: tuple[Hashable, ...]) -> Access:
    try:
        return Access(value)
    except ValueError:
        raise StaleSnapshotError(f"Unknown access value {value!r} at {list(path)!r}", path=list(path), value=value)


def get_native_access(state: PermissionsState, group_id: Hashable, database_id: Hashable) -> NativeAccess:
    """Raw query access for a group on a database."""
    path = (group_id, database_id, PermissionType.NATIVE)
    node = get_node(state, path)
    if isinstance(node, Expanded):
        raise StaleSnapshotError(f"Native access cannot be expanded at {list(path)!r}", path=list(path))
    value = resolve_access(node)
    try:
        return NativeAccess(value)
    except ValueError:
        raise StaleSnapshotError(f"Unknown native access {value!r} at {list(path)!r}", path=list(path), value=value)


def get_schemas_access(state: PermissionsState, group_id: Hashable, database_id: Hashable) -> Access:
    """Schema access for a group on a database: ``all``, ``controlled`` or ``none``."""
    path = (group_id, database_id, PermissionType.SCHEMAS)
    return _as_access(resolve_access(get_node(state, path)), path)


def get_tables_access(
    state: PermissionsState,
    group_id: Hashable,
    database_id: Hashable,
    schema_name: Optional[str],
) -> Access:
    """Table access for one schema, inherited from the database when not controlled."""
    schemas = get_schemas_access(state, group_id, database_id)
    if schemas is not Access.CONTROLLED:
        return schemas
    path = (group_id, database_id, PermissionType.SCHEMAS, _schema_key(schema_name))
    return _as_access(resolve_access(get_node(state, path)), path)


def get_fields_access(
    state: PermissionsState,
    group_id: Hashable,
    database_id: Hashable,
    schema_name: Optional[str],
    table_id: Hashable,
) -> Access:
    """Access to one table, inherited from its schema when not controlled."""
    tables = get_tables_access(state, group_id, database_id, schema_name)
    if tables is not Access.CONTROLLED:
        return tables
    path = (group_id, database_id, PermissionType.SCHEMAS, _schema_key(schema_name), table_id)
    return _as_access(resolve_access(get_node(state, path)), path)


# ── Consistency ────────────────────────────────────────


def _check_scalar(node: Node, allowed: frozenset[str], path: tuple[Hashable, ...]) -> None:
    if not isinstance(node, Scalar):
        raise StaleSnapshotError(f"Expected a scalar at {list(path)!r}", path=list(path))
    if node.value not in allowed:
        raise StaleSnapshotError(
            f"Unexpected value {node.value!r} at {list(path)!r}",
            path=list(path),
            value=node.value,
        )


def _check_database(group_id: Hashable, database_id: Hashable, node: Node) -> None:
    path = (group_id, database_id)
    if not isinstance(node, Expanded):
        raise StaleSnapshotError(f"Database node must be a mapping at {list(path)!r}", path=list(path))
    unknown = set(node.keys()) - {PermissionType.NATIVE, PermissionType.SCHEMAS}
    if unknown:
        raise StaleSnapshotError(
            f"Unknown keys {sorted(map(str, unknown))!r} at {list(path)!r}",
            path=list(path),
        )

    native = node.get(PermissionType.NATIVE)
    if native is not None:
        _check_scalar(native, frozenset(v.value for v in NativeAccess), path + (PermissionType.NATIVE,))

    schemas = node.get(PermissionType.SCHEMAS)
    if isinstance(schemas, Expanded):
        for schema_name, tables in schemas.items():
            schema_path = path + (PermissionType.SCHEMAS, schema_name)
            if isinstance(tables, Expanded):
                for table_id, fields in tables.items():
                    _check_scalar(fields, _SCALAR_VALUES, schema_path + (table_id,))
            else:
                _check_scalar(tables, _SCALAR_VALUES, schema_path)
    elif schemas is not None:
        _check_scalar(schemas, _SCALAR_VALUES, path + (PermissionType.SCHEMAS,))

    native_access = resolve_access(native)
    schemas_access = resolve_access(schemas)
    if native_access == NativeAccess.WRITE.value and schemas_access != Access.ALL.value:
        raise StaleSnapshotError(
            f"Native write access requires access to all schemas at {list(path)!r}",
            path=list(path),
        )
    if schemas_access == Access.NONE.value and native_access != NativeAccess.NONE.value:
        raise StaleSnapshotError(
            f"Native access without schema access at {list(path)!r}",
            path=list(path),
        )


def ensure_consistent(state: PermissionsState) -> PermissionsState:
    """Raise StaleSnapshotError if ``state`` breaks the tree's invariants.

    Checks that group and database nodes are mappings, that ``native`` and
    table-level values are scalars with known values, that no scalar stores
    ``controlled``, and that native access agrees with schema access.

    Returns:
        ``state`` unchanged, for chaining.
    """
    if not isinstance(state, Expanded):
        raise StaleSnapshotError("Permissions snapshot must be a mapping of groups")
    for group_id, databases in state.items():
        if not isinstance(databases, Expanded):
            raise StaleSnapshotError(f"Group node must be a mapping at {[group_id]!r}", path=[group_id])
        for database_id, node in databases.items():
            _check_database(group_id, database_id, node)
    return state


__all__ = [
    "ensure_consistent",
    "get_fields_access",
    "get_native_access",
    "get_schemas_access",
    "get_tables_access",
]
