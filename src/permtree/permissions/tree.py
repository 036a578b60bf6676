"""Sparse permission tree with implicit inheritance.

A permissions snapshot is a tree of nodes, each either:

- ``Scalar(value)``: one access level applying to every descendant.
- ``Expanded(children)``: per-child detail; the node's effective access
  is ``controlled``.

Layout of a ``PermissionsState`` (the root ``Expanded``)::

    {group_id: {database_id: {"native": Scalar,
                              "schemas": Scalar | {schema_name: Scalar | {table_id: Scalar}}}}}

Nodes are frozen; every update returns a new root sharing untouched
subtrees with the old one, so ``original`` snapshots are never mutated and
structural equality (``==``) doubles as the dirty check.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Hashable, Iterable, Mapping, Optional, Sequence, Union

from ..exceptions import StaleSnapshotError
from .constants import Access, PermissionType


@dataclass(frozen=True)
class Scalar:
    """A stored access level."""

    value: str


@dataclass(frozen=True)
class Expanded:
    """A mapping of child keys to nodes (effective access: ``controlled``)."""

    children: Mapping[Hashable, "Node"] = field(default_factory=dict)

    def get(self, key: Hashable) -> Optional["Node"]:
        return self.children.get(key)

    def keys(self) -> Iterable[Hashable]:
        return self.children.keys()

    def items(self) -> Iterable[tuple[Hashable, "Node"]]:
        return self.children.items()

    def __len__(self) -> int:
        return len(self.children)


Node = Union[Scalar, Expanded]

# The root of a snapshot: group id -> database id -> database node.
PermissionsState = Expanded

EMPTY_STATE = Expanded()


def _value_of(value: Any) -> str:
    return value.value if isinstance(value, Enum) else value


def resolve_access(node: Optional[Node]) -> str:
    """Resolve a raw node to its access value.

    Absent -> ``none``; ``Expanded`` -> ``controlled``; ``Scalar`` -> its value.
    """
    if node is None:
        return Access.NONE.value
    if isinstance(node, Expanded):
        return Access.CONTROLLED.value
    return node.value or Access.NONE.value


def get_node(state: Optional[Node], path: Sequence[Hashable]) -> Optional[Node]:
    """Return the node stored at ``path``, or None.

    A scalar met before the end of the path means nothing is stored deeper.
    """
    node = state
    for key in path:
        if not isinstance(node, Expanded):
            return None
        node = node.get(key)
        if node is None:
            return None
    return node


def set_node(state: Optional[Node], path: Sequence[Hashable], value: Node) -> Node:
    """Copy-on-write set of ``value`` at ``path``.

    Only the nodes along ``path`` are copied. Missing or scalar intermediate
    nodes become fresh mappings.
    """
    if not path:
        return value
    key, rest = path[0], path[1:]
    children = state.children if isinstance(state, Expanded) else {}
    new_children = dict(children)
    new_children[key] = set_node(children.get(key), rest, value)
    return Expanded(new_children)


def _scalar_ancestor(state: Optional[Node], path: Sequence[Hashable]) -> Optional[Scalar]:
    """The nearest scalar on a strict prefix of ``path``, if any."""
    node = state
    for key in path[:-1]:
        if not isinstance(node, Expanded):
            break
        node = node.get(key)
        if isinstance(node, Scalar):
            return node
    return None


def update_permission(
    state: PermissionsState,
    path: Sequence[Hashable],
    value: Any,
    entity_ids: Optional[Iterable[Hashable]] = None,
) -> PermissionsState:
    """Set the access value at ``path`` and return the new state.

    The current value at ``path`` is the node stored there or, below a scalar
    ancestor, that ancestor's value.

    - Returns ``state`` itself when nothing would change: the current scalar
      already equals ``value``, an absent node is set to ``none``, or an
      expanded node is set to ``controlled``.
    - ``controlled`` stores a new mapping. Each key in ``entity_ids`` is
      seeded with the current value so no child silently changes its
      effective access.
    - Any strict prefix of ``path`` holding a scalar is replaced with an
      empty mapping before the write.

    The input state is never mutated.
    """
    path = tuple(path)
    value = _value_of(value)
    current = get_node(state, path)
    if current is None:
        current = _scalar_ancestor(state, path)

    if isinstance(current, Scalar) and current.value == value:
        return state
    if isinstance(current, Expanded) and value == Access.CONTROLLED.value:
        return state
    if current is None and value == Access.NONE.value:
        return state

    if value == Access.CONTROLLED.value:
        seed = Scalar(resolve_access(current))
        new_node: Node = Expanded({entity_id: seed for entity_id in (entity_ids or ())})
    else:
        new_node = Scalar(value)

    for i in range(1, len(path)):
        prefix = path[:i]
        if isinstance(get_node(state, prefix), Scalar):
            state = set_node(state, prefix, Expanded())

    return set_node(state, path, new_node)


# ── Conversion to/from plain snapshots ─────────────────


def _key_map(known: Iterable[Hashable]) -> dict[str, Hashable]:
    return {str(key): key for key in known}


def _canonical(key: Hashable, known: Optional[dict[str, Hashable]]) -> Hashable:
    if known is None:
        return key
    return known.get(str(key), key)


def _from_raw(raw: Any, path: tuple[Hashable, ...]) -> Optional[Node]:
    if raw is None:
        return None
    if isinstance(raw, Mapping):
        children = {}
        for key, child in raw.items():
            node = _from_raw(child, path + (key,))
            if node is not None:
                children[key] = node
        return Expanded(children)
    if isinstance(raw, (str, Enum)):
        return Scalar(_value_of(raw))
    raise StaleSnapshotError(
        f"Unsupported permission value {raw!r} at {list(path)!r}",
        path=list(path),
        value=raw,
    )


def state_from_dict(
    raw: Optional[Mapping[Any, Any]],
    groups: Optional[Iterable[Any]] = None,
    topology: Optional[Any] = None,
) -> PermissionsState:
    """Build a state from the nested-dict snapshot of the permissions endpoint.

    JSON object keys arrive as strings. When ``groups`` and/or ``topology``
    are given, a key whose string form matches a known group, database or
    table id is replaced by that id, so lookups with the topology's ids hit.
    Unknown keys are kept verbatim.
    """
    if not raw:
        return EMPTY_STATE

    group_keys = _key_map(group.id for group in groups) if groups is not None else None
    database_keys = (
        _key_map(database.id for database in topology.databases) if topology is not None else None
    )

    state = _from_raw(raw, ())
    if group_keys is None and database_keys is None:
        return state

    new_groups = {}
    for group_id, group_node in state.items():
        group_id = _canonical(group_id, group_keys)
        if not isinstance(group_node, Expanded):
            new_groups[group_id] = group_node
            continue
        new_databases = {}
        for database_id, database_node in group_node.items():
            database_id = _canonical(database_id, database_keys)
            if topology is not None:
                database_node = _canonical_tables(database_node, topology.database(database_id))
            new_databases[database_id] = database_node
        new_groups[group_id] = Expanded(new_databases)
    return Expanded(new_groups)


def _canonical_tables(database_node: Node, database: Optional[Any]) -> Node:
    schemas = get_node(database_node, (PermissionType.SCHEMAS,))
    if database is None or not isinstance(schemas, Expanded):
        return database_node
    table_keys = _key_map(table.id for table in database.tables)
    new_schemas = {}
    for schema_name, tables in schemas.items():
        if isinstance(tables, Expanded):
            tables = Expanded({_canonical(key, table_keys): node for key, node in tables.items()})
        new_schemas[schema_name] = tables
    return set_node(database_node, (PermissionType.SCHEMAS,), Expanded(new_schemas))


def state_to_dict(node: Optional[Node]) -> Any:
    """Inverse of :func:`state_from_dict`: plain nested dicts and strings."""
    if node is None:
        return None
    if isinstance(node, Scalar):
        return node.value
    return {key: state_to_dict(child) for key, child in node.items()}


__all__ = [
    "EMPTY_STATE",
    "Expanded",
    "Node",
    "PermissionsState",
    "Scalar",
    "get_node",
    "resolve_access",
    "set_node",
    "state_from_dict",
    "state_to_dict",
    "update_permission",
]
