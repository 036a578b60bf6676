"""Diff between two permission snapshots, for confirmation before saving.

For every group × database the differ compares native access and the
resolved access of every table. Only changes are kept: empty table maps,
unchanged databases and unchanged groups are pruned, so ``diff(s, s)`` has
no groups at all.

Whether a changed table counts as granted or revoked is an explicit
:class:`~permtree.config.DiffConvention`:

- ``NEW_VALUE`` (default): revoked when the new value is ``none``, granted
  for any other change.
- ``ENDPOINT_NONE``: granted when the old value was ``none``, revoked when
  the new value is ``none``, and not reported when neither side is ``none``.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional, Union

from pydantic import BaseModel, Field

from ..config import DiffConvention
from ..models import Database, EntityKey, Group, Topology
from .access import get_fields_access, get_native_access
from .constants import Access
from .tree import PermissionsState


class TablePermissionsDiff(BaseModel):
    name: str = ""


class DatabasePermissionsDiff(BaseModel):
    """Changes for one group on one database.

    ``native`` is set only when native access changed, and holds the new value.
    """

    model_config = {"populate_by_name": True}

    name: str = ""
    native: Optional[str] = None
    granted_tables: Optional[dict[EntityKey, TablePermissionsDiff]] = Field(default=None, alias="grantedTables")
    revoked_tables: Optional[dict[EntityKey, TablePermissionsDiff]] = Field(default=None, alias="revokedTables")

    @property
    def is_empty(self) -> bool:
        return self.native is None and not self.granted_tables and not self.revoked_tables


class GroupPermissionsDiff(BaseModel):
    name: str = ""
    databases: dict[EntityKey, DatabasePermissionsDiff] = Field(default_factory=dict)


class PermissionsDiff(BaseModel):
    """Pruned nested diff: group id -> database id -> changes."""

    groups: dict[EntityKey, GroupPermissionsDiff] = Field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.groups

    def to_dict(self) -> dict[str, Any]:
        """Plain dict with ``grantedTables``/``revokedTables`` keys and pruned maps."""
        return self.model_dump(by_alias=True, exclude_none=True)


def _classify(old: Access, new: Access, convention: DiffConvention) -> Optional[str]:
    """Return "granted", "revoked" or None for a changed table."""
    if convention is DiffConvention.ENDPOINT_NONE:
        if new is Access.NONE:
            return "revoked"
        if old is Access.NONE:
            return "granted"
        return None
    return "revoked" if new is Access.NONE else "granted"


def _diff_database(
    database: Database,
    group_id: EntityKey,
    new_state: PermissionsState,
    old_state: PermissionsState,
    convention: DiffConvention,
) -> DatabasePermissionsDiff:
    database_diff = DatabasePermissionsDiff(name=database.name)

    old_native = get_native_access(old_state, group_id, database.id)
    new_native = get_native_access(new_state, group_id, database.id)
    if old_native is not new_native:
        database_diff.native = new_native.value

    changes: dict[str, dict[EntityKey, TablePermissionsDiff]] = {"granted": {}, "revoked": {}}
    for table in database.tables:
        old_fields = get_fields_access(old_state, group_id, database.id, table.schema_key, table.id)
        new_fields = get_fields_access(new_state, group_id, database.id, table.schema_key, table.id)
        if old_fields is new_fields:
            continue
        kind = _classify(old_fields, new_fields, convention)
        if kind is not None:
            changes[kind][table.id] = TablePermissionsDiff(name=table.display_name)

    # Empty maps stay None so they are pruned from the dump.
    database_diff.granted_tables = changes["granted"] or None
    database_diff.revoked_tables = changes["revoked"] or None
    return database_diff


def diff_permissions(
    groups: Iterable[Group],
    databases: Union[Topology, Iterable[Database]],
    new_state: Optional[PermissionsState],
    old_state: Optional[PermissionsState],
    convention: DiffConvention = DiffConvention.NEW_VALUE,
) -> PermissionsDiff:
    """Compute the pruned diff from ``old_state`` to ``new_state``.

    Args:
        groups: Groups to compare; names are copied into the diff.
        databases: The topology, or its databases.
        new_state: Pending snapshot.
        old_state: Baseline snapshot.
        convention: Granted/revoked classification policy.

    Returns:
        PermissionsDiff; empty when either snapshot is missing.
    """
    permissions_diff = PermissionsDiff()
    if new_state is None or old_state is None:
        return permissions_diff

    if isinstance(databases, Topology):
        databases = databases.databases
    databases = list(databases)

    for group in groups:
        group_diff = GroupPermissionsDiff(name=group.name)
        for database in databases:
            database_diff = _diff_database(database, group.id, new_state, old_state, convention)
            if not database_diff.is_empty:
                group_diff.databases[database.id] = database_diff
        if group_diff.databases:
            permissions_diff.groups[group.id] = group_diff
    return permissions_diff


__all__ = [
    "DatabasePermissionsDiff",
    "GroupPermissionsDiff",
    "PermissionsDiff",
    "TablePermissionsDiff",
    "diff_permissions",
]
