"""Editing session: an immutable baseline and a working copy.

``original`` is loaded once and never mutated; every edit produces a new
``current``. Cancelling reverts to ``original``; saving hands ``current`` to
an external save callable and replaces both snapshots with what it returns.

Edits must be serialized by the caller: each update reads the ``current``
left by the previous one.
"""

from __future__ import annotations

from typing import Any, Callable, Hashable, Iterable, Mapping, Optional, Union

from .config import PermissionsConfig
from .logging import get_permissions_logger, safe_preview
from .models import NO_SCHEMA, EntityKey, Group, Topology
from .permissions.access import ensure_consistent
from .permissions.constants import PermissionType
from .permissions.diff import PermissionsDiff, diff_permissions
from .permissions.grid import EntityId, GridUpdate, PermissionsGrid, build_permissions_grid
from .permissions.summary import describe_diff
from .permissions.tree import PermissionsState, state_from_dict, state_to_dict

logger = get_permissions_logger(__name__)

Snapshot = Union[PermissionsState, Mapping[Any, Any], None]
# Receives the plain snapshot to persist; returns the reloaded snapshot (or None to keep it).
Saver = Callable[[dict], Snapshot]


class PermissionsSession:
    """Pending-vs-original permissions editing for a set of groups.

    Args:
        groups: Grid columns.
        topology: Databases, schemas and tables.
        original: Baseline snapshot, as a state or the endpoint's nested dict.
        config: Session configuration (diff convention).

    Example::

        session = PermissionsSession(groups, topology, snapshot)
        session.update(2, {"database_id": 1}, "schemas", "controlled")
        if session.is_dirty:
            print("\\n".join(session.summary()))
            session.save(api.save_permissions)
    """

    def __init__(
        self,
        groups: Iterable[Group],
        topology: Topology,
        original: Snapshot = None,
        config: Optional[PermissionsConfig] = None,
    ) -> None:
        self.config = config or PermissionsConfig()
        self.groups = list(groups)
        self.topology = topology
        self.original = self._load(original)
        self.current = self.original
        self.save_error: Optional[str] = None
        self._grids: dict[tuple[Optional[EntityKey], Optional[str]], tuple[PermissionsState, PermissionsGrid]] = {}

    def _load(self, snapshot: Snapshot) -> PermissionsState:
        if isinstance(snapshot, PermissionsState):
            return snapshot
        return state_from_dict(snapshot, groups=self.groups, topology=self.topology)

    @property
    def is_dirty(self) -> bool:
        """True when ``current`` differs structurally from ``original``."""
        return self.current != self.original

    def grid(self, database_id: Optional[EntityKey] = None, schema_name: Optional[str] = None) -> PermissionsGrid:
        """Grid for a scope level, rebuilt only when ``current`` has changed."""
        key = (database_id, schema_name)
        cached = self._grids.get(key)
        if cached is not None and cached[0] is self.current:
            return cached[1]
        grid = build_permissions_grid(self.groups, self.topology, self.current, database_id, schema_name)
        self._grids[key] = (self.current, grid)
        return grid

    def update(
        self,
        group_id: Hashable,
        entity_id: Union[EntityId, dict[str, Any]],
        permission: str,
        value: Any,
    ) -> GridUpdate:
        """Apply a cell edit to ``current``.

        The grid holding the cell is picked from the permission: ``native``
        and ``schemas`` live in the database grid, ``tables`` in a schema
        grid, ``fields`` in a table grid.
        """
        entity_id = EntityId.model_validate(entity_id)
        if permission in (PermissionType.TABLES, PermissionType.FIELDS) and entity_id.schema_name is None:
            entity_id = entity_id.model_copy(update={"schema_name": NO_SCHEMA})

        if permission == PermissionType.TABLES:
            grid = self.grid(entity_id.database_id)
        elif permission == PermissionType.FIELDS:
            grid = self.grid(entity_id.database_id, entity_id.schema_name)
        else:
            grid = self.grid()

        result = grid.update(self.current, group_id, entity_id, permission, value)
        if result.state is not self.current:
            logger.debug("Pending permissions changed", group_id=group_id, database_id=entity_id.database_id)
        self.current = result.state
        return result

    def diff(self) -> PermissionsDiff:
        """Diff of ``current`` against ``original``.

        Raises:
            StaleSnapshotError: ``current`` breaks the tree's invariants.
        """
        ensure_consistent(self.current)
        return diff_permissions(
            self.groups,
            self.topology,
            self.current,
            self.original,
            self.config.diff_convention,
        )

    def summary(self) -> list[str]:
        return describe_diff(self.diff())

    def cancel(self) -> None:
        """Discard pending edits."""
        if self.is_dirty:
            logger.info("Discarded pending permission changes")
        self.current = self.original
        self.save_error = None

    def reload(self, snapshot: Snapshot) -> None:
        """Replace both snapshots with a freshly loaded one."""
        self.original = self._load(snapshot)
        self.current = self.original
        self.save_error = None
        self._grids.clear()

    def save(self, saver: Saver) -> bool:
        """Persist ``current`` through ``saver``.

        On success both snapshots are replaced by the returned snapshot (or
        by ``current`` when ``saver`` returns None). On failure ``current``
        is kept, ``save_error`` holds the message and False is returned.

        Raises:
            StaleSnapshotError: ``current`` breaks the tree's invariants;
                ``saver`` is not called.
        """
        ensure_consistent(self.current)
        payload = state_to_dict(self.current)
        try:
            reloaded = saver(payload)
        except Exception as e:
            logger.error("Saving permissions failed: %s", e, extra={"payload": safe_preview(payload)})
            self.save_error = str(e) or type(e).__name__
            return False

        logger.info("Saved permissions for %d groups", len(payload))
        self.reload(self.current if reloaded is None else reloaded)
        return True


__all__ = [
    "PermissionsSession",
]
