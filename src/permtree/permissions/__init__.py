"""Hierarchical permission tree: group → database → schema → table.

Defines:
- Access / NativeAccess: access levels
- Scalar / Expanded: tree nodes; update_permission(): generic copy-on-write updater
- get_*_access(): effective access at each level
- update_*_permission(): level updaters with cascades
- build_permissions_grid(): render-agnostic matrices
- diff_permissions() / describe_diff(): audit diff before saving
"""

from .access import (
    ensure_consistent,
    get_fields_access,
    get_native_access,
    get_schemas_access,
    get_tables_access,
)
from .constants import PERMISSION_OPTIONS, PERMISSION_TYPES, Access, NativeAccess, PermissionType
from .diff import (
    DatabasePermissionsDiff,
    GroupPermissionsDiff,
    PermissionsDiff,
    TablePermissionsDiff,
    diff_permissions,
)
from .grid import (
    EntityId,
    EntityLink,
    GridCell,
    GridEntity,
    GridLocation,
    GridType,
    GridUpdate,
    PermissionColumn,
    PermissionsGrid,
    build_permissions_grid,
)
from .summary import describe_diff
from .tree import (
    EMPTY_STATE,
    Expanded,
    Node,
    PermissionsState,
    Scalar,
    get_node,
    resolve_access,
    set_node,
    state_from_dict,
    state_to_dict,
    update_permission,
)
from .updaters import (
    allowed_options,
    update_fields_permission,
    update_native_permission,
    update_schemas_permission,
    update_tables_permission,
)

__all__ = [
    "EMPTY_STATE",
    "PERMISSION_OPTIONS",
    "PERMISSION_TYPES",
    "Access",
    "DatabasePermissionsDiff",
    "EntityId",
    "EntityLink",
    "Expanded",
    "GridCell",
    "GridEntity",
    "GridLocation",
    "GridType",
    "GridUpdate",
    "GroupPermissionsDiff",
    "NativeAccess",
    "Node",
    "PermissionColumn",
    "PermissionType",
    "PermissionsDiff",
    "PermissionsGrid",
    "PermissionsState",
    "Scalar",
    "TablePermissionsDiff",
    "allowed_options",
    "build_permissions_grid",
    "describe_diff",
    "diff_permissions",
    "ensure_consistent",
    "get_fields_access",
    "get_native_access",
    "get_node",
    "get_schemas_access",
    "get_tables_access",
    "resolve_access",
    "set_node",
    "state_from_dict",
    "state_to_dict",
    "update_fields_permission",
    "update_native_permission",
    "update_permission",
    "update_schemas_permission",
    "update_tables_permission",
]
