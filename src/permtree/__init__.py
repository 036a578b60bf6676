from .config import DiffConvention, LogLevel, PermissionsConfig, load_config_from_env
from .exceptions import (
    ConfigurationError,
    InvalidTransitionError,
    MalformedPathError,
    PermissionTreeError,
    StaleSnapshotError,
)
from .groups import (
    can_edit_membership,
    can_edit_permissions,
    is_admin_group,
    is_default_group,
    load_groups,
)
from .logging import (
    PermissionsFormatter,
    PermissionsLoggerAdapter,
    get_permissions_logger,
    safe_preview,
    setup_logging,
)
from .models import NO_SCHEMA, Database, Group, Table, Topology
from .permissions import (
    EMPTY_STATE,
    PERMISSION_OPTIONS,
    PERMISSION_TYPES,
    Access,
    DatabasePermissionsDiff,
    EntityId,
    EntityLink,
    Expanded,
    GridCell,
    GridEntity,
    GridLocation,
    GridType,
    GridUpdate,
    GroupPermissionsDiff,
    NativeAccess,
    PermissionColumn,
    PermissionsDiff,
    PermissionsGrid,
    PermissionsState,
    PermissionType,
    Scalar,
    TablePermissionsDiff,
    allowed_options,
    build_permissions_grid,
    describe_diff,
    diff_permissions,
    ensure_consistent,
    get_fields_access,
    get_native_access,
    get_node,
    get_schemas_access,
    get_tables_access,
    resolve_access,
    set_node,
    state_from_dict,
    state_to_dict,
    update_fields_permission,
    update_native_permission,
    update_permission,
    update_schemas_permission,
    update_tables_permission,
)
from .session import PermissionsSession

__all__ = [
    # Config
    'DiffConvention',
    'LogLevel',
    'PermissionsConfig',
    'load_config_from_env',
    # Errors
    'ConfigurationError',
    'InvalidTransitionError',
    'MalformedPathError',
    'PermissionTreeError',
    'StaleSnapshotError',
    # Groups
    'can_edit_membership',
    'can_edit_permissions',
    'is_admin_group',
    'is_default_group',
    'load_groups',
    # Logging
    'PermissionsFormatter',
    'PermissionsLoggerAdapter',
    'get_permissions_logger',
    'safe_preview',
    'setup_logging',
    # Topology
    'NO_SCHEMA',
    'Database',
    'Group',
    'Table',
    'Topology',
    # Tree
    'EMPTY_STATE',
    'Expanded',
    'PermissionsState',
    'Scalar',
    'get_node',
    'resolve_access',
    'set_node',
    'state_from_dict',
    'state_to_dict',
    'update_permission',
    'ensure_consistent',
    # Access levels and getters
    'PERMISSION_OPTIONS',
    'PERMISSION_TYPES',
    'Access',
    'NativeAccess',
    'PermissionType',
    'get_fields_access',
    'get_native_access',
    'get_schemas_access',
    'get_tables_access',
    # Updaters
    'allowed_options',
    'update_fields_permission',
    'update_native_permission',
    'update_schemas_permission',
    'update_tables_permission',
    # Grid
    'EntityId',
    'EntityLink',
    'GridCell',
    'GridEntity',
    'GridLocation',
    'GridType',
    'GridUpdate',
    'PermissionColumn',
    'PermissionsGrid',
    'build_permissions_grid',
    # Diff
    'DatabasePermissionsDiff',
    'GroupPermissionsDiff',
    'PermissionsDiff',
    'TablePermissionsDiff',
    'describe_diff',
    'diff_permissions',
    # Session
    'PermissionsSession',
]
