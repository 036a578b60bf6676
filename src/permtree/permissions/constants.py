"""Access levels and permission column metadata.

Provides:
- ``Access``: ``all`` / ``controlled`` / ``none`` below the database level.
- ``NativeAccess``: ``write`` / ``read`` / ``none`` for raw queries.
- ``PermissionType``: the four permission columns.
- ``PERMISSION_TYPES``: column headers and option titles for renderers.
"""

from __future__ import annotations

from enum import Enum


class Access(str, Enum):
    """Data access at the schemas, tables and fields levels."""

    ALL = "all"  # Unrestricted
    CONTROLLED = "controlled"  # Partial, delegated to children
    NONE = "none"


class NativeAccess(str, Enum):
    """Raw (native) query access for a database."""

    WRITE = "write"
    READ = "read"
    NONE = "none"


class PermissionType:
    """Permission column identifiers.

    Also the stored key names at the database level: a database node holds
    ``native`` and ``schemas``.
    """

    NATIVE = "native"
    SCHEMAS = "schemas"
    TABLES = "tables"
    FIELDS = "fields"

    ALL = ("native", "schemas", "tables", "fields")


# Values a column may ever hold, in display order.
PERMISSION_OPTIONS: dict[str, tuple[str, ...]] = {
    PermissionType.NATIVE: (NativeAccess.WRITE.value, NativeAccess.READ.value, NativeAccess.NONE.value),
    PermissionType.SCHEMAS: (Access.ALL.value, Access.CONTROLLED.value, Access.NONE.value),
    PermissionType.TABLES: (Access.ALL.value, Access.CONTROLLED.value, Access.NONE.value),
    PermissionType.FIELDS: (Access.ALL.value, Access.NONE.value),
}


PERMISSION_TYPES: dict[str, dict[str, object]] = {
    PermissionType.NATIVE: {
        "header": "Raw Access",
        "options": {
            "write": "Write raw queries",
            "read": "View raw queries",
            "none": "No access",
        },
    },
    PermissionType.SCHEMAS: {
        "header": "Schema Access",
        "options": {
            "all": "Access all schemas",
            "controlled": "Access some schemas",
            "none": "No access",
        },
    },
    PermissionType.TABLES: {
        "header": "Table Access",
        "options": {
            "all": "Access all tables",
            "controlled": "Access some tables",
            "none": "No access",
        },
    },
    PermissionType.FIELDS: {
        "header": "Table Access",
        "options": {
            "all": "Access table",
            "none": "No access",
        },
    },
}


__all__ = [
    "PERMISSION_OPTIONS",
    "PERMISSION_TYPES",
    "Access",
    "NativeAccess",
    "PermissionType",
]
