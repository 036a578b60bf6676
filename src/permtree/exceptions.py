"""Unified exception hierarchy for permtree.

All errors inherit from PermissionTreeError and carry a stable error code.

Usage:
    from permtree.exceptions import (
        InvalidTransitionError,
        MalformedPathError,
        PermissionTreeError,
    )

Every error is local to a single call; none of them is fatal to the process.
"""

from __future__ import annotations

from typing import Any

__all__ = [
    "PermissionTreeError",
    "ConfigurationError",
    "MalformedPathError",
    "InvalidTransitionError",
    "StaleSnapshotError",
]


# ---- Exception Hierarchy ----------------------------------------------------


class PermissionTreeError(Exception):
    """Base exception for all permission-tree failures.

    Attributes:
        code: Stable error code string (e.g. "MALFORMED_PATH").
        message: Human-readable error description.
        details: Additional context as keyword arguments.
    """

    code: str = "INTERNAL_ERROR"
    message: str = "An internal error occurred"

    def __init__(self, message: str | None = None, code: str | None = None, **kwargs: Any) -> None:
        self.message = message or self.message
        self.code = code or self.code
        self.details = kwargs
        super().__init__(self.message)


class ConfigurationError(PermissionTreeError):
    """Invalid or missing configuration."""

    code: str = "CONFIGURATION_ERROR"


class MalformedPathError(PermissionTreeError):
    """Update path names a database, schema or table missing from the topology."""

    code: str = "MALFORMED_PATH"
    message: str = "Permission path does not match the topology"


class InvalidTransitionError(PermissionTreeError):
    """Requested value is not in the cell's allowed options."""

    code: str = "INVALID_TRANSITION"
    message: str = "Permission transition is not allowed"


class StaleSnapshotError(PermissionTreeError):
    """Snapshot no longer matches its getter-resolved view."""

    code: str = "STALE_SNAPSHOT"
    message: str = "Permission snapshot is inconsistent"
