"""Group helpers: which groups are fixed, and which may be edited."""

from __future__ import annotations

from typing import Any, Iterable, Optional

from .config import PermissionsConfig
from .models import Group

_DEFAULT_CONFIG = PermissionsConfig()


def is_default_group(group: Group, config: Optional[PermissionsConfig] = None) -> bool:
    return group.name == (config or _DEFAULT_CONFIG).default_group_name


def is_admin_group(group: Group, config: Optional[PermissionsConfig] = None) -> bool:
    return group.name == (config or _DEFAULT_CONFIG).admin_group_name


def can_edit_permissions(group: Group, config: Optional[PermissionsConfig] = None) -> bool:
    """The administrators group always has full access and is never edited."""
    return not is_admin_group(group, config)


def can_edit_membership(group: Group, config: Optional[PermissionsConfig] = None) -> bool:
    """Every user belongs to the default group, so its membership is fixed."""
    return not is_default_group(group, config)


def load_groups(
    raw_groups: Iterable[dict[str, Any]],
    config: Optional[PermissionsConfig] = None,
) -> list[Group]:
    """Build Group models from endpoint payloads.

    ``editable`` is taken from the payload when present; otherwise it is
    derived from :func:`can_edit_permissions`.
    """
    groups = []
    for raw in raw_groups:
        group = Group.model_validate(raw)
        if "editable" not in raw:
            group = group.model_copy(update={"editable": can_edit_permissions(group, config)})
        groups.append(group)
    return groups


__all__ = [
    "can_edit_membership",
    "can_edit_permissions",
    "is_admin_group",
    "is_default_group",
    "load_groups",
]
