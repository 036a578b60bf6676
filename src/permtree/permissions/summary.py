"""Plain-language summary of a permissions diff, shown before saving."""

from __future__ import annotations

from .constants import NativeAccess
from .diff import DatabasePermissionsDiff, GroupPermissionsDiff, PermissionsDiff


def inflect(word: str, count: int) -> str:
    return word if count == 1 else f"{word}s"


def _count_tables(tables: dict) -> str:
    return f"{len(tables)} {inflect('table', len(tables))}"


def _describe_tables(group: GroupPermissionsDiff, database: DatabasePermissionsDiff) -> str | None:
    changes = []
    if database.granted_tables:
        changes.append(f"will be given access to {_count_tables(database.granted_tables)}")
    if database.revoked_tables:
        changes.append(f"will be denied access to {_count_tables(database.revoked_tables)}")
    if not changes:
        return None
    return f"{group.name} {' and '.join(changes)} in {database.name}."


def _describe_native(group: GroupPermissionsDiff, database: DatabasePermissionsDiff) -> str | None:
    if database.native is None:
        return None
    if database.native == NativeAccess.NONE.value:
        return f"{group.name} will no longer be able to run native queries for {database.name}."
    return f"{group.name} will now be able to {database.native} native queries for {database.name}."


def describe_diff(diff: PermissionsDiff) -> list[str]:
    """One sentence per kind of change, grouped by group then database.

    Example::

        >>> describe_diff(diff)
        ['Marketing will be given access to 2 tables and will be denied access to 1 table in Sample.',
         'Marketing will now be able to write native queries for Sample.']
    """
    lines = []
    for group in diff.groups.values():
        for database in group.databases.values():
            for line in (_describe_tables(group, database), _describe_native(group, database)):
                if line:
                    lines.append(line)
    return lines


__all__ = [
    "describe_diff",
    "inflect",
]
