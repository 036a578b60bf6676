"""Tests for level getters and the consistency check."""

from __future__ import annotations

import pytest

from permtree import (
    Access,
    NativeAccess,
    StaleSnapshotError,
    ensure_consistent,
    get_fields_access,
    get_native_access,
    get_schemas_access,
    get_tables_access,
    state_from_dict,
)


class TestGetters:
    """Tests for effective-access resolution at each level."""

    def test_native(self, state) -> None:
        assert get_native_access(state, 1, 1) is NativeAccess.WRITE
        assert get_native_access(state, 2, 2) is NativeAccess.READ

    def test_native_absent_is_none(self, state) -> None:
        assert get_native_access(state, 3, 1) is NativeAccess.NONE
        assert get_native_access(state, 42, 1) is NativeAccess.NONE

    def test_schemas(self, state) -> None:
        assert get_schemas_access(state, 2, 1) is Access.ALL
        assert get_schemas_access(state, 2, 2) is Access.CONTROLLED
        assert get_schemas_access(state, 3, 1) is Access.NONE

    def test_tables_inherit_scalar_schemas(self, state) -> None:
        assert get_tables_access(state, 2, 1, "public") is Access.ALL
        assert get_tables_access(state, 2, 1, "anything") is Access.ALL

    def test_tables_under_controlled_schemas(self, state) -> None:
        assert get_tables_access(state, 2, 2, "sales") is Access.ALL
        assert get_tables_access(state, 2, 2, "hr") is Access.NONE
        assert get_tables_access(state, 3, 2, "sales") is Access.CONTROLLED

    def test_tables_missing_schema_key_is_none(self, state) -> None:
        assert get_tables_access(state, 3, 2, "hr") is Access.NONE

    def test_fields(self, state) -> None:
        assert get_fields_access(state, 3, 2, "sales", 10) is Access.ALL
        assert get_fields_access(state, 3, 2, "sales", 11) is Access.NONE
        assert get_fields_access(state, 2, 2, "sales", 10) is Access.ALL
        assert get_fields_access(state, 2, 2, "hr", 20) is Access.NONE

    def test_none_schema_name_is_sentinel(self) -> None:
        state = state_from_dict({1: {3: {"native": "none", "schemas": {"": {30: "all"}}}}})
        assert get_tables_access(state, 1, 3, None) is Access.CONTROLLED
        assert get_fields_access(state, 1, 3, None, 30) is Access.ALL

    def test_inheritance_from_all(self, state, topology) -> None:
        """Schema access "all" means every schema resolves to "all"."""
        for database in topology.databases:
            if get_schemas_access(state, 1, database.id) is Access.ALL:
                for schema_name in database.schema_names():
                    assert get_tables_access(state, 1, database.id, schema_name) is Access.ALL

    def test_unknown_value(self) -> None:
        state = state_from_dict({1: {1: {"schemas": "sometimes"}}})
        with pytest.raises(StaleSnapshotError):
            get_schemas_access(state, 1, 1)

    def test_expanded_native(self) -> None:
        state = state_from_dict({1: {1: {"native": {"x": "read"}}}})
        with pytest.raises(StaleSnapshotError):
            get_native_access(state, 1, 1)


class TestEnsureConsistent:
    """Tests for the snapshot consistency check."""

    def test_consistent_snapshot(self, state) -> None:
        assert ensure_consistent(state) is state

    @pytest.mark.parametrize(
        "raw",
        [
            {1: "all"},
            {1: {1: "all"}},
            {1: {1: {"native": "none", "tables": "all"}}},
            {1: {1: {"native": "sometimes", "schemas": "all"}}},
            {1: {1: {"schemas": "controlled"}}},
            {1: {1: {"schemas": {"public": {1: {"field": "all"}}}}}},
            {1: {1: {"native": "write", "schemas": {"public": "all"}}}},
            {1: {1: {"native": "read", "schemas": "none"}}},
            {1: {1: {"native": "read"}}},
        ],
    )
    def test_inconsistent_snapshots(self, raw) -> None:
        with pytest.raises(StaleSnapshotError) as exc_info:
            ensure_consistent(state_from_dict(raw))
        assert exc_info.value.code == "STALE_SNAPSHOT"
