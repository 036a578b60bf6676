"""Tests for the permissions differ."""

from __future__ import annotations

import pytest

from permtree import (
    EMPTY_STATE,
    DiffConvention,
    Group,
    Topology,
    diff_permissions,
    state_from_dict,
    update_fields_permission,
    update_native_permission,
    update_schemas_permission,
    update_tables_permission,
)
from permtree.permissions.constants import Access
from permtree.permissions.diff import _classify


class TestDiffBasics:
    """Tests for pruning and missing snapshots."""

    def test_same_state_is_empty(self, groups, topology, state) -> None:
        diff = diff_permissions(groups, topology, state, state)
        assert diff.is_empty
        assert diff.to_dict() == {"groups": {}}

    def test_equal_copies_are_empty(self, groups, topology, snapshot) -> None:
        assert diff_permissions(groups, topology, state_from_dict(snapshot), state_from_dict(snapshot)).is_empty

    def test_empty_states(self, groups, topology) -> None:
        assert diff_permissions(groups, topology, EMPTY_STATE, EMPTY_STATE).is_empty

    @pytest.mark.parametrize("new_is_none", [True, False])
    def test_missing_snapshot(self, groups, topology, state, new_is_none) -> None:
        new, old = (None, state) if new_is_none else (state, None)
        assert diff_permissions(groups, topology, new, old).is_empty

    def test_accepts_database_list(self, groups, topology, state) -> None:
        new_state = update_fields_permission(state, 2, 1, "public", 1, "none", topology)
        diff = diff_permissions(groups, list(topology.databases), new_state, state)
        assert list(diff.groups) == [2]


class TestDiffChanges:
    """Tests for reported changes."""

    def test_revoke_one_table(self, groups, topology, state) -> None:
        new_state = update_fields_permission(state, 2, 1, "public", 1, "none", topology)
        diff = diff_permissions(groups, topology, new_state, state)
        assert diff.to_dict() == {
            "groups": {
                2: {
                    "name": "Marketing",
                    "databases": {1: {"name": "Sample", "revokedTables": {1: {"name": "Orders"}}}},
                }
            }
        }

    def test_grant_one_table(self, groups, topology, state) -> None:
        new_state = update_fields_permission(state, 3, 2, "sales", 11, "all", topology)
        database_diff = diff_permissions(groups, topology, new_state, state).groups[3].databases[2]
        assert database_diff.name == "Warehouse"
        assert database_diff.native is None
        assert database_diff.revoked_tables is None
        assert {table_id: table.name for table_id, table in database_diff.granted_tables.items()} == {11: "Refunds"}

    def test_schema_revoke_reports_tables_and_native(self, groups, topology, state) -> None:
        new_state = update_schemas_permission(state, 1, 2, "none", topology)
        database_diff = diff_permissions(groups, topology, new_state, state).groups[1].databases[2]
        assert database_diff.native == "none"
        assert set(database_diff.revoked_tables) == {10, 11, 20}
        assert database_diff.granted_tables is None

    def test_native_only_change(self, groups, topology, state) -> None:
        new_state = update_native_permission(state, 2, 1, "read", topology)
        diff = diff_permissions(groups, topology, new_state, state)
        assert diff.to_dict() == {
            "groups": {2: {"name": "Marketing", "databases": {1: {"name": "Sample", "native": "read"}}}}
        }

    def test_restructuring_without_effective_change(self, groups, topology, state) -> None:
        """Expanding a scalar into equal children is not a change."""
        new_state = update_schemas_permission(state, 2, 1, "controlled", topology)
        assert new_state != state
        assert diff_permissions(groups, topology, new_state, state).is_empty

    def test_groups_outside_the_list_ignored(self, groups, topology, state) -> None:
        new_state = update_fields_permission(state, 2, 1, "public", 1, "none", topology)
        assert diff_permissions(groups[2:], topology, new_state, state).is_empty


class TestDiffConvention:
    """Tests for the granted/revoked classification policy."""

    @pytest.mark.parametrize(
        "old,new,expected",
        [
            (Access.ALL, Access.NONE, "revoked"),
            (Access.NONE, Access.ALL, "granted"),
            (Access.CONTROLLED, Access.NONE, "revoked"),
            (Access.NONE, Access.CONTROLLED, "granted"),
            (Access.CONTROLLED, Access.ALL, "granted"),
            (Access.ALL, Access.CONTROLLED, "granted"),
        ],
    )
    def test_new_value(self, old, new, expected) -> None:
        assert _classify(old, new, DiffConvention.NEW_VALUE) == expected

    @pytest.mark.parametrize(
        "old,new,expected",
        [
            (Access.ALL, Access.NONE, "revoked"),
            (Access.NONE, Access.ALL, "granted"),
            (Access.CONTROLLED, Access.NONE, "revoked"),
            (Access.NONE, Access.CONTROLLED, "granted"),
            (Access.CONTROLLED, Access.ALL, None),
            (Access.ALL, Access.CONTROLLED, None),
        ],
    )
    def test_endpoint_none(self, old, new, expected) -> None:
        assert _classify(old, new, DiffConvention.ENDPOINT_NONE) == expected

    @pytest.mark.parametrize("convention", list(DiffConvention))
    def test_conventions_agree_on_table_access(self, groups, topology, state, convention) -> None:
        """Table access is binary, so both policies classify table edits the same way."""
        new_state = update_fields_permission(state, 2, 1, "public", 1, "none", topology)
        new_state = update_fields_permission(new_state, 3, 2, "sales", 11, "all", topology)
        diff = diff_permissions(groups, topology, new_state, state, convention)
        assert set(diff.groups[2].databases[1].revoked_tables) == {1}
        assert set(diff.groups[3].databases[2].granted_tables) == {11}


class TestScenarioDiff:
    """Diffs for edits on group G1, database D1, schema public (T1, T2)."""

    @pytest.fixture
    def public_topology(self) -> Topology:
        return Topology.from_payload(
            [
                {
                    "id": "D1",
                    "name": "Sample",
                    "tables": [
                        {"id": "T1", "display_name": "Orders", "schema": "public"},
                        {"id": "T2", "display_name": "People", "schema": "public"},
                    ],
                }
            ]
        )

    @pytest.fixture
    def original(self):
        return state_from_dict({"G1": {"D1": {"native": "none", "schemas": "all"}}})

    @pytest.fixture
    def scenario_groups(self) -> list[Group]:
        return [Group(id="G1", name="Analysts")]

    def test_revoke_one_table(self, public_topology, original, scenario_groups) -> None:
        state = update_tables_permission(original, "G1", "D1", "public", "controlled", public_topology)
        state = update_fields_permission(state, "G1", "D1", "public", "T2", "none", public_topology)
        diff = diff_permissions(scenario_groups, public_topology, state, original)
        assert diff.to_dict() == {
            "groups": {
                "G1": {
                    "name": "Analysts",
                    "databases": {"D1": {"name": "Sample", "revokedTables": {"T2": {"name": "People"}}}},
                }
            }
        }

    def test_native_write(self, public_topology, original, scenario_groups) -> None:
        state = update_native_permission(original, "G1", "D1", "write", public_topology)
        database_diff = diff_permissions(scenario_groups, public_topology, state, original).groups["G1"].databases["D1"]
        assert database_diff.native == "write"
        assert database_diff.name == "Sample"
        assert database_diff.granted_tables is None
        assert database_diff.revoked_tables is None

    def test_revoke_then_native_write_restores_tables(self, public_topology, original, scenario_groups) -> None:
        """Native write collapses schemas to all, so the earlier revoke disappears from the diff."""
        state = update_tables_permission(original, "G1", "D1", "public", "controlled", public_topology)
        state = update_fields_permission(state, "G1", "D1", "public", "T2", "none", public_topology)
        state = update_native_permission(state, "G1", "D1", "write", public_topology)
        diff = diff_permissions(scenario_groups, public_topology, state, original)
        assert diff.to_dict() == {
            "groups": {"G1": {"name": "Analysts", "databases": {"D1": {"name": "Sample", "native": "write"}}}}
        }
