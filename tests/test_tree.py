"""Tests for tree nodes, the generic updater and snapshot conversion."""

from __future__ import annotations

import pytest

from permtree import (
    EMPTY_STATE,
    Access,
    Expanded,
    Scalar,
    StaleSnapshotError,
    get_node,
    get_tables_access,
    resolve_access,
    set_node,
    state_from_dict,
    state_to_dict,
    update_permission,
)


def _resolved(state, path) -> str:
    """Access at ``path``, inheriting from the nearest scalar ancestor."""
    for i in range(1, len(path)):
        ancestor = get_node(state, path[:i])
        if isinstance(ancestor, Scalar):
            return ancestor.value
    return resolve_access(get_node(state, path))


class TestResolveAccess:
    """Tests for resolving raw nodes."""

    def test_absent_is_none(self) -> None:
        assert resolve_access(None) == "none"

    def test_expanded_is_controlled(self) -> None:
        assert resolve_access(Expanded({"public": Scalar("all")})) == "controlled"

    def test_empty_mapping_is_controlled(self) -> None:
        assert resolve_access(Expanded()) == "controlled"

    def test_scalar_verbatim(self) -> None:
        assert resolve_access(Scalar("read")) == "read"


class TestGetSetNode:
    """Tests for path lookup and copy-on-write set."""

    def test_get_missing_path(self, state) -> None:
        assert get_node(state, (99, 1, "native")) is None

    def test_get_below_scalar(self, state) -> None:
        """Nothing is stored below a scalar."""
        assert get_node(state, (2, 1, "schemas", "public")) is None

    def test_set_creates_missing_ancestors(self) -> None:
        state = set_node(EMPTY_STATE, (5, 1, "native"), Scalar("read"))
        assert state == Expanded({5: Expanded({1: Expanded({"native": Scalar("read")})})})

    def test_set_shares_untouched_subtrees(self, state) -> None:
        new_state = set_node(state, (2, 1, "native"), Scalar("read"))
        assert new_state.get(1) is state.get(1)
        assert new_state.get(2).get(2) is state.get(2).get(2)
        assert get_node(state, (2, 1, "native")) == Scalar("none")


class TestUpdatePermission:
    """Tests for the generic path-based updater."""

    def test_same_value_is_noop(self, state) -> None:
        assert update_permission(state, (2, 1, "schemas"), "all") is state

    def test_controlled_on_mapping_is_noop(self, state) -> None:
        assert update_permission(state, (2, 2, "schemas"), Access.CONTROLLED, ["sales", "hr"]) is state

    def test_none_on_absent_is_noop(self, state) -> None:
        assert update_permission(state, (3, 1, "native"), "none") is state

    def test_does_not_mutate_input(self, snapshot) -> None:
        state = state_from_dict(snapshot)
        before = state_to_dict(state)
        update_permission(state, (2, 1, "schemas"), "none")
        assert state_to_dict(state) == before

    def test_scalar_value_stored(self, state) -> None:
        new_state = update_permission(state, (2, 1, "schemas"), Access.NONE)
        assert get_node(new_state, (2, 1, "schemas")) == Scalar("none")

    def test_controlled_seeds_from_prior_scalar(self, state) -> None:
        new_state = update_permission(state, (2, 1, "schemas"), "controlled", ["public", "extra"])
        assert get_node(new_state, (2, 1, "schemas")) == Expanded(
            {"public": Scalar("all"), "extra": Scalar("all")}
        )

    def test_controlled_without_ids_is_empty(self, state) -> None:
        new_state = update_permission(state, (2, 1, "schemas"), "controlled")
        assert get_node(new_state, (2, 1, "schemas")) == Expanded()

    def test_controlled_from_absent_seeds_none(self) -> None:
        new_state = update_permission(EMPTY_STATE, (1, 1, "schemas"), "controlled", ["a"])
        assert get_node(new_state, (1, 1, "schemas")) == Expanded({"a": Scalar("none")})

    def test_scalar_prefix_replaced_with_mapping(self, state) -> None:
        """A deeper write turns a scalar ancestor into an empty mapping."""
        new_state = update_permission(state, (2, 1, "schemas", "public"), "none")
        assert get_node(new_state, (2, 1, "schemas")) == Expanded({"public": Scalar("none")})

    def test_none_below_scalar_ancestor_is_written(self) -> None:
        """Revoking below an ``all`` ancestor is a real change, not an absent-node no-op."""
        state = state_from_dict({2: {1: {"native": "none", "schemas": "all"}}})
        new_state = update_permission(state, (2, 1, "schemas", "public"), "none")
        assert new_state is not state
        assert get_node(new_state, (2, 1, "schemas", "public")) == Scalar("none")
        assert get_tables_access(new_state, 2, 1, "public") == Access.NONE

    def test_ancestor_value_below_scalar_is_noop(self, state) -> None:
        assert update_permission(state, (2, 1, "schemas", "public"), "all") is state
        assert update_permission(state, (2, 2, "schemas", "hr", 20), "none") is state

    def test_controlled_below_scalar_seeds_from_ancestor(self, state) -> None:
        new_state = update_permission(state, (2, 1, "schemas", "public"), "controlled", [1, 2])
        assert get_node(new_state, (2, 1, "schemas", "public")) == Expanded({1: Scalar("all"), 2: Scalar("all")})

    def test_expansion_completeness(self, state) -> None:
        """Every sibling id is a key right after a scalar -> controlled transition."""
        siblings = ["a", "b", "c", ""]
        new_state = update_permission(state, (2, 1, "schemas"), "controlled", siblings)
        assert set(get_node(new_state, (2, 1, "schemas")).keys()) == set(siblings)

    @pytest.mark.parametrize(
        "path",
        [
            (2, 1, "native"),
            (2, 1, "schemas"),
            (2, 2, "schemas"),
            (2, 2, "schemas", "hr"),
            (3, 2, "schemas", "sales", 11),
            (3, 3, "native"),
            (2, 1, "schemas", "public"),
            (2, 1, "schemas", "public", 1),
            (2, 2, "schemas", "hr", 20),
        ],
    )
    def test_resolved_value_is_noop(self, state, path) -> None:
        """Writing back the resolved value leaves the state structurally equal."""
        value = _resolved(state, path)
        assert update_permission(state, path, value) == state


class TestSnapshotConversion:
    """Tests for state_from_dict / state_to_dict."""

    def test_round_trip(self, snapshot) -> None:
        assert state_to_dict(state_from_dict(snapshot)) == snapshot

    def test_empty_snapshot(self) -> None:
        assert state_from_dict(None) is EMPTY_STATE
        assert state_from_dict({}) is EMPTY_STATE

    def test_null_values_dropped(self) -> None:
        state = state_from_dict({1: {1: {"native": None, "schemas": "all"}}})
        assert get_node(state, (1, 1, "native")) is None

    def test_unsupported_value(self) -> None:
        with pytest.raises(StaleSnapshotError):
            state_from_dict({1: {1: {"native": 3}}})

    def test_string_keys_mapped_to_topology_ids(self, topology, groups) -> None:
        raw = {"2": {"2": {"native": "none", "schemas": {"sales": {"10": "all"}}}}}
        state = state_from_dict(raw, groups=groups, topology=topology)
        assert get_node(state, (2, 2, "schemas", "sales", 10)) == Scalar("all")

    def test_unknown_keys_kept_verbatim(self, topology, groups) -> None:
        state = state_from_dict({"99": {"1": {"native": "read"}}}, groups=groups, topology=topology)
        assert get_node(state, ("99", 1, "native")) == Scalar("read")

    def test_structural_equality(self, snapshot) -> None:
        assert state_from_dict(snapshot) == state_from_dict(snapshot)
        assert state_from_dict(snapshot) is not state_from_dict(snapshot)
