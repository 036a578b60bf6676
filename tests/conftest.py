"""Shared fixtures: a small topology, groups and snapshots."""

from __future__ import annotations

import pytest

from permtree import Group, Topology, state_from_dict


@pytest.fixture
def topology() -> Topology:
    """D1 has one schema (public: T1, T2); D2 has two schemas; D3 has no schema names."""
    return Topology.from_payload(
        {
            "databases": [
                {
                    "id": 1,
                    "name": "Sample",
                    "tables": [
                        {"id": 1, "display_name": "Orders", "schema": "public"},
                        {"id": 2, "display_name": "People", "schema": "public"},
                    ],
                },
                {
                    "id": 2,
                    "name": "Warehouse",
                    "tables": [
                        {"id": 10, "display_name": "Sales", "schema": "sales"},
                        {"id": 11, "display_name": "Refunds", "schema": "sales"},
                        {"id": 20, "display_name": "Staff", "schema": "hr"},
                    ],
                },
                {
                    "id": 3,
                    "name": "Flat",
                    "tables": [
                        {"id": 30, "display_name": "Events", "schema": None},
                    ],
                },
            ]
        }
    )


@pytest.fixture
def groups() -> list[Group]:
    return [
        Group(id=1, name="Administrators", editable=False),
        Group(id=2, name="Marketing"),
        Group(id=3, name="Finance"),
    ]


@pytest.fixture
def snapshot() -> dict:
    return {
        1: {
            1: {"native": "write", "schemas": "all"},
            2: {"native": "write", "schemas": "all"},
            3: {"native": "write", "schemas": "all"},
        },
        2: {
            1: {"native": "none", "schemas": "all"},
            2: {"native": "read", "schemas": {"sales": "all", "hr": "none"}},
        },
        3: {
            2: {"native": "none", "schemas": {"sales": {10: "all", 11: "none"}}},
        },
    }


@pytest.fixture
def state(snapshot):
    return state_from_dict(snapshot)
