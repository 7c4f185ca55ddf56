from __future__ import annotations

import pytest

from ontoflow.graph.groups import (
    build_all_group_records,
    build_group_records,
    group_bounding_box,
)
from ontoflow.layouts.base import BOUNDARY_NODE_TYPE, GROUP_NODE_TYPE, NODE_HEIGHT, NODE_WIDTH
from ontoflow.models import Position, RenderNode
from ontoflow.topology.config import (
    DEFAULT_TOPOLOGY,
    GroupBoundary,
    GroupConfig,
    GroupMembers,
    GroupStyle,
)


def _node(node_id: str, node_type: str, x: float, y: float) -> RenderNode:
    return RenderNode(id=node_id, type=node_type, position=Position(x, y))


NODES = [
    _node("P1", "phase", 0, 0),
    _node("P2", "phase", 400, 200),
    _node("MM1", "mental-model", 1000, 1000),
]


def _group(strategy: str = "perimeter", enabled: bool = True) -> GroupConfig:
    return GroupConfig(
        id="g",
        display_name="Phases",
        members=GroupMembers(node_type="phase"),
        style=GroupStyle(padding=40),
        boundary=GroupBoundary(enabled=enabled, strategy=strategy, obstacle_size=80),
    )


def test_bounding_box_pads_member_boxes() -> None:
    box = group_bounding_box(NODES[:2], 40)
    assert box == (-40, -40, 400 + NODE_WIDTH + 80, 200 + NODE_HEIGHT + 80)


def test_container_record_covers_members() -> None:
    container, *boundaries = build_group_records(_group(), NODES)

    assert container.id == "__group-g"
    assert container.type == GROUP_NODE_TYPE
    assert container.position == Position(-40, -40)
    assert container.data["width"] == 660
    assert container.data["height"] == 340
    assert container.data["label"] == "Phases"
    assert container.data["style"]["borderColor"] == "#7C3AED"
    assert all(b.type == BOUNDARY_NODE_TYPE for b in boundaries)


@pytest.mark.parametrize("strategy, count", [("perimeter", 8), ("corners", 4)])
def test_boundary_strategy_controls_obstacle_count(strategy: str, count: int) -> None:
    _, *boundaries = build_group_records(_group(strategy), NODES)
    assert len(boundaries) == count
    assert all(b.data["invisible"] for b in boundaries)
    by_id = {b.id: b for b in boundaries}
    # Obstacles are centred on their anchor.
    assert by_id["__boundary-g-tl"].position == Position(-80, -80)
    assert by_id["__boundary-g-br"].position == Position(580, 260)


def test_disabled_boundary_and_missing_members() -> None:
    assert [r.type for r in build_group_records(_group(enabled=False), NODES)] == [GROUP_NODE_TYPE]
    assert build_group_records(_group(), NODES[2:]) == []


def test_default_topology_groups_phases() -> None:
    records = build_all_group_records(NODES, DEFAULT_TOPOLOGY)
    assert records[0].id == "__group-primary-phases"
    assert records[0].data["label"] == "Framework Phases"
    assert len(records) == 9
