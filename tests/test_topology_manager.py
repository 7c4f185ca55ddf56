from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from ontoflow.models import Edge, Node
from ontoflow.topology.config import DEFAULT_TOPOLOGY, load_topology, parse_topology
from ontoflow.topology.manager import (
    PositionEvent,
    build_dependency_map,
    cascade_closure,
    get_cascade_delete_nodes,
    get_edges_to_remove_with_node,
    get_nodes_requiring_recalculation,
    is_edge_allowed,
    should_node_be_visible,
    should_recalculate_position,
)

EDGE_TYPES = ["contains", "precedes", "linked-to", "visualizes", "uses", "made-up"]


def _edge(source: str, target: str, edge_type: str) -> Edge:
    return Edge(id=f"{source}-{edge_type}-{target}", source=source, target=target, type=edge_type)


def test_nodes_without_required_parents_are_always_visible() -> None:
    assert should_node_be_visible("P1", "phase", [], set())
    assert should_node_be_visible("pr", "principle", [], set())


def test_mental_model_visible_when_any_anchor_is_visible() -> None:
    edges = [_edge("P1", "MM1", "linked-to"), _edge("C1", "MM1", "uses")]
    assert should_node_be_visible("MM1", "mental-model", edges, {"P1"})
    assert should_node_be_visible("MM1", "mental-model", edges, {"C1"})
    assert not should_node_be_visible("MM1", "mental-model", edges, set())


def test_mental_model_ignores_non_anchor_relationships() -> None:
    edges = [_edge("P1", "MM1", "contains")]
    assert not should_node_be_visible("MM1", "mental-model", edges, {"P1"})


def test_visualization_requires_visible_mental_model() -> None:
    edges = [_edge("MM1", "V1", "visualizes")]
    assert should_node_be_visible("V1", "visualization", edges, {"MM1"})
    assert not should_node_be_visible("V1", "visualization", edges, set())
    assert not should_node_be_visible("V1", "visualization", [_edge("MM1", "V1", "linked-to")], {"MM1"})


def test_unknown_node_type_is_invisible() -> None:
    assert not should_node_be_visible("x", "mystery", [], {"anything"})


def test_cascade_delete_nodes_one_hop() -> None:
    edges = [
        _edge("MM1", "V1", "visualizes"),
        _edge("MM1", "V2", "visualizes"),
        _edge("V1", "V3", "visualizes"),
        _edge("MM1", "O1", "linked-to"),
    ]
    assert get_cascade_delete_nodes("MM1", "mental-model", edges) == ["V1", "V2"]
    assert get_cascade_delete_nodes("P1", "phase", edges) == []
    assert get_cascade_delete_nodes("MM1", "mystery", edges) == []


@pytest.mark.parametrize("edge_type", EDGE_TYPES)
def test_visualization_to_mental_model_is_never_allowed(edge_type: str) -> None:
    assert not is_edge_allowed("visualization", "mental-model", edge_type)


@pytest.mark.parametrize("edge_type", EDGE_TYPES)
def test_phase_to_visualization_is_never_allowed(edge_type: str) -> None:
    assert not is_edge_allowed("phase", "visualization", edge_type)


def test_allowed_edges() -> None:
    assert is_edge_allowed("phase", "mental-model", "linked-to")
    assert is_edge_allowed("mental-model", "visualization", "visualizes")
    assert is_edge_allowed("sub-phase-component", "mental-model", "uses")
    assert not is_edge_allowed("mental-model", "phase", "linked-to")
    assert not is_edge_allowed("mystery", "phase", "contains")


def test_dependency_map_has_every_node() -> None:
    nodes = [Node(id="MM1", type="mental-model"), Node(id="V1", type="visualization"), Node(id="P1", type="phase")]
    edges = [_edge("P1", "MM1", "linked-to"), _edge("MM1", "V1", "visualizes")]
    dependency_map = build_dependency_map(nodes, edges)
    assert dependency_map["MM1"] == {"V1"}
    assert dependency_map["V1"] == set()
    assert dependency_map["P1"] == set()


def test_cascade_closure_is_transitive() -> None:
    dependency_map = {"a": {"b"}, "b": {"c"}, "c": {"a"}, "d": set()}
    assert cascade_closure("a", dependency_map) == {"b", "c"}
    assert cascade_closure("d", dependency_map) == set()
    assert cascade_closure("missing", dependency_map) == set()


def test_dragged_node_never_recalculates() -> None:
    assert should_recalculate_position("MM1", "mental-model", "edge-added", set())
    assert not should_recalculate_position("MM1", "mental-model", "edge-added", {"MM1"})


def test_user_dragged_event_never_triggers() -> None:
    for node_type in ("mental-model", "visualization", "phase"):
        assert not should_recalculate_position("n", node_type, "user-dragged", set())


def test_recalculation_triggers_by_type() -> None:
    assert should_recalculate_position("MM1", "mental-model", PositionEvent("edge-removed", edge_id="e1"), set())
    assert not should_recalculate_position("MM1", "mental-model", "parent-moved", set())
    assert should_recalculate_position("V1", "visualization", PositionEvent("parent-moved", parent_id="MM1"), set())
    assert not should_recalculate_position("P1", "phase", "edge-added", set())
    assert not should_recalculate_position("x", "mystery", "edge-added", set())
    assert not should_recalculate_position("MM1", "mental-model", "teleported", set())


def test_nodes_requiring_recalculation_follow_cascades() -> None:
    nodes = [
        Node(id="P1", type="phase"),
        Node(id="MM1", type="mental-model"),
        Node(id="V1", type="visualization"),
        Node(id="V2", type="visualization"),
    ]
    toggle_edge = _edge("P1", "MM1", "linked-to")
    edges = [toggle_edge, _edge("MM1", "V1", "visualizes"), _edge("MM1", "V2", "visualizes")]

    assert get_nodes_requiring_recalculation([toggle_edge], nodes, edges, set()) == {"MM1", "V1", "V2"}
    assert get_nodes_requiring_recalculation([toggle_edge], nodes, edges, {"V2"}) == {"MM1", "V1"}
    assert get_nodes_requiring_recalculation([toggle_edge], nodes, edges, {"MM1"}) == set()
    assert get_nodes_requiring_recalculation([], nodes, edges, set()) == set()


def test_nodes_requiring_recalculation_does_not_mutate_inputs() -> None:
    nodes = [Node(id="MM1", type="mental-model"), Node(id="V1", type="visualization")]
    edges = [_edge("MM1", "V1", "visualizes")]
    dragged: set[str] = set()
    get_nodes_requiring_recalculation(edges, nodes, edges, dragged, event="edge-removed")
    assert dragged == set()
    assert len(edges) == 1


def test_edges_to_remove_with_node() -> None:
    edges = [_edge("P1", "MM1", "linked-to"), _edge("MM1", "V1", "visualizes"), _edge("P1", "SP1", "contains")]
    assert get_edges_to_remove_with_node("MM1", edges) == ["P1-linked-to-MM1", "MM1-visualizes-V1"]


def test_edge_type_between_prefers_toggle_relationships() -> None:
    assert DEFAULT_TOPOLOGY.edge_type_between("sub-phase-component", "mental-model") == "linked-to"
    assert DEFAULT_TOPOLOGY.edge_type_between("mental-model", "visualization") == "visualizes"
    assert DEFAULT_TOPOLOGY.edge_type_between("visualization", "mental-model") is None
    assert DEFAULT_TOPOLOGY.toggle_edge_types == {"linked-to", "uses"}
    assert DEFAULT_TOPOLOGY.cascade_edge_types == {"visualizes"}


TOPOLOGY_YAML = """\
version: "1.1"
node_types:
  hub:
    display_name: Hub
    physics_controlled: false
    allowed_targets:
      - {edge_type: links, target_type: leaf}
    positioning:
      recalculate_triggers: [never]
  leaf:
    display_name: Leaf
    physics_controlled: true
    allowed_targets: []
    dependencies:
      required_parents:
        - {types: [hub], relationships: [links], mode: any}
    positioning:
      recalculate_triggers: [on-edge-added]
      preserve_user_position: true
edge_types:
  links:
    display_name: Links
    toggle: true
    style: {stroke: "#123456", stroke_dasharray: "4,4"}
"""


def test_load_topology_yaml(tmp_path: Path) -> None:
    path = tmp_path / "topology.yaml"
    path.write_text(TOPOLOGY_YAML, encoding="utf-8")
    topology = load_topology(path)

    assert topology.version == "1.1"
    assert topology.node("leaf").preserve_user_position
    assert "links" in topology.toggle_edge_types
    assert topology.edge("links").style.stroke == "#123456"
    assert "contains" in topology.edge_types
    assert should_node_be_visible("l", "leaf", [_edge("h", "l", "links")], {"h"}, topology)
    assert should_recalculate_position("l", "leaf", "edge-added", set(), topology)
    assert not should_recalculate_position("l", "leaf", "edge-removed", set(), topology)


def test_topology_rejects_all_mode() -> None:
    bad = TOPOLOGY_YAML.replace("mode: any", "mode: all")
    with pytest.raises(ValueError, match="mode 'all' is not supported"):
        parse_topology(yaml.safe_load(bad))


def test_topology_errors_name_the_offending_key() -> None:
    with pytest.raises(ValueError, match="version"):
        parse_topology({"node_types": {}})
    with pytest.raises(ValueError, match="Node type 'x' must have display_name"):
        parse_topology({"version": "1", "node_types": {"x": {}}})
    with pytest.raises(ValueError, match="unknown recalculate_triggers: sometimes"):
        parse_topology(
            {
                "version": "1",
                "node_types": {
                    "x": {
                        "display_name": "X",
                        "physics_controlled": True,
                        "allowed_targets": [],
                        "positioning": {"recalculate_triggers": ["sometimes"]},
                    }
                },
            }
        )


GROUPING_YAML = """\
grouping:
  hubs:
    display_name: Hubs
    members: {node_type: hub, filter: all}
    style: {border_color: "#112233", padding: 10}
    label: {text: All hubs, position: outside}
    boundary: {enabled: true, strategy: corners, obstacle_size: 40}
  picked:
    display_name: Picked
    members: {filter: specific, node_ids: [h1, l2]}
"""


def test_load_topology_grouping(tmp_path: Path) -> None:
    path = tmp_path / "topology.yaml"
    path.write_text(TOPOLOGY_YAML + GROUPING_YAML, encoding="utf-8")
    topology = load_topology(path)

    hubs = topology.groups["hubs"]
    assert hubs.members.matches("anything", "hub")
    assert not hubs.members.matches("anything", "leaf")
    assert hubs.style.padding == 10
    assert hubs.label.text == "All hubs"
    assert hubs.label.position == "outside"
    # Label colour follows the border unless set.
    assert hubs.label.color == "#112233"
    assert hubs.boundary.enabled
    assert hubs.boundary.strategy == "corners"
    assert hubs.boundary.obstacle_size == 40

    picked = topology.groups["picked"]
    assert picked.members.matches("l2", "leaf")
    assert not picked.members.matches("l1", "leaf")
    assert picked.label.text == "Picked"
    assert not picked.boundary.enabled


def test_topology_without_grouping_has_no_groups() -> None:
    assert parse_topology(yaml.safe_load(TOPOLOGY_YAML)).groups == {}
    assert "primary-phases" in DEFAULT_TOPOLOGY.groups
    assert DEFAULT_TOPOLOGY.groups["primary-phases"].boundary.enabled


@pytest.mark.parametrize(
    "group, message",
    [
        ({"members": {"node_type": "hub"}}, "Group 'g' must have display_name"),
        ({"display_name": "G"}, "Group 'g' must have members"),
        ({"display_name": "G", "members": {"filter": "some"}}, "unknown members filter: some"),
        ({"display_name": "G", "members": {"filter": "all"}}, "must have node_type"),
        (
            {"display_name": "G", "members": {"node_type": "hub"}, "label": {"position": "above"}},
            "unknown label position: above",
        ),
        (
            {"display_name": "G", "members": {"node_type": "hub"}, "boundary": {"strategy": "ring"}},
            "unknown boundary strategy: ring",
        ),
    ],
)
def test_grouping_errors_name_the_group(group: dict, message: str) -> None:
    data = yaml.safe_load(TOPOLOGY_YAML)
    data["grouping"] = {"g": group}
    with pytest.raises(ValueError, match=message):
        parse_topology(data)
