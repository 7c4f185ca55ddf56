from __future__ import annotations

from ontoflow.graph.builder import (
    build_render_edge,
    build_render_graph,
    build_render_node,
    edge_styles_from_topology,
)
from ontoflow.models import ORIGIN, Edge, Node, Position
from ontoflow.topology.config import EdgeStyle, EdgeTypeConfig, TopologyConfig


def test_render_node_carries_domain_fields() -> None:
    node = Node(id="MM1", type="mental-model", name="JTBD", description="d", properties={"summary": "s"})
    record = build_render_node(node, Position(10, 20))
    assert record.id == "MM1"
    assert record.type == "mental-model"
    assert record.position == Position(10, 20)
    assert record.data["label"] == "JTBD"
    assert record.data["description"] == "d"
    assert record.data["properties"] == {"summary": "s"}
    assert record.to_dict()["position"] == {"x": 10, "y": 20}


def test_only_precedes_is_animated_by_default() -> None:
    for edge_type in ("contains", "linked-to", "visualizes", "uses"):
        assert not build_render_edge(Edge(id="e", source="a", target="b", type=edge_type)).animated
    assert build_render_edge(Edge(id="e", source="a", target="b", type="precedes")).animated


def test_render_edge_style_and_label() -> None:
    record = build_render_edge(Edge(id="e", source="a", target="b", type="linked-to"))
    assert record.label == "linked-to"
    assert record.style["stroke"] == "#A78BFA"
    assert record.style["strokeDasharray"] == "5,5"
    assert record.type == "smoothStep"
    assert record.data["relationship"] == "linked-to"

    labelled = build_render_edge(Edge(id="e", source="a", target="b", type="uses", label="relies on"))
    assert labelled.label == "relies on"
    assert labelled.type == "default"


def test_unknown_edge_type_gets_fallback_style() -> None:
    record = build_render_edge(Edge(id="e", source="a", target="b", type="mystery"))
    assert record.style == {"stroke": "#A78BFA", "strokeWidth": 2}
    assert not record.animated


def test_render_graph_positions() -> None:
    nodes = [Node(id="a", type="phase", position=Position(5, 5)), Node(id="b", type="phase")]
    edges = [Edge(id="e", source="a", target="b", type="precedes")]

    render_nodes, render_edges = build_render_graph(nodes, edges)
    assert [n.position for n in render_nodes] == [Position(5, 5), ORIGIN]
    assert [e.id for e in render_edges] == ["e"]

    render_nodes, _ = build_render_graph(nodes, edges, {"b": Position(1, 2)})
    assert [n.position for n in render_nodes] == [ORIGIN, Position(1, 2)]


def test_topology_styles_override_builtin_table() -> None:
    config = TopologyConfig(
        edge_types={"uses": EdgeTypeConfig(id="uses", display_name="Uses", style=EdgeStyle(stroke="#000000", animated=True))}
    )
    styles = edge_styles_from_topology(config)
    record = build_render_edge(Edge(id="e", source="a", target="b", type="uses"), styles)
    assert record.style["stroke"] == "#000000"
    assert record.animated
    assert "precedes" in styles
