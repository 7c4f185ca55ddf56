"""Graph builder - map domain nodes/edges to render records."""

from __future__ import annotations

from typing import Iterable, Mapping

from ..models import ORIGIN, Edge, Node, Position, RenderEdge, RenderNode
from ..topology.config import DEFAULT_EDGE_TYPES, EdgeStyle, EdgeTypeConfig, TopologyConfig

# Keyed by relationship type; unknown types fall back to EdgeStyle().
DEFAULT_EDGE_STYLES: dict[str, EdgeTypeConfig] = dict(DEFAULT_EDGE_TYPES)

_FALLBACK_STYLE = EdgeStyle()


def edge_styles_from_topology(config: TopologyConfig) -> dict[str, EdgeTypeConfig]:
    """Style table from a topology config, over the built-in table."""
    styles = dict(DEFAULT_EDGE_STYLES)
    styles.update(config.edge_types)
    return styles


def build_render_node(node: Node, position: Position) -> RenderNode:
    data = node.to_dict()
    data["label"] = node.name
    return RenderNode(id=node.id, type=node.type, position=position, data=data)


def build_render_edge(edge: Edge, styles: Mapping[str, EdgeTypeConfig] | None = None) -> RenderEdge:
    table = DEFAULT_EDGE_STYLES if styles is None else styles
    type_cfg = table.get(edge.type)
    style = type_cfg.style if type_cfg else _FALLBACK_STYLE
    component = (type_cfg.edge_component if type_cfg else None) or "default"

    data = dict(edge.properties)
    data["relationship"] = edge.type
    return RenderEdge(
        id=edge.id,
        source=edge.source,
        target=edge.target,
        label=edge.label or edge.type,
        style=style.to_dict(),
        animated=edge.type == "precedes" or style.animated,
        type=component,
        data=data,
    )


def build_render_graph(
    nodes: Iterable[Node],
    edges: Iterable[Edge],
    positions: Mapping[str, Position] | None = None,
    *,
    styles: Mapping[str, EdgeTypeConfig] | None = None,
) -> tuple[list[RenderNode], list[RenderEdge]]:
    """Render records for a node/edge collection.

    With a position map, ids missing from it sit at the origin. Without one,
    each node's own position is used (origin when it has none).
    """
    render_nodes: list[RenderNode] = []
    for node in nodes:
        if positions is not None:
            pos = positions.get(node.id, ORIGIN)
        else:
            pos = node.position or ORIGIN
        render_nodes.append(build_render_node(node, pos))
    render_edges = [build_render_edge(e, styles) for e in edges]
    return render_nodes, render_edges
