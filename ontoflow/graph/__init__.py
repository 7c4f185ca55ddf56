from .builder import (
    DEFAULT_EDGE_STYLES,
    build_render_edge,
    build_render_graph,
    build_render_node,
    edge_styles_from_topology,
)
from .groups import build_all_group_records, build_group_records

__all__ = [
    "DEFAULT_EDGE_STYLES",
    "build_all_group_records",
    "build_group_records",
    "build_render_edge",
    "build_render_graph",
    "build_render_node",
    "edge_styles_from_topology",
]
