"""Topology rules: configuration, rule evaluation, toggle-derived views."""

from .config import DEFAULT_TOPOLOGY, GroupConfig, TopologyConfig, load_topology, parse_topology
from .manager import (
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
from .toggles import ToggleState
from .view import TopologyView, ViewDiff, available_toggles, compute_view, diff_views

__all__ = [
    "DEFAULT_TOPOLOGY",
    "GroupConfig",
    "PositionEvent",
    "ToggleState",
    "TopologyConfig",
    "TopologyView",
    "ViewDiff",
    "available_toggles",
    "build_dependency_map",
    "cascade_closure",
    "compute_view",
    "diff_views",
    "get_cascade_delete_nodes",
    "get_edges_to_remove_with_node",
    "get_nodes_requiring_recalculation",
    "is_edge_allowed",
    "load_topology",
    "parse_topology",
    "should_node_be_visible",
    "should_recalculate_position",
]
