"""Flow files: YAML node and edge collections."""

from .loader import Flow, load_flow, merge_edge_files, merge_node_files, parse_flow_yaml

__all__ = ["Flow", "load_flow", "merge_edge_files", "merge_node_files", "parse_flow_yaml"]
