"""Ontology type registry: schema, loading and validation."""

from .load import OntologyStore, load_ontology, load_ontology_from_yaml, parse_ontology
from .schema import Ontology, OntologyEdgeType, OntologyNodeType
from .validator import (
    ValidationResult,
    validate_edge_type,
    validate_flow,
    validate_flow_edges,
    validate_flow_nodes,
    validate_node_type,
)

__all__ = [
    "Ontology",
    "OntologyEdgeType",
    "OntologyNodeType",
    "OntologyStore",
    "ValidationResult",
    "load_ontology",
    "load_ontology_from_yaml",
    "parse_ontology",
    "validate_edge_type",
    "validate_flow",
    "validate_flow_edges",
    "validate_flow_nodes",
    "validate_node_type",
]
