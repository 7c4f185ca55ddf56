"""Ontology validation - checks nodes and edges against the type registry."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable

from ..models import Edge, Node
from .schema import Ontology


@dataclass
class ValidationResult:
    """Outcome of a validation pass: every violation found, in order."""

    valid: bool
    errors: list[str] = field(default_factory=list)

    @classmethod
    def from_errors(cls, errors: list[str]) -> "ValidationResult":
        return cls(valid=not errors, errors=list(errors))

    def __str__(self) -> str:
        if self.valid:
            return "valid"
        return "\n".join(f"ERROR: {e}" for e in self.errors)


def _expected(types: Iterable[str]) -> str:
    return ", ".join(sorted(types))


def validate_node_type(node: Node, ontology: Ontology) -> ValidationResult:
    """Check that a node's type is declared and its required properties are present.

    Extra properties are always accepted.
    """
    node_type = ontology.node_type(node.type)
    if node_type is None:
        return ValidationResult.from_errors([f'Node type "{node.type}" not found in ontology (node "{node.id}")'])

    errors = [
        f'Required property "{prop.name}" missing from node "{node.id}"'
        for prop in node_type.required_properties
        if prop.name not in node.properties
    ]
    return ValidationResult.from_errors(errors)


def validate_edge_type(edge: Edge, source_node: Node, target_node: Node, ontology: Ontology) -> ValidationResult:
    """Check an edge's type and its endpoint types.

    Source and target are checked independently so both violations are
    reported when both fail.
    """
    edge_type = ontology.edge_type(edge.type)
    if edge_type is None:
        return ValidationResult.from_errors([f'Edge type "{edge.type}" not found in ontology (edge "{edge.id}")'])

    errors: list[str] = []
    if source_node.type not in edge_type.source_types:
        errors.append(
            f'Edge "{edge.id}" has invalid source type "{source_node.type}". '
            f"Expected one of: {_expected(edge_type.source_types)}"
        )
    if target_node.type not in edge_type.target_types:
        errors.append(
            f'Edge "{edge.id}" has invalid target type "{target_node.type}". '
            f"Expected one of: {_expected(edge_type.target_types)}"
        )
    return ValidationResult.from_errors(errors)


def validate_flow_nodes(nodes: list[Node], ontology: Ontology) -> ValidationResult:
    errors: list[str] = []
    for node in nodes:
        errors.extend(validate_node_type(node, ontology).errors)
    return ValidationResult.from_errors(errors)


def validate_flow_edges(edges: list[Edge], nodes: list[Node], ontology: Ontology) -> ValidationResult:
    """Validate every edge; dangling references are reported per edge without aborting."""
    node_map = {n.id: n for n in nodes}
    errors: list[str] = []

    for edge in edges:
        source_node = node_map.get(edge.source)
        target_node = node_map.get(edge.target)

        dangling = False
        if source_node is None:
            errors.append(f'Edge "{edge.id}" references non-existent source node "{edge.source}"')
            dangling = True
        if target_node is None:
            errors.append(f'Edge "{edge.id}" references non-existent target node "{edge.target}"')
            dangling = True
        if dangling:
            continue

        errors.extend(validate_edge_type(edge, source_node, target_node, ontology).errors)  # type: ignore[arg-type]

    return ValidationResult.from_errors(errors)


def _duplicate_ids(ids: Iterable[str]) -> list[str]:
    return sorted(i for i, count in Counter(ids).items() if count > 1)


def validate_flow(nodes: list[Node], edges: list[Edge], ontology: Ontology) -> ValidationResult:
    """Full-graph validation: identity uniqueness, node types, then edges."""
    errors: list[str] = []
    for dup in _duplicate_ids(n.id for n in nodes):
        errors.append(f'Duplicate node id "{dup}"')
    for dup in _duplicate_ids(e.id for e in edges):
        errors.append(f'Duplicate edge id "{dup}"')
    errors.extend(validate_flow_nodes(nodes, ontology).errors)
    errors.extend(validate_flow_edges(edges, nodes, ontology).errors)
    return ValidationResult.from_errors(errors)
