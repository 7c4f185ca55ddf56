from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal


PropertyType = Literal["string", "number", "boolean", "array", "object"]
StrokeStyle = Literal["solid", "dashed", "dotted"]


@dataclass(frozen=True)
class NodeProperty:
    name: str
    type: PropertyType = "string"
    required: bool = False
    default: Any = None


@dataclass(frozen=True)
class NodeLayoutDefaults:
    algorithm: str = "force-directed"
    parameters: dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class OntologyNodeType:
    id: str
    name: str
    description: str = ""
    properties: tuple[NodeProperty, ...] = ()
    layout: NodeLayoutDefaults = field(default_factory=NodeLayoutDefaults)
    parent: str | None = None  # references OntologyNodeType.id

    @property
    def required_properties(self) -> list[NodeProperty]:
        return [p for p in self.properties if p.required]


@dataclass(frozen=True)
class EdgeVisual:
    color: str = "#A78BFA"
    style: StrokeStyle = "solid"
    arrow: bool = True


@dataclass(frozen=True)
class OntologyEdgeType:
    id: str
    name: str
    description: str = ""
    source_types: frozenset[str] = frozenset()
    target_types: frozenset[str] = frozenset()
    visual: EdgeVisual = field(default_factory=EdgeVisual)


@dataclass(frozen=True)
class Ontology:
    """Type registry: ordered node and edge type declarations."""

    node_types: tuple[OntologyNodeType, ...] = ()
    edge_types: tuple[OntologyEdgeType, ...] = ()

    def node_type(self, type_id: str) -> OntologyNodeType | None:
        for t in self.node_types:
            if t.id == type_id:
                return t
        return None

    def edge_type(self, type_id: str) -> OntologyEdgeType | None:
        for t in self.edge_types:
            if t.id == type_id:
                return t
        return None
