"""Data models for flow graphs and their render records."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

# Node types known to the default topology
NodeType = Literal[
    "phase",
    "sub-phase",
    "sub-phase-component",
    "mental-model",
    "visualization",
    "principle",
    "output",
    "outcome",
    "impact",
]

# Relationship types known to the default topology
EdgeType = Literal[
    "contains",
    "precedes",
    "linked-to",
    "visualizes",
    "uses",
]


@dataclass(frozen=True)
class Position:
    """A point on the canvas (top-left corner of a node box)."""

    x: float = 0.0
    y: float = 0.0

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y}


ORIGIN = Position(0.0, 0.0)


@dataclass
class NodeLayout:
    """Per-node layout override declared in the flow file."""

    algorithm: str | None = None
    parameters: dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"algorithm": self.algorithm, "parameters": dict(self.parameters)}


@dataclass
class Node:
    """A domain node loaded from a flow file."""

    id: str
    type: str  # references OntologyNodeType.id
    name: str = ""
    description: str = ""
    properties: dict[str, Any] = field(default_factory=dict)
    position: Position | None = None
    layout: NodeLayout | None = None

    def __post_init__(self) -> None:
        if not self.name:
            self.name = str(self.properties.get("name") or self.id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "name": self.name,
            "description": self.description,
            "properties": dict(self.properties),
            "position": self.position.to_dict() if self.position else None,
            "layout": self.layout.to_dict() if self.layout else None,
        }


@dataclass
class Edge:
    """A directed domain edge loaded from a flow file (or derived from a toggle)."""

    id: str
    source: str  # references Node.id
    target: str  # references Node.id
    type: str  # references OntologyEdgeType.id
    properties: dict[str, Any] = field(default_factory=dict)
    label: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "type": self.type,
            "properties": dict(self.properties),
            "label": self.label,
        }


@dataclass(frozen=True)
class RenderNode:
    """Node record handed to the renderer, keyed by id for diffing."""

    id: str
    type: str
    position: Position
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "position": self.position.to_dict(),
            "data": dict(self.data),
        }


@dataclass(frozen=True)
class RenderEdge:
    """Edge record handed to the renderer, keyed by id for diffing."""

    id: str
    source: str
    target: str
    label: str = ""
    style: dict[str, Any] = field(default_factory=dict)
    animated: bool = False
    type: str = "default"
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "label": self.label,
            "style": dict(self.style),
            "animated": self.animated,
            "type": self.type,
            "data": dict(self.data),
        }
