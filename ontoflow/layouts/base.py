"""Shared layout types and helpers."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any, Mapping, TypeVar

from ..models import Position, RenderEdge, RenderNode

# Rendered node box, used for spacing and for centre/corner conversions.
NODE_WIDTH = 180.0
NODE_HEIGHT = 60.0

# Decoration records emitted for topology groups.
GROUP_NODE_TYPE = "group-container"
BOUNDARY_NODE_TYPE = "boundary-obstacle"

DIRECTIONS = ("TB", "BT", "LR", "RL")

P = TypeVar("P")


@dataclass(frozen=True)
class LayoutResult:
    nodes: list[RenderNode] = field(default_factory=list)
    edges: list[RenderEdge] = field(default_factory=list)


def moved(node: RenderNode, x: float, y: float) -> RenderNode:
    """Copy of ``node`` at a new position; ``data`` is copied too."""
    return dataclasses.replace(node, position=Position(float(x), float(y)), data=dict(node.data))


def node_size(node: RenderNode) -> tuple[float, float]:
    """Box size; decoration records carry their own width and height."""
    return float(node.data.get("width", NODE_WIDTH)), float(node.data.get("height", NODE_HEIGHT))


def node_center(node: RenderNode) -> tuple[float, float]:
    width, height = node_size(node)
    return node.position.x + width / 2, node.position.y + height / 2


def parse_direction(value: Any) -> str:
    direction = str(value or "").strip().upper()
    if direction not in DIRECTIONS:
        raise ValueError(f"Invalid layout direction: {value!r} (expected one of {', '.join(DIRECTIONS)})")
    return direction


def _convert(value: Any, default: Any) -> Any:
    if value is None or default is None or isinstance(default, bool):
        return value
    if isinstance(default, int):
        return int(float(value))
    if isinstance(default, float):
        return float(value)
    return value


def coerce_params(cls: type[P], params: P | Mapping[str, Any] | None) -> P:
    """Build a params dataclass from a mapping; unknown keys are ignored."""
    if params is None:
        return cls()
    if isinstance(params, cls):
        return params
    values: dict[str, Any] = {}
    for f in dataclasses.fields(cls):  # type: ignore[arg-type]
        if f.name not in params:  # type: ignore[operator]
            continue
        default = f.default if f.default is not dataclasses.MISSING else None
        try:
            values[f.name] = _convert(params[f.name], default)  # type: ignore[index]
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Invalid value for layout parameter '{f.name}': {params[f.name]!r}") from exc  # type: ignore[index]
    return cls(**values)
