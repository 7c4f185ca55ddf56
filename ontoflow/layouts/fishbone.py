"""Fishbone swim-lane placement.

Each node type owns a horizontal lane at a fixed distance from the phase
spine (lane 0). Lanes alternate sides by parity so neighbouring types do
not stack on the same side. Within a lane, nodes run left to right in
dependency order (a node follows the same-type nodes it points back to).

Also home to the parent-relative placement used for visualizations: a
dependent sits a fixed distance beyond its parent, along the ray from the
anchor grid centre through the parent.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from ..models import ORIGIN, Position, RenderEdge, RenderNode
from .base import coerce_params, moved

LANE_BY_TYPE = {
    "phase": 0,
    "sub-phase": 1,
    "sub-phase-component": 2,
    "mental-model": 3,
    "visualization": 4,
    "principle": 5,
    "output": 6,
    "outcome": 7,
    "impact": 8,
}
OTHER_LANE = 9

VISUALIZATION_DISTANCE = 350.0


@dataclass(frozen=True)
class FishboneParams:
    lane_spacing: float = 150.0
    horizontal_spacing: float = 300.0
    start_x: float = 100.0
    center_y: float = 400.0


def lane_for(node_type: str) -> int:
    lane = LANE_BY_TYPE.get(node_type, OTHER_LANE)
    return lane if lane % 2 else -lane


def _dependency_order(members: list[RenderNode], sources_by_target: dict[str, list[str]]) -> list[RenderNode]:
    by_id = {n.id: n for n in members}
    ordered: list[RenderNode] = []
    done: set[str] = set()
    visiting: set[str] = set()

    def visit(node: RenderNode) -> None:
        if node.id in done or node.id in visiting:
            return
        visiting.add(node.id)
        for source_id in sources_by_target.get(node.id, []):
            source = by_id.get(source_id)
            if source is not None:
                visit(source)
        visiting.discard(node.id)
        done.add(node.id)
        ordered.append(node)

    for node in members:
        visit(node)
    return ordered


def fishbone_layout(
    nodes: Iterable[RenderNode],
    edges: Iterable[RenderEdge],
    params: FishboneParams | Mapping[str, Any] | None = None,
) -> list[RenderNode]:
    p = coerce_params(FishboneParams, params)
    node_list = list(nodes)

    sources_by_target: dict[str, list[str]] = {}
    for e in edges:
        sources_by_target.setdefault(e.target, []).append(e.source)

    lanes: dict[int, list[RenderNode]] = {}
    for node in node_list:
        lanes.setdefault(lane_for(node.type), []).append(node)

    placed: dict[str, RenderNode] = {}
    for lane, members in lanes.items():
        y = p.center_y + lane * p.lane_spacing
        for i, node in enumerate(_dependency_order(members, sources_by_target)):
            placed[node.id] = moved(node, p.start_x + i * p.horizontal_spacing, y)
    return [placed[n.id] for n in node_list]


def grid_center(positions: Iterable[Position]) -> Position:
    """Mean of the anchor positions; the origin when there are none."""
    points = list(positions)
    if not points:
        return ORIGIN
    return Position(sum(pt.x for pt in points) / len(points), sum(pt.y for pt in points) / len(points))


def visualization_position(
    parent: Position,
    center: Position,
    distance: float = VISUALIZATION_DISTANCE,
) -> Position:
    """Point ``distance`` beyond ``parent`` on the ray from ``center``.

    A parent sitting exactly on the centre has no direction; the dependent
    then goes to its right.
    """
    vx = parent.x - center.x
    vy = parent.y - center.y
    magnitude = math.hypot(vx, vy)
    if magnitude == 0:
        return Position(parent.x + distance, parent.y)
    return Position(parent.x + vx / magnitude * distance, parent.y + vy / magnitude * distance)
