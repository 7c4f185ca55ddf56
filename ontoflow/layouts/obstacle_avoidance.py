"""Obstacle-avoidance edge router.

Node positions are left alone. Each edge runs centre to centre; when that
segment crosses another node's padded box, two waypoints take it around the
nearest blocking box on the side away from the box centre.

Group boundary records are obstacles like any other box; group containers
enclose their members and never block.
"""

from __future__ import annotations

import dataclasses
import math
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from ..models import RenderEdge, RenderNode
from .base import GROUP_NODE_TYPE, NODE_HEIGHT, NODE_WIDTH, LayoutResult, coerce_params, node_center, node_size

# Perpendicular offset used when the segment passes exactly through a box centre.
DEGENERATE_OFFSET = 100.0
MAX_SMOOTHING_PASSES = 3

Point = tuple[float, float]
Box = tuple[float, float, float, float]  # left, top, right, bottom
Size = tuple[float, float]

DEFAULT_SIZE: Size = (NODE_WIDTH, NODE_HEIGHT)


@dataclass(frozen=True)
class ObstacleAvoidanceParams:
    obstacle_padding: float = 20.0
    path_smoothing: float = 0.0


def padded_box(center: Point, padding: float, size: Size = DEFAULT_SIZE) -> Box:
    hw = size[0] / 2 + padding
    hh = size[1] / 2 + padding
    return center[0] - hw, center[1] - hh, center[0] + hw, center[1] + hh


def segment_box_entry(start: Point, end: Point, box: Box) -> float | None:
    """Parameter in [0, 1] where the segment enters ``box`` (Liang-Barsky), or None."""
    x0, y0 = start
    dx = end[0] - x0
    dy = end[1] - y0
    left, top, right, bottom = box
    t_enter, t_exit = 0.0, 1.0
    for p, q in ((-dx, x0 - left), (dx, right - x0), (-dy, y0 - top), (dy, bottom - y0)):
        if p == 0:
            if q < 0:
                return None
            continue
        t = q / p
        if p < 0:
            t_enter = max(t_enter, t)
        else:
            t_exit = min(t_exit, t)
        if t_enter > t_exit:
            return None
    return t_enter


def _detour(start: Point, end: Point, center: Point, padding: float, size: Size = DEFAULT_SIZE) -> list[Point]:
    length = math.hypot(end[0] - start[0], end[1] - start[1])
    if length == 0:
        return []
    dx = (end[0] - start[0]) / length
    dy = (end[1] - start[1]) / length
    nx, ny = -dy, dx

    rel_x = center[0] - start[0]
    rel_y = center[1] - start[1]
    along = rel_x * dx + rel_y * dy
    side = rel_x * nx + rel_y * ny

    hw = size[0] / 2 + padding
    hh = size[1] / 2 + padding
    extent_across = abs(nx) * hw + abs(ny) * hh
    extent_along = abs(dx) * hw + abs(dy) * hh

    if side == 0:
        offset = max(DEGENERATE_OFFSET, extent_across + padding)
        sign = 1.0
    else:
        offset = extent_across - abs(side) + padding
        sign = -1.0 if side > 0 else 1.0

    ox = nx * sign * offset
    oy = ny * sign * offset
    return [
        (start[0] + dx * (along - extent_along) + ox, start[1] + dy * (along - extent_along) + oy),
        (start[0] + dx * (along + extent_along) + ox, start[1] + dy * (along + extent_along) + oy),
    ]


def chaikin(points: list[Point], passes: int) -> list[Point]:
    """Corner-cutting; endpoints are kept."""
    for _ in range(passes):
        if len(points) < 3:
            return points
        smoothed = [points[0]]
        for (x0, y0), (x1, y1) in zip(points, points[1:]):
            smoothed.append((0.75 * x0 + 0.25 * x1, 0.75 * y0 + 0.25 * y1))
            smoothed.append((0.25 * x0 + 0.75 * x1, 0.25 * y0 + 0.75 * y1))
        smoothed.append(points[-1])
        points = smoothed
    return points


def _smoothing_passes(smoothing: float) -> int:
    if smoothing <= 0:
        return 0
    return max(1, min(MAX_SMOOTHING_PASSES, round(smoothing * MAX_SMOOTHING_PASSES)))


def route_edge(
    edge: RenderEdge,
    by_id: Mapping[str, RenderNode],
    params: ObstacleAvoidanceParams,
) -> RenderEdge:
    source = by_id.get(edge.source)
    target = by_id.get(edge.target)
    if source is None or target is None:
        return edge

    start = node_center(source)
    end = node_center(target)
    blocking: list[tuple[float, Point, Size]] = []
    for nid, node in by_id.items():
        if nid in (edge.source, edge.target) or node.type == GROUP_NODE_TYPE:
            continue
        center = node_center(node)
        size = node_size(node)
        entry = segment_box_entry(start, end, padded_box(center, params.obstacle_padding, size))
        if entry is not None:
            blocking.append((entry, center, size))
    if not blocking:
        return edge

    _, nearest, size = min(blocking, key=lambda item: item[0])
    waypoints = _detour(start, end, nearest, params.obstacle_padding, size)
    if not waypoints:
        return edge
    path = chaikin([start, *waypoints, end], _smoothing_passes(params.path_smoothing))

    data = dict(edge.data)
    data["waypoints"] = [{"x": x, "y": y} for x, y in path[1:-1]]
    return dataclasses.replace(edge, data=data)


def obstacle_avoidance_layout(
    nodes: Iterable[RenderNode],
    edges: Iterable[RenderEdge],
    params: ObstacleAvoidanceParams | Mapping[str, Any] | None = None,
) -> LayoutResult:
    p = coerce_params(ObstacleAvoidanceParams, params)
    node_list = list(nodes)
    by_id = {n.id: n for n in node_list}
    routed = [route_edge(e, by_id, p) for e in edges]
    return LayoutResult(nodes=node_list, edges=routed)
