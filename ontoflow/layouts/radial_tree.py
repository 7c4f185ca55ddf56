"""Radial tree layout.

Each connected component is placed around its own centre (two-column grid
of cluster centres); within a component, nodes sit on concentric rings by
BFS distance from the component root.
"""

from __future__ import annotations

import math
from collections import deque
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from ..models import RenderEdge, RenderNode
from .base import coerce_params, moved

CANVAS_CENTER = (400.0, 300.0)
GRID_COLUMNS = 2


@dataclass(frozen=True)
class RadialTreeParams:
    radius: float = 150.0
    angle_offset: float = 0.0  # degrees
    cluster_spacing: float = 600.0
    center: str | None = None


def _adjacency(order: list[str], edges: list[RenderEdge]) -> dict[str, list[str]]:
    adjacency: dict[str, list[str]] = {n: [] for n in order}
    for e in edges:
        if e.source not in adjacency or e.target not in adjacency or e.source == e.target:
            continue
        if e.target not in adjacency[e.source]:
            adjacency[e.source].append(e.target)
        if e.source not in adjacency[e.target]:
            adjacency[e.target].append(e.source)
    return adjacency


def _components(order: list[str], adjacency: dict[str, list[str]]) -> list[list[str]]:
    seen: set[str] = set()
    clusters: list[list[str]] = []
    for start in order:
        if start in seen:
            continue
        cluster: list[str] = []
        queue = deque([start])
        seen.add(start)
        while queue:
            nid = queue.popleft()
            cluster.append(nid)
            for other in adjacency[nid]:
                if other not in seen:
                    seen.add(other)
                    queue.append(other)
        clusters.append(cluster)
    return clusters


def cluster_center(index: int, spacing: float) -> tuple[float, float]:
    col = index % GRID_COLUMNS
    row = index // GRID_COLUMNS
    return (
        CANVAS_CENTER[0] + (col - 0.5) * spacing,
        CANVAS_CENTER[1] + (row - 0.5) * spacing,
    )


def _pick_root(cluster: list[str], edges: list[RenderEdge], preferred: str | None) -> str:
    if preferred is not None and preferred in cluster:
        return preferred
    members = set(cluster)
    has_incoming = {e.target for e in edges if e.source in members and e.target in members and e.source != e.target}
    for nid in cluster:
        if nid not in has_incoming:
            return nid
    return cluster[0]


def _rings(root: str, adjacency: dict[str, list[str]]) -> list[list[str]]:
    rings: list[list[str]] = [[root]]
    seen = {root}
    frontier = [root]
    while frontier:
        nxt: list[str] = []
        for nid in frontier:
            for other in adjacency[nid]:
                if other not in seen:
                    seen.add(other)
                    nxt.append(other)
        if nxt:
            rings.append(nxt)
        frontier = nxt
    return rings


def radial_tree_layout(
    nodes: Iterable[RenderNode],
    edges: Iterable[RenderEdge],
    params: RadialTreeParams | Mapping[str, Any] | None = None,
) -> list[RenderNode]:
    p = coerce_params(RadialTreeParams, params)
    node_list = list(nodes)
    if not node_list:
        return []
    if len(node_list) == 1:
        return [moved(node_list[0], *CANVAS_CENTER)]

    edge_list = list(edges)
    order = [n.id for n in node_list]
    adjacency = _adjacency(order, edge_list)
    offset = math.radians(p.angle_offset)

    positions: dict[str, tuple[float, float]] = {}
    for index, cluster in enumerate(_components(order, adjacency)):
        cx, cy = cluster_center(index, p.cluster_spacing)
        root = _pick_root(cluster, edge_list, p.center)
        for depth, ring in enumerate(_rings(root, adjacency)):
            if depth == 0:
                positions[root] = (cx, cy)
                continue
            step = 2 * math.pi / len(ring)
            for i, nid in enumerate(ring):
                angle = i * step + offset
                positions[nid] = (
                    cx + depth * p.radius * math.cos(angle),
                    cy + depth * p.radius * math.sin(angle),
                )

    return [moved(node, *positions[node.id]) for node in node_list]
