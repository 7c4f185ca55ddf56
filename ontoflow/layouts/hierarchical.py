"""Hierarchical (layered) layout."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from ..models import RenderEdge, RenderNode
from .base import NODE_HEIGHT, NODE_WIDTH, coerce_params, moved, parse_direction

SWEEPS = 2


@dataclass(frozen=True)
class HierarchicalParams:
    rank_separation: float = 100.0
    node_separation: float = 80.0
    direction: str = "TB"


def _back_edges(order: list[str], succ: dict[str, list[str]]) -> set[tuple[str, str]]:
    """Edges closing a cycle, found by an iterative DFS in input order."""
    state: dict[str, int] = {}  # 1 = on stack, 2 = done
    back: set[tuple[str, str]] = set()
    for root in order:
        if root in state:
            continue
        state[root] = 1
        stack = [(root, iter(succ[root]))]
        while stack:
            node, children = stack[-1]
            advanced = False
            for child in children:
                child_state = state.get(child)
                if child_state == 1:
                    back.add((node, child))
                elif child_state is None:
                    state[child] = 1
                    stack.append((child, iter(succ[child])))
                    advanced = True
                    break
            if not advanced:
                state[node] = 2
                stack.pop()
    return back


def _assign_ranks(order: list[str], dag: list[tuple[str, str]]) -> dict[str, int]:
    """Longest path from any source."""
    indegree = {n: 0 for n in order}
    succ: dict[str, list[str]] = {n: [] for n in order}
    for s, t in dag:
        succ[s].append(t)
        indegree[t] += 1
    rank = {n: 0 for n in order}
    queue = deque(n for n in order if indegree[n] == 0)
    while queue:
        node = queue.popleft()
        for child in succ[node]:
            rank[child] = max(rank[child], rank[node] + 1)
            indegree[child] -= 1
            if indegree[child] == 0:
                queue.append(child)
    return rank


def _order_layers(
    layers: list[list[str]],
    preds: dict[str, list[str]],
    succs: dict[str, list[str]],
) -> list[list[str]]:
    """Barycenter sweeps, down then up."""
    layers = [list(layer) for layer in layers]

    def reorder(layer: list[str], ref: list[str], neighbours: dict[str, list[str]]) -> list[str]:
        slot = {nid: i for i, nid in enumerate(ref)}
        keyed = []
        for i, nid in enumerate(layer):
            linked = [slot[m] for m in neighbours[nid] if m in slot]
            keyed.append((sum(linked) / len(linked) if linked else float(i), i, nid))
        return [nid for _, _, nid in sorted(keyed)]

    for _ in range(SWEEPS):
        for r in range(1, len(layers)):
            layers[r] = reorder(layers[r], layers[r - 1], preds)
        for r in range(len(layers) - 2, -1, -1):
            layers[r] = reorder(layers[r], layers[r + 1], succs)
    return layers


def hierarchical_layout(
    nodes: Iterable[RenderNode],
    edges: Iterable[RenderEdge],
    params: HierarchicalParams | Mapping[str, Any] | None = None,
) -> list[RenderNode]:
    """Rank nodes along the flow direction and spread each rank across it.

    Positions are box corners; the box centre of rank ``r`` sits
    ``r * (rank_separation + box depth)`` from the first rank.
    """
    p = coerce_params(HierarchicalParams, params)
    direction = parse_direction(p.direction)
    node_list = list(nodes)
    if not node_list:
        return []

    order = [n.id for n in node_list]
    known = set(order)
    pairs: list[tuple[str, str]] = []
    for e in edges:
        pair = (e.source, e.target)
        if e.source in known and e.target in known and e.source != e.target and pair not in pairs:
            pairs.append(pair)

    succ: dict[str, list[str]] = {n: [] for n in order}
    for s, t in pairs:
        succ[s].append(t)
    back = _back_edges(order, succ)
    dag = [pair for pair in pairs if pair not in back]

    rank = _assign_ranks(order, dag)
    depth = max(rank.values()) + 1
    layers: list[list[str]] = [[] for _ in range(depth)]
    for nid in order:
        layers[rank[nid]].append(nid)

    preds: dict[str, list[str]] = {n: [] for n in order}
    succs: dict[str, list[str]] = {n: [] for n in order}
    for s, t in dag:
        preds[t].append(s)
        succs[s].append(t)
    layers = _order_layers(layers, preds, succs)

    vertical = direction in ("TB", "BT")
    rank_dim = NODE_HEIGHT if vertical else NODE_WIDTH
    spread_dim = NODE_WIDTH if vertical else NODE_HEIGHT
    sign = -1 if direction in ("BT", "RL") else 1

    centers: dict[str, tuple[float, float]] = {}
    for r, layer in enumerate(layers):
        along = sign * r * (p.rank_separation + rank_dim)
        k = len(layer)
        for i, nid in enumerate(layer):
            across = (i - (k - 1) / 2) * (spread_dim + p.node_separation)
            centers[nid] = (across, along) if vertical else (along, across)

    result = []
    for node in node_list:
        cx, cy = centers[node.id]
        result.append(moved(node, cx - NODE_WIDTH / 2, cy - NODE_HEIGHT / 2))
    return result
