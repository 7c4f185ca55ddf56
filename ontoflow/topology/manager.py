"""Topology manager - rule evaluation over a caller-supplied graph snapshot.

Every function here is pure: results depend only on the arguments, nothing
is cached between calls, and inputs are never mutated. Unknown node or edge
types mean "no rule applies" (invisible, no cascade, no recalculation).
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Iterable, Literal, Protocol, Union

from .config import DEFAULT_TOPOLOGY, TopologyConfig

PositionEventKind = Literal["edge-added", "edge-removed", "parent-moved", "user-dragged"]

_TRIGGER_BY_EVENT = {
    "edge-added": "on-edge-added",
    "edge-removed": "on-edge-removed",
    "parent-moved": "on-parent-moved",
}


class GraphEdgeLike(Protocol):
    source: str
    target: str
    type: str


class GraphNodeLike(Protocol):
    id: str
    type: str


@dataclass(frozen=True)
class PositionEvent:
    kind: PositionEventKind
    edge_id: str | None = None
    parent_id: str | None = None


EventArg = Union[PositionEvent, str]


def _event_kind(event: EventArg) -> str:
    return event.kind if isinstance(event, PositionEvent) else str(event)


def should_node_be_visible(
    node_id: str,
    node_type: str,
    edges: Iterable[GraphEdgeLike],
    visible_node_ids: set[str] | frozenset[str],
    config: TopologyConfig = DEFAULT_TOPOLOGY,
) -> bool:
    """Check whether a node meets its required-parent rules.

    A node type with no required parents is always visible. Otherwise every
    requirement needs at least one parent edge (of an allowed relationship)
    whose source is currently visible.
    """
    cfg = config.node(node_type)
    if cfg is None:
        return False
    if not cfg.required_parents:
        return True

    incoming = [e for e in edges if e.target == node_id]
    for requirement in cfg.required_parents:
        parent_edges = [e for e in incoming if e.type in requirement.relationships]
        if not any(e.source in visible_node_ids for e in parent_edges):
            return False
    return True


def get_cascade_delete_nodes(
    node_id: str,
    node_type: str,
    edges: Iterable[GraphEdgeLike],
    config: TopologyConfig = DEFAULT_TOPOLOGY,
) -> list[str]:
    """Nodes one cascade edge away from ``node_id``, in edge order."""
    cfg = config.node(node_type)
    if cfg is None or not cfg.cascade_delete:
        return []

    relationships = {rule.relationship for rule in cfg.cascade_delete}
    to_delete: list[str] = []
    for e in edges:
        if e.source == node_id and e.type in relationships and e.target not in to_delete:
            to_delete.append(e.target)
    return to_delete


def should_recalculate_position(
    node_id: str,
    node_type: str,
    event: EventArg,
    user_dragged_node_ids: set[str] | frozenset[str],
    config: TopologyConfig = DEFAULT_TOPOLOGY,
) -> bool:
    """Decide whether ``event`` should move ``node_id`` algorithmically.

    Manual drags always win: a dragged node never recalculates and a drag
    event never triggers recalculation.
    """
    if node_id in user_dragged_node_ids:
        return False
    trigger = _TRIGGER_BY_EVENT.get(_event_kind(event))
    if trigger is None:
        return False

    cfg = config.node(node_type)
    if cfg is None or not cfg.physics_controlled:
        return False
    return trigger in cfg.recalculate_triggers or "always" in cfg.recalculate_triggers


def is_edge_allowed(
    source_type: str,
    target_type: str,
    edge_type: str,
    config: TopologyConfig = DEFAULT_TOPOLOGY,
) -> bool:
    cfg = config.node(source_type)
    if cfg is None:
        return False
    return any(t.edge_type == edge_type and t.target_type == target_type for t in cfg.allowed_targets)


def build_dependency_map(
    nodes: Iterable[GraphNodeLike],
    edges: Iterable[GraphEdgeLike],
    config: TopologyConfig = DEFAULT_TOPOLOGY,
) -> dict[str, set[str]]:
    """Map every node id to the ids that cascade-depend on it.

    Nodes without dependents map to an empty set, never a missing key.
    """
    edge_list = list(edges)
    dependency_map: dict[str, set[str]] = {}
    for node in nodes:
        dependency_map[node.id] = set(get_cascade_delete_nodes(node.id, node.type, edge_list, config))
    return dependency_map


def cascade_closure(node_id: str, dependency_map: dict[str, set[str]]) -> set[str]:
    """All nodes transitively cascade-dependent on ``node_id`` (excluding itself)."""
    seen: set[str] = set()
    queue = deque(dependency_map.get(node_id, set()))
    while queue:
        current = queue.popleft()
        if current in seen or current == node_id:
            continue
        seen.add(current)
        queue.extend(dependency_map.get(current, set()) - seen)
    return seen


def get_nodes_requiring_recalculation(
    changed_edges: Iterable[GraphEdgeLike],
    all_nodes: Iterable[GraphNodeLike],
    all_edges: Iterable[GraphEdgeLike],
    user_dragged_node_ids: set[str] | frozenset[str],
    config: TopologyConfig = DEFAULT_TOPOLOGY,
    event: PositionEventKind = "edge-added",
) -> set[str]:
    """Nodes whose layout must be recomputed after ``changed_edges`` changed.

    Endpoints of each changed edge are included when their type recalculates
    on ``event``; then everything that cascade-depends on an included node is
    added transitively, skipping user-dragged nodes.
    """
    node_list = list(all_nodes)
    type_by_id = {n.id: n.type for n in node_list}
    result: set[str] = set()

    for edge in changed_edges:
        for endpoint in (edge.source, edge.target):
            node_type = type_by_id.get(endpoint)
            if node_type is None:
                continue
            if should_recalculate_position(endpoint, node_type, event, user_dragged_node_ids, config):
                result.add(endpoint)

    dependency_map = build_dependency_map(node_list, all_edges, config)
    queue = deque(sorted(result))
    while queue:
        current = queue.popleft()
        for dependent in sorted(dependency_map.get(current, set())):
            if dependent in result or dependent in user_dragged_node_ids:
                continue
            result.add(dependent)
            queue.append(dependent)

    return result


def get_edges_to_remove_with_node(node_id: str, edges: Iterable[GraphEdgeLike]) -> list[str]:
    """Ids of every edge touching ``node_id`` (incoming and outgoing)."""
    return [getattr(e, "id", f"{e.source}->{e.target}") for e in edges if e.source == node_id or e.target == node_id]
