"""Derived view: visible nodes and rendered edges for a toggle snapshot."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from ..models import Edge, Node
from .config import DEFAULT_TOPOLOGY, TopologyConfig
from .manager import should_node_be_visible
from .toggles import ToggleState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TopologyView:
    visible_node_ids: frozenset[str] = frozenset()
    edges: tuple[Edge, ...] = ()

    def visible_nodes(self, nodes: Iterable[Node]) -> list[Node]:
        return [n for n in nodes if n.id in self.visible_node_ids]

    @property
    def edge_ids(self) -> frozenset[str]:
        return frozenset(e.id for e in self.edges)


@dataclass(frozen=True)
class ViewDiff:
    added_nodes: frozenset[str] = frozenset()
    removed_nodes: frozenset[str] = frozenset()
    added_edges: tuple[Edge, ...] = ()
    removed_edges: tuple[Edge, ...] = ()

    @property
    def changed_edges(self) -> list[Edge]:
        return list(self.added_edges) + list(self.removed_edges)

    @property
    def empty(self) -> bool:
        return not (self.added_nodes or self.removed_nodes or self.added_edges or self.removed_edges)


def toggle_edge_id(anchor_id: str, dependent_id: str) -> str:
    return f"{anchor_id}->{dependent_id}"


def available_toggles(edges: Iterable[Edge], config: TopologyConfig = DEFAULT_TOPOLOGY) -> list[tuple[str, str]]:
    """(anchor, dependent) pairs offered by static edges of toggle types, in file order."""
    toggle_types = config.toggle_edge_types
    pairs: list[tuple[str, str]] = []
    for e in edges:
        pair = (e.source, e.target)
        if e.type in toggle_types and pair not in pairs:
            pairs.append(pair)
    return pairs


def derive_toggle_edges(
    nodes: Iterable[Node],
    toggles: ToggleState,
    config: TopologyConfig = DEFAULT_TOPOLOGY,
) -> list[Edge]:
    """One edge per ON pair; pairs the topology does not allow are skipped."""
    type_by_id = {n.id: n.type for n in nodes}
    derived: list[Edge] = []
    for anchor_id, dependent_id in toggles.pairs():
        anchor_type = type_by_id.get(anchor_id)
        dependent_type = type_by_id.get(dependent_id)
        if anchor_type is None or dependent_type is None:
            logger.warning("Ignoring toggle %s -> %s: unknown node", anchor_id, dependent_id)
            continue
        edge_type = config.edge_type_between(anchor_type, dependent_type)
        if edge_type is None:
            logger.warning(
                "Ignoring toggle %s -> %s: %s -> %s is not allowed by the topology",
                anchor_id,
                dependent_id,
                anchor_type,
                dependent_type,
            )
            continue
        derived.append(
            Edge(
                id=toggle_edge_id(anchor_id, dependent_id),
                source=anchor_id,
                target=dependent_id,
                type=edge_type,
                properties={"toggle": True},
            )
        )
    return derived


def compute_visible_node_ids(
    nodes: Iterable[Node],
    edges: Iterable[Edge],
    config: TopologyConfig = DEFAULT_TOPOLOGY,
) -> frozenset[str]:
    """Fixed point of the visibility predicate over ``edges``."""
    node_list = list(nodes)
    edge_list = list(edges)
    visible: set[str] = set()
    changed = True
    while changed:
        changed = False
        for node in node_list:
            if node.id in visible:
                continue
            if should_node_be_visible(node.id, node.type, edge_list, visible, config):
                visible.add(node.id)
                changed = True
    return frozenset(visible)


def compute_view(
    nodes: Iterable[Node],
    edges: Iterable[Edge],
    toggles: ToggleState,
    config: TopologyConfig = DEFAULT_TOPOLOGY,
) -> TopologyView:
    """Visible nodes and rendered edges for the given toggle snapshot.

    Toggle-type edges exist only while their pair is on; static edges of
    those types only declare which toggles are on offer.
    """
    node_list = list(nodes)
    toggle_types = config.toggle_edge_types
    candidate_edges = [e for e in edges if e.type not in toggle_types]
    candidate_edges.extend(derive_toggle_edges(node_list, toggles, config))

    visible = compute_visible_node_ids(node_list, candidate_edges, config)
    rendered = tuple(e for e in candidate_edges if e.source in visible and e.target in visible)
    return TopologyView(visible_node_ids=visible, edges=rendered)


def diff_views(before: TopologyView, after: TopologyView) -> ViewDiff:
    before_edges = {e.id: e for e in before.edges}
    after_edges = {e.id: e for e in after.edges}
    return ViewDiff(
        added_nodes=after.visible_node_ids - before.visible_node_ids,
        removed_nodes=before.visible_node_ids - after.visible_node_ids,
        added_edges=tuple(e for eid, e in after_edges.items() if eid not in before_edges),
        removed_edges=tuple(e for eid, e in before_edges.items() if eid not in after_edges),
    )
