"""Graph session - one caller's toggles, positions and drags over a flow."""

from __future__ import annotations

import logging
from collections import deque
from typing import Iterable

from .graph.builder import build_render_graph, edge_styles_from_topology
from .graph.groups import build_all_group_records
from .layouts.base import BOUNDARY_NODE_TYPE
from .layouts.engine import apply_layout, keeps_positions
from .layouts.fishbone import fishbone_layout, grid_center, visualization_position
from .layouts.state import LayoutState
from .models import Edge, Node, Position, RenderEdge, RenderNode
from .topology.config import DEFAULT_TOPOLOGY, TopologyConfig
from .topology.manager import (
    PositionEvent,
    build_dependency_map,
    get_nodes_requiring_recalculation,
    should_recalculate_position,
)
from .topology.toggles import ToggleState
from .topology.view import TopologyView, ViewDiff, compute_view, diff_views

logger = logging.getLogger(__name__)


class GraphSession:
    """Drives toggle -> topology -> diff -> layout -> render records.

    Positions are adopted from a layout run only for nodes the topology says
    must move (or that have never been placed); user-dragged nodes keep the
    position they were dropped at until ``clear_drag``. Unplaced fixed-type
    nodes get a fishbone seat before the layout runs, and dependents of a
    dragged node are re-placed relative to it on the next refresh.
    """

    def __init__(
        self,
        nodes: Iterable[Node],
        edges: Iterable[Edge],
        topology: TopologyConfig = DEFAULT_TOPOLOGY,
        layout_state: LayoutState | None = None,
    ):
        self.nodes = list(nodes)
        self.edges = list(edges)
        self.topology = topology
        self.layout_state = layout_state or LayoutState()
        self.toggles = ToggleState()
        self.positions: dict[str, Position] = {n.id: n.position for n in self.nodes if n.position is not None}
        self.dragged: set[str] = set()
        self._types = {n.id: n.type for n in self.nodes}
        self._styles = edge_styles_from_topology(topology)
        self._last_view = TopologyView()
        self._routed: dict[str, RenderEdge] = {}
        # (dependent, parent) pairs awaiting parent-relative placement, parents first.
        self._parent_moved: list[tuple[str, str]] = []

    def toggle(self, anchor_id: str, dependent_id: str) -> bool:
        return self.toggles.toggle(anchor_id, dependent_id)

    def is_on(self, anchor_id: str, dependent_id: str) -> bool:
        return self.toggles.is_on(anchor_id, dependent_id)

    def drag(self, node_id: str, position: Position) -> None:
        self.positions[node_id] = position
        self.dragged.add(node_id)
        self._mark_parent_moved(node_id)

    def clear_drag(self, node_id: str | None = None) -> None:
        if node_id is None:
            self.dragged.clear()
        else:
            self.dragged.discard(node_id)

    def view(self) -> TopologyView:
        return compute_view(self.nodes, self.edges, self.toggles, self.topology)

    def _is_fixed(self, node_id: str) -> bool:
        cfg = self.topology.node(self._types.get(node_id, ""))
        return cfg is not None and not cfg.physics_controlled

    def _mark_parent_moved(self, node_id: str) -> None:
        dependency_map = build_dependency_map(self.nodes, self.view().edges, self.topology)
        queued = {dep for dep, _ in self._parent_moved}
        seen = {node_id}
        queue = deque([node_id])
        while queue:
            parent = queue.popleft()
            for dep in sorted(dependency_map.get(parent, set()) - seen):
                seen.add(dep)
                event = PositionEvent("parent-moved", parent_id=parent)
                if not should_recalculate_position(dep, self._types[dep], event, self.dragged, self.topology):
                    continue
                if dep not in queued:
                    self._parent_moved.append((dep, parent))
                    queued.add(dep)
                queue.append(dep)

    def _seed_positions(self, visible_nodes: list[Node], edges: Iterable[Edge], seed_ids: set[str]) -> None:
        if not seed_ids:
            return
        render_nodes, render_edges = build_render_graph(visible_nodes, edges, self.positions, styles=self._styles)
        for node in fishbone_layout(render_nodes, render_edges):
            if node.id in seed_ids:
                self.positions[node.id] = node.position
        logger.debug("Seeded %d node(s) with fishbone placement", len(seed_ids))

    def _place_moved_dependents(self, visible: frozenset[str]) -> set[str]:
        center = grid_center(
            self.positions[nid] for nid in sorted(visible) if self._is_fixed(nid) and nid in self.positions
        )
        placed: set[str] = set()
        for dep, parent in self._parent_moved:
            if dep not in visible or dep in self.dragged or parent not in self.positions:
                continue
            self.positions[dep] = visualization_position(self.positions[parent], center)
            placed.add(dep)
        self._parent_moved.clear()
        return placed

    async def refresh(self, changed_edges: Iterable[Edge] | None = None) -> ViewDiff:
        """Recompute the view and reposition the nodes it affects."""
        current = self.view()
        diff = diff_views(self._last_view, current)
        visible = current.visible_node_ids

        if changed_edges is not None:
            affected = get_nodes_requiring_recalculation(
                changed_edges, self.nodes, current.edges, self.dragged, self.topology
            )
        else:
            affected = get_nodes_requiring_recalculation(
                diff.added_edges, self.nodes, current.edges, self.dragged, self.topology, event="edge-added"
            )
            affected |= get_nodes_requiring_recalculation(
                diff.removed_edges, self.nodes, self._last_view.edges, self.dragged, self.topology, event="edge-removed"
            )
        unplaced = {nid for nid in visible if nid not in self.positions}

        router = keeps_positions(self.layout_state.algorithm)
        seeded = unplaced if router else {nid for nid in unplaced if self._is_fixed(nid)}
        visible_nodes = current.visible_nodes(self.nodes)
        self._seed_positions(visible_nodes, current.edges, seeded)

        adopt = ((affected | unplaced) - self.dragged - seeded) & visible

        render_nodes, render_edges = build_render_graph(
            visible_nodes, current.edges, self.positions, styles=self._styles
        )
        layout_nodes = list(render_nodes)
        if router:
            layout_nodes += [
                r for r in build_all_group_records(render_nodes, self.topology) if r.type == BOUNDARY_NODE_TYPE
            ]
        result = await apply_layout(
            layout_nodes,
            render_edges,
            self.layout_state.get_layout_config(),
            placed=frozenset(self.positions) & visible,
        )
        for node in result.nodes:
            if node.id in adopt:
                self.positions[node.id] = node.position
        self._routed = {e.id: e for e in result.edges if "waypoints" in e.data}
        repositioned = self._place_moved_dependents(visible)

        logger.debug(
            "Refreshed view: +%d/-%d nodes, +%d/-%d edges, %d repositioned",
            len(diff.added_nodes),
            len(diff.removed_nodes),
            len(diff.added_edges),
            len(diff.removed_edges),
            len(adopt | repositioned),
        )
        self._last_view = current
        return diff

    def render_graph(self) -> tuple[list[RenderNode], list[RenderEdge]]:
        """Render records for the last refreshed view."""
        view = self._last_view
        render_nodes, render_edges = build_render_graph(
            view.visible_nodes(self.nodes), view.edges, self.positions, styles=self._styles
        )
        return render_nodes, [self._routed.get(e.id, e) for e in render_edges]

    def group_nodes(self) -> list[RenderNode]:
        """Group containers and boundary obstacles around the rendered nodes."""
        render_nodes, _ = self.render_graph()
        return build_all_group_records(render_nodes, self.topology)
