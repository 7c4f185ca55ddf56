"""Group decorations derived from the topology's grouping section.

For each group with visible members: one container record sized to the
padded bounding box of its members, plus (when the boundary is enabled)
small invisible obstacle records on the box outline that the edge router
steers around.
"""

from __future__ import annotations

from typing import Iterable

from ..layouts.base import BOUNDARY_NODE_TYPE, GROUP_NODE_TYPE, node_size
from ..models import Position, RenderNode
from ..topology.config import DEFAULT_TOPOLOGY, GroupConfig, TopologyConfig

Box = tuple[float, float, float, float]  # x, y, width, height


def group_node_id(group_id: str) -> str:
    return f"__group-{group_id}"


def boundary_node_id(group_id: str, anchor: str) -> str:
    return f"__boundary-{group_id}-{anchor}"


def find_member_nodes(group: GroupConfig, nodes: Iterable[RenderNode]) -> list[RenderNode]:
    return [n for n in nodes if group.members.matches(n.id, n.type)]


def group_bounding_box(members: list[RenderNode], padding: float) -> Box:
    lefts, tops, rights, bottoms = [], [], [], []
    for node in members:
        width, height = node_size(node)
        lefts.append(node.position.x)
        tops.append(node.position.y)
        rights.append(node.position.x + width)
        bottoms.append(node.position.y + height)
    min_x, min_y = min(lefts), min(tops)
    return (
        min_x - padding,
        min_y - padding,
        max(rights) - min_x + 2 * padding,
        max(bottoms) - min_y + 2 * padding,
    )


def build_group_node(group: GroupConfig, box: Box) -> RenderNode:
    x, y, width, height = box
    label = group.label
    return RenderNode(
        id=group_node_id(group.id),
        type=GROUP_NODE_TYPE,
        position=Position(x, y),
        data={
            "group": group.id,
            "label": label.text or group.display_name,
            "showLabel": label.show,
            "labelPosition": label.position,
            "labelStyle": {
                "fontSize": label.font_size,
                "fontWeight": label.font_weight,
                "color": label.color,
                "opacity": label.opacity,
                "paddingTop": label.padding_top,
            },
            "style": group.style.to_dict(),
            "width": width,
            "height": height,
        },
    )


def build_boundary_nodes(group: GroupConfig, box: Box) -> list[RenderNode]:
    x, y, width, height = box
    size = group.boundary.obstacle_size
    half = size / 2
    anchors = [
        ("tl", x, y),
        ("tr", x + width, y),
        ("bl", x, y + height),
        ("br", x + width, y + height),
    ]
    if group.boundary.strategy == "perimeter":
        anchors += [
            ("t", x + width / 2, y),
            ("r", x + width, y + height / 2),
            ("b", x + width / 2, y + height),
            ("l", x, y + height / 2),
        ]
    return [
        RenderNode(
            id=boundary_node_id(group.id, anchor),
            type=BOUNDARY_NODE_TYPE,
            position=Position(ax - half, ay - half),
            data={"group": group.id, "invisible": True, "width": size, "height": size},
        )
        for anchor, ax, ay in anchors
    ]


def build_group_records(group: GroupConfig, nodes: Iterable[RenderNode]) -> list[RenderNode]:
    """``[container, *boundaries]`` for one group; empty when no member is present."""
    members = find_member_nodes(group, nodes)
    if not members:
        return []
    box = group_bounding_box(members, group.style.padding)
    records = [build_group_node(group, box)]
    if group.boundary.enabled:
        records.extend(build_boundary_nodes(group, box))
    return records


def build_all_group_records(
    nodes: Iterable[RenderNode],
    config: TopologyConfig = DEFAULT_TOPOLOGY,
) -> list[RenderNode]:
    node_list = list(nodes)
    records: list[RenderNode] = []
    for group in config.groups.values():
        records.extend(build_group_records(group, node_list))
    return records
