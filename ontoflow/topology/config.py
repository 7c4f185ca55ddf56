"""Topology configuration.

Defines the graph structure rules per node type:
- allowed relationships (source type -> edge type -> target type)
- required parents (what must be visible for a node to be visible)
- cascade deletion (what disappears with a node)
- position recalculation triggers
- groups (container boxes and boundary obstacles around member nodes)

Rules are data; evaluation lives in ``topology.manager``. A config is an
explicitly constructed value passed to every rule function.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

from ..parsing import coerce_dict, coerce_list, read_yaml_file

logger = logging.getLogger(__name__)

PositionTrigger = Literal[
    "on-edge-added",
    "on-edge-removed",
    "on-parent-moved",
    "on-dependent-toggled",
    "never",
    "always",
]

POSITION_TRIGGERS = {
    "on-edge-added",
    "on-edge-removed",
    "on-parent-moved",
    "on-dependent-toggled",
    "never",
    "always",
}

# Only "any" (at least one visible parent) is implemented.
SUPPORTED_PARENT_MODES = {"any"}

GROUP_FILTERS = {"all", "specific"}
BOUNDARY_STRATEGIES = {"perimeter", "corners"}
LABEL_POSITIONS = {"inside", "outside"}


@dataclass(frozen=True)
class AllowedTarget:
    edge_type: str
    target_type: str


@dataclass(frozen=True)
class DependencyRequirement:
    types: frozenset[str]
    relationships: frozenset[str]
    mode: str = "any"


@dataclass(frozen=True)
class CascadeDeleteRule:
    type: str
    relationship: str


@dataclass(frozen=True)
class NodeTypeConfig:
    id: str
    display_name: str
    physics_controlled: bool = False
    allowed_targets: tuple[AllowedTarget, ...] = ()
    required_parents: tuple[DependencyRequirement, ...] = ()
    cascade_delete: tuple[CascadeDeleteRule, ...] = ()
    recalculate_triggers: frozenset[str] = frozenset({"never"})
    preserve_user_position: bool = False
    recalculate_on_topology_change: bool = False


@dataclass(frozen=True)
class EdgeStyle:
    stroke: str = "#A78BFA"
    stroke_width: float = 2
    animated: bool = False
    stroke_dasharray: str | None = None
    border_radius: float | None = None

    def to_dict(self) -> dict[str, Any]:
        style: dict[str, Any] = {"stroke": self.stroke, "strokeWidth": self.stroke_width}
        if self.stroke_dasharray:
            style["strokeDasharray"] = self.stroke_dasharray
        if self.border_radius is not None:
            style["borderRadius"] = self.border_radius
        return style


@dataclass(frozen=True)
class EdgeTypeConfig:
    id: str
    display_name: str
    description: str = ""
    style: EdgeStyle = field(default_factory=EdgeStyle)
    edge_component: str | None = None
    # Edges of this type exist only while their (anchor, dependent) toggle is on.
    toggle: bool = False


@dataclass(frozen=True)
class GroupMembers:
    node_type: str | None = None
    filter: str = "all"
    node_ids: tuple[str, ...] = ()

    def matches(self, node_id: str, node_type: str) -> bool:
        if self.filter == "all":
            return node_type == self.node_type
        return node_id in self.node_ids


@dataclass(frozen=True)
class GroupStyle:
    border_color: str = "#7C3AED"
    border_width: float = 3
    border_opacity: float = 0.3
    background_color: str = "#7C3AED"
    background_opacity: float = 0.05
    border_radius: float = 16
    padding: float = 40

    def to_dict(self) -> dict[str, Any]:
        return {
            "borderColor": self.border_color,
            "borderWidth": self.border_width,
            "borderOpacity": self.border_opacity,
            "backgroundColor": self.background_color,
            "backgroundOpacity": self.background_opacity,
            "borderRadius": self.border_radius,
        }


@dataclass(frozen=True)
class GroupLabel:
    text: str = ""
    show: bool = True
    position: str = "inside"
    padding_top: float = 20
    font_size: float = 14
    font_weight: int = 600
    color: str = "#7C3AED"
    opacity: float = 1.0


@dataclass(frozen=True)
class GroupBoundary:
    enabled: bool = True
    strategy: str = "perimeter"
    obstacle_size: float = 80
    spacing: float = 0


@dataclass(frozen=True)
class GroupConfig:
    id: str
    display_name: str
    description: str = ""
    members: GroupMembers = field(default_factory=GroupMembers)
    style: GroupStyle = field(default_factory=GroupStyle)
    label: GroupLabel = field(default_factory=GroupLabel)
    boundary: GroupBoundary = field(default_factory=GroupBoundary)


@dataclass(frozen=True)
class TopologyConfig:
    node_types: dict[str, NodeTypeConfig] = field(default_factory=dict)
    edge_types: dict[str, EdgeTypeConfig] = field(default_factory=dict)
    groups: dict[str, GroupConfig] = field(default_factory=dict)
    version: str = "1.0"

    def node(self, node_type: str) -> NodeTypeConfig | None:
        return self.node_types.get(node_type)

    def edge(self, edge_type: str) -> EdgeTypeConfig | None:
        return self.edge_types.get(edge_type)

    @property
    def toggle_edge_types(self) -> frozenset[str]:
        return frozenset(t for t, cfg in self.edge_types.items() if cfg.toggle)

    @property
    def cascade_edge_types(self) -> frozenset[str]:
        return frozenset(
            rule.relationship for cfg in self.node_types.values() for rule in cfg.cascade_delete
        )

    def edge_type_between(self, source_type: str, target_type: str) -> str | None:
        """Relationship the source type may use to reach the target type.

        Toggle-driven relationships win when several are allowed.
        """
        cfg = self.node(source_type)
        if cfg is None:
            return None
        candidates = [t.edge_type for t in cfg.allowed_targets if t.target_type == target_type]
        if not candidates:
            return None
        toggles = self.toggle_edge_types
        for edge_type in candidates:
            if edge_type in toggles:
                return edge_type
        return candidates[0]


def _fixed(node_id: str, display_name: str, targets: list[tuple[str, str]]) -> NodeTypeConfig:
    # Fixed-position (fishbone) node types: top-level, never recalculated.
    return NodeTypeConfig(
        id=node_id,
        display_name=display_name,
        physics_controlled=False,
        allowed_targets=tuple(AllowedTarget(e, t) for e, t in targets),
        recalculate_triggers=frozenset({"never"}),
    )


def _physics(
    node_id: str,
    display_name: str,
    targets: list[tuple[str, str]],
    *,
    parents: list[DependencyRequirement] | None = None,
    cascade: list[CascadeDeleteRule] | None = None,
    triggers: set[str] | None = None,
) -> NodeTypeConfig:
    return NodeTypeConfig(
        id=node_id,
        display_name=display_name,
        physics_controlled=True,
        allowed_targets=tuple(AllowedTarget(e, t) for e, t in targets),
        required_parents=tuple(parents or ()),
        cascade_delete=tuple(cascade or ()),
        recalculate_triggers=frozenset(triggers or {"on-edge-added", "on-edge-removed"}),
        preserve_user_position=True,
        recalculate_on_topology_change=True,
    )


DEFAULT_NODE_TYPES: dict[str, NodeTypeConfig] = {
    cfg.id: cfg
    for cfg in [
        _fixed(
            "phase",
            "Phase",
            [("contains", "sub-phase"), ("linked-to", "mental-model"), ("precedes", "phase")],
        ),
        _fixed(
            "sub-phase",
            "Sub-Phase",
            [("contains", "sub-phase-component"), ("linked-to", "mental-model"), ("precedes", "sub-phase")],
        ),
        _fixed(
            "sub-phase-component",
            "Component",
            [("linked-to", "mental-model"), ("uses", "mental-model"), ("linked-to", "output")],
        ),
        _physics(
            "mental-model",
            "Mental Model",
            [("visualizes", "visualization")],
            parents=[
                DependencyRequirement(
                    types=frozenset({"phase", "sub-phase", "sub-phase-component"}),
                    relationships=frozenset({"linked-to", "uses"}),
                )
            ],
            cascade=[CascadeDeleteRule(type="visualization", relationship="visualizes")],
        ),
        _physics(
            "visualization",
            "Visualization",
            [],
            parents=[
                DependencyRequirement(
                    types=frozenset({"mental-model"}),
                    relationships=frozenset({"visualizes"}),
                )
            ],
            triggers={"on-parent-moved", "on-edge-added", "on-edge-removed"},
        ),
        _physics("principle", "Principle", [("linked-to", "mental-model")]),
        _physics(
            "output",
            "Output",
            [("linked-to", "outcome")],
            parents=[
                DependencyRequirement(
                    types=frozenset({"sub-phase-component"}),
                    relationships=frozenset({"linked-to"}),
                )
            ],
        ),
        _physics(
            "outcome",
            "Outcome",
            [("linked-to", "impact")],
            parents=[
                DependencyRequirement(types=frozenset({"output"}), relationships=frozenset({"linked-to"}))
            ],
        ),
        _physics(
            "impact",
            "Impact",
            [],
            parents=[
                DependencyRequirement(types=frozenset({"outcome"}), relationships=frozenset({"linked-to"}))
            ],
        ),
    ]
}

DEFAULT_EDGE_TYPES: dict[str, EdgeTypeConfig] = {
    "contains": EdgeTypeConfig(
        id="contains",
        display_name="Contains",
        description="Hierarchical containment relationship",
        style=EdgeStyle(stroke="#7C3AED"),
    ),
    "precedes": EdgeTypeConfig(
        id="precedes",
        display_name="Precedes",
        description="Sequential ordering relationship",
        style=EdgeStyle(stroke="#A78BFA", animated=True),
    ),
    "linked-to": EdgeTypeConfig(
        id="linked-to",
        display_name="Linked To",
        description="Associative relationship",
        style=EdgeStyle(stroke="#A78BFA", stroke_dasharray="5,5", border_radius=12),
        edge_component="smoothStep",
        toggle=True,
    ),
    "visualizes": EdgeTypeConfig(
        id="visualizes",
        display_name="Visualizes",
        description="Visualization dependency",
        style=EdgeStyle(stroke="#7C3AED", stroke_dasharray="2,2", border_radius=12),
        edge_component="smoothStep",
    ),
    "uses": EdgeTypeConfig(
        id="uses",
        display_name="Uses",
        description="Utility relationship",
        style=EdgeStyle(stroke="#C4B5FD"),
        toggle=True,
    ),
}

DEFAULT_GROUPS: dict[str, GroupConfig] = {
    "primary-phases": GroupConfig(
        id="primary-phases",
        display_name="Framework Phases",
        description="Primary phases grouped together",
        members=GroupMembers(node_type="phase"),
        label=GroupLabel(text="Framework Phases", opacity=0.7),
    ),
}

DEFAULT_TOPOLOGY = TopologyConfig(node_types=DEFAULT_NODE_TYPES, edge_types=DEFAULT_EDGE_TYPES, groups=DEFAULT_GROUPS)


def _parse_node_type(node_id: str, raw: dict[str, Any]) -> NodeTypeConfig:
    display_name = str(raw.get("display_name") or "").strip()
    if not display_name:
        raise ValueError(f"Node type '{node_id}' must have display_name")

    physics = raw.get("physics_controlled")
    if not isinstance(physics, bool):
        raise ValueError(f"Node type '{node_id}' must have physics_controlled (boolean)")

    targets_raw = raw.get("allowed_targets")
    if not isinstance(targets_raw, list):
        raise ValueError(f"Node type '{node_id}' must have allowed_targets list")
    targets = tuple(
        AllowedTarget(edge_type=str(t.get("edge_type")), target_type=str(t.get("target_type")))
        for t in targets_raw
        if isinstance(t, dict)
    )

    deps = coerce_dict(raw.get("dependencies"))
    parents: list[DependencyRequirement] = []
    for p in coerce_list(deps.get("required_parents")):
        p = coerce_dict(p)
        mode = str(p.get("mode", "any")).strip() or "any"
        if mode not in SUPPORTED_PARENT_MODES:
            raise ValueError(
                f"Node type '{node_id}': required_parents mode '{mode}' is not supported (only 'any')"
            )
        parents.append(
            DependencyRequirement(
                types=frozenset(str(t) for t in coerce_list(p.get("types"))),
                relationships=frozenset(str(r) for r in coerce_list(p.get("relationships"))),
                mode=mode,
            )
        )
    cascade = tuple(
        CascadeDeleteRule(type=str(c.get("type")), relationship=str(c.get("relationship")))
        for c in coerce_list(deps.get("cascade_delete"))
        if isinstance(c, dict)
    )

    positioning = raw.get("positioning")
    if not isinstance(positioning, dict):
        raise ValueError(f"Node type '{node_id}' must have positioning")
    triggers_raw = positioning.get("recalculate_triggers")
    if not isinstance(triggers_raw, list):
        raise ValueError(f"Node type '{node_id}' positioning must have recalculate_triggers list")
    unknown = [t for t in triggers_raw if t not in POSITION_TRIGGERS]
    if unknown:
        raise ValueError(f"Node type '{node_id}' has unknown recalculate_triggers: {', '.join(map(str, unknown))}")

    return NodeTypeConfig(
        id=node_id,
        display_name=display_name,
        physics_controlled=physics,
        allowed_targets=targets,
        required_parents=tuple(parents),
        cascade_delete=cascade,
        recalculate_triggers=frozenset(str(t) for t in triggers_raw),
        preserve_user_position=bool(positioning.get("preserve_user_position", False)),
        recalculate_on_topology_change=bool(positioning.get("recalculate_on_topology_change", False)),
    )


def _parse_edge_type(edge_id: str, raw: dict[str, Any]) -> EdgeTypeConfig:
    fallback = DEFAULT_EDGE_TYPES.get(edge_id)
    style_raw = coerce_dict(raw.get("style"))
    base_style = fallback.style if fallback else EdgeStyle()
    style = EdgeStyle(
        stroke=str(style_raw.get("stroke") or base_style.stroke),
        stroke_width=float(style_raw.get("stroke_width") or base_style.stroke_width),
        animated=bool(style_raw.get("animated", base_style.animated)),
        stroke_dasharray=style_raw.get("stroke_dasharray", base_style.stroke_dasharray),
        border_radius=style_raw.get("border_radius", base_style.border_radius),
    )
    return EdgeTypeConfig(
        id=edge_id,
        display_name=str(raw.get("display_name") or (fallback.display_name if fallback else edge_id)),
        description=str(raw.get("description") or (fallback.description if fallback else "")),
        style=style,
        edge_component=raw.get("edge_component") or (fallback.edge_component if fallback else None),
        toggle=bool(raw.get("toggle", fallback.toggle if fallback else False)),
    )


def _parse_group(group_id: str, raw: dict[str, Any]) -> GroupConfig:
    display_name = str(raw.get("display_name") or "").strip()
    if not display_name:
        raise ValueError(f"Group '{group_id}' must have display_name")

    members_raw = raw.get("members")
    if not isinstance(members_raw, dict):
        raise ValueError(f"Group '{group_id}' must have members")
    member_filter = str(members_raw.get("filter", "all"))
    if member_filter not in GROUP_FILTERS:
        raise ValueError(f"Group '{group_id}' has unknown members filter: {member_filter}")
    node_type = members_raw.get("node_type")
    if member_filter == "all" and not node_type:
        raise ValueError(f"Group '{group_id}' members must have node_type when filter is 'all'")
    members = GroupMembers(
        node_type=str(node_type) if node_type else None,
        filter=member_filter,
        node_ids=tuple(str(n) for n in coerce_list(members_raw.get("node_ids"))),
    )

    style_raw = coerce_dict(raw.get("style"))
    defaults = GroupStyle()
    style = GroupStyle(
        border_color=str(style_raw.get("border_color", defaults.border_color)),
        border_width=float(style_raw.get("border_width", defaults.border_width)),
        border_opacity=float(style_raw.get("border_opacity", defaults.border_opacity)),
        background_color=str(style_raw.get("background_color", defaults.background_color)),
        background_opacity=float(style_raw.get("background_opacity", defaults.background_opacity)),
        border_radius=float(style_raw.get("border_radius", defaults.border_radius)),
        padding=float(style_raw.get("padding", defaults.padding)),
    )

    label_raw = coerce_dict(raw.get("label"))
    label_style = coerce_dict(label_raw.get("style"))
    position = str(label_raw.get("position", "inside"))
    if position not in LABEL_POSITIONS:
        raise ValueError(f"Group '{group_id}' has unknown label position: {position}")
    label = GroupLabel(
        text=str(label_raw.get("text") or display_name),
        show=bool(label_raw.get("show", True)),
        position=position,
        padding_top=float(label_raw.get("padding_top") or 20),
        font_size=float(label_style.get("font_size", 14)),
        font_weight=int(label_style.get("font_weight", 600)),
        color=str(label_style.get("color", style.border_color)),
        opacity=float(label_style.get("opacity") or 1),
    )

    boundary_raw = coerce_dict(raw.get("boundary"))
    strategy = str(boundary_raw.get("strategy", "perimeter"))
    if strategy not in BOUNDARY_STRATEGIES:
        raise ValueError(f"Group '{group_id}' has unknown boundary strategy: {strategy}")
    boundary = GroupBoundary(
        enabled=bool(boundary_raw.get("enabled", False)),
        strategy=strategy,
        obstacle_size=float(boundary_raw.get("obstacle_size", 80)),
        spacing=float(boundary_raw.get("spacing") or 0),
    )

    return GroupConfig(
        id=group_id,
        display_name=display_name,
        description=str(raw.get("description") or ""),
        members=members,
        style=style,
        label=label,
        boundary=boundary,
    )


def parse_topology(data: Any) -> TopologyConfig:
    """Build a TopologyConfig from a decoded topology YAML document."""
    if not isinstance(data, dict):
        raise ValueError("Topology document must be a mapping")
    version = data.get("version")
    if not version:
        raise ValueError("Topology YAML must have a version field")
    node_types_raw = data.get("node_types")
    if not isinstance(node_types_raw, dict):
        raise ValueError("Topology YAML must have node_types")

    node_types = {
        str(node_id): _parse_node_type(str(node_id), coerce_dict(raw)) for node_id, raw in node_types_raw.items()
    }

    for node_id, cfg in node_types.items():
        for target in cfg.allowed_targets:
            if target.target_type not in node_types:
                logger.warning("Node type '%s' references unknown target type '%s'", node_id, target.target_type)

    # YAML edge types are merged over the built-in table.
    edge_types = dict(DEFAULT_EDGE_TYPES)
    for edge_id, raw in coerce_dict(data.get("edge_types")).items():
        edge_types[str(edge_id)] = _parse_edge_type(str(edge_id), coerce_dict(raw))

    groups = {
        str(group_id): _parse_group(str(group_id), coerce_dict(raw))
        for group_id, raw in coerce_dict(data.get("grouping")).items()
    }

    return TopologyConfig(node_types=node_types, edge_types=edge_types, groups=groups, version=str(version))


def load_topology(path: Path) -> TopologyConfig:
    """Load a topology YAML file."""
    try:
        return parse_topology(read_yaml_file(path))
    except ValueError as exc:
        raise ValueError(f"Failed to load topology YAML: {exc}") from exc
