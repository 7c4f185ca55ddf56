"""Layout engines and the dispatcher that selects between them."""

from .base import NODE_HEIGHT, NODE_WIDTH, LayoutResult
from .elk import ElkParams, elk_layout
from .engine import (
    LayoutAlgorithm,
    LayoutConfig,
    UnknownLayoutAlgorithmError,
    apply_layout,
    available_algorithms,
    get_default_params,
    keeps_positions,
)
from .fishbone import FishboneParams, fishbone_layout, grid_center, visualization_position
from .force_directed import MAX_ITERATIONS, ForceDirectedParams, force_directed_layout
from .hierarchical import HierarchicalParams, hierarchical_layout
from .obstacle_avoidance import ObstacleAvoidanceParams, obstacle_avoidance_layout
from .radial_tree import RadialTreeParams, radial_tree_layout
from .state import LayoutState

__all__ = [
    "MAX_ITERATIONS",
    "NODE_HEIGHT",
    "NODE_WIDTH",
    "ElkParams",
    "FishboneParams",
    "ForceDirectedParams",
    "HierarchicalParams",
    "LayoutAlgorithm",
    "LayoutConfig",
    "LayoutResult",
    "LayoutState",
    "ObstacleAvoidanceParams",
    "RadialTreeParams",
    "UnknownLayoutAlgorithmError",
    "apply_layout",
    "available_algorithms",
    "elk_layout",
    "fishbone_layout",
    "force_directed_layout",
    "get_default_params",
    "grid_center",
    "hierarchical_layout",
    "keeps_positions",
    "obstacle_avoidance_layout",
    "radial_tree_layout",
    "visualization_position",
]
