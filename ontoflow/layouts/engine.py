"""Unified layout dispatcher.

One entry point, ``apply_layout``, routes to the engine registered for the
requested algorithm. Caller parameters are merged over the engine defaults;
unknown keys are ignored. Engines that seed from existing coordinates are
told which nodes already have one (``placed``).
"""

from __future__ import annotations

import dataclasses
import inspect
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import AbstractSet, Any, Callable, Iterable, Mapping

from ..models import RenderEdge, RenderNode
from .base import LayoutResult, coerce_params
from .elk import ElkParams, elk_layout
from .fishbone import FishboneParams, fishbone_layout
from .force_directed import ForceDirectedParams, force_directed_layout
from .hierarchical import HierarchicalParams, hierarchical_layout
from .obstacle_avoidance import ObstacleAvoidanceParams, obstacle_avoidance_layout
from .radial_tree import RadialTreeParams, radial_tree_layout

logger = logging.getLogger(__name__)


class LayoutAlgorithm(str, Enum):
    FORCE_DIRECTED = "force-directed"
    HIERARCHICAL = "hierarchical"
    RADIAL_TREE = "radial-tree"
    OBSTACLE_AVOIDANCE = "obstacle-avoidance"
    ELK = "elk"
    FISHBONE = "fishbone"


class UnknownLayoutAlgorithmError(ValueError):
    def __init__(self, algorithm: Any):
        self.algorithm = algorithm
        super().__init__(f"Unknown layout algorithm: {algorithm}")


@dataclass(frozen=True)
class _Engine:
    run: Callable[..., Any]
    params_type: type
    accepts_placed: bool = False
    # Routers keep node positions exactly as given.
    keeps_positions: bool = False


ENGINES: dict[LayoutAlgorithm, _Engine] = {
    LayoutAlgorithm.FORCE_DIRECTED: _Engine(force_directed_layout, ForceDirectedParams, accepts_placed=True),
    LayoutAlgorithm.HIERARCHICAL: _Engine(hierarchical_layout, HierarchicalParams),
    LayoutAlgorithm.RADIAL_TREE: _Engine(radial_tree_layout, RadialTreeParams),
    LayoutAlgorithm.OBSTACLE_AVOIDANCE: _Engine(
        obstacle_avoidance_layout, ObstacleAvoidanceParams, keeps_positions=True
    ),
    LayoutAlgorithm.ELK: _Engine(elk_layout, ElkParams),
    LayoutAlgorithm.FISHBONE: _Engine(fishbone_layout, FishboneParams),
}


@dataclass
class LayoutConfig:
    algorithm: str = LayoutAlgorithm.FORCE_DIRECTED.value
    params: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "LayoutConfig":
        return cls(algorithm=data.get("algorithm", ""), params=dict(data.get("params") or {}))


def resolve_algorithm(name: Any) -> LayoutAlgorithm:
    try:
        return LayoutAlgorithm(name)
    except ValueError:
        raise UnknownLayoutAlgorithmError(name) from None


def available_algorithms() -> list[str]:
    return [algorithm.value for algorithm in ENGINES]


def keeps_positions(algorithm: str | LayoutAlgorithm) -> bool:
    return ENGINES[resolve_algorithm(algorithm)].keeps_positions


def get_default_params(algorithm: str | LayoutAlgorithm) -> dict[str, Any]:
    """Fresh copy of the default parameters for ``algorithm``."""
    engine = ENGINES[resolve_algorithm(algorithm)]
    return dataclasses.asdict(engine.params_type())


def merge_params(algorithm: str | LayoutAlgorithm, params: Mapping[str, Any] | None) -> dict[str, Any]:
    merged = get_default_params(algorithm)
    for key, value in (params or {}).items():
        if key in merged:
            merged[key] = value
    return merged


async def apply_layout(
    nodes: Iterable[RenderNode],
    edges: Iterable[RenderEdge],
    config: LayoutConfig | Mapping[str, Any],
    *,
    placed: AbstractSet[str] | None = None,
) -> LayoutResult:
    if not isinstance(config, LayoutConfig):
        config = LayoutConfig.from_mapping(config)
    algorithm = resolve_algorithm(config.algorithm)
    engine = ENGINES[algorithm]
    params = coerce_params(engine.params_type, merge_params(algorithm, config.params))

    node_list = list(nodes)
    edge_list = list(edges)
    logger.debug("Applying %s layout to %d nodes, %d edges", algorithm.value, len(node_list), len(edge_list))

    if engine.accepts_placed:
        outcome = engine.run(node_list, edge_list, params, placed=placed)
    else:
        outcome = engine.run(node_list, edge_list, params)
    if inspect.isawaitable(outcome):
        outcome = await outcome
    if isinstance(outcome, LayoutResult):
        return outcome
    return LayoutResult(nodes=list(outcome), edges=edge_list)
