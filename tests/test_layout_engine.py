from __future__ import annotations

import logging

import networkx as nx
import pytest

from ontoflow.layouts import elk as elk_module
from ontoflow.layouts.base import LayoutResult
from ontoflow.layouts.elk import ELK_PADDING, elk_layout
from ontoflow.layouts.engine import (
    LayoutAlgorithm,
    LayoutConfig,
    UnknownLayoutAlgorithmError,
    apply_layout,
    available_algorithms,
    get_default_params,
    keeps_positions,
)
from ontoflow.layouts.state import LayoutState
from ontoflow.models import Position, RenderEdge, RenderNode


def _node(node_id: str, x: float = 0.0, y: float = 0.0) -> RenderNode:
    return RenderNode(id=node_id, type="principle", position=Position(x, y))


def _edge(source: str, target: str) -> RenderEdge:
    return RenderEdge(id=f"{source}-{target}", source=source, target=target)


NODES = [_node("root"), _node("a"), _node("b")]
EDGES = [_edge("root", "a"), _edge("root", "b")]


@pytest.mark.asyncio
async def test_unknown_algorithm_raises() -> None:
    with pytest.raises(UnknownLayoutAlgorithmError, match="Unknown layout algorithm: spiral"):
        await apply_layout(NODES, EDGES, {"algorithm": "spiral", "params": {}})
    with pytest.raises(ValueError):
        await apply_layout(NODES, EDGES, LayoutConfig(algorithm="spiral"))


@pytest.mark.asyncio
@pytest.mark.parametrize("algorithm", available_algorithms())
async def test_every_algorithm_runs_with_empty_params(algorithm: str) -> None:
    result = await apply_layout(NODES, EDGES, {"algorithm": algorithm, "params": {}})
    assert isinstance(result, LayoutResult)
    assert sorted(n.id for n in result.nodes) == ["a", "b", "root"]
    assert len(result.edges) == 2


@pytest.mark.asyncio
async def test_params_merge_over_defaults_and_ignore_unknown_keys() -> None:
    config = LayoutConfig(algorithm="hierarchical", params={"direction": "LR", "bogus": 1})
    result = await apply_layout(NODES, EDGES, config)
    by_id = {n.id: n for n in result.nodes}
    assert by_id["root"].position.x < by_id["a"].position.x


@pytest.mark.asyncio
async def test_router_result_passes_through() -> None:
    nodes = [_node("a", 0, 0), _node("b", 600, 0), _node("block", 300, 0)]
    result = await apply_layout(nodes, [_edge("a", "b")], {"algorithm": "obstacle-avoidance"})
    assert result.nodes == nodes
    assert "waypoints" in result.edges[0].data


@pytest.mark.asyncio
async def test_placed_nodes_reach_force_directed() -> None:
    nodes = [_node("pinned", 0, 0), _node("free", 0, 0)]
    config = {"algorithm": "force-directed", "params": {"max_iterations": 0}}
    result = await apply_layout(nodes, [], config, placed={"pinned"})
    assert result.nodes[0].position == Position(0, 0)
    assert result.nodes[1].position != Position(0, 0)

    # Engines without a placed hook just ignore it.
    result = await apply_layout(NODES, EDGES, {"algorithm": "fishbone"}, placed={"root"})
    assert len(result.nodes) == 3


def test_only_the_router_keeps_positions() -> None:
    assert keeps_positions("obstacle-avoidance")
    assert not keeps_positions(LayoutAlgorithm.FISHBONE)
    assert not keeps_positions("force-directed")


def test_default_params_are_fresh_copies() -> None:
    params = get_default_params("force-directed")
    assert params["repulsion"] == -400
    assert params["attraction"] == 0.1
    assert params["center_gravity"] == 0.1
    params["repulsion"] = 0
    assert get_default_params(LayoutAlgorithm.FORCE_DIRECTED)["repulsion"] == -400
    assert get_default_params("radial-tree")["cluster_spacing"] == 600
    assert get_default_params("elk")["algorithm"] == "layered"


def test_available_algorithms_order() -> None:
    assert available_algorithms() == [
        "force-directed",
        "hierarchical",
        "radial-tree",
        "obstacle-avoidance",
        "elk",
        "fishbone",
    ]


def test_layout_state_switching_resets_params() -> None:
    state = LayoutState()
    assert state.algorithm == "force-directed"
    state.update_params({"repulsion": -800})
    assert state.params["repulsion"] == -800

    state.set_algorithm("hierarchical")
    assert state.params == get_default_params("hierarchical")

    state.update_params({"direction": "LR"})
    config = state.get_layout_config()
    config.params["direction"] = "BT"
    assert state.params["direction"] == "LR"

    state.reset_params()
    assert state.params["direction"] == "TB"

    with pytest.raises(UnknownLayoutAlgorithmError):
        state.set_algorithm("spiral")
    assert state.algorithm == "hierarchical"


@pytest.mark.asyncio
async def test_elk_layered_ranks_follow_edges() -> None:
    by_id = {n.id: n for n in await elk_layout(NODES, EDGES, {"algorithm": "layered"})}
    assert by_id["root"].position.y < by_id["a"].position.y
    assert by_id["a"].position.y == pytest.approx(by_id["b"].position.y)
    assert min(n.position.x for n in by_id.values()) == pytest.approx(ELK_PADDING)
    assert min(n.position.y for n in by_id.values()) == pytest.approx(ELK_PADDING)


@pytest.mark.asyncio
@pytest.mark.parametrize("sub_algorithm", ["force", "mrtree", "radial"])
async def test_elk_sub_algorithms(sub_algorithm: str) -> None:
    first = await elk_layout(NODES, EDGES, {"algorithm": sub_algorithm, "seed": 3})
    second = await elk_layout(NODES, EDGES, {"algorithm": sub_algorithm, "seed": 3})
    assert [n.position for n in first] == [n.position for n in second]
    assert len({(n.position.x, n.position.y) for n in first}) == 3


@pytest.mark.asyncio
async def test_elk_edge_cases() -> None:
    assert await elk_layout([], []) == []
    (solo,) = await elk_layout([_node("only")], [])
    assert solo.position == Position(400, 300)
    with pytest.raises(ValueError, match="Unknown elk algorithm"):
        await elk_layout(NODES, EDGES, {"algorithm": "box"})


@pytest.mark.asyncio
async def test_elk_failure_keeps_input_positions(monkeypatch, caplog) -> None:
    def boom(*args, **kwargs):
        raise nx.NetworkXException("layout exploded")

    monkeypatch.setattr(elk_module, "_compute", boom)
    nodes = [_node("a", 1, 2), _node("b", 3, 4)]
    with caplog.at_level(logging.WARNING, logger="ontoflow.layouts.elk"):
        result = await elk_layout(nodes, [_edge("a", "b")])
    assert result == nodes
    assert "layout exploded" in caplog.text
