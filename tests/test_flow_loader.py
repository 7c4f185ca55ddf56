from __future__ import annotations

import logging
from pathlib import Path

from ontoflow.flow.loader import (
    load_flow,
    merge_edge_files,
    merge_node_files,
    parse_edges_yaml,
    parse_flow_yaml,
    parse_nodes_yaml,
)
from ontoflow.models import Position


def test_load_flow_file(flow_file: Path) -> None:
    result = load_flow(flow_file)
    assert result.success, result.errors
    flow = result.data
    assert flow.id == "discovery"
    assert flow.name == "Discovery flow"
    assert [n.id for n in flow.nodes] == ["P1", "SP1", "C1", "MM1", "V1", "O1"]
    assert flow.nodes[0].position == Position(0.0, 0.0)
    assert flow.nodes[3].position is None
    assert flow.nodes[3].name == "Jobs to be done"
    assert flow.nodes[4].name == "V1"
    assert len(flow.edges) == 6
    assert flow.edges[2].type == "linked-to"


def test_flow_id_defaults_to_file_stem(tmp_path: Path) -> None:
    path = tmp_path / "tiny.yaml"
    path.write_text("nodes: []\nedges: []\n", encoding="utf-8")
    result = load_flow(path)
    assert result.success
    assert result.data.id == "tiny"


def test_parse_nodes_collects_errors_without_partial_data() -> None:
    result = parse_nodes_yaml(
        """\
- {id: a, type: phase}
- {type: phase}
- {id: c, type: phase, position: {x: one, y: 2}}
- {id: d, type: phase, properties: [1, 2]}
"""
    )
    assert not result.success
    assert result.data is None
    assert len(result.errors) == 3
    assert "nodes[1]: 'id' must be a non-empty string" in result.errors[0]
    assert "node 'c': position must have numeric x and y" in result.errors[1]
    assert "node 'd': 'properties' must be a mapping" in result.errors[2]


def test_parse_nodes_reads_layout_override() -> None:
    result = parse_nodes_yaml(
        "- id: a\n  type: principle\n  layout: {algorithm: hierarchical, parameters: {rank_separation: 40}}\n"
    )
    assert result.success
    layout = result.data[0].layout
    assert layout.algorithm == "hierarchical"
    assert layout.parameters == {"rank_separation": 40.0}


def test_parse_edges_requires_endpoints() -> None:
    result = parse_edges_yaml("- {id: e1, source: a, type: contains}\n")
    assert not result.success
    assert result.errors == ["edge 'e1': 'target' must be a non-empty string"]


def test_parse_edges_keeps_label() -> None:
    result = parse_edges_yaml("- {id: e1, source: a, target: b, type: uses, label: relies on}\n")
    assert result.success
    assert result.data[0].label == "relies on"


def test_non_list_documents_fail() -> None:
    assert parse_nodes_yaml("a: 1\n").errors == ["Nodes document must be a list"]
    assert not parse_edges_yaml("{").success
    assert not parse_flow_yaml("- 1\n").success


def test_merge_skips_bad_files(caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="ontoflow.flow.loader"):
        nodes = merge_node_files(["- {id: a, type: phase}\n", "- {id: b}\n", "- {id: c, type: phase}\n"])
        edges = merge_edge_files(["- {id: e, source: a, target: c, type: precedes}\n", "not: a list\n"])
    assert [n.id for n in nodes] == ["a", "c"]
    assert [e.id for e in edges] == ["e"]
    assert "Skipping node file #1" in caplog.text
    assert "Skipping edge file #1" in caplog.text
