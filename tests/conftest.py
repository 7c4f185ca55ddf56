"""Pytest configuration and fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from ontoflow.models import Edge, Node, Position
from ontoflow.ontology.load import load_ontology_from_yaml
from ontoflow.ontology.schema import Ontology

ONTOLOGY_YAML = """\
node_types:
  - id: phase
    name: Phase
    properties:
      - name: order
        type: number
        required: true
  - id: sub-phase
    name: Sub-Phase
    parent: phase
  - id: sub-phase-component
    name: Component
  - id: mental-model
    name: Mental Model
    properties:
      - name: summary
        type: string
        required: true
      - name: source
        type: string
  - id: visualization
    name: Visualization
  - id: output
    name: Output
edge_types:
  - id: contains
    name: Contains
    source_types: [phase, sub-phase]
    target_types: [sub-phase, sub-phase-component]
  - id: linked-to
    name: Linked To
    source_types: [phase, sub-phase, sub-phase-component]
    target_types: [mental-model, output]
    visual: {color: "#A78BFA", style: dashed}
  - id: uses
    name: Uses
    source_types: [sub-phase-component]
    target_types: [mental-model]
  - id: visualizes
    name: Visualizes
    source_types: [mental-model]
    target_types: [visualization]
    visual: {color: "#7C3AED", style: dotted, arrow: false}
"""

FLOW_YAML = """\
id: discovery
name: Discovery flow
nodes:
  - id: P1
    type: phase
    description: Understand the problem
    properties: {order: 1}
    position: {x: 0, y: 0}
  - id: SP1
    type: sub-phase
    description: Research
    position: {x: 0, y: 200}
  - id: C1
    type: sub-phase-component
    description: Interviews
    position: {x: 0, y: 400}
  - id: MM1
    type: mental-model
    name: Jobs to be done
    description: Frame user needs as jobs
    properties: {summary: Jobs framing}
  - id: V1
    type: visualization
    description: Job map
  - id: O1
    type: output
    description: Interview notes
edges:
  - {id: e-p1-sp1, source: P1, target: SP1, type: contains}
  - {id: e-sp1-c1, source: SP1, target: C1, type: contains}
  - {id: e-p1-mm1, source: P1, target: MM1, type: linked-to}
  - {id: e-c1-mm1, source: C1, target: MM1, type: uses}
  - {id: e-mm1-v1, source: MM1, target: V1, type: visualizes}
  - {id: e-c1-o1, source: C1, target: O1, type: linked-to}
"""


def _write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


@pytest.fixture
def ontology() -> Ontology:
    result = load_ontology_from_yaml(ONTOLOGY_YAML)
    assert result.success, result.errors
    return result.data


@pytest.fixture
def ontology_file(tmp_path: Path) -> Path:
    return _write(tmp_path / "ontology.yaml", ONTOLOGY_YAML)


@pytest.fixture
def flow_file(tmp_path: Path) -> Path:
    return _write(tmp_path / "flows" / "discovery.yaml", FLOW_YAML)


@pytest.fixture
def flow_nodes() -> list[Node]:
    return [
        Node(id="P1", type="phase", properties={"order": 1}, position=Position(0, 0)),
        Node(id="SP1", type="sub-phase", position=Position(0, 200)),
        Node(id="C1", type="sub-phase-component", position=Position(0, 400)),
        Node(id="MM1", type="mental-model", properties={"summary": "Jobs framing"}),
        Node(id="V1", type="visualization"),
        Node(id="O1", type="output"),
    ]


@pytest.fixture
def flow_edges() -> list[Edge]:
    return [
        Edge(id="e-p1-sp1", source="P1", target="SP1", type="contains"),
        Edge(id="e-sp1-c1", source="SP1", target="C1", type="contains"),
        Edge(id="e-p1-mm1", source="P1", target="MM1", type="linked-to"),
        Edge(id="e-c1-mm1", source="C1", target="MM1", type="uses"),
        Edge(id="e-mm1-v1", source="MM1", target="V1", type="visualizes"),
        Edge(id="e-c1-o1", source="C1", target="O1", type="linked-to"),
    ]
