"""Flow loading - YAML node/edge files to typed collections."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ..models import Edge, Node, NodeLayout, Position
from ..parsing import ParseResult, coerce_dict, load_yaml_text

logger = logging.getLogger(__name__)


@dataclass
class Flow:
    """A named node/edge collection loaded from YAML."""

    id: str
    name: str
    description: str = ""
    nodes: list[Node] = field(default_factory=list)
    edges: list[Edge] = field(default_factory=list)


def _required_str(raw: dict[str, Any], key: str, where: str, errors: list[str]) -> str:
    value = raw.get(key)
    if not isinstance(value, str) or not value.strip():
        errors.append(f"{where}: '{key}' must be a non-empty string")
        return ""
    return value.strip()


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _parse_position(raw: Any, where: str, errors: list[str]) -> Position | None:
    if raw is None:
        return None
    data = coerce_dict(raw)
    x, y = data.get("x"), data.get("y")
    if not _is_number(x) or not _is_number(y):
        errors.append(f"{where}: position must have numeric x and y")
        return None
    return Position(float(x), float(y))


def _parse_layout(raw: Any, where: str, errors: list[str]) -> NodeLayout | None:
    if raw is None:
        return None
    data = coerce_dict(raw)
    algorithm = data.get("algorithm")
    params: dict[str, float] = {}
    for key, value in coerce_dict(data.get("parameters")).items():
        if not _is_number(value):
            errors.append(f"{where}: layout parameter '{key}' must be a number")
            continue
        params[str(key)] = float(value)
    return NodeLayout(algorithm=str(algorithm) if algorithm else None, parameters=params)


def parse_node(raw: Any, index: int, errors: list[str]) -> Node | None:
    where = f"nodes[{index}]"
    if not isinstance(raw, dict):
        errors.append(f"{where}: must be a mapping")
        return None

    before = len(errors)
    node_id = _required_str(raw, "id", where, errors)
    if node_id:
        where = f"node '{node_id}'"
    node_type = _required_str(raw, "type", where, errors)

    description = raw.get("description", "")
    if not isinstance(description, str):
        errors.append(f"{where}: 'description' must be a string")
    properties = raw.get("properties", {})
    if properties is None:
        properties = {}
    if not isinstance(properties, dict):
        errors.append(f"{where}: 'properties' must be a mapping")
    position = _parse_position(raw.get("position"), where, errors)
    layout = _parse_layout(raw.get("layout"), where, errors)

    if len(errors) > before:
        return None
    name = raw.get("name")
    return Node(
        id=node_id,
        type=node_type,
        name=str(name) if name else "",
        description=description,
        properties=dict(properties),
        position=position,
        layout=layout,
    )


def parse_edge(raw: Any, index: int, errors: list[str]) -> Edge | None:
    where = f"edges[{index}]"
    if not isinstance(raw, dict):
        errors.append(f"{where}: must be a mapping")
        return None

    before = len(errors)
    edge_id = _required_str(raw, "id", where, errors)
    if edge_id:
        where = f"edge '{edge_id}'"
    source = _required_str(raw, "source", where, errors)
    target = _required_str(raw, "target", where, errors)
    edge_type = _required_str(raw, "type", where, errors)
    properties = raw.get("properties", {})
    if properties is None:
        properties = {}
    if not isinstance(properties, dict):
        errors.append(f"{where}: 'properties' must be a mapping")
    label = raw.get("label")

    if len(errors) > before:
        return None
    return Edge(
        id=edge_id,
        source=source,
        target=target,
        type=edge_type,
        properties=dict(properties),
        label=str(label) if label is not None else None,
    )


def parse_nodes(data: Any) -> ParseResult[list[Node]]:
    if not isinstance(data, list):
        return ParseResult.fail(["Nodes document must be a list"])
    errors: list[str] = []
    nodes = [n for i, raw in enumerate(data) if (n := parse_node(raw, i, errors)) is not None]
    if errors:
        return ParseResult.fail(errors)
    return ParseResult.ok(nodes)


def parse_edges(data: Any) -> ParseResult[list[Edge]]:
    if not isinstance(data, list):
        return ParseResult.fail(["Edges document must be a list"])
    errors: list[str] = []
    edges = [e for i, raw in enumerate(data) if (e := parse_edge(raw, i, errors)) is not None]
    if errors:
        return ParseResult.fail(errors)
    return ParseResult.ok(edges)


def parse_nodes_yaml(text: str) -> ParseResult[list[Node]]:
    data, error = load_yaml_text(text)
    if error:
        return ParseResult.fail([error])
    return parse_nodes(data)


def parse_edges_yaml(text: str) -> ParseResult[list[Edge]]:
    data, error = load_yaml_text(text)
    if error:
        return ParseResult.fail([error])
    return parse_edges(data)


def parse_flow_yaml(text: str, *, flow_id: str = "flow") -> ParseResult[Flow]:
    """Parse a single flow document with ``nodes:`` and ``edges:`` lists."""
    data, error = load_yaml_text(text)
    if error:
        return ParseResult.fail([error])
    if not isinstance(data, dict):
        return ParseResult.fail(["Flow document must be a mapping with nodes and edges"])

    nodes = parse_nodes(data.get("nodes", []))
    edges = parse_edges(data.get("edges", []))
    errors = nodes.errors + edges.errors
    if errors:
        return ParseResult.fail(errors)

    return ParseResult.ok(
        Flow(
            id=str(data.get("id") or flow_id),
            name=str(data.get("name") or flow_id),
            description=str(data.get("description") or ""),
            nodes=nodes.data or [],
            edges=edges.data or [],
        )
    )


def load_flow(path: Path) -> ParseResult[Flow]:
    return parse_flow_yaml(path.read_text(encoding="utf-8"), flow_id=path.stem)


def merge_node_files(texts: list[str]) -> list[Node]:
    """Concatenate several node files; unparseable files are skipped with a warning."""
    merged: list[Node] = []
    for i, text in enumerate(texts):
        result = parse_nodes_yaml(text)
        if result.success:
            merged.extend(result.data or [])
        else:
            logger.warning("Skipping node file #%d: %s", i, "; ".join(result.errors))
    return merged


def merge_edge_files(texts: list[str]) -> list[Edge]:
    """Concatenate several edge files; unparseable files are skipped with a warning."""
    merged: list[Edge] = []
    for i, text in enumerate(texts):
        result = parse_edges_yaml(text)
        if result.success:
            merged.extend(result.data or [])
        else:
            logger.warning("Skipping edge file #%d: %s", i, "; ".join(result.errors))
    return merged
