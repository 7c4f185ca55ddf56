from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any

from ..parsing import ParseResult, coerce_dict, coerce_list, load_yaml_text
from .schema import (
    EdgeVisual,
    NodeLayoutDefaults,
    NodeProperty,
    Ontology,
    OntologyEdgeType,
    OntologyNodeType,
)

logger = logging.getLogger(__name__)

PROPERTY_TYPES = {"string", "number", "boolean", "array", "object"}
STROKE_STYLES = {"solid", "dashed", "dotted"}
NODE_LAYOUT_ALGORITHMS = {"force-directed", "hierarchical", "obstacle-avoidance"}
_HEX_COLOR = re.compile(r"^#[0-9A-Fa-f]{6}$")


def _pick(raw: dict[str, Any], *keys: str) -> Any:
    # YAML files in the wild use both snake_case and camelCase keys.
    for key in keys:
        if key in raw:
            return raw[key]
    return None


def _parse_property(raw: Any, where: str, errors: list[str]) -> NodeProperty | None:
    if not isinstance(raw, dict):
        errors.append(f"{where}: property must be a mapping")
        return None
    name = str(raw.get("name") or "").strip()
    if not name:
        errors.append(f"{where}: property name is required")
        return None
    ptype = str(raw.get("type", "string")).strip()
    if ptype not in PROPERTY_TYPES:
        errors.append(f"{where}: property '{name}' has invalid type '{ptype}'")
        return None
    required = raw.get("required", False)
    if not isinstance(required, bool):
        errors.append(f"{where}: property '{name}' required must be a boolean")
        return None
    return NodeProperty(name=name, type=ptype, required=required, default=raw.get("default"))  # type: ignore[arg-type]


def _parse_layout_defaults(raw: Any, where: str, errors: list[str]) -> NodeLayoutDefaults:
    data = coerce_dict(raw)
    algorithm = str(data.get("algorithm", "force-directed")).strip() or "force-directed"
    if algorithm not in NODE_LAYOUT_ALGORITHMS:
        errors.append(f"{where}: layout algorithm '{algorithm}' is not one of {sorted(NODE_LAYOUT_ALGORITHMS)}")
    params: dict[str, float] = {}
    for key, value in coerce_dict(data.get("parameters")).items():
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            errors.append(f"{where}: layout parameter '{key}' must be a number")
            continue
        params[str(key)] = float(value)
    return NodeLayoutDefaults(algorithm=algorithm, parameters=params)


def _parse_node_type(raw: Any, index: int, errors: list[str]) -> OntologyNodeType | None:
    where = f"node_types[{index}]"
    if not isinstance(raw, dict):
        errors.append(f"{where}: must be a mapping")
        return None

    type_id = str(raw.get("id") or "").strip()
    if not type_id:
        errors.append(f"{where}: id is required")
        return None
    where = f"node type '{type_id}'"

    name = str(raw.get("name") or "").strip()
    if not name:
        errors.append(f"{where}: name is required")

    properties = []
    for prop_raw in coerce_list(raw.get("properties")):
        prop = _parse_property(prop_raw, where, errors)
        if prop is not None:
            properties.append(prop)

    parent = raw.get("parent")
    return OntologyNodeType(
        id=type_id,
        name=name or type_id,
        description=str(raw.get("description") or ""),
        properties=tuple(properties),
        layout=_parse_layout_defaults(raw.get("layout"), where, errors),
        parent=str(parent) if isinstance(parent, str) and parent.strip() else None,
    )


def _parse_edge_type(raw: Any, index: int, errors: list[str]) -> OntologyEdgeType | None:
    where = f"edge_types[{index}]"
    if not isinstance(raw, dict):
        errors.append(f"{where}: must be a mapping")
        return None

    type_id = str(raw.get("id") or "").strip()
    if not type_id:
        errors.append(f"{where}: id is required")
        return None
    where = f"edge type '{type_id}'"

    name = str(raw.get("name") or "").strip()
    if not name:
        errors.append(f"{where}: name is required")

    source_types = [str(t) for t in coerce_list(_pick(raw, "source_types", "sourceTypes"))]
    target_types = [str(t) for t in coerce_list(_pick(raw, "target_types", "targetTypes"))]
    if not source_types:
        errors.append(f"{where}: source_types must list at least one node type")
    if not target_types:
        errors.append(f"{where}: target_types must list at least one node type")

    visual_raw = coerce_dict(raw.get("visual"))
    color = str(visual_raw.get("color", "#A78BFA"))
    if not _HEX_COLOR.match(color):
        errors.append(f"{where}: visual color '{color}' must be a hex color like #A78BFA")
    style = str(visual_raw.get("style", "solid"))
    if style not in STROKE_STYLES:
        errors.append(f"{where}: visual style '{style}' is not one of {sorted(STROKE_STYLES)}")
    arrow = visual_raw.get("arrow", True)

    return OntologyEdgeType(
        id=type_id,
        name=name or type_id,
        description=str(raw.get("description") or ""),
        source_types=frozenset(source_types),
        target_types=frozenset(target_types),
        visual=EdgeVisual(color=color, style=style, arrow=bool(arrow)),  # type: ignore[arg-type]
    )


def parse_ontology(data: Any) -> ParseResult[Ontology]:
    """Convert a decoded YAML document into an Ontology, collecting every error."""
    if not isinstance(data, dict):
        return ParseResult.fail(["Ontology document must be a mapping with node_types and edge_types"])

    errors: list[str] = []
    node_types_raw = _pick(data, "node_types", "nodeTypes")
    edge_types_raw = _pick(data, "edge_types", "edgeTypes")
    if not isinstance(node_types_raw, list):
        errors.append("node_types must be a list")
    if not isinstance(edge_types_raw, list):
        errors.append("edge_types must be a list")

    node_types: list[OntologyNodeType] = []
    seen: set[str] = set()
    for i, raw in enumerate(coerce_list(node_types_raw)):
        parsed = _parse_node_type(raw, i, errors)
        if parsed is None:
            continue
        if parsed.id in seen:
            errors.append(f"node type '{parsed.id}' is declared more than once")
            continue
        seen.add(parsed.id)
        node_types.append(parsed)

    edge_types: list[OntologyEdgeType] = []
    seen = set()
    for i, raw in enumerate(coerce_list(edge_types_raw)):
        parsed_edge = _parse_edge_type(raw, i, errors)
        if parsed_edge is None:
            continue
        if parsed_edge.id in seen:
            errors.append(f"edge type '{parsed_edge.id}' is declared more than once")
            continue
        seen.add(parsed_edge.id)
        edge_types.append(parsed_edge)

    if errors:
        return ParseResult.fail(errors)
    return ParseResult.ok(Ontology(node_types=tuple(node_types), edge_types=tuple(edge_types)))


def load_ontology_from_yaml(text: str) -> ParseResult[Ontology]:
    data, error = load_yaml_text(text)
    if error:
        return ParseResult.fail([error])
    return parse_ontology(data)


def load_ontology(path: Path) -> Ontology:
    """Load an ontology file; raises ValueError listing every violation."""
    result = load_ontology_from_yaml(path.read_text(encoding="utf-8"))
    return result.unwrap(f"ontology {path}")


class OntologyStore:
    """Explicitly constructed holder for the session ontology.

    Loaded once and then treated as immutable; ``clear()`` drops it so the
    next ``get()`` reloads from disk.
    """

    def __init__(self, path: Path | None = None):
        self.path = path
        self._ontology: Ontology | None = None

    def load(self, path: Path | None = None) -> Ontology:
        if path is not None:
            self.path = path
        if self.path is None:
            self._ontology = Ontology()
        else:
            logger.debug("Loading ontology from %s", self.path)
            self._ontology = load_ontology(self.path)
        return self._ontology

    def get(self) -> Ontology:
        if self._ontology is None:
            return self.load()
        return self._ontology

    def clear(self) -> None:
        self._ontology = None

    @property
    def loaded(self) -> bool:
        return self._ontology is not None
