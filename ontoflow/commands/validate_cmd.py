"""Validate command - check a flow file against an ontology and topology."""

from __future__ import annotations

import json
from pathlib import Path

from rich.console import Console
from rich.table import Table

from ..flow.loader import load_flow
from ..ontology.load import load_ontology
from ..ontology.validator import validate_flow
from ..topology.config import DEFAULT_TOPOLOGY, load_topology
from ..topology.manager import is_edge_allowed


def topology_warnings(flow, topology) -> list[str]:
    """Edges whose (source type, relationship, target type) the topology does not allow."""
    type_by_id = {n.id: n.type for n in flow.nodes}
    warnings: list[str] = []
    for edge in flow.edges:
        source_type = type_by_id.get(edge.source)
        target_type = type_by_id.get(edge.target)
        if source_type is None or target_type is None:
            continue
        if not is_edge_allowed(source_type, target_type, edge.type, topology):
            warnings.append(
                f'Edge "{edge.id}": topology does not allow {source_type} -[{edge.type}]-> {target_type}'
            )
    return warnings


def run_validate(
    flow_path: Path,
    *,
    ontology_path: Path | None = None,
    topology_path: Path | None = None,
    output_json: bool = False,
    strict: bool = False,
) -> int:
    """Validate a flow file.

    Returns:
        Exit code (0 = valid, 1 = errors found; with ``strict``, topology
        warnings count as errors)
    """
    console = Console(stderr=True)
    console.print(f"Loading flow from {flow_path}...", style="dim")

    errors: list[str] = []
    warnings: list[str] = []

    parsed = load_flow(flow_path)
    if not parsed.success:
        errors.extend(parsed.errors)
    else:
        flow = parsed.data
        if ontology_path is not None:
            ontology = load_ontology(ontology_path)
            errors.extend(validate_flow(flow.nodes, flow.edges, ontology).errors)
        topology = load_topology(topology_path) if topology_path else DEFAULT_TOPOLOGY
        warnings.extend(topology_warnings(flow, topology))

    failed = bool(errors) or (strict and bool(warnings))

    if output_json:
        payload = {"flow": str(flow_path), "valid": not failed, "errors": errors, "warnings": warnings}
        print(json.dumps(payload, indent=2))
        return 1 if failed else 0

    if errors or warnings:
        table = Table(title=f"Validation: {flow_path.name}")
        table.add_column("Level", style="bold")
        table.add_column("Message")
        for message in errors:
            table.add_row("[red]error[/red]", message)
        for message in warnings:
            table.add_row("[yellow]warning[/yellow]", message)
        Console().print(table)

    if failed:
        console.print(f"{len(errors)} error(s), {len(warnings)} warning(s)", style="bold red")
        return 1
    console.print(f"Flow is valid ({len(warnings)} warning(s))", style="green")
    return 0
