"""CLI entrypoint for ontoflow."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any

import click
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from . import __version__
from .layouts.engine import available_algorithms, get_default_params


def _parse_toggle(value: str) -> tuple[str, str]:
    anchor, sep, dependent = value.partition(":")
    if not sep or not anchor or not dependent:
        raise click.BadParameter(f"Expected ANCHOR:DEPENDENT, got '{value}'", param_hint="--toggle")
    return anchor, dependent


def _parse_param(value: str) -> tuple[str, Any]:
    key, sep, raw = value.partition("=")
    if not sep or not key:
        raise click.BadParameter(f"Expected KEY=VALUE, got '{value}'", param_hint="--param")
    try:
        parsed = yaml.safe_load(raw)
    except yaml.YAMLError:
        parsed = raw
    return key.strip().replace("-", "_"), parsed


@click.group()
@click.version_option(__version__, prog_name="ontoflow")
@click.option("--verbose", is_flag=True, help="Log rule evaluation and layout decisions")
def cli(verbose: bool) -> None:
    """ontoflow - Ontology-driven flow graphs with toggleable overlays.

    Validate flows against an ontology, lay them out and export them.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        )


@cli.command()
@click.argument("flow", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--ontology",
    "ontology_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Ontology YAML to validate node and edge types against",
)
@click.option(
    "--topology",
    "topology_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Topology YAML (defaults to the built-in rules)",
)
@click.option("--json", "output_json", is_flag=True, help="Output results as JSON")
@click.option("--strict", is_flag=True, help="Treat topology warnings as errors")
def validate(
    flow: Path,
    ontology_path: Path | None,
    topology_path: Path | None,
    output_json: bool,
    strict: bool,
) -> None:
    """Validate a flow file."""
    from .commands.validate_cmd import run_validate

    try:
        exit_code = run_validate(
            flow,
            ontology_path=ontology_path,
            topology_path=topology_path,
            output_json=output_json,
            strict=strict,
        )
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc
    sys.exit(exit_code)


@cli.command()
@click.argument("flow", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--topology",
    "topology_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Topology YAML (defaults to the built-in rules)",
)
@click.option("--toggle", "toggles", multiple=True, metavar="ANCHOR:DEPENDENT", help="Turn on a toggle pair")
@click.option("--all-toggles", is_flag=True, help="Turn on every toggle the flow offers")
@click.option(
    "--algorithm",
    type=click.Choice(available_algorithms()),
    default="force-directed",
    show_default=True,
    help="Layout algorithm",
)
@click.option("--param", "params", multiple=True, metavar="KEY=VALUE", help="Override a layout parameter")
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["json", "svg", "html"]),
    default="json",
    show_default=True,
    help="Output format",
)
@click.option("--out", type=click.Path(dir_okay=False, path_type=Path), default=None, help="Write output to a file")
def render(
    flow: Path,
    topology_path: Path | None,
    toggles: tuple[str, ...],
    all_toggles: bool,
    algorithm: str,
    params: tuple[str, ...],
    fmt: str,
    out: Path | None,
) -> None:
    """Lay out a flow and export the visible graph."""
    from .commands.render_cmd import run_render

    pairs = [_parse_toggle(t) for t in toggles]
    overrides = dict(_parse_param(p) for p in params)
    try:
        exit_code = run_render(
            flow,
            topology_path=topology_path,
            toggles=pairs,
            all_toggles=all_toggles,
            algorithm=algorithm,
            params=overrides,
            fmt=fmt,
            out=out,
        )
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc
    sys.exit(exit_code)


@cli.command()
def layouts() -> None:
    """List layout algorithms and their default parameters."""
    table = Table(title="Layout algorithms")
    table.add_column("Algorithm", style="bold")
    table.add_column("Defaults")
    for name in available_algorithms():
        defaults = ", ".join(f"{k}={v}" for k, v in get_default_params(name).items())
        table.add_row(name, defaults)
    Console().print(table)


if __name__ == "__main__":
    cli()
