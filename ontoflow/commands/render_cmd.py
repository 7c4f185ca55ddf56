"""Render command - lay out a flow and export the render records."""

from __future__ import annotations

import asyncio
import html
import json
from pathlib import Path
from typing import Any, Iterable

from rich.console import Console

from ..flow.loader import load_flow
from ..layouts.base import GROUP_NODE_TYPE, NODE_HEIGHT, NODE_WIDTH
from ..layouts.state import LayoutState
from ..models import RenderEdge, RenderNode
from ..session import GraphSession
from ..topology.config import DEFAULT_TOPOLOGY, load_topology
from ..topology.view import available_toggles

NODE_COLORS = {
    "phase": "#7C3AED",
    "sub-phase": "#8B5CF6",
    "sub-phase-component": "#A78BFA",
    "mental-model": "#F59E0B",
    "visualization": "#10B981",
    "principle": "#3B82F6",
    "output": "#EC4899",
    "outcome": "#F97316",
    "impact": "#EF4444",
}
DEFAULT_NODE_COLOR = "#9aa0a6"

BACKGROUND = "#0f1115"
TEXT_COLOR = "#e6e6e6"
BORDER_COLOR = "#3a4154"


def run_render(
    flow_path: Path,
    *,
    topology_path: Path | None = None,
    toggles: Iterable[tuple[str, str]] = (),
    all_toggles: bool = False,
    algorithm: str = "force-directed",
    params: dict[str, Any] | None = None,
    fmt: str = "json",
    out: Path | None = None,
) -> int:
    """Lay out the visible part of a flow and write JSON, SVG or HTML."""
    console = Console(stderr=True)

    parsed = load_flow(flow_path)
    if not parsed.success:
        for error in parsed.errors:
            console.print(f"  {error}", style="red")
        console.print(f"Could not parse {flow_path}", style="bold red")
        return 1
    flow = parsed.data

    topology = load_topology(topology_path) if topology_path else DEFAULT_TOPOLOGY
    layout_state = LayoutState(algorithm)
    if params:
        layout_state.update_params(params)

    session = GraphSession(flow.nodes, flow.edges, topology=topology, layout_state=layout_state)
    pairs = available_toggles(flow.edges, topology) if all_toggles else list(toggles)
    for anchor_id, dependent_id in pairs:
        session.toggles.set(anchor_id, dependent_id, True)

    asyncio.run(session.refresh())
    render_nodes, render_edges = session.render_graph()
    groups = [g for g in session.group_nodes() if g.type == GROUP_NODE_TYPE]
    console.print(
        f"Rendered {len(render_nodes)} node(s), {len(render_edges)} edge(s) with {layout_state.algorithm}",
        style="dim",
    )

    title = flow.name
    if fmt == "svg":
        text = _to_svg(render_nodes, render_edges, title=title, groups=groups)
    elif fmt == "html":
        text = _wrap_html(_to_svg(render_nodes, render_edges, title=title, groups=groups), title=title)
    else:
        payload = {
            "flow": flow.id,
            "layout": {"algorithm": layout_state.algorithm, "params": layout_state.params},
            "toggles": [list(p) for p in session.toggles.pairs()],
            "nodes": [n.to_dict() for n in render_nodes],
            "edges": [e.to_dict() for e in render_edges],
            "groups": [g.to_dict() for g in groups],
        }
        text = json.dumps(payload, indent=2) + "\n"

    if out:
        out.write_text(text, encoding="utf-8")
        console.print(f"Wrote {fmt} output to {out}", style="green")
    else:
        print(text, end="" if text.endswith("\n") else "\n")
    return 0


def _to_svg(
    nodes: list[RenderNode],
    edges: list[RenderEdge],
    *,
    title: str,
    groups: list[RenderNode] | None = None,
) -> str:
    """Static SVG of the laid-out graph: boxes at their positions, edges along waypoints.

    Group containers are drawn behind everything else.
    """
    groups = groups or []
    margin = 40.0
    header = 40.0

    if nodes:
        min_x = min(n.position.x for n in nodes)
        min_y = min(n.position.y for n in nodes)
        max_x = max(n.position.x for n in nodes) + NODE_WIDTH
        max_y = max(n.position.y for n in nodes) + NODE_HEIGHT
    else:
        min_x = min_y = 0.0
        max_x, max_y = NODE_WIDTH, NODE_HEIGHT
    for e in edges:
        for wp in e.data.get("waypoints", []):
            min_x, max_x = min(min_x, wp["x"]), max(max_x, wp["x"])
            min_y, max_y = min(min_y, wp["y"]), max(max_y, wp["y"])
    for g in groups:
        min_x, min_y = min(min_x, g.position.x), min(min_y, g.position.y)
        max_x = max(max_x, g.position.x + g.data["width"])
        max_y = max(max_y, g.position.y + g.data["height"])

    dx = margin - min_x
    dy = margin + header - min_y
    width = max_x - min_x + 2 * margin
    height = max_y - min_y + 2 * margin + header

    def esc(s: str) -> str:
        return html.escape(s, quote=True)

    centers = {n.id: (n.position.x + dx + NODE_WIDTH / 2, n.position.y + dy + NODE_HEIGHT / 2) for n in nodes}

    parts: list[str] = [
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{width:.0f}" height="{height:.0f}" '
        f'viewBox="0 0 {width:.0f} {height:.0f}" style="background:{BACKGROUND}">',
        '<defs><marker id="arrow" viewBox="0 0 10 10" refX="10" refY="5" markerWidth="8" markerHeight="8" '
        f'orient="auto-start-reverse"><path d="M 0 0 L 10 5 L 0 10 z" fill="{BORDER_COLOR}"/></marker></defs>',
        f'<text x="{margin:.0f}" y="{margin:.0f}" fill="{TEXT_COLOR}" font-family="Helvetica" font-size="16">{esc(title)}</text>',
    ]

    parts.append('<g id="groups" font-family="Helvetica">')
    for g in groups:
        style = g.data.get("style", {})
        color = style.get("borderColor", BORDER_COLOR)
        x = g.position.x + dx
        y = g.position.y + dy
        parts.append(
            f'<rect id="{esc(g.id)}" x="{x:.1f}" y="{y:.1f}" width="{g.data["width"]:.0f}" '
            f'height="{g.data["height"]:.0f}" rx="{style.get("borderRadius", 16)}" '
            f'fill="{esc(style.get("backgroundColor", color))}" fill-opacity="{style.get("backgroundOpacity", 0.05)}" '
            f'stroke="{esc(color)}" stroke-width="{style.get("borderWidth", 3)}" '
            f'stroke-opacity="{style.get("borderOpacity", 0.3)}"/>'
        )
        if g.data.get("showLabel"):
            label_style = g.data.get("labelStyle", {})
            label_y = y + label_style.get("paddingTop", 20)
            if g.data.get("labelPosition") == "outside":
                label_y = y - 8
            parts.append(
                f'<text x="{x + 16:.1f}" y="{label_y:.1f}" fill="{esc(label_style.get("color", color))}" '
                f'font-size="{label_style.get("fontSize", 14)}" opacity="{label_style.get("opacity", 1.0)}">'
                f'{esc(str(g.data.get("label", "")))}</text>'
            )
    parts.append("</g>")

    parts.append('<g id="edges" fill="none" stroke-linecap="round">')
    for e in edges:
        if e.source not in centers or e.target not in centers:
            continue
        points = [centers[e.source]]
        points.extend((wp["x"] + dx, wp["y"] + dy) for wp in e.data.get("waypoints", []))
        points.append(centers[e.target])
        d = " ".join(f"{x:.1f},{y:.1f}" for x, y in points)
        stroke = e.style.get("stroke", BORDER_COLOR)
        width_attr = e.style.get("strokeWidth", 2)
        dash = e.style.get("strokeDasharray") or ("6,4" if e.animated else None)
        dash_attr = f' stroke-dasharray="{esc(str(dash))}"' if dash else ""
        css = ' class="animated"' if e.animated else ""
        parts.append(
            f'<polyline id="edge-{esc(e.id)}"{css} points="{d}" stroke="{esc(stroke)}" '
            f'stroke-width="{width_attr}"{dash_attr} marker-end="url(#arrow)"><title>{esc(e.label)}</title></polyline>'
        )
    parts.append("</g>")

    parts.append('<g id="nodes" font-family="Helvetica">')
    for n in nodes:
        x = n.position.x + dx
        y = n.position.y + dy
        fill = NODE_COLORS.get(n.type, DEFAULT_NODE_COLOR)
        label = str(n.data.get("label") or n.id)
        parts.append(
            f'<g id="node-{esc(n.id)}"><rect x="{x:.1f}" y="{y:.1f}" width="{NODE_WIDTH:.0f}" height="{NODE_HEIGHT:.0f}" '
            f'rx="8" fill="{fill}" fill-opacity="0.85" stroke="{BORDER_COLOR}"/>'
        )
        parts.append(
            f'<text x="{x + NODE_WIDTH / 2:.1f}" y="{y + NODE_HEIGHT / 2 - 4:.1f}" fill="{TEXT_COLOR}" '
            f'font-size="12" text-anchor="middle">{esc(label)}</text>'
        )
        parts.append(
            f'<text x="{x + NODE_WIDTH / 2:.1f}" y="{y + NODE_HEIGHT / 2 + 12:.1f}" fill="{TEXT_COLOR}" '
            f'font-size="9" opacity="0.7" text-anchor="middle">{esc(n.type)}</text></g>'
        )
    parts.append("</g>")
    parts.append("</svg>")
    return "\n".join(parts) + "\n"


def _wrap_html(svg: str, *, title: str) -> str:
    """Standalone page around the SVG with drag-to-pan and wheel zoom."""
    t = html.escape(title, quote=True)
    return (
        "<!doctype html>\n"
        "<html>\n"
        "<head>\n"
        f"  <meta charset=\"utf-8\" />\n  <title>{t}</title>\n"
        "  <style>\n"
        f"    body {{ margin: 0; background: {BACKGROUND}; color: {TEXT_COLOR}; font-family: system-ui, Helvetica, Arial; }}\n"
        "    .frame { height: 100vh; display: flex; flex-direction: column; }\n"
        f"    .bar {{ padding: 8px 12px; border-bottom: 1px solid {BORDER_COLOR}; font-size: 13px; }}\n"
        "    .stage { flex: 1; min-height: 0; overflow: hidden; }\n"
        "    svg { width: 100%; height: 100%; display: block; cursor: grab; }\n"
        "    .animated { stroke-dasharray: 6 4; animation: flow 1s linear infinite; }\n"
        "    @keyframes flow { to { stroke-dashoffset: -10; } }\n"
        "  </style>\n"
        "</head>\n"
        "<body>\n"
        "  <div class=\"frame\">\n"
        f"    <div class=\"bar\">{t} <button id=\"reset\" type=\"button\">Reset view</button></div>\n"
        "    <div class=\"stage\" id=\"stage\">\n"
        f"{svg}\n"
        "    </div>\n"
        "  </div>\n"
        "  <script>\n"
        "    (function () {\n"
        "      const svg = document.querySelector('#stage svg');\n"
        "      if (!svg) return;\n"
        "      const vb = svg.viewBox.baseVal;\n"
        "      const home = [vb.x, vb.y, vb.width, vb.height];\n"
        "      let drag = null;\n"
        "      svg.addEventListener('pointerdown', (e) => {\n"
        "        drag = { x: e.clientX, y: e.clientY, vx: vb.x, vy: vb.y };\n"
        "        svg.setPointerCapture(e.pointerId);\n"
        "      });\n"
        "      svg.addEventListener('pointerup', () => { drag = null; });\n"
        "      svg.addEventListener('pointermove', (e) => {\n"
        "        if (!drag) return;\n"
        "        const r = svg.getBoundingClientRect();\n"
        "        vb.x = drag.vx - (e.clientX - drag.x) * vb.width / r.width;\n"
        "        vb.y = drag.vy - (e.clientY - drag.y) * vb.height / r.height;\n"
        "      });\n"
        "      svg.addEventListener('wheel', (e) => {\n"
        "        e.preventDefault();\n"
        "        const r = svg.getBoundingClientRect();\n"
        "        const k = e.deltaY > 0 ? 1.15 : 1 / 1.15;\n"
        "        const px = (e.clientX - r.left) / r.width;\n"
        "        const py = (e.clientY - r.top) / r.height;\n"
        "        vb.x += vb.width * (1 - k) * px;\n"
        "        vb.y += vb.height * (1 - k) * py;\n"
        "        vb.width *= k;\n"
        "        vb.height *= k;\n"
        "      }, { passive: false });\n"
        "      document.getElementById('reset').addEventListener('click', () => {\n"
        "        [vb.x, vb.y, vb.width, vb.height] = home;\n"
        "      });\n"
        "    })();\n"
        "  </script>\n"
        "</body>\n"
        "</html>\n"
    )
