"""Force-directed layout.

A small velocity-Verlet simulation in the style of d3-force: many-body
charge between every pair, springs along edges, gravity toward the origin
and a collision pass so boxes do not sit on top of each other. Runs a fixed,
capped number of ticks and stops early once total movement settles.

Nodes named in ``placed`` start from their current position; every other
node starts on a seeded spiral around the origin.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass
from typing import AbstractSet, Any, Iterable, Mapping

from ..models import RenderEdge, RenderNode
from .base import coerce_params, moved

MAX_ITERATIONS = 1000

ALPHA_MIN = 0.001
VELOCITY_DECAY = 0.6
COLLISION_STRENGTH = 0.7
MAX_COLLISION_RADIUS = 80.0
INITIAL_RADIUS = 10.0
INITIAL_ANGLE = math.pi * (3 - math.sqrt(5))


@dataclass(frozen=True)
class ForceDirectedParams:
    repulsion: float = -400.0
    attraction: float = 0.1
    center_gravity: float = 0.1
    max_iterations: int = 300
    convergence_threshold: float = 0.01
    seed: int = 0


def _initial_positions(
    nodes: list[RenderNode], seed: int, placed: AbstractSet[str]
) -> tuple[list[float], list[float]]:
    # Phyllotaxis spiral; a per-seed rotation keeps runs deterministic.
    rotation = random.Random(seed).random() * 2 * math.pi
    xs: list[float] = []
    ys: list[float] = []
    for i, node in enumerate(nodes):
        if node.id in placed:
            xs.append(node.position.x)
            ys.append(node.position.y)
            continue
        r = INITIAL_RADIUS * math.sqrt(0.5 + i)
        angle = i * INITIAL_ANGLE + rotation
        xs.append(r * math.cos(angle))
        ys.append(r * math.sin(angle))
    return xs, ys


def _jiggle(i: int, j: int) -> float:
    # Deterministic stand-in for a random nudge when two points coincide.
    return ((i * 31 + j * 17) % 7 + 1) * 1e-3


def force_directed_layout(
    nodes: Iterable[RenderNode],
    edges: Iterable[RenderEdge],
    params: ForceDirectedParams | Mapping[str, Any] | None = None,
    *,
    placed: AbstractSet[str] | None = None,
) -> list[RenderNode]:
    p = coerce_params(ForceDirectedParams, params)
    node_list = list(nodes)
    if not node_list:
        return []
    if len(node_list) == 1:
        return [moved(node_list[0], 0.0, 0.0)]

    n = len(node_list)
    index = {node.id: i for i, node in enumerate(node_list)}
    links: list[tuple[int, int]] = []
    for e in edges:
        s, t = index.get(e.source), index.get(e.target)
        if s is None or t is None or s == t:
            continue
        links.append((s, t))

    degree = [0] * n
    for s, t in links:
        degree[s] += 1
        degree[t] += 1
    # Share of the spring correction applied to the target endpoint.
    biases = [degree[s] / (degree[s] + degree[t]) for s, t in links]

    link_distance = abs(p.repulsion) / 3
    collision_radius = min(link_distance / 3, MAX_COLLISION_RADIUS)

    xs, ys = _initial_positions(node_list, p.seed, placed or frozenset())
    vx = [0.0] * n
    vy = [0.0] * n

    iterations = max(0, min(int(p.max_iterations), MAX_ITERATIONS))
    alpha = 1.0
    alpha_decay = 1 - ALPHA_MIN ** (1 / iterations) if iterations else 0.0

    for _ in range(iterations):
        alpha += -alpha * alpha_decay

        for (s, t), bias in zip(links, biases):
            dx = xs[t] + vx[t] - xs[s] - vx[s]
            dy = ys[t] + vy[t] - ys[s] - vy[s]
            if dx == 0 and dy == 0:
                dx = _jiggle(s, t)
            dist = math.hypot(dx, dy)
            f = (dist - link_distance) / dist * alpha * p.attraction
            dx *= f
            dy *= f
            vx[t] -= dx * bias
            vy[t] -= dy * bias
            vx[s] += dx * (1 - bias)
            vy[s] += dy * (1 - bias)

        for i in range(n):
            for j in range(n):
                if i == j:
                    continue
                dx = xs[j] - xs[i]
                dy = ys[j] - ys[i]
                if dx == 0 and dy == 0:
                    dx = _jiggle(i, j) * (1 if j > i else -1)
                d2 = max(dx * dx + dy * dy, 1.0)
                w = p.repulsion * alpha / d2
                vx[i] += dx * w
                vy[i] += dy * w

        for i in range(n):
            vx[i] -= xs[i] * p.center_gravity * alpha
            vy[i] -= ys[i] * p.center_gravity * alpha

        if collision_radius > 0:
            min_dist = 2 * collision_radius
            for i in range(n):
                for j in range(i + 1, n):
                    dx = xs[j] + vx[j] - xs[i] - vx[i]
                    dy = ys[j] + vy[j] - ys[i] - vy[i]
                    dist = math.hypot(dx, dy)
                    if dist >= min_dist:
                        continue
                    if dist == 0:
                        dx, dist = _jiggle(i, j), _jiggle(i, j)
                    push = (min_dist - dist) / dist * COLLISION_STRENGTH * 0.5
                    vx[i] -= dx * push
                    vy[i] -= dy * push
                    vx[j] += dx * push
                    vy[j] += dy * push

        movement = 0.0
        for i in range(n):
            vx[i] *= VELOCITY_DECAY
            vy[i] *= VELOCITY_DECAY
            xs[i] += vx[i]
            ys[i] += vy[i]
            movement += abs(vx[i]) + abs(vy[i])
        if movement < p.convergence_threshold:
            break

    return [moved(node, xs[i], ys[i]) for i, node in enumerate(node_list)]
