"""Headless force-directed layout for the family tree view.

The simulation follows the d3-force model the browser view is drawn with:
a velocity-Verlet style integrator whose "alpha" temperature cools
geometrically toward ``alpha_target``, with four forces applied in order
each tick:

1. link     springs pulling linked people toward ``link_distance``
2. charge   pairwise repulsion (negative strength repels)
3. center   translates the whole layout so its centroid is the canvas center
4. collide  pushes apart any two nodes closer than the sum of their radii

Nothing here draws or schedules anything. A host calls ``step()`` (or
iterates ``run_layout``) from its own frame callback and reads ``x``/``y``
off the nodes; user interaction arrives as discrete commands (``pin``,
``drag_start``, ``zoom``...). ``stop()`` must be called when the view goes
away so no further ticks are scheduled.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import math
import random
from typing import Iterator, Optional, Sequence

from .models import Person, TreeLink, TreeNode

log = logging.getLogger(__name__)

LINK_DISTANCE = 100.0
LINK_STRENGTH = 0.5
CHARGE_STRENGTH = -300.0
COLLIDE_RADIUS = 40.0

ALPHA_MIN = 0.001
ALPHA_DECAY = 1 - ALPHA_MIN ** (1 / 300)
VELOCITY_DECAY = 0.4
DRAG_ALPHA_TARGET = 0.3

_INITIAL_RADIUS = 10.0
_INITIAL_ANGLE = math.pi * (3 - math.sqrt(5))

# Squared distance below which repulsion stops growing.
_CHARGE_DISTANCE_MIN2 = 1.0

SCALE_MIN = 0.1
SCALE_MAX = 3.0

NODE_RADIUS = 20
NODE_RADIUS_HOVER = 25


class ForceSimulation:
    def __init__(
        self,
        nodes: Sequence[TreeNode],
        links: Sequence[TreeLink] = (),
        *,
        width: float = 1200,
        height: float = 800,
        link_distance: float = LINK_DISTANCE,
        link_strength: float = LINK_STRENGTH,
        charge_strength: float = CHARGE_STRENGTH,
        collide_radius: float = COLLIDE_RADIUS,
        seed: Optional[int] = 0,
    ) -> None:
        self.nodes = list(nodes)
        self.links = list(links)
        self.center = (width / 2, height / 2)
        self.link_distance = link_distance
        self.link_strength = link_strength
        self.charge_strength = charge_strength
        self.collide_radius = collide_radius

        self.alpha = 1.0
        self.alpha_min = ALPHA_MIN
        self.alpha_decay = ALPHA_DECAY
        self.alpha_target = 0.0
        self.velocity_decay = VELOCITY_DECAY
        self.ticks = 0

        self._random = random.Random(seed)
        self._by_id: dict[str, TreeNode] = {}
        self._bias: list[float] = []
        self._active_drags: set[str] = set()

        self._initialize_nodes()
        self.resolve_links()
        # An empty graph never starts.
        self.running = bool(self.nodes)

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def _initialize_nodes(self) -> None:
        for i, node in enumerate(self.nodes):
            node.index = i
            if node.fx is not None:
                node.x = node.fx
            if node.fy is not None:
                node.y = node.fy
            if node.x is None or node.y is None:
                # Phyllotaxis spiral so the first ticks start from a
                # deterministic, evenly spread arrangement.
                radius = _INITIAL_RADIUS * math.sqrt(0.5 + i)
                angle = i * _INITIAL_ANGLE
                node.x = radius * math.cos(angle)
                node.y = radius * math.sin(angle)
            self._by_id[node.id] = node

    def resolve_links(self) -> None:
        """Swap link endpoint ids for their node objects, in place.

        Raises ``KeyError`` for an endpoint that is not a node;
        ``build_graph`` drops such links before they get here.
        """

        degree: dict[str, int] = {}
        for i, link in enumerate(self.links):
            link.index = i
            if not isinstance(link.source, TreeNode):
                link.source = self._by_id[link.source]
            if not isinstance(link.target, TreeNode):
                link.target = self._by_id[link.target]
            degree[link.source.id] = degree.get(link.source.id, 0) + 1
            degree[link.target.id] = degree.get(link.target.id, 0) + 1

        # Share of each spring's correction taken by the target end; the
        # better connected end moves less.
        self._bias = []
        for link in self.links:
            s = degree[link.source.id]
            t = degree[link.target.id]
            self._bias.append(s / (s + t))

    def node(self, node_id: str) -> TreeNode:
        return self._by_id[node_id]

    def _jiggle(self) -> float:
        return (self._random.random() - 0.5) * 1e-6

    # ------------------------------------------------------------------
    # Forces
    # ------------------------------------------------------------------

    def _force_link(self, alpha: float) -> None:
        for link, bias in zip(self.links, self._bias):
            source, target = link.source, link.target
            x = target.x + target.vx - source.x - source.vx
            y = target.y + target.vy - source.y - source.vy
            if x == 0:
                x = self._jiggle()
            if y == 0:
                y = self._jiggle()
            dist = math.sqrt(x * x + y * y)
            k = (dist - self.link_distance) / dist * alpha * self.link_strength
            x *= k
            y *= k
            target.vx -= x * bias
            target.vy -= y * bias
            source.vx += x * (1 - bias)
            source.vy += y * (1 - bias)

    def _force_charge(self, alpha: float) -> None:
        # Exact O(n^2) sum; family trees rendered at once are small.
        strength = self.charge_strength
        nodes = self.nodes
        for node in nodes:
            for other in nodes:
                if other is node:
                    continue
                x = other.x - node.x
                y = other.y - node.y
                if x == 0:
                    x = self._jiggle()
                if y == 0:
                    y = self._jiggle()
                d2 = x * x + y * y
                if d2 < _CHARGE_DISTANCE_MIN2:
                    d2 = math.sqrt(_CHARGE_DISTANCE_MIN2 * d2)
                w = strength * alpha / d2
                node.vx += x * w
                node.vy += y * w

    def _force_center(self) -> None:
        n = len(self.nodes)
        cx, cy = self.center
        sx = sum(node.x for node in self.nodes) / n - cx
        sy = sum(node.y for node in self.nodes) / n - cy
        for node in self.nodes:
            node.x -= sx
            node.y -= sy

    def _force_collide(self) -> None:
        ri = rj = self.collide_radius
        r = ri + rj
        # Equal radii: each node takes half of the correction.
        share = (rj * rj) / (ri * ri + rj * rj)
        nodes = self.nodes
        for i, node in enumerate(nodes):
            xi = node.x + node.vx
            yi = node.y + node.vy
            for other in nodes[i + 1 :]:
                x = xi - other.x - other.vx
                y = yi - other.y - other.vy
                d2 = x * x + y * y
                if d2 >= r * r:
                    continue
                if x == 0:
                    x = self._jiggle()
                    d2 += x * x
                if y == 0:
                    y = self._jiggle()
                    d2 += y * y
                dist = math.sqrt(d2)
                k = (r - dist) / dist
                x *= k
                y *= k
                node.vx += x * share
                node.vy += y * share
                other.vx -= x * (1 - share)
                other.vy -= y * (1 - share)

    # ------------------------------------------------------------------
    # Stepping
    # ------------------------------------------------------------------

    def step(self, dt: float = 1.0) -> list[TreeNode]:
        """Advance one tick (``dt`` scales the integration step) and return the nodes."""

        if not self.nodes:
            return self.nodes

        self.alpha += (self.alpha_target - self.alpha) * self.alpha_decay
        alpha = self.alpha

        self._force_link(alpha)
        self._force_charge(alpha)
        self._force_center()
        self._force_collide()

        keep = 1 - self.velocity_decay
        for node in self.nodes:
            if node.fx is None:
                node.vx *= keep
                node.x += node.vx * dt
            else:
                node.x = node.fx
                node.vx = 0.0
            if node.fy is None:
                node.vy *= keep
                node.y += node.vy * dt
            else:
                node.y = node.fy
                node.vy = 0.0

        self.ticks += 1
        return self.nodes

    def tick(self, iterations: int = 1) -> list[TreeNode]:
        for _ in range(iterations):
            self.step()
        return self.nodes

    @property
    def settled(self) -> bool:
        return self.alpha < self.alpha_min

    def run(self, max_ticks: int = 300) -> Iterator[dict[str, tuple[float, float]]]:
        """Yield node positions after each tick until cooled, stopped, or out of ticks."""

        for _ in range(max_ticks):
            if not self.running:
                return
            self.step()
            yield self.positions()
            if self.settled:
                self.running = False
                log.debug("layout settled after %d ticks (%d nodes)", self.ticks, len(self.nodes))
                return

    def settle(self, max_ticks: int = 300) -> list[TreeNode]:
        for _ in self.run(max_ticks):
            pass
        return self.nodes

    def positions(self) -> dict[str, tuple[float, float]]:
        return {n.id: (n.x, n.y) for n in self.nodes}

    def stop(self) -> None:
        self.running = False

    def restart(self) -> None:
        self.running = bool(self.nodes)

    def reheat(self, alpha: float = 1.0) -> None:
        self.alpha = alpha
        self.restart()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def pin(self, node_id: str, x: float, y: float) -> None:
        node = self._by_id[node_id]
        node.fx = x
        node.fy = y

    def unpin(self, node_id: str) -> None:
        node = self._by_id[node_id]
        node.fx = None
        node.fy = None

    def drag_start(self, node_id: str) -> None:
        node = self._by_id[node_id]
        if not self._active_drags:
            self.alpha_target = DRAG_ALPHA_TARGET
            self.restart()
        self._active_drags.add(node_id)
        self.pin(node_id, node.x, node.y)

    def drag(self, node_id: str, x: float, y: float) -> None:
        self.pin(node_id, x, y)

    def drag_end(self, node_id: str) -> None:
        self._active_drags.discard(node_id)
        if not self._active_drags:
            self.alpha_target = 0.0
        self.unpin(node_id)


def run_layout(
    nodes: Sequence[TreeNode],
    links: Sequence[TreeLink],
    canvas_size: tuple[float, float],
    *,
    max_ticks: int = 300,
    seed: Optional[int] = 0,
) -> Iterator[dict[str, tuple[float, float]]]:
    """Stream per-tick positions for a fresh simulation of ``nodes``/``links``."""

    if not nodes:
        return
    width, height = canvas_size
    sim = ForceSimulation(nodes, links, width=width, height=height, seed=seed)
    yield from sim.run(max_ticks)


# ---------------------------------------------------------------------------
# View interaction
# ---------------------------------------------------------------------------


def _clamp_scale(k: float) -> float:
    return max(SCALE_MIN, min(SCALE_MAX, k))


@dataclass(frozen=True)
class ViewTransform:
    """Screen = layout * k + (x, y). Independent of simulation coordinates."""

    k: float = 1.0
    x: float = 0.0
    y: float = 0.0

    def apply(self, px: float, py: float) -> tuple[float, float]:
        return px * self.k + self.x, py * self.k + self.y

    def invert(self, sx: float, sy: float) -> tuple[float, float]:
        return (sx - self.x) / self.k, (sy - self.y) / self.k

    def scaled_about(self, k: float, point: tuple[float, float]) -> "ViewTransform":
        k = _clamp_scale(k)
        lx, ly = self.invert(*point)
        return ViewTransform(k=k, x=point[0] - lx * k, y=point[1] - ly * k)


class TreeViewState:
    """Interaction state for one tree view session.

    Owns the simulation for the session; ``close()`` stops it.
    """

    ZOOM_STEP = 1.5

    def __init__(self, simulation: ForceSimulation, *, width: float = 1200, height: float = 800) -> None:
        self.simulation = simulation
        self.width = width
        self.height = height
        self.transform = ViewTransform()
        self.selected_id: Optional[str] = None
        self.hovered_id: Optional[str] = None

    @property
    def selected(self) -> Optional[Person]:
        if self.selected_id is None:
            return None
        return self.simulation.node(self.selected_id).person

    def set_transform(self, k: float, x: float, y: float) -> ViewTransform:
        self.transform = ViewTransform(k=_clamp_scale(k), x=x, y=y)
        return self.transform

    def on_zoom(self, k: float, x: float, y: float) -> ViewTransform:
        return self.set_transform(k, x, y)

    def zoom_by(self, factor: float, point: tuple[float, float] | None = None) -> ViewTransform:
        center = point or (self.width / 2, self.height / 2)
        self.transform = self.transform.scaled_about(self.transform.k * factor, center)
        return self.transform

    def zoom_in(self) -> ViewTransform:
        return self.zoom_by(self.ZOOM_STEP)

    def zoom_out(self) -> ViewTransform:
        return self.zoom_by(1 / self.ZOOM_STEP)

    def pan(self, dx: float, dy: float) -> ViewTransform:
        t = self.transform
        self.transform = ViewTransform(k=t.k, x=t.x + dx, y=t.y + dy)
        return self.transform

    def center_view(self) -> ViewTransform:
        return self.set_transform(1.0, self.width / 2, self.height / 2)

    def on_drag_start(self, node_id: str) -> None:
        self.simulation.drag_start(node_id)

    def on_drag(self, node_id: str, x: float, y: float) -> None:
        self.simulation.drag(node_id, x, y)

    def on_drag_end(self, node_id: str) -> None:
        self.simulation.drag_end(node_id)

    def on_node_click(self, node_id: str) -> Person:
        person = self.simulation.node(node_id).person
        self.selected_id = node_id
        return person

    def on_background_click(self) -> None:
        self.selected_id = None

    def on_hover(self, node_id: str) -> None:
        self.hovered_id = node_id

    def on_hover_end(self) -> None:
        self.hovered_id = None

    def node_radius(self, node_id: str) -> int:
        return NODE_RADIUS_HOVER if node_id == self.hovered_id else NODE_RADIUS

    def close(self) -> None:
        self.simulation.stop()
