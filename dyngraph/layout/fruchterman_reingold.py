import math

import numpy as np

from ._grid import OptimizationGrid
from .cooling import Cooling
from .placement import circular_placement


class FruchtermanReingold:
    """Fruchterman-Reingold force-directed layout of a single static graph.

    Calling the object places the nodes on a circle and runs two annealing
    passes: a hot one that unfolds the graph and a cool one that settles it.
    All nodes end up within ``[-w/2, w/2] x [-h/2, h/2]``.

    Parameters
    --
    k_coeff : float, default 0.6
        Scales the ideal edge length ``k = k_coeff * sqrt(w*h/n)``.
    border_force_coeff : float, default 0.6
        Strength of the canvas border relative to node repulsion.
    global_repulsion : bool, default False
        Repel every pair of nodes instead of only pairs closer than ``2k``.
        Turning this on usually calls for a stronger border.
    first_cooling, second_cooling : Cooling, optional
        Schedules of the two passes. Defaults are ``(500, 0.8, x0.9893)`` and
        ``(500, 0.05, x0.993)``.
    initial_placement : callable, optional
        ``f(graph, width, height)`` writing starting positions. Defaults to
        ``circular_placement``.

    Notes
    -
    Temperatures are given relative to the canvas: a temperature of 1 lets a
    node travel ``relative_unit(w, h)`` per iteration.

    Forces are accumulated with numpy. Coincident nodes are pushed apart by
    half the temperature along a random angle; the generator is seeded with 0
    at every ``iteration`` call, so a given layout is reproducible but the
    angles repeat between iterations.

    """

    SMALL_OFFSET = 0.001
    UNIT_COEFF = 0.68

    def __init__(
        self,
        k_coeff: float = 0.6,
        border_force_coeff: float = 0.6,
        global_repulsion: bool = False,
        first_cooling: Cooling | None = None,
        second_cooling: Cooling | None = None,
        initial_placement=None,
    ):
        self.k_coeff = float(k_coeff)
        self.border_force_coeff = float(border_force_coeff)
        self.global_repulsion = bool(global_repulsion)
        self.first_cooling = first_cooling or Cooling.exponential(500, 0.8, 0.9893)
        self.second_cooling = second_cooling or Cooling.exponential(500, 0.05, 0.993)
        self.initial_placement = initial_placement or circular_placement

    # ==================== Configuration ====================

    def set_first_cooling(self, cooling: Cooling):
        self.first_cooling = cooling

    def set_second_cooling(self, cooling: Cooling):
        self.second_cooling = cooling

    def set_k_coeff(self, coeff: float):
        self.k_coeff = float(coeff)

    def set_border_force_coeff(self, coeff: float):
        self.border_force_coeff = float(coeff)

    def use_global_repulsion(self, flag: bool = True):
        self.global_repulsion = bool(flag)

    def relative_unit(self, width: float, height: float) -> float:
        """Length of one temperature unit on a ``width x height`` canvas."""
        return math.hypot(width, height) * self.UNIT_COEFF

    # ==================== Layout ====================

    def __call__(self, graph, width: float, height: float):
        self.layout(graph, width, height)

    def layout(self, graph, width: float, height: float):
        """Compute positions for ``graph`` in place (no-op for an empty graph)."""
        if graph.is_empty():
            return
        self.initial_placement(graph, width, height)
        positions = graph.positions()
        one, two = _edge_indices(graph)
        for cooling in (self.first_cooling, self.second_cooling):
            for t in cooling.temperatures():
                positions = self._step(positions, one, two, width, height, t)
        graph.set_positions(positions)

    def iteration(self, graph, width: float, height: float, temperature: float):
        """Run one iteration at ``temperature`` on ``graph`` in place."""
        if graph.is_empty():
            return
        one, two = _edge_indices(graph)
        graph.set_positions(self._step(graph.positions(), one, two, width, height, temperature))

    def _step(self, positions, one, two, width, height, temperature):
        n = positions.shape[0]
        k = self.k_coeff * math.sqrt(width * height / n)
        t = temperature * self.relative_unit(width, height)
        disp = self._border(positions, width, height, k)
        self._repulsion(positions, width, height, k, t, disp)
        self._attraction(positions, one, two, k, disp)
        return self._displace(positions, width, height, t, disp)

    # ==================== Forces ====================

    def _border(self, positions, width, height, k):
        c = k * k * self.border_force_coeff
        disp = np.empty_like(positions)
        for axis, size in ((0, width), (1, height)):
            coord = positions[:, axis]
            soft = abs(size * self.SMALL_OFFSET)
            # pushed away from the low side, minus the push from the high side
            disp[:, axis] = c / (np.abs(coord + size * 0.5) + soft) - c / (
                np.abs(size * 0.5 - coord) + soft
            )
        return disp

    def _repulsion(self, positions, width, height, k, t, disp):
        n = positions.shape[0]
        if self.global_repulsion:
            i, j = np.tril_indices(n, -1)
        else:
            grid = OptimizationGrid(width, height, k)
            grid.fill(positions)
            i, j = grid.candidate_pairs()
        if i.size == 0:
            return
        diff = positions[j] - positions[i]
        dst = np.sqrt(diff[:, 0] ** 2 + diff[:, 1] ** 2)

        coincident = dst == 0
        if coincident.any():
            rng = np.random.default_rng(0)
            angles = rng.uniform(0.0, math.tau, int(coincident.sum()))
            nudge = np.column_stack([np.cos(angles), np.sin(angles)]) * (t * 0.5)
            np.subtract.at(disp, i[coincident], nudge)
            np.add.at(disp, j[coincident], nudge)

        near = ~coincident
        if not self.global_repulsion:
            near &= dst < 2.0 * k
        if not near.any():
            return
        force = diff[near] * ((k * k) / (dst[near] ** 2))[:, None]
        np.subtract.at(disp, i[near], force)
        np.add.at(disp, j[near], force)

    def _attraction(self, positions, one, two, k, disp):
        if one.size == 0:
            return
        diff = positions[two] - positions[one]
        dst = np.sqrt(diff[:, 0] ** 2 + diff[:, 1] ** 2)
        apart = dst != 0
        force = diff[apart] * (dst[apart] / k)[:, None]
        np.add.at(disp, one[apart], force)
        np.subtract.at(disp, two[apart], force)

    def _displace(self, positions, width, height, t, disp):
        length = np.sqrt(disp[:, 0] ** 2 + disp[:, 1] ** 2)
        scale = np.zeros_like(length)
        moving = length != 0
        scale[moving] = np.minimum(length[moving], t) / length[moving]
        moved = positions + disp * scale[:, None]
        np.clip(moved[:, 0], -width * 0.5, width * 0.5, out=moved[:, 0])
        np.clip(moved[:, 1], -height * 0.5, height * 0.5, out=moved[:, 1])
        return moved

    def __repr__(self):
        return (
            f"FruchtermanReingold(k_coeff={self.k_coeff:g}, "
            f"border_force_coeff={self.border_force_coeff:g}, "
            f"global_repulsion={self.global_repulsion})"
        )


def _edge_indices(graph):
    """Endpoint node indices of every edge, as two aligned arrays."""
    index = graph.node_to_idx
    one = np.fromiter((index[e.one] for e in graph.edges), dtype=np.intp, count=len(graph.edges))
    two = np.fromiter((index[e.two] for e in graph.edges), dtype=np.intp, count=len(graph.edges))
    return one, two
