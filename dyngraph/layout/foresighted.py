import weakref
from typing import Protocol

import numpy as np

from ..core.dynamic_graph import DynamicGraph
from ..exceptions import InvalidConfigurationError
from .cooling import Cooling
from .fruchterman_reingold import FruchtermanReingold
from .parallel import Barrier, WorkerPool
from .partitions import partition_animation


class ToleranceRefinement(Protocol):
    """Strategy improving individual frames within the stability tolerance."""

    def refine(self, layout, frames, width: float, height: float, tolerance: float) -> None: ...


class ForesightedLayout:
    """Foresighted layout with tolerance for a whole animation.

    The animation is partitioned into one reduced graph (see
    ``dyngraph.layout.partitions``), which is laid out once; every frame takes
    the positions of its partitions. With ``tolerance > 0`` the frames are then
    refined one annealing round at a time: a frame accepts its improved layout
    only while it stays within ``tolerance`` of both temporal neighbours.
    Finally positions are scaled to the canvas and moved to ``center``.

    Parameters
    --
    tolerance : float, default 0
        Maximum distance between a refined frame and its neighbours.
    width, height : float, default 1
        Output canvas; nodes end up in ``[cx - w/2, cx + w/2] x [cy - h/2, cy + h/2]``.
    center : tuple of float, default (0, 0)
    relative_distance : bool, default True
        Mean displacement over shared nodes (True) or the plain sum (False).
        In absolute mode the tolerance is multiplied by
        ``relative_unit * max_nodes`` so it stays comparable across sizes.
    cooling : Cooling, optional
        Refinement schedule, default ``(250, 0.4, x0.977)``.
    static_layout : FruchtermanReingold, optional
    refinement : ToleranceRefinement, optional
        Defaults to ``SequentialRefinement()``.

    Notes
    -
    Layout is computed on a canvas of height ``CALCULATION_HEIGHT`` with the
    output aspect ratio, so tolerances do not depend on the output size.

    """

    CALCULATION_HEIGHT = 1.0

    def __init__(
        self,
        tolerance: float = 0.0,
        width: float = 1.0,
        height: float = 1.0,
        center=(0.0, 0.0),
        *,
        relative_distance: bool = True,
        cooling: Cooling | None = None,
        static_layout: FruchtermanReingold | None = None,
        refinement: ToleranceRefinement | None = None,
    ):
        self.set_tolerance(tolerance)
        self.set_canvas(width, height, center)
        self.relative_distance = bool(relative_distance)
        self.cooling = cooling or Cooling.exponential(250, 0.4, 0.977)
        self.static_layout = static_layout or FruchtermanReingold()
        self.refinement = refinement or SequentialRefinement()

    # ==================== Configuration ====================

    def set_canvas(self, width: float, height: float, center=(0.0, 0.0)):
        if width <= 0 or height <= 0:
            raise InvalidConfigurationError(f"canvas must have a positive size, got {width} x {height}")
        self.width = float(width)
        self.height = float(height)
        cx, cy = center
        self.center = (float(cx), float(cy))

    def set_tolerance(self, tolerance: float):
        if tolerance < 0:
            raise ValueError(f"tolerance must be >= 0, got {tolerance}")
        self.tolerance = float(tolerance)

    def use_relative_distance(self, flag: bool = True):
        self.relative_distance = bool(flag)

    def set_cooling(self, cooling: Cooling):
        self.cooling = cooling

    # ==================== Layout ====================

    def __call__(self, animation):
        self.layout(animation)

    def layout(self, animation):
        """Lay out every frame of ``animation`` in place.

        Parameters
        --
        animation : DynamicGraph or sequence of Frame
            Frames are modified in place; an empty animation is left alone.

        """
        frames = animation.frames if isinstance(animation, DynamicGraph) else list(animation)
        if not frames:
            return
        calc_h = self.CALCULATION_HEIGHT
        calc_w = calc_h * self.width / self.height

        self.basic_layout(frames, calc_w, calc_h)
        if self.tolerance > 0:
            self.refinement.refine(self, frames, calc_w, calc_h, self.tolerance_value(frames, calc_w, calc_h))

        scale = np.array([self.width / calc_w, self.height / calc_h])
        shift = np.array(self.center)
        for frame in frames:
            if frame.nodes:
                frame.set_positions(frame.positions() * scale + shift)

    def basic_layout(self, frames, width: float, height: float):
        """Lay out the reduced graph once and copy partition positions to all frames.

        Returns
        ---
        MappedGraph
            The reduced graph that was laid out.

        """
        rgap = partition_animation(frames)
        self.static_layout(rgap.graph, width, height)
        for frame in frames:
            for node in frame.nodes:
                node.pos = rgap.node_at(node.id).pos
        return rgap

    def tolerance_value(self, frames, width: float, height: float) -> float:
        """Effective threshold on the calculation canvas."""
        if self.relative_distance:
            return self.tolerance
        return self.tolerance * self.static_layout.relative_unit(width, height) * max_nodes(frames)

    def distance(self, one, two) -> float:
        """Displacement between the nodes ``one`` and ``two`` share.

        Mean Euclidean distance in relative mode, sum in absolute mode; 0.0 if
        the frames share no node.
        """
        index = two.node_to_idx
        pairs = [(i, index[n.id]) for i, n in enumerate(one.nodes) if n.id in index]
        if not pairs:
            return 0.0
        ia, ib = np.array(pairs, dtype=np.intp).T
        diff = one.positions()[ia] - two.positions()[ib]
        total = float(np.sqrt(diff[:, 0] ** 2 + diff[:, 1] ** 2).sum())
        if self.relative_distance:
            return total / len(pairs)
        return total

    def accepts(self, candidate, previous, following, tolerance: float) -> bool:
        """True if ``candidate`` is within tolerance of its existing neighbours."""
        if previous is not None and not self.distance(candidate, previous) < tolerance:
            return False
        if following is not None and not self.distance(candidate, following) < tolerance:
            return False
        return True

    # ==================== Lifecycle ====================

    def close(self):
        """Release resources held by the refinement strategy (worker threads)."""
        close = getattr(self.refinement, "close", None)
        if close is not None:
            close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def __repr__(self):
        return (
            f"ForesightedLayout(tolerance={self.tolerance:g}, canvas={self.width:g}x{self.height:g}, "
            f"center={self.center}, refinement={type(self.refinement).__name__})"
        )


def max_nodes(frames) -> int:
    """Node count of the largest frame (0 for no frames)."""
    return max((f.number_of_nodes() for f in frames), default=0)


class SequentialRefinement:
    """Refine frames one after another on the calling thread."""

    def refine(self, layout, frames, width, height, tolerance):
        engine = layout.static_layout
        last = len(frames) - 1
        for temp in layout.cooling.temperatures():
            for s, frame in enumerate(frames):
                candidate = frame.copy()
                engine.iteration(candidate, width, height, temp)
                previous = frames[s - 1] if s > 0 else None
                following = frames[s + 1] if s < last else None
                if layout.accepts(candidate, previous, following, tolerance):
                    frame.set_positions(candidate.positions())

    def __repr__(self):
        return "SequentialRefinement()"


class ParallelRefinement:
    """Refine frames on a worker pool; same result as ``SequentialRefinement``.

    Each worker owns the interleaved frame indices ``i, i+N, ...`` so growing
    animations spread evenly. A round is: apply or restore owned frames,
    iterate the owned working copies, barrier, worker 0 decides acceptance for
    every frame in order, barrier. Decisions of the last round are applied once
    the pool returns.

    Parameters
    --
    threads : int, default 4
        Pool size including the calling thread.

    Notes
    -
    The worker threads live until ``close`` is called (directly or through
    the owning ``ForesightedLayout`` used as a context manager). A refinement
    that is garbage collected closes its pool as well.

    """

    def __init__(self, threads: int = 4):
        self._pool = WorkerPool(threads)
        self._finalizer = weakref.finalize(self, self._pool.close)

    @property
    def threads(self) -> int:
        return self._pool.count

    def set_threads(self, count: int):
        """Replace the pool with one of ``count`` workers."""
        pool = WorkerPool(count)
        self._finalizer()
        self._pool = pool
        self._finalizer = weakref.finalize(self, pool.close)

    def close(self):
        self._finalizer()

    def refine(self, layout, frames, width, height, tolerance):
        engine = layout.static_layout
        temperatures = list(layout.cooling.temperatures())
        size = len(frames)
        copies = [f.copy() for f in frames]
        apply = [False] * size
        barrier = Barrier(self._pool.count)

        def current(i):
            return copies[i] if apply[i] else frames[i]

        def decide():
            for i in range(size):
                previous = current(i - 1) if i > 0 else None
                following = frames[i + 1] if i < size - 1 else None
                apply[i] = layout.accepts(copies[i], previous, following, tolerance)

        def job(begin, step):
            owned = range(begin, size, step)
            try:
                for temp in temperatures:
                    for i in owned:
                        if apply[i]:
                            frames[i].set_positions(copies[i].positions())
                        else:
                            copies[i].set_positions(frames[i].positions())
                    for i in owned:
                        engine.iteration(copies[i], width, height, temp)
                    barrier.wait()
                    if begin == 0:
                        decide()
                    barrier.wait()
            except Exception:
                barrier.abort()
                raise

        self._pool.for_each_interleaved(job)
        for i in range(size):
            if apply[i]:
                frames[i].set_positions(copies[i].positions())

    def __repr__(self):
        return f"ParallelRefinement(threads={self.threads})"


def default_layout(tolerance: float = 0.0, width: float = 1.0, height: float = 1.0, center=(0.0, 0.0), **kwargs):
    """Foresighted layout with Fruchterman-Reingold and sequential refinement."""
    return ForesightedLayout(tolerance, width, height, center, refinement=SequentialRefinement(), **kwargs)


def default_layout_parallel(
    threads: int = 4,
    tolerance: float = 0.0,
    width: float = 1.0,
    height: float = 1.0,
    center=(0.0, 0.0),
    **kwargs,
):
    """Like ``default_layout`` but refines frames on ``threads`` workers.

    The returned layout owns a worker pool; call ``close()`` or use it as a
    context manager (``with default_layout_parallel() as layout: ...``) to stop
    the threads.
    """
    return ForesightedLayout(tolerance, width, height, center, refinement=ParallelRefinement(threads), **kwargs)
