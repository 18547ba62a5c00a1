# test_foresighted.py
import gc
import os
import sys

import numpy as np
import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from dyngraph.core.dynamic_graph import DynamicGraph
from dyngraph.core.graph import Frame
from dyngraph.exceptions import InvalidConfigurationError
from dyngraph.layout.cooling import Cooling
from dyngraph.layout.foresighted import (
    ForesightedLayout,
    ParallelRefinement,
    SequentialRefinement,
    default_layout,
    default_layout_parallel,
    max_nodes,
)

SHORT_COOLING = Cooling.exponential(15, 0.4, 0.9)


def frame_with(positions):
    f = Frame()
    for nid, (x, y) in positions.items():
        f.add_node(nid, x=x, y=y)
    return f


def snapshot(animation):
    return [f.positions().copy() for f in animation]


@pytest.fixture
def make_layout(fast_engine):
    layouts = []

    def factory(**kwargs):
        kwargs.setdefault("static_layout", fast_engine)
        kwargs.setdefault("cooling", SHORT_COOLING)
        layout = ForesightedLayout(**kwargs)
        layouts.append(layout)
        return layout

    yield factory
    for layout in layouts:
        layout.close()


class TestConfiguration:
    def test_defaults(self):
        layout = ForesightedLayout()
        assert layout.tolerance == 0.0
        assert (layout.width, layout.height, layout.center) == (1.0, 1.0, (0.0, 0.0))
        assert layout.relative_distance
        assert isinstance(layout.refinement, SequentialRefinement)
        assert layout.cooling.iterations == 250

    def test_invalid_canvas(self):
        with pytest.raises(InvalidConfigurationError):
            ForesightedLayout(width=0.0)
        layout = ForesightedLayout()
        with pytest.raises(InvalidConfigurationError):
            layout.set_canvas(1.0, -2.0)

    def test_negative_tolerance(self):
        with pytest.raises(ValueError):
            ForesightedLayout(tolerance=-0.1)

    def test_factories(self):
        assert isinstance(default_layout(0.1).refinement, SequentialRefinement)
        with default_layout_parallel(threads=2, tolerance=0.1) as layout:
            assert isinstance(layout.refinement, ParallelRefinement)
            assert layout.refinement.threads == 2
            pool = layout.refinement._pool
        assert pool.closed

    def test_pool_closed_when_refinement_is_collected(self):
        refinement = ParallelRefinement(2)
        pool = refinement._pool
        del refinement
        gc.collect()
        assert pool.closed

    def test_close_is_idempotent(self):
        refinement = ParallelRefinement(2)
        refinement.close()
        refinement.close()
        assert refinement._pool.closed

    def test_set_threads_replaces_pool(self):
        refinement = ParallelRefinement(2)
        old = refinement._pool
        refinement.set_threads(3)
        assert old.closed
        assert refinement.threads == 3
        with pytest.raises(InvalidConfigurationError):
            refinement.set_threads(0)
        assert refinement.threads == 3
        refinement.close()


class TestDistance:
    def test_relative_and_absolute(self):
        layout = ForesightedLayout()
        one = frame_with({0: (0.0, 0.0), 1: (1.0, 0.0), 2: (5.0, 5.0)})
        two = frame_with({1: (1.0, 4.0), 0: (3.0, 4.0), 9: (0.0, 0.0)})
        assert layout.distance(one, two) == pytest.approx((5.0 + 4.0) / 2)
        layout.use_relative_distance(False)
        assert layout.distance(one, two) == pytest.approx(9.0)

    def test_no_shared_nodes(self):
        layout = ForesightedLayout()
        assert layout.distance(frame_with({0: (0.0, 0.0)}), frame_with({1: (1.0, 1.0)})) == 0.0

    def test_accepts_checks_both_neighbours(self):
        layout = ForesightedLayout()
        candidate = frame_with({0: (0.0, 0.0)})
        near = frame_with({0: (0.05, 0.0)})
        far = frame_with({0: (1.0, 0.0)})
        assert layout.accepts(candidate, None, None, 0.1)
        assert layout.accepts(candidate, near, near, 0.1)
        assert not layout.accepts(candidate, near, far, 0.1)
        assert not layout.accepts(candidate, far, None, 0.1)
        # strict comparison
        assert not layout.accepts(candidate, near, None, 0.05)

    def test_absolute_tolerance_scales(self, growing_animation):
        layout = ForesightedLayout(0.01, relative_distance=False)
        unit = layout.static_layout.relative_unit(2.0, 1.0)
        expected = 0.01 * unit * max_nodes(growing_animation.frames)
        assert layout.tolerance_value(growing_animation.frames, 2.0, 1.0) == pytest.approx(expected)
        assert max_nodes(growing_animation.frames) == 7
        assert max_nodes([]) == 0


class TestLayout:
    def test_empty_animation(self, make_layout):
        layout = make_layout(tolerance=0.1)
        layout([])
        g = DynamicGraph()
        layout(g)
        assert len(g) == 0

    def test_frames_share_partition_positions(self, make_layout, two_frame_animation):
        make_layout()(two_frame_animation)
        f0, f1 = two_frame_animation.frames
        # B lives in both frames; C reuses A's partition
        assert f0.node_at(1).pos == f1.node_at(1).pos
        assert f0.node_at(0).pos == f1.node_at(2).pos
        assert f0.node_at(0).pos != f0.node_at(1).pos

    def test_output_canvas(self, make_layout, growing_animation):
        make_layout(tolerance=0.05, width=4.0, height=2.0, center=(10.0, -5.0))(growing_animation)
        for frame in growing_animation:
            pos = frame.positions()
            assert np.all(np.abs(pos[:, 0] - 10.0) <= 2.0 + 1e-9)
            assert np.all(np.abs(pos[:, 1] + 5.0) <= 1.0 + 1e-9)

    def test_refined_frames_stay_within_tolerance(self, make_layout, growing_animation):
        layout = make_layout(tolerance=0.02)
        layout(growing_animation)
        frames = growing_animation.frames
        for a, b in zip(frames, frames[1:]):
            assert layout.distance(a, b) < 0.02

    def test_refinement_moves_frames(self, make_layout, growing_animation):
        plain = growing_animation
        refined = DynamicGraph()
        refined.build_from(plain.frames)
        make_layout()(plain)
        make_layout(tolerance=0.5)(refined)
        assert any(not np.allclose(a, b) for a, b in zip(snapshot(plain), snapshot(refined)))

    def test_sequence_of_frames(self, make_layout, growing_animation):
        frames = [f.copy() for f in growing_animation]
        make_layout(tolerance=0.05)(frames)
        make_layout(tolerance=0.05)(growing_animation)
        for a, b in zip(frames, growing_animation):
            np.testing.assert_array_equal(a.positions(), b.positions())

    @pytest.mark.parametrize("threads", [1, 2, 3, 8])
    def test_parallel_matches_sequential(self, make_layout, growing_animation, threads):
        copy = DynamicGraph()
        copy.build_from(growing_animation.frames)
        make_layout(tolerance=0.05)(growing_animation)
        make_layout(tolerance=0.05, refinement=ParallelRefinement(threads))(copy)
        for a, b in zip(snapshot(growing_animation), snapshot(copy)):
            np.testing.assert_array_equal(a, b)

    def test_parallel_matches_sequential_absolute(self, make_layout, growing_animation):
        copy = DynamicGraph()
        copy.build_from(growing_animation.frames)
        make_layout(tolerance=0.002, relative_distance=False)(growing_animation)
        make_layout(tolerance=0.002, relative_distance=False, refinement=ParallelRefinement(2))(copy)
        for a, b in zip(snapshot(growing_animation), snapshot(copy)):
            np.testing.assert_array_equal(a, b)

    @pytest.mark.slow
    def test_default_schedules(self, growing_animation):
        layout = default_layout(0.01)
        layout(growing_animation)
        for frame in growing_animation:
            assert np.all(np.abs(frame.positions()) <= 0.5 + 1e-9)
