# test_interpolator.py
import os
import sys
import unittest

import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from dyngraph.animation.interpolator import (
    DEFAULT_DURATIONS,
    PHASED,
    SIMULTANEOUS,
    Interpolator,
    Phase,
    validate_phases,
)
from dyngraph.core._ids import EdgeId, NodeId
from dyngraph.core.graph import Frame
from dyngraph.exceptions import InvalidConfigurationError, OutOfRangeError


class TestPhases(unittest.TestCase):
    def test_presets(self):
        self.assertEqual(Interpolator().phases, PHASED)
        self.assertEqual(Interpolator("simultaneous").phases, SIMULTANEOUS)
        self.assertEqual(PHASED, (Phase.IDLE, Phase.DISAPPEAR, Phase.MORPH, Phase.APPEAR))

    def test_invalid_orderings(self):
        for phases in (
            ["appear", "disappear"],
            ["simultaneous", "simultaneous"],
            ["simultaneous", "morph"],
            ["appear", "disappear", "morph", "morph"],
            ["idle"],
            ["bogus", "appear", "disappear", "morph"],
        ):
            with self.assertRaises(InvalidConfigurationError, msg=str(phases)):
                validate_phases(phases)

    def test_custom_ordering(self):
        interp = Interpolator(["morph", "idle", "appear", "idle", "disappear"])
        self.assertEqual(interp.phases[0], Phase.MORPH)
        self.assertEqual(interp.transition_duration(), 2.5)
        interp.set_phases(["idle", Phase.SIMULTANEOUS, "idle"])
        self.assertEqual(interp.transition_duration(), 2.5)
        interp.set_phases(Phase.SIMULTANEOUS)
        self.assertEqual(interp.phases, (Phase.SIMULTANEOUS,))

    def test_phase_member_is_not_a_preset(self):
        interp = Interpolator(Phase.SIMULTANEOUS)
        self.assertEqual(interp.phases, (Phase.SIMULTANEOUS,))
        self.assertEqual(interp.transition_duration(), 1.5)
        interp.set_phases("simultaneous")
        self.assertEqual(interp.phases, SIMULTANEOUS)

    def test_durations(self):
        interp = Interpolator(durations={"morph": 2})
        self.assertEqual(interp.duration(Phase.MORPH), 2.0)
        self.assertEqual(interp.duration("idle"), DEFAULT_DURATIONS[Phase.IDLE])
        self.assertEqual(interp.transition_duration(), 3.0)
        for bad in (0, -1.0, "1", True):
            with self.assertRaises(InvalidConfigurationError):
                interp.set_duration("idle", bad)
        with self.assertRaises(OutOfRangeError):
            interp.set_duration("fade", 1.0)
        with self.assertRaises(OutOfRangeError):
            interp.duration("fade")

    def test_default_durations(self):
        self.assertEqual(Interpolator().transition_duration(), 2.0)
        self.assertEqual(Interpolator("simultaneous").transition_duration(), 2.0)


@pytest.fixture
def placed(two_frame_animation):
    """A(0,0) B(1,0) at frame 0; B(3,0) C(2,2) at frame 1."""
    f0, f1 = two_frame_animation.frames
    f0.node_at(0).pos = (0.0, 0.0)
    f0.node_at(1).pos = (1.0, 0.0)
    f1.node_at(1).pos = (3.0, 0.0)
    f1.node_at(2).pos = (2.0, 2.0)
    return two_frame_animation


def alphas(frame):
    return {n.id.value: n.alpha for n in frame.nodes}, {e.id.value: e.alpha for e in frame.edges}


class TestTimeline:
    def test_length(self, placed, growing_animation):
        interp = Interpolator()
        assert interp.length(placed) == 2.0
        assert interp.length(growing_animation) == 10.0
        assert interp.length([Frame()]) == 0.0
        assert interp.length([]) == 0.0

    def test_out_of_range(self, placed):
        interp = Interpolator()
        with pytest.raises(OutOfRangeError):
            interp.frame_at(placed, -0.01)
        with pytest.raises(OutOfRangeError):
            interp.frame_at(placed, 2.01)

    def test_degenerate_animations(self):
        interp = Interpolator()
        assert interp.frame_at([], 0.0).is_empty()
        single = Frame()
        single.add_node(4, x=1.0, y=2.0)
        out = interp([single], 0.0)
        assert out.node_at(4).pos == (1.0, 2.0)
        assert out is not single

    def test_endpoints_reproduce_frames(self, placed):
        interp = Interpolator()
        start = interp.frame_at(placed, 0.0)
        assert start.node_ids() == [NodeId(0), NodeId(1)]
        assert start.node_at(1).pos == (1.0, 0.0)
        assert alphas(start) == ({0: 1.0, 1: 1.0}, {0: 1.0})
        end = interp.frame_at(placed, 2.0)
        assert end.node_ids() == [NodeId(1), NodeId(2)]
        assert end.node_at(1).pos == (3.0, 0.0)
        assert end.node_at(2).pos == (2.0, 2.0)
        assert alphas(end) == ({1: 1.0, 2: 1.0}, {1: 1.0})

    def test_frame_times_match_stored_positions(self, growing_animation):
        interp = Interpolator()
        for t, frame in enumerate(growing_animation):
            for node in frame.nodes:
                node.pos = (float(node.id.value), float(t))
        for t, frame in enumerate(growing_animation):
            out = interp.frame_at(growing_animation, t * interp.transition_duration())
            assert out.node_ids() == frame.node_ids()
            assert out.positions().tolist() == frame.positions().tolist()

    def test_stored_frames_untouched(self, placed):
        interp = Interpolator()
        before = [f.positions().tolist() for f in placed]
        for t in (0.3, 0.7, 1.2, 1.9):
            interp.frame_at(placed, t)
        assert [f.positions().tolist() for f in placed] == before
        assert placed.frame(1).node_at(2).is_new


class TestPhasedTransition:
    def test_idle(self, placed):
        out = Interpolator().frame_at(placed, 0.25)
        assert out.node_ids() == [NodeId(0), NodeId(1), NodeId(2)]
        nodes, edges = alphas(out)
        assert nodes == {0: 1.0, 1: 1.0, 2: 0.0}
        assert edges == {0: 1.0, 1: 0.0}
        assert out.node_at(1).pos == (1.0, 0.0)

    def test_disappear(self, placed):
        nodes, edges = alphas(Interpolator().frame_at(placed, 0.625))
        assert nodes[0] == pytest.approx(0.5)
        assert edges[0] == pytest.approx(0.5)
        assert nodes[2] == 0.0

    def test_after_disappear(self, placed):
        out = Interpolator().frame_at(placed, 0.75)
        nodes, edges = alphas(out)
        assert nodes == {0: 0.0, 1: 1.0, 2: 0.0}
        assert edges == {0: 0.0, 1: 0.0}
        assert out.has_node(0)

    def test_morph(self, placed):
        out = Interpolator().frame_at(placed, 1.25)
        assert out.node_at(1).pos == pytest.approx((2.0, 0.0))
        # entities present on one side only keep their position
        assert out.node_at(0).pos == (0.0, 0.0)
        assert out.node_at(2).pos == (2.0, 2.0)

    def test_appear(self, placed):
        out = Interpolator().frame_at(placed, 1.9)
        nodes, edges = alphas(out)
        assert nodes[2] == pytest.approx(0.6)
        assert edges[1] == pytest.approx(0.6)
        assert nodes[0] == 0.0
        assert out.node_at(1).pos == (3.0, 0.0)

    def test_prune_deleted(self, placed):
        interp = Interpolator(prune_deleted=True)
        assert interp.frame_at(placed, 0.625).has_node(0)
        out = interp.frame_at(placed, 1.25)
        assert not out.has_node(0)
        assert not out.has_edge(EdgeId(0))
        assert out.has_edge(EdgeId(1))


class TestSimultaneousTransition:
    def test_everything_at_once(self, placed):
        out = Interpolator("simultaneous").frame_at(placed, 1.25)
        nodes, edges = alphas(out)
        assert nodes[0] == pytest.approx(0.5)
        assert nodes[2] == pytest.approx(0.5)
        assert edges == pytest.approx({0: 0.5, 1: 0.5})
        assert out.node_at(1).pos == pytest.approx((2.0, 0.0))

    def test_idle_before(self, placed):
        out = Interpolator("simultaneous").frame_at(placed, 0.4)
        nodes, _ = alphas(out)
        assert nodes == {0: 1.0, 1: 1.0, 2: 0.0}
        assert out.node_at(1).pos == (1.0, 0.0)


if __name__ == "__main__":
    unittest.main()
