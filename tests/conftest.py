"""Shared fixtures and helpers for dyngraph tests."""

import pathlib
import shutil
import sys
import tempfile
from pathlib import Path

import pytest

ROOT = pathlib.Path(__file__).resolve().parents[1]  # project root
sys.path.insert(0, str(ROOT))

from dyngraph.core.dynamic_graph import DynamicGraph  # noqa: E402
from dyngraph.layout.cooling import Cooling  # noqa: E402
from dyngraph.layout.fruchterman_reingold import FruchtermanReingold  # noqa: E402

# ======================================================================
# FIXTURES
# ======================================================================


@pytest.fixture
def two_frame_animation():
    """Frame 0 holds A, B joined by an edge; frame 1 drops A and adds C."""
    g = DynamicGraph()
    a = g.add_node(0)
    b = g.add_node(0)
    g.add_edge(0, a, b)
    g.remove_node(1, a)
    c = g.add_node(1)
    g.add_edge(1, b, c)
    g.build()
    return g


@pytest.fixture
def growing_animation():
    """Path that grows by one node per frame, plus a chord that comes and goes."""
    g = DynamicGraph()
    nodes = [g.add_node(0), g.add_node(0)]
    g.add_edge(0, nodes[0], nodes[1])
    for t in range(1, 6):
        n = g.add_node(t)
        g.add_edge(t, nodes[-1], n)
        nodes.append(n)
    chord = g.add_edge(2, nodes[0], nodes[2])
    g.remove_edge(4, chord)
    g.build()
    return g


@pytest.fixture
def fast_engine():
    """Force engine with short schedules so layout tests stay quick."""
    return FruchtermanReingold(
        first_cooling=Cooling.exponential(60, 0.8, 0.95),
        second_cooling=Cooling.exponential(40, 0.05, 0.97),
    )


@pytest.fixture
def tmpdir_fixture():
    """Temporary directory for file I/O (input/output) tests."""
    tmpdir = Path(tempfile.mkdtemp())
    yield tmpdir
    shutil.rmtree(tmpdir)


# ======================================================================
# HELPERS
# ======================================================================


def assert_frames_equal(f1, f2, check_positions=True):
    """Assert two frames hold the same ids, endpoints and (optionally) positions."""
    assert f1.node_ids() == f2.node_ids(), "Node ids differ"
    assert f1.edge_ids() == f2.edge_ids(), "Edge ids differ"
    for e1 in f1.edges:
        e2 = f2.edge_at(e1.id)
        assert e1.key() == e2.key(), f"Edge {e1.id} endpoints differ"
    if check_positions:
        for n1 in f1.nodes:
            n2 = f2.node_at(n1.id)
            assert n1.pos == n2.pos, f"Node {n1.id} position differs: {n1.pos} != {n2.pos}"


def assert_animations_equal(g1, g2, check_positions=True, check_tags=True):
    """Assert two dynamic graphs have identical frame sequences."""
    assert len(g1) == len(g2), "Frame counts differ"
    for t, (f1, f2) in enumerate(zip(g1, g2)):
        assert_frames_equal(f1, f2, check_positions=check_positions)
        if check_tags:
            for n1 in f1.nodes:
                n2 = f2.node_at(n1.id)
                assert (n1.is_new, n1.is_old) == (n2.is_new, n2.is_old), f"frame {t}: tags of {n1.id} differ"


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')")
