from __future__ import annotations

try:
    import networkx as nx
except ModuleNotFoundError as e:
    raise ModuleNotFoundError(
        "Optional dependency 'networkx' is not installed. "
        "Install with: pip install dyngraph[networkx]"
    ) from e

from ..core.dynamic_graph import DynamicGraph
from ..core.graph import Frame


def to_nx(frame) -> nx.MultiGraph:
    """Convert one frame to a ``networkx.MultiGraph``.

    Node keys are integer node ids with ``x``, ``y``, ``alpha``, ``is_new`` and
    ``is_old`` attributes; edge keys are integer edge ids.
    """
    G = nx.MultiGraph()
    for n in frame.nodes:
        G.add_node(n.id.value, x=n.x, y=n.y, alpha=n.alpha, is_new=n.is_new, is_old=n.is_old)
    for e in frame.edges:
        G.add_edge(e.one.value, e.two.value, key=e.id.value, alpha=e.alpha, is_new=e.is_new, is_old=e.is_old)
    return G


def _frame_from_nx(G) -> Frame:
    frame = Frame()
    for node, data in G.nodes(data=True):
        frame.add_node(int(node), x=data.get("x", 0.0), y=data.get("y", 0.0), alpha=data.get("alpha", 1.0))
    if G.is_multigraph():
        edges = ((u, v, key, data) for u, v, key, data in G.edges(keys=True, data=True))
    else:
        edges = ((u, v, data.get("id"), data) for u, v, data in G.edges(data=True))
    for u, v, key, data in edges:
        if key is None:
            raise ValueError(f"edge ({u}, {v}) has no integer id; set an 'id' attribute or use a MultiGraph")
        frame.add_edge(int(key), int(u), int(v), alpha=data.get("alpha", 1.0))
    return frame


def from_nx(graphs) -> DynamicGraph:
    """Build a DynamicGraph from a sequence of networkx graphs, one per frame.

    Node keys must be non-negative integers. Edge ids come from the MultiGraph
    key, or from an ``id`` edge attribute for simple graphs.
    """
    graph = DynamicGraph()
    graph.build_from([_frame_from_nx(G) for G in graphs])
    return graph
