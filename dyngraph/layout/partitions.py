"""Graph animation partitioning (GAP) and its reduced variant (RGAP).

The whole animation is collapsed into one static graph: entities that never
coexist in a frame may share a node (or an edge) of the reduced graph, so a
single static layout of it gives every frame consistent positions.
"""

from ..core._ids import edge_id, node_id
from ..core._LiveSet import edge_live_sets, node_live_sets
from ..core.graph import Frame, PartitionGraph


class MappedGraph:
    """A PartitionGraph plus alias maps from original ids to representatives.

    ``node_at``/``edge_at`` follow an alias when one exists and otherwise look
    the id up directly in the wrapped graph.
    """

    def __init__(self, graph: PartitionGraph | None = None):
        self.graph = graph if graph is not None else PartitionGraph()
        self.node_map: dict = {}  # original NodeId -> representative NodeId
        self.edge_map: dict = {}  # original EdgeId -> representative EdgeId

    def node_at(self, nid):
        nid = node_id(nid)
        return self.graph.node_at(self.node_map.get(nid, nid))

    def edge_at(self, eid):
        eid = edge_id(eid)
        return self.graph.edge_at(self.edge_map.get(eid, eid))

    def map_node(self, nid, target):
        """Make ``nid`` an alias of the partition node ``target`` (first mapping wins)."""
        self.node_map.setdefault(node_id(nid), node_id(target))

    def map_edge(self, eid, target):
        self.edge_map.setdefault(edge_id(eid), edge_id(target))

    def clear_nodes(self):
        self.graph.clear_nodes()
        self.node_map.clear()
        self.edge_map.clear()

    def clear_edges(self):
        self.graph.clear_edges()
        self.edge_map.clear()

    def copy(self):
        other = MappedGraph(self.graph.copy())
        other.node_map = dict(self.node_map)
        other.edge_map = dict(self.edge_map)
        return other

    def __repr__(self):
        return (
            f"MappedGraph(nodes={self.graph.number_of_nodes()}, edges={self.graph.number_of_edges()}, "
            f"aliases={len(self.node_map) + len(self.edge_map)})"
        )


def supergraph(frames) -> Frame:
    """Union of every node and edge that appears in any frame.

    Nodes are ordered by id. An edge keeps the endpoints of its first
    appearance.
    """
    nodes = set()
    edges = {}
    for frame in frames:
        nodes.update(n.id for n in frame.nodes)
        for e in frame.edges:
            edges.setdefault(e.id, (e.one, e.two))
    result = Frame()
    for nid in sorted(nodes):
        result.add_node(nid)
    for eid in sorted(edges):
        one, two = edges[eid]
        result.add_edge(eid, one, two)
    return result


def compute_gap(graph, node_live: dict, edge_live: dict) -> MappedGraph:
    """Greedy node partitioning of a supergraph.

    Nodes are visited in id order; each joins the first partition whose
    accumulated live set is disjoint from its own, or starts a new one. Every
    supergraph edge then becomes its own partition edge between the partitions
    of its endpoints.

    Parameters
    --
    graph : Graph
        Supergraph (see ``supergraph``).
    node_live, edge_live : dict
        Live sets per node id / edge id.

    Returns
    ---
    MappedGraph

    """
    gap = MappedGraph()
    for node in sorted(graph.nodes, key=lambda n: n.id):
        live = node_live[node.id]
        for partition in gap.graph.nodes:
            if partition.live_time.isdisjoint(live):
                partition.add_live_time(live)
                gap.map_node(node.id, partition.id)
                break
        else:
            gap.graph.add_node(node.id).add_live_time(live)
    for edge in sorted(graph.edges, key=lambda e: e.id):
        one = gap.node_at(edge.one).id
        two = gap.node_at(edge.two).id
        gap.graph.add_edge(edge.id, one, two).add_live_time(edge_live[edge.id])
    return gap


def compute_rgap(gap: MappedGraph) -> MappedGraph:
    """Merge GAP edges over the same node pair when their lifetimes never overlap.

    Edges are taken in id order. The first edge of a pair seeds a partition
    edge, which then absorbs every later edge over the same pair whose live
    set is disjoint from the running union; an edge that overlaps seeds the
    next partition edge of that pair.
    """
    rgap = gap.copy()
    rgap.clear_edges()
    by_pair = {}
    for edge in sorted(gap.graph.edges, key=lambda e: e.id):
        by_pair.setdefault(edge.key(), []).append(edge)

    seeds = []
    for group in by_pair.values():
        pending = list(group)
        while pending:
            head, rest = pending[0], pending[1:]
            live = head.live_time.copy()
            members, pending = [], []
            for edge in rest:
                if live.isdisjoint(edge.live_time):
                    live.join(edge.live_time)
                    members.append(edge.id)
                else:
                    pending.append(edge)
            seeds.append((head, live, members))

    # keep partition edges in the id order of their seeds
    for head, live, members in sorted(seeds, key=lambda s: s[0].id):
        rgap.graph.add_edge(head.id, head.one, head.two).add_live_time(live)
        for eid in members:
            rgap.map_edge(eid, head.id)
    return rgap


def partition_animation(frames) -> MappedGraph:
    """Live sets, supergraph, GAP and RGAP for a frame sequence."""
    frames = list(frames)
    node_live = node_live_sets(frames)
    edge_live = edge_live_sets(frames)
    return compute_rgap(compute_gap(supergraph(frames), node_live, edge_live))
