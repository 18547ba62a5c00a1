from typing import Callable, Generic, TypeVar

import numpy as np
import scipy.sparse as sp

from ..exceptions import InvalidGraphError
from ._entities import Edge, EdgePartition, Node, NodePartition
from ._ids import edge_id, node_id

NodeT = TypeVar("NodeT", bound=Node)
EdgeT = TypeVar("EdgeT", bound=Edge)


class Graph(Generic[NodeT, EdgeT]):
    """Static undirected graph holding the layout of one time slice.

    Nodes and edges are stored in insertion order with id -> index maps, plus an
    adjacency index ``node_id -> {neighbor_id: edge_id}`` for O(1) lookup of the
    edge between two nodes. Parallel edges are allowed; the adjacency index then
    points at the oldest surviving one.

    The container is generic over its entity types. ``Frame`` instantiates it
    with ``Node``/``Edge``; ``PartitionGraph`` with the live-set carrying
    ``NodePartition``/``EdgePartition``.

    Notes
    -
    - ``nodes`` and ``edges`` are exposed as lists for fast iteration. Do not
      add or remove elements through them; use the graph methods so the maps
      and the adjacency index stay consistent.
    - Edges hold endpoint ids only. ``endpoints`` resolves them through this
      graph, so copies never carry stale references.

    See Also

    Frame, PartitionGraph, dyngraph.core.dynamic_graph.DynamicGraph

    """

    node_class = Node
    edge_class = Edge

    def __init__(self):
        self.nodes: list = []
        self.edges: list = []
        self.node_to_idx: dict = {}  # NodeId -> position in nodes
        self.edge_to_idx: dict = {}  # EdgeId -> position in edges
        self._index: dict = {}  # NodeId -> {NodeId: EdgeId}
        self._pairs: dict = {}  # (NodeId, NodeId) sorted -> [EdgeId, ...] oldest first

    # ==================== Lookup ====================

    def node_at(self, nid) -> NodeT:
        """Return the node with id ``nid``.

        Raises
        --
        KeyError
            If the node does not exist.

        """
        nid = node_id(nid)
        try:
            return self.nodes[self.node_to_idx[nid]]
        except KeyError:
            raise KeyError(f"Node {nid} not found") from None

    def edge_at(self, eid) -> EdgeT:
        """Return the edge with id ``eid`` (KeyError if absent)."""
        eid = edge_id(eid)
        try:
            return self.edges[self.edge_to_idx[eid]]
        except KeyError:
            raise KeyError(f"Edge {eid} not found") from None

    def node_index(self, nid) -> int:
        nid = node_id(nid)
        if nid not in self.node_to_idx:
            raise KeyError(f"Node {nid} not found")
        return self.node_to_idx[nid]

    def edge_index(self, eid) -> int:
        eid = edge_id(eid)
        if eid not in self.edge_to_idx:
            raise KeyError(f"Edge {eid} not found")
        return self.edge_to_idx[eid]

    def has_node(self, nid) -> bool:
        return node_id(nid) in self.node_to_idx

    def has_edge(self, eid) -> bool:
        return edge_id(eid) in self.edge_to_idx

    def has_edge_between(self, a, b) -> bool:
        """True if some edge joins ``a`` and ``b``; symmetric.

        Raises
        --
        KeyError
            If either node does not exist.

        """
        a = self.node_at(a).id
        b = self.node_at(b).id
        return b in self._index[a]

    def edges_at_node(self, nid) -> dict:
        """Map neighbor id -> edge id for every edge at ``nid`` (KeyError if absent)."""
        return dict(self._index[self.node_at(nid).id])

    def edge_ids_between(self, a, b) -> list:
        """All edge ids joining ``a`` and ``b``, oldest first (parallel edges included)."""
        return list(self._pairs.get(_pair(node_id(a), node_id(b)), ()))

    def endpoints(self, eid) -> tuple:
        """Resolve the two endpoint nodes of edge ``eid`` in this graph."""
        edge = self.edge_at(eid)
        return self.node_at(edge.one), self.node_at(edge.two)

    def node_ids(self) -> list:
        return [n.id for n in self.nodes]

    def edge_ids(self) -> list:
        return [e.id for e in self.edges]

    def number_of_nodes(self) -> int:
        return len(self.nodes)

    def number_of_edges(self) -> int:
        return len(self.edges)

    def is_empty(self) -> bool:
        return not self.nodes

    # ==================== Mutation ====================

    def add_node(self, node, **kwargs) -> NodeT:
        """Add a node given as an entity or as an id (``kwargs`` go to the constructor).

        Adding an id that already exists returns the stored node unchanged.
        """
        if not isinstance(node, Node):
            node = self.node_class(node, **kwargs)
        found = self.node_to_idx.get(node.id)
        if found is not None:
            return self.nodes[found]
        self.node_to_idx[node.id] = len(self.nodes)
        self._index[node.id] = {}
        self.nodes.append(node)
        return node

    def add_edge(self, edge, one=None, two=None, **kwargs) -> EdgeT:
        """Add an edge given as an entity or as ``(id, one, two)``.

        Adding an id that already exists returns the stored edge unchanged.

        Raises
        --
        InvalidGraphError
            If an endpoint does not exist in this graph.

        """
        if not isinstance(edge, Edge):
            if one is None or two is None:
                raise ValueError("add_edge needs both endpoints when given an id")
            edge = self.edge_class(edge, one, two, **kwargs)
        found = self.edge_to_idx.get(edge.id)
        if found is not None:
            return self.edges[found]
        for end in (edge.one, edge.two):
            if end not in self._index:
                raise InvalidGraphError(f"Edge {edge.id} references node {end}, which does not exist")
        key = _pair(edge.one, edge.two)
        self._pairs.setdefault(key, []).append(edge.id)
        self._index[edge.one].setdefault(edge.two, edge.id)
        self._index[edge.two].setdefault(edge.one, edge.id)
        self.edge_to_idx[edge.id] = len(self.edges)
        self.edges.append(edge)
        return edge

    def remove_node(self, nid):
        """Remove a node and every edge attached to it.

        Raises
        --
        InvalidGraphError
            If the node does not exist.

        """
        nid = node_id(nid)
        if nid not in self.node_to_idx:
            raise InvalidGraphError(f"Node {nid} does not exist")
        self._remove_nodes({nid})

    def remove_edge(self, eid):
        """Remove a single edge (InvalidGraphError if it does not exist)."""
        eid = edge_id(eid)
        if eid not in self.edge_to_idx:
            raise InvalidGraphError(f"Edge {eid} does not exist")
        self._remove_edges({eid})

    def remove_nodes_if(self, predicate: Callable[[NodeT], bool]):
        """Remove every node for which ``predicate(node)`` is true, with its edges."""
        self._remove_nodes({n.id for n in self.nodes if predicate(n)})

    def remove_edges_if(self, predicate: Callable[[EdgeT], bool]):
        """Remove every edge for which ``predicate(edge)`` is true."""
        self._remove_edges({e.id for e in self.edges if predicate(e)})

    def clear_edges(self):
        self.edges.clear()
        self.edge_to_idx.clear()
        self._pairs.clear()
        for neighbors in self._index.values():
            neighbors.clear()

    def clear_nodes(self):
        """Remove all nodes (and therefore all edges)."""
        self.clear_edges()
        self.nodes.clear()
        self.node_to_idx.clear()
        self._index.clear()

    def _remove_edges(self, ids):
        if not ids:
            return
        for eid in ids:
            self._unlink(self.edges[self.edge_to_idx[eid]])
        self.edges[:] = [e for e in self.edges if e.id not in ids]
        self.edge_to_idx = {e.id: i for i, e in enumerate(self.edges)}

    def _remove_nodes(self, ids):
        if not ids:
            return
        incident = set()
        for nid in ids:
            for neighbor in self._index[nid]:
                incident.update(self._pairs[_pair(nid, neighbor)])
        self._remove_edges(incident)
        for nid in ids:
            del self._index[nid]
        self.nodes[:] = [n for n in self.nodes if n.id not in ids]
        self.node_to_idx = {n.id: i for i, n in enumerate(self.nodes)}

    def _unlink(self, edge):
        key = _pair(edge.one, edge.two)
        remaining = self._pairs[key]
        remaining.remove(edge.id)
        if remaining:
            self._index[edge.one][edge.two] = remaining[0]
            self._index[edge.two][edge.one] = remaining[0]
        else:
            del self._pairs[key]
            self._index[edge.one].pop(edge.two, None)
            self._index[edge.two].pop(edge.one, None)

    # ==================== Positions ====================

    def positions(self) -> np.ndarray:
        """Node positions as a ``(n, 2)`` float array in node order."""
        return np.array([(n.x, n.y) for n in self.nodes], dtype=float).reshape(-1, 2)

    def set_positions(self, positions):
        """Write a ``(n, 2)`` array back onto the nodes (node order)."""
        positions = np.asarray(positions, dtype=float)
        if positions.shape != (len(self.nodes), 2):
            raise ValueError(
                f"positions has shape {positions.shape}, expected {(len(self.nodes), 2)}"
            )
        for node, (x, y) in zip(self.nodes, positions.tolist()):
            node.x = x
            node.y = y

    # ==================== Views / copies ====================

    def copy(self):
        """Deep copy; the result shares no entity objects with ``self``."""
        other = self.__class__.__new__(self.__class__)
        other.nodes = [n.copy() for n in self.nodes]
        other.edges = [e.copy() for e in self.edges]
        other.node_to_idx = dict(self.node_to_idx)
        other.edge_to_idx = dict(self.edge_to_idx)
        other._index = {nid: dict(neighbors) for nid, neighbors in self._index.items()}
        other._pairs = {key: list(ids) for key, ids in self._pairs.items()}
        return other

    def adjacency_matrix(self):
        """Symmetric adjacency in CSR format, rows/cols in node order.

        Entries count edges, so parallel edges add up. A self-loop contributes
        1 on the diagonal.
        """
        n = len(self.nodes)
        if not self.edges:
            return sp.csr_matrix((n, n), dtype=np.float32)
        one = np.fromiter((self.node_to_idx[e.one] for e in self.edges), dtype=np.intp)
        two = np.fromiter((self.node_to_idx[e.two] for e in self.edges), dtype=np.intp)
        loops = one == two
        rows = np.concatenate([one, two[~loops]])
        cols = np.concatenate([two, one[~loops]])
        data = np.ones(rows.shape[0], dtype=np.float32)
        return sp.coo_matrix((data, (rows, cols)), shape=(n, n)).tocsr()

    def validate(self):
        """Re-check every structural invariant.

        Raises
        --
        InvalidGraphError
            On duplicate ids, stale index maps, dangling edges, or an adjacency
            index that disagrees with the edge set.

        """
        if len(self.node_to_idx) != len(self.nodes) or any(
            self.node_to_idx.get(n.id) != i for i, n in enumerate(self.nodes)
        ):
            raise InvalidGraphError("Node index is inconsistent (duplicate or stale node ids)")
        if len(self.edge_to_idx) != len(self.edges) or any(
            self.edge_to_idx.get(e.id) != i for i, e in enumerate(self.edges)
        ):
            raise InvalidGraphError("Edge index is inconsistent (duplicate or stale edge ids)")
        pairs = {}
        for e in self.edges:
            for end in (e.one, e.two):
                if end not in self.node_to_idx:
                    raise InvalidGraphError(f"Edge {e.id} references node {end}, which does not exist")
            pairs.setdefault(_pair(e.one, e.two), []).append(e.id)
        if pairs != self._pairs or set(self._index) != set(self.node_to_idx):
            raise InvalidGraphError("Adjacency index is inconsistent with the edge set")
        for (a, b), ids in pairs.items():
            if self._index[a].get(b) != ids[0] or self._index[b].get(a) != ids[0]:
                raise InvalidGraphError(f"Adjacency index is missing the edge between {a} and {b}")
        if sum(len(v) for v in self._index.values()) != sum(1 if a == b else 2 for a, b in pairs):
            raise InvalidGraphError("Adjacency index holds entries without a matching edge")

    def __repr__(self):
        return f"{type(self).__name__}(nodes={len(self.nodes)}, edges={len(self.edges)})"


def _pair(a, b):
    return (a, b) if a <= b else (b, a)


class Frame(Graph[Node, Edge]):
    """One static snapshot of a dynamic graph."""

    node_class = Node
    edge_class = Edge


class PartitionGraph(Graph[NodePartition, EdgePartition]):
    """Graph over partition representatives; entities carry live sets."""

    node_class = NodePartition
    edge_class = EdgePartition
