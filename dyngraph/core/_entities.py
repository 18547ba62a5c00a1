from ._ids import NodeId, edge_id, node_id
from ._LiveSet import LiveSet


class Node:
    """A node in one frame: id, position, blend value and lifetime tags.

    Parameters
    --
    id : NodeId | int
    x, y : float, default 0.0
        Position.
    alpha : float, default 1.0
        Blend value used while the node fades in or out.

    Notes
    -
    ``is_new`` is True if the node did not exist in the previous frame,
    ``is_old`` if it will not exist in the next one. Both are set by
    ``DynamicGraph``.

    """

    def __init__(self, id, x=0.0, y=0.0, alpha=1.0):
        self.id = node_id(id)
        self.x = float(x)
        self.y = float(y)
        self.alpha = float(alpha)
        self.is_new = False
        self.is_old = False

    @property
    def pos(self):
        return (self.x, self.y)

    @pos.setter
    def pos(self, value):
        x, y = value
        self.x = float(x)
        self.y = float(y)

    def copy(self):
        other = self.__class__.__new__(self.__class__)
        other.__dict__.update(self.__dict__)
        return other

    def __repr__(self):
        return f"{type(self).__name__}({self.id.value}, x={self.x:g}, y={self.y:g}, alpha={self.alpha:g})"


class Edge:
    """An undirected edge in one frame.

    The edge only stores the ids of its endpoints. Resolve the node objects
    through the graph that owns the edge (``Graph.endpoints``).
    """

    def __init__(self, id, one, two, alpha=1.0):
        self.id = edge_id(id)
        self.one = node_id(one)
        self.two = node_id(two)
        self.alpha = float(alpha)
        self.is_new = False
        self.is_old = False

    def connects(self, a, b) -> bool:
        """True if the edge joins ``a`` and ``b`` (in either order)."""
        a, b = node_id(a), node_id(b)
        return (self.one == a and self.two == b) or (self.one == b and self.two == a)

    def other(self, nid) -> NodeId:
        """Endpoint opposite to ``nid``."""
        nid = node_id(nid)
        if nid == self.one:
            return self.two
        if nid == self.two:
            return self.one
        raise KeyError(f"Node {nid} is not an endpoint of edge {self.id}")

    def key(self):
        """Unordered endpoint pair, usable as a dict key."""
        return (self.one, self.two) if self.one <= self.two else (self.two, self.one)

    def copy(self):
        other = self.__class__.__new__(self.__class__)
        other.__dict__.update(self.__dict__)
        return other

    def __repr__(self):
        return f"{type(self).__name__}({self.id.value}, {self.one.value}, {self.two.value})"


# Partition entities (used by the animation partitioner)


class NodePartition(Node):
    """Node of a partition graph; accumulates the live sets of its members."""

    def __init__(self, id, x=0.0, y=0.0, alpha=1.0):
        super().__init__(id, x, y, alpha)
        self.live_time = LiveSet()

    def add_live_time(self, live):
        self.live_time.join(live)

    def copy(self):
        other = super().copy()
        other.live_time = self.live_time.copy()
        return other


class EdgePartition(Edge):
    """Edge of a partition graph; accumulates the live sets of its members."""

    def __init__(self, id, one, two, alpha=1.0):
        super().__init__(id, one, two, alpha)
        self.live_time = LiveSet()

    def add_live_time(self, live):
        self.live_time.join(live)

    def copy(self):
        other = super().copy()
        other.live_time = self.live_time.copy()
        return other
