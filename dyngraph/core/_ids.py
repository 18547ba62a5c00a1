from functools import total_ordering


@total_ordering
class _Identifier:
    """Opaque integer handle. Only comparable with handles of the same type."""

    __slots__ = ("value",)

    def __init__(self, value):
        if isinstance(value, _Identifier):
            value = value.value
        if isinstance(value, bool) or int(value) != value or value < 0:
            raise ValueError(f"{type(self).__name__} must be a non-negative integer, got {value!r}")
        self.value = int(value)

    def __eq__(self, other):
        if type(other) is type(self):
            return self.value == other.value
        return NotImplemented

    def __lt__(self, other):
        if type(other) is type(self):
            return self.value < other.value
        return NotImplemented

    def __hash__(self):
        return hash((type(self).__name__, self.value))

    def __int__(self):
        return self.value

    def __repr__(self):
        return f"{type(self).__name__}({self.value})"

    def __str__(self):
        return str(self.value)


class NodeId(_Identifier):
    """Identifier of a node. Never reused within one dynamic graph."""

    __slots__ = ()


class EdgeId(_Identifier):
    """Identifier of an edge. Never reused within one dynamic graph."""

    __slots__ = ()


def node_id(value) -> NodeId:
    """Coerce ``int`` (or an existing ``NodeId``) into a ``NodeId``."""
    if type(value) is NodeId:
        return value
    if isinstance(value, EdgeId):
        raise TypeError(f"expected a node id, got {value!r}")
    return NodeId(value)


def edge_id(value) -> EdgeId:
    """Coerce ``int`` (or an existing ``EdgeId``) into an ``EdgeId``."""
    if type(value) is EdgeId:
        return value
    if isinstance(value, NodeId):
        raise TypeError(f"expected an edge id, got {value!r}")
    return EdgeId(value)
