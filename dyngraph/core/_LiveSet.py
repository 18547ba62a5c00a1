from bisect import bisect_left, insort


class LiveSet:
    """Sorted set of frame indices in which an entity exists.

    Two entities are partition-compatible iff their live sets are disjoint,
    i.e. they never coexist in the same frame.
    """

    def __init__(self, values=()):
        self._values = sorted(set(int(v) for v in values))

    def add(self, time: int):
        """Insert a frame index (no-op if present)."""
        time = int(time)
        i = bisect_left(self._values, time)
        if i == len(self._values) or self._values[i] != time:
            insort(self._values, time)

    def intersection(self, other: "LiveSet") -> "LiveSet":
        out = LiveSet()
        out._values = sorted(set(self._values).intersection(other._values))
        return out

    def union(self, other: "LiveSet") -> "LiveSet":
        out = LiveSet()
        out._values = sorted(set(self._values).union(other._values))
        return out

    def join(self, other: "LiveSet"):
        """In-place union."""
        self._values = self.union(other)._values

    def isdisjoint(self, other: "LiveSet") -> bool:
        return set(self._values).isdisjoint(other._values)

    def empty(self) -> bool:
        return not self._values

    def copy(self) -> "LiveSet":
        out = LiveSet()
        out._values = list(self._values)
        return out

    def to_list(self) -> list[int]:
        return list(self._values)

    def __contains__(self, time):
        i = bisect_left(self._values, time)
        return i < len(self._values) and self._values[i] == time

    def __iter__(self):
        return iter(self._values)

    def __len__(self):
        return len(self._values)

    def __bool__(self):
        return bool(self._values)

    def __eq__(self, other):
        if isinstance(other, LiveSet):
            return self._values == other._values
        return NotImplemented

    def __repr__(self):
        return f"LiveSet({self._values})"


# Live-set tracker


def node_live_sets(frames) -> dict:
    """Map every node id to the frame indices containing it."""
    result = {}
    for t, frame in enumerate(frames):
        for node in frame.nodes:
            result.setdefault(node.id, LiveSet()).add(t)
    return result


def edge_live_sets(frames) -> dict:
    """Map every edge id to the frame indices containing it."""
    result = {}
    for t, frame in enumerate(frames):
        for edge in frame.edges:
            result.setdefault(edge.id, LiveSet()).add(t)
    return result
