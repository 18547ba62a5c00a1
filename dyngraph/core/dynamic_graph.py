import warnings
from collections import defaultdict

from ..exceptions import InvalidGraphError
from ._FrameDiff import FrameDiff
from ._History import History
from ._ids import EdgeId, NodeId, edge_id, node_id
from ._LiveSet import edge_live_sets, node_live_sets
from .graph import Frame


class DynamicGraph(History):
    """Sequence of frames of a graph that changes over discrete time slots.

    Modifications are queued per time slot with ``add_node``, ``add_edge``,
    ``remove_node`` and ``remove_edge``; ``build`` replays them into frames.
    Alternatively ``build_from`` takes an already assembled frame sequence.
    Layout objects then write positions into the frames in place.

    Notes
    -
    - Ids are assigned by this object, monotonically, and never reused.
    - The modification log survives a successful ``build``, so building twice
      yields the same frames and later additions rebuild everything.
    - Every mutation is recorded in the history log (see ``history``).

    Examples
    --
    >>> g = DynamicGraph()
    >>> a, b = g.add_node(0), g.add_node(0)
    >>> e = g.add_edge(1, a, b)
    >>> g.build()
    >>> len(g), g.frame(1).has_edge(e)
    (2, True)

    """

    _HISTORY_OPS = (
        "add_node",
        "add_edge",
        "remove_node",
        "remove_edge",
        "build",
        "build_from",
        "clear",
    )

    def __init__(self):
        self._frames: list = []
        self._modifications = defaultdict(list)  # time slot -> [callable(Frame)]
        self._next_node_id = 0
        self._next_edge_id = 0
        self._queued_nodes: list = []  # ids created through the current log
        self._queued_edges: list = []
        self._init_history()

    # ==================== Modification log ====================

    def add_node(self, time: int) -> NodeId:
        """Queue the creation of a node at ``time``; returns its id.

        At ``time == 0`` the node is part of the initial frame.
        """
        nid = NodeId(self._next_node_id)
        self._add_modification(time, lambda frame: frame.add_node(nid))
        self._next_node_id += 1
        self._queued_nodes.append(nid)
        return nid

    def add_edge(self, time: int, one, two) -> EdgeId:
        """Queue the creation of an edge between ``one`` and ``two`` at ``time``."""
        one, two = node_id(one), node_id(two)
        eid = EdgeId(self._next_edge_id)

        def apply(frame):
            try:
                frame.add_edge(eid, one, two)
            except InvalidGraphError as e:
                raise InvalidGraphError(f"time {time}: {e}") from None

        self._add_modification(time, apply)
        self._next_edge_id += 1
        self._queued_edges.append(eid)
        return eid

    def remove_node(self, time: int, nid):
        """Queue the removal of a node (and its edges) at ``time``."""
        nid = node_id(nid)

        def apply(frame):
            try:
                frame.remove_node(nid)
            except InvalidGraphError as e:
                raise InvalidGraphError(f"time {time}: cannot remove: {e}") from None

        self._add_modification(time, apply)

    def remove_edge(self, time: int, eid):
        """Queue the removal of an edge at ``time``."""
        eid = edge_id(eid)

        def apply(frame):
            try:
                frame.remove_edge(eid)
            except InvalidGraphError as e:
                raise InvalidGraphError(f"time {time}: cannot remove: {e}") from None

        self._add_modification(time, apply)

    def _add_modification(self, time, operation):
        if isinstance(time, bool) or not isinstance(time, int) or time < 0:
            raise ValueError(f"time must be a non-negative integer, got {time!r}")
        self._modifications[time].append(operation)

    # ==================== Building ====================

    def build(self):
        """Replay the modification log into frames ``0..max_time``.

        Raises
        --
        InvalidGraphError
            If an edge references a node missing from its frame, or a removal
            targets an entity that does not exist. The previously built frames
            are left untouched.

        """
        frames = []
        last = max(self._modifications, default=-1)
        for t in range(last + 1):
            frame = frames[-1].copy() if frames else Frame()
            for operation in self._modifications.get(t, ()):
                operation(frame)
            frames.append(frame)
        _set_lifetime_flags(frames)
        self._frames = frames
        self._warn_unseen()

    def build_from(self, frames, validate: bool = True):
        """Use a ready-made frame sequence instead of the modification log.

        The log is cleared, frames are deep-copied and re-tagged, and the id
        counters continue after the largest id observed.

        Parameters
        --
        frames : iterable of Frame
        validate : bool, default True
            Re-check each frame's structural invariants first.

        Raises
        --
        InvalidGraphError
            If ``validate`` and a frame is structurally inconsistent.

        """
        frames = [f.copy() for f in frames]
        if validate:
            for t, frame in enumerate(frames):
                try:
                    frame.validate()
                except InvalidGraphError as e:
                    raise InvalidGraphError(f"frame {t}: {e}") from None
        self._modifications.clear()
        self._queued_nodes.clear()
        self._queued_edges.clear()
        _set_lifetime_flags(frames)
        self._frames = frames
        self._recalculate_ids()

    def clear(self):
        """Drop all frames and queued modifications (ids keep counting)."""
        self._frames = []
        self._modifications.clear()
        self._queued_nodes.clear()
        self._queued_edges.clear()

    def _recalculate_ids(self):
        for frame in self._frames:
            if frame.nodes:
                top = max(n.id.value for n in frame.nodes) + 1
                self._next_node_id = max(self._next_node_id, top)
            if frame.edges:
                top = max(e.id.value for e in frame.edges) + 1
                self._next_edge_id = max(self._next_edge_id, top)

    def _warn_unseen(self):
        seen_nodes = node_live_sets(self._frames)
        seen_edges = edge_live_sets(self._frames)
        lost_nodes = [nid.value for nid in self._queued_nodes if nid not in seen_nodes]
        lost_edges = [eid.value for eid in self._queued_edges if eid not in seen_edges]
        if lost_nodes or lost_edges:
            warnings.warn(
                "Entities added and removed in the same slot never appear in any frame: "
                f"nodes={lost_nodes}, edges={lost_edges}",
                # caller -> history wrapper -> build -> here
                stacklevel=4,
            )

    # ==================== Access ====================

    @property
    def frames(self) -> list:
        """Built frames, in time order. Layouts mutate their positions in place."""
        return self._frames

    def frame(self, index: int) -> Frame:
        return self._frames[index]

    @property
    def node_count(self) -> int:
        """Number of node ids handed out so far (not necessarily all visible)."""
        return self._next_node_id

    @property
    def edge_count(self) -> int:
        """Number of edge ids handed out so far."""
        return self._next_edge_id

    def diff(self, i: int, j: int) -> FrameDiff:
        """Structural and positional difference between frames ``i`` and ``j``."""
        return FrameDiff(self._frames[i], self._frames[j], label_a=f"frame {i}", label_b=f"frame {j}")

    def __len__(self):
        return len(self._frames)

    def __iter__(self):
        return iter(self._frames)

    def __getitem__(self, index):
        return self._frames[index]

    def __repr__(self):
        return f"DynamicGraph(frames={len(self._frames)}, nodes={self.node_count}, edges={self.edge_count})"


def _set_lifetime_flags(frames):
    last = len(frames) - 1
    for i, frame in enumerate(frames):
        nxt = frames[i + 1] if i < last else None
        prev = frames[i - 1] if i > 0 else None
        for node in frame.nodes:
            node.is_old = nxt is not None and node.id not in nxt.node_to_idx
            node.is_new = prev is not None and node.id not in prev.node_to_idx
        for edge in frame.edges:
            edge.is_old = nxt is not None and edge.id not in nxt.edge_to_idx
            edge.is_new = prev is not None and edge.id not in prev.edge_to_idx
