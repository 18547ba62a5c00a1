class FrameDiff:
    """Represents the difference between two frames of a dynamic graph.

    Attributes
    --
    nodes_added : set
        Node ids in b but not in a
    nodes_removed : set
        Node ids in a but not in b
    edges_added : set
        Edge ids in b but not in a
    edges_removed : set
        Edge ids in a but not in b
    nodes_moved : set
        Node ids present in both whose position differs

    """

    def __init__(self, frame_a, frame_b, label_a="a", label_b="b"):
        self.label_a = label_a
        self.label_b = label_b

        nodes_a = set(frame_a.node_to_idx)
        nodes_b = set(frame_b.node_to_idx)
        edges_a = set(frame_a.edge_to_idx)
        edges_b = set(frame_b.edge_to_idx)

        self.nodes_added = nodes_b - nodes_a
        self.nodes_removed = nodes_a - nodes_b
        self.edges_added = edges_b - edges_a
        self.edges_removed = edges_a - edges_b
        self.nodes_moved = {
            nid for nid in nodes_a & nodes_b if frame_a.node_at(nid).pos != frame_b.node_at(nid).pos
        }

    def summary(self):
        """Human-readable summary of differences."""
        lines = [
            f"Diff: {self.label_a} - {self.label_b}",
            "",
            f"Nodes: {len(self.nodes_added):+d} added, {len(self.nodes_removed)} removed, "
            f"{len(self.nodes_moved)} moved",
            f"Edges: {len(self.edges_added):+d} added, {len(self.edges_removed)} removed",
        ]
        return "\n".join(lines)

    def is_empty(self):
        """True if the structure is identical (positions are ignored)."""
        return (
            not self.nodes_added
            and not self.nodes_removed
            and not self.edges_added
            and not self.edges_removed
        )

    def __repr__(self):
        return self.summary()

    def to_dict(self):
        """Convert to dictionary for serialization (ids as ints, sorted)."""
        return {
            "frame_a": self.label_a,
            "frame_b": self.label_b,
            "nodes_added": sorted(int(i) for i in self.nodes_added),
            "nodes_removed": sorted(int(i) for i in self.nodes_removed),
            "nodes_moved": sorted(int(i) for i in self.nodes_moved),
            "edges_added": sorted(int(i) for i in self.edges_added),
            "edges_removed": sorted(int(i) for i in self.edges_removed),
        }
