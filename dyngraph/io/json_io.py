from __future__ import annotations

import json
from pathlib import Path

from ..core.dynamic_graph import DynamicGraph
from ..core.graph import Frame

FORMAT = "dyngraph-node-link"
VERSION = 1


def _frame_to_dict(frame) -> dict:
    return {
        "nodes": [
            {"id": n.id.value, "x": n.x, "y": n.y, "alpha": n.alpha, "is_new": n.is_new, "is_old": n.is_old}
            for n in frame.nodes
        ],
        "links": [
            {
                "id": e.id.value,
                "source": e.one.value,
                "target": e.two.value,
                "alpha": e.alpha,
                "is_new": e.is_new,
                "is_old": e.is_old,
            }
            for e in frame.edges
        ],
    }


def _frame_from_dict(data: dict) -> Frame:
    frame = Frame()
    for row in data.get("nodes", []):
        frame.add_node(row["id"], x=row.get("x", 0.0), y=row.get("y", 0.0), alpha=row.get("alpha", 1.0))
    for row in data.get("links", []):
        frame.add_edge(row["id"], row["source"], row["target"], alpha=row.get("alpha", 1.0))
    return frame


def to_json(animation, path=None, *, indent: int | None = None):
    """Node-link JSON of every frame: positions, alpha and new/old tags.

    Parameters
    --
    animation : DynamicGraph or sequence of Frame
    path : str or Path, optional
        If given, the document is written there and None is returned.
    indent : int, optional
        Passed to ``json.dumps``.

    Returns
    ---
    str or None
        The JSON text when ``path`` is None.

    """
    frames = animation.frames if isinstance(animation, DynamicGraph) else list(animation)
    doc = {"format": FORMAT, "version": VERSION, "frames": [_frame_to_dict(f) for f in frames]}
    text = json.dumps(doc, indent=indent)
    if path is None:
        return text
    Path(path).write_text(text, encoding="utf-8")
    return None


def from_json(source) -> DynamicGraph:
    """Inverse of ``to_json``.

    ``source`` is a JSON string, a path to a JSON file, or an already decoded
    dict. Tags are recomputed from the frame sequence, not read back.

    Raises
    --
    ValueError
        If the document is not in this format or a frame is inconsistent.

    """
    if isinstance(source, dict):
        doc = source
    elif isinstance(source, Path) or (isinstance(source, str) and not source.lstrip().startswith("{")):
        doc = json.loads(Path(source).read_text(encoding="utf-8"))
    else:
        doc = json.loads(source)
    if doc.get("format") != FORMAT:
        raise ValueError(f"not a {FORMAT} document (format={doc.get('format')!r})")
    frames = [_frame_from_dict(f) for f in doc.get("frames", [])]
    graph = DynamicGraph()
    graph.build_from(frames)
    return graph
