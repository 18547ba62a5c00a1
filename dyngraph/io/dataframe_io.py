from __future__ import annotations

from typing import Any

import narwhals as nw
import polars as pl
from narwhals.typing import IntoDataFrame

from ..core.dynamic_graph import DynamicGraph
from ..core.graph import Frame

NODE_SCHEMA = {
    "frame": pl.Int64,
    "node_id": pl.Int64,
    "x": pl.Float64,
    "y": pl.Float64,
    "alpha": pl.Float64,
    "is_new": pl.Boolean,
    "is_old": pl.Boolean,
}

EDGE_SCHEMA = {
    "frame": pl.Int64,
    "edge_id": pl.Int64,
    "one": pl.Int64,
    "two": pl.Int64,
    "alpha": pl.Float64,
    "is_new": pl.Boolean,
    "is_old": pl.Boolean,
}


def to_dataframes(animation) -> dict[str, pl.DataFrame]:
    """Long-format Polars tables, one row per entity per frame.

    Returns
    ---
    dict
        ``{"nodes": DataFrame, "edges": DataFrame}`` with the columns of
        ``NODE_SCHEMA`` and ``EDGE_SCHEMA``.

    """
    frames = animation.frames if isinstance(animation, DynamicGraph) else list(animation)
    node_rows = []
    edge_rows = []
    for t, frame in enumerate(frames):
        for n in frame.nodes:
            node_rows.append((t, n.id.value, n.x, n.y, n.alpha, n.is_new, n.is_old))
        for e in frame.edges:
            edge_rows.append((t, e.id.value, e.one.value, e.two.value, e.alpha, e.is_new, e.is_old))
    return {
        "nodes": pl.DataFrame(node_rows, schema=NODE_SCHEMA, orient="row"),
        "edges": pl.DataFrame(edge_rows, schema=EDGE_SCHEMA, orient="row"),
    }


def _to_dicts(df: nw.DataFrame[Any]) -> list[dict[str, Any]]:
    """Convert narwhals DataFrame to list of dicts."""
    return df.rows(named=True)


def _require(df: nw.DataFrame[Any], columns, table: str):
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise ValueError(f"{table} table is missing required columns: {missing}")


def from_dataframes(nodes: IntoDataFrame, edges: IntoDataFrame | None = None) -> DynamicGraph:
    """Build a DynamicGraph from long-format tables.

    Parameters
    --
    nodes : DataFrame-like
        Any eager dataframe narwhals understands (Polars, pandas, ...) with
        columns ``frame``, ``node_id`` and optionally ``x``, ``y``, ``alpha``.
    edges : DataFrame-like, optional
        Columns ``frame``, ``edge_id``, ``one``, ``two`` and optionally
        ``alpha``.

    Returns
    ---
    DynamicGraph
        Frames ``0..max(frame)``; frames without rows are empty. Tags are
        recomputed.

    Raises
    --
    ValueError
        On missing columns, negative frame indices or edges whose endpoints
        are absent from their frame.

    """
    nodes_nw = nw.from_native(nodes, eager_only=True)
    _require(nodes_nw, ("frame", "node_id"), "nodes")
    node_rows = _to_dicts(nodes_nw)

    edge_rows = []
    if edges is not None:
        edges_nw = nw.from_native(edges, eager_only=True)
        _require(edges_nw, ("frame", "edge_id", "one", "two"), "edges")
        edge_rows = _to_dicts(edges_nw)

    last = max((int(r["frame"]) for r in node_rows + edge_rows), default=-1)
    if any(int(r["frame"]) < 0 for r in node_rows + edge_rows):
        raise ValueError("frame indices must be >= 0")
    frames = [Frame() for _ in range(last + 1)]
    for r in node_rows:
        kwargs = {k: float(r[k]) for k in ("x", "y", "alpha") if r.get(k) is not None}
        frames[int(r["frame"])].add_node(int(r["node_id"]), **kwargs)
    for r in edge_rows:
        kwargs = {"alpha": float(r["alpha"])} if r.get("alpha") is not None else {}
        frames[int(r["frame"])].add_edge(int(r["edge_id"]), int(r["one"]), int(r["two"]), **kwargs)

    graph = DynamicGraph()
    graph.build_from(frames)
    return graph
