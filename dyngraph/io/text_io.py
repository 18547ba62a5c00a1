"""Plain-text interchange format for animations.

Grammar (whitespace between tokens is insignificant)::

    animation := "{" frame* "}"
    frame     := "[" (node | edge)* "]"
    node      := "n" <id> <x> <y> ";"
    edge      := "e" <id> <one> <two> ";"

Coordinates are written with ``repr`` so they survive a round trip exactly.
Alpha and the new/old tags are not part of the format; tags are recomputed
when the animation is rebuilt.
"""

from __future__ import annotations

import re
from pathlib import Path

from ..core.dynamic_graph import DynamicGraph
from ..core.graph import Frame

_TOKEN = re.compile(r"[{}\[\];]|[^\s{}\[\];]+")


# ==================== Writing ====================


def dumps_frame(frame) -> str:
    lines = ["["]
    for n in frame.nodes:
        lines.append(f"n {n.id.value} {float(n.x)!r} {float(n.y)!r};")
    for e in frame.edges:
        lines.append(f"e {e.id.value} {e.one.value} {e.two.value};")
    lines.append("]")
    return "\n".join(lines) + "\n"


def dumps(animation) -> str:
    """Serialize a DynamicGraph (or a sequence of frames) to text."""
    frames = animation.frames if isinstance(animation, DynamicGraph) else list(animation)
    return "{\n" + "".join(dumps_frame(f) for f in frames) + "}\n"


def write(animation, path) -> None:
    Path(path).write_text(dumps(animation), encoding="utf-8")


# ==================== Reading ====================


class _Tokens:
    def __init__(self, text: str):
        self._items = [(m.group(), m.start()) for m in _TOKEN.finditer(text)]
        self._text = text
        self._i = 0

    def peek(self):
        return self._items[self._i][0] if self._i < len(self._items) else None

    def next(self, what: str):
        if self._i >= len(self._items):
            raise ValueError(f"unexpected end of input, expected {what}")
        tok, _ = self._items[self._i]
        self._i += 1
        return tok

    def expect(self, literal: str):
        tok = self.next(f"'{literal}'")
        if tok != literal:
            self.fail(f"expected '{literal}', got {tok!r}", back=1)

    def fail(self, message: str, back: int = 0):
        pos = self._items[self._i - back][1] if self._items else 0
        line = self._text.count("\n", 0, pos) + 1
        raise ValueError(f"line {line}: {message}")

    def done(self) -> bool:
        return self._i >= len(self._items)


def _int(tokens: _Tokens, what: str) -> int:
    tok = tokens.next(what)
    try:
        value = int(tok)
    except ValueError:
        tokens.fail(f"invalid {what} {tok!r}", back=1)
    if value < 0:
        tokens.fail(f"invalid {what} {tok!r}", back=1)
    return value


def _float(tokens: _Tokens, what: str) -> float:
    tok = tokens.next(what)
    try:
        return float(tok)
    except ValueError:
        tokens.fail(f"invalid {what} {tok!r}", back=1)


def _parse_frame(tokens: _Tokens) -> Frame:
    tokens.expect("[")
    nodes, edges = [], []
    while True:
        tok = tokens.next("']'")
        if tok == "]":
            break
        if tok == "n":
            nodes.append((_int(tokens, "node id"), _float(tokens, "x"), _float(tokens, "y")))
        elif tok == "e":
            edges.append((_int(tokens, "edge id"), _int(tokens, "node id"), _int(tokens, "node id")))
        else:
            tokens.fail(f"unexpected token {tok!r}", back=1)
        tokens.expect(";")
    frame = Frame()
    for nid, x, y in nodes:
        if frame.has_node(nid):
            raise ValueError(f"duplicate node {nid} in frame")
        frame.add_node(nid, x=x, y=y)
    for eid, one, two in edges:
        if frame.has_edge(eid):
            raise ValueError(f"duplicate edge {eid} in frame")
        # InvalidGraphError is a ValueError
        frame.add_edge(eid, one, two)
    return frame


def loads_frame(text: str) -> Frame:
    tokens = _Tokens(text)
    frame = _parse_frame(tokens)
    if not tokens.done():
        tokens.fail(f"trailing input {tokens.peek()!r}")
    return frame


def loads(text: str) -> DynamicGraph:
    """Parse an animation and return it as a built DynamicGraph.

    Raises
    --
    ValueError
        On malformed input or frames referencing missing nodes.

    """
    tokens = _Tokens(text)
    tokens.expect("{")
    frames = []
    while tokens.peek() == "[":
        frames.append(_parse_frame(tokens))
    tokens.expect("}")
    if not tokens.done():
        tokens.fail(f"trailing input {tokens.peek()!r}")
    graph = DynamicGraph()
    graph.build_from(frames)
    return graph


def read(path) -> DynamicGraph:
    return loads(Path(path).read_text(encoding="utf-8"))
