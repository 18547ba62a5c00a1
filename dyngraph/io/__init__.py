"""dyngraph.io: text, JSON and dataframe I/O with lazy symbol loading."""

from __future__ import annotations

from importlib import import_module
from typing import Any

_lazy_symbols: dict[str, tuple[str, str]] = {
    # text grammar
    "dumps": ("dyngraph.io.text_io", "dumps"),
    "loads": ("dyngraph.io.text_io", "loads"),
    "write": ("dyngraph.io.text_io", "write"),
    "read": ("dyngraph.io.text_io", "read"),
    "dumps_frame": ("dyngraph.io.text_io", "dumps_frame"),
    "loads_frame": ("dyngraph.io.text_io", "loads_frame"),
    # JSON
    "to_json": ("dyngraph.io.json_io", "to_json"),
    "from_json": ("dyngraph.io.json_io", "from_json"),
    # DataFrame
    "to_dataframes": ("dyngraph.io.dataframe_io", "to_dataframes"),
    "from_dataframes": ("dyngraph.io.dataframe_io", "from_dataframes"),
}

__all__ = sorted(_lazy_symbols)


def __getattr__(name: str) -> Any:
    if name in _lazy_symbols:
        mod, attr = _lazy_symbols[name]
        return getattr(import_module(mod), attr)
    raise AttributeError(name)


def __dir__() -> list[str]:
    return sorted(list(globals().keys()) + list(__all__))
