# dyngraph/__init__.py
"""dyngraph: foresighted layout and animation of dynamic graphs."""

from __future__ import annotations

from importlib import import_module
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _pkg_version
from typing import Any

# Lazily exposed submodules (imported on first attribute access)
_lazy_submodules = {
    # namespaces
    "core": "dyngraph.core",
    "layout": "dyngraph.layout",
    "animation": "dyngraph.animation",
    "io": "dyngraph.io",
    "adapters": "dyngraph.adapters",
    # direct convenience
    "networkx": "dyngraph.adapters.networkx_adapter",
    "textio": "dyngraph.io.text_io",
    "jsonio": "dyngraph.io.json_io",
    "dataframe": "dyngraph.io.dataframe_io",
}

# Curated top-level symbols (lazy). name -> (module, attribute)
_lazy_symbols: dict[str, tuple[str, str]] = {
    # Core
    "DynamicGraph": ("dyngraph.core.dynamic_graph", "DynamicGraph"),
    "Frame": ("dyngraph.core.graph", "Frame"),
    "Graph": ("dyngraph.core.graph", "Graph"),
    "Node": ("dyngraph.core._entities", "Node"),
    "Edge": ("dyngraph.core._entities", "Edge"),
    "NodeId": ("dyngraph.core._ids", "NodeId"),
    "EdgeId": ("dyngraph.core._ids", "EdgeId"),
    "LiveSet": ("dyngraph.core._LiveSet", "LiveSet"),
    "FrameDiff": ("dyngraph.core._FrameDiff", "FrameDiff"),
    # Errors
    "InvalidGraphError": ("dyngraph.exceptions", "InvalidGraphError"),
    "OutOfRangeError": ("dyngraph.exceptions", "OutOfRangeError"),
    "InvalidConfigurationError": ("dyngraph.exceptions", "InvalidConfigurationError"),
    # Layout
    "Cooling": ("dyngraph.layout.cooling", "Cooling"),
    "FruchtermanReingold": ("dyngraph.layout.fruchterman_reingold", "FruchtermanReingold"),
    "ForesightedLayout": ("dyngraph.layout.foresighted", "ForesightedLayout"),
    "SequentialRefinement": ("dyngraph.layout.foresighted", "SequentialRefinement"),
    "ParallelRefinement": ("dyngraph.layout.foresighted", "ParallelRefinement"),
    "default_layout": ("dyngraph.layout.foresighted", "default_layout"),
    "default_layout_parallel": ("dyngraph.layout.foresighted", "default_layout_parallel"),
    "WorkerPool": ("dyngraph.layout.parallel", "WorkerPool"),
    "Barrier": ("dyngraph.layout.parallel", "Barrier"),
    # Animation
    "Interpolator": ("dyngraph.animation.interpolator", "Interpolator"),
    "Phase": ("dyngraph.animation.interpolator", "Phase"),
    # Text / JSON I/O
    "dumps": ("dyngraph.io.text_io", "dumps"),
    "loads": ("dyngraph.io.text_io", "loads"),
    "to_json": ("dyngraph.io.json_io", "to_json"),
    "from_json": ("dyngraph.io.json_io", "from_json"),
    # NetworkX adapter (optional dependency)
    "to_nx": ("dyngraph.adapters.networkx_adapter", "to_nx"),
    "from_nx": ("dyngraph.adapters.networkx_adapter", "from_nx"),
}

__all__ = sorted(set(list(_lazy_submodules) + list(_lazy_symbols)))


def __getattr__(name: str) -> Any:  # PEP 562: lazy attribute resolution
    if name in _lazy_submodules:
        return import_module(_lazy_submodules[name])
    if name in _lazy_symbols:
        mod, attr = _lazy_symbols[name]
        return getattr(import_module(mod), attr)
    raise AttributeError(name)


def __dir__() -> list[str]:
    return sorted(list(globals().keys()) + list(__all__))


try:
    __version__ = _pkg_version("dyngraph")
except PackageNotFoundError:
    __version__ = "0.0.0"
