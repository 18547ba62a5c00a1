"""Exceptions raised by dyngraph.

All of them subclass a builtin so callers can catch them the usual way
(``except ValueError`` keeps working).
"""


class InvalidGraphError(ValueError):
    """Referential-integrity violation in a graph or a modification log.

    Raised by ``DynamicGraph.build`` when an edge references a node that does not
    exist in its frame, or a removal targets an entity that does not exist.
    """


class OutOfRangeError(LookupError):
    """Interpolator query outside ``[0, length]`` or lookup of an unknown phase."""


class InvalidConfigurationError(ValueError):
    """Configuration rejected before any layout work starts."""
