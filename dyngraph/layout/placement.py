import math

import numpy as np


def circular_placement(graph, width: float, height: float):
    """Place the nodes evenly on a circle around the origin.

    The radius is a third of the shorter canvas side; node ``i`` sits at angle
    ``i * 2*pi / n``.
    """
    n = graph.number_of_nodes()
    if n == 0:
        return
    radius = min(width, height) * 0.333
    angles = np.arange(n) * (math.tau / n)
    graph.set_positions(np.column_stack([np.cos(angles), np.sin(angles)]) * radius)
