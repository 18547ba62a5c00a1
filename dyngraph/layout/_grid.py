import math

import numpy as np


class OptimizationGrid:
    """Uniform grid of square cells of side ``2k`` covering the canvas.

    Used by the force engine to find node pairs that may lie within the
    repulsion radius without testing all pairs.
    """

    def __init__(self, width: float, height: float, k: float):
        self._cell = 2.0 * k
        self._width = width
        self._height = height
        self._cols = max(1, math.ceil(width / self._cell))
        self._rows = max(1, math.ceil(height / self._cell))
        self._cells = {}  # (col, row) -> [node index]
        self._coords = np.empty((0, 2), dtype=np.intp)

    @property
    def shape(self):
        return (self._cols, self._rows)

    def cell_of(self, positions: np.ndarray) -> np.ndarray:
        """Cell coordinates ``(col, row)`` of each position, clamped to the grid."""
        positions = np.asarray(positions, dtype=float).reshape(-1, 2)
        col = np.floor((positions[:, 0] + self._width * 0.5) / self._cell).astype(np.intp)
        row = np.floor((positions[:, 1] + self._height * 0.5) / self._cell).astype(np.intp)
        np.clip(col, 0, self._cols - 1, out=col)
        np.clip(row, 0, self._rows - 1, out=row)
        return np.column_stack([col, row])

    def fill(self, positions: np.ndarray):
        """Replace the grid content with node indices ``0..n-1`` at ``positions``."""
        self._cells = {}
        self._coords = self.cell_of(positions)
        for i, (col, row) in enumerate(self._coords.tolist()):
            self._cells.setdefault((col, row), []).append(i)

    def around(self, col: int, row: int):
        """Yield node indices in the 3x3 block of cells centered on ``(col, row)``."""
        for y in range(max(row - 1, 0), min(row + 1, self._rows - 1) + 1):
            for x in range(max(col - 1, 0), min(col + 1, self._cols - 1) + 1):
                yield from self._cells.get((x, y), ())

    def candidate_pairs(self):
        """Index arrays ``(i, j)`` with ``j < i`` for every pair in neighbouring cells.

        Each unordered pair appears exactly once.
        """
        rows, cols = [], []
        for i, (col, row) in enumerate(self._coords.tolist()):
            for j in self.around(col, row):
                if j < i:
                    rows.append(i)
                    cols.append(j)
        return np.asarray(rows, dtype=np.intp), np.asarray(cols, dtype=np.intp)
