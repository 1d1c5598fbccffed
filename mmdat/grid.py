"""
Dense 2-D integer grid backed by a numpy array.

Used for the tiles{} and height{} sections. Cells are addressed (row, col)
with row 0 at the top of the section text.
"""
from typing import Iterator, List, Sequence, Tuple

import numpy as np

from mmdat.data_model import MutationError, Result

# UP, DOWN, LEFT, RIGHT in (row, col)
NEIGHBOR_DELTAS = ((-1, 0), (1, 0), (0, -1), (0, 1))


class Grid:
    """rows × cols grid of ints.

    `cells` is the flat row-major view, so `rows * cols == len(cells)` holds
    by construction. `get`/`set` return a Result and never raise; indexing
    with `grid[r, c]` is the trusted fast path and raises IndexError.
    """

    def __init__(self, rows, cols, fill=0):
        if rows < 0 or cols < 0:
            raise ValueError(f'Grid dimensions must be non-negative, got {rows}x{cols}')
        self.array = np.full((rows, cols), fill, dtype=np.int64)

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[int]]) -> 'Grid':
        """Build a grid from equal-length rows."""
        n_rows = len(rows)
        n_cols = len(rows[0]) if n_rows else 0
        grid = cls(n_rows, n_cols)
        if n_rows and n_cols:
            grid.array[:, :] = np.asarray(rows, dtype=np.int64)
        return grid

    @classmethod
    def from_array(cls, array) -> 'Grid':
        array = np.asarray(array, dtype=np.int64)
        if array.ndim != 2:
            raise ValueError(f'Grid needs a 2-D array, got shape {array.shape}')
        grid = cls(*array.shape)
        grid.array[:, :] = array
        return grid

    # ── Shape ─────────────────────────────────────────────────────────

    @property
    def rows(self) -> int:
        return self.array.shape[0]

    @property
    def cols(self) -> int:
        return self.array.shape[1]

    @property
    def shape(self) -> Tuple[int, int]:
        return self.rows, self.cols

    @property
    def cells(self) -> np.ndarray:
        return self.array.reshape(-1)

    def in_bounds(self, row, col) -> bool:
        return 0 <= row < self.rows and 0 <= col < self.cols

    # ── Access ────────────────────────────────────────────────────────

    def get(self, row, col) -> Result:
        if not self.in_bounds(row, col):
            return Result.failure(
                MutationError.OUT_OF_RANGE,
                f'({row}, {col}) is outside the {self.rows}x{self.cols} grid')
        return Result.success(int(self.array[row, col]))

    def set(self, row, col, value) -> Result:
        if not self.in_bounds(row, col):
            return Result.failure(
                MutationError.OUT_OF_RANGE,
                f'({row}, {col}) is outside the {self.rows}x{self.cols} grid')
        self.array[row, col] = int(value)
        return Result.success(int(value))

    def __getitem__(self, pos):
        row, col = pos
        if not self.in_bounds(row, col):
            raise IndexError(f'({row}, {col}) is outside the {self.rows}x{self.cols} grid')
        return int(self.array[row, col])

    def neighbors(self, row, col) -> Iterator[Tuple[int, int]]:
        """In-bounds 4-neighbours of (row, col)."""
        for dr, dc in NEIGHBOR_DELTAS:
            r, c = row + dr, col + dc
            if 0 <= r < self.rows and 0 <= c < self.cols:
                yield r, c

    def positions(self, mask) -> List[Tuple[int, int]]:
        """(row, col) of every True cell of a boolean mask shaped like the grid."""
        return [(int(r), int(c)) for r, c in np.argwhere(mask)]

    def isin(self, values) -> np.ndarray:
        return np.isin(self.array, list(values))

    def to_rows(self) -> List[List[int]]:
        return self.array.tolist()

    def copy(self) -> 'Grid':
        return Grid.from_array(self.array)

    def __eq__(self, other):
        if not isinstance(other, Grid):
            return NotImplemented
        return self.shape == other.shape and bool(np.array_equal(self.array, other.array))

    def __repr__(self):
        return f'Grid({self.rows}x{self.cols})'
