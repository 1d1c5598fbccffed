import numpy as np
import pytest

from mmdat.data_model import MutationError
from mmdat.grid import Grid


def test_shape_and_cells_invariant():
    grid = Grid(3, 4, fill=7)
    assert grid.shape == (3, 4)
    assert grid.rows * grid.cols == len(grid.cells)
    assert np.all(grid.cells == 7)


@pytest.mark.parametrize("row,col,value", [(0, 0, 1), (2, 3, 42), (1, 2, -5), (2, 0, 163)])
def test_set_then_get_returns_value(row, col, value):
    grid = Grid(3, 4)
    assert grid.set(row, col, value).ok
    result = grid.get(row, col)
    assert result.ok
    assert result.value == value
    assert grid[row, col] == value


@pytest.mark.parametrize("row,col", [(3, 0), (0, 4), (-1, 0), (0, -1), (10, 10)])
def test_out_of_range_access_is_a_result(row, col):
    grid = Grid(3, 4)
    for result in (grid.get(row, col), grid.set(row, col, 1)):
        assert not result
        assert result.error == MutationError.OUT_OF_RANGE
        assert '3x4' in result.message
    with pytest.raises(IndexError):
        grid[row, col]


def test_from_rows_round_trips_to_rows():
    rows = [[1, 1, 1], [1, 6, 1], [1, 1, 1]]
    grid = Grid.from_rows(rows)
    assert grid.to_rows() == rows
    assert grid[1, 1] == 6
    assert Grid.from_rows([]).shape == (0, 0)


def test_from_array_rejects_non_2d():
    with pytest.raises(ValueError):
        Grid.from_array(np.zeros(3))
    with pytest.raises(ValueError):
        Grid(-1, 2)


def test_neighbors_stay_in_bounds():
    grid = Grid(3, 3)
    assert sorted(grid.neighbors(0, 0)) == [(0, 1), (1, 0)]
    assert sorted(grid.neighbors(1, 1)) == [(0, 1), (1, 0), (1, 2), (2, 1)]


def test_positions_and_isin():
    grid = Grid.from_rows([[1, 42], [46, 1]])
    assert grid.positions(grid.isin({42, 46})) == [(0, 1), (1, 0)]


def test_equality_and_copy():
    grid = Grid.from_rows([[1, 2], [3, 4]])
    other = grid.copy()
    assert grid == other
    other.set(0, 0, 9)
    assert grid != other
    assert grid != Grid.from_rows([[1, 2, 0], [3, 4, 0]])
