"""
Grid Helpers

A grid is a square list of rows; each cell holds a digit or an empty marker
(``None``, ``0`` or ``""``). Clients may send digits as strings.
"""

from typing import Any, List, Optional

Grid = List[List[Any]]

_EMPTY_MARKERS = (None, 0, '', '0')


def clone_grid(grid: Grid) -> Grid:
    """Value copy of a grid; no row is shared with the source."""
    return [list(row) for row in grid]


def cell_value(value: Any) -> Optional[int]:
    """Normalize a cell to an int, or None when empty or unreadable."""
    if value in _EMPTY_MARKERS:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def is_empty(value: Any) -> bool:
    return cell_value(value) is None


def is_valid_grid(grid: Any) -> bool:
    """A non-empty list of equal-length rows, as many rows as columns."""
    if not isinstance(grid, list) or not grid:
        return False
    size = len(grid)
    return all(isinstance(row, list) and len(row) == size for row in grid)


def same_shape(first: Grid, second: Grid) -> bool:
    return len(first) == len(second) and all(len(a) == len(b) for a, b in zip(first, second))


def in_bounds(grid: Grid, row: Any, col: Any) -> bool:
    if not isinstance(row, int) or not isinstance(col, int) or isinstance(row, bool) or isinstance(col, bool):
        return False
    return 0 <= row < len(grid) and 0 <= col < len(grid[row])


def matches_solution(grid: Grid, solution: Grid) -> bool:
    """True when every cell equals the solution cell; empty cells never match."""
    if not grid or not solution or not same_shape(grid, solution):
        return False
    for grid_row, solution_row in zip(grid, solution):
        for value, expected in zip(grid_row, solution_row):
            actual = cell_value(value)
            if actual is None or actual != cell_value(expected):
                return False
    return True


def fillable_cells(initial: Grid) -> int:
    """Number of cells that are not given clues."""
    return sum(1 for row in initial for value in row if is_empty(value))


def completion_percentage(grid: Grid, initial: Grid) -> int:
    """Filled non-clue cells over all non-clue cells, as a rounded percentage."""
    total = fillable_cells(initial)
    if total == 0:
        return 100
    filled = 0
    for grid_row, initial_row in zip(grid, initial):
        for value, given in zip(grid_row, initial_row):
            if is_empty(given) and not is_empty(value):
                filled += 1
    return round(filled * 100 / total)
