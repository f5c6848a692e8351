from enum import IntEnum
from typing import Tuple

import numpy as np

Coord = Tuple[int, int]


class Player(IntEnum):
    """Player constants. Values double as Connect-Four cell states."""
    EMPTY = 0
    PLAYER1 = 1
    PLAYER2 = 2

    def symbol(self) -> str:
        return {0: ".", 1: "X", 2: "O"}[self.value]

    def label(self) -> str:
        return {0: "-", 1: "Player 1", 2: "Player 2"}[self.value]

    def opponent(self) -> "Player":
        if self == Player.PLAYER1:
            return Player.PLAYER2
        if self == Player.PLAYER2:
            return Player.PLAYER1
        return Player.EMPTY


# 4 unique line directions as (d_row, d_col); opposites are implied.
DIRECTIONS: Tuple[Coord, ...] = ((0, 1), (1, 0), (1, 1), (1, -1))

# Orthogonal neighbours in firing order: up, down, left, right.
ORTHOGONAL: Tuple[Coord, ...] = ((-1, 0), (1, 0), (0, -1), (0, 1))


def new_grid(rows: int, cols: int) -> np.ndarray:
    """Create a rows x cols grid of zeros (the EMPTY value of every cell enum)."""
    if rows <= 0 or cols <= 0:
        raise ValueError("grid dimensions must be positive")
    return np.zeros((rows, cols), dtype=np.int8)


def in_bounds(grid: np.ndarray, row: int, col: int) -> bool:
    rows, cols = grid.shape
    return 0 <= row < rows and 0 <= col < cols


def frozen(grid: np.ndarray) -> np.ndarray:
    """
    Return a read-only copy of grid.

    Snapshots handed to deferred callbacks are frozen so that a continuation
    can never write through to state another continuation also sees.
    """
    snapshot = np.copy(grid)
    snapshot.setflags(write=False)
    return snapshot


def thawed(grid: np.ndarray) -> np.ndarray:
    """Return a writable copy of grid (the only way a board is ever changed)."""
    return np.array(grid, dtype=np.int8, copy=True)


def grid_to_ascii(grid: np.ndarray, symbols: dict, *, row_labels: bool = True) -> str:
    """
    Render grid as ASCII using a value -> symbol mapping.
    Rows are labelled A.. and columns 1.. when row_labels is set.
    """
    rows, cols = grid.shape
    lines = []
    if row_labels:
        lines.append("   " + " ".join(str(c + 1).rjust(2) for c in range(cols)))
    for r in range(rows):
        cells = " ".join(symbols.get(int(v), "?").rjust(2) for v in grid[r])
        if row_labels:
            lines.append(f"{chr(ord('A') + r):2} {cells}")
        else:
            lines.append(cells)
    return "\n".join(lines)
