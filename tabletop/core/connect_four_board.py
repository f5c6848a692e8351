"""
Connect-Four board model: 6 rows x 7 columns, row 0 at the top.

Cells hold Player values (EMPTY / PLAYER1 / PLAYER2). A piece dropped into a
column lands in the lowest EMPTY row. Boards are never modified in place;
drop_piece returns a new board.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple

import numpy as np

from tabletop.core.board import Coord, Player, frozen, new_grid, thawed

ROWS = 6
COLS = 7
CONNECT = 4
CENTER_COL = COLS // 2


class Direction(Enum):
    HORIZONTAL = (0, 1)
    VERTICAL = (1, 0)
    DIAGONAL_DOWN_RIGHT = (1, 1)
    DIAGONAL_DOWN_LEFT = (1, -1)


def _build_windows() -> Dict[Direction, np.ndarray]:
    """Flat indices of every 4-cell window, grouped by direction."""
    windows: Dict[Direction, List[List[int]]] = {d: [] for d in Direction}
    for d in Direction:
        dr, dc = d.value
        for r in range(ROWS):
            for c in range(COLS):
                end_r, end_c = r + dr * (CONNECT - 1), c + dc * (CONNECT - 1)
                if not (0 <= end_r < ROWS and 0 <= end_c < COLS):
                    continue
                windows[d].append([(r + dr * k) * COLS + (c + dc * k) for k in range(CONNECT)])
    return {d: np.array(idx, dtype=np.intp) for d, idx in windows.items()}


WINDOWS: Dict[Direction, np.ndarray] = _build_windows()
# All 69 windows stacked, in scan order horizontal, vertical, both diagonals
ALL_WINDOWS: np.ndarray = np.concatenate([WINDOWS[d] for d in Direction])


@dataclass(frozen=True)
class WinLine:
    player: Player
    direction: Direction
    cells: Tuple[Coord, ...]


def create_board() -> np.ndarray:
    return frozen(new_grid(ROWS, COLS))


def valid_columns(board: np.ndarray) -> List[int]:
    """Columns whose top cell is still EMPTY, left to right."""
    return [c for c in range(COLS) if board[0, c] == Player.EMPTY]


def landing_row(board: np.ndarray, col: int) -> Optional[int]:
    if not 0 <= col < COLS:
        return None
    for r in range(ROWS - 1, -1, -1):
        if board[r, col] == Player.EMPTY:
            return r
    return None


def drop_piece(board: np.ndarray, col: int, player: Player) -> Optional[np.ndarray]:
    """
    Drop player's piece into col.

    Returns:
        New read-only board, or None if col is out of range or full
        (the input board is left untouched either way).
    """
    if player == Player.EMPTY:
        raise ValueError("Cannot drop EMPTY")
    row = landing_row(board, col)
    if row is None:
        return None
    out = thawed(board)
    out[row, col] = player
    return frozen(out)


def window_cells(board: np.ndarray) -> np.ndarray:
    """(69, 4) array of cell values, one row per window."""
    return board.ravel()[ALL_WINDOWS]


def find_win(board: np.ndarray, player: Player) -> Optional[WinLine]:
    """First 4-in-a-row of player, scanning horizontal, vertical, then diagonals."""
    flat = board.ravel()
    for d in Direction:
        hits = np.all(flat[WINDOWS[d]] == player, axis=1)
        if hits.any():
            idx = WINDOWS[d][int(np.argmax(hits))]
            cells = tuple((int(i) // COLS, int(i) % COLS) for i in idx)
            return WinLine(player, d, cells)
    return None


def check_win(board: np.ndarray, player: Player) -> bool:
    return find_win(board, player) is not None


def is_board_full(board: np.ndarray) -> bool:
    return not valid_columns(board)


def is_terminal(board: np.ndarray) -> bool:
    return (
        check_win(board, Player.PLAYER1)
        or check_win(board, Player.PLAYER2)
        or is_board_full(board)
    )
