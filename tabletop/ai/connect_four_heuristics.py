"""Static evaluation of Connect-Four boards (no lookahead)."""

from typing import Sequence

import numpy as np

from tabletop.core.board import Player
from tabletop.core.connect_four_board import CENTER_COL, window_cells
from tabletop.ai.config import (
    WEIGHT_FOUR,
    WEIGHT_THREE,
    WEIGHT_TWO,
    WEIGHT_OPP_THREE,
    WEIGHT_CENTER,
)


def score_window(window: Sequence[int], player: Player) -> int:
    """
    Score one 4-cell window for player.

    4 own = WEIGHT_FOUR, 3 own + 1 empty = WEIGHT_THREE,
    2 own + 2 empty = WEIGHT_TWO, 3 opponent + 1 empty = WEIGHT_OPP_THREE,
    anything else 0.
    """
    opp = player.opponent()
    own = sum(1 for v in window if v == player)
    empty = sum(1 for v in window if v == Player.EMPTY)
    theirs = sum(1 for v in window if v == opp)

    if own == 4:
        return WEIGHT_FOUR
    if own == 3 and empty == 1:
        return WEIGHT_THREE
    if own == 2 and empty == 2:
        return WEIGHT_TWO
    if theirs == 3 and empty == 1:
        return WEIGHT_OPP_THREE
    return 0


def score_board(board: np.ndarray, player: Player) -> int:
    """
    Sum of score_window over every horizontal, vertical and diagonal window,
    plus WEIGHT_CENTER per own piece in the center column.

    Vectorised over all windows at once; equal to summing score_window.
    """
    cells = window_cells(board)
    own = np.count_nonzero(cells == player, axis=1)
    empty = np.count_nonzero(cells == Player.EMPTY, axis=1)
    theirs = np.count_nonzero(cells == player.opponent(), axis=1)

    four = own == 4
    three = (own == 3) & (empty == 1)
    two = (own == 2) & (empty == 2)
    # patterns are mutually exclusive, so the first match in score_window is the only one
    opp_three = (theirs == 3) & (empty == 1)

    score = (
        WEIGHT_FOUR * np.count_nonzero(four)
        + WEIGHT_THREE * np.count_nonzero(three)
        + WEIGHT_TWO * np.count_nonzero(two)
        + WEIGHT_OPP_THREE * np.count_nonzero(opp_three)
    )
    score += WEIGHT_CENTER * np.count_nonzero(board[:, CENTER_COL] == player)
    return int(score)
