"""Minimax with Alpha-Beta pruning for Connect-Four."""

import random
from typing import List, Optional, Tuple

import numpy as np

from tabletop.core.board import Player
from tabletop.core.connect_four_board import check_win, drop_piece, valid_columns
from tabletop.ai.config import CONNECT_FOUR_SEARCH, SCORE_DRAW, SCORE_WIN, SearchConfig
from tabletop.ai.connect_four_heuristics import score_board


class ConnectFourAI:
    """
    Fixed-depth minimax maximizing for `player`.

    Cut-offs are strict (alpha > beta), so a child whose score equals the
    best so far was searched exactly and ties can be broken at random.
    """

    def __init__(
        self,
        player: Player = Player.PLAYER2,
        search: SearchConfig = CONNECT_FOUR_SEARCH,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.player = player
        self.opponent = player.opponent()
        self.search = search
        self.rng = rng or random.Random()
        self.nodes_explored = 0

    def get_best_move(self, board: np.ndarray) -> Optional[int]:
        """Column to drop into, or None if the board is full."""
        if not valid_columns(board):
            return None
        self.nodes_explored = 0
        col, _ = self.minimax(board, self.search.max_depth, float("-inf"), float("inf"), True)
        return col

    def minimax(
        self,
        board: np.ndarray,
        depth: int,
        alpha: float,
        beta: float,
        is_maximizing: bool,
    ) -> Tuple[Optional[int], float]:
        """Alpha-beta recursion. Returns (best column, score)."""
        self.nodes_explored += 1

        cols = valid_columns(board)
        if check_win(board, self.player):
            return None, SCORE_WIN
        if check_win(board, self.opponent):
            return None, -SCORE_WIN
        if not cols:
            return None, SCORE_DRAW
        if depth == 0:
            return None, score_board(board, self.player)

        mover = self.player if is_maximizing else self.opponent
        best_score = float("-inf") if is_maximizing else float("inf")
        best_cols: List[int] = []

        for col in cols:
            child = drop_piece(board, col, mover)
            _, score = self.minimax(child, depth - 1, alpha, beta, not is_maximizing)

            if score == best_score:
                best_cols.append(col)
            elif (score > best_score) if is_maximizing else (score < best_score):
                best_score = score
                best_cols = [col]

            if is_maximizing:
                alpha = max(alpha, score)
            else:
                beta = min(beta, score)
            if alpha > beta:
                break

        return self._pick(best_cols), best_score

    def _pick(self, cols: List[int]) -> int:
        if self.search.randomize_ties and len(cols) > 1:
            return self.rng.choice(cols)
        return cols[0]
