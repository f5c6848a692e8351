"""
Minimax with alpha-beta pruning over positions supplied by a MoveValidator.

White maximizes the material score, Black minimizes it. The bot plays Black,
so it picks the root move with the lowest score after search. Each root move
is searched with a full (-inf, +inf) window so root scores are exact and
ties can be broken uniformly at random.
"""

import random
from typing import List, Optional, Tuple

from tabletop.core.chess_rules import MoveValidator
from tabletop.core.move import ChessMove
from tabletop.ai.chess_evaluate import evaluate
from tabletop.ai.config import CHESS_SEARCH, SearchConfig


class ChessAI:
    def __init__(
        self,
        validator: MoveValidator,
        search: SearchConfig = CHESS_SEARCH,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.validator = validator
        self.search = search
        self.rng = rng or random.Random()
        self.nodes_explored = 0

    def get_best_move(self, position: str) -> Optional[ChessMove]:
        """Best move for Black in position, or None if it has no legal move."""
        move, _ = self.best_move(position)
        return move

    def best_move(self, position: str) -> Tuple[Optional[ChessMove], float]:
        """(move, score) minimizing the searched score; ties broken at random."""
        self.nodes_explored = 0
        best_score = float("inf")
        best_moves: List[ChessMove] = []

        for move in self.validator.legal_moves(position):
            child = self.validator.apply(position, move)
            if child is None:
                continue
            score = self.minimax(child, self.search.max_depth - 1, float("-inf"), float("inf"), True)
            if score < best_score:
                best_score = score
                best_moves = [move]
            elif score == best_score:
                best_moves.append(move)

        if not best_moves:
            return None, evaluate(position)
        if self.search.randomize_ties:
            return self.rng.choice(best_moves), best_score
        return best_moves[0], best_score

    def minimax(
        self,
        position: str,
        depth: int,
        alpha: float,
        beta: float,
        is_maximizing: bool,
    ) -> float:
        """Alpha-beta recursion. Returns the material score of position."""
        self.nodes_explored += 1

        if depth <= 0 or self.validator.is_game_over(position):
            return evaluate(position)

        if is_maximizing:
            max_eval = float("-inf")
            for move in self.validator.legal_moves(position):
                child = self.validator.apply(position, move)
                if child is None:
                    continue
                eval_score = self.minimax(child, depth - 1, alpha, beta, False)
                max_eval = max(max_eval, eval_score)
                alpha = max(alpha, eval_score)
                if beta <= alpha:
                    break
            return max_eval

        min_eval = float("inf")
        for move in self.validator.legal_moves(position):
            child = self.validator.apply(position, move)
            if child is None:
                continue
            eval_score = self.minimax(child, depth - 1, alpha, beta, True)
            min_eval = min(min_eval, eval_score)
            beta = min(beta, eval_score)
            if beta <= alpha:
                break
        return min_eval
