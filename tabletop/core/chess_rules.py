"""
Chess move validation as a narrow capability.

The engines never encode chess rules. They consume a MoveValidator, which
works on positions exchanged as FEN strings: apply a move, enumerate legal
moves, and answer terminal-state queries. PythonChessValidator implements
it on top of python-chess.
"""

from __future__ import annotations

from typing import Iterator, Optional, Protocol, Tuple

import chess

from tabletop.core.board import Player
from tabletop.core.move import ChessMove

START_POSITION = chess.STARTING_FEN


def repetition_key(position: str) -> str:
    """The FEN without its move clocks; equal keys are the same position for repetition."""
    return " ".join(position.split(" ")[:4])


class MoveValidator(Protocol):
    def apply(self, position: str, move: ChessMove) -> Optional[str]:
        """New position after move, or None if move is illegal."""
        ...

    def san(self, position: str, move: ChessMove) -> Optional[str]:
        """Standard algebraic notation of move in position, or None if illegal."""
        ...

    def legal_moves(self, position: str) -> Iterator[ChessMove]:
        """Fresh iterator over legal moves; may be called again to restart."""
        ...

    def turn(self, position: str) -> Player:
        ...

    def is_checkmate(self, position: str) -> bool:
        ...

    def is_stalemate(self, position: str) -> bool:
        ...

    def is_draw(self, position: str) -> bool:
        ...

    def is_check(self, position: str) -> bool:
        ...

    def is_game_over(self, position: str) -> bool:
        ...


def _to_chess_move(move: ChessMove) -> chess.Move:
    promotion = chess.Piece.from_symbol(move.promotion).piece_type if move.promotion else None
    return chess.Move(
        chess.parse_square(move.from_square),
        chess.parse_square(move.to_square),
        promotion=promotion,
    )


def _from_chess_move(move: chess.Move) -> ChessMove:
    promotion = chess.piece_symbol(move.promotion) if move.promotion else None
    return ChessMove(
        chess.square_name(move.from_square),
        chess.square_name(move.to_square),
        promotion,
    )


class PythonChessValidator:
    """
    MoveValidator backed by python-chess.

    A move without a promotion piece that needs one promotes to a queen; a
    promotion piece given for a move that is not a promotion is ignored.
    Draws cover stalemate, insufficient material and the fifty-move rule.
    A FEN carries no history, so repetition is counted by the caller using
    repetition_key().
    """

    def _board(self, position: str) -> chess.Board:
        return chess.Board(position)

    def _resolve(self, board: chess.Board, move: ChessMove) -> Optional[chess.Move]:
        candidate = _to_chess_move(move)
        if candidate in board.legal_moves:
            return candidate
        if move.promotion is None:
            candidate = chess.Move(candidate.from_square, candidate.to_square, promotion=chess.QUEEN)
        else:
            candidate = chess.Move(candidate.from_square, candidate.to_square)
        if candidate in board.legal_moves:
            return candidate
        return None

    def _push(self, position: str, move: ChessMove) -> Optional[Tuple[chess.Board, str]]:
        board = self._board(position)
        resolved = self._resolve(board, move)
        if resolved is None:
            return None
        san = board.san(resolved)
        board.push(resolved)
        return board, san

    def apply(self, position: str, move: ChessMove) -> Optional[str]:
        pushed = self._push(position, move)
        return pushed[0].fen() if pushed else None

    def san(self, position: str, move: ChessMove) -> Optional[str]:
        pushed = self._push(position, move)
        return pushed[1] if pushed else None

    def legal_moves(self, position: str) -> Iterator[ChessMove]:
        board = self._board(position)
        return iter([_from_chess_move(m) for m in board.legal_moves])

    def turn(self, position: str) -> Player:
        return Player.PLAYER1 if self._board(position).turn == chess.WHITE else Player.PLAYER2

    def is_checkmate(self, position: str) -> bool:
        return self._board(position).is_checkmate()

    def is_stalemate(self, position: str) -> bool:
        return self._board(position).is_stalemate()

    def is_draw(self, position: str) -> bool:
        board = self._board(position)
        return board.is_stalemate() or board.is_insufficient_material() or board.is_fifty_moves()

    def is_check(self, position: str) -> bool:
        return self._board(position).is_check()

    def is_game_over(self, position: str) -> bool:
        return self.is_checkmate(position) or self.is_draw(position)
