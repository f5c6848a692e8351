from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

FILES = "abcdefgh"
PROMOTIONS = "qrbn"


@dataclass(frozen=True)
class ChessMove:
    """
    A chess move as (from, to, promotion) in algebraic squares, e.g. e7 -> e8 = q.
    Legality is decided by the move validator, not here.
    """
    from_square: str
    to_square: str
    promotion: Optional[str] = None

    def __post_init__(self):
        for sq in (self.from_square, self.to_square):
            if len(sq) != 2 or sq[0] not in FILES or sq[1] not in "12345678":
                raise ValueError(f"Invalid square: {sq!r}")
        if self.promotion is not None and self.promotion not in PROMOTIONS:
            raise ValueError(f"Invalid promotion piece: {self.promotion!r}")

    @staticmethod
    def from_uci(text: str) -> "ChessMove":
        """Parse 'e2e4' / 'e7e8q'."""
        raw = text.strip().lower()
        if len(raw) not in (4, 5):
            raise ValueError(f"Invalid move: {text!r}")
        promotion = raw[4] if len(raw) == 5 else None
        return ChessMove(raw[:2], raw[2:4], promotion)

    def uci(self) -> str:
        return f"{self.from_square}{self.to_square}{self.promotion or ''}"

    def __str__(self) -> str:
        return self.uci()


@dataclass
class MoveResult:
    """Result of a move, attack, placement or other player intent."""
    success: bool
    is_winning_move: bool = False
    error_message: str = ""

    @staticmethod
    def ok(*, is_winning_move: bool = False) -> "MoveResult":
        return MoveResult(
            success=True,
            is_winning_move=is_winning_move,
            error_message="",
        )

    @staticmethod
    def fail(msg: str) -> "MoveResult":
        return MoveResult(
            success=False,
            is_winning_move=False,
            error_message=msg,
        )
