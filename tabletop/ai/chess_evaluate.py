"""
Material evaluation for chess positions.

Works directly on the piece-placement field of a FEN string, so it needs no
rules engine: uppercase letters are White (positive), lowercase are Black
(negative). There is no positional term.
"""

from tabletop.ai.config import PIECE_VALUES


def evaluate(position: str) -> int:
    """
    Material balance White minus Black.

    Example:
        >>> evaluate("rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1")
        0
    """
    placement = position.split(" ", 1)[0]
    score = 0
    for ch in placement:
        if not ch.isalpha():
            continue
        value = PIECE_VALUES[ch.lower()]
        score += value if ch.isupper() else -value
    return score
