from dataclasses import dataclass


# Connect-Four window weights (bot's perspective)
WEIGHT_FOUR = 100
WEIGHT_THREE = 5
WEIGHT_TWO = 2
WEIGHT_OPP_THREE = -4
WEIGHT_CENTER = 3
# Terminal scores for decisive results found during search
SCORE_WIN = 100_000
SCORE_DRAW = 0

# Chess material values; the king is never traded so it counts 0
PIECE_VALUES = {
    "p": 1,
    "n": 3,
    "b": 3,
    "r": 5,
    "q": 9,
    "k": 0,
}


@dataclass(frozen=True)
class SearchConfig:
    max_depth: int
    randomize_ties: bool = True  # False = first best move in enumeration order

    def __post_init__(self) -> None:
        # the root always expands one ply
        if self.max_depth < 1:
            raise ValueError(f"max_depth must be >= 1, got {self.max_depth}")


CONNECT_FOUR_SEARCH = SearchConfig(max_depth=5)
CHESS_SEARCH = SearchConfig(max_depth=2)
