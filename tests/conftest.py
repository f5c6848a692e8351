"""
Shared fixtures: a manual clock so deferred bot steps run without sleeping,
a seeded random source, and a scripted chess move validator for search tests.
"""

import logging
import random
from typing import Dict, Iterable, Iterator, List, Optional

import numpy as np
import pytest

from tabletop.config import BOARD_SIZE
from tabletop.core.battleship_board import Ship
from tabletop.core.board import Player, frozen, thawed
from tabletop.core.connect_four_board import COLS, ROWS, create_board
from tabletop.core.move import ChessMove
from tabletop.core.scheduler import Scheduler

logging.basicConfig(level=logging.WARNING)


def rows_to_board(rows: List[str]) -> np.ndarray:
    """6 strings of 7 chars, top row first: '.' empty, 'X' player 1, 'O' player 2."""
    if len(rows) != ROWS or any(len(r) != COLS for r in rows):
        raise ValueError(f"Expected {ROWS} rows of {COLS} cells")
    lookup = {".": Player.EMPTY, "X": Player.PLAYER1, "O": Player.PLAYER2}
    out = thawed(create_board())
    for r, line in enumerate(rows):
        for c, ch in enumerate(line):
            out[r, c] = lookup[ch]
    return frozen(out)


def fleet_is_valid(ships: Iterable[Ship], size: int = BOARD_SIZE) -> bool:
    """Ships are in bounds, contiguous, axis-aligned and do not overlap."""
    seen = set()
    for ship in ships:
        rows = {r for r, _ in ship.cells}
        cols = {c for _, c in ship.cells}
        if len(rows) != 1 and len(cols) != 1:
            return False
        span = sorted(cols) if len(rows) == 1 else sorted(rows)
        if span != list(range(span[0], span[0] + ship.size)):
            return False
        for r, c in ship.cells:
            if not (0 <= r < size and 0 <= c < size) or (r, c) in seen:
                return False
            seen.add((r, c))
    return True


class ManualClock:
    """Time source that only moves when a test says so."""

    def __init__(self, start: float = 0.0) -> None:
        self.t = start

    def __call__(self) -> float:
        return self.t

    def advance(self, seconds: float) -> None:
        self.t += seconds


class ScriptedValidator:
    """
    MoveValidator over a fixed game tree.

    tree maps a FEN to {move: child FEN}. Positions missing from the tree
    have no legal moves. Terminal flags come from the given sets.
    """

    def __init__(
        self,
        tree: Dict[str, Dict[ChessMove, str]],
        checkmates: Iterable[str] = (),
        stalemates: Iterable[str] = (),
    ) -> None:
        self.tree = tree
        self.checkmates = set(checkmates)
        self.stalemates = set(stalemates)
        self.enumerations = 0

    def apply(self, position: str, move: ChessMove) -> Optional[str]:
        return self.tree.get(position, {}).get(move)

    def san(self, position: str, move: ChessMove) -> Optional[str]:
        return move.uci() if self.apply(position, move) is not None else None

    def legal_moves(self, position: str) -> Iterator[ChessMove]:
        self.enumerations += 1
        return iter(list(self.tree.get(position, {})))

    def turn(self, position: str) -> Player:
        return Player.PLAYER1 if position.split(" ")[1] == "w" else Player.PLAYER2

    def is_checkmate(self, position: str) -> bool:
        return position in self.checkmates

    def is_stalemate(self, position: str) -> bool:
        return position in self.stalemates

    def is_draw(self, position: str) -> bool:
        return position in self.stalemates

    def is_check(self, position: str) -> bool:
        return position in self.checkmates

    def is_game_over(self, position: str) -> bool:
        return self.is_checkmate(position) or self.is_draw(position)


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def scheduler(clock: ManualClock) -> Scheduler:
    return Scheduler(clock=clock)


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def scripted_validator():
    """Factory: scripted_validator(tree, checkmates=..., stalemates=...)."""
    return ScriptedValidator


@pytest.fixture
def tick(clock: ManualClock, scheduler: Scheduler):
    """tick(seconds) -> number of deferred callbacks that ran."""
    def _tick(seconds: float) -> int:
        clock.advance(seconds)
        return scheduler.run_due()
    return _tick


@pytest.fixture
def board_from_rows():
    """Factory: board_from_rows(rows) -> read-only Connect-Four board."""
    return rows_to_board


@pytest.fixture
def validate_fleet():
    """Factory: validate_fleet(ships, size=BOARD_SIZE) -> bool."""
    return fleet_is_valid


@pytest.fixture
def drawn_board():
    """Full Connect-Four board with no four in a row anywhere."""
    return rows_to_board([
        "XOXOXOX",
        "XOXOXOX",
        "OXOXOXO",
        "OXOXOXO",
        "XOXOXOX",
        "XOXOXOX",
    ])
