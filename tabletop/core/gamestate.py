from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

import numpy as np

from tabletop.core.battleship_board import Ship, create_grid
from tabletop.core.board import Coord, Player
from tabletop.core.connect_four_board import WinLine, create_board
from tabletop.core.phase import Phase


class GameStateError(RuntimeError):
    """Raised when game state invariants would be broken."""


class ResultKind(Enum):
    WIN = "win"
    DRAW = "draw"
    CHECKMATE = "checkmate"
    STALEMATE = "stalemate"


@dataclass(frozen=True)
class GameResult:
    """Terminal result. winner is None for draws and stalemates."""
    kind: ResultKind
    winner: Optional[Player] = None

    @property
    def is_draw(self) -> bool:
        return self.winner is None

    @staticmethod
    def win(winner: Player) -> "GameResult":
        return GameResult(ResultKind.WIN, winner)

    @staticmethod
    def draw() -> "GameResult":
        return GameResult(ResultKind.DRAW, None)


@dataclass
class GameState:
    """
    State shared by every game.

    A GameState is created on mode selection and discarded on reset; the
    result is written exactly once.
    """
    vs_bot: bool
    phase: Phase = Phase.SETUP_P1
    current_player: Player = Player.PLAYER1
    bot_thinking: bool = False
    result: Optional[GameResult] = None

    def is_game_over(self) -> bool:
        return self.result is not None

    def set_result(self, result: GameResult) -> None:
        if self.result is not None:
            raise GameStateError(f"Result already set: {self.result}")
        self.result = result

    def switch_turn(self) -> None:
        self.current_player = self.current_player.opponent()

    @property
    def bot_player(self) -> Optional[Player]:
        """The bot always plays second."""
        return Player.PLAYER2 if self.vs_bot else None


@dataclass
class BattleshipState(GameState):
    """
    boards[p]   : p's own fleet grid (EMPTY/SHIP/HIT)
    attacks[p]  : shots p has fired at the opponent (EMPTY/HIT/MISS/SUNK)
    ships[p]    : p's fleet
    bot_hits    : bot's unresolved hits, oldest first
    """
    boards: dict = field(default_factory=lambda: {Player.PLAYER1: create_grid(), Player.PLAYER2: create_grid()})
    attacks: dict = field(default_factory=lambda: {Player.PLAYER1: create_grid(), Player.PLAYER2: create_grid()})
    ships: dict = field(default_factory=lambda: {Player.PLAYER1: (), Player.PLAYER2: ()})
    bot_hits: Tuple[Coord, ...] = ()

    def board(self, player: Player) -> np.ndarray:
        return self.boards[player]

    def attack_grid(self, player: Player) -> np.ndarray:
        return self.attacks[player]

    def fleet(self, player: Player) -> Tuple[Ship, ...]:
        return self.ships[player]

    @property
    def viewer(self) -> Player:
        """Whose perspective the UI should show."""
        if self.vs_bot:
            return Player.PLAYER1
        if self.phase == Phase.SETUP_P2:
            return Player.PLAYER2
        return self.current_player


@dataclass
class ConnectFourState(GameState):
    board: np.ndarray = field(default_factory=create_board)
    win_line: Optional[WinLine] = None
    moves: List[int] = field(default_factory=list)


@dataclass
class ChessState(GameState):
    position: str = ""
    move_history: List[str] = field(default_factory=list)
    in_check: bool = False
    # repetition key -> times the position has occurred this game
    repetitions: Dict[str, int] = field(default_factory=dict)
