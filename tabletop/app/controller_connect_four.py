from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from tabletop.app.controller_base import ControllerConfig, TurnController
from tabletop.ai.config import CONNECT_FOUR_SEARCH, SearchConfig
from tabletop.ai.connect_four_minimax import ConnectFourAI
from tabletop.config import CONNECT_FOUR_BOT_DELAY
from tabletop.core.board import Player, frozen
from tabletop.core.connect_four_board import COLS, drop_piece, find_win, is_board_full
from tabletop.core.gamestate import ConnectFourState, GameResult, GameStateError
from tabletop.core.move import MoveResult
from tabletop.core.phase import Phase
from tabletop.core.scheduler import CancelToken, Scheduler

logger = logging.getLogger(__name__)


class ConnectFourController(TurnController):
    """
    Connect-Four has no setup: selecting a mode goes straight to play.
    Player 1 always starts; the bot plays Player 2.
    """

    game_name = "connect-four"

    def __init__(
        self,
        *,
        scheduler: Scheduler,
        config: Optional[ControllerConfig] = None,
        search: SearchConfig = CONNECT_FOUR_SEARCH,
    ) -> None:
        super().__init__(
            scheduler=scheduler,
            config=config or ControllerConfig(bot_delay=CONNECT_FOUR_BOT_DELAY),
        )
        self.search = search

    @property
    def c4(self) -> ConnectFourState:
        if not isinstance(self.state, ConnectFourState):
            raise GameStateError("No Connect-Four game in progress.")
        return self.state

    def new_state(self, vs_bot: bool) -> ConnectFourState:
        return ConnectFourState(vs_bot=vs_bot)

    def on_setup_started(self) -> None:
        self._enter(Phase.PLAYING)

    # ---------- Intents ----------

    def drop(self, col: int) -> MoveResult:
        """Drop the current player's disc into col (0-based)."""
        err = self._human_turn_check()
        if err:
            return err
        if not 0 <= col < COLS:
            return MoveResult.fail(f"Column must be 1..{COLS}.")

        board = drop_piece(self.c4.board, col, self.c4.current_player)
        if board is None:
            return MoveResult.fail("Column is full.")

        won = self._apply(board, col)
        self.maybe_start_bot()
        self._notify()
        return MoveResult.ok(is_winning_move=won)

    def _apply(self, board: np.ndarray, col: int) -> bool:
        """Publish a new board and settle win/draw/turn. Returns True on a win."""
        st = self.c4
        mover = st.current_player
        st.board = frozen(board)
        st.moves.append(col)

        line = find_win(board, mover)
        if line is not None:
            st.win_line = line
            self._finish_game(GameResult.win(mover))
            return True
        if is_board_full(board):
            self._finish_game(GameResult.draw())
            return False

        st.switch_turn()
        return False

    # ---------- Bot ----------

    def maybe_start_bot(self) -> None:
        if not self._bot_should_move():
            return
        snapshot = frozen(self.c4.board)
        self._schedule_bot(lambda token: self._bot_drop(token, snapshot))

    def _bot_drop(self, token: CancelToken, board: np.ndarray) -> None:
        ai = ConnectFourAI(player=Player.PLAYER2, search=self.search, rng=self.rng)
        col = ai.get_best_move(board)
        if col is None:
            raise GameStateError("Bot found no column to play on a live board.")

        logger.debug("bot drops in column %d (%d nodes)", col + 1, ai.nodes_explored)
        child = drop_piece(board, col, Player.PLAYER2)
        self._apply(child, col)
        self._finish_bot(token)
        self._notify()
