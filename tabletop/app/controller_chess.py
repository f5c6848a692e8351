from __future__ import annotations

import logging
from typing import List, Optional

from tabletop.app.controller_base import ControllerConfig, TurnController
from tabletop.ai.chess_search import ChessAI
from tabletop.ai.config import CHESS_SEARCH, SearchConfig
from tabletop.config import CHESS_BOT_DELAY
from tabletop.core.chess_rules import START_POSITION, MoveValidator, PythonChessValidator, repetition_key
from tabletop.core.gamestate import ChessState, GameResult, GameStateError, ResultKind
from tabletop.core.move import ChessMove, MoveResult
from tabletop.core.phase import Phase
from tabletop.core.scheduler import CancelToken, Scheduler

logger = logging.getLogger(__name__)

THREEFOLD = 3


class ChessController(TurnController):
    """
    Chess sequencing. Rules live in the injected MoveValidator; White is
    Player 1, Black is Player 2 (the bot).
    """

    game_name = "chess"

    def __init__(
        self,
        *,
        scheduler: Scheduler,
        config: Optional[ControllerConfig] = None,
        validator: Optional[MoveValidator] = None,
        search: SearchConfig = CHESS_SEARCH,
    ) -> None:
        super().__init__(
            scheduler=scheduler,
            config=config or ControllerConfig(bot_delay=CHESS_BOT_DELAY),
        )
        self.validator: MoveValidator = validator or PythonChessValidator()
        self.search = search

    @property
    def cs(self) -> ChessState:
        if not isinstance(self.state, ChessState):
            raise GameStateError("No chess game in progress.")
        return self.state

    def new_state(self, vs_bot: bool) -> ChessState:
        st = ChessState(vs_bot=vs_bot, position=START_POSITION)
        st.repetitions[repetition_key(START_POSITION)] = 1
        return st

    def on_setup_started(self) -> None:
        self._enter(Phase.PLAYING)

    # ---------- Intents ----------

    def move(self, move: ChessMove) -> MoveResult:
        err = self._human_turn_check()
        if err:
            return err

        position = self.cs.position
        if self.validator.turn(position) != self.cs.current_player:
            return MoveResult.fail("Not your turn.")
        nxt = self.validator.apply(position, move)
        if nxt is None:
            return MoveResult.fail("Illegal move.")

        self._apply(position, move, nxt)
        self.maybe_start_bot()
        self._notify()
        return MoveResult.ok(is_winning_move=self.cs.result is not None and not self.cs.result.is_draw)

    def legal_targets(self, square: str) -> List[str]:
        """Destination squares of the current player's legal moves from square."""
        if self.state is None or self.phase != Phase.PLAYING:
            return []
        return sorted({m.to_square for m in self.validator.legal_moves(self.cs.position)
                       if m.from_square == square})

    def _apply(self, position: str, move: ChessMove, nxt: str) -> None:
        """Publish nxt and settle the result. Order: checkmate, stalemate, draw (threefold repetition included)."""
        st = self.cs
        mover = st.current_player
        st.move_history.append(self.validator.san(position, move) or move.uci())
        st.position = nxt
        st.in_check = self.validator.is_check(nxt)
        key = repetition_key(nxt)
        st.repetitions[key] = st.repetitions.get(key, 0) + 1

        if self.validator.is_checkmate(nxt):
            self._finish_game(GameResult(ResultKind.CHECKMATE, mover))
        elif self.validator.is_stalemate(nxt):
            self._finish_game(GameResult(ResultKind.STALEMATE, None))
        elif self.validator.is_draw(nxt) or st.repetitions[key] >= THREEFOLD:
            self._finish_game(GameResult.draw())
        else:
            st.current_player = self.validator.turn(nxt)

    # ---------- Bot ----------

    def maybe_start_bot(self) -> None:
        if not self._bot_should_move():
            return
        snapshot = self.cs.position
        self._schedule_bot(lambda token: self._bot_move(token, snapshot))

    def _bot_move(self, token: CancelToken, position: str) -> None:
        ai = ChessAI(self.validator, search=self.search, rng=self.rng)
        move = ai.get_best_move(position)
        if move is None:
            raise GameStateError(f"Bot found no legal move in a live position: {position}")

        nxt = self.validator.apply(position, move)
        logger.debug("bot plays %s (%d nodes)", move.uci(), ai.nodes_explored)
        self._apply(position, move, nxt)
        self._finish_bot(token)
        self._notify()
