from __future__ import annotations

import logging
import random
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, List, Optional

from tabletop.core.gamestate import GameResult, GameState, GameStateError
from tabletop.core.move import MoveResult
from tabletop.core.phase import Phase, PhaseMachine
from tabletop.core.scheduler import CancelToken, Scheduler, TimerHandle

logger = logging.getLogger(__name__)

Listener = Callable[["TurnController"], None]
BotStep = Callable[[CancelToken], None]


@dataclass
class ControllerConfig:
    bot_delay: float = 0.0
    seed: Optional[int] = None


# =========================
# Base Controller
# =========================

class TurnController(ABC):
    """
    Phase/turn sequencing shared by every game:
      - mode selection, reset, back-to-menu, teardown
      - the single in-flight bot guard
      - deferred bot steps on the host scheduler, cancelled by token

    Concrete controllers implement:
      - new_state()
      - on_setup_started()
      - maybe_start_bot()

    OOP rule:
      - Controller orchestrates.
      - Board functions handle rules.
      - AI picks moves.
      - UI adapters subscribe, render and forward intents only.
    """

    game_name: str = "game"

    def __init__(self, *, scheduler: Scheduler, config: Optional[ControllerConfig] = None) -> None:
        self.scheduler = scheduler
        self.cfg = config or ControllerConfig()
        self.rng = random.Random(self.cfg.seed)
        self.machine = PhaseMachine()
        self.state: Optional[GameState] = None

        self._listeners: List[Listener] = []
        self._token: Optional[CancelToken] = None
        self._timer: Optional[TimerHandle] = None
        self._closed = False

    # ---------- Observers ----------

    @property
    def phase(self) -> Phase:
        return self.machine.phase

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener called after every state change. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    # ---------- Lifecycle intents ----------

    def select_mode(self, vs_bot: bool) -> MoveResult:
        if self._closed:
            return MoveResult.fail("Controller is closed.")
        if self.phase != Phase.MENU:
            return MoveResult.fail("Mode can only be chosen from the menu.")
        logger.info("%s: new game (%s)", self.game_name, "vs bot" if vs_bot else "two players")
        self._start_new_state(vs_bot)
        return MoveResult.ok()

    def reset(self) -> MoveResult:
        """Discard the current game and start a fresh one in the same mode."""
        if self._closed or self.state is None:
            return MoveResult.fail("No game to reset.")
        self._cancel_bot("reset")
        logger.info("%s: reset", self.game_name)
        self._start_new_state(self.state.vs_bot)
        return MoveResult.ok()

    def back_to_menu(self) -> MoveResult:
        if self._closed:
            return MoveResult.fail("Controller is closed.")
        self._cancel_bot("menu")
        if self.phase != Phase.MENU:
            self.machine.enter(Phase.MENU)
        self.state = None
        self._notify()
        return MoveResult.ok()

    def close(self) -> None:
        """Teardown: cancel any bot chain and drop listeners. Idempotent."""
        if self._closed:
            return
        self._cancel_bot("teardown")
        self._listeners.clear()
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    def _start_new_state(self, vs_bot: bool) -> None:
        self.state = self.new_state(vs_bot)
        self._enter(Phase.SETUP_P1)
        self.on_setup_started()
        self._notify()

    # ---------- Phase helpers ----------

    def _enter(self, phase: Phase) -> None:
        self.machine.enter(phase)
        if self.state is not None:
            self.state.phase = phase

    def _finish_game(self, result: GameResult) -> None:
        if self.state is None:
            raise GameStateError("No game to finish.")
        self.state.set_result(result)
        self._enter(Phase.GAME_OVER)
        logger.info("%s: game over (%s, winner=%s)", self.game_name, result.kind.value,
                    result.winner.label() if result.winner else "none")

    def _human_turn_check(self) -> Optional[MoveResult]:
        """Failure result if a human move is not acceptable right now, else None."""
        st = self.state
        if st is None or self.phase != Phase.PLAYING:
            return MoveResult.fail("Not in play.")
        if st.is_game_over():
            return MoveResult.fail("Game is over.")
        if st.bot_thinking:
            return MoveResult.fail("Bot is thinking.")
        if st.vs_bot and st.current_player == st.bot_player:
            return MoveResult.fail("Not your turn.")
        return None

    # ---------- Bot scheduling ----------

    @property
    def bot_busy(self) -> bool:
        return self._token is not None

    def _bot_should_move(self) -> bool:
        st = self.state
        return (
            st is not None
            and st.vs_bot
            and self.phase == Phase.PLAYING
            and not st.is_game_over()
            and st.current_player == st.bot_player
            and not self.bot_busy
        )

    def _schedule_bot(self, step: BotStep) -> bool:
        """
        Start a bot computation after the thinking delay.
        The guard is set here and cleared by _finish_bot() or _cancel_bot().
        """
        if self.bot_busy or self.state is None:
            return False
        token = CancelToken()
        self._token = token
        self.state.bot_thinking = True
        self._timer = self.scheduler.call_later(self.cfg.bot_delay, lambda: self._run_step(token, step))
        logger.debug("%s: bot thinking (%.2fs)", self.game_name, self.cfg.bot_delay)
        return True

    def _continue_bot(self, token: CancelToken, step: BotStep) -> None:
        """Schedule the next link of a running chain; the guard stays set."""
        if token.cancelled or token is not self._token:
            return
        self._timer = self.scheduler.call_later(self.cfg.bot_delay, lambda: self._run_step(token, step))

    def _run_step(self, token: CancelToken, step: BotStep) -> None:
        if token.cancelled or token is not self._token:
            logger.debug("%s: stale bot step ignored (%s)", self.game_name, token.reason or "superseded")
            return
        step(token)

    def _finish_bot(self, token: CancelToken) -> None:
        if token is not self._token:
            return
        self._token = None
        self._timer = None
        if self.state is not None:
            self.state.bot_thinking = False

    def _cancel_bot(self, reason: str) -> None:
        if self._token is not None:
            logger.debug("%s: bot chain cancelled (%s)", self.game_name, reason)
            self._token.cancel(reason)
        if self._timer is not None:
            self._timer.cancel()
        self._token = None
        self._timer = None
        if self.state is not None:
            self.state.bot_thinking = False

    # =========================
    # Hooks / Abstract methods
    # =========================

    @abstractmethod
    def new_state(self, vs_bot: bool) -> GameState:
        """Fresh GameState for a new game in the given mode."""
        raise NotImplementedError

    @abstractmethod
    def on_setup_started(self) -> None:
        """Called after entering SETUP_P1. Games without setup go straight to PLAYING."""
        raise NotImplementedError

    @abstractmethod
    def maybe_start_bot(self) -> None:
        """Schedule the bot if it is its turn and nothing is in flight."""
        raise NotImplementedError
