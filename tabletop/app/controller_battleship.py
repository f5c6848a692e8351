from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from tabletop.config import BATTLESHIP_BOT_DELAY, BOARD_SIZE
from tabletop.app.controller_base import ControllerConfig, TurnController
from tabletop.ai.battleship_ai import choose_target, forget_sunk
from tabletop.core.battleship_board import (
    FleetSetup,
    Ship,
    count_sunk_by,
    create_grid,
    place_ships_randomly,
    resolve_attack,
)
from tabletop.core.board import Coord, Player, frozen
from tabletop.core.gamestate import BattleshipState, GameResult, GameStateError
from tabletop.core.move import MoveResult
from tabletop.core.phase import Phase
from tabletop.core.scheduler import CancelToken, Scheduler

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BotSnapshot:
    """
    What one link of the bot's firing chain works on.

    Captured when the chain starts and rebuilt from each shot's outcome;
    never read back from live state.
    """
    attack_grid: np.ndarray
    fleet_grid: np.ndarray
    ships: Tuple[Ship, ...]
    hits: Tuple[Coord, ...]


class BattleshipController(TurnController):
    """
    Battleship phases:
      menu -> setup-p1 -> playing -> game-over                      (vs bot)
      menu -> setup-p1 -> pass-p2 -> setup-p2 -> playing
              playing <-> pass-device after every turn switch     (two players)

    Key rules:
      - A HIT lets the same side fire again; a MISS passes the turn.
      - The bot fires a chain of delayed shots while it keeps hitting.
    """

    game_name = "battleship"

    def __init__(self, *, scheduler: Scheduler, config: Optional[ControllerConfig] = None) -> None:
        super().__init__(
            scheduler=scheduler,
            config=config or ControllerConfig(bot_delay=BATTLESHIP_BOT_DELAY),
        )
        self.setup: Optional[FleetSetup] = None

    @property
    def bs(self) -> BattleshipState:
        if not isinstance(self.state, BattleshipState):
            raise GameStateError("No Battleship game in progress.")
        return self.state

    # ============================================================
    # Base hooks
    # ============================================================

    def new_state(self, vs_bot: bool) -> BattleshipState:
        return BattleshipState(vs_bot=vs_bot)

    def on_setup_started(self) -> None:
        self.setup = FleetSetup()

    # ============================================================
    # Setup intents
    # ============================================================

    def _setup_check(self) -> Optional[MoveResult]:
        if self.setup is None or self.phase not in (Phase.SETUP_P1, Phase.SETUP_P2):
            return MoveResult.fail("Not placing ships.")
        return None

    def toggle_orientation(self) -> MoveResult:
        err = self._setup_check()
        if err:
            return err
        self.setup.toggle_orientation()
        self._notify()
        return MoveResult.ok()

    def preview(self, row: int, col: int) -> Tuple[Coord, ...]:
        if self._setup_check():
            return ()
        return self.setup.preview(row, col)

    def place_ship(self, row: int, col: int) -> MoveResult:
        err = self._setup_check()
        if err:
            return err
        if self.setup.is_complete:
            return MoveResult.fail("All ships are placed.")
        name, size = self.setup.next_ship
        if not self.setup.place(row, col):
            return MoveResult.fail(f"{name} ({size}) does not fit there.")
        self._notify()
        return MoveResult.ok()

    def randomize_fleet(self) -> MoveResult:
        err = self._setup_check()
        if err:
            return err
        self.setup.randomize(self.rng)
        self._notify()
        return MoveResult.ok()

    def clear_fleet(self) -> MoveResult:
        err = self._setup_check()
        if err:
            return err
        self.setup.clear()
        self._notify()
        return MoveResult.ok()

    def confirm_fleet(self) -> MoveResult:
        """'Ready': commit the placed fleet for the player in setup."""
        err = self._setup_check()
        if err:
            return err
        if not self.setup.is_complete:
            return MoveResult.fail("Place all ships first.")

        st = self.bs
        player = Player.PLAYER1 if self.phase == Phase.SETUP_P1 else Player.PLAYER2
        st.boards[player] = frozen(self.setup.grid)
        st.ships[player] = tuple(self.setup.ships)
        self.setup = None

        if player == Player.PLAYER1 and st.vs_bot:
            grid, ships = place_ships_randomly(self.rng)
            st.boards[Player.PLAYER2] = grid
            st.ships[Player.PLAYER2] = ships
            self._start_play()
        elif player == Player.PLAYER1:
            self._enter(Phase.PASS_P2)
        else:
            self._start_play()

        self._notify()
        return MoveResult.ok()

    def confirm_pass(self) -> MoveResult:
        """The next player confirms they alone are looking at the screen."""
        if self.phase == Phase.PASS_P2:
            self._enter(Phase.SETUP_P2)
            self.setup = FleetSetup()
        elif self.phase == Phase.PASS_DEVICE:
            self._enter(Phase.PLAYING)
        else:
            return MoveResult.fail("Nothing to confirm.")
        self._notify()
        return MoveResult.ok()

    def _start_play(self) -> None:
        st = self.bs
        st.attacks = {Player.PLAYER1: frozen(create_grid()), Player.PLAYER2: frozen(create_grid())}
        st.current_player = Player.PLAYER1
        st.bot_hits = ()
        self._enter(Phase.PLAYING)

    # ============================================================
    # Attacks
    # ============================================================

    def attack(self, row: int, col: int) -> MoveResult:
        err = self._human_turn_check()
        if err:
            return err

        st = self.bs
        attacker = st.current_player
        defender = attacker.opponent()
        outcome = resolve_attack(
            st.attacks[attacker], st.boards[defender], st.ships[defender], row, col
        )
        if outcome is None:
            return MoveResult.fail("Already fired there." if 0 <= row < BOARD_SIZE
                                   and 0 <= col < BOARD_SIZE else "Out of bounds.")

        st.attacks[attacker] = outcome.attack_grid
        st.boards[defender] = outcome.fleet_grid
        for ship in outcome.newly_sunk:
            logger.info("%s sank %s", attacker.label(), ship.name)

        if outcome.all_sunk:
            self._finish_game(GameResult.win(attacker))
            self._notify()
            return MoveResult.ok(is_winning_move=True)

        if not outcome.hit:
            st.switch_turn()
            if st.vs_bot:
                self.maybe_start_bot()
            else:
                self._enter(Phase.PASS_DEVICE)

        self._notify()
        return MoveResult.ok()

    # ============================================================
    # Bot chain
    # ============================================================

    def maybe_start_bot(self) -> None:
        if not self._bot_should_move():
            return
        st = self.bs
        snapshot = BotSnapshot(
            attack_grid=frozen(st.attacks[Player.PLAYER2]),
            fleet_grid=frozen(st.boards[Player.PLAYER1]),
            ships=tuple(st.ships[Player.PLAYER1]),
            hits=tuple(st.bot_hits),
        )
        self._schedule_bot(lambda token: self._bot_fire(token, snapshot))

    def _bot_fire(self, token: CancelToken, snap: BotSnapshot) -> None:
        """One link: fire once from snap, publish, then chain on a HIT."""
        st = self.bs
        target = choose_target(snap.attack_grid, snap.hits, self.rng)
        if target is None:
            raise GameStateError("Bot has no cell left to fire at on a live board.")

        outcome = resolve_attack(snap.attack_grid, snap.fleet_grid, snap.ships, *target)
        if outcome is None:
            raise GameStateError(f"Bot chose an already fired cell: {target}")
        hits = snap.hits
        if outcome.hit:
            hits = forget_sunk(hits + (target,), outcome.newly_sunk)
        logger.debug("bot fired at %s: %s", target, "HIT" if outcome.hit else "MISS")

        st.attacks[Player.PLAYER2] = outcome.attack_grid
        st.boards[Player.PLAYER1] = outcome.fleet_grid
        st.bot_hits = hits

        if outcome.all_sunk:
            self._finish_game(GameResult.win(Player.PLAYER2))
            self._finish_bot(token)
            self._notify()
            return

        if outcome.hit:
            nxt = BotSnapshot(outcome.attack_grid, outcome.fleet_grid, snap.ships, hits)
            self._continue_bot(token, lambda t: self._bot_fire(t, nxt))
            self._notify()
            return

        st.switch_turn()
        self._finish_bot(token)
        self._notify()

    # ============================================================
    # View helpers
    # ============================================================

    def fleet_stats(self, viewer: Player) -> Tuple[int, int]:
        """(enemy ships the viewer sank, own ships the viewer lost)."""
        st = self.bs
        opp = viewer.opponent()
        sunk = count_sunk_by(st.attacks[viewer], st.ships[opp])
        lost = count_sunk_by(st.attacks[opp], st.ships[viewer])
        return sunk, lost
