import numpy as np
import pytest

from tabletop.app.controller_base import ControllerConfig
from tabletop.app.controller_battleship import BattleshipController
from tabletop.core.battleship_board import Cell, Ship, create_grid
from tabletop.core.board import Player, frozen
from tabletop.core.gamestate import ResultKind
from tabletop.core.phase import Phase

DELAY = 0.6


@pytest.fixture
def ctrl(scheduler):
    c = BattleshipController(scheduler=scheduler, config=ControllerConfig(bot_delay=DELAY, seed=7))
    yield c
    c.close()


def set_fleet(state, player, ships):
    grid = create_grid()
    for ship in ships:
        for r, c in ship.cells:
            grid[r, c] = Cell.SHIP
    state.boards[player] = frozen(grid)
    state.ships[player] = tuple(ships)


def start_two_player(ctrl):
    assert ctrl.select_mode(False).success
    assert ctrl.randomize_fleet().success
    assert ctrl.confirm_fleet().success
    assert ctrl.phase == Phase.PASS_P2
    assert ctrl.confirm_pass().success
    assert ctrl.phase == Phase.SETUP_P2
    assert ctrl.randomize_fleet().success
    assert ctrl.confirm_fleet().success
    assert ctrl.phase == Phase.PLAYING


def start_vs_bot(ctrl):
    assert ctrl.select_mode(True).success
    assert ctrl.randomize_fleet().success
    assert ctrl.confirm_fleet().success
    assert ctrl.phase == Phase.PLAYING


# ---------- Setup ----------

def test_ready_requires_full_fleet(ctrl):
    ctrl.select_mode(False)
    result = ctrl.confirm_fleet()
    assert not result.success
    assert ctrl.phase == Phase.SETUP_P1


def test_manual_placement_and_rotation(ctrl):
    ctrl.select_mode(True)
    assert ctrl.place_ship(0, 0).success
    assert ctrl.toggle_orientation().success
    assert ctrl.preview(1, 9) == ((1, 9), (2, 9), (3, 9), (4, 9))
    assert ctrl.place_ship(1, 9).success
    assert not ctrl.place_ship(0, 3).success  # overlaps the carrier
    assert ctrl.clear_fleet().success
    assert ctrl.setup.ships == []


def test_setup_intents_rejected_during_play(ctrl):
    start_vs_bot(ctrl)
    assert not ctrl.place_ship(0, 0).success
    assert not ctrl.randomize_fleet().success
    assert ctrl.preview(0, 0) == ()


def test_bot_fleet_is_placed_when_player_is_ready(ctrl, validate_fleet):
    start_vs_bot(ctrl)
    st = ctrl.state
    assert validate_fleet(st.ships[Player.PLAYER2])
    assert int(np.count_nonzero(st.boards[Player.PLAYER2] == Cell.SHIP)) == 17
    assert st.viewer == Player.PLAYER1


def test_same_seed_same_fleets(scheduler):
    fleets = []
    for _ in range(2):
        c = BattleshipController(scheduler=scheduler, config=ControllerConfig(seed=11))
        start_vs_bot(c)
        fleets.append((c.state.boards[Player.PLAYER1], c.state.boards[Player.PLAYER2]))
        c.close()
    assert np.array_equal(fleets[0][0], fleets[1][0])
    assert np.array_equal(fleets[0][1], fleets[1][1])


# ---------- Two-player play ----------

def test_hit_keeps_the_turn_and_sinking_last_ship_wins(ctrl):
    start_two_player(ctrl)
    st = ctrl.state
    set_fleet(st, Player.PLAYER2, [Ship("Destroyer", 2, ((0, 0), (0, 1)))])

    first = ctrl.attack(0, 0)
    assert first.success and not first.is_winning_move
    assert st.current_player == Player.PLAYER1
    assert ctrl.phase == Phase.PLAYING
    assert st.attacks[Player.PLAYER1][0, 0] == Cell.HIT

    second = ctrl.attack(0, 1)
    assert second.is_winning_move
    assert ctrl.phase == Phase.GAME_OVER
    assert st.result.kind == ResultKind.WIN
    assert st.result.winner == Player.PLAYER1
    assert st.attacks[Player.PLAYER1][0, 0] == Cell.SUNK
    assert st.attacks[Player.PLAYER1][0, 1] == Cell.SUNK
    assert ctrl.fleet_stats(Player.PLAYER1) == (1, 0)
    assert not ctrl.attack(5, 5).success


def test_miss_passes_the_device(ctrl):
    start_two_player(ctrl)
    st = ctrl.state
    set_fleet(st, Player.PLAYER2, [Ship("Destroyer", 2, ((0, 0), (0, 1)))])

    assert ctrl.attack(9, 9).success
    assert ctrl.phase == Phase.PASS_DEVICE
    assert st.current_player == Player.PLAYER2
    assert not ctrl.attack(5, 5).success

    assert ctrl.confirm_pass().success
    assert ctrl.phase == Phase.PLAYING
    assert st.viewer == Player.PLAYER2


def test_repeat_and_out_of_bounds_attacks_change_nothing(ctrl):
    start_two_player(ctrl)
    st = ctrl.state
    set_fleet(st, Player.PLAYER2, [Ship("Destroyer", 2, ((0, 0), (0, 1)))])
    ctrl.attack(0, 0)
    before = st.attacks[Player.PLAYER1].copy()

    repeat = ctrl.attack(0, 0)
    assert not repeat.success
    assert repeat.error_message == "Already fired there."
    assert ctrl.attack(10, 0).error_message == "Out of bounds."
    assert np.array_equal(st.attacks[Player.PLAYER1], before)
    assert st.current_player == Player.PLAYER1


# ---------- Bot chain ----------

def bot_turn_setup(ctrl, own_ship=Ship("Cruiser", 3, ((1, 3), (2, 3), (3, 3)))):
    """Player 1's only ship is already hit at (3,3); player 1 then misses, handing the bot its turn."""
    start_vs_bot(ctrl)
    st = ctrl.state
    set_fleet(st, Player.PLAYER2, [Ship("Destroyer", 2, ((0, 0), (0, 1)))])
    set_fleet(st, Player.PLAYER1, [own_ship])

    bot_attacks = create_grid()
    bot_attacks[3, 3] = Cell.HIT
    fleet = st.boards[Player.PLAYER1].copy()
    fleet[3, 3] = Cell.HIT
    st.attacks[Player.PLAYER2] = frozen(bot_attacks)
    st.boards[Player.PLAYER1] = frozen(fleet)
    st.bot_hits = ((3, 3),)

    assert ctrl.attack(9, 9).success
    return st


def test_bot_waits_for_the_delay_and_blocks_human(ctrl, tick):
    st = bot_turn_setup(ctrl)
    assert st.current_player == Player.PLAYER2
    assert st.bot_thinking
    assert ctrl.bot_busy
    assert ctrl.phase == Phase.PLAYING  # no pass-device screen against the bot

    assert ctrl.attack(5, 5).error_message == "Bot is thinking."
    assert tick(DELAY - 0.01) == 0
    assert st.attacks[Player.PLAYER2][2, 3] == Cell.EMPTY


def test_bot_keeps_firing_while_it_hits(ctrl, tick):
    st = bot_turn_setup(ctrl)

    assert tick(DELAY) == 1
    assert st.attacks[Player.PLAYER2][2, 3] == Cell.HIT
    assert st.current_player == Player.PLAYER2
    assert st.bot_thinking
    assert st.bot_hits == ((3, 3), (2, 3))

    # (3,3) still has an unfired neighbour below, which is water
    assert tick(DELAY) == 1
    assert st.attacks[Player.PLAYER2][4, 3] == Cell.MISS
    assert st.current_player == Player.PLAYER1
    assert not st.bot_thinking
    assert not ctrl.bot_busy
    assert ctrl.attack(8, 8).success


def test_bot_sinking_last_ship_wins(ctrl, tick):
    st = bot_turn_setup(ctrl, Ship("Destroyer", 2, ((2, 3), (3, 3))))

    assert tick(DELAY) == 1
    assert ctrl.phase == Phase.GAME_OVER
    assert st.result.winner == Player.PLAYER2
    assert st.bot_hits == ()
    assert not st.bot_thinking
    assert ctrl.fleet_stats(Player.PLAYER1) == (0, 1)


@pytest.mark.parametrize("cancel", ["reset", "back_to_menu", "close"])
def test_cancel_before_first_shot(ctrl, tick, cancel):
    st = bot_turn_setup(ctrl)
    getattr(ctrl, cancel)()

    assert tick(DELAY * 3) == 0
    assert st.attacks[Player.PLAYER2][2, 3] == Cell.EMPTY
    assert not ctrl.bot_busy


@pytest.mark.parametrize("cancel", ["reset", "back_to_menu", "close"])
def test_cancel_mid_chain(ctrl, tick, cancel):
    st = bot_turn_setup(ctrl)
    assert tick(DELAY) == 1
    snapshot = st.attacks[Player.PLAYER2].copy()

    getattr(ctrl, cancel)()
    assert tick(DELAY * 3) == 0
    # the abandoned state is not touched by the discarded chain
    assert np.array_equal(st.attacks[Player.PLAYER2], snapshot)


def test_reset_starts_fresh_game_in_same_mode(ctrl, tick):
    bot_turn_setup(ctrl)
    assert ctrl.reset().success
    assert ctrl.phase == Phase.SETUP_P1
    assert ctrl.state.vs_bot
    assert not ctrl.state.bot_thinking
    assert np.count_nonzero(ctrl.state.attacks[Player.PLAYER2]) == 0


def test_back_to_menu_and_close(ctrl):
    seen = []
    ctrl.subscribe(lambda c: seen.append(c.phase))
    start_vs_bot(ctrl)
    assert ctrl.back_to_menu().success
    assert ctrl.phase == Phase.MENU
    assert ctrl.state is None
    assert seen[-1] == Phase.MENU

    ctrl.close()
    ctrl.close()
    assert ctrl.closed
    assert not ctrl.select_mode(True).success
