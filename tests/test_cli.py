import numpy as np
import pytest

from tabletop.ai.config import SearchConfig
from tabletop.app.controller_base import ControllerConfig
from tabletop.app.controller_battleship import BattleshipController
from tabletop.app.controller_chess import ChessController
from tabletop.app.controller_connect_four import ConnectFourController
from tabletop.cli.commands import BATTLESHIP, CHESS, CONNECT_FOUR, CommandProcessor
from tabletop.cli.loop import CliRunner
from tabletop.cli.view import CliView, MessageType, fen_rows
from tabletop.core.board import Player
from tabletop.core.chess_rules import START_POSITION
from tabletop.core.phase import Phase


class ScriptedPoller:
    """Feeds fixed lines to the runner, then /quit."""

    def __init__(self, lines):
        self.lines = list(lines) + ["/quit"]

    def poll_line(self, timeout_sec=0.0):
        return self.lines.pop(0) if self.lines else None


@pytest.fixture
def no_render(monkeypatch):
    rendered = []
    monkeypatch.setattr(CliView, "render", lambda self, ctrl: rendered.append(self.compose(ctrl)))
    return rendered


def make_runner(ctrl, game, lines=()):
    return CliRunner(
        controller=ctrl,
        command_processor=CommandProcessor(game),
        poller=ScriptedPoller(lines),
        tick_sec=0.0,
    )


def test_connect_four_session(scheduler):
    ctrl = ConnectFourController(scheduler=scheduler, config=ControllerConfig())
    runner = make_runner(ctrl, CONNECT_FOUR)

    runner.handle_line("/pvp")
    runner.handle_line("4")
    assert ctrl.state.board[5, 3] == Player.PLAYER1
    assert runner.view.message.type == MessageType.YOU_MOVE

    runner.handle_line("9")
    assert runner.view.message.type == MessageType.ERR
    screen = runner.view.compose(ctrl)
    assert "PLAYER 2 TURN" in screen
    assert "2 Players" in screen


def test_menu_screen_before_mode(scheduler):
    ctrl = ChessController(scheduler=scheduler, config=ControllerConfig())
    screen = CliView().compose(ctrl)
    assert "/bot or /pvp" in screen


def test_bot_command_switches_mode_from_any_phase(scheduler):
    ctrl = ConnectFourController(scheduler=scheduler, config=ControllerConfig())
    runner = make_runner(ctrl, CONNECT_FOUR)
    runner.handle_line("/pvp")
    runner.handle_line("/bot")
    assert ctrl.phase == Phase.PLAYING
    assert ctrl.state.vs_bot


def test_battleship_setup_through_commands(scheduler):
    ctrl = BattleshipController(scheduler=scheduler, config=ControllerConfig(seed=1))
    runner = make_runner(ctrl, BATTLESHIP)

    runner.handle_line("/bot")
    runner.handle_line("A1")
    assert ctrl.setup.ships[0].cells[0] == (0, 0)
    assert "Next: Battleship (4), horizontal" in runner.view.compose(ctrl)

    runner.handle_line("/rotate")
    assert "vertical" in runner.view.compose(ctrl)
    runner.handle_line("/ready")
    assert runner.view.message.type == MessageType.ERR

    runner.handle_line("/clear")
    runner.handle_line("/random")
    runner.handle_line("/ready")
    assert ctrl.phase == Phase.PLAYING
    screen = runner.view.compose(ctrl)
    assert "Enemy waters (0/5 sunk)" in screen
    assert "Your fleet (0/5 lost)" in screen


def test_two_player_battleship_hides_boards_between_turns(scheduler):
    ctrl = BattleshipController(scheduler=scheduler, config=ControllerConfig(seed=2))
    runner = make_runner(ctrl, BATTLESHIP)
    for line in ("/pvp", "/random", "/ready"):
        runner.handle_line(line)
    assert "Pass the device to Player 2" in runner.view.compose(ctrl)

    for line in ("/go", "/random", "/ready"):
        runner.handle_line(line)
    assert ctrl.phase == Phase.PLAYING

    misses = np.argwhere(ctrl.state.boards[Player.PLAYER2] == 0)
    r, c = misses[0]
    runner.handle_line(f"{chr(ord('A') + int(r))}{int(c) + 1}")
    assert ctrl.phase == Phase.PASS_DEVICE
    screen = runner.view.compose(ctrl)
    assert "Enemy waters" not in screen
    assert "/go" in screen


def test_chess_screen_shows_history(scheduler):
    ctrl = ChessController(scheduler=scheduler, config=ControllerConfig())
    runner = make_runner(ctrl, CHESS)
    runner.handle_line("/pvp")
    runner.handle_line("e2e4")
    screen = runner.view.compose(ctrl)
    assert "Moves: e4" in screen
    assert "4 . . . . P . . ." in screen


def test_run_pumps_bot_and_quits(scheduler, no_render):
    ctrl = ConnectFourController(
        scheduler=scheduler,
        config=ControllerConfig(bot_delay=0.0),
        search=SearchConfig(max_depth=1),
    )
    runner = make_runner(ctrl, CONNECT_FOUR, ["/bot", "4", ""])
    runner.run()

    assert not runner.running
    assert ctrl.closed
    assert no_render
    assert any("Exiting" in s or "TURN" in s for s in no_render)


def test_fen_rows():
    rows = fen_rows(START_POSITION)
    assert rows[0] == "rnbqkbnr"
    assert rows[4] == "........"
    assert len(rows) == 8


def test_poll_waits_no_longer_than_the_next_bot_step(clock, scheduler):
    ctrl = ConnectFourController(scheduler=scheduler, config=ControllerConfig(bot_delay=0.02))
    runner = CliRunner(controller=ctrl, poller=ScriptedPoller([]), tick_sec=0.05)
    assert runner.poll_timeout() == 0.05

    runner.handle_line("/bot")
    runner.handle_line("4")
    assert runner.poll_timeout() == pytest.approx(0.02)

    clock.advance(0.5)
    assert runner.poll_timeout() == 0.0


def test_exit_drops_pending_timers(clock, scheduler, no_render):
    ran = []
    scheduler.call_later(5.0, lambda: ran.append("late"))
    ctrl = ChessController(scheduler=scheduler, config=ControllerConfig())
    make_runner(ctrl, CHESS).run()

    clock.advance(10.0)
    assert scheduler.run_due() == 0
    assert ran == []
    assert scheduler.next_deadline() is None
