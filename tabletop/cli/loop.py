from __future__ import annotations

import logging
import os
import sys
import time
from typing import List, Optional

from tabletop.app.controller_base import TurnController
from tabletop.cli.commands import Command, CommandProcessor, CommandType, ParseResult
from tabletop.cli.view import CliView, Message, MessageType
from tabletop.config import TICK_SEC
from tabletop.core.board import Coord
from tabletop.core.move import ChessMove, MoveResult
from tabletop.core.phase import Phase

logger = logging.getLogger(__name__)


# =========================
# Non-blocking input (short polling)
# =========================

class InputPoller:
    """
    Non-blocking line input with polling.
    - Windows: msvcrt (character polling)
    - Unix: select
    """
    def __init__(self) -> None:
        self._buf: List[str] = []
        self._is_windows = (os.name == "nt")
        if self._is_windows:
            import msvcrt  # type: ignore
            self._msvcrt = msvcrt
        else:
            import select
            self._select = select

    def poll_line(self, timeout_sec: float = TICK_SEC) -> Optional[str]:
        if self._is_windows:
            end = time.time() + timeout_sec
            while time.time() < end:
                if self._msvcrt.kbhit():
                    ch = self._msvcrt.getwch()

                    if ch in ("\r", "\n"):
                        line = "".join(self._buf)
                        self._buf.clear()
                        sys.stdout.write("\n")
                        sys.stdout.flush()
                        return line.strip()

                    if ch == "\b":
                        if self._buf:
                            self._buf.pop()
                            sys.stdout.write("\b \b")
                            sys.stdout.flush()
                    else:
                        self._buf.append(ch)
                        sys.stdout.write(ch)
                        sys.stdout.flush()

                time.sleep(0.02)
            return None
        r, _, _ = self._select.select([sys.stdin], [], [], timeout_sec)
        if r:
            return sys.stdin.readline().strip()
        return None


# =========================
# Runner
# =========================

class CliRunner:
    """
    Terminal adapter loop:
      1) run due bot steps on the controller's scheduler
      2) render if dirty
      3) poll user input (tick_sec)
      4) forward the parsed intent to the controller

    The runner never touches game state; every change goes through a
    controller intent and comes back through the subscription.
    """

    def __init__(
        self,
        *,
        controller: TurnController,
        view: Optional[CliView] = None,
        command_processor: Optional[CommandProcessor] = None,
        poller: Optional[InputPoller] = None,
        tick_sec: float = TICK_SEC,
    ) -> None:
        self.ctrl = controller
        self.view = view or CliView()
        self.cmd = command_processor or CommandProcessor(controller.game_name)
        self.tick_sec = tick_sec
        self._poller = poller

        self._running = True
        self._dirty = True
        self._unsubscribe = controller.subscribe(self._on_change)

    def _on_change(self, _ctrl: TurnController) -> None:
        self._dirty = True

    @property
    def running(self) -> bool:
        return self._running

    def stop(self) -> None:
        self._running = False

    # ---------- Main loop ----------

    def run(self) -> None:
        poller = self._poller or InputPoller()
        try:
            while self._running:
                self.ctrl.scheduler.run_due()
                if self._dirty:
                    self.view.render(self.ctrl)
                    self._dirty = False

                line = poller.poll_line(timeout_sec=self.poll_timeout())
                if line is None:
                    continue
                self.handle_line(line)
        finally:
            self._unsubscribe()
            self.ctrl.close()
            self.ctrl.scheduler.cancel_all()

    def poll_timeout(self) -> float:
        """Wait for input no longer than the tick, and no longer than the next bot step."""
        scheduler = self.ctrl.scheduler
        deadline = scheduler.next_deadline()
        if deadline is None:
            return self.tick_sec
        return max(0.0, min(self.tick_sec, deadline - scheduler.now()))

    # ---------- Input dispatch ----------

    def handle_line(self, line: str) -> None:
        parsed: ParseResult = self.cmd.parse(line)
        if not parsed.ok:
            if parsed.error:
                self.view.set_error(parsed.error)
                self._dirty = True
            return

        if parsed.command is not None:
            self._handle_command(parsed.command)
        elif parsed.cell is not None:
            self._handle_cell(parsed.cell)
        elif parsed.column is not None:
            self._report(self.ctrl.drop(parsed.column), f"column {parsed.column + 1}")  # type: ignore[attr-defined]
        elif parsed.move is not None:
            self._handle_move(parsed.move)
        self._dirty = True

    def _handle_command(self, command: Command) -> None:
        t = command.type
        if t == CommandType.QUIT:
            self.view.set_message(Message(MessageType.QUIT, "Exiting..."))
            self.stop()
            return
        if t == CommandType.HELP:
            self.view.set_info(self.cmd.help_text())
            return
        if t in (CommandType.BOT, CommandType.PVP):
            if self.ctrl.phase != Phase.MENU:
                self.ctrl.back_to_menu()
            self._report(self.ctrl.select_mode(t == CommandType.BOT), "")
            return
        if t == CommandType.RESET:
            result = self.ctrl.reset()
            if result.success:
                self.view.set_message(Message(MessageType.RESET, "New game"))
            else:
                self.view.set_error(result.error_message)
            return
        if t == CommandType.MENU:
            self._report(self.ctrl.back_to_menu(), "")
            return

        # Battleship only from here on
        ctrl = self.ctrl
        handlers = {
            CommandType.ROTATE: ctrl.toggle_orientation,  # type: ignore[attr-defined]
            CommandType.RANDOM: ctrl.randomize_fleet,  # type: ignore[attr-defined]
            CommandType.CLEAR: ctrl.clear_fleet,  # type: ignore[attr-defined]
            CommandType.READY: ctrl.confirm_fleet,  # type: ignore[attr-defined]
            CommandType.GO: ctrl.confirm_pass,  # type: ignore[attr-defined]
        }
        self._report(handlers[t](), "")

    def _handle_cell(self, cell: Coord) -> None:
        row, col = cell
        label = f"{chr(ord('A') + row)}{col + 1}"
        if self.ctrl.phase in (Phase.SETUP_P1, Phase.SETUP_P2):
            self._report(self.ctrl.place_ship(row, col), "")  # type: ignore[attr-defined]
        else:
            self._report(self.ctrl.attack(row, col), label)  # type: ignore[attr-defined]

    def _handle_move(self, move: ChessMove) -> None:
        self._report(self.ctrl.move(move), move.uci())  # type: ignore[attr-defined]

    def _report(self, result: MoveResult, what: str) -> None:
        if not result.success:
            logger.debug("rejected: %s", result.error_message)
            self.view.set_error(result.error_message)
        elif what:
            self.view.set_move(what, is_you=True)
        else:
            self.view.set_message(None)
