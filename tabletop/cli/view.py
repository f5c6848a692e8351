from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

import numpy as np

from tabletop.app.controller_base import TurnController
from tabletop.core.battleship_board import Cell
from tabletop.core.board import Player, grid_to_ascii, thawed
from tabletop.core.gamestate import BattleshipState, ChessState, ConnectFourState, ResultKind
from tabletop.core.phase import Phase


# =========================
# Message types
# =========================

class MessageType(Enum):
    ERR = "ERR"
    INFO = "INFO"
    YOU_MOVE = "YOU MOVE"
    OPP_MOVE = "OPP MOVE"
    RESET = "RESET"
    QUIT = "QUIT"


@dataclass(frozen=True)
class Message:
    """
    A UI message shown between board and state.
    Examples:
      [ERR] Column is full.
      [RESET] New game
    """
    type: MessageType
    text: str = ""

    def render(self) -> str:
        if self.text:
            return f"[{self.type.value}] {self.text}"
        return f"[{self.type.value}]"


# =========================
# Screen utils
# =========================

def clear_screen() -> None:
    os.system("cls" if os.name == "nt" else "clear")


FLEET_SYMBOLS = {Cell.EMPTY: ".", Cell.SHIP: "#", Cell.HIT: "X", Cell.MISS: "o", Cell.SUNK: "X"}
ATTACK_SYMBOLS = {Cell.EMPTY: ".", Cell.HIT: "X", Cell.MISS: "o", Cell.SUNK: "*"}
DISC_SYMBOLS = {p.value: p.symbol() for p in Player}


def fen_rows(position: str) -> List[str]:
    """Expand the placement field of a FEN into 8 strings of 8 chars, rank 8 first."""
    rows = []
    for rank in position.split(" ", 1)[0].split("/"):
        row = ""
        for ch in rank:
            row += "." * int(ch) if ch.isdigit() else ch
        rows.append(row)
    return rows


# =========================
# View (board + message + state)
# =========================

class CliView:
    """
    Responsible ONLY for rendering:
      1) board(s) of whichever game the controller runs
      2) message
      3) state line

    It does NOT:
      - parse input
      - execute game logic
    """

    def __init__(self, *, prompt: str = "> ") -> None:
        self.prompt = prompt
        self._message: Optional[Message] = None

    # ---------- Message API ----------

    def set_message(self, msg: Optional[Message]) -> None:
        self._message = msg

    def set_error(self, text: str) -> None:
        self._message = Message(MessageType.ERR, text)

    def set_info(self, text: str = "") -> None:
        self._message = Message(MessageType.INFO, text) if text else None

    def set_move(self, text: str = "", is_you: bool = False) -> None:
        if text:
            t = MessageType.YOU_MOVE if is_you else MessageType.OPP_MOVE
            self._message = Message(t, text)
        else:
            self._message = None

    @property
    def message(self) -> Optional[Message]:
        return self._message

    # ---------- Render ----------

    def render(self, ctrl: TurnController) -> None:
        clear_screen()
        print(self.compose(ctrl))
        print(self.prompt, end="", flush=True)

    def compose(self, ctrl: TurnController) -> str:
        """Whole screen as text: board, message, state line."""
        lines = [self._board(ctrl), ""]
        lines.append(self._message.render() if self._message else "")
        lines.append(self._state_line(ctrl))
        return "\n".join(lines)

    def _board(self, ctrl: TurnController) -> str:
        st = ctrl.state
        if st is None or ctrl.phase == Phase.MENU:
            return f"{ctrl.game_name.upper()}\n\nChoose a mode: /bot or /pvp"
        if isinstance(st, BattleshipState):
            return self._battleship(ctrl, st)
        if isinstance(st, ConnectFourState):
            return self._connect_four(st)
        if isinstance(st, ChessState):
            return self._chess(st)
        return ""

    def _battleship(self, ctrl: TurnController, st: BattleshipState) -> str:
        if ctrl.phase in (Phase.PASS_P2, Phase.PASS_DEVICE):
            nxt = Player.PLAYER2 if ctrl.phase == Phase.PASS_P2 else st.current_player
            return f"Pass the device to {nxt.label()}.\nType /go when ready."

        setup = getattr(ctrl, "setup", None)
        if ctrl.phase in (Phase.SETUP_P1, Phase.SETUP_P2) and setup is not None:
            out = [f"{st.viewer.label()}: place your fleet", grid_to_ascii(setup.grid, FLEET_SYMBOLS), ""]
            if setup.is_complete:
                out.append("All ships placed. /ready to continue.")
            else:
                name, size = setup.next_ship
                orient = "horizontal" if setup.horizontal else "vertical"
                out.append(f"Next: {name} ({size}), {orient}. /rotate /random /clear")
            return "\n".join(out)

        viewer = st.viewer
        opp = viewer.opponent()
        own = thawed(st.boards[viewer])
        incoming = st.attacks[opp]
        own[incoming == Cell.MISS] = Cell.MISS
        own[incoming == Cell.SUNK] = Cell.SUNK

        sunk, lost = ctrl.fleet_stats(viewer)  # type: ignore[attr-defined]
        total = len(st.ships[viewer])
        return "\n".join([
            f"Enemy waters ({sunk}/{total} sunk)",
            grid_to_ascii(st.attacks[viewer], ATTACK_SYMBOLS),
            "",
            f"Your fleet ({lost}/{total} lost)",
            grid_to_ascii(own, FLEET_SYMBOLS),
        ])

    def _connect_four(self, st: ConnectFourState) -> str:
        board = np.array(st.board)
        out = [grid_to_ascii(board, DISC_SYMBOLS, row_labels=False)]
        out.append(" ".join(str(c + 1).rjust(2) for c in range(board.shape[1])))
        if st.win_line is not None:
            cells = ", ".join(f"{c + 1}/{board.shape[0] - r}" for r, c in st.win_line.cells)
            out.append(f"Four in a row ({st.win_line.direction.name.lower()}): {cells}")
        return "\n".join(out)

    def _chess(self, st: ChessState) -> str:
        out = []
        for i, row in enumerate(fen_rows(st.position)):
            out.append(f"{8 - i} " + " ".join(row))
        out.append("  " + " ".join("abcdefgh"))
        if st.move_history:
            out.append("")
            out.append("Moves: " + " ".join(st.move_history[-10:]))
        if st.in_check and not st.is_game_over():
            out.append("Check!")
        return "\n".join(out)

    def _state_line(self, ctrl: TurnController) -> str:
        st = ctrl.state
        if st is None:
            return ""
        mode = "vs Bot" if st.vs_bot else "2 Players"
        return f"{self._turn_indicator(ctrl)}   {ctrl.game_name} ({mode})"

    def _turn_indicator(self, ctrl: TurnController) -> str:
        st = ctrl.state
        result = st.result
        if result is not None:
            if result.winner is None:
                return "STALEMATE" if result.kind == ResultKind.STALEMATE else "DRAW"
            suffix = " (checkmate)" if result.kind == ResultKind.CHECKMATE else ""
            if st.vs_bot:
                won = result.winner == Player.PLAYER1
                return ("☆ YOU WON ☆" if won else "♨ YOU LOST ♨") + suffix
            return f"☆ {result.winner.label().upper()} WON ☆{suffix}"

        if ctrl.phase != Phase.PLAYING:
            return "SETUP" if ctrl.phase in (Phase.SETUP_P1, Phase.SETUP_P2) else "WAITING"
        if st.bot_thinking:
            return ">>> BOT THINKING <<<"
        if st.vs_bot:
            return ">>> YOUR TURN <<<" if st.current_player == Player.PLAYER1 else ">>> BOT TURN <<<"
        return f">>> {st.current_player.label().upper()} TURN <<<"
