from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from tabletop.config import BOARD_SIZE
from tabletop.core.board import Coord
from tabletop.core.connect_four_board import COLS
from tabletop.core.move import ChessMove

BATTLESHIP = "battleship"
CONNECT_FOUR = "connect-four"
CHESS = "chess"
GAMES = (BATTLESHIP, CONNECT_FOUR, CHESS)


class CommandType(Enum):
    QUIT = "quit"
    HELP = "help"
    RESET = "reset"
    MENU = "menu"
    BOT = "bot"
    PVP = "pvp"

    # Battleship setup
    ROTATE = "rotate"
    RANDOM = "random"
    CLEAR = "clear"
    READY = "ready"

    # "I am the only one looking at the screen now"
    GO = "go"


_COMMANDS = {t.value: t for t in CommandType}
_SETUP_COMMANDS = (CommandType.ROTATE, CommandType.RANDOM, CommandType.CLEAR, CommandType.READY)


@dataclass(frozen=True)
class Command:
    """Parsed command from user input."""
    type: CommandType
    raw: str


@dataclass(frozen=True)
class ParseResult:
    """
    Result of parsing one line input.
    Exactly one of (command, cell, column, move) is set on success.
    """
    command: Optional[Command] = None
    cell: Optional[Coord] = None
    column: Optional[int] = None
    move: Optional[ChessMove] = None
    error: str = ""

    @property
    def ok(self) -> bool:
        if self.error:
            return False
        return any(v is not None for v in (self.command, self.cell, self.column, self.move))


class CommandProcessor:
    """
    Parses user input line into:
      - Command (e.g. /reset)
      - Battleship cell (e.g. 'B7': row letter + column number)
      - Connect-Four column (1..7)
      - Chess move in UCI (e.g. 'e2e4', 'e7e8q')

    This class does NOT execute anything. Controllers decide what to do.
    Cells and columns come back 0-based.
    """

    def __init__(self, game: str, board_size: int = BOARD_SIZE) -> None:
        if game not in GAMES:
            raise ValueError(f"Unknown game: {game!r}")
        if board_size <= 0:
            raise ValueError("board_size must be positive")
        self.game = game
        self.board_size = board_size

    @property
    def help_cmds(self) -> str:
        cmds = ["/help", "/quit", "/reset", "/menu", "/bot", "/pvp"]
        if self.game == BATTLESHIP:
            cmds += ["/rotate", "/random", "/clear", "/ready", "/go"]
        return ", ".join(cmds)

    def help_text(self) -> str:
        if self.game == BATTLESHIP:
            row_end = chr(ord("A") + self.board_size - 1)
            move = f"Input: cell like 'B7' (A-{row_end} + 1-{self.board_size})."
        elif self.game == CONNECT_FOUR:
            move = f"Input: column number 1-{COLS}."
        else:
            move = "Input: UCI move like 'e2e4' or 'e7e8q'."
        return f"{move}\nCommands: {self.help_cmds}"

    # ---------- Public parse API ----------

    def parse(self, text: str) -> ParseResult:
        """
        Parse a raw input line.
        Returns ParseResult with exactly one field set on success.
        """
        raw = (text or "").strip()
        if not raw:
            return ParseResult(error="")  # treat as no-op line

        # slash commands
        if raw.startswith("/"):
            cmd_type = _COMMANDS.get(raw[1:].strip().lower())
            if cmd_type is None:
                return ParseResult(error=f"Unknown command: {raw}")
            if self.game != BATTLESHIP and (cmd_type in _SETUP_COMMANDS or cmd_type == CommandType.GO):
                return ParseResult(error=f"{raw} is a Battleship command.")
            return ParseResult(command=Command(cmd_type, raw))

        if self.game == BATTLESHIP:
            return self._parse_cell(raw)
        if self.game == CONNECT_FOUR:
            return self._parse_column(raw)
        return self._parse_move(raw)

    # ---------- Helpers ----------

    def _parse_cell(self, raw: str) -> ParseResult:
        # "B7": row letter + 1-based column
        if len(raw) >= 2 and raw[0].isalpha():
            rest = raw[1:].strip()
            if rest.isdigit():
                row = ord(raw[0].upper()) - ord("A")
                col = int(rest) - 1
                if not (0 <= row < self.board_size and 0 <= col < self.board_size):
                    return ParseResult(error=self._oob_msg(raw))
                return ParseResult(cell=(row, col))
        return ParseResult(error="Invalid input. Use 'B7' or /help")

    def _parse_column(self, raw: str) -> ParseResult:
        if raw.isdigit():
            col = int(raw)
            if not 1 <= col <= COLS:
                return ParseResult(error=f"Column must be 1..{COLS}")
            return ParseResult(column=col - 1)
        return ParseResult(error=f"Invalid input. Use a column 1-{COLS} or /help")

    def _parse_move(self, raw: str) -> ParseResult:
        try:
            return ParseResult(move=ChessMove.from_uci(raw))
        except ValueError:
            return ParseResult(error="Invalid input. Use 'e2e4' or /help")

    def _oob_msg(self, raw: str) -> str:
        row_end = chr(ord("A") + self.board_size - 1)
        return f"Out of bounds: {raw} (must be A-{row_end} + 1-{self.board_size})"
