from __future__ import annotations

import argparse
import logging
from typing import Optional

from tabletop import config
from tabletop.app.controller_base import ControllerConfig, TurnController
from tabletop.app.controller_battleship import BattleshipController
from tabletop.app.controller_chess import ChessController
from tabletop.app.controller_connect_four import ConnectFourController
from tabletop.cli.commands import BATTLESHIP, CHESS, CONNECT_FOUR, CommandProcessor
from tabletop.cli.loop import CliRunner
from tabletop.core.scheduler import Scheduler

CONTROLLERS = {
    BATTLESHIP: (BattleshipController, config.BATTLESHIP_BOT_DELAY),
    CONNECT_FOUR: (ConnectFourController, config.CONNECT_FOUR_BOT_DELAY),
    CHESS: (ChessController, config.CHESS_BOT_DELAY),
}


def build_controller(game: str, seed: Optional[int] = None) -> TurnController:
    cls, delay = CONTROLLERS[game]
    return cls(scheduler=Scheduler(), config=ControllerConfig(bot_delay=delay, seed=seed))


def run(game: str, bot: Optional[bool], seed: Optional[int]) -> None:
    ctrl = build_controller(game, seed)
    if bot is not None:
        ctrl.select_mode(bot)
    runner = CliRunner(controller=ctrl, command_processor=CommandProcessor(game), tick_sec=config.TICK_SEC)
    runner.run()


def main():
    ap = argparse.ArgumentParser(description="Battleship, Connect-Four and Chess in the terminal.")
    ap.add_argument("game", choices=list(CONTROLLERS))
    ap.add_argument(
        "--bot",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Play against the bot (--bot) or a second player (--no-bot). Omit to choose in the menu.",
    )
    ap.add_argument("--seed", type=int, default=None, help="Seed for placement and bot tie-breaks")
    ap.add_argument("--debug", action="store_true", help="Enable DEBUG logging")

    args = ap.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if (args.debug or config.DEBUG) else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    run(args.game, args.bot, args.seed)


if __name__ == "__main__":
    main()
