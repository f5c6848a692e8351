"""Central configuration for runtime-tunable parameters.

All values can be overridden via environment variables so the terminal
adapter runs with visible "thinking" delays by default, while tests
construct controllers with zero delay directly.
"""

from __future__ import annotations

import os

# ===========================================================================
# Bot thinking delays
# ===========================================================================
# Seconds between a bot's turn starting and its move being applied.
# Battleship uses the delay once per shot of a hit streak.
#   Example: export TABLETOP_BATTLESHIP_DELAY=0.2
BATTLESHIP_BOT_DELAY: float = float(os.getenv("TABLETOP_BATTLESHIP_DELAY", "0.6"))
CONNECT_FOUR_BOT_DELAY: float = float(os.getenv("TABLETOP_CONNECT_FOUR_DELAY", "0.5"))
CHESS_BOT_DELAY: float = float(os.getenv("TABLETOP_CHESS_DELAY", "0.4"))


# ===========================================================================
# Battleship
# ===========================================================================
# TABLETOP_BOARD_SIZE: width and height of a Battleship grid. Defaults to 10.
BOARD_SIZE: int = int(os.getenv("TABLETOP_BOARD_SIZE", "10"))

# Standard fleet: list of (name, size). Not overridden by env vars.
SHIPS = [
    ("Carrier", 5),
    ("Battleship", 4),
    ("Cruiser", 3),
    ("Submarine", 3),
    ("Destroyer", 2),
]

# TABLETOP_PLACEMENT_ATTEMPTS: random samples per ship before random placement
#   falls back to enumerating every valid slot.
PLACEMENT_MAX_ATTEMPTS: int = int(os.getenv("TABLETOP_PLACEMENT_ATTEMPTS", "500"))


# ===========================================================================
# Terminal loop
# ===========================================================================
# TABLETOP_TICK: seconds the terminal loop waits for input before pumping
#   deferred bot steps again.
TICK_SEC: float = float(os.getenv("TABLETOP_TICK", "0.05"))


# ===========================================================================
# Debugging and Logging
# ===========================================================================
# TABLETOP_DEBUG: If "1", enables DEBUG logging across modules.
DEBUG: bool = os.getenv("TABLETOP_DEBUG", "0") == "1"
