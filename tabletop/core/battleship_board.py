"""
Battleship board model.

Two kinds of 10x10 grid exist per player:
  - fleet grid:  EMPTY / SHIP, with SHIP cells turning HIT when struck
  - attack grid: what the attacker knows; EMPTY until fired, then HIT / MISS,
                 and HIT cells of a fully struck ship turn SUNK

Every function here is pure: grids come in, new grids go out. Cell states
only move forward (EMPTY -> SHIP -> HIT|MISS -> SUNK); nothing reverts.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from enum import IntEnum
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

from tabletop import config
from tabletop.core.board import Coord, frozen, in_bounds, new_grid, thawed

logger = logging.getLogger(__name__)


class Cell(IntEnum):
    EMPTY = 0
    SHIP = 1
    HIT = 2
    MISS = 3
    SUNK = 4


STRUCK = (Cell.HIT, Cell.SUNK)


class PlacementError(RuntimeError):
    """No valid slot exists for a ship."""


@dataclass(frozen=True)
class Ship:
    """A placed ship: name, size and its cells in order from the bow."""
    name: str
    size: int
    cells: Tuple[Coord, ...]

    def __post_init__(self):
        if len(self.cells) != self.size:
            raise ValueError(f"{self.name}: expected {self.size} cells, got {len(self.cells)}")

    def __contains__(self, rc: Coord) -> bool:
        return rc in self.cells


@dataclass(frozen=True)
class AttackOutcome:
    """Result of a single accepted shot."""
    row: int
    col: int
    hit: bool
    attack_grid: np.ndarray
    fleet_grid: np.ndarray
    newly_sunk: Tuple[Ship, ...] = ()
    all_sunk: bool = False


# ---------- Grid construction ----------

def create_grid(size: int = config.BOARD_SIZE) -> np.ndarray:
    return new_grid(size, size)


def ship_cells(row: int, col: int, size: int, horizontal: bool) -> Tuple[Coord, ...]:
    if horizontal:
        return tuple((row, col + i) for i in range(size))
    return tuple((row + i, col) for i in range(size))


def can_place_ship(grid: np.ndarray, row: int, col: int, size: int, horizontal: bool) -> bool:
    """True if every covered cell is in bounds and EMPTY."""
    for r, c in ship_cells(row, col, size, horizontal):
        if not in_bounds(grid, r, c) or grid[r, c] != Cell.EMPTY:
            return False
    return True


def place_ship(
    grid: np.ndarray, name: str, size: int, row: int, col: int, horizontal: bool
) -> Optional[Tuple[np.ndarray, Ship]]:
    """
    Place a ship on a copy of grid.

    Returns:
        (new_grid, ship), or None if the slot is not valid.
    """
    if not can_place_ship(grid, row, col, size, horizontal):
        return None
    cells = ship_cells(row, col, size, horizontal)
    out = thawed(grid)
    for r, c in cells:
        out[r, c] = Cell.SHIP
    return out, Ship(name, size, cells)


def valid_slots(grid: np.ndarray, size: int) -> List[Tuple[int, int, bool]]:
    """Every (row, col, horizontal) at which a ship of size fits."""
    rows, cols = grid.shape
    return [
        (r, c, horizontal)
        for horizontal in (True, False)
        for r in range(rows)
        for c in range(cols)
        if can_place_ship(grid, r, c, size, horizontal)
    ]


def place_ships_randomly(
    rng: Optional[random.Random] = None,
    fleet: Sequence[Tuple[str, int]] = config.SHIPS,
    size: int = config.BOARD_SIZE,
    max_attempts: int = config.PLACEMENT_MAX_ATTEMPTS,
) -> Tuple[np.ndarray, Tuple[Ship, ...]]:
    """
    Randomly position fleet on an empty grid without overlaps.

    Each ship samples an orientation and an origin that keeps it on the
    board, up to max_attempts times. If every sample collides, the ship is
    placed uniformly among all remaining valid slots instead, so the
    function always terminates.

    Raises:
        PlacementError if some ship has no valid slot at all.
    """
    rng = rng or random.Random()
    grid = create_grid(size)
    ships: List[Ship] = []

    for name, ship_size in fleet:
        if ship_size > size:
            raise PlacementError(f"{name} (size {ship_size}) does not fit a {size}x{size} grid")
        placed = None
        for _ in range(max_attempts):
            horizontal = rng.random() > 0.5
            row = rng.randrange(size if horizontal else size - ship_size + 1)
            col = rng.randrange(size - ship_size + 1 if horizontal else size)
            placed = place_ship(grid, name, ship_size, row, col, horizontal)
            if placed is not None:
                break

        if placed is None:
            slots = valid_slots(grid, ship_size)
            if not slots:
                raise PlacementError(f"No room left for {name} (size {ship_size})")
            logger.warning(
                "random placement of %s exhausted %d attempts; choosing among %d slots",
                name, max_attempts, len(slots),
            )
            row, col, horizontal = rng.choice(slots)
            placed = place_ship(grid, name, ship_size, row, col, horizontal)

        grid, ship = placed  # type: ignore[misc]
        ships.append(ship)

    return frozen(grid), tuple(ships)


# ---------- Sinking ----------

def is_ship_sunk(ship: Ship, grid: np.ndarray) -> bool:
    """A ship is sunk iff every one of its cells is HIT or SUNK in grid."""
    return all(grid[r, c] in STRUCK for r, c in ship.cells)


def all_ships_sunk(ships: Iterable[Ship], grid: np.ndarray) -> bool:
    return all(is_ship_sunk(ship, grid) for ship in ships)


def sunk_ships(ships: Iterable[Ship], grid: np.ndarray) -> Tuple[Ship, ...]:
    return tuple(ship for ship in ships if is_ship_sunk(ship, grid))


def mark_sunk_ships(ships: Iterable[Ship], attack_grid: np.ndarray, fleet_grid: np.ndarray) -> np.ndarray:
    """Copy of attack_grid with every cell of every sunk ship set to SUNK."""
    out = thawed(attack_grid)
    for ship in ships:
        if is_ship_sunk(ship, fleet_grid):
            for r, c in ship.cells:
                out[r, c] = Cell.SUNK
    return out


# ---------- Attacks ----------

def resolve_attack(
    attack_grid: np.ndarray,
    fleet_grid: np.ndarray,
    ships: Sequence[Ship],
    row: int,
    col: int,
) -> Optional[AttackOutcome]:
    """
    Fire at (row, col).

    Args:
        attack_grid: attacker's record of shots.
        fleet_grid:  defender's fleet grid.
        ships:       defender's ships.

    Returns:
        AttackOutcome with fresh read-only grids, or None if the shot is out
        of bounds or the cell was already fired at.
    """
    if not in_bounds(attack_grid, row, col) or attack_grid[row, col] != Cell.EMPTY:
        return None

    attacks = thawed(attack_grid)
    fleet = thawed(fleet_grid)
    hit = bool(fleet[row, col] == Cell.SHIP)

    if not hit:
        attacks[row, col] = Cell.MISS
        return AttackOutcome(row, col, False, frozen(attacks), frozen(fleet))

    attacks[row, col] = Cell.HIT
    fleet[row, col] = Cell.HIT
    newly_sunk = tuple(
        ship for ship in ships
        if is_ship_sunk(ship, fleet) and any(attacks[r, c] != Cell.SUNK for r, c in ship.cells)
    )
    attacks = mark_sunk_ships(ships, attacks, fleet)
    return AttackOutcome(
        row,
        col,
        True,
        frozen(attacks),
        frozen(fleet),
        newly_sunk=newly_sunk,
        all_sunk=all_ships_sunk(ships, fleet),
    )


def count_sunk_by(attack_grid: np.ndarray, ships: Iterable[Ship]) -> int:
    """How many of ships the owner of attack_grid has fully struck."""
    return len(sunk_ships(ships, attack_grid))


# ---------- Manual setup ----------

class FleetSetup:
    """
    One player's ship placement session.

    Ships are placed in fleet order; the orientation toggle applies to the
    next ship. The session is complete when every ship is on the grid.
    """

    def __init__(
        self,
        fleet: Sequence[Tuple[str, int]] = config.SHIPS,
        size: int = config.BOARD_SIZE,
    ) -> None:
        self.fleet = list(fleet)
        self.size = size
        self.horizontal = True
        self.clear()

    def clear(self) -> None:
        self.grid: np.ndarray = frozen(create_grid(self.size))
        self.ships: List[Ship] = []

    @property
    def is_complete(self) -> bool:
        return len(self.ships) >= len(self.fleet)

    @property
    def next_ship(self) -> Optional[Tuple[str, int]]:
        if self.is_complete:
            return None
        return self.fleet[len(self.ships)]

    def toggle_orientation(self) -> bool:
        self.horizontal = not self.horizontal
        return self.horizontal

    def preview(self, row: int, col: int) -> Tuple[Coord, ...]:
        """Cells the next ship would cover at (row, col); empty if invalid."""
        nxt = self.next_ship
        if nxt is None:
            return ()
        _, ship_size = nxt
        if not can_place_ship(self.grid, row, col, ship_size, self.horizontal):
            return ()
        return ship_cells(row, col, ship_size, self.horizontal)

    def place(self, row: int, col: int) -> bool:
        nxt = self.next_ship
        if nxt is None:
            return False
        name, ship_size = nxt
        placed = place_ship(self.grid, name, ship_size, row, col, self.horizontal)
        if placed is None:
            return False
        grid, ship = placed
        self.grid = frozen(grid)
        self.ships.append(ship)
        return True

    def randomize(self, rng: Optional[random.Random] = None) -> None:
        grid, ships = place_ships_randomly(rng, self.fleet, self.size)
        self.grid = grid
        self.ships = list(ships)
