"""Hunt/target targeting for the Battleship bot."""

from __future__ import annotations

import random
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

from tabletop.core.battleship_board import Cell, Ship
from tabletop.core.board import ORTHOGONAL, Coord, in_bounds


def target_candidates(attack_grid: np.ndarray, unresolved_hits: Sequence[Coord]) -> List[Coord]:
    """
    Unfired orthogonal neighbours of the first unresolved hit that has any,
    in firing order up, down, left, right.
    """
    for hr, hc in unresolved_hits:
        nbrs = [
            (hr + dr, hc + dc)
            for dr, dc in ORTHOGONAL
            if in_bounds(attack_grid, hr + dr, hc + dc) and attack_grid[hr + dr, hc + dc] == Cell.EMPTY
        ]
        if nbrs:
            return nbrs
    return []


def hunt_candidates(attack_grid: np.ndarray) -> List[Coord]:
    """
    Unfired cells on the even checkerboard colour, or every unfired cell
    once that colour is exhausted. The smallest ship covers two adjacent
    cells, so it always has one on the even colour.
    """
    rows, cols = np.nonzero(attack_grid == Cell.EMPTY)
    unfired = [(int(r), int(c)) for r, c in zip(rows, cols)]
    even = [(r, c) for r, c in unfired if (r + c) % 2 == 0]
    return even or unfired


def choose_target(
    attack_grid: np.ndarray,
    unresolved_hits: Sequence[Coord],
    rng: Optional[random.Random] = None,
) -> Optional[Coord]:
    """
    Next cell to fire at, or None if every cell has been fired at.

    Target mode fires at the first available neighbour of an unresolved hit;
    hunt mode picks uniformly from the parity-filtered unfired cells.
    """
    neighbours = target_candidates(attack_grid, unresolved_hits)
    if neighbours:
        return neighbours[0]
    pool = hunt_candidates(attack_grid)
    if not pool:
        return None
    rng = rng or random.Random()
    return rng.choice(pool)


def forget_sunk(unresolved_hits: Iterable[Coord], sunk: Iterable[Ship]) -> Tuple[Coord, ...]:
    """Drop every hit that belongs to a sunk ship."""
    sunk_cells = {rc for ship in sunk for rc in ship.cells}
    return tuple(rc for rc in unresolved_hits if rc not in sunk_cells)
