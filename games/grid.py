"""Cell helpers for the grid-based games."""

from __future__ import annotations

import random
from typing import Iterable

Cell = tuple[int, int]

DIRECTIONS: dict[str, Cell] = {
    "ArrowUp": (0, -1),
    "ArrowDown": (0, 1),
    "ArrowLeft": (-1, 0),
    "ArrowRight": (1, 0),
}


def in_bounds(cell: Cell, size: int) -> bool:
    return 0 <= cell[0] < size and 0 <= cell[1] < size


def clamp_cell(cell: Cell, size: int) -> Cell:
    return (max(0, min(size - 1, cell[0])), max(0, min(size - 1, cell[1])))


def free_cell(size: int, occupied: Iterable[Cell], rng: random.Random) -> Cell | None:
    """Pick a uniformly random cell outside ``occupied``; ``None`` when full."""
    blocked = set(occupied)
    free = [(x, y) for y in range(size) for x in range(size) if (x, y) not in blocked]
    if not free:
        return None
    return free[rng.randrange(len(free))]
