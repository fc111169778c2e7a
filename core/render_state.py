"""Immutable frame contract handed to streaming and visualization."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from core.status import Status


@dataclass(frozen=True)
class Frame:
    """One observable session frame.

    ``state`` is the game's own frozen state value; renderers read it but
    never write back.
    """

    game: str
    tick_index: int
    status: Status
    score: int
    state: Any
    round_index: int = 0
