"""Lifecycle status shared by every game state."""

from __future__ import annotations

from enum import Enum


class Status(str, Enum):
    """Exactly one status per state value.

    Terminal statuses only leave through an explicit restart.
    """

    PLAYING = "playing"
    WON = "won"
    LOST = "lost"
    PAUSED = "paused"
    IN_SUB_MENU = "in_sub_menu"

    @property
    def is_terminal(self) -> bool:
        return self in (Status.WON, Status.LOST)
