"""Score-threshold helpers for one-shot difficulty transitions."""

from __future__ import annotations

from typing import Sequence


def crossed(previous: float, current: float, threshold: float) -> bool:
    """True when a monotonic counter reached ``threshold`` during this update.

    Jumping over the threshold counts; staying above it afterwards does not.
    """
    return previous < threshold <= current


def crossed_any(previous: float, current: float, thresholds: Sequence[float]) -> list[float]:
    return [t for t in thresholds if crossed(previous, current, t)]


def tier_for(value: float, thresholds: Sequence[float]) -> int:
    """Number of thresholds already reached by ``value`` (0 = base tier)."""
    return sum(1 for t in thresholds if value >= t)
