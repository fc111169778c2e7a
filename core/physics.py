"""Small geometry helpers shared by the step functions."""

from __future__ import annotations

import math
from dataclasses import dataclass


def clamp(value: float, lo: float, hi: float) -> float:
    """Clamp ``value`` into ``[lo, hi]``."""
    if hi < lo:
        return lo
    return max(lo, min(hi, value))


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float

    @property
    def center(self) -> tuple[float, float]:
        return (self.x + self.width / 2.0, self.y + self.height / 2.0)


def aabb_overlap(a: Rect, b: Rect) -> bool:
    """Strict axis-aligned overlap; touching edges do not collide."""
    return (
        a.x < b.x + b.width
        and a.x + a.width > b.x
        and a.y < b.y + b.height
        and a.y + a.height > b.y
    )


def distance(ax: float, ay: float, bx: float, by: float) -> float:
    return math.hypot(ax - bx, ay - by)


def circles_overlap(ax: float, ay: float, ar: float, bx: float, by: float, br: float) -> bool:
    return distance(ax, ay, bx, by) < ar + br


def safe_angle(dx: float, dy: float, default: float = 0.0) -> float:
    """Angle of ``(dx, dy)`` in degrees, ``default`` for the zero vector."""
    if dx == 0 and dy == 0:
        return default
    return math.degrees(math.atan2(dy, dx))


def normalize(dx: float, dy: float) -> tuple[float, float]:
    length = math.hypot(dx, dy)
    if length == 0:
        return (0.0, 0.0)
    return (dx / length, dy / length)


def reflect(position: float, velocity: float, lo: float, hi: float, damping: float) -> tuple[float, float, bool]:
    """Bounce a 1-D coordinate off ``[lo, hi]``.

    Returns the clamped position, the (possibly reversed and damped) velocity
    and whether a bounce happened.
    """
    if position < lo:
        return lo, -velocity * damping, True
    if position > hi:
        return hi, -velocity * damping, True
    return position, velocity, False
