"""Input latch: asynchronous device events in, per-tick snapshots out."""

from __future__ import annotations

import math
import threading
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping

from core.physics import clamp, normalize


JOYSTICK_MAX_RADIUS = 40.0


@dataclass(frozen=True)
class InputSnapshot:
    """Inputs visible to one step call.

    ``pressed`` holds keys currently down, ``presses`` holds key-down edges in
    arrival order since the previous snapshot.
    """

    pressed: frozenset[str] = frozenset()
    presses: tuple[str, ...] = ()
    pointer: tuple[float, float] | None = None
    axes: Mapping[str, tuple[float, float]] = field(default_factory=lambda: MappingProxyType({}))

    def is_pressed(self, *keys: str) -> bool:
        return any(key in self.pressed for key in keys)

    def was_pressed(self, *keys: str) -> bool:
        return any(key in self.presses for key in keys)

    def last_press(self, among: Iterable[str]) -> str | None:
        """Return the most recent key-down edge among ``among``."""
        wanted = set(among)
        for key in reversed(self.presses):
            if key in wanted:
                return key
        return None

    def axis(self, name: str) -> tuple[float, float]:
        return self.axes.get(name, (0.0, 0.0))


EMPTY_INPUT = InputSnapshot()


class Viewport:
    """Maps device coordinates onto a fixed logical playfield."""

    def __init__(
        self,
        playfield_width: float,
        playfield_height: float,
        device_width: float | None = None,
        left: float = 0.0,
        top: float = 0.0,
    ) -> None:
        self.playfield_width = float(playfield_width)
        self.playfield_height = float(playfield_height)
        self.scale = 1.0
        self.left = 0.0
        self.top = 0.0
        self.resize(device_width, left, top)

    def resize(self, device_width: float | None, left: float = 0.0, top: float = 0.0) -> None:
        self.left = float(left)
        self.top = float(top)
        if device_width is None or device_width <= 0 or self.playfield_width <= 0:
            self.scale = 1.0
            return
        self.scale = float(device_width) / self.playfield_width

    def to_playfield(self, device_x: float, device_y: float) -> tuple[float, float]:
        x = (float(device_x) - self.left) / self.scale
        y = (float(device_y) - self.top) / self.scale
        return (
            clamp(x, 0.0, self.playfield_width),
            clamp(y, 0.0, self.playfield_height),
        )


class InputLatch:
    """Thread-safe holder for the latest input, read once per tick."""

    def __init__(self, viewport: Viewport | None = None) -> None:
        self.viewport = viewport
        self._lock = threading.Lock()
        self._pressed: set[str] = set()
        self._presses: list[str] = []
        self._pointer: tuple[float, float] | None = None
        self._axes: dict[str, tuple[float, float]] = {}

    def press(self, key: str) -> None:
        with self._lock:
            # Auto-repeat of a held key is not a new edge.
            if key in self._pressed:
                return
            self._pressed.add(key)
            self._presses.append(key)

    def release(self, key: str) -> None:
        with self._lock:
            self._pressed.discard(key)

    def move_pointer(self, device_x: float, device_y: float) -> None:
        if self.viewport is not None:
            point = self.viewport.to_playfield(device_x, device_y)
        else:
            point = (float(device_x), float(device_y))
        with self._lock:
            self._pointer = point

    def set_axis(self, name: str, dx: float, dy: float) -> None:
        with self._lock:
            self._axes[name] = (float(dx), float(dy))

    def clear_axis(self, name: str) -> None:
        with self._lock:
            self._axes.pop(name, None)

    def resize(self, device_width: float | None, left: float = 0.0, top: float = 0.0) -> None:
        if self.viewport is not None:
            self.viewport.resize(device_width, left, top)

    def snapshot(self, consume: bool = True) -> InputSnapshot:
        with self._lock:
            snap = InputSnapshot(
                pressed=frozenset(self._pressed),
                presses=tuple(self._presses),
                pointer=self._pointer,
                axes=MappingProxyType(dict(self._axes)),
            )
            if consume:
                self._presses.clear()
        return snap

    def clear(self) -> None:
        with self._lock:
            self._pressed.clear()
            self._presses.clear()
            self._axes.clear()
            self._pointer = None


def joystick_vector(
    base: tuple[float, float],
    knob: tuple[float, float],
    max_radius: float,
) -> tuple[float, float]:
    """Turn a drag from ``base`` to ``knob`` into a vector of length <= 1."""
    dx = knob[0] - base[0]
    dy = knob[1] - base[1]
    if max_radius <= 0:
        return (0.0, 0.0)
    ux, uy = normalize(dx, dy)
    reach = min(math.hypot(dx, dy), max_radius) / max_radius
    return (ux * reach, uy * reach)
