"""Scripted input events replayed into an ``InputLatch`` by tick index."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from core.input_latch import InputLatch


class InputTraceError(ValueError):
    """Raised when a scripted input event is malformed."""


_KINDS = ("press", "release", "pointer", "axis")


@dataclass(frozen=True)
class InputEvent:
    """One device event applied before the step of tick ``tick``."""

    tick: int
    kind: str
    key: str | None = None
    position: tuple[float, float] | None = None
    axis: str = "move"

    def apply(self, latch: InputLatch) -> None:
        if self.kind == "press":
            latch.press(self.key)
        elif self.kind == "release":
            latch.release(self.key)
        elif self.kind == "pointer":
            latch.move_pointer(*self.position)
        elif self.kind == "axis":
            latch.set_axis(self.axis, *self.position)


def _pair(value: Any, field_name: str, index: int) -> tuple[float, float]:
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        raise InputTraceError(f"Input #{index}: '{field_name}' must be a two-item list.")
    try:
        return (float(value[0]), float(value[1]))
    except (TypeError, ValueError) as exc:
        raise InputTraceError(f"Input #{index}: '{field_name}' must hold numbers.") from exc


def parse_input_event(raw: Mapping[str, Any], index: int = 0) -> InputEvent:
    if not isinstance(raw, Mapping):
        raise InputTraceError(f"Input #{index} must be a mapping.")
    tick = raw.get("tick", 0)
    if type(tick) is not int or tick < 0:
        raise InputTraceError(f"Input #{index}: 'tick' must be a non-negative int.")
    kinds = [kind for kind in _KINDS if kind in raw]
    extras = [key for key in raw if key not in _KINDS and key not in ("tick", "name")]
    if len(kinds) != 1 or extras:
        raise InputTraceError(
            f"Input #{index} needs exactly one of {list(_KINDS)}; got keys {sorted(raw)}."
        )
    kind = kinds[0]
    value = raw[kind]
    if kind in ("press", "release"):
        if not isinstance(value, str) or not value:
            raise InputTraceError(f"Input #{index}: '{kind}' must name a key.")
        return InputEvent(tick=tick, kind=kind, key=value)
    if kind == "axis":
        return InputEvent(tick=tick, kind=kind, position=_pair(value, kind, index), axis=str(raw.get("name", "move")))
    return InputEvent(tick=tick, kind=kind, position=_pair(value, kind, index))


def parse_input_trace(raw_events: Iterable[Mapping[str, Any]] | None) -> list[InputEvent]:
    """Parse YAML trace entries, ordered by tick (stable for equal ticks)."""
    if raw_events is None:
        return []
    events = [parse_input_event(raw, index) for index, raw in enumerate(raw_events)]
    return sorted(events, key=lambda event: event.tick)


class InputTrace:
    """Feeds events into a latch as their tick is reached, each exactly once."""

    def __init__(self, events: Iterable[InputEvent]) -> None:
        self.events = sorted(events, key=lambda event: event.tick)
        self._cursor = 0

    @property
    def exhausted(self) -> bool:
        return self._cursor >= len(self.events)

    def apply_due(self, latch: InputLatch, tick: int) -> int:
        applied = 0
        while self._cursor < len(self.events) and self.events[self._cursor].tick <= tick:
            self.events[self._cursor].apply(latch)
            self._cursor += 1
            applied += 1
        return applied

    def reset(self) -> None:
        self._cursor = 0
