"""Static level definitions for the platformer, loaded from YAML."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping

import yaml

from core.physics import Rect


DEFAULT_LEVELS_PATH = Path(__file__).with_name("levels.yaml")


class LevelDataError(ValueError):
    """Raised when a level file is malformed."""


@dataclass(frozen=True)
class Goal:
    x: float
    y: float
    size: float

    @property
    def center(self) -> tuple[float, float]:
        return (self.x + self.size / 2, self.y + self.size / 2)


@dataclass(frozen=True)
class LevelDefinition:
    """Geometry of one level. The step function never cares how it was authored."""

    name: str
    player_start: tuple[float, float]
    platforms: tuple[Rect, ...]
    coins: tuple[tuple[float, float], ...]
    hazards: tuple[Rect, ...]
    goal: Goal
    atm: Rect | None = None
    terminal: Rect | None = None


def _rect(value: Any, where: str) -> Rect:
    if not isinstance(value, (list, tuple)) or len(value) != 4:
        raise LevelDataError(f"{where} must be [x, y, width, height], got {value!r}.")
    return Rect(*(float(v) for v in value))


def _point(value: Any, where: str) -> tuple[float, float]:
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        raise LevelDataError(f"{where} must be [x, y], got {value!r}.")
    return (float(value[0]), float(value[1]))


def parse_level(raw: Mapping[str, Any], index: int) -> LevelDefinition:
    where = f"Level {index + 1}"
    try:
        goal = raw["goal"]
        return LevelDefinition(
            name=str(raw.get("name", where)),
            player_start=_point(raw["player_start"], f"{where} player_start"),
            platforms=tuple(_rect(p, f"{where} platform") for p in raw.get("platforms", [])),
            coins=tuple(_point(c, f"{where} coin") for c in raw.get("coins", [])),
            hazards=tuple(_rect(h, f"{where} hazard") for h in raw.get("hazards", [])),
            goal=Goal(x=float(goal["x"]), y=float(goal["y"]), size=float(goal["size"])),
            atm=_rect(raw["atm"], f"{where} atm") if raw.get("atm") else None,
            terminal=_rect(raw["terminal"], f"{where} terminal") if raw.get("terminal") else None,
        )
    except KeyError as exc:
        raise LevelDataError(f"{where} missing field {exc}.") from exc


@lru_cache(maxsize=8)
def load_levels(path: str | Path = DEFAULT_LEVELS_PATH) -> tuple[LevelDefinition, ...]:
    """Load and validate every level in ``path``."""
    payload = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    if not isinstance(payload, Mapping) or not isinstance(payload.get("levels"), list):
        raise LevelDataError(f"Level file '{path}' must contain a 'levels' list.")
    levels = tuple(parse_level(raw, i) for i, raw in enumerate(payload["levels"]))
    if not levels:
        raise LevelDataError(f"Level file '{path}' defines no levels.")
    return levels
