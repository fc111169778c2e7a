"""Dot runner: collect symbols on a grid while a shadow hunts the player."""

from __future__ import annotations

import math
import random
from dataclasses import dataclass, replace
from typing import Any

from core.input_latch import InputSnapshot
from core.status import Status
from data.kv_store import KeyValueStore
from games.base_game import Game, StepResult
from games.grid import DIRECTIONS, Cell, clamp_cell, free_cell


@dataclass(frozen=True)
class Collectible:
    x: int
    y: int
    symbol: str


@dataclass(frozen=True)
class DotRunnerState:
    player: Cell
    shadow: Cell
    collectible: Collectible | None
    score: int = 0
    speed: int = 130
    glitch: bool = False
    game_time: int = 0
    shadow_chance: float = 0.35
    proximity_alert: bool = False
    power_up_timer: int = 0
    status: Status = Status.PLAYING


def _sign(value: int) -> int:
    return (value > 0) - (value < 0)


class DotRunnerGame(Game):
    name = "dot_runner"

    def __init__(self, params: dict[str, Any], store: KeyValueStore) -> None:
        super().__init__(params=params, store=store)
        self.size = int(params["grid_size"])
        self.symbols = list(params["symbols"]) or ["*"]

    def playfield_size(self) -> tuple[float, float]:
        return (float(self.size), float(self.size))

    def _collectible(self, player: Cell, shadow: Cell, rng: random.Random) -> Collectible | None:
        cell = free_cell(self.size, (player, shadow), rng)
        if cell is None:
            return None
        return Collectible(x=cell[0], y=cell[1], symbol=self.symbols[rng.randrange(len(self.symbols))])

    def initial_state(self, rng: random.Random, previous: Any = None) -> DotRunnerState:
        player = (self.size // 2, self.size // 2)
        shadow = (0, 0)
        return DotRunnerState(
            player=player,
            shadow=shadow,
            collectible=self._collectible(player, shadow, rng),
            speed=int(self.params["tick_ms"]),
            shadow_chance=float(self.params["shadow_start_chance"]),
        )

    def tick_interval_ms(self, state: DotRunnerState) -> float | None:
        if state.status is not Status.PLAYING:
            return None
        return float(state.speed)

    def _move_shadow(self, shadow: Cell, player: Cell, chance: float, rng: random.Random) -> Cell:
        dx = player[0] - shadow[0]
        dy = player[1] - shadow[1]
        if math.hypot(dx, dy) > float(self.params["far_distance"]):
            chance *= float(self.params["far_chance_factor"])
        if rng.random() >= chance or (dx == 0 and dy == 0):
            return shadow
        if abs(dx) > abs(dy):
            return (shadow[0] + _sign(dx), shadow[1])
        return (shadow[0], shadow[1] + _sign(dy))

    def step(self, state: DotRunnerState, inputs: InputSnapshot, rng: random.Random) -> StepResult:
        cues: list[str] = []
        player = state.player
        for key in inputs.presses:
            if key in DIRECTIONS:
                dx, dy = DIRECTIONS[key]
                player = clamp_cell((player[0] + dx, player[1] + dy), self.size)

        game_time = state.game_time + 1
        chance = state.shadow_chance
        power_up = max(0, state.power_up_timer - 1)
        if game_time % int(self.params["power_up_every"]) == 0 and state.power_up_timer <= 0:
            power_up = int(self.params["power_up_ticks"])
            cues.append("power-up")
        if state.power_up_timer == 1 and power_up == 0:
            chance = min(
                float(self.params["shadow_chance_max"]),
                chance + float(self.params["shadow_chance_step"]),
            )

        dist = math.hypot(player[0] - state.shadow[0], player[1] - state.shadow[1])
        shadow = state.shadow
        if power_up <= 0:
            shadow = self._move_shadow(shadow, player, chance, rng)

        glitch = dist < float(self.params["glitch_distance"]) and rng.random() > float(
            self.params["glitch_probability"]
        )
        alert = dist < float(self.params["alert_distance"])
        if alert and game_time % int(self.params["alert_cue_every"]) == 0:
            cues.append("proximity")

        score = state.score
        speed = state.speed
        collectible = state.collectible
        if collectible is not None and player == (collectible.x, collectible.y):
            score += 1
            speed = max(int(self.params["min_tick_ms"]), speed - int(self.params["speedup_ms"]))
            collectible = self._collectible(player, shadow, rng)
            cues.append("collect")

        status = Status.PLAYING
        if player == shadow:
            status = Status.LOST
            cues.append("game-over")

        next_state = replace(
            state,
            player=player,
            shadow=shadow,
            collectible=collectible,
            score=score,
            speed=speed,
            glitch=glitch,
            game_time=game_time,
            shadow_chance=chance,
            proximity_alert=alert,
            power_up_timer=power_up,
            status=status,
        )
        return StepResult(next_state, tuple(cues))


GAME_NAME = "dot_runner"
GameClass = DotRunnerGame
