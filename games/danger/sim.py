"""Danger: dodge obstacles flying in from every edge for as long as possible."""

from __future__ import annotations

import random
from dataclasses import dataclass, replace
from typing import Any

from core.input_latch import InputSnapshot
from core.physics import Rect, aabb_overlap, clamp
from core.status import Status
from data.kv_store import KeyValueStore
from games.base_game import Game, StepResult


@dataclass(frozen=True)
class Obstacle:
    id: int
    x: float
    y: float
    vx: float
    vy: float


@dataclass(frozen=True)
class DangerState:
    x: float
    y: float
    obstacles: tuple[Obstacle, ...] = ()
    ticks: int = 0
    next_id: int = 0
    status: Status = Status.PLAYING

    @property
    def score(self) -> int:
        return self.ticks


class DangerGame(Game):
    """Arrows and WASD move the player; opposite keys cancel out."""

    name = "danger"

    def __init__(self, params: dict[str, Any], store: KeyValueStore) -> None:
        super().__init__(params=params, store=store)
        self.width = float(params["width"])
        self.height = float(params["height"])
        self.player_size = float(params["player_size"])
        self.obstacle_size = float(params["obstacle_size"])

    def initial_state(self, rng: random.Random, previous: Any = None) -> DangerState:
        return DangerState(
            x=self.width / 2 - self.player_size / 2,
            y=self.height / 2 - self.player_size / 2,
        )

    def spawn_interval_ms(self, state: DangerState) -> float | None:
        if state.status is not Status.PLAYING:
            return None
        return float(self.params["spawn_ms"])

    def elapsed_seconds(self, state: DangerState) -> float:
        return state.ticks * float(self.params["tick_ms"]) / 1000.0

    def step(self, state: DangerState, inputs: InputSnapshot, rng: random.Random) -> StepResult:
        speed = float(self.params["player_speed"])
        x, y = state.x, state.y
        if inputs.is_pressed("ArrowUp", "w"):
            y -= speed
        if inputs.is_pressed("ArrowDown", "s"):
            y += speed
        if inputs.is_pressed("ArrowLeft", "a"):
            x -= speed
        if inputs.is_pressed("ArrowRight", "d"):
            x += speed
        x = clamp(x, 0.0, self.width - self.player_size)
        y = clamp(y, 0.0, self.height - self.player_size)

        size = self.obstacle_size
        moved = tuple(
            replace(o, x=o.x + o.vx, y=o.y + o.vy)
            for o in state.obstacles
        )
        alive = tuple(
            o for o in moved
            if -size < o.x < self.width + size and -size < o.y < self.height + size
        )

        player = Rect(x, y, self.player_size, self.player_size)
        hit = any(aabb_overlap(player, Rect(o.x, o.y, size, size)) for o in alive)
        next_state = replace(
            state,
            x=x,
            y=y,
            obstacles=alive,
            ticks=state.ticks + 1,
            status=Status.LOST if hit else Status.PLAYING,
        )
        return StepResult(next_state, ("game-over",) if hit else ())

    def spawn(self, state: DangerState, rng: random.Random) -> StepResult:
        size = self.obstacle_size
        drift = float(self.params["obstacle_drift"])
        edge = rng.randrange(4)
        speed = float(self.params["obstacle_min_speed"]) + rng.random() * float(self.params["obstacle_speed_range"])
        if edge == 0:
            x, y = rng.random() * self.width, -size
            vx, vy = rng.random() * 2 * drift - drift, speed
        elif edge == 1:
            x, y = self.width, rng.random() * self.height
            vx, vy = -speed, rng.random() * 2 * drift - drift
        elif edge == 2:
            x, y = rng.random() * self.width, self.height
            vx, vy = rng.random() * 2 * drift - drift, -speed
        else:
            x, y = -size, rng.random() * self.height
            vx, vy = speed, rng.random() * 2 * drift - drift
        obstacle = Obstacle(id=state.next_id, x=x, y=y, vx=vx, vy=vy)
        return StepResult(
            replace(state, obstacles=state.obstacles + (obstacle,), next_id=state.next_id + 1)
        )


GAME_NAME = "danger"
GameClass = DangerGame
