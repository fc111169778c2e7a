"""Classic snake on a square grid."""

from __future__ import annotations

import random
from dataclasses import dataclass, replace
from typing import Any

from core.input_latch import InputSnapshot
from core.status import Status
from data.kv_store import KeyValueStore
from games.base_game import Game, StepResult
from games.grid import DIRECTIONS, Cell, free_cell, in_bounds


@dataclass(frozen=True)
class Food:
    x: int
    y: int
    emoji: str


@dataclass(frozen=True)
class SnakeState:
    snake: tuple[Cell, ...]
    food: Food | None
    direction: str = "ArrowRight"
    score: int = 0
    speed: int = 150
    status: Status = Status.PLAYING


def _opposite(direction: str) -> str:
    dx, dy = DIRECTIONS[direction]
    for name, vec in DIRECTIONS.items():
        if vec == (-dx, -dy):
            return name
    return direction


class SnakeGame(Game):
    """The tick interval shrinks with every fruit eaten."""

    name = "snake"

    def __init__(self, params: dict[str, Any], store: KeyValueStore) -> None:
        super().__init__(params=params, store=store)
        self.size = int(params["grid_size"])
        self.fruits = list(params["fruits"]) or ["*"]

    def playfield_size(self) -> tuple[float, float]:
        return (float(self.size), float(self.size))

    def _food(self, occupied: tuple[Cell, ...], rng: random.Random) -> Food | None:
        cell = free_cell(self.size, occupied, rng)
        if cell is None:
            return None
        return Food(x=cell[0], y=cell[1], emoji=self.fruits[rng.randrange(len(self.fruits))])

    def initial_state(self, rng: random.Random, previous: Any = None) -> SnakeState:
        start = (self.size // 2, self.size // 2)
        return SnakeState(
            snake=(start,),
            food=self._food((start,), rng),
            speed=int(self.params["tick_ms"]),
        )

    def tick_interval_ms(self, state: SnakeState) -> float | None:
        if state.status is not Status.PLAYING:
            return None
        return float(state.speed)

    def step(self, state: SnakeState, inputs: InputSnapshot, rng: random.Random) -> StepResult:
        direction = state.direction
        # Only the latest buffered arrow counts, and never a reversal.
        buffered = inputs.last_press(DIRECTIONS)
        if buffered is not None and buffered != _opposite(state.direction):
            direction = buffered

        dx, dy = DIRECTIONS[direction]
        head_x, head_y = state.snake[0]
        head = (head_x + dx, head_y + dy)

        if not in_bounds(head, self.size) or head in state.snake[1:]:
            return StepResult(replace(state, status=Status.LOST), ("game-over",))

        body = (head,) + state.snake
        food = state.food
        if food is not None and head == (food.x, food.y):
            next_food = self._food(body, rng)
            next_state = replace(
                state,
                snake=body,
                food=next_food,
                direction=direction,
                score=state.score + 1,
                speed=max(int(self.params["min_tick_ms"]), state.speed - int(self.params["speedup_ms"])),
                status=Status.WON if next_food is None else Status.PLAYING,
            )
            return StepResult(next_state, ("eat",))

        return StepResult(replace(state, snake=body[:-1], direction=direction))


GAME_NAME = "snake"
GameClass = SnakeGame
