"""Sky gift: catch falling presents with a sliding basket."""

from __future__ import annotations

import random
from dataclasses import dataclass, replace
from typing import Any

from core.input_latch import InputSnapshot
from core.physics import clamp
from core.status import Status
from data.kv_store import KeyValueStore
from games.base_game import Game, StepResult


@dataclass(frozen=True)
class Gift:
    id: int
    x: float
    y: float


@dataclass(frozen=True)
class SkyGiftState:
    player_x: float
    gifts: tuple[Gift, ...] = ()
    score: int = 0
    lives: int = 3
    next_id: int = 0
    status: Status = Status.PLAYING


class SkyGiftGame(Game):
    """Left takes priority when both directions are held."""

    name = "sky_gift"

    def __init__(self, params: dict[str, Any], store: KeyValueStore) -> None:
        super().__init__(params=params, store=store)
        self.width = float(params["width"])
        self.height = float(params["height"])
        self.player_width = float(params["player_width"])
        self.player_height = float(params["player_height"])
        self.gift_size = float(params["gift_size"])

    def initial_state(self, rng: random.Random, previous: Any = None) -> SkyGiftState:
        return SkyGiftState(
            player_x=self.width / 2 - self.player_width / 2,
            lives=int(self.params["lives"]),
        )

    def spawn_interval_ms(self, state: SkyGiftState) -> float | None:
        if state.status is not Status.PLAYING:
            return None
        return float(self.params["spawn_ms"])

    def step(self, state: SkyGiftState, inputs: InputSnapshot, rng: random.Random) -> StepResult:
        speed = float(self.params["player_speed"])
        player_x = state.player_x
        if inputs.is_pressed("ArrowLeft"):
            player_x -= speed
        elif inputs.is_pressed("ArrowRight"):
            player_x += speed
        player_x = clamp(player_x, 0.0, self.width - self.player_width)

        cues: list[str] = []
        score = state.score
        lives = state.lives
        kept: list[Gift] = []
        basket_top = self.height - self.player_height
        for gift in state.gifts:
            y = gift.y + float(self.params["gift_speed"])
            if (
                y + self.gift_size >= basket_top
                and y < self.height
                and gift.x < player_x + self.player_width
                and gift.x + self.gift_size > player_x
            ):
                score += int(self.params["gift_points"])
                cues.append("catch")
                continue
            if y >= self.height:
                lives -= 1
                cues.append("miss")
                continue
            kept.append(replace(gift, y=y))

        status = Status.PLAYING
        if lives <= 0:
            lives = 0
            status = Status.LOST
            cues.append("game-over")
        next_state = replace(
            state,
            player_x=player_x,
            gifts=tuple(kept),
            score=score,
            lives=lives,
            status=status,
        )
        return StepResult(next_state, tuple(cues))

    def spawn(self, state: SkyGiftState, rng: random.Random) -> StepResult:
        gift = Gift(
            id=state.next_id,
            x=rng.random() * (self.width - self.gift_size),
            y=-self.gift_size,
        )
        return StepResult(replace(state, gifts=state.gifts + (gift,), next_id=state.next_id + 1))


GAME_NAME = "sky_gift"
GameClass = SkyGiftGame
