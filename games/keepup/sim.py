"""Balloon keep-up: bounce a falling balloon off a pointer-driven paddle."""

from __future__ import annotations

import random
from dataclasses import dataclass, replace
from typing import Any

from core.difficulty import crossed_any, tier_for
from core.input_latch import InputSnapshot
from core.physics import clamp, reflect
from core.status import Status
from data.kv_store import KeyValueStore
from games.base_game import Game, SessionOutcome, StepResult


@dataclass(frozen=True)
class Balloon:
    x: float
    y: float
    vx: float
    vy: float


@dataclass(frozen=True)
class Shockwave:
    active: bool = False
    size: float = 0.0
    opacity: float = 1.0


@dataclass(frozen=True)
class KeepUpState:
    balloon: Balloon
    paddle_x: float
    score: int = 0
    gravity: float = 0.1
    flash_timer: int = 0
    shockwave: Shockwave = Shockwave()
    status: Status = Status.PLAYING


class KeepUpGame(Game):
    """Paddle hits add score and difficulty; the balloon falling out loses."""

    name = "keepup"

    def __init__(self, params: dict[str, Any], store: KeyValueStore) -> None:
        super().__init__(params=params, store=store)
        self.width = float(params["width"])
        self.height = float(params["height"])
        self.radius = float(params["balloon_radius"])
        self.paddle_width = float(params["paddle_width"])
        self.paddle_height = float(params["paddle_height"])
        self.paddle_y = self.height - float(params["paddle_offset"])
        self.thresholds = [int(t) for t in params["tier_thresholds"]]

    def initial_state(self, rng: random.Random, previous: Any = None) -> KeepUpState:
        return KeepUpState(
            balloon=Balloon(
                x=self.width / 2,
                y=self.height / 3,
                vx=(rng.random() - 0.5) * 2,
                vy=0.0,
            ),
            paddle_x=self.width / 2 - self.paddle_width / 2,
            gravity=float(self.params["gravity_start"]),
        )

    def paddle_from_pointer(self, state: KeepUpState, inputs: InputSnapshot) -> float:
        if inputs.pointer is None:
            return state.paddle_x
        return clamp(inputs.pointer[0] - self.paddle_width / 2, 0.0, self.width - self.paddle_width)

    def step(self, state: KeepUpState, inputs: InputSnapshot, rng: random.Random) -> StepResult:
        cues: list[str] = []
        paddle_x = self.paddle_from_pointer(state, inputs)

        flash_timer = max(0, state.flash_timer - 1)
        shockwave = state.shockwave
        if shockwave.active:
            opacity = shockwave.opacity - float(self.params["shockwave_fade"])
            shockwave = Shockwave(
                active=opacity > 0,
                size=shockwave.size + float(self.params["shockwave_growth"]),
                opacity=opacity,
            )

        b = state.balloon
        vy = b.vy + state.gravity
        y = b.y + vy
        x = b.x + b.vx
        vx = b.vx

        r = self.radius
        x, vx, bounced = reflect(x, vx, r, self.width - r, float(self.params["wall_damping"]))
        if bounced:
            cues.append("wall-bounce")
        if y < r:
            cues.append("wall-bounce")
            vy *= -float(self.params["ceiling_damping"])
            y = r

        hit = (
            vy > 0
            and y + r >= self.paddle_y
            and y - r < self.paddle_y + self.paddle_height
            and x + r > paddle_x
            and x - r < paddle_x + self.paddle_width
        )
        if hit:
            cues.append("hit")
            score = state.score + 1
            gravity = min(
                float(self.params["gravity_max"]),
                state.gravity + float(self.params["gravity_step"]),
            )
            if crossed_any(state.score, score, self.thresholds):
                cues.append("transform")
                flash_timer = int(self.params["flash_ticks"])
                shockwave = Shockwave(active=True, size=0.0, opacity=1.0)

            tier = tier_for(score, self.thresholds)
            force_mult = 1.0
            vx_mult = float(self.params["base_vx_multiplier"])
            if tier > 0:
                force_mult = float(self.params["tier_force_multipliers"][tier - 1])
                vx_mult = float(self.params["tier_vx_multipliers"][tier - 1])
                gravity = max(gravity, float(self.params["tier_gravity_floors"][tier - 1]))

            hit_position = (x - (paddle_x + self.paddle_width / 2)) / (self.paddle_width / 2)
            balloon = Balloon(
                x=x,
                y=self.paddle_y - r,
                vx=hit_position * vx_mult,
                vy=(float(self.params["hit_force"]) - rng.random()) * force_mult,
            )
            next_state = replace(
                state,
                balloon=balloon,
                paddle_x=paddle_x,
                score=score,
                gravity=gravity,
                flash_timer=flash_timer,
                shockwave=shockwave,
            )
            return StepResult(next_state, tuple(cues))

        balloon = Balloon(x=x, y=y, vx=vx, vy=vy)
        if y > self.height:
            cues.append("game-over")
            return StepResult(
                replace(state, balloon=balloon, paddle_x=paddle_x, status=Status.LOST),
                tuple(cues),
            )

        next_state = replace(
            state,
            balloon=balloon,
            paddle_x=paddle_x,
            flash_timer=flash_timer,
            shockwave=shockwave,
        )
        return StepResult(next_state, tuple(cues))

    def settle(self, state: KeepUpState, ticks: int) -> SessionOutcome:
        # Every point is also a coin in the shared wallet.
        return SessionOutcome(
            game=self.name,
            status=state.status,
            score=state.score,
            ticks=ticks,
            currency_delta=state.score,
        )


GAME_NAME = "keepup"
GameClass = KeepUpGame
