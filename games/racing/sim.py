"""Three-lane racer with a periodic tank boss fight."""

from __future__ import annotations

import itertools
import random
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Iterator

from core.input_latch import InputSnapshot
from core.physics import Rect, aabb_overlap
from core.status import Status
from data.kv_store import KeyValueStore
from games.base_game import Game, StepResult


class Mode(str, Enum):
    NORMAL = "normal"
    BOSS_FIGHT = "boss_fight"


@dataclass(frozen=True)
class Car:
    id: int
    x: float
    y: float
    color: str
    speed: float


@dataclass(frozen=True)
class RoadLine:
    id: int
    y: float


@dataclass(frozen=True)
class Tank:
    x: float
    y: float
    width: float
    height: float
    hp: int
    max_hp: int
    vx: float
    shoot_cooldown: float


@dataclass(frozen=True)
class Projectile:
    id: int
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class Explosion:
    id: int
    x: float
    y: float
    size: float
    duration: float


@dataclass(frozen=True)
class RacingState:
    lane: int = 1
    opponents: tuple[Car, ...] = ()
    road_lines: tuple[RoadLine, ...] = ()
    score: int = 0
    speed: int = 5
    lives: int = 3
    invincibility: int = 0
    mode: Mode = Mode.NORMAL
    tank: Tank | None = None
    projectiles: tuple[Projectile, ...] = ()
    shoot_cooldown: int = 0
    explosions: tuple[Explosion, ...] = ()
    boss_warning: int = 0
    next_boss_score: int = 1250
    next_id: int = 0
    status: Status = Status.PLAYING


class RacingGame(Game):
    """Dodge traffic; survive long enough and a tank blocks the road.

    Lane changes use the most recent left/right press of the tick. During
    the boss fight ArrowUp fires at the tank.
    """

    name = "racing"

    def __init__(self, params: dict[str, Any], store: KeyValueStore) -> None:
        super().__init__(params=params, store=store)
        self.width = float(params["width"])
        self.height = float(params["height"])
        self.car_width = float(params["car_width"])
        self.car_height = float(params["car_height"])
        self.player_y = self.height - self.car_height - float(params["player_bottom_margin"])
        self.lanes = (
            self.width / 6 - self.car_width / 2,
            self.width / 2 - self.car_width / 2,
            self.width * 5 / 6 - self.car_width / 2,
        )
        self.colors = list(params["colors"]) or ["#ffffff"]
        self.safe_gap = self.car_height * float(params["safe_gap_factor"])

    def initial_state(self, rng: random.Random, previous: Any = None) -> RacingState:
        return RacingState(
            speed=int(self.params["base_speed"]),
            lives=int(self.params["lives"]),
            next_boss_score=int(self.params["boss_trigger_score"]),
        )

    def spawn_interval_ms(self, state: RacingState) -> float | None:
        if state.status is not Status.PLAYING:
            return None
        return float(self.params["spawn_ms"])

    def _speed_for(self, score: int) -> int:
        return min(
            int(self.params["max_speed"]),
            int(self.params["base_speed"]) + score // int(self.params["score_per_speed_step"]),
        )

    def _new_tank(self) -> Tank:
        width = float(self.params["tank_width"])
        hp = int(self.params["tank_hp"])
        return Tank(
            x=self.width / 2 - width / 2,
            y=float(self.params["tank_y"]),
            width=width,
            height=float(self.params["tank_height"]),
            hp=hp,
            max_hp=hp,
            vx=float(self.params["tank_speed"]),
            shoot_cooldown=float(self.params["tank_first_shot"]),
        )

    def _player_rect(self, lane: int) -> Rect:
        return Rect(self.lanes[lane], self.player_y, self.car_width, self.car_height)

    def _collides(self, lane: int, opponents: tuple[Car, ...]) -> bool:
        player = self._player_rect(lane)
        return any(
            aabb_overlap(player, Rect(o.x, o.y, self.car_width, self.car_height))
            for o in opponents
        )

    def _crash(
        self,
        state: RacingState,
        lane: int,
        opponents: tuple[Car, ...],
        explosions: tuple[Explosion, ...],
        ids: Iterator[int],
        cues: list[str],
    ) -> StepResult:
        player = self._player_rect(lane)
        cx, cy = player.center
        explosions = explosions + (
            Explosion(
                id=next(ids),
                x=cx,
                y=cy,
                size=float(self.params["crash_explosion_size"]),
                duration=float(self.params["crash_explosion_ticks"]),
            ),
        )
        cues.append("crash")
        lives = state.lives - 1
        if lives <= 0:
            cues.append("game-over")
            next_state = replace(
                state, lives=0, explosions=explosions, next_id=next(ids), status=Status.LOST
            )
            return StepResult(next_state, tuple(cues))
        # Cars close to the player are cleared so the respawn is not an instant re-crash.
        safe = tuple(o for o in opponents if abs(o.y - self.player_y) > self.safe_gap)
        # The player stays in the lane it held before the crash.
        next_state = replace(
            state,
            lives=lives,
            invincibility=int(self.params["invincibility_ticks"]),
            opponents=safe,
            explosions=explosions,
            next_id=next(ids),
        )
        return StepResult(next_state, tuple(cues))

    def step(self, state: RacingState, inputs: InputSnapshot, rng: random.Random) -> StepResult:
        cues: list[str] = []
        ids = itertools.count(state.next_id)

        if state.boss_warning > 0:
            remaining = state.boss_warning - 1
            state = replace(state, boss_warning=remaining)
            if remaining == 0 and state.mode is Mode.NORMAL:
                state = replace(
                    state, mode=Mode.BOSS_FIGHT, opponents=(), road_lines=(), tank=self._new_tank()
                )
                cues.append("boss-start")

        lane = state.lane
        change = inputs.last_press(("ArrowLeft", "ArrowRight"))
        if change == "ArrowLeft":
            lane = max(0, lane - 1)
        elif change == "ArrowRight":
            lane = min(len(self.lanes) - 1, lane + 1)

        projectiles = state.projectiles
        shoot_cooldown = state.shoot_cooldown
        if state.mode is Mode.BOSS_FIGHT and inputs.was_pressed("ArrowUp") and shoot_cooldown <= 0:
            width = float(self.params["projectile_width"])
            projectiles = projectiles + (
                Projectile(
                    id=next(ids),
                    x=self.lanes[lane] + self.car_width / 2 - width / 2,
                    y=self.player_y,
                    width=width,
                    height=float(self.params["projectile_height"]),
                ),
            )
            shoot_cooldown = int(self.params["fire_cooldown"])
            cues.append("fire")

        score = state.score + 1 if state.mode is Mode.NORMAL else state.score
        speed = self._speed_for(score)
        invincibility = max(0, state.invincibility - 1)
        explosions = tuple(
            replace(e, duration=e.duration - 1) for e in state.explosions if e.duration - 1 > 0
        )

        if (
            state.mode is Mode.NORMAL
            and state.boss_warning == 0
            and score >= state.next_boss_score
        ):
            cues.append("boss-warning")
            next_state = replace(
                state,
                lane=lane,
                boss_warning=int(self.params["boss_warning_ticks"]),
                next_id=next(ids),
            )
            return StepResult(next_state, tuple(cues))

        if state.mode is Mode.NORMAL:
            opponents = tuple(
                replace(o, y=o.y + o.speed) for o in state.opponents if o.y + o.speed < self.height
            )
            road_lines = tuple(
                replace(rl, y=rl.y + state.speed)
                for rl in state.road_lines
                if rl.y + state.speed < self.height
            )
            if state.invincibility <= 0 and self._collides(lane, opponents):
                return self._crash(state, lane, opponents, explosions, ids, cues)
            next_state = replace(
                state,
                lane=lane,
                opponents=opponents,
                road_lines=road_lines,
                score=score,
                speed=speed,
                invincibility=invincibility,
                projectiles=projectiles,
                shoot_cooldown=shoot_cooldown,
                explosions=explosions,
                next_id=next(ids),
            )
            return StepResult(next_state, tuple(cues))

        return self._boss_step(
            state, lane, speed, invincibility, projectiles, shoot_cooldown, explosions, ids, cues, rng
        )

    def _boss_step(
        self,
        state: RacingState,
        lane: int,
        speed: int,
        invincibility: int,
        projectiles: tuple[Projectile, ...],
        shoot_cooldown: int,
        explosions: tuple[Explosion, ...],
        ids: Iterator[int],
        cues: list[str],
        rng: random.Random,
    ) -> StepResult:
        tank = state.tank if state.tank is not None else self._new_tank()
        step = float(self.params["projectile_speed"])
        moved = [replace(p, y=p.y - step) for p in projectiles]
        moved = [p for p in moved if p.y > -p.height]
        opponents = tuple(
            replace(o, y=o.y + o.speed) for o in state.opponents if o.y + o.speed < self.height
        )
        shoot_cooldown = max(0, shoot_cooldown - 1)

        tank_x = tank.x + tank.vx
        vx = tank.vx
        if tank_x <= 0 or tank_x + tank.width >= self.width:
            vx = -vx
        cooldown = tank.shoot_cooldown - 1
        if cooldown <= 0:
            cooldown = float(self.params["tank_cooldown_min"]) + rng.random() * float(
                self.params["tank_cooldown_range"]
            )
            opponents = opponents + (
                Car(
                    id=next(ids),
                    x=tank_x + tank.width / 2 - self.car_width / 2,
                    y=tank.y + tank.height,
                    color=self.colors[rng.randrange(len(self.colors))],
                    speed=speed * float(self.params["tank_car_speed_factor"]),
                ),
            )
            cues.append("tank-fire")

        hp = tank.hp
        body = Rect(tank_x, tank.y, tank.width, tank.height)
        remaining: list[Projectile] = []
        for proj in moved:
            if aabb_overlap(Rect(proj.x, proj.y, proj.width, proj.height), body):
                hp -= 1
                explosions = explosions + (
                    Explosion(id=next(ids), x=proj.x, y=proj.y, size=30.0, duration=15.0),
                )
                cues.append("boss-hit")
            else:
                remaining.append(proj)
        tank = replace(tank, x=tank_x, vx=vx, shoot_cooldown=cooldown, hp=hp)

        if state.invincibility <= 0 and self._collides(lane, opponents):
            return self._crash(replace(state, tank=tank), lane, opponents, explosions, ids, cues)

        if hp <= 0:
            for _ in range(10):
                explosions = explosions + (
                    Explosion(
                        id=next(ids),
                        x=tank.x + rng.random() * tank.width,
                        y=tank.y + rng.random() * tank.height,
                        size=20 + rng.random() * 40,
                        duration=30 + rng.random() * 30,
                    ),
                )
            cues.append("boss-defeated")
            score = state.score + int(self.params["boss_reward"])
            fresh = replace(
                self.initial_state(rng),
                score=score,
                speed=speed,
                explosions=explosions,
                next_boss_score=score + int(self.params["boss_trigger_score"]),
                next_id=next(ids),
            )
            return StepResult(fresh, tuple(cues))

        next_state = replace(
            state,
            lane=lane,
            tank=tank,
            opponents=opponents,
            projectiles=tuple(remaining),
            shoot_cooldown=shoot_cooldown,
            invincibility=invincibility,
            explosions=explosions,
            next_id=next(ids),
        )
        return StepResult(next_state, tuple(cues))

    def spawn(self, state: RacingState, rng: random.Random) -> StepResult:
        if state.mode is Mode.BOSS_FIGHT:
            return StepResult(state)
        ids = itertools.count(state.next_id)
        opponents = state.opponents
        chance = float(self.params["spawn_base_chance"]) + state.speed / float(self.params["spawn_speed_divisor"])
        if rng.random() < chance:
            lane = rng.randrange(len(self.lanes))
            in_lane = [o for o in state.opponents if o.x == self.lanes[lane]]
            if not in_lane or in_lane[-1].y > self.safe_gap:
                car_speed = state.speed * (
                    float(self.params["car_speed_min_factor"]) + rng.random() * float(self.params["car_speed_range"])
                )
                opponents = opponents + (
                    Car(
                        id=next(ids),
                        x=self.lanes[lane],
                        y=-self.car_height,
                        color=self.colors[rng.randrange(len(self.colors))],
                        speed=car_speed,
                    ),
                )

        road_lines = state.road_lines
        line_height = float(self.params["road_line_height"])
        if not road_lines or road_lines[-1].y > line_height * 1.5:
            road_lines = road_lines + (RoadLine(id=next(ids), y=-line_height),)

        return StepResult(
            replace(state, opponents=opponents, road_lines=road_lines, next_id=next(ids))
        )


GAME_NAME = "racing"
GameClass = RacingGame
