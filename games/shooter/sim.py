"""Shield shooter: hold off waves of enemies closing in on a shielded player."""

from __future__ import annotations

import itertools
import math
import random
from dataclasses import dataclass, field, replace
from typing import Any

from core.input_latch import InputSnapshot
from core.physics import circles_overlap, clamp, distance, safe_angle
from core.status import Status
from data.kv_store import KeyValueStore
from games.base_game import Action, Game, StepResult


FIRE_KEY = "fire"
MOVE_AXIS = "move"

# weapon -> (cooldown ticks, spread offsets in degrees)
WEAPONS: dict[str, tuple[int, tuple[float, ...]]] = {
    "default": (10, (0.0,)),
    "shotgun": (15, (-7.5, 7.5)),
    "trishot": (20, (-15.0, 0.0, 15.0)),
}

UNLOCK_TEXT = {
    "shotgun": "SHOTGUN UNLOCKED!",
    "trishot": "TRI-SHOT UNLOCKED!",
}


@dataclass(frozen=True)
class Shooter:
    x: float
    y: float
    angle: float = 0.0


@dataclass(frozen=True)
class Bullet:
    id: int
    x: float
    y: float
    vx: float
    vy: float
    radius: float


@dataclass(frozen=True)
class Enemy:
    id: int
    x: float
    y: float
    vx: float
    vy: float
    radius: float
    hp: int
    kind: str = "normal"


@dataclass(frozen=True)
class Blast:
    id: int
    x: float
    y: float
    radius: float
    duration: float


@dataclass(frozen=True)
class Banner:
    active: bool = False
    text: str = ""
    timer: int = 0


@dataclass(frozen=True)
class ShooterState:
    player: Shooter
    projectiles: tuple[Bullet, ...] = ()
    enemies: tuple[Enemy, ...] = ()
    explosions: tuple[Blast, ...] = ()
    shield: int = 100
    score: int = 0
    shoot_cooldown: float = 0.0
    game_time: int = 0
    fire_rate_timer: int = 0
    hp_boost_timer: int = 0
    unlocked: frozenset[str] = field(default_factory=lambda: frozenset({"default"}))
    weapon: str = "default"
    banner: Banner = Banner()
    next_id: int = 0
    status: Status = Status.PLAYING


class ShooterGame(Game):
    """Pointer aims, the ``move`` axis steers, holding ``fire`` shoots.

    The score doubles as shop currency. Weapon unlocks survive a restart
    within the same mount.
    """

    name = "shooter"

    def __init__(self, params: dict[str, Any], store: KeyValueStore) -> None:
        super().__init__(params=params, store=store)
        self.width = float(params["width"])
        self.height = float(params["height"])

    def initial_state(self, rng: random.Random, previous: Any = None) -> ShooterState:
        state = ShooterState(
            player=Shooter(x=self.width / 2, y=self.height / 2),
            shield=int(self.params["shield_max"]),
        )
        if isinstance(previous, ShooterState):
            state = replace(state, unlocked=previous.unlocked, weapon=previous.weapon)
        return state

    def max_shield(self, state: ShooterState) -> int:
        if state.hp_boost_timer > 0:
            return int(self.params["boosted_shield_max"])
        return int(self.params["shield_max"])

    def step(self, state: ShooterState, inputs: InputSnapshot, rng: random.Random) -> StepResult:
        cues: list[str] = []
        ids = itertools.count(state.next_id)

        banner = state.banner
        if banner.timer > 0:
            banner = replace(banner, timer=banner.timer - 1)
        elif banner.active:
            banner = replace(banner, active=False)

        game_time = state.game_time + 1
        player = state.player
        if inputs.pointer is not None:
            angle = safe_angle(inputs.pointer[0] - player.x, inputs.pointer[1] - player.y, player.angle)
        else:
            angle = player.angle
        r = float(self.params["player_radius"])
        speed = float(self.params["player_speed"])
        ax, ay = inputs.axis(MOVE_AXIS)
        px = clamp(player.x + ax * speed, r, self.width - r)
        py = clamp(player.y + ay * speed, r, self.height - r)
        player = Shooter(x=px, y=py, angle=angle)

        shield = state.shield
        expired_boost = state.hp_boost_timer > 0 and state.hp_boost_timer - 1 <= 0
        fire_rate_timer = max(0, state.fire_rate_timer - 1)
        hp_boost_timer = max(0, state.hp_boost_timer - 1)
        if expired_boost:
            shield = min(shield, int(self.params["shield_max"]))

        projectiles = list(state.projectiles)
        cooldown = max(0.0, state.shoot_cooldown - 1)
        if inputs.is_pressed(FIRE_KEY) and cooldown == 0:
            base_cooldown, offsets = WEAPONS.get(state.weapon, WEAPONS["default"])
            bullet_speed = float(self.params["projectile_speed"])
            for offset in offsets:
                rad = math.radians(angle + offset)
                projectiles.append(
                    Bullet(
                        id=next(ids),
                        x=px,
                        y=py,
                        vx=math.cos(rad) * bullet_speed,
                        vy=math.sin(rad) * bullet_speed,
                        radius=float(self.params["projectile_radius"]),
                    )
                )
            cooldown = base_cooldown / 2 if fire_rate_timer > 0 else float(base_cooldown)
            cues.append("fire")

        projectiles = [replace(b, x=b.x + b.vx, y=b.y + b.vy) for b in projectiles]
        projectiles = [b for b in projectiles if 0 < b.x < self.width and 0 < b.y < self.height]
        enemies = [replace(e, x=e.x + e.vx, y=e.y + e.vy) for e in state.enemies]

        spawned = self._maybe_spawn(player, game_time, ids, rng)
        if spawned is not None:
            enemies.append(spawned)

        explosions = list(state.explosions)
        score = state.score
        remaining: list[Bullet] = []
        for bullet in projectiles:
            hit = False
            for i, enemy in enumerate(enemies):
                if enemy.hp <= 0:
                    continue
                if circles_overlap(bullet.x, bullet.y, bullet.radius, enemy.x, enemy.y, enemy.radius):
                    hit = True
                    enemy = replace(enemy, hp=enemy.hp - 1)
                    enemies[i] = enemy
                    explosions.append(Blast(next(ids), enemy.x, enemy.y, enemy.radius * 1.5, 15.0))
                    if enemy.hp <= 0:
                        points = "zombie_points" if enemy.kind == "zombie" else "normal_points"
                        score += int(self.params[points])
                        explosions.append(Blast(next(ids), enemy.x, enemy.y, enemy.radius * 3, 30.0))
                        cues.append("kill")
            if not hit:
                remaining.append(bullet)

        shield_radius = float(self.params["shield_radius"])
        survivors: list[Enemy] = []
        for enemy in enemies:
            if enemy.hp <= 0:
                continue
            if distance(enemy.x, enemy.y, px, py) < shield_radius + enemy.radius:
                shield -= int(self.params["shield_hit_damage"])
                explosions.append(Blast(next(ids), enemy.x, enemy.y, enemy.radius * 3, 30.0))
                cues.append("shield-hit")
            else:
                survivors.append(enemy)

        status = Status.PLAYING
        if shield <= 0:
            shield = 0
            status = Status.LOST
            cues.append("game-over")
            for _ in range(20):
                theta = rng.random() * math.pi * 2
                explosions.append(
                    Blast(
                        id=next(ids),
                        x=px + math.cos(theta) * (shield_radius * rng.random()),
                        y=py + math.sin(theta) * (shield_radius * rng.random()),
                        radius=20 + rng.random() * 40,
                        duration=30 + rng.random() * 30,
                    )
                )

        explosions = [replace(b, duration=b.duration - 1) for b in explosions]
        next_state = replace(
            state,
            player=player,
            projectiles=tuple(remaining),
            enemies=tuple(survivors),
            explosions=tuple(b for b in explosions if b.duration > 0),
            shield=shield,
            score=score,
            shoot_cooldown=cooldown,
            game_time=game_time,
            fire_rate_timer=fire_rate_timer,
            hp_boost_timer=hp_boost_timer,
            banner=banner,
            next_id=next(ids),
            status=status,
        )
        if status is Status.PLAYING:
            next_state = self._apply_unlocks(next_state, cues)
        return StepResult(next_state, tuple(cues))

    def _maybe_spawn(
        self,
        player: Shooter,
        game_time: int,
        ids: Any,
        rng: random.Random,
    ) -> Enemy | None:
        rate = max(
            float(self.params["spawn_rate_min"]),
            float(self.params["spawn_rate_start"]) - game_time / float(self.params["spawn_rate_decay"]),
        )
        if rng.random() >= float(self.params["spawn_chance_scale"]) / rate:
            return None
        spawn_angle = rng.random() * math.pi * 2
        spawn_dist = max(self.width / 2, self.height / 2) + float(self.params["spawn_margin"])
        sx = player.x + math.cos(spawn_angle) * spawn_dist
        sy = player.y + math.sin(spawn_angle) * spawn_dist
        target = math.atan2(player.y - sy, player.x - sx)
        base_speed = float(self.params["enemy_speed_start"]) + game_time / float(self.params["enemy_speed_growth"])
        if game_time > int(self.params["zombie_after_ticks"]) and rng.random() < float(self.params["zombie_chance"]):
            zombie_speed = base_speed * 0.2
            return Enemy(
                id=next(ids),
                x=sx,
                y=sy,
                vx=math.cos(target) * zombie_speed,
                vy=math.sin(target) * zombie_speed,
                radius=15 + rng.random() * 5,
                hp=2,
                kind="zombie",
            )
        return Enemy(
            id=next(ids),
            x=sx,
            y=sy,
            vx=math.cos(target) * base_speed,
            vy=math.sin(target) * base_speed,
            radius=10 + rng.random() * 10,
            hp=1,
        )

    def _apply_unlocks(self, state: ShooterState, cues: list[str]) -> ShooterState:
        thresholds = (
            ("shotgun", int(self.params["shotgun_unlock_score"])),
            ("trishot", int(self.params["trishot_unlock_score"])),
        )
        for weapon, score in thresholds:
            if state.score >= score and weapon not in state.unlocked:
                state = replace(
                    state,
                    unlocked=state.unlocked | {weapon},
                    weapon=weapon,
                    banner=Banner(active=True, text=UNLOCK_TEXT[weapon], timer=int(self.params["unlock_banner_ticks"])),
                )
                cues.append("unlock")
        return state

    def actions(self) -> dict[str, Action]:
        return {
            "open_shop": self.open_shop,
            "close_shop": self.close_shop,
            "buy_fire_rate": self.buy_fire_rate,
            "buy_hp_boost": self.buy_hp_boost,
            "equip_weapon": self.equip_weapon,
        }

    def open_shop(self, state: ShooterState) -> StepResult:
        if state.status is not Status.PLAYING:
            return StepResult(state)
        return StepResult(replace(state, status=Status.IN_SUB_MENU))

    def close_shop(self, state: ShooterState) -> StepResult:
        if state.status is not Status.IN_SUB_MENU:
            return StepResult(state)
        return StepResult(replace(state, status=Status.PLAYING))

    def _can_shop(self, state: ShooterState) -> bool:
        return state.status in (Status.PLAYING, Status.IN_SUB_MENU)

    def buy_fire_rate(self, state: ShooterState) -> StepResult:
        cost = int(self.params["fire_rate_cost"])
        if not self._can_shop(state) or state.score < cost or state.fire_rate_timer > 0:
            return StepResult(state)
        next_state = replace(
            state,
            score=state.score - cost,
            fire_rate_timer=int(self.params["power_up_ticks"]),
            status=Status.PLAYING,
        )
        return StepResult(next_state, ("purchase",))

    def buy_hp_boost(self, state: ShooterState) -> StepResult:
        cost = int(self.params["hp_boost_cost"])
        if not self._can_shop(state) or state.score < cost or state.hp_boost_timer > 0:
            return StepResult(state)
        next_state = replace(
            state,
            score=state.score - cost,
            shield=int(self.params["boosted_shield_max"]),
            hp_boost_timer=int(self.params["power_up_ticks"]),
            status=Status.PLAYING,
        )
        return StepResult(next_state, ("purchase",))

    def equip_weapon(self, state: ShooterState, weapon: str = "default") -> StepResult:
        if weapon not in state.unlocked or not self._can_shop(state):
            return StepResult(state)
        return StepResult(replace(state, weapon=weapon, status=Status.PLAYING))


GAME_NAME = "shooter"
GameClass = ShooterGame
