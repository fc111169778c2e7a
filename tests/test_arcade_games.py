"""Tests for the real-time games: danger, sky gift and racing."""

from __future__ import annotations

import random

import pytest

from core.config_loader import load_game_params
from core.input_latch import EMPTY_INPUT, InputSnapshot
from core.status import Status
from data.kv_store import InMemoryStore
from games.danger.sim import DangerGame, DangerState, Obstacle
from games.keepup.sim import Balloon, KeepUpGame, KeepUpState
from games.racing.sim import Car, Mode, Projectile, RacingGame, RacingState, Tank
from games.sky_gift.sim import Gift, SkyGiftGame, SkyGiftState


def _held(*keys: str) -> InputSnapshot:
    return InputSnapshot(pressed=frozenset(keys), presses=keys)


def _danger() -> DangerGame:
    return DangerGame(params=load_game_params("danger", {}), store=InMemoryStore())


def _sky() -> SkyGiftGame:
    return SkyGiftGame(params=load_game_params("sky_gift", {}), store=InMemoryStore())


def _racing(**params) -> RacingGame:
    return RacingGame(params=load_game_params("racing", params), store=InMemoryStore())


def _keepup() -> KeepUpGame:
    return KeepUpGame(params=load_game_params("keepup", {}), store=InMemoryStore())


def test_danger_opposite_keys_cancel_and_wasd_moves() -> None:
    game = _danger()
    state = game.initial_state(random.Random(0))

    cancelled = game.step(state, _held("ArrowLeft", "ArrowRight"), random.Random(0)).state
    assert (cancelled.x, cancelled.y) == (state.x, state.y)

    moved = game.step(state, _held("w", "d"), random.Random(0)).state
    assert (moved.x, moved.y) == (state.x + 8, state.y - 8)


def test_danger_player_is_clamped_to_field() -> None:
    game = _danger()
    state = DangerState(x=2.0, y=379.0)

    result = game.step(state, _held("ArrowLeft", "ArrowDown"), random.Random(0)).state

    assert result.x == 0.0
    assert result.y == 380.0


def test_danger_spawn_enters_from_an_edge() -> None:
    game = _danger()
    state = game.initial_state(random.Random(0))
    rng = random.Random(5)
    for _ in range(20):
        state = game.spawn(state, rng).state

    assert [o.id for o in state.obstacles] == list(range(20))
    for o in state.obstacles:
        on_edge = o.y == -25.0 or o.y == 400.0 or o.x == -25.0 or o.x == 400.0
        assert on_edge
        assert 1.5 <= max(abs(o.vx), abs(o.vy)) <= 4.0


def test_danger_collision_loses_and_offscreen_obstacles_despawn() -> None:
    game = _danger()
    state = DangerState(
        x=100.0,
        y=100.0,
        obstacles=(
            Obstacle(id=0, x=95.0, y=90.0, vx=1.0, vy=1.0),
            Obstacle(id=1, x=399.0, y=10.0, vx=30.0, vy=0.0),
        ),
    )

    result = game.step(state, EMPTY_INPUT, random.Random(0))

    assert result.state.status is Status.LOST
    assert [o.id for o in result.state.obstacles] == [0]
    assert result.cues == ("game-over",)


def test_danger_score_counts_survived_ticks() -> None:
    game = _danger()
    state = game.initial_state(random.Random(0))
    for _ in range(50):
        state = game.step(state, EMPTY_INPUT, random.Random(0)).state

    assert state.score == 50
    assert game.elapsed_seconds(state) == pytest.approx(1.0)


def test_sky_gift_left_has_priority() -> None:
    game = _sky()
    state = game.initial_state(random.Random(0))

    result = game.step(state, _held("ArrowLeft", "ArrowRight"), random.Random(0)).state

    assert result.player_x == state.player_x - 10


def test_sky_gift_catch_and_miss() -> None:
    game = _sky()
    state = SkyGiftState(
        player_x=170.0,
        gifts=(Gift(id=0, x=180.0, y=350.0), Gift(id=1, x=0.0, y=397.0), Gift(id=2, x=300.0, y=0.0)),
        lives=3,
    )

    result = game.step(state, EMPTY_INPUT, random.Random(0))

    assert result.state.score == 10
    assert result.state.lives == 2
    assert [g.id for g in result.state.gifts] == [2]
    assert result.state.gifts[0].y == 4.0
    assert set(result.cues) == {"catch", "miss"}


def test_sky_gift_last_life_lost_ends_game() -> None:
    game = _sky()
    state = SkyGiftState(player_x=300.0, gifts=(Gift(id=0, x=0.0, y=398.0),), lives=1)

    result = game.step(state, EMPTY_INPUT, random.Random(0))

    assert result.state.status is Status.LOST
    assert result.state.lives == 0
    assert game.spawn_interval_ms(result.state) is None


def test_racing_lane_change_uses_last_press_and_clamps() -> None:
    game = _racing()
    state = game.initial_state(random.Random(0))

    state = game.step(state, _held("ArrowRight", "ArrowLeft"), random.Random(0)).state
    assert state.lane == 0
    state = game.step(state, InputSnapshot(presses=("ArrowLeft",)), random.Random(0)).state
    assert state.lane == 0
    assert state.score == 2


def test_racing_speed_grows_with_score() -> None:
    game = _racing()
    state = RacingState(score=899, speed=7)

    result = game.step(state, EMPTY_INPUT, random.Random(0))

    assert result.state.score == 900
    assert result.state.speed == 8


def test_racing_crash_costs_life_and_grants_invincibility() -> None:
    game = _racing()
    car_x = game.lanes[1]
    state = RacingState(opponents=(Car(id=0, x=car_x, y=300.0, color="#fff", speed=5.0),), next_id=1)

    result = game.step(state, EMPTY_INPUT, random.Random(0))

    assert result.state.lives == 2
    assert result.state.invincibility == 180
    assert result.state.opponents == ()
    assert "crash" in result.cues
    assert result.state.status is Status.PLAYING


def test_racing_crash_keeps_previous_lane() -> None:
    game = _racing()
    swerve_into = Car(id=0, x=game.lanes[2], y=300.0, color="#fff", speed=5.0)
    state = RacingState(lane=1, opponents=(swerve_into,), next_id=1)

    result = game.step(state, _held("ArrowRight"), random.Random(0))

    assert "crash" in result.cues
    assert result.state.lives == 2
    assert result.state.lane == 1
    # The crash happened in the lane the player swerved into.
    assert result.state.explosions[-1].x == game.lanes[2] + game.car_width / 2


def test_racing_last_life_crash_loses() -> None:
    game = _racing()
    state = RacingState(lives=1, opponents=(Car(id=0, x=game.lanes[1], y=300.0, color="#fff", speed=5.0),))

    result = game.step(state, EMPTY_INPUT, random.Random(0))

    assert result.state.status is Status.LOST
    assert result.cues[-1] == "game-over"


def test_racing_boss_warning_then_boss_fight() -> None:
    game = _racing()
    state = RacingState(score=1249)

    result = game.step(state, EMPTY_INPUT, random.Random(0))
    assert "boss-warning" in result.cues
    assert result.state.boss_warning == 125
    assert result.state.mode is Mode.NORMAL

    state = result.state
    started = False
    for _ in range(125):
        result = game.step(state, EMPTY_INPUT, random.Random(0))
        state = result.state
        started = started or "boss-start" in result.cues
        # The warning never re-arms while it is counting down.
        assert "boss-warning" not in result.cues

    assert started
    assert state.mode is Mode.BOSS_FIGHT
    assert state.tank is not None
    assert game.spawn(state, random.Random(0)).state == state


def test_racing_boss_defeat_rewards_and_rearms() -> None:
    game = _racing()
    tank = Tank(x=150.0, y=10.0, width=100.0, height=60.0, hp=1, max_hp=30, vx=2.0, shoot_cooldown=100.0)
    state = RacingState(
        score=1300,
        mode=Mode.BOSS_FIGHT,
        tank=tank,
        projectiles=(Projectile(id=0, x=195.0, y=80.0, width=10.0, height=20.0),),
        next_id=1,
    )

    result = game.step(state, EMPTY_INPUT, random.Random(0))

    assert "boss-defeated" in result.cues
    assert result.state.mode is Mode.NORMAL
    assert result.state.tank is None
    assert result.state.score == 2300
    assert result.state.next_boss_score == 3550
    assert result.state.status is Status.PLAYING


def test_racing_player_fires_only_in_boss_fight() -> None:
    game = _racing()
    tank = Tank(x=0.0, y=10.0, width=100.0, height=60.0, hp=30, max_hp=30, vx=2.0, shoot_cooldown=100.0)
    boss = RacingState(mode=Mode.BOSS_FIGHT, tank=tank, lane=2)

    fired = game.step(boss, InputSnapshot(presses=("ArrowUp",)), random.Random(0))
    assert "fire" in fired.cues
    assert len(fired.state.projectiles) == 1
    assert fired.state.shoot_cooldown == 19

    normal = game.step(RacingState(), InputSnapshot(presses=("ArrowUp",)), random.Random(0))
    assert normal.state.projectiles == ()


def _about_to_hit(score: int, gravity: float = 0.1) -> KeepUpState:
    # Paddle centred at x=200; the balloon drops onto its right edge.
    return KeepUpState(balloon=Balloon(x=250.0, y=336.0, vx=0.0, vy=2.0), paddle_x=150.0, score=score, gravity=gravity)


def test_keepup_tier_threshold_fires_once() -> None:
    game = _keepup()
    pointer = InputSnapshot(pointer=(200.0, 0.0))

    crossing = game.step(_about_to_hit(19), pointer, random.Random(0))

    state = crossing.state
    assert crossing.cues == ("hit", "transform")
    assert state.score == 20
    assert state.flash_timer == 15
    assert state.shockwave.active
    assert state.shockwave.size == 0.0
    assert state.gravity == 0.2
    assert state.balloon.vx == pytest.approx(5.5)
    assert state.balloon.vy == pytest.approx((-5.0 - random.Random(0).random()) * 1.1)

    for score in (20, 21):
        again = game.step(_about_to_hit(score, gravity=state.gravity), pointer, random.Random(0))
        assert again.cues == ("hit",)
        assert again.state.score == score + 1
        assert again.state.flash_timer == 0
        assert not again.state.shockwave.active
