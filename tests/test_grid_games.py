"""Tests for the grid games: snake and dot runner."""

from __future__ import annotations

import random

import pytest

from core.config_loader import load_game_params
from core.input_latch import EMPTY_INPUT, InputSnapshot
from core.status import Status
from data.kv_store import InMemoryStore
from games.dot_runner.sim import Collectible, DotRunnerGame, DotRunnerState
from games.snake.sim import Food, SnakeGame, SnakeState


def _snake(**params) -> SnakeGame:
    return SnakeGame(params=load_game_params("snake", params), store=InMemoryStore())


def _runner(**params) -> DotRunnerGame:
    return DotRunnerGame(params=load_game_params("dot_runner", params), store=InMemoryStore())


def _presses(*keys: str) -> InputSnapshot:
    return InputSnapshot(presses=keys)


def test_snake_initial_food_is_off_the_snake() -> None:
    game = _snake()
    for seed in range(20):
        state = game.initial_state(random.Random(seed))
        assert state.snake == ((10, 10),)
        assert (state.food.x, state.food.y) not in state.snake
        assert state.status is Status.PLAYING


def test_snake_ignores_reversal_and_uses_last_buffered_arrow() -> None:
    game = _snake()
    state = SnakeState(snake=((10, 10),), food=Food(0, 0, "x"))

    reversed_state = game.step(state, _presses("ArrowLeft"), random.Random(0)).state
    assert reversed_state.snake[0] == (11, 10)

    turned = game.step(state, _presses("ArrowUp", "ArrowDown"), random.Random(0)).state
    assert turned.snake[0] == (10, 11)
    assert turned.direction == "ArrowDown"


def test_snake_eating_grows_and_speeds_up() -> None:
    game = _snake()
    state = SnakeState(snake=((10, 10),), food=Food(11, 10, "x"), speed=150)

    result = game.step(state, EMPTY_INPUT, random.Random(1))

    assert result.cues == ("eat",)
    assert result.state.score == 1
    assert result.state.snake == ((11, 10), (10, 10))
    assert result.state.speed == 145
    assert game.tick_interval_ms(result.state) == 145.0


def test_snake_speed_has_a_floor() -> None:
    game = _snake()
    state = SnakeState(snake=((10, 10),), food=Food(11, 10, "x"), speed=52)
    assert game.step(state, EMPTY_INPUT, random.Random(1)).state.speed == 50


def test_snake_wall_and_self_collision_lose() -> None:
    game = _snake()
    at_wall = SnakeState(snake=((19, 10),), food=Food(0, 0, "x"))
    result = game.step(at_wall, EMPTY_INPUT, random.Random(0))
    assert result.state.status is Status.LOST
    assert game.tick_interval_ms(result.state) is None

    coiled = SnakeState(
        snake=((5, 5), (6, 5), (6, 6), (5, 6), (4, 6), (4, 5)),
        food=Food(0, 0, "x"),
        direction="ArrowLeft",
    )
    assert game.step(coiled, _presses("ArrowDown"), random.Random(0)).state.status is Status.LOST


def test_snake_filling_the_board_wins() -> None:
    game = _snake(grid_size=2)
    state = SnakeState(snake=((0, 0), (1, 0), (1, 1)), food=Food(0, 1, "x"), direction="ArrowLeft")

    result = game.step(state, _presses("ArrowDown"), random.Random(0))

    assert result.state.status is Status.WON
    assert result.state.food is None


def test_dot_runner_presses_move_player_and_clamp() -> None:
    game = _runner()
    state = DotRunnerState(player=(0, 5), shadow=(20, 20), collectible=Collectible(10, 10, "*"), shadow_chance=0.0)

    result = game.step(state, _presses("ArrowLeft", "ArrowDown", "ArrowDown"), random.Random(0))

    assert result.state.player == (0, 7)
    assert result.state.shadow == (20, 20)


def test_dot_runner_pickup_scores_and_respawns_elsewhere() -> None:
    game = _runner()
    state = DotRunnerState(player=(5, 5), shadow=(0, 0), collectible=Collectible(6, 5, "*"), shadow_chance=0.0)

    result = game.step(state, _presses("ArrowRight"), random.Random(3))

    assert result.state.score == 1
    assert result.state.speed == 128
    assert "collect" in result.cues
    new = result.state.collectible
    assert (new.x, new.y) not in {result.state.player, result.state.shadow}


def test_dot_runner_shadow_catches_player() -> None:
    game = _runner()
    state = DotRunnerState(player=(1, 0), shadow=(0, 0), collectible=Collectible(9, 9, "*"), shadow_chance=1.0)

    result = game.step(state, EMPTY_INPUT, random.Random(0))

    assert result.state.shadow == (1, 0)
    assert result.state.status is Status.LOST
    assert "game-over" in result.cues


def test_dot_runner_power_up_freezes_shadow() -> None:
    game = _runner()
    state = DotRunnerState(
        player=(3, 0),
        shadow=(0, 0),
        collectible=Collectible(9, 9, "*"),
        shadow_chance=1.0,
        power_up_timer=5,
    )

    result = game.step(state, EMPTY_INPUT, random.Random(0))

    assert result.state.shadow == (0, 0)
    assert result.state.power_up_timer == 4
    assert result.state.proximity_alert


def test_dot_runner_power_up_expiry_raises_chase_chance() -> None:
    game = _runner()
    state = DotRunnerState(
        player=(20, 20),
        shadow=(0, 0),
        collectible=Collectible(9, 9, "*"),
        shadow_chance=0.35,
        power_up_timer=1,
    )

    result = game.step(state, EMPTY_INPUT, random.Random(0))

    assert result.state.power_up_timer == 0
    assert result.state.shadow_chance == pytest.approx(0.38)


def test_dot_runner_power_up_arrives_on_schedule() -> None:
    game = _runner()
    state = DotRunnerState(player=(20, 20), shadow=(0, 0), collectible=Collectible(9, 9, "*"), game_time=79)

    result = game.step(state, EMPTY_INPUT, random.Random(0))

    assert "power-up" in result.cues
    assert result.state.power_up_timer == 25
