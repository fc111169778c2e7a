"""Session lifecycle tests driven on a virtual clock."""

from __future__ import annotations

import sqlite3

import pytest

from core.config_loader import load_game_params
from core.game_session import (
    EVENT_CUE,
    EVENT_ERROR,
    EVENT_EXIT,
    EVENT_SESSION_END,
    EVENT_STATE,
    GameSession,
    SessionNotStartedError,
)
from core.scheduler import ManualTimerHost
from core.status import Status
from data.kv_store import TOTAL_COINS_KEY, InMemoryStore, SQLiteStore
from data.session_log import SessionLog
from games.base_game import UnknownActionError
from games.keepup.sim import KeepUpGame
from games.platformer.progress import LEVEL_KEY
from games.platformer.sim import PlatformerGame


class _RecordingBus:
    """Synchronous stand-in for the event bus."""

    def __init__(self) -> None:
        self.events: list[tuple[str, object]] = []

    def publish(self, event_type: str, payload: object) -> None:
        self.events.append((event_type, payload))

    def of(self, event_type: str) -> list[object]:
        return [payload for kind, payload in self.events if kind == event_type]


class _FailingStore(InMemoryStore):
    def set_raw(self, key: str, value: str) -> None:
        raise sqlite3.OperationalError("disk I/O error")


class _FailingBestStore(SQLiteStore):
    def set_raw(self, key: str, value: str) -> None:
        if key == "keepup_best":
            raise sqlite3.OperationalError("database or disk is full")
        super().set_raw(key, value)


def _keepup_session(store: InMemoryStore | None = None, seed: int = 3, **kwargs):
    store = store if store is not None else InMemoryStore()
    game = KeepUpGame(params=load_game_params("keepup", {}), store=store)
    host = ManualTimerHost()
    return GameSession(game, host, store, seed=seed, **kwargs), host


def _play_until_hit(session: GameSession, host: ManualTimerHost, limit: int = 1000) -> None:
    start = session.state.score
    for _ in range(limit):
        session.latch.move_pointer(session.state.balloon.x, 0)
        host.run_next()
        if session.state.score > start:
            return
    pytest.fail("balloon never reached the paddle")


def _play_until_lost(session: GameSession, host: ManualTimerHost, limit: int = 2000) -> None:
    for _ in range(limit):
        # Keep the paddle on the far side of the playfield.
        session.latch.move_pointer(400 if session.state.balloon.x < 200 else 0, 0)
        host.run_next()
        if session.state.status is Status.LOST:
            return
    pytest.fail("balloon never fell out")


def test_start_builds_playing_state_and_arms_tick() -> None:
    session, host = _keepup_session()

    state = session.start()

    assert state.score == 0
    assert state.status is Status.PLAYING
    assert host.pending_count() == 1
    assert session.schedulers[0].interval_ms == 16.0
    assert not session.schedulers[1].active


def test_paddle_contact_scores_and_launches_upward() -> None:
    session, host = _keepup_session()
    session.start()

    _play_until_hit(session, host)

    state = session.state
    assert state.score == 1
    assert state.status is Status.PLAYING
    assert -6.0 < state.balloon.vy <= -5.0
    assert state.balloon.y == 335.0


def test_falling_out_loses_and_freezes_score() -> None:
    session, host = _keepup_session()
    session.start()
    _play_until_hit(session, host)

    _play_until_lost(session, host)

    lost = session.state
    assert lost.score == 1
    assert lost.balloon.y > 400
    # No timer remains and stray ticks leave the state alone.
    assert host.run_next() is False
    session.tick()
    session.tick()
    assert session.state is lost


def test_restart_resets_score_and_status() -> None:
    session, host = _keepup_session()
    session.start()
    _play_until_hit(session, host)
    _play_until_lost(session, host)

    fresh = session.restart()

    assert fresh.score == 0
    assert fresh.status is Status.PLAYING
    assert session.round_index == 1
    assert session.tick_count == 0
    assert host.pending_count() == 1


def test_restart_forgets_pointer_and_keys() -> None:
    session, host = _keepup_session()
    session.start()
    session.latch.move_pointer(10, 0)
    session.latch.press("ArrowLeft")
    host.run_next()

    fresh = session.restart()

    snapshot = session.latch.snapshot(consume=False)
    assert snapshot.pointer is None
    assert snapshot.pressed == frozenset()
    host.run_next()
    assert session.state.paddle_x == fresh.paddle_x == 150.0


def test_restart_twice_is_idempotent() -> None:
    session, host = _keepup_session()
    session.start()
    for _ in range(10):
        host.run_next()

    first = session.restart()
    second = session.restart()

    assert (first.score, first.status, first.balloon.y, first.paddle_x) == (
        second.score,
        second.status,
        second.balloon.y,
        second.paddle_x,
    )
    assert -1.0 <= second.balloon.vx <= 1.0
    assert host.pending_count() == 1


def test_same_seed_and_inputs_give_identical_runs() -> None:
    runs = []
    for _ in range(2):
        session, host = _keepup_session(seed=11)
        session.start()
        states = []
        for i in range(300):
            session.latch.move_pointer(100 + (i * 37) % 200, 0)
            if not host.run_next():
                break
            states.append(session.state)
        runs.append(states)

    assert runs[0] == runs[1]


def test_balloon_stays_inside_side_walls() -> None:
    session, host = _keepup_session(seed=5)
    session.start()
    radius = session.game.radius

    for i in range(600):
        session.latch.move_pointer((i * 53) % 400, 0)
        if not host.run_next():
            break
        if session.state.status is Status.PLAYING:
            assert radius <= session.state.balloon.x <= 400 - radius


def test_status_leaves_lost_only_through_restart() -> None:
    session, host = _keepup_session()
    session.start()
    _play_until_lost(session, host)

    statuses = [session.state.status]
    for _ in range(5):
        host.advance(100)
        session.tick()
        statuses.append(session.state.status)

    assert set(statuses) == {Status.LOST}


def test_round_settles_once_into_store() -> None:
    store = InMemoryStore({TOTAL_COINS_KEY: "10"})
    bus = _RecordingBus()
    session, host = _keepup_session(store=store, event_bus=bus)
    session.start()
    _play_until_hit(session, host)
    _play_until_lost(session, host)
    session.tick()
    session.tick()

    assert len(session.outcomes) == 1
    outcome = session.outcomes[0]
    assert outcome.score == 1
    assert outcome.currency_delta == 1
    assert outcome.new_high_score
    assert store.get_int(TOTAL_COINS_KEY) == 11
    assert store.get_int("keepup_best") == 1
    assert bus.of(EVENT_SESSION_END) == [outcome]


def test_lower_score_keeps_previous_best() -> None:
    store = InMemoryStore({"keepup_best": "7"})
    session, host = _keepup_session(store=store)
    session.start()
    _play_until_lost(session, host)

    outcome = session.outcomes[-1]
    assert outcome.score == 0
    assert outcome.high_score == 7
    assert not outcome.new_high_score
    assert store.get_int("keepup_best") == 7


def test_store_failure_is_reported_not_raised() -> None:
    bus = _RecordingBus()
    session, host = _keepup_session(store=_FailingStore(), event_bus=bus)
    session.start()
    _play_until_hit(session, host)
    _play_until_lost(session, host)

    assert len(session.outcomes) == 1
    errors = bus.of(EVENT_ERROR)
    assert errors and "disk I/O error" in errors[0]["message"]


def test_failed_settle_writes_nothing(tmp_path) -> None:
    db_path = tmp_path / "kv.db"
    bus = _RecordingBus()
    store = _FailingBestStore(db_path)
    session, host = _keepup_session(store=store, event_bus=bus)
    session.start()
    _play_until_hit(session, host)
    _play_until_lost(session, host)

    assert session.state.status is Status.LOST
    assert bus.of(EVENT_ERROR)
    assert store.get_int(TOTAL_COINS_KEY) == 0
    store.close()

    reopened = SQLiteStore(db_path)
    assert reopened.get_raw(TOTAL_COINS_KEY) is None
    assert reopened.get_raw("keepup_best") is None
    reopened.close()


def test_session_log_gets_one_row_per_round(tmp_path) -> None:
    log = SessionLog(tmp_path / "sessions.db")
    session, host = _keepup_session(session_log=log)
    session.start()
    _play_until_lost(session, host)
    session.restart()
    _play_until_lost(session, host)

    rows = log.fetch_results("keepup")
    assert [row["round_index"] for row in rows] == [0, 1]
    assert {row["session_id"] for row in rows} == {session.session_id}
    log.close()


def test_cues_and_frames_are_published() -> None:
    bus = _RecordingBus()
    session, host = _keepup_session(event_bus=bus)
    session.start()
    _play_until_hit(session, host)

    assert "hit" in bus.of(EVENT_CUE)
    frames = bus.of(EVENT_STATE)
    assert frames[0].tick_index == 0
    assert frames[-1].score == 1
    assert frames[-1].tick_index == session.tick_count


def test_exit_stops_every_timer() -> None:
    bus = _RecordingBus()
    session, host = _keepup_session(event_bus=bus)
    session.start()
    host.run_next()

    session.exit()
    before = session.state
    session.tick()

    assert host.pending_count() == 0
    assert not session.running
    assert session.state is before
    assert bus.of(EVENT_EXIT) == [{"game": "keepup", "round_index": 0}]


def test_actions_require_a_started_session() -> None:
    session, _host = _keepup_session()

    with pytest.raises(SessionNotStartedError):
        session.perform("open_shop")

    session.start()
    with pytest.raises(UnknownActionError, match="no action 'open_shop'"):
        session.perform("open_shop")


LEVELS_YAML = """
levels:
  - name: Start On Goal
    player_start: [10, 40]
    platforms:
      - [0, 60, 100, 20]
    coins: [[10, 45]]
    goal: {x: 10, y: 40, size: 30}
  - name: Second
    player_start: [50, 340]
    platforms:
      - [0, 380, 200, 20]
    goal: {x: 350, y: 40, size: 30}
"""


def test_platformer_win_advances_after_delay(tmp_path) -> None:
    levels = tmp_path / "levels.yaml"
    levels.write_text(LEVELS_YAML, encoding="utf-8")
    store = InMemoryStore()
    game = PlatformerGame(params=load_game_params("platformer", {"levels_path": str(levels)}), store=store)
    host = ManualTimerHost()
    session = GameSession(game, host, store, seed=1)
    session.start()

    host.run_next()

    assert session.state.status is Status.WON
    assert store.get_int(TOTAL_COINS_KEY) == 1
    assert store.get_int(LEVEL_KEY) == 1
    assert session.schedulers[2].interval_ms == 1500.0

    won_at = host.now_ms
    host.run_next()

    assert host.now_ms == won_at + 1500.0
    assert session.state.level == 1
    assert session.state.status is Status.PLAYING
    assert session.round_index == 1
    assert not session.schedulers[2].active
