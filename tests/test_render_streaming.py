"""Tests for frame serialization, the event bus and the streaming layer."""

from __future__ import annotations

import asyncio
import json
import threading
import time

import pytest

from core.config_loader import load_game_params
from core.event_bus import EventBus
from core.game_session import EVENT_CUE, GameSession
from core.render_state import Frame
from core.scheduler import ManualTimerHost
from core.status import Status
from data.kv_store import InMemoryStore
from games.keepup.sim import KeepUpGame
from games.shooter.sim import Shooter, ShooterState
from games.snake.sim import SnakeGame
from streaming import state_serializer
from streaming.state_serializer import score_only, serialize_frame
from streaming.websocket_server import GameStateServer, _Client, session_input_handler


def _example_frame() -> Frame:
    state = ShooterState(player=Shooter(x=1.0, y=2.0), unlocked=frozenset({"trishot", "default", "shotgun"}))
    return Frame(game="shooter", tick_index=4, status=Status.PLAYING, score=30, state=state)


def _snake_session(bus: EventBus | None = None) -> GameSession:
    store = InMemoryStore()
    game = SnakeGame(params=load_game_params("snake", {}), store=store)
    return GameSession(game, ManualTimerHost(), store, seed=2, event_bus=bus)


def test_frame_serialization_is_plain_json() -> None:
    data = serialize_frame(_example_frame())
    parsed = json.loads(data.decode("utf-8"))

    assert parsed["status"] == "playing"
    assert parsed["state"]["player"] == {"x": 1.0, "y": 2.0, "angle": 0.0}
    assert parsed["state"]["unlocked"] == ["default", "shotgun", "trishot"]
    assert parsed["state"]["banner"]["active"] is False
    assert serialize_frame(_example_frame()) == data


def test_score_only_payload() -> None:
    assert score_only(_example_frame()) == {
        "game": "shooter",
        "tick_index": 4,
        "round_index": 0,
        "status": "playing",
        "score": 30,
    }


def test_oversized_frame_rejected(monkeypatch) -> None:
    monkeypatch.setattr(state_serializer, "MAX_FRAME_BYTES", 16)

    with pytest.raises(ValueError, match="exceeds max size"):
        serialize_frame(_example_frame())


def test_event_bus_dispatches_non_blocking() -> None:
    bus = EventBus(max_workers=2)
    received: list[str] = []
    lock = threading.Lock()

    def _cb(payload: str) -> None:
        with lock:
            received.append(payload)

    bus.subscribe(EVENT_CUE, _cb)
    bus.publish(EVENT_CUE, "eat")
    time.sleep(0.05)
    bus.close()
    bus.publish(EVENT_CUE, "ignored after close")
    assert received == ["eat"]


def test_unsubscribed_callback_gets_nothing() -> None:
    bus = EventBus(max_workers=1)
    received: list[str] = []

    bus.subscribe(EVENT_CUE, received.append)
    bus.unsubscribe(EVENT_CUE, received.append)
    bus.unsubscribe(EVENT_CUE, received.append)
    bus.publish(EVENT_CUE, "hit")
    bus.close()

    assert received == []


def test_failing_subscriber_does_not_reach_publisher(caplog) -> None:
    bus = EventBus(max_workers=1)

    def _boom(_payload: object) -> None:
        raise RuntimeError("speaker unplugged")

    bus.subscribe(EVENT_CUE, _boom)
    bus.publish(EVENT_CUE, "hit")
    bus.close()
    assert "Subscriber for 'cue' failed" in caplog.text


def test_session_publishes_frames_on_the_bus() -> None:
    bus = EventBus(max_workers=2)
    frames: list[Frame] = []
    bus.subscribe("state", frames.append)

    session = _snake_session(bus)
    session.start()
    session.host.run_next()
    time.sleep(0.05)
    bus.close()

    assert sorted(frame.tick_index for frame in frames) == [0, 1]


class _DummyWS:
    def __init__(self) -> None:
        self.frames: list[bytes] = []

    async def send(self, frame: bytes) -> None:
        self.frames.append(frame)


def test_websocket_server_sends_score_only_frames() -> None:
    async def _run() -> None:
        server = GameStateServer(max_fps=60)
        dummy = _DummyWS()
        client = _Client(websocket=dummy, mode="score_only")
        server._clients.append(client)

        sender_task = asyncio.create_task(server._sender_loop(client))
        await server.broadcast(_example_frame())
        # Throttled: a second frame inside the same interval is dropped.
        await server.broadcast(_example_frame())
        await asyncio.sleep(0.05)
        sender_task.cancel()

        assert len(dummy.frames) == 1
        payload = json.loads(dummy.frames[0].decode("utf-8"))
        assert payload["score"] == 30
        assert "state" not in payload

    asyncio.run(_run())


def test_slow_client_keeps_only_newest_frame() -> None:
    async def _run() -> None:
        server = GameStateServer(max_fps=60)
        client = _Client(websocket=_DummyWS())
        server._clients.append(client)

        for tick in range(3):
            frame = Frame(game="snake", tick_index=tick, status=Status.PLAYING, score=0, state={})
            await server.broadcast(frame, force=True)

        assert client.queue.qsize() == 1
        newest = json.loads(client.queue.get_nowait().decode("utf-8"))
        assert newest["tick_index"] == 2

    asyncio.run(_run())


def test_input_handler_routes_keys_and_lifecycle() -> None:
    session = _snake_session()
    session.start()
    handle = session_input_handler(session)

    handle({"press": "ArrowDown"})
    assert session.latch.snapshot().presses == ("ArrowDown",)

    handle({"action": "restart"})
    assert session.round_index == 1

    handle({"action": "exit"})
    assert not session.running


def test_server_rejects_bad_client_input(caplog) -> None:
    session = _snake_session()
    session.start()
    server = GameStateServer(on_input=session_input_handler(session))

    server._dispatch_input({"action": "buy_skin", "args": {"skin": "glitch"}})
    server._dispatch_input({"press": ""})
    server._dispatch_input({"action": "restart", "args": []})

    assert caplog.text.count("Rejected client input") == 2
    assert session.round_index == 1


def test_input_before_start_is_rejected(caplog) -> None:
    session = _snake_session()
    server = GameStateServer(on_input=session_input_handler(session))

    server._dispatch_input({"action": "open_shop"})

    assert "Rejected client input" in caplog.text
    assert not session.running


def test_joystick_and_resize_messages() -> None:
    store = InMemoryStore()
    game = KeepUpGame(params=load_game_params("keepup", {}), store=store)
    session = GameSession(game, ManualTimerHost(), store)
    session.start()
    handle = session_input_handler(session)

    handle({"joystick": {"base": [100, 100], "knob": [100, 180]}})
    assert session.latch.snapshot().axis("move") == (0.0, 1.0)

    handle({"joystick": None})
    assert session.latch.snapshot().axis("move") == (0.0, 0.0)

    handle({"resize": {"width": 800}})
    handle({"pointer": [400, 200]})
    assert session.latch.snapshot().pointer == (200.0, 100.0)
