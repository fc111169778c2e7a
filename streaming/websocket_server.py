"""Frame websocket streaming server with an input back-channel."""

from __future__ import annotations

import asyncio
import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable

import websockets

from core.input_latch import JOYSTICK_MAX_RADIUS, joystick_vector
from core.input_trace import parse_input_event
from core.game_session import SessionNotStartedError
from games.base_game import UnknownActionError
from streaming.state_serializer import score_only, serialize_frame


LOGGER = logging.getLogger(__name__)

MODES = ("full_state", "score_only")

InputCallback = Callable[[dict[str, Any]], None]


@dataclass
class _Client:
    websocket: Any
    mode: str = "full_state"
    queue: asyncio.Queue[bytes] = field(default_factory=lambda: asyncio.Queue(maxsize=1))


class GameStateServer:
    """Broadcast frames to websocket clients and forward their input events.

    The first message a client sends may pick a mode with
    ``{"mode": "score_only"}``; anything else starts a ``full_state`` client
    and is treated as input. Each client keeps only the newest pending frame.
    """

    def __init__(
        self,
        host: str = "127.0.0.1",
        port: int = 8765,
        max_fps: int = 30,
        on_input: InputCallback | None = None,
    ) -> None:
        self.host = host
        self.port = port
        self.max_fps = max(1, max_fps)
        self.on_input = on_input
        self._min_interval = 1.0 / self.max_fps
        self._last_broadcast = 0.0
        self._clients: list[_Client] = []
        self._server: Any = None
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def client_count(self) -> int:
        return len(self._clients)

    async def start(self) -> None:
        """Start websocket listener."""
        self._loop = asyncio.get_running_loop()
        self._server = await websockets.serve(self._handler, self.host, self.port)
        LOGGER.info("Streaming frames on ws://%s:%d", self.host, self.port)

    async def stop(self) -> None:
        """Stop listener and disconnect clients."""
        if self._server is not None:
            self._server.close()
            await self._server.wait_closed()
            self._server = None

    async def _handler(self, ws: Any) -> None:
        client = _Client(websocket=ws)
        self._clients.append(client)
        sender = asyncio.create_task(self._sender_loop(client))
        first = True
        try:
            async for message in ws:
                payload = self._decode(message)
                if payload is None:
                    continue
                if first and "mode" in payload:
                    mode = payload["mode"]
                    client.mode = mode if mode in MODES else "full_state"
                    first = False
                    continue
                first = False
                self._dispatch_input(payload)
        except websockets.ConnectionClosed:
            pass
        finally:
            if client in self._clients:
                self._clients.remove(client)
            sender.cancel()

    @staticmethod
    def _decode(message: Any) -> dict[str, Any] | None:
        if isinstance(message, bytes):
            message = message.decode("utf-8", errors="replace")
        try:
            payload = json.loads(message)
        except json.JSONDecodeError:
            LOGGER.debug("Ignoring non-JSON client message.")
            return None
        return payload if isinstance(payload, dict) else None

    def _dispatch_input(self, payload: dict[str, Any]) -> None:
        if self.on_input is None:
            return
        try:
            self.on_input(payload)
        except (ValueError, TypeError, UnknownActionError, SessionNotStartedError) as exc:
            LOGGER.warning("Rejected client input %s: %s", payload, exc)

    async def _sender_loop(self, client: _Client) -> None:
        while True:
            frame = await client.queue.get()
            try:
                await client.websocket.send(frame)
            except websockets.ConnectionClosed:
                return

    async def broadcast(self, frame: Any, force: bool = False) -> None:
        """Broadcast frame to clients, dropping stale frames on backpressure."""
        now = time.monotonic()
        if not force and (now - self._last_broadcast) < self._min_interval:
            return
        self._last_broadcast = now

        encoded: dict[str, bytes] = {}
        for client in list(self._clients):
            if client.mode not in encoded:
                payload = score_only(frame) if client.mode == "score_only" else frame
                encoded[client.mode] = serialize_frame(payload)
            if client.queue.full():
                client.queue.get_nowait()
            client.queue.put_nowait(encoded[client.mode])

    def broadcast_threadsafe(self, frame: Any) -> None:
        """Schedule ``broadcast`` from a non-event-loop thread (tick host, event bus)."""
        if self._loop is None or self._loop.is_closed():
            return
        asyncio.run_coroutine_threadsafe(self.broadcast(frame), self._loop)


def _pair(value: Any, name: str) -> tuple[float, float]:
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        raise TypeError(f"'{name}' must be a two-item list.")
    return (float(value[0]), float(value[1]))


def session_input_handler(session: Any) -> InputCallback:
    """Route client messages into a ``GameSession``.

    ``{"press": "ArrowLeft"}``-style messages go to the Input Latch;
    ``{"action": "restart"}``, ``{"action": "exit"}`` or
    ``{"action": name, "args": {...}}`` drive the lifecycle.
    ``{"joystick": {"base": [x, y], "knob": [x, y]}}`` sets the ``move``
    axis (``null`` releases it) and ``{"resize": {"width": w}}`` rescales
    pointer mapping.
    """

    def _handle(payload: dict[str, Any]) -> None:
        action = payload.get("action")
        if "joystick" in payload:
            drag = payload["joystick"]
            if drag is None:
                session.latch.clear_axis("move")
                return
            if not isinstance(drag, dict):
                raise TypeError("'joystick' must be an object or null.")
            base = _pair(drag.get("base"), "base")
            knob = _pair(drag.get("knob"), "knob")
            session.latch.set_axis("move", *joystick_vector(base, knob, JOYSTICK_MAX_RADIUS))
        elif "resize" in payload:
            view = payload["resize"]
            if not isinstance(view, dict):
                raise TypeError("'resize' must be an object.")
            session.latch.resize(view.get("width"), view.get("left", 0.0), view.get("top", 0.0))
        elif action == "restart":
            session.restart()
        elif action == "exit":
            session.exit()
        elif isinstance(action, str):
            args = payload.get("args") or {}
            if not isinstance(args, dict):
                raise TypeError("'args' must be an object.")
            session.perform(action, **args)
        else:
            parse_input_event({**payload, "tick": 0}).apply(session.latch)

    return _handle
