"""Session lifecycle: one mounted game, its timers, its state slot and its rewards."""

from __future__ import annotations

import logging
import sqlite3
import threading
from dataclasses import replace
from typing import Any

from core.deterministic_rng import DeterministicRNG
from core.event_bus import EventBus
from core.input_latch import InputLatch, Viewport
from core.render_state import Frame
from core.scheduler import INACTIVE, TickScheduler, TimerHost
from core.status import Status
from data.kv_store import TOTAL_COINS_KEY, KeyValueStore, best_score_key
from data.session_log import SessionLog
from games.base_game import Game, SessionOutcome, StepResult


LOGGER = logging.getLogger(__name__)

EVENT_CUE = "cue"
EVENT_STATE = "state"
EVENT_SESSION_END = "session_end"
EVENT_EXIT = "exit"
EVENT_ERROR = "error"


class SessionNotStartedError(RuntimeError):
    """Raised when a session operation needs a mounted game."""


class GameSession:
    """Drives one game plugin from mount to exit.

    The session owns the only mutable slot holding the current state. Ticks,
    spawner ticks, menu actions and restarts all replace that slot under one
    lock, so with a threaded host the game never sees overlapping updates.
    Scheduler intervals are re-read from the game after every change; a
    status other than ``PLAYING`` deactivates the tick.
    """

    def __init__(
        self,
        game: Game,
        host: TimerHost,
        store: KeyValueStore,
        seed: int = 0,
        event_bus: EventBus | None = None,
        session_log: SessionLog | None = None,
    ) -> None:
        self.game = game
        self.host = host
        self.store = store
        self.seed = int(seed)
        self.event_bus = event_bus
        self.session_log = session_log
        self.session_id: str | None = None

        self.rng = DeterministicRNG(self.seed)
        self.latch = InputLatch(Viewport(*game.playfield_size()))
        self.outcomes: list[SessionOutcome] = []
        self.tick_count = 0
        self.total_ticks = 0
        self.round_index = 0

        self._lock = threading.RLock()
        self._state: Any = None
        self._settled = False
        self._running = False
        self._tick = TickScheduler(host, self.tick)
        self._spawner = TickScheduler(host, self.spawn_tick)
        self._auto_restart = TickScheduler(host, self._on_auto_restart)

    @property
    def state(self) -> Any:
        return self._state

    @property
    def running(self) -> bool:
        return self._running

    @property
    def schedulers(self) -> tuple[TickScheduler, TickScheduler, TickScheduler]:
        return (self._tick, self._spawner, self._auto_restart)

    def start(self) -> Any:
        """Mount the game: build the first state and arm its timers."""
        with self._lock:
            if self._running:
                return self._state
            if self.session_log is not None and self.session_id is None:
                self.session_id = self.session_log.start_session(self.game.name, self.game.params, self.seed)
            self._running = True
            LOGGER.info("Starting '%s' session (seed=%d).", self.game.name, self.seed)
            initial = self.game.initial_state(self.rng.stream("init"))
            self._commit(StepResult(initial))
            return self._state

    def _require_state(self) -> Any:
        if self._state is None:
            raise SessionNotStartedError(f"Session for '{self.game.name}' has not been started.")
        return self._state

    def tick(self) -> None:
        with self._lock:
            if not self._running or self._state is None:
                return
            inputs = self.latch.snapshot()
            was_playing = self._state.status is Status.PLAYING
            result = self.game.advance(self._state, inputs, self.rng.stream("step"))
            if was_playing:
                self.tick_count += 1
                self.total_ticks += 1
            self._commit(result)

    def spawn_tick(self) -> None:
        with self._lock:
            if not self._running or self._state is None:
                return
            self._commit(self.game.advance_spawn(self._state, self.rng.stream("spawn")))

    def perform(self, action: str, **kwargs: Any) -> Any:
        """Run a named menu/shop action on the current state."""
        with self._lock:
            state = self._require_state()
            self._commit(self.game.perform(state, action, **kwargs))
            return self._state

    def restart(self) -> Any:
        """Replace the state with a fresh one. Safe from any status."""
        with self._lock:
            previous = self._state
            self.latch.clear()
            self.tick_count = 0
            if previous is not None:
                self.round_index += 1
            self._running = True
            self._settled = False
            fresh = self.game.initial_state(self.rng.stream("init"), previous)
            self._commit(StepResult(fresh))
            return self._state

    def exit(self) -> None:
        """Stop every timer. Nothing of an unfinished round is persisted."""
        with self._lock:
            for scheduler in self.schedulers:
                scheduler.stop()
            was_running = self._running
            self._running = False
            self.latch.clear()
        if was_running:
            LOGGER.info("Exited '%s' session after %d round(s).", self.game.name, self.round_index + 1)
            self._publish(EVENT_EXIT, {"game": self.game.name, "round_index": self.round_index})

    def frame(self) -> Frame:
        state = self._require_state()
        return Frame(
            game=self.game.name,
            tick_index=self.tick_count,
            status=state.status,
            score=self.game.score_of(state),
            state=state,
            round_index=self.round_index,
        )

    def _on_auto_restart(self) -> None:
        with self._lock:
            if self._running and self._state is not None and self._state.status.is_terminal:
                self.restart()

    def _commit(self, result: StepResult) -> None:
        self._state = result.state
        for cue in result.cues:
            self._publish(EVENT_CUE, cue)
        if self._state.status.is_terminal:
            if not self._settled:
                self._settled = True
                self._settle()
        else:
            self._settled = False
        self._sync_schedulers()
        self._publish(EVENT_STATE, self.frame())

    def _sync_schedulers(self) -> None:
        state = self._state
        if not self._running:
            for scheduler in self.schedulers:
                scheduler.stop()
            return
        self._tick.set_interval(self.game.tick_interval_ms(state))
        spawn_ms = self.game.spawn_interval_ms(state) if state.status is Status.PLAYING else INACTIVE
        self._spawner.set_interval(spawn_ms)
        restart_ms = self.game.auto_restart_ms(state) if state.status.is_terminal else INACTIVE
        self._auto_restart.set_interval(restart_ms)

    def _settle(self) -> None:
        outcome = self.game.settle(self._state, self.tick_count)
        try:
            outcome = self._persist(outcome)
        except sqlite3.Error as exc:
            LOGGER.exception("Persisting '%s' outcome failed.", self.game.name)
            self._publish(EVENT_ERROR, {"game": self.game.name, "message": str(exc)})
        if self.session_log is not None and self.session_id is not None:
            try:
                self.session_log.log_result(self.session_id, outcome)
            except sqlite3.Error as exc:
                LOGGER.exception("Logging '%s' result failed.", self.game.name)
                self._publish(EVENT_ERROR, {"game": self.game.name, "message": str(exc)})
        self.outcomes.append(outcome)
        LOGGER.info(
            "Round %d of '%s' ended %s with score %d after %d ticks.",
            self.round_index,
            self.game.name,
            outcome.status.value,
            outcome.score,
            outcome.ticks,
        )
        self._publish(EVENT_SESSION_END, outcome)

    def _persist(self, outcome: SessionOutcome) -> SessionOutcome:
        with self.store.transaction():
            if outcome.currency_delta:
                self.store.update_int(TOTAL_COINS_KEY, lambda coins: coins + outcome.currency_delta)
            high_score = outcome.score
            new_high_score = False
            if self.game.tracks_high_score:
                key = best_score_key(self.game.name)
                best = self.store.get_int(key, 0)
                if outcome.score > best:
                    self.store.set_int(key, outcome.score)
                    new_high_score = True
                else:
                    high_score = best
            for key, value in outcome.updates.items():
                self.store.set_int(key, value)
        return replace(outcome, high_score=high_score, new_high_score=new_high_score)

    def _publish(self, event_type: str, payload: Any) -> None:
        if self.event_bus is not None:
            self.event_bus.publish(event_type, payload)
