"""Session composition helpers and a headless runner for local validation."""

from __future__ import annotations

import dataclasses
import logging
from pathlib import Path
from typing import Any, Mapping

from core.config_loader import load_config
from core.event_bus import EventBus
from core.game_session import GameSession
from core.input_trace import InputTrace
from core.plugin_registry import get_game_class
from core.scheduler import ManualTimerHost, TimerHost
from data.kv_store import TOTAL_COINS_KEY, InMemoryStore, KeyValueStore, SQLiteStore
from data.session_log import SessionLog


LOGGER = logging.getLogger(__name__)


def build_session(
    config: Mapping[str, Any],
    host: TimerHost,
    store: KeyValueStore,
    event_bus: EventBus | None = None,
    session_log: SessionLog | None = None,
) -> GameSession:
    """Build a game session from a normalized config (see ``load_config``)."""
    game_class = get_game_class(config["game"])
    game = game_class(params=dict(config["game_config"]), store=store)
    return GameSession(
        game=game,
        host=host,
        store=store,
        seed=int(config.get("seed", 0)),
        event_bus=event_bus,
        session_log=session_log,
    )


def open_store(path: str | Path | None) -> KeyValueStore:
    if path is None:
        return InMemoryStore()
    return SQLiteStore(path)


def run_headless(
    config: Mapping[str, Any],
    store: KeyValueStore | None = None,
    session_log: SessionLog | None = None,
) -> dict[str, Any]:
    """Run a session on virtual time until it can make no more progress.

    The run stops after ``max_ticks`` game ticks, or once no timer is pending
    (a terminal round without auto-restart, or a paused menu). Scripted
    inputs are replayed by global tick index.
    """
    host = ManualTimerHost()
    store = store if store is not None else InMemoryStore()
    session = build_session(config, host, store, session_log=session_log)
    trace = InputTrace(config.get("inputs", []))
    max_ticks = int(config.get("max_ticks", 1000))

    session.start()
    while session.total_ticks < max_ticks:
        trace.apply_due(session.latch, session.total_ticks)
        if not host.run_next():
            break
    session.exit()

    state = session.state
    summary = {
        "game": session.game.name,
        "seed": session.seed,
        "session_id": session.session_id,
        "status": state.status.value,
        "score": session.game.score_of(state),
        "ticks": session.total_ticks,
        "rounds": session.round_index + 1,
        "coins": store.get_int(TOTAL_COINS_KEY, 0),
        "outcomes": [
            {**dataclasses.asdict(outcome), "status": outcome.status.value, "updates": dict(outcome.updates)}
            for outcome in session.outcomes
        ],
    }
    LOGGER.info("Headless run of '%s' finished: %s after %d ticks.", summary["game"], summary["status"], summary["ticks"])
    return summary


def main(config_path: str = "configs/keepup.yaml") -> dict[str, Any]:
    """Load config, open the configured storage and run headless."""
    config = load_config(config_path)
    storage = config["storage"]
    store = open_store(storage.get("kv_path"))
    session_log = SessionLog(storage["session_log"]) if storage.get("session_log") else None
    try:
        return run_headless(config, store=store, session_log=session_log)
    finally:
        store.close()
        if session_log is not None:
            session_log.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    print(main())
