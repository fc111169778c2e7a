"""Tests for the key/value store and the SQLite session log."""

from __future__ import annotations

import logging
import sqlite3

import pytest

from core.status import Status
from data.kv_store import TOTAL_COINS_KEY, InMemoryStore, SQLiteStore, best_score_key
from data.session_log import SessionLog
from games.base_game import SessionOutcome


def test_in_memory_store_typed_accessors() -> None:
    store = InMemoryStore()

    assert store.get_int("missing", 5) == 5
    store.set_int("n", 12)
    store.set_bool("flag", True)
    store.set_json("skins", ["default", "glitch"])

    assert store.get_int("n") == 12
    assert store.data["flag"] == "true"
    assert store.get_bool("flag") is True
    assert store.get_json("skins") == ["default", "glitch"]

    store.delete("n")
    assert store.get_int("n", -1) == -1


def test_corrupt_values_fall_back_to_default(caplog) -> None:
    store = InMemoryStore({"coins": "lots", "skins": "{not json"})

    with caplog.at_level(logging.WARNING):
        assert store.get_int("coins", 3) == 3
        assert store.get_json("skins", ["default"]) == ["default"]

    assert "not an int" in caplog.text


def test_update_int_is_read_modify_write() -> None:
    store = InMemoryStore({TOTAL_COINS_KEY: "10"})

    assert store.update_int(TOTAL_COINS_KEY, lambda coins: coins + 5) == 15
    assert store.get_int(TOTAL_COINS_KEY) == 15


@pytest.mark.parametrize("backend", ["memory", "sqlite"])
def test_transaction_rolls_back_every_write(backend, tmp_path) -> None:
    store = InMemoryStore() if backend == "memory" else SQLiteStore(tmp_path / "kv.db")
    store.set_int(TOTAL_COINS_KEY, 10)

    with pytest.raises(RuntimeError):
        with store.transaction():
            store.update_int(TOTAL_COINS_KEY, lambda coins: coins + 5)
            store.set_int("keepup_best", 3)
            raise RuntimeError("boom")

    assert store.get_int(TOTAL_COINS_KEY) == 10
    assert store.get_raw("keepup_best") is None

    with store.transaction():
        store.set_int("keepup_best", 4)
    assert store.get_int("keepup_best") == 4
    store.close()


def test_sqlite_store_persists_across_connections(tmp_path) -> None:
    db_path = tmp_path / "kv.db"
    store = SQLiteStore(db_path)
    store.set_int(best_score_key("snake"), 42)
    store.close()

    reopened = SQLiteStore(db_path)
    assert reopened.get_int("snake_best") == 42
    reopened.close()


def test_sqlite_read_failure_uses_default(tmp_path) -> None:
    store = SQLiteStore(tmp_path / "kv.db")
    store.set_int("keepup_best", 9)
    store.close()

    # Reads against a closed connection raise sqlite3.ProgrammingError.
    assert store.get_int("keepup_best", 0) == 0


def test_session_log_records_rounds(tmp_path) -> None:
    db_path = tmp_path / "sessions.db"
    log = SessionLog(db_path)
    session_id = log.start_session("keepup", {"width": 400}, seed=7)

    first = SessionOutcome(game="keepup", status=Status.LOST, score=4, ticks=300, currency_delta=4, high_score=4)
    second = SessionOutcome(game="keepup", status=Status.LOST, score=2, ticks=120, currency_delta=2, high_score=4)
    assert log.log_result(session_id, first) == 0
    assert log.log_result(session_id, second) == 1

    rows = log.fetch_results("keepup")
    assert [row["score"] for row in rows] == [4, 2]
    assert rows[0]["status"] == "lost"
    assert log.fetch_results("snake") == []
    assert log.latest_session_id() == session_id
    log.close()

    conn = sqlite3.connect(db_path)
    session_count = conn.execute("SELECT COUNT(*) FROM sessions").fetchone()[0]
    conn.close()
    assert session_count == 1
