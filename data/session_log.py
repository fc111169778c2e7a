"""SQLite-backed log of finished game sessions."""

from __future__ import annotations

import hashlib
import json
import platform
import sqlite3
import time
from pathlib import Path
from typing import Any, Mapping


class SessionLog:
    """Persist session metadata and end-of-session results in SQLite."""

    def __init__(self, db_path: str | Path) -> None:
        self.db_path = Path(db_path)
        self.connection = sqlite3.connect(self.db_path, check_same_thread=False)
        self.connection.row_factory = sqlite3.Row
        self._ensure_schema()

    def close(self) -> None:
        self.connection.close()

    def _ensure_schema(self) -> None:
        self.connection.executescript(
            """
            CREATE TABLE IF NOT EXISTS sessions (
                session_id TEXT PRIMARY KEY,
                game TEXT NOT NULL,
                seed INTEGER NOT NULL,
                config_json TEXT NOT NULL,
                runtime_metadata TEXT NOT NULL,
                created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
            );

            CREATE TABLE IF NOT EXISTS session_results (
                session_id TEXT NOT NULL,
                round_index INTEGER NOT NULL,
                game TEXT NOT NULL,
                status TEXT NOT NULL,
                score INTEGER NOT NULL,
                ticks INTEGER NOT NULL,
                currency_delta INTEGER NOT NULL,
                high_score INTEGER NOT NULL,
                PRIMARY KEY (session_id, round_index),
                FOREIGN KEY (session_id)
                    REFERENCES sessions (session_id)
                    ON DELETE CASCADE
            );
            """
        )
        self.connection.commit()

    def start_session(self, game: str, config: Mapping[str, Any], seed: int) -> str:
        config_json = json.dumps(dict(config), sort_keys=True, default=str)
        metadata_json = json.dumps(
            {"python_version": platform.python_version(), "platform": platform.platform()},
            sort_keys=True,
        )
        config_hash = hashlib.sha256(config_json.encode("utf-8")).hexdigest()
        session_id = hashlib.sha256(
            f"{game}:{config_hash}:{seed}:{time.time_ns()}".encode("utf-8")
        ).hexdigest()[:16]
        self.connection.execute(
            """
            INSERT OR IGNORE INTO sessions (session_id, game, seed, config_json, runtime_metadata)
            VALUES (?, ?, ?, ?, ?)
            """,
            (session_id, game, int(seed), config_json, metadata_json),
        )
        self.connection.commit()
        return session_id

    def log_result(self, session_id: str, outcome: Any) -> int:
        """Append one finished round and return its index within the session."""
        row = self.connection.execute(
            "SELECT COALESCE(MAX(round_index), -1) FROM session_results WHERE session_id = ?",
            (session_id,),
        ).fetchone()
        round_index = int(row[0]) + 1
        self.connection.execute(
            """
            INSERT INTO session_results (
                session_id, round_index, game, status, score, ticks, currency_delta, high_score
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                session_id,
                round_index,
                outcome.game,
                outcome.status.value,
                int(outcome.score),
                int(outcome.ticks),
                int(outcome.currency_delta),
                int(outcome.high_score),
            ),
        )
        self.connection.commit()
        return round_index

    def fetch_results(self, game: str | None = None) -> list[dict[str, Any]]:
        """Return results ordered by session creation then round."""
        query = """
            SELECT r.session_id, r.round_index, r.game, r.status, r.score, r.ticks,
                   r.currency_delta, r.high_score
            FROM session_results AS r
            JOIN sessions AS s ON s.session_id = r.session_id
        """
        params: tuple[Any, ...] = ()
        if game is not None:
            query += " WHERE r.game = ?"
            params = (game,)
        query += " ORDER BY s.created_at ASC, s.rowid ASC, r.round_index ASC"
        return [dict(row) for row in self.connection.execute(query, params).fetchall()]

    def latest_session_id(self) -> str | None:
        row = self.connection.execute(
            """
            SELECT session_id
            FROM sessions
            ORDER BY created_at DESC, rowid DESC
            LIMIT 1
            """
        ).fetchone()
        return str(row[0]) if row is not None else None
