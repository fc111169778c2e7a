"""Key/value persistence collaborator used for high scores, currency and progress."""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Iterator


LOGGER = logging.getLogger(__name__)

TOTAL_COINS_KEY = "platformer_totalCoins"


def best_score_key(game: str) -> str:
    return f"{game}_best"


class KeyValueStore(ABC):
    """String-valued store with typed accessors.

    Reads never fail: a missing or corrupt value yields the caller's default so
    a game can always start.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._depth = 0

    @abstractmethod
    def get_raw(self, key: str) -> str | None:
        """Return the stored string or ``None``."""

    @abstractmethod
    def set_raw(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove ``key`` if present."""

    def close(self) -> None:
        return None

    @property
    def in_transaction(self) -> bool:
        return self._depth > 0

    @contextmanager
    def transaction(self) -> Iterator["KeyValueStore"]:
        """Apply a read-modify-write sequence as one unit.

        Nested calls join the outermost transaction. If the block raises,
        every write made inside it is undone and the error propagates.
        """
        with self._lock:
            outermost = self._depth == 0
            if outermost:
                self._begin()
            self._depth += 1
            try:
                yield self
            except BaseException:
                self._depth -= 1
                if outermost:
                    self._rollback()
                raise
            self._depth -= 1
            if outermost:
                self._commit()

    def _begin(self) -> None:
        return None

    def _commit(self) -> None:
        return None

    def _rollback(self) -> None:
        return None

    def _safe_get(self, key: str) -> str | None:
        try:
            return self.get_raw(key)
        except sqlite3.Error as exc:
            LOGGER.warning("Reading key '%s' failed, using default: %s", key, exc)
            return None

    def get_str(self, key: str, default: str = "") -> str:
        raw = self._safe_get(key)
        return default if raw is None else raw

    def get_int(self, key: str, default: int = 0) -> int:
        raw = self._safe_get(key)
        if raw is None:
            return default
        try:
            return int(raw)
        except ValueError:
            LOGGER.warning("Stored value for '%s' is not an int (%r); using %d.", key, raw, default)
            return default

    def set_int(self, key: str, value: int) -> None:
        self.set_raw(key, str(int(value)))

    def update_int(self, key: str, fn: Callable[[int], int], default: int = 0) -> int:
        with self.transaction():
            value = fn(self.get_int(key, default))
            self.set_int(key, value)
            return value

    def get_bool(self, key: str, default: bool = False) -> bool:
        raw = self._safe_get(key)
        if raw is None:
            return default
        return raw.strip().lower() == "true"

    def set_bool(self, key: str, value: bool) -> None:
        self.set_raw(key, "true" if value else "false")

    def get_json(self, key: str, default: Any = None) -> Any:
        raw = self._safe_get(key)
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            LOGGER.warning("Stored value for '%s' is not valid JSON; using default.", key)
            return default

    def set_json(self, key: str, value: Any) -> None:
        self.set_raw(key, json.dumps(value))


class InMemoryStore(KeyValueStore):
    """Dictionary-backed store for tests and throwaway sessions."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        super().__init__()
        self.data: dict[str, str] = dict(initial or {})
        self._saved: dict[str, str] | None = None

    def _begin(self) -> None:
        self._saved = dict(self.data)

    def _commit(self) -> None:
        self._saved = None

    def _rollback(self) -> None:
        if self._saved is not None:
            self.data = self._saved
        self._saved = None

    def get_raw(self, key: str) -> str | None:
        return self.data.get(key)

    def set_raw(self, key: str, value: str) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)


class SQLiteStore(KeyValueStore):
    """Single-table SQLite store."""

    def __init__(self, db_path: str | Path) -> None:
        super().__init__()
        self.db_path = Path(db_path)
        self.connection = sqlite3.connect(self.db_path, check_same_thread=False)
        self.connection.execute(
            "CREATE TABLE IF NOT EXISTS kv (key TEXT PRIMARY KEY, value TEXT NOT NULL)"
        )
        self.connection.commit()

    def close(self) -> None:
        self.connection.close()

    def _begin(self) -> None:
        self.connection.execute("BEGIN")

    def _commit(self) -> None:
        self.connection.commit()

    def _rollback(self) -> None:
        self.connection.rollback()

    def _write(self, sql: str, args: tuple[str, ...]) -> None:
        with self._lock:
            self.connection.execute(sql, args)
            # Inside a transaction the outermost block commits.
            if not self.in_transaction:
                self.connection.commit()

    def get_raw(self, key: str) -> str | None:
        with self._lock:
            row = self.connection.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        return str(row[0]) if row is not None else None

    def set_raw(self, key: str, value: str) -> None:
        self._write("INSERT OR REPLACE INTO kv (key, value) VALUES (?, ?)", (key, value))

    def delete(self, key: str) -> None:
        self._write("DELETE FROM kv WHERE key = ?", (key,))
