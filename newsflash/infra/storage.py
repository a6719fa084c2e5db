"""SQLite-backed JSON key-value store for interaction and session state."""

from __future__ import annotations

import json
import sqlite3
from pathlib import Path
from threading import Lock
from typing import Any

import structlog

INTERACTIONS_KEY = "newsInteractions"
USER_KEY = "newsCurrentUser"
THEME_KEY = "newsTheme"


class StateStore:
    """Persist whole JSON documents under fixed namespace keys."""

    def __init__(self, path: Path, logger: structlog.BoundLogger | None = None) -> None:
        self.path = path
        self.logger = logger or structlog.get_logger("newsflash.storage")
        self._lock = Lock()
        self._conn = self._connect(path)

    @staticmethod
    def _connect(path: Path) -> sqlite3.Connection:
        if str(path) != ":memory:":
            path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS kv_state (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TEXT NOT NULL DEFAULT (datetime('now'))
            )
            """
        )
        conn.commit()
        return conn

    def load_json(self, key: str, default: Any = None) -> Any:
        """Return the stored value, or ``default`` when missing or corrupted."""

        with self._lock:
            row = self._conn.execute("SELECT value FROM kv_state WHERE key = ?", (key,)).fetchone()
        if row is None:
            return default
        try:
            return json.loads(row["value"])
        except json.JSONDecodeError as exc:
            self.logger.warning("persistence_corrupted", key=key, error=str(exc))
            return default

    def save_json(self, key: str, value: Any) -> None:
        payload = json.dumps(value, ensure_ascii=False)
        with self._lock:
            self._conn.execute(
                "INSERT OR REPLACE INTO kv_state(key, value, updated_at) VALUES (?, ?, datetime('now'))",
                (key, payload),
            )
            self._conn.commit()

    def save_raw(self, key: str, text: str) -> None:
        """Store ``text`` verbatim; used for plain string preferences."""

        with self._lock:
            self._conn.execute(
                "INSERT OR REPLACE INTO kv_state(key, value, updated_at) VALUES (?, ?, datetime('now'))",
                (key, text),
            )
            self._conn.commit()

    def load_raw(self, key: str) -> str | None:
        with self._lock:
            row = self._conn.execute("SELECT value FROM kv_state WHERE key = ?", (key,)).fetchone()
        return None if row is None else row["value"]

    def delete(self, key: str) -> None:
        with self._lock:
            self._conn.execute("DELETE FROM kv_state WHERE key = ?", (key,))
            self._conn.commit()

    def keys(self) -> list[str]:
        with self._lock:
            rows = self._conn.execute("SELECT key FROM kv_state ORDER BY key").fetchall()
        return [row["key"] for row in rows]

    def close(self) -> None:
        with self._lock:
            self._conn.close()


__all__ = ["INTERACTIONS_KEY", "StateStore", "THEME_KEY", "USER_KEY"]
