"""
cache/store.py -- SQLite-backed TTL key-value store for remember-me entries.

Holds key -> value pairs with an absolute expiry. Reads never return an
expired entry: get() and exists() both treat it as absent and delete it on
the spot, so an entry cannot outlive its TTL even if purge_expired() never
runs.

Usage:
    store = RememberStore()
    store.set("login:remember:<token>", 42, ttl_seconds=7 * 24 * 3600)
    store.get("login:remember:<token>")     # 42, or None once expired
    store.purge_expired()                   # call periodically to trim old rows

A single sqlite3 connection is shared across request threads and guarded by
a lock. sqlite3.OperationalError surfaces as StoreUnavailable("remember").
"""

import json
import logging
import sqlite3
import time
from collections.abc import Callable
from pathlib import Path
from threading import Lock
from typing import Any, Optional

from core.errors import StoreUnavailable

logger = logging.getLogger("loginkeep.cache")

_DEFAULT_DB = Path(__file__).parent / "loginkeep_remember.db"

_DDL = """
CREATE TABLE IF NOT EXISTS remember_entries (
    key         TEXT PRIMARY KEY,
    value       TEXT NOT NULL,
    expires_at  REAL NOT NULL
);
"""


class RememberStore:
    def __init__(self, db_path: Path | str = _DEFAULT_DB, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._lock = Lock()
        try:
            self._conn = sqlite3.connect(db_path, check_same_thread=False)
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.execute(_DDL)
            self._conn.commit()
        except sqlite3.OperationalError as exc:
            raise StoreUnavailable("remember") from exc

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        """Store value under key for ttl_seconds, replacing any existing entry."""
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        expires_at = self._clock() + ttl_seconds
        self._execute(
            "INSERT OR REPLACE INTO remember_entries (key, value, expires_at) VALUES (?, ?, ?)",
            (key, json.dumps(value), expires_at),
        )

    def get(self, key: str) -> Optional[Any]:
        """Return the value for key if it exists and hasn't expired."""
        row = self._fetchone("SELECT value, expires_at FROM remember_entries WHERE key = ?", (key,))
        if row is None:
            return None
        value, expires_at = row
        now = self._clock()
        if now >= expires_at:
            # Conditional: a set() that lands between the read and this
            # delete has a later expiry and survives.
            self._execute(
                "DELETE FROM remember_entries WHERE key = ? AND expires_at <= ?",
                (key, now),
            )
            return None
        return json.loads(value)

    def exists(self, key: str) -> bool:
        return self.get(key) is not None

    def delete(self, key: str) -> bool:
        return self._execute("DELETE FROM remember_entries WHERE key = ?", (key,)) > 0

    def purge_expired(self) -> int:
        """Delete all expired entries. Returns number of rows removed."""
        removed = self._execute("DELETE FROM remember_entries WHERE expires_at <= ?", (self._clock(),))
        if removed:
            logger.info("Purged %d expired remember entries", removed)
        return removed

    def ping(self) -> bool:
        try:
            self._fetchone("SELECT 1", ())
        except StoreUnavailable:
            return False
        return True

    def close(self) -> None:
        self._conn.close()

    def _execute(self, sql: str, params: tuple) -> int:
        """Run a write statement and commit. Returns the affected row count."""
        with self._lock:
            try:
                cursor = self._conn.execute(sql, params)
                self._conn.commit()
            except sqlite3.OperationalError as exc:
                logger.error("Remember store write failed: %s", exc)
                raise StoreUnavailable("remember") from exc
            return cursor.rowcount

    def _fetchone(self, sql: str, params: tuple) -> Optional[tuple]:
        with self._lock:
            try:
                return self._conn.execute(sql, params).fetchone()
            except sqlite3.OperationalError as exc:
                logger.error("Remember store read failed: %s", exc)
                raise StoreUnavailable("remember") from exc
