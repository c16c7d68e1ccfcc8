"""
credtrust.storage — Pluggable persistence backends for registry state.

Backends: MemoryBackend, SQLiteBackend

Each registry writes its partition under a key prefix (institution:,
institution_admin:, credential:, fraud_report:, suspicious_pattern:) plus
scalar counters under counter:<name>. Records are never deleted.
"""

import json
import sqlite3
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Optional


COUNTER_PREFIX = "counter:"


# ─── Abstract Backend ──────────────────────────────────────────────

class StorageBackend(ABC):
    """Abstract persistence interface."""

    @abstractmethod
    def save(self, key: str, data: dict) -> None: ...

    @abstractmethod
    def load(self, key: str) -> Optional[dict]: ...

    @abstractmethod
    def list_keys(self, prefix: str = "") -> list[str]: ...

    # Bulk operations (default impls, backends may override)
    def save_many(self, items: dict[str, dict]) -> None:
        for k, v in items.items():
            self.save(k, v)

    def load_prefix(self, prefix: str) -> dict[str, dict]:
        """Load every record whose key starts with prefix."""
        records = {}
        for key in self.list_keys(prefix):
            data = self.load(key)
            if data is not None:
                records[key] = data
        return records

    def load_counter(self, name: str) -> int:
        data = self.load(f"{COUNTER_PREFIX}{name}")
        return int(data["value"]) if data else 0


def counter_record(name: str, value: int) -> dict[str, dict]:
    """Key/record pair for a counter, ready for save_many()."""
    return {f"{COUNTER_PREFIX}{name}": {"value": value}}


# ─── Memory Backend ────────────────────────────────────────────────

class MemoryBackend(StorageBackend):
    """In-memory dict storage (default, for testing)."""

    def __init__(self):
        self._store: dict[str, dict] = {}

    def save(self, key: str, data: dict) -> None:
        self._store[key] = dict(data)

    def load(self, key: str) -> Optional[dict]:
        data = self._store.get(key)
        return dict(data) if data is not None else None

    def list_keys(self, prefix: str = "") -> list[str]:
        return [k for k in self._store if k.startswith(prefix)]


# ─── SQLite Backend ────────────────────────────────────────────────

class SQLiteBackend(StorageBackend):
    """File-based SQLite with WAL mode, thread-safe."""

    def __init__(self, db_path: str = "credtrust.db"):
        self._db_path = db_path
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute("""
            CREATE TABLE IF NOT EXISTS kv (
                key TEXT PRIMARY KEY,
                data TEXT NOT NULL,
                updated_at TEXT DEFAULT (datetime('now'))
            )
        """)
        self._conn.commit()

    def save(self, key: str, data: dict) -> None:
        with self._lock:
            self._conn.execute(
                "INSERT OR REPLACE INTO kv (key, data, updated_at) VALUES (?, ?, ?)",
                (key, json.dumps(data), datetime.now(timezone.utc).isoformat()),
            )
            self._conn.commit()

    def load(self, key: str) -> Optional[dict]:
        with self._lock:
            row = self._conn.execute("SELECT data FROM kv WHERE key = ?", (key,)).fetchone()
        return json.loads(row[0]) if row else None

    def list_keys(self, prefix: str = "") -> list[str]:
        with self._lock:
            rows = self._conn.execute(
                "SELECT key FROM kv WHERE substr(key, 1, ?) = ?", (len(prefix), prefix)
            ).fetchall()
        return [r[0] for r in rows]

    def save_many(self, items: dict[str, dict]) -> None:
        """Write all items in a single transaction."""
        now = datetime.now(timezone.utc).isoformat()
        with self._lock:
            with self._conn:
                for k, data in items.items():
                    self._conn.execute(
                        "INSERT OR REPLACE INTO kv (key, data, updated_at) VALUES (?, ?, ?)",
                        (k, json.dumps(data), now),
                    )

    def close(self):
        self._conn.close()


__all__ = [
    "StorageBackend",
    "MemoryBackend",
    "SQLiteBackend",
    "counter_record",
]
