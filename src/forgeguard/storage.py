"""
forgeguard.storage — Pluggable key-value stores for persisted guard state.

Backends: MemoryBackend, FileBackend, SQLiteBackend

Values are opaque strings (the rate limiter stores one JSON document under a
single key). No backend offers compare-and-swap, so concurrent
check-then-record sequences from separate processes can race.
"""

import os
import re
import sqlite3
import tempfile
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional


# ─── Abstract Backend ──────────────────────────────────────────────

class StorageBackend(ABC):
    """Narrow persistence port: get/set/delete string values by key."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]: ...

    @abstractmethod
    def set(self, key: str, value: str) -> None: ...

    @abstractmethod
    def delete(self, key: str) -> bool: ...


# ─── Memory Backend ────────────────────────────────────────────────

class MemoryBackend(StorageBackend):
    """In-process dict storage, for tests and single-run tools."""

    def __init__(self):
        self._store: dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._store.get(key)

    def set(self, key: str, value: str) -> None:
        self._store[key] = value

    def delete(self, key: str) -> bool:
        return self._store.pop(key, None) is not None


# ─── File Backend ──────────────────────────────────────────────────

_SAFE_KEY = re.compile(r"[A-Za-z0-9_.-]+")


class FileBackend(StorageBackend):
    """One file per key under ``base_dir``; writes replace the file atomically."""

    def __init__(self, base_dir: str = "forgeguard_data"):
        self._base_dir = Path(base_dir)
        self._base_dir.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def _path(self, key: str) -> Path:
        if not _SAFE_KEY.fullmatch(key) or key.startswith("."):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self._base_dir / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        with self._lock:
            if not path.exists():
                return None
            return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        with self._lock:
            fd, tmp = tempfile.mkstemp(dir=self._base_dir, prefix=f".{key}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(value)
                os.replace(tmp, path)
            except BaseException:
                if os.path.exists(tmp):
                    os.unlink(tmp)
                raise

    def delete(self, key: str) -> bool:
        path = self._path(key)
        with self._lock:
            try:
                path.unlink()
            except FileNotFoundError:
                return False
            return True


# ─── SQLite Backend ────────────────────────────────────────────────

class SQLiteBackend(StorageBackend):
    """Guard state in one SQLite table (WAL mode); safe to share across threads."""

    def __init__(self, db_path: str = "forgeguard_state.db"):
        self._db_path = db_path
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute("""
            CREATE TABLE IF NOT EXISTS guard_state (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """)
        self._conn.commit()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            row = self._conn.execute("SELECT value FROM guard_state WHERE key = ?", (key,)).fetchone()
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._conn.execute(
                "INSERT OR REPLACE INTO guard_state (key, value, updated_at) VALUES (?, ?, ?)",
                (key, value, datetime.now(timezone.utc).isoformat()),
            )
            self._conn.commit()

    def delete(self, key: str) -> bool:
        with self._lock:
            cur = self._conn.execute("DELETE FROM guard_state WHERE key = ?", (key,))
            self._conn.commit()
            return cur.rowcount > 0

    def close(self):
        self._conn.close()


__all__ = [
    "StorageBackend",
    "MemoryBackend",
    "FileBackend",
    "SQLiteBackend",
]
