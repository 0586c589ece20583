# src/dayroll/storage/kv_store.py

from __future__ import annotations

import contextlib
import copy
import json
import logging
import os
import sqlite3
import threading
import time
from pathlib import Path
from typing import Any

from ..core.errors import PersistenceFailure

logger = logging.getLogger(__name__)


def _encode(key: str, value: Any) -> str:
    try:
        return json.dumps(value, ensure_ascii=False)
    except (TypeError, ValueError) as exc:
        raise PersistenceFailure(f"value for key {key!r} is not JSON-serializable") from exc


def _decode(key: str, raw: str | None) -> Any:
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except ValueError as exc:
        raise PersistenceFailure(f"stored value for key {key!r} is not valid JSON") from exc


class MemoryKeyValueStore:
    """
    Process-local key-value store.

    Values round-trip through JSON, so callers never share mutable objects with the store
    and non-serializable values fail the same way they would on disk.
    """

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, str] = {}
        for key, value in (initial or {}).items():
            self._data[key] = _encode(key, value)

    def get(self, key: str) -> Any:
        return _decode(key, self._data.get(key))

    def set(self, key: str, value: Any) -> None:
        self._data[key] = _encode(key, value)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def clear(self) -> None:
        self._data.clear()

    def snapshot(self) -> dict[str, Any]:
        return {k: json.loads(v) for k, v in self._data.items()}


class SQLiteKeyValueStore:
    """
    SQLite-backed key-value store.

    One table, one row per key, value stored as JSON text.

    Thread-safety:
    - each method opens its own SQLite connection
    """

    def __init__(self, db_path: str | Path = "dayroll.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        logger.info("SQLiteKeyValueStore ready db=%s keys=%s", self._db_path, self.count_keys())

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        try:
            conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        except sqlite3.Error as exc:
            raise PersistenceFailure(f"cannot open {self._db_path}") from exc
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at REAL NOT NULL
                )
                """
            )
            conn.commit()
        except sqlite3.Error as exc:
            raise PersistenceFailure("failed to create kv schema") from exc
        finally:
            conn.close()

    # ---- public API ----

    def count_keys(self) -> int:
        conn = self._get_conn()
        try:
            (n,) = conn.execute("SELECT COUNT(*) FROM kv").fetchone()
            return int(n)
        except sqlite3.Error as exc:
            raise PersistenceFailure("failed to count keys") from exc
        finally:
            conn.close()

    def get(self, key: str) -> Any:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        except sqlite3.Error as exc:
            raise PersistenceFailure(f"failed to read key {key!r}") from exc
        finally:
            conn.close()
        return _decode(key, row[0]) if row else None

    def set(self, key: str, value: Any) -> None:
        raw = _encode(key, value)
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO kv(key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value,
                                               updated_at = excluded.updated_at
                """,
                (key, raw, time.time()),
            )
            conn.commit()
        except sqlite3.Error as exc:
            raise PersistenceFailure(f"failed to write key {key!r}") from exc
        finally:
            conn.close()
        logger.debug("kv set key=%s bytes=%d", key, len(raw))

    def delete(self, key: str) -> None:
        conn = self._get_conn()
        try:
            conn.execute("DELETE FROM kv WHERE key = ?", (key,))
            conn.commit()
        except sqlite3.Error as exc:
            raise PersistenceFailure(f"failed to delete key {key!r}") from exc
        finally:
            conn.close()

    def clear(self) -> None:
        conn = self._get_conn()
        try:
            conn.execute("DELETE FROM kv")
            conn.commit()
        except sqlite3.Error as exc:
            raise PersistenceFailure("failed to clear kv") from exc
        finally:
            conn.close()
        logger.info("SQLiteKeyValueStore cleared db=%s", self._db_path)


class JsonFileKeyValueStore:
    """
    Whole-document JSON file store.

    Every write rewrites the file atomically (temp file + os.replace), so a crash mid-write
    leaves the previous document intact.
    """

    def __init__(self, path: str | Path = "dayroll.json") -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._io_lock = threading.Lock()
        logger.info("JsonFileKeyValueStore ready path=%s exists=%s", self._path, self._path.exists())

    def _read_doc(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text("utf-8"))
        except OSError as exc:
            raise PersistenceFailure(f"failed to read {self._path}") from exc
        except ValueError as exc:
            raise PersistenceFailure(f"{self._path} is not valid JSON") from exc
        if not isinstance(data, dict):
            raise PersistenceFailure(f"{self._path} does not hold a JSON object")
        return data

    def _write_doc(self, doc: dict[str, Any]) -> None:
        raw = json.dumps(doc, ensure_ascii=False, indent=2)
        tmp = self._path.with_suffix(".tmp")
        try:
            tmp.write_text(raw, "utf-8")
            os.replace(tmp, self._path)
        except OSError as exc:
            raise PersistenceFailure(f"failed to write {self._path}") from exc

    def get(self, key: str) -> Any:
        with self._io_lock:
            return copy.deepcopy(self._read_doc().get(key))

    def set(self, key: str, value: Any) -> None:
        _encode(key, value)
        with self._io_lock:
            doc = self._read_doc()
            doc[key] = value
            self._write_doc(doc)

    def delete(self, key: str) -> None:
        with self._io_lock:
            doc = self._read_doc()
            if key in doc:
                del doc[key]
                self._write_doc(doc)

    def clear(self) -> None:
        with self._io_lock:
            self._write_doc({})


def open_kv_store(settings) -> MemoryKeyValueStore | SQLiteKeyValueStore | JsonFileKeyValueStore:
    """Pick the backend named by settings.storage_backend."""
    backend = str(getattr(settings, "storage_backend", "sqlite")).lower()
    if backend == "memory":
        return MemoryKeyValueStore()
    if backend == "json":
        return JsonFileKeyValueStore(settings.kv_json_path)
    return SQLiteKeyValueStore(settings.kv_db_path)
