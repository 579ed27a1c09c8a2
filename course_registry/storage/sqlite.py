from __future__ import annotations

import json
import sqlite3
from pathlib import Path
from threading import RLock
from typing import Any, Dict, List, Optional, Sequence, Set

from .kv import (
    DELETE,
    SADD,
    SET,
    SREM,
    BaseKeyValueStore,
    KeyValueError,
    Operation,
    TransactionError,
    WrongTypeError,
)


class SQLiteKeyValueStore(BaseKeyValueStore):
    """SQLite-backed key-value store; every batch runs in one SQL transaction."""

    backend = "sqlite"

    _SCHEMA_SQL = """\
    CREATE TABLE IF NOT EXISTS documents (
        key   TEXT PRIMARY KEY,
        value TEXT NOT NULL
    );
    CREATE TABLE IF NOT EXISTS set_members (
        key    TEXT NOT NULL,
        member TEXT NOT NULL,
        PRIMARY KEY (key, member)
    );
    """

    def __init__(self, db_path: Path | str = ":memory:", *, timeout: float = 5.0) -> None:
        if str(db_path) != ":memory:":
            Path(db_path).expanduser().parent.mkdir(parents=True, exist_ok=True)
        # autocommit mode; batches issue their own BEGIN/COMMIT
        self._conn = sqlite3.connect(
            str(db_path), timeout=timeout, isolation_level=None, check_same_thread=False
        )
        if str(db_path) != ":memory:":
            self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(self._SCHEMA_SQL)
        self._lock = RLock()

    def __enter__(self) -> "SQLiteKeyValueStore":
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.close()

    def exists(self, key: str) -> bool:
        with self._lock:
            return self._exists(key)

    def _exists(self, key: str) -> bool:
        if self._is_document(key):
            return True
        row = self._conn.execute(
            "SELECT 1 FROM set_members WHERE key = ? LIMIT 1", (key,)
        ).fetchone()
        return row is not None

    def _is_document(self, key: str) -> bool:
        row = self._conn.execute(
            "SELECT 1 FROM documents WHERE key = ?", (key,)
        ).fetchone()
        return row is not None

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            row = self._conn.execute(
                "SELECT value FROM documents WHERE key = ?", (key,)
            ).fetchone()
        return json.loads(row[0]) if row else None

    def mget(self, keys: Sequence[str]) -> List[Optional[Dict[str, Any]]]:
        if not keys:
            return []
        placeholders = ", ".join("?" for _ in keys)
        with self._lock:
            rows = self._conn.execute(
                f"SELECT key, value FROM documents WHERE key IN ({placeholders})",
                tuple(keys),
            ).fetchall()
        found = {key: json.loads(value) for key, value in rows}
        return [found.get(key) for key in keys]

    def smembers(self, key: str) -> Set[str]:
        with self._lock:
            rows = self._conn.execute(
                "SELECT member FROM set_members WHERE key = ?", (key,)
            ).fetchall()
        return {row[0] for row in rows}

    def scan_keys(self, prefix: str) -> List[str]:
        with self._lock:
            rows = self._conn.execute(
                "SELECT key FROM documents WHERE substr(key, 1, ?) = ? "
                "UNION SELECT key FROM set_members WHERE substr(key, 1, ?) = ?",
                (len(prefix), prefix, len(prefix), prefix),
            ).fetchall()
        return sorted(row[0] for row in rows)

    def apply_batch(self, ops: List[Operation]) -> List[Any]:
        with self._lock:
            results: List[Any] = []
            try:
                self._conn.execute("BEGIN IMMEDIATE")
            except sqlite3.Error as exc:
                # nothing started, so there is nothing to roll back
                raise TransactionError(
                    f"batch could not start: {exc}", operations=len(ops)
                ) from exc
            try:
                for operation in ops:
                    results.append(self._apply(operation))
                self._conn.execute("COMMIT")
            except (KeyValueError, sqlite3.Error) as exc:
                self._conn.execute("ROLLBACK")
                raise TransactionError(
                    f"batch aborted at operation {len(results) + 1}/{len(ops)}: {exc}",
                    operations=len(ops),
                ) from exc
            return results

    def _apply(self, operation: Operation) -> Any:
        op, key, value = operation
        if op == SET:
            self._conn.execute("DELETE FROM set_members WHERE key = ?", (key,))
            self._conn.execute(
                "INSERT INTO documents (key, value) VALUES (?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value=excluded.value",
                (key, json.dumps(value, sort_keys=True)),
            )
            return None
        if op == DELETE:
            removed = self._conn.execute(
                "DELETE FROM documents WHERE key = ?", (key,)
            ).rowcount
            if self._conn.execute(
                "DELETE FROM set_members WHERE key = ?", (key,)
            ).rowcount:
                removed += 1
            return removed
        if op in (SADD, SREM):
            if self._is_document(key):
                raise WrongTypeError(f"key {key!r} holds a document, not a set")
            if op == SADD:
                return self._conn.execute(
                    "INSERT OR IGNORE INTO set_members (key, member) VALUES (?, ?)",
                    (key, value),
                ).rowcount
            return self._conn.execute(
                "DELETE FROM set_members WHERE key = ? AND member = ?", (key, value)
            ).rowcount
        raise KeyValueError(f"unsupported operation {op!r}")

    def close(self) -> None:
        with self._lock:
            self._conn.close()


__all__ = ["SQLiteKeyValueStore"]
