from __future__ import annotations

from pathlib import Path

from .file import FileKeyValueStore
from .kv import (
    BaseKeyValueStore,
    KeyValueError,
    KeyValueStore,
    Operation,
    Transaction,
    TransactionError,
    WrongTypeError,
)
from .memory import MemoryKeyValueStore
from .sqlite import SQLiteKeyValueStore

BACKENDS = ("memory", "file", "sqlite")


def open_store(backend: str, path: Path | str | None = None) -> KeyValueStore:
    """Build the key-value store named by ``backend``."""

    name = (backend or "").strip().lower()
    if name not in BACKENDS:
        raise RuntimeError(
            f"Unsupported COURSE_STORE_BACKEND '{backend}' (expected one of {', '.join(BACKENDS)})"
        )
    if name == "memory":
        return MemoryKeyValueStore()
    if name == "sqlite":
        return SQLiteKeyValueStore(path or ":memory:")
    if path is None:
        raise RuntimeError("file course store requires a path")
    return FileKeyValueStore(path)


__all__ = [
    "BACKENDS",
    "BaseKeyValueStore",
    "FileKeyValueStore",
    "KeyValueError",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "Operation",
    "SQLiteKeyValueStore",
    "Transaction",
    "TransactionError",
    "WrongTypeError",
    "open_store",
]
