"""Record store and index set views over a key-value backend.

Both views accept an optional ``batch``; when given, the mutation is queued
on that transaction instead of being applied immediately, and its result
becomes available from ``batch.execute()``.
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Set

from course_registry.storage import KeyValueStore, Transaction

from .models import Course


class RecordStore:
    def __init__(self, kv: KeyValueStore, prefix: str) -> None:
        self._kv = kv
        self.prefix = prefix

    def key_for(self, code: str) -> str:
        return f"{self.prefix}{code}"

    def exists(self, key: str) -> bool:
        return self._kv.exists(key)

    def get(self, key: str) -> Optional[Course]:
        doc = self._kv.get(key)
        return Course.model_validate(doc) if doc is not None else None

    def multi_get(self, keys: Sequence[str]) -> List[Optional[Course]]:
        docs = self._kv.mget(list(keys))
        return [Course.model_validate(doc) if doc is not None else None for doc in docs]

    def set(self, key: str, course: Course, *, batch: Transaction | None = None) -> None:
        doc = course.model_dump(mode="json")
        if batch is not None:
            batch.set(key, doc)
        else:
            self._kv.set(key, doc)

    def delete(self, key: str, *, batch: Transaction | None = None) -> int | None:
        if batch is not None:
            batch.delete(key)
            return None
        return self._kv.delete(key)

    def keys(self) -> List[str]:
        return self._kv.scan_keys(self.prefix)


class IndexSet:
    def __init__(self, kv: KeyValueStore, name: str) -> None:
        self._kv = kv
        self.name = name

    def add_member(self, key: str, *, batch: Transaction | None = None) -> None:
        if batch is not None:
            batch.sadd(self.name, key)
        else:
            self._kv.sadd(self.name, key)

    def remove_member(self, key: str, *, batch: Transaction | None = None) -> None:
        if batch is not None:
            batch.srem(self.name, key)
        else:
            self._kv.srem(self.name, key)

    def list_members(self) -> Set[str]:
        return self._kv.smembers(self.name)


__all__ = ["IndexSet", "RecordStore"]
