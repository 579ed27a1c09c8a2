"""Thread-safe in-memory key-value store."""

from __future__ import annotations

import copy
from threading import RLock
from typing import Any, Dict, List, Optional, Set

from .kv import BaseKeyValueStore, KeyValueError, Operation, TransactionError, apply_operation


class MemoryKeyValueStore(BaseKeyValueStore):
    backend = "memory"

    def __init__(self) -> None:
        self._docs: Dict[str, Dict[str, Any]] = {}
        self._sets: Dict[str, Set[str]] = {}
        self._lock = RLock()

    def exists(self, key: str) -> bool:
        with self._lock:
            return key in self._docs or key in self._sets

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            doc = self._docs.get(key)
            return copy.deepcopy(doc) if doc is not None else None

    def smembers(self, key: str) -> Set[str]:
        with self._lock:
            return set(self._sets.get(key, ()))

    def scan_keys(self, prefix: str) -> List[str]:
        with self._lock:
            keys = [k for k in self._docs if k.startswith(prefix)]
            keys.extend(k for k in self._sets if k.startswith(prefix))
        return sorted(keys)

    def apply_batch(self, ops: List[Operation]) -> List[Any]:
        with self._lock:
            docs_snapshot = dict(self._docs)
            sets_snapshot = {key: set(members) for key, members in self._sets.items()}
            results: List[Any] = []
            try:
                for operation in ops:
                    results.append(self._apply(operation))
            except KeyValueError as exc:
                self._docs = docs_snapshot
                self._sets = sets_snapshot
                raise TransactionError(
                    f"batch aborted at operation {len(results) + 1}/{len(ops)}: {exc}",
                    operations=len(ops),
                ) from exc
            return results

    def _apply(self, operation: Operation) -> Any:
        return apply_operation(self._docs, self._sets, operation)


__all__ = ["MemoryKeyValueStore"]
