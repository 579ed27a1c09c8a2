from __future__ import annotations

import json
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Tuple

from .kv import BaseKeyValueStore, KeyValueError, Operation, TransactionError, apply_operation

_State = Tuple[Dict[str, Dict[str, Any]], Dict[str, Set[str]]]


@contextmanager
def _locked(lock_file: Path):
    lock_file.parent.mkdir(parents=True, exist_ok=True)
    with lock_file.open("a+") as handle:
        try:
            import fcntl

            fcntl.flock(handle, fcntl.LOCK_EX)
            yield
        finally:
            try:
                import fcntl

                fcntl.flock(handle, fcntl.LOCK_UN)
            except OSError:
                pass


def _write_json_atomic(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_text(content, encoding="utf-8")
    tmp_path.replace(path)


class FileKeyValueStore(BaseKeyValueStore):
    """Whole keyspace in one JSON file.

    A batch is applied to the loaded state and written back with a single
    atomic replace, so readers observe either every operation or none.
    """

    backend = "file"

    def __init__(self, path: Path | str):
        self.path = Path(path).expanduser().resolve()
        self.lock_path = self.path.with_name(self.path.name + ".lock")

    def _load(self) -> _State:
        if not self.path.exists():
            return {}, {}
        data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        docs = data.get("documents", {}) or {}
        sets = {key: set(members) for key, members in (data.get("sets") or {}).items()}
        return docs, sets

    def _dump(self, docs: Dict[str, Dict[str, Any]], sets: Dict[str, Set[str]]) -> None:
        payload = {
            "documents": docs,
            "sets": {key: sorted(members) for key, members in sets.items()},
        }
        _write_json_atomic(self.path, json.dumps(payload, indent=2, sort_keys=True))

    def exists(self, key: str) -> bool:
        docs, sets = self._load()
        return key in docs or key in sets

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        docs, _ = self._load()
        return docs.get(key)

    def mget(self, keys):
        docs, _ = self._load()
        return [docs.get(key) for key in keys]

    def smembers(self, key: str) -> Set[str]:
        _, sets = self._load()
        return set(sets.get(key, ()))

    def scan_keys(self, prefix: str) -> List[str]:
        docs, sets = self._load()
        return sorted(k for k in list(docs) + list(sets) if k.startswith(prefix))

    def apply_batch(self, ops: List[Operation]) -> List[Any]:
        with _locked(self.lock_path):
            docs, sets = self._load()
            results: List[Any] = []
            try:
                for operation in ops:
                    results.append(self._apply(docs, sets, operation))
            except KeyValueError as exc:
                raise TransactionError(
                    f"batch aborted at operation {len(results) + 1}/{len(ops)}: {exc}",
                    operations=len(ops),
                ) from exc
            try:
                self._dump(docs, sets)
            except OSError as exc:
                raise TransactionError(
                    f"batch could not be persisted: {exc}", operations=len(ops)
                ) from exc
            return results

    def _apply(
        self,
        docs: Dict[str, Dict[str, Any]],
        sets: Dict[str, Set[str]],
        operation: Operation,
    ) -> Any:
        return apply_operation(docs, sets, operation)


__all__ = ["FileKeyValueStore"]
