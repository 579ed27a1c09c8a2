"""Key-value primitives shared by every course store backend.

A backend holds two kinds of values under string keys: JSON documents and
string sets. Mutations are expressed as :class:`Operation` tuples so the same
code path serves single writes and queued :class:`Transaction` batches; a
batch either applies completely or raises :class:`TransactionError`.
"""

from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from typing import Any, Dict, List, NamedTuple, Optional, Protocol, Sequence, Set

SET = "set"
DELETE = "delete"
SADD = "sadd"
SREM = "srem"


class KeyValueError(Exception):
    """Raised when a single operation cannot be applied."""


class WrongTypeError(KeyValueError):
    """Raised when a set operation targets a document key (or the reverse)."""


class TransactionError(KeyValueError):
    """Raised when a batch did not complete as a unit.

    ``applied`` is the number of operations that remain applied after the
    backend gave up; it is ``0`` for backends that roll back.
    """

    def __init__(self, message: str, *, operations: int, applied: int = 0) -> None:
        super().__init__(message)
        self.operations = operations
        self.applied = applied


class Operation(NamedTuple):
    op: str
    key: str
    value: Any = None


class Transaction:
    """Queue of mutations executed with all-or-nothing semantics."""

    def __init__(self, store: "BaseKeyValueStore") -> None:
        self._store = store
        self._ops: List[Operation] = []
        self._executed = False

    def __len__(self) -> int:
        return len(self._ops)

    def set(self, key: str, value: Dict[str, Any]) -> "Transaction":
        self._ops.append(Operation(SET, key, value))
        return self

    def delete(self, key: str) -> "Transaction":
        self._ops.append(Operation(DELETE, key))
        return self

    def sadd(self, key: str, member: str) -> "Transaction":
        self._ops.append(Operation(SADD, key, member))
        return self

    def srem(self, key: str, member: str) -> "Transaction":
        self._ops.append(Operation(SREM, key, member))
        return self

    def execute(self) -> List[Any]:
        """Apply every queued operation and return one result per operation."""

        if self._executed:
            raise RuntimeError("transaction already executed")
        self._executed = True
        if not self._ops:
            return []
        return self._store.apply_batch(list(self._ops))


class KeyValueStore(Protocol):
    backend: str

    def exists(self, key: str) -> bool: ...

    def get(self, key: str) -> Optional[Dict[str, Any]]: ...

    def mget(self, keys: Sequence[str]) -> List[Optional[Dict[str, Any]]]: ...

    def set(self, key: str, value: Dict[str, Any]) -> None: ...

    def delete(self, key: str) -> int: ...

    def sadd(self, key: str, member: str) -> int: ...

    def srem(self, key: str, member: str) -> int: ...

    def smembers(self, key: str) -> Set[str]: ...

    def scan_keys(self, prefix: str) -> List[str]: ...

    def transaction(self) -> Transaction: ...

    def close(self) -> None: ...


class BaseKeyValueStore(ABC):
    """Single-key writes are routed through :meth:`apply_batch`."""

    backend = "abstract"

    def set(self, key: str, value: Dict[str, Any]) -> None:
        self.apply_batch([Operation(SET, key, value)])

    def delete(self, key: str) -> int:
        return self.apply_batch([Operation(DELETE, key)])[0]

    def sadd(self, key: str, member: str) -> int:
        return self.apply_batch([Operation(SADD, key, member)])[0]

    def srem(self, key: str, member: str) -> int:
        return self.apply_batch([Operation(SREM, key, member)])[0]

    def mget(self, keys: Sequence[str]) -> List[Optional[Dict[str, Any]]]:
        return [self.get(key) for key in keys]

    def transaction(self) -> Transaction:
        return Transaction(self)

    def close(self) -> None:
        return None

    @abstractmethod
    def exists(self, key: str) -> bool: ...

    @abstractmethod
    def get(self, key: str) -> Optional[Dict[str, Any]]: ...

    @abstractmethod
    def smembers(self, key: str) -> Set[str]: ...

    @abstractmethod
    def scan_keys(self, prefix: str) -> List[str]: ...

    @abstractmethod
    def apply_batch(self, ops: List[Operation]) -> List[Any]: ...


def apply_operation(
    docs: Dict[str, Dict[str, Any]],
    sets: Dict[str, Set[str]],
    operation: Operation,
) -> Any:
    """Apply ``operation`` to in-memory state and return its result.

    Results follow the usual key-value conventions: ``None`` for ``set``,
    the number of removed keys for ``delete`` and the number of changed
    members for ``sadd`` / ``srem``.
    """

    op, key, value = operation
    if op == SET:
        sets.pop(key, None)
        docs[key] = copy.deepcopy(value)
        return None
    if op == DELETE:
        removed = int(docs.pop(key, None) is not None)
        removed += int(sets.pop(key, None) is not None)
        return removed
    if op == SADD:
        if key in docs:
            raise WrongTypeError(f"key {key!r} holds a document, not a set")
        members = sets.setdefault(key, set())
        if value in members:
            return 0
        members.add(value)
        return 1
    if op == SREM:
        if key in docs:
            raise WrongTypeError(f"key {key!r} holds a document, not a set")
        members = sets.get(key)
        if not members or value not in members:
            return 0
        members.discard(value)
        if not members:
            sets.pop(key, None)
        return 1
    raise KeyValueError(f"unsupported operation {op!r}")


__all__ = [
    "BaseKeyValueStore",
    "KeyValueError",
    "KeyValueStore",
    "Operation",
    "Transaction",
    "TransactionError",
    "WrongTypeError",
    "apply_operation",
]
