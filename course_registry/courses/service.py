"""Course CRUD coordinator.

Every mutation that touches index membership is issued as one backend
transaction so the record store and the index set cannot diverge: create
pairs ``set`` with ``add_member``, delete pairs ``delete`` with
``remove_member``, and a code change moves both the record and its member in
a single batch. A batch the backend could not complete surfaces as
:class:`PartialFailure`; nothing is retried or repaired here.
"""

from __future__ import annotations

import logging
import uuid
from functools import lru_cache
from typing import Any, List, Mapping, Optional

from pydantic import ValidationError as PydanticValidationError

from course_registry.config import get_settings
from course_registry.metrics import record_batch
from course_registry.storage import KeyValueStore, Transaction, TransactionError, open_store

from .errors import ConflictError, NotFoundError, PartialFailure, ValidationError
from .models import ConsistencyReport, Course, CourseCreate, CourseUpdate
from .store import IndexSet, RecordStore

logger = logging.getLogger(__name__)


def _validation_error(exc: PydanticValidationError) -> ValidationError:
    errors = exc.errors()
    missing = [
        str(err["loc"][0]) for err in errors if err.get("type") == "missing" and err.get("loc")
    ]
    if missing:
        return ValidationError.missing(missing)
    first = errors[0]
    loc = ".".join(str(part) for part in first.get("loc", ())) or "body"
    if first.get("type") == "extra_forbidden":
        return ValidationError(f"{loc}: field cannot be updated")
    return ValidationError(f"{loc}: {first.get('msg', 'invalid value')}")


def _require_mapping(payload: Any) -> Mapping[str, Any]:
    if not isinstance(payload, Mapping):
        raise ValidationError("request body must be a JSON object")
    return payload


def _blank_to_missing(payload: Mapping[str, Any]) -> dict[str, Any]:
    # empty strings count as absent for required fields
    return {
        key: value
        for key, value in payload.items()
        if not (isinstance(value, str) and not value.strip())
    }


class CourseService:
    def __init__(
        self,
        store: KeyValueStore,
        *,
        key_prefix: str = "course:",
        index_key: str = "courses:index",
    ) -> None:
        if index_key.startswith(key_prefix):
            raise ValueError("index key must not live under the record key prefix")
        self._kv = store
        self.records = RecordStore(store, key_prefix)
        self.index = IndexSet(store, index_key)

    @property
    def backend(self) -> str:
        return getattr(self._kv, "backend", "unknown")

    def _execute(self, batch: Transaction, *, action: str, code: str) -> List[Any]:
        try:
            results = batch.execute()
        except TransactionError as exc:
            record_batch(action, "failed")
            logger.exception(
                "course %s batch failed for %s (%d/%d operations applied)",
                action,
                code,
                exc.applied,
                exc.operations,
            )
            raise PartialFailure(action, code, applied=exc.applied) from exc
        record_batch(action, "committed")
        return results

    # Create / read
    def create(self, payload: Any) -> Course:
        data = _blank_to_missing(_require_mapping(payload))
        try:
            validated = CourseCreate.model_validate(data)
        except PydanticValidationError as exc:
            raise _validation_error(exc) from None

        key = self.records.key_for(validated.code)
        if self.records.exists(key):
            logger.warning("course %s already exists", validated.code)
            raise ConflictError(validated.code)

        course = Course(id=uuid.uuid4().hex, **validated.model_dump())
        batch = self._kv.transaction()
        self.records.set(key, course, batch=batch)
        self.index.add_member(key, batch=batch)
        self._execute(batch, action="create", code=course.code)
        logger.info("created course %s (%s)", course.code, course.id)
        return course

    def list_all(self) -> List[Optional[Course]]:
        """Return every indexed course.

        An index member without a stored record comes back as ``None`` so the
        divergence stays visible to callers.
        """

        members = self.index.list_members()
        if not members:
            return []
        keys = sorted(members)
        courses = self.records.multi_get(keys)
        orphans = [key for key, course in zip(keys, courses) if course is None]
        if orphans:
            logger.warning(
                "index %s lists %d key(s) without a record: %s",
                self.index.name,
                len(orphans),
                ", ".join(orphans),
            )
        return courses

    def get(self, code: str) -> Course:
        course = self.records.get(self.records.key_for(code))
        if course is None:
            raise NotFoundError(code)
        return course

    # Update / delete
    def update(self, code: str, payload: Any) -> Course:
        key = self.records.key_for(code)
        existing = self.records.get(key)
        if existing is None:
            raise NotFoundError(code)

        try:
            changes = CourseUpdate.model_validate(_require_mapping(payload)).changes()
        except PydanticValidationError as exc:
            raise _validation_error(exc) from None

        merged = existing.model_copy(update=changes)
        if merged.code == existing.code:
            batch = self._kv.transaction()
            self.records.set(key, merged, batch=batch)
            self._execute(batch, action="update", code=code)
            logger.info("updated course %s (%s)", code, ", ".join(sorted(changes)) or "no fields")
            return merged
        return self._rekey(key, existing, merged)

    def _rekey(self, old_key: str, existing: Course, merged: Course) -> Course:
        new_key = self.records.key_for(merged.code)
        if self.records.exists(new_key):
            logger.warning(
                "cannot rename course %s to %s: code taken", existing.code, merged.code
            )
            raise ConflictError(merged.code)

        batch = self._kv.transaction()
        self.records.set(new_key, merged, batch=batch)
        self.records.delete(old_key, batch=batch)
        self.index.remove_member(old_key, batch=batch)
        self.index.add_member(new_key, batch=batch)
        self._execute(batch, action="rename", code=existing.code)
        logger.info("renamed course %s to %s", existing.code, merged.code)
        return merged

    def delete(self, code: str) -> None:
        key = self.records.key_for(code)
        batch = self._kv.transaction()
        self.records.delete(key, batch=batch)
        self.index.remove_member(key, batch=batch)
        removed = self._execute(batch, action="delete", code=code)[0]
        if not removed:
            raise NotFoundError(code)
        logger.info("deleted course %s", code)

    def close(self) -> None:
        self._kv.close()

    def check_consistency(self) -> ConsistencyReport:
        """Compare index membership with the stored record keys; never repairs."""

        members = self.index.list_members()
        stored = set(self.records.keys())
        orphaned = sorted(members - stored)
        unindexed = sorted(stored - members)
        return ConsistencyReport(
            consistent=not orphaned and not unindexed,
            indexed=len(members),
            stored=len(stored),
            orphaned_members=orphaned,
            unindexed_records=unindexed,
        )


@lru_cache(maxsize=1)
def get_course_service() -> CourseService:
    settings = get_settings()
    store = open_store(settings.course_store_backend, settings.course_store_path)
    return CourseService(
        store,
        key_prefix=settings.course_key_prefix,
        index_key=settings.course_index_key,
    )


__all__ = ["CourseService", "get_course_service"]
