from __future__ import annotations

from course_registry.courses.models import Course
from course_registry.courses.store import IndexSet, RecordStore
from course_registry.storage import MemoryKeyValueStore


def _course(code: str = "CS301") -> Course:
    return Course(
        id="abc123",
        code=code,
        program="CS",
        title="Algorithms",
        semester=3,
        credits=4,
    )


def test_record_store_derives_prefixed_keys() -> None:
    records = RecordStore(MemoryKeyValueStore(), "course:")
    assert records.key_for("CS301") == "course:CS301"


def test_record_store_get_set_delete() -> None:
    records = RecordStore(MemoryKeyValueStore(), "course:")
    key = records.key_for("CS301")

    records.set(key, _course())
    assert records.exists(key)
    assert records.get(key) == _course()

    assert records.delete(key) == 1
    assert records.delete(key) == 0
    assert records.get(key) is None


def test_record_store_multi_get_keeps_positions() -> None:
    records = RecordStore(MemoryKeyValueStore(), "course:")
    records.set("course:CS302", _course("CS302"))

    result = records.multi_get(["course:CS301", "course:CS302"])
    assert result[0] is None
    assert result[1].code == "CS302"


def test_index_set_membership_is_idempotent() -> None:
    index = IndexSet(MemoryKeyValueStore(), "courses:index")

    index.add_member("course:CS301")
    index.add_member("course:CS301")
    assert index.list_members() == {"course:CS301"}

    index.remove_member("course:CS301")
    index.remove_member("course:CS301")
    assert index.list_members() == set()


def test_views_queue_on_batch_until_execute() -> None:
    kv = MemoryKeyValueStore()
    records = RecordStore(kv, "course:")
    index = IndexSet(kv, "courses:index")

    batch = kv.transaction()
    records.set("course:CS301", _course(), batch=batch)
    index.add_member("course:CS301", batch=batch)
    assert records.delete("course:CS999", batch=batch) is None

    assert not records.exists("course:CS301")
    assert index.list_members() == set()

    assert batch.execute() == [None, 1, 0]
    assert records.get("course:CS301") == _course()
    assert index.list_members() == {"course:CS301"}
