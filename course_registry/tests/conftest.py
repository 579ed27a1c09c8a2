"""Shared pytest fixtures for course registry tests."""

from __future__ import annotations

from typing import Any

import pytest
from fastapi.testclient import TestClient

from course_registry.app import app
from course_registry.config import reset_settings_cache
from course_registry.courses.service import CourseService, get_course_service
from course_registry.storage import FileKeyValueStore, MemoryKeyValueStore, SQLiteKeyValueStore

CS301 = {
    "program": "CS",
    "semester": 3,
    "code": "CS301",
    "title": "Algorithms",
    "credits": 4,
}


@pytest.fixture
def cs301() -> dict[str, Any]:
    return dict(CS301)


@pytest.fixture(params=["memory", "file", "sqlite"])
def kv_store(request, tmp_path):
    if request.param == "memory":
        store = MemoryKeyValueStore()
    elif request.param == "file":
        store = FileKeyValueStore(tmp_path / "store.json")
    else:
        store = SQLiteKeyValueStore(tmp_path / "store.db")
    yield store
    store.close()


@pytest.fixture
def service(kv_store) -> CourseService:
    return CourseService(kv_store)


@pytest.fixture
def course_client():
    service = CourseService(MemoryKeyValueStore())
    app.dependency_overrides[get_course_service] = lambda: service
    client = TestClient(app)
    yield client, service
    app.dependency_overrides.pop(get_course_service, None)


@pytest.fixture
def settings_env(monkeypatch: pytest.MonkeyPatch):
    reset_settings_cache()
    get_course_service.cache_clear()
    yield monkeypatch
    reset_settings_cache()
    get_course_service.cache_clear()
