from __future__ import annotations

from course_registry.courses.errors import PartialFailure


def test_create_course_returns_201(course_client, cs301) -> None:
    client, _ = course_client

    resp = client.post("/courses", json=cs301)

    assert resp.status_code == 201
    data = resp.json()
    assert data["id"]
    assert data["code"] == "CS301"
    assert data["prerequisites"] == []
    assert data["semester"] == 3
    assert data["credits"] == 4


def test_create_course_missing_fields_is_400(course_client, cs301) -> None:
    client, service = course_client
    cs301.pop("credits")

    resp = client.post("/courses", json=cs301)

    assert resp.status_code == 400
    assert "credits" in resp.json()["detail"]
    assert service.index.list_members() == set()


def test_create_course_non_numeric_is_400(course_client, cs301) -> None:
    client, _ = course_client
    cs301["semester"] = "third"

    resp = client.post("/courses", json=cs301)

    assert resp.status_code == 400
    assert "semester" in resp.json()["detail"]


def test_create_course_without_body_is_400(course_client) -> None:
    client, _ = course_client
    assert client.post("/courses").status_code == 400


def test_duplicate_course_is_409(course_client, cs301) -> None:
    client, _ = course_client
    first = client.post("/courses", json=cs301).json()

    resp = client.post("/courses", json={**cs301, "title": "Again"})

    assert resp.status_code == 409
    assert client.get("/courses/CS301").json() == first


def test_list_courses(course_client, cs301) -> None:
    client, _ = course_client
    assert client.get("/courses").json() == []

    client.post("/courses", json=cs301)
    client.post("/courses", json={**cs301, "code": "CS302", "title": "Compilers"})

    resp = client.get("/courses")
    assert resp.status_code == 200
    assert {c["code"] for c in resp.json()} == {"CS301", "CS302"}


def test_list_courses_shows_orphans_as_null(course_client, cs301) -> None:
    client, service = course_client
    client.post("/courses", json=cs301)
    service.index.add_member("course:GHOST")

    body = client.get("/courses").json()

    assert len(body) == 2
    assert None in body


def test_get_course(course_client, cs301) -> None:
    client, _ = course_client
    created = client.post("/courses", json=cs301).json()

    resp = client.get("/courses/CS301")

    assert resp.status_code == 200
    assert resp.json() == created


def test_get_missing_course_is_404(course_client) -> None:
    client, _ = course_client
    resp = client.get("/courses/NOPE")
    assert resp.status_code == 404
    assert resp.json() == {"detail": "course NOPE not found"}


def test_update_course_partial(course_client, cs301) -> None:
    client, _ = course_client
    client.post("/courses", json=cs301)

    resp = client.put("/courses/CS301", json={"credits": 5})

    assert resp.status_code == 200
    data = resp.json()
    assert data["credits"] == 5
    assert data["title"] == "Algorithms"


def test_update_missing_course_is_404(course_client) -> None:
    client, _ = course_client
    assert client.put("/courses/NOPE", json={"credits": 5}).status_code == 404


def test_update_rejects_id_change(course_client, cs301) -> None:
    client, _ = course_client
    client.post("/courses", json=cs301)

    resp = client.put("/courses/CS301", json={"id": "forged"})

    assert resp.status_code == 400


def test_update_code_moves_course(course_client, cs301) -> None:
    client, service = course_client
    client.post("/courses", json=cs301)

    resp = client.put("/courses/CS301", json={"code": "CS311"})

    assert resp.status_code == 200
    assert client.get("/courses/CS301").status_code == 404
    assert client.get("/courses/CS311").json()["code"] == "CS311"
    assert service.index.list_members() == {"course:CS311"}


def test_update_code_collision_is_409(course_client, cs301) -> None:
    client, _ = course_client
    client.post("/courses", json=cs301)
    client.post("/courses", json={**cs301, "code": "CS302"})

    assert client.put("/courses/CS301", json={"code": "CS302"}).status_code == 409


def test_delete_course(course_client, cs301) -> None:
    client, _ = course_client
    client.post("/courses", json=cs301)

    resp = client.delete("/courses/CS301")

    assert resp.status_code == 204
    assert resp.content == b""
    assert client.get("/courses/CS301").status_code == 404
    assert client.get("/courses").json() == []


def test_delete_missing_course_is_404(course_client) -> None:
    client, _ = course_client
    assert client.delete("/courses/NOPE").status_code == 404


def test_partial_failure_is_500_with_short_message(course_client, cs301, monkeypatch) -> None:
    client, service = course_client

    def _fail(payload):
        raise PartialFailure("create", "CS301")

    monkeypatch.setattr(service, "create", _fail)

    resp = client.post("/courses", json=cs301)

    assert resp.status_code == 500
    assert resp.json() == {"detail": "create of course CS301 did not complete"}


def test_consistency_endpoint(course_client, cs301) -> None:
    client, service = course_client
    client.post("/courses", json=cs301)

    assert client.get("/courses/_consistency").json()["consistent"] is True

    service.index.add_member("course:GHOST")
    report = client.get("/courses/_consistency").json()
    assert report["consistent"] is False
    assert report["orphaned_members"] == ["course:GHOST"]


def test_malformed_json_body_is_400(course_client, cs301) -> None:
    client, service = course_client
    client.post("/courses", json=cs301)
    headers = {"content-type": "application/json"}

    created = client.post("/courses", content=b"{not json", headers=headers)
    updated = client.put("/courses/CS301", content=b"{not json", headers=headers)

    for resp in (created, updated):
        assert resp.status_code == 400
        assert resp.json() == {"detail": "request body must be a JSON object"}
    assert service.get("CS301").credits == cs301["credits"]


def test_reserved_code_is_400(course_client, cs301) -> None:
    client, service = course_client
    cs301["code"] = "_consistency"

    resp = client.post("/courses", json=cs301)

    assert resp.status_code == 400
    assert "reserved" in resp.json()["detail"]
    assert service.index.list_members() == set()
