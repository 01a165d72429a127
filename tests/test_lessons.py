"""
Lessons and their media resources.
"""

from datetime import datetime

import pytest
from sqlalchemy.orm.exc import StaleDataError

from conftest import other_session
from deaf_assistant.models.feedback import Feedback
from deaf_assistant.models.lesson import Lesson
from deaf_assistant.models.media import Media
from deaf_assistant.services import lesson_service


def lesson_payload(**overrides):
    payload = {
        "title": "Greetings",
        "description": "Basic greetings in sign language",
        "content": "Hello, goodbye, thank you.",
        "category": "Basics",
        "difficulty_level": 1,
        "duration_in_minutes": 15,
        "image_url": "https://cdn.example.com/greetings.png",
    }
    payload.update(overrides)
    return payload


def media_payload(**overrides):
    payload = {
        "name": "Hello video",
        "url": "https://cdn.example.com/hello.mp4",
        "media_type": "Video",
        "content_type": "video/mp4",
        "file_size": 1024,
    }
    payload.update(overrides)
    return payload


def create_lesson(client, headers, **overrides):
    resp = client.post("/api/lessons/", json=lesson_payload(**overrides), headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


class TestLessonAccess:
    def test_anonymous_can_read(self, client, admin_headers):
        lesson = create_lesson(client, admin_headers)
        assert client.get("/api/lessons/").json()[0]["id"] == lesson["id"]
        resp = client.get(f"/api/lessons/{lesson['id']}")
        assert resp.status_code == 200
        assert resp.json()["image_url"] == "https://cdn.example.com/greetings.png"

    def test_writes_require_admin(self, client, user_headers):
        assert client.post("/api/lessons/", json=lesson_payload()).status_code == 401
        resp = client.post("/api/lessons/", json=lesson_payload(), headers=user_headers)
        assert resp.status_code == 403

    def test_missing_lesson(self, client):
        assert client.get("/api/lessons/9999").status_code == 404

    def test_field_limits(self, client, admin_headers):
        resp = client.post(
            "/api/lessons/",
            json=lesson_payload(difficulty_level=6, title="x" * 101),
            headers=admin_headers,
        )
        assert resp.status_code == 400
        assert {"difficulty_level", "title"} <= set(resp.json()["errors"])


class TestLessonUpdate:
    def test_id_mismatch(self, client, admin_headers):
        lesson = create_lesson(client, admin_headers)
        resp = client.put(
            f"/api/lessons/{lesson['id']}",
            json=lesson_payload(id=lesson["id"] + 1),
            headers=admin_headers,
        )
        assert resp.status_code == 400

    def test_update_keeps_created_at(self, client, admin_headers):
        lesson = create_lesson(client, admin_headers)
        resp = client.put(
            f"/api/lessons/{lesson['id']}",
            json=lesson_payload(id=lesson["id"], title="Farewells"),
            headers=admin_headers,
        )
        assert resp.status_code == 204

        updated = client.get(f"/api/lessons/{lesson['id']}").json()
        assert updated["title"] == "Farewells"
        assert updated["created_at"] == lesson["created_at"]
        assert datetime.fromisoformat(updated["updated_at"]) >= datetime.fromisoformat(
            lesson["updated_at"]
        )

    def test_update_missing_lesson(self, client, admin_headers):
        resp = client.put(
            "/api/lessons/9999", json=lesson_payload(id=9999), headers=admin_headers
        )
        assert resp.status_code == 404


class TestLessonDelete:
    def test_delete_detaches_media_and_feedback(
        self, client, admin_headers, user_headers, db_session
    ):
        lesson = create_lesson(client, admin_headers)
        media = client.post(
            f"/api/lessons/{lesson['id']}/media", json=media_payload(), headers=admin_headers
        ).json()
        feedback = client.post(
            "/api/feedback/",
            json={"comment": "Great lesson", "rating": 5, "lesson_id": lesson["id"]},
            headers=user_headers,
        ).json()

        resp = client.delete(f"/api/lessons/{lesson['id']}", headers=admin_headers)
        assert resp.status_code == 204
        assert client.get(f"/api/lessons/{lesson['id']}").status_code == 404

        assert db_session.get(Media, media["id"]).lesson_id is None
        assert db_session.get(Feedback, feedback["id"]).lesson_id is None

    def test_delete_missing_lesson(self, client, admin_headers):
        assert client.delete("/api/lessons/9999", headers=admin_headers).status_code == 404


class TestLessonMedia:
    def test_media_crud(self, client, admin_headers):
        lesson = create_lesson(client, admin_headers)
        base = f"/api/lessons/{lesson['id']}/media"

        resp = client.post(base, json=media_payload(), headers=admin_headers)
        assert resp.status_code == 201
        media = resp.json()
        assert media["lesson_id"] == lesson["id"]
        assert media["user_id"] is not None

        listed = client.get(base).json()
        assert [m["id"] for m in listed] == [media["id"]]

        resp = client.put(
            f"{base}/{media['id']}",
            json=media_payload(id=media["id"], name="Hello (slow)"),
            headers=admin_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["name"] == "Hello (slow)"

        resp = client.put(
            f"{base}/{media['id']}",
            json=media_payload(id=media["id"] + 1),
            headers=admin_headers,
        )
        assert resp.status_code == 400

        assert client.delete(f"{base}/{media['id']}", headers=admin_headers).status_code == 204
        assert client.get(base).json() == []
        assert client.delete(f"{base}/{media['id']}", headers=admin_headers).status_code == 404

    def test_media_of_missing_lesson(self, client, admin_headers):
        assert client.get("/api/lessons/9999/media").status_code == 404
        resp = client.post("/api/lessons/9999/media", json=media_payload(), headers=admin_headers)
        assert resp.status_code == 404


class TestLessonConcurrency:
    """Updates racing against another request that touched the same row."""

    def _interfere(self, app, monkeypatch, change):
        update = lesson_service.update_lesson

        def update_after_change(db, *, db_obj, obj_in):
            with other_session(app) as other:
                change(other.query(Lesson).filter(Lesson.id == db_obj.id))
                other.commit()
            return update(db, db_obj=db_obj, obj_in=obj_in)

        monkeypatch.setattr(lesson_service, "update_lesson", update_after_change)

    def test_update_of_deleted_lesson(self, app, client, admin_headers, monkeypatch):
        lesson = create_lesson(client, admin_headers)
        self._interfere(app, monkeypatch, lambda q: q.delete())

        resp = client.put(
            f"/api/lessons/{lesson['id']}",
            json=lesson_payload(id=lesson["id"], title="Farewells"),
            headers=admin_headers,
        )
        assert resp.status_code == 404

    def test_conflicting_version_propagates(self, app, client, admin_headers, monkeypatch):
        lesson = create_lesson(client, admin_headers)
        self._interfere(
            app, monkeypatch, lambda q: q.update({Lesson.version: Lesson.version + 1})
        )

        with pytest.raises(StaleDataError):
            client.put(
                f"/api/lessons/{lesson['id']}",
                json=lesson_payload(id=lesson["id"], title="Farewells"),
                headers=admin_headers,
            )

        # the other writer's row is intact
        assert client.get(f"/api/lessons/{lesson['id']}").json()["title"] == "Greetings"
