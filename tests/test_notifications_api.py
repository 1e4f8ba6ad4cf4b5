import uuid

from conftest import auth
from lms.models import Notification
from lms.services.notification_service import NotificationService


def test_admin_sends_to_role(client, admin, student, other_student):
    response = client.post(
        "/api/notifications/",
        json={"title": "Exam week", "message": "Good luck", "to_role": "student"},
        headers=auth(admin)
    )

    assert response.status_code == 201
    assert response.json()["type"] == "announcement"

    for user in (student, other_student):
        body = client.get("/api/notifications/me", headers=auth(user)).json()
        assert [n["title"] for n in body["data"]] == ["Exam week"]

    assert client.get("/api/notifications/me", headers=auth(admin)).json()["total"] == 0


def test_notification_needs_a_target(client, admin):
    response = client.post("/api/notifications/", json={"title": "Nobody"}, headers=auth(admin))

    assert response.status_code == 422


def test_students_cannot_send(client, student):
    response = client.post(
        "/api/notifications/",
        json={"title": "Hi", "to_role": "student"},
        headers=auth(student)
    )

    assert response.status_code == 403


def test_direct_notification_is_private(client, admin, student, other_student):
    created = client.post(
        "/api/notifications/",
        json={"title": "See me", "to_user_id": str(student.id)},
        headers=auth(admin)
    ).json()

    assert client.get("/api/notifications/me", headers=auth(other_student)).json()["total"] == 0

    forbidden = client.patch(f"/api/notifications/{created['id']}/read", headers=auth(other_student))
    assert forbidden.status_code == 403

    read = client.patch(f"/api/notifications/{created['id']}/read", headers=auth(student))
    assert read.status_code == 200
    assert read.json()["is_read"] is True


def test_unknown_recipient_is_not_found(client, db, admin):
    response = client.post(
        "/api/notifications/",
        json={"title": "See me", "to_user_id": str(uuid.uuid4())},
        headers=auth(admin)
    )

    assert response.status_code == 404
    assert db.query(Notification).count() == 0


def test_mark_missing_notification(client, student):
    response = client.patch(f"/api/notifications/{uuid.uuid4()}/read", headers=auth(student))

    assert response.status_code == 404


class BrokenSession:
    def __init__(self):
        self.rolled_back = False
        self.closed = False

    def add(self, obj):
        pass

    def commit(self):
        raise RuntimeError("database unavailable")

    def rollback(self):
        self.rolled_back = True

    def close(self):
        self.closed = True


def test_notify_user_swallows_errors(student):
    session = BrokenSession()

    NotificationService(session_factory=lambda: session).notify_user(student.id, "Result Published", "x")

    assert session.rolled_back
    assert session.closed


def test_notify_user_commits_in_own_session(db, student):
    NotificationService().notify_user(student.id, "Result Published", "You scored 1/1 in Algebra")

    [notification] = db.query(Notification).all()
    assert notification.to_user_id == student.id
    assert notification.type == "result"
    assert notification.created_by is None
