from __future__ import annotations

import pytest

from edulink.auth.identity import Identity
from edulink.models.activity import Activity
from edulink.models.profile import Profile
from edulink.services.profiles import InvalidRoleError, resolve_signup_role

NEW_USER_ID = "44444444-4444-4444-4444-444444444444"


def _new_identity(**kwargs) -> Identity:
    return Identity(user_id=NEW_USER_ID, email="new@example.com", name="New Person", **kwargs)


def test_complete_signup_creates_student_by_default(client_for, db_session):
    with client_for(_new_identity()) as c:
        resp = c.post("/profiles/complete-signup", json={})

    assert resp.status_code == 200
    body = resp.json()
    assert body["created"] is True
    assert body["role_changed"] is False
    assert body["redirect_to"] == "/dashboard/student"
    assert body["profile"]["role"] == "student"
    assert body["profile"]["name"] == "New Person"

    welcome = db_session.query(Activity).filter(Activity.user_id == NEW_USER_ID).one()
    assert welcome.type == "update"
    assert welcome.title == "Welcome to EduLink Hub!"
    assert "student account" in welcome.description


def test_complete_signup_url_role_wins(client_for, db_session):
    with client_for(_new_identity(role_hint="student")) as c:
        resp = c.post("/profiles/complete-signup", json={"role": "Educator", "stored_role": "student"})

    assert resp.status_code == 200
    assert resp.json()["profile"]["role"] == "educator"
    assert resp.json()["redirect_to"] == "/dashboard/instructor"
    welcome = db_session.query(Activity).filter(Activity.user_id == NEW_USER_ID).one()
    assert "instructor account" in welcome.description


def test_complete_signup_updates_existing_role_without_new_welcome(client_for, db_session, student):
    with client_for(student) as c:
        resp = c.post("/profiles/complete-signup", json={"stored_role": "educator"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["created"] is False
    assert body["role_changed"] is True
    assert body["profile"]["role"] == "educator"
    assert db_session.query(Activity).count() == 0


def test_complete_signup_is_idempotent(client_for, db_session):
    with client_for(_new_identity()) as c:
        c.post("/profiles/complete-signup", json={})
        resp = c.post("/profiles/complete-signup", json={})

    assert resp.json()["created"] is False
    assert resp.json()["role_changed"] is False
    assert db_session.query(Profile).filter(Profile.id == NEW_USER_ID).count() == 1
    assert db_session.query(Activity).count() == 1


def test_complete_signup_rejects_unknown_role(client_for, db_session):
    with client_for(_new_identity()) as c:
        resp = c.post("/profiles/complete-signup", json={"role": "admin"})

    assert resp.status_code == 400
    assert resp.json()["error"] == "VALIDATION_ERROR"
    assert db_session.query(Profile).count() == 0


def test_complete_signup_requires_token(client):
    resp = client.post("/profiles/complete-signup", json={})
    assert resp.status_code == 401


@pytest.mark.parametrize(
    "url_role,stored_role,metadata_role,expected",
    [
        (None, None, None, "student"),
        (None, None, "educator", "educator"),
        (None, "educator", "student", "educator"),
        ("student", "educator", "educator", "student"),
        (" ", "", "EDUCATOR", "educator"),
    ],
)
def test_resolve_signup_role_precedence(url_role, stored_role, metadata_role, expected):
    assert resolve_signup_role(url_role, stored_role, metadata_role) == expected


def test_resolve_signup_role_rejects_admin():
    with pytest.raises(InvalidRoleError):
        resolve_signup_role("admin", None)


def test_routes_require_completed_profile(client_for):
    with client_for(_new_identity()) as c:
        resp = c.get("/profiles/me")
    assert resp.status_code == 403
    assert resp.json()["message"] == "Profile setup is incomplete"


def test_get_and_update_me(client_for, student):
    with client_for(student) as c:
        assert c.get("/profiles/me").json()["email"] == "sam@example.com"

        resp = c.patch("/profiles/me", json={"name": "  Samuel  ", "country": "Nigeria", "email_notifications": False})
        assert resp.status_code == 200
        body = resp.json()
        assert body["name"] == "Samuel"
        assert body["country"] == "Nigeria"
        assert body["email_notifications"] is False

        assert c.patch("/profiles/me", json={"name": "   "}).status_code == 400


def test_update_me_ignores_role(client_for, student):
    with client_for(student) as c:
        resp = c.patch("/profiles/me", json={"role": "admin"})
    assert resp.status_code == 200
    assert resp.json()["role"] == "student"


def test_search_tutors(client_for, db_session, educator, student):
    db_session.add(Profile(id="t2", role="educator", name="Bola Physics", subject="Physics"))
    db_session.commit()

    with client_for(student) as c:
        everyone = c.get("/profiles/tutors").json()
        physics = c.get("/profiles/tutors", params={"subject": "physics"}).json()
        by_name = c.get("/profiles/tutors", params={"q": "ada"}).json()

    assert [t["name"] for t in everyone] == ["Ada Instructor", "Bola Physics"]
    assert [t["id"] for t in physics] == ["t2"]
    assert [t["id"] for t in by_name] == [educator.id]
    assert "email" not in everyone[0]


def test_public_profile(client_for, educator, student):
    with client_for(student) as c:
        resp = c.get(f"/profiles/{educator.id}")
        missing = c.get("/profiles/nope")

    assert resp.status_code == 200
    assert resp.json()["subject"] == "Mathematics"
    assert missing.status_code == 404
