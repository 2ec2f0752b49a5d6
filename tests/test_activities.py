from __future__ import annotations

import pytest

from edulink.models.activity import Activity
from edulink.services.activity import log_activity


def _seed(db_session, user_id: str) -> list[Activity]:
    rows = [
        log_activity(db_session, user_id=user_id, type="update", title="Welcome"),
        log_activity(db_session, user_id=user_id, type="enrollment", title="Course Purchased"),
        log_activity(db_session, user_id=user_id, type="achievement", title="Course Completed"),
    ]
    db_session.commit()
    return rows


def test_list_returns_newest_first_and_only_own(client_for, db_session, student, other_student):
    _seed(db_session, student.id)
    log_activity(db_session, user_id=other_student.id, type="update", title="Not yours")
    db_session.commit()

    with client_for(student) as c:
        resp = c.get("/activities")

    assert resp.status_code == 200
    body = resp.json()
    assert [a["title"] for a in body] == ["Course Completed", "Course Purchased", "Welcome"]
    assert all(a["read"] is False for a in body)


def test_filter_by_type_and_unread(client_for, db_session, student):
    rows = _seed(db_session, student.id)
    rows[0].is_read = True
    db_session.commit()

    with client_for(student) as c:
        by_type = c.get("/activities", params={"type": "enrollment"}).json()
        unread = c.get("/activities", params={"unread_only": "true"}).json()
        bad = c.get("/activities", params={"type": "gossip"})

    assert [a["type"] for a in by_type] == ["enrollment"]
    assert {a["title"] for a in unread} == {"Course Purchased", "Course Completed"}
    assert bad.status_code == 400


def test_unread_count_and_mark_read(client_for, db_session, student):
    rows = _seed(db_session, student.id)

    with client_for(student) as c:
        assert c.get("/activities/unread-count").json() == {"unread": 3}

        resp = c.post(f"/activities/{rows[1].id}/read")
        assert resp.status_code == 200
        assert resp.json()["read"] is True

        assert c.get("/activities/unread-count").json() == {"unread": 2}

        resp = c.post("/activities/read-all")
        assert resp.json() == {"count": 2}
        assert c.get("/activities/unread-count").json() == {"unread": 0}


def test_cannot_touch_someone_elses_activity(client_for, db_session, student, other_student):
    rows = _seed(db_session, other_student.id)

    with client_for(student) as c:
        assert c.post(f"/activities/{rows[0].id}/read").status_code == 404
        assert c.delete(f"/activities/{rows[0].id}").status_code == 404

    assert db_session.query(Activity).filter(Activity.user_id == other_student.id).count() == 3


def test_delete_one_and_clear_all(client_for, db_session, student, other_student):
    rows = _seed(db_session, student.id)
    _seed(db_session, other_student.id)

    with client_for(student) as c:
        assert c.delete(f"/activities/{rows[0].id}").status_code == 204
        resp = c.delete("/activities")
        assert resp.json() == {"count": 2}

    assert db_session.query(Activity).filter(Activity.user_id == student.id).count() == 0
    assert db_session.query(Activity).filter(Activity.user_id == other_student.id).count() == 3


def test_log_activity_rejects_unknown_type(db_session, student):
    with pytest.raises(ValueError):
        log_activity(db_session, user_id=student.id, type="gossip", title="x")
