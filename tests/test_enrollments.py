from __future__ import annotations

from edulink.models.activity import Activity
from edulink.models.enrollment import Enrollment


def _enroll(db_session, student, course, status: str = "active", progress: int = 0) -> Enrollment:
    enrollment = Enrollment(student_id=student.id, course_id=course.id, status=status, progress=progress)
    db_session.add(enrollment)
    db_session.commit()
    db_session.refresh(enrollment)
    return enrollment


def test_list_my_enrollments(client_for, db_session, course, student, other_student):
    _enroll(db_session, student, course)
    _enroll(db_session, other_student, course)

    with client_for(student) as c:
        body = c.get("/enrollments/me").json()
        completed = c.get("/enrollments/me", params={"status": "completed"}).json()
        bad = c.get("/enrollments/me", params={"status": "paused"})

    assert len(body) == 1
    assert body[0]["student_id"] == student.id
    assert body[0]["course"]["title"] == "Algebra Basics"
    assert completed == []
    assert bad.status_code == 400


def test_progress_update(client_for, db_session, course, student):
    enrollment = _enroll(db_session, student, course)

    with client_for(student) as c:
        resp = c.patch(f"/enrollments/{enrollment.id}/progress", json={"progress": 60})

    assert resp.status_code == 200
    assert resp.json()["progress"] == 60
    assert resp.json()["status"] == "active"
    assert db_session.query(Activity).count() == 0


def test_full_progress_completes_and_logs_achievement(client_for, db_session, course, student):
    enrollment = _enroll(db_session, student, course, progress=90)

    with client_for(student) as c:
        resp = c.patch(f"/enrollments/{enrollment.id}/progress", json={"progress": 100})
        again = c.patch(f"/enrollments/{enrollment.id}/progress", json={"progress": 100})

    assert resp.status_code == 200
    assert resp.json()["status"] == "completed"
    assert resp.json()["completed_at"] is not None
    assert again.status_code == 200

    activity = db_session.query(Activity).one()
    assert activity.type == "achievement"
    assert activity.title == "Course Completed"
    assert activity.description == "Congratulations on completing Algebra Basics"


def test_progress_out_of_range_is_invalid(client_for, db_session, course, student):
    enrollment = _enroll(db_session, student, course)
    with client_for(student) as c:
        resp = c.patch(f"/enrollments/{enrollment.id}/progress", json={"progress": 101})
    assert resp.status_code == 422


def test_cancelled_enrollment_cannot_progress(client_for, db_session, course, student):
    enrollment = _enroll(db_session, student, course, status="cancelled")
    with client_for(student) as c:
        resp = c.patch(f"/enrollments/{enrollment.id}/progress", json={"progress": 10})
    assert resp.status_code == 409
    assert resp.json()["error"] == "CONFLICT"


def test_cannot_update_someone_elses_enrollment(client_for, db_session, course, student, other_student):
    enrollment = _enroll(db_session, other_student, course)
    with client_for(student) as c:
        resp = c.patch(f"/enrollments/{enrollment.id}/progress", json={"progress": 10})
    assert resp.status_code == 404
