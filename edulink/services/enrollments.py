from __future__ import annotations

from datetime import datetime, timezone

from fastapi import HTTPException
from sqlalchemy import desc
from sqlalchemy.orm import Session, joinedload

from edulink.models.enrollment import Enrollment, EnrollmentStatus
from edulink.services.activity import log_activity


def list_for_student(db: Session, student_id: str, *, status: str | None = None) -> list[Enrollment]:
    q = (
        db.query(Enrollment)
        .options(joinedload(Enrollment.course))
        .filter(Enrollment.student_id == student_id)
    )
    if status:
        q = q.filter(Enrollment.status == status)
    return q.order_by(desc(Enrollment.enrolled_at), desc(Enrollment.id)).all()


def get_enrollment_for_student(db: Session, enrollment_id: int, student_id: str) -> Enrollment:
    enrollment = (
        db.query(Enrollment)
        .filter(Enrollment.id == enrollment_id, Enrollment.student_id == student_id)
        .first()
    )
    if not enrollment:
        raise HTTPException(status_code=404, detail="Enrollment not found")
    return enrollment


def update_progress(db: Session, enrollment: Enrollment, progress: int) -> Enrollment:
    if not 0 <= progress <= 100:
        raise ValueError("progress must be between 0 and 100")
    if enrollment.status == EnrollmentStatus.CANCELLED.value:
        raise HTTPException(status_code=409, detail="Enrollment is cancelled")

    enrollment.progress = progress
    if progress == 100 and enrollment.status != EnrollmentStatus.COMPLETED.value:
        enrollment.status = EnrollmentStatus.COMPLETED.value
        enrollment.completed_at = datetime.now(timezone.utc)
        title = enrollment.course.title if enrollment.course else "your course"
        log_activity(
            db,
            user_id=enrollment.student_id,
            type="achievement",
            title="Course Completed",
            description=f"Congratulations on completing {title}",
        )

    db.commit()
    db.refresh(enrollment)
    return enrollment
