from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from edulink.core.database import get_db
from edulink.dependencies.auth import get_current_profile
from edulink.models.enrollment import EnrollmentStatus
from edulink.models.profile import Profile
from edulink.schemas.enrollment import EnrollmentOut, ProgressUpdate
from edulink.services.enrollments import get_enrollment_for_student, list_for_student, update_progress

router = APIRouter(prefix="/enrollments", tags=["enrollments"])

_STATUSES = {s.value for s in EnrollmentStatus}


@router.get("/me", response_model=list[EnrollmentOut])
def list_my_enrollments(
    status: str | None = Query(None),
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    if status is not None and status not in _STATUSES:
        raise HTTPException(status_code=400, detail="Unknown enrollment status")
    return list_for_student(db, profile.id, status=status)


@router.patch("/{enrollment_id}/progress", response_model=EnrollmentOut)
def set_progress(
    enrollment_id: int,
    payload: ProgressUpdate,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
):
    enrollment = get_enrollment_for_student(db, enrollment_id, profile.id)
    return update_progress(db, enrollment, payload.progress)
