from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from edulink.core.database import get_db
from edulink.dependencies.auth import require_role
from edulink.models.profile import Profile, ProfileRole
from edulink.routes.courses import to_course_out
from edulink.schemas.dashboard import InstructorDashboardOut, RecentEnrollmentOut, StudentDashboardOut
from edulink.schemas.enrollment import EnrollmentOut
from edulink.schemas.profile import ProfileOut
from edulink.services.dashboard import get_instructor_stats, get_student_stats
from edulink.services.purchases import format_minor_units

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/instructor", response_model=InstructorDashboardOut)
def instructor_dashboard(
    db: Session = Depends(get_db),
    profile: Profile = Depends(require_role(ProfileRole.EDUCATOR.value)),
):
    stats = get_instructor_stats(db, profile)
    recent = []
    for enrollment in stats.recent_enrollments:
        item = RecentEnrollmentOut.model_validate(enrollment)
        item.student_name = enrollment.student.name if enrollment.student else None
        recent.append(item)

    return InstructorDashboardOut(
        profile=ProfileOut.model_validate(stats.profile),
        total_students=stats.total_students,
        active_courses=stats.active_courses,
        total_earnings_minor=stats.total_earnings_minor,
        total_earnings=format_minor_units(stats.total_earnings_minor),
        recent_enrollments=recent,
        top_courses=[to_course_out(course, enrolled) for course, enrolled in stats.top_courses],
    )


@router.get("/student", response_model=StudentDashboardOut)
def student_dashboard(
    db: Session = Depends(get_db),
    profile: Profile = Depends(require_role(ProfileRole.STUDENT.value)),
):
    stats = get_student_stats(db, profile)
    return StudentDashboardOut(
        profile=ProfileOut.model_validate(stats.profile),
        enrolled_courses=[EnrollmentOut.model_validate(e) for e in stats.enrolled_courses],
        total_courses=stats.total_courses,
        completed_courses=stats.completed_courses,
    )
