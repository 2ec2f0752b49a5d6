from __future__ import annotations

from dataclasses import dataclass, field

from sqlalchemy import desc, func
from sqlalchemy.orm import Session, joinedload

from edulink.models.course import Course, CourseStatus
from edulink.models.enrollment import Enrollment, EnrollmentStatus
from edulink.models.profile import Profile
from edulink.services.courses import list_courses
from edulink.services.earnings import EarningsService
from edulink.services.enrollments import list_for_student


@dataclass
class InstructorStats:
    profile: Profile
    total_students: int
    active_courses: int
    total_earnings_minor: int
    recent_enrollments: list[Enrollment] = field(default_factory=list)
    top_courses: list[tuple[Course, int]] = field(default_factory=list)


@dataclass
class StudentStats:
    profile: Profile
    enrolled_courses: list[Enrollment]
    total_courses: int
    completed_courses: int


def get_instructor_stats(db: Session, profile: Profile) -> InstructorStats:
    total_students = (
        db.query(func.count(func.distinct(Enrollment.student_id)))
        .join(Course, Course.id == Enrollment.course_id)
        .filter(
            Course.instructor_id == profile.id,
            Enrollment.status == EnrollmentStatus.ACTIVE.value,
        )
        .scalar()
    )
    active_courses = (
        db.query(func.count(Course.id))
        .filter(Course.instructor_id == profile.id, Course.status == CourseStatus.ACTIVE.value)
        .scalar()
    )
    recent = (
        db.query(Enrollment)
        .options(joinedload(Enrollment.course), joinedload(Enrollment.student))
        .join(Course, Course.id == Enrollment.course_id)
        .filter(Course.instructor_id == profile.id)
        .order_by(desc(Enrollment.enrolled_at), desc(Enrollment.id))
        .limit(5)
        .all()
    )
    summary = EarningsService(db).get_summary(profile.id)

    return InstructorStats(
        profile=profile,
        total_students=int(total_students or 0),
        active_courses=int(active_courses or 0),
        total_earnings_minor=summary.net_minor,
        recent_enrollments=recent,
        top_courses=list_courses(db, instructor_id=profile.id, sort="popular", limit=3),
    )


def get_student_stats(db: Session, profile: Profile) -> StudentStats:
    enrollments = list_for_student(db, profile.id)
    active = [e for e in enrollments if e.status == EnrollmentStatus.ACTIVE.value]
    completed = [e for e in enrollments if e.status == EnrollmentStatus.COMPLETED.value]
    return StudentStats(
        profile=profile,
        enrolled_courses=active,
        total_courses=len(active) + len(completed),
        completed_courses=len(completed),
    )
