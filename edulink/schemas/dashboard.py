from __future__ import annotations

from pydantic import BaseModel

from edulink.schemas.course import CourseOut
from edulink.schemas.enrollment import EnrollmentOut
from edulink.schemas.profile import ProfileOut


class RecentEnrollmentOut(EnrollmentOut):
    student_name: str | None = None


class InstructorDashboardOut(BaseModel):
    profile: ProfileOut
    total_students: int
    active_courses: int
    total_earnings_minor: int
    total_earnings: str
    recent_enrollments: list[RecentEnrollmentOut]
    top_courses: list[CourseOut]


class StudentDashboardOut(BaseModel):
    profile: ProfileOut
    enrolled_courses: list[EnrollmentOut]
    total_courses: int
    completed_courses: int
