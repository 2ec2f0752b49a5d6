from __future__ import annotations

from typing import Any

from fastapi import HTTPException
from sqlalchemy import desc, func, or_, select
from sqlalchemy.orm import Session

from edulink.models.course import Course, CourseStatus
from edulink.models.enrollment import ENROLLED_STATUSES, Enrollment

COURSE_SORTS = ("newest", "price_asc", "price_desc", "popular")

EDITABLE_FIELDS = (
    "title",
    "description",
    "category",
    "level",
    "price_minor",
    "currency",
    "status",
    "thumbnail_url",
)


def _enrollment_counts():
    return (
        select(Enrollment.course_id, func.count(Enrollment.id).label("enrolled"))
        .where(Enrollment.status.in_(ENROLLED_STATUSES))
        .group_by(Enrollment.course_id)
        .subquery()
    )


def list_courses(
    db: Session,
    *,
    q: str | None = None,
    category: str | None = None,
    instructor_id: str | None = None,
    sort: str = "newest",
    limit: int = 50,
    offset: int = 0,
) -> list[tuple[Course, int]]:
    counts = _enrollment_counts()
    enrolled = func.coalesce(counts.c.enrolled, 0)
    query = (
        db.query(Course, enrolled)
        .outerjoin(counts, counts.c.course_id == Course.id)
        .filter(Course.status == CourseStatus.ACTIVE.value)
    )

    if q and q.strip():
        like = f"%{q.strip().lower()}%"
        query = query.filter(
            or_(
                func.lower(Course.title).like(like),
                func.lower(func.coalesce(Course.description, "")).like(like),
            )
        )
    if category and category.strip():
        query = query.filter(func.lower(Course.category) == category.strip().lower())
    if instructor_id:
        query = query.filter(Course.instructor_id == instructor_id)

    if sort == "price_asc":
        query = query.order_by(Course.price_minor.asc(), desc(Course.created_at))
    elif sort == "price_desc":
        query = query.order_by(desc(Course.price_minor), desc(Course.created_at))
    elif sort == "popular":
        query = query.order_by(desc(enrolled), desc(Course.created_at))
    else:
        query = query.order_by(desc(Course.created_at))

    limit2 = max(1, min(int(limit or 50), 200))
    rows = query.order_by(Course.id).offset(max(0, int(offset or 0))).limit(limit2).all()
    return [(course, int(count or 0)) for course, count in rows]


def count_enrolled(db: Session, course_id: str) -> int:
    return int(
        db.query(func.count(Enrollment.id))
        .filter(Enrollment.course_id == course_id, Enrollment.status.in_(ENROLLED_STATUSES))
        .scalar()
        or 0
    )


def get_course_or_404(db: Session, course_id: str) -> Course:
    course = db.get(Course, course_id)
    if not course:
        raise HTTPException(status_code=404, detail="Course not found")
    return course


def get_course_for_instructor(db: Session, course_id: str, instructor_id: str) -> Course:
    course = (
        db.query(Course)
        .filter(Course.id == course_id, Course.instructor_id == instructor_id)
        .first()
    )
    if not course:
        raise HTTPException(status_code=404, detail="Course not found")
    return course


def create_course(db: Session, instructor_id: str, data: dict[str, Any]) -> Course:
    course = Course(instructor_id=instructor_id, **{k: v for k, v in data.items() if k in EDITABLE_FIELDS})
    db.add(course)
    db.commit()
    db.refresh(course)
    return course


def update_course(db: Session, course: Course, data: dict[str, Any]) -> Course:
    changed = False
    for key, value in data.items():
        if key not in EDITABLE_FIELDS or value is None:
            continue
        setattr(course, key, value)
        changed = True
    if changed:
        db.commit()
        db.refresh(course)
    return course
