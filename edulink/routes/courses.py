from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from edulink.core.database import get_db
from edulink.dependencies.auth import get_current_profile, require_role
from edulink.models.course import Course
from edulink.models.profile import Profile, ProfileRole
from edulink.schemas.course import CourseCreate, CourseOut, CourseUpdate
from edulink.services.courses import (
    COURSE_SORTS,
    count_enrolled,
    create_course,
    get_course_for_instructor,
    get_course_or_404,
    list_courses,
    update_course,
)
from edulink.services.purchases import format_minor_units

router = APIRouter(prefix="/courses", tags=["courses"])

require_educator = require_role(ProfileRole.EDUCATOR.value)


def to_course_out(course: Course, enrolled_count: int = 0) -> CourseOut:
    return CourseOut(
        id=course.id,
        instructor_id=course.instructor_id,
        title=course.title,
        description=course.description,
        category=course.category,
        level=course.level,
        price_minor=course.price_minor,
        price=format_minor_units(course.price_minor),
        currency=course.currency,
        status=course.status,
        thumbnail_url=course.thumbnail_url,
        enrolled_count=enrolled_count,
        created_at=course.created_at,
    )


@router.get("", response_model=list[CourseOut])
def list_courses_route(
    q: str | None = Query(None),
    category: str | None = Query(None),
    instructor_id: str | None = Query(None),
    sort: str = Query("newest"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    if sort not in COURSE_SORTS:
        raise HTTPException(status_code=400, detail=f"sort must be one of {', '.join(COURSE_SORTS)}")
    rows = list_courses(
        db,
        q=q,
        category=category,
        instructor_id=instructor_id,
        sort=sort,
        limit=limit,
        offset=offset,
    )
    return [to_course_out(course, enrolled) for course, enrolled in rows]


@router.get("/{course_id}", response_model=CourseOut)
def get_course(course_id: str, db: Session = Depends(get_db)):
    course = get_course_or_404(db, course_id)
    return to_course_out(course, count_enrolled(db, course.id))


@router.post("", response_model=CourseOut, status_code=status.HTTP_201_CREATED)
def create_course_route(
    payload: CourseCreate,
    db: Session = Depends(get_db),
    profile: Profile = Depends(require_educator),
):
    course = create_course(db, profile.id, payload.model_dump())
    return to_course_out(course, 0)


@router.patch("/{course_id}", response_model=CourseOut)
def update_course_route(
    course_id: str,
    payload: CourseUpdate,
    db: Session = Depends(get_db),
    profile: Profile = Depends(require_educator),
):
    course = get_course_for_instructor(db, course_id, profile.id)
    course = update_course(db, course, payload.model_dump(exclude_unset=True))
    return to_course_out(course, count_enrolled(db, course.id))
