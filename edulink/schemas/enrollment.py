from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from edulink.schemas.course import CourseSummaryOut


class EnrollmentOut(BaseModel):
    id: int
    student_id: str
    course_id: str
    progress: int
    status: str
    enrolled_at: datetime
    completed_at: datetime | None = None
    course: CourseSummaryOut | None = None

    model_config = ConfigDict(from_attributes=True)


class ProgressUpdate(BaseModel):
    progress: int = Field(ge=0, le=100)
