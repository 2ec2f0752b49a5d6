from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

COURSE_STATUSES = {"draft", "active", "archived"}


def _validate_status(value: str | None) -> str | None:
    if value is None:
        return None
    normalized = value.strip().lower()
    if normalized not in COURSE_STATUSES:
        raise ValueError("status must be one of draft, active, archived")
    return normalized


class CourseOut(BaseModel):
    id: str
    instructor_id: str
    title: str
    description: str | None = None
    category: str | None = None
    level: str | None = None
    price_minor: int
    price: str
    currency: str
    status: str
    thumbnail_url: str | None = None
    enrolled_count: int = 0
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CourseSummaryOut(BaseModel):
    id: str
    title: str
    instructor_id: str
    thumbnail_url: str | None = None

    model_config = ConfigDict(from_attributes=True)


class CourseCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    category: str | None = Field(default=None, max_length=100)
    level: str | None = Field(default=None, max_length=50)
    price_minor: int = Field(default=0, ge=0)
    currency: str = Field(default="NGN", min_length=3, max_length=10)
    status: str = "draft"
    thumbnail_url: str | None = Field(default=None, max_length=1024)

    @field_validator("status")
    @staticmethod
    def _status(value: str) -> str:
        return _validate_status(value) or "draft"

    @field_validator("currency")
    @staticmethod
    def _currency(value: str) -> str:
        return value.strip().upper()

    @field_validator("title")
    @staticmethod
    def _title(value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("title is required")
        return stripped


class CourseUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    category: str | None = Field(default=None, max_length=100)
    level: str | None = Field(default=None, max_length=50)
    price_minor: int | None = Field(default=None, ge=0)
    currency: str | None = Field(default=None, min_length=3, max_length=10)
    status: str | None = None
    thumbnail_url: str | None = Field(default=None, max_length=1024)

    @field_validator("status")
    @staticmethod
    def _status(value: str | None) -> str | None:
        return _validate_status(value)

    @field_validator("currency")
    @staticmethod
    def _currency(value: str | None) -> str | None:
        return value.strip().upper() if value else value
