from __future__ import annotations

import uuid
from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import relationship

from edulink.core.base import Base


class CourseStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    ARCHIVED = "archived"


class Course(Base):
    __tablename__ = "courses"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    instructor_id = Column(
        String(36),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(100), nullable=True, index=True)
    level = Column(String(50), nullable=True)

    # Minor currency units (kobo for NGN).
    price_minor = Column(Integer, nullable=False, server_default="0", default=0)
    currency = Column(String(10), nullable=False, server_default="NGN", default="NGN")

    status = Column(String(20), nullable=False, server_default=CourseStatus.DRAFT.value, index=True)
    thumbnail_url = Column(String(1024), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    instructor = relationship("Profile")
