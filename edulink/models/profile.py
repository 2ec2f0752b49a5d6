# edulink/models/profile.py
from enum import Enum

from sqlalchemy import Boolean, Column, DateTime, String, Text, func

from edulink.core.base import Base


class ProfileRole(str, Enum):
    STUDENT = "student"
    EDUCATOR = "educator"
    ADMIN = "admin"


class Profile(Base):
    __tablename__ = "profiles"

    # Same id as the hosted auth user (token `sub`).
    id = Column(String(36), primary_key=True)

    role = Column(String(20), nullable=False, server_default=ProfileRole.STUDENT.value, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=True, index=True)
    phone = Column(String(50), nullable=True)
    country = Column(String(100), nullable=True)

    # Educator fields
    subject = Column(String(100), nullable=True)
    qualification = Column(String(255), nullable=True)
    experience = Column(String(255), nullable=True)
    bio = Column(Text, nullable=True)

    avatar_url = Column(String(1024), nullable=True)
    email_notifications = Column(Boolean, nullable=False, server_default="true", default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
