from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.sql import func

from edulink.core.base import Base


ACTIVITY_TYPES = ("update", "enrollment", "achievement", "message")


class Activity(Base):
    __tablename__ = "activities"

    id = Column(Integer, primary_key=True, index=True)

    user_id = Column(
        String(36),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # e.g. update, enrollment, achievement, message
    type = Column(String(50), nullable=False, index=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    is_read = Column(Boolean, nullable=False, server_default="false", default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
