from __future__ import annotations

from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import relationship

from edulink.core.base import Base


class PaymentStatus(str, Enum):
    SUCCEEDED = "succeeded"
    PENDING = "pending"
    FAILED = "failed"


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    # Paystack transaction reference; the idempotency key for fulfilment.
    reference = Column(String(255), unique=True, nullable=False, index=True)

    student_id = Column(String(36), ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True, index=True)
    instructor_id = Column(String(36), ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True, index=True)
    course_id = Column(String(36), ForeignKey("courses.id", ondelete="SET NULL"), nullable=True, index=True)

    amount_minor = Column(Integer, nullable=False)
    currency = Column(String(10), nullable=False, server_default="NGN")
    channel = Column(String(50), nullable=True)
    status = Column(String(20), nullable=False, server_default=PaymentStatus.PENDING.value)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    course = relationship("Course")
