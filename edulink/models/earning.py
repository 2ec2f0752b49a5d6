from __future__ import annotations

from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import relationship

from edulink.core.base import Base


class EarningStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"


class InstructorEarning(Base):
    __tablename__ = "instructor_earnings"

    id = Column(Integer, primary_key=True, index=True)
    instructor_id = Column(
        String(36),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    payment_id = Column(
        Integer,
        ForeignKey("payments.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )

    # All amounts in minor units; platform_fee_minor + net_amount_minor == amount_minor.
    amount_minor = Column(Integer, nullable=False)
    platform_fee_minor = Column(Integer, nullable=False)
    net_amount_minor = Column(Integer, nullable=False)
    currency = Column(String(10), nullable=False, server_default="NGN")

    # Advanced by the payout process.
    status = Column(String(20), nullable=False, server_default=EarningStatus.PENDING.value)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    payment = relationship("Payment")
