from __future__ import annotations

from enum import Enum

from sqlalchemy import Column, DateTime, Integer, JSON, String, Text, func

from edulink.core.base import Base


class PaystackEventStatus(str, Enum):
    PENDING = "pending"
    PROCESSED = "processed"
    SKIPPED = "skipped"
    FAILED = "failed"


class PaystackEvent(Base):
    __tablename__ = "paystack_events"

    id = Column(Integer, primary_key=True, index=True)
    reference = Column(String(255), unique=True, nullable=False, index=True)
    event_type = Column(String(100), nullable=False)
    payload = Column(JSON, nullable=False)
    received_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    status = Column(String(20), nullable=False, server_default=PaystackEventStatus.PENDING.value)
    # Set when a delivery takes ownership of the reference; bounds the pending lease.
    claimed_at = Column(DateTime(timezone=True), nullable=True)
    error_message = Column(Text, nullable=True)
    processed_at = Column(DateTime(timezone=True), nullable=True)
