from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, field_validator

from edulink.schemas.enrollment import EnrollmentOut


class WebhookAckOut(BaseModel):
    received: bool = True
    status: str
    enrolled: bool
    reference: str | None = None


class VerifyPaymentIn(BaseModel):
    reference: str
    course_id: str

    @field_validator("reference", "course_id")
    @staticmethod
    def _required(value: str) -> str:
        normalized = (value or "").strip()
        if not normalized:
            raise ValueError("value is required")
        return normalized


class VerifyPaymentOut(BaseModel):
    success: bool
    message: str
    status: str
    reference: str
    amount_minor: int | None = None
    amount: str | None = None
    enrollment: EnrollmentOut | None = None


class PaymentOut(BaseModel):
    id: int
    reference: str
    course_id: str | None = None
    instructor_id: str | None = None
    amount_minor: int
    amount: str
    currency: str
    channel: str | None = None
    status: str
    created_at: datetime
