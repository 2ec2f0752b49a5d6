from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy import desc
from sqlalchemy.orm import Session

from edulink.core.config import settings
from edulink.core.database import get_db
from edulink.core.rate_limit import limiter
from edulink.dependencies.auth import get_current_profile
from edulink.models.payment import Payment
from edulink.models.profile import Profile
from edulink.schemas.enrollment import EnrollmentOut
from edulink.schemas.payment import PaymentOut, VerifyPaymentIn, VerifyPaymentOut
from edulink.services.paystack import (
    FulfilmentStatus,
    PaystackClaimInFlightError,
    PaystackNotFoundError,
    PaystackService,
    PaystackServiceError,
    PaystackValidationError,
    PaystackVerificationError,
)
from edulink.services.purchases import format_minor_units

router = APIRouter(prefix="/payments", tags=["payments"])

logger = logging.getLogger(__name__)


def _maybe_limit(rule: str):
    if not settings.ENABLE_RATE_LIMITING:
        def passthrough(fn):
            return fn
        return passthrough
    return limiter.limit(rule)


@router.post("/verify", response_model=VerifyPaymentOut)
@_maybe_limit(settings.VERIFY_PAYMENT_RATE_LIMIT)
def verify_payment(
    request: Request,
    payload: VerifyPaymentIn,
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
) -> VerifyPaymentOut:
    service = PaystackService(db)
    try:
        result = service.confirm_transaction(
            reference=payload.reference,
            course_id=payload.course_id,
            student_id=profile.id,
        )
    except (PaystackVerificationError, PaystackValidationError) as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except PaystackNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except PaystackClaimInFlightError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except PaystackServiceError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Payment verification failed") from exc

    logger.info("Payment verification for %s finished: %s", payload.reference, result.status.value)
    if result.status == FulfilmentStatus.PROCESSED:
        message = "Payment verified and enrollment created"
    else:
        message = "Already enrolled"

    return VerifyPaymentOut(
        success=True,
        message=message,
        status=result.status.value,
        reference=payload.reference,
        amount_minor=result.amount_minor,
        amount=format_minor_units(result.amount_minor) if result.amount_minor is not None else None,
        enrollment=EnrollmentOut.model_validate(result.enrollment) if result.enrollment else None,
    )


@router.get("/me", response_model=list[PaymentOut])
def list_my_payments(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    profile: Profile = Depends(get_current_profile),
) -> list[PaymentOut]:
    payments = (
        db.query(Payment)
        .filter(Payment.student_id == profile.id)
        .order_by(desc(Payment.created_at), desc(Payment.id))
        .offset(offset)
        .limit(limit)
        .all()
    )
    return [
        PaymentOut(
            id=p.id,
            reference=p.reference,
            course_id=p.course_id,
            instructor_id=p.instructor_id,
            amount_minor=p.amount_minor,
            amount=format_minor_units(p.amount_minor),
            currency=p.currency,
            channel=p.channel,
            status=p.status,
            created_at=p.created_at,
        )
        for p in payments
    ]
