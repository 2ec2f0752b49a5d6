from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy.orm import Session

from edulink.models.course import Course
from edulink.models.earning import EarningStatus, InstructorEarning
from edulink.models.enrollment import ENROLLED_STATUSES, Enrollment, EnrollmentStatus
from edulink.models.payment import Payment, PaymentStatus
from edulink.services.activity import log_activity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EarningsSplit:
    amount_minor: int
    platform_fee_minor: int
    net_amount_minor: int


@dataclass
class PurchaseRecord:
    payment: Payment
    enrollment: Enrollment
    earning: InstructorEarning


def compute_earnings_split(amount_minor: int, fee_percent: int) -> EarningsSplit:
    """
    Split a gross amount into platform fee and instructor net. Everything stays
    in integer minor units; the fee is rounded half-up and net takes the rest,
    so fee + net always equals gross.
    """
    if amount_minor < 0:
        raise ValueError("amount_minor must not be negative")
    if not 0 <= fee_percent <= 100:
        raise ValueError("fee_percent must be between 0 and 100")

    fee = (Decimal(amount_minor) * Decimal(fee_percent) / Decimal(100)).quantize(
        Decimal("1"), rounding=ROUND_HALF_UP
    )
    platform_fee = int(fee)
    return EarningsSplit(
        amount_minor=int(amount_minor),
        platform_fee_minor=platform_fee,
        net_amount_minor=int(amount_minor) - platform_fee,
    )


def format_minor_units(value: int) -> str:
    decimal_value = (Decimal(value) / Decimal(100)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return f"{decimal_value:.2f}"


def find_enrollment(db: Session, *, student_id: str, course_id: str) -> Enrollment | None:
    return (
        db.query(Enrollment)
        .filter(Enrollment.student_id == student_id, Enrollment.course_id == course_id)
        .first()
    )


def has_course_access(db: Session, *, student_id: str, course_id: str) -> bool:
    enrollment = find_enrollment(db, student_id=student_id, course_id=course_id)
    return enrollment is not None and enrollment.status in ENROLLED_STATUSES


def record_purchase(
    db: Session,
    *,
    course: Course,
    student_id: str,
    reference: str,
    amount_minor: int,
    currency: str,
    channel: str | None,
    fee_percent: int,
) -> PurchaseRecord:
    """
    Stage the payment, enrollment, earnings and activity rows for one paid
    course purchase. Flushes but never commits: the caller owns the
    transaction so the rows land together or not at all.
    """
    payment = Payment(
        reference=reference,
        student_id=student_id,
        instructor_id=course.instructor_id,
        course_id=course.id,
        amount_minor=int(amount_minor),
        currency=currency,
        channel=channel,
        status=PaymentStatus.SUCCEEDED.value,
    )
    db.add(payment)
    db.flush()

    enrollment = find_enrollment(db, student_id=student_id, course_id=course.id)
    if enrollment is None:
        enrollment = Enrollment(
            student_id=student_id,
            course_id=course.id,
            progress=0,
            status=EnrollmentStatus.ACTIVE.value,
        )
        db.add(enrollment)
    else:
        # A cancelled enrollment is reopened; progress is kept.
        logger.info("Reactivating enrollment %s for course %s", enrollment.id, course.id)
        enrollment.status = EnrollmentStatus.ACTIVE.value
        enrollment.completed_at = None

    split = compute_earnings_split(int(amount_minor), fee_percent)
    earning = InstructorEarning(
        instructor_id=course.instructor_id,
        payment_id=payment.id,
        amount_minor=split.amount_minor,
        platform_fee_minor=split.platform_fee_minor,
        net_amount_minor=split.net_amount_minor,
        currency=currency,
        status=EarningStatus.PENDING.value,
    )
    db.add(earning)

    log_activity(
        db,
        user_id=student_id,
        type="enrollment",
        title="Course Purchased",
        description=f"Successfully enrolled in {course.title}",
    )
    db.flush()
    return PurchaseRecord(payment=payment, enrollment=enrollment, earning=earning)
