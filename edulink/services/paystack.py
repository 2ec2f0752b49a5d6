from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any
from urllib.parse import quote

import httpx
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from edulink.core.config import settings
from edulink.core.logging import payment_reference_ctx
from edulink.core.security import verify_hmac_sha512
from edulink.models.course import Course
from edulink.models.enrollment import Enrollment
from edulink.models.paystack_event import PaystackEvent, PaystackEventStatus
from edulink.models.profile import Profile
from edulink.services.purchases import find_enrollment, has_course_access, record_purchase

logger = logging.getLogger(__name__)

CHARGE_SUCCESS = "charge.success"
TRANSACTION_VERIFY = "transaction.verify"
MAX_ERROR_MESSAGE_LENGTH = 500


class PaystackServiceError(Exception):
    """Base error for Paystack service operations."""


class PaystackWebhookError(PaystackServiceError):
    """Raised when a webhook payload cannot be authenticated or decoded."""


class PaystackValidationError(PaystackServiceError):
    """Raised when a verified charge is missing or has malformed required fields."""


class PaystackNotFoundError(PaystackServiceError):
    """Raised when a charge references a course or learner that does not exist."""


class PaystackVerificationError(PaystackServiceError):
    """Raised when Paystack does not confirm a transaction as successful."""


class PaystackClaimInFlightError(PaystackServiceError):
    """Raised when another delivery currently owns the transaction reference."""


class FulfilmentStatus(str, Enum):
    PROCESSED = "processed"
    IGNORED = "ignored"
    DUPLICATE = "duplicate"


@dataclass(frozen=True)
class ChargeDetails:
    reference: str
    amount_minor: int
    currency: str
    channel: str | None
    course_id: str
    student_id: str


@dataclass
class FulfilmentResult:
    status: FulfilmentStatus
    reference: str | None = None
    amount_minor: int | None = None
    enrollment: Enrollment | None = None

    @property
    def enrolled(self) -> bool:
        return self.status == FulfilmentStatus.PROCESSED


class PaystackService:
    """
    Paystack integration facade. All Paystack-specific parsing and API calls live here.

    Responsibilities:
    - Authenticate webhook deliveries (HMAC-SHA512 over the raw body)
    - Confirm transactions against the Paystack verify API
    - Turn a successful charge into payment, enrollment, earnings and activity
      rows exactly once per transaction reference
    - Keep an audit row per reference with its processing status
    """

    def __init__(self, db: Session, http_client: Any | None = None):
        self.db = db
        self.http = http_client or httpx
        self.secret_key = settings.PAYSTACK_SECRET_KEY
        self.fee_percent = settings.PLATFORM_FEE_PERCENT
        self.claim_lease = timedelta(seconds=settings.PAYSTACK_CLAIM_LEASE_SECONDS)

    # ------------------------------------------------------------------
    # Webhook handling
    # ------------------------------------------------------------------
    def parse_event(self, payload: bytes, signature: str | None) -> dict[str, Any]:
        """Validate the webhook signature and deserialize the event."""
        if not self.secret_key:
            raise PaystackWebhookError("Paystack secret key is not configured")
        if not signature:
            raise PaystackWebhookError("Missing x-paystack-signature header")
        if not verify_hmac_sha512(self.secret_key, payload, signature):
            raise PaystackWebhookError("Invalid signature")

        try:
            event = json.loads(payload.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as exc:
            raise PaystackWebhookError("Malformed webhook payload") from exc
        if not isinstance(event, dict):
            raise PaystackWebhookError("Malformed webhook payload")
        return event

    def process_event(self, event: dict[str, Any], raw_payload: dict[str, Any] | None = None) -> FulfilmentResult:
        """
        Handle a verified event. Unknown event kinds are acknowledged and ignored.
        """
        event_type = event.get("event")
        if event_type != CHARGE_SUCCESS:
            logger.info("Ignoring unsupported Paystack event type: %s", event_type)
            return FulfilmentResult(status=FulfilmentStatus.IGNORED)

        charge = parse_charge(event.get("data"))
        return self.fulfil_charge(
            charge,
            event_type=event_type,
            raw_payload=raw_payload if raw_payload is not None else event,
        )

    # ------------------------------------------------------------------
    # Client-initiated verification
    # ------------------------------------------------------------------
    def verify_transaction(self, reference: str) -> dict[str, Any]:
        """Fetch a transaction from Paystack and require it to be successful."""
        if not self.secret_key:
            raise PaystackServiceError("Paystack secret key is not configured")

        url = f"{settings.PAYSTACK_API_BASE_URL}/transaction/verify/{quote(reference, safe='')}"
        try:
            response = self.http.get(
                url,
                headers={"Authorization": f"Bearer {self.secret_key}"},
                timeout=settings.PAYSTACK_TIMEOUT_SECONDS,
            )
        except httpx.HTTPError as exc:
            raise PaystackVerificationError("Unable to reach Paystack") from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise PaystackVerificationError("Invalid Paystack response") from exc

        if not isinstance(payload, dict):
            raise PaystackVerificationError("Invalid Paystack response")
        data = payload.get("data")
        if not payload.get("status") or not isinstance(data, dict) or data.get("status") != "success":
            logger.warning("Paystack verification failed for %s: %s", reference, payload.get("message"))
            raise PaystackVerificationError("Payment verification failed with Paystack")
        return data

    def confirm_transaction(self, *, reference: str, course_id: str, student_id: str) -> FulfilmentResult:
        data = self.verify_transaction(reference)

        metadata = _coerce_metadata(data.get("metadata"))
        claimed_course = _clean_id(metadata.get("courseId") or metadata.get("course_id"))
        claimed_student = _clean_id(metadata.get("studentId") or metadata.get("student_id"))
        if not claimed_course or not claimed_student:
            raise PaystackValidationError("Transaction metadata is missing the course or student")
        if claimed_course != course_id:
            raise PaystackValidationError("Transaction was made for a different course")
        if claimed_student != student_id:
            raise PaystackValidationError("Transaction belongs to a different user")

        returned_reference = str(data.get("reference") or reference).strip()
        if returned_reference != reference:
            raise PaystackValidationError("Transaction reference mismatch")

        charge = parse_charge(
            {**data, "reference": reference, "metadata": {"courseId": course_id, "studentId": student_id}}
        )
        return self.fulfil_charge(charge, event_type=TRANSACTION_VERIFY, raw_payload=data)

    # ------------------------------------------------------------------
    # Fulfilment
    # ------------------------------------------------------------------
    def fulfil_charge(
        self,
        charge: ChargeDetails,
        *,
        event_type: str,
        raw_payload: dict[str, Any],
    ) -> FulfilmentResult:
        token = payment_reference_ctx.set(charge.reference)
        try:
            return self._fulfil(charge, event_type, raw_payload)
        finally:
            payment_reference_ctx.reset(token)

    def _fulfil(self, charge: ChargeDetails, event_type: str, raw_payload: dict[str, Any]) -> FulfilmentResult:
        course = self.db.get(Course, charge.course_id)
        if not course:
            raise PaystackNotFoundError(f"Course {charge.course_id} not found")
        if not self.db.get(Profile, charge.student_id):
            raise PaystackNotFoundError(f"Student {charge.student_id} not found")
        _check_charge_covers_course(charge, course)

        if has_course_access(self.db, student_id=charge.student_id, course_id=charge.course_id):
            logger.info(
                "Student %s already enrolled in course %s; skipping %s",
                charge.student_id,
                charge.course_id,
                charge.reference,
            )
            return self._duplicate(charge)

        if not self._claim_reference(charge.reference, event_type, raw_payload):
            logger.info("Paystack reference %s already claimed; skipping", charge.reference)
            return self._duplicate(charge)

        try:
            purchase = record_purchase(
                self.db,
                course=course,
                student_id=charge.student_id,
                reference=charge.reference,
                amount_minor=charge.amount_minor,
                currency=charge.currency,
                channel=charge.channel,
                fee_percent=self.fee_percent,
            )
            self._update_event_status(charge.reference, PaystackEventStatus.PROCESSED, error=None)
            self.db.commit()
        except Exception as exc:
            self.db.rollback()
            logger.exception("Paystack fulfilment for %s failed: %s", charge.reference, exc)
            self._mark_event_failed(charge.reference, exc)
            raise PaystackServiceError(f"Fulfilment failed for {charge.reference}") from exc

        logger.info("Payment successful: %s", charge.reference)
        return FulfilmentResult(
            status=FulfilmentStatus.PROCESSED,
            reference=charge.reference,
            amount_minor=charge.amount_minor,
            enrollment=purchase.enrollment,
        )

    def _duplicate(self, charge: ChargeDetails) -> FulfilmentResult:
        return FulfilmentResult(
            status=FulfilmentStatus.DUPLICATE,
            reference=charge.reference,
            amount_minor=charge.amount_minor,
            enrollment=find_enrollment(self.db, student_id=charge.student_id, course_id=charge.course_id),
        )

    def _claim_reference(self, reference: str, event_type: str, payload: dict[str, Any]) -> bool:
        """
        Insert the audit row for this reference. Returns False when the
        reference was already processed. A failed reference, or a pending one
        whose lease ran out, is re-claimed; a live pending claim raises
        PaystackClaimInFlightError so the delivery is retried later.
        """
        existing = self.db.query(PaystackEvent).filter(PaystackEvent.reference == reference).first()
        if existing is not None:
            if existing.status not in (PaystackEventStatus.FAILED.value, PaystackEventStatus.PENDING.value):
                return False
            now = _now()
            stale_before = now - self.claim_lease
            reclaimed = (
                self.db.query(PaystackEvent)
                .filter(
                    PaystackEvent.reference == reference,
                    or_(
                        PaystackEvent.status == PaystackEventStatus.FAILED.value,
                        (PaystackEvent.status == PaystackEventStatus.PENDING.value)
                        & or_(PaystackEvent.claimed_at.is_(None), PaystackEvent.claimed_at < stale_before),
                    ),
                )
                .update(
                    {
                        PaystackEvent.status: PaystackEventStatus.PENDING.value,
                        PaystackEvent.event_type: event_type,
                        PaystackEvent.error_message: None,
                        PaystackEvent.processed_at: None,
                        PaystackEvent.claimed_at: now,
                    },
                    synchronize_session=False,
                )
            )
            self.db.commit()
            if reclaimed == 1:
                logger.info("Re-claimed Paystack reference %s", reference)
                return True
            # Commit expired `existing`; this reads the current status.
            if existing.status == PaystackEventStatus.PENDING.value:
                raise PaystackClaimInFlightError(f"Reference {reference} is already being processed")
            return False

        record = PaystackEvent(
            reference=reference,
            event_type=event_type,
            payload=payload,
            status=PaystackEventStatus.PENDING.value,
            claimed_at=_now(),
        )
        try:
            self.db.add(record)
            self.db.commit()
            return True
        except IntegrityError as exc:
            self.db.rollback()
            if _is_unique_violation(exc):
                raise PaystackClaimInFlightError(f"Reference {reference} is already being processed") from exc
            raise
        finally:
            if record in self.db:
                self.db.expunge(record)

    def _update_event_status(
        self,
        reference: str,
        status: PaystackEventStatus,
        error: str | None,
    ) -> None:
        record = (
            self.db.query(PaystackEvent)
            .filter(PaystackEvent.reference == reference)
            .with_for_update()
            .first()
        )
        if not record:
            return
        record.status = status.value
        record.error_message = error[:MAX_ERROR_MESSAGE_LENGTH] if error else None
        record.processed_at = _now()

    def _mark_event_failed(self, reference: str, exc: Exception) -> None:
        message = str(exc) or exc.__class__.__name__
        try:
            self._update_event_status(reference, PaystackEventStatus.FAILED, error=message)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Unable to mark Paystack reference %s as failed", reference)


# ----------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------
def parse_charge(data: Any) -> ChargeDetails:
    """Pull the fields fulfilment needs out of a charge `data` object."""
    if not isinstance(data, dict):
        raise PaystackValidationError("Charge payload missing data")

    metadata = _coerce_metadata(data.get("metadata"))
    course_id = _clean_id(metadata.get("courseId") or metadata.get("course_id"))
    student_id = _clean_id(metadata.get("studentId") or metadata.get("student_id"))
    if not course_id or not student_id:
        logger.error("Missing metadata in payment %s", data.get("reference"))
        raise PaystackValidationError("Missing metadata")

    reference = str(data.get("reference") or "").strip()
    if not reference:
        raise PaystackValidationError("Charge missing reference")

    amount_raw = data.get("amount")
    if isinstance(amount_raw, bool):
        raise PaystackValidationError("Charge amount malformed")
    try:
        amount_minor = int(amount_raw)
    except (TypeError, ValueError) as exc:
        raise PaystackValidationError("Charge amount malformed") from exc
    if isinstance(amount_raw, float) and not amount_raw.is_integer():
        raise PaystackValidationError("Charge amount malformed")
    if amount_minor < 0:
        raise PaystackValidationError("Charge amount malformed")

    currency = str(data.get("currency") or settings.DEFAULT_CURRENCY).strip().upper()
    channel = data.get("channel")
    return ChargeDetails(
        reference=reference,
        amount_minor=amount_minor,
        currency=currency or settings.DEFAULT_CURRENCY,
        channel=str(channel).strip() if isinstance(channel, str) and channel.strip() else None,
        course_id=course_id,
        student_id=student_id,
    )


def _check_charge_covers_course(charge: ChargeDetails, course: Course) -> None:
    expected_currency = (course.currency or settings.DEFAULT_CURRENCY).strip().upper()
    if charge.currency != expected_currency:
        logger.warning(
            "Currency mismatch on %s: paid %s, course priced in %s",
            charge.reference,
            charge.currency,
            expected_currency,
        )
        raise PaystackValidationError("Charge currency does not match the course price")
    if charge.amount_minor < int(course.price_minor or 0):
        logger.warning(
            "Underpayment on %s: paid %s, course costs %s",
            charge.reference,
            charge.amount_minor,
            course.price_minor,
        )
        raise PaystackValidationError("Charge amount is less than the course price")


def _coerce_metadata(raw: Any) -> dict[str, Any]:
    # Paystack echoes metadata back as given at checkout; some clients send a JSON string.
    if isinstance(raw, dict):
        return raw
    if isinstance(raw, str) and raw.strip():
        try:
            decoded = json.loads(raw)
        except ValueError:
            return {}
        return decoded if isinstance(decoded, dict) else {}
    return {}


def _clean_id(value: Any) -> str | None:
    if value is None or isinstance(value, bool):
        return None
    text = str(value).strip()
    return text or None


def _is_unique_violation(exc: IntegrityError) -> bool:
    orig = getattr(exc, "orig", None)
    pgcode = getattr(orig, "pgcode", None)
    if pgcode == "23505":
        return True
    message = str(orig or exc)
    return "UNIQUE constraint failed" in message or "duplicate key value" in message


def _now() -> datetime:
    return datetime.now(timezone.utc)
