from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from edulink.core.database import get_db
from edulink.schemas.payment import WebhookAckOut
from edulink.services.paystack import (
    PaystackClaimInFlightError,
    PaystackNotFoundError,
    PaystackService,
    PaystackServiceError,
    PaystackValidationError,
    PaystackWebhookError,
)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])

logger = logging.getLogger(__name__)


@router.post("/paystack", response_model=WebhookAckOut, status_code=status.HTTP_200_OK)
async def paystack_webhook(
    request: Request,
    db: Session = Depends(get_db),
) -> WebhookAckOut:
    payload = await request.body()
    signature = request.headers.get("x-paystack-signature")
    service = PaystackService(db)
    try:
        event = service.parse_event(payload, signature)
        result = service.process_event(event)
    except (PaystackWebhookError, PaystackValidationError) as exc:
        logger.warning("Rejected Paystack webhook: %s", exc)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except PaystackNotFoundError as exc:
        logger.warning("Paystack webhook references unknown record: %s", exc)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except PaystackClaimInFlightError as exc:
        logger.info("Paystack webhook for an in-flight reference: %s", exc)
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except PaystackServiceError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Webhook handler failed") from exc
    except Exception as exc:
        logger.exception("Webhook error: %s", exc)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Webhook handler failed") from exc

    return WebhookAckOut(
        received=True,
        status=result.status.value,
        enrolled=result.enrolled,
        reference=result.reference,
    )
