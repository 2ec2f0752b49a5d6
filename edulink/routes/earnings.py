from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from edulink.core.database import get_db
from edulink.dependencies.auth import require_role
from edulink.models.profile import Profile, ProfileRole
from edulink.schemas.earning import EarningEntryOut, EarningsOut, EarningsSummaryOut
from edulink.services.earnings import EarningsService
from edulink.services.purchases import format_minor_units

router = APIRouter(prefix="/earnings", tags=["earnings"])


@router.get("/me", response_model=EarningsOut)
def get_my_earnings(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    profile: Profile = Depends(require_role(ProfileRole.EDUCATOR.value)),
):
    service = EarningsService(db)
    summary = service.get_summary(profile.id)
    entries = service.list_entries(profile.id, limit=limit, offset=offset)

    return EarningsOut(
        summary=EarningsSummaryOut(
            gross_minor=summary.gross_minor,
            platform_fee_minor=summary.platform_fee_minor,
            net_minor=summary.net_minor,
            net=format_minor_units(summary.net_minor),
            pending_net_minor=summary.pending_net_minor,
            paid_net_minor=summary.paid_net_minor,
        ),
        entries=[
            EarningEntryOut(
                id=e.id,
                payment_id=e.payment_id,
                amount_minor=e.amount_minor,
                platform_fee_minor=e.platform_fee_minor,
                net_amount_minor=e.net_amount_minor,
                net_amount=format_minor_units(e.net_amount_minor),
                currency=e.currency,
                status=e.status,
                created_at=e.created_at,
            )
            for e in entries
        ],
    )
