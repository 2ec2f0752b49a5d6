from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class EarningEntryOut(BaseModel):
    id: int
    payment_id: int
    amount_minor: int
    platform_fee_minor: int
    net_amount_minor: int
    net_amount: str
    currency: str
    status: str
    created_at: datetime


class EarningsSummaryOut(BaseModel):
    gross_minor: int
    platform_fee_minor: int
    net_minor: int
    net: str
    pending_net_minor: int
    paid_net_minor: int


class EarningsOut(BaseModel):
    summary: EarningsSummaryOut
    entries: list[EarningEntryOut]
