from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import case, desc, func
from sqlalchemy.orm import Session

from edulink.models.earning import EarningStatus, InstructorEarning


@dataclass
class EarningsSummary:
    gross_minor: int
    platform_fee_minor: int
    net_minor: int
    pending_net_minor: int
    paid_net_minor: int


class EarningsService:
    """
    Read side of the instructor earnings ledger. Amounts stay in integer
    minor units; formatting happens at the edge.
    """

    MAX_PAGE_SIZE = 200

    def __init__(self, db: Session):
        self.db = db

    def get_summary(self, instructor_id: str) -> EarningsSummary:
        row = (
            self.db.query(
                func.coalesce(func.sum(InstructorEarning.amount_minor), 0),
                func.coalesce(func.sum(InstructorEarning.platform_fee_minor), 0),
                func.coalesce(func.sum(InstructorEarning.net_amount_minor), 0),
                func.coalesce(
                    func.sum(
                        case(
                            (InstructorEarning.status == EarningStatus.PENDING.value, InstructorEarning.net_amount_minor),
                            else_=0,
                        )
                    ),
                    0,
                ),
                func.coalesce(
                    func.sum(
                        case(
                            (InstructorEarning.status == EarningStatus.PAID.value, InstructorEarning.net_amount_minor),
                            else_=0,
                        )
                    ),
                    0,
                ),
            )
            .filter(InstructorEarning.instructor_id == instructor_id)
            .one()
        )
        gross, fees, net, pending, paid = (int(v or 0) for v in row)
        return EarningsSummary(
            gross_minor=gross,
            platform_fee_minor=fees,
            net_minor=net,
            pending_net_minor=pending,
            paid_net_minor=paid,
        )

    def list_entries(self, instructor_id: str, *, limit: int = 50, offset: int = 0) -> list[InstructorEarning]:
        normalized_limit = max(1, min(int(limit or 50), self.MAX_PAGE_SIZE))
        normalized_offset = max(0, int(offset or 0))
        return (
            self.db.query(InstructorEarning)
            .filter(InstructorEarning.instructor_id == instructor_id)
            .order_by(desc(InstructorEarning.created_at), desc(InstructorEarning.id))
            .offset(normalized_offset)
            .limit(normalized_limit)
            .all()
        )
