"""Commission and slab schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from loanhub.models.commission import CommissionStatus


class CommissionStatusRequest(BaseModel):
    """Request to move a commission to its next payout status."""

    status: CommissionStatus


class CommissionResponse(BaseModel):
    """Commission with the lead it belongs to."""

    id: int
    lead_id: int
    lead_reference: str
    partner_id: str
    partner_name: str
    loan_type: str

    disbursed_amount: Decimal
    commission_rate: Decimal
    commission_amount: Decimal
    status: CommissionStatus
    status_updated_by: Optional[str] = None
    paid_at: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    @classmethod
    def from_commission(cls, commission) -> "CommissionResponse":
        lead = commission.lead
        return cls(
            id=commission.id,
            lead_id=commission.lead_id,
            lead_reference=lead.reference,
            partner_id=lead.partner_id,
            partner_name=lead.partner_name,
            loan_type=lead.loan_type,
            disbursed_amount=commission.disbursed_amount,
            commission_rate=commission.commission_rate,
            commission_amount=commission.commission_amount,
            status=commission.status,
            status_updated_by=commission.status_updated_by,
            paid_at=commission.paid_at,
            created_at=commission.created_at,
            updated_at=commission.updated_at,
        )


class SlabResponse(BaseModel):
    """Commission slab. max_amount None means no upper limit."""

    id: int
    loan_type: str
    min_amount: Decimal
    max_amount: Optional[Decimal]
    rate: Decimal = Field(..., description="Percentage of the disbursed amount")
    is_active: bool

    model_config = {"from_attributes": True}


class CommissionTotalsResponse(BaseModel):
    count: int = 0
    amount: Decimal = Decimal("0.00")


class CommissionSummaryResponse(BaseModel):
    """Commission counts and sums per payout status."""

    pending: CommissionTotalsResponse
    approved: CommissionTotalsResponse
    paid: CommissionTotalsResponse
    total: CommissionTotalsResponse

    @classmethod
    def from_summary(cls, summary) -> "CommissionSummaryResponse":
        def totals(t) -> CommissionTotalsResponse:
            return CommissionTotalsResponse(count=t.count, amount=t.amount)

        return cls(
            pending=totals(summary.pending),
            approved=totals(summary.approved),
            paid=totals(summary.paid),
            total=totals(summary.total),
        )
