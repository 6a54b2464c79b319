"""
Lead schemas with audience-specific exposure.

- LeadResponse: admin view, canonical statuses, internal notes and
  pending bank change
- PartnerLeadResponse: partner view, partner status labels, no internal
  notes
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from loanhub.models.commission import CommissionStatus
from loanhub.models.lead import LeadStatus
from loanhub.services.commission import PARTNER_COMMISSION_LABELS
from loanhub.services.lead_status import parse_status, to_partner_status


class LeadCreateRequest(BaseModel):
    """Request to submit a new lead."""

    customer_id: str = Field(..., min_length=1, max_length=64)
    customer_name: str = Field(..., min_length=1, max_length=100)
    customer_phone: Optional[str] = Field(None, max_length=20)
    customer_email: Optional[str] = Field(None, max_length=255)
    loan_type: str = Field(..., min_length=1, max_length=100)
    loan_amount: Decimal = Field(..., gt=0, max_digits=14, decimal_places=2)
    tenure_months: Optional[int] = Field(None, gt=0, le=600)


class AdminLeadCreateRequest(LeadCreateRequest):
    """Admin-created lead; the partner is named explicitly."""

    partner_id: str = Field(..., min_length=1, max_length=64)
    partner_name: str = Field(..., min_length=1, max_length=100)
    internal_notes: Optional[str] = Field(None, max_length=2000)


class LeadStatusRequest(BaseModel):
    """
    Request to move a lead to another status.

    Accepts canonical statuses and the partner vocabulary
    (draft, docs_pending, docs_uploaded, bank_processing).
    """

    status: LeadStatus
    note: Optional[str] = Field(None, max_length=500)
    expected_status: Optional[LeadStatus] = Field(
        None,
        description="Status the client last saw; mismatch returns 409",
    )

    @field_validator("status", "expected_status", mode="before")
    @classmethod
    def normalize_status(cls, v):
        if v is None or isinstance(v, LeadStatus):
            return v
        return parse_status(str(v).strip().lower())


class BankAssignRequest(BaseModel):
    bank_name: str = Field(..., min_length=1, max_length=100)


class DisbursementRequest(BaseModel):
    amount: Decimal = Field(..., gt=0, max_digits=14, decimal_places=2)


class TimelineEventResponse(BaseModel):
    sequence: int
    status: LeadStatus
    timestamp: datetime
    updated_by: str
    note: Optional[str]

    model_config = {"from_attributes": True}


class LeadCommissionResponse(BaseModel):
    """Commission attached to a disbursed lead."""

    id: int
    lead_id: int
    disbursed_amount: Decimal
    commission_rate: Decimal
    commission_amount: Decimal
    status: CommissionStatus
    status_updated_by: Optional[str] = None
    paid_at: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class LeadResponse(BaseModel):
    """Full lead information for admins."""

    id: int
    reference: str

    # Customer
    customer_id: str
    customer_name: str
    customer_phone: Optional[str]
    customer_email: Optional[str]

    # Loan
    loan_type: str
    loan_amount: Decimal
    tenure_months: Optional[int]
    disbursed_amount: Optional[Decimal]

    # Status
    status: LeadStatus
    bank_assigned: Optional[str]
    pending_bank: Optional[str]

    # Partner
    partner_id: str
    partner_name: str

    internal_notes: Optional[str]
    version: int
    created_at: datetime
    updated_at: Optional[datetime]

    timeline: List[TimelineEventResponse] = []
    commission: Optional[LeadCommissionResponse] = None

    model_config = {"from_attributes": True}


class LeadListItem(BaseModel):
    """Lead row for admin listings (no timeline)."""

    id: int
    reference: str
    customer_name: str
    customer_phone: Optional[str]
    loan_type: str
    loan_amount: Decimal
    disbursed_amount: Optional[Decimal]
    status: LeadStatus
    bank_assigned: Optional[str]
    partner_id: str
    partner_name: str
    created_at: datetime
    updated_at: Optional[datetime]

    model_config = {"from_attributes": True}


class PartnerTimelineEvent(BaseModel):
    status: str
    timestamp: datetime
    updated_by: str
    note: Optional[str]


class PartnerLeadResponse(BaseModel):
    """
    Lead as shown on the partner dashboard.

    Statuses use partner labels (docs_uploaded, bank_processing) and the
    commission status reads "processing" once approved.
    """

    id: int
    reference: str
    customer_name: str
    customer_phone: Optional[str]
    customer_email: Optional[str]
    loan_type: str
    loan_amount: Decimal
    tenure_months: Optional[int]
    disbursed_amount: Optional[Decimal]
    status: str
    bank_assigned: Optional[str]
    created_at: datetime
    updated_at: Optional[datetime]
    timeline: List[PartnerTimelineEvent] = []

    commission_amount: Optional[Decimal] = None
    commission_status: Optional[str] = None

    @classmethod
    def from_lead(cls, lead) -> "PartnerLeadResponse":
        commission = lead.commission
        return cls(
            id=lead.id,
            reference=lead.reference,
            customer_name=lead.customer_name,
            customer_phone=lead.customer_phone,
            customer_email=lead.customer_email,
            loan_type=lead.loan_type,
            loan_amount=lead.loan_amount,
            tenure_months=lead.tenure_months,
            disbursed_amount=lead.disbursed_amount,
            status=to_partner_status(lead.status),
            bank_assigned=lead.bank_assigned,
            created_at=lead.created_at,
            updated_at=lead.updated_at,
            timeline=[
                PartnerTimelineEvent(
                    status=to_partner_status(event.status),
                    timestamp=event.timestamp,
                    updated_by=event.updated_by,
                    note=event.note,
                )
                for event in lead.timeline
            ],
            commission_amount=commission.commission_amount if commission else None,
            commission_status=(
                PARTNER_COMMISSION_LABELS[commission.status] if commission else None
            ),
        )


class BankProposalResponse(BaseModel):
    """Result of picking a bank; a change waits for confirm/cancel."""

    lead_id: int
    current_bank: Optional[str]
    proposed_bank: str
    requires_confirmation: bool
    lead: LeadResponse


class LeadStatsResponse(BaseModel):
    total: int
    total_amount: Decimal
    by_status: dict
    by_loan_type: List[dict]
    recent_leads: int
