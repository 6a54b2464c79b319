"""Dashboard metrics and audit log schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from loanhub.schemas.commission import CommissionSummaryResponse


class FunnelResponse(BaseModel):
    """Leads that reached each pipeline stage."""

    submitted: int
    docs_collected: int
    bank_processing: int
    approved: int
    disbursed: int


class MetricsResponse(BaseModel):
    """Admin dashboard metrics."""

    # Leads
    total_leads: int
    total_requested_amount: Decimal
    leads_last_7_days: int
    by_status: Dict[str, int]
    by_loan_type: List[Dict[str, Any]]

    # Conversion funnel
    funnel: FunnelResponse
    conversion_rate: float  # percentage

    # Commissions
    commissions: CommissionSummaryResponse


class PartnerEarningsResponse(BaseModel):
    partner_id: str
    partner_name: str
    leads: int
    disbursed_leads: int
    commissions: CommissionSummaryResponse


class PartnerDashboardResponse(BaseModel):
    """Partner's own lead and earnings overview, in partner labels."""

    total_leads: int
    by_status: Dict[str, int]
    funnel: FunnelResponse
    conversion_rate: float
    commission_pending: Decimal
    commission_processing: Decimal
    commission_paid: Decimal
    commission_total: Decimal


class AuditLogResponse(BaseModel):
    """Single audit log entry."""

    id: int
    actor_id: str
    actor_role: Optional[str]
    action: str
    target_type: Optional[str]
    target_id: Optional[int]
    metadata: Optional[Dict[str, Any]]
    ip_address: Optional[str]
    created_at: datetime


class AuditLogListResponse(BaseModel):
    """Paginated audit log list."""

    items: List[AuditLogResponse]
    total: int
    page: int
    per_page: int
    pages: int
