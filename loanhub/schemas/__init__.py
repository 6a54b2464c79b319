"""Pydantic schemas for request/response validation."""

from loanhub.schemas.commission import (
    CommissionResponse,
    CommissionStatusRequest,
    CommissionSummaryResponse,
    SlabResponse,
)
from loanhub.schemas.dashboard import (
    AuditLogListResponse,
    AuditLogResponse,
    FunnelResponse,
    MetricsResponse,
    PartnerDashboardResponse,
    PartnerEarningsResponse,
)
from loanhub.schemas.lead import (
    AdminLeadCreateRequest,
    BankAssignRequest,
    BankProposalResponse,
    DisbursementRequest,
    LeadCommissionResponse,
    LeadCreateRequest,
    LeadListItem,
    LeadResponse,
    LeadStatsResponse,
    LeadStatusRequest,
    PartnerLeadResponse,
    TimelineEventResponse,
)

__all__ = [
    # Lead
    "AdminLeadCreateRequest",
    "BankAssignRequest",
    "BankProposalResponse",
    "DisbursementRequest",
    "LeadCommissionResponse",
    "LeadCreateRequest",
    "LeadListItem",
    "LeadResponse",
    "LeadStatsResponse",
    "LeadStatusRequest",
    "PartnerLeadResponse",
    "TimelineEventResponse",
    # Commission
    "CommissionResponse",
    "CommissionStatusRequest",
    "CommissionSummaryResponse",
    "SlabResponse",
    # Dashboard
    "AuditLogListResponse",
    "AuditLogResponse",
    "FunnelResponse",
    "MetricsResponse",
    "PartnerDashboardResponse",
    "PartnerEarningsResponse",
]
