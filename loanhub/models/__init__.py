"""
Database models for LoanHub.

All models are exported here for convenient imports:
    from loanhub.models import Lead, LeadCommission, CommissionSlab, etc.
"""

from loanhub.models.audit import AuditAction, AuditLog
from loanhub.models.base import Base, TimestampMixin, utcnow
from loanhub.models.commission import CommissionSlab, CommissionStatus, LeadCommission
from loanhub.models.lead import Lead, LeadStatus, LeadTimelineEvent

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "utcnow",
    # Lead
    "Lead",
    "LeadStatus",
    "LeadTimelineEvent",
    # Commission
    "CommissionSlab",
    "CommissionStatus",
    "LeadCommission",
    # Audit
    "AuditLog",
    "AuditAction",
]
