"""
AuditLog model for tracking state-changing actions.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, Integer, JSON, String, func
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column

from loanhub.models.base import Base, utcnow


class AuditAction(str, Enum):
    """Types of auditable actions."""
    CREATE_LEAD = "create_lead"
    ADVANCE_STATUS = "advance_status"
    ASSIGN_BANK = "assign_bank"
    PROPOSE_BANK_CHANGE = "propose_bank_change"
    CHANGE_BANK = "change_bank"
    CANCEL_BANK_CHANGE = "cancel_bank_change"
    RECORD_DISBURSEMENT = "record_disbursement"
    COMPUTE_COMMISSION = "compute_commission"
    UPDATE_COMMISSION_STATUS = "update_commission_status"


class AuditLog(Base):
    """
    Audit log entry, one per state-changing operation.

    Written by the lead workflow; the core never reads it back.
    """

    __tablename__ = "audit_logs"

    id: Mapped[int] = mapped_column(primary_key=True)
    actor_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        index=True,
    )
    actor_role: Mapped[Optional[str]] = mapped_column(
        String(20),
        nullable=True,
    )
    action: Mapped[AuditAction] = mapped_column(
        SQLAlchemyEnum(
            AuditAction,
            name="auditaction",
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
        index=True,
    )
    target_type: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
        comment="Type of entity affected (lead, commission)",
    )
    target_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        comment="ID of the affected entity",
    )
    action_metadata: Mapped[Optional[dict]] = mapped_column(
        JSON,
        nullable=True,
        comment="Before/after summary of the change",
    )
    ip_address: Mapped[Optional[str]] = mapped_column(
        String(45),
        nullable=True,
        comment="IPv4 or IPv6 address",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<AuditLog(id={self.id}, actor_id={self.actor_id}, action={self.action})>"
