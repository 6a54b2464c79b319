"""
Lead and timeline models.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from loanhub.models.base import Base, TimestampMixin, utcnow

if TYPE_CHECKING:
    from loanhub.models.commission import LeadCommission


class LeadStatus(str, Enum):
    """Canonical lead status (admin granularity)."""
    SUBMITTED = "submitted"
    DOCS_COLLECTED = "docs_collected"
    BANK_LOGGED = "bank_logged"
    APPROVED = "approved"
    DISBURSED = "disbursed"
    REJECTED = "rejected"


lead_status_enum = SQLAlchemyEnum(
    LeadStatus,
    name="leadstatus",
    values_callable=lambda x: [e.value for e in x],
)


class Lead(Base, TimestampMixin):
    """
    A loan application submitted by a partner on behalf of a customer.

    The timeline is append-only; whenever it is non-empty its last entry
    carries the lead's current status. The commission sub-record exists
    only after disbursement against a matching slab.
    """

    __tablename__ = "leads"

    id: Mapped[int] = mapped_column(primary_key=True)

    # Customer
    customer_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        index=True,
    )
    customer_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    customer_phone: Mapped[Optional[str]] = mapped_column(
        String(20),
        nullable=True,
        index=True,
    )
    customer_email: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
    )

    # Loan details
    loan_type: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        index=True,
        comment="Opaque loan product code",
    )
    loan_amount: Mapped[Decimal] = mapped_column(
        Numeric(14, 2),
        nullable=False,
        comment="Requested amount",
    )
    tenure_months: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
    )
    disbursed_amount: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(14, 2),
        nullable=True,
        comment="Amount released by the bank",
    )

    # Status
    status: Mapped[LeadStatus] = mapped_column(
        lead_status_enum,
        default=LeadStatus.SUBMITTED,
        nullable=False,
        index=True,
    )

    # Bank assignment
    bank_assigned: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
    )
    pending_bank: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
        comment="Proposed bank change awaiting confirmation",
    )

    # Partner
    partner_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        index=True,
    )
    partner_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    internal_notes: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )

    # Optimistic locking
    version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    # Relationships
    timeline: Mapped[List["LeadTimelineEvent"]] = relationship(
        "LeadTimelineEvent",
        back_populates="lead",
        order_by="LeadTimelineEvent.sequence",
        cascade="all",
        lazy="selectin",
    )
    commission: Mapped[Optional["LeadCommission"]] = relationship(
        "LeadCommission",
        back_populates="lead",
        uselist=False,
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __mapper_args__ = {"version_id_col": version}

    @property
    def reference(self) -> str:
        """Customer-facing lead id."""
        return f"L{self.id:08d}" if self.id is not None else ""

    def __repr__(self) -> str:
        return f"<Lead(id={self.id}, loan_type='{self.loan_type}', status={self.status})>"


class LeadTimelineEvent(Base):
    """Immutable record of a status change or bank note on a lead."""

    __tablename__ = "lead_timeline_events"

    id: Mapped[int] = mapped_column(primary_key=True)
    lead_id: Mapped[int] = mapped_column(
        ForeignKey("leads.id"),
        nullable=False,
        index=True,
    )
    sequence: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="1-based position in the lead's timeline",
    )
    status: Mapped[LeadStatus] = mapped_column(
        lead_status_enum,
        nullable=False,
    )
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )
    updated_by: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )
    note: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )

    lead: Mapped["Lead"] = relationship(
        "Lead",
        back_populates="timeline",
    )

    def __repr__(self) -> str:
        return f"<LeadTimelineEvent(lead_id={self.lead_id}, seq={self.sequence}, status={self.status})>"
