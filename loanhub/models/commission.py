"""
Commission slab and lead commission models.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from loanhub.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from loanhub.models.lead import Lead


class CommissionStatus(str, Enum):
    """Payout status of a partner commission."""
    PENDING = "pending"
    APPROVED = "approved"
    PAID = "paid"


class CommissionSlab(Base, TimestampMixin):
    """
    Commission rule for a loan type and disbursed-amount range.

    min_amount is inclusive, max_amount exclusive (None = no upper limit).
    Rate is a percentage, e.g. 1.5 means 1.5%.
    """

    __tablename__ = "commission_slabs"

    id: Mapped[int] = mapped_column(primary_key=True)
    loan_type: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        index=True,
    )
    min_amount: Mapped[Decimal] = mapped_column(
        Numeric(14, 2),
        nullable=False,
    )
    max_amount: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(14, 2),
        nullable=True,
    )
    rate: Mapped[Decimal] = mapped_column(
        Numeric(6, 3),
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    def covers(self, amount: Decimal) -> bool:
        """True if amount falls in [min_amount, max_amount)."""
        if amount < self.min_amount:
            return False
        return self.max_amount is None or amount < self.max_amount

    def __repr__(self) -> str:
        return (
            f"<CommissionSlab(loan_type='{self.loan_type}', "
            f"min={self.min_amount}, max={self.max_amount}, rate={self.rate})>"
        )


class LeadCommission(Base, TimestampMixin):
    """
    Partner commission for a disbursed lead.

    Rate and amount are copied at computation time and never follow
    later slab edits.
    """

    __tablename__ = "lead_commissions"

    id: Mapped[int] = mapped_column(primary_key=True)
    lead_id: Mapped[int] = mapped_column(
        ForeignKey("leads.id"),
        nullable=False,
        unique=True,
        index=True,
    )
    disbursed_amount: Mapped[Decimal] = mapped_column(
        Numeric(14, 2),
        nullable=False,
    )
    commission_rate: Mapped[Decimal] = mapped_column(
        Numeric(6, 3),
        nullable=False,
    )
    commission_amount: Mapped[Decimal] = mapped_column(
        Numeric(14, 2),
        nullable=False,
    )
    status: Mapped[CommissionStatus] = mapped_column(
        SQLAlchemyEnum(
            CommissionStatus,
            name="commissionstatus",
            values_callable=lambda x: [e.value for e in x],
        ),
        default=CommissionStatus.PENDING,
        nullable=False,
        index=True,
    )
    status_updated_by: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
    )
    paid_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    lead: Mapped["Lead"] = relationship(
        "Lead",
        back_populates="commission",
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return (
            f"<LeadCommission(lead_id={self.lead_id}, "
            f"amount={self.commission_amount}, status={self.status})>"
        )
