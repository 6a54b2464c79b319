"""
Slab-based partner commission calculation.

Rules:
- A slab covers [min_amount, max_amount) for one loan type; max None = no limit
- Several active slabs may overlap; the winner is the lowest min_amount,
  then the narrowest range, then table order
- Commission = disbursed amount x rate / 100, rounded half-up to the paisa
- Rate and amount are fixed when the lead is disbursed and only change if
  the disbursed amount itself is corrected while still pending
- Payout status moves pending -> approved -> paid, one step at a time
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List, Optional, Sequence

from loanhub.exceptions import (
    CommissionLocked,
    DisbursementNotAllowed,
    InvalidAmount,
    InvalidCommissionTransition,
    NoMatchingSlab,
)
from loanhub.models import (
    CommissionSlab,
    CommissionStatus,
    Lead,
    LeadCommission,
    LeadStatus,
    utcnow,
)

logger = logging.getLogger(__name__)

MINOR_UNIT = Decimal("0.01")
UNBOUNDED = Decimal("Infinity")

NEXT_COMMISSION_STATUS: Dict[CommissionStatus, Optional[CommissionStatus]] = {
    CommissionStatus.PENDING: CommissionStatus.APPROVED,
    CommissionStatus.APPROVED: CommissionStatus.PAID,
    CommissionStatus.PAID: None,
}

# Partner dashboard wording for payout status
PARTNER_COMMISSION_LABELS: Dict[CommissionStatus, str] = {
    CommissionStatus.PENDING: "pending",
    CommissionStatus.APPROVED: "processing",
    CommissionStatus.PAID: "paid",
}


@dataclass(frozen=True)
class CommissionQuote:
    """Result of pricing a disbursement against the slab table."""

    slab_id: Optional[int]
    disbursed_amount: Decimal
    commission_rate: Decimal
    commission_amount: Decimal


def effective_disbursed_amount(lead: Lead) -> Decimal:
    """Amount commissions are computed from.

    The recorded disbursed amount is authoritative; the requested loan
    amount is only used for leads that never had one recorded.
    """
    amount = lead.disbursed_amount if lead.disbursed_amount is not None else lead.loan_amount
    if amount is None or amount <= 0:
        raise InvalidAmount(f"Lead {lead.id} has no positive disbursed amount")
    return amount


def order_slabs(slabs: Sequence[CommissionSlab]) -> List[CommissionSlab]:
    """Sort slabs into resolution order (stable, so table order breaks ties)."""

    def width(slab: CommissionSlab) -> Decimal:
        if slab.max_amount is None:
            return UNBOUNDED
        return slab.max_amount - slab.min_amount

    return sorted(slabs, key=lambda s: (s.min_amount, width(s)))


def resolve_slab(
    slabs: Sequence[CommissionSlab],
    loan_type: str,
    disbursed_amount: Decimal,
) -> CommissionSlab:
    """Find the slab that prices a disbursement.

    Args:
        slabs: Slab table (inactive and other loan types are skipped)
        loan_type: Loan product code of the lead
        disbursed_amount: Amount released by the bank

    Returns:
        First covering active slab in resolution order

    Raises:
        NoMatchingSlab: no active slab covers the amount
    """
    candidates = [
        slab for slab in slabs
        if slab.is_active and slab.loan_type == loan_type and slab.covers(disbursed_amount)
    ]
    if not candidates:
        raise NoMatchingSlab(loan_type, disbursed_amount)
    return order_slabs(candidates)[0]


def calculate_commission_amount(disbursed_amount: Decimal, rate: Decimal) -> Decimal:
    """disbursed x rate% rounded half-up to the minor currency unit."""
    raw = Decimal(disbursed_amount) * Decimal(rate) / Decimal(100)
    return raw.quantize(MINOR_UNIT, rounding=ROUND_HALF_UP)


def calculate_commission(
    slabs: Sequence[CommissionSlab],
    loan_type: str,
    disbursed_amount: Decimal,
) -> Optional[CommissionQuote]:
    """Price a disbursement. Returns None when no slab applies."""
    try:
        slab = resolve_slab(slabs, loan_type, disbursed_amount)
    except NoMatchingSlab as e:
        logger.warning(f"{e}; no commission will be recorded")
        return None

    return CommissionQuote(
        slab_id=slab.id,
        disbursed_amount=disbursed_amount,
        commission_rate=slab.rate,
        commission_amount=calculate_commission_amount(disbursed_amount, slab.rate),
    )


def compute_commission(
    lead: Lead,
    slabs: Sequence[CommissionSlab],
    now: Optional[datetime] = None,
) -> Optional[LeadCommission]:
    """Attach (or refresh) the commission record of a disbursed lead.

    Recomputing with the same disbursed amount leaves the existing record
    untouched, even if the slab table changed since. A corrected amount
    overwrites the record in place; when no slab covers it any more, or
    the amount comes out as zero, the record is removed.

    Returns:
        The lead's commission, or None when no slab matched or it is zero

    Raises:
        DisbursementNotAllowed: lead is not disbursed
        InvalidAmount: no positive disbursed amount
        CommissionLocked: amount changed after the commission was approved/paid
    """
    if lead.status != LeadStatus.DISBURSED:
        raise DisbursementNotAllowed(
            f"Commission is only computed for disbursed leads (lead {lead.id} is {lead.status.value})"
        )

    amount = effective_disbursed_amount(lead)
    existing = lead.commission

    if existing is not None:
        if existing.disbursed_amount == amount:
            return existing
        if existing.status != CommissionStatus.PENDING:
            raise CommissionLocked(
                f"Commission {existing.id} is {existing.status.value}; disbursed amount can no longer change"
            )

    quote = calculate_commission(slabs, lead.loan_type, amount)
    if quote is not None and quote.commission_amount == 0:
        logger.warning(
            f"Lead {lead.id}: commission on {amount} rounds to zero; no commission will be recorded"
        )
        quote = None

    if quote is None:
        if existing is not None:
            logger.info(f"Lead {lead.id}: commission removed after amount correction to {amount}")
            lead.commission = None
        return None

    if existing is None:
        lead.commission = LeadCommission(
            disbursed_amount=quote.disbursed_amount,
            commission_rate=quote.commission_rate,
            commission_amount=quote.commission_amount,
            status=CommissionStatus.PENDING,
        )
    else:
        existing.disbursed_amount = quote.disbursed_amount
        existing.commission_rate = quote.commission_rate
        existing.commission_amount = quote.commission_amount
        existing.updated_at = now or utcnow()

    logger.info(
        f"Lead {lead.id}: commission {quote.commission_amount} "
        f"({quote.commission_rate}% of {quote.disbursed_amount})"
    )
    return lead.commission


def record_disbursement(
    lead: Lead,
    amount: Decimal,
    slabs: Sequence[CommissionSlab] = (),
    now: Optional[datetime] = None,
) -> Optional[LeadCommission]:
    """Record the bank's disbursed amount.

    Allowed while the lead is approved (ahead of marking it disbursed) or
    already disbursed, in which case the commission is recomputed.
    """
    amount = Decimal(amount)
    if amount <= 0:
        raise InvalidAmount("Disbursed amount must be positive")

    if lead.status not in (LeadStatus.APPROVED, LeadStatus.DISBURSED):
        raise DisbursementNotAllowed(
            f"Cannot record disbursement for lead {lead.id} in status {lead.status.value}"
        )

    commission = lead.commission
    if (
        commission is not None
        and commission.status != CommissionStatus.PENDING
        and commission.disbursed_amount != amount
    ):
        raise CommissionLocked(
            f"Commission {commission.id} is {commission.status.value}; disbursed amount can no longer change"
        )

    now = now or utcnow()
    lead.disbursed_amount = amount
    lead.updated_at = now

    if lead.status == LeadStatus.DISBURSED:
        return compute_commission(lead, slabs, now=now)
    return None


def transition_commission_status(
    commission: LeadCommission,
    target_status: CommissionStatus,
    actor: str,
    now: Optional[datetime] = None,
) -> LeadCommission:
    """Move a commission one payout step forward.

    Raises:
        InvalidCommissionTransition: target is not the immediate next step
    """
    target_status = CommissionStatus(target_status)
    current = commission.status
    if NEXT_COMMISSION_STATUS[current] != target_status:
        raise InvalidCommissionTransition(current.value, target_status.value)

    now = now or utcnow()
    commission.status = target_status
    commission.status_updated_by = actor
    commission.updated_at = now
    if target_status == CommissionStatus.PAID:
        commission.paid_at = now

    logger.info(f"Commission {commission.id}: {current.value} -> {target_status.value} by {actor}")
    return commission
