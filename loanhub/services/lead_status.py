"""
Lead status state machine.

Pipeline:
    submitted -> docs_collected -> bank_logged -> approved -> disbursed
Any non-terminal stage may be rejected; a rejected lead can only be
reactivated back to submitted. Disbursed is terminal.

Partners see a finer vocabulary (draft, docs_pending, docs_uploaded,
bank_processing). It is mapped onto the canonical LeadStatus here so the
transition table exists exactly once.
"""

import logging
from datetime import datetime
from typing import Dict, FrozenSet, Optional, Sequence

from loanhub.exceptions import InvalidTransition
from loanhub.models import CommissionSlab, Lead, LeadStatus, LeadTimelineEvent, utcnow
from loanhub.services.commission import compute_commission, effective_disbursed_amount

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: Dict[LeadStatus, FrozenSet[LeadStatus]] = {
    LeadStatus.SUBMITTED: frozenset({LeadStatus.DOCS_COLLECTED, LeadStatus.REJECTED}),
    LeadStatus.DOCS_COLLECTED: frozenset({LeadStatus.BANK_LOGGED, LeadStatus.REJECTED}),
    LeadStatus.BANK_LOGGED: frozenset({LeadStatus.APPROVED, LeadStatus.REJECTED}),
    LeadStatus.APPROVED: frozenset({LeadStatus.DISBURSED, LeadStatus.REJECTED}),
    LeadStatus.DISBURSED: frozenset(),
    LeadStatus.REJECTED: frozenset({LeadStatus.SUBMITTED}),
}

# Forward pipeline order, used by funnel projections
PIPELINE: tuple = (
    LeadStatus.SUBMITTED,
    LeadStatus.DOCS_COLLECTED,
    LeadStatus.BANK_LOGGED,
    LeadStatus.APPROVED,
    LeadStatus.DISBURSED,
)

# Partner-facing vocabulary -> canonical status
PARTNER_STATUS_ALIASES: Dict[str, LeadStatus] = {
    "draft": LeadStatus.SUBMITTED,
    "submitted": LeadStatus.SUBMITTED,
    "docs_pending": LeadStatus.SUBMITTED,
    "docs_uploaded": LeadStatus.DOCS_COLLECTED,
    "bank_processing": LeadStatus.BANK_LOGGED,
    "approved": LeadStatus.APPROVED,
    "disbursed": LeadStatus.DISBURSED,
    "rejected": LeadStatus.REJECTED,
}

# Canonical status -> label shown on the partner dashboard
PARTNER_STATUS_LABELS: Dict[LeadStatus, str] = {
    LeadStatus.SUBMITTED: "submitted",
    LeadStatus.DOCS_COLLECTED: "docs_uploaded",
    LeadStatus.BANK_LOGGED: "bank_processing",
    LeadStatus.APPROVED: "approved",
    LeadStatus.DISBURSED: "disbursed",
    LeadStatus.REJECTED: "rejected",
}

# A recorded disbursed amount belongs to one approval attempt only
RESET_DISBURSEMENT_STATUSES: FrozenSet[LeadStatus] = frozenset(
    {LeadStatus.REJECTED, LeadStatus.SUBMITTED}
)

# Partners may only report that documents were uploaded
PARTNER_ALLOWED_TARGETS: FrozenSet[LeadStatus] = frozenset({LeadStatus.DOCS_COLLECTED})


def parse_status(value: str) -> LeadStatus:
    """Accept a canonical or partner-facing status string.

    Raises:
        ValueError: if the value is in neither vocabulary
    """
    try:
        return LeadStatus(value)
    except ValueError:
        pass
    try:
        return PARTNER_STATUS_ALIASES[value]
    except KeyError:
        raise ValueError(f"Unknown lead status: {value!r}") from None


def to_partner_status(status: LeadStatus) -> str:
    return PARTNER_STATUS_LABELS[status]


def allowed_next(status: LeadStatus) -> FrozenSet[LeadStatus]:
    return ALLOWED_TRANSITIONS[status]


def can_transition(current: LeadStatus, target: LeadStatus) -> bool:
    """True if target is a legal next status. Never true for current == target."""
    return target in ALLOWED_TRANSITIONS[current]


def append_timeline_event(
    lead: Lead,
    status: LeadStatus,
    actor: str,
    note: Optional[str] = None,
    now: Optional[datetime] = None,
) -> LeadTimelineEvent:
    """Append an event to the lead's timeline. The only way timeline rows are created."""
    event = LeadTimelineEvent(
        sequence=len(lead.timeline) + 1,
        status=status,
        timestamp=now or utcnow(),
        updated_by=actor,
        note=note,
    )
    lead.timeline.append(event)
    return event


def advance_status(
    lead: Lead,
    target_status: LeadStatus,
    actor: str,
    note: Optional[str] = None,
    slabs: Sequence[CommissionSlab] = (),
    now: Optional[datetime] = None,
) -> LeadTimelineEvent:
    """
    Move a lead to target_status and record it on the timeline.

    Moving to DISBURSED also computes the commission from `slabs`. Rejecting
    or reactivating a lead forgets any disbursed amount recorded so far.

    Args:
        lead: Lead to advance (mutated in place)
        target_status: Requested next status
        actor: Identifier of who performed the change
        note: Optional free text for the timeline
        slabs: Commission slab table, only read on disbursement
        now: Event time (defaults to current UTC time)

    Returns:
        The appended timeline event

    Raises:
        InvalidTransition: target is not allowed from the current status
        InvalidAmount: disbursing a lead without a positive amount
    """
    target_status = LeadStatus(target_status)
    current = lead.status
    if not can_transition(current, target_status):
        raise InvalidTransition(current.value, target_status.value)

    if target_status == LeadStatus.DISBURSED:
        effective_disbursed_amount(lead)

    now = now or utcnow()
    lead.status = target_status
    lead.updated_at = now
    if target_status in RESET_DISBURSEMENT_STATUSES and lead.disbursed_amount is not None:
        logger.info(f"Lead {lead.id}: cleared disbursed amount {lead.disbursed_amount}")
        lead.disbursed_amount = None
    event = append_timeline_event(
        lead,
        target_status,
        actor,
        note or f"Status updated to {target_status.value}",
        now,
    )

    logger.info(f"Lead {lead.id}: {current.value} -> {target_status.value} by {actor}")

    if target_status == LeadStatus.DISBURSED:
        compute_commission(lead, slabs, now=now)

    return event
