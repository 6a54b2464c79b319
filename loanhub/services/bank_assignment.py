"""
Bank assignment tracking for leads.

First pick of a bank is applied directly. Picking a different bank once one
is assigned is a change and goes through propose -> confirm/cancel. Picking
the bank that is already assigned does nothing.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from loanhub.exceptions import BankAssignmentLocked, BankChangeNotConfirmed
from loanhub.models import Lead, LeadStatus, utcnow
from loanhub.services.lead_status import append_timeline_event

logger = logging.getLogger(__name__)

LOCKED_STATUSES = frozenset({LeadStatus.APPROVED, LeadStatus.DISBURSED})


@dataclass(frozen=True)
class BankProposal:
    """Outcome of picking a bank for a lead."""

    lead_id: Optional[int]
    current_bank: Optional[str]
    proposed_bank: str
    requires_confirmation: bool


def _check_lock(lead: Lead, lock_after_approval: bool) -> None:
    if lock_after_approval and lead.status in LOCKED_STATUSES:
        raise BankAssignmentLocked(
            f"Lead {lead.id} is {lead.status.value}; bank assignment is locked"
        )


def assign_bank(
    lead: Lead,
    bank_name: str,
    actor: str,
    confirmed: bool = False,
    lock_after_approval: bool = False,
    now: Optional[datetime] = None,
) -> bool:
    """
    Assign or change the bank handling a lead.

    Args:
        lead: Lead to update (mutated in place)
        bank_name: Bank picked by the admin
        actor: Identifier of who picked it
        confirmed: Caller obtained explicit confirmation for a change
        lock_after_approval: Refuse any assignment on approved/disbursed leads
        now: Event time (defaults to current UTC time)

    Returns:
        True if the assignment changed, False for a no-op (which still
        drops a pending change)

    Raises:
        BankChangeNotConfirmed: changing banks without confirmation
        BankAssignmentLocked: locking is enabled and the lead is approved or later
    """
    bank_name = bank_name.strip()
    if not bank_name:
        raise ValueError("Bank name is required")

    previous = lead.bank_assigned
    if previous == bank_name:
        # re-picking the current bank backs out of any parked change
        lead.pending_bank = None
        return False

    _check_lock(lead, lock_after_approval)

    if previous and not confirmed:
        raise BankChangeNotConfirmed(previous, bank_name)

    if previous:
        note = f"Bank changed from {previous} to {bank_name}"
    else:
        note = f"Bank assigned: {bank_name}"

    now = now or utcnow()
    lead.bank_assigned = bank_name
    lead.pending_bank = None
    lead.updated_at = now
    append_timeline_event(lead, lead.status, actor, note, now)

    logger.info(f"Lead {lead.id}: {note} by {actor}")
    return True


def propose_bank(
    lead: Lead,
    bank_name: str,
    lock_after_approval: bool = False,
) -> BankProposal:
    """First step of a bank pick.

    A change is parked on lead.pending_bank until confirmed or cancelled;
    a first assignment or a repeat of the current bank needs no confirmation.
    """
    bank_name = bank_name.strip()
    if not bank_name:
        raise ValueError("Bank name is required")

    current = lead.bank_assigned
    is_change = bool(current) and current != bank_name
    if is_change:
        _check_lock(lead, lock_after_approval)
        lead.pending_bank = bank_name

    return BankProposal(
        lead_id=lead.id,
        current_bank=current,
        proposed_bank=bank_name,
        requires_confirmation=is_change,
    )


def confirm_bank_change(
    lead: Lead,
    actor: str,
    lock_after_approval: bool = False,
    now: Optional[datetime] = None,
) -> bool:
    """Apply the pending bank change.

    Raises:
        BankChangeNotConfirmed: there is no pending proposal
    """
    if not lead.pending_bank:
        raise BankChangeNotConfirmed(lead.bank_assigned, None)
    changed = assign_bank(
        lead,
        lead.pending_bank,
        actor,
        confirmed=True,
        lock_after_approval=lock_after_approval,
        now=now,
    )
    lead.pending_bank = None
    return changed


def cancel_bank_change(lead: Lead) -> Optional[str]:
    """Drop the pending bank change. Returns the discarded bank, if any."""
    discarded = lead.pending_bank
    lead.pending_bank = None
    return discarded
