"""
Persistence workflow for lead and commission operations.

Each mutating function is one unit of work on one lead:
    1. load the lead (row lock where the database supports it)
    2. run the pure state machine / bank tracker / calculator
    3. write the audit entry
    4. commit, with the optimistic version check on leads and commissions

A failed version check surfaces as ConcurrentModification and the session
is rolled back; nothing is retried here.
"""

import logging
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.exc import StaleDataError

from loanhub.auth.actor import Actor
from loanhub.config import settings
from loanhub.exceptions import (
    ConcurrentModification,
    InvalidAmount,
    NotFound,
    PermissionDenied,
)
from loanhub.models import (
    AuditAction,
    CommissionSlab,
    CommissionStatus,
    Lead,
    LeadCommission,
    LeadStatus,
)
from loanhub.services import bank_assignment, commission, lead_status
from loanhub.services.bank_assignment import BankProposal
from loanhub.utils.audit import log_action

logger = logging.getLogger(__name__)

SORTABLE_FIELDS = {
    "created_at": Lead.created_at,
    "updated_at": Lead.updated_at,
    "loan_amount": Lead.loan_amount,
    "status": Lead.status,
}


def _commission_snapshot(item: Optional[LeadCommission]) -> Optional[dict]:
    if item is None:
        return None
    return {
        "disbursed_amount": str(item.disbursed_amount),
        "commission_rate": str(item.commission_rate),
        "commission_amount": str(item.commission_amount),
        "status": CommissionStatus(item.status).value,
    }


async def commit_changes(db: AsyncSession) -> None:
    """Commit the unit of work, mapping version conflicts to ConcurrentModification."""
    try:
        await db.commit()
    except StaleDataError as e:
        await db.rollback()
        logger.warning(f"Concurrent modification detected: {e}")
        raise ConcurrentModification(
            "The record was changed by another request; reload and retry"
        ) from e


def ensure_lead_access(lead: Lead, actor: Actor) -> None:
    """Partners may only touch their own leads."""
    if actor.is_partner and lead.partner_id != actor.id:
        raise PermissionDenied(f"Lead {lead.id} belongs to another partner")


async def get_lead(
    db: AsyncSession,
    lead_id: int,
    for_update: bool = False,
) -> Lead:
    """Load a lead with its timeline and commission.

    Raises:
        NotFound: no lead with this id
    """
    query = (
        select(Lead)
        .where(Lead.id == lead_id)
        .execution_options(populate_existing=True)
    )
    if for_update:
        query = query.with_for_update()

    result = await db.execute(query)
    lead = result.scalar_one_or_none()
    if lead is None:
        raise NotFound("lead", lead_id)
    return lead


async def list_leads(
    db: AsyncSession,
    status: Optional[LeadStatus] = None,
    loan_type: Optional[str] = None,
    partner_id: Optional[str] = None,
    search: Optional[str] = None,
    page: int = 1,
    per_page: Optional[int] = None,
    sort_by: str = "created_at",
    sort_order: str = "desc",
) -> Tuple[List[Lead], int]:
    """Filtered, paginated lead listing. Returns (items, total)."""
    per_page = per_page or settings.default_page_size
    query = select(Lead)

    if status:
        query = query.where(Lead.status == status)

    if loan_type:
        query = query.where(Lead.loan_type == loan_type)

    if partner_id:
        query = query.where(Lead.partner_id == partner_id)

    if search:
        # % and _ in the search text match literally
        query = query.where(
            or_(
                Lead.customer_name.icontains(search, autoescape=True),
                Lead.customer_phone.icontains(search, autoescape=True),
                Lead.customer_email.icontains(search, autoescape=True),
            )
        )

    count_query = select(func.count()).select_from(query.subquery())
    total = await db.scalar(count_query)

    column = SORTABLE_FIELDS.get(sort_by, Lead.created_at)
    order = column.asc() if sort_order == "asc" else column.desc()
    query = query.order_by(order, Lead.id.desc())
    query = query.offset((page - 1) * per_page).limit(per_page)

    result = await db.execute(query)
    return list(result.scalars().all()), total or 0


async def all_leads(db: AsyncSession, partner_id: Optional[str] = None) -> List[Lead]:
    """Every lead (optionally one partner's), for dashboard projections."""
    query = select(Lead)
    if partner_id:
        query = query.where(Lead.partner_id == partner_id)
    result = await db.execute(query)
    return list(result.scalars().all())


async def load_slabs(
    db: AsyncSession,
    loan_type: Optional[str] = None,
    active_only: bool = True,
) -> List[CommissionSlab]:
    """Commission slabs in table order."""
    query = select(CommissionSlab)
    if loan_type:
        query = query.where(CommissionSlab.loan_type == loan_type)
    if active_only:
        query = query.where(CommissionSlab.is_active.is_(True))
    result = await db.execute(query.order_by(CommissionSlab.id))
    return list(result.scalars().all())


async def create_lead(
    db: AsyncSession,
    actor: Actor,
    customer_id: str,
    customer_name: str,
    loan_type: str,
    loan_amount: Decimal,
    partner_id: str,
    partner_name: str,
    customer_phone: Optional[str] = None,
    customer_email: Optional[str] = None,
    tenure_months: Optional[int] = None,
    internal_notes: Optional[str] = None,
    ip_address: Optional[str] = None,
) -> Lead:
    """Create a lead in 'submitted'. The timeline starts empty."""
    if loan_amount is None or Decimal(loan_amount) <= 0:
        raise InvalidAmount("Loan amount must be positive")

    lead = Lead(
        customer_id=customer_id,
        customer_name=customer_name,
        customer_phone=customer_phone,
        customer_email=customer_email,
        loan_type=loan_type,
        loan_amount=Decimal(loan_amount),
        tenure_months=tenure_months,
        partner_id=partner_id,
        partner_name=partner_name,
        internal_notes=internal_notes,
        status=LeadStatus.SUBMITTED,
        timeline=[],
        commission=None,
    )
    db.add(lead)
    await db.flush()

    await log_action(
        db=db,
        actor=actor,
        action=AuditAction.CREATE_LEAD,
        target_type="lead",
        target_id=lead.id,
        after={"status": lead.status.value, "loan_type": loan_type, "loan_amount": str(lead.loan_amount)},
        ip_address=ip_address,
    )
    await commit_changes(db)

    logger.info(f"Lead {lead.id} created for partner {partner_id} ({loan_type}, {loan_amount})")
    return lead


async def advance_lead_status(
    db: AsyncSession,
    lead_id: int,
    target_status: LeadStatus,
    actor: Actor,
    note: Optional[str] = None,
    expected_status: Optional[LeadStatus] = None,
    ip_address: Optional[str] = None,
) -> Lead:
    """
    Apply a status transition to a stored lead.

    Args:
        expected_status: Status the caller last saw; a mismatch means someone
            else moved the lead first

    Raises:
        NotFound, PermissionDenied, InvalidTransition, InvalidAmount,
        ConcurrentModification
    """
    lead = await get_lead(db, lead_id, for_update=True)
    ensure_lead_access(lead, actor)

    if actor.is_partner and target_status not in lead_status.PARTNER_ALLOWED_TARGETS:
        raise PermissionDenied("Partners can only mark documents as uploaded")

    if expected_status is not None and lead.status != expected_status:
        raise ConcurrentModification(
            f"Lead {lead_id} is {lead.status.value}, expected {LeadStatus(expected_status).value}"
        )

    slabs: Sequence[CommissionSlab] = ()
    if target_status == LeadStatus.DISBURSED:
        slabs = await load_slabs(db, loan_type=lead.loan_type)

    before = {"status": lead.status.value}
    event = lead_status.advance_status(lead, target_status, actor.label, note, slabs=slabs)

    await log_action(
        db=db,
        actor=actor,
        action=AuditAction.ADVANCE_STATUS,
        target_type="lead",
        target_id=lead.id,
        before=before,
        after={"status": lead.status.value},
        extra={"note": event.note},
        ip_address=ip_address,
    )
    if target_status == LeadStatus.DISBURSED:
        await log_action(
            db=db,
            actor=actor,
            action=AuditAction.COMPUTE_COMMISSION,
            target_type="lead",
            target_id=lead.id,
            after=_commission_snapshot(lead.commission),
            ip_address=ip_address,
        )

    await commit_changes(db)
    return lead


async def pick_bank(
    db: AsyncSession,
    lead_id: int,
    bank_name: str,
    actor: Actor,
    ip_address: Optional[str] = None,
) -> Tuple[Lead, BankProposal]:
    """
    First step of bank assignment.

    A first assignment is applied immediately. A repeat of the current bank
    changes nothing except dropping a parked change. A change is parked as a
    proposal for confirm/cancel.
    """
    lead = await get_lead(db, lead_id, for_update=True)
    lock = settings.lock_bank_after_approval
    proposal = bank_assignment.propose_bank(lead, bank_name, lock_after_approval=lock)

    if proposal.requires_confirmation:
        await log_action(
            db=db,
            actor=actor,
            action=AuditAction.PROPOSE_BANK_CHANGE,
            target_type="lead",
            target_id=lead.id,
            before={"bank": proposal.current_bank},
            after={"pending_bank": proposal.proposed_bank},
            ip_address=ip_address,
        )
        await commit_changes(db)
        return lead, proposal

    discarded = lead.pending_bank
    changed = bank_assignment.assign_bank(
        lead, proposal.proposed_bank, actor.label, lock_after_approval=lock
    )
    if changed:
        await log_action(
            db=db,
            actor=actor,
            action=AuditAction.ASSIGN_BANK,
            target_type="lead",
            target_id=lead.id,
            before={"bank": proposal.current_bank},
            after={"bank": lead.bank_assigned},
            ip_address=ip_address,
        )
    elif discarded:
        await log_action(
            db=db,
            actor=actor,
            action=AuditAction.CANCEL_BANK_CHANGE,
            target_type="lead",
            target_id=lead.id,
            before={"pending_bank": discarded},
            after={"bank": lead.bank_assigned},
            ip_address=ip_address,
        )

    if changed or discarded:
        await commit_changes(db)
    return lead, proposal


async def confirm_bank(
    db: AsyncSession,
    lead_id: int,
    actor: Actor,
    ip_address: Optional[str] = None,
) -> Lead:
    """Apply the lead's pending bank change."""
    lead = await get_lead(db, lead_id, for_update=True)
    previous = lead.bank_assigned
    bank_assignment.confirm_bank_change(
        lead, actor.label, lock_after_approval=settings.lock_bank_after_approval
    )

    await log_action(
        db=db,
        actor=actor,
        action=AuditAction.CHANGE_BANK,
        target_type="lead",
        target_id=lead.id,
        before={"bank": previous},
        after={"bank": lead.bank_assigned},
        ip_address=ip_address,
    )
    await commit_changes(db)
    return lead


async def cancel_bank(
    db: AsyncSession,
    lead_id: int,
    actor: Actor,
    ip_address: Optional[str] = None,
) -> Lead:
    """Discard the lead's pending bank change, if any."""
    lead = await get_lead(db, lead_id, for_update=True)
    discarded = bank_assignment.cancel_bank_change(lead)
    if discarded is None:
        return lead

    await log_action(
        db=db,
        actor=actor,
        action=AuditAction.CANCEL_BANK_CHANGE,
        target_type="lead",
        target_id=lead.id,
        before={"pending_bank": discarded},
        after={"bank": lead.bank_assigned},
        ip_address=ip_address,
    )
    await commit_changes(db)
    return lead


async def record_lead_disbursement(
    db: AsyncSession,
    lead_id: int,
    amount: Decimal,
    actor: Actor,
    ip_address: Optional[str] = None,
) -> Lead:
    """Record the disbursed amount; recomputes commission on disbursed leads."""
    lead = await get_lead(db, lead_id, for_update=True)
    slabs = await load_slabs(db, loan_type=lead.loan_type)

    before = {
        "disbursed_amount": str(lead.disbursed_amount) if lead.disbursed_amount is not None else None,
        "commission": _commission_snapshot(lead.commission),
    }
    commission.record_disbursement(lead, amount, slabs)

    await log_action(
        db=db,
        actor=actor,
        action=AuditAction.RECORD_DISBURSEMENT,
        target_type="lead",
        target_id=lead.id,
        before=before,
        after={
            "disbursed_amount": str(lead.disbursed_amount),
            "commission": _commission_snapshot(lead.commission),
        },
        ip_address=ip_address,
    )
    await commit_changes(db)
    return lead


async def get_commission(
    db: AsyncSession,
    commission_id: int,
    for_update: bool = False,
) -> LeadCommission:
    """Raises NotFound for an unknown commission id."""
    query = (
        select(LeadCommission)
        .options(selectinload(LeadCommission.lead))
        .where(LeadCommission.id == commission_id)
        .execution_options(populate_existing=True)
    )
    if for_update:
        query = query.with_for_update()

    result = await db.execute(query)
    item = result.scalar_one_or_none()
    if item is None:
        raise NotFound("commission", commission_id)
    return item


async def list_commissions(
    db: AsyncSession,
    status: Optional[CommissionStatus] = None,
    partner_id: Optional[str] = None,
    page: int = 1,
    per_page: Optional[int] = None,
) -> Tuple[List[LeadCommission], int]:
    """Commissions, newest first. Returns (items, total)."""
    per_page = per_page or settings.default_page_size
    query = select(LeadCommission).options(selectinload(LeadCommission.lead))

    if status:
        query = query.where(LeadCommission.status == status)

    if partner_id:
        query = query.join(Lead, LeadCommission.lead_id == Lead.id).where(
            Lead.partner_id == partner_id
        )

    count_query = select(func.count()).select_from(query.subquery())
    total = await db.scalar(count_query)

    query = query.order_by(LeadCommission.created_at.desc(), LeadCommission.id.desc())
    query = query.offset((page - 1) * per_page).limit(per_page)

    result = await db.execute(query)
    return list(result.scalars().all()), total or 0


async def update_commission_status(
    db: AsyncSession,
    commission_id: int,
    target_status: CommissionStatus,
    actor: Actor,
    ip_address: Optional[str] = None,
) -> LeadCommission:
    """Move a commission one payout step forward."""
    item = await get_commission(db, commission_id, for_update=True)
    before = CommissionStatus(item.status).value
    commission.transition_commission_status(item, target_status, actor.label)

    await log_action(
        db=db,
        actor=actor,
        action=AuditAction.UPDATE_COMMISSION_STATUS,
        target_type="commission",
        target_id=item.id,
        before={"status": before},
        after={"status": item.status.value},
        ip_address=ip_address,
    )
    await commit_changes(db)
    return item
