"""Admin lead API endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from loanhub.auth import Actor, require_admin
from loanhub.db import get_db
from loanhub.models import LeadStatus
from loanhub.schemas.lead import (
    AdminLeadCreateRequest,
    BankAssignRequest,
    BankProposalResponse,
    DisbursementRequest,
    LeadCommissionResponse,
    LeadListItem,
    LeadResponse,
    LeadStatsResponse,
    LeadStatusRequest,
)
from loanhub.services import aggregation, lead_workflow
from loanhub.utils.audit import get_client_ip

router = APIRouter(prefix="/leads")


@router.get("/list")
async def list_leads(
    db: AsyncSession = Depends(get_db),
    current_actor: Actor = Depends(require_admin),
    status_filter: Optional[LeadStatus] = Query(None, alias="status"),
    loan_type: Optional[str] = Query(None),
    partner_id: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    sort_by: str = Query("created_at"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
):
    """List leads with filters."""
    leads, total = await lead_workflow.list_leads(
        db,
        status=status_filter,
        loan_type=loan_type,
        partner_id=partner_id,
        search=search,
        page=page,
        per_page=per_page,
        sort_by=sort_by,
        sort_order=sort_order,
    )

    return {
        "items": [LeadListItem.model_validate(lead) for lead in leads],
        "total": total,
        "page": page,
        "per_page": per_page,
        "pages": (total + per_page - 1) // per_page if total else 0,
    }


@router.post("", response_model=LeadResponse, status_code=status.HTTP_201_CREATED)
async def create_lead(
    request: Request,
    data: AdminLeadCreateRequest,
    db: AsyncSession = Depends(get_db),
    current_actor: Actor = Depends(require_admin),
):
    """Create a lead on behalf of a partner."""
    lead = await lead_workflow.create_lead(
        db,
        current_actor,
        ip_address=get_client_ip(request),
        **data.model_dump(),
    )
    return LeadResponse.model_validate(lead)


@router.get("/stats", response_model=LeadStatsResponse)
async def get_lead_stats(
    db: AsyncSession = Depends(get_db),
    current_actor: Actor = Depends(require_admin),
):
    """Lead totals, status and loan type breakdown."""
    leads = await lead_workflow.all_leads(db)
    stats = aggregation.lead_stats(leads)
    return LeadStatsResponse(
        total=stats.total,
        total_amount=stats.total_amount,
        by_status=stats.by_status,
        by_loan_type=stats.by_loan_type,
        recent_leads=stats.recent_leads,
    )


@router.get("/{lead_id}", response_model=LeadResponse)
async def get_lead(
    lead_id: int,
    db: AsyncSession = Depends(get_db),
    current_actor: Actor = Depends(require_admin),
):
    """Get lead with timeline and commission."""
    lead = await lead_workflow.get_lead(db, lead_id)
    return LeadResponse.model_validate(lead)


@router.post("/{lead_id}/status", response_model=LeadResponse)
async def update_lead_status(
    request: Request,
    lead_id: int,
    data: LeadStatusRequest,
    db: AsyncSession = Depends(get_db),
    current_actor: Actor = Depends(require_admin),
):
    """Move a lead to another status."""
    lead = await lead_workflow.advance_lead_status(
        db,
        lead_id,
        data.status,
        current_actor,
        note=data.note,
        expected_status=data.expected_status,
        ip_address=get_client_ip(request),
    )
    return LeadResponse.model_validate(lead)


@router.post("/{lead_id}/bank", response_model=BankProposalResponse)
async def pick_bank(
    request: Request,
    lead_id: int,
    data: BankAssignRequest,
    db: AsyncSession = Depends(get_db),
    current_actor: Actor = Depends(require_admin),
):
    """
    Assign a bank to a lead.

    A first assignment applies immediately. Changing an assigned bank
    returns requires_confirmation=true and waits for /bank/confirm.
    """
    try:
        lead, proposal = await lead_workflow.pick_bank(
            db,
            lead_id,
            data.bank_name,
            current_actor,
            ip_address=get_client_ip(request),
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        )

    return BankProposalResponse(
        lead_id=lead.id,
        current_bank=proposal.current_bank,
        proposed_bank=proposal.proposed_bank,
        requires_confirmation=proposal.requires_confirmation,
        lead=LeadResponse.model_validate(lead),
    )


@router.post("/{lead_id}/bank/confirm", response_model=LeadResponse)
async def confirm_bank_change(
    request: Request,
    lead_id: int,
    db: AsyncSession = Depends(get_db),
    current_actor: Actor = Depends(require_admin),
):
    """Apply the pending bank change."""
    lead = await lead_workflow.confirm_bank(
        db, lead_id, current_actor, ip_address=get_client_ip(request)
    )
    return LeadResponse.model_validate(lead)


@router.post("/{lead_id}/bank/cancel", response_model=LeadResponse)
async def cancel_bank_change(
    request: Request,
    lead_id: int,
    db: AsyncSession = Depends(get_db),
    current_actor: Actor = Depends(require_admin),
):
    """Discard the pending bank change."""
    lead = await lead_workflow.cancel_bank(
        db, lead_id, current_actor, ip_address=get_client_ip(request)
    )
    return LeadResponse.model_validate(lead)


@router.post("/{lead_id}/disbursement", response_model=LeadResponse)
async def record_disbursement(
    request: Request,
    lead_id: int,
    data: DisbursementRequest,
    db: AsyncSession = Depends(get_db),
    current_actor: Actor = Depends(require_admin),
):
    """Record the amount released by the bank."""
    lead = await lead_workflow.record_lead_disbursement(
        db,
        lead_id,
        data.amount,
        current_actor,
        ip_address=get_client_ip(request),
    )
    return LeadResponse.model_validate(lead)


@router.get("/{lead_id}/commission", response_model=LeadCommissionResponse)
async def get_lead_commission(
    lead_id: int,
    db: AsyncSession = Depends(get_db),
    current_actor: Actor = Depends(require_admin),
):
    """Get the commission of a disbursed lead."""
    lead = await lead_workflow.get_lead(db, lead_id)
    if lead.commission is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Lead has no commission",
        )
    return LeadCommissionResponse.model_validate(lead.commission)
