"""Admin commission API endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from loanhub.auth import Actor, require_admin
from loanhub.db import get_db
from loanhub.models import CommissionStatus
from loanhub.schemas.commission import (
    CommissionResponse,
    CommissionStatusRequest,
    CommissionSummaryResponse,
    SlabResponse,
)
from loanhub.services import aggregation, lead_workflow
from loanhub.utils.audit import get_client_ip

router = APIRouter(prefix="/commissions")


@router.get("/list")
async def list_commissions(
    db: AsyncSession = Depends(get_db),
    current_actor: Actor = Depends(require_admin),
    status_filter: Optional[CommissionStatus] = Query(None, alias="status"),
    partner_id: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
):
    """List commissions, newest first."""
    items, total = await lead_workflow.list_commissions(
        db,
        status=status_filter,
        partner_id=partner_id,
        page=page,
        per_page=per_page,
    )

    return {
        "items": [CommissionResponse.from_commission(item) for item in items],
        "total": total,
        "page": page,
        "per_page": per_page,
        "pages": (total + per_page - 1) // per_page if total else 0,
    }


@router.get("/slabs", response_model=list[SlabResponse])
async def list_slabs(
    db: AsyncSession = Depends(get_db),
    current_actor: Actor = Depends(require_admin),
    loan_type: Optional[str] = Query(None),
    include_inactive: bool = Query(False),
):
    """Commission slab table."""
    slabs = await lead_workflow.load_slabs(
        db, loan_type=loan_type, active_only=not include_inactive
    )
    return [SlabResponse.model_validate(slab) for slab in slabs]


@router.get("/summary", response_model=CommissionSummaryResponse)
async def get_commission_summary(
    db: AsyncSession = Depends(get_db),
    current_actor: Actor = Depends(require_admin),
    partner_id: Optional[str] = Query(None),
):
    """Commission counts and sums by payout status."""
    leads = await lead_workflow.all_leads(db, partner_id=partner_id)
    return CommissionSummaryResponse.from_summary(aggregation.commission_summary(leads))


@router.get("/partners")
async def get_partner_earnings(
    db: AsyncSession = Depends(get_db),
    current_actor: Actor = Depends(require_admin),
):
    """Per-partner commission totals, highest earners first."""
    leads = await lead_workflow.all_leads(db)
    return [
        {
            "partner_id": row.partner_id,
            "partner_name": row.partner_name,
            "leads": row.leads,
            "disbursed_leads": row.disbursed_leads,
            "commissions": CommissionSummaryResponse.from_summary(row.commissions),
        }
        for row in aggregation.partner_earnings(leads)
    ]


@router.post("/{commission_id}/status", response_model=CommissionResponse)
async def update_commission_status(
    request: Request,
    commission_id: int,
    data: CommissionStatusRequest,
    db: AsyncSession = Depends(get_db),
    current_actor: Actor = Depends(require_admin),
):
    """Move a commission to its next payout status."""
    item = await lead_workflow.update_commission_status(
        db,
        commission_id,
        data.status,
        current_actor,
        ip_address=get_client_ip(request),
    )
    return CommissionResponse.from_commission(item)
