"""Partner panel leads API endpoints.

Partners see only their own leads, in partner status labels:
- POST /leads              - submit a lead
- GET  /leads/list         - own leads
- GET  /leads/{lead_id}    - lead with timeline and commission
- POST /leads/{lead_id}/status - report documents uploaded
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from loanhub.auth import Actor, require_partner
from loanhub.db import get_db
from loanhub.schemas.lead import LeadCreateRequest, LeadStatusRequest, PartnerLeadResponse
from loanhub.services import lead_workflow
from loanhub.services.lead_status import parse_status
from loanhub.utils.audit import get_client_ip

router = APIRouter(prefix="/leads")


# ── Endpoints ────────────────────────────────────────────


@router.post("", response_model=PartnerLeadResponse, status_code=status.HTTP_201_CREATED)
async def submit_lead(
    request: Request,
    data: LeadCreateRequest,
    db: AsyncSession = Depends(get_db),
    current_actor: Actor = Depends(require_partner),
):
    """Partner submits a lead for one of their customers."""
    lead = await lead_workflow.create_lead(
        db,
        current_actor,
        partner_id=current_actor.id,
        partner_name=current_actor.label,
        ip_address=get_client_ip(request),
        **data.model_dump(),
    )
    return PartnerLeadResponse.from_lead(lead)


@router.get("/list")
async def list_my_leads(
    db: AsyncSession = Depends(get_db),
    current_actor: Actor = Depends(require_partner),
    status_filter: Optional[str] = Query(None, alias="status"),
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
):
    """List the partner's own leads."""
    canonical = None
    if status_filter:
        try:
            canonical = parse_status(status_filter.strip().lower())
        except ValueError as e:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=str(e),
            )

    leads, total = await lead_workflow.list_leads(
        db,
        status=canonical,
        partner_id=current_actor.id,
        search=search,
        page=page,
        per_page=per_page,
    )

    return {
        "items": [PartnerLeadResponse.from_lead(lead) for lead in leads],
        "total": total,
        "page": page,
        "per_page": per_page,
        "pages": (total + per_page - 1) // per_page if total else 0,
    }


@router.get("/{lead_id}", response_model=PartnerLeadResponse)
async def get_my_lead(
    lead_id: int,
    db: AsyncSession = Depends(get_db),
    current_actor: Actor = Depends(require_partner),
):
    """Get one of the partner's leads."""
    lead = await lead_workflow.get_lead(db, lead_id)
    lead_workflow.ensure_lead_access(lead, current_actor)
    return PartnerLeadResponse.from_lead(lead)


@router.post("/{lead_id}/status", response_model=PartnerLeadResponse)
async def update_my_lead_status(
    request: Request,
    lead_id: int,
    data: LeadStatusRequest,
    db: AsyncSession = Depends(get_db),
    current_actor: Actor = Depends(require_partner),
):
    """Partner reports that documents were uploaded (docs_uploaded)."""
    lead = await lead_workflow.advance_lead_status(
        db,
        lead_id,
        data.status,
        current_actor,
        note=data.note,
        expected_status=data.expected_status,
        ip_address=get_client_ip(request),
    )
    return PartnerLeadResponse.from_lead(lead)
