"""Partner panel dashboard API endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from loanhub.auth import Actor, require_partner
from loanhub.db import get_db
from loanhub.models import LeadStatus
from loanhub.schemas.dashboard import FunnelResponse, PartnerDashboardResponse
from loanhub.services import aggregation, lead_workflow
from loanhub.services.lead_status import to_partner_status

router = APIRouter()


@router.get("", response_model=PartnerDashboardResponse)
async def get_partner_dashboard(
    db: AsyncSession = Depends(get_db),
    current_actor: Actor = Depends(require_partner),
):
    """Get partner's own lead and earnings stats."""
    leads = await lead_workflow.all_leads(db, partner_id=current_actor.id)

    by_status = aggregation.counts_by_status(leads)
    funnel = aggregation.funnel_counts(leads)
    commissions = aggregation.commission_summary(leads)

    return PartnerDashboardResponse(
        total_leads=len(leads),
        by_status={
            to_partner_status(LeadStatus(key)): count
            for key, count in by_status.items()
        },
        funnel=FunnelResponse(**vars(funnel)),
        conversion_rate=funnel.conversion_rate,
        commission_pending=commissions.pending.amount,
        commission_processing=commissions.approved.amount,
        commission_paid=commissions.paid.amount,
        commission_total=commissions.total.amount,
    )
