"""Admin dashboard API endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from loanhub.auth import Actor, require_admin
from loanhub.db import get_db
from loanhub.schemas.commission import CommissionSummaryResponse
from loanhub.schemas.dashboard import FunnelResponse, MetricsResponse
from loanhub.services import aggregation, lead_workflow

router = APIRouter()


@router.get("/metrics", response_model=MetricsResponse)
async def get_metrics(
    db: AsyncSession = Depends(get_db),
    current_actor: Actor = Depends(require_admin),
):
    """Get main dashboard metrics."""
    leads = await lead_workflow.all_leads(db)

    stats = aggregation.lead_stats(leads)
    funnel = aggregation.funnel_counts(leads)
    commissions = aggregation.commission_summary(leads)

    return MetricsResponse(
        total_leads=stats.total,
        total_requested_amount=stats.total_amount,
        leads_last_7_days=stats.recent_leads,
        by_status=stats.by_status,
        by_loan_type=stats.by_loan_type,
        funnel=FunnelResponse(**vars(funnel)),
        conversion_rate=funnel.conversion_rate,
        commissions=CommissionSummaryResponse.from_summary(commissions),
    )
