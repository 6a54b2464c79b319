"""
Read-only dashboard projections over leads and their commissions.

Nothing here mutates its input. Every projection returns zeros for an
empty collection.
"""

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from loanhub.models import CommissionStatus, Lead, LeadStatus, utcnow
from loanhub.services.lead_status import PIPELINE

RECENT_DAYS = 7
TOP_LOAN_TYPES = 10


@dataclass
class FunnelCounts:
    """Leads that reached each pipeline stage (cumulative)."""

    submitted: int = 0
    docs_collected: int = 0
    bank_processing: int = 0
    approved: int = 0
    disbursed: int = 0

    @property
    def conversion_rate(self) -> float:
        """Disbursed as a percentage of submitted; 0 when nothing was submitted."""
        if self.submitted == 0:
            return 0.0
        return round(self.disbursed / self.submitted * 100, 1)


@dataclass
class CommissionTotals:
    count: int = 0
    amount: Decimal = Decimal("0.00")


@dataclass
class CommissionSummary:
    pending: CommissionTotals = field(default_factory=CommissionTotals)
    approved: CommissionTotals = field(default_factory=CommissionTotals)
    paid: CommissionTotals = field(default_factory=CommissionTotals)

    @property
    def total(self) -> CommissionTotals:
        parts = (self.pending, self.approved, self.paid)
        return CommissionTotals(
            count=sum(p.count for p in parts),
            amount=sum((p.amount for p in parts), Decimal("0.00")),
        )


@dataclass
class LeadStats:
    total: int
    total_amount: Decimal
    by_status: Dict[str, int]
    by_loan_type: List[Dict]
    recent_leads: int


@dataclass
class PartnerEarnings:
    partner_id: str
    partner_name: str
    leads: int
    disbursed_leads: int
    commissions: CommissionSummary


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def counts_by_status(leads: Iterable[Lead]) -> Dict[str, int]:
    """Current-status counts, one key per canonical status."""
    counts = {status.value: 0 for status in LeadStatus}
    for lead in leads:
        counts[LeadStatus(lead.status).value] += 1
    return counts


def furthest_stage(lead: Lead) -> int:
    """Index in PIPELINE of the furthest stage the lead ever reached.

    Rejected leads keep the stage they reached before rejection, which is
    read from the timeline.
    """
    reached = [lead.status] + [event.status for event in lead.timeline]
    stages = [PIPELINE.index(s) for s in reached if s in PIPELINE]
    return max(stages) if stages else 0


def funnel_counts(leads: Iterable[Lead]) -> FunnelCounts:
    stage_totals = [0] * len(PIPELINE)
    for lead in leads:
        for index in range(furthest_stage(lead) + 1):
            stage_totals[index] += 1
    return FunnelCounts(*stage_totals)


def conversion_rate(leads: Iterable[Lead]) -> float:
    return funnel_counts(leads).conversion_rate


def commission_summary(leads: Iterable[Lead]) -> CommissionSummary:
    """Commission count and sum per payout status."""
    summary = CommissionSummary()
    for lead in leads:
        commission = lead.commission
        if commission is None:
            continue
        bucket: CommissionTotals = getattr(summary, CommissionStatus(commission.status).value)
        bucket.count += 1
        bucket.amount += commission.commission_amount
    return summary


def lead_stats(leads: Iterable[Lead], now: Optional[datetime] = None) -> LeadStats:
    """Totals, status and loan-type breakdown, and recent volume."""
    leads = list(leads)
    since = (now or utcnow()) - timedelta(days=RECENT_DAYS)

    loan_types = Counter(lead.loan_type for lead in leads)
    recent = sum(
        1 for lead in leads
        if lead.created_at is not None and _as_utc(lead.created_at) >= since
    )

    return LeadStats(
        total=len(leads),
        total_amount=sum((lead.loan_amount for lead in leads), Decimal("0.00")),
        by_status=counts_by_status(leads),
        by_loan_type=[
            {"type": loan_type, "count": count}
            for loan_type, count in loan_types.most_common(TOP_LOAN_TYPES)
        ],
        recent_leads=recent,
    )


def partner_earnings(leads: Iterable[Lead]) -> List[PartnerEarnings]:
    """Per-partner lead volume and commission totals, highest earners first."""
    grouped: Dict[str, List[Lead]] = {}
    for lead in leads:
        grouped.setdefault(lead.partner_id, []).append(lead)

    rows = [
        PartnerEarnings(
            partner_id=partner_id,
            partner_name=partner_leads[0].partner_name,
            leads=len(partner_leads),
            disbursed_leads=sum(1 for l in partner_leads if l.status == LeadStatus.DISBURSED),
            commissions=commission_summary(partner_leads),
        )
        for partner_id, partner_leads in grouped.items()
    ]
    rows.sort(key=lambda r: r.commissions.total.amount, reverse=True)
    return rows
