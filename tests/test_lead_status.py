"""
Tests for the lead status state machine.

Covers:
- Transition table: every allowed pair succeeds, every other pair fails
  without touching the lead
- Timeline append on each transition
- Terminal disbursed, reactivation only to submitted
- Partner vocabulary mapping
"""

from datetime import datetime, timezone
from decimal import Decimal
from itertools import product

import pytest

from conftest import make_lead, make_slabs
from loanhub.exceptions import InvalidAmount, InvalidTransition
from loanhub.models import LeadStatus
from loanhub.services.commission import record_disbursement
from loanhub.services.lead_status import (
    ALLOWED_TRANSITIONS,
    PARTNER_STATUS_LABELS,
    advance_status,
    allowed_next,
    can_transition,
    parse_status,
    to_partner_status,
)

NOW = datetime(2024, 5, 1, 10, 30, tzinfo=timezone.utc)


def _snapshot(lead):
    return (
        lead.status,
        lead.bank_assigned,
        lead.disbursed_amount,
        lead.commission,
        [(e.sequence, e.status, e.note) for e in lead.timeline],
    )


# ── Transition table ─────────────────────────────────────


class TestTransitionTable:
    def test_forward_pipeline(self):
        assert allowed_next(LeadStatus.SUBMITTED) == {LeadStatus.DOCS_COLLECTED, LeadStatus.REJECTED}
        assert allowed_next(LeadStatus.DOCS_COLLECTED) == {LeadStatus.BANK_LOGGED, LeadStatus.REJECTED}
        assert allowed_next(LeadStatus.BANK_LOGGED) == {LeadStatus.APPROVED, LeadStatus.REJECTED}
        assert allowed_next(LeadStatus.APPROVED) == {LeadStatus.DISBURSED, LeadStatus.REJECTED}

    def test_disbursed_is_terminal(self):
        assert allowed_next(LeadStatus.DISBURSED) == frozenset()

    def test_rejected_only_reactivates_to_submitted(self):
        assert allowed_next(LeadStatus.REJECTED) == {LeadStatus.SUBMITTED}

    def test_no_self_transitions(self):
        for status in LeadStatus:
            assert not can_transition(status, status)

    def test_every_status_has_an_entry(self):
        assert set(ALLOWED_TRANSITIONS) == set(LeadStatus)


# ── advance_status ───────────────────────────────────────


class TestAdvanceStatus:
    def test_valid_transition_appends_timeline(self):
        lead = make_lead()
        event = advance_status(lead, LeadStatus.DOCS_COLLECTED, "Asha", now=NOW)

        assert lead.status == LeadStatus.DOCS_COLLECTED
        assert len(lead.timeline) == 1
        assert lead.timeline[-1] is event
        assert event.sequence == 1
        assert event.status == LeadStatus.DOCS_COLLECTED
        assert event.updated_by == "Asha"
        assert event.timestamp == NOW
        assert event.note == "Status updated to docs_collected"
        assert lead.updated_at == NOW

    def test_custom_note(self):
        lead = make_lead()
        event = advance_status(lead, LeadStatus.REJECTED, "Asha", note="Low CIBIL score")
        assert event.note == "Low CIBIL score"

    def test_accepts_plain_string_target(self):
        lead = make_lead()
        advance_status(lead, "docs_collected", "Asha")
        assert lead.status == LeadStatus.DOCS_COLLECTED

    def test_timeline_grows_by_one_and_tracks_status(self):
        lead = make_lead()
        path = [
            LeadStatus.DOCS_COLLECTED,
            LeadStatus.BANK_LOGGED,
            LeadStatus.REJECTED,
            LeadStatus.SUBMITTED,
            LeadStatus.DOCS_COLLECTED,
        ]
        for count, target in enumerate(path, start=1):
            advance_status(lead, target, "Asha")
            assert len(lead.timeline) == count
            assert lead.timeline[-1].status == lead.status
            assert lead.timeline[-1].sequence == count

    @pytest.mark.parametrize(
        "current,target",
        [
            (current, target)
            for current, target in product(LeadStatus, LeadStatus)
            if target not in ALLOWED_TRANSITIONS[current]
        ],
    )
    def test_invalid_transition_leaves_lead_untouched(self, current, target):
        lead = make_lead(status=current, disbursed_amount=Decimal("480000"))
        before = _snapshot(lead)

        with pytest.raises(InvalidTransition) as exc_info:
            advance_status(lead, target, "Asha", slabs=make_slabs())

        assert exc_info.value.current == current.value
        assert exc_info.value.target == target.value
        assert _snapshot(lead) == before

    def test_disbursed_cannot_move(self):
        lead = make_lead(status=LeadStatus.DISBURSED)
        for target in LeadStatus:
            with pytest.raises(InvalidTransition):
                advance_status(lead, target, "Asha")
        assert lead.timeline == []

    def test_reactivation_goes_to_submitted_only(self):
        lead = make_lead(status=LeadStatus.REJECTED)
        with pytest.raises(InvalidTransition):
            advance_status(lead, LeadStatus.DOCS_COLLECTED, "Asha")

        advance_status(lead, LeadStatus.SUBMITTED, "Asha")
        assert lead.status == LeadStatus.SUBMITTED

    def test_disbursing_computes_commission(self):
        lead = make_lead(status=LeadStatus.APPROVED, disbursed_amount=Decimal("480000"))
        advance_status(lead, LeadStatus.DISBURSED, "Asha", slabs=make_slabs())

        assert lead.commission is not None
        assert lead.commission.commission_amount == Decimal("4800.00")

    def test_disbursing_without_amount_is_rejected_before_mutation(self):
        lead = make_lead(status=LeadStatus.APPROVED, loan_amount=Decimal("0"))
        with pytest.raises(InvalidAmount):
            advance_status(lead, LeadStatus.DISBURSED, "Asha", slabs=make_slabs())

        assert lead.status == LeadStatus.APPROVED
        assert lead.timeline == []

    def test_rejection_forgets_previous_disbursed_amount(self):
        lead = make_lead(status=LeadStatus.APPROVED)
        record_disbursement(lead, Decimal("300000"))

        advance_status(lead, LeadStatus.REJECTED, "Asha")
        assert lead.disbursed_amount is None

        for target in (
            LeadStatus.SUBMITTED,
            LeadStatus.DOCS_COLLECTED,
            LeadStatus.BANK_LOGGED,
            LeadStatus.APPROVED,
            LeadStatus.DISBURSED,
        ):
            advance_status(lead, target, "Asha", slabs=make_slabs())

        # requested 500000 is the base again, hitting the 0.5% slab
        assert lead.commission.disbursed_amount == Decimal("500000")
        assert lead.commission.commission_amount == Decimal("2500.00")

    def test_reactivation_clears_disbursed_amount(self):
        lead = make_lead(status=LeadStatus.REJECTED, disbursed_amount=Decimal("300000"))
        advance_status(lead, LeadStatus.SUBMITTED, "Asha")
        assert lead.disbursed_amount is None


# ── Partner vocabulary ───────────────────────────────────


class TestPartnerVocabulary:
    @pytest.mark.parametrize(
        "label,expected",
        [
            ("draft", LeadStatus.SUBMITTED),
            ("docs_pending", LeadStatus.SUBMITTED),
            ("docs_uploaded", LeadStatus.DOCS_COLLECTED),
            ("bank_processing", LeadStatus.BANK_LOGGED),
            ("approved", LeadStatus.APPROVED),
            ("bank_logged", LeadStatus.BANK_LOGGED),
        ],
    )
    def test_parse_status(self, label, expected):
        assert parse_status(label) == expected

    def test_unknown_status(self):
        with pytest.raises(ValueError):
            parse_status("on_hold")

    def test_every_status_has_a_partner_label(self):
        assert set(PARTNER_STATUS_LABELS) == set(LeadStatus)

    def test_labels_parse_back(self):
        for status in LeadStatus:
            assert parse_status(to_partner_status(status)) == status

    def test_partner_labels(self):
        assert to_partner_status(LeadStatus.DOCS_COLLECTED) == "docs_uploaded"
        assert to_partner_status(LeadStatus.BANK_LOGGED) == "bank_processing"
