"""
Tests for bank assignment tracking.
"""

import pytest

from conftest import make_lead
from loanhub.exceptions import BankAssignmentLocked, BankChangeNotConfirmed
from loanhub.models import LeadStatus
from loanhub.services.bank_assignment import (
    assign_bank,
    cancel_bank_change,
    confirm_bank_change,
    propose_bank,
)


# ── assign_bank ──────────────────────────────────────────


class TestAssignBank:
    def test_first_assignment(self):
        lead = make_lead(status=LeadStatus.BANK_LOGGED)
        assert assign_bank(lead, "HDFC Bank", "Asha") is True

        assert lead.bank_assigned == "HDFC Bank"
        assert len(lead.timeline) == 1
        assert lead.timeline[-1].note == "Bank assigned: HDFC Bank"
        assert lead.timeline[-1].status == LeadStatus.BANK_LOGGED

    def test_same_bank_is_noop(self):
        lead = make_lead(bank_assigned="HDFC Bank")
        assert assign_bank(lead, "HDFC Bank", "Asha") is False
        assert assign_bank(lead, "  HDFC Bank ", "Asha", confirmed=True) is False
        assert lead.timeline == []

    def test_change_requires_confirmation(self):
        lead = make_lead(bank_assigned="HDFC Bank")
        with pytest.raises(BankChangeNotConfirmed) as exc_info:
            assign_bank(lead, "ICICI Bank", "Asha")

        assert exc_info.value.current_bank == "HDFC Bank"
        assert exc_info.value.proposed_bank == "ICICI Bank"
        assert lead.bank_assigned == "HDFC Bank"
        assert lead.timeline == []

    def test_confirmed_change(self):
        lead = make_lead(bank_assigned="HDFC Bank")
        assert assign_bank(lead, "ICICI Bank", "Asha", confirmed=True) is True

        assert lead.bank_assigned == "ICICI Bank"
        assert lead.timeline[-1].note == "Bank changed from HDFC Bank to ICICI Bank"
        assert lead.timeline[-1].status == lead.status

    def test_blank_name_rejected(self):
        lead = make_lead()
        with pytest.raises(ValueError):
            assign_bank(lead, "   ", "Asha")

    def test_unlocked_by_default_after_approval(self):
        lead = make_lead(status=LeadStatus.APPROVED, bank_assigned="HDFC Bank")
        assert assign_bank(lead, "Axis Bank", "Asha", confirmed=True) is True

    @pytest.mark.parametrize("status", [LeadStatus.APPROVED, LeadStatus.DISBURSED])
    def test_lock_after_approval(self, status):
        lead = make_lead(status=status, bank_assigned="HDFC Bank")
        with pytest.raises(BankAssignmentLocked):
            assign_bank(lead, "Axis Bank", "Asha", confirmed=True, lock_after_approval=True)
        assert lead.bank_assigned == "HDFC Bank"

    def test_lock_ignores_earlier_statuses(self):
        lead = make_lead(status=LeadStatus.BANK_LOGGED)
        assert assign_bank(lead, "Axis Bank", "Asha", lock_after_approval=True) is True


# ── propose / confirm / cancel ───────────────────────────


class TestBankChangeProtocol:
    def test_first_pick_needs_no_confirmation(self):
        lead = make_lead()
        proposal = propose_bank(lead, "HDFC Bank")

        assert proposal.requires_confirmation is False
        assert proposal.current_bank is None
        assert lead.pending_bank is None

    def test_change_is_parked(self):
        lead = make_lead(bank_assigned="HDFC Bank")
        proposal = propose_bank(lead, "ICICI Bank")

        assert proposal.requires_confirmation is True
        assert proposal.current_bank == "HDFC Bank"
        assert proposal.proposed_bank == "ICICI Bank"
        assert lead.pending_bank == "ICICI Bank"
        assert lead.bank_assigned == "HDFC Bank"
        assert lead.timeline == []

    def test_confirm_applies_pending_change(self):
        lead = make_lead(bank_assigned="HDFC Bank")
        propose_bank(lead, "ICICI Bank")

        assert confirm_bank_change(lead, "Asha") is True
        assert lead.bank_assigned == "ICICI Bank"
        assert lead.pending_bank is None
        assert len(lead.timeline) == 1

    def test_cancel_drops_pending_change(self):
        lead = make_lead(bank_assigned="HDFC Bank")
        propose_bank(lead, "ICICI Bank")

        assert cancel_bank_change(lead) == "ICICI Bank"
        assert lead.bank_assigned == "HDFC Bank"
        assert lead.pending_bank is None
        assert lead.timeline == []

    def test_repicking_current_bank_drops_pending_change(self):
        lead = make_lead(bank_assigned="HDFC Bank")
        propose_bank(lead, "ICICI Bank")

        assert assign_bank(lead, "HDFC Bank", "Asha") is False
        assert lead.pending_bank is None
        assert lead.timeline == []
        with pytest.raises(BankChangeNotConfirmed):
            confirm_bank_change(lead, "Asha")

    def test_confirm_without_proposal(self):
        lead = make_lead(bank_assigned="HDFC Bank")
        with pytest.raises(BankChangeNotConfirmed):
            confirm_bank_change(lead, "Asha")

    def test_cancel_without_proposal(self):
        lead = make_lead()
        assert cancel_bank_change(lead) is None

    def test_propose_respects_lock(self):
        lead = make_lead(status=LeadStatus.DISBURSED, bank_assigned="HDFC Bank")
        with pytest.raises(BankAssignmentLocked):
            propose_bank(lead, "ICICI Bank", lock_after_approval=True)
        assert lead.pending_bank is None
