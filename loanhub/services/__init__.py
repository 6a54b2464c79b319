"""Business logic services."""

from loanhub.services.bank_assignment import (
    BankProposal,
    assign_bank,
    cancel_bank_change,
    confirm_bank_change,
    propose_bank,
)
from loanhub.services.commission import (
    CommissionQuote,
    calculate_commission,
    compute_commission,
    record_disbursement,
    resolve_slab,
    transition_commission_status,
)
from loanhub.services.lead_status import advance_status, can_transition, parse_status

__all__ = [
    "BankProposal",
    "CommissionQuote",
    "advance_status",
    "assign_bank",
    "calculate_commission",
    "can_transition",
    "cancel_bank_change",
    "compute_commission",
    "confirm_bank_change",
    "parse_status",
    "propose_bank",
    "record_disbursement",
    "resolve_slab",
    "transition_commission_status",
]
