"""Domain exceptions for the lead lifecycle and commissions."""

from typing import Optional


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidTransition(DomainException):
    """Requested lead status is not reachable from the current status"""

    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Cannot move lead from '{current}' to '{target}'")


class InvalidCommissionTransition(DomainException):
    """Requested commission status is not the next payout step"""

    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Cannot move commission from '{current}' to '{target}'")


class NoMatchingSlab(DomainException):
    """No active commission slab covers the loan type and amount"""

    def __init__(self, loan_type: str, amount):
        self.loan_type = loan_type
        self.amount = amount
        super().__init__(f"No active commission slab for {loan_type} at {amount}")


class NotFound(DomainException):
    """Referenced lead or commission does not exist"""

    def __init__(self, entity: str, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity.capitalize()} {entity_id} not found")


class ConcurrentModification(DomainException):
    """Entity changed between read and write; re-read and retry"""

    pass


class BankChangeNotConfirmed(DomainException):
    """Changing an already assigned bank needs explicit confirmation"""

    def __init__(self, current_bank: Optional[str], proposed_bank: Optional[str]):
        self.current_bank = current_bank
        self.proposed_bank = proposed_bank
        super().__init__(
            f"Changing bank from '{current_bank}' to '{proposed_bank}' requires confirmation"
        )


class BankAssignmentLocked(DomainException):
    """Bank assignment is locked for approved and disbursed leads"""

    pass


class DisbursementNotAllowed(DomainException):
    """Disbursement can only be recorded for approved or disbursed leads"""

    pass


class CommissionLocked(DomainException):
    """Commission already left 'pending' and can no longer be recomputed"""

    pass


class InvalidAmount(DomainException):
    """Monetary amount is missing, zero or negative"""

    pass


class PermissionDenied(DomainException):
    """Actor is not allowed to perform this operation"""

    pass
