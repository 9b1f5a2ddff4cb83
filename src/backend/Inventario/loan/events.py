"""Event definitions for the loan app."""

from enum import Enum


class LoanEvents(str, Enum):
    """Lifecycle events emitted by the Loan model."""

    CREATED = 'loan.created'
    APPROVED = 'loan.approved'
    REJECTED = 'loan.rejected'
    RETURNED = 'loan.returned'
    DEFERRED = 'loan.deferred'

    # Triggered by the reminder task, not by a state change
    REMINDER = 'loan.reminder'
