"""Custom filters for the loan app."""

from django.db.models import Q

from loan.status_codes import LoanStatusGroups


def filter_open_loans():
    """Return a Q filter for loans still needing attention."""
    return Q(estado__in=LoanStatusGroups.OPEN)


def filter_checked_out_loans():
    """Return a Q filter for loans whose units are out on loan."""
    return Q(estado__in=LoanStatusGroups.CHECKED_OUT)


def filter_closed_loans():
    """Return a Q filter for loans in a terminal state."""
    return Q(estado__in=LoanStatusGroups.TERMINAL)
