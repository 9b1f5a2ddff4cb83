"""Loan status codes."""

from django.db import models
from django.utils.translation import gettext_lazy as _


class LoanStatus(models.TextChoices):
    """Defines the set of states for a Loan.

    The stored values are the state names used throughout the system.
    """

    # Request submitted, waiting for an admin decision
    PENDIENTE = 'Pendiente', _('Pending')

    # Approved, units are out on loan
    APROBADO = 'Aprobado', _('Approved')

    # Request was refused
    RECHAZADO = 'Rechazado', _('Rejected')

    # Approved loan whose return date was moved
    APLAZADO = 'Aplazado', _('Deferred')

    # Units have been returned
    DEVUELTO = 'Devuelto', _('Returned')


class LoanStatusGroups:
    """Groups for LoanStatus codes."""

    # Units of the item are checked out while in these states
    CHECKED_OUT = [LoanStatus.APROBADO.value, LoanStatus.APLAZADO.value]

    # Loans still needing attention
    OPEN = [LoanStatus.PENDIENTE.value, *CHECKED_OUT]

    # No further transitions are possible
    TERMINAL = [LoanStatus.RECHAZADO.value, LoanStatus.DEVUELTO.value]
