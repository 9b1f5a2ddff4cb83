"""Background tasks for the loan module."""

from datetime import timedelta

from django.conf import settings
from django.utils import timezone

import structlog

from Inventario.exceptions import log_error
from Inventario.tasks import offload_task
from loan import notifications
from loan.events import LoanEvents

logger = structlog.get_logger('inventario')


# Sink function for each event sent to the borrower
BORROWER_NOTIFICATIONS = {
    LoanEvents.APPROVED: notifications.on_loan_approved,
    LoanEvents.RETURNED: notifications.on_loan_returned,
    LoanEvents.DEFERRED: notifications.on_loan_deferred,
    LoanEvents.REMINDER: notifications.on_loan_reminder,
}


def notify_loan_event(loan_pk: int, event: str) -> None:
    """Send the notification for a loan lifecycle event.

    Runs on the background worker. Every failure is logged and discarded:
    a notification never affects the loan it is about.

    Arguments:
        loan_pk: Primary key of the Loan
        event: Value of a LoanEvents member
    """
    from loan.models import Loan

    try:
        event = LoanEvents(event)

        loan = Loan.objects.with_related().filter(pk=loan_pk).first()

        if loan is None:
            logger.warning('Loan not found for notification', loan=loan_pk, event=event.value)
            return

        user = loan.usuario

        if event == LoanEvents.CREATED:
            if user is None or loan.item is None:
                logger.warning('Incomplete loan data, admins not notified', loan=loan_pk)
                return

            result = notifications.on_loan_created(user, loan, loan.item, loan.aula)

        else:
            sender = BORROWER_NOTIFICATIONS.get(event)

            if sender is None:
                logger.debug('No notification for event', loan=loan_pk, event=event.value)
                return

            if user is None or not notifications.is_valid_email(user.email):
                logger.warning(
                    'Borrower without a valid email',
                    loan=loan_pk,
                    user=getattr(user, 'pk', None),
                    email=getattr(user, 'email', None),
                )
                return

            result = sender(user, loan, loan.item)

        if result.success:
            logger.info('Loan notification sent', loan=loan_pk, event=event.value)
        else:
            logger.warning(
                'Loan notification failed (non critical)',
                loan=loan_pk,
                event=event.value,
                error=result.error,
            )

    except Exception:
        log_error('loan.tasks.notify_loan_event')
        logger.exception('Error sending loan notification', loan=loan_pk, event=event)


def send_due_date_reminders() -> int:
    """Queue reminders for checked-out loans which are due soon.

    A loan is due soon when its estimated return date falls between today
    and LOAN_REMINDER_DAYS days from now.

    Returns:
        int: Number of reminders queued
    """
    from loan.models import Loan

    today = timezone.localdate()
    limit = today + timedelta(days=settings.LOAN_REMINDER_DAYS)

    due_loans = Loan.objects.checked_out().filter(
        fecha_estimada__isnull=False,
        fecha_estimada__gte=today,
        fecha_estimada__lte=limit,
    )

    logger.info(
        'Found loans due soon', count=due_loans.count(), days=settings.LOAN_REMINDER_DAYS
    )

    queued = 0

    for loan in due_loans:
        if offload_task('loan.tasks.notify_loan_event', loan.pk, LoanEvents.REMINDER.value):
            queued += 1

    return queued
