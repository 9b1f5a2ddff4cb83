"""Email notifications for loan lifecycle events.

Each sink function renders a template and delivers it, returning a
NotificationResult. Nothing here raises: delivery problems are logged and
reported through the result, so callers can only log them.
"""

import smtplib
import time
from dataclasses import dataclass
from typing import Optional

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.mail import EmailMultiAlternatives
from django.template.loader import render_to_string
from django.utils.html import strip_tags
from django.utils.translation import gettext as _

import structlog

from users.models import UserRole

logger = structlog.get_logger('inventario')

# SMTP replies which mean "try again later"
TRANSIENT_SMTP_CODES = {421, 450, 451, 452}


@dataclass
class NotificationResult:
    """Outcome of a notification attempt."""

    success: bool
    error: Optional[str] = None
    sent: int = 0
    failed: int = 0


def is_valid_email(address) -> bool:
    """Minimal syntactic check of an email address."""
    return bool(address) and '@' in address


def is_transient_error(exc: Exception) -> bool:
    """Return True for delivery errors worth retrying (rate limits, timeouts)."""
    if isinstance(exc, smtplib.SMTPResponseException):
        return exc.smtp_code in TRANSIENT_SMTP_CODES

    return isinstance(exc, (smtplib.SMTPServerDisconnected, TimeoutError, ConnectionError))


def get_recipient(address: str) -> str:
    """Return the address the email is actually delivered to."""
    redirect = settings.LOAN_EMAIL_REDIRECT_TO

    if redirect and address.lower() != redirect.lower():
        return redirect

    return address


def get_subject(subject: str, address: str) -> str:
    """Mark the subject of redirected emails with the original recipient."""
    if settings.LOAN_EMAIL_REDIRECT_TO:
        return f'[TEST → {address}] {subject}'

    return subject


def send_email(to: str, subject: str, html: str, retries: Optional[int] = None) -> NotificationResult:
    """Deliver a single HTML email.

    Transient failures are retried a bounded number of times, with a fixed
    pause between attempts; after that the email is given up on.

    Arguments:
        to: Recipient address
        subject: Email subject
        html: Rendered HTML body (a plain text part is derived from it)
        retries: Number of retries (defaults to LOAN_EMAIL_RETRIES)
    """
    if retries is None:
        retries = settings.LOAN_EMAIL_RETRIES

    if not is_valid_email(to):
        logger.warning('Invalid email address', to=to)
        return NotificationResult(success=False, error=f'Invalid email: {to}', failed=1)

    recipient = get_recipient(to)
    subject = get_subject(subject, to)

    if recipient != to:
        logger.warning('Email redirected', to=to, recipient=recipient)

    attempt = 0

    while True:
        try:
            message = EmailMultiAlternatives(
                subject=subject, body=strip_tags(html), to=[recipient]
            )
            message.attach_alternative(html, 'text/html')
            message.send()
        except Exception as exc:
            if attempt < retries and is_transient_error(exc):
                attempt += 1
                logger.info(
                    'Retrying email delivery',
                    to=recipient,
                    attempt=attempt,
                    remaining=retries - attempt,
                )
                time.sleep(settings.LOAN_EMAIL_RETRY_BACKOFF)
                continue

            logger.error('Email delivery failed', to=recipient, error=str(exc))
            return NotificationResult(success=False, error=str(exc), failed=1)

        logger.info('Email sent', to=recipient, subject=subject)
        return NotificationResult(success=True, sent=1)


def _render(template: str, **context) -> str:
    return render_to_string(f'email/{template}', context)


def on_loan_created(user, loan, item, aula) -> NotificationResult:
    """Tell every admin that a new loan request is waiting for approval."""
    User = get_user_model()

    admins = list(User.objects.filter(rol=UserRole.ADMIN, is_active=True))

    if not admins:
        logger.warning('No admins registered')
        return NotificationResult(success=False, error='No admins found')

    excluded = [d.lower() for d in settings.LOAN_NOTIFY_EXCLUDED_DOMAINS]
    recipients = []

    for admin in admins:
        if not is_valid_email(admin.email):
            logger.warning('Admin without a valid email', admin=admin.pk)
            continue

        if admin.email.rsplit('@', 1)[-1].lower() in excluded:
            logger.info('Skipping demo admin email', email=admin.email)
            continue

        recipients.append(admin.email)

    if not recipients:
        logger.warning('No admins with a valid email')
        return NotificationResult(success=False, error='No valid admin emails')

    subject = _('Nueva solicitud de préstamo - requiere aprobación')
    html = _render('loan_created.html', user=user, loan=loan, item=item, aula=aula)

    results = [send_email(address, subject, html) for address in recipients]

    sent = sum(1 for r in results if r.success)
    failed = len(results) - sent

    logger.info('Admin notifications sent', sent=sent, failed=failed)

    return NotificationResult(success=sent > 0, sent=sent, failed=failed)


def on_loan_approved(user, loan, item) -> NotificationResult:
    """Tell the borrower that their loan was approved."""
    html = _render('loan_approved.html', user=user, loan=loan, item=item)
    return send_email(user.email, _('Préstamo aprobado - Sistema de Inventario'), html)


def on_loan_returned(user, loan, item) -> NotificationResult:
    """Confirm to the borrower that the return was registered."""
    html = _render('loan_returned.html', user=user, loan=loan, item=item)
    return send_email(user.email, _('Devolución registrada - Sistema de Inventario'), html)


def on_loan_deferred(user, loan, item) -> NotificationResult:
    """Tell the borrower the new expected return date."""
    html = _render('loan_deferred.html', user=user, loan=loan, item=item)
    return send_email(user.email, _('Fecha de préstamo actualizada - Sistema de Inventario'), html)


def on_loan_reminder(user, loan, item) -> NotificationResult:
    """Remind the borrower that the return date is close."""
    html = _render('loan_reminder.html', user=user, loan=loan, item=item)
    return send_email(user.email, _('Recordatorio de devolución - Sistema de Inventario'), html)
