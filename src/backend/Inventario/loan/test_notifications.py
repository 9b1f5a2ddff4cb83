"""Tests for loan email notifications and reminders."""

import smtplib
from datetime import timedelta
from io import StringIO
from unittest import mock

from django.contrib.auth import get_user_model
from django.core import mail
from django.core.management import call_command
from django.test import TestCase, override_settings
from django.utils import timezone

from Inventario.unit_test import UserMixin
from loan import notifications
from loan.events import LoanEvents
from loan.models import Loan
from loan.tasks import BORROWER_NOTIFICATIONS, notify_loan_event, send_due_date_reminders
from stock.models import Aula, Item


@override_settings(LOAN_EMAIL_REDIRECT_TO='', LOAN_EMAIL_RETRIES=2)
class SendEmailTest(TestCase):
    """Tests for the send_email function."""

    def test_send(self):
        """An HTML email is sent with a plain text alternative."""
        result = notifications.send_email('alumno@example.org', 'Hola', '<p>Contenido</p>')

        self.assertTrue(result.success)
        self.assertEqual(result.sent, 1)

        self.assertEqual(len(mail.outbox), 1)
        message = mail.outbox[0]

        self.assertEqual(message.to, ['alumno@example.org'])
        self.assertEqual(message.subject, 'Hola')
        self.assertEqual(message.body, 'Contenido')
        self.assertEqual(message.alternatives[0][1], 'text/html')

    def test_invalid_address(self):
        """Nothing is sent to an invalid address."""
        for address in ['', None, 'not-an-email']:
            result = notifications.send_email(address, 'Hola', '<p>x</p>')

            self.assertFalse(result.success)
            self.assertIn('Invalid email', result.error)

        self.assertEqual(len(mail.outbox), 0)

    @override_settings(LOAN_EMAIL_REDIRECT_TO='qa@example.org')
    def test_redirect(self):
        """Redirected emails go to the test address and name the real recipient."""
        notifications.send_email('alumno@example.org', 'Hola', '<p>x</p>')

        message = mail.outbox[0]
        self.assertEqual(message.to, ['qa@example.org'])
        self.assertEqual(message.subject, '[TEST → alumno@example.org] Hola')

    @mock.patch('loan.notifications.time.sleep')
    def test_retry_transient(self, sleep):
        """A rate-limited delivery is retried after a pause."""
        with mock.patch(
            'loan.notifications.EmailMultiAlternatives.send',
            side_effect=[smtplib.SMTPResponseException(421, b'Too many messages'), 1],
        ) as send:
            result = notifications.send_email('alumno@example.org', 'Hola', '<p>x</p>')

        self.assertTrue(result.success)
        self.assertEqual(send.call_count, 2)
        sleep.assert_called_once()

    @mock.patch('loan.notifications.time.sleep')
    def test_retries_exhausted(self, sleep):
        """Retries are bounded."""
        with mock.patch(
            'loan.notifications.EmailMultiAlternatives.send',
            side_effect=smtplib.SMTPServerDisconnected('gone'),
        ) as send:
            result = notifications.send_email('alumno@example.org', 'Hola', '<p>x</p>')

        self.assertFalse(result.success)
        self.assertEqual(result.failed, 1)
        self.assertEqual(send.call_count, 3)
        self.assertEqual(sleep.call_count, 2)

    @mock.patch('loan.notifications.time.sleep')
    def test_permanent_failure(self, sleep):
        """Permanent failures are not retried."""
        with mock.patch(
            'loan.notifications.EmailMultiAlternatives.send',
            side_effect=smtplib.SMTPResponseException(550, b'Mailbox unavailable'),
        ) as send:
            result = notifications.send_email('alumno@example.org', 'Hola', '<p>x</p>')

        self.assertFalse(result.success)
        self.assertEqual(send.call_count, 1)
        sleep.assert_not_called()

    def test_transient_errors(self):
        """Check which errors are worth retrying."""
        self.assertTrue(notifications.is_transient_error(smtplib.SMTPResponseException(450, b'')))
        self.assertTrue(notifications.is_transient_error(TimeoutError()))
        self.assertFalse(notifications.is_transient_error(smtplib.SMTPResponseException(554, b'')))
        self.assertFalse(notifications.is_transient_error(ValueError()))


@override_settings(LOAN_EMAIL_REDIRECT_TO='', LOAN_NOTIFY_EXCLUDED_DOMAINS=['demo.com'])
class LoanEventNotificationTest(UserMixin, TestCase):
    """Tests for the notify_loan_event task."""

    @classmethod
    def setUpTestData(cls):
        """Create a loan request."""
        super().setUpTestData()

        cls.item = Item.objects.create(nombre='Proyector', cantidad_total_stock=2)
        cls.aula = Aula.objects.create(nombre='Laboratorio')
        cls.loan = Loan.objects.create(
            usuario=cls.user, item=cls.item, aula=cls.aula, cantidad_prestamo=1
        )

    def test_created(self):
        """Admins are told about new requests, except demo accounts."""
        self.create_user('demo_admin', rol='Admin', email='admin@demo.com')
        self.create_user('noemail_admin', rol='Admin', email='')
        self.create_user('profesor', rol='Docente')

        notify_loan_event(self.loan.pk, LoanEvents.CREATED.value)

        self.assertEqual(len(mail.outbox), 1)

        message = mail.outbox[0]
        self.assertEqual(message.to, [self.admin.email])
        self.assertIn('Nueva solicitud de préstamo', message.subject)
        self.assertIn('Proyector', message.body)
        self.assertIn('Laboratorio', message.body)

    def test_created_no_admins(self):
        """Without reachable admins nothing is sent."""
        get_user_model().objects.filter(rol='Admin').update(email='admin@demo.com')

        result = notifications.on_loan_created(self.user, self.loan, self.item, self.aula)

        self.assertFalse(result.success)
        self.assertEqual(len(mail.outbox), 0)

    def test_borrower_events(self):
        """The borrower is told about approvals, deferrals and returns."""
        subjects = {
            LoanEvents.APPROVED: 'Préstamo aprobado',
            LoanEvents.DEFERRED: 'Fecha de préstamo actualizada',
            LoanEvents.RETURNED: 'Devolución registrada',
            LoanEvents.REMINDER: 'Recordatorio de devolución',
        }

        for event, subject in subjects.items():
            mail.outbox = []

            notify_loan_event(self.loan.pk, event.value)

            self.assertEqual(len(mail.outbox), 1)
            self.assertEqual(mail.outbox[0].to, [self.user.email])
            self.assertIn(subject, mail.outbox[0].subject)
            self.assertIn('Proyector', mail.outbox[0].body)

    def test_no_notification(self):
        """Rejections send nothing."""
        notify_loan_event(self.loan.pk, LoanEvents.REJECTED.value)

        self.assertEqual(len(mail.outbox), 0)

    def test_borrower_without_email(self):
        """A borrower without a valid email is skipped."""
        user = self.create_user('sinmail', email='')
        loan = Loan.objects.create(usuario=user, item=self.item, cantidad_prestamo=1)

        notify_loan_event(loan.pk, LoanEvents.APPROVED.value)

        self.assertEqual(len(mail.outbox), 0)

    def test_missing_loan(self):
        """A loan deleted before the task runs is skipped."""
        notify_loan_event(self.loan.pk + 1000, LoanEvents.APPROVED.value)

        self.assertEqual(len(mail.outbox), 0)

    def test_missing_item(self):
        """Admins are not told about a request whose item is gone."""
        loan = Loan.objects.create(usuario=self.user, item=None, cantidad_prestamo=1)

        notify_loan_event(loan.pk, LoanEvents.CREATED.value)

        self.assertEqual(len(mail.outbox), 0)

    def test_errors_swallowed(self):
        """Errors inside the task never propagate."""
        failing = mock.Mock(side_effect=RuntimeError('SMTP exploded'))

        with mock.patch.dict(BORROWER_NOTIFICATIONS, {LoanEvents.APPROVED: failing}):
            notify_loan_event(self.loan.pk, LoanEvents.APPROVED.value)

        failing.assert_called_once()

        # Unknown event names are handled the same way
        notify_loan_event(self.loan.pk, 'loan.unknown')

        self.assertEqual(len(mail.outbox), 0)


class LoanReminderTest(UserMixin, TestCase):
    """Tests for the due date reminders."""

    @classmethod
    def setUpTestData(cls):
        """Create loans due at various dates."""
        super().setUpTestData()

        today = timezone.localdate()
        item = Item.objects.create(nombre='Tablet', cantidad_total_stock=10)

        def make_loan(estado, days):
            return Loan.objects.create(
                usuario=cls.user,
                item=item,
                cantidad_prestamo=1,
                estado=estado,
                fecha_estimada=today + timedelta(days=days) if days is not None else None,
            )

        cls.due_today = make_loan('Aplazado', 0)
        cls.due_tomorrow = make_loan('Aprobado', 1)

        # None of these get a reminder
        make_loan('Aprobado', 5)
        make_loan('Aprobado', -1)
        make_loan('Pendiente', 1)
        make_loan('Devuelto', 1)
        make_loan('Aprobado', None)

    @override_settings(LOAN_REMINDER_DAYS=1)
    @mock.patch('loan.tasks.offload_task', return_value=True)
    def test_reminders(self, offload):
        """Only checked-out loans due within the window get a reminder."""
        self.assertEqual(send_due_date_reminders(), 2)

        reminded = {c.args[1] for c in offload.call_args_list}
        self.assertEqual(reminded, {self.due_today.pk, self.due_tomorrow.pk})

        for c in offload.call_args_list:
            self.assertEqual(c.args[0], 'loan.tasks.notify_loan_event')
            self.assertEqual(c.args[2], LoanEvents.REMINDER.value)

    @override_settings(LOAN_REMINDER_DAYS=1)
    @mock.patch('loan.tasks.offload_task', return_value=False)
    def test_reminders_not_queued(self, offload):
        """Reminders which cannot be queued are not counted."""
        self.assertEqual(send_due_date_reminders(), 0)
        self.assertEqual(offload.call_count, 2)

    @override_settings(LOAN_REMINDER_DAYS=1)
    @mock.patch('loan.tasks.offload_task', return_value=True)
    def test_command(self, offload):
        """The management command queues the reminders."""
        out = StringIO()
        call_command('send_loan_reminders', stdout=out)

        self.assertIn('Queued 2 loan reminder(s)', out.getvalue())
