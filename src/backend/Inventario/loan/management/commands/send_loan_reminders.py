"""Queue reminder emails for loans which are due soon."""

from django.core.management.base import BaseCommand

from loan.tasks import send_due_date_reminders


class Command(BaseCommand):
    """Run from a daily cron job."""

    help = 'Queue reminder emails for loans whose return date is close'

    def handle(self, *args, **options):
        """Queue the reminders and report how many were sent."""
        queued = send_due_date_reminders()
        self.stdout.write(f'Queued {queued} loan reminder(s)')
