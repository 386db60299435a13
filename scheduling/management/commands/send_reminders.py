"""
Management command to email reminders for tomorrow's appointments.

This command should be run hourly (e.g., via cron at minute 0) so every
appointment gets its reminder roughly 24 hours ahead.
"""

from django.core.management.base import BaseCommand
from scheduling import services


class Command(BaseCommand):
    help = 'Send reminders for confirmed appointments starting in 24 hours'

    def handle(self, *args, **options):
        self.stdout.write('Checking appointments that need a reminder...')

        sent = services.send_appointment_reminders()

        self.stdout.write(
            self.style.SUCCESS(
                f'Successfully sent {sent} reminder(s)'
            )
        )
