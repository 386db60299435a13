"""
Client notifications.

Notifications are best effort: they are sent after the booking or
cancellation has been committed, and a delivery failure is logged and
reported as False, never raised to the caller.
"""

import logging

from django.conf import settings
from django.core.mail import send_mail


logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Sends appointment emails to clients through Django's mail backend."""

    def __init__(self, from_email=None):
        self.from_email = from_email or settings.DEFAULT_FROM_EMAIL

    def appointment_booked(self, appointment):
        subject = f"Your appointment with {appointment.provider.full_name} is confirmed"
        body = (
            f"Hi {appointment.client.name},\n\n"
            f"Your {appointment.service.name} is booked for "
            f"{appointment.start_at:%Y-%m-%d %H:%M} UTC.\n"
        )
        return self._send(appointment, subject, body, 'booking confirmation')

    def appointment_cancelled(self, appointment, reason=''):
        subject = f"Your appointment with {appointment.provider.full_name} was cancelled"
        body = (
            f"Hi {appointment.client.name},\n\n"
            f"Your {appointment.service.name} on "
            f"{appointment.start_at:%Y-%m-%d %H:%M} UTC has been cancelled."
        )
        if reason:
            body += f"\nReason: {reason}"
        body += "\nPlease book a new time at your convenience.\n"
        return self._send(appointment, subject, body, 'cancellation')

    def appointment_reminder(self, appointment):
        subject = f"Reminder: {appointment.service.name} tomorrow"
        body = (
            f"Hi {appointment.client.name},\n\n"
            f"This is a reminder of your {appointment.service.name} with "
            f"{appointment.provider.full_name} on "
            f"{appointment.start_at:%d/%m/%Y %H:%M} UTC.\n"
        )
        return self._send(appointment, subject, body, 'reminder')

    def _send(self, appointment, subject, body, kind):
        recipient = appointment.client.email
        if not recipient:
            logger.debug("No email for client of appointment %s, skipping %s", appointment.pk, kind)
            return False

        try:
            send_mail(subject, body, self.from_email, [recipient], fail_silently=False)
        except Exception:
            logger.exception("Failed to send %s for appointment %s", kind, appointment.pk)
            return False

        logger.info("Sent %s for appointment %s to %s", kind, appointment.pk, recipient)
        return True
