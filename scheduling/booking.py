"""
Booking Guard

Admits or rejects a specific appointment interval for a provider. The
occupancy of the provider is re-read inside a serialized unit of work right
before the insert, so a stale availability answer can never produce a
double booking. Day closures go through the same serialization.
"""

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Any, Iterator, Optional

from .exceptions import NonWorkingDayError, PlanRestrictedError, SlotConflictError, ValidationError
from .schedule import day_of_week_for, resolve_working_day, utc_day_bounds
from .slots import OUTSIDE_WORKING_HOURS, rejection_reason
from .types import (
    DEFAULT_MIN_LEAD_TIME_MINUTES,
    MIN_SERVICE_DURATION_MINUTES,
    ONE_DAY,
    ClientInfo,
    DayClosure,
    Interval,
    WorkingDay,
)


logger = logging.getLogger(__name__)

DEFAULT_CLOSURE_REASON = 'Day closed'

CONFLICT_MESSAGES = {
    OUTSIDE_WORKING_HOURS: "The requested time is outside the provider's working hours.",
    'break': "The requested time overlaps the provider's break.",
    'appointment': "The requested time is already taken by another appointment.",
    'block': "The provider is not available at the requested time.",
    'lead_time': "The requested time is too close to the current time.",
}


class BookingGuard:
    """
    Serialized check-and-insert of appointments and day closures.

    Args:
        repository: SchedulingRepository used for every read and write
        notifier: Optional NotificationDispatcher called after commit
        min_lead_time: Minimum buffer between now and an appointment's start
    """

    def __init__(
        self,
        repository,
        notifier=None,
        min_lead_time: timedelta = timedelta(minutes=DEFAULT_MIN_LEAD_TIME_MINUTES)
    ):
        self.repository = repository
        self.notifier = notifier
        self.min_lead_time = min_lead_time

    def create_appointment(
        self,
        provider_id: Any,
        service_id: Any,
        client: ClientInfo,
        start: datetime,
        now: datetime
    ):
        """
        Book `service_id` for `client` at `start`.

        Returns:
            The persisted appointment

        Raises:
            ValidationError: If start is naive or the service is too short
            NotFoundError: If the provider or service is unknown
            PlanRestrictedError: If the provider cannot take online bookings
            SlotConflictError: If the interval collides at commit time
            ConcurrencyConflictError: If storage rejected a racing insert
        """
        if start.tzinfo is None:
            raise ValidationError("Appointment start must include a UTC offset.")
        start = start.astimezone(timezone.utc)

        if not self.repository.can_accept_online_bookings(provider_id):
            raise PlanRestrictedError("This provider does not accept online bookings.")

        service = self.repository.get_service(provider_id, service_id)
        if service.duration_minutes < MIN_SERVICE_DURATION_MINUTES:
            raise ValidationError(
                f"Service duration must be at least {MIN_SERVICE_DURATION_MINUTES} minutes."
            )

        requested = Interval(start, start + service.duration)

        with self.repository.serialized(provider_id, start.date()):
            reason = self._rejection(provider_id, requested, now)
            if reason is not None:
                logger.info(
                    "Rejected booking for provider %s at %s: %s",
                    provider_id, start.isoformat(), reason
                )
                raise SlotConflictError(CONFLICT_MESSAGES[reason], reason=reason)

            client_record = self.repository.resolve_or_create_client(provider_id, client)
            appointment = self.repository.add_appointment(provider_id, service, client_record, start)

        logger.info(
            "Booked appointment %s for provider %s at %s (%s min)",
            appointment.pk, provider_id, start.isoformat(), service.duration_minutes
        )
        self._notify('appointment_booked', appointment)
        return appointment

    def close_day(self, provider_id: Any, target_date: date, reason: Optional[str] = None) -> DayClosure:
        """
        Close a whole UTC day.

        Cancels every appointment intersecting the day that is not already
        cancelled or completed, and inserts one block spanning the day, in a
        single unit of work. Cancelled clients are notified after commit.
        """
        reason = reason or DEFAULT_CLOSURE_REASON
        day = utc_day_bounds(target_date)

        with self.repository.serialized(provider_id, target_date):
            cancelled = self.repository.cancel_active_appointments(provider_id, day)
            block = self.repository.add_block(provider_id, day, reason)

        logger.info(
            "Closed %s for provider %s, cancelled %d appointment(s)",
            target_date.isoformat(), provider_id, len(cancelled)
        )
        for appointment in cancelled:
            self._notify('appointment_cancelled', appointment, reason)

        return DayClosure(block=block, cancelled=cancelled)

    def _rejection(self, provider_id, requested: Interval, now: datetime) -> Optional[str]:
        appointments = self.repository.occupied_intervals(provider_id, requested)
        blocks = self.repository.block_intervals(provider_id, requested)
        earliest_start = now + self.min_lead_time

        for working_day in self._working_days_around(provider_id, requested.start):
            reason = rejection_reason(requested, working_day, appointments, blocks, earliest_start)
            if reason != OUTSIDE_WORKING_HOURS:
                return reason
        return OUTSIDE_WORKING_HOURS

    def _working_days_around(self, provider_id, start: datetime) -> Iterator[WorkingDay]:
        """Working days that may contain `start`: its own date, then the previous overnight window."""
        for candidate_date in (start.date(), start.date() - ONE_DAY):
            entry = self.repository.get_schedule_entry(provider_id, day_of_week_for(candidate_date))
            try:
                working_day = resolve_working_day(entry, candidate_date)
            except NonWorkingDayError:
                continue
            yield working_day

    def _notify(self, event, *args):
        if self.notifier is None:
            return
        try:
            getattr(self.notifier, event)(*args)
        except Exception:
            logger.exception("Notification %s failed", event)
