"""
Service layer for scheduling business logic.
Services are framework-agnostic and handle all business operations.

The availability query, booking and day closure run against an explicitly
passed SchedulingRepository (the Django one by default) so they can be
exercised against in-memory fakes.
"""

import logging
import uuid
from datetime import date, datetime, timedelta
from typing import List, Optional

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from .booking import BookingGuard
from .exceptions import (
    InvalidStatusTransitionError,
    NonWorkingDayError,
    NotFoundError,
    PlanRestrictedError,
    ValidationError,
)
from .models import Appointment, Provider, ScheduleBlock, WeeklySchedule
from .notifications import NotificationDispatcher
from .repositories import DjangoSchedulingRepository
from .schedule import (
    day_of_week_for,
    format_wall_clock,
    get_zone,
    local_today,
    resolve_working_day,
    utc_day_bounds,
)
from .slots import generate_slots
from .types import (
    DEFAULT_MIN_LEAD_TIME_MINUTES,
    DEFAULT_STEP_MINUTES,
    AvailabilityResult,
    ClientInfo,
    DayClosure,
    Interval,
    ScheduleEntryData,
)


logger = logging.getLogger(__name__)

NO_FREE_SLOTS = 'no_free_slots'


def _step_minutes() -> int:
    return getattr(settings, 'SCHEDULING_SLOT_STEP_MINUTES', DEFAULT_STEP_MINUTES)


def _min_lead_time() -> timedelta:
    return timedelta(
        minutes=getattr(settings, 'SCHEDULING_MIN_LEAD_TIME_MINUTES', DEFAULT_MIN_LEAD_TIME_MINUTES)
    )


def get_availability(
    provider_id,
    service_id,
    target_date: Optional[date] = None,
    time_zone: str = 'UTC',
    now: Optional[datetime] = None,
    repository=None
) -> AvailabilityResult:
    """
    Get bookable slot starts of a provider for one service on one date.

    Args:
        provider_id: Provider UUID
        service_id: Service to book (its duration sizes the slots)
        target_date: Date to query (None = today in the requester's time zone)
        time_zone: Requester's IANA time zone, used for display only
        now: Current instant (None = timezone.now())
        repository: SchedulingRepository (None = Django ORM)

    Returns:
        AvailabilityResult with HH:mm slots in the requester's time zone,
        or an empty list and a reason code

    Raises:
        ValidationError: If the identifiers or time zone are malformed
        NotFoundError: If the provider or service is unknown
        PlanRestrictedError: If the provider cannot take online bookings
    """
    provider_id = _validate_uuid(provider_id)
    get_zone(time_zone)
    now = now or timezone.now()
    if target_date is None:
        target_date = local_today(time_zone, now)
    repository = repository or DjangoSchedulingRepository()

    if not repository.can_accept_online_bookings(provider_id):
        raise PlanRestrictedError("This provider does not accept online bookings.")

    service = repository.get_service(provider_id, service_id)
    entry = repository.get_schedule_entry(provider_id, day_of_week_for(target_date))

    try:
        working_day = resolve_working_day(entry, target_date)
    except NonWorkingDayError as exc:
        return AvailabilityResult(date=target_date, time_zone=time_zone, reason=exc.code)

    appointments = repository.occupied_intervals(provider_id, working_day.work)
    blocks = repository.block_intervals(provider_id, working_day.work)

    starts = generate_slots(
        working_day,
        appointments,
        blocks,
        service.duration,
        now,
        step_minutes=_step_minutes(),
        min_lead_time=_min_lead_time(),
    )

    return AvailabilityResult(
        date=target_date,
        time_zone=time_zone,
        slots=[format_wall_clock(start, time_zone) for start in starts],
        slot_starts=starts,
        reason=None if starts else NO_FREE_SLOTS,
    )


def create_appointment(
    provider_id,
    service_id,
    client: ClientInfo,
    start: datetime,
    now: Optional[datetime] = None,
    repository=None,
    notifier=None
):
    """
    Book an appointment after re-validating the interval under serialization.

    Raises:
        SlotConflictError: If the interval collides with an appointment, break or block
        ConcurrencyConflictError: If a simultaneous booking won the race
    """
    provider_id = _validate_uuid(provider_id)
    _validate_client(client)

    guard = BookingGuard(
        repository or DjangoSchedulingRepository(),
        notifier=notifier,
        min_lead_time=_min_lead_time(),
    )
    return guard.create_appointment(provider_id, service_id, client, start, now or timezone.now())


def close_day(
    provider_id,
    target_date: date,
    reason: Optional[str] = None,
    repository=None,
    notifier=None
) -> DayClosure:
    """
    Cancel all open appointments of a UTC day and block the whole day.

    Returns:
        DayClosure with the created block and the cancelled appointments
    """
    provider_id = _validate_uuid(provider_id)
    guard = BookingGuard(repository or DjangoSchedulingRepository(), notifier=notifier)
    return guard.close_day(provider_id, target_date, reason)


@transaction.atomic
def complete_appointment(appointment: Appointment, now: Optional[datetime] = None) -> Appointment:
    """
    Mark an appointment as completed.

    Raises:
        InvalidStatusTransitionError: If the appointment is not pending/confirmed
            or has not started yet
    """
    now = now or timezone.now()

    if appointment.status not in (Appointment.STATUS_PENDING, Appointment.STATUS_CONFIRMED):
        raise InvalidStatusTransitionError(
            f"Cannot complete an appointment that is {appointment.status}."
        )

    if appointment.start_at >= now:
        raise InvalidStatusTransitionError("Cannot complete an appointment that has not started.")

    appointment.status = Appointment.STATUS_COMPLETED
    appointment.save()
    return appointment


def cancel_appointment(appointment: Appointment, notifier=None) -> Appointment:
    """
    Cancel an appointment. The client is notified after commit.

    Raises:
        InvalidStatusTransitionError: If the appointment is completed or already cancelled
    """
    if appointment.is_terminal:
        raise InvalidStatusTransitionError(
            f"Cannot cancel an appointment that is {appointment.status}."
        )

    with transaction.atomic():
        appointment.status = Appointment.STATUS_CANCELLED
        appointment.save()

    logger.info("Cancelled appointment %s", appointment.pk)
    if notifier is not None:
        try:
            notifier.appointment_cancelled(appointment)
        except Exception:
            logger.exception("Notification appointment_cancelled failed")
    return appointment


@transaction.atomic
def mark_no_show(appointment: Appointment) -> Appointment:
    """
    Mark an appointment as a no-show. Does not touch collision logic.

    Raises:
        InvalidStatusTransitionError: If the appointment is not pending/confirmed
    """
    if appointment.status not in (Appointment.STATUS_PENDING, Appointment.STATUS_CONFIRMED):
        raise InvalidStatusTransitionError(
            f"Cannot mark an appointment that is {appointment.status} as no-show."
        )

    appointment.status = Appointment.STATUS_NO_SHOW
    appointment.save()
    return appointment


def list_appointments(provider_id, target_date: Optional[date] = None) -> List[Appointment]:
    """
    Get a provider's appointments, optionally only those starting on a UTC day.

    Returns:
        Appointments ordered by start, with client and service loaded
    """
    provider = get_provider(provider_id)
    queryset = Appointment.objects.for_provider(provider.pk).select_related('client', 'service')

    if target_date is not None:
        day = utc_day_bounds(target_date)
        queryset = queryset.starting_between(day.start, day.end)

    return list(queryset.order_by('start_at'))


def get_provider(provider_id) -> Provider:
    provider_id = _validate_uuid(provider_id)
    try:
        return Provider.objects.get(pk=provider_id)
    except Provider.DoesNotExist:
        raise NotFoundError("Provider not found.")


def get_weekly_schedule(provider_id) -> List[WeeklySchedule]:
    """Get a provider's weekly schedule rows ordered by weekday."""
    provider = get_provider(provider_id)
    return list(WeeklySchedule.objects.for_provider(provider.pk).order_by('day_of_week'))


@transaction.atomic
def update_weekly_schedule(provider_id, entries: List[ScheduleEntryData]) -> List[WeeklySchedule]:
    """
    Create or replace weekly schedule rows. All rows are saved or none.

    Args:
        provider_id: Provider UUID
        entries: One ScheduleEntryData per weekday to upsert

    Returns:
        The saved WeeklySchedule rows, in input order

    Raises:
        ValidationError: If a weekday repeats or a break is half configured
    """
    provider = get_provider(provider_id)
    _validate_schedule_entries(entries)

    rows = []
    for entry in entries:
        row, _ = WeeklySchedule.objects.update_or_create(
            provider=provider,
            day_of_week=entry.day_of_week,
            defaults={
                'is_work_day': entry.is_work_day,
                'start_time': entry.start_time,
                'end_time': entry.end_time,
                'break_start': entry.break_start,
                'break_end': entry.break_end,
            }
        )
        rows.append(row)

    logger.info("Updated %d weekly schedule row(s) for provider %s", len(rows), provider.pk)
    return rows


def create_block(
    provider_id,
    start_datetime: datetime,
    end_datetime: datetime,
    reason: str = '',
    repository=None
):
    """
    Block a range of time (vacation, emergency closure).

    Existing appointments inside the range are left untouched; use close_day
    to cancel them.

    Raises:
        ValidationError: If end is not after start or either is naive
    """
    provider_id = _validate_uuid(provider_id)
    _validate_range(start_datetime, end_datetime)
    repository = repository or DjangoSchedulingRepository()

    with repository.serialized(provider_id, start_datetime.date()):
        block = repository.add_block(
            provider_id,
            Interval(start_datetime, end_datetime),
            reason or 'Unavailable'
        )

    logger.info(
        "Blocked provider %s from %s to %s",
        provider_id, start_datetime.isoformat(), end_datetime.isoformat()
    )
    return block


def list_upcoming_blocks(provider_id, now: Optional[datetime] = None) -> List[ScheduleBlock]:
    """Get blocks of a provider that have not ended yet, ordered by start."""
    provider = get_provider(provider_id)
    return list(
        ScheduleBlock.objects.for_provider(provider.pk)
        .not_finished(now or timezone.now())
        .order_by('start_at')
    )


@transaction.atomic
def delete_block(provider_id, block_id) -> None:
    """
    Delete a block owned by the provider.

    Raises:
        NotFoundError: If the block does not exist or belongs to another provider
    """
    provider_id = _validate_uuid(provider_id)
    deleted, _ = ScheduleBlock.objects.for_provider(provider_id).filter(pk=block_id).delete()
    if not deleted:
        raise NotFoundError("Block not found.")


def send_appointment_reminders(now: Optional[datetime] = None, notifier=None) -> int:
    """
    Send reminders for confirmed appointments starting in the clock hour 24h from now.

    Only active premium providers send reminders, and only to clients with an email.

    Returns:
        Number of reminders sent
    """
    now = now or timezone.now()
    notifier = notifier or NotificationDispatcher()

    window_start = (now + timedelta(hours=24)).replace(minute=0, second=0, microsecond=0)
    window_end = window_start + timedelta(hours=1)

    appointments = (
        Appointment.objects.awaiting_reminder()
        .starting_between(window_start, window_end)
        .filter(
            provider__plan=Provider.PLAN_PREMIUM,
            provider__subscription_active=True,
            provider__is_active=True,
        )
        .exclude(client__email='')
        .select_related('client', 'service', 'provider')
    )

    sent = 0
    for appointment in appointments:
        if notifier.appointment_reminder(appointment):
            Appointment.objects.filter(pk=appointment.pk).update(reminder_sent=True)
            sent += 1

    if sent:
        logger.info("Sent %d appointment reminder(s)", sent)
    return sent


def _validate_uuid(value) -> uuid.UUID:
    """Validate a provider identifier."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        raise ValidationError(f"Invalid provider id: {value}")


def _validate_client(client: ClientInfo) -> None:
    """Validate client details supplied with a booking."""
    if not client.name or not client.name.strip():
        raise ValidationError("Client name is required.")

    if not client.phone or not client.phone.strip():
        raise ValidationError("Client phone is required.")


def _validate_range(start_datetime: datetime, end_datetime: datetime) -> None:
    """Validate an absolute time range."""
    if start_datetime.tzinfo is None or end_datetime.tzinfo is None:
        raise ValidationError("Datetimes must include a UTC offset.")

    if end_datetime <= start_datetime:
        raise ValidationError("End must be after start.")


def _validate_schedule_entries(entries: List[ScheduleEntryData]) -> None:
    """Validate weekly schedule update data."""
    seen = set()
    for entry in entries:
        if not 0 <= entry.day_of_week <= 6:
            raise ValidationError("Weekday must be between 0 (Sunday) and 6 (Saturday)")

        if entry.day_of_week in seen:
            raise ValidationError(f"Weekday {entry.day_of_week} appears more than once.")
        seen.add(entry.day_of_week)

        if (entry.break_start is None) != (entry.break_end is None):
            raise ValidationError("Break start and end must be set together.")
