"""
Storage access for the scheduling engine.

The engine never touches the ORM directly: availability queries, the booking
guard and day closures receive a SchedulingRepository, constructed per
request (or per test), which hides where schedules, blocks and appointments
live.

- block_intervals is the read-only view of ad-hoc closures for a window
- occupied_intervals is the occupancy of active appointments for a window
- serialized wraps the check-and-insert of one provider in a single unit of work
"""

import logging
from contextlib import contextmanager
from datetime import date, datetime
from typing import Any, ContextManager, List, Optional, Protocol

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, OperationalError, transaction
from django.utils import timezone

from .exceptions import ConcurrencyConflictError, NotFoundError
from .models import Appointment, Client, Provider, ScheduleBlock, Service, WeeklySchedule
from .types import ClientInfo, Interval, ScheduleEntry, ServiceInfo


logger = logging.getLogger(__name__)


class SchedulingRepository(Protocol):
    """Everything the scheduling engine reads and writes."""

    def can_accept_online_bookings(self, provider_id: Any) -> bool:
        """Plan gate. Raises NotFoundError for unknown providers."""

    def get_service(self, provider_id: Any, service_id: Any) -> ServiceInfo:
        """Look up an active service of the provider. Raises NotFoundError."""

    def get_schedule_entry(self, provider_id: Any, day_of_week: int) -> Optional[ScheduleEntry]:
        """Weekly schedule row for a weekday, or None if not configured."""

    def block_intervals(self, provider_id: Any, window: Interval) -> List[Interval]:
        """Blocks intersecting window, ordered by start."""

    def occupied_intervals(self, provider_id: Any, window: Interval) -> List[Interval]:
        """Intervals of non-cancelled appointments intersecting window, ordered by start."""

    def serialized(self, provider_id: Any, day: date) -> ContextManager[None]:
        """Run the enclosed reads and writes atomically, serialized per provider and day."""

    def resolve_or_create_client(self, provider_id: Any, client: ClientInfo) -> Any:
        """Find the provider's client by phone or create it."""

    def add_appointment(self, provider_id: Any, service: ServiceInfo, client: Any, start: datetime) -> Any:
        """Persist a confirmed appointment. Raises ConcurrencyConflictError on storage rejection."""

    def cancel_active_appointments(self, provider_id: Any, window: Interval) -> List[Any]:
        """Cancel every non-cancelled, non-completed appointment intersecting window."""

    def add_block(self, provider_id: Any, window: Interval, reason: str) -> Any:
        """Persist a schedule block."""


class DjangoSchedulingRepository:
    """SchedulingRepository backed by the Django ORM."""

    def __init__(self, using: Optional[str] = None):
        self.using = using

    def _provider(self, provider_id):
        try:
            return Provider.objects.using(self.using).get(pk=provider_id)
        except (Provider.DoesNotExist, DjangoValidationError, ValueError):
            raise NotFoundError("Provider not found.")

    def can_accept_online_bookings(self, provider_id):
        return self._provider(provider_id).can_accept_online_bookings

    def get_service(self, provider_id, service_id):
        try:
            service = Service.objects.using(self.using).get(
                pk=service_id,
                provider_id=provider_id,
                is_active=True
            )
        except (Service.DoesNotExist, DjangoValidationError, ValueError):
            raise NotFoundError("Service not found.")
        return service.to_info()

    def get_schedule_entry(self, provider_id, day_of_week):
        row = (
            WeeklySchedule.objects.using(self.using)
            .for_provider(provider_id)
            .for_weekday(day_of_week)
            .first()
        )
        return row.to_entry() if row is not None else None

    def block_intervals(self, provider_id, window):
        rows = (
            ScheduleBlock.objects.using(self.using)
            .for_provider(provider_id)
            .overlapping(window.start, window.end)
            .order_by('start_at')
            .values_list('start_at', 'end_at')
        )
        return [Interval(start, end) for start, end in rows]

    def occupied_intervals(self, provider_id, window):
        rows = (
            Appointment.objects.using(self.using)
            .for_provider(provider_id)
            .active()
            .overlapping(window.start, window.end)
            .order_by('start_at')
            .values_list('start_at', 'end_at')
        )
        return [Interval(start, end) for start, end in rows]

    @contextmanager
    def serialized(self, provider_id, day):
        """
        Open a transaction holding a row lock on the provider.

        The lock covers every day of the provider, which is coarser than
        needed but keeps booking and day closure from interleaving.
        """
        try:
            with transaction.atomic(using=self.using):
                provider = (
                    Provider.objects.using(self.using)
                    .select_for_update()
                    .filter(pk=provider_id)
                    .first()
                )
                if provider is None:
                    raise NotFoundError("Provider not found.")
                yield
        except OperationalError as exc:
            logger.warning("Lock for provider %s on %s failed: %s", provider_id, day, exc)
            raise ConcurrencyConflictError(
                "Another booking for this provider is in progress. Please retry."
            ) from exc

    def resolve_or_create_client(self, provider_id, client):
        record, created = Client.objects.using(self.using).get_or_create(
            provider_id=provider_id,
            phone=client.phone,
            defaults={'name': client.name, 'email': client.email or ''}
        )
        if not created and client.email and not record.email:
            record.email = client.email
            record.save(update_fields=['email'])
        return record

    def add_appointment(self, provider_id, service, client, start):
        appointment = Appointment(
            provider_id=provider_id,
            client=client,
            service_id=service.id,
            start_at=start,
            duration_minutes=service.duration_minutes,
            price=service.price,
            status=Appointment.STATUS_CONFIRMED,
        )
        try:
            with transaction.atomic(using=self.using):
                appointment.save(using=self.using)
        except IntegrityError as exc:
            raise ConcurrencyConflictError(
                "The slot was booked by a simultaneous request."
            ) from exc
        return appointment

    def cancel_active_appointments(self, provider_id, window):
        appointments = list(
            Appointment.objects.using(self.using)
            .select_for_update()
            .select_related('client', 'service')
            .for_provider(provider_id)
            .cancellable()
            .overlapping(window.start, window.end)
            .order_by('start_at')
        )
        if not appointments:
            return []

        now = timezone.now()
        Appointment.objects.using(self.using).filter(
            pk__in=[appointment.pk for appointment in appointments]
        ).update(status=Appointment.STATUS_CANCELLED, updated_at=now)

        for appointment in appointments:
            appointment.status = Appointment.STATUS_CANCELLED
            appointment.updated_at = now
        return appointments

    def add_block(self, provider_id, window, reason):
        return ScheduleBlock.objects.using(self.using).create(
            provider_id=provider_id,
            start_at=window.start,
            end_at=window.end,
            reason=reason,
        )
