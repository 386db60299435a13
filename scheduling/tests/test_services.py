"""
Database-backed tests for models, the Django repository and the service layer.

Tests cover:
- Model validation and derived fields
- DjangoSchedulingRepository reads, writes and storage-level conflicts
- Booking and day closure through the ORM
- Appointment status transitions
- Weekly schedule and block management
- Reminder delivery
"""

import uuid
from datetime import date, datetime, time, timezone
from unittest import mock

from django.core import mail
from django.core.exceptions import ValidationError as DjangoValidationError
from django.test import TestCase

from scheduling import services
from scheduling.exceptions import (
    ConcurrencyConflictError,
    InvalidStatusTransitionError,
    NotFoundError,
    PlanRestrictedError,
    SlotConflictError,
    ValidationError,
)
from scheduling.models import Appointment, Client, ScheduleBlock, WeeklySchedule
from scheduling.notifications import NotificationDispatcher
from scheduling.repositories import DjangoSchedulingRepository
from scheduling.types import ClientInfo, Interval, ScheduleEntryData

from .fakes import RecordingNotifier
from .utils import (
    create_appointment,
    create_client,
    create_provider,
    create_schedule,
    create_service,
)


TUESDAY = date(2026, 1, 20)
NOW = datetime(2026, 1, 19, 12, 0, tzinfo=timezone.utc)


def utc(day, hour, minute=0):
    return datetime(2026, 1, day, hour, minute, tzinfo=timezone.utc)


class ModelTests(TestCase):
    """Test model validation and derived values."""

    def setUp(self):
        self.provider = create_provider()
        self.service = create_service(self.provider, duration_minutes=45)
        self.client_record = create_client(self.provider)

    def test_appointment_end_derived_from_duration(self):
        """Test that end_at is start_at plus the frozen duration."""
        appointment = create_appointment(self.provider, self.client_record, self.service, utc(20, 10))

        self.assertEqual(appointment.end_at, utc(20, 10, 45))
        self.assertEqual(appointment.status, Appointment.STATUS_CONFIRMED)
        self.assertTrue(appointment.is_active)
        self.assertFalse(appointment.is_terminal)

    def test_frozen_duration_survives_service_change(self):
        """Test that editing the service leaves existing appointments alone."""
        appointment = create_appointment(self.provider, self.client_record, self.service, utc(20, 10))

        self.service.duration_minutes = 90
        self.service.save()
        appointment.refresh_from_db()

        self.assertEqual(appointment.duration_minutes, 45)
        self.assertEqual(appointment.end_at, utc(20, 10, 45))

    def test_schedule_half_break_rejected(self):
        """Test that a break start without an end fails validation."""
        with self.assertRaises(DjangoValidationError):
            create_schedule(self.provider, 2, break_start=time(13, 0), break_end=None)

    def test_schedule_unique_per_weekday(self):
        """Test that a weekday can be configured only once."""
        create_schedule(self.provider, 2)

        with self.assertRaises(DjangoValidationError):
            create_schedule(self.provider, 2)

    def test_schedule_day_name(self):
        """Test weekday names and conversion to a schedule entry."""
        row = create_schedule(self.provider, 0)

        self.assertEqual(row.day_name, 'Sunday')
        self.assertEqual(row.to_entry().start_time, time(9, 0))

    def test_block_end_must_follow_start(self):
        """Test that an empty block fails validation."""
        with self.assertRaises(DjangoValidationError):
            ScheduleBlock.objects.create(provider=self.provider, start_at=utc(20, 12), end_at=utc(20, 12))

    def test_short_service_rejected(self):
        """Test that a service under 5 minutes fails validation."""
        with self.assertRaises(DjangoValidationError):
            create_service(self.provider, duration_minutes=4).full_clean()

    def test_plan_gate(self):
        """Test that only an active premium subscription takes online bookings."""
        self.assertTrue(self.provider.can_accept_online_bookings)

        self.provider.plan = self.provider.PLAN_FREE
        self.assertFalse(self.provider.can_accept_online_bookings)

        self.provider.plan = self.provider.PLAN_PREMIUM
        self.provider.subscription_active = False
        self.assertFalse(self.provider.can_accept_online_bookings)


class DjangoRepositoryTests(TestCase):
    """Test DjangoSchedulingRepository against the database."""

    def setUp(self):
        self.repository = DjangoSchedulingRepository()
        self.provider = create_provider()
        self.service = create_service(self.provider)
        self.client_record = create_client(self.provider)

    def test_occupied_intervals_skip_cancelled(self):
        """Test that occupancy ignores cancelled and out of window appointments."""
        create_appointment(self.provider, self.client_record, self.service, utc(20, 10))
        create_appointment(
            self.provider, self.client_record, self.service, utc(20, 11),
            status=Appointment.STATUS_CANCELLED
        )
        create_appointment(self.provider, self.client_record, self.service, utc(21, 10))

        intervals = self.repository.occupied_intervals(
            self.provider.pk, Interval(utc(20, 0), utc(21, 0))
        )

        self.assertEqual(intervals, [Interval(utc(20, 10), utc(20, 10, 30))])

    def test_block_intervals_touching_window_excluded(self):
        """Test that a block ending at the window start is not returned."""
        ScheduleBlock.objects.create(provider=self.provider, start_at=utc(19, 0), end_at=utc(20, 0))
        ScheduleBlock.objects.create(provider=self.provider, start_at=utc(20, 15), end_at=utc(22, 0))

        intervals = self.repository.block_intervals(self.provider.pk, Interval(utc(20, 0), utc(21, 0)))

        self.assertEqual(intervals, [Interval(utc(20, 15), utc(22, 0))])

    def test_duplicate_start_is_concurrency_conflict(self):
        """Test that the partial unique index rejects a second active start."""
        info = self.service.to_info()
        self.repository.add_appointment(self.provider.pk, info, self.client_record, utc(20, 10))

        with self.assertRaises(ConcurrencyConflictError):
            self.repository.add_appointment(self.provider.pk, info, self.client_record, utc(20, 10))

        self.assertEqual(Appointment.objects.for_provider(self.provider.pk).count(), 1)

    def test_duplicate_start_allowed_after_cancellation(self):
        """Test that a cancelled appointment frees its start time."""
        info = self.service.to_info()
        first = self.repository.add_appointment(self.provider.pk, info, self.client_record, utc(20, 10))
        first.status = Appointment.STATUS_CANCELLED
        first.save()

        second = self.repository.add_appointment(self.provider.pk, info, self.client_record, utc(20, 10))

        self.assertNotEqual(first.pk, second.pk)

    def test_unknown_provider(self):
        """Test lookups and locks for an unknown provider."""
        with self.assertRaises(NotFoundError):
            self.repository.can_accept_online_bookings(uuid.uuid4())

        with self.assertRaises(NotFoundError):
            with self.repository.serialized(uuid.uuid4(), TUESDAY):
                pass

    def test_inactive_service_not_found(self):
        """Test that an inactive service cannot be booked."""
        self.service.is_active = False
        self.service.save()

        with self.assertRaises(NotFoundError):
            self.repository.get_service(self.provider.pk, self.service.pk)

    def test_service_of_other_provider_not_found(self):
        """Test that a service is only found for its own provider."""
        other = create_provider(full_name='Other')

        with self.assertRaises(NotFoundError):
            self.repository.get_service(other.pk, self.service.pk)

    def test_resolve_client_by_phone(self):
        """Test that an existing client is reused and a missing email filled in."""
        self.client_record.email = ''
        self.client_record.save()

        record = self.repository.resolve_or_create_client(
            self.provider.pk,
            ClientInfo(phone=self.client_record.phone, name='Someone', email='new@example.com')
        )

        self.assertEqual(record.pk, self.client_record.pk)
        self.assertEqual(record.name, 'Alex')
        self.assertEqual(record.email, 'new@example.com')

    def test_resolve_client_creates(self):
        """Test that an unknown phone creates a new client."""
        record = self.repository.resolve_or_create_client(
            self.provider.pk, ClientInfo(phone='+15559999', name='Sam')
        )

        self.assertEqual(record.name, 'Sam')
        self.assertEqual(Client.objects.filter(provider=self.provider).count(), 2)


class BookingServiceTests(TestCase):
    """Test booking and day closure through the ORM."""

    def setUp(self):
        self.provider = create_provider()
        self.service = create_service(self.provider)
        create_schedule(self.provider, 2)
        self.client_info = ClientInfo(phone='+15550001', name='Alex', email='alex@example.com')

    def book(self, start, client=None):
        return services.create_appointment(
            self.provider.pk, self.service.pk, client or self.client_info, start,
            now=NOW, repository=DjangoSchedulingRepository()
        )

    def test_create_appointment(self):
        """Test booking through the ORM freezes price and links the client."""
        appointment = self.book(utc(20, 10))

        appointment.refresh_from_db()
        self.assertEqual(appointment.status, Appointment.STATUS_CONFIRMED)
        self.assertEqual(appointment.end_at, utc(20, 10, 30))
        self.assertEqual(appointment.price, self.service.price)
        self.assertEqual(appointment.client.phone, '+15550001')

    def test_conflict_after_booking(self):
        """Test that a stale availability answer cannot double book."""
        self.book(utc(20, 10))

        with self.assertRaises(SlotConflictError) as ctx:
            self.book(utc(20, 10, 15), client=ClientInfo(phone='+15550002', name='Sam'))

        self.assertEqual(ctx.exception.reason, 'appointment')
        self.assertEqual(Appointment.objects.count(), 1)

    def test_block_conflict(self):
        """Test that a stored block rejects a booking."""
        services.create_block(self.provider.pk, utc(20, 15), utc(20, 16), reason='Dentist')

        with self.assertRaises(SlotConflictError) as ctx:
            self.book(utc(20, 15))

        self.assertEqual(ctx.exception.reason, 'block')

    def test_plan_restricted(self):
        """Test that a free plan provider cannot be booked."""
        self.provider.plan = self.provider.PLAN_FREE
        self.provider.save()

        with self.assertRaises(PlanRestrictedError):
            self.book(utc(20, 10))

    def test_availability_through_orm(self):
        """Test availability computed from stored rows."""
        self.book(utc(20, 10))

        result = services.get_availability(
            self.provider.pk, self.service.pk, target_date=TUESDAY, now=NOW
        )

        self.assertIn('09:30', result.slots)
        self.assertNotIn('10:00', result.slots)
        self.assertNotIn('13:00', result.slots)

    def test_booking_confirmation_email(self):
        """Test that only the booking with a notifier sends an email."""
        self.book(utc(20, 10))
        services.create_appointment(
            self.provider.pk, self.service.pk, self.client_info, utc(20, 11),
            now=NOW, notifier=NotificationDispatcher()
        )

        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ['alex@example.com'])

    def test_close_day(self):
        """Test closing 2026-01-20 with 3 active appointments."""
        booked = [
            self.book(utc(20, hour), client=ClientInfo(phone=f'+1555000{hour}', name=f'C{hour}'))
            for hour in (9, 11, 15)
        ]
        client = Client.objects.get(phone='+15550009')
        untouched = create_appointment(self.provider, client, self.service, utc(21, 10))

        closure = services.close_day(self.provider.pk, TUESDAY, reason='Family emergency')

        self.assertEqual(closure.cancelled_count, 3)
        for appointment in booked:
            appointment.refresh_from_db()
            self.assertEqual(appointment.status, Appointment.STATUS_CANCELLED)
        untouched.refresh_from_db()
        self.assertEqual(untouched.status, Appointment.STATUS_CONFIRMED)

        block = ScheduleBlock.objects.get(provider=self.provider)
        self.assertEqual(block.start_at, utc(20, 0))
        self.assertEqual(block.end_at, utc(21, 0))
        self.assertEqual(block.reason, 'Family emergency')

        result = services.get_availability(self.provider.pk, self.service.pk, target_date=TUESDAY, now=NOW)
        self.assertEqual(result.slots, [])
        self.assertEqual(result.reason, 'no_free_slots')

    def test_close_day_notifies_cancelled_clients(self):
        """Test that cancelled clients get an email with the reason."""
        self.book(utc(20, 9))

        services.close_day(self.provider.pk, TUESDAY, notifier=NotificationDispatcher())

        self.assertEqual(len(mail.outbox), 1)
        self.assertIn('cancelled', mail.outbox[0].subject)
        self.assertIn('Day closed', mail.outbox[0].body)


class StatusTransitionTests(TestCase):
    """Test completing, cancelling and marking no-shows."""

    def setUp(self):
        provider = create_provider()
        service = create_service(provider)
        client = create_client(provider)
        self.appointment = create_appointment(provider, client, service, utc(20, 10))

    def test_complete_after_start(self):
        """Test completing an appointment that has started."""
        services.complete_appointment(self.appointment, now=utc(20, 10, 30))

        self.appointment.refresh_from_db()
        self.assertEqual(self.appointment.status, Appointment.STATUS_COMPLETED)

    def test_complete_before_start_rejected(self):
        """Test that a future appointment cannot be completed."""
        with self.assertRaises(InvalidStatusTransitionError):
            services.complete_appointment(self.appointment, now=utc(20, 9))

    def test_complete_cancelled_rejected(self):
        """Test that a cancelled appointment cannot be completed."""
        services.cancel_appointment(self.appointment)

        with self.assertRaises(InvalidStatusTransitionError):
            services.complete_appointment(self.appointment, now=utc(20, 11))

    def test_cancel_frees_interval(self):
        """Test that cancelling removes the appointment from occupancy."""
        services.cancel_appointment(self.appointment)

        self.assertFalse(Appointment.objects.active().exists())

    def test_cancel_completed_rejected(self):
        """Test that a completed appointment cannot be cancelled."""
        services.complete_appointment(self.appointment, now=utc(20, 11))

        with self.assertRaises(InvalidStatusTransitionError):
            services.cancel_appointment(self.appointment)

    def test_cancel_twice_rejected(self):
        """Test that cancelling twice is rejected."""
        services.cancel_appointment(self.appointment)

        with self.assertRaises(InvalidStatusTransitionError):
            services.cancel_appointment(self.appointment)

    def test_no_show_keeps_occupying(self):
        """Test that a no-show still counts as occupancy."""
        services.mark_no_show(self.appointment)

        self.assertEqual(Appointment.objects.active().get().status, Appointment.STATUS_NO_SHOW)

    def test_no_show_of_cancelled_rejected(self):
        """Test that a cancelled appointment cannot become a no-show."""
        services.cancel_appointment(self.appointment)

        with self.assertRaises(InvalidStatusTransitionError):
            services.mark_no_show(self.appointment)

    def test_cancel_notification_failure_not_surfaced(self):
        """Test that a failing notifier does not fail an already committed cancellation."""
        cancelled = services.cancel_appointment(self.appointment, notifier=RecordingNotifier(fail=True))

        self.assertEqual(cancelled.status, Appointment.STATUS_CANCELLED)
        self.appointment.refresh_from_db()
        self.assertEqual(self.appointment.status, Appointment.STATUS_CANCELLED)

    def test_cancel_notifies_client(self):
        """Test that the client is notified once the cancellation is saved."""
        notifier = RecordingNotifier()

        services.cancel_appointment(self.appointment, notifier=notifier)

        self.assertEqual([appointment.pk for appointment, _ in notifier.cancelled], [self.appointment.pk])


class ScheduleManagementTests(TestCase):
    """Test weekly schedule and block management."""

    def setUp(self):
        self.provider = create_provider()

    def test_update_weekly_schedule_upserts(self):
        """Test that existing rows are updated and new ones created."""
        create_schedule(self.provider, 2)

        rows = services.update_weekly_schedule(self.provider.pk, [
            ScheduleEntryData(day_of_week=2, start_time=time(10, 0), end_time=time(19, 0)),
            ScheduleEntryData(day_of_week=5, start_time=time(18, 0), end_time=time(2, 0)),
        ])

        self.assertEqual(len(rows), 2)
        self.assertEqual(WeeklySchedule.objects.for_provider(self.provider.pk).count(), 2)
        tuesday = WeeklySchedule.objects.get(provider=self.provider, day_of_week=2)
        self.assertEqual(tuesday.start_time, time(10, 0))
        self.assertIsNone(tuesday.break_start)

    def test_update_weekly_schedule_rejects_duplicates(self):
        """Test that a repeated weekday saves nothing."""
        with self.assertRaises(ValidationError):
            services.update_weekly_schedule(self.provider.pk, [
                ScheduleEntryData(day_of_week=2, start_time=time(10, 0), end_time=time(19, 0)),
                ScheduleEntryData(day_of_week=2, start_time=time(9, 0), end_time=time(17, 0)),
            ])

        self.assertFalse(WeeklySchedule.objects.exists())

    def test_update_weekly_schedule_rejects_half_break(self):
        """Test that a break without an end is rejected."""
        with self.assertRaises(ValidationError):
            services.update_weekly_schedule(self.provider.pk, [
                ScheduleEntryData(
                    day_of_week=1, start_time=time(9, 0), end_time=time(17, 0), break_start=time(12, 0)
                ),
            ])

    def test_get_weekly_schedule_ordered(self):
        """Test that rows come back ordered by weekday."""
        create_schedule(self.provider, 5)
        create_schedule(self.provider, 1)

        rows = services.get_weekly_schedule(self.provider.pk)

        self.assertEqual([row.day_of_week for row in rows], [1, 5])

    def test_unknown_provider(self):
        """Test reading the schedule of an unknown provider."""
        with self.assertRaises(NotFoundError):
            services.get_weekly_schedule(uuid.uuid4())

    def test_blocks_lifecycle(self):
        """Test creating, listing and deleting blocks."""
        past = services.create_block(self.provider.pk, utc(1, 9), utc(1, 10))
        upcoming = services.create_block(self.provider.pk, utc(25, 0), utc(27, 0), reason='Vacation')

        listed = services.list_upcoming_blocks(self.provider.pk, now=utc(10, 0))
        self.assertEqual([block.pk for block in listed], [upcoming.pk])
        self.assertEqual(listed[0].reason, 'Vacation')

        services.delete_block(self.provider.pk, upcoming.pk)
        self.assertFalse(ScheduleBlock.objects.filter(pk=upcoming.pk).exists())
        self.assertTrue(ScheduleBlock.objects.filter(pk=past.pk).exists())

    def test_delete_block_of_other_provider(self):
        """Test that a provider cannot delete another provider's block."""
        block = services.create_block(self.provider.pk, utc(25, 0), utc(26, 0))
        other = create_provider(full_name='Other')

        with self.assertRaises(NotFoundError):
            services.delete_block(other.pk, block.pk)

    def test_list_appointments_for_day(self):
        """Test listing appointments for one day and for all days."""
        service = create_service(self.provider)
        client = create_client(self.provider)
        first = create_appointment(self.provider, client, service, utc(20, 9))
        create_appointment(self.provider, client, service, utc(21, 9))

        appointments = services.list_appointments(self.provider.pk, TUESDAY)

        self.assertEqual([a.pk for a in appointments], [first.pk])
        self.assertEqual(len(services.list_appointments(self.provider.pk)), 2)


class ReminderTests(TestCase):
    """Test reminder delivery for appointments starting in 24 hours."""

    def setUp(self):
        self.provider = create_provider()
        self.service = create_service(self.provider)
        self.client_record = create_client(self.provider)
        self.now = utc(19, 10, 20)

    def test_sends_reminder_in_window(self):
        """Test 10:20 today reminds appointments starting 10:00-11:00 tomorrow."""
        due = create_appointment(self.provider, self.client_record, self.service, utc(20, 10, 30))
        create_appointment(self.provider, self.client_record, self.service, utc(20, 11))

        sent = services.send_appointment_reminders(now=self.now)

        self.assertEqual(sent, 1)
        self.assertEqual(len(mail.outbox), 1)
        self.assertIn('Reminder', mail.outbox[0].subject)
        due.refresh_from_db()
        self.assertTrue(due.reminder_sent)

    def test_reminder_sent_once(self):
        """Test that a second run does not repeat the reminder."""
        create_appointment(self.provider, self.client_record, self.service, utc(20, 10))

        services.send_appointment_reminders(now=self.now)
        sent_again = services.send_appointment_reminders(now=self.now)

        self.assertEqual(sent_again, 0)
        self.assertEqual(len(mail.outbox), 1)

    def test_skips_clients_without_email(self):
        """Test that clients without email are skipped."""
        client = create_client(self.provider, phone='+15550002', email='')
        create_appointment(self.provider, client, self.service, utc(20, 10))

        self.assertEqual(services.send_appointment_reminders(now=self.now), 0)

    def test_skips_free_plan(self):
        """Test that free plan providers send no reminders."""
        free = create_provider(full_name='Free', plan='free')
        service = create_service(free)
        client = create_client(free)
        create_appointment(free, client, service, utc(20, 10))

        self.assertEqual(services.send_appointment_reminders(now=self.now), 0)

    def test_skips_inactive_provider(self):
        """Test that a deactivated premium provider sends no reminders."""
        self.provider.is_active = False
        self.provider.save()
        create_appointment(self.provider, self.client_record, self.service, utc(20, 10))

        self.assertEqual(services.send_appointment_reminders(now=self.now), 0)
        self.assertEqual(len(mail.outbox), 0)

    def test_skips_cancelled(self):
        """Test that cancelled appointments get no reminder."""
        create_appointment(
            self.provider, self.client_record, self.service, utc(20, 10),
            status=Appointment.STATUS_CANCELLED
        )

        self.assertEqual(services.send_appointment_reminders(now=self.now), 0)

    def test_failed_delivery_not_marked(self):
        """Test that a failed delivery leaves the reminder pending."""
        appointment = create_appointment(self.provider, self.client_record, self.service, utc(20, 10))

        with mock.patch('scheduling.notifications.send_mail', side_effect=OSError('smtp down')):
            sent = services.send_appointment_reminders(now=self.now)

        self.assertEqual(sent, 0)
        appointment.refresh_from_db()
        self.assertFalse(appointment.reminder_sent)


class NotificationDispatcherTests(TestCase):
    """Test best-effort email delivery."""

    def setUp(self):
        provider = create_provider()
        service = create_service(provider)
        self.with_email = create_appointment(provider, create_client(provider), service, utc(20, 10))
        self.without_email = create_appointment(
            provider, create_client(provider, phone='+15550002', email=''), service, utc(20, 11)
        )
        self.dispatcher = NotificationDispatcher(from_email='shop@example.com')

    def test_booked(self):
        """Test the booking confirmation uses the configured sender."""
        self.assertTrue(self.dispatcher.appointment_booked(self.with_email))
        self.assertEqual(mail.outbox[0].from_email, 'shop@example.com')

    def test_cancelled_with_reason(self):
        """Test that the cancellation email includes the reason."""
        self.assertTrue(self.dispatcher.appointment_cancelled(self.with_email, 'Flooded shop'))
        self.assertIn('Flooded shop', mail.outbox[0].body)

    def test_no_email_skipped(self):
        """Test that clients without email are skipped."""
        self.assertFalse(self.dispatcher.appointment_booked(self.without_email))
        self.assertEqual(len(mail.outbox), 0)

    def test_failure_reported_not_raised(self):
        """Test that a mail failure is reported as False."""
        with mock.patch('scheduling.notifications.send_mail', side_effect=OSError('smtp down')):
            self.assertFalse(self.dispatcher.appointment_reminder(self.with_email))
