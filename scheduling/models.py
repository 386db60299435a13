"""
Models for the barber booking system.

All instants are stored as timezone-aware UTC datetimes. Weekly schedule
times of day are zone-less UTC wall-clock values.
- Provider owns its weekly schedule, blocks, services, clients and appointments
- Appointment freezes the service duration and price at creation time
"""

import uuid
from datetime import timedelta

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from .managers import AppointmentManager, ScheduleBlockManager, WeeklyScheduleManager
from .types import MIN_SERVICE_DURATION_MINUTES, WEEKDAY_CHOICES, ScheduleEntry, ServiceInfo


class Provider(models.Model):
    """An independent service provider (barber) taking online bookings."""

    PLAN_FREE = 'free'
    PLAN_PREMIUM = 'premium'
    PLAN_CHOICES = [
        (PLAN_FREE, 'Free'),
        (PLAN_PREMIUM, 'Premium'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    full_name = models.CharField(max_length=200)
    email = models.EmailField(blank=True, default='')

    plan = models.CharField(max_length=20, choices=PLAN_CHOICES, default=PLAN_FREE)
    subscription_active = models.BooleanField(
        default=False,
        help_text="Whether the provider's subscription is paid up"
    )
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['full_name']

    def __str__(self):
        return self.full_name

    @property
    def is_premium(self):
        return self.subscription_active and self.plan == self.PLAN_PREMIUM

    @property
    def can_accept_online_bookings(self):
        """Only active premium providers receive online bookings."""
        return self.is_active and self.is_premium


class WeeklySchedule(models.Model):
    """
    Recurring working hours of a provider for one weekday.

    If end_time is not after start_time the shop closes on the next calendar day.
    """

    provider = models.ForeignKey(
        Provider,
        on_delete=models.CASCADE,
        related_name='weekly_schedule'
    )
    day_of_week = models.IntegerField(
        choices=WEEKDAY_CHOICES,
        help_text="Day of week (0=Sunday, 6=Saturday)"
    )
    is_work_day = models.BooleanField(default=True)
    start_time = models.TimeField(help_text="Opening time (UTC wall clock)")
    end_time = models.TimeField(help_text="Closing time (UTC wall clock)")
    break_start = models.TimeField(null=True, blank=True)
    break_end = models.TimeField(null=True, blank=True)

    objects = WeeklyScheduleManager()

    class Meta:
        ordering = ['provider', 'day_of_week']
        constraints = [
            models.UniqueConstraint(
                fields=['provider', 'day_of_week'],
                name='unique_schedule_per_weekday'
            ),
            models.CheckConstraint(
                condition=(
                    models.Q(break_start__isnull=True, break_end__isnull=True)
                    | models.Q(break_start__isnull=False, break_end__isnull=False)
                ),
                name='break_start_and_end_together'
            ),
        ]

    def __str__(self):
        if not self.is_work_day:
            return f"{self.provider} - {self.day_name}: closed"
        return (
            f"{self.provider} - {self.day_name}: "
            f"{self.start_time.strftime('%H:%M')}-{self.end_time.strftime('%H:%M')}"
        )

    @property
    def day_name(self):
        """Get human-readable weekday name."""
        return dict(WEEKDAY_CHOICES).get(self.day_of_week, 'Unknown')

    def clean(self):
        """Validate schedule data."""
        super().clean()

        if (self.break_start is None) != (self.break_end is None):
            raise ValidationError({
                'break_end': 'Break start and end must be set together.'
            })

    def save(self, *args, **kwargs):
        """Save with validation."""
        self.full_clean()
        super().save(*args, **kwargs)

    def to_entry(self):
        return ScheduleEntry(
            day_of_week=self.day_of_week,
            is_work_day=self.is_work_day,
            start_time=self.start_time,
            end_time=self.end_time,
            break_start=self.break_start,
            break_end=self.break_end,
        )


class ScheduleBlock(models.Model):
    """An ad-hoc closed range (vacation, emergency closure). May span several days."""

    provider = models.ForeignKey(
        Provider,
        on_delete=models.CASCADE,
        related_name='blocks'
    )
    start_at = models.DateTimeField()
    end_at = models.DateTimeField()
    reason = models.CharField(max_length=200, default='Unavailable')

    created_at = models.DateTimeField(auto_now_add=True)

    objects = ScheduleBlockManager()

    class Meta:
        ordering = ['start_at']
        indexes = [
            models.Index(fields=['provider', 'start_at', 'end_at'], name='block_provider_range_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(end_at__gt=models.F('start_at')),
                name='block_ends_after_start'
            ),
        ]

    def __str__(self):
        return f"{self.provider} blocked {self.start_at:%Y-%m-%d %H:%M} - {self.end_at:%Y-%m-%d %H:%M}"

    def clean(self):
        """Validate block data."""
        super().clean()

        if self.start_at and self.end_at and self.end_at <= self.start_at:
            raise ValidationError({
                'end_at': 'End must be after start.'
            })

    def save(self, *args, **kwargs):
        """Save with validation."""
        self.full_clean()
        super().save(*args, **kwargs)


class Service(models.Model):
    """A bookable service from the provider's catalog."""

    provider = models.ForeignKey(
        Provider,
        on_delete=models.CASCADE,
        related_name='services'
    )
    name = models.CharField(max_length=200)
    duration_minutes = models.PositiveIntegerField(
        validators=[MinValueValidator(MIN_SERVICE_DURATION_MINUTES)]
    )
    price = models.DecimalField(max_digits=10, decimal_places=2)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ['name']

    def __str__(self):
        return f"{self.name} ({self.duration_minutes} min)"

    def to_info(self):
        return ServiceInfo(
            id=self.pk,
            provider_id=self.provider_id,
            duration_minutes=self.duration_minutes,
            price=self.price,
            name=self.name,
        )


class Client(models.Model):
    """A client of a provider, identified by phone number."""

    provider = models.ForeignKey(
        Provider,
        on_delete=models.CASCADE,
        related_name='clients'
    )
    name = models.CharField(max_length=200)
    phone = models.CharField(max_length=30)
    email = models.EmailField(blank=True, default='')

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['name']
        constraints = [
            models.UniqueConstraint(
                fields=['provider', 'phone'],
                name='unique_client_phone_per_provider'
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.phone})"


class Appointment(models.Model):
    """
    A booked service for a client.

    duration_minutes and price are copied from the service when the
    appointment is created; end_at is derived from them.
    """

    STATUS_PENDING = 'pending'
    STATUS_CONFIRMED = 'confirmed'
    STATUS_COMPLETED = 'completed'
    STATUS_CANCELLED = 'cancelled'
    STATUS_NO_SHOW = 'no_show'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_CONFIRMED, 'Confirmed'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_CANCELLED, 'Cancelled'),
        (STATUS_NO_SHOW, 'No show'),
    ]
    TERMINAL_STATUSES = (STATUS_COMPLETED, STATUS_CANCELLED)

    provider = models.ForeignKey(
        Provider,
        on_delete=models.CASCADE,
        related_name='appointments'
    )
    client = models.ForeignKey(
        Client,
        on_delete=models.PROTECT,
        related_name='appointments'
    )
    service = models.ForeignKey(
        Service,
        on_delete=models.PROTECT,
        related_name='appointments'
    )

    start_at = models.DateTimeField()
    end_at = models.DateTimeField(editable=False)
    duration_minutes = models.PositiveIntegerField(
        validators=[MinValueValidator(MIN_SERVICE_DURATION_MINUTES)]
    )
    price = models.DecimalField(max_digits=10, decimal_places=2)

    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=STATUS_CONFIRMED
    )
    reminder_sent = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = AppointmentManager()

    class Meta:
        ordering = ['start_at']
        indexes = [
            models.Index(fields=['provider', 'start_at', 'end_at'], name='appt_provider_range_idx'),
            models.Index(fields=['status'], name='appt_status_idx'),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['provider', 'start_at'],
                condition=~models.Q(status='cancelled'),
                name='unique_active_appointment_start'
            ),
        ]

    def __str__(self):
        status_str = f" [{self.status}]" if self.status != self.STATUS_CONFIRMED else ""
        return f"{self.client.name} - {self.service.name} @ {self.start_at:%Y-%m-%d %H:%M}{status_str}"

    @property
    def is_active(self):
        """Active appointments occupy their interval."""
        return self.status != self.STATUS_CANCELLED

    @property
    def is_terminal(self):
        return self.status in self.TERMINAL_STATUSES

    def save(self, *args, **kwargs):
        """Derive end_at from the frozen duration, then save with validation."""
        if self.start_at is not None and self.duration_minutes:
            self.end_at = self.start_at + timedelta(minutes=self.duration_minutes)
        # Overlapping starts are rejected by the database, not here.
        self.full_clean(validate_constraints=False)
        super().save(*args, **kwargs)
