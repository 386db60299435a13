"""
Custom managers and querysets for scheduling models.

QuerySets define chainable query methods.
Managers use QuerySets to enable method chaining.
No business logic should be here - only query operations.
"""

from django.db import models


class WeeklyScheduleQuerySet(models.QuerySet):
    """Custom queryset for WeeklySchedule model with chainable methods."""

    def for_provider(self, provider_id):
        return self.filter(provider_id=provider_id)

    def for_weekday(self, day_of_week):
        """
        Get schedule rows for a specific weekday.

        Args:
            day_of_week: int (0=Sunday, 6=Saturday)
        """
        return self.filter(day_of_week=day_of_week)


class WeeklyScheduleManager(models.Manager):
    """Custom manager for WeeklySchedule model."""

    def get_queryset(self):
        """Return custom queryset for method chaining."""
        return WeeklyScheduleQuerySet(self.model, using=self._db)

    def for_provider(self, provider_id):
        return self.get_queryset().for_provider(provider_id)

    def for_weekday(self, day_of_week):
        return self.get_queryset().for_weekday(day_of_week)


class ScheduleBlockQuerySet(models.QuerySet):
    """Custom queryset for ScheduleBlock model with chainable methods."""

    def for_provider(self, provider_id):
        return self.filter(provider_id=provider_id)

    def overlapping(self, start_datetime, end_datetime):
        """
        Get blocks intersecting the half-open range [start_datetime, end_datetime).

        Args:
            start_datetime: datetime object
            end_datetime: datetime object
        """
        return self.filter(start_at__lt=end_datetime, end_at__gt=start_datetime)

    def not_finished(self, now):
        """Get blocks that have not ended yet."""
        return self.filter(end_at__gte=now)


class ScheduleBlockManager(models.Manager):
    """Custom manager for ScheduleBlock model."""

    def get_queryset(self):
        """Return custom queryset for method chaining."""
        return ScheduleBlockQuerySet(self.model, using=self._db)

    def for_provider(self, provider_id):
        return self.get_queryset().for_provider(provider_id)

    def overlapping(self, start_datetime, end_datetime):
        return self.get_queryset().overlapping(start_datetime, end_datetime)


class AppointmentQuerySet(models.QuerySet):
    """Custom queryset for Appointment model with chainable methods."""

    def for_provider(self, provider_id):
        return self.filter(provider_id=provider_id)

    def active(self):
        """Get appointments that occupy their interval (anything not cancelled)."""
        return self.exclude(status='cancelled')

    def cancellable(self):
        """Get appointments that can still be cancelled (not cancelled or completed)."""
        return self.exclude(status__in=['cancelled', 'completed'])

    def overlapping(self, start_datetime, end_datetime):
        """
        Get appointments intersecting the half-open range [start_datetime, end_datetime).

        Args:
            start_datetime: datetime object
            end_datetime: datetime object
        """
        return self.filter(start_at__lt=end_datetime, end_at__gt=start_datetime)

    def starting_between(self, start_datetime, end_datetime):
        """Get appointments whose start falls in [start_datetime, end_datetime)."""
        return self.filter(start_at__gte=start_datetime, start_at__lt=end_datetime)

    def awaiting_reminder(self):
        """Get confirmed appointments whose reminder has not been sent."""
        return self.filter(status='confirmed', reminder_sent=False)


class AppointmentManager(models.Manager):
    """Custom manager for Appointment model."""

    def get_queryset(self):
        """Return custom queryset for method chaining."""
        return AppointmentQuerySet(self.model, using=self._db)

    def for_provider(self, provider_id):
        return self.get_queryset().for_provider(provider_id)

    def active(self):
        return self.get_queryset().active()

    def awaiting_reminder(self):
        return self.get_queryset().awaiting_reminder()
