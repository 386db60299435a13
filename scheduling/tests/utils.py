"""
Shared fixtures for the database-backed tests.
"""

from datetime import date, time, timedelta
from decimal import Decimal

from django.utils import timezone

from scheduling.models import Appointment, Client, Provider, Service, WeeklySchedule
from scheduling.schedule import at_utc, day_of_week_for


def create_provider(**kwargs):
    defaults = {
        'full_name': 'Jordan Fade',
        'email': 'jordan@example.com',
        'plan': Provider.PLAN_PREMIUM,
        'subscription_active': True,
    }
    defaults.update(kwargs)
    return Provider.objects.create(**defaults)


def create_service(provider, duration_minutes=30, price=Decimal('25.00'), **kwargs):
    return Service.objects.create(
        provider=provider,
        name=kwargs.pop('name', f'Cut {duration_minutes}'),
        duration_minutes=duration_minutes,
        price=price,
        **kwargs
    )


def create_schedule(provider, day_of_week, start=time(9, 0), end=time(18, 0),
                    break_start=time(13, 0), break_end=time(14, 0), is_work_day=True):
    return WeeklySchedule.objects.create(
        provider=provider,
        day_of_week=day_of_week,
        is_work_day=is_work_day,
        start_time=start,
        end_time=end,
        break_start=break_start,
        break_end=break_end,
    )


def create_client(provider, phone='+15550001', name='Alex', email='alex@example.com'):
    return Client.objects.create(provider=provider, phone=phone, name=name, email=email)


def create_appointment(provider, client, service, start_at, status=Appointment.STATUS_CONFIRMED):
    return Appointment.objects.create(
        provider=provider,
        client=client,
        service=service,
        start_at=start_at,
        duration_minutes=service.duration_minutes,
        price=service.price,
        status=status,
    )


def upcoming_date(days_ahead=7) -> date:
    """A UTC date at least `days_ahead` days from today."""
    return timezone.now().date() + timedelta(days=days_ahead)


def at(target_date, hour, minute=0):
    return at_utc(target_date, time(hour, minute))


def weekday_of(target_date) -> int:
    return day_of_week_for(target_date)
