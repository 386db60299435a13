"""
Weekly schedule resolution.

Turns a recurring per-weekday configuration into the concrete working window
(and optional break window) of one calendar date. Weekly times of day are UTC
wall-clock values, so the weekday is always taken from the UTC calendar.
"""

from datetime import date, datetime, time, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .exceptions import NonWorkingDayError, ValidationError
from .types import ONE_DAY, Interval, ScheduleEntry, WorkingDay


def day_of_week_for(target_date: date) -> int:
    """Weekday number of a UTC calendar date, 0=Sunday through 6=Saturday."""
    return (target_date.weekday() + 1) % 7


def utc_day_bounds(target_date: date) -> Interval:
    """Return [00:00, 24:00) of a calendar date as UTC instants."""
    start = datetime.combine(target_date, time.min, tzinfo=timezone.utc)
    return Interval(start, start + ONE_DAY)


def at_utc(target_date: date, time_of_day: time) -> datetime:
    """Anchor a zone-less wall-clock time to a UTC calendar date."""
    return datetime.combine(target_date, time_of_day.replace(tzinfo=None), tzinfo=timezone.utc)


def resolve_working_day(entry: Optional[ScheduleEntry], target_date: date) -> WorkingDay:
    """
    Resolve the working and break windows of a calendar date.

    Args:
        entry: Weekly schedule row for the date's weekday (None if not configured)
        target_date: UTC calendar date

    Returns:
        WorkingDay anchored to target_date

    Raises:
        NonWorkingDayError: If no row exists or the row is not a work day

    A working window whose end is not after its start rolls over into the
    next day. A break rolls over only when its end is before its start, so a
    break with equal bounds stays empty. A break that starts before the
    working window is moved to the next day as well, so it always lands
    inside an overnight window.
    """
    if entry is None or not entry.is_work_day:
        raise NonWorkingDayError("The provider does not work on {}.".format(target_date.isoformat()))

    work_start = at_utc(target_date, entry.start_time)
    work_end = at_utc(target_date, entry.end_time)
    if work_end <= work_start:
        work_end += ONE_DAY

    break_window = None
    if entry.has_break:
        break_start = at_utc(target_date, entry.break_start)
        break_end = at_utc(target_date, entry.break_end)
        if break_end < break_start:
            break_end += ONE_DAY
        if break_start < work_start:
            break_start += ONE_DAY
            break_end += ONE_DAY
        break_window = Interval(break_start, break_end)

    return WorkingDay(
        date=target_date,
        day_of_week=entry.day_of_week,
        work=Interval(work_start, work_end),
        break_window=break_window,
    )


def get_zone(time_zone: Optional[str]) -> ZoneInfo:
    """Look up an IANA time zone, defaulting to UTC."""
    try:
        return ZoneInfo(time_zone or 'UTC')
    except (ZoneInfoNotFoundError, ValueError):
        raise ValidationError("Unknown time zone: {}".format(time_zone))


def local_today(time_zone: Optional[str], now: datetime) -> date:
    """Calendar date that `now` falls on in the requester's time zone."""
    return now.astimezone(get_zone(time_zone)).date()


def format_wall_clock(instant: datetime, time_zone: Optional[str]) -> str:
    """Format a UTC instant as HH:mm in the requester's time zone."""
    return instant.astimezone(get_zone(time_zone)).strftime('%H:%M')
