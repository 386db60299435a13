"""
Data types and constants for the scheduling engine.

This module contains:
- Value objects shared by the pure scheduling components (Interval, WorkingDay)
- DTOs (Data Transfer Objects) passed between the service layer and its callers
- Constants used across the application
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Any, List, Optional

from .overlap import overlaps


DEFAULT_STEP_MINUTES = 30
DEFAULT_MIN_LEAD_TIME_MINUTES = 15
MIN_SERVICE_DURATION_MINUTES = 5

# 0=Sunday, 6=Saturday
WEEKDAY_CHOICES = [
    (0, 'Sunday'),
    (1, 'Monday'),
    (2, 'Tuesday'),
    (3, 'Wednesday'),
    (4, 'Thursday'),
    (5, 'Friday'),
    (6, 'Saturday'),
]

ONE_DAY = timedelta(days=1)


@dataclass(frozen=True)
class Interval:
    """Half-open time range [start, end) between two UTC instants."""
    start: datetime
    end: datetime

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def overlaps(self, other: 'Interval') -> bool:
        return overlaps(self.start, self.end, other.start, other.end)

    def contains(self, other: 'Interval') -> bool:
        return self.start <= other.start and other.end <= self.end

    def shifted(self, delta: timedelta) -> 'Interval':
        return Interval(self.start + delta, self.end + delta)


@dataclass(frozen=True)
class WorkingDay:
    """Working window of one calendar date, with its break when configured."""
    date: date
    day_of_week: int
    work: Interval
    break_window: Optional[Interval] = None


@dataclass(frozen=True)
class ScheduleEntry:
    """Weekly schedule row for one weekday, detached from storage."""
    day_of_week: int
    is_work_day: bool
    start_time: time
    end_time: time
    break_start: Optional[time] = None
    break_end: Optional[time] = None

    @property
    def has_break(self) -> bool:
        return self.break_start is not None and self.break_end is not None


@dataclass(frozen=True)
class ServiceInfo:
    """Bookable service as seen at booking time."""
    id: int
    provider_id: Any
    duration_minutes: int
    price: Decimal
    name: str = ''

    @property
    def duration(self) -> timedelta:
        return timedelta(minutes=self.duration_minutes)


@dataclass
class ClientInfo:
    """DTO for the client details supplied with a booking request."""
    phone: str
    name: str
    email: Optional[str] = None


@dataclass
class ScheduleEntryData:
    """DTO for one weekday row of a weekly schedule update."""
    day_of_week: int
    start_time: time
    end_time: time
    is_work_day: bool = True
    break_start: Optional[time] = None
    break_end: Optional[time] = None


@dataclass
class AvailabilityResult:
    """Bookable slot starts for one date, formatted for the requester's zone."""
    date: date
    time_zone: str
    slots: List[str] = field(default_factory=list)
    slot_starts: List[datetime] = field(default_factory=list)
    reason: Optional[str] = None


@dataclass
class DayClosure:
    """Outcome of closing a whole day: the new block and what it cancelled."""
    block: Any
    cancelled: List[Any] = field(default_factory=list)

    @property
    def cancelled_count(self) -> int:
        return len(self.cancelled)
