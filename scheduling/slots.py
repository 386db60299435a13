"""
Slot Generation

Generates the ordered bookable start times of one working day, considering:
- The working window (possibly running past midnight)
- The break window, if any
- Existing appointments and ad-hoc blocks
- A minimum lead time from "now"

`rejection_reason` is the single per-interval check; the booking guard reuses
it when admitting a specific appointment.
"""

from datetime import datetime, timedelta
from typing import List, Optional, Sequence

from .overlap import first_overlapping, overlaps
from .types import (
    DEFAULT_MIN_LEAD_TIME_MINUTES,
    DEFAULT_STEP_MINUTES,
    Interval,
    WorkingDay,
)


REJECTED_BY_BREAK = 'break'
REJECTED_BY_APPOINTMENT = 'appointment'
REJECTED_BY_BLOCK = 'block'
REJECTED_BY_LEAD_TIME = 'lead_time'
OUTSIDE_WORKING_HOURS = 'outside_working_hours'


def rejection_reason(
    candidate: Interval,
    working_day: WorkingDay,
    appointments: Sequence[Interval],
    blocks: Sequence[Interval],
    earliest_start: datetime
) -> Optional[str]:
    """
    Return why `candidate` cannot be booked, or None if it is free.

    Checks run in order: break, appointments, blocks, lead time.
    The first failing check wins.
    """
    if not working_day.work.contains(candidate):
        return OUTSIDE_WORKING_HOURS

    break_window = working_day.break_window
    if break_window is not None and overlaps(
        candidate.start, candidate.end, break_window.start, break_window.end
    ):
        return REJECTED_BY_BREAK

    if first_overlapping(candidate, appointments) is not None:
        return REJECTED_BY_APPOINTMENT

    if first_overlapping(candidate, blocks) is not None:
        return REJECTED_BY_BLOCK

    if candidate.start < earliest_start:
        return REJECTED_BY_LEAD_TIME

    return None


def generate_slots(
    working_day: WorkingDay,
    appointments: Sequence[Interval],
    blocks: Sequence[Interval],
    duration: timedelta,
    now: datetime,
    step_minutes: int = DEFAULT_STEP_MINUTES,
    min_lead_time: timedelta = timedelta(minutes=DEFAULT_MIN_LEAD_TIME_MINUTES)
) -> List[datetime]:
    """
    Generate bookable slot starts for a service duration.

    Args:
        working_day: Resolved working/break windows of the date
        appointments: Occupied intervals of active appointments
        blocks: Closed intervals from schedule blocks
        duration: Length of the requested service
        now: Current instant (passed explicitly for determinism)
        step_minutes: Distance between consecutive candidate starts
        min_lead_time: Minimum buffer between now and the first offered slot

    Returns:
        Ordered list of UTC slot starts

    Algorithm:
        1. Start at the beginning of the working window
        2. Stop as soon as start + duration runs past the window's end
        3. Keep each candidate that passes rejection_reason
        4. Advance by step_minutes
    """
    if duration <= timedelta(0) or step_minutes <= 0:
        return []

    step = timedelta(minutes=step_minutes)
    earliest_start = now + min_lead_time
    appointments = sorted(appointments, key=lambda interval: interval.start)
    blocks = sorted(blocks, key=lambda interval: interval.start)

    slots = []
    slot_start = working_day.work.start
    while slot_start + duration <= working_day.work.end:
        candidate = Interval(slot_start, slot_start + duration)
        if rejection_reason(candidate, working_day, appointments, blocks, earliest_start) is None:
            slots.append(slot_start)
        slot_start += step

    return slots
