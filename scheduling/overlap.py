"""
Interval overlap detection.

Every collision check in the engine (break vs slot, appointment vs slot,
block vs slot, appointment vs appointment) goes through `overlaps`.
"""

from datetime import datetime
from typing import Iterable, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .types import Interval


def overlaps(
    a_start: datetime,
    a_end: datetime,
    b_start: datetime,
    b_end: datetime
) -> bool:
    """
    Check whether two half-open intervals [a_start, a_end) and [b_start, b_end) intersect.

    Intervals that merely touch (a_end == b_start) do not overlap.
    Zero-length or inverted intervals never overlap anything.
    """
    if a_end <= a_start or b_end <= b_start:
        return False
    return a_start < b_end and a_end > b_start


def first_overlapping(
    interval: 'Interval',
    others: Iterable['Interval']
) -> Optional['Interval']:
    """Return the first interval in `others` that collides with `interval`, if any."""
    for other in others:
        if overlaps(interval.start, interval.end, other.start, other.end):
            return other
    return None
