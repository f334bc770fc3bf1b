"""
Occurrence Arithmetic
=====================
Date math for weekly and biweekly recurring appointments.

Weekdays follow the booking store's convention: 0 = Sunday ... 6 = Saturday.
"""

from datetime import date, timedelta
from typing import Iterator, Optional

from ..datastore.models import Frequency


def store_weekday(d: date) -> int:
    """Weekday of ``d`` with Sunday as 0."""
    return (d.weekday() + 1) % 7


def step_for(frequency: Frequency) -> timedelta:
    return timedelta(days=14 if frequency == Frequency.BIWEEKLY else 7)


def next_occurrence(
    after: date,
    day_of_week: int,
    frequency: Frequency = Frequency.WEEKLY,
    biweekly_start_date: Optional[date] = None,
) -> date:
    """
    First occurrence strictly after ``after``.

    Biweekly parity is anchored to ``biweekly_start_date``, never to the
    last generated date, so a missed run cannot flip the series onto the
    wrong weeks. Without an anchor no parity adjustment is made.

    Args:
        after: Exclusive starting point
        day_of_week: Target weekday, 0 = Sunday
        frequency: Weekly or biweekly cadence
        biweekly_start_date: Parity anchor for biweekly rules

    Returns:
        Date of the next occurrence
    """
    candidate = after + timedelta(days=1)
    candidate += timedelta(days=(day_of_week - store_weekday(candidate)) % 7)

    if frequency == Frequency.BIWEEKLY and biweekly_start_date is not None:
        weeks = (candidate - biweekly_start_date).days // 7
        if weeks % 2 != 0:
            candidate += timedelta(days=7)

    return candidate


def occurrences_until(
    after: date,
    until: date,
    day_of_week: int,
    frequency: Frequency = Frequency.WEEKLY,
    biweekly_start_date: Optional[date] = None,
) -> Iterator[date]:
    """Yield occurrences after ``after`` up to and including ``until``."""
    occurrence = next_occurrence(after, day_of_week, frequency, biweekly_start_date)
    step = step_for(frequency)
    while occurrence <= until:
        yield occurrence
        occurrence += step
