"""
Recurring Appointments
======================
Next-occurrence arithmetic and the rolling-window extender.
"""

from .occurrences import next_occurrence, occurrences_until, step_for, store_weekday
from .extender import RecurringExtender, ExtensionReport

__all__ = [
    "next_occurrence",
    "occurrences_until",
    "step_for",
    "store_weekday",
    "RecurringExtender",
    "ExtensionReport",
]
