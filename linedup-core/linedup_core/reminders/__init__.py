"""
Appointment Reminders
=====================
Fixed-trigger reminder scheduling with per-booking daily de-duplication.
"""

from .windows import ReminderPhase, ReminderWindow, ReminderTrigger, ReminderSchedule
from .dedup import ReminderDedup
from .scheduler import ReminderScheduler, ReminderReport

__all__ = [
    "ReminderPhase",
    "ReminderWindow",
    "ReminderTrigger",
    "ReminderSchedule",
    "ReminderDedup",
    "ReminderScheduler",
    "ReminderReport",
]
