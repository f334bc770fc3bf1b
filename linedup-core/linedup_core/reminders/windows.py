"""
Reminder Windows
================
Fixed local-time trigger points and the booking windows each one covers.

    trigger          fires at        reminds bookings on    with times
    ---------------  --------------  ---------------------  ---------------
    MORNING          08:00           the same day           12:01 - 23:59
    EVENING          18:00           the next day           07:00 - 12:00

With ``include_early_morning`` the evening window starts at 00:00 instead,
so bookings before 07:00 are reminded the evening before rather than never.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from enum import Enum


class ReminderPhase(str, Enum):
    MORNING = "morning"
    EVENING = "evening"


@dataclass(frozen=True)
class ReminderWindow:
    """Inclusive time-of-day range of bookings covered by a trigger."""
    start: time
    end: time

    def contains(self, value: time) -> bool:
        return self.start <= value <= self.end

    @property
    def start_str(self) -> str:
        return self.start.strftime("%H:%M:%S")

    @property
    def end_str(self) -> str:
        return self.end.strftime("%H:%M:%S")


@dataclass(frozen=True)
class ReminderTrigger:
    """One scheduled dispatch pass."""
    at: datetime
    phase: ReminderPhase
    target_date: date
    window: ReminderWindow


class ReminderSchedule:
    """Computes the next trigger for a given local time."""

    def __init__(
        self,
        morning_hour: int = 8,
        evening_hour: int = 18,
        include_early_morning: bool = True,
    ):
        self.morning_hour = morning_hour
        self.evening_hour = evening_hour
        self.morning_window = ReminderWindow(time(12, 1), time(23, 59, 59))
        self.evening_window = ReminderWindow(
            time(0, 0) if include_early_morning else time(7, 0),
            time(12, 0, 59),
        )

    def _trigger(self, day: date, phase: ReminderPhase, tz) -> ReminderTrigger:
        if phase == ReminderPhase.MORNING:
            at = datetime.combine(day, time(self.morning_hour), tzinfo=tz)
            return ReminderTrigger(at, phase, day, self.morning_window)

        at = datetime.combine(day, time(self.evening_hour), tzinfo=tz)
        return ReminderTrigger(at, phase, day + timedelta(days=1), self.evening_window)

    def next_trigger(self, now: datetime) -> ReminderTrigger:
        """
        Pick the next trigger strictly from ``now``'s local wall-clock time.

        Before the morning hour: today's morning run. From the morning hour
        until before the evening hour: today's evening run. Otherwise
        tomorrow's morning run.
        """
        today = now.date()
        current = now.timetz().replace(tzinfo=None)

        if current < time(self.morning_hour):
            return self._trigger(today, ReminderPhase.MORNING, now.tzinfo)
        if current < time(self.evening_hour):
            return self._trigger(today, ReminderPhase.EVENING, now.tzinfo)
        return self._trigger(today + timedelta(days=1), ReminderPhase.MORNING, now.tzinfo)
