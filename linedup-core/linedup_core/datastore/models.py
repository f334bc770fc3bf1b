"""
Data Store Models
=================
Rows read from and written to the booking data store.
"""

import datetime as dt
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

FALLBACK_WINDOW_DAYS = 90


class BookingStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class Frequency(str, Enum):
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"


def time_key(value: str) -> str:
    """Pad a ``H:MM`` / ``HH:MM`` / ``HH:MM:SS`` string to ``HH:MM:SS``."""
    parts = str(value).split(":")
    hours = int(parts[0])
    minutes = int(parts[1]) if len(parts) > 1 else 0
    seconds = int(float(parts[2])) if len(parts) > 2 else 0
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


class Row(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @field_validator("id", "business_id", "service_id", "staff_id",
                     "recurring_appointment_id", mode="before", check_fields=False)
    @classmethod
    def _ids_as_strings(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value


class Business(Row):
    id: str
    name: str = ""
    phone: Optional[str] = None
    reminders_enabled: Optional[bool] = None
    reminder_hours_before: Optional[int] = None
    booking_window_enabled: Optional[bool] = None
    booking_window_days: Optional[int] = None

    @property
    def sends_reminders(self) -> bool:
        # Unset means enabled; older rows predate the column
        return self.reminders_enabled is not False

    def window_days(self, fallback: int = FALLBACK_WINDOW_DAYS) -> int:
        """Days ahead in which bookings (and recurring occurrences) are allowed."""
        if self.booking_window_enabled and self.booking_window_days:
            return self.booking_window_days
        return fallback


class Booking(Row):
    id: Optional[str] = None
    business_id: str
    date: dt.date
    time: str
    duration: Optional[int] = None
    status: BookingStatus = BookingStatus.PENDING
    client_name: Optional[str] = None
    client_phone: Optional[str] = None
    client_email: Optional[str] = None
    service_id: Optional[str] = None
    staff_id: Optional[str] = None
    notes: Optional[str] = None
    recurring_appointment_id: Optional[str] = None

    @property
    def time_of_day(self) -> dt.time:
        return dt.time.fromisoformat(time_key(self.time))


class RecurringRule(Row):
    id: str
    business_id: str
    client_name: Optional[str] = None
    client_phone: Optional[str] = None
    client_email: Optional[str] = None
    service_id: Optional[str] = None
    staff_id: Optional[str] = None
    day_of_week: int = Field(ge=0, le=6)  # 0 = Sunday
    time: str
    duration: Optional[int] = None
    frequency: Frequency = Frequency.WEEKLY
    biweekly_start_date: Optional[dt.date] = None
    last_booking_date: Optional[dt.date] = None
    is_active: Optional[bool] = True
    business: Optional[Business] = Field(default=None, alias="businesses")

    @field_validator("frequency", mode="before")
    @classmethod
    def _default_frequency(cls, value: Any) -> Any:
        return value or Frequency.WEEKLY
