"""
Data Store Interface
====================
Queries and writes the scheduling engine needs from the booking store.
"""

import datetime as dt
from abc import ABC, abstractmethod
from typing import List, Optional

from .models import Booking, BookingStatus, Business, RecurringRule


class DataStore(ABC):
    """
    Booking data store.

    Implementations raise ``DataStoreError`` (or its subclass
    ``DataStoreUnavailableError`` for transient failures).
    """

    @abstractmethod
    async def list_businesses(self, reminders_enabled: Optional[bool] = None) -> List[Business]:
        """List businesses, optionally only those with reminders enabled."""
        pass

    @abstractmethod
    async def list_bookings(
        self,
        business_id: str,
        booking_date: dt.date,
        status: BookingStatus = BookingStatus.CONFIRMED,
        time_from: Optional[str] = None,
        time_to: Optional[str] = None,
    ) -> List[Booking]:
        """
        List bookings with a client phone for one business and date.

        Args:
            business_id: Business
            booking_date: Date of the bookings
            status: Booking status to match
            time_from: Inclusive lower bound, ``HH:MM:SS``
            time_to: Inclusive upper bound, ``HH:MM:SS``
        """
        pass

    @abstractmethod
    async def list_active_recurring_rules(self) -> List[RecurringRule]:
        """List active recurring rules joined with their business."""
        pass

    @abstractmethod
    async def booking_exists(
        self,
        business_id: str,
        booking_date: dt.date,
        time: str,
        client_phone: Optional[str],
    ) -> bool:
        """Check for a non-cancelled booking at this exact slot and phone."""
        pass

    @abstractmethod
    async def create_booking(self, booking: Booking) -> Booking:
        """Insert a booking and return it with its id."""
        pass

    @abstractmethod
    async def update_rule_last_booking_date(self, rule_id: str, last_booking_date: dt.date) -> None:
        """Advance a recurring rule's high-water mark."""
        pass

    async def close(self) -> None:
        pass
