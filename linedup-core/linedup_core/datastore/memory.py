"""
In-Memory Data Store
====================
Dictionary-backed data store for development and testing.
"""

import datetime as dt
import uuid
from typing import Dict, List, Optional

from .base import DataStore
from .models import Booking, BookingStatus, Business, RecurringRule, time_key


class InMemoryDataStore(DataStore):
    """Keeps businesses, bookings and recurring rules in dictionaries."""

    def __init__(
        self,
        businesses: Optional[List[Business]] = None,
        bookings: Optional[List[Booking]] = None,
        rules: Optional[List[RecurringRule]] = None,
    ):
        self.businesses: Dict[str, Business] = {b.id: b for b in businesses or []}
        self.bookings: Dict[str, Booking] = {}
        self.rules: Dict[str, RecurringRule] = {r.id: r for r in rules or []}
        for booking in bookings or []:
            self._store_booking(booking)

    def _store_booking(self, booking: Booking) -> Booking:
        stored = booking.model_copy(update={"id": booking.id or str(uuid.uuid4())})
        self.bookings[stored.id] = stored
        return stored

    async def list_businesses(self, reminders_enabled: Optional[bool] = None) -> List[Business]:
        businesses = list(self.businesses.values())
        if reminders_enabled is not None:
            businesses = [b for b in businesses if b.sends_reminders == reminders_enabled]
        return businesses

    async def list_bookings(
        self,
        business_id: str,
        booking_date: dt.date,
        status: BookingStatus = BookingStatus.CONFIRMED,
        time_from: Optional[str] = None,
        time_to: Optional[str] = None,
    ) -> List[Booking]:
        lower = time_key(time_from) if time_from else None
        upper = time_key(time_to) if time_to else None
        result = []
        for booking in self.bookings.values():
            if booking.business_id != business_id or booking.date != booking_date:
                continue
            if booking.status != status or not booking.client_phone:
                continue
            key = time_key(booking.time)
            if lower and key < lower:
                continue
            if upper and key > upper:
                continue
            result.append(booking)
        return sorted(result, key=lambda b: time_key(b.time))

    async def list_active_recurring_rules(self) -> List[RecurringRule]:
        rules = []
        for rule in self.rules.values():
            if rule.is_active is False:
                continue
            rules.append(rule.model_copy(update={"business": self.businesses.get(rule.business_id)}))
        return rules

    async def booking_exists(
        self,
        business_id: str,
        booking_date: dt.date,
        time: str,
        client_phone: Optional[str],
    ) -> bool:
        key = time_key(time)
        return any(
            b.business_id == business_id
            and b.date == booking_date
            and time_key(b.time) == key
            and b.client_phone == client_phone
            and b.status != BookingStatus.CANCELLED
            for b in self.bookings.values()
        )

    async def create_booking(self, booking: Booking) -> Booking:
        return self._store_booking(booking)

    async def update_rule_last_booking_date(self, rule_id: str, last_booking_date: dt.date) -> None:
        rule = self.rules[rule_id]
        self.rules[rule_id] = rule.model_copy(update={"last_booking_date": last_booking_date})
