"""
Reminder De-duplication
=======================
Remembers which (booking, date) reminders were sent today.
"""

from datetime import date
from typing import Optional

import structlog

from ..state.base import KeyValueStore

logger = structlog.get_logger(__name__)

KEY_PREFIX = "reminder:"


class ReminderDedup:
    """
    Sent-reminder set, cleared on the first pass of each local date.

    Keys already include the booking date, so the daily clear only bounds
    memory; it never allows a same-day resend.
    """

    def __init__(self, store: KeyValueStore, ttl_seconds: int = 2 * 24 * 3600):
        self.store = store
        self.ttl_seconds = ttl_seconds
        self.last_cleared: Optional[str] = None

    def _key(self, booking_id: str, booking_date: date) -> str:
        return f"{KEY_PREFIX}{booking_id}:{booking_date.isoformat()}"

    async def reset_if_new_day(self, today: date) -> bool:
        """Clear every key on the first call for a new date."""
        today_str = today.isoformat()
        if self.last_cleared == today_str:
            return False

        removed = await self.store.delete_prefix(KEY_PREFIX)
        self.last_cleared = today_str
        logger.info("Reminder dedup cleared", date=today_str, removed=removed)
        return True

    async def is_sent(self, booking_id: str, booking_date: date) -> bool:
        return await self.store.get(self._key(booking_id, booking_date)) is not None

    async def mark_sent(self, booking_id: str, booking_date: date) -> None:
        await self.store.set(
            self._key(booking_id, booking_date),
            {"booking_id": booking_id, "date": booking_date.isoformat()},
            ttl=self.ttl_seconds,
        )
