"""
Clock
=====
Wall-clock and sleep primitives used by the background loops.

Background loops never call ``datetime.now`` or ``asyncio.sleep`` directly,
so tests can drive them with a fake clock.
"""

import asyncio
import time
from abc import ABC, abstractmethod
from datetime import datetime, timezone, tzinfo
from zoneinfo import ZoneInfo


class Clock(ABC):
    """Clock bound to the business timezone."""

    tz: tzinfo

    @abstractmethod
    def now(self) -> datetime:
        """Current time as an aware datetime in ``tz``."""
        pass

    @abstractmethod
    async def sleep(self, seconds: float) -> None:
        pass

    def timestamp(self) -> float:
        return self.now().timestamp()

    async def sleep_until(self, deadline: datetime) -> None:
        """
        Suspend until ``deadline``; returns immediately if it has passed.

        The delay is measured in UTC, so a DST change between now and the
        deadline does not shift the wake-up by an hour.
        """
        delay = (
            deadline.astimezone(timezone.utc) - self.now().astimezone(timezone.utc)
        ).total_seconds()
        if delay > 0:
            await self.sleep(delay)


class SystemClock(Clock):
    """Real time in a named IANA timezone."""

    def __init__(self, timezone: str = "Asia/Jerusalem"):
        self.tz = ZoneInfo(timezone)

    def now(self) -> datetime:
        return datetime.now(self.tz)

    def timestamp(self) -> float:
        return time.time()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)
