"""
Shared fixtures: a controllable clock and a recording provider.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Mapping, Optional, Set
from zoneinfo import ZoneInfo

import pytest

from linedup_core.clock import Clock
from linedup_core.errors import DeliveryError
from linedup_core.providers.base import MessagingProvider, SendResult

TZ = ZoneInfo("Asia/Jerusalem")


class StopLoop(Exception):
    """Raised by FakeClock to break out of a run-forever loop."""


class FakeClock(Clock):
    """Clock whose sleep advances time instantly."""

    def __init__(self, start: datetime, stop_after: Optional[int] = None):
        self.tz = start.tzinfo
        self._now = start
        self.sleeps: List[float] = []
        self.stop_after = stop_after

    def now(self) -> datetime:
        return self._now

    def advance(self, seconds: float) -> None:
        # Elapsed time is real time: step in UTC, then view in local time
        self._now = (self._now.astimezone(timezone.utc) + timedelta(seconds=seconds)).astimezone(self.tz)

    async def sleep(self, seconds: float) -> None:
        if self.stop_after is not None and len(self.sleeps) >= self.stop_after:
            raise StopLoop()
        self.sleeps.append(seconds)
        self.advance(seconds)
        await asyncio.sleep(0)


class FakeProvider(MessagingProvider):
    """Records every send; fails for phones listed in ``fail_for``."""

    name = "fake"

    def __init__(self, fail_for: Optional[Set[str]] = None):
        super().__init__()
        self.sent: List[Dict] = []
        self.fail_for = set(fail_for or ())
        self.closed = False

    async def close(self) -> None:
        self.closed = True
        await super().close()

    async def send_template(self, to: str, template_id: str, variables: Mapping[str, str]) -> SendResult:
        if to in self.fail_for:
            raise DeliveryError("rejected", error_code="63016")
        self.sent.append({"to": to, "template_id": template_id, "variables": dict(variables)})
        return SendResult(provider_message_id=f"SM{len(self.sent)}")


@pytest.fixture
def clock():
    # Monday
    return FakeClock(datetime(2026, 10, 19, 10, 0, tzinfo=TZ))


@pytest.fixture
def kv(clock):
    from linedup_core.state import InMemoryKeyValueStore
    return InMemoryKeyValueStore(clock.timestamp)


@pytest.fixture
def provider():
    return FakeProvider()
