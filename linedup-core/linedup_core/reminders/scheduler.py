"""
Reminder Scheduler
==================
Sends appointment reminders at fixed local-time triggers.

The loop computes the exact delay to the next trigger and sleeps until then;
there is no polling in between.
"""

import asyncio
from dataclasses import dataclass
from typing import Optional

import structlog

from ..clock import Clock
from ..datastore.base import DataStore
from ..datastore.models import Booking, BookingStatus, Business
from ..errors import DeliveryError, DataStoreError
from ..log_config import mask_phone
from ..messaging.formatting import format_day_month, format_time, DEFAULT_CLIENT_NAME
from ..providers.base import MessagingProvider
from .dedup import ReminderDedup
from .windows import ReminderSchedule, ReminderTrigger

logger = structlog.get_logger(__name__)


@dataclass
class ReminderReport:
    """Counts from one dispatch pass."""
    trigger: ReminderTrigger
    businesses: int = 0
    sent: int = 0
    failed: int = 0
    skipped: int = 0
    failed_businesses: int = 0
    aborted: bool = False


class ReminderScheduler:
    """Runs reminder dispatch passes at the morning and evening triggers."""

    def __init__(
        self,
        datastore: DataStore,
        provider: MessagingProvider,
        dedup: ReminderDedup,
        clock: Clock,
        template_id: str,
        schedule: Optional[ReminderSchedule] = None,
        timeout: float = 15.0,
    ):
        self.datastore = datastore
        self.provider = provider
        self.dedup = dedup
        self.clock = clock
        self.template_id = template_id
        self.schedule = schedule or ReminderSchedule()
        self.timeout = timeout

    def next_trigger(self) -> ReminderTrigger:
        return self.schedule.next_trigger(self.clock.now())

    async def run(self) -> None:
        """
        Run forever: sleep until each trigger, then dispatch.

        A pass that raises is logged and abandoned; the next trigger still runs.
        """
        logger.info("Reminder scheduler started")
        while True:
            trigger = await self._wait_for_trigger()
            try:
                await self.run_pass(trigger)
            except Exception:
                logger.exception(
                    "Reminder pass crashed",
                    phase=trigger.phase.value,
                    target_date=trigger.target_date.isoformat(),
                )

    async def run_once(self) -> ReminderReport:
        """Wait for the next trigger and run its pass."""
        trigger = await self._wait_for_trigger()
        return await self.run_pass(trigger)

    async def _wait_for_trigger(self) -> ReminderTrigger:
        trigger = self.next_trigger()
        logger.info(
            "Next reminder pass scheduled",
            at=trigger.at.isoformat(),
            phase=trigger.phase.value,
            target_date=trigger.target_date.isoformat(),
        )
        await self.clock.sleep_until(trigger.at)
        return trigger

    async def run_pass(self, trigger: ReminderTrigger) -> ReminderReport:
        """
        Send reminders for every booking in the trigger's window.

        A failure listing businesses aborts only this pass; failures for a
        single business or booking are logged and skipped.
        """
        report = ReminderReport(trigger=trigger)
        await self.dedup.reset_if_new_day(self.clock.now().date())

        try:
            businesses = await asyncio.wait_for(
                self.datastore.list_businesses(reminders_enabled=True),
                timeout=self.timeout,
            )
        except (DataStoreError, asyncio.TimeoutError) as e:
            logger.error("Reminder pass aborted: cannot list businesses", error=str(e))
            report.aborted = True
            return report

        for business in businesses:
            report.businesses += 1
            await self._process_business(business, trigger, report)

        logger.info(
            "Reminder pass complete",
            phase=trigger.phase.value,
            target_date=trigger.target_date.isoformat(),
            businesses=report.businesses,
            sent=report.sent,
            failed=report.failed,
            skipped=report.skipped,
            failed_businesses=report.failed_businesses,
        )
        return report

    async def _process_business(
        self,
        business: Business,
        trigger: ReminderTrigger,
        report: ReminderReport,
    ) -> None:
        try:
            bookings = await asyncio.wait_for(
                self.datastore.list_bookings(
                    business.id,
                    trigger.target_date,
                    status=BookingStatus.CONFIRMED,
                    time_from=trigger.window.start_str,
                    time_to=trigger.window.end_str,
                ),
                timeout=self.timeout,
            )
        except (DataStoreError, asyncio.TimeoutError) as e:
            logger.error("Failed to fetch bookings", business_id=business.id, error=str(e))
            report.failed_businesses += 1
            return

        for booking in bookings:
            if not booking.client_phone or not booking.id:
                continue
            if not trigger.window.contains(booking.time_of_day):
                continue
            if await self.dedup.is_sent(booking.id, booking.date):
                report.skipped += 1
                continue

            if await self._send_reminder(business, booking):
                await self.dedup.mark_sent(booking.id, booking.date)
                report.sent += 1
            else:
                report.failed += 1

    async def _send_reminder(self, business: Business, booking: Booking) -> bool:
        variables = {
            "1": booking.client_name or DEFAULT_CLIENT_NAME,
            "2": business.name,
            "3": format_day_month(booking.date),
            "4": format_time(booking.time),
        }
        try:
            result = await asyncio.wait_for(
                self.provider.send_template(booking.client_phone, self.template_id, variables),
                timeout=self.timeout,
            )
        except (DeliveryError, asyncio.TimeoutError) as e:
            logger.error(
                "Failed to send reminder",
                booking_id=booking.id,
                to=mask_phone(booking.client_phone),
                error=str(e) or type(e).__name__,
            )
            return False

        logger.info(
            "Reminder sent",
            booking_id=booking.id,
            business=business.name,
            sid=result.provider_message_id,
        )
        return True
