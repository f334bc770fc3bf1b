"""
Recurring Appointment Extender
==============================
Keeps recurring appointment series populated into each business's
rolling booking window.
"""

import asyncio
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

import structlog

from ..clock import Clock
from ..datastore.base import DataStore
from ..datastore.models import Booking, BookingStatus, RecurringRule, FALLBACK_WINDOW_DAYS
from ..errors import DataStoreError, RuleExtensionError
from .occurrences import occurrences_until

logger = structlog.get_logger(__name__)


@dataclass
class ExtensionReport:
    """Counts from one extension pass."""
    rules: int = 0
    created: int = 0
    failed_rules: int = 0
    aborted: bool = False


class RecurringExtender:
    """
    Materializes missing future occurrences of every active recurring rule.

    Safe to run repeatedly: existing bookings are never duplicated and a
    rule's ``last_booking_date`` only moves when something was created.
    """

    def __init__(
        self,
        datastore: DataStore,
        clock: Clock,
        fallback_window_days: int = FALLBACK_WINDOW_DAYS,
        timeout: float = 15.0,
        warmup_seconds: float = 60.0,
        interval_seconds: float = 3600.0,
    ):
        self.datastore = datastore
        self.clock = clock
        self.fallback_window_days = fallback_window_days
        self.timeout = timeout
        self.warmup_seconds = warmup_seconds
        self.interval_seconds = interval_seconds

    async def run(self) -> None:
        """Wait for the warm-up delay, then extend every interval forever."""
        logger.info("Recurring extender started", warmup=self.warmup_seconds)
        await self.clock.sleep(self.warmup_seconds)
        while True:
            try:
                await self.run_pass()
            except Exception:
                logger.exception("Extension pass crashed")
            await self.clock.sleep(self.interval_seconds)

    async def run_pass(self) -> ExtensionReport:
        """Extend every active rule; one rule's failure never blocks the rest."""
        report = ExtensionReport()
        today = self.clock.now().date()

        try:
            rules = await asyncio.wait_for(
                self.datastore.list_active_recurring_rules(),
                timeout=self.timeout,
            )
        except (DataStoreError, asyncio.TimeoutError) as e:
            logger.error("Extension pass aborted: cannot list recurring rules", error=str(e))
            report.aborted = True
            return report

        for rule in rules:
            report.rules += 1
            try:
                report.created += await self.extend_rule(rule, today)
            except RuleExtensionError as e:
                report.created += e.created
                report.failed_rules += 1
                logger.error(
                    "Recurring rule extension stopped",
                    rule_id=rule.id,
                    created=e.created,
                    error=str(e.cause) or type(e.cause).__name__,
                )
            except Exception as e:
                report.failed_rules += 1
                logger.exception("Failed to extend recurring rule", rule_id=rule.id, error=str(e))

        logger.info(
            "Extension pass complete",
            rules=report.rules,
            created=report.created,
            failed_rules=report.failed_rules,
        )
        return report

    def horizon(self, rule: RecurringRule, today: date) -> date:
        """Last date occurrences may be created for ``rule``."""
        if rule.business is not None:
            window_days = rule.business.window_days(self.fallback_window_days)
        else:
            window_days = self.fallback_window_days
        return today + timedelta(days=window_days)

    async def extend_rule(self, rule: RecurringRule, today: date) -> int:
        """
        Create the missing occurrences of one rule up to its horizon.

        Returns:
            Number of bookings created

        Raises:
            RuleExtensionError: If an insert fails; progress is saved first
                and the error carries the number already created
        """
        max_date = self.horizon(rule, today)
        start = rule.last_booking_date or today

        created = 0
        last_created: Optional[date] = None
        failure: Optional[Exception] = None

        try:
            for occurrence in occurrences_until(
                start,
                max_date,
                rule.day_of_week,
                rule.frequency,
                rule.biweekly_start_date,
            ):
                if await self._exists(rule, occurrence):
                    continue

                await asyncio.wait_for(
                    self.datastore.create_booking(self._booking_for(rule, occurrence)),
                    timeout=self.timeout,
                )
                created += 1
                last_created = occurrence
        except (DataStoreError, asyncio.TimeoutError) as e:
            failure = e

        if last_created is not None:
            await asyncio.wait_for(
                self.datastore.update_rule_last_booking_date(rule.id, last_created),
                timeout=self.timeout,
            )
            logger.info(
                "Recurring rule extended",
                rule_id=rule.id,
                created=created,
                last_booking_date=last_created.isoformat(),
            )

        if failure is not None:
            raise RuleExtensionError(rule.id, created, failure) from failure
        return created

    async def _exists(self, rule: RecurringRule, occurrence: date) -> bool:
        """Duplicate check that treats an unanswerable check as a hit."""
        try:
            return await asyncio.wait_for(
                self.datastore.booking_exists(
                    rule.business_id,
                    occurrence,
                    rule.time,
                    rule.client_phone,
                ),
                timeout=self.timeout,
            )
        except (DataStoreError, asyncio.TimeoutError) as e:
            logger.warning(
                "Existence check failed, skipping occurrence",
                rule_id=rule.id,
                date=occurrence.isoformat(),
                error=str(e) or type(e).__name__,
            )
            return True

    def _booking_for(self, rule: RecurringRule, occurrence: date) -> Booking:
        return Booking(
            business_id=rule.business_id,
            date=occurrence,
            time=rule.time,
            duration=rule.duration,
            status=BookingStatus.CONFIRMED,
            client_name=rule.client_name,
            client_phone=rule.client_phone,
            client_email=rule.client_email,
            service_id=rule.service_id,
            staff_id=rule.staff_id,
            recurring_appointment_id=rule.id,
        )
