"""
Notification Service
====================
Wires the core components together and owns the background tasks.

Usage:
    service = LinedUpService(ServiceConfig.from_env())
    await service.start()
    ...
    result = await service.otp.send_code("054-123-4567")
    ...
    await service.close()
"""

import asyncio
from typing import List, Optional

import structlog

from .clock import Clock, SystemClock
from .config import ServiceConfig
from .datastore.base import DataStore
from .datastore.supabase import SupabaseDataStore
from .errors import ConfigurationError
from .notifications import BookingNotifier
from .otp.models import OTPConfig
from .otp.service import OTPService
from .otp.store import OTPStore
from .otp.tickets import VerificationTicketStore
from .providers.base import MessagingProvider
from .providers.twilio import TwilioWhatsAppAdapter
from .rate_limit.fixed_window import FixedWindowRateLimiter
from .recurring.extender import RecurringExtender
from .reminders.dedup import ReminderDedup
from .reminders.scheduler import ReminderScheduler
from .reminders.windows import ReminderSchedule
from .state.base import KeyValueStore
from .state.memory import InMemoryKeyValueStore
from .state.redis_store import RedisKeyValueStore

logger = structlog.get_logger(__name__)


class LinedUpService:
    """
    Process-wide container for the notification core.

    The reminder scheduler, the recurring extender and the rate-limit sweeper
    run as independent asyncio tasks; OTP, rate-limit and notification calls
    are made directly by request handlers.
    """

    def __init__(
        self,
        config: ServiceConfig,
        store: Optional[KeyValueStore] = None,
        datastore: Optional[DataStore] = None,
        provider: Optional[MessagingProvider] = None,
        clock: Optional[Clock] = None,
    ):
        self.config = config
        self.clock = clock or SystemClock(config.timezone)
        timeout = config.request_timeout

        if store is None:
            if config.redis_url:
                store = RedisKeyValueStore.from_url(config.redis_url)
            else:
                store = InMemoryKeyValueStore(self.clock.timestamp)
        self.store = store

        if datastore is None:
            if not config.supabase or not config.supabase.service_key:
                raise ConfigurationError("Missing Supabase credentials: set SUPABASE_URL, SUPABASE_SERVICE_KEY")
            datastore = SupabaseDataStore(config.supabase, timeout=timeout)
        self.datastore = datastore

        if provider is None:
            if not config.twilio or not config.twilio.auth_token or not config.twilio.whatsapp_number:
                raise ConfigurationError(
                    "Missing Twilio credentials: set TWILIO_ACCOUNT_SID, "
                    "TWILIO_AUTH_TOKEN, TWILIO_WHATSAPP_NUMBER"
                )
            provider = TwilioWhatsAppAdapter(config.twilio, timeout=timeout, country_code=config.country_code)
        self.provider = provider

        self.tickets = VerificationTicketStore(
            self.store,
            ttl_seconds=config.ticket_ttl_seconds,
            clock=self.clock,
            country_code=config.country_code,
        )
        self.otp_store = OTPStore(
            self.store,
            self.tickets,
            config=OTPConfig(
                length=config.otp_length,
                expiry_seconds=config.otp_expiry_seconds,
                max_attempts=config.otp_max_attempts,
                ticket_ttl_seconds=config.ticket_ttl_seconds,
            ),
            clock=self.clock,
            country_code=config.country_code,
        )
        self.otp = OTPService(self.otp_store, self.tickets, self.provider, config.templates.otp, timeout=timeout)
        self.rate_limiter = FixedWindowRateLimiter(self.store, config.rate_limits, clock=self.clock)
        self.notifier = BookingNotifier(self.provider, config.templates, timeout=timeout)

        self.reminders = ReminderScheduler(
            self.datastore,
            self.provider,
            ReminderDedup(self.store),
            self.clock,
            template_id=config.templates.reminder,
            schedule=ReminderSchedule(
                morning_hour=config.morning_trigger_hour,
                evening_hour=config.evening_trigger_hour,
                include_early_morning=config.include_early_morning,
            ),
            timeout=timeout,
        )
        self.extender = RecurringExtender(
            self.datastore,
            self.clock,
            fallback_window_days=config.fallback_window_days,
            timeout=timeout,
            warmup_seconds=config.extender_warmup_seconds,
            interval_seconds=config.extender_interval_seconds,
        )

        self._tasks: List[asyncio.Task] = []

    @classmethod
    def from_env(cls) -> "LinedUpService":
        return cls(ServiceConfig.from_env())

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    async def start(self) -> None:
        """Initialize the provider and launch the background loops."""
        if self.running:
            return

        await self.provider.initialize()

        if not self.config.templates.reminder:
            logger.warning("Reminder template not configured; reminder sends will be rejected")

        self._tasks = [
            asyncio.create_task(self.reminders.run(), name="reminder-scheduler"),
            asyncio.create_task(self.extender.run(), name="recurring-extender"),
            asyncio.create_task(
                self.rate_limiter.run_sweeper(self.config.rate_limit_sweep_seconds),
                name="rate-limit-sweeper",
            ),
        ]
        logger.info("Notification service started", service=self.config.service_name)

    async def close(self) -> None:
        """Cancel the background loops and release connections."""
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []

        await self.provider.close()
        await self.datastore.close()
        await self.store.close()
        logger.info("Notification service stopped", service=self.config.service_name)
