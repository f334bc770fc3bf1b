"""
Verification Tickets
====================
Short-lived proof that a phone passed OTP verification.

A ticket is the only authorization for a password reset on that phone and
is consumed by the first reset that uses it.
"""

from typing import Optional, Tuple

import structlog

from ..clock import Clock, SystemClock
from ..log_config import mask_phone
from ..messaging.phone_utils import normalize_phone, DEFAULT_COUNTRY_CODE
from ..state.base import KeyValueStore, Value
from .models import VerificationTicket

logger = structlog.get_logger(__name__)


class VerificationTicketStore:
    """Grants and consumes single-use verification tickets."""

    def __init__(
        self,
        store: KeyValueStore,
        ttl_seconds: int = 600,
        clock: Optional[Clock] = None,
        country_code: str = DEFAULT_COUNTRY_CODE,
    ):
        self.store = store
        self.ttl_seconds = ttl_seconds
        self.clock = clock or SystemClock()
        self.country_code = country_code

    def _key(self, phone: str) -> str:
        return f"verified:{phone}"

    async def grant(self, phone: str) -> VerificationTicket:
        """Create (or refresh) the ticket for an already verified phone."""
        normalized = normalize_phone(phone, self.country_code)
        now = self.clock.timestamp()
        ticket = VerificationTicket(
            phone=normalized,
            verified_at=now,
            expires_at=now + self.ttl_seconds,
        )
        await self.store.set(self._key(normalized), ticket.to_dict(), ttl=self.ttl_seconds)
        logger.info("Verification ticket granted", phone=mask_phone(normalized))
        return ticket

    async def is_verified(self, phone: str) -> bool:
        """Check for a live ticket without consuming it."""
        normalized = normalize_phone(phone, self.country_code)
        if not normalized:
            return False
        data = await self.store.get(self._key(normalized))
        return bool(data) and not VerificationTicket.from_dict(data).is_expired(self.clock.timestamp())

    async def consume(self, phone: str) -> bool:
        """
        Atomically take the ticket for ``phone``.

        Returns:
            True exactly once per granted, unexpired ticket
        """
        normalized = normalize_phone(phone, self.country_code)
        if not normalized:
            return False

        now = self.clock.timestamp()

        def _take(current: Optional[Value]) -> Tuple[Optional[Value], bool]:
            if current is None:
                return None, False
            return None, not VerificationTicket.from_dict(current).is_expired(now)

        consumed = await self.store.update(self._key(normalized), _take)
        if consumed:
            logger.info("Verification ticket consumed", phone=mask_phone(normalized))
        return consumed

    async def authorize_password_reset(self, phone: str) -> bool:
        """Authorize one password reset for ``phone`` by consuming its ticket."""
        authorized = await self.consume(phone)
        if not authorized:
            logger.warning("Password reset without verification", phone=mask_phone(phone))
        return authorized
