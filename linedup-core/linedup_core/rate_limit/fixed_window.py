"""
Fixed Window Rate Limiter
=========================
Per-(endpoint class, client) request counter with configurable ceilings.
"""

import math
from typing import Dict, Optional, Tuple

import structlog

from ..clock import Clock, SystemClock
from ..errors import RateLimitExceeded
from ..state.base import KeyValueStore, Value
from .models import RateLimitInfo, RateLimitRule, DEFAULT_RATE_LIMITS, DEFAULT_RULE_NAME

logger = structlog.get_logger(__name__)


class FixedWindowRateLimiter:
    """
    Fixed window limiter.

    A window starts with the first request of a key and lasts
    ``window_seconds``; the request that pushes the count past the class
    ceiling, and every later one in that window, is denied.
    """

    def __init__(
        self,
        store: KeyValueStore,
        rules: Optional[Dict[str, RateLimitRule]] = None,
        clock: Optional[Clock] = None,
    ):
        """
        Args:
            store: Shared key-value store
            rules: Ceilings per endpoint class; ``"default"`` covers the rest
            clock: Time source
        """
        self.store = store
        self.rules = dict(rules or DEFAULT_RATE_LIMITS)
        self.rules.setdefault(DEFAULT_RULE_NAME, DEFAULT_RATE_LIMITS[DEFAULT_RULE_NAME])
        self.clock = clock or SystemClock()

    def rule_for(self, endpoint_class: str) -> RateLimitRule:
        return self.rules.get(endpoint_class, self.rules[DEFAULT_RULE_NAME])

    def get_key_pattern(self, endpoint_class: str, client_key: str) -> str:
        """Generate a rate limit key."""
        return f"ratelimit:{endpoint_class}:{client_key}"

    async def allow(self, endpoint_class: str, client_key: str) -> RateLimitInfo:
        """
        Count a request and decide whether it is allowed.

        Args:
            endpoint_class: Request class, e.g. ``otp_send``
            client_key: Client identifier (IP, phone, business id)

        Returns:
            RateLimitInfo with decision and quota
        """
        rule = self.rule_for(endpoint_class)
        now = self.clock.timestamp()

        def _count(current: Optional[Value]) -> Tuple[Value, RateLimitInfo]:
            if current is None or now >= current["window_start"] + current["window_seconds"]:
                window = {
                    "window_start": now,
                    "window_seconds": rule.window_seconds,
                    "count": 1,
                }
                return window, RateLimitInfo(
                    allowed=True,
                    remaining=rule.limit - 1,
                    limit=rule.limit,
                    reset_at=math.ceil(now + rule.window_seconds),
                )

            current["count"] += 1
            reset_at = current["window_start"] + current["window_seconds"]

            if current["count"] > rule.limit:
                return current, RateLimitInfo(
                    allowed=False,
                    remaining=0,
                    limit=rule.limit,
                    reset_at=math.ceil(reset_at),
                    retry_after=max(1, math.ceil(reset_at - now)),
                )

            return current, RateLimitInfo(
                allowed=True,
                remaining=rule.limit - current["count"],
                limit=rule.limit,
                reset_at=math.ceil(reset_at),
            )

        info = await self.store.update(
            self.get_key_pattern(endpoint_class, client_key),
            _count,
            ttl=rule.window_seconds,
        )

        if not info.allowed:
            logger.warning(
                "Rate limit exceeded",
                endpoint_class=endpoint_class,
                retry_after=info.retry_after,
            )
        return info

    async def enforce(self, endpoint_class: str, client_key: str) -> RateLimitInfo:
        """
        Like ``allow`` but raises when denied.

        Raises:
            RateLimitExceeded: With the seconds until the window resets
        """
        info = await self.allow(endpoint_class, client_key)
        if not info.allowed:
            raise RateLimitExceeded(endpoint_class, info.retry_after)
        return info

    async def sweep(self) -> int:
        """Remove expired windows (and any other expired state in the store)."""
        removed = await self.store.purge_expired()
        if removed:
            logger.info("Rate limit sweep", removed=removed)
        return removed

    async def run_sweeper(self, interval_seconds: float = 300.0) -> None:
        """Sweep forever, every ``interval_seconds``."""
        while True:
            await self.clock.sleep(interval_seconds)
            try:
                await self.sweep()
            except Exception as e:
                logger.error("Rate limit sweep failed", error=str(e))
