"""
Rate Limit Models
=================
Rules and results for per-class rate limiting.
"""

from typing import Dict, Optional
from dataclasses import dataclass

from ..errors import ConfigurationError


@dataclass(frozen=True)
class RateLimitRule:
    """Ceiling for one endpoint class."""
    limit: int
    window_seconds: int


@dataclass
class RateLimitInfo:
    """Rate limit check result with quota information."""
    allowed: bool
    remaining: int
    limit: int
    reset_at: int  # Unix timestamp
    retry_after: Optional[int] = None  # Seconds until retry allowed


DEFAULT_RULE_NAME = "default"

# OTP issuance and broadcasts are tighter than single-recipient notifications
DEFAULT_RATE_LIMITS: Dict[str, RateLimitRule] = {
    "otp_send": RateLimitRule(limit=5, window_seconds=900),
    "otp_verify": RateLimitRule(limit=10, window_seconds=900),
    "notification": RateLimitRule(limit=60, window_seconds=60),
    "broadcast": RateLimitRule(limit=5, window_seconds=3600),
    DEFAULT_RULE_NAME: RateLimitRule(limit=100, window_seconds=60),
}


def parse_rate_limits(raw: str) -> Dict[str, RateLimitRule]:
    """
    Parse ``class=limit/window`` pairs.

    Example: ``"otp_send=3/600,broadcast=2/3600"``

    Raises:
        ConfigurationError: On a malformed entry
    """
    rules: Dict[str, RateLimitRule] = {}
    for item in raw.split(","):
        item = item.strip()
        if not item:
            continue
        try:
            name, ceiling = item.split("=", 1)
            limit, window = ceiling.split("/", 1)
            rules[name.strip()] = RateLimitRule(limit=int(limit), window_seconds=int(window))
        except ValueError as e:
            raise ConfigurationError(f"Invalid rate limit entry '{item}'") from e
    return rules
