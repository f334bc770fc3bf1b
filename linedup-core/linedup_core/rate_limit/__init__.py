"""
Rate Limiting Module
====================
Fixed window rate limiting with per-class ceilings.
"""

from .models import (
    RateLimitInfo,
    RateLimitRule,
    DEFAULT_RATE_LIMITS,
    DEFAULT_RULE_NAME,
    parse_rate_limits,
)
from .fixed_window import FixedWindowRateLimiter

__all__ = [
    # Models
    "RateLimitInfo",
    "RateLimitRule",
    "DEFAULT_RATE_LIMITS",
    "DEFAULT_RULE_NAME",
    "parse_rate_limits",
    # Limiters
    "FixedWindowRateLimiter",
]
