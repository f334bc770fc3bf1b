"""
Messaging Utilities
===================
Phone addressing and template-variable formatting.
"""

from .phone_utils import normalize_phone, format_whatsapp_address, DEFAULT_COUNTRY_CODE
from .formatting import (
    format_day_month,
    format_short_date,
    format_time,
    DEFAULT_CLIENT_NAME,
    DEFAULT_SERVICE_NAME,
)

__all__ = [
    # Phone
    "normalize_phone",
    "format_whatsapp_address",
    "DEFAULT_COUNTRY_CODE",
    # Formatting
    "format_day_month",
    "format_short_date",
    "format_time",
    "DEFAULT_CLIENT_NAME",
    "DEFAULT_SERVICE_NAME",
]
