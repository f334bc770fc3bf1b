"""
Phone Utilities
===============
Functions for phone number normalization and addressing.
"""

import re
from typing import Optional

DEFAULT_COUNTRY_CODE = "972"


def normalize_phone(phone: Optional[str], country_code: str = DEFAULT_COUNTRY_CODE) -> Optional[str]:
    """
    Normalize a phone number to its canonical digit-only form.

    Local numbers lose their trunk prefix and gain the country code:
    ``054-123-4567`` becomes ``972541234567``. Normalizing an already
    normalized number returns it unchanged.

    Args:
        phone: Raw phone number
        country_code: Country calling code (without +)

    Returns:
        Digit string, or None if the input cannot address a recipient
    """
    if not phone:
        return None

    # Remove all non-digit characters
    digits = re.sub(r'\D', '', phone)
    if not digits:
        return None

    # Drop the trunk prefix
    if digits.startswith('0'):
        digits = digits[1:]

    if not digits.startswith(country_code):
        digits = f"{country_code}{digits}"

    return digits


def format_whatsapp_address(phone: Optional[str], country_code: str = DEFAULT_COUNTRY_CODE) -> Optional[str]:
    """
    Format a phone number as a WhatsApp destination address.

    Args:
        phone: Raw phone number
        country_code: Country calling code (without +)

    Returns:
        ``whatsapp:+<digits>`` or None
    """
    normalized = normalize_phone(phone, country_code)
    return f"whatsapp:+{normalized}" if normalized else None
