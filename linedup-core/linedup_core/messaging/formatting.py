"""
Message Formatting
==================
Date and time renderings used as template variables.
"""

from datetime import date, datetime, time
from typing import Union

HEBREW_MONTHS = (
    "ינואר",
    "פברואר",
    "מרץ",
    "אפריל",
    "מאי",
    "יוני",
    "יולי",
    "אוגוסט",
    "ספטמבר",
    "אוקטובר",
    "נובמבר",
    "דצמבר",
)

DEFAULT_CLIENT_NAME = "לקוח יקר"
DEFAULT_SERVICE_NAME = "תור"


def _as_date(value: Union[date, str]) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value[:10])


def format_day_month(value: Union[date, str]) -> str:
    """Render a date as Hebrew day and month, e.g. ``5 במרץ``."""
    d = _as_date(value)
    return f"{d.day} ב{HEBREW_MONTHS[d.month - 1]}"


def format_short_date(value: Union[date, str]) -> str:
    """
    Render a date as ``d.M.yyyy``.

    Unparseable strings are returned as given.
    """
    try:
        d = _as_date(value)
    except (ValueError, TypeError):
        return str(value)
    return f"{d.day}.{d.month}.{d.year}"


def format_time(value: Union[time, str]) -> str:
    """Truncate a time to ``HH:MM``."""
    if isinstance(value, time):
        return value.strftime("%H:%M")
    return str(value)[:5]
