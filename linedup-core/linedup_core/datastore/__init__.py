"""
Booking Data Store
==================
Interface and implementations of the business/booking/recurring-rule store.
"""

from .models import (
    Booking,
    BookingStatus,
    Business,
    Frequency,
    RecurringRule,
    FALLBACK_WINDOW_DAYS,
    time_key,
)
from .base import DataStore
from .memory import InMemoryDataStore
from .supabase import SupabaseDataStore

__all__ = [
    # Models
    "Booking",
    "BookingStatus",
    "Business",
    "Frequency",
    "RecurringRule",
    "FALLBACK_WINDOW_DAYS",
    "time_key",
    # Stores
    "DataStore",
    "InMemoryDataStore",
    "SupabaseDataStore",
]
