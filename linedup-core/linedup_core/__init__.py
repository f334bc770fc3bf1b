"""
LinedUp Core Library
====================
Scheduling and state-tracking engine of the LinedUp notification service.
"""

__version__ = "2.1.0"

# Errors
from linedup_core.errors import (
    LinedUpError,
    ConfigurationError,
    InvalidPhoneError,
    RateLimitExceeded,
    DeliveryError,
    DataStoreError,
    DataStoreUnavailableError,
    RuleExtensionError,
)

# Configuration
from linedup_core.config import ServiceConfig, TwilioConfig, SupabaseConfig, TemplateIds
from linedup_core.log_config import configure_logging
from linedup_core.clock import Clock, SystemClock

# Messaging
from linedup_core.messaging import normalize_phone, format_whatsapp_address

# State
from linedup_core.state import KeyValueStore, InMemoryKeyValueStore, RedisKeyValueStore

# OTP
from linedup_core.otp import (
    OTPConfig,
    OTPErrorKind,
    VerifyResult,
    OTPStore,
    VerificationTicketStore,
    OTPService,
)

# Rate Limiting
from linedup_core.rate_limit import FixedWindowRateLimiter, RateLimitInfo, RateLimitRule

# Providers
from linedup_core.providers import MessagingProvider, SendResult, TwilioWhatsAppAdapter

# Data store
from linedup_core.datastore import (
    DataStore,
    InMemoryDataStore,
    SupabaseDataStore,
    Booking,
    BookingStatus,
    Business,
    Frequency,
    RecurringRule,
)

# Background loops
from linedup_core.reminders import ReminderScheduler, ReminderSchedule, ReminderDedup, ReminderPhase
from linedup_core.recurring import RecurringExtender, next_occurrence

# Notifications
from linedup_core.notifications import BookingNotifier, BroadcastRecipient, BroadcastReport

# Service
from linedup_core.service import LinedUpService

__all__ = [
    # Errors
    "LinedUpError",
    "ConfigurationError",
    "InvalidPhoneError",
    "RateLimitExceeded",
    "DeliveryError",
    "DataStoreError",
    "DataStoreUnavailableError",
    "RuleExtensionError",
    # Configuration
    "ServiceConfig",
    "TwilioConfig",
    "SupabaseConfig",
    "TemplateIds",
    "configure_logging",
    "Clock",
    "SystemClock",
    # Messaging
    "normalize_phone",
    "format_whatsapp_address",
    # State
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "RedisKeyValueStore",
    # OTP
    "OTPConfig",
    "OTPErrorKind",
    "VerifyResult",
    "OTPStore",
    "VerificationTicketStore",
    "OTPService",
    # Rate Limiting
    "FixedWindowRateLimiter",
    "RateLimitInfo",
    "RateLimitRule",
    # Providers
    "MessagingProvider",
    "SendResult",
    "TwilioWhatsAppAdapter",
    # Data store
    "DataStore",
    "InMemoryDataStore",
    "SupabaseDataStore",
    "Booking",
    "BookingStatus",
    "Business",
    "Frequency",
    "RecurringRule",
    # Background loops
    "ReminderScheduler",
    "ReminderSchedule",
    "ReminderDedup",
    "ReminderPhase",
    "RecurringExtender",
    "next_occurrence",
    # Notifications
    "BookingNotifier",
    "BroadcastRecipient",
    "BroadcastReport",
    # Service
    "LinedUpService",
]
