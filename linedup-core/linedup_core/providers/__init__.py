"""
LinedUp Provider Adapters
=========================
Outbound messaging providers.
"""

from .base import MessagingProvider, SendResult
from .twilio import TwilioWhatsAppAdapter

__all__ = [
    "MessagingProvider",
    "SendResult",
    "TwilioWhatsAppAdapter",
]
