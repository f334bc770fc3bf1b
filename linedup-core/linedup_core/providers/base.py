"""
Messaging Provider Interface
============================
Base class for template-based outbound messaging providers.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Dict, Any, Mapping

import structlog

logger = structlog.get_logger(__name__)


@dataclass
class SendResult:
    """Result of an accepted message send."""
    provider_message_id: str
    status: str = "queued"
    raw_response: Optional[Dict[str, Any]] = None


class MessagingProvider(ABC):
    """
    Abstract base class for messaging provider adapters.

    Implementations raise ``DeliveryError`` for an invalid destination, a
    provider rejection or a transport failure.
    """

    name: str = "base"

    def __init__(self):
        self._is_initialized = False

    async def initialize(self) -> None:
        """Initialize the adapter (e.g., create HTTP clients)."""
        self._is_initialized = True
        logger.info("Provider adapter initialized", provider=self.name)

    async def close(self) -> None:
        """Clean up resources (e.g., close HTTP clients)."""
        self._is_initialized = False
        logger.info("Provider adapter closed", provider=self.name)

    @abstractmethod
    async def send_template(
        self,
        to: str,
        template_id: str,
        variables: Mapping[str, str],
    ) -> SendResult:
        """
        Send a template message.

        Args:
            to: Recipient phone number (any format, normalized by the adapter)
            template_id: Provider template identifier
            variables: Positional template variables, ``{"1": ..., "2": ...}``

        Returns:
            SendResult with the provider message id
        """
        pass
