"""
Twilio WhatsApp Provider Adapter
================================
Sends WhatsApp content-template messages through the Twilio Messages API.
"""

import json
from base64 import b64encode
from typing import Optional, Mapping

import httpx
import structlog

from ..config import TwilioConfig
from ..errors import DeliveryError
from ..log_config import mask_phone
from ..messaging.phone_utils import format_whatsapp_address, DEFAULT_COUNTRY_CODE
from .base import MessagingProvider, SendResult

logger = structlog.get_logger(__name__)


class TwilioWhatsAppAdapter(MessagingProvider):
    """
    Twilio WhatsApp adapter.

    Messages are sent with ``ContentSid`` and JSON ``ContentVariables`` so
    pre-approved WhatsApp templates can be used outside the 24h session.
    """

    name = "twilio"

    def __init__(
        self,
        config: TwilioConfig,
        timeout: float = 15.0,
        country_code: str = DEFAULT_COUNTRY_CODE,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            config: Twilio credentials and sender
            timeout: Per-request timeout in seconds
            country_code: Country code used to normalize destinations
            transport: Optional httpx transport (tests)
        """
        super().__init__()
        self.config = config
        self.timeout = timeout
        self.country_code = country_code
        self.base_url = f"{config.base_url}/Accounts/{config.account_sid}"
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def initialize(self) -> None:
        """Create HTTP client with auth."""
        auth = b64encode(f"{self.config.account_sid}:{self.config.auth_token}".encode()).decode()
        self._client = httpx.AsyncClient(
            headers={"Authorization": f"Basic {auth}"},
            timeout=self.timeout,
            transport=self._transport,
        )
        await super().initialize()

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
        await super().close()

    async def send_template(
        self,
        to: str,
        template_id: str,
        variables: Mapping[str, str],
    ) -> SendResult:
        """Send a WhatsApp template message via Twilio."""
        if not self._client:
            raise RuntimeError("Adapter not initialized")

        destination = format_whatsapp_address(to, self.country_code)
        if not destination:
            raise DeliveryError("Invalid phone number", error_code="invalid_destination")

        payload = {
            "To": destination,
            "From": self.config.whatsapp_number,
            "ContentSid": template_id,
            "ContentVariables": json.dumps({k: str(v) for k, v in variables.items()}),
        }

        try:
            response = await self._client.post(f"{self.base_url}/Messages.json", data=payload)
        except httpx.TimeoutException as e:
            logger.error("Twilio send timed out", to=mask_phone(destination))
            raise DeliveryError("Provider request timed out", error_code="timeout") from e
        except httpx.HTTPError as e:
            logger.error("Twilio send failed", to=mask_phone(destination), error=str(e))
            raise DeliveryError(f"Provider unreachable: {e}", error_code="transport") from e

        try:
            data = response.json()
        except ValueError:
            data = {}

        if response.status_code not in (200, 201):
            logger.error(
                "Twilio rejected message",
                to=mask_phone(destination),
                status=response.status_code,
                code=data.get("code"),
            )
            raise DeliveryError(
                data.get("message") or "Failed to send WhatsApp message",
                error_code=str(data.get("code", response.status_code)),
                status_code=response.status_code,
            )

        logger.info("WhatsApp message accepted", to=mask_phone(destination), sid=data.get("sid"))
        return SendResult(
            provider_message_id=data.get("sid", ""),
            status=data.get("status", "queued"),
            raw_response=data,
        )
