"""
OTP Service
===========
Issues a passcode and delivers it over WhatsApp.
"""

import asyncio

import structlog

from ..errors import DeliveryError
from ..log_config import mask_phone
from ..providers.base import MessagingProvider, SendResult
from .models import VerifyResult
from .store import OTPStore
from .tickets import VerificationTicketStore

logger = structlog.get_logger(__name__)


class OTPService:
    """Request-side OTP operations: send, verify, authorize reset."""

    def __init__(
        self,
        otp_store: OTPStore,
        tickets: VerificationTicketStore,
        provider: MessagingProvider,
        template_id: str,
        timeout: float = 15.0,
    ):
        self.otp_store = otp_store
        self.tickets = tickets
        self.provider = provider
        self.template_id = template_id
        self.timeout = timeout

    async def send_code(self, phone: str) -> SendResult:
        """
        Issue a code for ``phone`` and send it with the authentication template.

        Raises:
            InvalidPhoneError: If the phone cannot be normalized
            DeliveryError: If the provider does not accept the message
        """
        code = await self.otp_store.issue(phone)
        try:
            result = await asyncio.wait_for(
                self.provider.send_template(phone, self.template_id, {"1": code}),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            logger.error("OTP send timed out", phone=mask_phone(phone), timeout=self.timeout)
            raise DeliveryError("Provider request timed out", error_code="timeout") from e
        logger.info("OTP sent", phone=mask_phone(phone), sid=result.provider_message_id)
        return result

    async def verify(self, phone: str, code: str, keep_verified: bool = False) -> VerifyResult:
        return await self.otp_store.verify(phone, code, keep_verified=keep_verified)

    async def authorize_password_reset(self, phone: str) -> bool:
        return await self.tickets.authorize_password_reset(phone)
