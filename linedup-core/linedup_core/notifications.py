"""
Booking Notifications
=====================
Booking-lifecycle messages: confirmation, update/cancellation,
waiting-list openings and business broadcasts.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import date
from typing import List, Mapping, Optional, Sequence, Union

import structlog

from .config import TemplateIds
from .errors import DeliveryError
from .log_config import mask_phone
from .messaging.formatting import (
    format_short_date,
    format_time,
    DEFAULT_CLIENT_NAME,
    DEFAULT_SERVICE_NAME,
)
from .providers.base import MessagingProvider, SendResult

logger = structlog.get_logger(__name__)

STATUS_CANCELLED_TEXT = "בוטל"
STATUS_UPDATED_TEXT = "עודכן"


@dataclass
class BroadcastRecipient:
    phone: str
    name: Optional[str] = None


@dataclass
class BroadcastReport:
    sent: int = 0
    failed: int = 0
    failed_phones: List[str] = field(default_factory=list)


class BookingNotifier:
    """Sends booking-lifecycle templates through the messaging provider."""

    def __init__(self, provider: MessagingProvider, templates: TemplateIds, timeout: float = 15.0):
        self.provider = provider
        self.templates = templates
        self.timeout = timeout

    async def _send(self, phone: str, template_id: str, variables: Mapping[str, str]) -> SendResult:
        try:
            return await asyncio.wait_for(
                self.provider.send_template(phone, template_id, variables),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            raise DeliveryError("Provider request timed out", error_code="timeout") from e

    async def send_confirmation(
        self,
        phone: str,
        client_name: str,
        business_name: str,
        booking_date: Union[date, str],
        booking_time: str,
        service_name: Optional[str] = None,
    ) -> SendResult:
        """Confirm a new booking to the client."""
        result = await self._send(phone, self.templates.confirmation, {
            "1": str(client_name),
            "2": str(business_name),
            "3": format_short_date(booking_date),
            "4": format_time(booking_time),
            "5": str(service_name or DEFAULT_SERVICE_NAME),
        })
        logger.info("Confirmation sent", to=mask_phone(phone), sid=result.provider_message_id)
        return result

    async def send_update(
        self,
        phone: str,
        client_name: str,
        business_name: str,
        status: Optional[str] = None,
        booking_date: Optional[Union[date, str]] = None,
        booking_time: Optional[str] = None,
    ) -> SendResult:
        """Tell the client their booking was updated or cancelled."""
        status_text = STATUS_CANCELLED_TEXT if status == "cancelled" else STATUS_UPDATED_TEXT
        result = await self._send(phone, self.templates.update, {
            "1": str(client_name),
            "2": str(business_name),
            "3": status_text,
            "4": format_short_date(booking_date) if booking_date else "",
            "5": format_time(booking_time) if booking_time else "",
        })
        logger.info("Update sent", to=mask_phone(phone), status=status_text, sid=result.provider_message_id)
        return result

    async def send_waiting_list(
        self,
        phone: str,
        client_name: str,
        booking_date: Union[date, str],
        service_name: Optional[str] = None,
    ) -> SendResult:
        """Notify a waiting-list client that a slot opened up."""
        result = await self._send(phone, self.templates.waiting_list, {
            "1": str(client_name),
            "2": format_short_date(booking_date),
            "3": str(service_name or DEFAULT_SERVICE_NAME),
        })
        logger.info("Waiting list notification sent", to=mask_phone(phone), sid=result.provider_message_id)
        return result

    async def send_broadcast(
        self,
        recipients: Sequence[BroadcastRecipient],
        message: str,
    ) -> BroadcastReport:
        """
        Send one message to many clients.

        Recipients are processed in order; a failed send is counted and the
        broadcast continues.
        """
        report = BroadcastReport()
        for recipient in recipients:
            try:
                await self._send(recipient.phone, self.templates.broadcast, {
                    "1": str(recipient.name or DEFAULT_CLIENT_NAME),
                    "2": str(message),
                })
                report.sent += 1
            except DeliveryError as e:
                report.failed += 1
                report.failed_phones.append(recipient.phone)
                logger.warning("Broadcast send failed", to=mask_phone(recipient.phone), error=str(e))

        logger.info("Broadcast complete", sent=report.sent, failed=report.failed)
        return report
