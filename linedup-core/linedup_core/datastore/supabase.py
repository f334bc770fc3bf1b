"""
Supabase Data Store
===================
Data store backed by Supabase's PostgREST API.

Features:
- Automatic retries on network errors, timeouts and 5xx responses.
- Connection pooling (via httpx.AsyncClient).
- Pydantic row validation.
- Standardized exception mapping.
"""

import datetime as dt
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple, Type, TypeVar

import httpx
import structlog
from pydantic import BaseModel, ValidationError
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type, before_sleep_log

from ..config import SupabaseConfig
from ..errors import DataStoreError, DataStoreUnavailableError
from .base import DataStore
from .models import Booking, BookingStatus, Business, RecurringRule, time_key

logger = structlog.get_logger(__name__)

# tenacity's before_sleep_log needs a stdlib logger
_retry_logger = logging.getLogger(__name__)

Params = Sequence[Tuple[str, str]]
M = TypeVar("M", bound=BaseModel)


class SupabaseDataStore(DataStore):
    """PostgREST client for the ``businesses``, ``bookings`` and ``recurring_appointments`` tables."""

    def __init__(
        self,
        config: SupabaseConfig,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config
        self.base_url = f"{config.url.rstrip('/')}/rest/v1"
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            headers={
                "apikey": config.service_key,
                "Authorization": f"Bearer {config.service_key}",
                "Accept": "application/json",
            },
            transport=transport,
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self.client.aclose()

    def _map_exception(self, exc: Exception) -> DataStoreError:
        """Map httpx exceptions to data-store exceptions."""
        if isinstance(exc, httpx.TimeoutException):
            return DataStoreUnavailableError("Request timed out")
        if isinstance(exc, httpx.HTTPStatusError):
            status = exc.response.status_code
            text = exc.response.text
            if status >= 500:
                return DataStoreUnavailableError("Server error", status_code=status, details=text)
            return DataStoreError(f"HTTP {status} Error", status_code=status, details=text)
        if isinstance(exc, httpx.HTTPError):
            return DataStoreUnavailableError(f"Failed to connect: {exc}")
        return DataStoreError(f"Unexpected error: {exc}")

    def _parse(self, model: Type[M], rows: Any) -> List[M]:
        """Validate response rows; a malformed row is a data-store error."""
        try:
            return [model.model_validate(row) for row in rows or []]
        except ValidationError as e:
            raise DataStoreError(f"Malformed {model.__name__} row", details=str(e)) from e

    @retry(
        retry=retry_if_exception_type(DataStoreUnavailableError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        before_sleep=before_sleep_log(_retry_logger, logging.WARNING),
        reraise=True,
    )
    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Params] = None,
        json: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        """Execute request with retries and error handling."""
        try:
            response = await self.client.request(method, path, params=params, json=json, headers=headers)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise self._map_exception(e) from e

        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    async def list_businesses(self, reminders_enabled: Optional[bool] = None) -> List[Business]:
        params: List[Tuple[str, str]] = [("select", "*")]
        if reminders_enabled is True:
            params.append(("or", "(reminders_enabled.is.null,reminders_enabled.eq.true)"))
        elif reminders_enabled is False:
            params.append(("reminders_enabled", "eq.false"))

        rows = await self._request("GET", "/businesses", params=params)
        return self._parse(Business, rows)

    async def list_bookings(
        self,
        business_id: str,
        booking_date: dt.date,
        status: BookingStatus = BookingStatus.CONFIRMED,
        time_from: Optional[str] = None,
        time_to: Optional[str] = None,
    ) -> List[Booking]:
        params: List[Tuple[str, str]] = [
            ("select", "*"),
            ("business_id", f"eq.{business_id}"),
            ("status", f"eq.{status.value}"),
            ("date", f"eq.{booking_date.isoformat()}"),
            ("client_phone", "not.is.null"),
        ]
        if time_from:
            params.append(("time", f"gte.{time_key(time_from)}"))
        if time_to:
            params.append(("time", f"lte.{time_key(time_to)}"))
        params.append(("order", "time.asc"))

        rows = await self._request("GET", "/bookings", params=params)
        return self._parse(Booking, rows)

    async def list_active_recurring_rules(self) -> List[RecurringRule]:
        params = [("select", "*,businesses(*)"), ("is_active", "eq.true")]
        rows = await self._request("GET", "/recurring_appointments", params=params)
        return self._parse(RecurringRule, rows)

    async def booking_exists(
        self,
        business_id: str,
        booking_date: dt.date,
        time: str,
        client_phone: Optional[str],
    ) -> bool:
        params = [
            ("select", "id"),
            ("business_id", f"eq.{business_id}"),
            ("date", f"eq.{booking_date.isoformat()}"),
            ("time", f"eq.{time_key(time)}"),
            ("client_phone", f"eq.{client_phone}" if client_phone else "is.null"),
            ("status", f"neq.{BookingStatus.CANCELLED.value}"),
            ("limit", "1"),
        ]
        rows = await self._request("GET", "/bookings", params=params)
        return bool(rows)

    async def create_booking(self, booking: Booking) -> Booking:
        payload = booking.model_dump(mode="json", exclude_none=True)
        rows = await self._request(
            "POST",
            "/bookings",
            json=payload,
            headers={"Prefer": "return=representation"},
        )
        if not rows:
            raise DataStoreError("Insert returned no row")
        return Booking.model_validate(rows[0] if isinstance(rows, list) else rows)

    async def update_rule_last_booking_date(self, rule_id: str, last_booking_date: dt.date) -> None:
        await self._request(
            "PATCH",
            "/recurring_appointments",
            params=[("id", f"eq.{rule_id}")],
            json={"last_booking_date": last_booking_date.isoformat()},
        )
