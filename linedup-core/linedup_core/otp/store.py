"""
OTP Store
=========
Issues passcodes keyed by normalized phone and verifies them with expiry
and attempt limiting.
"""

from typing import Optional, Tuple

import structlog

from ..clock import Clock, SystemClock
from ..errors import InvalidPhoneError
from ..log_config import mask_phone
from ..messaging.phone_utils import normalize_phone, DEFAULT_COUNTRY_CODE
from ..state.base import KeyValueStore, Value
from .hashing import generate_otp, generate_salt, hash_otp, verify_otp_hash
from .models import OTPConfig, OTPEntry, OTPErrorKind, VerifyResult
from .tickets import VerificationTicketStore

logger = structlog.get_logger(__name__)

# Expired entries linger briefly so verify can report EXPIRED instead of NOT_FOUND
EXPIRY_GRACE_SECONDS = 60


class OTPStore:
    """
    Short-lived passcodes, at most one live entry per phone.

    ``verify`` is single-use: a second call with the correct code after a
    success returns NOT_FOUND.
    """

    def __init__(
        self,
        store: KeyValueStore,
        tickets: VerificationTicketStore,
        config: Optional[OTPConfig] = None,
        clock: Optional[Clock] = None,
        country_code: str = DEFAULT_COUNTRY_CODE,
    ):
        self.store = store
        self.tickets = tickets
        self.config = config or OTPConfig()
        self.clock = clock or SystemClock()
        self.country_code = country_code

    def _key(self, phone: str) -> str:
        return f"otp:{phone}"

    def _normalize(self, phone: Optional[str]) -> str:
        normalized = normalize_phone(phone, self.country_code)
        if not normalized:
            raise InvalidPhoneError(phone)
        return normalized

    async def issue(self, phone: str) -> str:
        """
        Create a passcode for ``phone``, replacing any live one.

        The entry is stored with a TTL just past its expiry, so it is purged
        even if nobody ever verifies it.

        Args:
            phone: Raw phone number

        Returns:
            Plain 6-digit code to deliver to the user

        Raises:
            InvalidPhoneError: If the phone cannot be normalized
        """
        normalized = self._normalize(phone)
        code = generate_otp(self.config.length)
        salt = generate_salt()

        entry = OTPEntry(
            phone=normalized,
            code_hash=hash_otp(code, salt),
            salt=salt,
            expires_at=self.clock.timestamp() + self.config.expiry_seconds,
        )
        await self.store.set(
            self._key(normalized),
            entry.to_dict(),
            ttl=self.config.expiry_seconds + EXPIRY_GRACE_SECONDS,
        )

        logger.info(
            "OTP issued",
            phone=mask_phone(normalized),
            expires_in=self.config.expiry_seconds,
        )
        return code

    async def verify(self, phone: str, code: str, keep_verified: bool = False) -> VerifyResult:
        """
        Verify a passcode.

        Every call on a live entry counts as an attempt, including the call
        that succeeds. The entry is purged on success, on expiry and once
        ``max_attempts`` is reached.

        Args:
            phone: Raw phone number
            code: User-provided code
            keep_verified: Grant a verification ticket on success

        Returns:
            VerifyResult
        """
        normalized = normalize_phone(phone, self.country_code)
        if not normalized:
            return VerifyResult(valid=False, error=OTPErrorKind.NOT_FOUND)

        now = self.clock.timestamp()
        max_attempts = self.config.max_attempts

        def _check(current: Optional[Value]) -> Tuple[Optional[Value], VerifyResult]:
            if current is None:
                return None, VerifyResult(False, OTPErrorKind.NOT_FOUND)

            entry = OTPEntry.from_dict(current)

            if entry.is_expired(now):
                return None, VerifyResult(False, OTPErrorKind.EXPIRED)

            if entry.attempts >= max_attempts:
                return None, VerifyResult(False, OTPErrorKind.TOO_MANY_ATTEMPTS)

            entry.attempts += 1

            if verify_otp_hash(str(code), entry.salt, entry.code_hash):
                return None, VerifyResult(True)

            if entry.attempts >= max_attempts:
                return None, VerifyResult(False, OTPErrorKind.TOO_MANY_ATTEMPTS)

            return entry.to_dict(), VerifyResult(False, OTPErrorKind.MISMATCH)

        result = await self.store.update(self._key(normalized), _check)

        if result.valid:
            logger.info("OTP verified successfully", phone=mask_phone(normalized))
            if keep_verified:
                await self.tickets.grant(normalized)
        else:
            logger.warning(
                "OTP verification failed",
                phone=mask_phone(normalized),
                reason=result.error.value,
            )

        return result
