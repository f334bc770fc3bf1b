"""
OTP Models
==========
Data models and enums for OTP issuance and verification.
"""

from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Dict, Optional


class OTPErrorKind(str, Enum):
    """Reasons a verification fails."""
    NOT_FOUND = "not_found"
    EXPIRED = "expired"
    TOO_MANY_ATTEMPTS = "too_many_attempts"
    MISMATCH = "mismatch"


ERROR_MESSAGES = {
    OTPErrorKind.NOT_FOUND: "OTP not found or expired",
    OTPErrorKind.EXPIRED: "OTP expired",
    OTPErrorKind.TOO_MANY_ATTEMPTS: "Too many attempts",
    OTPErrorKind.MISMATCH: "Invalid OTP",
}


@dataclass
class OTPConfig:
    """Configuration for OTP issuance."""
    length: int = 6
    expiry_seconds: int = 600  # 10 minutes
    max_attempts: int = 5
    ticket_ttl_seconds: int = 600


@dataclass
class OTPEntry:
    """A live passcode for one normalized phone."""
    phone: str
    code_hash: str
    salt: str
    expires_at: float  # Unix timestamp
    attempts: int = 0

    def is_expired(self, now: float) -> bool:
        return now > self.expires_at

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OTPEntry":
        return cls(**data)


@dataclass
class VerificationTicket:
    """Proof that a phone passed OTP verification, for password reset."""
    phone: str
    verified_at: float
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now > self.expires_at

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VerificationTicket":
        return cls(**data)


@dataclass
class VerifyResult:
    """Outcome of a verify call."""
    valid: bool
    error: Optional[OTPErrorKind] = None

    @property
    def message(self) -> str:
        if self.valid:
            return "Verified"
        return ERROR_MESSAGES[self.error]
