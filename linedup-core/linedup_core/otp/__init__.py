"""
OTP Issuance and Verification
=============================
Passcodes with expiry and attempt limiting, plus single-use
verification tickets for password reset.
"""

from .models import OTPConfig, OTPEntry, OTPErrorKind, VerificationTicket, VerifyResult
from .hashing import generate_otp, hash_otp, verify_otp_hash, generate_salt
from .tickets import VerificationTicketStore
from .store import OTPStore
from .service import OTPService

__all__ = [
    # Models
    "OTPConfig",
    "OTPEntry",
    "OTPErrorKind",
    "VerificationTicket",
    "VerifyResult",
    # Hashing
    "generate_otp",
    "hash_otp",
    "verify_otp_hash",
    "generate_salt",
    # Stores
    "VerificationTicketStore",
    "OTPStore",
    # Service
    "OTPService",
]
