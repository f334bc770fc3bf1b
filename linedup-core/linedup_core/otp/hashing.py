"""
Passcode Hashing
================
Passcodes are generated with ``secrets`` and only their salted digest is
written to the shared store.
"""

import secrets
import hashlib
import hmac


def generate_otp(length: int = 6) -> str:
    """Random numeric code of exactly ``length`` digits (leading zeros kept)."""
    return f"{secrets.randbelow(10 ** length):0{length}d}"


def generate_salt() -> str:
    return secrets.token_hex(16)


def hash_otp(code: str, salt: str) -> str:
    """
    Digest a code for storage.

    Args:
        code: Plain passcode
        salt: Per-entry salt from ``generate_salt``

    Returns:
        Hex SHA-256 of ``salt:code``
    """
    return hashlib.sha256(f"{salt}:{code}".encode()).hexdigest()


def verify_otp_hash(code: str, salt: str, digest: str) -> bool:
    """Compare a submitted code to the stored digest in constant time."""
    return hmac.compare_digest(hash_otp(code, salt), digest)
