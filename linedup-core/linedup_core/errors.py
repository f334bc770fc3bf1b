"""
Error Taxonomy
==============
Exceptions raised by the LinedUp core and its collaborators.
"""

from typing import Optional, Any


class LinedUpError(Exception):
    """Base exception for all LinedUp core errors."""
    pass


class ConfigurationError(LinedUpError):
    """Raised when required configuration is missing or malformed."""
    pass


class InvalidPhoneError(LinedUpError):
    """Raised when a phone number cannot be normalized to an address."""

    def __init__(self, phone: Optional[str]):
        self.phone = phone
        super().__init__("Invalid phone number")


class RateLimitExceeded(LinedUpError):
    """Raised when a request class exceeds its ceiling."""

    def __init__(self, endpoint_class: str, retry_after: int):
        self.endpoint_class = endpoint_class
        self.retry_after = retry_after
        super().__init__(
            f"Rate limit exceeded for {endpoint_class}, retry in {retry_after}s"
        )


class DeliveryError(LinedUpError):
    """Raised when the messaging provider does not accept a message."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(f"{message} (code: {error_code}, status: {status_code})")


class DataStoreError(LinedUpError):
    """Base exception for data-store failures."""

    def __init__(self, message: str, status_code: Optional[int] = None, details: Any = None):
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(f"{message} (Status: {status_code})")


class DataStoreUnavailableError(DataStoreError):
    """Raised when the data store is unreachable, timing out or returns 5xx."""
    pass


class RuleExtensionError(LinedUpError):
    """Raised when a recurring rule stops part-way; ``created`` bookings were kept."""

    def __init__(self, rule_id: str, created: int, cause: Exception):
        self.rule_id = rule_id
        self.created = created
        self.cause = cause
        super().__init__(
            f"Recurring rule {rule_id} stopped after {created} bookings: {cause}"
        )
