"""
Standardized error codes for the system
"""
from enum import Enum


class ErrorCode(Enum):
    """Standardized error codes"""

    # Retryable errors (1000-1999)
    NETWORK_TIMEOUT = "RETRY_1001"
    ORIGIN_UNAVAILABLE = "RETRY_1002"
    OBJECT_STORE_UNAVAILABLE = "RETRY_1003"

    # Fatal errors (2000-2999)
    INVALID_CONFIGURATION = "FATAL_2001"
    RESOURCE_NOT_FOUND = "FATAL_2002"
    ORIGIN_REJECTED = "FATAL_2003"
    COOKIE_BOOTSTRAP_FAILED = "FATAL_2004"
    CORRUPT_CACHE_ENTRY = "FATAL_2005"
    INVALID_SHORT_LINK = "FATAL_2006"

    @property
    def is_retryable(self) -> bool:
        """Check if error is retryable"""
        return self.value.startswith("RETRY_")

    @property
    def is_fatal(self) -> bool:
        """Check if error is fatal"""
        return self.value.startswith("FATAL_")


class ServiceError(Exception):
    """Base exception with error code"""

    def __init__(self, error_code: ErrorCode, message: str, details: dict = None):
        self.error_code = error_code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to dictionary for logging/serialization"""
        return {
            "error_code": self.error_code.value,
            "message": self.message,
            "details": self.details,
            "retryable": self.error_code.is_retryable,
            "fatal": self.error_code.is_fatal
        }
