"""Custom exceptions for the TikTok cache service."""
from typing import Optional

from common_py.error_codes import ErrorCode, ServiceError


class TikTokCacheError(ServiceError):
    """Base exception for the TikTok cache service."""

    def __init__(self, message: str, error_code: ErrorCode = ErrorCode.ORIGIN_UNAVAILABLE,
                 cache_key: Optional[str] = None):
        self.cache_key = cache_key
        super().__init__(error_code, message, {"cache_key": cache_key} if cache_key else None)


class OriginError(TikTokCacheError):
    """Raised when the origin rejects a request or cannot be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None, url: Optional[str] = None,
                 error_code: ErrorCode = ErrorCode.ORIGIN_REJECTED):
        self.status_code = status_code
        self.url = url
        super().__init__(message, error_code)


class OriginTimeoutError(OriginError):
    """Raised when an origin request exceeds its timeout."""

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message, url=url, error_code=ErrorCode.NETWORK_TIMEOUT)


class CookieBootstrapError(OriginError):
    """Raised when the shared cookie set cannot be established at startup."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message, status_code=status_code, error_code=ErrorCode.COOKIE_BOOTSTRAP_FAILED)


class ShortLinkError(TikTokCacheError):
    """Raised when a short link redirects somewhere that is not a video page."""

    def __init__(self, message: str, destination: Optional[str] = None):
        self.destination = destination
        super().__init__(message, ErrorCode.INVALID_SHORT_LINK)


class ObjectStoreError(TikTokCacheError):
    """Raised when the object store fails an operation."""

    def __init__(self, message: str, key: Optional[str] = None, operation: Optional[str] = None):
        self.key = key
        self.operation = operation
        super().__init__(message, ErrorCode.OBJECT_STORE_UNAVAILABLE)


class ObjectNotFoundError(ObjectStoreError):
    """Raised when the object store has no object under the requested key."""

    def __init__(self, key: str, operation: Optional[str] = None):
        super().__init__(f"object not found: {key}", key=key, operation=operation)
        self.error_code = ErrorCode.RESOURCE_NOT_FOUND


class CacheStoreError(TikTokCacheError):
    """Raised when a confirmed metadata entry cannot be read or a new one cannot be written."""

    def __init__(self, message: str, cache_key: Optional[str] = None):
        super().__init__(message, ErrorCode.OBJECT_STORE_UNAVAILABLE, cache_key)


class CacheCorruptedError(CacheStoreError):
    """Raised when a cached metadata document cannot be decoded."""

    def __init__(self, message: str, cache_key: Optional[str] = None):
        super().__init__(message, cache_key)
        self.error_code = ErrorCode.CORRUPT_CACHE_ENTRY


class ConfigurationError(TikTokCacheError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str, config_key: Optional[str] = None):
        self.config_key = config_key
        super().__init__(message, ErrorCode.INVALID_CONFIGURATION)
