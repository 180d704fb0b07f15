"""Typed interfaces for cache-layer services."""

from typing import Protocol


class CacheError(RuntimeError):
    """Raised when a cache operation fails.

    Attributes:
        operation: Failed cache operation name.
        key: Optional cache key involved.
    """

    def __init__(self, operation: str, message: str, key: str | None = None):
        rendered_key = f" {key}" if key else ""
        super().__init__(f"cache {operation}{rendered_key}: {message}")
        self.operation = operation
        self.key = key


class CachePort(Protocol):
    """Port definition for an optional key/value cache."""

    def cache_backend_name(self) -> str:
        """Return a short backend label (`memory`, `redis`)."""

    def cache_is_configured(self) -> bool:
        """Return True when the backend has been configured for use."""

    def cache_is_available(self) -> bool:
        """Return True when the last connection attempt succeeded."""

    def cache_ping(self) -> None:
        """Check cache connectivity.

        Raises:
            ConnectionError: Raised when the cache cannot be reached.
        """

    def cache_get(self, key: str) -> bytes | None:
        """Return a cached value or None on miss.

        Raises:
            CacheError: Raised when the lookup fails.
        """

    def cache_set(self, key: str, value: bytes, ttl_seconds: int) -> None:
        """Store a value with expiry.

        Raises:
            CacheError: Raised when the write fails.
        """

    def cache_delete(self, *keys: str) -> None:
        """Remove keys; missing keys are ignored.

        Raises:
            CacheError: Raised when the delete fails.
        """
