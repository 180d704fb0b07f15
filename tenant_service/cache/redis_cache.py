"""Redis cache backend built on the redis-py client."""

from __future__ import annotations

import logging

import redis
from redis.exceptions import RedisError

from .interfaces import CacheError, CachePort

logger = logging.getLogger(__name__)


class RedisCacheService(CachePort):
    """Cache backend delegating to a redis-py client.

    Availability is decided by `cache_connect()` at startup: a failed initial
    ping leaves the service configured but unavailable.
    """

    def __init__(self, client: redis.Redis):
        """Initialize Redis cache service.

        Args:
            client: redis-py client.

        Raises:
            ValueError: Raised when client is None.
        """

        if client is None:
            raise ValueError("client must not be None")
        self._client = client
        self._available = False

    @classmethod
    def from_url(cls, redis_url: str, socket_timeout_seconds: float = 3.0) -> RedisCacheService:
        """Build a service from a Redis URL.

        Args:
            redis_url: Redis connection URL.
            socket_timeout_seconds: Socket connect and read timeout.

        Returns:
            RedisCacheService: Unconnected service instance.
        """

        client = redis.Redis.from_url(
            redis_url,
            socket_timeout=socket_timeout_seconds,
            socket_connect_timeout=socket_timeout_seconds,
        )
        return cls(client=client)

    def cache_connect(self) -> bool:
        """Ping once and record availability.

        Returns:
            bool: True when Redis answered the ping.
        """

        try:
            self._client.ping()
        except RedisError as error:
            logger.warning("Redis cache unavailable, continuing without cache: %s", error)
            self._available = False
            return False
        self._available = True
        logger.info("Redis cache connected")
        return True

    def cache_close(self) -> None:
        self._client.close()
        self._available = False

    def cache_backend_name(self) -> str:
        return "redis"

    def cache_is_configured(self) -> bool:
        return True

    def cache_is_available(self) -> bool:
        return self._available

    def cache_ping(self) -> None:
        try:
            self._client.ping()
        except RedisError as error:
            raise ConnectionError(f"redis ping failed: {error}") from error

    def cache_get(self, key: str) -> bytes | None:
        try:
            return self._client.get(key)
        except RedisError as error:
            raise CacheError("get", str(error), key=key) from error

    def cache_set(self, key: str, value: bytes, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        try:
            self._client.set(key, value, ex=ttl_seconds)
        except RedisError as error:
            raise CacheError("set", str(error), key=key) from error

    def cache_delete(self, *keys: str) -> None:
        if not keys:
            return
        try:
            self._client.delete(*keys)
        except RedisError as error:
            raise CacheError("delete", str(error)) from error
