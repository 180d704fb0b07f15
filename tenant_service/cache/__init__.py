"""Cache layer package for optional key/value caching backends."""

from .interfaces import CacheError, CachePort
from .memory import MemoryCacheService
from .redis_cache import RedisCacheService

__all__ = ["CacheError", "CachePort", "MemoryCacheService", "RedisCacheService"]
