"""In-process cache backend for single-instance deployments and tests."""

from __future__ import annotations

import threading
import time
from typing import Callable

from .interfaces import CachePort


class MemoryCacheService(CachePort):
    """Thread-safe dictionary cache with per-key expiry."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, tuple[bytes, float]] = {}

    def cache_backend_name(self) -> str:
        return "memory"

    def cache_is_configured(self) -> bool:
        return True

    def cache_is_available(self) -> bool:
        return True

    def cache_ping(self) -> None:
        return None

    def cache_get(self, key: str) -> bytes | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if expires_at <= self._clock():
                del self._entries[key]
                return None
            return value

    def cache_set(self, key: str, value: bytes, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        with self._lock:
            self._entries[key] = (value, self._clock() + ttl_seconds)

    def cache_delete(self, *keys: str) -> None:
        with self._lock:
            for key in keys:
                self._entries.pop(key, None)
