"""TTL cache for registry catalog responses."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, Optional, TypeVar

from constants import Constants

T = TypeVar("T")


@dataclass
class CacheEntry(Generic[T]):
    """A single cache entry with TTL."""

    value: T
    expires_at: float
    created_at: float = field(default_factory=time.time)

    def is_expired(self) -> bool:
        """Check if this entry has expired."""
        return time.time() > self.expires_at


class TTLCache:
    """Key/value cache with per-entry expiry.

    Used by the flat catalog resolver so that resolving many dependencies
    against one catalog downloads it once per TTL window.
    """

    def __init__(self, default_ttl: int = Constants.CATALOG_CACHE_TTL_SEC, max_entries: int = 1000):
        """Initialize the cache.

        Args:
            default_ttl: Default time-to-live in seconds.
            max_entries: Upper bound before the oldest entries are evicted.
        """
        self._default_ttl = default_ttl
        self._max_entries = max_entries
        self._cache: Dict[str, CacheEntry[Any]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value or None if missing/expired."""
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                return None
            if entry.is_expired():
                del self._cache[key]
                return None
            return entry.value

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """Cache ``value`` under ``key``.

        Args:
            key: Cache key.
            value: Value to store.
            ttl: Optional TTL override in seconds.
        """
        effective_ttl = ttl if ttl is not None else self._default_ttl
        with self._lock:
            self._cache[key] = CacheEntry(value=value, expires_at=time.time() + effective_ttl)
            if len(self._cache) > self._max_entries:
                self._evict_oldest(max(1, self._max_entries // 10))

    def invalidate(self, key: str) -> None:
        with self._lock:
            self._cache.pop(key, None)

    def clear(self) -> None:
        """Clear all cached entries."""
        with self._lock:
            self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)

    def _evict_oldest(self, count: int) -> None:
        """Evict the oldest entries."""
        sorted_keys = sorted(self._cache.keys(), key=lambda k: self._cache[k].created_at)
        for key in sorted_keys[:count]:
            del self._cache[key]
