"""
In-memory caching layer for expensive external lookups.

This module provides:
- Thread-safe LRU cache with a fixed time-to-live per entry
- Memoization of async producers (``get_cached``)
- Cache key generation utilities
- Cache statistics

Entries live only for the process; nothing is written to disk.
"""

import hashlib
import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

# Type variable for generic cached producers
T = TypeVar("T")

DEFAULT_TTL_SECONDS = 3600.0


# =============================================================================
# Data Classes
# =============================================================================


@dataclass
class CacheEntry:
    """A cached value and the time it was stored."""

    value: Any
    stored_at: float
    hit_count: int = 0

    def is_stale(self, now: float, ttl: float) -> bool:
        """An entry is stale once its age reaches the TTL."""
        return now - self.stored_at >= ttl


@dataclass
class CacheStats:
    """Statistics for cache performance."""

    hits: int = 0
    misses: int = 0
    evictions: int = 0
    expirations: int = 0
    entries: int = 0

    @property
    def hit_rate(self) -> float:
        """Calculate cache hit rate as percentage."""
        total = self.hits + self.misses
        return (self.hits / total * 100) if total > 0 else 0.0


# =============================================================================
# In-Memory TTL Cache
# =============================================================================


class TTLCache:
    """
    Thread-safe in-memory LRU cache with a fixed TTL.

    Features:
    - Least Recently Used eviction
    - Stale entries are dropped on read
    - Async producer memoization
    - Hit/miss statistics
    """

    def __init__(
        self,
        default_ttl: float = DEFAULT_TTL_SECONDS,
        max_size: int = 1000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize the cache.

        Args:
            default_ttl: Entry lifetime in seconds (1 hour)
            max_size: Maximum number of entries
            clock: Monotonic time source in seconds
        """
        if default_ttl <= 0:
            raise ValueError(f"default_ttl must be > 0, got {default_ttl}")
        self._cache: OrderedDict[str, CacheEntry] = OrderedDict()
        self._ttl = default_ttl
        self._max_size = max_size
        self._clock = clock
        self._lock = threading.RLock()
        self._stats = CacheStats()

    @property
    def ttl(self) -> float:
        return self._ttl

    def _lookup(self, key: str) -> tuple[bool, Any]:
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                self._stats.misses += 1
                return False, None

            if entry.is_stale(self._clock(), self._ttl):
                del self._cache[key]
                self._stats.expirations += 1
                self._stats.misses += 1
                return False, None

            self._cache.move_to_end(key)
            entry.hit_count += 1
            self._stats.hits += 1
            return True, entry.value

    def get(self, key: str) -> Any | None:
        """
        Get a value from the cache.

        Returns:
            Cached value or None if not found/stale
        """
        _, value = self._lookup(key)
        return value

    def set(self, key: str, value: Any) -> None:
        """Store a value, evicting the least recently used entry if full."""
        with self._lock:
            if key in self._cache:
                del self._cache[key]

            while len(self._cache) >= self._max_size:
                oldest_key = next(iter(self._cache))
                del self._cache[oldest_key]
                self._stats.evictions += 1

            self._cache[key] = CacheEntry(value=value, stored_at=self._clock())

    async def get_cached(self, key: str, producer: Callable[[], Awaitable[T]]) -> T:
        """
        Return the fresh cached value for ``key`` or produce and store one.

        Producer failures propagate and nothing is stored. Cached ``None``
        values count as hits.
        """
        found, value = self._lookup(key)
        if found:
            logger.debug(f"Cache hit: {key}")
            return value

        value = await producer()
        self.set(key, value)
        return value

    def delete(self, key: str) -> bool:
        """Delete a key; returns True if it was present."""
        with self._lock:
            if key in self._cache:
                del self._cache[key]
                return True
            return False

    def clear(self) -> None:
        """Clear all entries from the cache."""
        with self._lock:
            self._cache.clear()
            self._stats = CacheStats()

    def cleanup_expired(self) -> int:
        """
        Remove all stale entries.

        Returns:
            Number of entries removed
        """
        with self._lock:
            now = self._clock()
            expired_keys = [
                k for k, v in self._cache.items() if v.is_stale(now, self._ttl)
            ]
            for key in expired_keys:
                del self._cache[key]
                self._stats.expirations += 1
            return len(expired_keys)

    def get_stats(self) -> CacheStats:
        """Get current cache statistics."""
        with self._lock:
            self._stats.entries = len(self._cache)
            return self._stats

    def __contains__(self, key: object) -> bool:
        """True if a fresh entry exists; does not touch stats or LRU order."""
        with self._lock:
            entry = self._cache.get(key)  # type: ignore[call-overload]
            return entry is not None and not entry.is_stale(self._clock(), self._ttl)

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)


# =============================================================================
# Cache Key Generation
# =============================================================================


def generate_cache_key(*args: Any, prefix: str = "", **kwargs: Any) -> str:
    """
    Generate a deterministic cache key from arguments.

    Returns:
        MD5 hash-based cache key, optionally prefixed
    """
    key_parts = [str(arg) for arg in args]
    key_parts.extend(f"{k}={v}" for k, v in sorted(kwargs.items()))
    key_data = ":".join(key_parts)

    hash_value = hashlib.md5(key_data.encode()).hexdigest()[:16]

    if prefix:
        return f"{prefix}:{hash_value}"
    return hash_value


def generate_search_cache_key(
    query: str, num_results: int, date_restrict: Optional[str] = None
) -> str:
    """Generate a cache key for a web search request."""
    return generate_cache_key(
        query, prefix="search", num=num_results, date=date_restrict or ""
    )


def generate_reference_cache_key(name: str) -> str:
    """Generate a cache key for an encyclopedic reference lookup."""
    return generate_cache_key(name.strip().lower(), prefix="reference")
