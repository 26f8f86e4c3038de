"""Async-safe TTL cache for backend responses."""

import asyncio
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any


@dataclass
class CacheEntry:
    """A cached value with the time it was stored and its expiration time."""

    value: Any
    cached_at: datetime
    expires_at: datetime

    @property
    def ttl(self) -> timedelta:
        """Original time-to-live of the entry."""
        return self.expires_at - self.cached_at

    def is_expired(self, now: datetime | None = None) -> bool:
        return (now or datetime.now(UTC)) > self.expires_at


class TTLCache:
    """In-memory cache with TTL (time-to-live) support.

    Safe for concurrent coroutines using an asyncio lock. Expired
    entries are dropped on access or by ``cleanup``.

    Example:
        cache = TTLCache(default_ttl=timedelta(minutes=5))
        await cache.set("/protocols/bgp", payload)
        entry = await cache.get("/protocols/bgp")
    """

    def __init__(self, default_ttl: timedelta = timedelta(minutes=5)):
        """Initialize the cache.

        Args:
            default_ttl: Default time-to-live for cache entries.
        """
        self._cache: dict[str, CacheEntry] = {}
        self._lock = asyncio.Lock()
        self.default_ttl = default_ttl

    async def get(self, key: str) -> CacheEntry | None:
        """Get the entry for a key.

        Returns:
            The entry, or None if the key doesn't exist or is expired.
        """
        async with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                return None

            if entry.is_expired():
                del self._cache[key]
                return None

            return entry

    async def set(self, key: str, value: Any, ttl: timedelta | None = None) -> CacheEntry:
        """Store a value.

        Args:
            key: The cache key.
            value: The value to cache.
            ttl: Custom TTL for this entry. Uses default_ttl if not provided.

        Returns:
            The new entry.
        """
        now = datetime.now(UTC)
        entry = CacheEntry(
            value=value,
            cached_at=now,
            expires_at=now + (ttl if ttl is not None else self.default_ttl),
        )
        async with self._lock:
            self._cache[key] = entry
        return entry

    async def cleanup(self) -> int:
        """Remove all expired entries from the cache.

        Returns:
            Number of entries removed.
        """
        async with self._lock:
            now = datetime.now(UTC)
            expired_keys = [key for key, entry in self._cache.items() if entry.is_expired(now)]

            for key in expired_keys:
                del self._cache[key]

            return len(expired_keys)

    async def clear(self) -> int:
        """Remove all entries from the cache.

        Returns:
            Number of entries removed.
        """
        async with self._lock:
            count = len(self._cache)
            self._cache.clear()
            return count

    async def size(self) -> int:
        """Get the number of entries in the cache (including expired)."""
        async with self._lock:
            return len(self._cache)
