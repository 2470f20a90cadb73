"""TTL-based caching service."""

import asyncio
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class CacheEntry(Generic[T]):
    """A single cache entry with an absolute expiry time."""
    key: str
    value: T
    created_at: float
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now > self.expires_at


class TTLCache(Generic[T]):
    """In-memory cache with per-entry TTL and a bounded size.

    When the cache is full, inserting a new key evicts the entry that was
    inserted first, regardless of how recently it was read. Expired entries
    are dropped lazily on read and by the periodic sweep started with
    ``start()``.
    """

    def __init__(
        self,
        max_size: int = 100,
        name: str = "cache",
        clock: Callable[[], float] = time.monotonic,
        cleanup_interval: float = 3600,
    ):
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.max_size = max_size
        self.name = name
        self.cleanup_interval = cleanup_interval
        self._clock = clock
        self._cache: dict[str, CacheEntry[T]] = {}
        self._lock = threading.Lock()
        self._sweeper: Optional[asyncio.Task] = None

    def __len__(self) -> int:
        return len(self._cache)

    @staticmethod
    def generate_key(*parts: str) -> str:
        """Build a case-insensitive key, e.g. ``acme ltd:administration``."""
        return ":".join(str(part).lower() for part in parts)

    def set(self, key: str, value: T, ttl_ms: float) -> None:
        """Set cache data with TTL in milliseconds."""
        now = self._clock()
        with self._lock:
            if key not in self._cache and len(self._cache) >= self.max_size:
                oldest_key = next(iter(self._cache))
                del self._cache[oldest_key]
                logger.debug("%s: evicted %s", self.name, oldest_key)

            self._cache[key] = CacheEntry(
                key=key,
                value=value,
                created_at=now,
                expires_at=now + ttl_ms / 1000,
            )

    def get_entry(self, key: str) -> Optional[CacheEntry[T]]:
        """Get the cache entry if present and not expired."""
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                return None

            if entry.is_expired(self._clock()):
                # Expired
                del self._cache[key]
                return None

            return entry

    def get(self, key: str) -> Optional[T]:
        """Get cached data if not expired."""
        entry = self.get_entry(key)
        return entry.value if entry is not None else None

    def age(self, entry: CacheEntry[T]) -> float:
        """Seconds since the entry was stored."""
        return self._clock() - entry.created_at

    def has(self, key: str) -> bool:
        """Check if key exists and is not expired."""
        return self.get(key) is not None

    def delete(self, key: str) -> None:
        """Invalidate a cache entry."""
        with self._lock:
            self._cache.pop(key, None)

    def clear(self) -> None:
        """Clear all cache entries."""
        with self._lock:
            self._cache.clear()

    def cleanup(self) -> int:
        """Remove every expired entry and return how many were dropped."""
        now = self._clock()
        with self._lock:
            expired = [key for key, entry in self._cache.items() if entry.is_expired(now)]
            for key in expired:
                del self._cache[key]

        if expired:
            logger.debug("%s: swept %d expired entries", self.name, len(expired))
        return len(expired)

    def stats(self) -> dict:
        """Get cache stats."""
        now = self._clock()
        with self._lock:
            entries = list(self._cache.values())

        expired_entries = sum(1 for entry in entries if entry.is_expired(now))
        return {
            "size": len(entries),
            "maxSize": self.max_size,
            "validEntries": len(entries) - expired_entries,
            "expiredEntries": expired_entries,
        }

    # Periodic sweep lifecycle

    @property
    def running(self) -> bool:
        return self._sweeper is not None and not self._sweeper.done()

    def start(self) -> None:
        """Schedule the periodic cleanup on the running event loop."""
        if self.running:
            return
        self._sweeper = asyncio.get_running_loop().create_task(
            self._sweep_forever(), name=f"{self.name}-cleanup"
        )

    async def stop(self) -> None:
        """Cancel the periodic cleanup and wait for it to finish."""
        task, self._sweeper = self._sweeper, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _sweep_forever(self) -> None:
        while True:
            await asyncio.sleep(self.cleanup_interval)
            self.cleanup()
