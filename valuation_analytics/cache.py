"""Time-bucketed result cache for analytics computations."""

import logging
import time
from threading import Lock
from typing import Any, Callable, Dict, Hashable, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 15 * 60

CacheKey = Tuple[Hashable, Tuple[Tuple[str, Any], ...], int]


class AnalyticsCache:
    """
    In-memory cache with a fixed time-to-live.

    Create one per caller (or per test) and pass it in; nothing is shared
    through module state. Entries are published whole under a lock, so a
    reader sees either the old entry, the new one, or nothing. Concurrent
    misses for one key may each recompute; the last write wins. Expired
    entries are dropped when touched, on every write, or by purge_expired().
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize cache.

        Args:
            ttl_seconds: Lifetime of an entry
            clock: Source of the current time in seconds
        """
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive (got {ttl_seconds})")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[Hashable, Tuple[Any, float]] = {}
        self._lock = Lock()

    def make_key(self, subject: Hashable, params: Optional[Mapping[str, Any]] = None) -> CacheKey:
        """Key from subject identity, parameters and the current time bucket."""
        bucket = int(self._clock() // self.ttl_seconds)
        return (subject, tuple(sorted((params or {}).items())), bucket)

    def get(self, key: Hashable) -> Optional[Any]:
        """Live value for key, or None."""
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if now >= expires_at:
                del self._entries[key]
                return None
            return value

    def set(self, key: Hashable, value: Any) -> None:
        """Store value for key, sweeping out expired entries first."""
        now = self._clock()
        with self._lock:
            self._drop_expired(now)
            self._entries[key] = (value, now + self.ttl_seconds)

    def get_or_compute(self, key: Hashable, compute: Callable[[], Any]) -> Any:
        """
        Return the cached value, computing and storing it on a miss.

        The computation runs outside the lock. Errors propagate and nothing
        is cached.
        """
        value = self.get(key)
        if value is not None:
            logger.debug("Cache hit: %s", key)
            return value

        logger.debug("Cache miss: %s", key)
        value = compute()
        self.set(key, value)
        return value

    def invalidate(self, key: Hashable) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def purge_expired(self) -> int:
        """Drop expired entries; returns how many were removed."""
        now = self._clock()
        with self._lock:
            return self._drop_expired(now)

    def _drop_expired(self, now: float) -> int:
        # Caller holds the lock.
        expired = [key for key, (_, expires_at) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
