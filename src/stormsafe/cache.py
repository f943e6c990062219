"""Small in-memory caches with a time-to-live."""

import logging
import time
from typing import Any, Callable, Dict, Hashable, Optional, Tuple

logger = logging.getLogger(__name__)


class TTLCache:
    """Keeps values for a fixed number of seconds.

    Expired entries are evicted whenever a new value is written, and the
    oldest entry is dropped once ``max_size`` is reached. Concurrent writers
    simply overwrite each other; callers only store idempotent values.
    """

    def __init__(
        self,
        ttl_seconds: float,
        max_size: int = 10,
        clock: Callable[[], float] = time.time,
    ):
        self.ttl_seconds = ttl_seconds
        self.max_size = max_size
        self._clock = clock
        self._entries: Dict[Hashable, Tuple[Any, float]] = {}  # key -> (value, stored_at)

    def get(self, key: Hashable) -> Optional[Any]:
        """Return the cached value for ``key`` or None if missing or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, stored_at = entry
        if self._clock() - stored_at >= self.ttl_seconds:
            return None
        logger.debug(f"Cache hit for {key}")
        return value

    def set(self, key: Hashable, value: Any) -> None:
        """Store ``value`` under ``key``, stamping it with the current time."""
        now = self._clock()
        self._evict_expired(now)

        if key not in self._entries and len(self._entries) >= self.max_size:
            oldest_key = min(self._entries, key=lambda k: self._entries[k][1])
            del self._entries[oldest_key]

        self._entries[key] = (value, now)

    def _evict_expired(self, now: float) -> None:
        expired = [
            key for key, (_, stored_at) in self._entries.items()
            if now - stored_at >= self.ttl_seconds
        ]
        for key in expired:
            del self._entries[key]

        if expired:
            logger.debug(f"Evicted {len(expired)} expired cache entries")

    def clear(self) -> None:
        """Drop every entry."""
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class NullCache:
    """A cache that never stores anything."""

    def get(self, key: Hashable) -> Optional[Any]:
        return None

    def set(self, key: Hashable, value: Any) -> None:
        pass

    def clear(self) -> None:
        pass
