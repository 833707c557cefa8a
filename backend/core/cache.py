"""In-process key/value cache with per-entry TTL.

Injected into the service layer only; the analytics engine never sees it.
"""

import copy
import logging
import time
from typing import Any, Callable

logger = logging.getLogger(__name__)


class TTLCache:
    def __init__(self, max_entries: int = 1000, clock: Callable[[], float] = time.monotonic):
        self.max_entries = max_entries
        self._clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}

    def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            logger.info("Cache MISS: %s", key)
            return None
        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            logger.debug("Cache EXPIRED: %s", key)
            return None
        logger.info("Cache HIT: %s", key)
        return copy.deepcopy(value)

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        if len(self._entries) >= self.max_entries:
            self._evict()
        self._entries[key] = (self._clock() + ttl_seconds, copy.deepcopy(value))

    def invalidate(self, prefix: str = "") -> int:
        """Drop every key starting with ``prefix`` (all keys when empty)."""
        keys = [k for k in self._entries if k.startswith(prefix)]
        for k in keys:
            del self._entries[k]
        if keys:
            logger.info("Invalidated %d cache entries for prefix %r", len(keys), prefix)
        return len(keys)

    def __len__(self) -> int:
        return len(self._entries)

    def _evict(self) -> None:
        """Remove expired entries, then the oldest half if still full."""
        now = self._clock()
        for k in [k for k, (exp, _) in self._entries.items() if exp <= now]:
            del self._entries[k]
        if len(self._entries) >= self.max_entries:
            oldest = sorted(self._entries, key=lambda k: self._entries[k][0])
            for k in oldest[: len(oldest) // 2 or 1]:
                del self._entries[k]
