"""In-memory key/value cache with per-entry time-to-live.

One instance is shared by everything in the process that needs it
(standings per competition, competition names, competition listings).
Nothing is persisted; entries disappear on expiry or restart.
"""

import logging
import threading
import time
from typing import Any, Callable

logger = logging.getLogger(__name__)


class TTLCache:
    """Thread-safe dict of ``key -> (expires_at, value)``.

    Expired entries are dropped lazily when read. Writing an existing key
    replaces the value and its expiry.

    Usage::

        cache = TTLCache()
        cache.set("standings:40123", standings, ttl=600)
        standings = cache.get("standings:40123")
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def get(self, key: str, default: Any = None) -> Any:
        """Return the live value for *key*, or *default* on miss/expiry."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return default
            expires_at, value = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                logger.debug("Cache entry %s expired", key)
                return default
            return value

    def set(self, key: str, value: Any, ttl: float) -> None:
        """Store *value* under *key* for *ttl* seconds."""
        if ttl <= 0:
            raise ValueError(f"ttl must be positive, got {ttl}")
        with self._lock:
            self._entries[key] = (self._clock() + ttl, value)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: str) -> bool:
        sentinel = object()
        return self.get(key, sentinel) is not sentinel

    def __len__(self) -> int:
        """Number of live (unexpired) entries."""
        with self._lock:
            now = self._clock()
            return sum(1 for expires_at, _ in self._entries.values() if now < expires_at)
