"""Cache abstraction for memoized permission lookups.

The cache is a side channel, never a source of truth: every implementation
must treat failures as misses so that callers fall through to the database.
"""

import fnmatch
import threading
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional


class PermissionCache(ABC):
    """Key-value store with TTL and glob-pattern deletes."""

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Return the stored value, or None when absent, expired or unavailable."""

    @abstractmethod
    def set(self, key: str, value: Any, ttl_seconds: int) -> bool:
        """Store *value* for *ttl_seconds*. Returns False if the write was dropped."""

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove a single key."""

    @abstractmethod
    def delete_pattern(self, pattern: str) -> int:
        """Remove every key matching a glob *pattern*. Returns the count removed."""

    def ping(self) -> bool:
        return True

    def close(self) -> None:
        """Release connections. No-op for in-process caches."""


class NullPermissionCache(PermissionCache):
    """Cache that never stores anything. Every lookup is a miss."""

    def get(self, key: str) -> Optional[Any]:
        return None

    def set(self, key: str, value: Any, ttl_seconds: int) -> bool:
        return False

    def delete(self, key: str) -> bool:
        return False

    def delete_pattern(self, pattern: str) -> int:
        return 0


class InMemoryPermissionCache(PermissionCache):
    """Process-local cache with per-key expiry.

    Suitable for tests and single-process development. Invalidations do not
    reach other processes.
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None):
        self._entries: dict[str, tuple[Any, float]] = {}
        self._lock = threading.Lock()
        self._clock = clock or time.monotonic

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if expires_at <= self._clock():
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: Any, ttl_seconds: int) -> bool:
        with self._lock:
            now = self._clock()
            self._purge_expired(now)
            self._entries[key] = (value, now + ttl_seconds)
        return True

    def _purge_expired(self, now: float) -> None:
        # Caller holds the lock.
        expired = [k for k, (_, expires_at) in self._entries.items() if expires_at <= now]
        for k in expired:
            del self._entries[k]

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def delete_pattern(self, pattern: str) -> int:
        with self._lock:
            doomed = [k for k in self._entries if fnmatch.fnmatchcase(k, pattern)]
            for k in doomed:
                del self._entries[k]
            return len(doomed)

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._entries)
