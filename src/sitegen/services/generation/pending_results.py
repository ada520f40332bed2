"""Pending Generation Results
==========================

Holds the final payload of a generation run until the client that started
it fetches it once. Entries expire after a TTL and the oldest are evicted
when the store is full, so results nobody reads (client went away) do not
accumulate.
"""

import logging
import time
from collections import OrderedDict
from threading import Lock
from typing import Any, Callable, Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300.0
DEFAULT_MAX_ENTRIES = 64


class PendingResultStore:
    """Thread-safe read-once store keyed by session id."""

    def __init__(self, max_entries: int = DEFAULT_MAX_ENTRIES, ttl_seconds: float = DEFAULT_TTL_SECONDS,
                 clock: Callable[[], float] = time.monotonic):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: 'OrderedDict[str, Tuple[float, Any]]' = OrderedDict()
        self._lock = Lock()

    def put(self, key: str, value: Any) -> None:
        with self._lock:
            self._purge_locked()
            self._entries.pop(key, None)
            self._entries[key] = (self._clock() + self.ttl_seconds, value)
            while len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.warning(f"Pending result store full, evicted result for session {evicted}")

    def pop(self, key: str) -> Optional[Any]:
        """Return and remove the value for ``key``; ``None`` if absent or expired."""
        with self._lock:
            entry = self._entries.pop(key, None)
        if entry is None:
            return None
        expires_at, value = entry
        if expires_at <= self._clock():
            logger.info(f"Pending result for session {key} expired before it was read")
            return None
        return value

    def purge_expired(self) -> int:
        with self._lock:
            return self._purge_locked()

    def _purge_locked(self) -> int:
        now = self._clock()
        expired = [key for key, (expires_at, _) in self._entries.items() if expires_at <= now]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug(f"Purged {len(expired)} expired pending results")
        return len(expired)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


_store: Optional[PendingResultStore] = None


def get_pending_result_store(max_entries: int = DEFAULT_MAX_ENTRIES,
                             ttl_seconds: float = DEFAULT_TTL_SECONDS) -> PendingResultStore:
    """Get the process-wide store (sized on first use)."""
    global _store
    if _store is None:
        _store = PendingResultStore(max_entries=max_entries, ttl_seconds=ttl_seconds)
    return _store


def reset_pending_result_store() -> None:
    global _store
    _store = None


__all__ = ['PendingResultStore', 'get_pending_result_store', 'reset_pending_result_store']
