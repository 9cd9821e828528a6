"""
Decision cache.

Maps (normalized message, history length) to a SupervisorDecision for a bounded
time window. Eviction is insertion-order: when the store is full, the entry that
was inserted first goes, regardless of how recently it was read.
"""

import logging
import re
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from .agent_types import SupervisorDecision

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")


def cache_key(message: str, history_length: int) -> str:
    normalized = _WHITESPACE.sub(" ", message.lower().strip())
    return f"{normalized}_{history_length}"


@dataclass(frozen=True)
class CacheEntry:
    decision: SupervisorDecision
    created_at: float


class DecisionCache:
    """
    TTL-bounded, size-bounded decision store guarded by a single lock.

    `clock` returns seconds and is injectable so expiry can be tested without sleeping.
    """

    def __init__(
        self,
        ttl_seconds: float = 300.0,
        max_entries: int = 100,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._ttl = ttl_seconds
        self._max_entries = max_entries
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, CacheEntry] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, message: str, history_length: int) -> Optional[SupervisorDecision]:
        """Return the cached decision, or None if missing or expired (expired entries are dropped)."""
        key = cache_key(message, history_length)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() - entry.created_at > self._ttl:
                del self._entries[key]
                return None
            return entry.decision

    def put(self, message: str, history_length: int, decision: SupervisorDecision) -> None:
        key = cache_key(message, history_length)
        with self._lock:
            if key not in self._entries and len(self._entries) >= self._max_entries:
                oldest = next(iter(self._entries))
                del self._entries[oldest]
                logger.debug("decision cache full; evicted %r", oldest)
            # Re-inserting moves the key to the end of the insertion order.
            self._entries.pop(key, None)
            self._entries[key] = CacheEntry(decision=decision, created_at=self._clock())

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
