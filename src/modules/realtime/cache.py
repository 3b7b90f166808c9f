"""Bounded, expiring set of already-processed event ids."""

from __future__ import annotations

import threading
import time
from collections import OrderedDict
from typing import Callable, Hashable


class ExpiringEventCache:
    """LRU + TTL membership cache, safe to share between threads.

    ``check_and_add`` answers "have I seen this id recently?" and records
    it.  Entries expire after ``ttl`` seconds; beyond ``max_size`` the
    least recently seen entry is evicted.
    """

    def __init__(
        self,
        max_size: int = 1000,
        ttl: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        self.max_size = max_size
        self.ttl = ttl
        self._clock = clock
        self._entries: OrderedDict[Hashable, float] = OrderedDict()
        self._lock = threading.Lock()

    def check_and_add(self, key: Hashable) -> bool:
        """``True`` if *key* was already present and fresh."""
        now = self._clock()
        with self._lock:
            self._evict_expired(now)
            seen = key in self._entries
            self._entries[key] = now
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_size:
                self._entries.popitem(last=False)
            return seen

    def __contains__(self, key: Hashable) -> bool:
        now = self._clock()
        with self._lock:
            self._evict_expired(now)
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            self._evict_expired(self._clock())
            return len(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def _evict_expired(self, now: float) -> None:
        # Oldest first: stop at the first fresh entry.
        while self._entries:
            key, seen_at = next(iter(self._entries.items()))
            if now - seen_at < self.ttl:
                break
            self._entries.popitem(last=False)
