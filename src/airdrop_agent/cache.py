"""
In-memory research cache for the Airdrop Research Agent.

Maps a ``"<wallet>_<timeframe_days>"`` key to the last normalised
``ResearchResult`` and the time it was stored.  Freshness is judged by the
caller; the cache only overwrites on key collision and evicts the
least-recently-used entry once ``max_entries`` is reached.

Contents live for the process lifetime only and are lost on restart.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from typing import Callable, Optional

from .models import CacheEntry, ResearchResult

logger = logging.getLogger(__name__)


def research_cache_key(wallet_address: str, timeframe_days: int) -> str:
    """Return the cache key for a (wallet, timeframe) pair."""
    return f"{wallet_address}_{timeframe_days}"


class ResearchCache:
    """Bounded LRU store of ``CacheEntry`` objects.

    Each operation holds a lock for its duration, so reads and writes are
    atomic per call.  There is no coordination across keys.
    """

    def __init__(
        self,
        max_entries: int = 10_000,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store: OrderedDict[str, CacheEntry] = OrderedDict()
        self._max_entries = max_entries
        self._clock = clock
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[CacheEntry]:
        """Return the entry for *key* (fresh or not) or ``None``."""
        with self._lock:
            entry = self._store.get(key)
            if entry is not None:
                self._store.move_to_end(key)
            return entry

    def put(self, key: str, value: ResearchResult) -> CacheEntry:
        """Store *value* under *key*, replacing any prior entry."""
        entry = CacheEntry(key=key, value=value, created_at=self._clock())
        with self._lock:
            self._store[key] = entry
            self._store.move_to_end(key)
            while len(self._store) > self._max_entries:
                evicted, _ = self._store.popitem(last=False)
                logger.debug("Research cache full – evicted %s", evicted)
        return entry

    def is_fresh(self, entry: CacheEntry, max_age_seconds: float) -> bool:
        """True when *entry* is younger than *max_age_seconds*."""
        return self._clock() - entry.created_at < max_age_seconds

    def clear(self) -> None:
        """Drop all cached entries."""
        with self._lock:
            self._store.clear()

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._store

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)
