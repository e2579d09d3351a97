"""
In-memory LRU response cache with stale-while-revalidate windows.

Every entry has a fresh window (``fresh_ttl``) and a longer stale grace
(``stale_grace``) measured from the write. Within the fresh window a value is
served as-is; past it but within the grace the value is still served and
``is_stale`` reports that a refresh is due; past the grace the entry is gone.
"""

from __future__ import annotations

import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import structlog

from cratedocs.config.config import CacheConfig
from cratedocs.observability import increment

logger = structlog.get_logger(__name__)

Clock = Callable[[], float]


@dataclass(slots=True)
class CacheEntry:
    """A cached value and its freshness bounds."""

    value: Any
    fresh_until: float
    stale_until: float
    last_access: float


class ResponseCache:
    """Bounded key/value store with LRU eviction and a stale-serving grace window.

    Entries are replaced wholesale on ``set``; only ``last_access`` changes on
    read. The store is ordered by recency so eviction pops from the front.
    """

    def __init__(
        self,
        max_entries: int = 500,
        fresh_ttl: float = 5 * 60,
        stale_grace: float = 15 * 60,
        clock: Clock = time.monotonic,
    ) -> None:
        if max_entries <= 0:
            raise ValueError("max_entries must be positive")
        self.max_entries = max_entries
        self.fresh_ttl = fresh_ttl
        self.stale_grace = stale_grace
        self._clock = clock
        self._store: "OrderedDict[str, CacheEntry]" = OrderedDict()

    @classmethod
    def from_config(cls, config: CacheConfig, clock: Clock = time.monotonic) -> ResponseCache:
        return cls(
            max_entries=config.max_entries,
            fresh_ttl=config.fresh_ttl_seconds,
            stale_grace=config.stale_grace_seconds,
            clock=clock,
        )

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None when absent or past its stale grace."""
        entry = self._store.get(key)
        if entry is None:
            increment("cache_misses_total")
            return None

        now = self._clock()
        if now > entry.stale_until:
            del self._store[key]
            increment("cache_misses_total")
            return None

        entry.last_access = now
        self._store.move_to_end(key)
        increment("cache_hits_total", labels={"freshness": "stale" if now > entry.fresh_until else "fresh"})
        return entry.value

    def is_stale(self, key: str) -> bool:
        """True if the key is absent or past its fresh window."""
        entry = self._store.get(key)
        if entry is None:
            return True
        return self._clock() > entry.fresh_until

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        """Store ``value`` under ``key``, evicting the least recently used entry if full."""
        if key not in self._store and len(self._store) >= self.max_entries:
            self._evict_lru()

        now = self._clock()
        self._store[key] = CacheEntry(
            value=value,
            fresh_until=now + (self.fresh_ttl if ttl is None else ttl),
            stale_until=now + self.stale_grace,
            last_access=now,
        )
        self._store.move_to_end(key)

    def _evict_lru(self) -> None:
        key, _ = self._store.popitem(last=False)
        increment("cache_evictions_total")
        logger.debug("Evicted cache entry", key=key)

    def stats(self) -> Dict[str, int]:
        return {"size": len(self._store), "max_entries": self.max_entries}

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, key: object) -> bool:
        return key in self._store
