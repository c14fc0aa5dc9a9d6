"""
Search result cache with TTL expiry and least-valuable eviction.
"""

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..core.models import SearchResponse
from ..parsers.query_normalizer import normalize_text
from .logging import get_logger

logger = get_logger(__name__)


@dataclass
class CacheEntry:
    response: SearchResponse
    timestamp: float
    hits: int = 0


class SearchCache:
    """Bounded memo of final search responses keyed by normalized query."""

    def __init__(
        self,
        max_entries: int = 100,
        ttl_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_entries = max_entries
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lookups = 0
        self._lookup_hits = 0

    def _is_expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.timestamp > self.ttl_seconds

    def get(self, query: str) -> Optional[SearchResponse]:
        key = normalize_text(query)
        self._lookups += 1
        entry = self._entries.get(key)
        if entry is None:
            return None

        now = self._clock()
        if self._is_expired(entry, now):
            del self._entries[key]
            logger.debug(f"Cache entry expired: '{key}'")
            return None

        entry.hits += 1
        entry.timestamp = now
        self._lookup_hits += 1
        return entry.response

    def set(self, query: str, response: SearchResponse) -> bool:
        """Store a response; error responses are refused, as is everything when capacity is zero."""
        if response.error or self.max_entries <= 0:
            return False

        key = normalize_text(query)
        if not key:
            return False

        now = self._clock()
        if key not in self._entries:
            self._purge_expired(now)
            while len(self._entries) >= self.max_entries and self._entries:
                self._evict_least_valuable(now)

        self._entries[key] = CacheEntry(response=response, timestamp=now)
        return True

    def _purge_expired(self, now: float) -> None:
        expired = [key for key, entry in self._entries.items() if self._is_expired(entry, now)]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug(f"Purged {len(expired)} expired cache entries")

    def _evict_least_valuable(self, now: float) -> None:
        # value = hits + recency, recency in (0, 1]
        def value(item: Tuple[str, CacheEntry]) -> float:
            age = max(0.0, now - item[1].timestamp)
            return item[1].hits + 1.0 / (1.0 + age)

        key, _ = min(self._entries.items(), key=value)
        del self._entries[key]
        logger.debug(f"Evicted cache entry: '{key}'")

    def clear(self) -> None:
        self._entries.clear()
        self._lookups = 0
        self._lookup_hits = 0
        logger.info("Search cache cleared")

    def stats(self) -> Dict[str, Any]:
        now = self._clock()
        ages = [now - entry.timestamp for entry in self._entries.values()]
        return {
            "size": len(self._entries),
            "max_entries": self.max_entries,
            "ttl_seconds": self.ttl_seconds,
            "total_hits": sum(entry.hits for entry in self._entries.values()),
            "average_age_seconds": sum(ages) / len(ages) if ages else 0.0,
            "hit_rate": self._lookup_hits / self._lookups if self._lookups else 0.0,
        }

    def popular_queries(self, limit: int = 10) -> List[Tuple[str, int]]:
        ranked = sorted(self._entries.items(), key=lambda item: item[1].hits, reverse=True)
        return [(key, entry.hits) for key, entry in ranked[:limit]]

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, query: str) -> bool:
        return normalize_text(query) in self._entries
