"""
Tests for the search result cache.
"""

import pytest

from src.roster_search.core.models import SearchResponse, SearchResult
from src.roster_search.utils.search_cache import SearchCache


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


def make_response(query="designer", error=None):
    return SearchResponse(
        query=query,
        results=[SearchResult(id="1", score=0.9)],
        total_results=1,
        error=error,
    )


class TestSearchCache:
    """Test cases for SearchCache."""

    def setup_method(self):
        self.clock = FakeClock(100.0)
        self.cache = SearchCache(max_entries=2, ttl_seconds=60.0, clock=self.clock)

    def test_keyed_by_normalized_query(self):
        response = make_response()
        assert self.cache.set("  UI  Designer ", response)

        assert self.cache.get("ui designer") is response
        assert "UI DESIGNER" in self.cache

    def test_miss(self):
        assert self.cache.get("designer") is None

    def test_expired_entry_is_dropped(self):
        self.cache.set("designer", make_response())
        self.clock.advance(61)

        assert self.cache.get("designer") is None
        assert len(self.cache) == 0

    def test_hit_refreshes_timestamp(self):
        self.cache.set("designer", make_response())
        self.clock.advance(50)
        assert self.cache.get("designer") is not None

        self.clock.advance(50)
        assert self.cache.get("designer") is not None

    def test_error_and_empty_key_are_refused(self):
        assert not self.cache.set("designer", make_response(error="boom"))
        assert not self.cache.set("!!!", make_response())
        assert len(self.cache) == 0

    def test_least_valuable_entry_is_evicted(self):
        self.cache.set("designer", make_response())
        self.cache.set("engineer", make_response())
        self.cache.get("designer")

        self.clock.advance(1)
        self.cache.set("python", make_response())

        assert "designer" in self.cache
        assert "engineer" not in self.cache
        assert "python" in self.cache
        assert len(self.cache) == 2

    def test_expired_entries_are_purged_before_eviction(self):
        self.cache.set("designer", make_response())
        self.clock.advance(30)
        self.cache.set("engineer", make_response())
        self.clock.advance(31)

        self.cache.set("python", make_response())

        assert "designer" not in self.cache
        assert "engineer" in self.cache

    def test_stats_and_popular_queries(self):
        self.cache.set("designer", make_response())
        self.cache.set("engineer", make_response())
        self.cache.get("designer")
        self.cache.get("designer")
        self.cache.get("python")
        self.clock.advance(10)

        stats = self.cache.stats()

        assert stats["size"] == 2
        assert stats["max_entries"] == 2
        assert stats["total_hits"] == 2
        assert stats["hit_rate"] == pytest.approx(2 / 3)
        assert stats["average_age_seconds"] == pytest.approx(10.0)
        assert self.cache.popular_queries(1) == [("designer", 2)]

    def test_zero_capacity_stores_nothing(self):
        cache = SearchCache(max_entries=0, clock=self.clock)

        assert not cache.set("designer", make_response())
        assert len(cache) == 0
        assert cache.get("designer") is None

    def test_clear(self):
        self.cache.set("designer", make_response())
        self.cache.get("designer")

        self.cache.clear()

        assert len(self.cache) == 0
        assert self.cache.stats()["hit_rate"] == 0.0
