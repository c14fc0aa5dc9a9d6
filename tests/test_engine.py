"""
Tests for the search engine: strategy orchestration, caching and request tokens.
"""

import asyncio
from pathlib import Path

import pytest

from src.roster_search.core.engine import EMPTY_QUERY_ERROR, SUPERSEDED_WARNING


SAMPLE_DATA = Path(__file__).resolve().parent.parent / "data" / "people_with_github.json"


def result_ids(response):
    return {r.id for r in response.results}


class TestStructuredSearch:
    """Searches without the AI strategy."""

    @pytest.mark.asyncio
    async def test_designer_scenario(self, make_engine, dataset_file):
        engine = make_engine(dataset_file)

        response = await engine.search("designer")

        assert response.success
        assert result_ids(response) == {"1"}
        assert response.total_results == 1
        assert response.debug_info.search_strategy == "structured"
        assert response.debug_info.language_detected == "english"
        assert "デザイナー" in response.debug_info.expanded_terms
        assert response.warnings == []

    @pytest.mark.asyncio
    async def test_japanese_query_matches_english_roster(self, make_engine, dataset_file):
        engine = make_engine(dataset_file)

        response = await engine.search("デザイナー")

        assert result_ids(response) == {"1"}
        assert response.debug_info.language_detected == "japanese"

    @pytest.mark.asyncio
    async def test_results_are_ranked(self, make_engine, dataset_file):
        response = await make_engine(dataset_file).search("engineer")

        scores = [r.score for r in response.results]
        assert {"2", "3"} <= result_ids(response)
        assert scores == sorted(scores, reverse=True)

    @pytest.mark.asyncio
    async def test_empty_query(self, make_engine, dataset_file):
        engine = make_engine(dataset_file)

        response = await engine.search("   ")

        assert response.error == EMPTY_QUERY_ERROR
        assert response.results == []
        assert not engine.store.loaded

    @pytest.mark.asyncio
    async def test_punctuation_only_query_is_an_empty_search(self, make_engine, dataset_file):
        response = await make_engine(dataset_file).search("!!!")

        assert response.error is None
        assert response.results == []

    @pytest.mark.asyncio
    async def test_dataset_failure_is_reported(self, make_engine, tmp_path):
        engine = make_engine(tmp_path / "missing.json")

        response = await engine.search("designer")

        assert not response.success
        assert "file not found" in response.error
        assert response.results == []
        assert len(engine.cache) == 0
        assert engine.analytics.metrics()["failed_searches"] == 1

    @pytest.mark.asyncio
    async def test_cache_hit(self, make_engine, dataset_file):
        engine = make_engine(dataset_file)

        first = await engine.search("Designer")
        second = await engine.search("  designer ")

        assert not first.cache_hit
        assert second.cache_hit
        assert second.query == "  designer "
        assert result_ids(second) == result_ids(first)
        assert engine.cache.stats()["total_hits"] == 1

    @pytest.mark.asyncio
    async def test_cached_response_is_isolated_from_callers(self, make_engine, dataset_file):
        engine = make_engine(dataset_file)

        first = await engine.search("designer")
        first.results.clear()
        second = await engine.search("designer")
        second.results.clear()
        third = await engine.search("designer")

        assert second.cache_hit
        assert third.cache_hit
        assert result_ids(third) == {"1"}

    @pytest.mark.asyncio
    async def test_cache_can_be_bypassed(self, make_engine, dataset_file):
        engine = make_engine(dataset_file)

        await engine.search("designer")
        response = await engine.search("designer", use_cache=False)

        assert not response.cache_hit

    @pytest.mark.asyncio
    async def test_request_tokens_increase(self, make_engine, dataset_file):
        engine = make_engine(dataset_file)

        first = await engine.search("designer")
        second = await engine.search("python")

        assert second.request_token == first.request_token + 1
        assert engine.is_latest(second.request_token)
        assert not engine.is_latest(first.request_token)

    @pytest.mark.asyncio
    async def test_get_person_and_stats(self, make_engine, dataset_file):
        engine = make_engine(dataset_file)
        await engine.search("designer")

        person = await engine.get_person(2)
        stats = engine.stats()

        assert person.name.en == "Ken Sato"
        assert await engine.get_person(42) is None
        assert stats["dataset_loaded"]
        assert stats["analytics"]["total_searches"] == 1
        assert stats["cache"]["size"] == 1


class TestHybridSearch:
    """Searches that also run the AI strategy."""

    @pytest.mark.asyncio
    async def test_ai_results_are_merged(self, make_engine, make_ai_matcher, fake_client, dataset_file):
        engine = make_engine(dataset_file, ai_matcher=make_ai_matcher(fake_client(reply='["1", "3"]')))

        response = await engine.search("engineer")

        ids = [r.id for r in response.results]
        assert len(ids) == len(set(ids))
        assert {"1", "2", "3"} <= set(ids)
        by_id = {r.id: r for r in response.results}
        assert by_id["3"].source == "hybrid"
        assert response.debug_info.search_strategy == "hybrid"
        assert [r.id for r in response.sources.ai] == ["1", "3"]
        assert response.warnings == []

    @pytest.mark.asyncio
    async def test_ai_timeout_falls_back_to_structured(self, make_engine, make_ai_matcher, fake_client, dataset_file):
        matcher = make_ai_matcher(fake_client(reply='["2"]', delay=1.0), timeout_seconds=0.05)
        engine = make_engine(dataset_file, ai_matcher=matcher)

        response = await engine.search("designer")

        assert response.success
        assert result_ids(response) == {"1"}
        assert response.warnings == ["AI search timed out after 0.05s"]
        assert response.debug_info.search_strategy == "structured"

    @pytest.mark.asyncio
    async def test_unconfigured_ai_is_a_warning(self, make_engine, make_ai_matcher, dataset_file):
        engine = make_engine(dataset_file, ai_matcher=make_ai_matcher(None))

        response = await engine.search("designer")

        assert result_ids(response) == {"1"}
        assert response.warnings == ["OpenAI API key not configured"]

    @pytest.mark.asyncio
    async def test_disabled_ai_is_skipped(self, make_engine, make_ai_matcher, fake_client, dataset_file):
        client = fake_client(reply='["2"]')
        engine = make_engine(dataset_file, ai_matcher=make_ai_matcher(client, enabled=False))

        response = await engine.search("designer")

        assert response.warnings == []
        assert client.calls == []
        assert not engine.ai_available

    @pytest.mark.asyncio
    async def test_newer_search_cancels_pending_ai_call(self, make_engine, make_ai_matcher, fake_client, dataset_file):
        client = fake_client(reply='["1"]', delays=[10, 0])
        engine = make_engine(dataset_file, ai_matcher=make_ai_matcher(client, timeout_seconds=5.0))
        await engine.store.load()

        first_task = asyncio.create_task(engine.search("designer"))
        for _ in range(5):
            await asyncio.sleep(0)
        second = await engine.search("engineer")
        first = await first_task

        assert len(client.calls) == 2
        assert first.warnings == [SUPERSEDED_WARNING]
        assert result_ids(first) == {"1"}
        assert second.warnings == []
        assert second.debug_info.search_strategy == "hybrid"
        assert engine.is_latest(second.request_token)
        assert not engine.is_latest(first.request_token)
        assert "designer" not in engine.cache
        assert "engineer" in engine.cache

    @pytest.mark.asyncio
    async def test_close_releases_client(self, make_engine, make_ai_matcher, fake_client, dataset_file):
        matcher = make_ai_matcher(fake_client())
        engine = make_engine(dataset_file, ai_matcher=matcher)

        await engine.close()

        assert matcher.client_factory.closed


class TestSampleRoster:
    """Searches over the bundled sample dataset."""

    @pytest.mark.asyncio
    async def test_skill_query_ignores_lookalike_synonyms(self, make_engine):
        engine = make_engine(SAMPLE_DATA)

        response = await engine.search("python")

        ids = [r.id for r in response.results]
        assert ids[0] == "3"
        assert "5" not in ids
        assert "8" not in ids
        for result in response.results:
            for field in result.matched_fields:
                if field.match_type in ("fuzzy", "phonetic"):
                    assert field.terms == ["python"]
