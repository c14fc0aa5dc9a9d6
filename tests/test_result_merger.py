"""
Tests for merging structured and AI result lists.
"""

import pytest

from src.roster_search.core.models import MatchedField, SearchResult
from src.roster_search.utils.result_merger import ResultMerger


def make_result(result_id, score, source="structured", confidence=0.5, fields=None):
    return SearchResult(
        id=result_id,
        score=score,
        source=source,
        confidence=confidence,
        matched_fields=fields or [],
    )


def role_field(value="Backend Engineer", match_type="exact"):
    return MatchedField(field="role", value=value, match_type=match_type, score=1.0, terms=["engineer"])


class TestResultMerger:
    """Test cases for ResultMerger."""

    def setup_method(self):
        self.merger = ResultMerger({"structured": 0.6, "ai": 0.4})

    def test_ids_are_unique(self):
        merged = self.merger.merge(
            [make_result("1", 0.9), make_result("2", 0.5)],
            [make_result("2", 0.8, source="ai"), make_result("3", 0.8, source="ai")],
        )

        ids = [r.id for r in merged]
        assert sorted(ids) == ["1", "2", "3"]
        assert len(ids) == len(set(ids))

    def test_shared_id_is_blended(self):
        merged = self.merger.merge(
            [make_result("2", 0.5, confidence=0.4, fields=[role_field()])],
            [make_result("2", 0.8, source="ai", confidence=0.7)],
        )

        assert len(merged) == 1
        result = merged[0]
        assert result.source == "hybrid"
        assert result.score == pytest.approx(0.6 * 0.5 + 0.4 * 0.8)
        assert result.confidence == 0.7
        assert [f.field for f in result.matched_fields] == ["role"]

    def test_single_source_results_are_unchanged(self):
        only_ai = make_result("3", 0.8, source="ai")

        merged = self.merger.merge([], [only_ai])

        assert merged == [only_ai]

    def test_sorted_by_score_with_stable_ties(self):
        merged = self.merger.merge(
            [make_result("a", 0.5), make_result("b", 0.9), make_result("c", 0.5)],
        )

        assert [r.id for r in merged] == ["b", "a", "c"]

    def test_duplicate_fields_are_dropped(self):
        merged = self.merger.merge(
            [make_result("1", 0.5, fields=[role_field()])],
            [make_result("1", 0.5, source="ai", fields=[role_field(), role_field(match_type="partial")])],
        )

        assert [(f.value, f.match_type) for f in merged[0].matched_fields] == [
            ("Backend Engineer", "exact"),
            ("Backend Engineer", "partial"),
        ]

    def test_empty_lists(self):
        assert self.merger.merge([], []) == []
