"""
Result merging across search strategies.
"""

from typing import Dict, List, Optional

from ..core.models import MatchedField, SearchResult
from .logging import get_logger

logger = get_logger(__name__)


DEFAULT_BLEND_WEIGHTS = {"structured": 0.6, "ai": 0.4}


class ResultMerger:
    """Combines per-strategy ranked lists into one list with unique ids."""

    def __init__(self, blend_weights: Optional[Dict[str, float]] = None):
        self.blend_weights = dict(blend_weights or DEFAULT_BLEND_WEIGHTS)

    def merge(self, *result_lists: List[SearchResult]) -> List[SearchResult]:
        grouped: Dict[str, List[SearchResult]] = {}
        for results in result_lists:
            for result in results:
                grouped.setdefault(result.id, []).append(result)

        merged = []
        for result_id, results in grouped.items():
            if len(results) == 1:
                merged.append(results[0])
            else:
                merged.append(self._blend(result_id, results))

        # sorted() is stable, so equal scores keep first-seen order
        merged = sorted(merged, key=lambda r: r.score, reverse=True)
        logger.debug(f"Merged {sum(len(r) for r in result_lists)} results into {len(merged)}")
        return merged

    def _blend(self, result_id: str, results: List[SearchResult]) -> SearchResult:
        score = sum(self.blend_weights.get(r.source, 0.0) * r.score for r in results)

        fields: List[MatchedField] = []
        seen = set()
        for result in results:
            for field in result.matched_fields:
                key = (field.field, field.value, field.match_type)
                if key not in seen:
                    seen.add(key)
                    fields.append(field)

        return SearchResult(
            id=result_id,
            score=score,
            source="hybrid",
            matched_fields=fields,
            confidence=max(r.confidence for r in results),
            relevance_factors=next((r.relevance_factors for r in results if r.relevance_factors), None),
        )
