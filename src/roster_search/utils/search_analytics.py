"""
In-memory search analytics: event log, query classification and aggregate metrics.
"""

import time
from collections import Counter, deque
from typing import Any, Callable, Deque, Dict, List, Optional

from ..core.models import Language, SearchEvent
from ..parsers.query_normalizer import JAPANESE_PATTERN, LATIN_PATTERN
from .logging import get_logger

logger = get_logger(__name__)


ROLE_KEYWORDS = [
    "engineer", "designer", "manager", "developer", "founder",
    "エンジニア", "デザイナー", "マネージャー", "開発者", "ファウンダー",
    "クリエーター", "クリエイター", "プログラマー",
]

SKILL_KEYWORDS = [
    "react", "python", "javascript", "ai", "ml", "node", "vue",
    "typescript", "java", "go", "rust", "swift", "kotlin",
    "machine learning", "artificial intelligence", "機械学習", "人工知能",
]

REFINEMENT_WINDOW_SECONDS = 300


def detect_query_language(query: str) -> Language:
    has_japanese = bool(JAPANESE_PATTERN.search(query))
    has_latin = bool(LATIN_PATTERN.search(query))
    if has_japanese and has_latin:
        return "mixed"
    if has_japanese:
        return "japanese"
    return "english"


def detect_query_type(query: str) -> str:
    """Classify a query as role, skill, name or mixed by keyword presence."""
    lower = query.lower().strip()
    has_role = any(keyword in lower for keyword in ROLE_KEYWORDS)
    has_skill = any(keyword in lower for keyword in SKILL_KEYWORDS)

    # Short single words without technical terms are usually names
    if len(lower) < 20 and " " not in lower and not has_role and not has_skill:
        return "name"
    if has_role and has_skill:
        return "mixed"
    if has_role:
        return "role"
    if has_skill:
        return "skill"
    return "mixed"


class SearchAnalytics:
    """Bounded log of search events with summary metrics."""

    def __init__(
        self,
        max_events: int = 1000,
        recent_limit: int = 10,
        clock: Callable[[], float] = time.time,
    ):
        self.max_events = max_events
        self.recent_limit = recent_limit
        self._clock = clock
        self._events: Deque[SearchEvent] = deque(maxlen=max_events)
        self._recent: List[str] = []

    def refinement_level(self, query: str, now: Optional[float] = None) -> int:
        """Number of consecutive recent queries the new query extends or narrows."""
        now = self._clock() if now is None else now
        level = 0
        for event in reversed(self._events):
            if now - event.timestamp > REFINEMENT_WINDOW_SECONDS:
                break
            if query in event.query or event.query in query:
                level += 1
            else:
                break
        return level

    def log_search(
        self,
        query: str,
        strategy: str,
        result_count: int,
        search_time_ms: float,
        confidence: float = 0.0,
        error: Optional[str] = None,
        cache_hit: bool = False,
    ) -> SearchEvent:
        now = self._clock()
        query = query.strip()
        event = SearchEvent(
            timestamp=now,
            query=query,
            strategy=strategy,
            result_count=result_count,
            search_time_ms=search_time_ms,
            confidence=confidence,
            success=error is None and result_count > 0,
            error=error,
            query_language=detect_query_language(query),
            query_type=detect_query_type(query),
            refinement_level=self.refinement_level(query, now),
            cache_hit=cache_hit,
        )
        self._events.append(event)
        self._remember(query)
        return event

    def _remember(self, query: str) -> None:
        if not query:
            return
        if query in self._recent:
            self._recent.remove(query)
        self._recent.insert(0, query)
        del self._recent[self.recent_limit:]

    def recent_queries(self) -> List[str]:
        return list(self._recent)

    @property
    def events(self) -> List[SearchEvent]:
        return list(self._events)

    def metrics(self) -> Dict[str, Any]:
        events = list(self._events)
        total = len(events)
        successful = [e for e in events if e.success]

        def average(values: List[float]) -> float:
            return sum(values) / len(values) if values else 0.0

        query_counts = Counter(e.query for e in events)
        query_results: Dict[str, int] = {}
        for e in events:
            query_results[e.query] = query_results.get(e.query, 0) + e.result_count

        strategy_times: Dict[str, float] = {}
        for strategy in sorted({e.strategy for e in events}):
            strategy_times[strategy] = average([e.search_time_ms for e in events if e.strategy == strategy])

        languages = Counter(e.query_language for e in events)
        types = Counter(e.query_type for e in events)

        return {
            "total_searches": total,
            "successful_searches": len(successful),
            "failed_searches": total - len(successful),
            "average_search_time_ms": average([e.search_time_ms for e in events]),
            "average_results_count": average([float(e.result_count) for e in successful]),
            "average_confidence": average([e.confidence for e in successful]),
            "most_common_queries": [
                {"query": q, "count": c, "avg_results": query_results[q] / c}
                for q, c in query_counts.most_common(10)
            ],
            "language_distribution": {
                lang: languages.get(lang, 0) for lang in ("japanese", "english", "mixed")
            },
            "type_distribution": {
                kind: types.get(kind, 0) for kind in ("role", "skill", "name", "mixed")
            },
            "cache_hit_rate": sum(1 for e in events if e.cache_hit) / total if total else 0.0,
            "error_rate": sum(1 for e in events if e.error) / total if total else 0.0,
            "average_time_by_strategy_ms": strategy_times,
        }

    def suggestions(self, prefix: str, limit: int = 5) -> List[str]:
        """Previously searched queries related to ``prefix``."""
        current = prefix.strip().lower()
        if not current:
            return self.recent_queries()[:limit]

        suggested: List[str] = []
        for item in self.metrics()["most_common_queries"]:
            query = item["query"]
            if (current in query.lower() or query.lower() in current) and query not in suggested:
                suggested.append(query)

        query_type = detect_query_type(prefix)
        related = [e.query for e in self._events if e.query_type == query_type and e.success][-20:]
        for query in reversed(related):
            if query.lower() != current and query not in suggested:
                suggested.append(query)

        return suggested[:limit]

    def clear(self) -> None:
        self._events.clear()
        self._recent.clear()
        logger.info("Search analytics cleared")
