"""
Search engine that coordinates every search strategy.
"""

import asyncio
import time
from typing import Any, Dict, List, Optional

from ..clients.ai_matcher import AIMatcher, AISearchOutcome, outcome_to_results
from ..clients.azure_openai import OpenAIClientFactory
from ..database.people_store import PeopleStore
from ..parsers.query_normalizer import NormalizedQuery, normalize_query
from ..utils.field_scoring import FieldScorer, ScoringConfig
from ..utils.fuzzy_matching import FuzzyMatcher
from ..utils.logging import get_logger
from ..utils.result_merger import ResultMerger
from ..utils.search_analytics import SearchAnalytics
from ..utils.search_cache import SearchCache
from ..utils.synonym_index import SynonymIndex
from .exceptions import DatasetLoadError
from .models import PersonRecord, SearchDebugInfo, SearchResponse, SearchResult, SearchSources


logger = get_logger(__name__)

EMPTY_QUERY_ERROR = "Search query is empty"
SUPERSEDED_WARNING = "AI search cancelled: superseded by a newer search"


class SearchEngine:
    """
    Single search entry point.

    Runs structured scoring over the roster and the natural-language matcher
    in parallel, merges both result lists, and caches the final response by
    normalized query.
    """

    def __init__(
        self,
        store: PeopleStore,
        synonyms: SynonymIndex,
        matcher: FuzzyMatcher,
        scorer: FieldScorer,
        merger: ResultMerger,
        cache: SearchCache,
        ai_matcher: Optional[AIMatcher] = None,
        analytics: Optional[SearchAnalytics] = None,
        max_results: int = 50,
    ):
        self.store = store
        self.synonyms = synonyms
        self.matcher = matcher
        self.scorer = scorer
        self.merger = merger
        self.cache = cache
        self.ai_matcher = ai_matcher
        self.analytics = analytics or SearchAnalytics()
        self.max_results = max_results
        self._latest_token = 0
        self._ai_task: Optional[asyncio.Task] = None

    @classmethod
    def from_settings(cls, config) -> "SearchEngine":
        """Wire an engine from the application settings."""
        scoring = ScoringConfig(fuzzy_threshold=config.search.fuzzy_threshold)
        synonyms = SynonymIndex.from_file(
            config.search.synonyms_path,
            partial_expansion_min_overlap=scoring.partial_expansion_min_overlap,
        )
        matcher = FuzzyMatcher.from_file(
            config.search.typo_corrections_path,
            threshold=scoring.fuzzy_threshold,
            partial_match=scoring.partial_match,
        )
        ai_matcher = AIMatcher(
            OpenAIClientFactory(config.azure_openai),
            deployment=config.azure_openai.chat_deployment,
            timeout_seconds=config.search.ai_timeout_seconds,
            enabled=config.search.ai_enabled,
            synonyms=synonyms,
        )
        return cls(
            store=PeopleStore(config.dataset.source, timeout_seconds=config.dataset.timeout_seconds),
            synonyms=synonyms,
            matcher=matcher,
            scorer=FieldScorer(scoring, synonyms, matcher),
            merger=ResultMerger(scoring.blend_weights),
            cache=SearchCache(
                max_entries=config.search.cache_max_entries,
                ttl_seconds=config.search.cache_ttl_seconds,
            ),
            ai_matcher=ai_matcher,
            analytics=SearchAnalytics(),
            max_results=config.search.max_results,
        )

    @property
    def latest_token(self) -> int:
        return self._latest_token

    def is_latest(self, token: int) -> bool:
        """True if no search was issued after the one holding ``token``."""
        return token == self._latest_token

    @property
    def ai_available(self) -> bool:
        return self.ai_matcher is not None and self.ai_matcher.enabled

    async def search(self, query: str, use_cache: bool = True) -> SearchResponse:
        """
        Run a search.

        Args:
            query: Raw user query
            use_cache: Look up and store the response in the result cache

        Returns:
            SearchResponse; failures are reported through ``error`` and
            ``warnings`` rather than raised.
        """
        started = time.perf_counter()
        self._latest_token += 1
        token = self._latest_token
        query = query or ""

        if not query.strip():
            return SearchResponse(query=query, error=EMPTY_QUERY_ERROR, request_token=token)

        normalized = normalize_query(query)

        if use_cache:
            cached = self.cache.get(normalized.normalized)
            if cached is not None:
                logger.info(f"Cache hit for '{normalized.normalized}'")
                response = cached.model_copy(deep=True, update={
                    "cache_hit": True,
                    "search_time_ms": 0.0,
                    "query": query,
                    "request_token": token,
                })
                self._log_event(response)
                return response

        try:
            records = await self.store.load()
        except DatasetLoadError as e:
            logger.error(f"Search aborted: {e}")
            response = SearchResponse(
                query=query,
                error=str(e),
                search_time_ms=self._elapsed_ms(started),
                debug_info=SearchDebugInfo(
                    original_query=query,
                    normalized_query=normalized.normalized,
                    language_detected=normalized.language,
                ),
                request_token=token,
            )
            self._log_event(response)
            return response

        ai_task = self._start_ai_search(query, records)
        if ai_task is not None:
            # let the request go out before local scoring
            await asyncio.sleep(0)

        expanded_terms = self.synonyms.expand_query(normalized.normalized)
        structured = self.structured_search(records, normalized, expanded_terms)

        warnings: List[str] = []
        ai_results: List[SearchResult] = []
        if ai_task is not None:
            outcome = await self._finish_ai_search(ai_task)
            if outcome.error:
                logger.warning(f"AI search unavailable, using local results: {outcome.error}")
                warnings.append(outcome.error)
            else:
                ai_results = outcome_to_results(outcome)

        merged = self.merger.merge(structured, ai_results)[: self.max_results]
        strategy = "hybrid" if ai_task is not None and not warnings else "structured"

        response = SearchResponse(
            results=merged,
            total_results=len(merged),
            search_time_ms=self._elapsed_ms(started),
            query=query,
            debug_info=SearchDebugInfo(
                original_query=query,
                normalized_query=normalized.normalized,
                expanded_terms=expanded_terms,
                language_detected=normalized.language,
                search_strategy=strategy,
            ),
            sources=SearchSources(structured=structured, ai=ai_results, hybrid=merged),
            warnings=warnings,
            request_token=token,
        )

        if use_cache and SUPERSEDED_WARNING not in warnings:
            self.cache.set(normalized.normalized, response.model_copy(deep=True))

        self._log_event(response)
        logger.info(
            f"Search '{query}' -> {response.total_results} results "
            f"({strategy}, {response.search_time_ms:.1f} ms, token {token})"
        )
        return response

    def structured_search(
        self,
        records: List[PersonRecord],
        query: NormalizedQuery,
        expanded_terms: List[str],
    ) -> List[SearchResult]:
        """Score every record locally; best first."""
        results = []
        for record in records:
            result = self.scorer.score(record, query, expanded_terms)
            if result is not None:
                results.append(result)
        return sorted(results, key=lambda r: r.score, reverse=True)

    def _start_ai_search(self, query: str, records: List[PersonRecord]) -> Optional[asyncio.Task]:
        if self._ai_task is not None and not self._ai_task.done():
            logger.info("Cancelling superseded AI search")
            self._ai_task.cancel()
            self._ai_task = None

        if not self.ai_available:
            return None

        self._ai_task = asyncio.create_task(self.ai_matcher.search(query, records))
        return self._ai_task

    async def _finish_ai_search(self, task: asyncio.Task) -> AISearchOutcome:
        try:
            await asyncio.wait({task})
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            if self._ai_task is task:
                self._ai_task = None

        if task.cancelled():
            return AISearchOutcome([], SUPERSEDED_WARNING)
        error = task.exception()
        if error is not None:
            return AISearchOutcome([], f"AI search failed: {error}")
        return task.result()

    def _log_event(self, response: SearchResponse) -> None:
        confidence = max((r.confidence for r in response.results), default=0.0)
        self.analytics.log_search(
            query=response.query,
            strategy=response.debug_info.search_strategy,
            result_count=response.total_results,
            search_time_ms=response.search_time_ms,
            confidence=confidence,
            error=response.error,
            cache_hit=response.cache_hit,
        )

    @staticmethod
    def _elapsed_ms(started: float) -> float:
        return (time.perf_counter() - started) * 1000

    async def get_person(self, person_id: int) -> Optional[PersonRecord]:
        await self.store.load()
        return self.store.get(person_id)

    def clear_cache(self) -> None:
        self.cache.clear()

    def stats(self) -> Dict[str, Any]:
        return {
            "cache": self.cache.stats(),
            "popular_queries": [{"query": q, "hits": h} for q, h in self.cache.popular_queries(5)],
            "analytics": self.analytics.metrics(),
            "latest_token": self._latest_token,
            "dataset_loaded": self.store.loaded,
        }

    async def close(self) -> None:
        if self._ai_task is not None and not self._ai_task.done():
            self._ai_task.cancel()
        factory = getattr(self.ai_matcher, "client_factory", None) if self.ai_matcher else None
        if factory is not None and hasattr(factory, "close"):
            await factory.close()
