"""
Field Scoring

Weighted multi-field relevance scoring of person records against an
expanded query.
"""

from typing import Dict, List, Optional, Set

from pydantic import BaseModel, Field

from ..core.models import MatchedField, PersonRecord, RelevanceFactors, SearchResult
from ..extractors.field_extractor import extract_search_fields, profile_completeness
from ..parsers.query_normalizer import JAPANESE_PATTERN, NormalizedQuery, normalize_text
from .fuzzy_matching import FuzzyMatcher
from .logging import get_logger
from .synonym_index import SynonymIndex

logger = get_logger(__name__)


class RoleExclusionRule(BaseModel):
    """Role values to ignore for queries that name a design/creative role."""

    triggers: List[str] = Field(
        default=["designer", "デザイナー", "creative", "creator", "クリエーター", "クリエイター"],
        description="Query keywords that activate the rule",
    )
    forbidden_combinations: List[List[str]] = Field(
        default=[["pm", "engineer"], ["pm", "エンジニア"], ["product manager", "engineer"]],
        description="Keyword sets; a role value containing every keyword of one set is ignored",
    )


class ScoringConfig(BaseModel):
    """Weights and thresholds shared by the scorer and the merger."""

    field_weights: Dict[str, float] = Field(default={
        "skills": 1.0,
        "role": 0.95,
        "name": 0.9,
        "interests": 0.8,
        "ideas": 0.7,
        "team": 0.6,
        "github_bio": 0.3,
        "github_company": 0.25,
        "github_languages": 0.2,
        "github_repos": 0.15,
    })
    blend_weights: Dict[str, float] = Field(default={"structured": 0.6, "ai": 0.4})
    exact_match: float = Field(default=1.0)
    partial_match: float = Field(default=0.7)
    synonym_match: float = Field(default=0.8)
    fuzzy_penalty: float = Field(default=0.8)
    fuzzy_threshold: float = Field(default=0.6)
    minimum_score: float = Field(default=0.3)
    context_boost: float = Field(default=0.2)
    partial_expansion_min_overlap: float = Field(default=0.5)
    role_exclusions: RoleExclusionRule = Field(default_factory=RoleExclusionRule)


def _contains_keyword(normalized_value: str, keyword: str) -> bool:
    normalized_keyword = normalize_text(keyword)
    if JAPANESE_PATTERN.search(normalized_keyword):
        return normalized_keyword in normalized_value
    return f" {normalized_keyword} " in f" {normalized_value} "


class FieldScorer:
    """Scores one record at a time against a normalized, expanded query."""

    def __init__(self, config: ScoringConfig, synonyms: SynonymIndex, matcher: FuzzyMatcher):
        self.config = config
        self.synonyms = synonyms
        self.matcher = matcher

    def role_rule_applies(self, raw_query: str) -> bool:
        normalized = normalize_text(raw_query)
        return any(_contains_keyword(normalized, trigger) for trigger in self.config.role_exclusions.triggers)

    def is_excluded_role(self, role_value: str) -> bool:
        normalized = normalize_text(role_value)
        return any(
            all(_contains_keyword(normalized, keyword) for keyword in combination)
            for combination in self.config.role_exclusions.forbidden_combinations
        )

    def score(
        self,
        record: PersonRecord,
        query: NormalizedQuery,
        expanded_terms: List[str],
    ) -> Optional[SearchResult]:
        """
        Score a record.

        Each field keeps its single best interpretation; the record total is
        the weighted sum of field bests, boosted by profile context.

        Returns:
            SearchResult, or None when nothing matched or the total is below
            the minimum score.
        """
        if not query.normalized:
            return None

        direct_terms: Set[str] = {query.normalized, *query.tokens}
        exclude_roles = self.role_rule_applies(query.raw)
        factors = RelevanceFactors()
        matched_fields: List[MatchedField] = []
        total = 0.0

        for field, values in extract_search_fields(record).items():
            weight = self.config.field_weights.get(field, 0.0)
            if weight <= 0 or not values:
                continue

            best: Optional[MatchedField] = None
            for value in values:
                if field == "role" and exclude_roles and self.is_excluded_role(value):
                    continue
                candidate = self._best_match(value, expanded_terms, direct_terms)
                if candidate and (best is None or candidate.score > best.score):
                    best = candidate.model_copy(update={"field": field})

            if best is None:
                continue

            contribution = weight * best.score
            total += contribution
            matched_fields.append(best)
            if best.match_type == "synonym":
                factors.synonym_match += contribution
            elif best.match_type in ("fuzzy", "phonetic"):
                factors.fuzzy_match += contribution
            else:
                factors.exact_match += contribution

        if not matched_fields:
            return None

        context = self.context_relevance(record, query)
        boosted = total * (1 + context * self.config.context_boost)
        if boosted < self.config.minimum_score:
            return None

        factors.field_relevance = total
        factors.context_relevance = context
        confidence = max(f.score * f.confidence for f in matched_fields)

        return SearchResult(
            id=str(record.id),
            score=boosted,
            source="structured",
            matched_fields=matched_fields,
            confidence=min(1.0, confidence),
            relevance_factors=factors,
        )

    def _best_match(self, value: str, terms: List[str], direct_terms: Set[str]) -> Optional[MatchedField]:
        best: Optional[MatchedField] = None
        for term in terms:
            # Expanded synonyms only count on exact or substring hits
            result = self.matcher.match(term, value, fuzzy=term in direct_terms)
            if not result.matched:
                continue

            score = result.score * (self.config.exact_match if result.match_type == "exact" else 1.0)
            match_type = result.match_type
            if match_type in ("fuzzy", "phonetic"):
                score *= self.config.fuzzy_penalty
            if term not in direct_terms:
                match_type = "synonym"
                score *= self.config.synonym_match

            if best is None or score > best.score:
                best = MatchedField(
                    field="",
                    value=value,
                    match_type=match_type,
                    score=score,
                    terms=[term],
                    confidence=result.confidence,
                )
            elif score == best.score and term not in best.terms:
                best.terms.append(term)
        return best

    def context_relevance(self, record: PersonRecord, query: NormalizedQuery) -> float:
        """Profile-quality signal in [0, 1] used to boost the field total."""
        relevance = profile_completeness(record) * 0.3

        enrichment = record.enrichment
        if enrichment is not None:
            relevance += 0.2
            if enrichment.repositories:
                relevance += 0.1
            if len(enrichment.top_languages) > 2:
                relevance += 0.1

        if query.normalized:
            if any(query.normalized in normalize_text(v) for role in record.roles for v in role.values()):
                relevance += 0.3
            if any(query.normalized in normalize_text(v) for skill in record.specialties for v in skill.values()):
                relevance += 0.2

        return min(1.0, relevance)
