"""
Core data models for roster search.
"""

from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, Field, field_validator, model_validator


MatchType = Literal["exact", "partial", "fuzzy", "phonetic", "synonym"]
SearchSource = Literal["structured", "ai", "hybrid"]
Language = Literal["japanese", "english", "mixed", "unknown"]
SynonymCategory = Literal["role", "skill", "technology", "domain"]


class LocalizedText(BaseModel):
    """English/Japanese label pair."""

    en: str = Field(default="", description="English text")
    ja: str = Field(default="", description="Japanese text")

    class Config:
        frozen = True

    @field_validator("en", "ja", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> str:
        if value is None:
            return ""
        return str(value)

    def values(self) -> List[str]:
        """Non-empty sides of the label, Japanese first."""
        return [text for text in (self.ja, self.en) if text and text.strip()]

    def joined(self) -> str:
        return " ".join(self.values())


class Repository(BaseModel):
    """Public repository summary from profile enrichment."""

    name: str = Field(..., description="Repository name")
    description: Optional[str] = Field(None, description="Repository description")
    language: Optional[str] = Field(None, description="Primary language")
    stars: int = Field(0, alias="stargazers_count", description="Star count")

    class Config:
        frozen = True
        populate_by_name = True


class ProfileEnrichment(BaseModel):
    """Offline-fetched code-hosting profile statistics."""

    bio: Optional[str] = Field(None, description="Short biography")
    company: Optional[str] = Field(None, description="Company")
    top_languages: List[str] = Field(default=[], description="Most used languages")
    repositories: List[Repository] = Field(default=[], description="Top repositories")

    class Config:
        frozen = True

    @model_validator(mode="before")
    @classmethod
    def _flatten_enhanced_payload(cls, data: Any) -> Any:
        # Dataset files nest the values as profile/languages/topRepos
        if not isinstance(data, dict) or "profile" not in data and "topRepos" not in data:
            return data
        profile = data.get("profile") or {}
        languages = data.get("languages") or {}
        return {
            "bio": profile.get("bio"),
            "company": profile.get("company"),
            "top_languages": languages.get("topLanguages") or [],
            "repositories": data.get("topRepos") or [],
        }


class PersonRecord(BaseModel):
    """One roster participant."""

    id: int = Field(..., description="Unique, stable identifier")
    name: LocalizedText = Field(default_factory=LocalizedText, description="Participant name")
    team: LocalizedText = Field(default_factory=LocalizedText, description="Team name")
    roles: List[LocalizedText] = Field(default=[], alias="role", description="Role labels")
    specialties: List[LocalizedText] = Field(default=[], alias="specialty", description="Skill labels")
    interests: List[LocalizedText] = Field(default=[], description="Interest labels")
    ideas: List[LocalizedText] = Field(default=[], description="Idea/project labels")
    enrichment: Optional[ProfileEnrichment] = Field(None, alias="github_enhanced", description="Profile enrichment")

    class Config:
        frozen = True
        populate_by_name = True

    @field_validator("name", "team", mode="before")
    @classmethod
    def _plain_string_label(cls, value: Any) -> Any:
        if value is None:
            return {}
        if isinstance(value, str):
            return {"en": value}
        return value

    @field_validator("roles", "specialties", "interests", "ideas", mode="before")
    @classmethod
    def _label_list(cls, value: Any) -> Any:
        if value is None:
            return []
        return [{"en": item} if isinstance(item, str) else item for item in value]


class SynonymGroup(BaseModel):
    """Canonical bilingual concept plus its synonyms."""

    canonical: LocalizedText = Field(..., description="Canonical label")
    synonyms: Dict[str, List[str]] = Field(default={}, description="Synonyms keyed by en/ja/mixed")
    category: SynonymCategory = Field(..., description="Concept category")

    class Config:
        frozen = True

    def all_terms(self) -> List[str]:
        """Canonical labels followed by every synonym in declaration order."""
        terms = self.canonical.values()[::-1]
        for key in ("en", "ja", "mixed"):
            terms.extend(self.synonyms.get(key, []))
        return terms


class FuzzyMatchResult(BaseModel):
    """Outcome of comparing one query term with one candidate string."""

    score: float = Field(0.0, description="Similarity score 0-1")
    match_type: MatchType = Field("fuzzy", description="How the match was made")
    confidence: float = Field(0.0, description="Confidence 0-1")

    @property
    def matched(self) -> bool:
        return self.score > 0


class MatchedField(BaseModel):
    """Best match found in one record field."""

    field: str = Field(..., description="Field name")
    value: str = Field(..., description="Matched field value")
    match_type: MatchType = Field(..., description="Match type")
    score: float = Field(..., description="Match score before field weighting")
    terms: List[str] = Field(default=[], description="Query terms that matched")
    confidence: float = Field(0.0, description="Match confidence")


class RelevanceFactors(BaseModel):
    """Score breakdown kept for debugging panels."""

    exact_match: float = 0.0
    fuzzy_match: float = 0.0
    synonym_match: float = 0.0
    field_relevance: float = 0.0
    context_relevance: float = 0.0


class SearchResult(BaseModel):
    """Aggregate match for one record."""

    id: str = Field(..., description="Record identifier")
    score: float = Field(..., description="Total score")
    source: SearchSource = Field("structured", description="Originating strategy")
    matched_fields: List[MatchedField] = Field(default=[], description="Matched fields")
    confidence: float = Field(0.0, description="Normalized confidence 0-1")
    relevance_factors: Optional[RelevanceFactors] = Field(None, description="Score breakdown")


class SearchDebugInfo(BaseModel):
    """How a query was interpreted."""

    original_query: str = ""
    normalized_query: str = ""
    expanded_terms: List[str] = []
    language_detected: Language = "english"
    search_strategy: str = "structured"


class SearchSources(BaseModel):
    """Per-strategy result lists before and after merging."""

    structured: List[SearchResult] = []
    ai: List[SearchResult] = []
    hybrid: List[SearchResult] = []


class SearchResponse(BaseModel):
    """Ranked results plus timing metadata returned by the search entry point."""

    results: List[SearchResult] = Field(default=[], description="Ranked results")
    total_results: int = Field(0, description="Number of results")
    search_time_ms: float = Field(0.0, description="Search time in milliseconds")
    query: str = Field("", description="Query as received")
    debug_info: SearchDebugInfo = Field(default_factory=SearchDebugInfo)
    sources: SearchSources = Field(default_factory=SearchSources)
    cache_hit: bool = Field(False, description="Served from the result cache")
    warnings: List[str] = Field(default=[], description="Non-blocking warnings")
    error: Optional[str] = Field(None, description="Error message if the search failed")
    request_token: int = Field(0, description="Monotonic request token")

    @property
    def success(self) -> bool:
        return self.error is None


class SearchEvent(BaseModel):
    """One logged search, used for analytics."""

    timestamp: float = Field(..., description="Wall clock time of the search")
    query: str = Field(..., description="Query as received")
    strategy: str = Field("hybrid", description="Search strategy used")
    result_count: int = Field(0, description="Number of results returned")
    search_time_ms: float = Field(0.0, description="Search time in milliseconds")
    confidence: float = Field(0.0, description="Best result confidence")
    success: bool = Field(True, description="Whether the search succeeded")
    error: Optional[str] = Field(None, description="Error message if any")
    query_language: Language = Field("english", description="Detected query language")
    query_type: Literal["role", "skill", "name", "mixed"] = Field("mixed", description="Detected query type")
    refinement_level: int = Field(0, description="How many recent queries this one refines")
    cache_hit: bool = Field(False, description="Served from the result cache")
