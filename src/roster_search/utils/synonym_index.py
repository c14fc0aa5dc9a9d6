"""
Synonym Index

Loads bilingual synonym groups from a JSON dictionary and expands query terms
to every synonym of the concept they belong to.
"""

import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from pydantic import ValidationError

from ..core.models import SynonymGroup
from ..parsers.query_normalizer import JAPANESE_PATTERN, ENGLISH_PATTERN, normalize_text, tokenize
from .logging import get_logger

logger = get_logger(__name__)


class SynonymIndex:
    """Term to concept-group index with deterministic partial lookup."""

    def __init__(self, groups: List[SynonymGroup], partial_expansion_min_overlap: float = 0.5):
        """
        Build the index.

        Args:
            groups: Synonym groups in priority order. A term declared by more
                than one group belongs to the first one.
            partial_expansion_min_overlap: Minimum shorter/longer length ratio
                for a substring match to count as a partial expansion.
        """
        self.groups = list(groups)
        self.partial_expansion_min_overlap = partial_expansion_min_overlap
        self._term_to_group: Dict[str, int] = {}
        self._group_terms: List[List[str]] = []
        self._expansion_cache: Dict[str, List[str]] = {}
        self._build_index()

    @classmethod
    def from_file(cls, path: Union[str, Path], **kwargs) -> "SynonymIndex":
        """Load groups from a ``{"groups": [...]}`` JSON file."""
        return cls(_load_groups(Path(path)), **kwargs)

    def _build_index(self) -> None:
        for group_id, group in enumerate(self.groups):
            owned: List[str] = []
            for term in group.all_terms():
                normalized = normalize_text(term)
                if not normalized:
                    continue
                owner = self._term_to_group.get(normalized)
                if owner is None:
                    self._term_to_group[normalized] = group_id
                    owned.append(normalized)
                elif owner != group_id:
                    logger.debug(
                        f"Synonym '{normalized}' already owned by '{self.groups[owner].canonical.en}', "
                        f"dropped from '{group.canonical.en}'"
                    )
            self._group_terms.append(owned)

        logger.info(f"Synonym index built: {len(self.groups)} groups, {len(self._term_to_group)} terms")

    def find_group(self, term: str) -> Optional[SynonymGroup]:
        group_id = self._find_group_id(normalize_text(term))
        return self.groups[group_id] if group_id is not None else None

    def _find_group_id(self, normalized: str) -> Optional[int]:
        if not normalized:
            return None

        group_id = self._term_to_group.get(normalized)
        if group_id is not None:
            return group_id

        if len(normalized) < 2:
            return None

        best_key = None
        best_group = None
        for indexed, candidate_group in self._term_to_group.items():
            if len(indexed) < 2:
                continue
            if indexed not in normalized and normalized not in indexed:
                continue
            ratio = min(len(indexed), len(normalized)) / max(len(indexed), len(normalized))
            key = (-ratio, -len(indexed), indexed)
            if best_key is None or key < best_key:
                best_key = key
                best_group = candidate_group

        if best_key is None or -best_key[0] < self.partial_expansion_min_overlap:
            return None
        return best_group

    def expand_term(self, term: str) -> List[str]:
        """The normalized term followed by every term of its concept group."""
        normalized = normalize_text(term)
        if not normalized:
            return []

        cached = self._expansion_cache.get(normalized)
        if cached is not None:
            return list(cached)

        expanded = [normalized]
        group_id = self._find_group_id(normalized)
        if group_id is not None:
            expanded.extend(t for t in self._group_terms[group_id] if t != normalized)

        self._expansion_cache[normalized] = expanded
        return list(expanded)

    def expand_terms(self, terms: Iterable[str]) -> List[str]:
        """Ordered union of ``expand_term`` over ``terms``."""
        seen = set()
        expanded: List[str] = []
        for term in terms:
            for candidate in self.expand_term(term):
                if candidate not in seen:
                    seen.add(candidate)
                    expanded.append(candidate)
        return expanded

    def expand_query(self, query: str) -> List[str]:
        """Expand the whole phrase and each of its tokens."""
        normalized = normalize_text(query)
        if not normalized:
            return []
        return self.expand_terms([normalized] + tokenize(normalized))

    def normalize_to_canonical(self, term: str, language: str = "en") -> str:
        group = self.find_group(term)
        if group is None:
            return term
        canonical = getattr(group.canonical, language, "") or group.canonical.en
        return canonical

    def are_synonymous(self, term1: str, term2: str) -> bool:
        related = set(self.expand_term(term1))
        return any(candidate in related for candidate in self.expand_term(term2))

    def create_search_patterns(self, query: str) -> str:
        """Describe the expanded query as English/Japanese term lists for prompts."""
        expanded = self.expand_query(query)
        english_terms = [t for t in expanded if ENGLISH_PATTERN.match(t) and not JAPANESE_PATTERN.search(t)]
        japanese_terms = [t for t in expanded if JAPANESE_PATTERN.search(t)]

        patterns = []
        if english_terms:
            patterns.append(f"English terms: {', '.join(english_terms)}")
        if japanese_terms:
            patterns.append(f"Japanese terms: {', '.join(japanese_terms)}")
        return " | ".join(patterns)

    def __len__(self) -> int:
        return len(self._term_to_group)


def _load_groups(path: Path) -> List[SynonymGroup]:
    try:
        if not path.exists():
            logger.error(f"Synonym dictionary not found: {path}")
            return _fallback_groups()

        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)

        raw_groups = data.get("groups", []) if isinstance(data, dict) else data
        groups = [SynonymGroup.model_validate(group) for group in raw_groups]
        logger.info(f"Loaded {len(groups)} synonym groups from: {path}")
        return groups

    except (OSError, json.JSONDecodeError, ValidationError, AttributeError, TypeError) as e:
        logger.error(f"Error loading synonym dictionary: {e}")
        return _fallback_groups()


def _fallback_groups() -> List[SynonymGroup]:
    """Minimal dictionary used when the configured file cannot be read."""
    fallback: List[Dict[str, Any]] = [
        {
            "canonical": {"en": "Designer", "ja": "デザイナー"},
            "synonyms": {"en": ["designer", "design", "ui", "ux"], "ja": ["デザイン"], "mixed": ["UI/UX"]},
            "category": "role",
        },
        {
            "canonical": {"en": "Engineer", "ja": "エンジニア"},
            "synonyms": {"en": ["engineer", "developer", "programmer"], "ja": ["開発者", "プログラマー"], "mixed": []},
            "category": "role",
        },
        {
            "canonical": {"en": "Product Manager", "ja": "プロダクトマネージャー"},
            "synonyms": {"en": ["product manager", "pm"], "ja": ["PM"], "mixed": []},
            "category": "role",
        },
    ]
    return [SynonymGroup.model_validate(group) for group in fallback]
