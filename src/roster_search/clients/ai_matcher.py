"""
Natural-language matching through an OpenAI chat model.

The model receives a compact CSV of the roster and returns the ids that match
the query. This strategy is best-effort: every failure is reported through
``AISearchOutcome.error`` and never raised.
"""

import asyncio
import json
from typing import Any, List, NamedTuple, Optional, Sequence, Tuple

from ..core.models import MatchedField, PersonRecord, SearchResult
from ..extractors.field_extractor import build_csv_projection
from ..utils.logging import get_logger
from ..utils.synonym_index import SynonymIndex

logger = get_logger(__name__)


AI_RESULT_SCORE = 0.8
AI_RESULT_CONFIDENCE = 0.7

SYSTEM_PROMPT = """You are a search assistant. Below is CSV data with participant information:

{csv_data}

Search through this data based on the user's query. Look for matches in names, roles, teams, skills, interests, and ideas.
{patterns}
Return ONLY a JSON array of matching participant IDs, or of objects with "id" and "confidence" (0-1). Examples:
- Query: "designer" -> ["1", "5", "12"]
- Query: "robotics" -> [{{"id": "3", "confidence": 0.9}}]
- No matches -> []

Be flexible with matching - include partial matches and related terms."""


class AISearchOutcome(NamedTuple):
    matches: List[Tuple[str, Optional[float]]]
    error: Optional[str] = None


def _strip_code_fences(text: str) -> str:
    text = text.strip()
    if text.startswith("```json"):
        text = text[7:]
    if text.startswith("```"):
        text = text[3:]
    if text.endswith("```"):
        text = text[:-3]
    return text.strip()


def parse_ai_response(content: str) -> List[Tuple[str, Optional[float]]]:
    """
    Parse the model reply into (id, confidence) pairs.

    Raises:
        ValueError: if the reply is not a JSON array of ids or id objects.
    """
    data: Any = json.loads(_strip_code_fences(content))
    if not isinstance(data, list):
        raise ValueError("Invalid response format from AI")

    matches: List[Tuple[str, Optional[float]]] = []
    for item in data:
        if isinstance(item, dict):
            if "id" not in item:
                continue
            confidence = item.get("confidence")
            if isinstance(confidence, (int, float)) and not isinstance(confidence, bool):
                confidence = max(0.0, min(1.0, float(confidence)))
            else:
                confidence = None
            matches.append((str(item["id"]), confidence))
        elif isinstance(item, (str, int)) and not isinstance(item, bool):
            matches.append((str(item), None))
    return matches


class AIMatcher:
    """Best-effort natural-language search strategy."""

    def __init__(
        self,
        client_factory,
        deployment: str,
        timeout_seconds: float = 8.0,
        enabled: bool = True,
        synonyms: Optional[SynonymIndex] = None,
    ):
        self.client_factory = client_factory
        self.deployment = deployment
        self.timeout_seconds = timeout_seconds
        self.enabled = enabled
        self.synonyms = synonyms

    def build_system_prompt(self, query: str, records: Sequence[PersonRecord]) -> str:
        patterns = ""
        if self.synonyms is not None:
            search_patterns = self.synonyms.create_search_patterns(query)
            if search_patterns:
                patterns = f"Related terms for this query: {search_patterns}\n"
        return SYSTEM_PROMPT.format(csv_data=build_csv_projection(records), patterns=patterns)

    async def search(self, query: str, records: Sequence[PersonRecord]) -> AISearchOutcome:
        if not self.enabled:
            return AISearchOutcome([], "AI search disabled")
        if not query.strip():
            return AISearchOutcome([], "Search query is empty")

        client = self.client_factory.get_async_client()
        if client is None:
            return AISearchOutcome([], "OpenAI API key not configured")

        try:
            content = await asyncio.wait_for(self._complete(client, query, records), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning(f"AI search timed out after {self.timeout_seconds}s")
            return AISearchOutcome([], f"AI search timed out after {self.timeout_seconds}s")
        except Exception as e:
            logger.warning(f"AI search request failed: {e}")
            return AISearchOutcome([], f"AI search failed: {e}")

        if not content:
            return AISearchOutcome([], "No response from AI")

        try:
            matches = parse_ai_response(content)
        except ValueError as e:
            # json.JSONDecodeError is a ValueError too
            logger.warning(f"AI response could not be parsed: {content[:200]}")
            return AISearchOutcome([], f"Invalid response format from AI: {e}")

        known_ids = {str(record.id) for record in records}
        seen = set()
        valid = []
        for match_id, confidence in matches:
            if match_id in known_ids and match_id not in seen:
                seen.add(match_id)
                valid.append((match_id, confidence))
        dropped = len(matches) - len(valid)
        if dropped:
            logger.debug(f"Dropped {dropped} unknown or duplicate ids from AI response")

        logger.info(f"AI search returned {len(valid)} matches for '{query}'")
        return AISearchOutcome(valid)

    async def _complete(self, client, query: str, records: Sequence[PersonRecord]) -> Optional[str]:
        response = await client.chat.completions.create(
            model=self.deployment,
            messages=[
                {"role": "system", "content": self.build_system_prompt(query, records)},
                {"role": "user", "content": query},
            ],
            max_tokens=200,
            temperature=0.1,
        )
        content = response.choices[0].message.content if response.choices else None
        return content.strip() if content else None


def outcome_to_results(outcome: AISearchOutcome) -> List[SearchResult]:
    """Turn AI matches into search results in the order the model returned them."""
    return [
        SearchResult(
            id=match_id,
            score=AI_RESULT_SCORE,
            source="ai",
            matched_fields=[
                MatchedField(field="ai_match", value=match_id, match_type="exact", score=AI_RESULT_SCORE, terms=[])
            ],
            confidence=AI_RESULT_CONFIDENCE if confidence is None else confidence,
        )
        for match_id, confidence in outcome.matches
    ]
