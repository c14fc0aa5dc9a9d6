"""
Shared fixtures: a three-person roster and engine builders with fake AI clients.
"""

import asyncio
import json
from types import SimpleNamespace

import pytest

from config.settings import CONFIG_DIR
from src.roster_search.clients.ai_matcher import AIMatcher
from src.roster_search.core.engine import SearchEngine
from src.roster_search.database.people_store import PeopleStore
from src.roster_search.utils.field_scoring import FieldScorer, ScoringConfig
from src.roster_search.utils.fuzzy_matching import FuzzyMatcher
from src.roster_search.utils.result_merger import ResultMerger
from src.roster_search.utils.search_analytics import SearchAnalytics
from src.roster_search.utils.search_cache import SearchCache
from src.roster_search.utils.synonym_index import SynonymIndex


ROSTER = [
    {
        "id": 1,
        "name": {"en": "Aoi Tanaka"},
        "team": {"en": "Team Lumina"},
        "role": [{"en": "UI Designer"}],
        "specialty": [{"en": "Figma"}],
        "interests": [{"en": "Art"}],
        "ideas": [],
    },
    {
        "id": 2,
        "name": {"en": "Ken Sato"},
        "team": {"en": "Team Nova"},
        "role": [{"en": "PM, Engineer"}],
        "specialty": [{"en": "Kanban"}],
        "interests": [],
        "ideas": [],
    },
    {
        "id": 3,
        "name": {"en": "Daisuke Suzuki"},
        "team": {"en": "Team Orbit"},
        "role": [{"en": "Backend Engineer"}],
        "specialty": [{"en": "Python"}],
        "interests": [],
        "ideas": [],
    },
]


class FakeChatClient:
    """Stands in for AsyncOpenAI: replies with fixed content after an optional delay."""

    def __init__(self, reply="[]", delay=0.0, error=None, delays=None):
        self.reply = reply
        self.delay = delay
        self.delays = list(delays or [])
        self.error = error
        self.calls = []
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    async def _create(self, **kwargs):
        self.calls.append(kwargs)
        delay = self.delays.pop(0) if self.delays else self.delay
        if delay:
            await asyncio.sleep(delay)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeClientFactory:
    def __init__(self, client=None):
        self.client = client
        self.closed = False

    @property
    def is_configured(self):
        return self.client is not None

    def get_async_client(self):
        return self.client

    async def close(self):
        self.closed = True


@pytest.fixture
def roster():
    return [dict(person) for person in ROSTER]


@pytest.fixture(scope="session")
def synonyms():
    return SynonymIndex.from_file(CONFIG_DIR / "synonym_groups.json")


@pytest.fixture(scope="session")
def fuzzy_matcher():
    return FuzzyMatcher.from_file(CONFIG_DIR / "typo_corrections.json")


@pytest.fixture
def dataset_file(tmp_path, roster):
    path = tmp_path / "people_with_github.json"
    path.write_text(json.dumps({"participants": roster}, ensure_ascii=False), encoding="utf-8")
    return path


@pytest.fixture
def make_ai_matcher(synonyms):
    def _make(client=None, timeout_seconds=1.0, enabled=True):
        return AIMatcher(
            FakeClientFactory(client),
            deployment="gpt-4o-mini",
            timeout_seconds=timeout_seconds,
            enabled=enabled,
            synonyms=synonyms,
        )
    return _make


@pytest.fixture
def make_engine(synonyms, fuzzy_matcher):
    def _make(source, ai_matcher=None, cache=None):
        config = ScoringConfig()
        return SearchEngine(
            store=PeopleStore(str(source)),
            synonyms=synonyms,
            matcher=fuzzy_matcher,
            scorer=FieldScorer(config, synonyms, fuzzy_matcher),
            merger=ResultMerger(config.blend_weights),
            cache=cache if cache is not None else SearchCache(),
            ai_matcher=ai_matcher,
            analytics=SearchAnalytics(),
        )
    return _make


@pytest.fixture
def fake_client():
    return FakeChatClient
