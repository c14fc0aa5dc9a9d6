"""
Roster dataset store.

Loads the participant JSON once, from a local file or an http(s) URL, and
keeps the validated records in memory.
"""

import asyncio
import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from ..core.exceptions import DatasetLoadError
from ..core.models import PersonRecord
from ..utils.logging import get_logger

logger = get_logger(__name__)


class PeopleStore:
    def __init__(self, source: str, timeout_seconds: float = 10.0, http_client: Optional[httpx.AsyncClient] = None):
        self.source = source
        self.timeout_seconds = timeout_seconds
        self._http_client = http_client
        self._records: Optional[List[PersonRecord]] = None
        self._by_id: Dict[int, PersonRecord] = {}
        self._loading_lock = asyncio.Lock()

    @property
    def is_remote(self) -> bool:
        return self.source.startswith(("http://", "https://"))

    @property
    def loaded(self) -> bool:
        return self._records is not None

    async def load(self) -> List[PersonRecord]:
        """Load and validate the dataset; later calls return the cached records."""
        if self._records is not None:
            return self._records
        async with self._loading_lock:
            if self._records is not None:
                return self._records

            raw = await (self._fetch_remote() if self.is_remote else self._read_local())
            records = self._parse(raw)

            self._records = records
            self._by_id = {record.id: record for record in records}
            logger.info(f"Loaded {len(records)} participants from {self.source}")
            return records

    async def _fetch_remote(self) -> str:
        try:
            if self._http_client is not None:
                response = await self._http_client.get(self.source, timeout=self.timeout_seconds)
            else:
                async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                    response = await client.get(self.source)
            response.raise_for_status()
            return response.text
        except httpx.HTTPStatusError as e:
            raise DatasetLoadError(self.source, f"HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise DatasetLoadError(self.source, f"network error: {e}") from e

    async def _read_local(self) -> str:
        path = Path(self.source)
        if not path.exists():
            raise DatasetLoadError(self.source, "file not found")
        try:
            return await asyncio.to_thread(path.read_text, encoding="utf-8")
        except OSError as e:
            raise DatasetLoadError(self.source, str(e)) from e

    def _parse(self, raw: str) -> List[PersonRecord]:
        try:
            data: Any = json.loads(raw)
        except json.JSONDecodeError as e:
            raise DatasetLoadError(self.source, f"invalid JSON: {e}") from e

        entries = data.get("participants") if isinstance(data, dict) else data
        if not isinstance(entries, list):
            raise DatasetLoadError(self.source, "expected a list of participants")

        try:
            records = [PersonRecord.model_validate(entry) for entry in entries]
        except ValidationError as e:
            raise DatasetLoadError(self.source, f"invalid participant record: {e.error_count()} error(s)") from e

        ids = [record.id for record in records]
        if len(set(ids)) != len(ids):
            raise DatasetLoadError(self.source, "duplicate participant ids")
        return records

    def get(self, person_id: int) -> Optional[PersonRecord]:
        return self._by_id.get(person_id)

    @property
    def records(self) -> List[PersonRecord]:
        return list(self._records or [])
