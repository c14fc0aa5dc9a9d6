"""
Roster Search Package

Bilingual (English/Japanese) participant search with synonym expansion,
fuzzy and phonetic matching, weighted field scoring and result caching.
"""

__version__ = "1.0.0"
__author__ = "Roster Search Team"

from .core.engine import SearchEngine
from .core.models import PersonRecord, SearchResponse, SearchResult

__all__ = ["SearchEngine", "PersonRecord", "SearchResponse", "SearchResult"]
