"""
Query normalization and language detection.

Every component compares text in the form produced by ``normalize_text`` so
that queries, synonym dictionaries and record fields line up.
"""

import re
import unicodedata
from typing import List, NamedTuple

from ..core.models import Language


JAPANESE_PATTERN = re.compile(r"[぀-ゟ゠-ヿ一-龯㐀-䶿]")
LATIN_PATTERN = re.compile(r"[A-Za-z]")
ENGLISH_PATTERN = re.compile(r"^[A-Za-z0-9\s\-./]+$")

# Kept so that c++ / c# survive normalization
PRESERVED_SYMBOLS = {"+", "#"}


class NormalizedQuery(NamedTuple):
    """A raw query together with its canonical form."""

    raw: str
    normalized: str
    language: Language
    tokens: List[str]


def _is_punctuation(char: str) -> bool:
    if char in PRESERVED_SYMBOLS:
        return False
    return unicodedata.category(char)[0] in ("P", "S")


def normalize_text(text: str) -> str:
    """Canonicalize text: NFKC fold, lowercase, punctuation to spaces, whitespace collapsed."""
    if not text:
        return ""

    folded = unicodedata.normalize("NFKC", text).lower()
    stripped = "".join(" " if _is_punctuation(char) else char for char in folded)
    return " ".join(stripped.split())


def detect_language(text: str) -> Language:
    """Classify text as japanese, english, mixed or unknown."""
    if not text or not text.strip():
        return "english"

    has_japanese = bool(JAPANESE_PATTERN.search(text))
    has_latin = bool(LATIN_PATTERN.search(text))

    if has_japanese and has_latin:
        return "mixed"
    if has_japanese:
        return "japanese"
    if has_latin or ENGLISH_PATTERN.match(text.strip()):
        return "english"
    return "unknown"


def tokenize(text: str) -> List[str]:
    """Split normalized text into whitespace-delimited tokens."""
    return normalize_text(text).split()


def normalize_query(text: str) -> NormalizedQuery:
    raw = text or ""
    normalized = normalize_text(raw)
    return NormalizedQuery(
        raw=raw,
        normalized=normalized,
        language=detect_language(raw),
        tokens=normalized.split(),
    )
