"""
Fuzzy Matching

Staged matcher for English and Japanese text: exact, substring, typo table,
weighted edit distance and cross-script phonetic comparison.
"""

import json
import re
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from ..core.models import FuzzyMatchResult
from ..parsers.query_normalizer import LATIN_PATTERN, normalize_text
from .logging import get_logger

logger = get_logger(__name__)


KANA_PATTERN = re.compile(r"[ぁ-ゖァ-ヺー]")

SIMILAR_PAIRS = {
    frozenset(pair) for pair in [
        ("l", "r"), ("b", "v"), ("c", "k"), ("i", "y"), ("o", "0"), ("s", "z"), ("u", "v"),
        ("じ", "ぢ"), ("ず", "づ"), ("は", "わ"),
    ]
}

# Hiragana readings, Hepburn first; katakana is folded onto hiragana
ROMAJI: Dict[str, Tuple[str, ...]] = {
    "あ": ("a",), "い": ("i",), "う": ("u",), "え": ("e",), "お": ("o",),
    "か": ("ka", "ca"), "き": ("ki",), "く": ("ku",), "け": ("ke",), "こ": ("ko", "co"),
    "が": ("ga",), "ぎ": ("gi",), "ぐ": ("gu",), "げ": ("ge",), "ご": ("go",),
    "さ": ("sa",), "し": ("shi", "si"), "す": ("su",), "せ": ("se",), "そ": ("so",),
    "ざ": ("za",), "じ": ("ji", "zi"), "ず": ("zu",), "ぜ": ("ze",), "ぞ": ("zo",),
    "た": ("ta",), "ち": ("chi", "ti"), "つ": ("tsu", "tu"), "て": ("te",), "と": ("to",),
    "だ": ("da",), "ぢ": ("di", "ji"), "づ": ("du", "zu"), "で": ("de",), "ど": ("do",),
    "な": ("na",), "に": ("ni",), "ぬ": ("nu",), "ね": ("ne",), "の": ("no",),
    "は": ("ha", "wa"), "ひ": ("hi",), "ふ": ("fu", "hu"), "へ": ("he", "e"), "ほ": ("ho",),
    "ば": ("ba",), "び": ("bi",), "ぶ": ("bu",), "べ": ("be",), "ぼ": ("bo",),
    "ぱ": ("pa",), "ぴ": ("pi",), "ぷ": ("pu",), "ぺ": ("pe",), "ぽ": ("po",),
    "ま": ("ma",), "み": ("mi",), "む": ("mu",), "め": ("me",), "も": ("mo",),
    "や": ("ya",), "ゆ": ("yu",), "よ": ("yo",),
    "ら": ("ra", "la"), "り": ("ri", "li"), "る": ("ru", "lu"), "れ": ("re", "le"), "ろ": ("ro", "lo"),
    "わ": ("wa",), "ゐ": ("wi",), "ゑ": ("we",), "を": ("wo", "o"),
    "ん": ("n", "nn"), "ゔ": ("vu", "bu"),
    "ぁ": ("a",), "ぃ": ("i",), "ぅ": ("u",), "ぇ": ("e",), "ぉ": ("o",),
}

SMALL_Y = {"ゃ": "a", "ゅ": "u", "ょ": "o"}
SMALL_VOWELS = {"ぁ": "a", "ぃ": "i", "ぅ": "u", "ぇ": "e", "ぉ": "o"}
SOKUON = "っ"
LONG_VOWEL = "ー"
VOWELS = "aeiou"
MAX_ROMANIZATIONS = 8


def to_hiragana(text: str) -> str:
    """Fold katakana onto hiragana, leaving everything else untouched."""
    return "".join(chr(ord(c) - 0x60) if "ァ" <= c <= "ヶ" else c for c in text)


def _has_kana(text: str) -> bool:
    return bool(KANA_PATTERN.search(text))


def _is_latin(text: str) -> bool:
    return bool(LATIN_PATTERN.search(text)) and not _has_kana(text)


def _yoon(reading: str, vowel: str) -> str:
    # kya / sha / cha / ja
    base = reading[:-1]
    if base in ("sh", "ch", "j"):
        return base + vowel
    return base + "y" + vowel


def _syllables(text: str) -> List[Tuple[str, ...]]:
    """Split hiragana-folded text into per-syllable reading alternatives."""
    chars = to_hiragana(text)
    syllables: List[Tuple[str, ...]] = []
    i = 0
    while i < len(chars):
        char = chars[i]
        nxt = chars[i + 1] if i + 1 < len(chars) else ""

        if char == SOKUON:
            following = _syllables(nxt)[0] if nxt else ("",)
            syllables.append(tuple(dict.fromkeys(r[0] for r in following if r and r[0] not in VOWELS)) or ("",))
            i += 1
            continue

        if char == LONG_VOWEL:
            previous = syllables[-1] if syllables else ("",)
            extended = [r[-1] for r in previous if r and r[-1] in VOWELS]
            syllables.append(tuple(dict.fromkeys([""] + extended)))
            i += 1
            continue

        readings = ROMAJI.get(char)
        if readings is None:
            syllables.append((char,))
            i += 1
            continue

        if nxt in SMALL_Y and all(r.endswith("i") for r in readings):
            syllables.append(tuple(dict.fromkeys(_yoon(r, SMALL_Y[nxt]) for r in readings)))
            i += 2
            continue

        if nxt in SMALL_VOWELS and char not in SMALL_VOWELS:
            # Loanword combinations such as fi / ti / we
            syllables.append(tuple(dict.fromkeys(r[:-1] + SMALL_VOWELS[nxt] for r in readings)))
            i += 2
            continue

        syllables.append(readings)
        i += 1

    return syllables


@lru_cache(maxsize=4096)
def romanize_variants(text: str) -> Tuple[str, ...]:
    """
    Romaji readings of ``text``, original first.

    Hepburn and Kunrei alternates are combined up to ``MAX_ROMANIZATIONS``
    variants; characters without a reading pass through unchanged.
    """
    if not _has_kana(text):
        return (text,)

    variants = [""]
    for alternatives in _syllables(text):
        variants = [prefix + alt for prefix in variants for alt in alternatives][:MAX_ROMANIZATIONS]

    return tuple(dict.fromkeys([text] + variants))


def substitution_cost(char1: str, char2: str) -> float:
    if char1 == char2:
        return 0.0
    if frozenset((char1, char2)) in SIMILAR_PAIRS:
        return 0.5

    readings1 = ROMAJI.get(to_hiragana(char1))
    readings2 = ROMAJI.get(to_hiragana(char2))
    if readings1 and readings2 and set(readings1) & set(readings2):
        return 0.3

    return 1.0


def weighted_levenshtein_distance(str1: str, str2: str) -> float:
    """Edit distance with discounted substitutions for look-alike and sound-alike characters."""
    previous = [float(j) for j in range(len(str2) + 1)]
    for i in range(1, len(str1) + 1):
        current = [float(i)] + [0.0] * len(str2)
        for j in range(1, len(str2) + 1):
            current[j] = min(
                previous[j] + 1.0,
                current[j - 1] + 1.0,
                previous[j - 1] + substitution_cost(str1[i - 1], str2[j - 1]),
            )
        previous = current
    return previous[-1]


@lru_cache(maxsize=65536)
def _similarity(str1: str, str2: str, threshold: float) -> float:
    longest = max(len(str1), len(str2))
    if longest == 0:
        return 1.0
    # Length gap alone already rules the pair out
    if abs(len(str1) - len(str2)) / longest > 1.0 - threshold:
        return 0.0
    return 1.0 - weighted_levenshtein_distance(str1, str2) / longest


def _phonetic_similarity(query: str, candidate: str, threshold: float) -> float:
    if not (_has_kana(query) or _has_kana(candidate)):
        return 0.0
    best = 0.0
    for q in romanize_variants(query):
        for c in romanize_variants(candidate):
            best = max(best, _similarity(q, c, threshold))
    return best


class FuzzyMatcher:
    """Scores one query term against one candidate string."""

    def __init__(
        self,
        typo_corrections: Optional[Dict[str, List[str]]] = None,
        threshold: float = 0.6,
        partial_match: float = 0.7,
    ):
        """
        Args:
            typo_corrections: Map of correct spelling to known misspellings.
            threshold: Minimum similarity accepted by the edit-distance and
                phonetic stages.
            partial_match: Score band applied to substring matches.
        """
        self.threshold = threshold
        self.partial_match = partial_match
        self.typos = self._invert_corrections(typo_corrections or {})

    @classmethod
    def from_file(cls, path: Union[str, Path], **kwargs) -> "FuzzyMatcher":
        return cls(load_typo_corrections(Path(path)), **kwargs)

    @staticmethod
    def _invert_corrections(corrections: Dict[str, List[str]]) -> Dict[str, str]:
        inverted: Dict[str, str] = {}
        for correct, misspellings in corrections.items():
            normalized_correct = normalize_text(correct)
            for misspelling in misspellings:
                normalized = normalize_text(misspelling)
                if not normalized or normalized == normalized_correct:
                    continue
                inverted.setdefault(normalized, normalized_correct)
        return inverted

    def correct(self, term: str) -> str:
        normalized = normalize_text(term)
        return self.typos.get(normalized, normalized)

    def match(
        self,
        query: str,
        candidate: str,
        threshold: Optional[float] = None,
        fuzzy: bool = True,
    ) -> FuzzyMatchResult:
        """
        Score ``query`` against ``candidate``.

        With ``fuzzy=False`` only exact and substring matches count; the typo,
        edit-distance and phonetic stages are skipped.
        """
        threshold = self.threshold if threshold is None else threshold
        query = normalize_text(query)
        candidate = normalize_text(candidate)

        if not query or not candidate:
            return FuzzyMatchResult(score=0.0, match_type="fuzzy", confidence=0.0)

        if query == candidate:
            return FuzzyMatchResult(score=1.0, match_type="exact", confidence=1.0)

        short_latin = _is_latin(query) and len(query) < 3
        if short_latin:
            if query in candidate.split():
                return self._partial(query, candidate)
        elif query in candidate:
            return self._partial(query, candidate)

        if not fuzzy:
            return FuzzyMatchResult(score=0.0, match_type="fuzzy", confidence=0.0)

        best = FuzzyMatchResult(score=0.0, match_type="fuzzy", confidence=0.0)

        corrected = self.typos.get(query)
        if corrected and corrected in candidate:
            if corrected == candidate:
                score = 1.0
            else:
                score = self.partial_match * len(corrected) / len(candidate)
            best = FuzzyMatchResult(score=score, match_type="fuzzy", confidence=0.8)

        if short_latin:
            return best

        tokens = candidate.split()
        targets = [candidate] + (tokens if len(tokens) > 1 else [])
        for index, target in enumerate(targets):
            # Token hits are scored like a partial match of that token
            scale = 1.0 if index == 0 else self.partial_match * len(target) / len(candidate)

            similarity = _similarity(query, target, threshold)
            if similarity >= threshold and similarity * scale > best.score:
                best = FuzzyMatchResult(score=similarity * scale, match_type="fuzzy", confidence=similarity * 0.7)

            phonetic = _phonetic_similarity(query, target, threshold)
            if phonetic >= threshold and phonetic * scale > best.score:
                best = FuzzyMatchResult(score=phonetic * scale, match_type="phonetic", confidence=phonetic * 0.6)

        return best

    def _partial(self, query: str, candidate: str) -> FuzzyMatchResult:
        score = self.partial_match * len(query) / len(candidate)
        return FuzzyMatchResult(score=score, match_type="partial", confidence=0.9)

    def multi_field_fuzzy_search(self, query: str, values: List[str]) -> List[Tuple[str, FuzzyMatchResult]]:
        """Matching values ordered by score times confidence."""
        results = []
        for value in values:
            result = self.match(query, value)
            if result.matched:
                results.append((value, result))
        results.sort(key=lambda item: item[1].score * item[1].confidence, reverse=True)
        return results

    def fuzzy_text_search(self, search_text: str, target_text: str) -> bool:
        """True when every search word has a match among the target words."""
        search_words = normalize_text(search_text).split()
        target_words = normalize_text(target_text).split()
        if not search_words:
            return False
        return all(
            any(self.match(word, target).matched for target in target_words)
            for word in search_words
        )


def load_typo_corrections(path: Path) -> Dict[str, List[str]]:
    try:
        if not path.exists():
            logger.error(f"Typo correction table not found: {path}")
            return {}

        with open(path, "r", encoding="utf-8") as f:
            corrections = json.load(f)
        logger.info(f"Loaded {len(corrections)} typo corrections from: {path}")
        return corrections

    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Error loading typo corrections: {e}")
        return {}
