"""
Tests for query normalization and language detection.
"""

import pytest

from src.roster_search.parsers.query_normalizer import (
    detect_language,
    normalize_query,
    normalize_text,
    tokenize,
)


class TestNormalizeText:
    """Test cases for normalize_text."""

    def test_lowercases_and_collapses_whitespace(self):
        assert normalize_text("  UI   Designer ") == "ui designer"

    def test_punctuation_becomes_word_break(self):
        assert normalize_text("UI/UX Designer!") == "ui ux designer"
        assert normalize_text("PM, Engineer") == "pm engineer"

    def test_plus_and_hash_survive(self):
        assert normalize_text("C++ and C#") == "c++ and c#"

    def test_full_width_characters_are_folded(self):
        assert normalize_text("ＰＹＴＨＯＮ") == "python"

    def test_japanese_long_vowel_mark_is_kept(self):
        assert normalize_text("デザイナー") == "デザイナー"

    def test_empty_input(self):
        assert normalize_text("") == ""
        assert normalize_text("   ") == ""

    @pytest.mark.parametrize("text", [
        "UI/UX Designer", "AI エンジニア", "Node.js", "ｶﾀｶﾅ", "  c++  ", "PM、エンジニア",
    ])
    def test_idempotent(self, text):
        once = normalize_text(text)
        assert normalize_text(once) == once


class TestDetectLanguage:
    """Test cases for detect_language."""

    def test_japanese(self):
        assert detect_language("デザイナー") == "japanese"
        assert detect_language("機械学習") == "japanese"

    def test_english(self):
        assert detect_language("backend engineer") == "english"
        assert detect_language("node.js") == "english"

    def test_mixed(self):
        assert detect_language("AI エンジニア") == "mixed"

    def test_symbols_only_are_unknown(self):
        assert detect_language("!!!") == "unknown"

    def test_empty_defaults_to_english(self):
        assert detect_language("") == "english"


class TestNormalizeQuery:
    """Test cases for normalize_query and tokenize."""

    def test_query_fields(self):
        query = normalize_query("UI Designer")

        assert query.raw == "UI Designer"
        assert query.normalized == "ui designer"
        assert query.language == "english"
        assert query.tokens == ["ui", "designer"]

    def test_tokenize_normalizes_first(self):
        assert tokenize("Product-Manager  PM") == ["product", "manager", "pm"]
