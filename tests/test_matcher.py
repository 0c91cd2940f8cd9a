"""Tests for the term/pattern matcher and the lexicon."""

import pytest

from contentguard.moderation.errors import ConfigError
from contentguard.moderation.lexicon import DEFAULT_LEXICON, Lexicon
from contentguard.moderation.matcher import TermMatcher


def test_term_match_is_case_insensitive_substring():
    result = TermMatcher().match("A NAKED statue")
    assert result.is_inappropriate
    assert "naked" in result.found_terms


def test_every_lexicon_term_is_detected():
    matcher = TermMatcher()
    for term in DEFAULT_LEXICON.terms:
        result = matcher.match(f"prefix {term.upper()} suffix")
        assert result.is_inappropriate, term
        assert term in result.found_terms, term


def test_clean_text_is_allowed():
    result = TermMatcher().match("a cute robot holding a flower")
    assert not result.is_inappropriate
    assert result.found_terms == []
    assert result.found_pattern_count == 0


def test_pattern_only_match():
    result = TermMatcher().match("in a bedroom scene")
    assert result.is_inappropriate
    assert result.found_terms == []
    assert result.found_pattern_count == 1


def test_found_terms_follow_lexicon_order():
    result = TermMatcher().match("gun and naked")
    assert result.found_terms == ["naked", "gun"]


def test_non_string_input_is_clean():
    matcher = TermMatcher()
    for value in (None, "", 42, ["naked"]):
        assert not matcher.match(value).is_inappropriate


def test_sanitize_removes_whole_words_only():
    matcher = TermMatcher()
    assert matcher.sanitize("a hot dog stand") == "a dog stand"
    assert matcher.sanitize("a photograph") == "a photograph"


def test_sanitize_handles_symbol_terms():
    assert TermMatcher().sanitize("poster 18+ only") == "poster only"


def test_sanitize_leaves_pattern_matches():
    assert TermMatcher().sanitize("a bedroom scene") == "a bedroom scene"


def test_sanitize_reaches_fixed_point():
    matcher = TermMatcher()
    # Removing "hot" joins "take off", which is itself a lexicon term.
    once = matcher.sanitize("take hot off your hat")
    assert once == "your hat"
    assert matcher.sanitize(once) == once


def test_sanitize_is_idempotent():
    matcher = TermMatcher()
    samples = [
        "naked   person on the  beach",
        "a toy gun and a knife, no clothes",
        "Sexy HOT model pose",
        "   ",
        "a cute robot",
    ]
    for s in samples:
        once = matcher.sanitize(s)
        assert matcher.sanitize(once) == once


def test_sanitize_passes_through_non_strings():
    matcher = TermMatcher()
    assert matcher.sanitize(None) is None
    assert matcher.sanitize(7) == 7


def test_lexicon_deduplicates_and_lowercases():
    lexicon = Lexicon(terms=("Gun", "gun", "KNIFE"))
    assert lexicon.terms == ("gun", "knife")


def test_lexicon_is_immutable():
    with pytest.raises(AttributeError):
        DEFAULT_LEXICON.terms = ("nothing",)


def test_invalid_pattern_rejected():
    with pytest.raises(ConfigError):
        Lexicon(patterns=("(unclosed",))


def test_custom_lexicon():
    matcher = TermMatcher(Lexicon(terms=("dragon",), patterns=()))
    assert matcher.match("a red DRAGON").found_terms == ["dragon"]
    assert not matcher.match("naked").is_inappropriate
