"""Tests for the ContentFilter facade, including end-to-end scenarios."""

import tempfile

import pytest

from contentguard.moderation.content_filter import ContentFilter
from contentguard.moderation.errors import LedgerError
from contentguard.moderation.ledger import InMemoryViolationLedger, JsonlViolationLedger
from contentguard.moderation.lexicon import DEFAULT_LEXICON, Lexicon
from contentguard.moderation.models import EnforcementAction, Severity, UserSelections


class BrokenReadLedger(InMemoryViolationLedger):
    def _iter_violations(self):
        raise LedgerError("store unreachable")


class BrokenWriteLedger(InMemoryViolationLedger):
    def _write_violation(self, record):
        raise LedgerError("disk full")


def _filter(**kwargs) -> ContentFilter:
    return ContentFilter(InMemoryViolationLedger(), **kwargs)


# --- check_content ---


def test_check_content_hit():
    result = _filter().check_content("naked person on beach")
    assert result.is_inappropriate
    assert "naked" in result.found_terms
    assert result.suggestions == list(DEFAULT_LEXICON.safe_alternatives[:3])


def test_reason_never_names_terms():
    result = _filter().check_content("naked person on beach")
    assert "naked" not in result.reason
    assert "family-friendly" in result.reason


def test_pattern_only_reason():
    result = _filter().check_content("in a bedroom scene")
    assert result.is_inappropriate
    assert result.found_terms == []
    assert "suitable for all audiences" in result.reason


def test_generic_reason_fallback():
    assert ContentFilter.generate_reason([], 0).startswith("Content may be inappropriate")


def test_check_content_clean():
    result = _filter().check_content("a cute robot holding a flower")
    assert not result.is_inappropriate
    assert result.reason is None
    assert result.suggestions == []


def test_check_content_invalid_input():
    content_filter = _filter()
    assert not content_filter.check_content(None).is_inappropriate
    assert not content_filter.check_content(12).is_inappropriate


def test_sanitize_text():
    assert _filter().sanitize_text("a hot dog stand") == "a dog stand"


# --- check_full_content ---


def test_full_content_combines_fields():
    result = _filter().check_full_content(
        {"text": "a knight", "style": "cartoon", "details": ["nude"]}
    )
    assert result.is_inappropriate
    assert "nude" in result.found_terms


def test_full_content_accepts_dataclass():
    selections = UserSelections(text="a cute robot", style="cartoon", material="plastic")
    assert not _filter().check_full_content(selections).is_inappropriate


def test_full_content_ignores_missing_fields():
    result = _filter().check_full_content({"text": "a cute robot", "style": None, "details": None})
    assert not result.is_inappropriate


def test_full_content_coerces_non_string_fields():
    content_filter = _filter()
    result = content_filter.check_full_content({"text": "naked", "style": 3, "material": 1.5})
    assert result.is_inappropriate
    assert "naked" in result.found_terms

    clean = content_filter.check_full_content(
        {"text": "a cute robot", "style": 3, "production": {"kind": "resin"}, "details": [None, 7]}
    )
    assert not clean.is_inappropriate


def test_full_content_bare_details_string():
    result = _filter().check_full_content({"text": "a knight", "details": "nude"})
    assert result.is_inappropriate
    assert "nude" in result.found_terms


def test_full_content_invalid_selections():
    content_filter = _filter()
    assert not content_filter.check_full_content(None).is_inappropriate
    assert not content_filter.check_full_content(12).is_inappropriate
    # A bare string is treated as the main text.
    assert content_filter.check_full_content("naked").is_inappropriate


def test_selections_from_dict_normalises_fields():
    selections = UserSelections.from_dict({"text": 42, "details": "cape", "style": True})
    assert selections.text == "42"
    assert selections.style == ""
    assert selections.details == ["cape"]
    assert selections.combined_text() == "42 cape"


def test_realistic_figure_recheck_can_only_tighten():
    # With the default lexicon the appended figure phrase is clean, so a clean
    # realistic-character request stays clean.
    result = _filter().check_full_content(
        {"text": "a realistic human character", "style": "realistic"}
    )
    assert not result.is_inappropriate


def test_realistic_figure_recheck_trips():
    lexicon = Lexicon(terms=("human figure",))
    content_filter = ContentFilter(InMemoryViolationLedger(), lexicon=lexicon)
    result = content_filter.check_full_content(
        {"text": "a realistic human", "style": "photorealistic"}
    )
    assert result.is_inappropriate
    assert result.found_terms == ["human figure"]


def test_realistic_figure_recheck_needs_subject():
    lexicon = Lexicon(terms=("human figure",))
    content_filter = ContentFilter(InMemoryViolationLedger(), lexicon=lexicon)
    result = content_filter.check_full_content({"text": "a robot", "style": "photorealistic"})
    assert not result.is_inappropriate


# --- record_violation / check_user_history ---


def test_scenario_explicit_request_suspends():
    ledger = InMemoryViolationLedger()
    content_filter = ContentFilter(ledger)
    text = "naked person on beach"

    check = content_filter.check_content(text)
    outcome = content_filter.record_violation(
        "user-a", text, check.found_terms, "203.0.113.5", "pytest"
    )

    assert outcome.severity is Severity.CRITICAL
    assert outcome.action is EnforcementAction.ACCOUNT_SUSPENDED
    assert outcome.should_block
    assert outcome.violation.ip_address == "203.0.113.5"
    assert ledger.get(outcome.violation.id) == outcome.violation


def test_scenario_clean_request_leaves_no_trace():
    ledger = InMemoryViolationLedger()
    result = ContentFilter(ledger).check_content("a cute robot holding a flower")
    assert not result.is_inappropriate
    assert ledger.query() == []


def test_scenario_repeat_low_severity_escalates():
    content_filter = _filter()
    actions = []
    for _ in range(3):
        check = content_filter.check_content("toy gun")
        assert check.found_terms == ["gun"]
        outcome = content_filter.record_violation("user-u", "toy gun", check.found_terms)
        assert outcome.severity is Severity.LOW
        actions.append(outcome.action)
    assert actions == [
        EnforcementAction.FLAGGED,
        EnforcementAction.WARNED,
        EnforcementAction.BLOCKED,
    ]


def test_record_violation_is_append_only():
    ledger = InMemoryViolationLedger()
    content_filter = ContentFilter(ledger)
    for _ in range(4):
        content_filter.record_violation("u1", "toy gun", ["gun"])
    assert ledger.count_since("u1", 24) == 4


def test_record_violation_truncates_content():
    outcome = _filter().record_violation("u1", "gun " * 1000, ["gun"])
    assert len(outcome.violation.content) == 1000


def test_record_violation_propagates_ledger_errors():
    content_filter = ContentFilter(BrokenWriteLedger())
    with pytest.raises(LedgerError):
        content_filter.record_violation("u1", "naked", ["naked"])


def test_history_after_violation():
    content_filter = _filter()
    content_filter.record_violation("u1", "naked", ["naked"])
    history = content_filter.check_user_history("u1", "next prompt")
    assert history.should_block
    assert history.violation_count == 1
    assert history.action == "block"


def test_history_clean_user():
    history = _filter().check_user_history("new-user")
    assert not history.should_block
    assert history.violation_count == 0
    assert history.action == "allow"


def test_history_fails_open():
    history = ContentFilter(BrokenReadLedger()).check_user_history("u1", "anything")
    assert history.should_block is False
    assert history.violation_count == 0
    assert history.action == "allow"


def test_jsonl_backed_filter():
    with tempfile.TemporaryDirectory() as tmpdir:
        content_filter = ContentFilter(JsonlViolationLedger(tmpdir))
        content_filter.record_violation("u1", "toy gun", ["gun"])
        content_filter.record_violation("u1", "toy gun", ["gun"])
        reopened = ContentFilter(JsonlViolationLedger(tmpdir))
        outcome = reopened.record_violation("u1", "toy gun", ["gun"])
        assert outcome.action is EnforcementAction.BLOCKED
