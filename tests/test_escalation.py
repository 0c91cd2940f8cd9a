"""Tests for severity classification and the escalation policy."""

import pytest

from contentguard.moderation.errors import ConfigError
from contentguard.moderation.escalation import EscalationPolicy, EscalationThresholds, classify_severity
from contentguard.moderation.ledger import InMemoryViolationLedger
from contentguard.moderation.lexicon import DEFAULT_LEXICON
from contentguard.moderation.models import EnforcementAction, Severity, UserHistory


def _policy(**thresholds) -> EscalationPolicy:
    return EscalationPolicy(InMemoryViolationLedger(), EscalationThresholds(**thresholds))


# --- Severity ---


def test_critical_terms_always_win():
    assert classify_severity(["naked"]) is Severity.CRITICAL
    assert classify_severity(["gun", "knife", "blood", "breast", "NUDE"]) is Severity.CRITICAL


def test_high_terms():
    assert classify_severity(["breast"]) is Severity.HIGH
    assert classify_severity(["gun", "knife", "intimate"]) is Severity.HIGH


def test_medium_needs_more_than_two_distinct_terms():
    assert classify_severity(["gun", "knife", "blood"]) is Severity.MEDIUM
    assert classify_severity(["gun", "knife"]) is Severity.LOW
    assert classify_severity(["gun", "GUN", "Gun"]) is Severity.LOW


def test_severity_is_total():
    for term in DEFAULT_LEXICON.terms:
        assert classify_severity([term]) in set(Severity)


def test_severity_order():
    ranks = [s.rank for s in (Severity.LOW, Severity.MEDIUM, Severity.HIGH, Severity.CRITICAL)]
    assert ranks == sorted(ranks)


# --- Action recommendation ---


def test_critical_suspends_regardless_of_history():
    assert _policy().decide(Severity.CRITICAL, UserHistory()) is EnforcementAction.ACCOUNT_SUSPENDED


def test_high_first_offense_warns_then_suspends():
    policy = _policy()
    assert policy.decide(Severity.HIGH, UserHistory()) is EnforcementAction.WARNED
    assert policy.decide(Severity.HIGH, UserHistory(count_24h=1, count_7d=1)) is EnforcementAction.ACCOUNT_SUSPENDED


def test_medium_warns_then_blocks():
    policy = _policy()
    assert policy.decide(Severity.MEDIUM, UserHistory()) is EnforcementAction.WARNED
    assert policy.decide(Severity.MEDIUM, UserHistory(count_24h=2, count_7d=2)) is EnforcementAction.BLOCKED


def test_low_escalates_with_history():
    policy = _policy()
    assert policy.decide(Severity.LOW, UserHistory()) is EnforcementAction.FLAGGED
    assert policy.decide(Severity.LOW, UserHistory(count_24h=1, count_7d=1)) is EnforcementAction.WARNED
    assert policy.decide(Severity.LOW, UserHistory(count_24h=2, count_7d=2)) is EnforcementAction.BLOCKED
    assert policy.decide(Severity.LOW, UserHistory(count_24h=3, count_7d=3)) is EnforcementAction.ACCOUNT_SUSPENDED


def test_weekly_history_escalates():
    policy = _policy()
    assert policy.decide(Severity.LOW, UserHistory(count_7d=3)) is EnforcementAction.WARNED
    assert policy.decide(Severity.LOW, UserHistory(count_7d=5)) is EnforcementAction.BLOCKED


def test_accepts_severity_values():
    assert _policy().decide("critical", UserHistory()) is EnforcementAction.ACCOUNT_SUSPENDED


def test_unknown_severity_is_an_error():
    with pytest.raises(ValueError):
        _policy().decide("extreme", UserHistory())


def test_thresholds_are_configurable():
    policy = _policy(medium_repeat_24h=5, block_24h=10, suspend_24h=10)
    history = UserHistory(count_24h=2, count_7d=2)
    assert policy.decide(Severity.MEDIUM, history) is EnforcementAction.WARNED


# --- Blocking ---


def test_blocks_on_latest_blocking_action():
    policy = _policy()
    assert policy.blocks(UserHistory(count_24h=1, count_7d=1, latest_action=EnforcementAction.BLOCKED))
    assert not policy.blocks(UserHistory(count_24h=2, count_7d=2, latest_action=EnforcementAction.WARNED))


def test_blocks_on_ceilings():
    policy = _policy()
    assert policy.blocks(UserHistory(count_24h=3, count_7d=3, latest_action=EnforcementAction.FLAGGED))
    assert policy.blocks(UserHistory(count_24h=0, count_7d=10, latest_action=EnforcementAction.FLAGGED))


def test_blocks_on_unresolved_critical():
    assert _policy().blocks(UserHistory(count_7d=1, has_unresolved_critical=True))


def test_clean_history_not_blocked():
    assert not _policy().blocks(UserHistory())


def test_should_block_user_reads_ledger():
    ledger = InMemoryViolationLedger()
    policy = EscalationPolicy(ledger)
    assert not policy.should_block_user("u1")
    assert not ledger.should_block("u1", policy)


# --- Thresholds config ---


def test_thresholds_from_dict():
    t = EscalationThresholds.from_dict({"window_hours": 12, "ceiling_24h": 5})
    assert t.window_hours == 12
    assert t.ceiling_24h == 5
    assert t.block_7d == 5


def test_thresholds_reject_unknown_keys():
    with pytest.raises(ConfigError):
        EscalationThresholds.from_dict({"window": 12})


def test_thresholds_reject_bad_values():
    with pytest.raises(ConfigError):
        EscalationThresholds.from_dict({"window_hours": -1})
    with pytest.raises(ConfigError):
        EscalationThresholds.from_dict({"window_hours": "24"})
