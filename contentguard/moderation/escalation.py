"""Escalation policy — severity classification and enforcement decisions.

Severity ladder (first match wins):
- CRITICAL: any term from the lexicon's critical subset.
- HIGH: any term from the high subset.
- MEDIUM: more than ``medium_term_count`` distinct terms.
- LOW: everything else.

The recommended action is the stricter of two rules: a severity rule
(critical suspends immediately, high/medium escalate on repeats within the
short window, low is only flagged) and a history ladder that escalates any
severity as unresolved violations pile up in the 24 h and 7 d windows.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import TYPE_CHECKING, Any, Iterable

from contentguard.moderation.errors import ConfigError
from contentguard.moderation.lexicon import DEFAULT_LEXICON, Lexicon
from contentguard.moderation.models import EnforcementAction, Severity, UserHistory

if TYPE_CHECKING:
    from contentguard.moderation.ledger import ViolationLedger


@dataclass(frozen=True)
class EscalationThresholds:
    """Tunable business thresholds. Counts are compared with ``>=``."""

    window_hours: int = 24
    long_window_hours: int = 24 * 7
    medium_term_count: int = 2
    # Severity rule
    high_repeat_24h: int = 1
    medium_repeat_24h: int = 2
    # History ladder
    suspend_24h: int = 3
    block_24h: int = 2
    block_7d: int = 5
    warn_24h: int = 1
    warn_7d: int = 3
    # Hard ceilings for should_block_user
    ceiling_24h: int = 3
    ceiling_7d: int = 10

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EscalationThresholds:
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigError(f"Unknown escalation thresholds: {', '.join(sorted(unknown))}")
        values = {}
        for key, value in data.items():
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                raise ConfigError(f"Threshold '{key}' must be a non-negative integer")
            values[key] = value
        return cls(**values)


def classify_severity(found_terms: Iterable[str], lexicon: Lexicon = DEFAULT_LEXICON,
                      medium_term_count: int = 2) -> Severity:
    """Map detected terms to exactly one severity."""
    terms = {t.lower() for t in found_terms}
    if terms & set(lexicon.critical_terms):
        return Severity.CRITICAL
    if terms & set(lexicon.high_terms):
        return Severity.HIGH
    if len(terms) > medium_term_count:
        return Severity.MEDIUM
    return Severity.LOW


class EscalationPolicy:
    """Turns severity plus violation history into an :class:`EnforcementAction`.

    The pure decisions live in :meth:`decide` and :meth:`blocks`; the
    ``user_id`` variants read the history from the bound ledger.
    """

    def __init__(
        self,
        ledger: ViolationLedger,
        thresholds: EscalationThresholds | None = None,
        lexicon: Lexicon = DEFAULT_LEXICON,
    ) -> None:
        self.ledger = ledger
        self.thresholds = thresholds or EscalationThresholds()
        self.lexicon = lexicon
        # The first policy built over a ledger answers its should_block().
        if ledger.policy is None:
            ledger.bind_policy(self)

    # -- pure decisions --------------------------------------------------------

    def classify(self, found_terms: Iterable[str]) -> Severity:
        return classify_severity(found_terms, self.lexicon, self.thresholds.medium_term_count)

    def _severity_action(self, severity: Severity, history: UserHistory) -> EnforcementAction:
        t = self.thresholds
        if severity is Severity.CRITICAL:
            return EnforcementAction.ACCOUNT_SUSPENDED
        if severity is Severity.HIGH:
            if history.count_24h >= t.high_repeat_24h:
                return EnforcementAction.ACCOUNT_SUSPENDED
            return EnforcementAction.WARNED
        if severity is Severity.MEDIUM:
            if history.count_24h >= t.medium_repeat_24h:
                return EnforcementAction.BLOCKED
            return EnforcementAction.WARNED
        if severity is Severity.LOW:
            return EnforcementAction.FLAGGED
        raise ValueError(f"Unknown severity: {severity!r}")

    def _history_action(self, history: UserHistory) -> EnforcementAction:
        t = self.thresholds
        if history.count_24h >= t.suspend_24h:
            return EnforcementAction.ACCOUNT_SUSPENDED
        if history.count_24h >= t.block_24h or history.count_7d >= t.block_7d:
            return EnforcementAction.BLOCKED
        if history.count_24h >= t.warn_24h or history.count_7d >= t.warn_7d:
            return EnforcementAction.WARNED
        return EnforcementAction.FLAGGED

    def decide(self, severity: Severity, history: UserHistory) -> EnforcementAction:
        """Action for a new violation given the user's *prior* history."""
        return EnforcementAction.strictest(
            self._severity_action(Severity(severity), history),
            self._history_action(history),
        )

    def blocks(self, history: UserHistory) -> bool:
        """Whether a user with this history should be refused outright."""
        t = self.thresholds
        if history.latest_action is not None and history.latest_action.is_blocking:
            return True
        return (
            history.count_24h >= t.ceiling_24h
            or history.count_7d >= t.ceiling_7d
            or history.has_unresolved_critical
        )

    # -- ledger-backed ---------------------------------------------------------

    def history_for(self, user_id: str) -> UserHistory:
        return self.ledger.history(
            user_id, self.thresholds.window_hours, self.thresholds.long_window_hours
        )

    def recommend_action(self, user_id: str, severity: Severity) -> EnforcementAction:
        return self.decide(severity, self.history_for(user_id))

    def should_block_user(self, user_id: str) -> bool:
        return self.blocks(self.history_for(user_id))
