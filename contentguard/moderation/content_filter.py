"""Content filter — the single entry point request handlers call.

Sequences matcher → escalation policy → ledger. Two failure modes are
deliberately different:

* :meth:`ContentFilter.check_user_history` FAILS OPEN. If the ledger cannot
  be read the user is allowed, so a storage outage degrades to "allow"
  instead of locking everybody out. Changing this to fail closed is a
  policy change, not a bug fix.
* :meth:`ContentFilter.record_violation` propagates ledger errors. A failed
  write must never hide the fact that the content matched.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional, Union

from contentguard.moderation.escalation import EscalationPolicy, EscalationThresholds
from contentguard.moderation.ledger import ViolationLedger
from contentguard.moderation.lexicon import DEFAULT_LEXICON, Lexicon
from contentguard.moderation.matcher import TermMatcher
from contentguard.moderation.models import (
    ContentCheckResult,
    HistoryCheckResult,
    UserSelections,
    ViolationOutcome,
    ViolationRecord,
    ViolationType,
    truncate_content,
)

log = logging.getLogger("contentguard.filter")

MAX_SUGGESTIONS = 3

_TERMS_REASON = (
    "Your prompt contains terms that may generate inappropriate content. "
    "Please use family-friendly descriptions."
)
_PATTERNS_REASON = (
    "Your prompt appears to request inappropriate content. "
    "Please modify your description to be suitable for all audiences."
)
_GENERIC_REASON = "Content may be inappropriate for our platform guidelines."

# Subject terms paired with style/material terms that get a stricter second
# look in check_full_content. Heuristic; expect to tune it.
_FIGURE_COMBINATIONS: tuple[tuple[tuple[str, ...], tuple[str, ...]], ...] = (
    (("human", "person", "character"), ("realistic", "photorealistic")),
    (("model", "figure"), ("skin", "flesh", "realistic")),
)
_FIGURE_RECHECK_SUFFIX = " human figure realistic"


def _preview(text: str, length: int = 100) -> str:
    return text[:length] + ("..." if len(text) > length else "")


def _short_id(user_id: Optional[str]) -> str:
    return f"{user_id[:10]}..." if user_id else "<none>"


class ContentFilter:
    """Facade over the matcher, the escalation policy, and the ledger.

    Parameters
    ----------
    ledger : ViolationLedger
        Source of truth for violation history.
    policy : EscalationPolicy | None
        Built from *ledger*, *thresholds*, and *lexicon* when omitted.
    lexicon : Lexicon
        Blocklist for matching and severity classification.
    """

    def __init__(
        self,
        ledger: ViolationLedger,
        policy: EscalationPolicy | None = None,
        lexicon: Lexicon = DEFAULT_LEXICON,
        thresholds: EscalationThresholds | None = None,
    ) -> None:
        self.ledger = ledger
        self.lexicon = lexicon
        self.policy = policy or EscalationPolicy(ledger, thresholds, lexicon)
        self.matcher = TermMatcher(lexicon)

    # -- checks ----------------------------------------------------------------

    def check_content(self, text: Any) -> ContentCheckResult:
        """Check free text against the lexicon and evasion patterns."""
        match = self.matcher.match(text)
        if not match.is_inappropriate:
            return ContentCheckResult(is_inappropriate=False)

        log.warning(
            "Inappropriate content detected: text=%r terms=%s patterns=%d",
            _preview(text),
            match.found_terms,
            match.found_pattern_count,
        )
        return ContentCheckResult(
            is_inappropriate=True,
            reason=self.generate_reason(match.found_terms, match.found_pattern_count),
            found_terms=match.found_terms,
            found_pattern_count=match.found_pattern_count,
            suggestions=list(self.lexicon.safe_alternatives[:MAX_SUGGESTIONS]),
        )

    @staticmethod
    def generate_reason(found_terms: list[str], found_pattern_count: int) -> str:
        """User-facing rejection reason. Never names the matched terms."""
        if found_terms:
            return _TERMS_REASON
        if found_pattern_count:
            return _PATTERNS_REASON
        return _GENERIC_REASON

    def sanitize_text(self, text: Any) -> Any:
        return self.matcher.sanitize(text)

    def check_full_content(
        self, selections: Union[UserSelections, dict[str, Any], str]
    ) -> ContentCheckResult:
        """Check every free-text field of a design request together.

        If the combined text is clean but pairs a human-figure subject with a
        realism style or a skin-like material, the primary text is checked
        again with a realistic-human suffix and that result wins if it trips.
        The second look can only make the verdict stricter.
        """
        if isinstance(selections, dict):
            selections = UserSelections.from_dict(selections)
        elif isinstance(selections, str):
            selections = UserSelections(text=selections)
        elif not isinstance(selections, UserSelections):
            return ContentCheckResult(is_inappropriate=False)

        all_text = selections.combined_text()
        result = self.check_content(all_text)
        if result.is_inappropriate:
            return result

        lower_text = all_text.lower()
        for subjects, qualifiers in _FIGURE_COMBINATIONS:
            if any(s in lower_text for s in subjects) and any(q in lower_text for q in qualifiers):
                recheck = self.check_content(str(selections.text or "") + _FIGURE_RECHECK_SUFFIX)
                if recheck.is_inappropriate:
                    log.info("Realistic-figure recheck tripped for combined selections")
                    return recheck
        return result

    # -- history ---------------------------------------------------------------

    def check_user_history(self, user_id: str, content: Optional[str] = None) -> HistoryCheckResult:
        """Pre-gate a user on their violation history alone. Fails open."""
        try:
            should_block = self.policy.should_block_user(user_id)
            violation_count = self.ledger.count_since(user_id, self.policy.thresholds.window_hours)
        except Exception:
            log.exception("Error checking user history for %s; allowing", _short_id(user_id))
            return HistoryCheckResult(should_block=False, violation_count=0, action="allow")

        log.info(
            "Content filter check for user %s: content_length=%d should_block=%s violations=%d",
            _short_id(user_id),
            len(content or ""),
            should_block,
            violation_count,
        )
        return HistoryCheckResult(
            should_block=should_block,
            violation_count=violation_count,
            action="block" if should_block else "allow",
        )

    def record_violation(
        self,
        user_id: str,
        content: str,
        found_terms: Iterable[str] = (),
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        violation_type: ViolationType = ViolationType.INAPPROPRIATE_CONTENT,
    ) -> ViolationOutcome:
        """Classify, escalate, and persist a violation.

        Ledger failures propagate as :class:`LedgerError`.
        """
        terms = tuple(found_terms)
        severity = self.policy.classify(terms)
        action = self.policy.recommend_action(user_id, severity)

        violation = self.ledger.append(
            ViolationRecord(
                user_id=user_id,
                violation_type=violation_type,
                content=truncate_content(content),
                detected_terms=terms,
                severity=severity,
                action=action,
                ip_address=ip_address,
                user_agent=user_agent,
            )
        )

        log.warning(
            "Content violation recorded: user=%s severity=%s action=%s terms=%d id=%s",
            _short_id(user_id),
            severity.value,
            action.value,
            len(terms),
            violation.id,
        )
        return ViolationOutcome(
            violation=violation,
            action=action,
            severity=severity,
            should_block=action.is_blocking,
        )
