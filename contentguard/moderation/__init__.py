"""Content moderation: lexicon matching, violation ledger, escalation policy.

The :class:`ContentFilter` facade is the entry point request handlers call.
"""

from contentguard.moderation.admin import ModerationAdmin
from contentguard.moderation.content_filter import ContentFilter
from contentguard.moderation.errors import ConfigError, LedgerError, ModerationError, ViolationNotFound
from contentguard.moderation.escalation import EscalationPolicy, EscalationThresholds, classify_severity
from contentguard.moderation.ledger import InMemoryViolationLedger, JsonlViolationLedger, ViolationLedger
from contentguard.moderation.lexicon import DEFAULT_LEXICON, Lexicon, load_lexicon
from contentguard.moderation.matcher import TermMatcher
from contentguard.moderation.models import (
    ContentCheckResult,
    EnforcementAction,
    HistoryCheckResult,
    MatchResult,
    Severity,
    UserHistory,
    UserSelections,
    ViolationOutcome,
    ViolationRecord,
    ViolationResolution,
    ViolationType,
)

__all__ = [
    "ConfigError",
    "ContentFilter",
    "ContentCheckResult",
    "DEFAULT_LEXICON",
    "EnforcementAction",
    "EscalationPolicy",
    "EscalationThresholds",
    "HistoryCheckResult",
    "InMemoryViolationLedger",
    "JsonlViolationLedger",
    "LedgerError",
    "Lexicon",
    "MatchResult",
    "ModerationAdmin",
    "ModerationError",
    "Severity",
    "TermMatcher",
    "UserHistory",
    "UserSelections",
    "ViolationLedger",
    "ViolationNotFound",
    "ViolationOutcome",
    "ViolationRecord",
    "ViolationResolution",
    "ViolationType",
    "classify_severity",
    "load_lexicon",
]
