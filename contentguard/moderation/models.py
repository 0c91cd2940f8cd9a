"""Data models for the content moderation system."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

MAX_CONTENT_LENGTH = 1000


class Severity(str, Enum):
    """How harmful a detected violation is judged to be."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    Severity.LOW: 0,
    Severity.MEDIUM: 1,
    Severity.HIGH: 2,
    Severity.CRITICAL: 3,
}


class EnforcementAction(str, Enum):
    """Outcome of escalation, ordered from most lenient to strictest."""

    FLAGGED = "flagged"
    WARNED = "warned"
    BLOCKED = "blocked"
    ACCOUNT_SUSPENDED = "account_suspended"

    @property
    def rank(self) -> int:
        return _ACTION_RANK[self]

    @property
    def is_blocking(self) -> bool:
        return self in (EnforcementAction.BLOCKED, EnforcementAction.ACCOUNT_SUSPENDED)

    @classmethod
    def strictest(cls, *actions: EnforcementAction) -> EnforcementAction:
        return max(actions, key=lambda a: a.rank)


_ACTION_RANK = {
    EnforcementAction.FLAGGED: 0,
    EnforcementAction.WARNED: 1,
    EnforcementAction.BLOCKED: 2,
    EnforcementAction.ACCOUNT_SUSPENDED: 3,
}


class ViolationType(str, Enum):
    INAPPROPRIATE_CONTENT = "inappropriate_content"
    REPEATED_VIOLATIONS = "repeated_violations"  # manual admin block
    EXPLICIT_CONTENT = "explicit_content"
    HATE_SPEECH = "hate_speech"
    VIOLENCE = "violence"


def truncate_content(content: Optional[str]) -> str:
    """Cap stored content at :data:`MAX_CONTENT_LENGTH` characters."""
    return (content or "")[:MAX_CONTENT_LENGTH]


# ---------------------------------------------------------------------------
# Ledger records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ViolationRecord:
    """A single recorded violation. Never modified after it is appended.

    ``id`` and ``created_at`` are empty until the ledger assigns them.
    """

    user_id: str
    violation_type: ViolationType
    content: str
    severity: Severity
    action: EnforcementAction
    detected_terms: tuple[str, ...] = ()
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    notes: str = ""
    id: str = ""
    created_at: str = ""

    def __post_init__(self) -> None:
        if len(self.content) > MAX_CONTENT_LENGTH:
            object.__setattr__(self, "content", truncate_content(self.content))
        if not isinstance(self.detected_terms, tuple):
            object.__setattr__(self, "detected_terms", tuple(self.detected_terms))

    @property
    def created_at_dt(self) -> datetime:
        return datetime.fromisoformat(self.created_at)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["violation_type"] = self.violation_type.value
        data["severity"] = self.severity.value
        data["action"] = self.action.value
        data["detected_terms"] = list(self.detected_terms)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ViolationRecord:
        return cls(
            id=data["id"],
            created_at=data["created_at"],
            user_id=data["user_id"],
            violation_type=ViolationType(data["violation_type"]),
            content=data.get("content", ""),
            severity=Severity(data["severity"]),
            action=EnforcementAction(data["action"]),
            detected_terms=tuple(data.get("detected_terms", [])),
            ip_address=data.get("ip_address"),
            user_agent=data.get("user_agent"),
            notes=data.get("notes", ""),
        )


@dataclass(frozen=True)
class ViolationResolution:
    """Marks a violation as resolved without touching the original record."""

    violation_id: str
    resolved_by: str
    notes: str = ""
    resolved_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ViolationResolution:
        return cls(
            violation_id=data["violation_id"],
            resolved_by=data.get("resolved_by", ""),
            notes=data.get("notes", ""),
            resolved_at=data.get("resolved_at", ""),
        )


@dataclass(frozen=True)
class UserHistory:
    """Snapshot of a user's unresolved violations, as seen by the policy."""

    count_24h: int = 0
    count_7d: int = 0
    latest_action: Optional[EnforcementAction] = None
    has_unresolved_critical: bool = False


# ---------------------------------------------------------------------------
# Check results
# ---------------------------------------------------------------------------


@dataclass
class MatchResult:
    """Evidence returned by the term/pattern matcher."""

    is_inappropriate: bool
    found_terms: list[str] = field(default_factory=list)
    found_pattern_count: int = 0


@dataclass
class ContentCheckResult:
    """Result of a content check, safe to show to the user."""

    is_inappropriate: bool
    reason: Optional[str] = None
    found_terms: list[str] = field(default_factory=list)
    found_pattern_count: int = 0
    suggestions: list[str] = field(default_factory=list)


@dataclass
class HistoryCheckResult:
    should_block: bool
    violation_count: int
    action: str  # "block" | "allow"


@dataclass
class ViolationOutcome:
    """What the caller must enforce after a violation was recorded."""

    violation: ViolationRecord
    action: EnforcementAction
    severity: Severity
    should_block: bool


@dataclass
class UserSelections:
    """Free-text fields of a design request, checked together."""

    text: str = ""
    style: str = ""
    material: str = ""
    production: str = ""
    details: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> UserSelections:
        """Build from a loosely typed request body.

        Scalars are coerced to strings and empty values dropped. A bare
        ``details`` string counts as a single detail.
        """
        details = data.get("details") or []
        if isinstance(details, (str, int, float)):
            details = [details]
        elif not isinstance(details, (list, tuple)):
            details = []
        return cls(
            text=_as_text(data.get("text")),
            style=_as_text(data.get("style")),
            material=_as_text(data.get("material")),
            production=_as_text(data.get("production")),
            details=[_as_text(d) for d in details if _as_text(d)],
        )

    def combined_text(self) -> str:
        parts = [self.text, self.style, self.material, self.production, *self.details]
        return " ".join(_as_text(p) for p in parts if _as_text(p))


def _as_text(value: Any) -> str:
    """String form of a scalar field; anything else is treated as empty."""
    if isinstance(value, bool) or value is None:
        return ""
    if isinstance(value, (str, int, float)):
        return str(value)
    return ""


# ---------------------------------------------------------------------------
# Admin / reporting views
# ---------------------------------------------------------------------------


@dataclass
class ViolationPage:
    violations: list[ViolationRecord]
    total: int
    page: int
    limit: int
    by_severity: dict[str, int] = field(default_factory=dict)

    @property
    def pages(self) -> int:
        return -(-self.total // self.limit) if self.limit else 0


@dataclass
class UserReport:
    """Violation history and current standing of a single user."""

    user_id: str
    violations: list[ViolationRecord]
    count_24h: int
    count_7d: int
    should_block: bool


@dataclass
class ViolatorSummary:
    user_id: str
    count: int
    latest_violation: str
    severities: list[str] = field(default_factory=list)


@dataclass
class ViolationStats:
    days: int
    daily: dict[str, dict[str, int]] = field(default_factory=dict)  # date -> severity -> count
    top_violators: list[ViolatorSummary] = field(default_factory=list)
