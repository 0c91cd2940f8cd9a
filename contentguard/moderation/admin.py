"""Admin and audit operations over the violation ledger.

Listing, per-user reports, statistics, and manual block/unblock. Unblocking
and resolving append resolution records; nothing here rewrites history.
"""

from __future__ import annotations

import logging
from collections import Counter, defaultdict
from datetime import timedelta
from typing import Optional

from contentguard.moderation.escalation import EscalationPolicy
from contentguard.moderation.ledger import ViolationLedger
from contentguard.moderation.models import (
    EnforcementAction,
    Severity,
    UserReport,
    ViolationPage,
    ViolationRecord,
    ViolationResolution,
    ViolationStats,
    ViolationType,
    ViolatorSummary,
    truncate_content,
)

log = logging.getLogger("contentguard.admin")

TOP_VIOLATORS = 10


class ModerationAdmin:
    """Operations behind the admin API and CLI."""

    def __init__(self, ledger: ViolationLedger, policy: EscalationPolicy) -> None:
        self.ledger = ledger
        self.policy = policy

    def list_violations(
        self,
        *,
        severity: Optional[Severity] = None,
        violation_type: Optional[ViolationType] = None,
        user_id: Optional[str] = None,
        resolved: Optional[bool] = None,
        page: int = 1,
        limit: int = 20,
    ) -> ViolationPage:
        """One page of matching violations, newest first."""
        page = max(1, page)
        limit = max(1, min(100, limit))
        matching = self.ledger.query(
            user_id=user_id, severity=severity, violation_type=violation_type, resolved=resolved
        )
        start = (page - 1) * limit
        # Severity totals cover the whole ledger, as the dashboard expects.
        by_severity = Counter(r.severity.value for r in self.ledger.query())
        return ViolationPage(
            violations=matching[start:start + limit],
            total=len(matching),
            page=page,
            limit=limit,
            by_severity=dict(by_severity),
        )

    def user_report(self, user_id: str, limit: int = 10) -> UserReport:
        history = self.policy.history_for(user_id)
        return UserReport(
            user_id=user_id,
            violations=self.ledger.list_for_user(user_id, limit),
            count_24h=history.count_24h,
            count_7d=history.count_7d,
            should_block=self.policy.blocks(history),
        )

    def resolve_violation(
        self, violation_id: str, resolved_by: str = "admin", notes: str = ""
    ) -> ViolationResolution:
        resolution = self.ledger.resolve(violation_id, resolved_by, notes)
        log.info("Violation %s resolved by %s", violation_id, resolved_by)
        return resolution

    def block_user(
        self, user_id: str, reason: str = "", blocked_by: str = "admin"
    ) -> ViolationRecord:
        """Record a manual, critical block for *user_id*."""
        reason = reason or "No reason provided"
        violation = self.ledger.append(
            ViolationRecord(
                user_id=user_id,
                violation_type=ViolationType.REPEATED_VIOLATIONS,
                content=truncate_content(reason),
                severity=Severity.CRITICAL,
                action=EnforcementAction.ACCOUNT_SUSPENDED,
                notes=f"Manually blocked by {blocked_by}: {reason}",
            )
        )
        log.warning("User %s manually blocked by %s (violation %s)", user_id, blocked_by, violation.id)
        return violation

    def unblock_user(self, user_id: str, reason: str = "", unblocked_by: str = "admin") -> int:
        """Resolve every unresolved violation of *user_id*; returns how many."""
        notes = f"Manually unblocked: {reason or 'No reason provided'}"
        open_violations = self.ledger.query(user_id=user_id, resolved=False)
        for violation in open_violations:
            self.ledger.resolve(violation.id, unblocked_by, notes)
        log.info("User %s unblocked by %s (%d resolved)", user_id, unblocked_by, len(open_violations))
        return len(open_violations)

    def violation_stats(self, days: int = 7) -> ViolationStats:
        """Daily counts by severity and the top unresolved violators."""
        since = self.ledger.now() - timedelta(days=days)
        recent = self.ledger.query(since=since)

        daily: dict[str, dict[str, int]] = defaultdict(dict)
        for r in recent:
            day = r.created_at_dt.strftime("%Y-%m-%d")
            daily[day][r.severity.value] = daily[day].get(r.severity.value, 0) + 1

        resolved = self.ledger.resolved_ids()
        per_user: dict[str, list[ViolationRecord]] = defaultdict(list)
        for r in recent:
            if r.id not in resolved:
                per_user[r.user_id].append(r)

        top = sorted(per_user.items(), key=lambda item: len(item[1]), reverse=True)[:TOP_VIOLATORS]
        return ViolationStats(
            days=days,
            daily=dict(sorted(daily.items())),
            top_violators=[
                ViolatorSummary(
                    user_id=uid,
                    count=len(records),
                    latest_violation=max(r.created_at for r in records),
                    severities=[r.severity.value for r in records],
                )
                for uid, records in top
            ],
        )
