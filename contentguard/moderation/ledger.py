"""Violation ledger — append-only, per-user history of content violations.

Records are never updated or deleted. Resolving a violation appends a
:class:`ViolationResolution` that references it; counts and block decisions
only consider unresolved violations. Ids and timestamps are assigned by the
ledger, never by the caller, so the store's insertion order is the order
of record.
"""

from __future__ import annotations

import json
import logging
import threading
import uuid
from abc import ABC, abstractmethod
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Iterator, Optional

from contentguard.moderation.errors import LedgerError, ModerationError, ViolationNotFound
from contentguard.moderation.models import (
    Severity,
    UserHistory,
    ViolationRecord,
    ViolationResolution,
    ViolationType,
)

if TYPE_CHECKING:
    from contentguard.moderation.escalation import EscalationPolicy

log = logging.getLogger("contentguard.ledger")

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ViolationLedger(ABC):
    """Shared query logic over an append-only record store.

    Subclasses only provide the four storage primitives.
    """

    def __init__(self, clock: Clock = _utcnow) -> None:
        self._clock = clock
        self.policy: Optional[EscalationPolicy] = None

    def bind_policy(self, policy: EscalationPolicy) -> None:
        """Set the policy used by :meth:`should_block` when none is passed."""
        self.policy = policy

    def now(self) -> datetime:
        return self._clock()

    # -- storage primitives ----------------------------------------------------

    @abstractmethod
    def _write_violation(self, record: ViolationRecord) -> None: ...

    @abstractmethod
    def _write_resolution(self, resolution: ViolationResolution) -> None: ...

    @abstractmethod
    def _iter_violations(self) -> Iterator[ViolationRecord]:
        """Yield every violation in insertion order."""

    @abstractmethod
    def _iter_resolutions(self) -> Iterator[ViolationResolution]: ...

    # -- writes ----------------------------------------------------------------

    def append(self, record: ViolationRecord) -> ViolationRecord:
        """Persist *record* and return the stored copy with id and timestamp."""
        stored = replace(
            record,
            id=uuid.uuid4().hex[:16],
            created_at=self._clock().isoformat(),
        )
        self._write_violation(stored)
        return stored

    def resolve(self, violation_id: str, resolved_by: str, notes: str = "") -> ViolationResolution:
        if self.get(violation_id) is None:
            raise ViolationNotFound(violation_id)
        resolution = ViolationResolution(
            violation_id=violation_id,
            resolved_by=resolved_by,
            notes=notes,
            resolved_at=self._clock().isoformat(),
        )
        self._write_resolution(resolution)
        return resolution

    # -- reads -----------------------------------------------------------------

    def resolved_ids(self) -> set[str]:
        return {r.violation_id for r in self._iter_resolutions()}

    def is_resolved(self, violation_id: str) -> bool:
        return violation_id in self.resolved_ids()

    def resolutions_for(self, violation_id: str) -> list[ViolationResolution]:
        return [r for r in self._iter_resolutions() if r.violation_id == violation_id]

    def get(self, violation_id: str) -> Optional[ViolationRecord]:
        for record in self._iter_violations():
            if record.id == violation_id:
                return record
        return None

    def _unresolved_for_user(self, user_id: str) -> list[ViolationRecord]:
        resolved = self.resolved_ids()
        return [
            r for r in self._iter_violations()
            if r.user_id == user_id and r.id not in resolved
        ]

    def count_since(self, user_id: str, window_hours: float) -> int:
        """Unresolved violations of *user_id* in the trailing window."""
        since = self._clock() - timedelta(hours=window_hours)
        return sum(1 for r in self._unresolved_for_user(user_id) if r.created_at_dt >= since)

    def history(self, user_id: str, window_hours: float, long_window_hours: float) -> UserHistory:
        records = self._unresolved_for_user(user_id)
        now = self._clock()
        short_since = now - timedelta(hours=window_hours)
        long_since = now - timedelta(hours=long_window_hours)
        return UserHistory(
            count_24h=sum(1 for r in records if r.created_at_dt >= short_since),
            count_7d=sum(1 for r in records if r.created_at_dt >= long_since),
            latest_action=records[-1].action if records else None,
            has_unresolved_critical=any(r.severity is Severity.CRITICAL for r in records),
        )

    def should_block(self, user_id: str, policy: Optional[EscalationPolicy] = None) -> bool:
        """Ask the escalation policy whether this user's history crosses its block threshold.

        Uses the bound policy unless *policy* is given.
        """
        policy = policy or self.policy
        if policy is None:
            raise ModerationError("No escalation policy bound to this ledger")
        return policy.blocks(
            self.history(user_id, policy.thresholds.window_hours, policy.thresholds.long_window_hours)
        )

    def latest_for_user(self, user_id: str) -> Optional[ViolationRecord]:
        latest = None
        for record in self._iter_violations():
            if record.user_id == user_id:
                latest = record
        return latest

    def list_for_user(self, user_id: str, limit: int = 10) -> list[ViolationRecord]:
        """Most recent violations of *user_id*, newest first."""
        records = [r for r in self._iter_violations() if r.user_id == user_id]
        records.reverse()
        return records[:limit]

    def query(
        self,
        *,
        user_id: Optional[str] = None,
        severity: Optional[Severity] = None,
        violation_type: Optional[ViolationType] = None,
        resolved: Optional[bool] = None,
        since: Optional[datetime] = None,
    ) -> list[ViolationRecord]:
        """Filtered violations, newest first."""
        resolved_ids = self.resolved_ids() if resolved is not None else set()
        result = []
        for r in self._iter_violations():
            if user_id and r.user_id != user_id:
                continue
            if severity and r.severity is not Severity(severity):
                continue
            if violation_type and r.violation_type is not ViolationType(violation_type):
                continue
            if resolved is not None and (r.id in resolved_ids) != resolved:
                continue
            if since and r.created_at_dt < since:
                continue
            result.append(r)
        result.reverse()
        return result


# ---------------------------------------------------------------------------
# Implementations
# ---------------------------------------------------------------------------


class InMemoryViolationLedger(ViolationLedger):
    """Process-local ledger, for tests and single-process deployments."""

    def __init__(self, clock: Clock = _utcnow) -> None:
        super().__init__(clock)
        self._lock = threading.Lock()
        self._violations: list[ViolationRecord] = []
        self._resolutions: list[ViolationResolution] = []

    def _write_violation(self, record: ViolationRecord) -> None:
        with self._lock:
            self._violations.append(record)

    def _write_resolution(self, resolution: ViolationResolution) -> None:
        with self._lock:
            self._resolutions.append(resolution)

    def _iter_violations(self) -> Iterator[ViolationRecord]:
        with self._lock:
            snapshot = list(self._violations)
        return iter(snapshot)

    def _iter_resolutions(self) -> Iterator[ViolationResolution]:
        with self._lock:
            snapshot = list(self._resolutions)
        return iter(snapshot)


class JsonlViolationLedger(ViolationLedger):
    """File-backed ledger.

    Storage path: ``~/.contentguard/ledger/`` with:
    - ``violations.jsonl`` -- one violation per line
    - ``resolutions.jsonl`` -- one resolution per line

    Each record is written with a single append-mode ``write`` so appends
    from concurrent threads or processes interleave by line and none is lost.
    """

    def __init__(self, base_dir: str | Path | None = None, clock: Clock = _utcnow) -> None:
        super().__init__(clock)
        self._base = Path(base_dir) if base_dir else Path.home() / ".contentguard" / "ledger"
        try:
            self._base.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise LedgerError(f"Cannot create ledger directory {self._base}: {exc}") from exc
        self._violations_path = self._base / "violations.jsonl"
        self._resolutions_path = self._base / "resolutions.jsonl"
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._base

    # -- helpers -------------------------------------------------------------

    def _append_line(self, path: Path, data: dict) -> None:
        line = json.dumps(data, ensure_ascii=False) + "\n"
        try:
            with self._lock, path.open("a", encoding="utf-8") as fh:
                fh.write(line)
        except OSError as exc:
            raise LedgerError(f"Could not write {path.name}: {exc}") from exc

    def _read_lines(self, path: Path) -> list[dict]:
        if not path.exists():
            return []
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise LedgerError(f"Could not read {path.name}: {exc}") from exc
        rows = []
        for lineno, line in enumerate(text.splitlines(), start=1):
            if not line.strip():
                continue
            try:
                rows.append(json.loads(line))
            except json.JSONDecodeError:
                # A torn write from a crashed process; the rest is still valid.
                log.warning("Skipping unreadable line %d in %s", lineno, path)
        return rows

    # -- primitives ----------------------------------------------------------

    def _write_violation(self, record: ViolationRecord) -> None:
        self._append_line(self._violations_path, record.to_dict())

    def _write_resolution(self, resolution: ViolationResolution) -> None:
        self._append_line(self._resolutions_path, resolution.to_dict())

    def _iter_violations(self) -> Iterator[ViolationRecord]:
        for row in self._read_lines(self._violations_path):
            try:
                yield ViolationRecord.from_dict(row)
            except (KeyError, ValueError):
                log.warning("Skipping malformed violation record: %s", row.get("id", "?"))

    def _iter_resolutions(self) -> Iterator[ViolationResolution]:
        for row in self._read_lines(self._resolutions_path):
            try:
                yield ViolationResolution.from_dict(row)
            except KeyError:
                log.warning("Skipping malformed resolution record")
