"""Pydantic models for API request/response serialization.

These models mirror the contentguard dataclasses and provide proper JSON
serialization for the FastAPI endpoints.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from contentguard.moderation.models import ViolationRecord


# ---------------------------------------------------------------------------
# Screening models
# ---------------------------------------------------------------------------


class ContentCheckRequest(BaseModel):
    text: str = ""


class FullContentCheckRequest(BaseModel):
    """Mirrors contentguard.moderation.models.UserSelections."""

    text: str = ""
    style: str = ""
    material: str = ""
    production: str = ""
    details: list[str] = Field(default_factory=list)


class ContentCheckResponse(BaseModel):
    """Mirrors contentguard.moderation.models.ContentCheckResult.

    Matched terms are deliberately not exposed to end users.
    """

    is_inappropriate: bool
    reason: Optional[str] = None
    suggestions: list[str] = Field(default_factory=list)


class ScreenRequest(FullContentCheckRequest):
    user_id: str


class ScreenResponse(BaseModel):
    allowed: bool
    reason: Optional[str] = None
    suggestions: list[str] = Field(default_factory=list)
    action: Optional[str] = None


class HistoryCheckResponse(BaseModel):
    """Mirrors contentguard.moderation.models.HistoryCheckResult."""

    user_id: str
    should_block: bool
    violation_count: int
    action: str


# ---------------------------------------------------------------------------
# Admin models
# ---------------------------------------------------------------------------


class ViolationResponse(BaseModel):
    """Mirrors contentguard.moderation.models.ViolationRecord."""

    id: str
    created_at: str
    user_id: str
    violation_type: str
    content: str
    detected_terms: list[str] = Field(default_factory=list)
    severity: str
    action: str
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    notes: str = ""
    is_resolved: bool = False

    @classmethod
    def from_record(cls, record: ViolationRecord, is_resolved: bool = False) -> ViolationResponse:
        return cls(**record.to_dict(), is_resolved=is_resolved)


class PaginationResponse(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class ViolationListResponse(BaseModel):
    violations: list[ViolationResponse] = Field(default_factory=list)
    pagination: PaginationResponse
    by_severity: dict[str, int] = Field(default_factory=dict)


class UserReportResponse(BaseModel):
    """Mirrors contentguard.moderation.models.UserReport."""

    user_id: str
    violations: list[ViolationResponse] = Field(default_factory=list)
    count_24h: int = 0
    count_7d: int = 0
    should_block: bool = False


class ResolveRequest(BaseModel):
    resolved_by: str = "admin"
    notes: str = ""


class ResolutionResponse(BaseModel):
    """Mirrors contentguard.moderation.models.ViolationResolution."""

    violation_id: str
    resolved_by: str
    resolved_at: str
    notes: str = ""


class BlockRequest(BaseModel):
    reason: str = ""
    actor: str = "admin"


class UnblockResponse(BaseModel):
    user_id: str
    resolved_count: int


class ViolatorSummaryResponse(BaseModel):
    user_id: str
    count: int
    latest_violation: str
    severities: list[str] = Field(default_factory=list)


class ViolationStatsResponse(BaseModel):
    """Mirrors contentguard.moderation.models.ViolationStats."""

    days: int
    daily: dict[str, dict[str, int]] = Field(default_factory=dict)
    top_violators: list[ViolatorSummaryResponse] = Field(default_factory=list)
