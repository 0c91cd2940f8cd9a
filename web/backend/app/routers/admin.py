"""Admin router -- review, resolve, and block on the violation ledger.

Every endpoint requires the ``X-Admin-Key`` header.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from contentguard.config import ModerationServices
from contentguard.moderation.errors import ViolationNotFound
from contentguard.moderation.models import Severity, ViolationType
from web.backend.app.middleware.auth import get_services, require_admin
from web.backend.app.models.api import (
    BlockRequest,
    PaginationResponse,
    ResolutionResponse,
    ResolveRequest,
    UnblockResponse,
    UserReportResponse,
    ViolationListResponse,
    ViolationResponse,
    ViolationStatsResponse,
    ViolatorSummaryResponse,
)

router = APIRouter(
    prefix="/api/admin",
    tags=["admin"],
    dependencies=[Depends(require_admin)],
)


@router.get("/violations", response_model=ViolationListResponse, summary="List violations")
async def list_violations(
    severity: Optional[Severity] = Query(None),
    violation_type: Optional[ViolationType] = Query(None),
    user_id: Optional[str] = Query(None),
    resolved: Optional[bool] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    services: ModerationServices = Depends(get_services),
):
    result = services.admin.list_violations(
        severity=severity,
        violation_type=violation_type,
        user_id=user_id,
        resolved=resolved,
        page=page,
        limit=limit,
    )
    resolved_ids = services.ledger.resolved_ids()
    return ViolationListResponse(
        violations=[
            ViolationResponse.from_record(v, v.id in resolved_ids) for v in result.violations
        ],
        pagination=PaginationResponse(
            page=result.page, limit=result.limit, total=result.total, pages=result.pages
        ),
        by_severity=result.by_severity,
    )


@router.get("/violations/stats", response_model=ViolationStatsResponse, summary="Violation statistics")
async def violation_stats(
    days: int = Query(7, ge=1, le=365),
    services: ModerationServices = Depends(get_services),
):
    stats = services.admin.violation_stats(days)
    return ViolationStatsResponse(
        days=stats.days,
        daily=stats.daily,
        top_violators=[
            ViolatorSummaryResponse(
                user_id=v.user_id,
                count=v.count,
                latest_violation=v.latest_violation,
                severities=v.severities,
            )
            for v in stats.top_violators
        ],
    )


@router.get("/violations/users/{user_id}", response_model=UserReportResponse, summary="User history")
async def user_report(
    user_id: str,
    limit: int = Query(10, ge=1, le=100),
    services: ModerationServices = Depends(get_services),
):
    report = services.admin.user_report(user_id, limit=limit)
    resolved_ids = services.ledger.resolved_ids()
    return UserReportResponse(
        user_id=report.user_id,
        violations=[
            ViolationResponse.from_record(v, v.id in resolved_ids) for v in report.violations
        ],
        count_24h=report.count_24h,
        count_7d=report.count_7d,
        should_block=report.should_block,
    )


@router.post(
    "/violations/{violation_id}/resolve",
    response_model=ResolutionResponse,
    summary="Resolve a violation",
)
async def resolve_violation(
    violation_id: str,
    request: ResolveRequest,
    services: ModerationServices = Depends(get_services),
):
    try:
        resolution = services.admin.resolve_violation(
            violation_id, request.resolved_by, request.notes
        )
    except ViolationNotFound:
        raise HTTPException(status_code=404, detail="Violation not found")
    return ResolutionResponse(
        violation_id=resolution.violation_id,
        resolved_by=resolution.resolved_by,
        resolved_at=resolution.resolved_at,
        notes=resolution.notes,
    )


@router.post("/users/{user_id}/block", response_model=ViolationResponse, summary="Block a user")
async def block_user(
    user_id: str,
    request: BlockRequest,
    services: ModerationServices = Depends(get_services),
):
    violation = services.admin.block_user(user_id, request.reason, request.actor)
    return ViolationResponse.from_record(violation)


@router.post("/users/{user_id}/unblock", response_model=UnblockResponse, summary="Unblock a user")
async def unblock_user(
    user_id: str,
    request: BlockRequest,
    services: ModerationServices = Depends(get_services),
):
    count = services.admin.unblock_user(user_id, request.reason, request.actor)
    return UnblockResponse(user_id=user_id, resolved_count=count)
