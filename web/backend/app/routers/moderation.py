"""Moderation router -- screen prompts and design selections before generation.

``/screen`` is the full request gate: history pre-check, content check, and
violation recording on a hit. A rejected prompt returns 422; a user whose
history (or this violation) requires blocking gets 423.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request

from contentguard.config import ModerationServices
from contentguard.moderation.errors import LedgerError
from contentguard.moderation.models import UserSelections
from web.backend.app.middleware.auth import get_services
from web.backend.app.models.api import (
    ContentCheckRequest,
    ContentCheckResponse,
    FullContentCheckRequest,
    HistoryCheckResponse,
    ScreenRequest,
    ScreenResponse,
)

log = logging.getLogger("contentguard.api")

router = APIRouter(prefix="/api/moderation", tags=["moderation"])

_LOCKED_REASON = (
    "Your account has been restricted due to repeated policy violations. "
    "Contact support if you believe this is a mistake."
)


def _selections(request: FullContentCheckRequest) -> UserSelections:
    return UserSelections(
        text=request.text,
        style=request.style,
        material=request.material,
        production=request.production,
        details=list(request.details),
    )


@router.post("/check", response_model=ContentCheckResponse, summary="Check free text")
async def check_content(
    request: ContentCheckRequest,
    services: ModerationServices = Depends(get_services),
):
    result = services.filter.check_content(request.text)
    return ContentCheckResponse(
        is_inappropriate=result.is_inappropriate,
        reason=result.reason,
        suggestions=result.suggestions,
    )


@router.post("/check-full", response_model=ContentCheckResponse, summary="Check design selections")
async def check_full_content(
    request: FullContentCheckRequest,
    services: ModerationServices = Depends(get_services),
):
    result = services.filter.check_full_content(_selections(request))
    return ContentCheckResponse(
        is_inappropriate=result.is_inappropriate,
        reason=result.reason,
        suggestions=result.suggestions,
    )


@router.post("/screen", response_model=ScreenResponse, summary="Gate a generation request")
async def screen(
    request: ScreenRequest,
    http_request: Request,
    user_agent: Optional[str] = Header(None),
    services: ModerationServices = Depends(get_services),
):
    """Reject requests from blocked users and record new violations."""
    history = services.filter.check_user_history(request.user_id, request.text)
    if history.should_block:
        raise HTTPException(
            status_code=423,
            detail={"reason": _LOCKED_REASON, "action": "block", "is_locked": True},
        )

    selections = _selections(request)
    result = services.filter.check_full_content(selections)
    if not result.is_inappropriate:
        return ScreenResponse(allowed=True)

    ip_address = http_request.client.host if http_request.client else None
    try:
        outcome = services.filter.record_violation(
            request.user_id,
            selections.combined_text(),
            result.found_terms,
            ip_address=ip_address,
            user_agent=user_agent,
        )
    except LedgerError:
        # Still reject: a failed write must not let matched content through.
        log.exception("Could not record violation for %s", request.user_id[:10])
        action, locked = None, False
    else:
        action, locked = outcome.action.value, outcome.should_block

    raise HTTPException(
        status_code=423 if locked else 422,
        detail={
            "reason": result.reason,
            "suggestions": result.suggestions,
            "action": action,
            "is_locked": locked,
        },
    )


@router.get("/users/{user_id}", response_model=HistoryCheckResponse, summary="User standing")
async def user_standing(
    user_id: str,
    services: ModerationServices = Depends(get_services),
):
    history = services.filter.check_user_history(user_id)
    return HistoryCheckResponse(
        user_id=user_id,
        should_block=history.should_block,
        violation_count=history.violation_count,
        action=history.action,
    )
