"""
NearMatch — Swipes API

Durable like/dislike swipes and the lighter "pass for now" temp skip.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, status

from nearmatch.api.deps import get_skip_tracker, get_swipe_service
from nearmatch.api.matches import to_match_response
from nearmatch.schemas.match import (
    SwipeCreate,
    SwipeResponse,
    TempSkipCreate,
    TempSkipResponse,
)
from nearmatch.services.skip_tracker import SkipTracker
from nearmatch.services.swipe_service import SwipeService

logger = structlog.get_logger("nearmatch.api.swipes")

router = APIRouter()


# ──────────────────────────────────────────────────────────────────────────────
# POST /swipes — Record a like / dislike
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "",
    response_model=SwipeResponse,
    summary="Like or dislike a profile",
)
async def record_swipe(
    payload: SwipeCreate,
    service: SwipeService = Depends(get_swipe_service),
) -> SwipeResponse:
    """Record the swipe and report whether it completed a mutual match.

    A repeated swipe on the same profile returns ``409 already_interacted``;
    clients may treat that as success of the earlier call.
    """
    outcome = await service.record_swipe(
        payload.seeker_id, payload.target_id, payload.action
    )
    return SwipeResponse(
        is_match=outcome.is_match,
        match=to_match_response(outcome.match, outcome.partner) if outcome.match else None,
    )


# ──────────────────────────────────────────────────────────────────────────────
# POST /temp-skip — Pass for now
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "/temp-skip",
    response_model=TempSkipResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Temporarily hide a profile from discovery",
)
async def record_temp_skip(
    payload: TempSkipCreate,
    tracker: SkipTracker = Depends(get_skip_tracker),
) -> TempSkipResponse:
    skipped_at = await tracker.record_temp_skip(payload.seeker_id, payload.target_id)
    return TempSkipResponse(ok=True, expires_at=tracker.expires_at(skipped_at))
