"""
NearMatch — Matches API

Listing, lookup and unmatch for a participant's matches.
"""

from __future__ import annotations

import uuid

import structlog
from fastapi import APIRouter, Depends, Query

from nearmatch.api.deps import get_match_service
from nearmatch.schemas.match import MatchListItem, MatchPartner, MatchResponse
from nearmatch.services.match_service import MatchService
from nearmatch.store.records import MatchRecord, PartnerCard

logger = structlog.get_logger("nearmatch.api.matches")

router = APIRouter()


def to_partner(card: PartnerCard | None) -> MatchPartner | None:
    if card is None:
        return None
    return MatchPartner(
        id=card.id,
        display_name=card.display_name,
        photos=list(card.photos),
        last_active=card.last_active,
        is_online=card.is_online,
    )


def to_match_response(match: MatchRecord, partner: PartnerCard | None = None) -> MatchResponse:
    return MatchResponse(
        match_id=match.id,
        user_a_id=match.user_a_id,
        user_b_id=match.user_b_id,
        matched_at=match.matched_at,
        last_message=match.last_message,
        is_active=match.is_active,
        other_user=to_partner(partner),
    )


# ──────────────────────────────────────────────────────────────────────────────
# GET /user/{user_id} — List active matches
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "/user/{user_id}",
    response_model=list[MatchListItem],
    summary="List active matches for a user",
)
async def list_user_matches(
    user_id: uuid.UUID,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    service: MatchService = Depends(get_match_service),
) -> list[MatchListItem]:
    """Most recent conversation first, then newest match.  Each item carries
    the other participant's name, photos and online flag."""
    summaries = await service.list_match_summaries(user_id, limit=limit, offset=offset)
    return [
        MatchListItem(
            match_id=s.match.id,
            other_user_id=s.other_user_id,
            other_user=to_partner(s.partner),
            matched_at=s.match.matched_at,
            last_message=s.match.last_message,
        )
        for s in summaries
    ]


# ──────────────────────────────────────────────────────────────────────────────
# GET /{match_id} — Match details
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "/{match_id}",
    response_model=MatchResponse,
    summary="Get match details by ID",
)
async def get_match(
    match_id: uuid.UUID,
    user_id: uuid.UUID = Query(..., description="Requesting participant"),
    service: MatchService = Depends(get_match_service),
) -> MatchResponse:
    match = await service.get_match(match_id, user_id)
    return to_match_response(match)


# ──────────────────────────────────────────────────────────────────────────────
# DELETE /{match_id} — Unmatch
# ──────────────────────────────────────────────────────────────────────────────

@router.delete(
    "/{match_id}",
    response_model=MatchResponse,
    summary="Deactivate a match",
)
async def unmatch(
    match_id: uuid.UUID,
    user_id: uuid.UUID = Query(..., description="Requesting participant"),
    service: MatchService = Depends(get_match_service),
) -> MatchResponse:
    """Deactivate the match.  History is kept; the pair stays excluded from
    each other's discovery feeds."""
    match = await service.unmatch(match_id, user_id)
    logger.info("unmatch_complete", match_id=str(match_id))
    return to_match_response(match)
