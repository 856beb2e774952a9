"""
NearMatch — Discovery API

Ranked, filtered candidate feed around the seeker (or a searched location).
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query

from nearmatch.api.deps import get_discovery_service
from nearmatch.schemas.discovery import CandidateResponse, DiscoveryResponse
from nearmatch.services.candidate_filter import DiscoveryFilters
from nearmatch.services.discovery_service import DiscoveryService
from nearmatch.services.proximity_ranker import RankedCandidate

logger = structlog.get_logger("nearmatch.api.discovery")

router = APIRouter()


def _to_candidate_response(candidate: RankedCandidate) -> CandidateResponse:
    profile = candidate.profile
    return CandidateResponse(
        id=profile.id,
        display_name=profile.display_name,
        gender=profile.gender,
        age=candidate.age,
        photos=list(profile.photos),
        distance=candidate.distance_km,
        is_online=candidate.is_online,
        is_boosted=candidate.is_boosted,
    )


# ──────────────────────────────────────────────────────────────────────────────
# GET /{seeker_id} — Discovery feed
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "/{seeker_id}",
    response_model=DiscoveryResponse,
    summary="Ranked candidates near the seeker",
)
async def discover(
    seeker_id: uuid.UUID,
    gender: Optional[str] = Query(None, description="male / female / non-binary / other / both"),
    age_min: Optional[int] = Query(None, description="Minimum candidate age"),
    age_max: Optional[int] = Query(None, description="Maximum candidate age"),
    distance: Optional[float] = Query(None, description="Search radius in km"),
    online_only: bool = Query(False, description="Only candidates active in the last few minutes"),
    lat: Optional[float] = Query(None, description="Latitude of a searched location"),
    lng: Optional[float] = Query(None, description="Longitude of a searched location"),
    limit: int = Query(20, ge=1, le=100, description="Max candidates to return"),
    offset: int = Query(0, ge=0, description="Number of candidates to skip"),
    service: DiscoveryService = Depends(get_discovery_service),
) -> DiscoveryResponse:
    """Return candidates ordered by boost tier, then distance.

    When neither the seeker nor the request supplies a location the
    response is ``{"status": "needs_location"}`` so the client can ask for
    one instead of showing an empty feed.
    """
    filters = DiscoveryFilters(
        gender=gender,
        age_min=age_min,
        age_max=age_max,
        distance_km=distance,
        online_only=online_only,
        latitude=lat,
        longitude=lng,
    )
    result = await service.discover(seeker_id, filters, limit=limit, offset=offset)

    return DiscoveryResponse(
        status=result.status,
        candidates=[_to_candidate_response(c) for c in result.candidates],
        has_more=result.has_more,
        radius_km=result.radius_km,
    )
