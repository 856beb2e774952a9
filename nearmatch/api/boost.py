"""
NearMatch — Boost API
"""

from __future__ import annotations

import uuid
from typing import Optional

from fastapi import APIRouter, Depends

from nearmatch.api.deps import get_boost_service
from nearmatch.schemas.boost import BoostRequest, BoostResponse
from nearmatch.services.boost_service import BoostService

router = APIRouter()


@router.post(
    "/{profile_id}",
    response_model=BoostResponse,
    summary="Boost a profile to the top of discovery",
)
async def activate_boost(
    profile_id: uuid.UUID,
    payload: Optional[BoostRequest] = None,
    service: BoostService = Depends(get_boost_service),
) -> BoostResponse:
    duration = payload.duration_minutes if payload else None
    boosted_until = await service.activate_boost(profile_id, duration)
    return BoostResponse(boosted_until=boosted_until)
