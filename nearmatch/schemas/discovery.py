from pydantic import BaseModel
from uuid import UUID
from typing import Optional


class CandidateResponse(BaseModel):
    id: UUID
    display_name: str
    gender: Optional[str] = None
    age: Optional[int] = None
    photos: list[str] = []
    distance: float  # km, one decimal
    is_online: bool
    is_boosted: bool


class DiscoveryResponse(BaseModel):
    status: str  # ok / needs_location
    candidates: list[CandidateResponse] = []
    has_more: bool = False
    radius_km: Optional[float] = None
