from pydantic import BaseModel
from uuid import UUID
from datetime import datetime
from typing import Optional


class MatchPartner(BaseModel):
    id: UUID
    display_name: str
    photos: list[str] = []
    last_active: Optional[datetime] = None
    is_online: bool


class MatchResponse(BaseModel):
    match_id: UUID
    user_a_id: UUID
    user_b_id: UUID
    matched_at: datetime
    last_message: Optional[datetime] = None
    is_active: bool
    other_user: Optional[MatchPartner] = None  # swipe responses only


class MatchListItem(BaseModel):
    match_id: UUID
    other_user_id: UUID
    other_user: Optional[MatchPartner] = None
    matched_at: datetime
    last_message: Optional[datetime] = None


class SwipeCreate(BaseModel):
    seeker_id: UUID
    target_id: UUID
    action: str  # like / dislike


class SwipeResponse(BaseModel):
    is_match: bool
    match: Optional[MatchResponse] = None


class TempSkipCreate(BaseModel):
    seeker_id: UUID
    target_id: UUID


class TempSkipResponse(BaseModel):
    ok: bool = True
    expires_at: datetime
