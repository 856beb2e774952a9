"""
NearMatch — Store-neutral records.

Both store implementations hand these immutable values to the services, so
ranking and swipe logic never touch ORM instances or sessions.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

from nearmatch.utils.geo import GeoPoint

GENDERS = ("male", "female", "non-binary", "other")
SWIPE_ACTIONS = ("like", "dislike")


@dataclass(frozen=True)
class TempSkipEntry:
    target_id: uuid.UUID
    skipped_at: datetime


@dataclass(frozen=True)
class ProfileRecord:
    """Snapshot of a profile.

    ``liked``, ``disliked`` and ``temp_skips`` are only populated by
    ``get_profile``; candidate listings leave them empty.
    """

    id: uuid.UUID
    display_name: str = ""
    gender: str | None = None
    date_of_birth: date | None = None
    photos: tuple[str, ...] = ()
    position: GeoPoint | None = None
    preferred_gender: str = "both"
    age_min: int = 18
    age_max: int = 50
    max_distance_km: float = 50.0
    role: str = "user"
    is_banned: bool = False
    onboarding_complete: bool = False
    last_active: datetime | None = None
    boosted_until: datetime | None = None
    liked: frozenset[uuid.UUID] = field(default_factory=frozenset)
    disliked: frozenset[uuid.UUID] = field(default_factory=frozenset)
    temp_skips: tuple[TempSkipEntry, ...] = ()

    def is_boosted(self, now: datetime) -> bool:
        return self.boosted_until is not None and self.boosted_until > now

    def has_interacted_with(self, target_id: uuid.UUID) -> bool:
        return target_id in self.liked or target_id in self.disliked

    def is_online(self, now: datetime, window: timedelta) -> bool:
        return self.last_active is not None and self.last_active >= now - window


@dataclass(frozen=True)
class PartnerCard:
    """The slice of a profile shown to the other side of a match."""

    id: uuid.UUID
    display_name: str
    photos: tuple[str, ...]
    last_active: datetime | None
    is_online: bool

    @classmethod
    def from_profile(cls, profile: ProfileRecord, now: datetime, online_window: timedelta) -> PartnerCard:
        return cls(
            id=profile.id,
            display_name=profile.display_name,
            photos=profile.photos,
            last_active=profile.last_active,
            is_online=profile.is_online(now, online_window),
        )


def pair_key(user_x: uuid.UUID, user_y: uuid.UUID) -> str:
    """Normalised identifier for the unordered pair ``{user_x, user_y}``."""
    low, high = sorted((str(user_x), str(user_y)))
    return f"{low}:{high}"


@dataclass(frozen=True)
class MatchRecord:
    id: uuid.UUID
    user_a_id: uuid.UUID
    user_b_id: uuid.UUID
    matched_at: datetime
    last_message: datetime | None = None
    is_active: bool = True

    @property
    def pair_key(self) -> str:
        return pair_key(self.user_a_id, self.user_b_id)

    def involves(self, user_id: uuid.UUID) -> bool:
        return user_id in (self.user_a_id, self.user_b_id)

    def other_participant(self, user_id: uuid.UUID) -> uuid.UUID:
        return self.user_b_id if self.user_a_id == user_id else self.user_a_id
