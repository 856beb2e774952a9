"""
NearMatch — Profile store interface.

The engine talks to persistence only through these two abstract classes.
``ProximityIndex`` is the geospatial part (nearest-within-radius candidate
lookup) so the backing store can be PostgreSQL, an in-memory scan, or any
other spatial index without touching ranking logic.

Write operations are atomic, targeted appends or sets; none of them
rewrites a whole profile.
"""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from datetime import datetime
from typing import TYPE_CHECKING

from nearmatch.store.records import MatchRecord, ProfileRecord
from nearmatch.utils.geo import GeoPoint

if TYPE_CHECKING:
    from nearmatch.services.candidate_filter import CandidateQuery


class ProximityIndex(ABC):
    """Nearest-within-radius candidate lookup."""

    @abstractmethod
    async def find_candidates(
        self,
        query: "CandidateQuery",
        origin: GeoPoint,
        radius_m: float,
    ) -> list[ProfileRecord]:
        """Return profiles satisfying ``query`` that have a position and may
        lie within ``radius_m`` of ``origin``.

        Implementations may over-return (e.g. a bounding-box prefilter); the
        ranker applies the exact distance cut.  Order is unspecified.
        """
        ...


class ProfileStore(ProximityIndex):
    """Narrow persistence contract consumed by the engine services."""

    @abstractmethod
    async def get_profile(self, profile_id: uuid.UUID) -> ProfileRecord | None:
        """Load a profile including its interaction sets and temp skips."""
        ...

    @abstractmethod
    async def append_interaction(
        self,
        profile_id: uuid.UUID,
        target_id: uuid.UUID,
        action: str,
    ) -> bool:
        """Atomically add ``target_id`` to the liked/disliked set.

        Returns ``False`` (and writes nothing) when the profile already holds
        an interaction with ``target_id``.
        """
        ...

    @abstractmethod
    async def has_liked(self, profile_id: uuid.UUID, target_id: uuid.UUID) -> bool:
        """Fresh read: has ``profile_id`` liked ``target_id``?"""
        ...

    @abstractmethod
    async def append_temp_skip(
        self,
        profile_id: uuid.UUID,
        target_id: uuid.UUID,
        at: datetime,
    ) -> None:
        ...

    @abstractmethod
    async def prune_temp_skips(self, profile_id: uuid.UUID, older_than: datetime) -> int:
        """Delete temp-skip entries recorded at or before ``older_than``."""
        ...

    @abstractmethod
    async def create_match_if_absent(
        self,
        key: str,
        participants: tuple[uuid.UUID, uuid.UUID],
        at: datetime,
    ) -> MatchRecord:
        """Atomic upsert keyed on the normalised pair key.

        Returns the existing match when one is already stored for the pair.
        """
        ...

    @abstractmethod
    async def set_boost_window(self, profile_id: uuid.UUID, until: datetime) -> bool:
        """Overwrite ``boosted_until``.  Returns ``False`` for unknown ids."""
        ...

    @abstractmethod
    async def get_match(self, match_id: uuid.UUID) -> MatchRecord | None:
        ...

    @abstractmethod
    async def list_matches(
        self,
        user_id: uuid.UUID,
        limit: int,
        offset: int,
    ) -> list[MatchRecord]:
        """Active matches for ``user_id``, most recent conversation first."""
        ...

    @abstractmethod
    async def deactivate_match(self, match_id: uuid.UUID) -> bool:
        ...

    async def ping(self) -> None:
        """Raise if the store is unreachable."""
        return None
