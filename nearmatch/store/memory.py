"""
NearMatch — In-memory profile store.

A process-local implementation of :class:`ProfileStore` for development and
tests.  Mutations are serialised by an ``asyncio.Lock`` and every call yields
to the event loop once, like a networked store would, so concurrent callers
interleave realistically.  Candidate lookup is a linear scan.
"""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import replace
from datetime import datetime
from typing import TYPE_CHECKING, Iterable

import structlog

from nearmatch.store.base import ProfileStore
from nearmatch.store.records import (
    SWIPE_ACTIONS,
    MatchRecord,
    ProfileRecord,
    TempSkipEntry,
)
from nearmatch.utils.geo import GeoPoint, bounding_box

if TYPE_CHECKING:
    from nearmatch.services.candidate_filter import CandidateQuery

logger = structlog.get_logger("nearmatch.store.memory")


class InMemoryProfileStore(ProfileStore):
    """Dictionary-backed store keyed by profile and match id."""

    def __init__(self, profiles: Iterable[ProfileRecord] = ()) -> None:
        self._profiles: dict[uuid.UUID, ProfileRecord] = {}
        self._liked: dict[uuid.UUID, list[uuid.UUID]] = {}
        self._disliked: dict[uuid.UUID, list[uuid.UUID]] = {}
        self._temp_skips: dict[uuid.UUID, list[TempSkipEntry]] = {}
        self._matches: dict[uuid.UUID, MatchRecord] = {}
        self._matches_by_pair: dict[str, uuid.UUID] = {}
        self._lock = asyncio.Lock()

        for profile in profiles:
            self.add_profile(profile)

    # ── Seeding (outside the engine contract) ────────────────────────────

    def add_profile(self, profile: ProfileRecord) -> ProfileRecord:
        """Insert or replace a profile, adopting its interaction sets."""
        self._profiles[profile.id] = replace(
            profile, liked=frozenset(), disliked=frozenset(), temp_skips=()
        )
        self._liked[profile.id] = list(profile.liked)
        self._disliked[profile.id] = list(profile.disliked)
        self._temp_skips[profile.id] = list(profile.temp_skips)
        return profile

    def count_matches(self) -> int:
        return len(self._matches)

    def liked_log(self, profile_id: uuid.UUID) -> list[uuid.UUID]:
        """Raw liked log, duplicates included, for assertions."""
        return list(self._liked.get(profile_id, []))

    def temp_skip_log(self, profile_id: uuid.UUID) -> list[TempSkipEntry]:
        return list(self._temp_skips.get(profile_id, []))

    # ── ProximityIndex ───────────────────────────────────────────────────

    async def find_candidates(
        self,
        query: "CandidateQuery",
        origin: GeoPoint,
        radius_m: float,
    ) -> list[ProfileRecord]:
        await asyncio.sleep(0)
        box = bounding_box(origin, radius_m)
        return [
            profile
            for profile in self._profiles.values()
            if profile.position is not None
            and _inside(box, profile.position)
            and query.matches(profile)
        ]

    # ── ProfileStore ─────────────────────────────────────────────────────

    async def get_profile(self, profile_id: uuid.UUID) -> ProfileRecord | None:
        await asyncio.sleep(0)
        profile = self._profiles.get(profile_id)
        if profile is None:
            return None
        return replace(
            profile,
            liked=frozenset(self._liked[profile_id]),
            disliked=frozenset(self._disliked[profile_id]),
            temp_skips=tuple(self._temp_skips[profile_id]),
        )

    async def append_interaction(
        self,
        profile_id: uuid.UUID,
        target_id: uuid.UUID,
        action: str,
    ) -> bool:
        if action not in SWIPE_ACTIONS:
            raise ValueError(f"Unknown swipe action {action!r}")
        await asyncio.sleep(0)
        async with self._lock:
            liked = self._liked.setdefault(profile_id, [])
            disliked = self._disliked.setdefault(profile_id, [])
            if target_id in liked or target_id in disliked:
                return False
            (liked if action == "like" else disliked).append(target_id)
            return True

    async def has_liked(self, profile_id: uuid.UUID, target_id: uuid.UUID) -> bool:
        await asyncio.sleep(0)
        return target_id in self._liked.get(profile_id, [])

    async def append_temp_skip(
        self,
        profile_id: uuid.UUID,
        target_id: uuid.UUID,
        at: datetime,
    ) -> None:
        await asyncio.sleep(0)
        async with self._lock:
            self._temp_skips.setdefault(profile_id, []).append(
                TempSkipEntry(target_id=target_id, skipped_at=at)
            )

    async def prune_temp_skips(self, profile_id: uuid.UUID, older_than: datetime) -> int:
        await asyncio.sleep(0)
        async with self._lock:
            entries = self._temp_skips.get(profile_id, [])
            kept = [e for e in entries if e.skipped_at > older_than]
            self._temp_skips[profile_id] = kept
            return len(entries) - len(kept)

    async def create_match_if_absent(
        self,
        key: str,
        participants: tuple[uuid.UUID, uuid.UUID],
        at: datetime,
    ) -> MatchRecord:
        await asyncio.sleep(0)
        async with self._lock:
            existing_id = self._matches_by_pair.get(key)
            if existing_id is not None:
                return self._matches[existing_id]

            user_a, user_b = sorted(participants, key=str)
            match = MatchRecord(
                id=uuid.uuid4(),
                user_a_id=user_a,
                user_b_id=user_b,
                matched_at=at,
            )
            self._matches[match.id] = match
            self._matches_by_pair[key] = match.id
            logger.debug("memory_match_created", match_id=str(match.id))
            return match

    async def set_boost_window(self, profile_id: uuid.UUID, until: datetime) -> bool:
        await asyncio.sleep(0)
        async with self._lock:
            profile = self._profiles.get(profile_id)
            if profile is None:
                return False
            self._profiles[profile_id] = replace(profile, boosted_until=until)
            return True

    async def get_match(self, match_id: uuid.UUID) -> MatchRecord | None:
        await asyncio.sleep(0)
        return self._matches.get(match_id)

    async def list_matches(
        self,
        user_id: uuid.UUID,
        limit: int,
        offset: int,
    ) -> list[MatchRecord]:
        await asyncio.sleep(0)
        active = [
            m for m in self._matches.values()
            if m.is_active and m.involves(user_id)
        ]
        # last_message desc with nulls last, then matched_at desc
        active.sort(
            key=lambda m: (
                m.last_message is not None,
                m.last_message or m.matched_at,
                m.matched_at,
            ),
            reverse=True,
        )
        return active[offset:offset + limit]

    async def deactivate_match(self, match_id: uuid.UUID) -> bool:
        await asyncio.sleep(0)
        async with self._lock:
            match = self._matches.get(match_id)
            if match is None:
                return False
            self._matches[match_id] = replace(match, is_active=False)
            return True


def _inside(box, point: GeoPoint) -> bool:
    if not box.min_lat <= point.latitude <= box.max_lat:
        return False
    if box.wraps_antimeridian:
        return point.longitude >= box.min_lng or point.longitude <= box.max_lng
    return box.min_lng <= point.longitude <= box.max_lng
