"""
NearMatch — Match listing and unmatch.

Matches are only ever created by the swipe resolver.  This service lets a
participant list, inspect and deactivate them; deactivation keeps the
record for history.  Listings carry the other participant's card (name,
photos, online flag) so a matches screen renders without extra lookups.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import timedelta

import structlog

from nearmatch.config import Settings, get_settings
from nearmatch.exceptions import NotFound
from nearmatch.store.base import ProfileStore
from nearmatch.store.guard import guarded
from nearmatch.store.records import MatchRecord, PartnerCard
from nearmatch.utils.clock import Clock, utcnow

logger = structlog.get_logger("nearmatch.match_service")


@dataclass(frozen=True)
class MatchSummary:
    match: MatchRecord
    other_user_id: uuid.UUID
    partner: PartnerCard | None  # None once the other profile is gone


class MatchService:
    def __init__(
        self,
        store: ProfileStore,
        settings: Settings | None = None,
        clock: Clock = utcnow,
    ) -> None:
        settings = settings or get_settings()
        self.store = store
        self.clock = clock
        self.store_timeout: float = settings.STORE_TIMEOUT_SECONDS
        self.online_window = timedelta(minutes=settings.ONLINE_WINDOW_MINUTES)

    async def list_matches(
        self,
        user_id: uuid.UUID,
        limit: int = 20,
        offset: int = 0,
    ) -> list[MatchRecord]:
        """Active matches for ``user_id``, latest conversation first."""
        matches = await guarded(
            self.store.list_matches(user_id, limit, offset),
            timeout=self.store_timeout,
            operation="list_matches",
        )
        logger.info("user_matches_retrieved", user_id=str(user_id), count=len(matches))
        return matches

    async def list_match_summaries(
        self,
        user_id: uuid.UUID,
        limit: int = 20,
        offset: int = 0,
    ) -> list[MatchSummary]:
        """``list_matches`` with the other participant's card attached."""
        matches = await self.list_matches(user_id, limit=limit, offset=offset)
        now = self.clock()

        summaries = []
        # Sequential: a SQL store shares one session per request.
        for match in matches:
            other_id = match.other_participant(user_id)
            profile = await guarded(
                self.store.get_profile(other_id),
                timeout=self.store_timeout,
                operation="get_profile",
            )
            if profile is None:
                logger.warning(
                    "match_partner_missing",
                    match_id=str(match.id),
                    other_user_id=str(other_id),
                )
            summaries.append(
                MatchSummary(
                    match=match,
                    other_user_id=other_id,
                    partner=(
                        PartnerCard.from_profile(profile, now, self.online_window)
                        if profile is not None
                        else None
                    ),
                )
            )
        return summaries

    async def get_match(self, match_id: uuid.UUID, user_id: uuid.UUID) -> MatchRecord:
        match = await guarded(
            self.store.get_match(match_id),
            timeout=self.store_timeout,
            operation="get_match",
        )
        if match is None or not match.involves(user_id):
            logger.warning("match_not_found", match_id=str(match_id), user_id=str(user_id))
            raise NotFound(f"Match {match_id} not found.")
        return match

    async def unmatch(self, match_id: uuid.UUID, user_id: uuid.UUID) -> MatchRecord:
        """Deactivate a match the user participates in.  Repeat calls are no-ops."""
        match = await self.get_match(match_id, user_id)
        if match.is_active:
            await guarded(
                self.store.deactivate_match(match_id),
                timeout=self.store_timeout,
                operation="deactivate_match",
            )
            logger.info("match_deactivated", match_id=str(match_id), user_id=str(user_id))
        return await self.get_match(match_id, user_id)
