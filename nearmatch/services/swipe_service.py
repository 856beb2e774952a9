"""
NearMatch — Swipe Resolver

Records a directional like/dislike and resolves mutual interest into a
match.

State per ordered (seeker, target) pair:

    Unset ──like────▶ Liked       (terminal)
    Unset ──dislike─▶ Disliked    (terminal)

Any further swipe on the pair fails with ``AlreadyInteracted``.  That makes
a retried request safe: if the first attempt landed but was never
acknowledged, the retry is a clean failure rather than a duplicate write.

Reciprocity is read *after* the seeker's like has been committed, so of two
concurrent reciprocal likes at least one sees the other.  Match creation is
an upsert on the normalised pair key: racing creators share a single record.
The target's records are only ever read.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import timedelta

import structlog

from nearmatch.config import Settings, get_settings
from nearmatch.exceptions import (
    AlreadyInteracted,
    InvalidFilter,
    NotFound,
    TargetUnavailable,
)
from nearmatch.store.base import ProfileStore
from nearmatch.store.guard import guarded
from nearmatch.store.records import (
    SWIPE_ACTIONS,
    MatchRecord,
    PartnerCard,
    ProfileRecord,
    pair_key,
)
from nearmatch.utils.clock import Clock, utcnow

logger = structlog.get_logger("nearmatch.swipe_service")


@dataclass(frozen=True)
class SwipeOutcome:
    is_match: bool
    match: MatchRecord | None = None
    partner: PartnerCard | None = None


class SwipeService:
    """Like/dislike state machine with idempotent match creation."""

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

    async def record_swipe(
        self,
        seeker_id: uuid.UUID,
        target_id: uuid.UUID,
        action: str,
    ) -> SwipeOutcome:
        """Record ``seeker_id``'s ``action`` on ``target_id``.

        Parameters
        ----------
        seeker_id:
            Profile performing the swipe.
        target_id:
            Profile being swiped on.
        action:
            ``"like"`` or ``"dislike"``.

        Returns
        -------
        SwipeOutcome
            ``is_match=True`` with the (possibly pre-existing) match when the
            like is reciprocated, otherwise ``is_match=False``.

        Raises
        ------
        InvalidFilter
            Unknown action or a self-swipe.
        NotFound
            Seeker or target does not exist.
        TargetUnavailable
            Target is banned.
        AlreadyInteracted
            The seeker already liked or disliked the target.
        """
        log = logger.bind(
            seeker_id=str(seeker_id),
            target_id=str(target_id),
            action=action,
        )

        if action not in SWIPE_ACTIONS:
            raise InvalidFilter(f"Swipe action must be one of {SWIPE_ACTIONS}, got {action!r}.")
        if seeker_id == target_id:
            raise InvalidFilter("A profile cannot swipe on itself.")

        seeker = await self._load(seeker_id, "seeker")
        target = await self._load(target_id, "target")

        if target.is_banned:
            log.info("swipe_target_unavailable")
            raise TargetUnavailable(f"Profile {target_id} is not available.")

        if seeker.has_interacted_with(target_id):
            log.info("swipe_already_interacted", source="snapshot")
            raise AlreadyInteracted(f"Profile {seeker_id} already swiped on {target_id}.")

        appended = await guarded(
            self.store.append_interaction(seeker_id, target_id, action),
            timeout=self.store_timeout,
            operation="append_interaction",
        )
        if not appended:
            # Lost a race with a concurrent swipe on the same pair.
            log.info("swipe_already_interacted", source="store")
            raise AlreadyInteracted(f"Profile {seeker_id} already swiped on {target_id}.")

        log.info("swipe_recorded")

        if action == "dislike":
            return SwipeOutcome(is_match=False)

        reciprocated = await guarded(
            self.store.has_liked(target_id, seeker_id),
            timeout=self.store_timeout,
            operation="has_liked",
        )
        if not reciprocated:
            return SwipeOutcome(is_match=False)

        match = await guarded(
            self.store.create_match_if_absent(
                pair_key(seeker_id, target_id),
                (seeker_id, target_id),
                self.clock(),
            ),
            timeout=self.store_timeout,
            operation="create_match_if_absent",
        )

        log.info("swipe_mutual_match", match_id=str(match.id))
        return SwipeOutcome(
            is_match=True,
            match=match,
            partner=PartnerCard.from_profile(target, self.clock(), self.online_window),
        )

    async def _load(self, profile_id: uuid.UUID, role: str) -> ProfileRecord:
        profile = await guarded(
            self.store.get_profile(profile_id),
            timeout=self.store_timeout,
            operation="get_profile",
        )
        if profile is None:
            logger.warning("swipe_profile_not_found", role=role, profile_id=str(profile_id))
            raise NotFound(f"Profile {profile_id} not found.")
        return profile
