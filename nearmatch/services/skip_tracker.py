"""
NearMatch — Skip Expiry Tracker

"Pass for now" on the nearby surface.  A temp skip hides the target from
the seeker's discovery results for the cooldown window (3h by default) and
then lets it reappear.  Expiry is decided when the exclusion set is built;
the pruning done here only keeps storage tidy.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta

import structlog

from nearmatch.config import Settings, get_settings
from nearmatch.exceptions import InvalidFilter, NotFound, StoreUnavailable
from nearmatch.store.base import ProfileStore
from nearmatch.store.guard import guarded
from nearmatch.utils.clock import Clock, utcnow

logger = structlog.get_logger("nearmatch.skip_tracker")


class SkipTracker:
    def __init__(
        self,
        store: ProfileStore,
        settings: Settings | None = None,
        clock: Clock = utcnow,
    ) -> None:
        settings = settings or get_settings()
        self.store = store
        self.clock = clock
        self.cooldown = timedelta(hours=settings.TEMP_SKIP_COOLDOWN_HOURS)
        self.store_timeout: float = settings.STORE_TIMEOUT_SECONDS

    async def record_temp_skip(self, seeker_id: uuid.UUID, target_id: uuid.UUID) -> datetime:
        """Append ``(target_id, now)`` to the seeker's temp-skip list.

        Returns the recorded skip time.
        """
        log = logger.bind(seeker_id=str(seeker_id), target_id=str(target_id))

        if seeker_id == target_id:
            raise InvalidFilter("A profile cannot skip itself.")

        for profile_id in (seeker_id, target_id):
            profile = await guarded(
                self.store.get_profile(profile_id),
                timeout=self.store_timeout,
                operation="get_profile",
            )
            if profile is None:
                raise NotFound(f"Profile {profile_id} not found.")

        now = self.clock()
        await guarded(
            self.store.append_temp_skip(seeker_id, target_id, now),
            timeout=self.store_timeout,
            operation="append_temp_skip",
        )
        log.info("temp_skip_recorded", expires_at=(now + self.cooldown).isoformat())

        await self._prune(seeker_id, now)
        return now

    def expires_at(self, skipped_at: datetime) -> datetime:
        return skipped_at + self.cooldown

    async def _prune(self, seeker_id: uuid.UUID, now: datetime) -> None:
        # Best effort: the skip itself is already stored.
        try:
            removed = await guarded(
                self.store.prune_temp_skips(seeker_id, now - self.cooldown),
                timeout=self.store_timeout,
                operation="prune_temp_skips",
            )
        except StoreUnavailable:
            logger.warning("temp_skip_prune_failed", seeker_id=str(seeker_id))
            return
        if removed:
            logger.debug("temp_skips_pruned", seeker_id=str(seeker_id), removed=removed)
