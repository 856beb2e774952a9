"""
NearMatch — Boost Scheduler

A boost puts a profile in the top ranking tier until ``boosted_until``.
Activating again overwrites the window with ``now + duration``; windows
never stack.
"""

from __future__ import annotations

import math
import uuid
from datetime import datetime, timedelta

import structlog

from nearmatch.config import Settings, get_settings
from nearmatch.exceptions import InvalidFilter, NotFound
from nearmatch.store.base import ProfileStore
from nearmatch.store.guard import guarded
from nearmatch.utils.clock import Clock, utcnow

logger = structlog.get_logger("nearmatch.boost_service")


class BoostService:
    def __init__(
        self,
        store: ProfileStore,
        settings: Settings | None = None,
        clock: Clock = utcnow,
    ) -> None:
        settings = settings or get_settings()
        self.store = store
        self.clock = clock
        self.default_minutes: int = settings.BOOST_DURATION_MINUTES
        self.max_minutes: int = settings.MAX_BOOST_DURATION_MINUTES
        self.store_timeout: float = settings.STORE_TIMEOUT_SECONDS

    async def activate_boost(
        self,
        profile_id: uuid.UUID,
        duration_minutes: float | None = None,
    ) -> datetime:
        """Set ``boosted_until = now + duration`` and return it (last call wins)."""
        minutes = self.default_minutes if duration_minutes is None else duration_minutes
        if not math.isfinite(minutes) or minutes <= 0:
            raise InvalidFilter(
                f"Boost duration must be a positive number of minutes, got {minutes}.",
                duration_minutes=minutes,
            )
        if minutes > self.max_minutes:
            raise InvalidFilter(
                f"Boost duration {minutes} exceeds the {self.max_minutes} minute limit.",
                duration_minutes=minutes,
            )

        until = self.clock() + timedelta(minutes=minutes)
        updated = await guarded(
            self.store.set_boost_window(profile_id, until),
            timeout=self.store_timeout,
            operation="set_boost_window",
        )
        if not updated:
            raise NotFound(f"Profile {profile_id} not found.")

        logger.info(
            "boost_activated",
            profile_id=str(profile_id),
            minutes=minutes,
            boosted_until=until.isoformat(),
        )
        return until
