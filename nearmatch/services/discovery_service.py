"""
NearMatch — Discovery

Request-scoped orchestration of a discovery query: load the seeker, build
the candidate predicate, rank.  Read path only; nothing is written.
"""

from __future__ import annotations

import uuid

import structlog

from nearmatch.config import Settings, get_settings
from nearmatch.exceptions import NotFound
from nearmatch.services.candidate_filter import CandidateFilter, DiscoveryFilters
from nearmatch.services.proximity_ranker import DiscoveryResult, ProximityRanker
from nearmatch.store.base import ProfileStore
from nearmatch.store.guard import guarded
from nearmatch.utils.clock import Clock, utcnow

logger = structlog.get_logger("nearmatch.discovery_service")


class DiscoveryService:
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
        self.candidate_filter = CandidateFilter(settings)
        self.ranker = ProximityRanker(store, settings=settings, clock=clock)

    async def discover(
        self,
        seeker_id: uuid.UUID,
        filters: DiscoveryFilters | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> DiscoveryResult:
        """Return a ranked page of candidates for ``seeker_id``.

        Raises ``NotFound`` for an unknown seeker, ``InvalidFilter`` for
        malformed overrides and ``StoreUnavailable`` on store failure.
        """
        filters = filters or DiscoveryFilters()
        log = logger.bind(seeker_id=str(seeker_id))
        log.info("discovery_start", limit=limit, offset=offset)

        seeker = await guarded(
            self.store.get_profile(seeker_id),
            timeout=self.store_timeout,
            operation="get_profile",
        )
        if seeker is None:
            log.warning("discovery_seeker_not_found")
            raise NotFound(f"Profile {seeker_id} not found.")

        now = self.clock()
        # Validate everything before touching the index.
        origin = self.candidate_filter.resolve_origin(seeker, filters)
        radius_km = self.candidate_filter.resolve_radius_km(seeker, filters)
        query = self.candidate_filter.build(seeker, filters, now)

        result = await self.ranker.rank(
            query,
            origin=origin,
            radius_km=radius_km,
            limit=limit,
            offset=offset,
            now=now,
        )

        log.info(
            "discovery_complete",
            status=result.status,
            returned=len(result.candidates),
            has_more=result.has_more,
        )
        return result
