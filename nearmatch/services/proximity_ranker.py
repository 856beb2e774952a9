"""
NearMatch — Proximity Ranker

Evaluates a ``CandidateQuery`` against a ``ProximityIndex`` and orders the
survivors:

  1. Reference point — override coordinates or the seeker's position.  With
     neither, the result is ``needs_location`` (never an empty "ok").
  2. Distance       — haversine from the reference point; anything beyond
                      the radius is discarded.
  3. Order          — boosted profiles (boosted_until > now) first, then
                      ascending distance, then id for a stable order.
  4. Pagination     — offset/limit applied after sorting.

Each result carries its distance in km (one decimal), calendar-aware age,
online flag and boost flag.  Store failures propagate as
``StoreUnavailable``; the ranker does not retry.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta

import structlog

from nearmatch.config import Settings, get_settings
from nearmatch.exceptions import InvalidFilter
from nearmatch.services.candidate_filter import CandidateQuery
from nearmatch.store.base import ProximityIndex
from nearmatch.store.guard import guarded
from nearmatch.store.records import ProfileRecord
from nearmatch.utils.clock import Clock, utcnow
from nearmatch.utils.dates import age_on
from nearmatch.utils.geo import GeoPoint, haversine_m

logger = structlog.get_logger("nearmatch.proximity_ranker")

STATUS_OK = "ok"
STATUS_NEEDS_LOCATION = "needs_location"


@dataclass(frozen=True)
class RankedCandidate:
    profile: ProfileRecord
    distance_m: float
    distance_km: float
    age: int | None
    is_online: bool
    is_boosted: bool


@dataclass(frozen=True)
class DiscoveryResult:
    status: str
    candidates: list[RankedCandidate] = field(default_factory=list)
    has_more: bool = False
    radius_km: float | None = None
    origin: GeoPoint | None = None

    @property
    def needs_location(self) -> bool:
        return self.status == STATUS_NEEDS_LOCATION


class ProximityRanker:
    """Distance ranking with boost priority over a ``ProximityIndex``."""

    def __init__(
        self,
        index: ProximityIndex,
        settings: Settings | None = None,
        clock: Clock = utcnow,
    ) -> None:
        settings = settings or get_settings()
        self.index = index
        self.clock = clock
        self.online_window = timedelta(minutes=settings.ONLINE_WINDOW_MINUTES)
        self.store_timeout: float = settings.STORE_TIMEOUT_SECONDS

    async def rank(
        self,
        query: CandidateQuery,
        origin: GeoPoint | None,
        radius_km: float,
        limit: int = 20,
        offset: int = 0,
        now: datetime | None = None,
    ) -> DiscoveryResult:
        """Return one page of candidates ordered by boost tier then distance."""
        log = logger.bind(seeker_id=str(query.seeker_id))

        if radius_km is None or radius_km <= 0:
            raise InvalidFilter(f"Search radius must be positive, got {radius_km}.")
        if query.earliest_birth > query.latest_birth:
            raise InvalidFilter("Age bounds are inverted.")
        if limit < 1 or offset < 0:
            raise InvalidFilter(f"Invalid page (limit={limit}, offset={offset}).")

        if origin is None:
            log.info("discovery_needs_location")
            return DiscoveryResult(status=STATUS_NEEDS_LOCATION, radius_km=radius_km)

        now = now or self.clock()
        radius_m = radius_km * 1000.0

        profiles = await guarded(
            self.index.find_candidates(query, origin, radius_m),
            timeout=self.store_timeout,
            operation="find_candidates",
        )

        within: list[tuple[ProfileRecord, float]] = []
        for profile in profiles:
            if profile.position is None:
                continue
            distance_m = haversine_m(origin, profile.position)
            if distance_m <= radius_m:
                within.append((profile, distance_m))

        within.sort(
            key=lambda item: (
                0 if item[0].is_boosted(now) else 1,
                item[1],
                str(item[0].id),
            )
        )

        page = within[offset:offset + limit]
        candidates = [self._decorate(profile, distance_m, now) for profile, distance_m in page]

        log.info(
            "discovery_ranked",
            fetched=len(profiles),
            within_radius=len(within),
            returned=len(candidates),
            radius_km=radius_km,
            offset=offset,
        )

        return DiscoveryResult(
            status=STATUS_OK,
            candidates=candidates,
            has_more=len(within) > offset + limit,
            radius_km=radius_km,
            origin=origin,
        )

    def _decorate(self, profile: ProfileRecord, distance_m: float, now: datetime) -> RankedCandidate:
        age = age_on(profile.date_of_birth, now.date()) if profile.date_of_birth else None
        return RankedCandidate(
            profile=profile,
            distance_m=distance_m,
            distance_km=round(distance_m / 1000.0, 1),
            age=age,
            is_online=profile.is_online(now, self.online_window),
            is_boosted=profile.is_boosted(now),
        )
