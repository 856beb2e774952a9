"""
NearMatch — Candidate Filter

Builds the eligibility predicate for a discovery request:

  1. Exclusions  — the seeker, everyone they liked or disliked, and anyone
                   they temp-skipped within the cooldown (3h by default).
  2. Eligibility — not banned, not an admin, onboarding complete.
  3. Gender      — explicit override, else the seeker's preference; "both"
                   means no gender filter.
  4. Age         — [age_min, age_max] converted to a birth-date range:
                   [today - (age_max + 1) years + 1 day, today - age_min years].
  5. Online-only — last_active within the online window (5 min by default).

The filter also resolves and validates the search origin and radius for the
ranker.  Malformed input raises ``InvalidFilter``; nothing is swapped or
clamped on the caller's behalf.  Stored preferences that fall outside
the configured limits are clamped and logged.
"""

from __future__ import annotations

import math
import uuid
from dataclasses import dataclass
from datetime import date, datetime, timedelta

import structlog

from nearmatch.config import Settings, get_settings
from nearmatch.exceptions import InvalidFilter
from nearmatch.store.records import GENDERS, ProfileRecord
from nearmatch.utils.dates import birth_date_range
from nearmatch.utils.geo import GeoPoint, is_valid_point

logger = structlog.get_logger("nearmatch.candidate_filter")


@dataclass(frozen=True)
class DiscoveryFilters:
    """Optional per-request overrides of the seeker's stored preferences."""

    gender: str | None = None
    age_min: int | None = None
    age_max: int | None = None
    distance_km: float | None = None
    online_only: bool = False
    latitude: float | None = None
    longitude: float | None = None


@dataclass(frozen=True)
class CandidateQuery:
    """Composed, side-effect-free candidate predicate.

    ``excluded_ids`` is the snapshot exclusion set used for in-process
    evaluation; ``skip_cutoff`` lets SQL stores express the same temp-skip
    rule server-side.
    """

    seeker_id: uuid.UUID
    excluded_ids: frozenset[uuid.UUID]
    skip_cutoff: datetime
    earliest_birth: date
    latest_birth: date
    gender: str | None = None
    active_since: datetime | None = None

    def matches(self, profile: ProfileRecord) -> bool:
        if profile.id == self.seeker_id or profile.id in self.excluded_ids:
            return False
        if profile.is_banned or profile.role == "admin" or not profile.onboarding_complete:
            return False
        if self.gender is not None and profile.gender != self.gender:
            return False
        dob = profile.date_of_birth
        if dob is None or not self.earliest_birth <= dob <= self.latest_birth:
            return False
        if self.active_since is not None:
            if profile.last_active is None or profile.last_active < self.active_since:
                return False
        return True


class CandidateFilter:
    """Turns a seeker snapshot plus overrides into a ``CandidateQuery``."""

    def __init__(self, settings: Settings | None = None) -> None:
        settings = settings or get_settings()
        self.min_age: int = settings.MIN_AGE
        self.max_age: int = settings.MAX_AGE
        self.skip_cooldown = timedelta(hours=settings.TEMP_SKIP_COOLDOWN_HOURS)
        self.online_window = timedelta(minutes=settings.ONLINE_WINDOW_MINUTES)
        self.default_radius_km: float = settings.DEFAULT_SEARCH_RADIUS_KM
        self.max_radius_km: float = settings.MAX_SEARCH_RADIUS_KM

    # ── Public API ────────────────────────────────────────────────────────

    def build(
        self,
        seeker: ProfileRecord,
        filters: DiscoveryFilters,
        now: datetime,
    ) -> CandidateQuery:
        """Compose the candidate predicate for ``seeker`` at time ``now``."""
        age_min, age_max = self.resolve_age_range(seeker, filters)
        earliest, latest = birth_date_range(age_min, age_max, now.date())
        skip_cutoff = now - self.skip_cooldown

        query = CandidateQuery(
            seeker_id=seeker.id,
            excluded_ids=self.excluded_ids(seeker, now),
            skip_cutoff=skip_cutoff,
            earliest_birth=earliest,
            latest_birth=latest,
            gender=self.resolve_gender(seeker, filters.gender),
            active_since=(now - self.online_window) if filters.online_only else None,
        )

        logger.debug(
            "candidate_query_built",
            seeker_id=str(seeker.id),
            excluded=len(query.excluded_ids),
            gender=query.gender,
            age_min=age_min,
            age_max=age_max,
            online_only=filters.online_only,
        )
        return query

    def excluded_ids(self, seeker: ProfileRecord, now: datetime) -> frozenset[uuid.UUID]:
        """Seeker ∪ liked ∪ disliked ∪ temp skips younger than the cooldown.

        A skip recorded exactly one cooldown ago has expired.
        """
        cutoff = now - self.skip_cooldown
        recent_skips = {
            entry.target_id for entry in seeker.temp_skips if entry.skipped_at > cutoff
        }
        return frozenset({seeker.id} | seeker.liked | seeker.disliked | recent_skips)

    @staticmethod
    def resolve_gender(seeker: ProfileRecord, override: str | None) -> str | None:
        if override is not None:
            if override != "both" and override not in GENDERS:
                raise InvalidFilter(f"Unknown gender filter {override!r}.")
            if override != "both":
                return override
            return None
        if seeker.preferred_gender and seeker.preferred_gender != "both":
            return seeker.preferred_gender
        return None

    def resolve_age_range(
        self,
        seeker: ProfileRecord,
        filters: DiscoveryFilters,
    ) -> tuple[int, int]:
        """Requested bounds, else the seeker's stored preferences.

        Requested bounds outside ``[MIN_AGE, MAX_AGE]`` are rejected.  Stored
        bounds outside it (the limits changed after they were saved) are
        clamped, like an over-ceiling stored radius.
        """
        for name in ("age_min", "age_max"):
            requested = getattr(filters, name)
            if requested is not None and not self.min_age <= requested <= self.max_age:
                raise InvalidFilter(
                    f"{name} must lie within [{self.min_age}, {self.max_age}], got {requested}.",
                    **{name: requested},
                )

        age_min = filters.age_min
        if age_min is None:
            age_min = self._stored_age(seeker, "age_min")
        age_max = filters.age_max
        if age_max is None:
            age_max = self._stored_age(seeker, "age_max")

        if age_min > age_max:
            if filters.age_min is None and filters.age_max is None:
                logger.warning(
                    "stored_age_range_inverted",
                    seeker_id=str(seeker.id),
                    age_min=age_min,
                    age_max=age_max,
                )
                return self.min_age, self.max_age
            raise InvalidFilter(
                f"age_min ({age_min}) must not exceed age_max ({age_max}).",
                age_min=age_min,
                age_max=age_max,
            )
        return age_min, age_max

    def _stored_age(self, seeker: ProfileRecord, name: str) -> int:
        stored = getattr(seeker, name)
        clamped = min(max(stored, self.min_age), self.max_age)
        if clamped != stored:
            logger.info(
                "stored_age_clamped",
                seeker_id=str(seeker.id),
                bound=name,
                stored=stored,
                applied=clamped,
            )
        return clamped

    def resolve_radius_km(self, seeker: ProfileRecord, filters: DiscoveryFilters) -> float:
        """Requested radius, else the seeker's preference, else the default.

        A requested radius above the ceiling is rejected.  A stored
        preference above it (the ceiling was lowered after it was saved) is
        capped, and the applied radius is reported back to the caller.
        """
        if filters.distance_km is not None:
            radius = filters.distance_km
            if not math.isfinite(radius) or radius <= 0:
                raise InvalidFilter(
                    f"Search radius must be a positive number of km, got {radius}.",
                    distance_km=radius,
                )
            if radius > self.max_radius_km:
                raise InvalidFilter(
                    f"Search radius {radius} km exceeds the {self.max_radius_km} km limit.",
                    distance_km=radius,
                )
            return radius

        stored = seeker.max_distance_km or self.default_radius_km
        if stored <= 0:
            return self.default_radius_km
        if stored > self.max_radius_km:
            logger.info(
                "stored_radius_capped",
                seeker_id=str(seeker.id),
                stored_km=stored,
                ceiling_km=self.max_radius_km,
            )
            return self.max_radius_km
        return stored

    @staticmethod
    def resolve_origin(seeker: ProfileRecord, filters: DiscoveryFilters) -> GeoPoint | None:
        """Override coordinates when given, else the seeker's stored position."""
        has_lat = filters.latitude is not None
        has_lng = filters.longitude is not None

        if has_lat != has_lng:
            raise InvalidFilter("Both latitude and longitude are required for a location override.")

        if has_lat and has_lng:
            if not is_valid_point(filters.longitude, filters.latitude):
                raise InvalidFilter(
                    "Coordinates out of range.",
                    latitude=filters.latitude,
                    longitude=filters.longitude,
                )
            return GeoPoint(longitude=filters.longitude, latitude=filters.latitude)

        return seeker.position
