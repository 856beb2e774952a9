"""
NearMatch — SQLAlchemy profile store.

Implements :class:`ProfileStore` over the async ORM session.  Candidate
lookup runs the eligibility predicate and an index-friendly bounding box in
SQL; the exact great-circle cut happens in the ranker.  Interaction appends
and match creation rely on ``INSERT ... ON CONFLICT DO NOTHING`` against
their unique constraints and commit immediately, so each write is visible to
concurrent requests before the caller performs its next read.

Connectivity failures surface as :class:`StoreUnavailable`.
"""

from __future__ import annotations

import functools
import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import and_, delete, exists, insert, or_, select, text, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession

from nearmatch.exceptions import StoreUnavailable
from nearmatch.models import Match, Profile, Swipe, TempSkip
from nearmatch.store.base import ProfileStore
from nearmatch.store.records import (
    SWIPE_ACTIONS,
    MatchRecord,
    ProfileRecord,
    TempSkipEntry,
)
from nearmatch.utils.clock import ensure_aware
from nearmatch.utils.geo import BoundingBox, GeoPoint, bounding_box

if TYPE_CHECKING:
    from nearmatch.services.candidate_filter import CandidateQuery

logger = structlog.get_logger("nearmatch.store.sql")

_TRANSIENT_ERRORS = (
    OperationalError,
    InterfaceError,
    PoolTimeoutError,
    ConnectionError,
    OSError,
)


def _translate_errors(func):
    """Re-raise connectivity failures as ``StoreUnavailable``."""

    @functools.wraps(func)
    async def wrapper(self: "SqlProfileStore", *args: Any, **kwargs: Any):
        try:
            return await func(self, *args, **kwargs)
        except _TRANSIENT_ERRORS as exc:
            logger.error(
                "sql_store_unavailable",
                operation=func.__name__,
                error=str(exc),
            )
            raise StoreUnavailable(
                f"Profile store unavailable during {func.__name__}",
                operation=func.__name__,
            ) from exc

    return wrapper


class SqlProfileStore(ProfileStore):
    """Profile store bound to one request-scoped ``AsyncSession``."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    # ── ProximityIndex ───────────────────────────────────────────────────

    @_translate_errors
    async def find_candidates(
        self,
        query: "CandidateQuery",
        origin: GeoPoint,
        radius_m: float,
    ) -> list[ProfileRecord]:
        stmt = select(Profile).where(
            *self._eligibility_clauses(query),
            *self._box_clauses(bounding_box(origin, radius_m)),
        )
        result = await self._session.execute(stmt)
        profiles = result.scalars().all()

        logger.debug(
            "sql_candidates_fetched",
            seeker_id=str(query.seeker_id),
            count=len(profiles),
        )
        return [_to_profile_record(p) for p in profiles]

    # ── ProfileStore ─────────────────────────────────────────────────────

    @_translate_errors
    async def get_profile(self, profile_id: uuid.UUID) -> ProfileRecord | None:
        result = await self._session.execute(
            select(Profile).where(Profile.id == profile_id)
        )
        profile = result.scalar_one_or_none()
        if profile is None:
            return None

        swipe_rows = await self._session.execute(
            select(Swipe.target_id, Swipe.action).where(Swipe.swiper_id == profile_id)
        )
        liked: set[uuid.UUID] = set()
        disliked: set[uuid.UUID] = set()
        for target_id, action in swipe_rows.all():
            (liked if action == "like" else disliked).add(target_id)

        skip_rows = await self._session.execute(
            select(TempSkip.target_id, TempSkip.skipped_at)
            .where(TempSkip.profile_id == profile_id)
            .order_by(TempSkip.skipped_at)
        )
        temp_skips = tuple(
            TempSkipEntry(target_id=target_id, skipped_at=ensure_aware(skipped_at))
            for target_id, skipped_at in skip_rows.all()
        )

        return _to_profile_record(
            profile,
            liked=frozenset(liked),
            disliked=frozenset(disliked),
            temp_skips=temp_skips,
        )

    @_translate_errors
    async def append_interaction(
        self,
        profile_id: uuid.UUID,
        target_id: uuid.UUID,
        action: str,
    ) -> bool:
        if action not in SWIPE_ACTIONS:
            raise ValueError(f"Unknown swipe action {action!r}")

        values = {
            "id": uuid.uuid4(),
            "swiper_id": profile_id,
            "target_id": target_id,
            "action": action,
        }
        inserted = await self._insert_ignoring_conflict(
            Swipe, values, conflict_columns=["swiper_id", "target_id"]
        )
        return inserted

    @_translate_errors
    async def has_liked(self, profile_id: uuid.UUID, target_id: uuid.UUID) -> bool:
        stmt = select(
            exists().where(
                Swipe.swiper_id == profile_id,
                Swipe.target_id == target_id,
                Swipe.action == "like",
            )
        )
        result = await self._session.execute(stmt)
        return bool(result.scalar())

    @_translate_errors
    async def append_temp_skip(
        self,
        profile_id: uuid.UUID,
        target_id: uuid.UUID,
        at: datetime,
    ) -> None:
        await self._session.execute(
            insert(TempSkip).values(
                id=uuid.uuid4(),
                profile_id=profile_id,
                target_id=target_id,
                skipped_at=at,
            )
        )
        await self._session.commit()

    @_translate_errors
    async def prune_temp_skips(self, profile_id: uuid.UUID, older_than: datetime) -> int:
        result = await self._session.execute(
            delete(TempSkip).where(
                TempSkip.profile_id == profile_id,
                TempSkip.skipped_at <= older_than,
            )
        )
        await self._session.commit()
        return result.rowcount or 0

    @_translate_errors
    async def create_match_if_absent(
        self,
        key: str,
        participants: tuple[uuid.UUID, uuid.UUID],
        at: datetime,
    ) -> MatchRecord:
        user_a, user_b = sorted(participants, key=str)
        created = await self._insert_ignoring_conflict(
            Match,
            {
                "id": uuid.uuid4(),
                "pair_key": key,
                "user_a_id": user_a,
                "user_b_id": user_b,
                "matched_at": at,
                "is_active": True,
            },
            conflict_columns=["pair_key"],
        )

        result = await self._session.execute(
            select(Match)
            .where(Match.pair_key == key)
            .execution_options(populate_existing=True)
        )
        match = result.scalar_one()

        logger.debug(
            "sql_match_upserted",
            match_id=str(match.id),
            created=created,
        )
        return _to_match_record(match)

    @_translate_errors
    async def set_boost_window(self, profile_id: uuid.UUID, until: datetime) -> bool:
        result = await self._session.execute(
            update(Profile)
            .where(Profile.id == profile_id)
            .values(boosted_until=until)
        )
        await self._session.commit()
        return (result.rowcount or 0) > 0

    @_translate_errors
    async def get_match(self, match_id: uuid.UUID) -> MatchRecord | None:
        result = await self._session.execute(
            select(Match)
            .where(Match.id == match_id)
            .execution_options(populate_existing=True)
        )
        match = result.scalar_one_or_none()
        return _to_match_record(match) if match is not None else None

    @_translate_errors
    async def list_matches(
        self,
        user_id: uuid.UUID,
        limit: int,
        offset: int,
    ) -> list[MatchRecord]:
        stmt = (
            select(Match)
            .where(
                or_(Match.user_a_id == user_id, Match.user_b_id == user_id),
                Match.is_active.is_(True),
            )
            .order_by(
                Match.last_message.desc().nulls_last(),
                Match.matched_at.desc(),
            )
            .limit(limit)
            .offset(offset)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return [_to_match_record(m) for m in result.scalars().all()]

    @_translate_errors
    async def deactivate_match(self, match_id: uuid.UUID) -> bool:
        result = await self._session.execute(
            update(Match).where(Match.id == match_id).values(is_active=False)
        )
        await self._session.commit()
        return (result.rowcount or 0) > 0

    @_translate_errors
    async def ping(self) -> None:
        await self._session.execute(text("SELECT 1"))

    # ── Query helpers ────────────────────────────────────────────────────

    @staticmethod
    def _eligibility_clauses(query: "CandidateQuery") -> list:
        """Translate a ``CandidateQuery`` into WHERE clauses.

        Interaction exclusions are expressed as NOT EXISTS subqueries
        against the seeker's logs instead of a literal id list, so heavy
        swipers do not blow the bind-parameter limit.
        """
        clauses = [
            Profile.id != query.seeker_id,
            Profile.is_banned.is_(False),
            Profile.role != "admin",
            Profile.onboarding_complete.is_(True),
            Profile.latitude.is_not(None),
            Profile.longitude.is_not(None),
            Profile.date_of_birth.is_not(None),
            Profile.date_of_birth >= query.earliest_birth,
            Profile.date_of_birth <= query.latest_birth,
            ~exists().where(
                Swipe.swiper_id == query.seeker_id,
                Swipe.target_id == Profile.id,
            ),
            ~exists().where(
                TempSkip.profile_id == query.seeker_id,
                TempSkip.target_id == Profile.id,
                TempSkip.skipped_at > query.skip_cutoff,
            ),
        ]
        if query.gender is not None:
            clauses.append(Profile.gender == query.gender)
        if query.active_since is not None:
            clauses.append(Profile.last_active >= query.active_since)
        return clauses

    @staticmethod
    def _box_clauses(box: BoundingBox) -> list:
        clauses = [Profile.latitude.between(box.min_lat, box.max_lat)]
        if box.wraps_antimeridian:
            clauses.append(
                or_(Profile.longitude >= box.min_lng, Profile.longitude <= box.max_lng)
            )
        else:
            clauses.append(
                and_(Profile.longitude >= box.min_lng, Profile.longitude <= box.max_lng)
            )
        return clauses

    async def _insert_ignoring_conflict(
        self,
        model: type,
        values: dict,
        conflict_columns: list[str],
    ) -> bool:
        """Insert one row unless it collides with ``conflict_columns``.

        Returns ``True`` when a row was written.  The transaction is
        committed either way.
        """
        dialect = self._session.get_bind().dialect.name

        if dialect in ("postgresql", "sqlite"):
            insert_fn = pg_insert if dialect == "postgresql" else sqlite_insert
            stmt = (
                insert_fn(model)
                .values(**values)
                .on_conflict_do_nothing(index_elements=conflict_columns)
            )
            result = await self._session.execute(stmt)
            await self._session.commit()
            return (result.rowcount or 0) > 0

        try:
            await self._session.execute(insert(model).values(**values))
            await self._session.commit()
        except IntegrityError:
            await self._session.rollback()
            return False
        return True


# ── Row → record conversion ──────────────────────────────────────────────────


def _to_profile_record(
    profile: Profile,
    liked: frozenset[uuid.UUID] = frozenset(),
    disliked: frozenset[uuid.UUID] = frozenset(),
    temp_skips: tuple[TempSkipEntry, ...] = (),
) -> ProfileRecord:
    position = None
    if profile.longitude is not None and profile.latitude is not None:
        position = GeoPoint(longitude=profile.longitude, latitude=profile.latitude)

    return ProfileRecord(
        id=profile.id,
        display_name=profile.display_name,
        gender=profile.gender,
        date_of_birth=profile.date_of_birth,
        photos=tuple(profile.photos or ()),
        position=position,
        preferred_gender=profile.preferred_gender,
        age_min=profile.age_min,
        age_max=profile.age_max,
        max_distance_km=profile.max_distance_km,
        role=profile.role,
        is_banned=profile.is_banned,
        onboarding_complete=profile.onboarding_complete,
        last_active=ensure_aware(profile.last_active),
        boosted_until=ensure_aware(profile.boosted_until),
        liked=liked,
        disliked=disliked,
        temp_skips=temp_skips,
    )


def _to_match_record(match: Match) -> MatchRecord:
    return MatchRecord(
        id=match.id,
        user_a_id=match.user_a_id,
        user_b_id=match.user_b_id,
        matched_at=ensure_aware(match.matched_at),
        last_message=ensure_aware(match.last_message),
        is_active=match.is_active,
    )
