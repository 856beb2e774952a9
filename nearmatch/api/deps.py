"""
NearMatch — FastAPI dependencies.

``get_store`` binds a ``SqlProfileStore`` to the request's session.  When
``STORE_BACKEND=memory`` the application overrides it with a shared
``InMemoryProfileStore`` (see ``nearmatch.main``); tests override it the same
way.
"""

from __future__ import annotations

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from nearmatch.database import get_db
from nearmatch.services.boost_service import BoostService
from nearmatch.services.discovery_service import DiscoveryService
from nearmatch.services.match_service import MatchService
from nearmatch.services.skip_tracker import SkipTracker
from nearmatch.services.swipe_service import SwipeService
from nearmatch.store.base import ProfileStore
from nearmatch.store.sql import SqlProfileStore


def get_store(db: AsyncSession = Depends(get_db)) -> ProfileStore:
    return SqlProfileStore(db)


def get_discovery_service(store: ProfileStore = Depends(get_store)) -> DiscoveryService:
    return DiscoveryService(store)


def get_swipe_service(store: ProfileStore = Depends(get_store)) -> SwipeService:
    return SwipeService(store)


def get_skip_tracker(store: ProfileStore = Depends(get_store)) -> SkipTracker:
    return SkipTracker(store)


def get_boost_service(store: ProfileStore = Depends(get_store)) -> BoostService:
    return BoostService(store)


def get_match_service(store: ProfileStore = Depends(get_store)) -> MatchService:
    return MatchService(store)
