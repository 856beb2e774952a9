"""Shared pytest fixtures for NearMatch tests."""
import os

# The engine is built at import time; point it at a throwaway database.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("STORE_BACKEND", "memory")

import uuid
from datetime import date, datetime, timedelta, timezone

import pytest

from nearmatch.config import Settings
from nearmatch.store.memory import InMemoryProfileStore
from nearmatch.store.records import ProfileRecord
from nearmatch.utils.dates import shift_years
from nearmatch.utils.geo import EARTH_RADIUS_M, GeoPoint

# Kathmandu, the default seed location.
KATHMANDU = GeoPoint(longitude=85.3240, latitude=27.7172)
NOW = datetime(2026, 6, 15, 12, 0, tzinfo=timezone.utc)

KM_PER_DEGREE_LAT = EARTH_RADIUS_M * 3.141592653589793 / 180.0 / 1000.0


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


def north_of(origin: GeoPoint, km: float) -> GeoPoint:
    """A point ``km`` due north of ``origin`` (exact on a sphere)."""
    return GeoPoint(origin.longitude, origin.latitude + km / KM_PER_DEGREE_LAT)


def born_years_ago(years: int, today: date | None = None) -> date:
    return shift_years(today or NOW.date(), -years)


def make_profile(**overrides) -> ProfileRecord:
    fields = {
        "id": uuid.uuid4(),
        "display_name": "Test Profile",
        "gender": "female",
        "date_of_birth": born_years_ago(25),
        "photos": ("https://cdn.example.com/p/1.jpg",),
        "position": KATHMANDU,
        "preferred_gender": "both",
        "age_min": 18,
        "age_max": 50,
        "max_distance_km": 50.0,
        "onboarding_complete": True,
        "last_active": NOW - timedelta(hours=1),
    }
    fields.update(overrides)
    return ProfileRecord(**fields)


@pytest.fixture
def settings():
    return Settings(
        DATABASE_URL="sqlite+aiosqlite:///:memory:",
        STORE_BACKEND="memory",
    )


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def store():
    return InMemoryProfileStore()


@pytest.fixture
def seeker(store):
    """Male seeker in Kathmandu looking for women aged 20-35 within 50 km."""
    profile = make_profile(
        display_name="Seeker",
        gender="male",
        date_of_birth=born_years_ago(30),
        preferred_gender="female",
        age_min=20,
        age_max=35,
    )
    store.add_profile(profile)
    return profile
