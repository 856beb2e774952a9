"""Seed an admin, a test seeker and a handful of nearby profiles.

Usage: python -m scripts.seed_profiles [--extra 50]
"""
import argparse
import asyncio
import random
import sys
from datetime import date
sys.path.insert(0, ".")

from sqlalchemy import func, select
from nearmatch.database import async_session_factory, engine
from nearmatch.models import Profile
from nearmatch.utils.clock import utcnow


KATHMANDU = (85.3240, 27.7172)  # (longitude, latitude)

BASE_PROFILES = [
    {
        "display_name": "Admin User",
        "role": "admin",
        "gender": "other",
        "longitude": KATHMANDU[0],
        "latitude": KATHMANDU[1],
        "age_min": 18,
        "age_max": 50,
        "max_distance_km": 100,
        "preferred_gender": "both",
    },
    {
        "display_name": "Test User",
        "gender": "male",
        "date_of_birth": date(1995, 5, 15),
        "longitude": KATHMANDU[0],
        "latitude": KATHMANDU[1],
        "age_min": 20,
        "age_max": 35,
        "max_distance_km": 50,
        "preferred_gender": "female",
    },
    {"display_name": "Sarah Johnson", "gender": "female", "date_of_birth": date(1998, 3, 22)},
    {"display_name": "Mike Chen", "gender": "male", "date_of_birth": date(1996, 11, 8)},
    {"display_name": "Emma Wilson", "gender": "female", "date_of_birth": date(1999, 7, 14)},
]


def _jitter(spread: float = 0.1) -> tuple[float, float]:
    """A point within roughly +/- 5 km of central Kathmandu."""
    return (
        KATHMANDU[0] + (random.random() - 0.5) * spread,
        KATHMANDU[1] + (random.random() - 0.5) * spread,
    )


def _sample_profile(data: dict) -> dict:
    longitude, latitude = _jitter()
    profile = {
        "role": "user",
        "longitude": longitude,
        "latitude": latitude,
        "age_min": 20,
        "age_max": 40,
        "max_distance_km": 50,
        "preferred_gender": "both",
    }
    profile.update(data)
    profile["onboarding_complete"] = profile.get("date_of_birth") is not None
    profile["last_active"] = utcnow()
    profile["photos"] = []
    return profile


def _synthetic(index: int) -> dict:
    year = random.randint(1975, 2004)
    return {
        "display_name": f"Synthetic {index}",
        "gender": random.choice(["female", "male", "non-binary"]),
        "date_of_birth": date(year, random.randint(1, 12), random.randint(1, 28)),
        "preferred_gender": random.choice(["female", "male", "both"]),
    }


async def seed(extra: int) -> None:
    records = [_sample_profile(p) for p in BASE_PROFILES]
    records += [_sample_profile(_synthetic(i)) for i in range(extra)]

    async with async_session_factory() as session:
        for data in records:
            existing = await session.execute(
                select(Profile).where(Profile.display_name == data["display_name"])
            )
            if existing.scalar_one_or_none() is None:
                session.add(Profile(**data))
                print(f"  Seeded profile {data['display_name']} ({data['role']})")
            else:
                print(f"  Profile {data['display_name']} already exists, skipping.")
        await session.commit()

        total = await session.execute(select(func.count()).select_from(Profile))
        admins = await session.execute(
            select(func.count()).select_from(Profile).where(Profile.role == "admin")
        )
        print(f"\nProfiles: {total.scalar()} total, {admins.scalar()} admin")

    await engine.dispose()
    print("Done seeding profiles.")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed NearMatch profiles")
    parser.add_argument("--extra", type=int, default=0, help="Synthetic profiles to add")
    args = parser.parse_args()
    asyncio.run(seed(args.extra))
