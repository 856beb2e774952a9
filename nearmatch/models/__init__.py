"""
NearMatch — ORM model registry.

Importing every model here ensures that Alembic (and any other tool that
inspects ``Base.metadata``) discovers all tables automatically.
"""

from nearmatch.models.profile import Profile
from nearmatch.models.match import Match, Swipe, TempSkip

__all__ = [
    "Profile",
    "Match",
    "Swipe",
    "TempSkip",
]
