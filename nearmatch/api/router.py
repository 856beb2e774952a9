"""
NearMatch — Main API Router

Aggregates all sub-routers under a single prefix so that ``nearmatch.main``
can mount the entire API surface with one ``include_router`` call.
"""

from fastapi import APIRouter

from nearmatch.api import boost, discovery, matches, swipes

router = APIRouter()

router.include_router(discovery.router, prefix="/discovery", tags=["Discovery"])
router.include_router(swipes.router, prefix="/swipes", tags=["Swipes"])
router.include_router(matches.router, prefix="/matches", tags=["Matches"])
router.include_router(boost.router, prefix="/boost", tags=["Boost"])
