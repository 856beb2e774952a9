"""Great-circle geometry on a spherical Earth."""

from __future__ import annotations

import math
from typing import NamedTuple

# Mean Earth radius (IUGG), metres.
EARTH_RADIUS_M = 6_371_008.8


class GeoPoint(NamedTuple):
    """A WGS84 position.  Field order follows GeoJSON: longitude first."""

    longitude: float
    latitude: float


class BoundingBox(NamedTuple):
    min_lat: float
    max_lat: float
    min_lng: float
    max_lng: float
    wraps_antimeridian: bool = False


def haversine_m(a: GeoPoint, b: GeoPoint) -> float:
    """Return the great-circle distance in metres between two points."""
    phi1 = math.radians(a.latitude)
    phi2 = math.radians(b.latitude)
    dphi = math.radians(b.latitude - a.latitude)
    dlambda = math.radians(b.longitude - a.longitude)

    h = (
        math.sin(dphi / 2.0) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2.0) ** 2
    )
    # Clamp against floating error for antipodal points.
    h = min(1.0, max(0.0, h))
    return 2.0 * EARTH_RADIUS_M * math.asin(math.sqrt(h))


def bounding_box(center: GeoPoint, radius_m: float) -> BoundingBox:
    """Return a lat/lng box that fully contains the circle around ``center``.

    Used as a cheap index-friendly prefilter; callers still apply the exact
    haversine distance.  Near the poles the box degenerates to the full
    longitude range.
    """
    angular = radius_m / EARTH_RADIUS_M
    lat = math.radians(center.latitude)
    min_lat = math.degrees(lat - angular)
    max_lat = math.degrees(lat + angular)

    if min_lat <= -90.0 or max_lat >= 90.0:
        return BoundingBox(max(min_lat, -90.0), min(max_lat, 90.0), -180.0, 180.0)

    dlng = math.degrees(math.asin(min(1.0, math.sin(angular) / math.cos(lat))))
    min_lng = center.longitude - dlng
    max_lng = center.longitude + dlng

    if min_lng < -180.0 or max_lng > 180.0:
        # The box crosses the antimeridian: callers match lng >= min OR lng <= max.
        return BoundingBox(
            min_lat,
            max_lat,
            min_lng + 360.0 if min_lng < -180.0 else min_lng,
            max_lng - 360.0 if max_lng > 180.0 else max_lng,
            wraps_antimeridian=True,
        )

    return BoundingBox(min_lat, max_lat, min_lng, max_lng)


def is_valid_point(longitude: float, latitude: float) -> bool:
    return -180.0 <= longitude <= 180.0 and -90.0 <= latitude <= 90.0
