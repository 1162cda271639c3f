"""Geospatial utilities used for distance calculations.

Distances across the service are expressed in kilometres. Storage layers
use `bounding_box` as a cheap pre-filter; the exact Haversine distance is
always computed here in application code.
"""

from __future__ import annotations

from dataclasses import dataclass
from math import atan2, cos, degrees, floor, radians, sin, sqrt

EARTH_RADIUS_KM = 6371.0
EARTH_RADIUS_METERS = EARTH_RADIUS_KM * 1000


@dataclass(frozen=True)
class BoundingBox:
    """Coarse lat/lng window. Longitude bounds are None when unbounded."""

    min_lat: float
    max_lat: float
    min_lng: float | None = None
    max_lng: float | None = None

    def contains(self, lat: float, lng: float) -> bool:
        if lat < self.min_lat or lat > self.max_lat:
            return False
        if self.min_lng is None or self.max_lng is None:
            return True
        return self.min_lng <= lng <= self.max_lng


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Calculate distance between two lat/lng points in kilometers.

    Args:
        lat1: Latitude of the first point.
        lng1: Longitude of the first point.
        lat2: Latitude of the second point.
        lng2: Longitude of the second point.

    Returns:
        Distance in kilometers. Symmetric in its arguments and 0.0 for
        identical points.

    Notes:
        Uses a spherical Earth (radius 6371 km), which is accurate to about
        0.5% for neighbourhood-level matching. Non-finite coordinates are
        not rejected here; NaN/inf propagate to the result.
    """

    lat1_rad = radians(lat1)
    lng1_rad = radians(lng1)
    lat2_rad = radians(lat2)
    lng2_rad = radians(lng2)

    delta_lat = lat2_rad - lat1_rad
    delta_lng = lng2_rad - lng1_rad

    a = sin(delta_lat / 2) ** 2 + cos(lat1_rad) * cos(lat2_rad) * sin(
        delta_lng / 2
    ) ** 2
    c = 2 * atan2(sqrt(a), sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def haversine_meters(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Calculate distance between two lat/lng points in meters."""

    return haversine_km(lat1, lng1, lat2, lng2) * 1000.0


def round_distance(distance_km: float) -> float:
    """Round a distance half-up to one decimal place for display."""

    return floor(distance_km * 10 + 0.5) / 10


def bounding_box(lat: float, lng: float, radius_km: float) -> BoundingBox:
    """Return a box that contains every point within radius_km of (lat, lng).

    The box is deliberately generous: it is only a pre-filter, and points
    inside it still go through the exact Haversine check.
    """

    delta_lat = degrees(radius_km / EARTH_RADIUS_KM)
    min_lat = max(lat - delta_lat, -90.0)
    max_lat = min(lat + delta_lat, 90.0)

    if min_lat <= -90.0 or max_lat >= 90.0:
        return BoundingBox(min_lat=min_lat, max_lat=max_lat)

    # Widest longitude spread occurs at the box edge closest to a pole.
    widest = max(abs(min_lat), abs(max_lat))
    delta_lng = degrees(radius_km / (EARTH_RADIUS_KM * cos(radians(widest))))
    min_lng = lng - delta_lng
    max_lng = lng + delta_lng
    if min_lng < -180.0 or max_lng > 180.0:
        return BoundingBox(min_lat=min_lat, max_lat=max_lat)

    return BoundingBox(
        min_lat=min_lat, max_lat=max_lat, min_lng=min_lng, max_lng=max_lng
    )
