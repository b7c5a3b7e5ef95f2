"""
Geodesic helpers for proximity filtering.

The store narrows candidates with an indexed bounding box; exact great-circle
distances are computed here on the candidates.
"""

import math
from typing import NamedTuple, Optional

EARTH_RADIUS_METERS = 6371008.8
METERS_PER_KILOMETER = 1000.0

MIN_LONGITUDE, MAX_LONGITUDE = -180.0, 180.0
MIN_LATITUDE, MAX_LATITUDE = -90.0, 90.0


class BoundingBox(NamedTuple):
    """Latitude/longitude window; min_lng > max_lng when it crosses the antimeridian."""

    min_lat: float
    max_lat: float
    min_lng: float
    max_lng: float

    @property
    def crosses_antimeridian(self) -> bool:
        return self.min_lng > self.max_lng


def km_to_meters(radius_km: float) -> float:
    return radius_km * METERS_PER_KILOMETER


def is_valid_longitude(value: object) -> bool:
    return _is_number(value) and MIN_LONGITUDE <= value <= MAX_LONGITUDE


def is_valid_latitude(value: object) -> bool:
    return _is_number(value) and MIN_LATITUDE <= value <= MAX_LATITUDE


def _is_number(value: object) -> bool:
    # bool is an int subclass; true/false are not coordinates
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def haversine_meters(lng1: float, lat1: float, lng2: float, lat2: float) -> float:
    """Great-circle distance between two points, in meters."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)
    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    return 2 * EARTH_RADIUS_METERS * math.asin(min(1.0, math.sqrt(a)))


def bounding_box(lng: float, lat: float, radius_meters: float) -> BoundingBox:
    """
    Smallest latitude/longitude window containing every point within the radius.

    Near the poles, or when the radius covers half the globe, the full
    longitude range is returned.
    """
    angular = radius_meters / EARTH_RADIUS_METERS
    lat_rad = math.radians(lat)
    min_lat = lat_rad - angular
    max_lat = lat_rad + angular

    if min_lat <= -math.pi / 2 or max_lat >= math.pi / 2 or angular >= math.pi:
        return BoundingBox(
            max(math.degrees(min_lat), MIN_LATITUDE),
            min(math.degrees(max_lat), MAX_LATITUDE),
            MIN_LONGITUDE,
            MAX_LONGITUDE,
        )

    delta_lng = math.degrees(math.asin(min(1.0, math.sin(angular) / math.cos(lat_rad))))
    min_lng = lng - delta_lng
    max_lng = lng + delta_lng
    if min_lng < MIN_LONGITUDE:
        min_lng += 360.0
    if max_lng > MAX_LONGITUDE:
        max_lng -= 360.0
    return BoundingBox(math.degrees(min_lat), math.degrees(max_lat), min_lng, max_lng)


def within_radius(
    lng: float, lat: float, center_lng: float, center_lat: float, radius_meters: float
) -> Optional[float]:
    """Return the distance in meters when the point lies inside the radius, else None."""
    distance = haversine_meters(center_lng, center_lat, lng, lat)
    if distance <= radius_meters:
        return distance
    return None
