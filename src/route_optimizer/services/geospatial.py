"""Geospatial helper functions."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, TypedDict

from shapely.geometry import LineString, Point, box

if TYPE_CHECKING:
    from ..models.domain import Waypoint

EARTH_RADIUS_KM = 6371.0
KM_PER_DEGREE = 111.0


class Bounds(TypedDict):
    north: float
    south: float
    east: float
    west: float


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute distance between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def waypoint_distance_km(a: Waypoint, b: Waypoint) -> float:
    return haversine_km(a.lat, a.lng, b.lat, b.lng)


def bearing_degrees(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate the initial bearing from (lat1, lon1) to (lat2, lon2)."""

    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    delta_lambda = math.radians(lon2 - lon1)
    y = math.sin(delta_lambda) * math.cos(phi2)
    x = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(delta_lambda)
    bearing = math.degrees(math.atan2(y, x))
    return (bearing + 360) % 360


def segment_bounds(start: Waypoint, end: Waypoint, buffer_km: float) -> Bounds:
    """Bounding box around the straight segment between two waypoints, padded by ``buffer_km``."""

    buffer_degrees = buffer_km / KM_PER_DEGREE
    return Bounds(
        north=max(start.lat, end.lat) + buffer_degrees,
        south=min(start.lat, end.lat) - buffer_degrees,
        east=max(start.lng, end.lng) + buffer_degrees,
        west=min(start.lng, end.lng) - buffer_degrees,
    )


def bounds_around(center: Waypoint, radius_km: float) -> Bounds:
    """Approximate square box of ``radius_km`` around a waypoint."""

    lat_delta = radius_km / KM_PER_DEGREE
    # Longitude degrees shrink towards the poles.
    lng_delta = radius_km / (KM_PER_DEGREE * max(math.cos(math.radians(center.lat)), 1e-6))
    return Bounds(
        north=center.lat + lat_delta,
        south=center.lat - lat_delta,
        east=center.lng + lng_delta,
        west=center.lng - lng_delta,
    )


def point_in_bounds(lat: float, lng: float, bounds: Bounds) -> bool:
    """Return True if the point lies inside (or on the edge of) the bounding box."""

    area = box(bounds["west"], bounds["south"], bounds["east"], bounds["north"])
    return area.intersects(Point(lng, lat))


def segments_cross(a_start: Waypoint, a_end: Waypoint, b_start: Waypoint, b_end: Waypoint) -> bool:
    """Return True if the two legs cross each other in the lng/lat plane."""

    first = LineString([(a_start.lng, a_start.lat), (a_end.lng, a_end.lat)])
    second = LineString([(b_start.lng, b_start.lat), (b_end.lng, b_end.lat)])
    return first.crosses(second)
