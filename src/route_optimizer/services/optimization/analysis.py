"""Straight-line heuristics that flag routes worth optimizing."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Sequence

from ...models.domain import Waypoint
from ..geospatial import bearing_degrees, segments_cross, waypoint_distance_km

INEFFICIENCY_THRESHOLD = 1.5
MAX_REPORTED_SEGMENTS = 3


@dataclass(slots=True)
class InefficientSegment:
    start_index: int
    end_index: int
    inefficiency_ratio: float


@dataclass(slots=True)
class RouteAnalysis:
    has_backtracking: bool = False
    crossing_paths: bool = False
    inefficient_segments: List[InefficientSegment] = field(default_factory=list)
    overall_efficiency: float = 1.0


def _path_length_km(waypoints: Sequence[Waypoint]) -> float:
    return sum(waypoint_distance_km(waypoints[k], waypoints[k + 1]) for k in range(len(waypoints) - 1))


def route_efficiency(waypoints: Sequence[Waypoint]) -> float:
    """Direct start-to-end distance divided by the distance through every stop."""
    if len(waypoints) < 2:
        return 1.0
    route_distance = _path_length_km(waypoints)
    if route_distance == 0:
        return 1.0
    return waypoint_distance_km(waypoints[0], waypoints[-1]) / route_distance


def has_backtracking(waypoints: Sequence[Waypoint]) -> bool:
    for i in range(len(waypoints) - 2):
        current, following, after = waypoints[i], waypoints[i + 1], waypoints[i + 2]
        first = bearing_degrees(current.lat, current.lng, following.lat, following.lng)
        second = bearing_degrees(following.lat, following.lng, after.lat, after.lng)
        turn = abs(first - second)
        if not 120 < turn < 240:
            continue
        # Sharp turn: check whether it heads back towards somewhere already visited.
        for previous in waypoints[:i]:
            if waypoint_distance_km(after, previous) < waypoint_distance_km(current, previous) * 0.8:
                return True
    return False


def has_crossing_paths(waypoints: Sequence[Waypoint]) -> bool:
    for i in range(len(waypoints) - 3):
        for j in range(i + 2, len(waypoints) - 1):
            if segments_cross(waypoints[i], waypoints[i + 1], waypoints[j], waypoints[j + 1]):
                return True
    return False


def find_inefficient_segments(waypoints: Sequence[Waypoint]) -> list[InefficientSegment]:
    segments: list[InefficientSegment] = []
    for i in range(len(waypoints) - 2):
        for j in range(i + 2, len(waypoints)):
            direct = waypoint_distance_km(waypoints[i], waypoints[j])
            if direct == 0:
                continue
            ratio = _path_length_km(waypoints[i : j + 1]) / direct
            if ratio > INEFFICIENCY_THRESHOLD:
                segments.append(InefficientSegment(start_index=i, end_index=j, inefficiency_ratio=ratio))
    segments.sort(key=lambda segment: segment.inefficiency_ratio, reverse=True)
    return segments[:MAX_REPORTED_SEGMENTS]


def analyze_route(waypoints: Sequence[Waypoint]) -> RouteAnalysis:
    if len(waypoints) < 3:
        return RouteAnalysis()
    return RouteAnalysis(
        has_backtracking=has_backtracking(waypoints),
        crossing_paths=has_crossing_paths(waypoints),
        inefficient_segments=find_inefficient_segments(waypoints),
        overall_efficiency=route_efficiency(waypoints),
    )
