"""Campsite-aware route optimization.

Legs longer than a comfortable day of driving get an overnight stop proposed.
Candidates come from an external campsite search, are ranked by suitability
for the vehicle and the traveller's requirements, and the best one per leg is
placed with the optimizer's insertion search.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol, Sequence

from ...config import settings
from ...models.domain import Campsite, Objective, VehicleProfile, VehicleType, Waypoint, WaypointType
from ..geospatial import Bounds, bounds_around, point_in_bounds, segment_bounds, waypoint_distance_km
from ..optimization.models import OptimizationCriteria
from ..optimization.service import RouteOptimizationService
from .models import (
    DEFAULT_CAMPSITE_TYPES,
    CampsiteIntegration,
    CampsiteOptimizationRequest,
    CampsiteOptimizationResult,
    CampsiteReplacement,
    CampsiteRequirements,
    CampsiteSuggestion,
    LongSegment,
    ScoredCampsite,
)

CAMPSITE_ID_PREFIX = "campsite_"
BASE_SUITABILITY = 0.5
REPLACEMENT_MARGIN = 0.2
ALTERNATIVE_SEARCH_RADIUS_KM = 10.0
MAX_SEGMENT_CANDIDATES = 10
MAX_ALTERNATIVES = 5

logger = logging.getLogger(__name__)


class CampsiteSearch(Protocol):
    async def search_campsites(
        self,
        *,
        bounds: Bounds,
        types: Sequence[str],
        amenities: Sequence[str] | None = None,
        vehicle_filter: dict | None = None,
        max_results: int = 50,
    ) -> dict: ...


def is_campsite_waypoint(waypoint: Waypoint) -> bool:
    return waypoint.type is WaypointType.CAMPSITE or waypoint.id.startswith(CAMPSITE_ID_PREFIX)


def vehicle_filter_for(vehicle_profile: Optional[VehicleProfile]) -> dict | None:
    if vehicle_profile is None:
        return None
    return {
        "height": vehicle_profile.height,
        "length": vehicle_profile.length,
        "weight": vehicle_profile.weight,
        "motorhome": vehicle_profile.type is VehicleType.MOTORHOME,
        "caravan": vehicle_profile.type is VehicleType.CARAVAN,
    }


def campsite_suitability(
    campsite: Campsite,
    requirements: CampsiteRequirements,
    vehicle_profile: Optional[VehicleProfile] = None,
) -> float:
    """Score in [0, 1]; 0.5 is a campsite nothing is known about."""
    score = BASE_SUITABILITY

    if vehicle_profile is not None and requirements.vehicle_compatible_only:
        score += 0.3 if campsite.is_vehicle_accessible else -0.4

    if requirements.required_amenities:
        available = {name for name, present in campsite.amenities.items() if present}
        matching = [amenity for amenity in requirements.required_amenities if amenity in available]
        score += len(matching) / len(requirements.required_amenities) * 0.2

    if requirements.preferred_types and campsite.type in requirements.preferred_types:
        score += 0.1

    if campsite.contact.get("website") or campsite.contact.get("phone"):
        score += 0.05

    if campsite.opening_hours:
        score += 0.05

    return max(0.0, min(1.0, score))


def identify_long_segments(
    waypoints: Sequence[Waypoint],
    max_stops_per_day: int,
    max_daily_km: float | None = None,
) -> list[LongSegment]:
    """Legs that need an overnight stop.

    A leg qualifies when its straight-line length exceeds ``max_daily_km``, or
    when it is every ``max_stops_per_day``-th leg after the first.
    """
    threshold = max_daily_km if max_daily_km is not None else settings.max_daily_driving_km
    stops_per_day = max(1, max_stops_per_day)
    segments: list[LongSegment] = []
    for index in range(len(waypoints) - 1):
        distance = waypoint_distance_km(waypoints[index], waypoints[index + 1])
        if distance > threshold or (index > 0 and index % stops_per_day == 0):
            segments.append(LongSegment(start_index=index, end_index=index + 1, distance_km=distance))
    return segments


class CampsiteOptimizationService:
    def __init__(self, optimizer: RouteOptimizationService, campsite_search: CampsiteSearch) -> None:
        self.optimizer = optimizer
        self.campsite_search = campsite_search

    async def _search(
        self,
        bounds: Bounds,
        requirements: CampsiteRequirements,
        vehicle_profile: Optional[VehicleProfile],
        max_results: int,
    ) -> list[Campsite]:
        response = await self.campsite_search.search_campsites(
            bounds=bounds,
            types=list(requirements.preferred_types or DEFAULT_CAMPSITE_TYPES),
            amenities=list(requirements.required_amenities) or None,
            vehicle_filter=vehicle_filter_for(vehicle_profile),
            max_results=max_results,
        )
        return [
            campsite
            for campsite in response.get("campsites") or []
            if point_in_bounds(campsite.lat, campsite.lng, bounds)
        ]

    def _rank(
        self,
        campsites: Sequence[Campsite],
        requirements: CampsiteRequirements,
        vehicle_profile: Optional[VehicleProfile],
    ) -> list[ScoredCampsite]:
        scored = [
            ScoredCampsite(campsite=campsite, suitability=campsite_suitability(campsite, requirements, vehicle_profile))
            for campsite in campsites
        ]
        scored.sort(key=lambda item: item.suitability, reverse=True)
        return scored

    async def find_campsites_along_segment(
        self,
        start: Waypoint,
        end: Waypoint,
        requirements: CampsiteRequirements,
        vehicle_profile: Optional[VehicleProfile] = None,
    ) -> list[ScoredCampsite]:
        bounds = segment_bounds(start, end, requirements.max_distance_from_route_km)
        try:
            campsites = await self._search(bounds, requirements, vehicle_profile, max_results=50)
        except Exception as exc:
            logger.warning(f"Campsite search between {start.id} and {end.id} failed: {exc}")
            return []

        if requirements.vehicle_compatible_only and vehicle_profile is not None:
            campsites = [campsite for campsite in campsites if campsite.is_vehicle_accessible]

        return self._rank(campsites, requirements, vehicle_profile)[:MAX_SEGMENT_CANDIDATES]

    async def find_nearby_alternatives(
        self,
        waypoint: Waypoint,
        requirements: CampsiteRequirements,
        vehicle_profile: Optional[VehicleProfile] = None,
    ) -> list[ScoredCampsite]:
        bounds = bounds_around(waypoint, ALTERNATIVE_SEARCH_RADIUS_KM)
        try:
            campsites = await self._search(bounds, requirements, None, max_results=20)
        except Exception as exc:
            logger.warning(f"Campsite alternative search near {waypoint.id} failed: {exc}")
            return []

        campsites = [campsite for campsite in campsites if campsite.to_waypoint().id != waypoint.id]
        return self._rank(campsites, requirements, vehicle_profile)[:MAX_ALTERNATIVES]

    async def suggest_campsites(
        self,
        waypoints: Sequence[Waypoint],
        requirements: CampsiteRequirements,
        vehicle_profile: Optional[VehicleProfile] = None,
        max_daily_km: float | None = None,
    ) -> list[CampsiteSuggestion]:
        if len(waypoints) < 2:
            return []

        suggestions: list[CampsiteSuggestion] = []
        for segment in identify_long_segments(waypoints, requirements.max_stops_per_day, max_daily_km):
            candidates = await self.find_campsites_along_segment(
                waypoints[segment.start_index],
                waypoints[segment.end_index],
                requirements,
                vehicle_profile,
            )
            if not candidates:
                continue
            best = candidates[0]
            insertion = await self.optimizer.find_optimal_insertion(
                waypoints,
                best.campsite.to_waypoint(),
                OptimizationCriteria(objective=Objective.BALANCED, vehicle_profile=vehicle_profile),
            )
            suggestions.append(
                CampsiteSuggestion(
                    campsite=best.campsite,
                    insert_position=insertion.suggested_position,
                    distance_added=insertion.route_impact.distance_added,
                    time_added=insertion.route_impact.time_added,
                    suitability_score=best.suitability,
                )
            )

        suggestions.sort(key=lambda suggestion: suggestion.suitability_score, reverse=True)
        return suggestions

    async def replace_poor_campsites(
        self,
        waypoints: Sequence[Waypoint],
        requirements: CampsiteRequirements,
        vehicle_profile: Optional[VehicleProfile] = None,
    ) -> tuple[list[Waypoint], list[CampsiteReplacement]]:
        """Swap campsite stops for a nearby campsite that scores clearly better."""
        updated = list(waypoints)
        replacements: list[CampsiteReplacement] = []
        for index, waypoint in enumerate(waypoints):
            if not is_campsite_waypoint(waypoint):
                continue
            alternatives = await self.find_nearby_alternatives(waypoint, requirements, vehicle_profile)
            if not alternatives:
                continue
            best = alternatives[0]
            if best.suitability <= BASE_SUITABILITY + REPLACEMENT_MARGIN:
                continue
            replacement = best.campsite.to_waypoint()
            if any(existing.id == replacement.id for existing in updated):
                continue
            updated[index] = replacement
            replacements.append(
                CampsiteReplacement(
                    original_waypoint=waypoint,
                    new_campsite=best.campsite,
                    improvement=best.suitability - BASE_SUITABILITY,
                )
            )
        return updated, replacements

    async def optimize_with_campsites(self, request: CampsiteOptimizationRequest) -> CampsiteOptimizationResult:
        criteria = request.criteria
        vehicle_profile = criteria.vehicle_profile
        requirements = request.requirements or CampsiteRequirements()
        max_daily_km = None
        if criteria.campsite_preferences is not None:
            max_daily_km = criteria.campsite_preferences.max_distance_between_stops_km

        working = list(request.waypoints)
        replacements: list[CampsiteReplacement] = []
        if request.replace_existing_campsites:
            working, replacements = await self.replace_poor_campsites(working, requirements, vehicle_profile)

        suggestions: list[CampsiteSuggestion] = []
        if request.suggest_campsites:
            suggestions = await self.suggest_campsites(working, requirements, vehicle_profile, max_daily_km)

        optimization = await self.optimizer.optimize_route(working, criteria)

        return CampsiteOptimizationResult(
            optimization=optimization,
            campsite_integration=CampsiteIntegration(
                suggested_campsites=suggestions,
                replaced_waypoints=replacements,
                total_campsite_stops=sum(1 for waypoint in working if is_campsite_waypoint(waypoint)),
            ),
        )
