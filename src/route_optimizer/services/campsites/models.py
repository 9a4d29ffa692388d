"""Campsite-aware optimization models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from ...models.domain import Campsite, Waypoint
from ..optimization.models import OptimizationCriteria, OptimizationResult

DEFAULT_CAMPSITE_TYPES = ("campsite", "caravan_site", "aire")


@dataclass(slots=True)
class CampsiteRequirements:
    max_distance_from_route_km: float = 20.0
    required_amenities: List[str] = field(default_factory=list)
    preferred_types: List[str] = field(default_factory=list)
    vehicle_compatible_only: bool = True
    max_stops_per_day: int = 3
    preferred_stop_duration_hours: float = 12.0


@dataclass(slots=True)
class LongSegment:
    start_index: int
    end_index: int
    distance_km: float


@dataclass(slots=True)
class ScoredCampsite:
    campsite: Campsite
    suitability: float


@dataclass(slots=True)
class CampsiteSuggestion:
    campsite: Campsite
    insert_position: int
    distance_added: float
    time_added: float
    suitability_score: float


@dataclass(slots=True)
class CampsiteReplacement:
    original_waypoint: Waypoint
    new_campsite: Campsite
    improvement: float


@dataclass(slots=True)
class CampsiteIntegration:
    suggested_campsites: List[CampsiteSuggestion] = field(default_factory=list)
    replaced_waypoints: List[CampsiteReplacement] = field(default_factory=list)
    total_campsite_stops: int = 0


@dataclass(slots=True)
class CampsiteOptimizationRequest:
    waypoints: List[Waypoint]
    criteria: OptimizationCriteria
    requirements: Optional[CampsiteRequirements] = None
    suggest_campsites: bool = True
    replace_existing_campsites: bool = False


@dataclass(slots=True)
class CampsiteOptimizationResult:
    optimization: OptimizationResult
    campsite_integration: CampsiteIntegration
