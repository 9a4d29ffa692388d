"""Route optimization request/response schemas."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from ..models.domain import Objective, VehicleProfile, VehicleType, Waypoint, WaypointType
from ..services.optimization.models import (
    CampsitePreferences,
    OptimizationCriteria,
    TimeConstraints,
)


class WaypointModel(BaseModel):
    id: str = Field(..., min_length=1)
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    name: str = ""
    type: WaypointType = WaypointType.WAYPOINT

    def to_domain(self) -> Waypoint:
        return Waypoint(id=self.id, lat=self.lat, lng=self.lng, name=self.name, type=self.type)


class VehicleProfileModel(BaseModel):
    type: VehicleType
    height: float = Field(..., gt=0, le=4.5, description="Metres.")
    width: float = Field(..., gt=0, le=3.0, description="Metres.")
    length: float = Field(..., gt=0, le=20.0, description="Metres.")
    weight: float = Field(..., gt=0, le=40.0, description="Tonnes.")

    def to_domain(self) -> VehicleProfile:
        return VehicleProfile(
            type=self.type,
            height=self.height,
            width=self.width,
            length=self.length,
            weight=self.weight,
        )


class TimeConstraintsModel(BaseModel):
    max_driving_hours: float = Field(..., gt=0, le=24)
    preferred_start_hour: int = Field(..., ge=0, le=23)
    avoid_night_driving: bool = False


class CampsitePreferencesModel(BaseModel):
    max_distance_between_stops_km: float = Field(..., gt=0)
    preferred_stop_duration_hours: float = Field(..., ge=0)
    require_campsite_overnight: bool = False


class OptimizationCriteriaModel(BaseModel):
    objective: Objective = Objective.BALANCED
    vehicle_profile: Optional[VehicleProfileModel] = None
    time_constraints: Optional[TimeConstraintsModel] = None
    campsite_preferences: Optional[CampsitePreferencesModel] = None
    locked_waypoints: List[str] = Field(
        default_factory=list,
        description="Waypoint IDs that must keep their position in the route.",
    )

    def to_criteria(self) -> OptimizationCriteria:
        return OptimizationCriteria(
            objective=self.objective,
            vehicle_profile=self.vehicle_profile.to_domain() if self.vehicle_profile else None,
            time_constraints=TimeConstraints(**self.time_constraints.model_dump()) if self.time_constraints else None,
            campsite_preferences=CampsitePreferences(**self.campsite_preferences.model_dump())
            if self.campsite_preferences
            else None,
            locked_waypoints=list(self.locked_waypoints),
        )


class OptimizeRouteRequest(BaseModel):
    waypoints: List[WaypointModel]
    criteria: OptimizationCriteriaModel = Field(default_factory=OptimizationCriteriaModel)


class InsertionRequest(BaseModel):
    existing_waypoints: List[WaypointModel] = Field(default_factory=list)
    new_waypoint: WaypointModel
    criteria: OptimizationCriteriaModel = Field(default_factory=OptimizationCriteriaModel)


class AnalyzeRouteRequest(BaseModel):
    waypoints: List[WaypointModel]


class RouteSummaryModel(BaseModel):
    waypoints: List[WaypointModel]
    total_distance: float
    total_time: float
    estimated_cost: Optional[float] = None


class OptimizedRouteSummaryModel(RouteSummaryModel):
    reordering_applied: bool


class ImprovementsModel(BaseModel):
    distance_saved: float
    time_saved: float
    cost_saved: Optional[float] = None
    percentage_improvement: float


class OptimizationMetadataModel(BaseModel):
    algorithm: str
    iterations: int
    execution_time_ms: float
    convergence_reached: bool


class OptimizationResponse(BaseModel):
    original_route: RouteSummaryModel
    optimized_route: OptimizedRouteSummaryModel
    improvements: ImprovementsModel
    optimization_metadata: OptimizationMetadataModel
    summary: str
    visualization: dict = Field(default_factory=dict)


class InsertionOptionModel(BaseModel):
    position: int
    distance_added: float
    time_added: float
    efficiency: float


class RouteImpactModel(BaseModel):
    distance_added: float
    time_added: float
    efficiency: float


class InsertionResponse(BaseModel):
    suggested_position: int
    route_impact: RouteImpactModel
    alternatives: List[InsertionOptionModel]


class InefficientSegmentModel(BaseModel):
    start_index: int
    end_index: int
    inefficiency_ratio: float


class RouteAnalysisResponse(BaseModel):
    has_backtracking: bool
    crossing_paths: bool
    inefficient_segments: List[InefficientSegmentModel]
    overall_efficiency: float
