"""Optimization domain models and errors."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np

from ...models.domain import Objective, VehicleProfile, Waypoint


class InvalidInputError(ValueError):
    """The waypoint list cannot be optimized as given."""


class OptimizationCancelled(RuntimeError):
    """A cancellation event was set while an optimization was in progress."""


@dataclass(slots=True)
class DistanceMatrix:
    """Pairwise tables indexed by input waypoint order. Diagonal is zero."""

    distances: np.ndarray  # km
    durations: np.ndarray  # minutes
    costs: np.ndarray
    cache_key: str = ""
    fallback_pairs: int = 0

    @property
    def size(self) -> int:
        return int(self.distances.shape[0])


@dataclass(slots=True)
class SolverResult:
    order: List[int]
    iterations: int
    converged: bool


@dataclass(slots=True)
class TimeConstraints:
    """Driving-time preferences. Reported back to callers, not enforced by the solver."""

    max_driving_hours: float
    preferred_start_hour: int
    avoid_night_driving: bool = False


@dataclass(slots=True)
class CampsitePreferences:
    max_distance_between_stops_km: float
    preferred_stop_duration_hours: float
    require_campsite_overnight: bool = False


@dataclass(slots=True)
class OptimizationCriteria:
    objective: Objective = Objective.BALANCED
    vehicle_profile: Optional[VehicleProfile] = None
    time_constraints: Optional[TimeConstraints] = None
    campsite_preferences: Optional[CampsitePreferences] = None
    locked_waypoints: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.objective = Objective(self.objective)


@dataclass(slots=True)
class RouteSummary:
    waypoints: List[Waypoint]
    total_distance: float  # km
    total_time: float  # minutes
    estimated_cost: Optional[float] = None


@dataclass(slots=True)
class OptimizedRouteSummary(RouteSummary):
    reordering_applied: bool = False


@dataclass(slots=True)
class Improvements:
    distance_saved: float
    time_saved: float
    percentage_improvement: float
    cost_saved: Optional[float] = None


@dataclass(slots=True)
class OptimizationMetadata:
    algorithm: str
    iterations: int
    execution_time_ms: float
    convergence_reached: bool


@dataclass(slots=True)
class OptimizationResult:
    original_route: RouteSummary
    optimized_route: OptimizedRouteSummary
    improvements: Improvements
    optimization_metadata: OptimizationMetadata


@dataclass(slots=True)
class InsertionOption:
    position: int
    distance_added: float
    time_added: float
    efficiency: float


@dataclass(slots=True)
class RouteImpact:
    distance_added: float
    time_added: float
    efficiency: float


@dataclass(slots=True)
class InsertionResult:
    suggested_position: int
    route_impact: RouteImpact
    alternatives: List[InsertionOption]
