"""Route optimization orchestration service."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Iterable, Sequence

from ...models.domain import Objective, Waypoint
from ..routing.models import RouteMetrics
from ..routing.provider import SegmentCostProvider
from .matrix import DistanceMatrixBuilder
from .models import (
    Improvements,
    InsertionOption,
    InsertionResult,
    InvalidInputError,
    OptimizationCriteria,
    OptimizationMetadata,
    OptimizationResult,
    OptimizedRouteSummary,
    RouteImpact,
    RouteSummary,
)
from .solver import solve_tsp

MIN_WAYPOINTS = 3

# Detour size at which an insertion scores zero on that axis.
MAX_REASONABLE_DETOUR_KM = 50.0
MAX_REASONABLE_DETOUR_MIN = 60.0

ALGORITHM_NAMES = {
    Objective.SHORTEST: "Distance-TSP",
    Objective.FASTEST: "Time-TSP",
    Objective.BALANCED: "Balanced-TSP",
}

# (distance weight, time weight) for insertion efficiency.
INSERTION_WEIGHTS = {
    Objective.SHORTEST: (0.8, 0.2),
    Objective.FASTEST: (0.2, 0.8),
    Objective.BALANCED: (0.5, 0.5),
}

logger = logging.getLogger(__name__)


def _validate_waypoints(waypoints: Sequence[Waypoint]) -> None:
    if len(waypoints) < MIN_WAYPOINTS:
        raise InvalidInputError(f"Route optimization requires at least {MIN_WAYPOINTS} waypoints")
    seen: set[str] = set()
    for waypoint in waypoints:
        if waypoint.id in seen:
            raise InvalidInputError(f"Duplicate waypoint id '{waypoint.id}'")
        seen.add(waypoint.id)


def locked_positions(waypoints: Sequence[Waypoint], locked_ids: Iterable[str]) -> frozenset[int]:
    locked = set(locked_ids)
    return frozenset(index for index, waypoint in enumerate(waypoints) if waypoint.id in locked)


def reorder_waypoints(
    waypoints: Sequence[Waypoint],
    order: Sequence[int],
    locked_ids: Iterable[str] | None = None,
) -> list[Waypoint]:
    """Apply a solver order to ``waypoints``.

    Locked waypoints stay in their original slot. Every other slot is filled
    with the next unlocked waypoint in solver order.
    """
    locked = set(locked_ids or ())
    if not locked:
        return [waypoints[index] for index in order]

    solver_unlocked = iter(waypoints[index] for index in order if waypoints[index].id not in locked)
    return [waypoint if waypoint.id in locked else next(solver_unlocked) for waypoint in waypoints]


def calculate_improvements(original: RouteMetrics, optimized: RouteMetrics) -> Improvements:
    distance_saved = max(0.0, original.distance_km - optimized.distance_km)
    time_saved = max(0.0, original.duration_min - optimized.duration_min)
    cost_saved = None
    if original.cost is not None and optimized.cost is not None:
        cost_saved = max(0.0, original.cost - optimized.cost)
    percentage = distance_saved / original.distance_km * 100 if original.distance_km > 0 else 0.0
    return Improvements(
        distance_saved=distance_saved,
        time_saved=time_saved,
        percentage_improvement=percentage,
        cost_saved=cost_saved,
    )


def insertion_efficiency(distance_added: float, time_added: float, objective: Objective) -> float:
    distance_score = max(0.0, 1 - distance_added / MAX_REASONABLE_DETOUR_KM)
    time_score = max(0.0, 1 - time_added / MAX_REASONABLE_DETOUR_MIN)
    distance_weight, time_weight = INSERTION_WEIGHTS[objective]
    return distance_weight * distance_score + time_weight * time_score


class RouteOptimizationService:
    """Reorders trip waypoints and places new stops.

    Holds the distance-matrix cache for its lifetime, so one instance per
    planning session (or per process) keeps repeated runs cheap.
    """

    def __init__(
        self,
        provider: SegmentCostProvider | None = None,
        matrix_builder: DistanceMatrixBuilder | None = None,
    ) -> None:
        self.provider = provider if provider is not None else SegmentCostProvider()
        self.matrix_builder = matrix_builder if matrix_builder is not None else DistanceMatrixBuilder(self.provider)

    async def optimize_route(
        self,
        waypoints: Sequence[Waypoint],
        criteria: OptimizationCriteria,
        cancel_event: asyncio.Event | None = None,
    ) -> OptimizationResult:
        waypoints = list(waypoints)
        _validate_waypoints(waypoints)
        started = time.perf_counter()
        vehicle_profile = criteria.vehicle_profile

        original_metrics = await self.provider.get_route_metrics(waypoints, vehicle_profile)
        matrix = await self.matrix_builder.build(waypoints, vehicle_profile, cancel_event)
        solution = solve_tsp(
            matrix,
            criteria.objective,
            locked_positions(waypoints, criteria.locked_waypoints),
            cancel_event=cancel_event,
        )
        optimized_waypoints = reorder_waypoints(waypoints, solution.order, criteria.locked_waypoints)

        reordering_applied = [w.id for w in optimized_waypoints] != [w.id for w in waypoints]
        optimized_metrics = original_metrics
        if reordering_applied:
            optimized_metrics = await self.provider.get_route_metrics(optimized_waypoints, vehicle_profile)
            if optimized_metrics.distance_km > original_metrics.distance_km:
                logger.info(
                    f"Reordered route is longer ({optimized_metrics.distance_km:.1f} km vs "
                    f"{original_metrics.distance_km:.1f} km); keeping original order"
                )
                optimized_waypoints = list(waypoints)
                optimized_metrics = original_metrics
                reordering_applied = False

        improvements = calculate_improvements(original_metrics, optimized_metrics)
        execution_time_ms = (time.perf_counter() - started) * 1000

        logger.info(
            f"Optimized {len(waypoints)} waypoints ({criteria.objective.value}): "
            f"{solution.iterations} iterations, {improvements.distance_saved:.1f} km saved "
            f"in {execution_time_ms:.0f} ms"
        )

        return OptimizationResult(
            original_route=RouteSummary(
                waypoints=waypoints,
                total_distance=original_metrics.distance_km,
                total_time=original_metrics.duration_min,
                estimated_cost=original_metrics.cost,
            ),
            optimized_route=OptimizedRouteSummary(
                waypoints=optimized_waypoints,
                total_distance=optimized_metrics.distance_km,
                total_time=optimized_metrics.duration_min,
                estimated_cost=optimized_metrics.cost,
                reordering_applied=reordering_applied,
            ),
            improvements=improvements,
            optimization_metadata=OptimizationMetadata(
                algorithm=ALGORITHM_NAMES[criteria.objective],
                iterations=solution.iterations,
                execution_time_ms=execution_time_ms,
                convergence_reached=solution.converged,
            ),
        )

    async def find_optimal_insertion(
        self,
        existing_waypoints: Sequence[Waypoint],
        new_waypoint: Waypoint,
        criteria: OptimizationCriteria,
    ) -> InsertionResult:
        """Try ``new_waypoint`` at every position and rank the positions by efficiency."""
        if not existing_waypoints:
            return InsertionResult(
                suggested_position=0,
                route_impact=RouteImpact(distance_added=0.0, time_added=0.0, efficiency=1.0),
                alternatives=[],
            )

        vehicle_profile = criteria.vehicle_profile
        base_metrics = await self.provider.get_route_metrics(existing_waypoints, vehicle_profile)

        options: list[InsertionOption] = []
        for position in range(len(existing_waypoints) + 1):
            candidate = list(existing_waypoints)
            candidate.insert(position, new_waypoint)
            metrics = await self.provider.get_route_metrics(candidate, vehicle_profile)
            distance_added = metrics.distance_km - base_metrics.distance_km
            time_added = metrics.duration_min - base_metrics.duration_min
            options.append(
                InsertionOption(
                    position=position,
                    distance_added=distance_added,
                    time_added=time_added,
                    efficiency=insertion_efficiency(distance_added, time_added, criteria.objective),
                )
            )

        options.sort(key=lambda option: option.efficiency, reverse=True)
        best = options[0]
        return InsertionResult(
            suggested_position=best.position,
            route_impact=RouteImpact(
                distance_added=best.distance_added,
                time_added=best.time_added,
                efficiency=best.efficiency,
            ),
            alternatives=options[1:4],
        )

    def clear_cache(self) -> None:
        self.matrix_builder.clear()

    def cache_stats(self) -> dict:
        return self.matrix_builder.stats()
