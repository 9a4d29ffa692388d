"""Pairwise route cost lookups with a great-circle fallback."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Protocol, Sequence

from ...config import settings
from ...models.domain import VehicleProfile, Waypoint
from ..geospatial import waypoint_distance_km
from .client import RoutingBackendError, RoutingClient
from .costs import estimate_route_cost
from .models import RouteMetrics, SegmentCost

logger = logging.getLogger(__name__)


class RouteCalculator(Protocol):
    async def calculate_route(
        self,
        waypoints: Sequence[Waypoint],
        vehicle_profile: Optional[VehicleProfile] = None,
    ) -> dict: ...


def fallback_segment_cost(a: Waypoint, b: Waypoint, vehicle_profile: Optional[VehicleProfile] = None) -> SegmentCost:
    """Straight-line estimate used whenever the routing service gives no answer."""
    distance_km = waypoint_distance_km(a, b)
    return SegmentCost(
        distance_km=distance_km,
        duration_min=distance_km * settings.fallback_minutes_per_km,
        cost=estimate_route_cost(distance_km, vehicle_profile),
        estimated=True,
    )


def _parse_first_route(response: dict) -> tuple[float, float] | None:
    routes = response.get("routes") or []
    if not routes:
        return None
    summary = routes[0]["summary"]
    return float(summary["distance_meters"]) / 1000.0, float(summary["duration_seconds"]) / 60.0


class SegmentCostProvider:
    """Looks up driving distance/duration between two waypoints.

    Lookups never raise: a failed or empty routing response is replaced by the
    haversine estimate and counted in ``failure_count``. Nothing is cached here.
    """

    def __init__(self, calculator: RouteCalculator | None = None, retries: int | None = None) -> None:
        self.calculator = calculator if calculator is not None else RoutingClient()
        self.retries = retries if retries is not None else settings.segment_retries
        self.failure_count = 0

    async def get_segment_cost(
        self,
        a: Waypoint,
        b: Waypoint,
        vehicle_profile: Optional[VehicleProfile] = None,
    ) -> SegmentCost:
        last_error: Exception | None = None
        for _ in range(self.retries + 1):
            try:
                response = await self.calculator.calculate_route([a, b], vehicle_profile)
                parsed = _parse_first_route(response)
            except Exception as exc:
                last_error = exc
                continue
            if parsed is None:
                last_error = RoutingBackendError("no route found")
                continue
            distance_km, duration_min = parsed
            return SegmentCost(
                distance_km=distance_km,
                duration_min=duration_min,
                cost=estimate_route_cost(distance_km, vehicle_profile),
            )

        self.failure_count += 1
        logger.warning(f"Segment lookup {a.id} -> {b.id} failed ({last_error}); using straight-line estimate")
        return fallback_segment_cost(a, b, vehicle_profile)

    async def get_route_metrics(
        self,
        waypoints: Sequence[Waypoint],
        vehicle_profile: Optional[VehicleProfile] = None,
    ) -> RouteMetrics:
        """Total distance/duration/cost of visiting ``waypoints`` in order."""
        if len(waypoints) < 2:
            return RouteMetrics(distance_km=0.0, duration_min=0.0, cost=0.0)

        legs = await asyncio.gather(
            *(
                self.get_segment_cost(waypoints[index], waypoints[index + 1], vehicle_profile)
                for index in range(len(waypoints) - 1)
            )
        )
        return RouteMetrics(
            distance_km=sum(leg.distance_km for leg in legs),
            duration_min=sum(leg.duration_min for leg in legs),
            cost=sum(leg.cost for leg in legs),
        )
