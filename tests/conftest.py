"""Shared test doubles for the routing backend."""

from __future__ import annotations

import asyncio

import pytest

from src.route_optimizer.models.domain import Waypoint, WaypointType
from src.route_optimizer.services.geospatial import waypoint_distance_km
from src.route_optimizer.services.routing.client import RoutingBackendError


class HaversineCalculator:
    """Answers every route request with the great-circle length, driven at 60 km/h."""

    def __init__(self, delay: float = 0.0) -> None:
        self.calls = 0
        self.in_flight = 0
        self.max_in_flight = 0
        self.delay = delay

    async def calculate_route(self, waypoints, vehicle_profile=None):
        self.calls += 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            distance_km = sum(
                waypoint_distance_km(waypoints[i], waypoints[i + 1]) for i in range(len(waypoints) - 1)
            )
            return {"routes": [{"summary": {"distance_meters": distance_km * 1000, "duration_seconds": distance_km * 60}}]}
        finally:
            self.in_flight -= 1


class FailingCalculator:
    def __init__(self) -> None:
        self.calls = 0

    async def calculate_route(self, waypoints, vehicle_profile=None):
        self.calls += 1
        raise RoutingBackendError("routing service unavailable")


class EmptyCalculator:
    async def calculate_route(self, waypoints, vehicle_profile=None):
        return {"routes": []}


@pytest.fixture
def haversine_calculator() -> HaversineCalculator:
    return HaversineCalculator()


@pytest.fixture
def failing_calculator() -> FailingCalculator:
    return FailingCalculator()


@pytest.fixture
def empty_calculator() -> EmptyCalculator:
    return EmptyCalculator()


@pytest.fixture
def german_cities() -> dict[str, Waypoint]:
    return {
        "berlin": Waypoint(id="berlin", lat=52.52, lng=13.405, name="Berlin", type=WaypointType.START),
        "hamburg": Waypoint(id="hamburg", lat=53.55, lng=9.99, name="Hamburg"),
        "frankfurt": Waypoint(id="frankfurt", lat=50.11, lng=8.68, name="Frankfurt"),
        "munich": Waypoint(id="munich", lat=48.14, lng=11.58, name="Munich", type=WaypointType.END),
    }


@pytest.fixture
def zigzag_route(german_cities) -> list[Waypoint]:
    """Berlin -> Frankfurt -> Hamburg -> Munich: crosses the country twice."""
    return [german_cities["berlin"], german_cities["frankfurt"], german_cities["hamburg"], german_cities["munich"]]


@pytest.fixture
def slow_calculator() -> HaversineCalculator:
    return HaversineCalculator(delay=0.01)
