"""Async HTTP client for an OSRM-compatible routing service."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Sequence

import httpx

from ...config import settings
from ...models.domain import VehicleProfile, Waypoint

MAX_WAYPOINTS_PER_REQUEST = 50

# Above any of these the heavy-goods profile is used.
HGV_HEIGHT_M = 2.5
HGV_WIDTH_M = 2.2
HGV_WEIGHT_T = 3.5
HGV_LENGTH_M = 7.0

logger = logging.getLogger(__name__)


class RoutingBackendError(RuntimeError):
    """The routing service could not produce a route."""


def determine_profile(vehicle_profile: Optional[VehicleProfile], default: str | None = None) -> str:
    if vehicle_profile is None:
        return default or settings.routing_profile
    if (
        vehicle_profile.height > HGV_HEIGHT_M
        or vehicle_profile.width > HGV_WIDTH_M
        or vehicle_profile.weight > HGV_WEIGHT_T
        or vehicle_profile.length > HGV_LENGTH_M
    ):
        return "driving-hgv"
    return default or settings.routing_profile


def validate_route_request(waypoints: Sequence[Waypoint]) -> None:
    if len(waypoints) < 2:
        raise ValueError("At least 2 waypoints are required for a route.")
    if len(waypoints) > MAX_WAYPOINTS_PER_REQUEST:
        raise ValueError(f"Maximum {MAX_WAYPOINTS_PER_REQUEST} waypoints allowed per route request.")
    for waypoint in waypoints:
        if not (-90 <= waypoint.lat <= 90) or not (-180 <= waypoint.lng <= 180):
            raise ValueError(f"Invalid coordinates: {waypoint.lat}, {waypoint.lng}")


class RoutingClient:
    def __init__(
        self,
        base_url: str | None = None,
        profile: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.routing_base_url or "").rstrip("/")
        if not self.base_url:
            raise ValueError("Routing base URL is not configured.")
        self.profile = profile
        self.timeout = timeout if timeout is not None else settings.routing_timeout_seconds
        self.max_retries = max_retries if max_retries is not None else settings.routing_max_retries
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.routing_backoff_seconds
        self._transport = transport

    def _get_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout, connect=5.0),
            transport=self._transport,
        )

    async def calculate_route(
        self,
        waypoints: Sequence[Waypoint],
        vehicle_profile: Optional[VehicleProfile] = None,
    ) -> dict:
        """Return ``{"routes": [{"summary": {"distance_meters", "duration_seconds"}}]}`` for the waypoints."""
        validate_route_request(waypoints)

        coordinate_str = ";".join(f"{waypoint.lng},{waypoint.lat}" for waypoint in waypoints)
        profile = determine_profile(vehicle_profile, self.profile)
        url = f"{self.base_url}/route/v1/{profile}/{coordinate_str}"
        params = {"overview": "false", "steps": "false", "alternatives": "false"}

        async with self._get_client() as client:
            attempt = 0
            while True:
                try:
                    response = await client.get(url, params=params)
                    response.raise_for_status()
                    data = response.json()
                    break
                except httpx.HTTPStatusError as exc:
                    # Client errors will not succeed on retry.
                    if exc.response.status_code < 500 or attempt >= self.max_retries:
                        raise RoutingBackendError(
                            f"Routing request failed with HTTP {exc.response.status_code}"
                        ) from exc
                except (httpx.TimeoutException, httpx.TransportError) as exc:
                    if attempt >= self.max_retries:
                        raise RoutingBackendError(
                            f"Routing service at {self.base_url} unreachable after {attempt + 1} attempts: {exc}"
                        ) from exc
                attempt += 1
                wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                logger.debug(f"Routing request failed, retrying in {wait_time:.1f}s (attempt {attempt}/{self.max_retries})")
                await asyncio.sleep(wait_time)

        if data.get("code") != "Ok":
            raise RoutingBackendError(f"Routing request failed: {data.get('message', data.get('code', 'unknown error'))}")

        return {
            "routes": [
                {
                    "summary": {
                        "distance_meters": float(route["distance"]),
                        "duration_seconds": float(route["duration"]),
                    }
                }
                for route in data.get("routes", [])
            ]
        }


async def check_health(base_url: str | None = None, transport: httpx.AsyncBaseTransport | None = None) -> bool:
    """Probe the routing service with a short two-point route (central Berlin)."""
    base = base_url or settings.routing_base_url
    if not base:
        return False
    probe = [
        Waypoint(id="probe-a", lat=52.517037, lng=13.388860),
        Waypoint(id="probe-b", lat=52.496891, lng=13.385983),
    ]
    client = RoutingClient(base_url=base, max_retries=0, timeout=5.0, transport=transport)
    try:
        result = await client.calculate_route(probe)
    except (RoutingBackendError, ValueError):
        return False
    return bool(result["routes"])
