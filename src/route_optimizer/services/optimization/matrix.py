"""Pairwise distance/duration/cost matrix construction with an LRU cache."""

from __future__ import annotations

import asyncio
import logging
from collections import OrderedDict
from typing import Optional, Sequence

import numpy as np

from ...config import settings
from ...models.domain import VehicleProfile, Waypoint
from ..routing.provider import SegmentCostProvider
from .models import DistanceMatrix, OptimizationCancelled

logger = logging.getLogger(__name__)


def matrix_cache_key(waypoints: Sequence[Waypoint], vehicle_profile: Optional[VehicleProfile] = None) -> str:
    """Content key: coordinates rounded to 4 decimals (~11 m) plus the vehicle signature."""
    waypoint_key = "|".join(f"{waypoint.lat:.4f},{waypoint.lng:.4f}" for waypoint in waypoints)
    vehicle_key = vehicle_profile.signature() if vehicle_profile is not None else "default"
    return f"{waypoint_key}::{vehicle_key}"


class DistanceMatrixBuilder:
    def __init__(
        self,
        provider: SegmentCostProvider,
        cache_size: int | None = None,
        max_concurrency: int | None = None,
    ) -> None:
        self.provider = provider
        self.cache_size = cache_size if cache_size is not None else settings.matrix_cache_size
        self.max_concurrency = max_concurrency or settings.max_concurrent_segment_requests
        self._cache: OrderedDict[str, DistanceMatrix] = OrderedDict()

    async def build(
        self,
        waypoints: Sequence[Waypoint],
        vehicle_profile: Optional[VehicleProfile] = None,
        cancel_event: asyncio.Event | None = None,
    ) -> DistanceMatrix:
        """Return the N x N matrix for ``waypoints``, reusing a cached one when the key matches."""
        cache_key = matrix_cache_key(waypoints, vehicle_profile)
        cached = self._cache.get(cache_key)
        if cached is not None:
            self._cache.move_to_end(cache_key)
            logger.debug(f"Distance matrix cache hit for {len(waypoints)} waypoints")
            return cached

        n = len(waypoints)
        distances = np.zeros((n, n), dtype=float)
        durations = np.zeros((n, n), dtype=float)
        costs = np.zeros((n, n), dtype=float)
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def fill(i: int, j: int) -> bool:
            async with semaphore:
                if cancel_event is not None and cancel_event.is_set():
                    raise OptimizationCancelled("Distance matrix construction was cancelled.")
                segment = await self.provider.get_segment_cost(waypoints[i], waypoints[j], vehicle_profile)
            distances[i, j] = segment.distance_km
            durations[i, j] = segment.duration_min
            costs[i, j] = segment.cost
            return segment.estimated

        # Road routes are not assumed symmetric, so both directions are requested.
        estimated = await asyncio.gather(*(fill(i, j) for i in range(n) for j in range(n) if i != j))

        matrix = DistanceMatrix(
            distances=distances,
            durations=durations,
            costs=costs,
            cache_key=cache_key,
            fallback_pairs=sum(estimated),
        )
        if matrix.fallback_pairs:
            logger.warning(
                f"Distance matrix for {n} waypoints used straight-line estimates for "
                f"{matrix.fallback_pairs}/{n * (n - 1)} pairs"
            )
        self._store(cache_key, matrix)
        return matrix

    def _store(self, cache_key: str, matrix: DistanceMatrix) -> None:
        self._cache[cache_key] = matrix
        self._cache.move_to_end(cache_key)
        if self.cache_size and len(self._cache) > self.cache_size:
            evicted, _ = self._cache.popitem(last=False)
            logger.debug(f"Evicted distance matrix {evicted[:40]}... from cache")

    def clear(self) -> None:
        self._cache.clear()

    def stats(self) -> dict:
        return {"size": len(self._cache), "keys": list(self._cache.keys())}
