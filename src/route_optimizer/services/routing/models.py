"""Routing domain models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(slots=True)
class SegmentCost:
    distance_km: float
    duration_min: float
    cost: float
    estimated: bool = False


@dataclass(slots=True)
class RouteMetrics:
    distance_km: float
    duration_min: float
    cost: Optional[float] = None
