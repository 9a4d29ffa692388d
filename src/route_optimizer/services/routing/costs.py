"""Fuel and toll cost estimation for route segments."""

from __future__ import annotations

from typing import Optional

from ...config import settings
from ...models.domain import VehicleProfile, VehicleType

# Litres per 100 km.
DEFAULT_CONSUMPTION = 8.0
OTHER_VEHICLE_CONSUMPTION = 7.0


def fuel_consumption(vehicle_profile: Optional[VehicleProfile]) -> float:
    """Estimated consumption in L/100km for the given vehicle."""
    if vehicle_profile is None:
        return DEFAULT_CONSUMPTION
    weight = vehicle_profile.weight or 0.0
    if vehicle_profile.type is VehicleType.MOTORHOME:
        return 12.0 + weight * 0.5
    if vehicle_profile.type is VehicleType.CARAVAN:
        return 10.0 + weight * 0.3
    return OTHER_VEHICLE_CONSUMPTION


def estimate_route_cost(distance_km: float, vehicle_profile: Optional[VehicleProfile] = None) -> float:
    """Fuel cost plus a flat per-km toll estimate, in currency units."""
    fuel_cost = distance_km * fuel_consumption(vehicle_profile) / 100 * settings.fuel_price_per_litre
    toll_cost = distance_km * settings.toll_cost_per_km
    return fuel_cost + toll_cost
