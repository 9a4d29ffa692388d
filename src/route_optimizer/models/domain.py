"""Domain models for trip waypoints, vehicles and campsites."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Optional


class WaypointType(str, enum.Enum):
    START = "start"
    END = "end"
    WAYPOINT = "waypoint"
    CAMPSITE = "campsite"


class VehicleType(str, enum.Enum):
    MOTORHOME = "motorhome"
    CARAVAN = "caravan"
    CAMPERVAN = "campervan"
    CAR = "car"


class Objective(str, enum.Enum):
    SHORTEST = "shortest"
    FASTEST = "fastest"
    BALANCED = "balanced"


@dataclass(frozen=True, slots=True)
class Waypoint:
    """A stop on a trip. Treated as an immutable value by the optimizer."""

    id: str
    lat: float
    lng: float
    name: str = ""
    type: WaypointType = WaypointType.WAYPOINT


@dataclass(frozen=True, slots=True)
class VehicleProfile:
    """Physical vehicle attributes (metres and tonnes)."""

    type: VehicleType
    height: float
    width: float
    length: float
    weight: float

    def signature(self) -> str:
        return f"{self.type.value}-{self.height}-{self.weight}"


@dataclass(slots=True)
class CampsiteAccess:
    motorhome: bool = False
    caravan: bool = False
    tent: bool = False
    max_height: Optional[float] = None
    max_length: Optional[float] = None
    max_weight: Optional[float] = None


@dataclass(slots=True)
class Campsite:
    """A candidate overnight stop returned by a campsite search backend."""

    id: int
    name: str
    lat: float
    lng: float
    type: str = "campsite"
    amenities: dict[str, bool] = field(default_factory=dict)
    access: CampsiteAccess = field(default_factory=CampsiteAccess)
    contact: dict[str, str] = field(default_factory=dict)
    opening_hours: Optional[str] = None

    @property
    def is_vehicle_accessible(self) -> bool:
        return self.access.motorhome or self.access.caravan

    def to_waypoint(self) -> Waypoint:
        return Waypoint(
            id=f"campsite_{self.id}",
            lat=self.lat,
            lng=self.lng,
            name=self.name,
            type=WaypointType.CAMPSITE,
        )
