"""Domain models for pickup stops, routes and opportunity cells."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


@dataclass(frozen=True, slots=True)
class Coordinate:
    """A (latitude, longitude) pair in decimal degrees."""

    latitude: float
    longitude: float

    def as_tuple(self) -> tuple[float, float]:
        return (self.latitude, self.longitude)

    def is_usable(self) -> bool:
        if not (math.isfinite(self.latitude) and math.isfinite(self.longitude)):
            return False
        return -90.0 <= self.latitude <= 90.0 and -180.0 <= self.longitude <= 180.0


@dataclass(slots=True)
class Stop:
    """A pending pickup to visit; metadata is passed through untouched."""

    stop_id: str
    location: Coordinate
    load_weight_kg: float = 0.0
    metadata: dict = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class RouteLeg:
    origin: Coordinate
    destination: Coordinate
    geometry: tuple[Coordinate, ...]
    distance_m: float
    duration_s: float
    ok: bool = True
    error: Optional[str] = None


@dataclass(slots=True)
class RoutePlan:
    stops: list[Stop]
    legs: list[RouteLeg]
    total_distance_m: float
    total_duration_s: float

    @property
    def degraded(self) -> bool:
        return any(not leg.ok for leg in self.legs)

    @property
    def failed_legs(self) -> list[int]:
        return [index for index, leg in enumerate(self.legs) if not leg.ok]

    def path(self) -> list[Coordinate]:
        """Concatenate leg geometries into a single drivable path."""
        points: list[Coordinate] = []
        for leg in self.legs:
            points.extend(leg.geometry)
        return points


@dataclass(slots=True)
class HistoricalPickup:
    """A completed pickup with collected weight per waste type (kg)."""

    pickup_id: str
    location: Coordinate
    weights_by_type: dict[str, float] = field(default_factory=dict)
    waste_bank_id: Optional[str] = None
    completed_at: Optional[datetime] = None

    @property
    def total_weight_kg(self) -> float:
        return sum(weight for weight in self.weights_by_type.values() if weight and weight > 0)


class PotentialTier(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"

    @property
    def rank(self) -> int:
        return {"HIGH": 3, "MEDIUM": 2, "LOW": 1}[self.value]


@dataclass(frozen=True, slots=True)
class ImpactTotals:
    carbon: float = 0.0
    water: float = 0.0
    landfill: float = 0.0
    trees: float = 0.0

    @classmethod
    def zero(cls) -> "ImpactTotals":
        return cls()

    def __add__(self, other: object) -> "ImpactTotals":
        if not isinstance(other, ImpactTotals):
            return NotImplemented
        return ImpactTotals(
            carbon=self.carbon + other.carbon,
            water=self.water + other.water,
            landfill=self.landfill + other.landfill,
            trees=self.trees + other.trees,
        )

    def __radd__(self, other: object) -> "ImpactTotals":
        # sum() starts from the integer 0
        if other == 0:
            return self
        return self.__add__(other)


@dataclass(slots=True)
class GridCell:
    index: tuple[int, int]
    center: Coordinate
    pickups: list[HistoricalPickup]
    total_weight_kg: float
    pickup_count: int
    density: float
    tier: PotentialTier
    impact: ImpactTotals = field(default_factory=ImpactTotals)
    existing_facilities: int = 0


@dataclass(slots=True)
class AreaImpact:
    """Environmental payoff of the pickups within a radius of a candidate site."""

    center: Coordinate
    radius_km: float
    pickup_count: int
    total_weight_kg: float
    density: float
    existing_facilities: int
    impact: ImpactTotals
    tier: PotentialTier
