"""Routing service contract types."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Protocol

from ...models.domain import Coordinate


class RoutingServiceError(RuntimeError):
    """Raised when the routing service cannot produce a path for a leg."""


@dataclass(slots=True)
class LegRoute:
    geometry: list[Coordinate] = field(default_factory=list)
    distance_m: float = 0.0
    duration_s: float = 0.0


class RoutingBackend(Protocol):
    def route_leg(
        self,
        origin: Coordinate,
        destination: Coordinate,
        *,
        timeout: Optional[float] = None,
    ) -> LegRoute:
        ...
