"""Routing request/response schemas."""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field, model_validator


class CoordinateModel(BaseModel):
    lat: float
    lng: float


class StopInput(BaseModel):
    """A pending pickup as supplied by the caller."""

    stop_id: str = Field(..., min_length=1)
    coordinates: Optional[CoordinateModel] = Field(
        default=None, description="Pickup location; stops without one are skipped."
    )
    weight_kg: Optional[float] = Field(default=None, ge=0, description="Exact load weight when known.")
    waste_quantities: Optional[Dict[str, float]] = Field(
        default=None, description="Bag counts per waste type, used when no exact weight is given."
    )
    status: str = "pending"
    customer_name: Optional[str] = None
    address: Optional[str] = None
    metadata: dict = Field(default_factory=dict)


class RoutePlanRequest(BaseModel):
    start: CoordinateModel = Field(..., description="Collector's current location.")
    stops: Optional[List[StopInput]] = Field(
        default=None, description="Stops to visit. Loaded from the pickup store for `collector_id` when omitted."
    )
    collector_id: Optional[str] = Field(default=None, min_length=1)
    timeout_seconds: Optional[float] = Field(default=None, gt=0, description="Per-leg routing timeout.")
    max_concurrency: Optional[int] = Field(default=None, ge=1)
    load_reference_kg: Optional[float] = Field(default=None, gt=0)
    kg_per_bag: Optional[float] = Field(default=None, gt=0)

    @model_validator(mode="after")
    def _require_stop_source(self) -> "RoutePlanRequest":
        if self.stops is None and not self.collector_id:
            raise ValueError("Provide either stops or collector_id.")
        return self


class StopModel(BaseModel):
    stop_id: str
    sequence: int
    coordinates: CoordinateModel
    load_weight_kg: float
    metadata: dict


class RouteLegModel(BaseModel):
    sequence: int
    stop_id: str
    origin: CoordinateModel
    destination: CoordinateModel
    distance_m: float
    duration_s: float
    ok: bool
    error: Optional[str] = None
    geometry: List[tuple[float, float]]


class SequenceResponse(BaseModel):
    stops: List[StopModel]
    skipped_stop_ids: List[str]


class RoutePlanResponse(BaseModel):
    stops: List[StopModel]
    legs: List[RouteLegModel]
    total_distance_m: float
    total_duration_s: float
    total_distance_km: float
    total_duration_min: float
    total_load_kg: float
    transport_emissions_kg: float
    degraded: bool
    failed_legs: List[int]
    skipped_stop_ids: List[str]
    path: List[tuple[float, float]]
    metadata: dict
