"""Pydantic request/response models for opportunity and impact endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from ..config import ImpactFactor, TierThreshold
from .routing import CoordinateModel


class PickupInput(BaseModel):
    pickup_id: str = Field(..., min_length=1)
    coordinates: Optional[CoordinateModel] = None
    wastes: Dict[str, float] = Field(default_factory=dict, description="Collected kg per waste type.")
    waste_bank_id: Optional[str] = None
    completed_at: Optional[datetime] = None


class OpportunityRequest(BaseModel):
    pickups: Optional[List[PickupInput]] = Field(
        default=None,
        description="Historical pickups to analyse. Loaded from the pickup store when omitted.",
    )
    region: Optional[str] = Field(default=None, description="Region filter applied to stored pickups.")
    cell_size_degrees: Optional[float] = Field(default=None, gt=0, lt=180)
    analysis_radius_km: Optional[float] = Field(default=None, gt=0)
    tier_thresholds: Optional[Dict[str, TierThreshold]] = None
    impact_factors: Optional[Dict[str, ImpactFactor]] = None


class ImpactTotalsModel(BaseModel):
    carbon: float
    water: float
    landfill: float
    trees: float


class GridCellModel(BaseModel):
    index: tuple[int, int]
    center: CoordinateModel
    potential: Literal["HIGH", "MEDIUM", "LOW"]
    total_weight_kg: float
    pickup_count: int
    density: float
    existing_facilities: int
    impact: ImpactTotalsModel
    pickup_ids: List[str]


class WasteTypeBreakdown(BaseModel):
    waste_type: str
    weight_kg: float
    carbon: float


class OpportunityResponse(BaseModel):
    cell_size_degrees: float
    analysis_radius_km: float
    cells: List[GridCellModel]
    tier_counts: Dict[str, int]
    total_impact: ImpactTotalsModel
    waste_types: List[WasteTypeBreakdown]
    skipped_pickup_ids: List[str]
    metadata: dict


class AreaImpactRequest(BaseModel):
    center: CoordinateModel
    radius_km: Optional[float] = Field(default=None, gt=0)
    pickups: Optional[List[PickupInput]] = None
    region: Optional[str] = None
    tier_thresholds: Optional[Dict[str, TierThreshold]] = None
    impact_factors: Optional[Dict[str, ImpactFactor]] = None


class AreaImpactModel(BaseModel):
    center: CoordinateModel
    radius_km: float
    potential: Literal["HIGH", "MEDIUM", "LOW"]
    pickup_count: int
    total_weight_kg: float
    density: float
    existing_facilities: int
    impact: ImpactTotalsModel


class ImpactEstimateRequest(BaseModel):
    weights: Dict[str, float] = Field(..., description="Collected kg per waste type.")
    impact_factors: Optional[Dict[str, ImpactFactor]] = None
