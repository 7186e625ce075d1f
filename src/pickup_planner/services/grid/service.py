"""Opportunity analysis orchestration service."""

from __future__ import annotations

import logging
from collections import Counter
from typing import Optional, Sequence

from ...config import settings, validate_impact_factors, validate_tier_thresholds
from ...data.pickups_repository import iter_completed_pickups
from ...models.domain import Coordinate, GridCell, HistoricalPickup, ImpactTotals
from ...schemas.opportunities import (
    AreaImpactModel,
    AreaImpactRequest,
    GridCellModel,
    ImpactTotalsModel,
    OpportunityRequest,
    OpportunityResponse,
    PickupInput,
    WasteTypeBreakdown,
)
from ...schemas.routing import CoordinateModel
from ..geospatial import cell_polygon, polygon_to_latlon
from ..impact.estimator import impact_by_type, total_impact
from .analyzer import classify_cells, impact_within_radius

logger = logging.getLogger(__name__)


def impact_model(totals: ImpactTotals) -> ImpactTotalsModel:
    return ImpactTotalsModel(
        carbon=totals.carbon,
        water=totals.water,
        landfill=totals.landfill,
        trees=totals.trees,
    )


def _to_pickups(inputs: Sequence[PickupInput]) -> tuple[list[HistoricalPickup], list[str]]:
    pickups: list[HistoricalPickup] = []
    skipped: list[str] = []
    for item in inputs:
        location = Coordinate(latitude=item.coordinates.lat, longitude=item.coordinates.lng) if item.coordinates else None
        if location is None or not location.is_usable():
            logger.warning(f"Skipping pickup {item.pickup_id}: no usable coordinate")
            skipped.append(item.pickup_id)
            continue
        pickups.append(
            HistoricalPickup(
                pickup_id=item.pickup_id,
                location=location,
                weights_by_type=dict(item.wastes),
                waste_bank_id=item.waste_bank_id,
                completed_at=item.completed_at,
            )
        )
    return pickups, skipped


def _resolve_pickups(
    inputs: Optional[Sequence[PickupInput]],
    region: Optional[str],
) -> tuple[list[HistoricalPickup], list[str]]:
    if inputs is not None:
        return _to_pickups(inputs)
    pickups = list(iter_completed_pickups(region))
    logger.info(f"Loaded {len(pickups)} completed pickups from the pickup store")
    return pickups, []


def _cell_model(cell: GridCell) -> GridCellModel:
    return GridCellModel(
        index=cell.index,
        center=CoordinateModel(lat=cell.center.latitude, lng=cell.center.longitude),
        potential=cell.tier.value,
        total_weight_kg=cell.total_weight_kg,
        pickup_count=cell.pickup_count,
        density=cell.density,
        existing_facilities=cell.existing_facilities,
        impact=impact_model(cell.impact),
        pickup_ids=[pickup.pickup_id for pickup in cell.pickups],
    )


def _build_cell_overlays(cells: Sequence[GridCell], cell_size_degrees: float) -> list[dict]:
    return [
        {
            "index": cell.index,
            "potential": cell.tier.value,
            "coordinates": polygon_to_latlon(cell_polygon(cell.index, cell_size_degrees)),
            "source": "grid_cell",
        }
        for cell in cells
    ]


def analyze_opportunities(payload: OpportunityRequest) -> OpportunityResponse:
    cell_size = payload.cell_size_degrees or settings.cell_size_degrees
    radius = payload.analysis_radius_km or settings.analysis_radius_km
    thresholds = validate_tier_thresholds(payload.tier_thresholds) if payload.tier_thresholds else None
    factors = validate_impact_factors(payload.impact_factors) if payload.impact_factors else None

    pickups, skipped = _resolve_pickups(payload.pickups, payload.region)
    cells = classify_cells(
        pickups,
        cell_size,
        analysis_radius_km=radius,
        thresholds=thresholds,
        factors=factors,
    )

    tier_counts = Counter(cell.tier.value for cell in cells)
    return OpportunityResponse(
        cell_size_degrees=cell_size,
        analysis_radius_km=radius,
        cells=[_cell_model(cell) for cell in cells],
        tier_counts={tier: tier_counts.get(tier, 0) for tier in ("HIGH", "MEDIUM", "LOW")},
        total_impact=impact_model(total_impact(pickups, factors)),
        waste_types=[WasteTypeBreakdown(**item) for item in impact_by_type(pickups, factors)],
        skipped_pickup_ids=skipped,
        metadata={
            "pickup_count": len(pickups),
            "region": payload.region,
            "map_overlays": {"polygons": _build_cell_overlays(cells, cell_size)},
        },
    )


def area_impact(payload: AreaImpactRequest) -> AreaImpactModel:
    radius = payload.radius_km or settings.analysis_radius_km
    thresholds = validate_tier_thresholds(payload.tier_thresholds) if payload.tier_thresholds else None
    factors = validate_impact_factors(payload.impact_factors) if payload.impact_factors else None
    center = Coordinate(latitude=payload.center.lat, longitude=payload.center.lng)
    if not center.is_usable():
        raise ValueError("Area center is not a valid coordinate.")

    pickups, _ = _resolve_pickups(payload.pickups, payload.region)
    result = impact_within_radius(center, radius, pickups, factors=factors, thresholds=thresholds)
    return AreaImpactModel(
        center=payload.center,
        radius_km=result.radius_km,
        potential=result.tier.value,
        pickup_count=result.pickup_count,
        total_weight_kg=result.total_weight_kg,
        density=result.density,
        existing_facilities=result.existing_facilities,
        impact=impact_model(result.impact),
    )
