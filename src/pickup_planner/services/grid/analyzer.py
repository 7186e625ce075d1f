"""Grid-based opportunity analysis over historical pickups."""

from __future__ import annotations

import logging
from typing import Mapping, Optional, Sequence

import numpy as np

from ...config import ImpactFactor, TierThreshold, settings, validate_tier_thresholds
from ...models.domain import AreaImpact, Coordinate, GridCell, HistoricalPickup, PotentialTier
from ..geospatial import cell_center, circle_area_km2, distance_km
from ..impact.estimator import total_impact

logger = logging.getLogger(__name__)


def classify_tier(
    total_weight_kg: float,
    density: float,
    thresholds: Optional[Mapping[str, TierThreshold]] = None,
) -> PotentialTier:
    """HIGH, then MEDIUM; both weight and density must meet a tier's minimums."""

    table = thresholds if thresholds is not None else settings.tier_thresholds
    for tier in (PotentialTier.HIGH, PotentialTier.MEDIUM):
        limits = table[tier.value]
        if total_weight_kg >= limits.min_weight_kg and density >= limits.min_density:
            return tier
    return PotentialTier.LOW


def _usable_pickups(pickups: Sequence[HistoricalPickup]) -> list[HistoricalPickup]:
    usable: list[HistoricalPickup] = []
    for pickup in pickups:
        if pickup.location is None or not pickup.location.is_usable():
            logger.warning(f"Skipping pickup {pickup.pickup_id}: no usable coordinate")
            continue
        usable.append(pickup)
    return usable


def _count_facilities(pickups: Sequence[HistoricalPickup]) -> int:
    return len({pickup.waste_bank_id for pickup in pickups if pickup.waste_bank_id})


def partition_pickups(
    pickups: Sequence[HistoricalPickup],
    cell_size_degrees: float,
) -> dict[tuple[int, int], list[HistoricalPickup]]:
    """Bucket pickups by grid index; insertion order follows first appearance."""

    if cell_size_degrees <= 0:
        raise ValueError("cell_size_degrees must be positive.")
    if not pickups:
        return {}

    coords = np.array(
        [(pickup.location.latitude, pickup.location.longitude) for pickup in pickups],
        dtype=float,
    )
    indices = np.floor(coords / cell_size_degrees).astype(np.int64)

    cells: dict[tuple[int, int], list[HistoricalPickup]] = {}
    for pickup, (grid_x, grid_y) in zip(pickups, indices):
        cells.setdefault((int(grid_x), int(grid_y)), []).append(pickup)
    return cells


def classify_cells(
    pickups: Sequence[HistoricalPickup],
    cell_size_degrees: Optional[float] = None,
    *,
    analysis_radius_km: Optional[float] = None,
    thresholds: Optional[Mapping[str, TierThreshold]] = None,
    factors: Optional[Mapping[str, ImpactFactor]] = None,
) -> list[GridCell]:
    """Partition pickups into grid cells and classify each populated cell.

    Density uses the fixed analysis radius, not the cell area.
    Output is ordered by tier (HIGH first), then by total weight descending.
    """
    size = cell_size_degrees if cell_size_degrees is not None else settings.cell_size_degrees
    radius = analysis_radius_km if analysis_radius_km is not None else settings.analysis_radius_km
    if radius <= 0:
        raise ValueError("analysis_radius_km must be positive.")
    table = validate_tier_thresholds(dict(thresholds)) if thresholds is not None else settings.tier_thresholds

    usable = _usable_pickups(pickups)
    area_km2 = circle_area_km2(radius)

    cells: list[GridCell] = []
    for index, members in partition_pickups(usable, size).items():
        total_weight = sum(pickup.total_weight_kg for pickup in members)
        density = len(members) / area_km2
        cells.append(
            GridCell(
                index=index,
                center=cell_center(index, size),
                pickups=members,
                total_weight_kg=total_weight,
                pickup_count=len(members),
                density=density,
                tier=classify_tier(total_weight, density, table),
                impact=total_impact(members, factors),
                existing_facilities=_count_facilities(members),
            )
        )

    cells.sort(key=lambda cell: (-cell.tier.rank, -cell.total_weight_kg, cell.index))
    logger.info(
        f"Classified {len(usable)} pickups into {len(cells)} cells "
        f"({sum(1 for cell in cells if cell.tier is PotentialTier.HIGH)} high potential)"
    )
    return cells


def impact_within_radius(
    center: Coordinate,
    radius_km: float,
    pickups: Sequence[HistoricalPickup],
    *,
    factors: Optional[Mapping[str, ImpactFactor]] = None,
    thresholds: Optional[Mapping[str, TierThreshold]] = None,
) -> AreaImpact:
    """Impact of every pickup within ``radius_km`` of a candidate site."""

    if radius_km <= 0:
        raise ValueError("radius_km must be positive.")
    table = validate_tier_thresholds(dict(thresholds)) if thresholds is not None else settings.tier_thresholds

    in_area = [
        pickup
        for pickup in _usable_pickups(pickups)
        if distance_km(center, pickup.location) <= radius_km
    ]
    total_weight = sum(pickup.total_weight_kg for pickup in in_area)
    density = len(in_area) / circle_area_km2(radius_km)

    return AreaImpact(
        center=center,
        radius_km=radius_km,
        pickup_count=len(in_area),
        total_weight_kg=total_weight,
        density=density,
        existing_facilities=_count_facilities(in_area),
        impact=total_impact(in_area, factors),
        tier=classify_tier(total_weight, density, table),
    )
