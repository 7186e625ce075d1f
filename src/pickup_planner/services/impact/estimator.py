"""Environmental impact arithmetic for collected waste."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Iterable, Mapping, Optional

from ...config import ImpactFactor, settings
from ...models.domain import HistoricalPickup, ImpactTotals

logger = logging.getLogger(__name__)


def estimate_impact(
    weights_by_type: Mapping[str, float],
    factors: Optional[Mapping[str, ImpactFactor]] = None,
) -> ImpactTotals:
    """Convert collected weight per waste type into impact totals.

    Types without a factor row contribute nothing; that is the documented
    behaviour for unrecognised waste types, not an error.
    """
    table = factors if factors is not None else settings.impact_factors

    carbon = water = landfill = trees = 0.0
    for waste_type, weight in weights_by_type.items():
        factor = table.get(waste_type)
        if factor is None:
            factor = table.get(str(waste_type).strip().lower())
        if factor is None:
            logger.debug(f"No impact factor for waste type '{waste_type}', skipping")
            continue
        if not weight or weight <= 0:
            continue
        carbon += factor.carbon * weight
        water += factor.water * weight
        landfill += factor.landfill * weight
        if factor.trees:
            trees += factor.trees * weight

    return ImpactTotals(carbon=carbon, water=water, landfill=landfill, trees=trees)


def merge_weights(*weight_maps: Mapping[str, float]) -> dict[str, float]:
    merged: dict[str, float] = defaultdict(float)
    for weights in weight_maps:
        for waste_type, weight in weights.items():
            merged[waste_type] += weight or 0.0
    return dict(merged)


def pickup_impact(
    pickup: HistoricalPickup,
    factors: Optional[Mapping[str, ImpactFactor]] = None,
) -> ImpactTotals:
    return estimate_impact(pickup.weights_by_type, factors)


def total_impact(
    pickups: Iterable[HistoricalPickup],
    factors: Optional[Mapping[str, ImpactFactor]] = None,
) -> ImpactTotals:
    return sum((pickup_impact(pickup, factors) for pickup in pickups), ImpactTotals.zero())


def impact_by_type(
    pickups: Iterable[HistoricalPickup],
    factors: Optional[Mapping[str, ImpactFactor]] = None,
) -> list[dict]:
    """Collected weight and carbon avoided per waste type, heaviest first."""

    weights: dict[str, float] = defaultdict(float)
    for pickup in pickups:
        for waste_type, weight in pickup.weights_by_type.items():
            if weight and weight > 0:
                weights[waste_type] += weight

    breakdown = [
        {
            "waste_type": waste_type,
            "weight_kg": weight,
            "carbon": estimate_impact({waste_type: weight}, factors).carbon,
        }
        for waste_type, weight in weights.items()
    ]
    return sorted(breakdown, key=lambda item: (-item["weight_kg"], item["waste_type"]))


def transport_emissions_kg(
    distance_km: float,
    load_kg: float,
    *,
    emission_factor: Optional[float] = None,
    vehicle_capacity_kg: Optional[float] = None,
) -> float:
    """Estimated CO2e of hauling ``load_kg`` over ``distance_km``."""

    factor = emission_factor if emission_factor is not None else settings.transport_emission_factor
    capacity = vehicle_capacity_kg if vehicle_capacity_kg is not None else settings.vehicle_capacity_kg
    if capacity <= 0:
        raise ValueError("vehicle_capacity_kg must be positive.")
    return factor * (max(load_kg, 0.0) / capacity) * max(distance_km, 0.0)
