"""Load weight estimation for pending pickups."""

from __future__ import annotations

from typing import Mapping, Optional

from ...config import settings


def estimate_load_kg(bag_counts: Mapping[str, float] | None, *, kg_per_bag: Optional[float] = None) -> float:
    """Convert per-type bag counts into an estimated load in kilograms."""

    per_bag = kg_per_bag if kg_per_bag is not None else settings.kg_per_bag
    if per_bag <= 0:
        raise ValueError("kg_per_bag must be positive.")
    if not bag_counts:
        return 0.0
    bags = 0.0
    for count in bag_counts.values():
        try:
            value = float(count)
        except (TypeError, ValueError):
            continue
        if value > 0:
            bags += value
    return bags * per_bag


def resolve_load_kg(
    exact_weight_kg: Optional[float],
    bag_counts: Mapping[str, float] | None = None,
    *,
    kg_per_bag: Optional[float] = None,
) -> float:
    """Prefer an exact weight; fall back to the bag-count estimate."""

    if exact_weight_kg is not None and exact_weight_kg >= 0:
        return float(exact_weight_kg)
    return estimate_load_kg(bag_counts, kg_per_bag=kg_per_bag)
