"""Environmental impact estimation."""

from .estimator import estimate_impact, impact_by_type, merge_weights, pickup_impact, total_impact

__all__ = ["estimate_impact", "pickup_impact", "total_impact", "impact_by_type", "merge_weights"]
