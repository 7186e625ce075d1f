"""Opportunity grid analysis services."""

from .analyzer import classify_cells, classify_tier, impact_within_radius

__all__ = ["classify_cells", "classify_tier", "impact_within_radius"]
