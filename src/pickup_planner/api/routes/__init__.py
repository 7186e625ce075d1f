"""Route group exports."""

from . import health, impact, opportunities, routes

__all__ = ["health", "routes", "opportunities", "impact"]
