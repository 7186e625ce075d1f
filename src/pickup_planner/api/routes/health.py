"""Liveness and routing-backend health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from ...config import settings
from ...services.routing import osrm_client

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    return {"status": "ok"}


@router.get("/health/osrm", status_code=status.HTTP_200_OK)
def health_osrm() -> dict:
    """Check the configured OSRM instance with a two-point route request."""
    report = {
        "service": "osrm",
        "base_url": settings.osrm_base_url,
        "profile": settings.osrm_profile,
    }
    if not settings.osrm_base_url:
        return {**report, "healthy": False, "error": "OSRM base URL is not configured."}
    return {**report, "healthy": osrm_client.check_health(settings.osrm_base_url)}
