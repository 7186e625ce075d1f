"""FastAPI application entry point."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.routes import health, impact, opportunities, routes
from .config import settings

logger = logging.getLogger(__name__)

ROUTERS = (health.router, routes.router, opportunities.router, impact.router)


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.app_name,
        description="Collector route planning and collection-opportunity analysis.",
    )
    if settings.frontend_allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.frontend_allowed_origins),
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    for router in ROUTERS:
        app.include_router(router, prefix=settings.api_prefix)

    @app.get("/")
    def root():
        return {
            "service": settings.app_name,
            "status": "running",
            "routing_backend": settings.osrm_base_url,
            "endpoints": sorted(
                route.path for route in app.routes if route.path.startswith(settings.api_prefix)
            ),
            "docs": "/docs",
        }

    logger.info(f"Created {settings.app_name} with routing backend {settings.osrm_base_url}")
    return app


app = create_app()
