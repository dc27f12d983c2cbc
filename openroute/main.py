# path: open-route-api/openroute/main.py

from __future__ import annotations

from typing import Optional
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from openroute.api.routes.analyze import router as analyze_router
from openroute.api.routes.health import router as health_router
from openroute.api.routes.routes import router as routes_router
from openroute.core.config import Settings, get_settings
from openroute.core.logging_config import configure_logging
from openroute.services.guide_generator import GuideGenerator
from openroute.services.route_store import RouteRepository

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="open-route-api")
    app.state.settings = settings
    app.state.repository = RouteRepository(settings.database_path)
    app.state.guide_generator = GuideGenerator(settings.guide_service_url, timeout_s=settings.http_timeout_s)

    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])
    app.include_router(routes_router, prefix="/api")
    app.include_router(analyze_router, prefix="/api")
    app.include_router(health_router, prefix="/api")
    logger.info("open-route-api using database %s", settings.database_path)
    return app


app = create_app()
