# path: open-route-api/openroute/api/deps.py

from __future__ import annotations

from fastapi import Request

from openroute.core.config import Settings
from openroute.services.guide_generator import GuideGenerator
from openroute.services.route_store import RouteRepository


def get_repository(request: Request) -> RouteRepository:
    return request.app.state.repository


def get_guide_generator(request: Request) -> GuideGenerator:
    return request.app.state.guide_generator


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings
