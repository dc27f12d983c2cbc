# path: open-route-api/openroute/api/routes/routes.py

from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Response

from openroute.api.deps import get_app_settings, get_repository
from openroute.core.config import Settings
from openroute.core.errors import MalformedRoute, RouteNotFound, VoteTargetMissing
from openroute.models.route_models import Route, VoteRequest
from openroute.services.lineage import filter_by_parent
from openroute.services.refinement_ledger import now_ms
from openroute.services.route_normalizer import normalize_route, validate_route_guardrails
from openroute.services.route_store import RouteRepository
from openroute.utils.geo import path_passes_near, straight_line_path

router = APIRouter(prefix="/routes", tags=["routes"])


@router.get("", response_model=List[Route])
def list_routes(
    parent: Optional[str] = None,
    lat: Optional[float] = Query(default=None, ge=-90, le=90),
    lng: Optional[float] = Query(default=None, ge=-180, le=180),
    radius_m: Optional[float] = Query(default=None, gt=0),
    repo: RouteRepository = Depends(get_repository),
    settings: Settings = Depends(get_app_settings),
) -> List[Route]:
    routes = repo.list_routes(parent_id=parent)
    if (lat is None) != (lng is None):
        raise HTTPException(status_code=400, detail="lat and lng must be given together")
    if lat is not None:
        threshold = radius_m or settings.proximity_threshold_m
        routes = [r for r in routes if path_passes_near(r.path, lat, lng, threshold)]
    return routes


@router.get("/{route_id}", response_model=Route)
def get_route(route_id: str, repo: RouteRepository = Depends(get_repository)) -> Route:
    try:
        return repo.get_route(route_id)
    except RouteNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/{route_id}/forks", response_model=List[Route])
def list_forks(route_id: str, repo: RouteRepository = Depends(get_repository)) -> List[Route]:
    try:
        repo.get_route(route_id)
    except RouteNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    return filter_by_parent(repo.list_routes(parent_id=route_id), route_id)


@router.post("", response_model=Route, status_code=201)
def upsert_route(
    response: Response,
    raw: Dict[str, Any] = Body(...),
    repo: RouteRepository = Depends(get_repository),
) -> Route:
    # Payloads are normalized here, not by FastAPI, so older field names still load.
    try:
        route = normalize_route(raw, fallback_ms=now_ms())
        if not route.path:
            route = route.model_copy(update={"path": straight_line_path(route.waypoints)})
        validate_route_guardrails(route)
    except (MalformedRoute, ValueError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    stored, created = repo.upsert_route(route)
    if not created:
        response.status_code = 200
    return stored


@router.patch("/{route_id}/vote", response_model=Route)
def vote_active(route_id: str, body: VoteRequest, repo: RouteRepository = Depends(get_repository)) -> Route:
    try:
        return repo.vote(route_id, None, body.delta)
    except RouteNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.patch("/{route_id}/refinements/{refinement_id}/vote", response_model=Route)
def vote_refinement(
    route_id: str,
    refinement_id: str,
    body: VoteRequest,
    repo: RouteRepository = Depends(get_repository),
) -> Route:
    try:
        return repo.vote(route_id, refinement_id, body.delta)
    except (RouteNotFound, VoteTargetMissing) as e:
        raise HTTPException(status_code=404, detail=str(e))
