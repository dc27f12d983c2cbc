# tests/conftest.py
from typing import Dict, List

import pytest

from openroute.client.local_cache import LocalCache
from openroute.core.config import Settings
from openroute.core.errors import StoreUnavailable
from openroute.main import create_app
from openroute.models.route_models import Refinement, Route, Waypoint
from openroute.services.route_store import RouteRepository
from openroute.services.votes import apply_local_vote


def make_route(
    route_id="route-1",
    name="PITX - Monumento",
    author="Ana",
    created_at=1_700_000_000_000,
    waypoints=((14.60, 120.98), (14.61, 120.99)),
    score=1,
    votes=1,
    parent_route_id=None,
):
    wps = [Waypoint(lat=lat, lng=lng) for lat, lng in waypoints]
    ref = Refinement(id=f"{route_id}-r0", contributor=author, created_at=created_at, score=score, votes=votes)
    return Route(
        id=route_id,
        name=name,
        author=author,
        parent_route_id=parent_route_id,
        waypoints=wps,
        path=[(w.lat, w.lng) for w in wps],
        color="#ef4444",
        score=score,
        votes=votes,
        created_at=created_at,
        last_refined_at=created_at,
        refinement_history=[ref],
        active_refinement_id=ref.id,
    )


class FakeStore:
    """In-process stand-in for the store API; flip `online` to simulate outages."""

    def __init__(self, online=True):
        self.online = online
        self.routes: Dict[str, dict] = {}
        self.saved: List[str] = []
        self.votes: List[tuple] = []

    def _check(self):
        if not self.online:
            raise StoreUnavailable("store offline")

    async def list_routes(self):
        self._check()
        return list(self.routes.values())

    async def save_route(self, route):
        self._check()
        payload = route.to_wire()
        payload["syncStatus"] = None
        self.routes[route.id] = payload
        self.saved.append(route.id)
        return payload

    async def vote(self, route_id, refinement_id, delta):
        self._check()
        self.votes.append((route_id, refinement_id, delta))
        route = Route.model_validate(self.routes[route_id])
        route = apply_local_vote(route, refinement_id, delta)
        self.routes[route_id] = route.to_wire()
        return self.routes[route_id]

    async def probe(self):
        return self.online


@pytest.fixture
def cache(tmp_path):
    return LocalCache(tmp_path / "cache.json")


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def settings(tmp_path):
    return Settings(database_path=tmp_path / "routes.db", cache_path=tmp_path / "client-cache.json")


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def repo(tmp_path):
    return RouteRepository(tmp_path / "repo.db")
