# path: open-route-api/openroute/client/local_cache.py

"""
Durable key-value cache for the client.

The whole route list is stored under one key and the vote map under another;
every access reads or writes a whole value, never part of one.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List
import json
import logging
import os
import tempfile

from openroute.core.errors import MalformedRoute
from openroute.models.route_models import Route
from openroute.services.route_normalizer import normalize_route

logger = logging.getLogger(__name__)


ROUTES_KEY = "open_route_store_v2"
VOTES_KEY = "open_route_votes_v1"


class LocalCache:
    def __init__(self, path: Path | str):
        self.path = Path(path)

    def _read_all(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable cache %s: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str, default: Any = None) -> Any:
        return self._read_all().get(key, default)

    def set(self, key: str, value: Any) -> None:
        data = self._read_all()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # write-then-rename so a crash never leaves half a file behind
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=self.path.name, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, separators=(",", ":"))
            os.replace(tmp, self.path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise

    # Route list helpers

    def load_routes(self) -> List[Route]:
        routes = []
        for raw in self.get(ROUTES_KEY, []) or []:
            try:
                routes.append(normalize_route(raw))
            except MalformedRoute as e:
                logger.warning("Dropping cached route: %s", e)
        return routes

    def save_routes(self, routes: List[Route]) -> None:
        self.set(ROUTES_KEY, [r.to_wire() for r in routes])

    def put_route(self, route: Route) -> None:
        """Replace (or add) one route, keeping list order."""
        routes = self.load_routes()
        for i, r in enumerate(routes):
            if r.id == route.id:
                routes[i] = route
                break
        else:
            routes.append(route)
        self.save_routes(routes)

    def get_route(self, route_id: str) -> Route | None:
        for r in self.load_routes():
            if r.id == route_id:
                return r
        return None
