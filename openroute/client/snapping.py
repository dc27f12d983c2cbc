# path: open-route-api/openroute/client/snapping.py

from __future__ import annotations

from typing import Awaitable, Callable, List, Optional, Sequence, Tuple
import asyncio
import logging

import httpx

from openroute.models.route_models import Waypoint
from openroute.utils.geo import straight_line_path

logger = logging.getLogger(__name__)


class SnappingClient:
    """
    Road-following path through ordered waypoints (OSRM route service).

    Never raises: fewer than two waypoints, no road path or any transport
    error all give the straight line through the waypoints.
    """

    def __init__(
        self,
        base_url: str = "https://router.project-osrm.org",
        profile: str = "driving",
        timeout_s: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.profile = profile
        self.timeout_s = timeout_s
        self.transport = transport

    async def snap(self, waypoints: Sequence[Waypoint]) -> List[Tuple[float, float]]:
        fallback = straight_line_path(waypoints)
        if len(waypoints) < 2:
            return fallback

        # OSRM wants lng,lat pairs
        coords = ";".join(f"{w.lng},{w.lat}" for w in waypoints)
        url = f"{self.base_url}/route/v1/{self.profile}/{coords}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout_s, transport=self.transport) as client:
                res = await client.get(url, params={"overview": "full", "geometries": "geojson"})
                data = res.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Routing error: %s", e)
            return fallback

        if not isinstance(data, dict) or data.get("code") != "Ok" or not data.get("routes"):
            logger.warning("No road path found, falling back to straight lines")
            return fallback
        try:
            return [(float(lat), float(lng)) for lng, lat in data["routes"][0]["geometry"]["coordinates"]]
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Unreadable route geometry: %s", e)
            return fallback


class Debouncer:
    """Runs the latest scheduled call once ``delay_s`` passes without a new trigger."""

    def __init__(self, delay_s: float):
        self.delay_s = delay_s
        self._task: Optional[asyncio.Task] = None

    def trigger(self, call: Callable[[], Awaitable[None]]) -> asyncio.Task:
        self.cancel()
        self._task = asyncio.get_running_loop().create_task(self._run(call))
        return self._task

    async def _run(self, call: Callable[[], Awaitable[None]]) -> None:
        await asyncio.sleep(self.delay_s)
        await call()

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()
