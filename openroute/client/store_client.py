# path: open-route-api/openroute/client/store_client.py

from __future__ import annotations

from typing import Any, List, Optional
import logging

import httpx

from openroute.core.errors import StoreRejected, StoreUnavailable
from openroute.models.route_models import GuideAnalysis, Route

logger = logging.getLogger(__name__)


DEFAULT_HEADERS = {
    "Accept": "application/json",
    "Content-Type": "application/json",
}


class RouteStoreClient:
    """
    Async client for the route store API.

    Route payloads are returned raw; callers normalize them. Every failure is
    raised as StoreUnavailable (retry later) or StoreRejected (don't).
    """

    def __init__(self, base_url: str, timeout_s: float = 10.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=DEFAULT_HEADERS,
            timeout=timeout_s,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "RouteStoreClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def _request(self, method: str, url: str, **kwargs) -> Any:
        try:
            res = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise StoreUnavailable(f"{method} {url} failed: {e}") from e
        if res.status_code >= 500:
            raise StoreUnavailable(f"{method} {url}: {res.status_code}", status_code=res.status_code)
        if res.status_code >= 400:
            raise StoreRejected(f"{method} {url}: {res.status_code} {res.text}", status_code=res.status_code)
        try:
            return res.json()
        except ValueError as e:
            raise StoreUnavailable(f"{method} {url}: response is not JSON") from e

    async def list_routes(self) -> List[dict]:
        data = await self._request("GET", "/routes")
        if not isinstance(data, list):
            raise StoreUnavailable("GET /routes: expected a list")
        return data

    async def save_route(self, route: Route) -> dict:
        return await self._request("POST", "/routes", json=route.to_wire())

    async def vote(self, route_id: str, refinement_id: str, delta: int) -> dict:
        return await self._request(
            "PATCH",
            f"/routes/{route_id}/refinements/{refinement_id}/vote",
            json={"delta": delta},
        )

    async def analyze(self, route_name: str) -> GuideAnalysis:
        data = await self._request("POST", "/analyze", json={"routeName": route_name})
        try:
            return GuideAnalysis.model_validate(data)
        except ValueError as e:
            raise StoreUnavailable(f"POST /analyze: unexpected payload: {e}") from e

    async def probe(self) -> bool:
        try:
            await self._request("GET", "/health")
        except (StoreUnavailable, StoreRejected):
            return False
        return True
