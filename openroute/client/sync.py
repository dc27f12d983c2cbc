# path: open-route-api/openroute/client/sync.py

"""
Optimistic local writes reconciled with the route store.

Every save is written to the local cache as ``pending`` before any network
I/O. A confirmed write replaces the cached copy with the store's normalized
answer tagged ``synced``; an unreachable store leaves the pending copy in
place for ``replay_pending`` to retry after the next reconnect. A write the
store refuses outright is tagged ``error`` and not retried.
"""

from __future__ import annotations

from typing import Callable, List, Optional, Protocol, Set
import asyncio
import logging
import time

from openroute.client.connectivity import ConnectivityMonitor
from openroute.client.local_cache import LocalCache
from openroute.core.errors import CooldownActive, MalformedRoute, StoreRejected, StoreUnavailable, VoteTargetMissing
from openroute.models.route_models import Route
from openroute.services.refinement_ledger import find_refinement, now_ms, replace_refinement
from openroute.services.route_normalizer import normalize_route
from openroute.services.votes import apply_local_vote

logger = logging.getLogger(__name__)


class RouteStore(Protocol):
    async def list_routes(self) -> List[dict]: ...

    async def save_route(self, route: Route) -> dict: ...

    async def vote(self, route_id: str, refinement_id: str, delta: int) -> dict: ...


class PublishCooldown:
    """Client-side courtesy rate limit between publishes."""

    def __init__(self, duration_s: float, clock: Callable[[], float] = time.monotonic):
        self.duration_s = duration_s
        self.clock = clock
        self._until: Optional[float] = None

    def start(self) -> None:
        self._until = self.clock() + self.duration_s

    def remaining(self) -> float:
        if self._until is None:
            return 0.0
        return max(0.0, self._until - self.clock())

    def check(self) -> None:
        left = self.remaining()
        if left > 0:
            raise CooldownActive(left)


class SyncCoordinator:
    def __init__(self, store: RouteStore, cache: LocalCache):
        self.store = store
        self.cache = cache
        self._tasks: Set[asyncio.Task] = set()

    def _synced(self, raw) -> Route:
        route = normalize_route(raw, fallback_ms=now_ms())
        return route.model_copy(update={"sync_status": "synced"})

    async def load_routes(self) -> List[Route]:
        """Store list merged with local pending writes; the cache when offline."""
        local = self.cache.load_routes()
        try:
            raw_routes = await self.store.list_routes()
        except (StoreUnavailable, StoreRejected) as e:
            logger.warning("Route list unavailable, using cache: %s", e)
            return local

        routes = []
        for raw in raw_routes:
            try:
                routes.append(self._synced(raw))
            except MalformedRoute as e:
                logger.warning("Skipping malformed route from store: %s", e)

        # Unconfirmed local writes win over the store's copy until replayed.
        pending = {r.id: r for r in local if r.sync_status == "pending"}
        merged = [pending.pop(r.id, r) for r in routes]
        merged.extend(pending.values())
        self.cache.save_routes(merged)
        return merged

    async def _push(self, pending: Route) -> Route:
        try:
            raw = await self.store.save_route(pending)
            synced = self._synced(raw)
        except StoreRejected as e:
            logger.error("Store rejected route %s: %s", pending.id, e)
            failed = pending.model_copy(update={"sync_status": "error"})
            self.cache.put_route(failed)
            return failed
        self.cache.put_route(synced)
        return synced

    async def save_route(self, route: Route) -> Route:
        pending = route.model_copy(update={"sync_status": "pending"})
        self.cache.put_route(pending)
        try:
            return await self._push(pending)
        except (StoreUnavailable, MalformedRoute) as e:
            logger.warning("Route %s saved locally only: %s", route.id, e)
            return pending

    async def replay_pending(self) -> List[str]:
        """Retry every pending route independently; returns the ids now synced."""
        replayed = []
        for route in self.cache.load_routes():
            if route.sync_status != "pending":
                continue
            try:
                result = await self._push(route)
            except (StoreUnavailable, MalformedRoute) as e:
                logger.info("Replay of %s deferred: %s", route.id, e)
                continue
            if result.sync_status == "synced":
                replayed.append(route.id)
        if replayed:
            logger.info("Replayed %d pending route(s)", len(replayed))
        return replayed

    async def apply_vote(self, route_id: str, refinement_id: str, delta: int) -> Route:
        try:
            raw = await self.store.vote(route_id, refinement_id, delta)
            route = self._synced(raw)
        except (StoreUnavailable, StoreRejected, MalformedRoute) as e:
            logger.warning("Vote on %s:%s applied locally only: %s", route_id, refinement_id, e)
            cached = self.cache.get_route(route_id)
            if cached is None:
                raise VoteTargetMissing(route_id) from e
            route = apply_local_vote(cached, refinement_id, delta)
        else:
            cached = self.cache.get_route(route_id)
            if cached is not None and cached.sync_status == "pending":
                # Unreplayed local edits stay; only the voted tally is taken from the store.
                tally = find_refinement(route, refinement_id)
                if tally is not None and find_refinement(cached, refinement_id) is not None:
                    route = replace_refinement(cached, tally)
                else:
                    route = cached
        self.cache.put_route(route)
        return route

    def attach(self, monitor: ConnectivityMonitor) -> None:
        """Replay pending writes whenever the monitor reports a reconnect."""
        monitor.subscribe(self._on_connectivity)

    def detach(self, monitor: ConnectivityMonitor) -> None:
        monitor.unsubscribe(self._on_connectivity)

    def _on_connectivity(self, connected: bool) -> None:
        if not connected:
            return
        task = asyncio.get_running_loop().create_task(self.replay_pending())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def drain(self) -> None:
        """Wait for replays started by connectivity events."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))
