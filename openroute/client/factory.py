# path: open-route-api/openroute/client/factory.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import httpx

from openroute.client.connectivity import ConnectivityMonitor
from openroute.client.guide import GuideClient
from openroute.client.local_cache import LocalCache
from openroute.client.snapping import SnappingClient
from openroute.client.store_client import RouteStoreClient
from openroute.client.sync import PublishCooldown, SyncCoordinator
from openroute.client.vote_book import VoteBook
from openroute.client.workspace import RouteWorkspace
from openroute.core.config import Settings, get_settings


@dataclass
class ClientRuntime:
    store: RouteStoreClient
    monitor: ConnectivityMonitor
    coordinator: SyncCoordinator
    workspace: RouteWorkspace

    async def aclose(self) -> None:
        self.coordinator.detach(self.monitor)
        await self.store.aclose()


def build_client(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> ClientRuntime:
    """Wire the client core from settings. The caller runs ``monitor.run()``."""
    settings = settings or get_settings()
    cache = LocalCache(settings.cache_path)
    store = RouteStoreClient(settings.api_base_url, timeout_s=settings.http_timeout_s, transport=transport)
    monitor = ConnectivityMonitor(
        store.probe,
        interval_s=settings.probe_interval_s,
        failure_threshold=settings.probe_failure_threshold,
    )
    coordinator = SyncCoordinator(store, cache)
    coordinator.attach(monitor)
    workspace = RouteWorkspace(
        coordinator,
        VoteBook(cache),
        PublishCooldown(settings.publish_cooldown_s),
        snapper=SnappingClient(settings.osrm_base_url, timeout_s=settings.http_timeout_s),
        guide=GuideClient(store),
        snap_debounce_s=settings.snap_debounce_s,
        proximity_threshold_m=settings.proximity_threshold_m,
    )
    return ClientRuntime(store=store, monitor=monitor, coordinator=coordinator, workspace=workspace)
