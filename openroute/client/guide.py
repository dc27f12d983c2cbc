# path: open-route-api/openroute/client/guide.py

from __future__ import annotations

import logging

from openroute.client.store_client import RouteStoreClient
from openroute.core.errors import StoreError
from openroute.models.route_models import GUIDE_UNAVAILABLE, GuideAnalysis

logger = logging.getLogger(__name__)


class GuideClient:
    def __init__(self, store: RouteStoreClient):
        self.store = store

    async def analyze(self, route_name: str) -> GuideAnalysis:
        # The guide is decoration; failures never reach the caller.
        try:
            return await self.store.analyze(route_name)
        except StoreError as e:
            logger.error("AI analysis error: %s", e)
            return GUIDE_UNAVAILABLE.model_copy(deep=True)
