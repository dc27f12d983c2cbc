# path: open-route-api/openroute/services/guide_generator.py

from __future__ import annotations

from typing import Optional
import logging

import httpx
from pydantic import ValidationError

from openroute.models.route_models import GuideAnalysis

logger = logging.getLogger(__name__)


PROMPT_TEMPLATE = (
    "Provide a commuter guide for the Philippine public transport route: {route_name}. "
    "Identify key landmarks and tips for riders."
)

GENERATION_FAILED = GuideAnalysis(guide="Analysis failed.", landmarks=[], tips=[])


class GuideGenerator:
    """
    Forwards guide requests to a text-generation service.

    The service receives ``{"prompt", "routeName"}`` and answers with a
    ``{guide, landmarks, tips}`` object. No URL configured, an unreachable
    service or an unexpected answer all produce GENERATION_FAILED.
    """

    def __init__(self, service_url: Optional[str], timeout_s: float = 20.0, transport: Optional[httpx.BaseTransport] = None):
        self.service_url = service_url
        self.timeout_s = timeout_s
        self.transport = transport

    def generate(self, route_name: str) -> GuideAnalysis:
        if not self.service_url:
            logger.warning("No guide service configured; returning fallback guide")
            return GENERATION_FAILED
        payload = {"prompt": PROMPT_TEMPLATE.format(route_name=route_name), "routeName": route_name}
        try:
            with httpx.Client(timeout=self.timeout_s, transport=self.transport) as client:
                res = client.post(self.service_url, json=payload)
                res.raise_for_status()
                return GuideAnalysis.model_validate(res.json())
        except (httpx.HTTPError, ValueError, ValidationError) as e:
            logger.warning("Guide generation failed for %r: %s", route_name, e)
            return GENERATION_FAILED
