# path: open-route-api/openroute/core/errors.py

from __future__ import annotations

from typing import Optional


class OpenRouteError(Exception):
    """Base class for every error raised by openroute."""


class MalformedRoute(OpenRouteError):
    """A route payload could not be reconstructed into a Route."""


class RouteNotFound(OpenRouteError):
    def __init__(self, route_id: str):
        super().__init__(f"Route not found: {route_id}")
        self.route_id = route_id


class VoteTargetMissing(OpenRouteError):
    """The route or refinement a vote points at is not known locally."""

    def __init__(self, route_id: str, refinement_id: Optional[str] = None):
        target = route_id if refinement_id is None else f"{route_id}:{refinement_id}"
        super().__init__(f"No vote target for {target}")
        self.route_id = route_id
        self.refinement_id = refinement_id


class PublishRejected(OpenRouteError):
    """Validation failure before any network call. The message is user-facing."""


class CooldownActive(PublishRejected):
    def __init__(self, remaining_s: float):
        super().__init__(f"Please wait {int(remaining_s) + 1}s before publishing again.")
        self.remaining_s = remaining_s


class StoreError(OpenRouteError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class StoreUnavailable(StoreError):
    """Transport failure, timeout or 5xx. Retryable."""


class StoreRejected(StoreError):
    """The store answered but refused the request (4xx). Not retried."""
