# path: open-route-api/openroute/services/route_normalizer.py

"""
Boundary normalization for route payloads.

Anything that arrives from the store, the local cache or an older client goes
through ``normalize_route`` before the rest of the code sees it. Loosely named
fields are resolved through ordered accessor lists; the first key present wins.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterable, List, Mapping, Tuple
import hashlib
import json
import logging
import math

from pydantic import ValidationError

from openroute.core.errors import MalformedRoute
from openroute.models.route_models import ROUTE_COLORS, Refinement, Route, Waypoint
from openroute.services.refinement_ledger import find_refinement, mirror_active, sort_history
from openroute.utils.geo import polyline_length_m, straight_line_path

logger = logging.getLogger(__name__)


CREATED_KEYS = ("createdAt", "created_at", "created_at_utc", "created", "timestamp")
REFINED_KEYS = ("lastRefinedAt", "last_refined_at", "updatedAt", "updated_at")
PARENT_KEYS = ("parentRouteId", "parent_route_id", "parentId")
HISTORY_KEYS = ("refinementHistory", "refinement_history", "refinements")
ACTIVE_KEYS = ("activeRefinementId", "active_refinement_id")
SYNC_KEYS = ("syncStatus", "sync_status")
SYNC_VALUES = ("synced", "pending", "error")

_MISSING = object()


def first_present(raw: Mapping[str, Any], keys: Iterable[str], default: Any = None) -> Any:
    for key in keys:
        value = raw.get(key, _MISSING)
        if value is not _MISSING and value is not None:
            return value
    return default


def palette_color(route_id: str) -> str:
    digest = hashlib.sha256(route_id.encode("utf-8")).digest()
    return ROUTE_COLORS[digest[0] % len(ROUTE_COLORS)]


def parse_timestamp(value: Any, fallback: int) -> int:
    """
    Epoch milliseconds from an int/float, a numeric string, an ISO-8601 string
    or a datetime. Anything else yields ``fallback``.
    """
    if value is None or isinstance(value, bool):
        return fallback
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return int(value.timestamp() * 1000)
    if isinstance(value, (int, float)):
        return int(value) if math.isfinite(value) else fallback
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return fallback
        try:
            return parse_timestamp(float(text), fallback)
        except ValueError:
            pass
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return parse_timestamp(datetime.fromisoformat(text), fallback)
        except ValueError:
            return fallback
    return fallback


def _as_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _decode_json(value: Any) -> Any:
    # SQLite rows keep waypoints and path as JSON text
    if isinstance(value, str):
        try:
            return json.loads(value)
        except ValueError:
            return None
    return value


def _decode_list(value: Any) -> list:
    items = _decode_json(value)
    return list(items) if isinstance(items, (list, tuple)) else []


def parse_waypoints(value: Any) -> List[Waypoint]:
    out = []
    for item in _decode_list(value):
        try:
            if isinstance(item, Mapping):
                lng = first_present(item, ("lng", "lon", "long"))
                out.append(Waypoint(lat=item.get("lat"), lng=lng))
            else:
                lat, lng = item
                out.append(Waypoint(lat=lat, lng=lng))
        except (ValidationError, TypeError, ValueError):
            logger.warning("Dropping unreadable waypoint: %r", item)
    return out


def parse_path(value: Any) -> List[Tuple[float, float]]:
    out = []
    for coord in _decode_list(value):
        try:
            if isinstance(coord, Mapping):
                out.append((float(coord["lat"]), float(first_present(coord, ("lng", "lon")))))
            else:
                lat, lng = coord
                out.append((float(lat), float(lng)))
        except (KeyError, TypeError, ValueError):
            logger.warning("Dropping unreadable path coordinate: %r", coord)
    return out


def parse_history(
    value: Any,
    route_id: str,
    author: str,
    created_at: int,
) -> List[Refinement]:
    out = []
    for index, item in enumerate(_decode_list(value)):
        if not isinstance(item, Mapping):
            logger.warning("Dropping unreadable refinement on %s: %r", route_id, item)
            continue
        out.append(
            Refinement(
                id=str(item.get("id") or f"{route_id}-r{index}"),
                contributor=str(first_present(item, ("contributor", "author"), author)),
                created_at=parse_timestamp(first_present(item, CREATED_KEYS), created_at),
                score=_as_int(item.get("score")),
                votes=max(0, _as_int(item.get("votes"))),
            )
        )
    return out


def normalize_route(raw: Any, fallback_ms: int = 0) -> Route:
    """
    Reconstruct a conformant Route from a payload of uncertain shape.

    Idempotent: normalizing the wire form of a normalized route returns an
    equal route.
    """
    if isinstance(raw, Route):
        raw = raw.to_wire()
    if not isinstance(raw, Mapping):
        raise MalformedRoute(f"Route payload must be an object, got {type(raw).__name__}")

    route_id = raw.get("id")
    if route_id is None or str(route_id).strip() == "":
        raise MalformedRoute("Route payload has no id")
    route_id = str(route_id)

    author = str(raw.get("author") or "")
    created_at = parse_timestamp(first_present(raw, CREATED_KEYS), fallback_ms)
    last_refined_at = parse_timestamp(first_present(raw, REFINED_KEYS), created_at)

    history = parse_history(first_present(raw, HISTORY_KEYS), route_id, author, created_at)
    if not history:
        history = [
            Refinement(
                id=f"{route_id}-r0",
                contributor=author,
                created_at=created_at,
                score=_as_int(raw.get("score")),
                votes=max(0, _as_int(raw.get("votes"))),
            )
        ]
    history = sort_history(history)

    active_id = first_present(raw, ACTIVE_KEYS)
    if active_id is not None:
        active_id = str(active_id)
    sync_status = first_present(raw, SYNC_KEYS)

    parent = first_present(raw, PARENT_KEYS)
    route = Route(
        id=route_id,
        name=str(raw.get("name") or ""),
        author=author,
        parent_route_id=str(parent) if parent not in (None, "") else None,
        waypoints=parse_waypoints(raw.get("waypoints")),
        path=parse_path(raw.get("path")),
        color=str(raw.get("color") or palette_color(route_id)),
        created_at=created_at,
        last_refined_at=last_refined_at,
        refinement_history=history,
        sync_status=sync_status if sync_status in SYNC_VALUES else None,
    )
    # A stale or foreign active id falls back to "latest wins".
    if find_refinement(route, active_id) is not None:
        route = route.model_copy(update={"active_refinement_id": active_id})
    return mirror_active(route)


MIN_WAYPOINTS = 2


def validate_route_guardrails(route: Route) -> None:
    """Checks a route must pass before the store accepts it."""
    if not route.name.strip():
        raise ValueError("Route name is required")
    if len(route.waypoints) < MIN_WAYPOINTS:
        raise ValueError(f"Route needs at least {MIN_WAYPOINTS} waypoints, got {len(route.waypoints)}")
    if polyline_length_m(straight_line_path(route.waypoints)) <= 0:
        raise ValueError("Route collapses to a single point")
