# path: open-route-api/openroute/services/lineage.py

from __future__ import annotations

from typing import Dict, Iterable, List, Optional
import re

from openroute.models.route_models import DraftSeed, Route


def fork_counts(routes: Iterable[Route]) -> Dict[str, int]:
    routes = list(routes)
    counts = {r.id: 0 for r in routes}
    for r in routes:
        if r.parent_route_id is not None and r.parent_route_id in counts:
            counts[r.parent_route_id] += 1
    return counts


def filter_by_parent(routes: Iterable[Route], parent_id: str) -> List[Route]:
    return [r for r in routes if r.parent_route_id == parent_id]


def start_fork(source: Route) -> DraftSeed:
    # model_copy(deep=True) so editing the draft never touches source.waypoints
    return DraftSeed(
        mode="fork",
        name=f"Fork from {source.author} - {source.name}",
        author="",
        waypoints=[w.model_copy(deep=True) for w in source.waypoints],
        path=list(source.path),
        parent_route_id=source.id,
    )


def start_refine(source: Route) -> DraftSeed:
    return DraftSeed(
        mode="refine",
        name=source.name,
        author=source.author,
        waypoints=[w.model_copy(deep=True) for w in source.waypoints],
        path=list(source.path),
        parent_route_id=source.parent_route_id,
        editing_route_id=source.id,
    )


def normalize_route_name(name: str) -> str:
    return re.sub(r"\s+", " ", name).strip().casefold()


def find_duplicate_name(name: str, routes: Iterable[Route], exclude_id: Optional[str] = None) -> Optional[Route]:
    wanted = normalize_route_name(name)
    for r in routes:
        if r.id != exclude_id and normalize_route_name(r.name) == wanted:
            return r
    return None
