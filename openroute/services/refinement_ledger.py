# path: open-route-api/openroute/services/refinement_ledger.py

"""
Per-route refinement history.

A route's refinement list is append-only and kept sorted by ``created_at``
(ties keep insertion order). The route-level ``score``/``votes`` are a cache
of the active refinement's tally and are recomputed, never counted on their
own.
"""

from __future__ import annotations

from typing import List, Optional
import time
import uuid

from openroute.models.route_models import Refinement, Route


INITIAL_SCORE = 1
INITIAL_VOTES = 1


def now_ms() -> int:
    return int(time.time() * 1000)


def sort_history(history: List[Refinement]) -> List[Refinement]:
    # sorted() is stable, so equal timestamps stay in insertion order
    return sorted(history, key=lambda r: r.created_at)


def new_refinement(contributor: str, created_at: Optional[int] = None) -> Refinement:
    return Refinement(
        id=f"ref-{uuid.uuid4().hex}",
        contributor=contributor,
        created_at=now_ms() if created_at is None else created_at,
        score=INITIAL_SCORE,
        votes=INITIAL_VOTES,
    )


def find_refinement(route: Route, refinement_id: Optional[str]) -> Optional[Refinement]:
    if refinement_id is None:
        return None
    for refinement in route.refinement_history:
        if refinement.id == refinement_id:
            return refinement
    return None


def resolve_active(route: Route) -> Refinement:
    """The refinement named by active_refinement_id, else the latest one."""
    active = find_refinement(route, route.active_refinement_id)
    if active is not None:
        return active
    # History is sorted, so the last entry is the latest (and the later of any tie).
    return route.refinement_history[-1]


def mirror_active(route: Route) -> Route:
    active = resolve_active(route)
    return route.model_copy(update={"score": active.score, "votes": active.votes})


def append_refinement(route: Route, refinement: Refinement) -> Route:
    history = sort_history([*route.refinement_history, refinement])
    updated = route.model_copy(
        update={
            "refinement_history": history,
            "active_refinement_id": refinement.id,
            "last_refined_at": refinement.created_at,
        }
    )
    return mirror_active(updated)


def replace_refinement(route: Route, refinement: Refinement) -> Route:
    """Swap in a new tally for an existing refinement and re-mirror the route."""
    history = [refinement if r.id == refinement.id else r for r in route.refinement_history]
    return mirror_active(route.model_copy(update={"refinement_history": history}))
