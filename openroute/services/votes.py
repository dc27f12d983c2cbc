# path: open-route-api/openroute/services/votes.py

"""
Vote arithmetic.

A client's vote on one refinement is -1, 0 or +1. A like/dislike gesture is
turned into the signed delta the store has to apply so that the refinement's
score reflects the client's new vote.
"""

from __future__ import annotations

from enum import Enum, IntEnum
from typing import Tuple

from openroute.core.errors import VoteTargetMissing
from openroute.models.route_models import Route
from openroute.services.refinement_ledger import find_refinement, replace_refinement


class VoteGesture(IntEnum):
    LIKE = 1
    DISLIKE = -1


class VoteState(str, Enum):
    NEUTRAL = "neutral"
    LIKED = "liked"
    DISLIKED = "disliked"

    @classmethod
    def from_value(cls, value: int) -> "VoteState":
        if value > 0:
            return cls.LIKED
        if value < 0:
            return cls.DISLIKED
        return cls.NEUTRAL


def vote_adjustment(requested: int, current: int) -> Tuple[int, int]:
    """
    Returns (delta, new_value).

    Repeating the current vote withdraws it; otherwise the old vote is
    replaced, so liked -> dislike is -2.
    """
    if requested not in (1, -1):
        raise ValueError(f"requested vote must be +1 or -1, got {requested}")
    if current not in (-1, 0, 1):
        raise ValueError(f"current vote must be -1, 0 or +1, got {current}")
    if requested == current:
        return -current, 0
    return requested - current, requested


def apply_local_vote(route: Route, refinement_id: str, delta: int) -> Route:
    """
    Degraded-mode vote: adjust the cached tally without the store.

    Best effort only. The store's tally replaces this the next time the route
    is fetched from it.
    """
    target = find_refinement(route, refinement_id)
    if target is None:
        raise VoteTargetMissing(route.id, refinement_id)
    updated = target.model_copy(
        update={"score": target.score + delta, "votes": max(0, target.votes + 1)}
    )
    return replace_refinement(route, updated)
