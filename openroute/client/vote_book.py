# path: open-route-api/openroute/client/vote_book.py

from __future__ import annotations

from typing import Dict, Tuple

from openroute.client.local_cache import VOTES_KEY, LocalCache
from openroute.services.votes import VoteState, vote_adjustment


def vote_key(route_id: str, refinement_id: str) -> str:
    return f"{route_id}:{refinement_id}"


class VoteBook:
    """What this client last asserted for each (route, refinement) pair."""

    def __init__(self, cache: LocalCache):
        self.cache = cache

    def _votes(self) -> Dict[str, int]:
        votes = self.cache.get(VOTES_KEY, {}) or {}
        return votes if isinstance(votes, dict) else {}

    def get(self, route_id: str, refinement_id: str) -> int:
        value = self._votes().get(vote_key(route_id, refinement_id), 0)
        return value if value in (-1, 0, 1) else 0

    def state(self, route_id: str, refinement_id: str) -> VoteState:
        return VoteState.from_value(self.get(route_id, refinement_id))

    def set(self, route_id: str, refinement_id: str, value: int) -> None:
        votes = self._votes()
        key = vote_key(route_id, refinement_id)
        if value == 0:
            votes.pop(key, None)
        else:
            votes[key] = value
        self.cache.set(VOTES_KEY, votes)

    def plan(self, route_id: str, refinement_id: str, requested: int) -> Tuple[int, int]:
        """(delta, new_value) for a gesture; nothing is recorded yet."""
        return vote_adjustment(requested, self.get(route_id, refinement_id))
