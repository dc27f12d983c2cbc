# path: open-route-api/openroute/client/workspace.py

"""
Client-side route workspace.

Holds what a map UI shows (route list, selected route, proximity focus, the
draft being edited) and turns UI gestures into ledger, vote and sync
operations. UI events call in; nothing here renders.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Optional, Sequence
import logging
import random

from openroute.client.guide import GuideClient
from openroute.client.snapping import Debouncer, SnappingClient
from openroute.client.sync import PublishCooldown, SyncCoordinator
from openroute.client.vote_book import VoteBook
from openroute.core.errors import PublishRejected
from openroute.models.route_models import ROUTE_COLORS, DraftSeed, GuideAnalysis, Route, Waypoint
from openroute.services import lineage
from openroute.services.refinement_ledger import append_refinement, new_refinement, now_ms, resolve_active
from openroute.services.route_normalizer import MIN_WAYPOINTS
from openroute.services.votes import VoteGesture, VoteState
from openroute.utils.geo import path_passes_near, polyline_length_m, straight_line_path

logger = logging.getLogger(__name__)


class RouteWorkspace:
    def __init__(
        self,
        coordinator: SyncCoordinator,
        votes: VoteBook,
        cooldown: PublishCooldown,
        snapper: Optional[SnappingClient] = None,
        guide: Optional[GuideClient] = None,
        snap_debounce_s: float = 0.5,
        proximity_threshold_m: float = 120.0,
        clock: Callable[[], int] = now_ms,
        pick_color: Callable[[Sequence[str]], str] = random.choice,
    ):
        self.coordinator = coordinator
        self.votes = votes
        self.cooldown = cooldown
        self.snapper = snapper
        self.guide = guide
        self.proximity_threshold_m = proximity_threshold_m
        self.clock = clock
        self.pick_color = pick_color

        self.routes: List[Route] = []
        self.active_id: Optional[str] = None
        self.focused: Optional[Waypoint] = None
        self.draft: Optional[DraftSeed] = None
        self.analysis: Optional[GuideAnalysis] = None
        self.snapping = False
        self._debouncer = Debouncer(snap_debounce_s)

    # Browsing

    async def load(self) -> List[Route]:
        self.routes = await self.coordinator.load_routes()
        return self.routes

    def get(self, route_id: str) -> Optional[Route]:
        for r in self.routes:
            if r.id == route_id:
                return r
        return None

    @property
    def active_route(self) -> Optional[Route]:
        return self.get(self.active_id) if self.active_id else None

    def select(self, route_id: Optional[str]) -> Optional[Route]:
        if route_id != self.active_id:
            self.analysis = None
        self.active_id = route_id
        return self.active_route

    def focus(self, point: Waypoint) -> None:
        if self.draft is None:
            self.focused = point

    def clear_focus(self) -> None:
        self.focused = None

    def visible_routes(self) -> List[Route]:
        if self.focused is None:
            return list(self.routes)
        return [
            r
            for r in self.routes
            if path_passes_near(r.path, self.focused.lat, self.focused.lng, self.proximity_threshold_m)
        ]

    def fork_counts(self) -> Dict[str, int]:
        return lineage.fork_counts(self.routes)

    def _put(self, route: Route) -> None:
        for i, r in enumerate(self.routes):
            if r.id == route.id:
                self.routes[i] = route
                return
        self.routes.append(route)

    # Drafts

    def _begin(self, draft: DraftSeed) -> DraftSeed:
        self._debouncer.cancel()
        self.draft = draft
        self.select(None)
        self.focused = None
        return draft

    def _source(self, route_id: str) -> Route:
        route = self.get(route_id)
        if route is None:
            raise PublishRejected("That route is no longer available.")
        return route

    def begin_new(self) -> DraftSeed:
        return self._begin(DraftSeed(mode="new"))

    def begin_refine(self, route_id: str) -> DraftSeed:
        return self._begin(lineage.start_refine(self._source(route_id)))

    def begin_fork(self, route_id: str) -> DraftSeed:
        return self._begin(lineage.start_fork(self._source(route_id)))

    def cancel_draft(self) -> None:
        self._debouncer.cancel()
        self.draft = None

    def _edited(self) -> None:
        self.draft.path = straight_line_path(self.draft.waypoints)

    def add_waypoint(self, point: Waypoint) -> None:
        self.draft.waypoints.append(point)
        self._edited()

    def move_waypoint(self, index: int, point: Waypoint) -> None:
        self.draft.waypoints[index] = point
        self._edited()

    def undo_waypoint(self) -> None:
        if self.draft.waypoints:
            self.draft.waypoints.pop()
            self._edited()

    def request_snap(self) -> None:
        """Snap the draft once waypoint edits pause; each call restarts the wait."""
        if self.snapper is not None and self.draft is not None:
            self._debouncer.trigger(self.snap_draft)

    async def snap_draft(self) -> None:
        draft = self.draft
        if draft is None or self.snapper is None or len(draft.waypoints) < MIN_WAYPOINTS:
            return
        waypoints = [w.model_copy() for w in draft.waypoints]
        self.snapping = True
        try:
            path = await self.snapper.snap(waypoints)
        finally:
            self.snapping = False
        # Discard if the draft was replaced or edited while the request was out.
        if self.draft is draft and draft.waypoints == waypoints:
            draft.path = path

    # Publishing

    def validate_draft(self) -> DraftSeed:
        draft = self.draft
        if draft is None:
            raise PublishRejected("There is no route being edited.")
        if not draft.name.strip():
            raise PublishRejected("Please enter a route name.")
        if not draft.author.strip():
            raise PublishRejected("Please enter your name as the author.")
        if len(draft.waypoints) < MIN_WAYPOINTS:
            raise PublishRejected(f"Add at least {MIN_WAYPOINTS} waypoints to the map.")
        if polyline_length_m(straight_line_path(draft.waypoints)) <= 0:
            raise PublishRejected("Waypoints are all at the same spot. Spread them along the route.")
        if self.snapping or self._debouncer.pending:
            raise PublishRejected("Still smoothing the path, try again in a moment.")
        if draft.mode == "new":
            # refines keep their name and forks get a generated one
            dup = lineage.find_duplicate_name(draft.name, self.routes)
            if dup is not None:
                raise PublishRejected(f'A route named "{dup.name}" already exists. Refine it instead.')
        self.cooldown.check()
        return draft

    def build_route(self, draft: DraftSeed) -> Route:
        now = self.clock()
        waypoints = [w.model_copy() for w in draft.waypoints]
        path = list(draft.path) or straight_line_path(waypoints)
        author = draft.author.strip()
        refinement = new_refinement(author, created_at=now)

        if draft.mode == "refine":
            source = self._source(draft.editing_route_id)
            updated = source.model_copy(update={"waypoints": waypoints, "path": path})
            return append_refinement(updated, refinement)

        return Route(
            id=f"route-{now}",
            name=draft.name.strip(),
            author=author,
            parent_route_id=draft.parent_route_id if draft.mode == "fork" else None,
            waypoints=waypoints,
            path=path,
            color=self.pick_color(ROUTE_COLORS),
            score=refinement.score,
            votes=refinement.votes,
            created_at=now,
            last_refined_at=now,
            refinement_history=[refinement],
            active_refinement_id=refinement.id,
        )

    async def publish(self) -> Route:
        """Validate, build and save the draft. On rejection the draft is kept."""
        draft = self.validate_draft()
        route = self.build_route(draft)
        saved = await self.coordinator.save_route(route)
        if saved.sync_status == "error":
            raise PublishRejected("The route store refused this route. Your draft is still here.")
        self.cooldown.start()
        self._put(saved)
        self.draft = None
        self.select(saved.id)
        logger.info("Published %s route %s (%s)", draft.mode, saved.id, saved.sync_status)
        return saved

    # Votes and guide

    def vote_state(self) -> VoteState:
        route = self.active_route
        if route is None:
            return VoteState.NEUTRAL
        return self.votes.state(route.id, resolve_active(route).id)

    async def vote(self, gesture: VoteGesture) -> Optional[Route]:
        route = self.active_route
        if route is None:
            return None
        refinement = resolve_active(route)
        delta, new_value = self.votes.plan(route.id, refinement.id, int(gesture))
        updated = await self.coordinator.apply_vote(route.id, refinement.id, delta)
        self.votes.set(route.id, refinement.id, new_value)
        self._put(updated)
        return updated

    async def analyze_active(self) -> Optional[GuideAnalysis]:
        route = self.active_route
        if route is None or self.guide is None:
            return None
        self.analysis = None
        result = await self.guide.analyze(route.name)
        if self.active_id != route.id:
            logger.debug("Discarding guide for %s, selection moved on", route.id)
            return None
        self.analysis = result
        return result
