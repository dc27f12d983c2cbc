# tests/test_workspace.py
import asyncio

import httpx
import pytest

from openroute.client.factory import build_client
from openroute.client.sync import PublishCooldown, SyncCoordinator
from openroute.client.vote_book import VoteBook
from openroute.client.workspace import RouteWorkspace
from openroute.core.errors import CooldownActive, PublishRejected, StoreRejected
from openroute.models.route_models import GUIDE_UNAVAILABLE, GuideAnalysis, Waypoint
from openroute.services.refinement_ledger import resolve_active
from openroute.services.votes import VoteGesture, VoteState

from conftest import FakeStore, make_route


class Clock:
    def __init__(self, start=1_700_000_000_000):
        self.now = start

    def __call__(self):
        self.now += 1000
        return self.now


def _workspace(cache, store, cooldown_s=0.0, **kwargs):
    return RouteWorkspace(
        SyncCoordinator(store, cache),
        VoteBook(cache),
        PublishCooldown(cooldown_s),
        clock=Clock(),
        pick_color=lambda colors: colors[0],
        **kwargs,
    )


def _draw(ws, name, author, points=((14.60, 120.98), (14.61, 120.99))):
    ws.draft.name = name
    ws.draft.author = author
    for lat, lng in points:
        ws.add_waypoint(Waypoint(lat=lat, lng=lng))


def test_publish_new_route(cache, store):
    ws = _workspace(cache, store)
    ws.begin_new()
    _draw(ws, "PITX - Monumento", "Ana")
    route = asyncio.run(ws.publish())

    assert route.sync_status == "synced"
    assert route.author == "Ana"
    assert len(route.refinement_history) == 1
    assert (route.score, route.votes) == (1, 1)
    assert route.path == [(14.60, 120.98), (14.61, 120.99)]
    assert ws.draft is None
    assert ws.active_route.id == route.id


@pytest.mark.parametrize(
    "name,author,points,message",
    [
        ("", "Ana", ((1, 1), (2, 2)), "route name"),
        ("X", "  ", ((1, 1), (2, 2)), "author"),
        ("X", "Ana", ((1, 1),), "at least 2"),
        ("X", "Ana", ((14.6, 120.98), (14.6, 120.98)), "same spot"),
    ],
)
def test_validation_rejects_and_keeps_draft(cache, store, name, author, points, message):
    ws = _workspace(cache, store)
    ws.begin_new()
    _draw(ws, name, author, points)
    with pytest.raises(PublishRejected, match=message):
        asyncio.run(ws.publish())
    assert ws.draft is not None
    assert len(ws.draft.waypoints) == len(points)
    assert store.saved == []


def test_duplicate_name_rejected_for_new_but_not_refine(cache, store):
    ws = _workspace(cache, store)
    ws.begin_new()
    _draw(ws, "PITX - Monumento", "Ana")
    original = asyncio.run(ws.publish())

    ws.begin_new()
    _draw(ws, "pitx -   monumento", "Ben")
    with pytest.raises(PublishRejected, match="already exists"):
        asyncio.run(ws.publish())
    assert ws.draft.name == "pitx -   monumento"

    ws.begin_refine(original.id)
    ws.draft.author = "Ben"
    ws.add_waypoint(Waypoint(lat=14.62, lng=121.0))
    refined = asyncio.run(ws.publish())

    assert refined.id == original.id
    assert refined.name == "PITX - Monumento"
    assert refined.author == "Ana"
    assert len(refined.refinement_history) == 2
    assert refined.active_refinement_id == refined.refinement_history[-1].id
    assert refined.refinement_history[-1].contributor == "Ben"
    assert len(refined.waypoints) == 3
    assert len(ws.routes) == 1


def test_fork_creates_linked_route_and_leaves_source_alone(cache, store):
    ws = _workspace(cache, store)
    ws.begin_new()
    _draw(ws, "PITX - Monumento", "Ana")
    source = asyncio.run(ws.publish())

    draft = ws.begin_fork(source.id)
    assert draft.name == "Fork from Ana - PITX - Monumento"
    with pytest.raises(PublishRejected, match="author"):
        asyncio.run(ws.publish())

    ws.draft.author = "Cy"
    ws.move_waypoint(0, Waypoint(lat=14.55, lng=120.95))
    fork = asyncio.run(ws.publish())

    assert fork.id != source.id
    assert fork.parent_route_id == source.id
    assert ws.get(source.id).waypoints[0].lat == 14.60
    assert ws.fork_counts() == {source.id: 1, fork.id: 0}


def test_cooldown_blocks_second_publish(cache, store):
    ws = _workspace(cache, store, cooldown_s=60.0)
    ws.begin_new()
    _draw(ws, "A", "Ana")
    asyncio.run(ws.publish())
    ws.begin_new()
    _draw(ws, "B", "Ana")
    with pytest.raises(CooldownActive):
        asyncio.run(ws.publish())
    assert ws.draft.name == "B"


def test_store_refusal_keeps_draft_and_skips_cooldown(cache):
    class RefusingStore(FakeStore):
        async def save_route(self, route):
            raise StoreRejected("400 Route name is required", status_code=400)

    ws = _workspace(cache, RefusingStore(), cooldown_s=60.0)
    ws.begin_new()
    _draw(ws, "A", "Ana")
    with pytest.raises(PublishRejected, match="refused"):
        asyncio.run(ws.publish())
    assert ws.draft is not None
    assert ws.draft.name == "A"
    assert ws.cooldown.remaining() == 0.0
    assert ws.routes == []


def test_offline_publish_is_pending(cache):
    ws = _workspace(cache, FakeStore(online=False))
    ws.begin_new()
    _draw(ws, "A", "Ana")
    route = asyncio.run(ws.publish())
    assert route.sync_status == "pending"
    assert cache.get_route(route.id).sync_status == "pending"


def test_vote_toggles_per_refinement(cache, store):
    ws = _workspace(cache, store)
    ws.begin_new()
    _draw(ws, "A", "Ana")
    route = asyncio.run(ws.publish())

    asyncio.run(ws.vote(VoteGesture.LIKE))
    assert ws.vote_state() is VoteState.LIKED
    asyncio.run(ws.vote(VoteGesture.DISLIKE))
    assert ws.vote_state() is VoteState.DISLIKED
    assert [d for _, _, d in store.votes] == [1, -2]

    ws.begin_refine(route.id)
    ws.add_waypoint(Waypoint(lat=14.62, lng=121.0))
    refined = asyncio.run(ws.publish())
    ws.select(refined.id)
    # new refinement starts neutral for this client
    assert ws.vote_state() is VoteState.NEUTRAL
    updated = asyncio.run(ws.vote(VoteGesture.LIKE))
    assert updated.score == resolve_active(updated).score == 2


def test_vote_without_selection_is_noop(cache, store):
    assert asyncio.run(_workspace(cache, store).vote(VoteGesture.LIKE)) is None


def test_proximity_focus(cache, store):
    ws = _workspace(cache, store)
    ws.routes = [make_route("a", name="A"), make_route("b", name="B", waypoints=((10.0, 120.0), (10.1, 120.1)))]
    ws.focus(Waypoint(lat=14.6003, lng=120.9801))
    assert [r.id for r in ws.visible_routes()] == ["a"]
    ws.clear_focus()
    assert len(ws.visible_routes()) == 2


class SlowGuide:
    def __init__(self):
        self.release = None

    async def analyze(self, name):
        await self.release.wait()
        return GuideAnalysis(guide=f"Guide for {name}", landmarks=["Plaza"], tips=[])


def test_stale_guide_is_discarded(cache, store):
    guide = SlowGuide()
    ws = _workspace(cache, store, guide=guide)
    ws.routes = [make_route("a", name="A"), make_route("b", name="B")]

    async def scenario():
        guide.release = asyncio.Event()
        ws.select("a")
        pending = asyncio.create_task(ws.analyze_active())
        await asyncio.sleep(0)
        ws.select("b")
        guide.release.set()
        return await pending

    assert asyncio.run(scenario()) is None
    assert ws.analysis is None

    async def current():
        guide.release = asyncio.Event()
        guide.release.set()
        return await ws.analyze_active()

    assert asyncio.run(current()).guide == "Guide for B"


class FakeSnapper:
    def __init__(self):
        self.calls = 0

    async def snap(self, waypoints):
        self.calls += 1
        return [(w.lat, w.lng) for w in waypoints] + [(0.0, 0.0)]


def test_snap_is_debounced_and_blocks_publish_until_done(cache, store):
    snapper = FakeSnapper()
    ws = _workspace(cache, store, snapper=snapper, snap_debounce_s=0.02)
    ws.begin_new()
    _draw(ws, "A", "Ana")

    async def scenario():
        ws.request_snap()
        ws.add_waypoint(Waypoint(lat=14.62, lng=121.0))
        ws.request_snap()
        with pytest.raises(PublishRejected, match="smoothing"):
            await ws.publish()
        await asyncio.sleep(0.1)
        return await ws.publish()

    route = asyncio.run(scenario())
    assert snapper.calls == 1
    assert route.path[-1] == (0.0, 0.0)
    assert len(route.path) == 4


def test_scenario_against_real_api(app, settings):
    """Create, like, un-like through the HTTP store; tallies come from the server."""
    runtime = build_client(settings.model_copy(update={"api_base_url": "http://test/api"}), transport=httpx.ASGITransport(app=app))
    ws = runtime.workspace
    ws.snapper = None

    async def scenario():
        ws.begin_new()
        _draw(ws, "PITX - Monumento", "Ana")
        created = await ws.publish()
        initial = resolve_active(created)
        liked = await ws.vote(VoteGesture.LIKE)
        unliked = await ws.vote(VoteGesture.LIKE)
        analysis = await ws.analyze_active()
        reloaded = await ws.load()
        await runtime.aclose()
        return created, initial, liked, unliked, analysis, reloaded

    created, initial, liked, unliked, analysis, reloaded = asyncio.run(scenario())
    assert created.sync_status == "synced"
    assert (initial.score, initial.votes) == (1, 1)
    assert (liked.score, liked.votes) == (2, 2)
    assert (unliked.score, unliked.votes) == (1, 3)
    assert ws.vote_state() is VoteState.NEUTRAL
    # no guide service configured server-side
    assert analysis == GUIDE_UNAVAILABLE
    assert [r.id for r in reloaded] == [created.id]
    assert reloaded[0].votes == 3
