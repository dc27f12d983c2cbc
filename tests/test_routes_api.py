# tests/test_routes_api.py
import httpx
from fastapi.testclient import TestClient

from openroute.services.guide_generator import GuideGenerator

from conftest import make_route


def _publish(client, route):
    res = client.post("/api/routes", json=route.to_wire())
    assert res.status_code == 201, res.text
    return res.json()


def test_create_list_and_get(app):
    client = TestClient(app)
    body = _publish(client, make_route())
    assert body["id"] == "route-1"
    assert body["syncStatus"] is None
    assert body["refinementHistory"][0]["score"] == 1

    listed = client.get("/api/routes").json()
    assert [r["id"] for r in listed] == ["route-1"]
    assert client.get("/api/routes/route-1").json()["name"] == "PITX - Monumento"
    assert client.get("/api/routes/missing").status_code == 404


def test_legacy_flat_payload_is_normalized(app):
    client = TestClient(app)
    res = client.post(
        "/api/routes",
        json={
            "id": "old-1",
            "name": "Legacy",
            "author": "Dee",
            "waypoints": [{"lat": 14.6, "lng": 120.98}, {"lat": 14.61, "lng": 120.99}],
            "score": 3,
            "votes": 3,
            "createdAt": 1000,
        },
    )
    assert res.status_code == 201
    body = res.json()
    assert body["refinementHistory"][0]["id"] == "old-1-r0"
    assert body["score"] == 3
    # straight line filled in when no path was sent
    assert body["path"] == [[14.6, 120.98], [14.61, 120.99]]


def test_rejects_unpublishable_routes(app):
    client = TestClient(app)
    one_point = make_route(waypoints=((14.6, 120.98),)).to_wire()
    assert client.post("/api/routes", json=one_point).status_code == 400
    assert client.post("/api/routes", json={"name": "no id"}).status_code == 400
    assert client.post("/api/routes", json={"id": "x", "name": "n", "waypoints": 5}).status_code == 400
    assert client.post("/api/routes", json={"id": "x", "name": "n", "waypoints": "7", "path": True}).status_code == 400
    assert client.get("/api/routes").json() == []


def test_vote_targets_refinement(app):
    client = TestClient(app)
    _publish(client, make_route())

    res = client.patch("/api/routes/route-1/refinements/route-1-r0/vote", json={"delta": 1})
    assert res.status_code == 200
    body = res.json()
    assert (body["score"], body["votes"]) == (2, 2)

    res = client.patch("/api/routes/route-1/vote", json={"delta": -2})
    assert (res.json()["score"], res.json()["votes"]) == (0, 3)

    assert client.patch("/api/routes/route-1/refinements/nope/vote", json={"delta": 1}).status_code == 404
    assert client.patch("/api/routes/nope/vote", json={"delta": 1}).status_code == 404
    assert client.patch("/api/routes/route-1/vote", json={"delta": 0}).status_code == 422
    assert client.patch("/api/routes/route-1/vote", json={"delta": 5}).status_code == 422


def test_upsert_keeps_stored_tallies_and_appends_refinements(app):
    client = TestClient(app)
    route = make_route()
    _publish(client, route)
    client.patch("/api/routes/route-1/refinements/route-1-r0/vote", json={"delta": 1})

    # a stale client copy (score 1) plus a new refinement
    stale = route.to_wire()
    stale["refinementHistory"].append(
        {"id": "r1", "contributor": "Ben", "createdAt": route.created_at + 10, "score": 1, "votes": 1}
    )
    stale["activeRefinementId"] = "r1"
    stale["author"] = "Mallory"
    res = client.post("/api/routes", json=stale)
    assert res.status_code == 200
    body = res.json()

    tallies = {r["id"]: (r["score"], r["votes"]) for r in body["refinementHistory"]}
    assert tallies == {"route-1-r0": (2, 2), "r1": (1, 1)}
    assert body["activeRefinementId"] == "r1"
    assert body["author"] == "Ana"


def test_forks_and_proximity_filters(app):
    client = TestClient(app)
    _publish(client, make_route("a", name="A"))
    _publish(client, make_route("b", name="B", parent_route_id="a", waypoints=((10.0, 120.0), (10.01, 120.01))))

    assert [r["id"] for r in client.get("/api/routes/a/forks").json()] == ["b"]
    assert [r["id"] for r in client.get("/api/routes", params={"parent": "a"}).json()] == ["b"]
    assert client.get("/api/routes/zzz/forks").status_code == 404

    near = client.get("/api/routes", params={"lat": 14.6001, "lng": 120.98}).json()
    assert [r["id"] for r in near] == ["a"]
    assert client.get("/api/routes", params={"lat": 14.6}).status_code == 400


def test_health(app):
    assert TestClient(app).get("/api/health").json() == {"status": "ok"}


def test_analyze_without_service_is_502(app):
    res = TestClient(app).post("/api/analyze", json={"routeName": "PITX - Monumento"})
    assert res.status_code == 502
    assert res.json()["landmarks"] == []


def test_analyze_forwards_to_guide_service(app):
    seen = {}

    def handler(request):
        seen["body"] = request.read()
        return httpx.Response(200, json={"guide": "Ride north.", "landmarks": ["SM Mall"], "tips": ["Bring coins"]})

    app.state.guide_generator = GuideGenerator("http://guide.test/generate", transport=httpx.MockTransport(handler))
    res = TestClient(app).post("/api/analyze", json={"routeName": "PITX - Monumento"})
    assert res.status_code == 200
    assert res.json()["landmarks"] == ["SM Mall"]
    assert b"PITX - Monumento" in seen["body"]
