# path: open-route-api/openroute/services/route_store.py

"""
SQLite-backed authoritative route store.

One row per route; the normalized route is kept as a JSON payload next to a
few columns used for ordering. Refinement tallies held here are the source of
truth; clients only ever approximate them while offline.
"""

from __future__ import annotations

from contextlib import closing
from pathlib import Path
from typing import List, Optional, Tuple
import json
import logging
import sqlite3

from openroute.core.errors import RouteNotFound, VoteTargetMissing
from openroute.models.route_models import Route
from openroute.services.refinement_ledger import (
    find_refinement,
    now_ms,
    replace_refinement,
    resolve_active,
    sort_history,
)
from openroute.services.route_normalizer import normalize_route

logger = logging.getLogger(__name__)


SCHEMA = """
CREATE TABLE IF NOT EXISTS routes (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    parent_route_id TEXT,
    score INTEGER DEFAULT 0,
    created_at INTEGER,
    payload TEXT NOT NULL
)
"""


def merge_routes(stored: Route, incoming: Route) -> Route:
    """
    Upsert merge: descriptive fields come from the incoming copy, tallies of
    refinements the store already knows stay as stored, and unseen refinements
    are appended.
    """
    known = {r.id for r in stored.refinement_history}
    history = list(stored.refinement_history)
    for refinement in incoming.refinement_history:
        if refinement.id not in known:
            history.append(refinement)
    history = sort_history(history)

    active_id = incoming.active_refinement_id or stored.active_refinement_id
    merged = stored.model_copy(
        update={
            "name": incoming.name,
            "waypoints": incoming.waypoints,
            "path": incoming.path,
            "color": incoming.color,
            "last_refined_at": max(stored.last_refined_at, incoming.last_refined_at),
            "refinement_history": history,
            "active_refinement_id": active_id,
        }
    )
    # author and parent are fixed at creation
    return normalize_route(merged)


class RouteRepository:
    def __init__(self, db_path: Path | str):
        self.db_path = str(db_path)

    def _connect(self) -> sqlite3.Connection:
        con = sqlite3.connect(self.db_path)
        con.execute(SCHEMA)
        return con

    def _write(self, con: sqlite3.Connection, route: Route) -> Route:
        stored = route.model_copy(update={"sync_status": None})
        con.execute(
            """
            INSERT INTO routes (id, name, parent_route_id, score, created_at, payload)
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                name=excluded.name, score=excluded.score, payload=excluded.payload
            """,
            (
                stored.id,
                stored.name,
                stored.parent_route_id,
                stored.score,
                stored.created_at,
                json.dumps(stored.to_wire(), separators=(",", ":")),
            ),
        )
        return stored

    @staticmethod
    def _load(row) -> Route:
        return normalize_route(json.loads(row[0]))

    def _get(self, con: sqlite3.Connection, route_id: str) -> Optional[Route]:
        row = con.execute("SELECT payload FROM routes WHERE id = ?", (route_id,)).fetchone()
        return self._load(row) if row else None

    def list_routes(self, parent_id: Optional[str] = None) -> List[Route]:
        with closing(self._connect()) as con:
            if parent_id is None:
                rows = con.execute("SELECT payload FROM routes ORDER BY score DESC, created_at ASC").fetchall()
            else:
                rows = con.execute(
                    "SELECT payload FROM routes WHERE parent_route_id = ? ORDER BY score DESC, created_at ASC",
                    (parent_id,),
                ).fetchall()
        return [self._load(row) for row in rows]

    def get_route(self, route_id: str) -> Route:
        with closing(self._connect()) as con:
            route = self._get(con, route_id)
        if route is None:
            raise RouteNotFound(route_id)
        return route

    def upsert_route(self, incoming: Route) -> Tuple[Route, bool]:
        """Insert or merge a route; the flag is True when the id was new."""
        incoming = normalize_route(incoming, fallback_ms=now_ms())
        with closing(self._connect()) as con:
            con.execute("BEGIN IMMEDIATE")
            try:
                stored = self._get(con, incoming.id)
                route = incoming if stored is None else merge_routes(stored, incoming)
                route = self._write(con, route)
                con.commit()
            except Exception:
                con.rollback()
                raise
        logger.info(
            "%s route %s (%d refinements)", "Created" if stored is None else "Updated", route.id, len(route.refinement_history)
        )
        return route, stored is None

    def vote(self, route_id: str, refinement_id: Optional[str], delta: int) -> Route:
        """Apply delta to one refinement; None targets the active refinement."""
        with closing(self._connect()) as con:
            con.execute("BEGIN IMMEDIATE")
            try:
                route = self._get(con, route_id)
                if route is None:
                    raise RouteNotFound(route_id)
                target = resolve_active(route) if refinement_id is None else find_refinement(route, refinement_id)
                if target is None:
                    raise VoteTargetMissing(route_id, refinement_id)
                updated = target.model_copy(update={"score": target.score + delta, "votes": target.votes + 1})
                route = replace_refinement(route, updated)
                route = self._write(con, route)
                con.commit()
            except Exception:
                con.rollback()
                raise
        logger.info("Vote %+d on %s:%s -> score=%d", delta, route_id, target.id, updated.score)
        return route
