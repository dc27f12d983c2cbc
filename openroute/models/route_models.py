# path: open-route-api/openroute/models/route_models.py

from __future__ import annotations

from typing import List, Literal, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


SyncStatus = Literal["synced", "pending", "error"]
DraftMode = Literal["new", "refine", "fork"]

ROUTE_COLORS = (
    "#ef4444",
    "#3b82f6",
    "#10b981",
    "#f59e0b",
    "#8b5cf6",
    "#ec4899",
    "#06b6d4",
)


class WireModel(BaseModel):
    # camelCase on the wire, snake_case in Python
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class Waypoint(WireModel):
    lat: float = Field(ge=-90.0, le=90.0)
    lng: float = Field(ge=-180.0, le=180.0)


class Refinement(WireModel):
    id: str
    contributor: str = ""
    created_at: int
    score: int = 0
    votes: int = Field(default=0, ge=0)


class Route(WireModel):
    id: str
    name: str
    author: str = ""
    parent_route_id: Optional[str] = None
    waypoints: List[Waypoint] = Field(default_factory=list)
    path: List[Tuple[float, float]] = Field(default_factory=list)  # (lat, lng)
    color: str = ROUTE_COLORS[1]
    score: int = 0
    votes: int = 0
    created_at: int
    last_refined_at: int
    refinement_history: List[Refinement]
    active_refinement_id: Optional[str] = None
    sync_status: Optional[SyncStatus] = None

    @field_validator("refinement_history")
    @classmethod
    def validate_history(cls, history: List[Refinement]):
        if not history:
            raise ValueError("refinement_history must contain at least one refinement")
        for prev, cur in zip(history, history[1:]):
            if cur.created_at < prev.created_at:
                raise ValueError("refinement_history must be sorted by created_at")
        return history


class DraftSeed(WireModel):
    """Starting point for the route editor: a new route, a refine or a fork."""

    mode: DraftMode = "new"
    name: str = ""
    author: str = ""
    waypoints: List[Waypoint] = Field(default_factory=list)
    path: List[Tuple[float, float]] = Field(default_factory=list)
    parent_route_id: Optional[str] = None
    editing_route_id: Optional[str] = None


class VoteRequest(BaseModel):
    delta: int = Field(ge=-2, le=2)

    @field_validator("delta")
    @classmethod
    def validate_delta(cls, delta: int):
        if delta == 0:
            raise ValueError("delta must be non-zero")
        return delta


class AnalyzeRequest(WireModel):
    route_name: str = Field(min_length=1, max_length=200)


class GuideAnalysis(BaseModel):
    guide: str
    landmarks: List[str] = Field(default_factory=list)
    tips: List[str] = Field(default_factory=list)


GUIDE_UNAVAILABLE = GuideAnalysis(
    guide="Commuter guide unavailable. Check your connection and try again.",
    landmarks=[],
    tips=[],
)
