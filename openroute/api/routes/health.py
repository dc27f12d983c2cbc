# path: open-route-api/openroute/api/routes/health.py

from __future__ import annotations

from fastapi import APIRouter

router = APIRouter(tags=["health"])


@router.get("/health")
def health() -> dict:
    # Connectivity probe target; must stay cheap.
    return {"status": "ok"}
