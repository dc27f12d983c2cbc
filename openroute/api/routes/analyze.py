# path: open-route-api/openroute/api/routes/analyze.py

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from openroute.api.deps import get_guide_generator
from openroute.models.route_models import AnalyzeRequest, GuideAnalysis
from openroute.services.guide_generator import GENERATION_FAILED, GuideGenerator

router = APIRouter(tags=["analyze"])


@router.post("/analyze", response_model=GuideAnalysis)
def analyze_route(body: AnalyzeRequest, generator: GuideGenerator = Depends(get_guide_generator)):
    analysis = generator.generate(body.route_name)
    if analysis == GENERATION_FAILED:
        # clients substitute their own unavailable message on non-2xx
        return JSONResponse(status_code=502, content=analysis.model_dump())
    return analysis
