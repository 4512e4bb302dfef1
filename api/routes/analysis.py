from __future__ import annotations

from fastapi import APIRouter

from api.schemas import AnalysisRequest, AnalysisResponse
from api.services.analysis import run_analysis

router = APIRouter(prefix="/analysis", tags=["analysis"])


@router.post("", response_model=AnalysisResponse)
async def create_analysis(payload: AnalysisRequest) -> AnalysisResponse:
    """
    Analyze one clip's per-frame detections and pose landmarks. Invalid analysis
    settings or calibration are rejected with 400 before any processing.
    """
    return await run_analysis(payload)
