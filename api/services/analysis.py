"""
Service helpers bridging API payloads and the barpath analysis pipeline.
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from fastapi import HTTPException

from api.schemas import AnalysisRequest, AnalysisResponse, LandmarksModel, PointModel
from barpath.config import ConfigurationError
from barpath.io.export import result_to_dict
from barpath.pipeline import analyze_clip
from barpath.results import AnalysisResult
from barpath.vision.detections import BoundingBox, Detection, Point, PoseLandmarks

logger = logging.getLogger(__name__)


def _to_point(value: Optional[PointModel]) -> Optional[Point]:
    return None if value is None else Point(value.x, value.y)


def _to_landmarks(model: Optional[LandmarksModel]) -> Optional[PoseLandmarks]:
    if model is None:
        return None
    return PoseLandmarks(
        left_wrist=_to_point(model.left_wrist),
        right_wrist=_to_point(model.right_wrist),
        left_elbow=_to_point(model.left_elbow),
        right_elbow=_to_point(model.right_elbow),
        left_hip=_to_point(model.left_hip),
        right_hip=_to_point(model.right_hip),
        visibility=model.visibility,
    )


def _to_detections(payload: AnalysisRequest) -> List[List[Detection]]:
    return [
        [
            Detection(box=BoundingBox(d.x, d.y, d.width, d.height), confidence=d.confidence)
            for d in frame.detections
        ]
        for frame in payload.frames
    ]


def to_response(result: AnalysisResult) -> AnalysisResponse:
    return AnalysisResponse.model_validate(result_to_dict(result))


async def run_analysis(payload: AnalysisRequest) -> AnalysisResponse:
    """
    Run the pipeline for one clip in a worker thread and return the serialized result.
    """
    detections = _to_detections(payload)
    landmarks = [_to_landmarks(frame.landmarks) for frame in payload.frames]

    try:
        settings = payload.settings.to_settings()
        calibration = payload.calibration.to_calibration()
        result = await asyncio.to_thread(
            analyze_clip,
            detections,
            landmarks,
            payload.fps,
            settings,
            calibration,
        )
    except ConfigurationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    logger.info("Analyzed %d frames, %d reps", len(result.frames), result.total_reps)
    return to_response(result)
