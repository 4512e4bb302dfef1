"""End-to-end analysis of one clip's detector and pose output.

Stages run strictly in order, each consuming the complete output of the
previous one::

    select_track -> fill_gaps -> smooth_path -> vertical_velocities
        -> detect_lift_windows -> aggregate_reps

The run keeps no state outside this call, so separate clips can be analyzed
concurrently from different threads.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from barpath.config import AnalysisSettings, Calibration, ConfigurationError, validate_fps
from barpath.repdetect.baseline import RepMetric, aggregate_reps, detect_lift_windows
from barpath.results import AnalysisResult, FrameRecord
from barpath.signals.kinematics import vertical_velocities
from barpath.signals.smoothing import filter_for, smooth_path
from barpath.signals.tracking import fill_gaps, select_track
from barpath.vision.detections import Detection, FrameObservation, Point, PoseLandmarks

logger = logging.getLogger(__name__)


def _landmarks_at(
    landmarks: Sequence[Optional[PoseLandmarks]], index: int
) -> Optional[PoseLandmarks]:
    return landmarks[index] if 0 <= index < len(landmarks) else None


def _owning_rep(reps: Sequence[RepMetric], frame_index: int) -> Optional[int]:
    for rep in reps:
        if rep.contains(frame_index):
            return rep.rep_number
    return None


def build_frame_records(
    points: Sequence[Optional[Point]],
    velocities: Sequence[Optional[float]],
    reps: Sequence[RepMetric],
    landmarks: Sequence[Optional[PoseLandmarks]],
    fps: float,
) -> List[FrameRecord]:
    """Zip per-frame stage outputs into FrameRecords, one per point."""
    frame_ms = 1000.0 / fps
    records: List[FrameRecord] = []
    for index, point in enumerate(points):
        pose = _landmarks_at(landmarks, index)
        velocity = velocities[index] if index < len(velocities) else None
        records.append(
            FrameRecord(
                frame=index,
                timestamp_ms=index * frame_ms,
                bar_x=point.x if point is not None else None,
                bar_y=point.y if point is not None else None,
                bar_vy=velocity,
                rep_id=_owning_rep(reps, index),
                wrist_l_x=pose.left_wrist.x if pose is not None else None,
                wrist_l_y=pose.left_wrist.y if pose is not None else None,
                wrist_r_x=pose.right_wrist.x if pose is not None else None,
                wrist_r_y=pose.right_wrist.y if pose is not None else None,
            )
        )
    return records


def analyze_clip(
    detections: Sequence[Sequence[Detection]],
    landmarks: Sequence[Optional[PoseLandmarks]],
    fps: float,
    settings: Optional[AnalysisSettings] = None,
    calibration: Optional[Calibration] = None,
) -> AnalysisResult:
    """Analyze one clip.

    Args:
        detections: Per-frame barbell candidates; its length defines the
            number of frames.
        landmarks: Per-frame pose landmarks. Missing entries and indices past
            the end of the sequence are treated as absent.
        fps: Clip frame rate.
        settings: Analysis settings; defaults when None.
        calibration: Scale and lift selection; defaults when None.

    Returns:
        AnalysisResult with exactly one FrameRecord per entry of ``detections``.

    Raises:
        ConfigurationError: if ``fps``, ``settings`` or ``calibration`` are invalid.
    """
    fps = validate_fps(fps)
    settings = (settings or AnalysisSettings()).validate()
    calibration = (calibration or Calibration()).validate()

    reference_points: List[Optional[Point]] = []
    for index in range(len(detections)):
        pose = _landmarks_at(landmarks, index)
        reference_points.append(pose.wrist_midpoint if pose is not None else None)

    raw_path = select_track(detections, reference_points)
    gap_filled = fill_gaps(raw_path, settings.gap_fill_frames)
    smoothed = smooth_path(gap_filled, filter_for(settings))
    velocities = vertical_velocities(smoothed, calibration.scale, fps)
    windows = detect_lift_windows(velocities, fps, settings)
    reps = aggregate_reps(windows, smoothed, velocities, calibration)

    logger.debug(
        "Analyzed %d frames: %d tracked, %d filled, %d lift windows, %d reps",
        len(detections),
        sum(p is not None for p in raw_path),
        sum(p is not None for p in gap_filled) - sum(p is not None for p in raw_path),
        len(windows),
        len(reps),
    )

    frames = build_frame_records(smoothed, velocities, reps, landmarks, fps)
    return AnalysisResult(frames=tuple(frames), reps=tuple(reps))


def analyze_observations(
    observations: Sequence[FrameObservation],
    fps: float,
    settings: Optional[AnalysisSettings] = None,
    calibration: Optional[Calibration] = None,
) -> AnalysisResult:
    """Analyze cached FrameObservations by their ``frame_index``.

    Observations may arrive in any order. Frame indices absent from the
    cache become frames with no detections and no landmarks, so every
    FrameRecord keeps the source frame number and timestamp and no value is
    computed across the hole.

    Raises:
        ConfigurationError: on a negative or repeated ``frame_index``.
    """
    by_index: Dict[int, FrameObservation] = {}
    for obs in observations:
        if obs.frame_index < 0:
            raise ConfigurationError(f"Negative frame_index in observations: {obs.frame_index}")
        if obs.frame_index in by_index:
            raise ConfigurationError(f"Duplicate frame_index in observations: {obs.frame_index}")
        by_index[obs.frame_index] = obs

    frame_count = max(by_index) + 1 if by_index else 0
    missing = frame_count - len(by_index)
    if missing:
        logger.warning("Observations are missing %d of %d frames", missing, frame_count)

    detections: List[Sequence[Detection]] = []
    landmarks: List[Optional[PoseLandmarks]] = []
    for index in range(frame_count):
        obs = by_index.get(index)
        detections.append(obs.detections if obs is not None else ())
        landmarks.append(obs.landmarks if obs is not None else None)

    return analyze_clip(
        detections,
        landmarks,
        fps,
        settings=settings,
        calibration=calibration,
    )
