"""Bar track selection and gap filling.

Turns per-frame detector candidates into one optional bar position per frame,
then closes short runs of missed frames by linear interpolation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from barpath.config import ConfigurationError
from barpath.vision.detections import Detection, Point

logger = logging.getLogger(__name__)

REFERENCE_DISTANCE_WEIGHT = 2.0
CONTINUITY_DISTANCE_WEIGHT = 3.0

OptionalPoint = Optional[Point]


@dataclass
class TrackState:
    """Selection state carried from frame to frame within one run."""

    previous: OptionalPoint = None


def score_detection(
    detection: Detection,
    reference: OptionalPoint,
    previous: OptionalPoint,
) -> float:
    """Confidence penalized by distance to the reference point and the last selection."""
    center = detection.center
    score = float(detection.confidence)
    if reference is not None:
        score -= REFERENCE_DISTANCE_WEIGHT * center.distance_to(reference)
    if previous is not None:
        score -= CONTINUITY_DISTANCE_WEIGHT * center.distance_to(previous)
    return score


def select_detection(
    detections: Sequence[Detection],
    reference: OptionalPoint,
    state: TrackState,
) -> OptionalPoint:
    """Pick one bar position for a frame and advance ``state``.

    Frames without candidates return None and leave ``state`` untouched.
    Equal scores keep the earliest candidate.
    """
    best: Optional[Detection] = None
    best_score = float("-inf")
    for detection in detections:
        score = score_detection(detection, reference, state.previous)
        if best is None or score > best_score:
            best = detection
            best_score = score

    if best is None:
        return None
    state.previous = best.center
    return state.previous


def select_track(
    detections: Sequence[Sequence[Detection]],
    reference_points: Sequence[OptionalPoint],
) -> List[OptionalPoint]:
    """Select one bar position per frame from competing detections.

    Args:
        detections: Per-frame candidate lists, possibly empty.
        reference_points: Per-frame reference points (wrist midpoints). Frames
            past the end of this sequence have no reference point.

    Returns:
        One optional point per entry of ``detections``.
    """
    state = TrackState()
    track: List[OptionalPoint] = []
    ambiguous = 0
    for index, frame_detections in enumerate(detections):
        reference = reference_points[index] if index < len(reference_points) else None
        if len(frame_detections) > 1:
            ambiguous += 1
        track.append(select_detection(frame_detections, reference, state))

    logger.debug(
        "Selected bar track: %d/%d frames tracked, %d with competing detections",
        sum(p is not None for p in track),
        len(track),
        ambiguous,
    )
    return track


def _interpolate(start: Point, end: Point, t: float) -> Point:
    return Point(
        start.x + (end.x - start.x) * t,
        start.y + (end.y - start.y) * t,
    )


def fill_gaps(points: Sequence[OptionalPoint], max_gap: int) -> List[OptionalPoint]:
    """Linearly interpolate runs of missing points no longer than ``max_gap``.

    Only runs with a known point on both sides are filled; runs touching
    either end of the sequence, or longer than ``max_gap``, stay None.
    """
    if max_gap < 0:
        raise ConfigurationError("max_gap must be >= 0")

    filled = list(points)
    gap_start: Optional[int] = None
    for index, point in enumerate(filled):
        if point is None:
            if gap_start is None:
                gap_start = index
            continue
        if gap_start is not None:
            length = index - gap_start
            if gap_start > 0 and length <= max_gap:
                left = filled[gap_start - 1]
                for offset in range(length):
                    t = (offset + 1) / (length + 1)
                    filled[gap_start + offset] = _interpolate(left, point, t)
            gap_start = None
    return filled
