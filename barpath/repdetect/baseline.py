"""Lift window detection and per-rep aggregation.

Lift windows come from a two-state hysteresis machine over the vertical
velocity signal: a window opens when bar speed exceeds the lift start speed
and closes once it drops below ``lift_start_speed * lift_start_hysteresis``.
Windows closed before the minimum lift duration are discarded as noise. A
window still open at the end of the clip is kept regardless of length unless
``enforce_min_duration_at_end`` is set.

Each window then becomes one :class:`RepMetric`. Reps are numbered by window
position, so a window that cannot be aggregated leaves a gap in the
numbering rather than shifting later reps.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence

import numpy as np

from barpath.config import AnalysisSettings, Calibration
from barpath.vision.detections import Point

logger = logging.getLogger(__name__)


class LiftPhase(Enum):
    IDLE = "idle"
    IN_LIFT = "in_lift"


@dataclass(frozen=True)
class LiftWindow:
    """Closed frame interval ``[start, end]`` of one sustained bar movement."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 0:
            raise ValueError(f"LiftWindow start must be non-negative, got {self.start}")
        if self.end < self.start:
            raise ValueError(f"LiftWindow end ({self.end}) precedes start ({self.start})")

    @property
    def length(self) -> int:
        return self.end - self.start

    def contains(self, frame_index: int) -> bool:
        return self.start <= frame_index <= self.end


@dataclass(frozen=True)
class RepMetric:
    """Metrics of one repetition.

    Attributes:
        rep_number: 1-based position of the originating lift window.
        rom_cm: Vertical range of motion in calibrated units.
        peak_velocity: Maximum absolute vertical velocity within the window.
        avg_velocity: Mean absolute vertical velocity within the window.
        depth_percent: Range of motion relative to full depth, capped at 100.
        start_frame: First frame of the window.
        end_frame: Last frame of the window (inclusive).
    """

    rep_number: int
    rom_cm: float
    peak_velocity: float
    avg_velocity: float
    depth_percent: float
    start_frame: int
    end_frame: int

    def contains(self, frame_index: int) -> bool:
        return self.start_frame <= frame_index <= self.end_frame


def detect_lift_windows(
    velocities: Sequence[Optional[float]],
    fps: float,
    settings: AnalysisSettings,
) -> List[LiftWindow]:
    """Segment the velocity signal into lift windows, in temporal order.

    None samples are skipped without changing state.
    """
    start_speed = settings.lift_start_speed
    end_speed = settings.lift_end_speed
    min_frames = settings.min_lift_frames(fps)

    windows: List[LiftWindow] = []
    phase = LiftPhase.IDLE
    window_start = 0
    for index, velocity in enumerate(velocities):
        if velocity is None:
            continue
        speed = abs(velocity)
        if phase is LiftPhase.IDLE and speed > start_speed:
            phase = LiftPhase.IN_LIFT
            window_start = index
        elif phase is LiftPhase.IN_LIFT and speed < end_speed:
            if index - window_start >= min_frames:
                windows.append(LiftWindow(window_start, index))
            else:
                logger.debug(
                    "Discarded short lift window [%d, %d] (< %d frames)",
                    window_start,
                    index,
                    min_frames,
                )
            phase = LiftPhase.IDLE

    if phase is LiftPhase.IN_LIFT:
        last_index = len(velocities) - 1
        if settings.enforce_min_duration_at_end and last_index - window_start < min_frames:
            logger.debug("Discarded truncated lift window [%d, %d]", window_start, last_index)
        else:
            windows.append(LiftWindow(window_start, last_index))

    return windows


def aggregate_rep(
    rep_number: int,
    window: LiftWindow,
    points: Sequence[Optional[Point]],
    velocities: Sequence[Optional[float]],
    calibration: Calibration,
) -> Optional[RepMetric]:
    """Compute one RepMetric, or None when the window has no usable samples."""
    ys = [p.y for p in points[window.start : window.end + 1] if p is not None]
    speeds = [abs(v) for v in velocities[window.start : window.end + 1] if v is not None]
    if not ys or not speeds:
        return None

    rom_cm = float(np.max(ys) - np.min(ys)) * calibration.scale
    depth_percent = min(100.0, rom_cm / calibration.depth_reference * 100.0)
    return RepMetric(
        rep_number=rep_number,
        rom_cm=rom_cm,
        peak_velocity=float(np.max(speeds)),
        avg_velocity=float(np.mean(speeds)),
        depth_percent=depth_percent,
        start_frame=window.start,
        end_frame=window.end,
    )


def aggregate_reps(
    windows: Sequence[LiftWindow],
    points: Sequence[Optional[Point]],
    velocities: Sequence[Optional[float]],
    calibration: Calibration,
) -> List[RepMetric]:
    """Turn lift windows into rep metrics, skipping windows without samples."""
    reps: List[RepMetric] = []
    for rep_number, window in enumerate(windows, start=1):
        rep = aggregate_rep(rep_number, window, points, velocities, calibration)
        if rep is None:
            logger.info(
                "Skipping rep %d: no tracked samples in frames [%d, %d]",
                rep_number,
                window.start,
                window.end,
            )
            continue
        reps.append(rep)
    return reps
