"""Shared configuration and calibration models used across the analysis pipeline."""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional

DEFAULT_REFERENCE_DEPTH_CM = 40.0


class ConfigurationError(ValueError):
    """Raised when settings, calibration or frame rate cannot drive an analysis."""


class SmoothingType(str, Enum):
    """Trajectory filter selected once per analysis run."""

    EMA = "ema"
    KALMAN = "kalman"


class LiftType(str, Enum):
    """Lift being analyzed; selects the full-depth range of motion."""

    SQUAT = "squat"
    BENCH = "bench"
    DEADLIFT = "deadlift"

    @property
    def reference_depth_cm(self) -> float:
        """Range of motion (cm) treated as 100% depth for this lift."""
        return _REFERENCE_DEPTHS_CM[self]


_REFERENCE_DEPTHS_CM = {
    LiftType.SQUAT: DEFAULT_REFERENCE_DEPTH_CM,
    LiftType.BENCH: DEFAULT_REFERENCE_DEPTH_CM,
    LiftType.DEADLIFT: DEFAULT_REFERENCE_DEPTH_CM,
}


def validate_fps(fps: float) -> float:
    """Return ``fps`` if it is a usable frame rate, else raise ConfigurationError."""
    if fps is None or not math.isfinite(fps) or fps <= 0:
        raise ConfigurationError(f"fps must be a positive finite number, got {fps!r}")
    return float(fps)


@dataclass(frozen=True)
class AnalysisSettings:
    """Tunable parameters of the trajectory and rep analysis.

    Attributes:
        smoothing_type: Filter applied to the gap-filled trajectory.
        smoothing_alpha: EMA weight of the newest measurement, in (0, 1).
        gap_fill_frames: Longest run of missing frames closed by linear
            interpolation (inclusive).
        lift_start_speed: Absolute vertical speed that opens a lift window,
            in calibrated units per second.
        lift_start_hysteresis: Fraction of ``lift_start_speed`` below which a
            lift window closes, in (0, 1).
        kalman_process_noise: Process noise Q of the per-axis Kalman filter.
        kalman_measurement_noise: Measurement noise R of the per-axis Kalman filter.
        min_lift_seconds: Shortest lift window kept when it closes normally.
        enforce_min_duration_at_end: Also apply the minimum duration to a
            window still open when the clip ends.
    """

    smoothing_type: SmoothingType = SmoothingType.EMA
    smoothing_alpha: float = 0.25
    gap_fill_frames: int = 8
    lift_start_speed: float = 50.0
    lift_start_hysteresis: float = 0.6
    kalman_process_noise: float = 0.01
    kalman_measurement_noise: float = 0.1
    min_lift_seconds: float = 0.5
    enforce_min_duration_at_end: bool = False

    def validate(self) -> "AnalysisSettings":
        """Raise ConfigurationError on any out-of-range field; return self otherwise."""
        try:
            SmoothingType(self.smoothing_type)
        except ValueError as exc:
            raise ConfigurationError(f"Unknown smoothing type: {self.smoothing_type!r}") from exc
        if not 0.0 < self.smoothing_alpha < 1.0:
            raise ConfigurationError("smoothing_alpha must be in (0, 1)")
        if self.gap_fill_frames < 0:
            raise ConfigurationError("gap_fill_frames must be >= 0")
        if not math.isfinite(self.lift_start_speed) or self.lift_start_speed <= 0:
            raise ConfigurationError("lift_start_speed must be positive")
        if not 0.0 < self.lift_start_hysteresis < 1.0:
            raise ConfigurationError("lift_start_hysteresis must be in (0, 1)")
        for noise in (self.kalman_process_noise, self.kalman_measurement_noise):
            if not math.isfinite(noise) or noise <= 0:
                raise ConfigurationError("Kalman noise parameters must be positive finite numbers")
        if not math.isfinite(self.min_lift_seconds) or self.min_lift_seconds <= 0:
            raise ConfigurationError("min_lift_seconds must be a positive finite number")
        return self

    @property
    def lift_end_speed(self) -> float:
        """Speed below which an open lift window closes."""
        return self.lift_start_speed * self.lift_start_hysteresis

    def min_lift_frames(self, fps: float) -> int:
        """Minimum lift window length in frames at the given frame rate."""
        return int(round(fps * self.min_lift_seconds))


@dataclass(frozen=True)
class Calibration:
    """Pixel-to-physical scale and lift selection for one clip.

    ``scale`` converts image-plane pixels into centimetres. ``gravity_angle``
    (radians) is recorded by the capture tooling and passed through untouched.
    """

    scale: float = 1.0
    lift_type: LiftType = LiftType.SQUAT
    reference_depth_cm: Optional[float] = None
    gravity_angle: float = 0.0

    def validate(self) -> "Calibration":
        if not math.isfinite(self.scale) or self.scale <= 0:
            raise ConfigurationError("Calibration scale must be a positive finite number")
        try:
            LiftType(self.lift_type)
        except ValueError as exc:
            raise ConfigurationError(f"Unknown lift type: {self.lift_type!r}") from exc
        if self.reference_depth_cm is not None and (
            not math.isfinite(self.reference_depth_cm) or self.reference_depth_cm <= 0
        ):
            raise ConfigurationError("reference_depth_cm must be a positive finite number if provided")
        return self

    @property
    def depth_reference(self) -> float:
        """Full-depth range of motion (cm) used for depth percentages."""
        if self.reference_depth_cm is not None:
            return self.reference_depth_cm
        return LiftType(self.lift_type).reference_depth_cm


@dataclass(frozen=True)
class DetectorConfig:
    """Settings of the external barbell detector and pose estimator.

    These never reach the analysis core; they identify which model output an
    observation cache holds.
    """

    model_size: str = "medium"
    detection_confidence: float = 0.35
    min_pose_visibility: float = 0.5

    def cache_key(self) -> str:
        """Return a short string usable in cache file naming."""
        return (
            f"m{self.model_size}"
            f"-det{self.detection_confidence:.2f}"
            f"-vis{self.min_pose_visibility:.2f}"
        )
