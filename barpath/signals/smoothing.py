"""Causal smoothing of the bar trajectory.

Two interchangeable filters share one contract::

    state, output = flt.step(state, measurement)

``EmaFilter`` is a single-pole low-pass with no warm-up: the first known
point passes through unchanged. ``KalmanFilter`` runs an independent
position-only scalar Kalman filter on each axis, starting from an estimate
of 0 with unit error, so its first outputs are pulled toward the origin.

Missing points never reach ``step``; :func:`smooth_path` emits None for them
and keeps the filter state frozen.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional, Protocol, Sequence, Tuple, TypeVar

from barpath.config import AnalysisSettings, SmoothingType
from barpath.vision.detections import Point

S = TypeVar("S")


class SmoothingFilter(Protocol[S]):
    def initial_state(self) -> S:
        ...

    def step(self, state: S, measurement: Point) -> Tuple[S, Point]:
        ...


@dataclass(frozen=True)
class EmaFilter:
    """Exponential moving average; state is the last emitted point."""

    alpha: float

    def initial_state(self) -> Optional[Point]:
        return None

    def step(self, state: Optional[Point], measurement: Point) -> Tuple[Point, Point]:
        if state is None:
            return measurement, measurement
        a = self.alpha
        smoothed = Point(
            a * measurement.x + (1 - a) * state.x,
            a * measurement.y + (1 - a) * state.y,
        )
        return smoothed, smoothed


@dataclass(frozen=True)
class AxisEstimate:
    """Scalar Kalman state for one axis."""

    estimate: float = 0.0
    error: float = 1.0

    def update(self, measurement: float, process_noise: float, measurement_noise: float) -> "AxisEstimate":
        predicted_error = self.error + process_noise
        gain = predicted_error / (predicted_error + measurement_noise)
        return AxisEstimate(
            estimate=self.estimate + gain * (measurement - self.estimate),
            error=(1 - gain) * predicted_error,
        )


@dataclass(frozen=True)
class KalmanFilter:
    """Per-axis position-only Kalman filter."""

    process_noise: float = 0.01
    measurement_noise: float = 0.1

    def initial_state(self) -> Tuple[AxisEstimate, AxisEstimate]:
        return AxisEstimate(), AxisEstimate()

    def step(
        self, state: Tuple[AxisEstimate, AxisEstimate], measurement: Point
    ) -> Tuple[Tuple[AxisEstimate, AxisEstimate], Point]:
        x_axis, y_axis = state
        x_axis = x_axis.update(measurement.x, self.process_noise, self.measurement_noise)
        y_axis = y_axis.update(measurement.y, self.process_noise, self.measurement_noise)
        return (x_axis, y_axis), Point(x_axis.estimate, y_axis.estimate)


def filter_for(settings: AnalysisSettings) -> SmoothingFilter[Any]:
    """Build the filter selected by ``settings``."""
    kind = SmoothingType(settings.smoothing_type)
    if kind is SmoothingType.KALMAN:
        return KalmanFilter(
            process_noise=settings.kalman_process_noise,
            measurement_noise=settings.kalman_measurement_noise,
        )
    return EmaFilter(alpha=settings.smoothing_alpha)


def smooth_path(
    points: Sequence[Optional[Point]], smoothing_filter: SmoothingFilter[Any]
) -> List[Optional[Point]]:
    """Run ``smoothing_filter`` over ``points``, keeping None entries in place."""
    state = smoothing_filter.initial_state()
    smoothed: List[Optional[Point]] = []
    for point in points:
        if point is None:
            smoothed.append(None)
            continue
        state, output = smoothing_filter.step(state, point)
        smoothed.append(output)
    return smoothed
