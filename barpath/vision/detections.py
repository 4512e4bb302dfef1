"""Per-frame outputs of the external barbell detector and pose estimator.

The analysis core treats both models as black boxes: each frame carries zero
or more barbell candidates and, optionally, one set of pose landmarks.
Coordinates are image-plane values, either normalized or in pixels, as long
as a clip uses one convention throughout.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass(frozen=True)
class Point:
    """2-D image-plane point."""

    x: float
    y: float

    def distance_to(self, other: "Point") -> float:
        return math.hypot(self.x - other.x, self.y - other.y)


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned box given by its top-left corner and size."""

    x: float
    y: float
    width: float
    height: float

    @property
    def center(self) -> Point:
        return Point(self.x + self.width / 2.0, self.y + self.height / 2.0)


@dataclass(frozen=True)
class Detection:
    """One barbell candidate in a single frame."""

    box: BoundingBox
    confidence: float

    @property
    def center(self) -> Point:
        return self.box.center


@dataclass(frozen=True)
class PoseLandmarks:
    """Pose landmarks used by the analysis for a single frame.

    Only the wrists are required; the remaining joints are carried for
    callers that render or export them.
    """

    left_wrist: Point
    right_wrist: Point
    left_elbow: Optional[Point] = None
    right_elbow: Optional[Point] = None
    left_hip: Optional[Point] = None
    right_hip: Optional[Point] = None
    visibility: float = 1.0

    @property
    def wrist_midpoint(self) -> Point:
        """Midpoint between the wrists, the reference point for bar selection."""
        return Point(
            (self.left_wrist.x + self.right_wrist.x) / 2.0,
            (self.left_wrist.y + self.right_wrist.y) / 2.0,
        )


@dataclass(frozen=True)
class FrameObservation:
    """Everything the external models reported for one frame."""

    frame_index: int
    detections: Tuple[Detection, ...] = field(default_factory=tuple)
    landmarks: Optional[PoseLandmarks] = None
