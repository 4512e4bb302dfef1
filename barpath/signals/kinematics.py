"""Kinematic signals derived from the smoothed bar trajectory."""

from __future__ import annotations

from typing import List, Optional, Sequence

from barpath.vision.detections import Point


def vertical_velocities(
    points: Sequence[Optional[Point]], scale: float, fps: float
) -> List[Optional[float]]:
    """Signed vertical bar velocity per frame, in calibrated units per second.

    Frame 0 has no predecessor and is always None, as is any frame whose own
    point or previous point is unknown. Image y grows downward, so positive
    values mean the bar is descending.
    """
    velocities: List[Optional[float]] = []
    for index, current in enumerate(points):
        previous = points[index - 1] if index > 0 else None
        if current is None or previous is None:
            velocities.append(None)
            continue
        velocities.append((current.y - previous.y) * scale * fps)
    return velocities
