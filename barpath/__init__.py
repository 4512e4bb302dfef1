"""barpath: barbell path and rep analysis package.

This package turns per-frame barbell detections and pose landmarks from a
recorded lift into a smoothed bar trajectory, a vertical velocity signal,
lift windows, and per-rep metrics ready for CSV export or overlay
rendering.
"""

__all__ = [
    "cli",
    "config",
    "pipeline",
]

__version__ = "0.1.0"
