"""Per-frame and per-clip outputs of an analysis run."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple

from barpath.repdetect.baseline import RepMetric


@dataclass(frozen=True)
class FrameRecord:
    """Merged analysis output for one input frame.

    Bar coordinates are the smoothed trajectory; wrist coordinates are passed
    through from the pose estimator untouched.
    """

    frame: int
    timestamp_ms: float
    bar_x: Optional[float] = None
    bar_y: Optional[float] = None
    bar_vy: Optional[float] = None
    rep_id: Optional[int] = None
    wrist_l_x: Optional[float] = None
    wrist_l_y: Optional[float] = None
    wrist_r_x: Optional[float] = None
    wrist_r_y: Optional[float] = None


@dataclass(frozen=True)
class AnalysisResult:
    """Frames and reps of one clip, plus aggregates computed at construction.

    Attributes:
        frames: One record per input frame, in frame order.
        reps: Rep metrics in temporal order.
        total_reps: Number of reps.
        best_rep_index: Index into ``reps`` of the rep with the highest average
            velocity (earliest on ties), or None without reps.
        avg_rom_cm: Mean range of motion over reps, 0.0 without reps.
        avg_peak_velocity: Mean peak velocity over reps, 0.0 without reps.
    """

    frames: Tuple[FrameRecord, ...]
    reps: Tuple[RepMetric, ...]
    total_reps: int = field(init=False)
    best_rep_index: Optional[int] = field(init=False)
    avg_rom_cm: float = field(init=False)
    avg_peak_velocity: float = field(init=False)

    def __post_init__(self) -> None:
        frames = tuple(self.frames)
        reps = tuple(self.reps)
        object.__setattr__(self, "frames", frames)
        object.__setattr__(self, "reps", reps)
        object.__setattr__(self, "total_reps", len(reps))

        best_index: Optional[int] = None
        for index, rep in enumerate(reps):
            if best_index is None or rep.avg_velocity > reps[best_index].avg_velocity:
                best_index = index
        object.__setattr__(self, "best_rep_index", best_index)

        if reps:
            avg_rom = sum(rep.rom_cm for rep in reps) / len(reps)
            avg_peak = sum(rep.peak_velocity for rep in reps) / len(reps)
        else:
            avg_rom = avg_peak = 0.0
        object.__setattr__(self, "avg_rom_cm", avg_rom)
        object.__setattr__(self, "avg_peak_velocity", avg_peak)

    @property
    def best_rep(self) -> Optional[RepMetric]:
        if self.best_rep_index is None:
            return None
        return self.reps[self.best_rep_index]

    def rep_for_frame(self, frame_index: int) -> Optional[RepMetric]:
        """Return the first rep whose interval contains ``frame_index``."""
        for rep in self.reps:
            if rep.contains(frame_index):
                return rep
        return None
