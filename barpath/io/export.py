"""Tabular and JSON export of analysis results.

The CSV form has one row per input frame in ascending frame order, with
empty fields for unknown values, so it can be joined back to the source
video frame by frame.
"""

from __future__ import annotations

import csv
import json
from dataclasses import asdict
from pathlib import Path
from typing import Iterator, List, Optional

from barpath.results import AnalysisResult, FrameRecord

CSV_COLUMNS = (
    "frame",
    "timestamp_ms",
    "bar_x",
    "bar_y",
    "bar_vy",
    "rep_id",
    "wrist_l_x",
    "wrist_l_y",
    "wrist_r_x",
    "wrist_r_y",
)


def _fmt_float(value: Optional[float]) -> str:
    return "" if value is None else f"{value:.2f}"


def frame_to_row(record: FrameRecord) -> List[str]:
    """Format one FrameRecord as CSV fields in :data:`CSV_COLUMNS` order."""
    return [
        str(record.frame),
        _fmt_float(record.timestamp_ms),
        _fmt_float(record.bar_x),
        _fmt_float(record.bar_y),
        _fmt_float(record.bar_vy),
        "" if record.rep_id is None else str(record.rep_id),
        _fmt_float(record.wrist_l_x),
        _fmt_float(record.wrist_l_y),
        _fmt_float(record.wrist_r_x),
        _fmt_float(record.wrist_r_y),
    ]


def iter_csv_rows(result: AnalysisResult) -> Iterator[List[str]]:
    """Yield the header row followed by one row per frame, ordered by frame index."""
    yield list(CSV_COLUMNS)
    for record in sorted(result.frames, key=lambda r: r.frame):
        yield frame_to_row(record)


def write_frames_csv(path: Path, result: AnalysisResult) -> Path:
    """Write the per-frame table to ``path``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline="") as fh:
        writer = csv.writer(fh, lineterminator="\n")
        writer.writerows(iter_csv_rows(result))
    return path


def result_to_dict(result: AnalysisResult) -> dict:
    """JSON-serializable view of an AnalysisResult."""
    return {
        "total_reps": result.total_reps,
        "best_rep_index": result.best_rep_index,
        "avg_rom_cm": result.avg_rom_cm,
        "avg_peak_velocity": result.avg_peak_velocity,
        "reps": [asdict(rep) for rep in result.reps],
        "frames": [asdict(frame) for frame in result.frames],
    }


def write_result_json(path: Path, result: AnalysisResult, *, indent: Optional[int] = 2) -> Path:
    """Write the full result as JSON to ``path``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as fh:
        json.dump(result_to_dict(result), fh, indent=indent)
        fh.write("\n")
    return path
