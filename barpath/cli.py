"""Command-line interface for the analysis pipeline.

Example::

    barpath analyze observations.jsonl --fps 30 --scale 0.5 --lift squat \\
        --csv out/frames.csv --json out/result.json

``observations.jsonl`` is a detector/pose cache as written by
:func:`barpath.vision.cache.save_observations`. Instead of a path, the cache
can be located from the source video and detector settings::

    barpath analyze --video clip.mp4 --cache-dir cache/ --model-size medium --fps 30
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from barpath.config import (
    AnalysisSettings,
    Calibration,
    ConfigurationError,
    DetectorConfig,
    LiftType,
    SmoothingType,
)
from barpath.io.export import write_frames_csv, write_result_json
from barpath.pipeline import analyze_observations
from barpath.results import AnalysisResult
from barpath.vision.cache import cache_path, load_observations

logger = logging.getLogger(__name__)

_DEFAULTS = AnalysisSettings()
_DETECTOR_DEFAULTS = DetectorConfig()


def eprint(*args: object) -> None:
    print(*args, file=sys.stderr)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="barpath",
        description="Barbell path and rep analysis from cached detector/pose output.",
    )
    parser.add_argument("-v", "--verbose", action="count", default=0, help="Increase log verbosity.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze = subparsers.add_parser("analyze", help="Analyze one clip's observations.")
    analyze.add_argument(
        "observations",
        type=Path,
        nargs="?",
        default=None,
        help="JSONL observation cache for the clip. Omit to resolve it from --video and --cache-dir.",
    )
    analyze.add_argument("--video", type=Path, default=None, help="Source video; keys the observation cache.")
    analyze.add_argument("--cache-dir", type=Path, default=None, help="Directory holding observation caches.")
    analyze.add_argument("--model-size", default=_DETECTOR_DEFAULTS.model_size)
    analyze.add_argument(
        "--detection-confidence", type=float, default=_DETECTOR_DEFAULTS.detection_confidence
    )
    analyze.add_argument("--min-visibility", type=float, default=_DETECTOR_DEFAULTS.min_pose_visibility)
    analyze.add_argument("--fps", type=float, required=True, help="Clip frame rate.")
    analyze.add_argument("--scale", type=float, default=1.0, help="Centimetres per pixel.")
    analyze.add_argument(
        "--lift",
        choices=[lift.value for lift in LiftType],
        default=LiftType.SQUAT.value,
    )
    analyze.add_argument("--reference-depth", type=float, default=None, help="Full-depth ROM in cm.")
    analyze.add_argument(
        "--smoothing",
        choices=[kind.value for kind in SmoothingType],
        default=_DEFAULTS.smoothing_type.value,
    )
    analyze.add_argument("--alpha", type=float, default=_DEFAULTS.smoothing_alpha)
    analyze.add_argument("--gap-fill", type=int, default=_DEFAULTS.gap_fill_frames)
    analyze.add_argument("--lift-speed", type=float, default=_DEFAULTS.lift_start_speed)
    analyze.add_argument("--hysteresis", type=float, default=_DEFAULTS.lift_start_hysteresis)
    analyze.add_argument(
        "--strict-end",
        action="store_true",
        help="Drop a lift window still open at the end of the clip if it is too short.",
    )
    analyze.add_argument("--csv", type=Path, default=None, help="Write per-frame CSV here.")
    analyze.add_argument("--json", type=Path, default=None, help="Write full JSON result here.")
    return parser


def _settings_from_args(args: argparse.Namespace) -> AnalysisSettings:
    return AnalysisSettings(
        smoothing_type=SmoothingType(args.smoothing),
        smoothing_alpha=args.alpha,
        gap_fill_frames=args.gap_fill,
        lift_start_speed=args.lift_speed,
        lift_start_hysteresis=args.hysteresis,
        enforce_min_duration_at_end=args.strict_end,
    )


def _calibration_from_args(args: argparse.Namespace) -> Calibration:
    return Calibration(
        scale=args.scale,
        lift_type=LiftType(args.lift),
        reference_depth_cm=args.reference_depth,
    )


def _observations_path(args: argparse.Namespace) -> Path:
    """Explicit cache file, or the cache keyed by video hash and detector settings."""
    if args.observations is not None:
        return args.observations
    if args.video is None or args.cache_dir is None:
        raise ConfigurationError("Pass an observations file, or both --video and --cache-dir")
    detector_config = DetectorConfig(
        model_size=args.model_size,
        detection_confidence=args.detection_confidence,
        min_pose_visibility=args.min_visibility,
    )
    return cache_path(args.cache_dir, args.video, detector_config)


def format_summary(result: AnalysisResult) -> List[str]:
    lines = [
        f"Reps: {result.total_reps}  avg ROM: {result.avg_rom_cm:.1f} cm  "
        f"avg peak velocity: {result.avg_peak_velocity:.1f} cm/s"
    ]
    for rep in result.reps:
        lines.append(
            f"  rep {rep.rep_number}: frames {rep.start_frame}-{rep.end_frame}  "
            f"ROM {rep.rom_cm:.1f} cm  peak {rep.peak_velocity:.1f}  "
            f"avg {rep.avg_velocity:.1f}  depth {rep.depth_percent:.0f}%"
        )
    return lines


def run_analyze(args: argparse.Namespace) -> int:
    settings = _settings_from_args(args)
    calibration = _calibration_from_args(args)
    source = _observations_path(args)
    observations = list(load_observations(source))
    logger.info("Loaded %d frames from %s", len(observations), source)

    result = analyze_observations(observations, args.fps, settings=settings, calibration=calibration)

    if args.csv is not None:
        write_frames_csv(args.csv, result)
        print(f"Wrote: {args.csv}")
    if args.json is not None:
        write_result_json(args.json, result)
        print(f"Wrote: {args.json}")
    for line in format_summary(result):
        print(line)
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Entrypoint. Returns 0 on success, 2 on invalid input or configuration."""
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose > 1 else logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        return run_analyze(args)
    except ConfigurationError as ex:
        eprint(f"Configuration error: {ex}")
    except FileNotFoundError as ex:
        eprint(f"Error: {ex}")
    except (json.JSONDecodeError, KeyError, TypeError, ValueError) as ex:
        eprint(f"Invalid observation data: {ex}")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
