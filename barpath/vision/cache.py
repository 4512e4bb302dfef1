"""On-disk cache for per-frame detector and pose outputs.

Observations are stored as JSONL, one frame per line, keyed by (video hash,
detector config cache key) so that model inference only has to run once per
clip and configuration. The format stays plain JSON to ease inspection.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Iterable, Iterator, Optional

from barpath.config import DetectorConfig
from barpath.vision.detections import (
    BoundingBox,
    Detection,
    FrameObservation,
    Point,
    PoseLandmarks,
)

_OPTIONAL_JOINTS = ("left_elbow", "right_elbow", "left_hip", "right_hip")


def video_sha256(path: Path, *, chunk_size: int = 1024 * 1024) -> str:
    """Compute a deterministic hash for the video to key caches."""

    sha = hashlib.sha256()
    with path.open("rb") as fh:
        while True:
            chunk = fh.read(chunk_size)
            if not chunk:
                break
            sha.update(chunk)
    return sha.hexdigest()


def cache_filename(video_hash: str, detector_config: DetectorConfig) -> str:
    """Build a cache filename using video hash and detector config cache key."""
    return f"{video_hash}_{detector_config.cache_key()}.jsonl"


def cache_path(cache_dir: Path, video_path: Path, detector_config: DetectorConfig) -> Path:
    """Return the path for the cache file without creating it."""
    return cache_dir / cache_filename(video_sha256(video_path), detector_config)


def _point_to_obj(point: Optional[Point]) -> Optional[list]:
    return None if point is None else [point.x, point.y]


def _point_from_obj(obj: Optional[list]) -> Optional[Point]:
    return None if obj is None else Point(float(obj[0]), float(obj[1]))


def _landmarks_to_obj(landmarks: Optional[PoseLandmarks]) -> Optional[dict]:
    if landmarks is None:
        return None
    payload = {
        "left_wrist": _point_to_obj(landmarks.left_wrist),
        "right_wrist": _point_to_obj(landmarks.right_wrist),
        "visibility": landmarks.visibility,
    }
    for joint in _OPTIONAL_JOINTS:
        value = getattr(landmarks, joint)
        if value is not None:
            payload[joint] = _point_to_obj(value)
    return payload


def _landmarks_from_obj(obj: Optional[dict]) -> Optional[PoseLandmarks]:
    if obj is None:
        return None
    return PoseLandmarks(
        left_wrist=_point_from_obj(obj["left_wrist"]),
        right_wrist=_point_from_obj(obj["right_wrist"]),
        visibility=float(obj.get("visibility", 1.0)),
        **{joint: _point_from_obj(obj.get(joint)) for joint in _OPTIONAL_JOINTS},
    )


def _frame_to_json(frame: FrameObservation) -> str:
    payload = {
        "frame_index": frame.frame_index,
        "detections": [
            {
                "box": [d.box.x, d.box.y, d.box.width, d.box.height],
                "confidence": d.confidence,
            }
            for d in frame.detections
        ],
        "landmarks": _landmarks_to_obj(frame.landmarks),
    }
    return json.dumps(payload)


def frame_from_obj(obj: dict) -> FrameObservation:
    """Build a FrameObservation from its decoded JSON object."""
    detections = tuple(
        Detection(box=BoundingBox(*(float(v) for v in d["box"])), confidence=float(d["confidence"]))
        for d in obj.get("detections") or []
    )
    return FrameObservation(
        frame_index=int(obj["frame_index"]),
        detections=detections,
        landmarks=_landmarks_from_obj(obj.get("landmarks")),
    )


def save_observations(
    cache_file: Path, frames: Iterable[FrameObservation], *, overwrite: bool = True
) -> Path:
    """Write frame observations to a JSONL cache file.

    Args:
        cache_file: Destination path for the JSONL file.
        frames: Iterable of FrameObservation instances, in frame order.
        overwrite: Whether to overwrite an existing file.
    """

    cache_file.parent.mkdir(parents=True, exist_ok=True)
    if cache_file.exists() and not overwrite:
        raise FileExistsError(f"Cache already exists: {cache_file}")

    with cache_file.open("w", encoding="utf-8") as fh:
        for frame in frames:
            fh.write(_frame_to_json(frame))
            fh.write("\n")
    return cache_file


def load_observations(cache_file: Path) -> Iterator[FrameObservation]:
    """Read frame observations from a JSONL cache file."""
    with cache_file.open("r", encoding="utf-8") as fh:
        for line in fh:
            if not line.strip():
                continue
            yield frame_from_obj(json.loads(line))
