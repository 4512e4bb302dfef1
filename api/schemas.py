import math
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from barpath.config import AnalysisSettings, Calibration, LiftType, SmoothingType

_SETTINGS_DEFAULTS = AnalysisSettings()


class PointModel(BaseModel):
    x: float
    y: float


class DetectionModel(BaseModel):
    """Barbell candidate as a top-left anchored box plus detector confidence."""

    x: float
    y: float
    width: float = Field(..., ge=0)
    height: float = Field(..., ge=0)
    confidence: float = Field(..., ge=0, le=1)


class LandmarksModel(BaseModel):
    left_wrist: PointModel
    right_wrist: PointModel
    left_elbow: Optional[PointModel] = None
    right_elbow: Optional[PointModel] = None
    left_hip: Optional[PointModel] = None
    right_hip: Optional[PointModel] = None
    visibility: float = 1.0


class FrameModel(BaseModel):
    detections: List[DetectionModel] = Field(default_factory=list)
    landmarks: Optional[LandmarksModel] = None


class SettingsModel(BaseModel):
    """
    Analysis settings. Ranges are checked by the analysis core so that API and CLI
    report identical configuration errors.
    """
    smoothing_type: SmoothingType = _SETTINGS_DEFAULTS.smoothing_type
    smoothing_alpha: float = _SETTINGS_DEFAULTS.smoothing_alpha
    gap_fill_frames: int = _SETTINGS_DEFAULTS.gap_fill_frames
    lift_start_speed: float = _SETTINGS_DEFAULTS.lift_start_speed
    lift_start_hysteresis: float = _SETTINGS_DEFAULTS.lift_start_hysteresis
    kalman_process_noise: float = _SETTINGS_DEFAULTS.kalman_process_noise
    kalman_measurement_noise: float = _SETTINGS_DEFAULTS.kalman_measurement_noise
    min_lift_seconds: float = _SETTINGS_DEFAULTS.min_lift_seconds
    enforce_min_duration_at_end: bool = _SETTINGS_DEFAULTS.enforce_min_duration_at_end

    def to_settings(self) -> AnalysisSettings:
        return AnalysisSettings(**self.model_dump())


class CalibrationModel(BaseModel):
    scale: float = Field(1.0, description="Centimetres per pixel.")
    lift_type: LiftType = LiftType.SQUAT
    reference_depth_cm: Optional[float] = Field(None, description="Override of the lift's full-depth ROM.")

    def to_calibration(self) -> Calibration:
        return Calibration(**self.model_dump())


class AnalysisRequest(BaseModel):
    """
    One clip's detector and pose output, in frame order, plus analysis configuration.
    """
    fps: float = Field(..., description="Clip frame rate (frames per second, > 0).")
    frames: List[FrameModel] = Field(..., description="Per-frame observations in frame order.")
    settings: SettingsModel = Field(default_factory=SettingsModel)
    calibration: CalibrationModel = Field(default_factory=CalibrationModel)

    @field_validator("fps")
    @classmethod
    def fps_positive(cls, v: float) -> float:
        if math.isnan(v) or math.isinf(v) or v <= 0:
            raise ValueError("fps must be a positive finite number")
        return v


class FrameRecordModel(BaseModel):
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


class RepMetricModel(BaseModel):
    rep_number: int
    rom_cm: float
    peak_velocity: float
    avg_velocity: float
    depth_percent: float
    start_frame: int
    end_frame: int


class AnalysisResponse(BaseModel):
    total_reps: int
    best_rep_index: Optional[int] = Field(None, description="Index into reps of the fastest rep.")
    avg_rom_cm: float
    avg_peak_velocity: float
    reps: List[RepMetricModel]
    frames: List[FrameRecordModel]
