# Data contracts shared by the engine, the session tracker and the API
from enum import Enum, IntEnum
from typing import Any, Dict, List, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator


class KeypointIndex(IntEnum):
    """MoveNet / COCO-17 landmark order."""
    NOSE = 0
    L_EYE = 1
    R_EYE = 2
    L_EAR = 3
    R_EAR = 4
    L_SHOULDER = 5
    R_SHOULDER = 6
    L_ELBOW = 7
    R_ELBOW = 8
    L_WRIST = 9
    R_WRIST = 10
    L_HIP = 11
    R_HIP = 12
    L_KNEE = 13
    R_KNEE = 14
    L_ANKLE = 15
    R_ANKLE = 16


class CameraRole(str, Enum):
    FRONT = "front"
    SIDE = "side"


class PostureStatus(str, Enum):
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"
    NOT_CALIBRATED = "not_calibrated"
    NO_DATA = "no_data"


class AlertMode(str, Enum):
    NOTIFICATION = "notification"
    BLUR = "blur"
    SHRIMP_BANANAS = "shrimp_bananas"


class Metric(str, Enum):
    """Every scalar feature an extractor can produce."""
    # Front
    SHOULDER_SLOPE_DEG = "shoulderSlopeDeg"
    NOSE_SHOULDER_VERTICAL_RATIO = "noseShoulderVerticalRatio"
    NOSE_HORIZONTAL_OFFSET = "noseHorizontalOffset"
    HEAD_TILT_DEG = "headTiltDeg"
    LEFT_EAR_SHOULDER_VERTICAL = "leftEarShoulderVertical"
    RIGHT_EAR_SHOULDER_VERTICAL = "rightEarShoulderVertical"
    SHOULDER_WIDTH = "shoulderWidth"
    # Both views
    TORSO_INCLINATION_DEG = "torsoInclinationDeg"
    # Side
    NECK_INCLINATION_DEG = "neckInclinationDeg"
    EAR_SHOULDER_HIP_ANGLE = "earShoulderHipAngle"
    HEAD_FORWARD_OFFSET = "headForwardOffset"


FRONT_METRICS = (
    Metric.SHOULDER_SLOPE_DEG,
    Metric.NOSE_SHOULDER_VERTICAL_RATIO,
    Metric.NOSE_HORIZONTAL_OFFSET,
    Metric.HEAD_TILT_DEG,
    Metric.LEFT_EAR_SHOULDER_VERTICAL,
    Metric.RIGHT_EAR_SHOULDER_VERTICAL,
    Metric.TORSO_INCLINATION_DEG,
    Metric.SHOULDER_WIDTH,
)

SIDE_METRICS = (
    Metric.NECK_INCLINATION_DEG,
    Metric.TORSO_INCLINATION_DEG,
    Metric.EAR_SHOULDER_HIP_ANGLE,
    Metric.HEAD_FORWARD_OFFSET,
)

VIEW_METRICS = {
    CameraRole.FRONT: FRONT_METRICS,
    CameraRole.SIDE: SIDE_METRICS,
}


class ScoreComponent(str, Enum):
    """Names of the sub-scores that make up the overall posture score."""
    SHOULDER_SLOPE = "shoulderSlope"
    VERTICAL_SLOUCH = "verticalSlouch"
    HEAD_CENTERING = "headCentering"
    HEAD_TILT = "headTilt"
    EAR_SHOULDER_ALIGNMENT = "earShoulderAlignment"
    NECK_INCLINATION = "neckInclination"
    TORSO_INCLINATION = "torsoInclination"
    HEAD_FORWARD_OFFSET = "headForwardOffset"


# ============================================================================
# POSE INPUT
# ============================================================================

class Keypoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    x: float
    y: float
    score: float = Field(ge=0, le=1)
    name: Optional[str] = None


class Point(BaseModel):
    model_config = ConfigDict(frozen=True)

    x: float
    y: float


# Dense (17 entries, None for undetected) or sparse (index -> keypoint)
KeypointSet = Union[List[Optional[Keypoint]], Dict[int, Keypoint]]


class ViewPose(BaseModel):
    """One camera's pose-model output for a single capture."""
    keypoints: KeypointSet
    width: int = 0
    height: int = 0


class PoseData(BaseModel):
    front: Optional[ViewPose] = None
    side: Optional[ViewPose] = None

    def view(self, role: CameraRole) -> Optional[ViewPose]:
        return self.front if role == CameraRole.FRONT else self.side


# ============================================================================
# METRICS & CALIBRATION
# ============================================================================

class MetricBag(BaseModel):
    """Features extracted from one frame of one camera role."""
    model_config = ConfigDict(frozen=True)

    view: CameraRole
    values: Dict[Metric, float] = Field(default_factory=dict)

    def get(self, metric: Metric) -> Optional[float]:
        return self.values.get(metric)

    @model_validator(mode="after")
    def check_view_metrics(self):
        foreign = [m.value for m in self.values if m not in VIEW_METRICS[self.view]]
        if foreign:
            raise ValueError(f"{self.view.value} bag cannot hold {', '.join(foreign)}")
        return self

    def __contains__(self, metric) -> bool:
        return metric in self.values


class Baseline(BaseModel):
    """Per-role calibration statistics: mean of every metric, stddev where n >= 2."""
    model_config = ConfigDict(frozen=True)

    view: Optional[CameraRole] = None
    means: Dict[Metric, float] = Field(default_factory=dict)
    stddevs: Dict[Metric, float] = Field(default_factory=dict)
    sample_count: int = 0

    @model_validator(mode="before")
    @classmethod
    def accept_legacy_layout(cls, data: Any) -> Any:
        # Older stored calibrations are flat: {metricName: mean, ..., "_stddev": {...}}
        if isinstance(data, dict) and "means" not in data:
            known = {m.value for m in Metric}
            if "_stddev" in data or any(key in known for key in data):
                return cls.legacy_fields(data)
        return data

    @staticmethod
    def legacy_fields(data: Dict[str, Any], view: Optional[CameraRole] = None) -> Dict[str, Any]:
        known = {m.value for m in Metric}
        means = {
            key: value for key, value in data.items()
            if key in known and value is not None
        }
        stddevs = {
            key: value for key, value in (data.get("_stddev") or {}).items()
            if key in known
        }
        return {"view": data.get("view", view), "means": means, "stddevs": stddevs}

    @classmethod
    def from_legacy(cls, data: Dict[str, Any], view: Optional[CameraRole] = None) -> "Baseline":
        return cls(**cls.legacy_fields(data, view))

    def get(self, metric: Metric) -> Optional[float]:
        return self.means.get(metric)


class Calibration(BaseModel):
    model_config = ConfigDict(frozen=True)

    front: Optional[Baseline] = None
    side: Optional[Baseline] = None
    # unix ms; stored legacy calibrations spell it calibratedAt
    calibrated_at: Optional[int] = Field(None, validation_alias=AliasChoices("calibrated_at", "calibratedAt"))
    version: int = 1

    def baseline_for(self, role: CameraRole) -> Optional[Baseline]:
        return self.front if role == CameraRole.FRONT else self.side

    def with_baseline(self, role: CameraRole, baseline: Baseline, calibrated_at: int) -> "Calibration":
        """Replace one role's baseline wholesale, keeping the other role's."""
        return self.model_copy(update={role.value: baseline, "calibrated_at": calibrated_at})


# ============================================================================
# EVALUATION OUTPUT
# ============================================================================

class ScoredMetric(BaseModel):
    model_config = ConfigDict(frozen=True)

    metric: ScoreComponent
    score: float = Field(ge=0, le=100)
    weight: float = Field(gt=0)
    deviation: float


class ViewMetrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    front_metrics: Optional[MetricBag] = None
    side_metrics: Optional[MetricBag] = None


class EvaluationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    score: Optional[int] = None
    status: PostureStatus
    metrics: Optional[ViewMetrics] = None
    breakdown: List[ScoredMetric] = Field(default_factory=list)
    timestamp: Optional[int] = None


# ============================================================================
# SETTINGS & SESSION STATE
# ============================================================================

class Settings(BaseModel):
    monitoring_enabled: bool = False
    check_interval_seconds: int = Field(60, ge=1)
    alert_mode: AlertMode = AlertMode.NOTIFICATION
    notify_on_poor: bool = True
    notify_on_recovery: bool = True
    poor_threshold: int = Field(40, ge=0, le=100)
    good_threshold: int = Field(75, ge=0, le=100)
    consecutive_poor_before_alert: int = Field(2, ge=1)
    blur_auto_remove: bool = True

    @model_validator(mode="after")
    def check_thresholds(self):
        if self.poor_threshold > self.good_threshold:
            raise ValueError("poor_threshold must not exceed good_threshold")
        return self


class SessionState(BaseModel):
    started_at: Optional[int] = None
    consecutive_poor_count: int = 0
    current_streak_type: Optional[PostureStatus] = None
    current_streak_started_at: Optional[int] = None
    last_score: Optional[int] = None
    last_check_at: Optional[int] = None
    is_alert_active: bool = False


class CheckRecord(BaseModel):
    timestamp: int
    score: int
    status: PostureStatus


class DailySummary(BaseModel):
    date: str
    total_checks: int = 0
    good_checks: int = 0
    fair_checks: int = 0
    poor_checks: int = 0
    total_score: int = 0
    average_score: int = 0
    hourly_scores: Dict[int, int] = Field(default_factory=dict)
    hourly_counts: Dict[int, int] = Field(default_factory=dict)


class AlertDecision(BaseModel):
    """What the alerting collaborator should do after one recorded check."""
    alert: bool = False
    praise: bool = False
    clear_alert: bool = False
    consecutive_poor_count: int = 0
