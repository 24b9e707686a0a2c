# Configuration Module - environment settings plus the engine's tunable constants
import os
from typing import Dict

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from posture_engine.models import ScoreComponent, Settings

# Load environment variables
load_dotenv()

# Logging Configuration
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Keypoint Gate (fixed, not a user setting)
MIN_CONFIDENCE = 0.3

# Degenerate geometry guards (pixels)
MIN_SHOULDER_DISTANCE = 1.0
MIN_TORSO_LENGTH = 1.0

# Status Thresholds (user-facing defaults)
GOOD_THRESHOLD = int(os.getenv("GOOD_THRESHOLD", "75"))
POOR_THRESHOLD = int(os.getenv("POOR_THRESHOLD", "40"))

# Calibration Format
CALIBRATION_VERSION = 1

# History Retention
MAX_RECENT_CHECKS = int(os.getenv("MAX_RECENT_CHECKS", "200"))
SUMMARY_RETENTION_DAYS = int(os.getenv("SUMMARY_RETENTION_DAYS", "90"))
SUMMARY_TIMEZONE = os.getenv("SUMMARY_TIMEZONE", "UTC")

# Default user settings
DEFAULT_SETTINGS = Settings(
    check_interval_seconds=int(os.getenv("CHECK_INTERVAL_SECONDS", "60")),
    good_threshold=GOOD_THRESHOLD,
    poor_threshold=POOR_THRESHOLD,
)


class RampRule(BaseModel):
    """Linear ramp: sub-score falls from 100 to 0 as the deviation grows to `divisor`."""
    model_config = ConfigDict(frozen=True)

    weight: float = Field(gt=0)
    divisor: float = Field(gt=0)
    one_sided: bool = False  # only increases are penalized


class RatioRule(BaseModel):
    """Ratio ramp: current/baseline of `floor` scores 0, `floor + span` or more scores 100."""
    model_config = ConfigDict(frozen=True)

    weight: float = Field(gt=0)
    floor: float = 0.7
    span: float = Field(0.3, gt=0)


DEFAULT_RAMP_RULES = {
    # Front
    ScoreComponent.SHOULDER_SLOPE: RampRule(weight=1.0, divisor=15),
    ScoreComponent.HEAD_CENTERING: RampRule(weight=0.8, divisor=0.3),
    ScoreComponent.HEAD_TILT: RampRule(weight=0.8, divisor=20),
    # Side
    ScoreComponent.NECK_INCLINATION: RampRule(weight=3.0, divisor=20, one_sided=True),
    ScoreComponent.TORSO_INCLINATION: RampRule(weight=2.0, divisor=25),
    ScoreComponent.HEAD_FORWARD_OFFSET: RampRule(weight=2.5, divisor=0.25, one_sided=True),
}

DEFAULT_RATIO_RULES = {
    ScoreComponent.VERTICAL_SLOUCH: RatioRule(weight=2.5),
    ScoreComponent.EAR_SHOULDER_ALIGNMENT: RatioRule(weight=1.5),
}


class EngineConfig(BaseModel):
    """Everything the extractors, scorers and evaluator are allowed to tune."""
    model_config = ConfigDict(frozen=True)

    min_confidence: float = Field(MIN_CONFIDENCE, ge=0, le=1)
    min_shoulder_distance: float = MIN_SHOULDER_DISTANCE
    min_torso_length: float = MIN_TORSO_LENGTH
    good_threshold: int = Field(GOOD_THRESHOLD, ge=0, le=100)
    poor_threshold: int = Field(POOR_THRESHOLD, ge=0, le=100)
    ramp_rules: Dict[ScoreComponent, RampRule] = Field(default_factory=lambda: dict(DEFAULT_RAMP_RULES))
    ratio_rules: Dict[ScoreComponent, RatioRule] = Field(default_factory=lambda: dict(DEFAULT_RATIO_RULES))

    # Partial rule tables override the defaults; every scored component keeps a rule
    @field_validator("ramp_rules", mode="before")
    @classmethod
    def merge_ramp_rules(cls, value):
        return {**DEFAULT_RAMP_RULES, **value} if isinstance(value, dict) else value

    @field_validator("ratio_rules", mode="before")
    @classmethod
    def merge_ratio_rules(cls, value):
        return {**DEFAULT_RATIO_RULES, **value} if isinstance(value, dict) else value

    @model_validator(mode="after")
    def check_thresholds(self):
        if self.poor_threshold > self.good_threshold:
            raise ValueError(
                f"poor_threshold ({self.poor_threshold}) must not exceed "
                f"good_threshold ({self.good_threshold})"
            )
        return self

    def with_thresholds(self, good_threshold: int, poor_threshold: int) -> "EngineConfig":
        """Copy of this config using a user's good/poor split (re-validated)."""
        data = self.model_dump()
        data.update(good_threshold=good_threshold, poor_threshold=poor_threshold)
        return EngineConfig(**data)


DEFAULT_ENGINE_CONFIG = EngineConfig()
