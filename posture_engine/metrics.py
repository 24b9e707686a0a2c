# Feature extraction - keypoints of one camera view -> metric bag
import math
from typing import Dict, Optional

from posture_engine.config import DEFAULT_ENGINE_CONFIG, EngineConfig
from posture_engine.models import (
    CameraRole,
    KeypointIndex,
    KeypointSet,
    Metric,
    MetricBag,
    ViewPose,
)
from posture_engine.utils import (
    distance,
    keypoint_at,
    line_angle_degrees,
    midpoint,
    signed_angle_degrees,
)


def calculate_front_metrics(keypoints: KeypointSet,
                            image_width: Optional[int] = None,
                            image_height: Optional[int] = None,
                            config: EngineConfig = DEFAULT_ENGINE_CONFIG) -> Optional[MetricBag]:
    """
    Front camera features, all normalized by shoulder width where they are ratios.

    Args:
        keypoints: Pose-model keypoints for the frame
        image_width: Frame width in pixels (reserved for normalization)
        image_height: Frame height in pixels (reserved for normalization)
        config: Engine configuration

    Returns:
        MetricBag, or None when both shoulders are not confidently visible
        or sit less than `min_shoulder_distance` pixels apart
    """
    def kp(index):
        return keypoint_at(keypoints, index, config.min_confidence)

    nose = kp(KeypointIndex.NOSE)
    l_eye = kp(KeypointIndex.L_EYE)
    r_eye = kp(KeypointIndex.R_EYE)
    l_ear = kp(KeypointIndex.L_EAR)
    r_ear = kp(KeypointIndex.R_EAR)
    l_shoulder = kp(KeypointIndex.L_SHOULDER)
    r_shoulder = kp(KeypointIndex.R_SHOULDER)
    l_hip = kp(KeypointIndex.L_HIP)
    r_hip = kp(KeypointIndex.R_HIP)

    if l_shoulder is None or r_shoulder is None:
        return None

    shoulder_mid = midpoint(l_shoulder, r_shoulder)
    shoulder_dist = distance(l_shoulder, r_shoulder)
    if shoulder_dist < config.min_shoulder_distance:
        return None

    values: Dict[Metric, float] = {}

    # Lateral shoulder tilt
    values[Metric.SHOULDER_SLOPE_DEG] = line_angle_degrees(l_shoulder, r_shoulder)

    if nose is not None:
        # Slouching pulls the nose down towards the shoulder line
        values[Metric.NOSE_SHOULDER_VERTICAL_RATIO] = (shoulder_mid.y - nose.y) / shoulder_dist
        values[Metric.NOSE_HORIZONTAL_OFFSET] = (nose.x - shoulder_mid.x) / shoulder_dist

    if l_eye is not None and r_eye is not None:
        values[Metric.HEAD_TILT_DEG] = line_angle_degrees(l_eye, r_eye)

    if l_ear is not None:
        values[Metric.LEFT_EAR_SHOULDER_VERTICAL] = (l_shoulder.y - l_ear.y) / shoulder_dist
    if r_ear is not None:
        values[Metric.RIGHT_EAR_SHOULDER_VERTICAL] = (r_shoulder.y - r_ear.y) / shoulder_dist

    if l_hip is not None and r_hip is not None:
        hip_mid = midpoint(l_hip, r_hip)
        values[Metric.TORSO_INCLINATION_DEG] = math.degrees(math.atan2(
            shoulder_mid.x - hip_mid.x,
            hip_mid.y - shoulder_mid.y,
        ))

    values[Metric.SHOULDER_WIDTH] = shoulder_dist
    return MetricBag(view=CameraRole.FRONT, values=values)


def calculate_side_metrics(keypoints: KeypointSet,
                           image_width: Optional[int] = None,
                           image_height: Optional[int] = None,
                           config: EngineConfig = DEFAULT_ENGINE_CONFIG) -> Optional[MetricBag]:
    """
    Side camera features. Each landmark prefers the left side and falls back
    to the right, whichever faces the camera. Returns None without a shoulder.
    """
    def kp(index):
        return keypoint_at(keypoints, index, config.min_confidence)

    ear = kp(KeypointIndex.L_EAR) or kp(KeypointIndex.R_EAR)
    shoulder = kp(KeypointIndex.L_SHOULDER) or kp(KeypointIndex.R_SHOULDER)
    hip = kp(KeypointIndex.L_HIP) or kp(KeypointIndex.R_HIP)
    nose = kp(KeypointIndex.NOSE)

    if shoulder is None:
        return None

    values: Dict[Metric, float] = {}

    # Forward head posture: neck line angle from vertical
    if ear is not None:
        values[Metric.NECK_INCLINATION_DEG] = math.degrees(math.atan2(
            abs(ear.x - shoulder.x),
            shoulder.y - ear.y,
        ))

    if hip is not None:
        values[Metric.TORSO_INCLINATION_DEG] = math.degrees(math.atan2(
            abs(shoulder.x - hip.x),
            hip.y - shoulder.y,
        ))

    if ear is not None and hip is not None:
        values[Metric.EAR_SHOULDER_HIP_ANGLE] = signed_angle_degrees(ear, shoulder, hip)

    if nose is not None and hip is not None:
        torso_length = distance(shoulder, hip)
        if torso_length > config.min_torso_length:
            values[Metric.HEAD_FORWARD_OFFSET] = (nose.x - shoulder.x) / torso_length

    return MetricBag(view=CameraRole.SIDE, values=values)


EXTRACTORS = {
    CameraRole.FRONT: calculate_front_metrics,
    CameraRole.SIDE: calculate_side_metrics,
}


def extract_metrics(role: CameraRole, pose: ViewPose,
                    config: EngineConfig = DEFAULT_ENGINE_CONFIG) -> Optional[MetricBag]:
    """Run the extractor matching `role` on one camera's pose."""
    extractor = EXTRACTORS[role]
    return extractor(pose.keypoints, pose.width, pose.height, config=config)
