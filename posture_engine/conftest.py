# Shared fixtures: synthetic MoveNet keypoints for an upright and a slouched sitter
import pytest

from posture_engine.models import Keypoint, KeypointIndex, PoseData, ViewPose

K = KeypointIndex

# Front camera, 80 px shoulders, head centered and level
UPRIGHT_FRONT = {
    K.NOSE: (100, 50),
    K.L_EYE: (90, 45),
    K.R_EYE: (110, 45),
    K.L_EAR: (80, 55),
    K.R_EAR: (120, 55),
    K.L_SHOULDER: (60, 120),
    K.R_SHOULDER: (140, 120),
    K.L_HIP: (70, 250),
    K.R_HIP: (130, 250),
}

# Nose and ears sink towards the shoulder line
SLOUCHED_FRONT = {
    **UPRIGHT_FRONT,
    K.NOSE: (100, 92),
    K.L_EAR: (80, 100),
    K.R_EAR: (120, 100),
}

# Side camera, left side facing the lens, ear stacked over shoulder over hip
UPRIGHT_SIDE = {
    K.NOSE: (130, 45),
    K.L_EAR: (100, 50),
    K.L_SHOULDER: (100, 120),
    K.L_HIP: (100, 250),
}


def make_keypoints(points, score=0.9, low_confidence=()):
    """Dense 17-entry keypoint list; unlisted landmarks are undetected (None)"""
    keypoints = [None] * len(KeypointIndex)
    for index, (x, y) in points.items():
        confidence = 0.1 if index in low_confidence else score
        keypoints[index] = Keypoint(x=x, y=y, score=confidence, name=index.name.lower())
    return keypoints


def make_view(points, **kwargs):
    return ViewPose(keypoints=make_keypoints(points, **kwargs), width=640, height=480)


def as_json(view: ViewPose):
    return view.model_dump(mode="json")


@pytest.fixture
def upright_front():
    return make_view(UPRIGHT_FRONT)


@pytest.fixture
def slouched_front():
    return make_view(SLOUCHED_FRONT)


@pytest.fixture
def upright_side():
    return make_view(UPRIGHT_SIDE)


@pytest.fixture
def upright_pose(upright_front, upright_side):
    return PoseData(front=upright_front, side=upright_side)
