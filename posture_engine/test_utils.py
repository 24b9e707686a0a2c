import math

import pytest

from posture_engine.models import Keypoint, KeypointIndex, Point
from posture_engine.utils import (
    distance,
    keypoint_at,
    line_angle_degrees,
    midpoint,
    round_half_up,
    signed_angle_degrees,
    unix_ms_to_local,
)


@pytest.mark.parametrize("score", [0.0, 0.1, 0.29, 0.2999])
def test_keypoint_below_confidence_is_absent(score):
    keypoints = [Keypoint(x=10, y=20, score=score)]
    assert keypoint_at(keypoints, 0) is None


@pytest.mark.parametrize("score", [0.3, 0.5, 1.0])
def test_keypoint_at_or_above_confidence_is_returned_unchanged(score):
    point = Keypoint(x=10, y=20, score=score)
    assert keypoint_at([point], 0) is point


def test_keypoint_missing_entries_are_absent():
    keypoints = [None, Keypoint(x=1, y=1, score=0.9)]
    assert keypoint_at(keypoints, 0) is None
    assert keypoint_at(keypoints, KeypointIndex.R_ANKLE) is None
    assert keypoint_at(keypoints, -1) is None


def test_keypoint_sparse_mapping():
    shoulder = Keypoint(x=5, y=6, score=0.8)
    keypoints = {int(KeypointIndex.L_SHOULDER): shoulder}
    assert keypoint_at(keypoints, KeypointIndex.L_SHOULDER) is shoulder
    assert keypoint_at(keypoints, KeypointIndex.R_SHOULDER) is None


def test_keypoint_custom_threshold():
    point = Keypoint(x=0, y=0, score=0.5)
    assert keypoint_at([point], 0, min_confidence=0.6) is None
    assert keypoint_at([point], 0, min_confidence=0.5) is point


def test_midpoint_and_distance():
    a, b = Point(x=0, y=0), Point(x=6, y=8)
    assert midpoint(a, b) == Point(x=3, y=4)
    assert distance(a, b) == 10


def test_signed_angle_right_angles():
    vertex = Point(x=0, y=0)
    a, c = Point(x=1, y=0), Point(x=0, y=1)
    assert signed_angle_degrees(a, vertex, c) == pytest.approx(90)
    assert signed_angle_degrees(c, vertex, a) == pytest.approx(-90)


def test_signed_angle_opposite_rays_is_180():
    vertex = Point(x=0, y=0)
    assert signed_angle_degrees(Point(x=0, y=-70), vertex, Point(x=0, y=130)) == pytest.approx(180)


def test_line_angle():
    assert line_angle_degrees(Point(x=0, y=0), Point(x=10, y=10)) == pytest.approx(45)
    assert line_angle_degrees(Point(x=0, y=0), Point(x=10, y=0)) == 0


def test_round_half_up():
    assert round_half_up(49.5) == 50
    assert round_half_up(50.5) == 51
    assert round_half_up(74.49) == 74


def test_unix_ms_to_local_utc():
    moment = unix_ms_to_local(0, "UTC")
    assert (moment.year, moment.hour) == (1970, 0)
    assert math.isclose(moment.timestamp(), 0)
