# Helper utilities - keypoint access, plane geometry, timestamps
import math
import time
from datetime import datetime, timezone, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo

from posture_engine.config import MIN_CONFIDENCE
from posture_engine.models import Keypoint, KeypointSet, Point


def keypoint_at(keypoints: KeypointSet, index: int,
                min_confidence: float = MIN_CONFIDENCE) -> Optional[Keypoint]:
    """
    Return the keypoint at `index` only if the model is confident enough in it.

    Missing, undetected (None) and low-confidence keypoints all come back as
    None; callers treat that as "unknown", never as a zero coordinate.
    """
    if isinstance(keypoints, dict):
        point = keypoints.get(int(index))
    elif 0 <= index < len(keypoints):
        point = keypoints[index]
    else:
        point = None

    if point is not None and point.score >= min_confidence:
        return point
    return None


def midpoint(a, b) -> Point:
    return Point(x=(a.x + b.x) / 2, y=(a.y + b.y) / 2)


def distance(a, b) -> float:
    return math.hypot(a.x - b.x, a.y - b.y)


def signed_angle_degrees(a, b, c) -> float:
    """
    Angle at vertex `b` between the rays b->a and b->c.

    Signed by the cross product, in the range (-180, 180].
    """
    ba_x, ba_y = a.x - b.x, a.y - b.y
    bc_x, bc_y = c.x - b.x, c.y - b.y
    dot = ba_x * bc_x + ba_y * bc_y
    cross = ba_x * bc_y - ba_y * bc_x
    angle = math.degrees(math.atan2(cross, dot))
    return 180.0 if angle == -180.0 else angle


def line_angle_degrees(start, end) -> float:
    """Angle of the line start->end from horizontal."""
    return math.degrees(math.atan2(end.y - start.y, end.x - start.x))


def now_ms() -> int:
    return int(time.time() * 1000)


def get_timezone(name: str) -> tzinfo:
    if name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


def unix_ms_to_local(ms: int, tz_name: str) -> datetime:
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).astimezone(get_timezone(tz_name))


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative scores (Python's round() is banker's)."""
    return int(math.floor(value + 0.5))
