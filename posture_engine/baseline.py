# Baseline Builder - calibration samples -> per-metric mean / stddev
import math
from typing import Dict, Iterable, List, Optional, Sequence

from posture_engine import logger
from posture_engine.config import CALIBRATION_VERSION, DEFAULT_ENGINE_CONFIG, EngineConfig
from posture_engine.metrics import extract_metrics
from posture_engine.models import (
    Baseline,
    Calibration,
    CameraRole,
    Metric,
    MetricBag,
    ViewPose,
)
from posture_engine.utils import now_ms


def build_baseline(bags: Iterable[Optional[MetricBag]]) -> Optional[Baseline]:
    """
    Aggregate calibration metric bags into a Baseline.

    Failed extractions (None) are dropped first. The metric set comes from the
    first remaining bag; each metric's mean covers every bag that supplied it.
    Population standard deviation is recorded only for metrics with two or
    more samples.

    Args:
        bags: Metric bags from one camera role's calibration frames

    Returns:
        Baseline, or None when no bag survived filtering
    """
    valid: List[MetricBag] = [bag for bag in bags if bag is not None]
    if not valid:
        return None

    means: Dict[Metric, float] = {}
    stddevs: Dict[Metric, float] = {}

    for metric in valid[0].values:
        samples = [bag.get(metric) for bag in valid]
        samples = [value for value in samples if value is not None]
        if not samples:
            continue

        mean = sum(samples) / len(samples)
        means[metric] = mean

        if len(samples) > 1:
            variance = sum((value - mean) ** 2 for value in samples) / len(samples)
            stddevs[metric] = math.sqrt(variance)

    baseline = Baseline(
        view=valid[0].view,
        means=means,
        stddevs=stddevs,
        sample_count=len(valid),
    )

    logger.log_engine("Baseline Built", {
        "view": valid[0].view.value,
        "samples": len(valid),
        "metrics": len(means),
    })
    return baseline


def calibrate_view(role: CameraRole, frames: Sequence[ViewPose],
                   config: EngineConfig = DEFAULT_ENGINE_CONFIG) -> Optional[Baseline]:
    """Extract every pre-collected calibration frame of one role and build its baseline"""
    bags = [extract_metrics(role, frame, config) for frame in frames]
    baseline = build_baseline(bags)

    usable = sum(1 for bag in bags if bag is not None)
    if baseline is None:
        logger.log_calibration("Calibration Unusable", {
            "role": role.value,
            "frames": len(frames),
            "usable_frames": usable,
        }, level="DEBUG")
    else:
        logger.log_calibration("Baseline Captured", {
            "role": role.value,
            "frames": len(frames),
            "usable_frames": usable,
            "metrics": ", ".join(metric.value for metric in baseline.means),
        }, level="DEBUG")
    return baseline


def build_calibration(front: Optional[Baseline] = None,
                      side: Optional[Baseline] = None,
                      calibrated_at: Optional[int] = None) -> Optional[Calibration]:
    """Stamp the baselines of a calibration run; None if neither role produced one"""
    if front is None and side is None:
        return None
    return Calibration(
        front=front,
        side=side,
        calibrated_at=calibrated_at if calibrated_at is not None else now_ms(),
        version=CALIBRATION_VERSION,
    )
