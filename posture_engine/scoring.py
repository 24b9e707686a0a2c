# Core scoring logic - deviation from baseline -> weighted 0-100 posture score
from typing import Dict, List, Optional, Sequence

from posture_engine import logger
from posture_engine.config import DEFAULT_ENGINE_CONFIG, EngineConfig, RampRule, RatioRule
from posture_engine.metrics import extract_metrics
from posture_engine.models import (
    Baseline,
    Calibration,
    CameraRole,
    EvaluationResult,
    Metric,
    MetricBag,
    PoseData,
    PostureStatus,
    ScoreComponent,
    ScoredMetric,
    ViewMetrics,
)
from posture_engine.utils import now_ms, round_half_up


def _ramp_score(deviation: float, rule: RampRule) -> float:
    penalized = max(0.0, deviation) if rule.one_sided else abs(deviation)
    return max(0.0, 100 - (penalized / rule.divisor) * 100)


def _ratio_score(ratio: float, rule: RatioRule) -> float:
    return 100 * min(1.0, max(0.0, (ratio - rule.floor) / rule.span))


def _pair(current: MetricBag, baseline: Baseline, metric: Metric):
    value = current.get(metric)
    reference = baseline.get(metric)
    if value is None or reference is None:
        return None
    return value, reference


def _ratio(current: MetricBag, baseline: Baseline, metric: Metric) -> Optional[float]:
    pair = _pair(current, baseline, metric)
    # A zero baseline has no meaningful ratio; the metric is left unscored
    if pair is None or pair[1] == 0:
        return None
    return pair[0] / pair[1]


def score_front_metrics(current: MetricBag, baseline: Baseline,
                        config: EngineConfig = DEFAULT_ENGINE_CONFIG) -> List[ScoredMetric]:
    """
    Compare a front-view bag against the front baseline

    Args:
        current: Metrics of the frame being checked
        baseline: Front calibration baseline
        config: Engine configuration holding the ramp/ratio rules

    Returns:
        One ScoredMetric per sub-score whose inputs exist on both sides
    """
    scores = []
    ramps = config.ramp_rules
    ratios = config.ratio_rules

    pair = _pair(current, baseline, Metric.SHOULDER_SLOPE_DEG)
    if pair is not None:
        rule = ramps[ScoreComponent.SHOULDER_SLOPE]
        deviation = abs(pair[0] - pair[1])
        scores.append(ScoredMetric(
            metric=ScoreComponent.SHOULDER_SLOPE,
            score=_ramp_score(deviation, rule),
            weight=rule.weight,
            deviation=deviation,
        ))

    # Most important front sub-score
    ratio = _ratio(current, baseline, Metric.NOSE_SHOULDER_VERTICAL_RATIO)
    if ratio is not None:
        rule = ratios[ScoreComponent.VERTICAL_SLOUCH]
        scores.append(ScoredMetric(
            metric=ScoreComponent.VERTICAL_SLOUCH,
            score=_ratio_score(ratio, rule),
            weight=rule.weight,
            deviation=1 - ratio,
        ))

    pair = _pair(current, baseline, Metric.NOSE_HORIZONTAL_OFFSET)
    if pair is not None:
        rule = ramps[ScoreComponent.HEAD_CENTERING]
        deviation = abs(pair[0] - pair[1])
        scores.append(ScoredMetric(
            metric=ScoreComponent.HEAD_CENTERING,
            score=_ramp_score(deviation, rule),
            weight=rule.weight,
            deviation=deviation,
        ))

    pair = _pair(current, baseline, Metric.HEAD_TILT_DEG)
    if pair is not None:
        rule = ramps[ScoreComponent.HEAD_TILT]
        deviation = abs(pair[0] - pair[1])
        scores.append(ScoredMetric(
            metric=ScoreComponent.HEAD_TILT,
            score=_ramp_score(deviation, rule),
            weight=rule.weight,
            deviation=deviation,
        ))

    ear_ratios = [
        ratio for ratio in (
            _ratio(current, baseline, Metric.LEFT_EAR_SHOULDER_VERTICAL),
            _ratio(current, baseline, Metric.RIGHT_EAR_SHOULDER_VERTICAL),
        )
        if ratio is not None
    ]
    if ear_ratios:
        rule = ratios[ScoreComponent.EAR_SHOULDER_ALIGNMENT]
        avg_ratio = sum(ear_ratios) / len(ear_ratios)
        scores.append(ScoredMetric(
            metric=ScoreComponent.EAR_SHOULDER_ALIGNMENT,
            score=_ratio_score(avg_ratio, rule),
            weight=rule.weight,
            deviation=1 - avg_ratio,
        ))

    return scores


def score_side_metrics(current: MetricBag, baseline: Baseline,
                       config: EngineConfig = DEFAULT_ENGINE_CONFIG) -> List[ScoredMetric]:
    """Compare a side-view bag against the side baseline (deviations stay signed)"""
    scores = []
    components = (
        (Metric.NECK_INCLINATION_DEG, ScoreComponent.NECK_INCLINATION),
        (Metric.TORSO_INCLINATION_DEG, ScoreComponent.TORSO_INCLINATION),
        (Metric.HEAD_FORWARD_OFFSET, ScoreComponent.HEAD_FORWARD_OFFSET),
    )

    for metric, component in components:
        pair = _pair(current, baseline, metric)
        if pair is None:
            continue
        rule = config.ramp_rules[component]
        deviation = pair[0] - pair[1]
        scores.append(ScoredMetric(
            metric=component,
            score=_ramp_score(deviation, rule),
            weight=rule.weight,
            deviation=deviation,
        ))

    return scores


SCORERS = {
    CameraRole.FRONT: score_front_metrics,
    CameraRole.SIDE: score_side_metrics,
}


def aggregate_score(scores: Sequence[ScoredMetric]) -> Optional[int]:
    """Weighted mean of the sub-scores, clamped to 0-100 and rounded"""
    total_weight = sum(s.weight for s in scores)
    if not scores or total_weight <= 0:
        return None
    weighted = sum(s.score * s.weight for s in scores) / total_weight
    return round_half_up(max(0.0, min(100.0, weighted)))


def posture_status(score: float, config: EngineConfig = DEFAULT_ENGINE_CONFIG) -> PostureStatus:
    """
    Convert a posture score to its status

    Args:
        score: Posture score (0-100, higher is better)
        config: Supplies the good/poor thresholds

    Returns:
        GOOD, FAIR or POOR
    """
    if score >= config.good_threshold:
        return PostureStatus.GOOD
    elif score >= config.poor_threshold:
        return PostureStatus.FAIR
    return PostureStatus.POOR


def evaluate_posture(pose_data: PoseData, calibration: Optional[Calibration],
                     config: EngineConfig = DEFAULT_ENGINE_CONFIG,
                     timestamp: Optional[int] = None) -> EvaluationResult:
    """
    Score the current pose of every available camera against its baseline

    Args:
        pose_data: Front and/or side pose of this capture
        calibration: Stored calibration, None if the user never calibrated
        config: Engine configuration
        timestamp: Result timestamp in unix ms (defaults to now)

    Returns:
        EvaluationResult; NOT_CALIBRATED without calibration, NO_DATA when no
        view could be extracted and scored
    """
    if calibration is None:
        return EvaluationResult(score=None, status=PostureStatus.NOT_CALIBRATED)

    scores: List[ScoredMetric] = []
    bags: Dict[CameraRole, Optional[MetricBag]] = {}

    for role in CameraRole:
        view = pose_data.view(role)
        if view is None:
            bags[role] = None
            continue
        bags[role] = extract_metrics(role, view, config)
        baseline = calibration.baseline_for(role)
        if bags[role] is not None and baseline is not None:
            scores.extend(SCORERS[role](bags[role], baseline, config))

    metrics = ViewMetrics(front_metrics=bags[CameraRole.FRONT], side_metrics=bags[CameraRole.SIDE])

    if not scores:
        logger.log_engine("No Scoreable Metrics", {
            "front_extracted": metrics.front_metrics is not None,
            "side_extracted": metrics.side_metrics is not None,
        })
        return EvaluationResult(score=None, status=PostureStatus.NO_DATA, metrics=metrics)

    final_score = aggregate_score(scores)
    status = posture_status(final_score, config)

    logger.log_engine("Posture Evaluated", {
        "score": final_score,
        "status": status.value,
        "sub_scores": ", ".join(f"{s.metric.value}={s.score:.0f}" for s in scores),
    })

    return EvaluationResult(
        score=final_score,
        status=status,
        metrics=metrics,
        breakdown=scores,
        timestamp=timestamp if timestamp is not None else now_ms(),
    )
