# Session Tracking - check history, streaks, alert decisions and daily summaries
from datetime import timedelta
from typing import Dict, List, Optional

from posture_engine import config, logger
from posture_engine.models import (
    AlertDecision,
    AlertMode,
    Calibration,
    CheckRecord,
    DailySummary,
    EvaluationResult,
    PostureStatus,
    SessionState,
    Settings,
)
from posture_engine.utils import now_ms, round_half_up, unix_ms_to_local


class MonitorStore:
    """In-memory state of one monitored user (settings, calibration, session, history)"""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings: Settings = settings or config.DEFAULT_SETTINGS.model_copy()
        self.calibration: Optional[Calibration] = None
        self.session: SessionState = SessionState()
        self.recent_checks: List[CheckRecord] = []
        self.daily_summaries: Dict[str, DailySummary] = {}


def save_settings(store: MonitorStore, updates: Dict) -> Settings:
    """Merge partial updates into the stored settings (re-validated as a whole)"""
    merged = {**store.settings.model_dump(), **updates}
    store.settings = Settings(**merged)
    return store.settings


def update_daily_summary(summaries: Dict[str, DailySummary], score: int,
                         status: PostureStatus, timestamp: int) -> DailySummary:
    """
    Fold one check into the summary of its day and prune old days

    Args:
        summaries: Summaries keyed by ISO date
        score: Posture score of the check
        status: Posture status of the check
        timestamp: Check time in unix ms

    Returns:
        The updated summary for the check's day
    """
    moment = unix_ms_to_local(timestamp, config.SUMMARY_TIMEZONE)
    today = moment.date().isoformat()
    hour = moment.hour

    summary = summaries.setdefault(today, DailySummary(date=today))
    summary.total_checks += 1
    summary.total_score += score
    summary.average_score = round_half_up(summary.total_score / summary.total_checks)

    if status == PostureStatus.GOOD:
        summary.good_checks += 1
    elif status == PostureStatus.FAIR:
        summary.fair_checks += 1
    elif status == PostureStatus.POOR:
        summary.poor_checks += 1

    summary.hourly_scores[hour] = summary.hourly_scores.get(hour, 0) + score
    summary.hourly_counts[hour] = summary.hourly_counts.get(hour, 0) + 1

    # ISO dates compare correctly as strings
    cutoff = (moment - timedelta(days=config.SUMMARY_RETENTION_DAYS)).date().isoformat()
    for date in [d for d in summaries if d < cutoff]:
        del summaries[date]

    return summary


def record_check(store: MonitorStore, result: EvaluationResult,
                 now: Optional[int] = None) -> Optional[AlertDecision]:
    """
    Record one evaluation and decide what the alerting side should do

    Results without a score (not calibrated / no data) are not recorded.

    Args:
        store: Monitor state to update
        result: Evaluation of the latest capture
        now: Current time in unix ms (defaults to now)

    Returns:
        AlertDecision, or None when the result carried no score
    """
    if result.score is None:
        return None

    now = now if now is not None else now_ms()
    settings = store.settings
    session = store.session
    score, status = result.score, result.status

    store.recent_checks.append(CheckRecord(timestamp=now, score=score, status=status))
    if len(store.recent_checks) > config.MAX_RECENT_CHECKS:
        del store.recent_checks[:len(store.recent_checks) - config.MAX_RECENT_CHECKS]

    update_daily_summary(store.daily_summaries, score, status, now)

    previous_poor = session.consecutive_poor_count
    decision = AlertDecision()

    if status == PostureStatus.POOR:
        count = previous_poor + 1
        decision.alert = count >= settings.consecutive_poor_before_alert and settings.notify_on_poor
        decision.consecutive_poor_count = count

        streak_start = (
            session.current_streak_started_at
            if session.current_streak_type == PostureStatus.POOR else now
        )
        store.session = session.model_copy(update={
            "consecutive_poor_count": count,
            "last_score": score,
            "last_check_at": now,
            "current_streak_type": PostureStatus.POOR,
            "current_streak_started_at": streak_start,
            "is_alert_active": session.is_alert_active or (
                decision.alert and settings.alert_mode != AlertMode.NOTIFICATION
            ),
        })

        if decision.alert:
            logger.log_session("Alert Triggered", {
                "score": score,
                "consecutive_poor": count,
                "mode": settings.alert_mode.value,
            })
    else:
        recovered = previous_poor >= settings.consecutive_poor_before_alert
        decision.clear_alert = session.is_alert_active and settings.blur_auto_remove
        decision.praise = recovered and settings.notify_on_recovery and status == PostureStatus.GOOD

        streak_continues = session.current_streak_type in (PostureStatus.GOOD, PostureStatus.FAIR)
        store.session = session.model_copy(update={
            "consecutive_poor_count": 0,
            "last_score": score,
            "last_check_at": now,
            "current_streak_type": status,
            "current_streak_started_at": session.current_streak_started_at if streak_continues else now,
            "is_alert_active": session.is_alert_active and not decision.clear_alert,
        })

        if decision.praise:
            logger.log_session("Recovery Detected", {"score": score, "after_poor_checks": previous_poor})

    return decision


def start_session(store: MonitorStore, now: Optional[int] = None) -> SessionState:
    store.session = SessionState(started_at=now if now is not None else now_ms())
    store.settings = store.settings.model_copy(update={"monitoring_enabled": True})
    logger.log_session("Monitoring Started", {"interval_s": store.settings.check_interval_seconds})
    return store.session


def reset_session(store: MonitorStore) -> SessionState:
    store.session = SessionState()
    store.settings = store.settings.model_copy(update={"monitoring_enabled": False})
    logger.log_session("Monitoring Stopped")
    return store.session


def recent_checks(store: MonitorStore, limit: Optional[int] = None) -> List[CheckRecord]:
    if limit is None:
        return list(store.recent_checks)
    return store.recent_checks[-limit:] if limit > 0 else []
