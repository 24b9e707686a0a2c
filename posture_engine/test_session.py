from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from posture_engine import config, session
from posture_engine.models import AlertMode, EvaluationResult, PostureStatus

DAY_START = datetime(2026, 10, 17, 9, 30, tzinfo=timezone.utc)


def ms(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


def result(score, status=None):
    if status is None:
        status = PostureStatus.GOOD if score >= 75 else PostureStatus.FAIR if score >= 40 else PostureStatus.POOR
    return EvaluationResult(score=score, status=status, timestamp=0)


@pytest.fixture(autouse=True)
def utc_summaries(monkeypatch):
    monkeypatch.setattr(config, "SUMMARY_TIMEZONE", "UTC")


@pytest.fixture
def store():
    return session.MonitorStore()


def test_unscored_results_are_not_recorded(store):
    assert session.record_check(store, EvaluationResult(status=PostureStatus.NO_DATA)) is None
    assert session.record_check(store, EvaluationResult(status=PostureStatus.NOT_CALIBRATED)) is None
    assert store.recent_checks == []
    assert store.daily_summaries == {}


def test_alert_after_consecutive_poor_checks(store):
    first = session.record_check(store, result(20), now=1000)
    second = session.record_check(store, result(30), now=2000)

    assert not first.alert
    assert second.alert
    assert second.consecutive_poor_count == 2
    assert store.session.current_streak_type == PostureStatus.POOR
    assert store.session.current_streak_started_at == 1000
    assert store.session.last_score == 30


def test_no_alert_when_poor_notifications_disabled(store):
    session.save_settings(store, {"notify_on_poor": False, "consecutive_poor_before_alert": 1})
    decision = session.record_check(store, result(10), now=1)
    assert not decision.alert
    assert decision.consecutive_poor_count == 1


def test_recovery_to_good_earns_praise(store):
    session.record_check(store, result(20), now=1)
    session.record_check(store, result(20), now=2)
    decision = session.record_check(store, result(90), now=3)

    assert decision.praise
    assert store.session.consecutive_poor_count == 0
    assert store.session.current_streak_type == PostureStatus.GOOD
    assert store.session.current_streak_started_at == 3


def test_recovery_to_fair_is_not_praised(store):
    session.record_check(store, result(20), now=1)
    session.record_check(store, result(20), now=2)
    assert not session.record_check(store, result(50), now=3).praise


def test_single_poor_then_good_is_not_a_recovery(store):
    session.record_check(store, result(20), now=1)
    assert not session.record_check(store, result(90), now=2).praise


def test_good_and_fair_share_a_streak(store):
    session.record_check(store, result(90), now=1)
    session.record_check(store, result(60), now=2)
    assert store.session.current_streak_type == PostureStatus.FAIR
    assert store.session.current_streak_started_at == 1


def test_blur_alert_is_cleared_on_improvement(store):
    session.save_settings(store, {"alert_mode": AlertMode.BLUR, "consecutive_poor_before_alert": 1})

    assert session.record_check(store, result(10), now=1).alert
    assert store.session.is_alert_active

    decision = session.record_check(store, result(60), now=2)
    assert decision.clear_alert
    assert not store.session.is_alert_active


def test_blur_kept_without_auto_remove(store):
    session.save_settings(store, {
        "alert_mode": AlertMode.BLUR,
        "consecutive_poor_before_alert": 1,
        "blur_auto_remove": False,
    })
    session.record_check(store, result(10), now=1)
    assert not session.record_check(store, result(80), now=2).clear_alert
    assert store.session.is_alert_active


def test_notification_alerts_leave_nothing_active(store):
    session.save_settings(store, {"consecutive_poor_before_alert": 1})
    session.record_check(store, result(10), now=1)
    assert not store.session.is_alert_active


def test_recent_checks_are_capped(store, monkeypatch):
    monkeypatch.setattr(config, "MAX_RECENT_CHECKS", 3)
    for i, score in enumerate([10, 20, 30, 40, 50]):
        session.record_check(store, result(score), now=i)

    assert [c.score for c in store.recent_checks] == [30, 40, 50]
    assert [c.score for c in session.recent_checks(store, limit=2)] == [40, 50]
    assert session.recent_checks(store, limit=0) == []


def test_daily_summary(store):
    session.record_check(store, result(90), now=ms(DAY_START))
    session.record_check(store, result(50), now=ms(DAY_START + timedelta(minutes=10)))
    session.record_check(store, result(21), now=ms(DAY_START + timedelta(hours=1)))

    summary = store.daily_summaries["2026-10-17"]
    assert summary.total_checks == 3
    assert (summary.good_checks, summary.fair_checks, summary.poor_checks) == (1, 1, 1)
    assert summary.total_score == 161
    assert summary.average_score == 54
    assert summary.hourly_scores == {9: 140, 10: 21}
    assert summary.hourly_counts == {9: 2, 10: 1}


def test_old_summaries_are_pruned(store):
    session.record_check(store, result(80), now=ms(DAY_START))
    session.record_check(store, result(80), now=ms(DAY_START + timedelta(days=30)))
    assert len(store.daily_summaries) == 2

    session.record_check(store, result(80), now=ms(DAY_START + timedelta(days=91)))
    assert "2026-10-17" not in store.daily_summaries
    assert len(store.daily_summaries) == 2


def test_save_settings_validates_whole_record(store):
    with pytest.raises(ValidationError):
        session.save_settings(store, {"poor_threshold": 80})
    assert store.settings.poor_threshold == config.DEFAULT_SETTINGS.poor_threshold

    updated = session.save_settings(store, {"poor_threshold": 30, "good_threshold": 85})
    assert (updated.poor_threshold, updated.good_threshold) == (30, 85)


def test_start_and_reset_session(store):
    session.record_check(store, result(10), now=1)
    started = session.start_session(store, now=5)

    assert started.started_at == 5
    assert started.consecutive_poor_count == 0
    assert store.settings.monitoring_enabled

    session.reset_session(store)
    assert store.session.started_at is None
    assert not store.settings.monitoring_enabled
