# Main FastAPI Application - Posture Scoring Service
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel, ValidationError

from posture_engine import __version__, config, logger, session
from posture_engine.baseline import build_calibration, calibrate_view
from posture_engine.models import (
    AlertDecision,
    Calibration,
    CameraRole,
    EvaluationResult,
    PoseData,
    Settings,
    ViewPose,
)
from posture_engine.scoring import evaluate_posture
from posture_engine.utils import now_ms

# Initialize FastAPI
app = FastAPI(
    title="Posture Scoring Engine",
    description="Keypoint features, calibration baselines and weighted posture scores",
    version=__version__,
)

# Single monitored user
STORE = session.MonitorStore()


def get_store() -> session.MonitorStore:
    return STORE


def engine_config_for(settings: Settings) -> config.EngineConfig:
    """Engine config using the user's good/poor thresholds"""
    return config.DEFAULT_ENGINE_CONFIG.with_thresholds(
        good_threshold=settings.good_threshold,
        poor_threshold=settings.poor_threshold,
    )


# ============================================================================
# PYDANTIC MODELS
# ============================================================================

class EvaluateRequest(BaseModel):
    pose: PoseData
    calibration: Optional[Calibration] = None


class CalibrateRequest(BaseModel):
    frames: List[ViewPose]


class CheckRequest(BaseModel):
    pose: PoseData


class CheckResponse(BaseModel):
    result: EvaluationResult
    decision: Optional[AlertDecision] = None


class SettingsUpdate(BaseModel):
    monitoring_enabled: Optional[bool] = None
    check_interval_seconds: Optional[int] = None
    alert_mode: Optional[str] = None
    notify_on_poor: Optional[bool] = None
    notify_on_recovery: Optional[bool] = None
    poor_threshold: Optional[int] = None
    good_threshold: Optional[int] = None
    consecutive_poor_before_alert: Optional[int] = None
    blur_auto_remove: Optional[bool] = None


# ============================================================================
# STARTUP
# ============================================================================

@app.on_event("startup")
def startup_event():
    logger.log_lifecycle("STARTUP", "Posture Scoring Engine")
    logger.log_success("Engine Ready", {
        "min_confidence": config.MIN_CONFIDENCE,
        "good_threshold": STORE.settings.good_threshold,
        "poor_threshold": STORE.settings.poor_threshold,
        "log_level": config.LOG_LEVEL,
    })


@app.get("/health")
def health():
    return {"status": "ok", "version": __version__}


# ============================================================================
# EVALUATION
# ============================================================================

@app.post("/evaluate", response_model=EvaluationResult)
def evaluate(request: EvaluateRequest, store: session.MonitorStore = Depends(get_store)):
    """Stateless evaluation against the calibration sent with the request"""
    return evaluate_posture(request.pose, request.calibration, engine_config_for(store.settings))


@app.post("/checks", response_model=CheckResponse)
def perform_check(request: CheckRequest, store: session.MonitorStore = Depends(get_store)):
    """Evaluate against the stored calibration and record the outcome"""
    if store.calibration is None:
        logger.log_warning("Check Skipped", {"reason": "no calibration"})

    result = evaluate_posture(request.pose, store.calibration, engine_config_for(store.settings))
    decision = session.record_check(store, result)

    logger.log_api("Check Complete", {
        "score": result.score,
        "status": result.status.value,
        "alert": decision.alert if decision else None,
    })
    return CheckResponse(result=result, decision=decision)


# ============================================================================
# CALIBRATION
# ============================================================================

@app.post("/calibration/{role}", response_model=Calibration)
def calibrate(role: str, request: CalibrateRequest, store: session.MonitorStore = Depends(get_store)):
    try:
        camera_role = CameraRole(role)
    except ValueError:
        raise HTTPException(status_code=404, detail=f"Unknown camera role: {role}")

    baseline = calibrate_view(camera_role, request.frames, engine_config_for(store.settings))
    if baseline is None:
        logger.log_warning("Calibration Rejected", {"role": camera_role.value, "frames": len(request.frames)})
        raise HTTPException(
            status_code=422,
            detail=f"No usable {camera_role.value} frames: both shoulders must be visible",
        )

    if store.calibration is None:
        store.calibration = build_calibration(**{camera_role.value: baseline})
    else:
        store.calibration = store.calibration.with_baseline(camera_role, baseline, now_ms())

    logger.log_calibration("Baseline Saved", {
        "role": camera_role.value,
        "samples": baseline.sample_count,
        "calibrated_at": store.calibration.calibrated_at,
    })
    return store.calibration


@app.get("/calibration", response_model=Calibration)
def get_calibration(store: session.MonitorStore = Depends(get_store)):
    if store.calibration is None:
        raise HTTPException(status_code=404, detail="Not calibrated")
    return store.calibration


@app.delete("/calibration")
def clear_calibration(store: session.MonitorStore = Depends(get_store)):
    store.calibration = None
    logger.log_calibration("Cleared")
    return {"message": "Calibration cleared"}


# ============================================================================
# SETTINGS, STATUS & HISTORY
# ============================================================================

@app.get("/settings", response_model=Settings)
def get_settings(store: session.MonitorStore = Depends(get_store)):
    return store.settings


@app.put("/settings", response_model=Settings)
def update_settings(request: SettingsUpdate, store: session.MonitorStore = Depends(get_store)):
    updates = request.model_dump(exclude_none=True)
    try:
        return session.save_settings(store, updates)
    except ValidationError as e:
        logger.log_error("Settings Rejected", e, {"fields": ", ".join(updates)})
        raise HTTPException(
            status_code=422,
            detail=e.errors(include_url=False, include_context=False, include_input=False),
        )


@app.get("/status")
def get_status(store: session.MonitorStore = Depends(get_store)):
    return {
        "monitoring_enabled": store.settings.monitoring_enabled,
        "has_calibration": store.calibration is not None,
        "calibrated_at": store.calibration.calibrated_at if store.calibration else None,
        "session": store.session,
    }


@app.post("/session/start")
def start_session(store: session.MonitorStore = Depends(get_store)):
    if store.calibration is None:
        raise HTTPException(status_code=409, detail="Calibrate before starting monitoring")
    return session.start_session(store)


@app.post("/session/reset")
def reset_session(store: session.MonitorStore = Depends(get_store)):
    return session.reset_session(store)


@app.get("/history")
def get_history(limit: Optional[int] = None, store: session.MonitorStore = Depends(get_store)):
    checks = session.recent_checks(store, limit)
    return {"total": len(checks), "checks": checks}


@app.get("/summaries")
def get_summaries(store: session.MonitorStore = Depends(get_store)):
    return store.daily_summaries
