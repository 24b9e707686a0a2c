"""
posture_engine - posture scoring from pose-model keypoints.

Extracts posture features from front/side camera keypoints, builds per-user
calibration baselines and turns deviations from them into a 0-100 score.
"""

__version__ = "0.1.0"

# Lazy imports keep `import posture_engine` free of the FastAPI app
def __getattr__(name):
    if name == "evaluate_posture":
        from .scoring import evaluate_posture
        return evaluate_posture
    elif name == "build_baseline":
        from .baseline import build_baseline
        return build_baseline
    elif name == "calibrate_view":
        from .baseline import calibrate_view
        return calibrate_view
    elif name == "calculate_front_metrics":
        from .metrics import calculate_front_metrics
        return calculate_front_metrics
    elif name == "calculate_side_metrics":
        from .metrics import calculate_side_metrics
        return calculate_side_metrics
    elif name == "EngineConfig":
        from .config import EngineConfig
        return EngineConfig
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "evaluate_posture",
    "build_baseline",
    "calibrate_view",
    "calculate_front_metrics",
    "calculate_side_metrics",
    "EngineConfig",
    "__version__",
]
