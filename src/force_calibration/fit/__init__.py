"""
Calibration model fitting module.

Selects evenly spread calibration points, fits a catalogue of candidate
curves with scipy.optimize, and picks the best one by R².
"""

from .equations import ModelSpec, default_registry, get_model, list_models, register_model
from .sampling import calibration_indices, select_calibration_points
from .validator import FitMetrics, compute_validation_metrics, evaluate_fit
from .fitter import FitFailure, FitResult, attempt_fit, fit_model
from .selector import CalibrationReport, run_calibration, select_best

__all__ = [
    "ModelSpec",
    "default_registry",
    "get_model",
    "list_models",
    "register_model",
    "calibration_indices",
    "select_calibration_points",
    "FitMetrics",
    "compute_validation_metrics",
    "evaluate_fit",
    "FitFailure",
    "FitResult",
    "attempt_fit",
    "fit_model",
    "CalibrationReport",
    "run_calibration",
    "select_best",
]
