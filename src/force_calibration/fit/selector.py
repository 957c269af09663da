"""
Calibration model selection.

Runs the full calibration pipeline:
1. Select N calibration points spread evenly over the sensor range.
2. Fit every model in the registry to those points.
3. Keep the model with the highest R² (earliest registered wins ties).
4. Re-evaluate the winner against the full dataset.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, Optional, Sequence, Tuple

import numpy as np
from joblib import Parallel, delayed

from ..data import Dataset
from ..exceptions import NoModelConverged
from .equations import ModelSpec, default_registry
from .fitter import DEFAULT_MAX_ITERATIONS, FitAttempt, FitFailure, FitResult, attempt_fit
from .sampling import select_calibration_points
from .validator import compute_validation_metrics, predict_values

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CalibrationReport:
    """Outcome of a calibration run."""

    selected: FitResult  # Scored on the calibration subset
    full_dataset_rmse: float
    spec: ModelSpec = field(repr=False)
    calibration_points: Dataset = field(repr=False, compare=False)
    n_points_requested: int = 0
    attempts: Tuple[FitAttempt, ...] = ()
    full_dataset_metrics: Dict[str, float] = field(default_factory=dict, compare=False)

    @property
    def model_name(self) -> str:
        return self.selected.model_name

    @property
    def params(self) -> Tuple[float, ...]:
        return self.selected.params

    @property
    def n_calibration_points(self) -> int:
        return len(self.calibration_points)

    @property
    def failures(self) -> Tuple[FitFailure, ...]:
        return tuple(a for a in self.attempts if not a.succeeded)

    def predict(self, x) -> np.ndarray:
        """Convert raw sensor readings into calibrated force."""
        return predict_values(self.spec, self.params, np.asarray(x, dtype=float))

    def to_dict(self) -> Dict[str, Any]:
        """Plain-Python representation, suitable for YAML/JSON."""
        return {
            "model": self.model_name,
            "equation": self.spec.equation,
            "parameters": dict(zip(self.spec.param_names, self.params)),
            "n_points_requested": int(self.n_points_requested),
            "n_calibration_points": self.n_calibration_points,
            "calibration": {
                "r_squared": float(self.selected.r_squared),
                "rmse": float(self.selected.rmse),
            },
            "full_dataset": {
                **{k: v for k, v in self.full_dataset_metrics.items()},
                "rmse": float(self.full_dataset_rmse),
            },
            "attempts": [_attempt_to_dict(a) for a in self.attempts],
        }


def _attempt_to_dict(attempt: FitAttempt) -> Dict[str, Any]:
    if attempt.succeeded:
        return {
            "model": attempt.model_name,
            "status": "ok",
            "r_squared": float(attempt.r_squared),
            "rmse": float(attempt.rmse),
        }
    return {
        "model": attempt.model_name,
        "status": "failed",
        "reason": attempt.reason.value,
    }


def _ranking_key(result: FitResult) -> Tuple[float, int]:
    # Higher R² first, then lower registry index
    return (result.r_squared, -result.index)


def select_best(results: Iterable[FitResult]) -> FitResult:
    """
    Pick the best fit: strictly highest R², ties go to the earliest registered model.

    The choice does not depend on the order of `results`, so partial results
    may be merged in any grouping.

    Raises:
        ValueError: If results is empty
    """
    results = list(results)
    if not results:
        raise ValueError("No fit results to select from")
    return max(results, key=_ranking_key)


def fit_all_models(
    registry: Sequence[ModelSpec],
    calibration: Dataset,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
    n_jobs: int = 1,
) -> Tuple[FitAttempt, ...]:
    """
    Attempt every model in the registry on the calibration points.

    Fits are independent; with n_jobs != 1 they run on a thread pool. Results
    are always returned in registry order.
    """
    if n_jobs == 1:
        return tuple(
            attempt_fit(spec, calibration.x, calibration.y, max_iterations, index=i)
            for i, spec in enumerate(registry)
        )

    attempts = Parallel(n_jobs=n_jobs, prefer="threads")(
        delayed(attempt_fit)(spec, calibration.x, calibration.y, max_iterations, i)
        for i, spec in enumerate(registry)
    )
    return tuple(attempts)


def _log_attempt(attempt: FitAttempt) -> None:
    if attempt.succeeded:
        logger.info(
            f"{attempt.model_name} Model: R² = {attempt.r_squared:.4f}, "
            f"RMSE = {attempt.rmse:.4f}"
        )
    else:
        logger.info(
            f"Failed to fit {attempt.model_name} model ({attempt.reason.value}). Skipping..."
        )


def run_calibration(
    dataset: Dataset,
    n_points: int,
    registry: Optional[Sequence[ModelSpec]] = None,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
    n_jobs: int = 1,
    on_attempt: Optional[Callable[[FitAttempt], None]] = None,
) -> CalibrationReport:
    """
    Main entry point for calibrating a sensor against reference measurements.

    Args:
        dataset: Paired (sensor, reference) observations
        n_points: Number of calibration points to fit on
        registry: Models to try, in tie-break order (default: full catalogue)
        max_iterations: Per-model cap on function evaluations
        n_jobs: Number of parallel fits (1 = sequential, -1 = all cores)
        on_attempt: Called with each FitResult/FitFailure, in registry order

    Returns:
        CalibrationReport for the best model

    Raises:
        InvalidParameterCount: If n_points is outside [2, len(dataset)]
        NoModelConverged: If no model could be fitted
    """
    if registry is None:
        registry = default_registry()

    calibration = select_calibration_points(dataset, n_points)

    logger.info(f"Testing {len(registry)} models...")
    attempts = fit_all_models(
        registry, calibration, max_iterations=max_iterations, n_jobs=n_jobs
    )
    for attempt in attempts:
        _log_attempt(attempt)
        if on_attempt is not None:
            on_attempt(attempt)

    successes = [a for a in attempts if a.succeeded]
    if not successes:
        raise NoModelConverged([a for a in attempts if not a.succeeded])

    best = select_best(successes)
    spec = registry[best.index]
    logger.info(f"Best model: {best.model_name} (R² = {best.r_squared:.4f})")

    # Re-evaluate on every observation, not just the calibration subset
    y_pred_all = predict_values(spec, best.params, dataset.x)
    full_metrics = compute_validation_metrics(dataset.y, y_pred_all)
    logger.info(f"RMSE for all data (using best model): {full_metrics['rmse']:.4f}")

    return CalibrationReport(
        selected=best,
        full_dataset_rmse=full_metrics["rmse"],
        spec=spec,
        calibration_points=calibration,
        n_points_requested=int(n_points),
        attempts=attempts,
        full_dataset_metrics=full_metrics,
    )
