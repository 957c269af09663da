"""
Goodness-of-fit metrics for calibration curves.

Computes and reports R², RMSE, MAE, max error and residual statistics for a
fitted model against a set of observations.
"""

from dataclasses import dataclass
from typing import Dict, Sequence

import numpy as np

from ..exceptions import DegenerateTargetError, FailureReason, FitError
from .equations import ModelSpec


@dataclass(frozen=True)
class FitMetrics:
    """R² and RMSE of a model against one set of observations."""

    r_squared: float
    rmse: float


def predict_values(spec: ModelSpec, params: Sequence[float], x: np.ndarray) -> np.ndarray:
    """
    Evaluate a model at x.

    Raises:
        FitError: If any prediction is NaN or infinite
    """
    with np.errstate(all="ignore"):
        y_pred = np.asarray(spec(x, *params), dtype=float)
    y_pred = np.broadcast_to(y_pred, np.shape(x))
    if not np.all(np.isfinite(y_pred)):
        raise FitError(
            spec.name,
            "model produced non-finite predictions",
            FailureReason.NON_FINITE_RESULT,
        )
    return y_pred


def compute_rmse(y_measured: np.ndarray, y_predicted: np.ndarray) -> float:
    residuals = np.asarray(y_measured) - np.asarray(y_predicted)
    return float(np.sqrt(np.mean(residuals**2)))


def evaluate_fit(
    spec: ModelSpec, params: Sequence[float], x: np.ndarray, y: np.ndarray
) -> FitMetrics:
    """
    Score fitted parameters against observations.

    R² = 1 - SS_res / SS_tot, RMSE = sqrt(mean(residual²)).

    Args:
        spec: Model the parameters belong to
        params: Fitted parameter vector
        x: Raw sensor readings
        y: Reference forces

    Returns:
        FitMetrics with r_squared and rmse

    Raises:
        DegenerateTargetError: If all y are identical (R² undefined)
        FitError: If predictions are non-finite or R² is NaN or above 1
    """
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    y_pred = predict_values(spec, params, x)

    residuals = y - y_pred
    ss_res = float(np.sum(residuals**2))
    ss_tot = float(np.sum((y - np.mean(y)) ** 2))
    if ss_tot == 0:
        raise DegenerateTargetError(
            spec.name, "all reference values are identical, R² is undefined"
        )

    r_squared = 1.0 - ss_res / ss_tot
    if np.isnan(r_squared) or r_squared > 1.0:
        raise FitError(
            spec.name,
            f"invalid R² value {r_squared}",
            FailureReason.INVALID_R_SQUARED,
        )

    return FitMetrics(r_squared=r_squared, rmse=compute_rmse(y, y_pred))


def compute_validation_metrics(
    y_measured: np.ndarray, y_predicted: np.ndarray
) -> Dict[str, float]:
    """
    Compute validation metrics comparing predicted vs reference forces.

    Args:
        y_measured: Reference forces
        y_predicted: Calibrated forces

    Returns:
        Dictionary of metrics:
        - rmse: Root mean squared error
        - r2: R-squared (NaN when the reference values are constant)
        - mae: Mean absolute error
        - max_error: Maximum absolute error
        - std_residual: Standard deviation of residuals
        - mean_residual: Mean residual (should be near 0)
        - n_points: Number of data points
    """
    y_measured = np.asarray(y_measured, dtype=float)
    y_predicted = np.asarray(y_predicted, dtype=float)
    residuals = y_measured - y_predicted
    n = len(y_measured)

    ss_res = np.sum(residuals**2)
    ss_tot = np.sum((y_measured - np.mean(y_measured)) ** 2)
    r2 = 1 - (ss_res / ss_tot) if ss_tot > 0 else float("nan")

    return {
        "rmse": compute_rmse(y_measured, y_predicted),
        "r2": float(r2),
        "mae": float(np.mean(np.abs(residuals))),
        "max_error": float(np.max(np.abs(residuals))),
        "std_residual": float(np.std(residuals)),
        "mean_residual": float(np.mean(residuals)),
        "n_points": int(n),
    }


def print_validation_summary(report) -> None:
    """
    Print formatted calibration summary with warnings for poor fits.

    Args:
        report: CalibrationReport from run_calibration
    """
    selected = report.selected
    full = report.full_dataset_metrics

    print("\n" + "=" * 70)
    print("CALIBRATION SUMMARY")
    print("=" * 70)

    print(f"\nNumber of data points used: {report.n_calibration_points}")
    print(f"Best Model: {selected.model_name}  ({report.spec.equation})")
    print("Best Parameters:")
    for name, value in zip(report.spec.param_names, selected.params):
        print(f"  {name:3s} = {value:.6g}")
    print(f"R²: {selected.r_squared:.4f}, RMSE: {selected.rmse:.4f}")

    print(f"\nRMSE for all data (using best model): {report.full_dataset_rmse:.4f}")
    print("\nFull dataset:")
    print(f"  R²:          {full['r2']:.4f}")
    print(f"  MAE:         {full['mae']:.4f}")
    print(f"  Max Error:   {full['max_error']:.4f}")
    print(f"  Data Points: {full['n_points']}")

    if full["r2"] < 0.9:
        print("  ⚠️  WARNING: Low R² (<0.9) - model explains <90% of variance")
    if report.full_dataset_rmse > 2 * selected.rmse and selected.rmse > 0:
        print(
            "  ⚠️  WARNING: Full-dataset RMSE is more than twice the calibration RMSE - "
            "consider using more calibration points"
        )

    print("\n" + "=" * 70)
