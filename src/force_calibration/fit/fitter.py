"""
Parameter fitting using scipy.optimize.

Fits one candidate curve at a time to the calibration points with
scipy.optimize.curve_fit (Levenberg-Marquardt). Failures are reported per
model so the caller can skip the model and carry on with the next one.
"""

import logging
import warnings
from dataclasses import dataclass
from typing import Tuple, Union

import numpy as np
from scipy.optimize import OptimizeWarning, curve_fit

from ..exceptions import DomainError, FailureReason, FitError
from .equations import ModelSpec
from .validator import evaluate_fit

logger = logging.getLogger(__name__)

DEFAULT_MAX_ITERATIONS = 10000


@dataclass(frozen=True)
class FitResult:
    """A successfully fitted model, scored on the points it was fitted to."""

    model_name: str
    params: Tuple[float, ...]
    r_squared: float
    rmse: float
    index: int = 0  # Position in the registry, used for tie-breaking

    @property
    def succeeded(self) -> bool:
        return True


@dataclass(frozen=True)
class FitFailure:
    """A model that could not be fitted, with the reason why."""

    model_name: str
    reason: FailureReason
    message: str = ""
    index: int = 0

    @property
    def succeeded(self) -> bool:
        return False


FitAttempt = Union[FitResult, FitFailure]


def fit_model(
    spec: ModelSpec,
    x: np.ndarray,
    y: np.ndarray,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> np.ndarray:
    """
    Fit one model to the calibration points by nonlinear least squares.

    Args:
        spec: Model to fit, starting from spec.initial_params
        x: Raw sensor readings
        y: Reference forces
        max_iterations: Cap on function evaluations (curve_fit maxfev)

    Returns:
        Fitted parameters, same length as spec.initial_params

    Raises:
        DomainError: If the model is undefined for some x
        FitError: On non-convergence, singular Jacobian, too few points or
            non-finite parameters
    """
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)

    if spec.positive_x and np.any(x <= 0):
        raise DomainError(
            spec.name, "requires all sensor readings to be positive"
        )

    if len(x) < spec.n_params:
        raise FitError(
            spec.name,
            f"{spec.n_params} parameters cannot be fitted to {len(x)} points",
            FailureReason.UNDERDETERMINED,
        )

    try:
        with warnings.catch_warnings(), np.errstate(all="ignore"):
            # Overflow while exploring parameter space is expected for
            # exponential and power curves; the final parameters are checked below.
            warnings.simplefilter("ignore", OptimizeWarning)
            warnings.simplefilter("ignore", RuntimeWarning)
            popt, _ = curve_fit(
                spec.function,
                x,
                y,
                p0=spec.initial_params,
                maxfev=max_iterations,
            )
    except RuntimeError as e:
        if "maxfev" in str(e):
            raise FitError(
                spec.name,
                f"no convergence within {max_iterations} function evaluations",
                FailureReason.MAX_ITERATIONS_EXCEEDED,
            ) from e
        raise FitError(spec.name, str(e), FailureReason.NON_CONVERGENCE) from e
    except np.linalg.LinAlgError as e:
        raise FitError(spec.name, str(e), FailureReason.SINGULAR_JACOBIAN) from e
    except ValueError as e:
        raise FitError(spec.name, str(e), FailureReason.NON_FINITE_RESULT) from e

    popt = np.asarray(popt, dtype=float)
    if not np.all(np.isfinite(popt)):
        raise FitError(
            spec.name, "fitted parameters are not finite", FailureReason.NON_FINITE_RESULT
        )

    return popt


def attempt_fit(
    spec: ModelSpec,
    x: np.ndarray,
    y: np.ndarray,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
    index: int = 0,
) -> FitAttempt:
    """
    Fit and score one model, converting any per-model error into a FitFailure.

    Args:
        spec: Model to fit
        x: Calibration sensor readings
        y: Calibration reference forces
        max_iterations: Cap on function evaluations
        index: Position of the model in the registry

    Returns:
        FitResult on success, FitFailure otherwise
    """
    try:
        params = fit_model(spec, x, y, max_iterations=max_iterations)
        metrics = evaluate_fit(spec, params, x, y)
    except FitError as e:
        logger.debug(f"{spec.name} fit failed: {e}")
        return FitFailure(
            model_name=spec.name, reason=e.reason, message=str(e), index=index
        )

    logger.debug(f"{spec.name} fitted parameters: {params.tolist()}")
    return FitResult(
        model_name=spec.name,
        params=tuple(float(p) for p in params),
        r_squared=metrics.r_squared,
        rmse=metrics.rmse,
        index=index,
    )
