"""
Custom exceptions for force sensor calibration.

Per-model failures (FitError and subclasses) are recovered locally by the
fitting harness and turned into FitFailure records. Everything else aborts
the calibration run.
"""

from enum import Enum
from typing import Optional, Sequence


class FailureReason(str, Enum):
    """Why a single model could not be fitted."""

    NON_CONVERGENCE = "NonConvergence"
    SINGULAR_JACOBIAN = "SingularJacobian"
    DOMAIN_ERROR = "DomainError"
    NON_FINITE_RESULT = "NonFiniteResult"
    DEGENERATE_TARGET = "DegenerateTarget"
    INVALID_R_SQUARED = "InvalidRSquared"
    MAX_ITERATIONS_EXCEEDED = "MaxIterationsExceeded"
    UNDERDETERMINED = "Underdetermined"


class CalibrationError(Exception):
    """Base exception for calibration-related errors."""

    pass


class ConfigurationError(CalibrationError):
    """Raised when a model definition or configuration file is invalid."""

    pass


class InvalidParameterCount(CalibrationError, ValueError):
    """Raised when the requested number of calibration points is out of range."""

    def __init__(self, n_points, n_total: int):
        self.n_points = n_points
        self.n_total = n_total
        super().__init__(
            f"Invalid number of calibration points: {n_points!r}. "
            f"Must be between 2 and {n_total}."
        )


class InsufficientColumns(CalibrationError):
    """Raised when the input table does not hold both sensor and reference data."""

    pass


class InsufficientData(CalibrationError):
    """Raised when the input holds fewer than two usable observations."""

    pass


class FitError(CalibrationError):
    """Raised when a single model cannot be fitted or scored."""

    reason = FailureReason.NON_CONVERGENCE

    def __init__(
        self,
        model_name: str,
        message: str,
        reason: Optional[FailureReason] = None,
    ):
        self.model_name = model_name
        if reason is not None:
            self.reason = reason
        super().__init__(f"{model_name}: {message}")


class DomainError(FitError):
    """Raised when a model function is undefined for some of the inputs."""

    reason = FailureReason.DOMAIN_ERROR


class DegenerateTargetError(FitError):
    """Raised when R² is undefined because every target value is identical."""

    reason = FailureReason.DEGENERATE_TARGET


class NoModelConverged(CalibrationError):
    """Raised when every model in the registry failed to fit."""

    def __init__(self, failures: Sequence):
        self.failures = tuple(failures)
        details = "; ".join(
            f"{f.model_name} ({f.reason.value})" for f in self.failures
        )
        super().__init__(
            f"No model could be fitted to the calibration points: {details}"
        )
