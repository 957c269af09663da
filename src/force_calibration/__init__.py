"""Force sensor calibration against reference testing-machine measurements."""

from .data import Dataset, Observation
from .exceptions import (
    CalibrationError,
    ConfigurationError,
    DegenerateTargetError,
    DomainError,
    FailureReason,
    FitError,
    InsufficientColumns,
    InsufficientData,
    InvalidParameterCount,
    NoModelConverged,
)
from .fit import (
    CalibrationReport,
    FitFailure,
    FitResult,
    run_calibration,
    select_calibration_points,
)
from .load import load_dataset

__version__ = "0.1.0"

__all__ = [
    "Dataset",
    "Observation",
    "CalibrationError",
    "ConfigurationError",
    "DegenerateTargetError",
    "DomainError",
    "FailureReason",
    "FitError",
    "InsufficientColumns",
    "InsufficientData",
    "InvalidParameterCount",
    "NoModelConverged",
    "CalibrationReport",
    "FitFailure",
    "FitResult",
    "run_calibration",
    "select_calibration_points",
    "load_dataset",
]
