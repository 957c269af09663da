"""
Calibration point selection.

Picks N points spread evenly across the range of raw sensor readings, so the
calibration subset covers low and high loads alike.
"""

import logging
import numbers

import numpy as np

from ..data import Dataset
from ..exceptions import InvalidParameterCount

logger = logging.getLogger(__name__)


def _validate_count(n_points, n_total: int) -> int:
    if isinstance(n_points, bool) or not isinstance(n_points, numbers.Integral):
        raise InvalidParameterCount(n_points, n_total)
    n_points = int(n_points)
    if n_points < 2 or n_points > n_total:
        raise InvalidParameterCount(n_points, n_total)
    return n_points


def calibration_indices(x: np.ndarray, n_points: int) -> np.ndarray:
    """
    Indices of the calibration points, ordered by ascending x.

    Readings are stably sorted by x, then n_points positions are spaced evenly
    over the sorted order (first and last reading always included) and rounded
    half-up to the nearest position. Positions that round to the same index
    collapse into one, so fewer than n_points indices may be returned.

    Args:
        x: Raw sensor readings in load order
        n_points: Number of calibration points, 2 <= n_points <= len(x)

    Returns:
        Array of indices into x

    Raises:
        InvalidParameterCount: If n_points is out of range
    """
    x = np.asarray(x, dtype=float)
    n_total = len(x)
    n_points = _validate_count(n_points, n_total)

    sorted_indices = np.argsort(x, kind="stable")

    # 1-based positions, rounded half away from zero
    positions = np.floor(np.linspace(1, n_total, n_points) + 0.5).astype(int)
    positions = np.unique(positions)

    return sorted_indices[positions - 1]


def select_calibration_points(dataset: Dataset, n_points: int) -> Dataset:
    """
    Select the calibration subset from a dataset.

    Args:
        dataset: Full set of observations
        n_points: Requested number of calibration points

    Returns:
        New Dataset holding the selected observations, sorted by x
    """
    indices = calibration_indices(dataset.x, n_points)
    subset = dataset.take(indices)
    logger.info(
        f"Selected {len(subset)} of {len(dataset)} points for calibration "
        f"(x range {subset.x[0]:.4g} to {subset.x[-1]:.4g})"
    )
    return subset
