"""Data models for paired sensor/reference observations."""

from dataclasses import dataclass
from typing import Iterable, Iterator, Sequence, Tuple

import numpy as np

from .exceptions import InsufficientData


@dataclass(frozen=True)
class Observation:
    """
    Single paired measurement.

    x is the raw reading of the pressure sensor, y the force reported by the
    reference testing machine for the same load.
    """

    x: float  # Raw sensor reading
    y: float  # Reference force


def _frozen_array(values: Iterable[float]) -> np.ndarray:
    array = np.array(values, dtype=float)
    array.setflags(write=False)
    return array


@dataclass(frozen=True, eq=False)
class Dataset:
    """
    Ordered, read-only sequence of observations.

    Stored column-wise so the fitting code can work on NumPy arrays directly.
    Order is the order the rows were loaded in.
    """

    x: np.ndarray
    y: np.ndarray

    def __post_init__(self) -> None:
        x = _frozen_array(self.x)
        y = _frozen_array(self.y)
        if x.ndim != 1 or y.ndim != 1:
            raise InsufficientData("Observations must be one-dimensional")
        if len(x) != len(y):
            raise InsufficientData(
                f"Mismatched columns: {len(x)} sensor readings, {len(y)} reference values"
            )
        object.__setattr__(self, "x", x)
        object.__setattr__(self, "y", y)

    @classmethod
    def from_pairs(cls, pairs: Iterable[Tuple[float, float]]) -> "Dataset":
        """Build a dataset from (x, y) pairs or Observation objects."""
        rows = [
            (float(p.x), float(p.y)) if isinstance(p, Observation) else (float(p[0]), float(p[1]))
            for p in pairs
        ]
        if not rows:
            return cls(x=np.empty(0), y=np.empty(0))
        xs, ys = zip(*rows)
        return cls(x=np.array(xs), y=np.array(ys))

    @classmethod
    def from_arrays(cls, x: Sequence[float], y: Sequence[float]) -> "Dataset":
        return cls(x=np.asarray(x, dtype=float), y=np.asarray(y, dtype=float))

    def take(self, indices: Sequence[int]) -> "Dataset":
        """Return a new dataset holding the rows at the given indices, in that order."""
        idx = np.asarray(indices, dtype=int)
        return Dataset(x=self.x[idx], y=self.y[idx])

    def observations(self) -> list:
        return [Observation(float(x), float(y)) for x, y in zip(self.x, self.y)]

    def __len__(self) -> int:
        return len(self.x)

    def __iter__(self) -> Iterator[Observation]:
        return iter(self.observations())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Dataset):
            return NotImplemented
        return np.array_equal(self.x, other.x) and np.array_equal(self.y, other.y)

    __hash__ = None  # type: ignore[assignment]
