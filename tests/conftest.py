import numpy as np
import pandas as pd
import pytest

from force_calibration.data import Dataset


@pytest.fixture
def doubling_dataset():
    """y = 2x on x = 1..5."""
    return Dataset.from_pairs([(1, 2), (2, 4), (3, 6), (4, 8), (5, 10)])


@pytest.fixture
def sensor_dataset():
    """Noisy quadratic sensor response, loaded in shuffled order."""
    rng = np.random.default_rng(42)
    x = np.linspace(1.0, 20.0, 50)
    y = 0.5 * x**2 + 2.0 * x + 1.0 + rng.normal(0.0, 0.5, size=x.shape)
    order = rng.permutation(len(x))
    return Dataset.from_arrays(x[order], y[order])


@pytest.fixture
def write_csv(tmp_path):
    """Write rows to a CSV file (no index, no pandas header)."""

    def _write(rows, name="data.csv"):
        path = tmp_path / name
        pd.DataFrame(rows).to_csv(path, index=False, header=False)
        return path

    return _write


@pytest.fixture
def isolated_cwd(tmp_path, monkeypatch):
    """Run from an empty directory with no config override."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("FORCE_CALIBRATION_CONFIG", raising=False)
    return tmp_path
