import logging

import numpy as np
import pytest

from force_calibration.data import Dataset
from force_calibration.exceptions import FailureReason, InvalidParameterCount, NoModelConverged
from force_calibration.fit.equations import ModelSpec, default_registry, get_model, linear
from force_calibration.fit.fitter import FitFailure, FitResult
from force_calibration.fit.selector import run_calibration, select_best


def _result(name, r_squared, index):
    return FitResult(model_name=name, params=(1.0,), r_squared=r_squared, rmse=0.1, index=index)


def test_select_best_prefers_highest_r_squared():
    results = [_result("A", 0.90, 0), _result("B", 0.99, 1), _result("C", 0.95, 2)]
    assert select_best(results).model_name == "B"


def test_select_best_ties_go_to_earliest_registered():
    results = [_result("Later", 0.98, 3), _result("Earlier", 0.98, 1)]

    assert select_best(results).model_name == "Earlier"
    assert select_best(reversed(results)).model_name == "Earlier"


def test_select_best_merge_is_order_independent():
    results = [_result(f"M{i}", r2, i) for i, r2 in enumerate([0.5, 0.9, 0.9, 0.2, 0.7])]
    expected = select_best(results)

    left = select_best(results[:2])
    right = select_best(results[2:])
    assert select_best([right, left]) == expected
    assert select_best(results[::-1]) == expected
    assert expected.model_name == "M1"


def test_select_best_requires_results():
    with pytest.raises(ValueError):
        select_best([])


def test_end_to_end_doubling(doubling_dataset):
    report = run_calibration(doubling_dataset, 3)

    assert report.calibration_points.x.tolist() == [1.0, 3.0, 5.0]
    assert report.calibration_points.y.tolist() == [2.0, 6.0, 10.0]
    assert report.selected.r_squared == pytest.approx(1.0, abs=1e-9)
    assert report.full_dataset_rmse == pytest.approx(0.0, abs=1e-6)

    linear_fit = report.attempts[0]
    assert linear_fit.model_name == "Linear"
    assert linear_fit.params == pytest.approx((2.0, 0.0), abs=1e-6)
    assert linear_fit.r_squared == pytest.approx(1.0, abs=1e-9)


def test_end_to_end_linear_only(doubling_dataset):
    report = run_calibration(doubling_dataset, 3, registry=default_registry(["Linear"]))

    assert report.model_name == "Linear"
    assert report.params == pytest.approx((2.0, 0.0), abs=1e-6)
    assert report.predict([6.0]) == pytest.approx([12.0], abs=1e-6)


def test_attempts_cover_registry_in_order(doubling_dataset):
    seen = []
    report = run_calibration(doubling_dataset, 3, on_attempt=seen.append)

    names = [spec.name for spec in default_registry()]
    assert [a.model_name for a in seen] == names
    assert [a.model_name for a in report.attempts] == names
    assert [a.index for a in report.attempts] == list(range(len(names)))

    # 4-parameter models cannot be fitted to 3 points
    underdetermined = {f.model_name for f in report.failures if f.reason is FailureReason.UNDERDETERMINED}
    assert {"Cubic", "4th Degree Polynomial", "Sinusoidal", "Cosinusoidal"} <= underdetermined


def test_equal_scores_resolved_by_registry_order(doubling_dataset):
    first = ModelSpec(name="First", function=linear, initial_params=(1, 1))
    second = ModelSpec(name="Second", function=linear, initial_params=(1, 1))

    report = run_calibration(doubling_dataset, 4, registry=[first, second])
    assert report.attempts[0].r_squared == report.attempts[1].r_squared
    assert report.model_name == "First"

    report = run_calibration(doubling_dataset, 4, registry=[second, first])
    assert report.model_name == "Second"


def test_full_dataset_rmse_uses_all_points():
    # Calibration points lie on y = x; the middle points do not
    dataset = Dataset.from_pairs([(1, 1), (2, 3), (3, 3), (4, 5), (5, 5)])

    report = run_calibration(dataset, 3, registry=default_registry(["Linear"]))

    assert report.selected.rmse == pytest.approx(0.0, abs=1e-6)
    assert report.full_dataset_rmse == pytest.approx(np.sqrt(2 / 5), abs=1e-6)
    assert report.full_dataset_metrics["n_points"] == 5


@pytest.mark.parametrize("n_points", [1, 6])
def test_invalid_point_count(doubling_dataset, n_points):
    seen = []
    with pytest.raises(InvalidParameterCount):
        run_calibration(doubling_dataset, n_points, on_attempt=seen.append)
    assert seen == []


def test_no_model_converged_lists_failures():
    dataset = Dataset.from_pairs([(-5, 1), (-4, 2), (-3, 4), (-2, 7), (-1, 9), (0, 12)])
    registry = default_registry(["Logarithmic", "Power"])

    with pytest.raises(NoModelConverged) as exc_info:
        run_calibration(dataset, 4, registry=registry)

    failures = exc_info.value.failures
    assert [f.model_name for f in failures] == ["Logarithmic", "Power"]
    assert all(isinstance(f, FitFailure) for f in failures)
    assert all(f.reason is FailureReason.DOMAIN_ERROR for f in failures)
    assert "Logarithmic" in str(exc_info.value)


def test_noisy_sensor_calibration(sensor_dataset):
    report = run_calibration(sensor_dataset, 10)

    assert report.n_calibration_points == 10
    assert report.selected.r_squared > 0.99
    assert report.full_dataset_rmse < 2.0
    assert report.full_dataset_metrics["n_points"] == len(sensor_dataset)


def test_parallel_matches_sequential(sensor_dataset):
    sequential = run_calibration(sensor_dataset, 10)
    parallel = run_calibration(sensor_dataset, 10, n_jobs=2)

    assert parallel.model_name == sequential.model_name
    assert parallel.params == pytest.approx(sequential.params)
    assert [a.model_name for a in parallel.attempts] == [
        a.model_name for a in sequential.attempts
    ]


def test_report_to_dict(doubling_dataset):
    report = run_calibration(doubling_dataset, 3, registry=default_registry(["Linear", "Cubic"]))

    data = report.to_dict()

    assert data["model"] == "Linear"
    assert set(data["parameters"]) == {"a", "b"}
    assert data["n_points_requested"] == 3
    assert data["n_calibration_points"] == 3
    assert data["full_dataset"]["rmse"] == pytest.approx(0.0, abs=1e-6)
    assert data["attempts"][1] == {
        "model": "Cubic",
        "status": "failed",
        "reason": "Underdetermined",
    }


def test_custom_initial_guess_is_used(doubling_dataset):
    spec = get_model("Linear").with_initial_params([2.0, 0.0])
    report = run_calibration(doubling_dataset, 5, registry=[spec])
    assert report.params == pytest.approx((2.0, 0.0), abs=1e-9)


def test_failed_fits_logged_below_warning(caplog):
    dataset = Dataset.from_pairs([(-5, 1), (-4, 2), (-3, 4), (-2, 7), (-1, 9), (0, 12)])
    registry = default_registry(["Linear", "Logarithmic"])

    with caplog.at_level(logging.INFO, logger="force_calibration.fit.selector"):
        report = run_calibration(dataset, 4, registry=registry)

    assert report.model_name == "Linear"
    failed = [r for r in caplog.records if "Failed to fit Logarithmic" in r.getMessage()]
    assert len(failed) == 1
    assert failed[0].levelno == logging.INFO
    assert not [r for r in caplog.records if r.levelno >= logging.WARNING]
