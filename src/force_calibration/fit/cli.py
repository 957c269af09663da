"""
CLI interface for sensor calibration.

Calibrates a sensor against reference measurements and applies saved
calibrations to new readings.
"""

import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

import pandas as pd
import yaml

from ..config import CalibrationConfig, load_config
from ..exceptions import CalibrationError, ConfigurationError, NoModelConverged
from ..load import load_dataset, load_readings
from .equations import get_model
from .fitter import FitAttempt
from .plotting import generate_calibration_plots
from .selector import run_calibration
from .validator import compute_rmse, predict_values, print_validation_summary


def print_attempt(attempt: FitAttempt) -> None:
    """Report one model attempt on the console."""
    if attempt.succeeded:
        print(
            f"  {attempt.model_name} Model: R² = {attempt.r_squared:.4f}, "
            f"RMSE = {attempt.rmse:.4f}"
        )
    else:
        print(
            f"  ✗ Failed to fit {attempt.model_name} model "
            f"({attempt.reason.value}). Skipping..."
        )


def prompt_n_points(n_total: int) -> int:
    """Ask the user for the number of calibration points."""
    raw = input("Enter the number of calibration points to use: ")
    try:
        return int(raw.strip())
    except ValueError:
        print(f"✗ Not an integer: {raw!r}. Must be between 2 and {n_total}.")
        sys.exit(1)


def _load_config_or_exit(config_path: Optional[str]) -> CalibrationConfig:
    try:
        return load_config(config_path)
    except ConfigurationError as e:
        print(f"✗ {e}")
        sys.exit(1)


def calibrate_mode(args) -> None:
    """
    Calibration mode - pick calibration points, fit all models, report the best.

    Args:
        args: Parsed command-line arguments with data, points, config, output,
            plots and jobs attributes
    """
    print("\n" + "=" * 70)
    print("SENSOR CALIBRATION")
    print("=" * 70 + "\n")

    config = _load_config_or_exit(args.config)

    try:
        dataset = load_dataset(
            args.data,
            x_column=config.data.x_column,
            y_column=config.data.y_column,
            sheet=config.data.sheet,
        )
    except FileNotFoundError as e:
        print(f"✗ {e}")
        sys.exit(1)
    except CalibrationError as e:
        print(f"✗ Invalid data file: {e}")
        sys.exit(1)

    print(f"Data file: {args.data}")
    print(f"Total available data points: {len(dataset)}")

    n_points = args.points if args.points is not None else config.n_points
    if n_points is None:
        n_points = prompt_n_points(len(dataset))

    n_jobs = args.jobs if args.jobs is not None else config.n_jobs

    print("\nTesting models...")
    try:
        report = run_calibration(
            dataset,
            n_points,
            registry=config.build_registry(),
            max_iterations=config.max_iterations,
            n_jobs=n_jobs,
            on_attempt=print_attempt,
        )
    except NoModelConverged as e:
        print("\n✗ No model could be fitted:")
        for failure in e.failures:
            print(f"    {failure.model_name}: {failure.reason.value}")
        sys.exit(1)
    except CalibrationError as e:
        print(f"\n✗ {e}")
        sys.exit(1)

    print_validation_summary(report)

    if args.plots:
        paths = generate_calibration_plots(report, dataset, Path(args.plots))
        print(f"\n✓ Plots saved to: {Path(args.plots)}/ ({len(paths)} files)")

    if args.output:
        output_path = save_report(report, Path(args.output), data_source=args.data)
        print(f"\n✓ Calibration saved to: {output_path}")

    print("\nCalibration complete!")


def save_report(report, output_path: Path, data_source: Optional[str] = None) -> Path:
    """Write a calibration report to YAML."""
    output_data: Dict[str, Any] = {
        "calibrated_date": datetime.now().isoformat(),
        "data_source": str(data_source) if data_source is not None else None,
        **report.to_dict(),
    }
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        yaml.dump(output_data, f, default_flow_style=False, sort_keys=False, allow_unicode=True)
    return output_path


def load_saved_calibration(path: Path):
    """
    Read a calibration saved by save_report.

    Returns:
        Tuple of (ModelSpec, params tuple)

    Raises:
        ConfigurationError: If the file is missing fields or names an unknown model
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            saved = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Error parsing calibration file: {e}") from e

    if not isinstance(saved, dict) or "model" not in saved or "parameters" not in saved:
        raise ConfigurationError(
            f"Calibration file {path} must contain 'model' and 'parameters'"
        )

    spec = get_model(saved["model"])
    parameters = saved["parameters"]
    missing = [name for name in spec.param_names if name not in parameters]
    if missing:
        raise ConfigurationError(
            f"Calibration file {path} is missing parameters: {missing}"
        )
    return spec, tuple(float(parameters[name]) for name in spec.param_names)


def apply_calibration(spec, params, x, reference=None) -> pd.DataFrame:
    """Calibrated force for every sensor reading, next to the reference value if known."""
    columns: Dict[str, Any] = {"sensor": x}
    if reference is not None:
        columns["reference"] = reference
    columns["calibrated"] = predict_values(spec, params, x)
    return pd.DataFrame(columns)


def predict_mode(args) -> None:
    """
    Prediction mode - convert raw readings with a saved calibration.

    The data file may hold the sensor column alone; RMSE is only reported
    when a reference column is present.

    Args:
        args: Parsed command-line arguments with calibration, data, config and
            output attributes
    """
    config = _load_config_or_exit(args.config)

    try:
        spec, params = load_saved_calibration(Path(args.calibration))
        x, reference = load_readings(
            args.data,
            x_column=config.data.x_column,
            y_column=config.data.y_column,
            sheet=config.data.sheet,
        )
        table = apply_calibration(spec, params, x, reference)
    except FileNotFoundError as e:
        print(f"✗ {e}")
        sys.exit(1)
    except CalibrationError as e:
        print(f"✗ {e}")
        sys.exit(1)

    print(f"Model: {spec.name}  ({spec.equation})")
    if reference is not None:
        rmse = compute_rmse(table["reference"], table["calibrated"])
        print(f"RMSE against reference column: {rmse:.4f}")

    if args.output:
        table.to_csv(args.output, index=False)
        print(f"✓ Calibrated values saved to: {args.output}")
    else:
        print(table.to_string(index=False))
