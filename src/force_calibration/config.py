"""
Calibration run configuration.

Parsed from the `data` and `calibration` sections of config.yaml:

    data:
      x_column: 0          # raw sensor column (index or header label)
      y_column: 1          # reference force column
      sheet: 0             # Excel worksheet
    calibration:
      n_points: 10         # optional, prompted for when missing
      models: [Linear, Quadratic, Power]
      max_iterations: 10000
      n_jobs: 1
      initial_guesses:
        Exponential: [1.0, 0.001]
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml

from .exceptions import ConfigurationError
from .fit.equations import ModelSpec, default_registry, get_model
from .fit.fitter import DEFAULT_MAX_ITERATIONS

CONFIG_ENV_VAR = "FORCE_CALIBRATION_CONFIG"
DEFAULT_CONFIG_PATH = "config.yaml"


@dataclass
class DataConfig:
    """Where to find the sensor and reference columns."""

    x_column: Union[int, str] = 0
    y_column: Union[int, str] = 1
    sheet: Union[int, str] = 0


@dataclass
class CalibrationConfig:
    """
    Complete calibration configuration.
    """

    data: DataConfig = field(default_factory=DataConfig)
    n_points: Optional[int] = None
    models: Optional[List[str]] = None
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    n_jobs: int = 1
    initial_guesses: Dict[str, List[float]] = field(default_factory=dict)

    def validate(self) -> None:
        """Validate model names, guesses and numeric settings."""
        if self.n_points is not None and (
            isinstance(self.n_points, bool)
            or not isinstance(self.n_points, int)
            or self.n_points < 2
        ):
            raise ConfigurationError(
                f"n_points must be an integer >= 2, got: {self.n_points!r}"
            )

        if (
            isinstance(self.max_iterations, bool)
            or not isinstance(self.max_iterations, int)
            or self.max_iterations <= 0
        ):
            raise ConfigurationError(
                f"max_iterations must be a positive integer, got: {self.max_iterations!r}"
            )

        if (
            isinstance(self.n_jobs, bool)
            or not isinstance(self.n_jobs, int)
            or (self.n_jobs < 1 and self.n_jobs != -1)
        ):
            raise ConfigurationError(
                f"n_jobs must be a positive integer or -1, got: {self.n_jobs!r}"
            )

        if self.models is not None:
            if not self.models:
                raise ConfigurationError("models list is empty")
            for name in self.models:
                get_model(name)

        for name, guess in self.initial_guesses.items():
            spec = get_model(name)
            if not isinstance(guess, (list, tuple)) or len(guess) != spec.n_params:
                raise ConfigurationError(
                    f"initial_guesses for '{name}' must be a list of "
                    f"{spec.n_params} numbers, got: {guess}"
                )

    def build_registry(self) -> Tuple[ModelSpec, ...]:
        """Catalogue of models to try, with configured initial guesses applied."""
        return default_registry(self.models, self.initial_guesses)

    @classmethod
    def from_config_dict(cls, config: Optional[Dict[str, Any]]) -> "CalibrationConfig":
        """Parse CalibrationConfig from config.yaml dictionary."""
        config = config or {}
        if not isinstance(config, dict):
            raise ConfigurationError("Config file must contain a mapping")

        data_cfg = config.get("data") or {}
        calib_cfg = config.get("calibration") or {}

        calibration_config = cls(
            data=DataConfig(
                x_column=data_cfg.get("x_column", 0),
                y_column=data_cfg.get("y_column", 1),
                sheet=data_cfg.get("sheet", 0),
            ),
            n_points=calib_cfg.get("n_points"),
            models=calib_cfg.get("models"),
            max_iterations=calib_cfg.get("max_iterations", DEFAULT_MAX_ITERATIONS),
            n_jobs=calib_cfg.get("n_jobs", 1),
            initial_guesses=calib_cfg.get("initial_guesses") or {},
        )

        calibration_config.validate()
        return calibration_config


def resolve_config_path(path: Optional[str] = None) -> Path:
    """Explicit path, else $FORCE_CALIBRATION_CONFIG, else ./config.yaml."""
    return Path(path or os.environ.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH)


def load_config(path: Optional[str] = None) -> CalibrationConfig:
    """
    Load configuration from a YAML file.

    A missing file at the default location yields the default configuration;
    a missing file that was asked for explicitly is an error.

    Raises:
        ConfigurationError: If the file cannot be parsed or is invalid
    """
    config_path = resolve_config_path(path)
    explicit = path is not None or CONFIG_ENV_VAR in os.environ

    if not config_path.exists():
        if explicit:
            raise ConfigurationError(f"Config file not found: {config_path}")
        return CalibrationConfig()

    try:
        with open(config_path, "r") as f:
            cfg = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Error parsing config file: {e}") from e

    return CalibrationConfig.from_config_dict(cfg)
