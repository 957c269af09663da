"""
Calibration plotting.

Generates plots to visualize calibration quality:
- All observations, selected calibration points and the best-fit curve
- Residual distribution and residuals vs sensor reading on the full dataset
"""

import logging
from pathlib import Path
from typing import List

import matplotlib

# Use non-interactive backend for batch plotting
matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np
import seaborn as sns

from ..data import Dataset

logger = logging.getLogger(__name__)

sns.set_theme(style="darkgrid")


def plot_calibration(report, dataset: Dataset, output_path: Path) -> None:
    """
    Plot all data, the highlighted calibration points and the best fit.

    Args:
        report: CalibrationReport from run_calibration
        dataset: Full dataset the report was computed on
        output_path: Path to save plot
    """
    _, ax = plt.subplots(figsize=(10, 7))

    ax.scatter(dataset.x, dataset.y, s=25, alpha=0.7, color="tab:blue", label="All Data")
    calib = report.calibration_points
    ax.scatter(
        calib.x,
        calib.y,
        s=60,
        color="tab:green",
        edgecolors="black",
        zorder=3,
        label="Selected Points",
    )

    x_curve = np.linspace(dataset.x.min(), dataset.x.max(), 400)
    with np.errstate(all="ignore"):
        y_curve = report.spec(x_curve, *report.params)
    ax.plot(x_curve, y_curve, "r-", lw=2, label="Best Fit")

    ax.set_xlabel("Sensor Reading", fontsize=12)
    ax.set_ylabel("Reference Force", fontsize=12)
    ax.set_title(f"Best Fit: {report.model_name}", fontsize=14, fontweight="bold")
    ax.legend(loc="upper left")
    ax.grid(True, alpha=0.3)

    textstr = (
        f"{report.spec.equation}\n"
        f"R² = {report.selected.r_squared:.4f}\n"
        f"RMSE (calibration) = {report.selected.rmse:.4f}\n"
        f"RMSE (all data) = {report.full_dataset_rmse:.4f}\n"
        f"n = {report.n_calibration_points} / {len(dataset)}"
    )
    props = dict(boxstyle="round", facecolor="wheat", alpha=0.5)
    ax.text(
        0.95,
        0.05,
        textstr,
        transform=ax.transAxes,
        fontsize=10,
        verticalalignment="bottom",
        horizontalalignment="right",
        bbox=props,
    )

    plt.tight_layout()
    plt.savefig(output_path, dpi=150, bbox_inches="tight")
    plt.close()
    logger.info(f"Saved: {output_path}")


def plot_residuals(report, dataset: Dataset, output_path: Path) -> None:
    """
    Plot residuals of the best model on the full dataset.

    Creates 1x2 grid: residual histogram and residuals vs sensor reading.
    """
    residuals = dataset.y - report.predict(dataset.x)
    metrics = report.full_dataset_metrics

    _, axes = plt.subplots(1, 2, figsize=(14, 5))

    ax_hist = axes[0]
    ax_hist.hist(residuals, bins=min(30, max(5, len(residuals) // 3)), alpha=0.7, edgecolor="black")
    ax_hist.axvline(0, color="r", linestyle="--", lw=2, label="Zero residual")
    ax_hist.set_xlabel("Residual (force)", fontsize=11)
    ax_hist.set_ylabel("Frequency", fontsize=11)
    ax_hist.set_title("Residual Distribution", fontsize=12, fontweight="bold")
    ax_hist.legend()

    if metrics:
        textstr = (
            f"Mean = {metrics['mean_residual']:.3f}\n"
            f"Std = {metrics['std_residual']:.3f}\n"
            f"Max = {metrics['max_error']:.3f}"
        )
        props = dict(boxstyle="round", facecolor="lightblue", alpha=0.5)
        ax_hist.text(
            0.95,
            0.95,
            textstr,
            transform=ax_hist.transAxes,
            fontsize=9,
            verticalalignment="top",
            horizontalalignment="right",
            bbox=props,
        )

    ax_scatter = axes[1]
    ax_scatter.scatter(dataset.x, residuals, alpha=0.6, s=30)
    ax_scatter.axhline(0, color="r", linestyle="--", lw=2)
    ax_scatter.set_xlabel("Sensor Reading", fontsize=11)
    ax_scatter.set_ylabel("Residual (force)", fontsize=11)
    ax_scatter.set_title("Residuals vs Sensor Reading", fontsize=12, fontweight="bold")

    plt.tight_layout()
    plt.savefig(output_path, dpi=150, bbox_inches="tight")
    plt.close()
    logger.info(f"Saved: {output_path}")


def generate_calibration_plots(report, dataset: Dataset, output_dir: Path) -> List[Path]:
    """
    Generate all calibration plots.

    Args:
        report: CalibrationReport from run_calibration
        dataset: Full dataset
        output_dir: Directory to save plots (created if missing)

    Returns:
        Paths of the saved figures
    """
    output_dir.mkdir(parents=True, exist_ok=True)

    paths = [output_dir / "calibration_fit.png", output_dir / "residuals.png"]
    plot_calibration(report, dataset, paths[0])
    plot_residuals(report, dataset, paths[1])
    return paths
