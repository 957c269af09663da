"""Command-line interface for force sensor calibration."""

import argparse
import logging

from dotenv import load_dotenv

from .fit.cli import calibrate_mode, predict_mode


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Calibrate a pressure sensor against reference force measurements",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Example usage:
  # Fit all models on 10 evenly spread calibration points
  force-calibration calibrate data.xlsx --points 10

  # Save the calibration and plots
  force-calibration calibrate data.xlsx --points 10 --output calibration.yaml --plots plots/

  # Convert new sensor readings with a saved calibration
  force-calibration predict calibration.yaml new_data.xlsx --output calibrated.csv
        """,
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to configuration YAML file (default: $FORCE_CALIBRATION_CONFIG or config.yaml)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(
        dest="command", help="Command to run", required=True
    )

    calibrate_parser = subparsers.add_parser(
        "calibrate",
        help="Select calibration points and fit the best model",
    )
    calibrate_parser.add_argument(
        "data",
        help="Excel/CSV file with sensor readings and reference forces",
    )
    calibrate_parser.add_argument(
        "-n",
        "--points",
        type=int,
        default=None,
        help="Number of calibration points (prompted for if not given)",
    )
    calibrate_parser.add_argument(
        "--output",
        help="Save the calibration report to this YAML file",
    )
    calibrate_parser.add_argument(
        "--plots",
        help="Directory to save calibration plots",
    )
    calibrate_parser.add_argument(
        "-j",
        "--jobs",
        type=int,
        default=None,
        help="Number of models to fit in parallel (-1 for all cores)",
    )

    predict_parser = subparsers.add_parser(
        "predict",
        help="Apply a saved calibration to sensor readings",
    )
    predict_parser.add_argument(
        "calibration",
        help="Calibration YAML file written by 'calibrate --output'",
    )
    predict_parser.add_argument(
        "data",
        help="Excel/CSV file with sensor readings",
    )
    predict_parser.add_argument(
        "--output",
        help="Write calibrated values to this CSV file",
    )

    return parser


def main(argv=None) -> None:
    """Main entry point."""
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )

    if args.command == "calibrate":
        calibrate_mode(args)
    elif args.command == "predict":
        predict_mode(args)


if __name__ == "__main__":
    main()
