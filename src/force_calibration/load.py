"""
Loading paired sensor/reference measurements from spreadsheets.

Supports Excel workbooks (.xlsx/.xls) and delimited text (.csv, .tsv).
By default column 0 holds the raw sensor readings and column 1 the
reference force from the testing machine. Files that are only converted
with a saved calibration may carry the sensor column alone.
"""

import logging
from pathlib import Path
from typing import Optional, Tuple, Union

import numpy as np
import pandas as pd

from .data import Dataset
from .exceptions import InsufficientColumns, InsufficientData

logger = logging.getLogger(__name__)

ColumnRef = Union[int, str]

EXCEL_SUFFIXES = {".xlsx", ".xlsm", ".xls"}


def read_table(path: Path, sheet: Union[int, str] = 0) -> pd.DataFrame:
    """
    Read a spreadsheet into a DataFrame without interpreting a header row.

    Raises:
        FileNotFoundError: If the file does not exist
    """
    if not path.exists():
        raise FileNotFoundError(f"Data file not found: {path}")

    if path.suffix.lower() in EXCEL_SUFFIXES:
        return pd.read_excel(path, sheet_name=sheet, header=None)
    sep = "\t" if path.suffix.lower() == ".tsv" else ","
    return pd.read_csv(path, header=None, sep=sep)


def _resolve_column(df: pd.DataFrame, column: ColumnRef) -> int:
    """Map a column index or header label to a positional index."""
    if isinstance(column, int):
        if column < 0 or column >= df.shape[1]:
            raise InsufficientColumns(
                f"Column {column} requested but the data has {df.shape[1]} columns"
            )
        return column

    header = [str(v).strip() for v in df.iloc[0]] if len(df) else []
    if column not in header:
        raise InsufficientColumns(
            f"Column '{column}' not found in header row: {header}"
        )
    return header.index(column)


def dataframe_to_dataset(
    df: pd.DataFrame, x_column: ColumnRef = 0, y_column: ColumnRef = 1
) -> Dataset:
    """
    Convert a raw table into a Dataset.

    Cells that are not numbers (header text, notes, blanks) are dropped row-wise.

    Raises:
        InsufficientColumns: If the table has fewer than two columns
        InsufficientData: If fewer than two numeric rows remain
    """
    if df.shape[1] < 2:
        raise InsufficientColumns(
            "The data must contain at least two columns: sensor and reference force."
        )

    x_idx = _resolve_column(df, x_column)
    y_idx = _resolve_column(df, y_column)

    pairs = pd.DataFrame(
        {
            "x": pd.to_numeric(df.iloc[:, x_idx], errors="coerce"),
            "y": pd.to_numeric(df.iloc[:, y_idx], errors="coerce"),
        }
    )
    initial_count = len(pairs)
    pairs = pairs.dropna()
    final_count = len(pairs)

    if initial_count != final_count:
        logger.info(
            f"Dropped {initial_count - final_count} non-numeric rows "
            f"({final_count} observations kept)"
        )

    if final_count < 2:
        raise InsufficientData(
            f"Need at least 2 numeric observations, found {final_count}"
        )

    return Dataset.from_arrays(pairs["x"].to_numpy(), pairs["y"].to_numpy())


def load_dataset(
    path: Union[str, Path],
    x_column: ColumnRef = 0,
    y_column: ColumnRef = 1,
    sheet: Union[int, str] = 0,
) -> Dataset:
    """
    Load sensor/reference observations from a spreadsheet.

    Args:
        path: Excel or CSV file
        x_column: Raw sensor column (position or header label)
        y_column: Reference force column (position or header label)
        sheet: Worksheet for Excel files

    Returns:
        Dataset in file order
    """
    path = Path(path)
    df = read_table(path, sheet=sheet)
    dataset = dataframe_to_dataset(df, x_column=x_column, y_column=y_column)
    logger.info(f"Loaded {len(dataset)} observations from {path}")
    return dataset


def load_readings(
    path: Union[str, Path],
    x_column: ColumnRef = 0,
    y_column: ColumnRef = 1,
    sheet: Union[int, str] = 0,
) -> Tuple[np.ndarray, Optional[np.ndarray]]:
    """
    Load raw sensor readings, with reference forces when the file has them.

    A single-column file is read as sensor readings only.

    Returns:
        Tuple of (sensor readings, reference forces or None)

    Raises:
        InsufficientData: If the file holds no numeric readings
    """
    path = Path(path)
    df = read_table(path, sheet=sheet)

    if df.shape[1] >= 2:
        dataset = dataframe_to_dataset(df, x_column=x_column, y_column=y_column)
        logger.info(f"Loaded {len(dataset)} observations from {path}")
        return dataset.x, dataset.y

    readings = pd.to_numeric(df.iloc[:, 0], errors="coerce").dropna()
    if readings.empty:
        raise InsufficientData(f"No numeric sensor readings found in {path}")

    logger.info(f"Loaded {len(readings)} sensor readings from {path}")
    return readings.to_numpy(dtype=float), None
