"""CSV export and import of outcome arrays.

An exported file has a single ``Value`` column with one outcome per line in
trial order. Failed trials are kept and written as ``NaN``.
"""

from pathlib import Path
from typing import Sequence

import numpy as np
import pandas as pd

from ..core.exceptions import FileFormatError, ModelIOError
from ..core.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_OUTCOMES_FILENAME = "posterior_distribution.csv"
VALUE_COLUMN = "Value"


class CSVExporter:
    """Exports outcome arrays to CSV files."""

    def export_outcomes(self, outcomes: Sequence[float],
                        file_path: str = DEFAULT_OUTCOMES_FILENAME) -> str:
        """Write outcomes, one per line, under a ``Value`` header.

        Args:
            outcomes: Outcome array, NaN entries included
            file_path: Output file path

        Returns:
            The written path
        """
        df = pd.DataFrame({VALUE_COLUMN: np.asarray(outcomes, dtype=float)})
        try:
            df.to_csv(file_path, index=False, na_rep="NaN")
        except OSError as e:
            raise ModelIOError(
                f"Error exporting outcomes to {file_path}: {e}", str(file_path), "write", cause=e
            ) from e

        logger.info(f"Exported {len(df):,} outcomes to {file_path}")
        return str(file_path)


class CSVImporter:
    """Reads outcome arrays back from CSV files."""

    def import_outcomes(self, file_path: str) -> np.ndarray:
        """Read an outcome CSV written by ``CSVExporter``.

        Args:
            file_path: Path to CSV file

        Returns:
            Outcomes as a float array, NaN entries included
        """
        if not Path(file_path).exists():
            raise ModelIOError(f"File not found: {file_path}", str(file_path), "read")

        try:
            df = pd.read_csv(file_path)
        except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
            raise FileFormatError(
                f"Error reading outcomes from {file_path}: {e}", str(file_path), "CSV", cause=e
            ) from e

        # Clean column names
        df.columns = df.columns.str.strip()
        if VALUE_COLUMN not in df.columns:
            raise FileFormatError(
                f"Missing '{VALUE_COLUMN}' column in {file_path}", str(file_path), "CSV"
            )

        values = pd.to_numeric(df[VALUE_COLUMN], errors="coerce")
        return values.to_numpy(dtype=float)
