"""Excel export of simulation results."""

from typing import Any, Dict

import pandas as pd
from openpyxl.styles import Font, PatternFill

from ..core.exceptions import ModelIOError
from ..reporting.reporting import SimulationResults


class ExcelExporter:
    """Exports simulation results to Excel workbooks."""

    def export_results(self, results: SimulationResults, file_path: str) -> None:
        """Export simulation results to an Excel file.

        Sheets: ``Summary`` (metric/value pairs), ``Histogram`` (one row per
        bin) and ``Outcomes`` (the raw outcome array).

        Args:
            results: Simulation results
            file_path: Output file path
        """
        try:
            with pd.ExcelWriter(file_path, engine="openpyxl") as writer:
                summary_df = self._create_summary_dataframe(results.summary_dict())
                summary_df.to_excel(writer, sheet_name="Summary", index=False)

                if results.histogram is not None:
                    histogram_df = pd.DataFrame([
                        {
                            "Bin": b.index,
                            "Lower": b.lower,
                            "Upper": b.upper,
                            "Midpoint": b.midpoint,
                            "Count": b.count,
                            "In 90% Interval": b.highlighted,
                        }
                        for b in results.histogram.bins
                    ])
                    histogram_df.to_excel(writer, sheet_name="Histogram", index=False)

                outcomes_df = pd.DataFrame({"Value": results.outcomes})
                outcomes_df.to_excel(writer, sheet_name="Outcomes", index=False, na_rep="NaN")

                # Format sheets
                self._format_excel_sheets(writer)

        except OSError as e:
            raise ModelIOError(
                f"Error exporting results to {file_path}: {e}", str(file_path), "write", cause=e
            ) from e

    def _create_summary_dataframe(self, summary: Dict[str, Any]) -> pd.DataFrame:
        """Create summary DataFrame from results."""
        data = []

        for key, value in summary.items():
            if value is None or isinstance(value, bool):
                continue
            if isinstance(value, (int, float, str)):
                data.append({"Metric": key, "Value": value})

        return pd.DataFrame(data, columns=["Metric", "Value"])

    def _format_excel_sheets(self, writer):
        """Format Excel sheets with styling."""
        for sheet_name in writer.sheets:
            ws = writer.sheets[sheet_name]

            # Format headers
            for cell in ws[1]:
                cell.fill = PatternFill(
                    start_color="264653", end_color="264653", fill_type="solid"
                )
                cell.font = Font(color="FFFFFF", bold=True)

            # Auto-adjust column widths
            for column in ws.columns:
                max_length = 0
                column_letter = column[0].column_letter

                for cell in column:
                    if cell.value is not None:
                        max_length = max(max_length, len(str(cell.value)))

                ws.column_dimensions[column_letter].width = min(40, max(12, max_length + 2))
