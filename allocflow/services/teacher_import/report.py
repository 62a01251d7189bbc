"""Reporting utilities for teacher imports."""

from __future__ import annotations

import csv
from datetime import date
from pathlib import Path

import pandas as pd

from allocflow.services.backend.models import BulkImportResponse

from .models import ValidationResult

ERROR_REPORT_COLUMNS = ["Row Number", "Error"]
VALIDATION_REPORT_COLUMNS = ["Row Number", "Field", "Severity", "Message"]


def failed_rows_frame(response: BulkImportResponse) -> pd.DataFrame:
    """Rows the server rejected, one line per row."""

    records = [
        {"Row Number": str(row.row_number), "Error": row.error or "Unknown error"}
        for row in response.failed_results
    ]
    return pd.DataFrame(records, columns=ERROR_REPORT_COLUMNS)


def error_report_csv(response: BulkImportResponse) -> str:
    """Render the failed rows as CSV with every cell quoted."""

    return failed_rows_frame(response).to_csv(index=False, quoting=csv.QUOTE_ALL, lineterminator="\n")


def error_report_filename(day: date | None = None) -> str:
    return f"import-errors-{(day or date.today()).isoformat()}.csv"


def write_error_report(
    response: BulkImportResponse,
    output_dir: Path,
    *,
    day: date | None = None,
) -> Path | None:
    """Write the CSV error report; returns ``None`` when no row failed."""

    if not response.failed_results:
        return None
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / error_report_filename(day)
    path.write_text(error_report_csv(response), encoding="utf-8")
    return path


def validation_errors_frame(result: ValidationResult) -> pd.DataFrame:
    """Validation findings in file order, for previews and exports."""

    records = [
        {
            "Row Number": error.row_number,
            "Field": error.field,
            "Severity": error.severity,
            "Message": error.message,
        }
        for error in result.errors
    ]
    frame = pd.DataFrame(records, columns=VALIDATION_REPORT_COLUMNS)
    return frame.sort_values("Row Number", kind="stable").reset_index(drop=True)


def render_summary(result: ValidationResult) -> str:
    """Short Markdown summary of a validation pass."""

    lines = ["# Teacher Import Preview", ""]
    lines.append(f"- Total rows: {result.total_rows}")
    lines.append(f"- Valid rows: {len(result.valid_rows)}")
    lines.append(f"- Invalid rows: {len(result.invalid_rows)}")
    lines.append(f"- Warnings: {len(result.warnings)}")
    if result.errors:
        lines.append("")
        lines.append("## Findings")
        for row_number in sorted({e.row_number for e in result.errors}):
            for error in result.errors_for(row_number):
                lines.append(f"- Row {row_number} [{error.severity}] {error.field}: {error.message}")
    return "\n".join(lines)


__all__ = [
    "ERROR_REPORT_COLUMNS",
    "error_report_csv",
    "error_report_filename",
    "failed_rows_frame",
    "render_summary",
    "validation_errors_frame",
    "write_error_report",
]
