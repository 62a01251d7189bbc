from __future__ import annotations

from datetime import date
from pathlib import Path

from allocflow.services.teacher_import.models import RowValidationError, ValidationResult
from allocflow.services.teacher_import.report import (
    error_report_csv,
    error_report_filename,
    render_summary,
    validation_errors_frame,
    write_error_report,
)


def test_error_report_quotes_every_cell(make_response) -> None:
    response = make_response([(2, None), (3, 'Email "x" already exists'), (4, "")])

    csv_text = error_report_csv(response)

    assert csv_text.splitlines() == [
        '"Row Number","Error"',
        '"3","Email ""x"" already exists"',
        '"4","Unknown error"',
    ]


def test_write_error_report_uses_dated_name(tmp_path: Path, make_response) -> None:
    response = make_response([(2, "School not found")])

    path = write_error_report(response, tmp_path / "reports", day=date(2024, 3, 9))

    assert path == tmp_path / "reports" / "import-errors-2024-03-09.csv"
    assert path.read_text(encoding="utf-8").startswith('"Row Number","Error"\n"2","School not found"')


def test_no_report_when_nothing_failed(tmp_path: Path, make_response) -> None:
    assert write_error_report(make_response([(2, None)]), tmp_path) is None
    assert list(tmp_path.iterdir()) == []


def test_error_report_filename_defaults_to_today() -> None:
    assert error_report_filename() == f"import-errors-{date.today().isoformat()}.csv"


def test_validation_findings_frame_and_summary() -> None:
    result = ValidationResult(
        errors=[
            RowValidationError(5, "email", "Invalid email format"),
            RowValidationError(2, "phone", "Invalid phone format", "warning"),
        ],
        total_rows=4,
    )

    frame = validation_errors_frame(result)
    assert frame["Row Number"].tolist() == [2, 5]
    assert frame["Severity"].tolist() == ["warning", "error"]

    summary = render_summary(result)
    assert "- Total rows: 4" in summary
    assert "- Row 5 [error] email: Invalid email format" in summary
    assert summary.index("- Row 2 [warning]") < summary.index("- Row 5 [error]")
    assert [e.message for e in result.errors_for(5)] == ["Invalid email format"]
    assert result.errors_for(3) == []
