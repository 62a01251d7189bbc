"""Unit tests for spreadsheet parsing."""

from __future__ import annotations

from io import BytesIO
from typing import Callable

import pytest
from openpyxl import Workbook

from allocflow.core.errors import ParseError
from allocflow.services.teacher_import.columns import Column, normalize_header, resolve_columns
from allocflow.services.teacher_import.parser import OLE2_MAGIC, cell_text, parse_boolean, parse_rows, parse_workbook

HEADER = ["First Name", "Last Name", "Email", "School Name", "Employment Status", "Phone"]


def test_rows_are_numbered_from_sheet_position(make_xlsx: Callable[..., bytes]) -> None:
    content = make_xlsx(
        [
            HEADER,
            ["Ada", "Lovelace", "ada@example.org", "North High", "FULL_TIME", ""],
            ["Alan", "Turing", "alan@example.org", "North High", "", ""],
            ["Grace", "Hopper", "grace@example.org", "South Elementary", "CONTRACT", ""],
        ]
    )

    rows = parse_workbook(content)

    assert [r.row_number for r in rows] == [2, 3, 4]
    assert rows[0].first_name == "Ada"
    assert rows[2].employment_status == "CONTRACT"


def test_blank_and_incomplete_rows_are_skipped_without_renumbering(make_xlsx: Callable[..., bytes]) -> None:
    content = make_xlsx(
        [
            HEADER,
            ["Ada", "Lovelace", "ada@example.org", "North High", "", ""],
            [None, None, None, None, None, None],
            ["Alan", "", "alan@example.org", "North High", "", ""],
            ["Grace", "Hopper", "grace@example.org", "North High", "", ""],
        ]
    )

    rows = parse_workbook(content)

    assert [r.row_number for r in rows] == [2, 5]


def test_header_aliases_and_whitespace_are_recognised(make_xlsx: Callable[..., bytes]) -> None:
    content = make_xlsx(
        [
            ["  first   name ", "LASTNAME", "E-mail", "School ID", "Part Time", "Usage Cycle", "Working Hours"],
            ["Ada", "Lovelace", "ada@example.org", 7, "yes", "grades 1-2", 12.5],
        ]
    )

    [row] = parse_workbook(content)

    assert row.school_id == 7
    assert row.school_name is None
    assert row.is_part_time is True
    assert row.usage_cycle == "GRADES_1_2"
    assert row.working_hours_per_week == 12.5


def test_first_matching_alias_wins() -> None:
    resolved = resolve_columns(["School", "School Name", "First Name", "Last Name", "Email"])
    assert resolved[Column.SCHOOL_NAME] == 1
    assert normalize_header("  School \t Name ") == "school name"


def test_unknown_status_falls_back_to_full_time(make_xlsx: Callable[..., bytes]) -> None:
    content = make_xlsx(
        [
            HEADER,
            ["Ada", "Lovelace", "ada@example.org", "North High", "sabbatical", ""],
            ["Alan", "Turing", "alan@example.org", "North High", "part-time", ""],
        ]
    )

    rows = parse_workbook(content)

    assert [r.employment_status for r in rows] == ["FULL_TIME", "PART_TIME"]


def test_numeric_cells_render_without_decimal_suffix(make_xlsx: Callable[..., bytes]) -> None:
    content = make_xlsx(
        [
            HEADER + ["School ID"],
            ["Ada", "Lovelace", "ada@example.org", "", "", 5551234567, 3.0],
        ]
    )

    [row] = parse_workbook(content)

    assert row.phone == "5551234567"
    assert row.school_id == 3


def test_missing_required_columns_are_named(make_xlsx: Callable[..., bytes]) -> None:
    content = make_xlsx([["First Name", "School Name"], ["Ada", "North High"]])

    with pytest.raises(ParseError, match="Missing required columns: Last Name, Email"):
        parse_workbook(content)


def test_header_only_sheet_is_rejected(make_xlsx: Callable[..., bytes]) -> None:
    with pytest.raises(ParseError, match="header row and at least one data row"):
        parse_workbook(make_xlsx([HEADER]))


def test_no_usable_rows_is_rejected(make_xlsx: Callable[..., bytes]) -> None:
    content = make_xlsx([HEADER, ["", "", "missing@example.org", "", "", ""]])

    with pytest.raises(ParseError, match="No valid data rows found"):
        parse_workbook(content)


def test_garbage_bytes_are_reported_as_corrupt() -> None:
    with pytest.raises(ParseError, match="empty or corrupted"):
        parse_workbook(b"this is not a spreadsheet")
    with pytest.raises(ParseError, match="File is empty"):
        parse_workbook(b"")


def test_truncated_zip_is_reported_as_corrupt(make_xlsx: Callable[..., bytes]) -> None:
    content = make_xlsx([HEADER, ["Ada", "Lovelace", "ada@example.org", "", "", ""]])

    with pytest.raises(ParseError, match="empty or corrupted"):
        parse_workbook(content[:64])


def test_legacy_xls_workbook_is_parsed(make_xls: Callable[..., bytes]) -> None:
    content = make_xls(
        [
            ["First Name", "Last Name", "Email", "School ID", "Is Part Time"],
            ["John", "Doe", "john@example.org", 7, True],
            [None, None, None, None, None],
            ["Jane", "Roe", "jane@example.org", 8, False],
        ]
    )
    assert content.startswith(OLE2_MAGIC)

    rows = parse_workbook(content)

    assert [r.row_number for r in rows] == [2, 4]
    assert (rows[0].first_name, rows[0].email) == ("John", "john@example.org")
    assert rows[0].school_id == 7
    assert rows[0].is_part_time is True
    assert rows[1].is_part_time is False


def test_damaged_xls_is_reported_as_corrupt() -> None:
    with pytest.raises(ParseError, match="Unable to read workbook: the file appears to be empty or corrupted"):
        parse_workbook(OLE2_MAGIC + b"\x00" * 504)


def test_parse_rows_accepts_raw_tuples() -> None:
    rows = [
        ("First Name", "Last Name", "Email"),
        ("Ada", "Lovelace", "ada@example.org"),
    ]
    assert len(parse_rows(rows)) == 1


@pytest.mark.parametrize(
    ("value", "expected"),
    [(True, True), (1, True), (0, False), ("Yes", True), (" y ", True), ("no", False), (None, False)],
)
def test_parse_boolean(value: object, expected: bool) -> None:
    assert parse_boolean(value) is expected


def test_cell_text_trims_and_handles_empty_values() -> None:
    assert cell_text("  Ada  ") == "Ada"
    assert cell_text(None) == ""
    assert cell_text(42.0) == "42"
    assert cell_text(float("nan")) == ""


def test_only_first_sheet_is_read() -> None:
    wb = Workbook()
    first = wb.active
    first.append(HEADER)
    first.append(["Ada", "Lovelace", "ada@example.org", "North High", "", ""])
    second = wb.create_sheet("Archive")
    second.append(HEADER)
    second.append(["Alan", "Turing", "alan@example.org", "North High", "", ""])
    buffer = BytesIO()
    wb.save(buffer)

    rows = parse_workbook(buffer.getvalue())

    assert [r.email for r in rows] == ["ada@example.org"]
