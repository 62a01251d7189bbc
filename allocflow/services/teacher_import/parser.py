"""Spreadsheet parsing for teacher imports.

Module responsibilities:
- Sniff the workbook container (xlsx via openpyxl, legacy xls via xlrd) and
  read the first sheet only, keeping every sheet row so row numbers match
  what the user sees.
- Map header labels onto logical columns through the alias table.
- Turn each data row into a ``ParsedRow``; rows lacking a first name, last
  name or email are dropped rather than reported.
"""

from __future__ import annotations

import math
from datetime import date, datetime
from io import BytesIO
from typing import Any, Dict, List, Optional, Sequence, Tuple
from zipfile import BadZipFile

import xlrd
from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException
from xlrd.compdoc import CompDocError

from allocflow.core.errors import ParseError
from allocflow.core.logger import get_logger

from .columns import (
    DEFAULT_EMPLOYMENT_STATUS,
    Column,
    display_name,
    missing_required,
    parse_employment_status,
    parse_usage_cycle,
    resolve_columns,
)
from .models import ParsedRow

LOGGER = get_logger()

ZIP_MAGIC = b"PK\x03\x04"
OLE2_MAGIC = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"

TRUTHY = {"true", "yes", "1", "y"}

SheetRows = List[Tuple[Any, ...]]


def read_first_sheet(content: bytes) -> tuple[str, SheetRows]:
    """Return the first sheet's title and all of its rows as raw cell values."""

    if not content:
        raise ParseError("File is empty")
    if content.startswith(ZIP_MAGIC):
        return _read_xlsx(content)
    if content.startswith(OLE2_MAGIC):
        return _read_xls(content)
    raise ParseError("Unable to read workbook: the file appears to be empty or corrupted")


def _read_xlsx(content: bytes) -> tuple[str, SheetRows]:
    try:
        workbook = load_workbook(BytesIO(content), data_only=True)
    except (InvalidFileException, BadZipFile, KeyError, OSError, ValueError) as exc:
        raise ParseError("Unable to read workbook: the file appears to be empty or corrupted") from exc
    try:
        if not workbook.sheetnames:
            raise ParseError("Workbook contains no sheets")
        sheet = workbook[workbook.sheetnames[0]]
        # Start at A1 so leading blank rows still count towards row numbers.
        rows = [tuple(row) for row in sheet.iter_rows(min_row=1, min_col=1, values_only=True)]
        return sheet.title, rows
    finally:
        workbook.close()


def _read_xls(content: bytes) -> tuple[str, SheetRows]:
    try:
        book = xlrd.open_workbook(file_contents=content)
    except (xlrd.XLRDError, CompDocError, OSError, ValueError) as exc:
        raise ParseError("Unable to read workbook: the file appears to be empty or corrupted") from exc
    if book.nsheets == 0:
        raise ParseError("Workbook contains no sheets")
    sheet = book.sheet_by_index(0)
    rows = [tuple(sheet.row_values(idx)) for idx in range(sheet.nrows)]
    return sheet.name, rows


def cell_text(value: object) -> str:
    """Render a raw cell as trimmed text; integral numbers lose their ``.0``."""

    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value).strip()


def parse_boolean(value: object) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in TRUTHY
    return False


def _parse_int(text: str) -> Optional[int]:
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        return None


def _parse_float(text: str) -> Optional[float]:
    if not text:
        return None
    try:
        return float(text.replace(",", "."))
    except ValueError:
        return None


def _cell(row: Sequence[object], index: Optional[int]) -> object:
    if index is None or index >= len(row):
        return None
    return row[index]


def parse_rows(rows: SheetRows) -> List[ParsedRow]:
    """Convert raw sheet rows (header first) into parsed teacher rows."""

    if len(rows) < 2:
        raise ParseError("The spreadsheet must contain a header row and at least one data row")

    indices: Dict[Column, int] = resolve_columns(rows[0])
    missing = missing_required(indices)
    if missing:
        names = ", ".join(display_name(c) for c in missing)
        raise ParseError(
            f"Missing required columns: {names}. Required: First Name, Last Name, Email. "
            "Optional: School Name/ID, Employment Status, Is Part Time, Phone, Usage Cycle"
        )
    LOGGER.info("Detected import columns: %s", ", ".join(c.value for c in indices))

    def text(row: Sequence[object], column: Column) -> str:
        return cell_text(_cell(row, indices.get(column)))

    parsed: List[ParsedRow] = []
    skipped = 0
    for position, row in enumerate(rows[1:], start=2):
        if all(cell_text(cell) == "" for cell in row):
            continue

        first_name = text(row, Column.FIRST_NAME)
        last_name = text(row, Column.LAST_NAME)
        email = text(row, Column.EMAIL)
        if not first_name or not last_name or not email:
            skipped += 1
            continue

        status = parse_employment_status(text(row, Column.EMPLOYMENT_STATUS)) or DEFAULT_EMPLOYMENT_STATUS
        parsed.append(
            ParsedRow(
                row_number=position,
                first_name=first_name,
                last_name=last_name,
                email=email,
                employment_status=status,
                is_part_time=parse_boolean(_cell(row, indices.get(Column.IS_PART_TIME))),
                school_name=text(row, Column.SCHOOL_NAME) or None,
                school_id=_parse_int(text(row, Column.SCHOOL_ID)),
                phone=text(row, Column.PHONE) or None,
                usage_cycle=parse_usage_cycle(text(row, Column.USAGE_CYCLE)),
                working_hours_per_week=_parse_float(text(row, Column.WORKING_HOURS)),
            )
        )

    if skipped:
        LOGGER.warning("Skipped %d rows missing first name, last name or email", skipped)
    if not parsed:
        raise ParseError("No valid data rows found in the spreadsheet")
    return parsed


def parse_workbook(content: bytes) -> List[ParsedRow]:
    """Parse an uploaded workbook into teacher rows.

    Args:
        content: Raw bytes of an ``.xlsx`` or ``.xls`` file.

    Returns:
        Parsed rows in sheet order.

    Raises:
        ParseError: When the workbook is unreadable, has no sheets, has fewer
            than two rows, lacks a mandatory column, or yields no usable row.
    """

    title, rows = read_first_sheet(content)
    LOGGER.info("Reading import sheet %r (%d rows including header)", title, len(rows))
    parsed = parse_rows(rows)
    LOGGER.info("Parsed %d teacher rows from sheet %r", len(parsed), title)
    return parsed


__all__ = [
    "cell_text",
    "parse_boolean",
    "parse_rows",
    "parse_workbook",
    "read_first_sheet",
]
