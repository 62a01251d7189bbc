"""Column aliases and code tables for teacher import spreadsheets."""

from __future__ import annotations

import re
from enum import Enum
from typing import Dict, Iterable, Literal, Sequence


class Column(str, Enum):
    """Logical columns recognised in an import spreadsheet."""

    SCHOOL_NAME = "schoolName"
    SCHOOL_ID = "schoolId"
    FIRST_NAME = "firstName"
    LAST_NAME = "lastName"
    EMAIL = "email"
    PHONE = "phone"
    EMPLOYMENT_STATUS = "employmentStatus"
    IS_PART_TIME = "isPartTime"
    USAGE_CYCLE = "usageCycle"
    WORKING_HOURS = "workingHoursPerWeek"


# Ordered; the first alias found in the header row wins.
COLUMN_ALIASES: Dict[Column, tuple[str, ...]] = {
    Column.SCHOOL_NAME: ("School Name", "School", "SchoolName", "school_name"),
    Column.SCHOOL_ID: ("School ID", "SchoolId", "school_id"),
    Column.FIRST_NAME: ("First Name", "FirstName", "First", "first_name"),
    Column.LAST_NAME: ("Last Name", "LastName", "Last", "last_name"),
    Column.EMAIL: ("Email", "E-mail", "email"),
    Column.PHONE: ("Phone", "Phone Number", "PhoneNumber", "phone"),
    Column.EMPLOYMENT_STATUS: ("Employment Status", "EmploymentStatus", "Status", "employment_status"),
    Column.IS_PART_TIME: ("Is Part Time", "IsPartTime", "Part Time", "part_time", "PartTime"),
    Column.USAGE_CYCLE: ("Usage Cycle", "UsageCycle", "Cycle", "usage_cycle"),
    Column.WORKING_HOURS: (
        "Working Hours Per Week",
        "WorkingHoursPerWeek",
        "Working Hours",
        "working_hours_per_week",
    ),
}

REQUIRED_COLUMNS: tuple[Column, ...] = (Column.FIRST_NAME, Column.LAST_NAME, Column.EMAIL)

EmploymentStatus = Literal["FULL_TIME", "PART_TIME", "ON_LEAVE", "CONTRACT", "PROBATION", "RETIRED"]
UsageCycle = Literal["GRADES_1_2", "GRADES_3_4", "GRADES_5_TO_9", "FLEXIBLE"]

EMPLOYMENT_STATUSES: tuple[str, ...] = (
    "FULL_TIME",
    "PART_TIME",
    "ON_LEAVE",
    "CONTRACT",
    "PROBATION",
    "RETIRED",
)
USAGE_CYCLES: tuple[str, ...] = ("GRADES_1_2", "GRADES_3_4", "GRADES_5_TO_9", "FLEXIBLE")

DEFAULT_EMPLOYMENT_STATUS: EmploymentStatus = "FULL_TIME"

_WHITESPACE = re.compile(r"\s+")
_CODE_SEPARATORS = re.compile(r"[_\s-]")


def normalize_header(label: object) -> str:
    """Trim, collapse internal whitespace and casefold a header cell."""

    if label is None:
        return ""
    return _WHITESPACE.sub(" ", str(label).strip()).casefold()


def resolve_columns(headers: Sequence[object]) -> Dict[Column, int]:
    """Map each logical column to its index in ``headers``.

    Columns without a matching header are left out of the result.
    """

    normalized = [normalize_header(h) for h in headers]
    resolved: Dict[Column, int] = {}
    for column, aliases in COLUMN_ALIASES.items():
        for alias in aliases:
            target = normalize_header(alias)
            if target in normalized:
                resolved[column] = normalized.index(target)
                break
    return resolved


def missing_required(resolved: Iterable[Column]) -> list[Column]:
    present = set(resolved)
    return [column for column in REQUIRED_COLUMNS if column not in present]


def display_name(column: Column) -> str:
    """Human readable name used in messages (the first alias)."""

    return COLUMN_ALIASES[column][0]


def normalize_code(value: object) -> str:
    """Uppercase a code cell and turn separators into underscores."""

    if value is None:
        return ""
    return _CODE_SEPARATORS.sub("_", str(value).strip().upper())


def parse_employment_status(value: object) -> EmploymentStatus | None:
    code = normalize_code(value)
    return code if code in EMPLOYMENT_STATUSES else None  # type: ignore[return-value]


def parse_usage_cycle(value: object) -> UsageCycle | None:
    code = normalize_code(value)
    if not code:
        return None
    return code if code in USAGE_CYCLES else None  # type: ignore[return-value]


__all__ = [
    "COLUMN_ALIASES",
    "Column",
    "DEFAULT_EMPLOYMENT_STATUS",
    "EMPLOYMENT_STATUSES",
    "EmploymentStatus",
    "REQUIRED_COLUMNS",
    "USAGE_CYCLES",
    "UsageCycle",
    "display_name",
    "missing_required",
    "normalize_code",
    "normalize_header",
    "parse_employment_status",
    "parse_usage_cycle",
    "resolve_columns",
]
