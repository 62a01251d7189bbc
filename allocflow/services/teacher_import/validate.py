"""Row level validation for parsed teacher rows."""

from __future__ import annotations

import re
from typing import AbstractSet, Dict, Iterable, List, MutableSet, Union

from allocflow.services.backend.models import School

from .columns import EMPLOYMENT_STATUSES
from .models import ParsedRow, RowValidationError

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(r"^[\d\s+\-()]+$")
PHONE_MIN_DIGITS = 7

SchoolLookup = Dict[Union[int, str], School]


def build_school_lookup(schools: Iterable[School]) -> SchoolLookup:
    """Index schools by numeric id and by lower-cased name."""

    lookup: SchoolLookup = {}
    for school in schools:
        lookup[school.id] = school
        lookup[school.school_name.strip().lower()] = school
    return lookup


def normalize_email(email: str) -> str:
    return email.strip().lower()


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.match(email.strip()))


def is_valid_phone(phone: str | None) -> bool:
    if not phone:
        return True
    # Separators do not count towards the minimum length.
    digits = sum(ch.isdigit() for ch in phone)
    return bool(PHONE_PATTERN.match(phone)) and digits >= PHONE_MIN_DIGITS


def validate_row(
    row: ParsedRow,
    school_lookup: SchoolLookup,
    seen_emails: MutableSet[str],
    existing_emails: AbstractSet[str] = frozenset(),
) -> List[RowValidationError]:
    """Validate one row and return every finding.

    All rules run so a row can carry several errors. ``seen_emails`` collects
    the normalised emails of earlier rows in the same file and is updated in
    place. When the school resolves by name, ``row.school_id`` is filled in.
    """

    errors: List[RowValidationError] = []

    def add(field: str, message: str, severity: str = "error") -> None:
        errors.append(RowValidationError(row.row_number, field, message, severity))  # type: ignore[arg-type]

    if not row.first_name or not row.first_name.strip():
        add("firstName", "First name is required")

    if not row.last_name or not row.last_name.strip():
        add("lastName", "Last name is required")

    if not row.email or not row.email.strip():
        add("email", "Email is required")
    elif not is_valid_email(row.email):
        add("email", "Invalid email format")
    else:
        normalized = normalize_email(row.email)
        if normalized in seen_emails:
            add("email", "Duplicate email in file")
        else:
            seen_emails.add(normalized)
            if normalized in existing_emails:
                add("email", "Email already exists in database")

    has_name = bool(row.school_name and row.school_name.strip())
    if row.school_id is None and not has_name:
        add("school", "Either School Name or School ID is required")
    elif row.school_id is not None:
        if row.school_id not in school_lookup:
            add("schoolId", f"School with ID {row.school_id} not found")
    else:
        school = school_lookup.get(row.school_name.strip().lower())  # type: ignore[union-attr]
        if school is None:
            add("schoolName", f'School "{row.school_name}" not found')
        else:
            row.school_id = school.id

    if row.employment_status not in EMPLOYMENT_STATUSES:
        add(
            "employmentStatus",
            f"Invalid employment status: {row.employment_status}. "
            f"Allowed values: {', '.join(EMPLOYMENT_STATUSES)}",
        )

    if row.phone and not is_valid_phone(row.phone):
        add("phone", "Invalid phone format", "warning")

    return errors


__all__ = [
    "SchoolLookup",
    "build_school_lookup",
    "is_valid_email",
    "is_valid_phone",
    "normalize_email",
    "validate_row",
]
