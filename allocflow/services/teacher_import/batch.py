"""Chunked validation across all parsed rows."""

from __future__ import annotations

import asyncio
from dataclasses import replace
from typing import AbstractSet, Callable, Iterable, List, Sequence

from allocflow.core.logger import get_logger
from allocflow.services.backend.models import School

from .models import ParsedRow, RowValidationError, ValidationResult
from .validate import build_school_lookup, validate_row

LOGGER = get_logger()

DEFAULT_CHUNK_SIZE = 50

ProgressCallback = Callable[[int], None]


async def validate_all(
    rows: Sequence[ParsedRow],
    schools: Iterable[School],
    existing_emails: AbstractSet[str] = frozenset(),
    on_progress: ProgressCallback | None = None,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> ValidationResult:
    """Validate every row in fixed-size chunks.

    Each chunk is validated synchronously, then progress is reported as a
    whole percentage and control is handed back to the event loop before the
    next chunk. Rows are validated as copies; the caller's rows are left
    untouched. Exceptions abort the pass and propagate.
    """

    if chunk_size < 1:
        raise ValueError("chunk_size must be at least 1")

    school_lookup = build_school_lookup(schools)
    seen_emails: set[str] = set()
    valid_rows: List[ParsedRow] = []
    invalid_rows: List[ParsedRow] = []
    errors: List[RowValidationError] = []
    total = len(rows)

    for start in range(0, total, chunk_size):
        for original in rows[start : start + chunk_size]:
            row = replace(original, errors=None)
            row_errors = validate_row(row, school_lookup, seen_emails, existing_emails)
            if row_errors:
                row.errors = [e.message for e in row_errors]
                errors.extend(row_errors)
            if any(e.is_error for e in row_errors):
                invalid_rows.append(row)
            else:
                valid_rows.append(row)

        processed = min(start + chunk_size, total)
        if on_progress is not None:
            on_progress(processed * 100 // total)
        await asyncio.sleep(0)

    LOGGER.info(
        "Validated %d rows (%d valid / %d invalid / %d findings)",
        total,
        len(valid_rows),
        len(invalid_rows),
        len(errors),
    )
    return ValidationResult(
        valid_rows=valid_rows,
        invalid_rows=invalid_rows,
        errors=errors,
        total_rows=total,
    )


__all__ = ["DEFAULT_CHUNK_SIZE", "ProgressCallback", "validate_all"]
