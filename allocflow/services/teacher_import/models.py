"""Data models used by the teacher import service."""

from __future__ import annotations

import mimetypes
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Literal, Optional

Severity = Literal["error", "warning"]


@dataclass(slots=True)
class ParsedRow:
    """One prospective teacher read from the spreadsheet.

    ``row_number`` is the 1-based sheet row including the header, so the first
    data row is 2.
    """

    row_number: int
    first_name: str
    last_name: str
    email: str
    employment_status: str
    is_part_time: bool = False
    school_name: Optional[str] = None
    school_id: Optional[int] = None
    phone: Optional[str] = None
    usage_cycle: Optional[str] = None
    working_hours_per_week: Optional[float] = None
    errors: Optional[List[str]] = None


@dataclass(frozen=True, slots=True)
class RowValidationError:
    """Field level finding for a single row."""

    row_number: int
    field: str
    message: str
    severity: Severity = "error"

    @property
    def is_error(self) -> bool:
        return self.severity == "error"


@dataclass(slots=True)
class ValidationResult:
    """Outcome of one validation pass over all parsed rows."""

    valid_rows: List[ParsedRow] = field(default_factory=list)
    invalid_rows: List[ParsedRow] = field(default_factory=list)
    errors: List[RowValidationError] = field(default_factory=list)
    total_rows: int = 0

    @property
    def has_blocking_errors(self) -> bool:
        """True when at least one row failed an error-severity rule."""

        return bool(self.invalid_rows)

    @property
    def can_import(self) -> bool:
        """True when every row passed and there is something to submit."""

        return not self.invalid_rows and bool(self.valid_rows)

    @property
    def warnings(self) -> List[RowValidationError]:
        return [e for e in self.errors if not e.is_error]

    def errors_for(self, row_number: int) -> List[RowValidationError]:
        """Findings for one sheet row, in the order they were raised."""

        return [e for e in self.errors if e.row_number == row_number]


@dataclass(frozen=True, slots=True)
class ImportProgress:
    """Progress of the current import run."""

    current: int = 0
    total: int = 0
    percentage: int = 0

    @classmethod
    def zero(cls) -> "ImportProgress":
        return cls()

    @classmethod
    def of(cls, current: int, total: int) -> "ImportProgress":
        percentage = round(current / total * 100) if total > 0 else 0
        return cls(current=current, total=total, percentage=percentage)


@dataclass(frozen=True, slots=True)
class UploadedFile:
    """Spreadsheet selected by the user, kept verbatim for re-submission."""

    name: str
    content: bytes = field(repr=False)
    content_type: str = ""

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def suffix(self) -> str:
        return Path(self.name).suffix.lower()

    @classmethod
    def from_path(cls, path: Path) -> "UploadedFile":
        """Read ``path`` into memory."""

        if not path.exists():
            raise FileNotFoundError(f"Spreadsheet not found: {path}")
        content_type, _ = mimetypes.guess_type(path.name)
        return cls(name=path.name, content=path.read_bytes(), content_type=content_type or "")


__all__ = [
    "ImportProgress",
    "ParsedRow",
    "RowValidationError",
    "Severity",
    "UploadedFile",
    "ValidationResult",
]
