"""Payload models for the allocation system backend API."""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class ApiModel(BaseModel):
    """Base model accepting camelCase wire names and snake_case attributes."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class Envelope(ApiModel, Generic[T]):
    """Standard ``{success, message, data}`` response wrapper."""

    success: bool = True
    message: str | None = None
    data: T | None = None


class School(ApiModel):
    """Active school as returned by the paginated listing."""

    id: int
    school_name: str
    is_active: bool = True


class SchoolPage(ApiModel):
    """One page of the school listing."""

    items: list[School] = Field(default_factory=list)
    total_items: int = 0
    total_pages: int = 1
    page: int = 1
    page_size: int = 0


class TeacherRecord(ApiModel):
    """Teacher created by the bulk import endpoint."""

    id: int
    school_id: int | None = None
    school_name: str | None = None
    first_name: str
    last_name: str
    email: str
    phone: str | None = None
    is_part_time: bool = False
    working_hours_per_week: float | None = None
    employment_status: str | None = None
    usage_cycle: str | None = None


class ImportResultRow(ApiModel):
    """Server verdict for one spreadsheet row."""

    row_number: int
    success: bool
    error: str | None = None
    teacher: TeacherRecord | None = None


class BulkImportResponse(ApiModel):
    """Aggregated outcome of a bulk import call."""

    total_rows: int
    successful_rows: int
    failed_rows: int
    results: list[ImportResultRow] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_counts(self) -> "BulkImportResponse":
        if self.successful_rows + self.failed_rows != self.total_rows:
            raise ValueError("successfulRows + failedRows must equal totalRows")
        if len(self.results) != self.total_rows:
            raise ValueError("results must contain one entry per row")
        return self

    @property
    def failed_results(self) -> list[ImportResultRow]:
        """Rows the server rejected, in file order."""

        return [row for row in self.results if not row.success]


__all__ = [
    "ApiModel",
    "BulkImportResponse",
    "Envelope",
    "ImportResultRow",
    "School",
    "SchoolPage",
    "TeacherRecord",
]
