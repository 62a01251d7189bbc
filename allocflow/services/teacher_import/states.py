"""Finite state machine for the bulk import workflow.

Each step is its own immutable type carrying exactly the data that is valid
in that step, and ``transition`` is the only way to move between them::

    upload -> parsing -> validating -> preview -> importing -> results
       ^         |           |           ^   |                   |
       +---------+-----------+           +---+ (import failed)   |
       +-------------------------------------------------------- + (reset)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, List, Literal, Optional, Union

from allocflow.core.errors import IllegalTransition
from allocflow.services.backend.models import BulkImportResponse

from .models import ImportProgress, ParsedRow, UploadedFile, ValidationResult

Step = Literal["upload", "parsing", "validating", "preview", "importing", "results"]


@dataclass(frozen=True, slots=True)
class Upload:
    step: ClassVar[Step] = "upload"
    error: Optional[str] = None


@dataclass(frozen=True, slots=True)
class Parsing:
    step: ClassVar[Step] = "parsing"
    file: UploadedFile


@dataclass(frozen=True, slots=True)
class Validating:
    step: ClassVar[Step] = "validating"
    file: UploadedFile
    rows: List[ParsedRow]


@dataclass(frozen=True, slots=True)
class Preview:
    step: ClassVar[Step] = "preview"
    file: UploadedFile
    rows: List[ParsedRow]
    validation: ValidationResult
    error: Optional[str] = None


@dataclass(frozen=True, slots=True)
class Importing:
    step: ClassVar[Step] = "importing"
    file: UploadedFile
    rows: List[ParsedRow]
    validation: ValidationResult
    progress: ImportProgress


@dataclass(frozen=True, slots=True)
class Results:
    step: ClassVar[Step] = "results"
    file: UploadedFile
    rows: List[ParsedRow]
    validation: ValidationResult
    progress: ImportProgress
    response: BulkImportResponse


ImportState = Union[Upload, Parsing, Validating, Preview, Importing, Results]


# Events ------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FileSelected:
    file: UploadedFile


@dataclass(frozen=True, slots=True)
class ParseSucceeded:
    rows: List[ParsedRow]


@dataclass(frozen=True, slots=True)
class PreparationFailed:
    message: str


@dataclass(frozen=True, slots=True)
class ValidationCompleted:
    result: ValidationResult


@dataclass(frozen=True, slots=True)
class ImportConfirmed:
    pass


@dataclass(frozen=True, slots=True)
class ImportSucceeded:
    response: BulkImportResponse


@dataclass(frozen=True, slots=True)
class ImportFailed:
    message: str


@dataclass(frozen=True, slots=True)
class Reset:
    pass


ImportEvent = Union[
    FileSelected,
    ParseSucceeded,
    PreparationFailed,
    ValidationCompleted,
    ImportConfirmed,
    ImportSucceeded,
    ImportFailed,
    Reset,
]

BUSY_STEPS: frozenset[str] = frozenset({"parsing", "validating", "importing"})


def is_busy(state: ImportState) -> bool:
    return state.step in BUSY_STEPS


def transition(state: ImportState, event: ImportEvent) -> ImportState:
    """Return the state that follows ``state`` when ``event`` happens.

    Raises:
        IllegalTransition: When the event is not accepted in the current step.
    """

    if isinstance(event, Reset):
        return Upload()

    if isinstance(event, FileSelected) and isinstance(state, (Upload, Preview, Results)):
        return Parsing(file=event.file)

    if isinstance(event, ParseSucceeded) and isinstance(state, Parsing):
        return Validating(file=state.file, rows=list(event.rows))

    if isinstance(event, PreparationFailed) and isinstance(state, (Parsing, Validating)):
        return Upload(error=event.message)

    if isinstance(event, ValidationCompleted) and isinstance(state, Validating):
        return Preview(file=state.file, rows=state.rows, validation=event.result)

    if isinstance(event, ImportConfirmed) and isinstance(state, Preview):
        if not state.validation.can_import:
            raise IllegalTransition("Import requires at least one valid row and no invalid rows")
        return Importing(
            file=state.file,
            rows=state.rows,
            validation=state.validation,
            progress=ImportProgress.of(0, len(state.validation.valid_rows)),
        )

    if isinstance(event, ImportSucceeded) and isinstance(state, Importing):
        response = event.response
        return Results(
            file=state.file,
            rows=state.rows,
            validation=state.validation,
            progress=ImportProgress.of(response.successful_rows, response.total_rows),
            response=response,
        )

    if isinstance(event, ImportFailed) and isinstance(state, Importing):
        return Preview(file=state.file, rows=state.rows, validation=state.validation, error=event.message)

    raise IllegalTransition(f"Cannot handle {type(event).__name__} while in step '{state.step}'")


__all__ = [
    "BUSY_STEPS",
    "FileSelected",
    "ImportConfirmed",
    "ImportEvent",
    "ImportFailed",
    "ImportState",
    "ImportSucceeded",
    "Importing",
    "ParseSucceeded",
    "Parsing",
    "PreparationFailed",
    "Preview",
    "Reset",
    "Results",
    "Step",
    "Upload",
    "ValidationCompleted",
    "Validating",
    "is_busy",
]
