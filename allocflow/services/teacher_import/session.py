"""Import session driving upload -> parse -> validate -> preview -> import -> results."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Callable, List, Optional, Protocol

from pydantic import BaseModel, ConfigDict, Field

from allocflow.core.errors import AllocFlowError, ConfigError, IllegalTransition, ParseError
from allocflow.core.logger import get_logger
from allocflow.core.profiles import load_profiles_section
from allocflow.services.backend.client import TeacherImportApi
from allocflow.services.backend.models import BulkImportResponse

from .batch import DEFAULT_CHUNK_SIZE, validate_all
from .messages import (
    DEFAULT_IMPORT_MESSAGE,
    DEFAULT_PREPARATION_MESSAGE,
    describe_import_error,
    describe_preparation_error,
)
from .models import ImportProgress, ParsedRow, UploadedFile, ValidationResult
from .parser import parse_workbook
from .reference import DEFAULT_PAGE_SIZE, ReferenceDataLoader
from .states import (
    FileSelected,
    ImportConfirmed,
    ImportEvent,
    ImportFailed,
    ImportState,
    ImportSucceeded,
    ParseSucceeded,
    PreparationFailed,
    Preview,
    Reset,
    Step,
    Upload,
    ValidationCompleted,
    is_busy,
    transition,
)

LOGGER = get_logger()

MAX_UPLOAD_BYTES = 10 * 1024 * 1024
SPREADSHEET_MIME_TYPES = frozenset(
    {
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "application/vnd.ms-excel",
    }
)


class Notifier(Protocol):
    """Receives user-facing notifications (toasts, banners, console lines)."""

    def success(self, message: str) -> None:  # pragma: no cover - interface definition
        ...

    def error(self, message: str) -> None:  # pragma: no cover - interface definition
        ...

    def warning(self, message: str) -> None:  # pragma: no cover - interface definition
        ...


class LoggingNotifier:
    """Notifier that only writes to the application log."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or LOGGER

    def success(self, message: str) -> None:
        self._logger.info(message)

    def error(self, message: str) -> None:
        self._logger.error(message)

    def warning(self, message: str) -> None:
        self._logger.warning(message)


class ImportSettings(BaseModel):
    """Tunables for an import session."""

    model_config = ConfigDict(extra="ignore")

    chunk_size: int = Field(default=DEFAULT_CHUNK_SIZE, ge=1)
    school_page_size: int = Field(default=DEFAULT_PAGE_SIZE, ge=1)
    max_upload_bytes: int = Field(default=MAX_UPLOAD_BYTES, ge=1)
    skip_invalid_rows: bool = True
    allowed_extensions: tuple[str, ...] = (".xlsx", ".xls")


def load_import_settings(profile: str | None = None, *, config_path: str | Path | None = None) -> ImportSettings:
    """Read ``import.<profile>`` from profiles.yaml, falling back to defaults."""

    if not profile:
        return ImportSettings()
    try:
        section = load_profiles_section("import", config_path)
    except ConfigError as exc:
        LOGGER.info("Using default import settings: %s", exc)
        return ImportSettings()
    raw = section.get(profile)
    if raw is None:
        LOGGER.info("No import profile '%s'; using defaults", profile)
        return ImportSettings()
    return ImportSettings.model_validate(dict(raw))


class ImportSession:
    """Runs one bulk import at a time and exposes its state.

    The workflow state lives in a single immutable ``ImportState`` value that
    only changes through :func:`states.transition`.
    """

    def __init__(
        self,
        api: TeacherImportApi,
        *,
        notifier: Notifier | None = None,
        settings: ImportSettings | None = None,
        on_import_complete: Callable[[], None] | None = None,
        on_validation_progress: Callable[[int], None] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._api = api
        self._settings = settings or ImportSettings()
        self._notifier: Notifier = notifier or LoggingNotifier(logger)
        self._on_import_complete = on_import_complete
        self._on_validation_progress = on_validation_progress
        self._logger = logger or LOGGER
        self._loader = ReferenceDataLoader(api, page_size=self._settings.school_page_size, logger=self._logger)
        self._state: ImportState = Upload()
        self._validation_percent = 0

    # Read-only views ---------------------------------------------------

    @property
    def state(self) -> ImportState:
        return self._state

    @property
    def step(self) -> Step:
        return self._state.step

    @property
    def is_loading(self) -> bool:
        return is_busy(self._state)

    @property
    def file(self) -> Optional[UploadedFile]:
        return getattr(self._state, "file", None)

    @property
    def parsed_rows(self) -> List[ParsedRow]:
        return list(getattr(self._state, "rows", []))

    @property
    def validation_result(self) -> Optional[ValidationResult]:
        return getattr(self._state, "validation", None)

    @property
    def validation_progress(self) -> int:
        return self._validation_percent

    @property
    def import_progress(self) -> ImportProgress:
        return getattr(self._state, "progress", ImportProgress.zero())

    @property
    def import_results(self) -> Optional[BulkImportResponse]:
        return getattr(self._state, "response", None)

    @property
    def error(self) -> Optional[str]:
        return getattr(self._state, "error", None)

    @property
    def can_import(self) -> bool:
        validation = self.validation_result
        return isinstance(self._state, Preview) and validation is not None and validation.can_import

    # Transitions -------------------------------------------------------

    def _apply(self, event: ImportEvent) -> ImportState:
        previous = self._state.step
        self._state = transition(self._state, event)
        self._logger.debug("import.step %s -> %s (%s)", previous, self._state.step, type(event).__name__)
        return self._state

    def check_upload(self, file: UploadedFile) -> None:
        """Reject files the importer would never accept, before parsing."""

        allowed = self._settings.allowed_extensions
        if file.suffix not in allowed and file.content_type not in SPREADSHEET_MIME_TYPES:
            raise ParseError(f"Unsupported file type '{file.name}'. Please upload one of: {', '.join(allowed)}")
        if file.size > self._settings.max_upload_bytes:
            limit_mb = self._settings.max_upload_bytes / (1024 * 1024)
            raise ParseError(f"File too large: {file.size} bytes exceeds the {limit_mb:.0f}MB limit")

    async def select_file(self, file: UploadedFile) -> ImportState:
        """Parse and validate ``file``; ends in ``preview`` or back in ``upload``."""

        if self.is_loading:
            raise IllegalTransition(f"An operation is already running (step '{self.step}')")
        self._apply(FileSelected(file))
        self._validation_percent = 0
        self._logger.info("Import file selected: %s (%d bytes)", file.name, file.size)

        try:
            self.check_upload(file)
            rows = parse_workbook(file.content)
            self._apply(ParseSucceeded(rows))

            emails = [row.email for row in rows]
            schools, existing = await asyncio.gather(
                asyncio.to_thread(self._loader.load_active_schools),
                asyncio.to_thread(self._loader.load_existing_emails, emails),
            )
            result = await validate_all(
                rows,
                schools,
                existing,
                on_progress=self._report_validation_progress,
                chunk_size=self._settings.chunk_size,
            )
        except AllocFlowError as exc:
            message = describe_preparation_error(exc)
            self._logger.warning("Import preparation failed for %s: %s", file.name, exc)
            self._notifier.error(message)
            return self._apply(PreparationFailed(message))
        except Exception:
            self._logger.exception("Unexpected failure while preparing %s", file.name)
            self._notifier.error(DEFAULT_PREPARATION_MESSAGE)
            self._apply(PreparationFailed(DEFAULT_PREPARATION_MESSAGE))
            raise

        return self._apply(ValidationCompleted(result))

    def _report_validation_progress(self, percent: int) -> None:
        self._validation_percent = percent
        if self._on_validation_progress is not None:
            self._on_validation_progress(percent)

    async def confirm_import(self) -> ImportState:
        """Submit the original file; ends in ``results`` or back in ``preview``."""

        state = self._state
        if not isinstance(state, Preview):
            raise IllegalTransition(f"Nothing to import while in step '{state.step}'")
        if not state.validation.valid_rows:
            self._notifier.warning("No valid rows to import")
            return state
        if state.validation.invalid_rows:
            self._notifier.warning(
                f"Fix the {len(state.validation.invalid_rows)} invalid row(s) before importing"
            )
            return state

        self._apply(ImportConfirmed())
        file = state.file
        try:
            response = await asyncio.to_thread(
                self._api.bulk_import,
                file.name,
                file.content,
                content_type=file.content_type or _content_type_for(file),
                skip_invalid_rows=self._settings.skip_invalid_rows,
            )
        except AllocFlowError as exc:
            message = describe_import_error(exc)
            self._logger.error("Bulk import failed for %s: %s", file.name, exc)
            self._notifier.error(message)
            return self._apply(ImportFailed(message))
        except Exception:
            self._logger.exception("Unexpected failure while importing %s", file.name)
            self._notifier.error(DEFAULT_IMPORT_MESSAGE)
            self._apply(ImportFailed(DEFAULT_IMPORT_MESSAGE))
            raise

        results = self._apply(ImportSucceeded(response))
        self._logger.info(
            "Bulk import finished: %d total / %d imported / %d failed",
            response.total_rows,
            response.successful_rows,
            response.failed_rows,
        )
        if response.successful_rows > 0:
            self._notifier.success(f"Successfully imported {response.successful_rows} teachers")
            if self._on_import_complete is not None:
                self._on_import_complete()
        if response.failed_rows > 0:
            self._notifier.error(f"{response.failed_rows} teachers failed to import")
        return results

    def reset(self) -> ImportState:
        """Discard everything and return to ``upload``."""

        self._validation_percent = 0
        return self._apply(Reset())

    def start_new_import(self) -> ImportState:
        return self.reset()

    def close(self) -> ImportState:
        """Closing the hosting dialog is a full reset."""

        return self.reset()


def _content_type_for(file: UploadedFile) -> str:
    if file.suffix == ".xls":
        return "application/vnd.ms-excel"
    return "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


__all__ = [
    "ImportSession",
    "ImportSettings",
    "LoggingNotifier",
    "MAX_UPLOAD_BYTES",
    "Notifier",
    "load_import_settings",
]
