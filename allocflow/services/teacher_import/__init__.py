"""Bulk teacher import service package."""

from .batch import validate_all
from .models import ImportProgress, ParsedRow, RowValidationError, UploadedFile, ValidationResult
from .parser import parse_workbook
from .reference import EmailCheck, ReferenceDataLoader
from .report import error_report_csv, render_summary, validation_errors_frame, write_error_report
from .session import ImportSession, ImportSettings, LoggingNotifier, Notifier, load_import_settings
from .validate import build_school_lookup, validate_row

__all__ = [
    "EmailCheck",
    "ImportProgress",
    "ImportSession",
    "ImportSettings",
    "LoggingNotifier",
    "Notifier",
    "ParsedRow",
    "ReferenceDataLoader",
    "RowValidationError",
    "UploadedFile",
    "ValidationResult",
    "build_school_lookup",
    "error_report_csv",
    "load_import_settings",
    "parse_workbook",
    "render_summary",
    "validate_all",
    "validate_row",
    "validation_errors_frame",
    "write_error_report",
]
