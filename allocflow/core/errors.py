"""Custom exceptions used across AllocFlow."""

from __future__ import annotations

from typing import Any


class AllocFlowError(Exception):
    """Base error for the application."""


class ConfigError(AllocFlowError):
    """Configuration related error."""


class ParseError(AllocFlowError):
    """Raised when an uploaded spreadsheet is structurally unusable."""


class IllegalTransition(AllocFlowError):
    """Raised when the import workflow receives an event its current step cannot accept."""


class TransportError(AllocFlowError):
    """Raised when the backend API cannot be reached or answers with a failure."""

    def __init__(self, message: str, *, status_code: int | None = None, payload: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload or {}


class ApiTimeoutError(TransportError):
    """Raised when a backend request times out."""


class ApiAuthError(TransportError):
    """Raised for 401/403 answers."""


class ApiRequestError(TransportError):
    """Raised for unexpected HTTP statuses."""


class ApiError(TransportError):
    """Raised when the response envelope reports ``success: false``."""
