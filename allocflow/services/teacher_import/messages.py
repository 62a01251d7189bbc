"""User-facing messages for failures in the import workflow."""

from __future__ import annotations

DEFAULT_PREPARATION_MESSAGE = "Failed to parse Excel file"
DEFAULT_IMPORT_MESSAGE = "Failed to import teachers"

NETWORK_MESSAGE = "Network error: Please check your internet connection and try again"
CORRUPT_FILE_MESSAGE = "Invalid file: The Excel file appears to be empty or corrupted"
TIMEOUT_MESSAGE = (
    "Request timeout: The import is taking too long. "
    "Please try with a smaller file or contact support"
)
AUTH_MESSAGE = "Authentication error: Please log in again"
PERMISSION_MESSAGE = "Permission denied: You don't have permission to import teachers"
TOO_LARGE_MESSAGE = "File too large: Please use a smaller file (max 10MB)"

_NETWORK_MARKERS = ("Failed to fetch", "NetworkError")


def _message(exc: BaseException | str | None) -> str:
    if exc is None:
        return ""
    return exc if isinstance(exc, str) else str(exc)


def _is_network(text: str) -> bool:
    return any(marker in text for marker in _NETWORK_MARKERS)


def describe_preparation_error(exc: BaseException | str | None) -> str:
    """Classify a failure raised while parsing or validating a file."""

    text = _message(exc)
    if not text:
        return DEFAULT_PREPARATION_MESSAGE
    if _is_network(text):
        return NETWORK_MESSAGE
    if "no sheets" in text or "empty" in text:
        return CORRUPT_FILE_MESSAGE
    # "Missing required columns" and everything else keep their own wording.
    return text


def describe_import_error(exc: BaseException | str | None) -> str:
    """Classify a failure raised while submitting the file for import."""

    text = _message(exc)
    if not text:
        return DEFAULT_IMPORT_MESSAGE
    if _is_network(text):
        return NETWORK_MESSAGE
    if "timeout" in text or "Timeout" in text:
        return TIMEOUT_MESSAGE
    if "401" in text or "Unauthorized" in text:
        return AUTH_MESSAGE
    if "403" in text or "Forbidden" in text:
        return PERMISSION_MESSAGE
    if "413" in text or "too large" in text:
        return TOO_LARGE_MESSAGE
    return text


__all__ = [
    "AUTH_MESSAGE",
    "CORRUPT_FILE_MESSAGE",
    "NETWORK_MESSAGE",
    "PERMISSION_MESSAGE",
    "TIMEOUT_MESSAGE",
    "TOO_LARGE_MESSAGE",
    "describe_import_error",
    "describe_preparation_error",
]
