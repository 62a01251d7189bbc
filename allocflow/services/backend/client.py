"""Typed client for the backend endpoints used by the teacher import."""

from __future__ import annotations

import logging
from typing import Any, Protocol, Sequence, Type, TypeVar

from pydantic import ValidationError

from allocflow.core.errors import ApiError
from allocflow.core.logger import get_logger

from .config import BackendConfig, resolve_config
from .http import HttpClient
from .models import BulkImportResponse, SchoolPage

LOGGER = get_logger()

SCHOOLS_PAGINATE_PATH = "/schools/paginate"
CHECK_EMAILS_PATH = "/teachers/check-emails"
BULK_IMPORT_PATH = "/teachers/bulk-import"

XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


class TeacherImportApi(Protocol):
    """Backend operations the import workflow depends on."""

    def list_schools(
        self,
        *,
        page: int,
        page_size: int,
        sort_by: str = "schoolName",
        sort_order: str = "asc",
        is_active: bool | None = True,
    ) -> SchoolPage:
        """Return one page of the school listing."""

    def check_existing_emails(self, emails: Sequence[str]) -> list[str]:
        """Return the subset of ``emails`` already registered."""

    def bulk_import(
        self,
        filename: str,
        content: bytes,
        *,
        content_type: str = XLSX_MIME,
        skip_invalid_rows: bool = True,
    ) -> BulkImportResponse:
        """Submit the spreadsheet for server-side import."""


class BackendClient(TeacherImportApi):
    """High level client for the allocation system REST API."""

    def __init__(
        self,
        config: BackendConfig,
        *,
        http_client: HttpClient | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._config = config
        self._logger = logger or LOGGER
        self._http = http_client or HttpClient(config, logger=self._logger)

    @classmethod
    def from_profile(cls, profile_name: str | None) -> "BackendClient":
        """Instantiate a client from ``profiles.yaml`` plus environment overrides."""

        return cls(resolve_config(profile_name))

    def list_schools(
        self,
        *,
        page: int,
        page_size: int,
        sort_by: str = "schoolName",
        sort_order: str = "asc",
        is_active: bool | None = True,
    ) -> SchoolPage:
        params: dict[str, Any] = {
            "page": page,
            "pageSize": page_size,
            "sortBy": sort_by,
            "sortOrder": sort_order,
        }
        if is_active is not None:
            params["isActive"] = "true" if is_active else "false"
        data = self._http.get_json(SCHOOLS_PAGINATE_PATH, params=params)
        return _parse(SchoolPage, data or {})

    def check_existing_emails(self, emails: Sequence[str]) -> list[str]:
        if not emails:
            return []
        data = self._http.post_json(CHECK_EMAILS_PATH, list(emails))
        return [str(item) for item in (data or [])]

    def bulk_import(
        self,
        filename: str,
        content: bytes,
        *,
        content_type: str = XLSX_MIME,
        skip_invalid_rows: bool = True,
    ) -> BulkImportResponse:
        self._logger.info(
            "backend.bulk_import file=%s bytes=%d skip_invalid_rows=%s",
            filename,
            len(content),
            skip_invalid_rows,
        )
        data = self._http.post_multipart(
            BULK_IMPORT_PATH,
            files={"file": (filename, content, content_type)},
            data={"skipInvalidRows": "true" if skip_invalid_rows else "false"},
        )
        return _parse(BulkImportResponse, data)

    def close(self) -> None:
        self._http.close()


ModelT = TypeVar("ModelT", SchoolPage, BulkImportResponse)


def _parse(model: Type[ModelT], data: Any) -> ModelT:
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        LOGGER.error("Malformed %s payload: %s", model.__name__, exc)
        raise ApiError(f"Malformed {model.__name__} payload from server", payload={"data": data}) from exc


__all__ = [
    "BackendClient",
    "TeacherImportApi",
    "BULK_IMPORT_PATH",
    "CHECK_EMAILS_PATH",
    "SCHOOLS_PAGINATE_PATH",
    "XLSX_MIME",
]
