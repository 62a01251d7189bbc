"""Reference data needed to validate import rows."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List

from allocflow.core.errors import TransportError
from allocflow.core.logger import get_logger
from allocflow.services.backend.client import TeacherImportApi
from allocflow.services.backend.models import School

LOGGER = get_logger()

DEFAULT_PAGE_SIZE = 100


@dataclass(frozen=True, slots=True)
class EmailCheck:
    """Outcome of the existing-email lookup: either matches or the transport error."""

    emails: frozenset[str] | None = None
    error: TransportError | None = None

    @classmethod
    def found(cls, emails: Iterable[str]) -> "EmailCheck":
        return cls(emails=frozenset(e.strip().lower() for e in emails))

    @classmethod
    def failed(cls, error: TransportError) -> "EmailCheck":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def or_empty(self) -> frozenset[str]:
        """Treat a failed lookup as "no matches"; the server's create call stays authoritative."""

        return self.emails if self.emails is not None else frozenset()


class ReferenceDataLoader:
    """Loads schools and registered emails from the backend."""

    def __init__(
        self,
        api: TeacherImportApi,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        logger: logging.Logger | None = None,
    ) -> None:
        self._api = api
        self._page_size = page_size
        self._logger = logger or LOGGER

    def load_active_schools(self) -> List[School]:
        """Page through the active school listing and return every school."""

        schools: List[School] = []
        page = 1
        while True:
            result = self._api.list_schools(
                page=page,
                page_size=self._page_size,
                sort_by="schoolName",
                sort_order="asc",
                is_active=True,
            )
            if not result.items:
                break
            schools.extend(result.items)
            if len(result.items) < self._page_size or page >= (result.total_pages or 1):
                break
            page += 1
        self._logger.info("Loaded %d active schools in %d page(s)", len(schools), page)
        return schools

    def check_existing_emails(self, candidates: Iterable[str]) -> EmailCheck:
        """Ask the backend which candidate emails are already registered."""

        emails = sorted({c.strip().lower() for c in candidates if c and c.strip()})
        if not emails:
            return EmailCheck.found(())
        try:
            matches = self._api.check_existing_emails(emails)
        except TransportError as exc:
            return EmailCheck.failed(exc)
        return EmailCheck.found(matches)

    def load_existing_emails(self, candidates: Iterable[str]) -> frozenset[str]:
        """Existing emails (lower-cased); empty when the lookup fails."""

        check = self.check_existing_emails(candidates)
        if not check.ok:
            self._logger.warning(
                "Existing email check failed, continuing without it: %s",
                check.error,
            )
        return check.or_empty()


__all__ = ["DEFAULT_PAGE_SIZE", "EmailCheck", "ReferenceDataLoader"]
