from __future__ import annotations

import faulthandler
import socket
import sys
import tempfile
from io import BytesIO
from pathlib import Path
from typing import Any, Callable, Iterable, Sequence

import pytest
from openpyxl import Workbook

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

faulthandler.enable()  # Ensure crashes emit tracebacks.
socket.setdefaulttimeout(10)

from allocflow.core.logger import get_logger

# Bind the shared logger to a scratch directory before any module grabs it.
get_logger(log_dir=Path(tempfile.mkdtemp(prefix="allocflow-logs-")))

from allocflow.core.errors import TransportError
from allocflow.services.backend.models import BulkImportResponse, School, SchoolPage


@pytest.fixture(autouse=True)
def _isolated_work_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep generated reports out of the project workspace."""

    import allocflow.core.profiles as core_profiles

    monkeypatch.setattr(core_profiles, "_work_dir", lambda: tmp_path / "work")


def build_xlsx(rows: Sequence[Sequence[object]], *, title: str = "Teachers") -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = title
    for row in rows:
        ws.append(list(row))
    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def make_xlsx() -> Callable[..., bytes]:
    return build_xlsx


@pytest.fixture
def make_xls() -> Callable[..., bytes]:
    """Build a legacy BIFF8 workbook; cells left as ``None`` stay empty."""

    xlwt = pytest.importorskip("xlwt")

    def build(rows: Sequence[Sequence[object]], *, title: str = "Teachers") -> bytes:
        wb = xlwt.Workbook()
        ws = wb.add_sheet(title)
        for r, row in enumerate(rows):
            for c, value in enumerate(row):
                if value is not None:
                    ws.write(r, c, value)
        buffer = BytesIO()
        wb.save(buffer)
        return buffer.getvalue()

    return build


class FakeApi:
    """In-memory stand-in for ``BackendClient``."""

    def __init__(
        self,
        schools: Iterable[School] = (),
        *,
        existing: Iterable[str] = (),
        email_error: TransportError | None = None,
        school_error: TransportError | None = None,
        import_response: BulkImportResponse | None = None,
        import_error: Exception | None = None,
    ) -> None:
        self.schools = list(schools)
        self.existing = list(existing)
        self.email_error = email_error
        self.school_error = school_error
        self.import_response = import_response
        self.import_error = import_error
        self.school_calls: list[dict[str, Any]] = []
        self.email_calls: list[list[str]] = []
        self.import_calls: list[dict[str, Any]] = []
        self.closed = False

    def list_schools(self, *, page: int, page_size: int, **kwargs: Any) -> SchoolPage:
        self.school_calls.append({"page": page, "page_size": page_size, **kwargs})
        if self.school_error is not None:
            raise self.school_error
        start = (page - 1) * page_size
        items = self.schools[start : start + page_size]
        total_pages = max(1, -(-len(self.schools) // page_size))
        return SchoolPage(
            items=items,
            total_items=len(self.schools),
            total_pages=total_pages,
            page=page,
            page_size=page_size,
        )

    def check_existing_emails(self, emails: Sequence[str]) -> list[str]:
        self.email_calls.append(list(emails))
        if self.email_error is not None:
            raise self.email_error
        wanted = {e.lower() for e in emails}
        return [e for e in self.existing if e.lower() in wanted]

    def bulk_import(self, filename: str, content: bytes, **kwargs: Any) -> BulkImportResponse:
        self.import_calls.append({"filename": filename, "content": content, **kwargs})
        if self.import_error is not None:
            raise self.import_error
        assert self.import_response is not None, "No import response configured"
        return self.import_response

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def schools() -> list[School]:
    return [
        School(id=1, school_name="North High"),
        School(id=2, school_name="South Elementary"),
    ]


@pytest.fixture
def fake_api(schools: list[School]) -> Callable[..., FakeApi]:
    def factory(**kwargs: Any) -> FakeApi:
        kwargs.setdefault("schools", schools)
        return FakeApi(**kwargs)

    return factory


def bulk_response(outcomes: Sequence[tuple[int, str | None]]) -> BulkImportResponse:
    """Build a response from ``(row_number, error)`` pairs; ``None`` means imported."""

    results = [
        {"rowNumber": row, "success": error is None, "error": error}
        for row, error in outcomes
    ]
    failed = sum(1 for _, error in outcomes if error is not None)
    return BulkImportResponse.model_validate(
        {
            "totalRows": len(outcomes),
            "successfulRows": len(outcomes) - failed,
            "failedRows": failed,
            "results": results,
        }
    )


@pytest.fixture
def make_response() -> Callable[[Sequence[tuple[int, str | None]]], BulkImportResponse]:
    return bulk_response
