"""HTTP utilities for the allocation system backend."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping

import requests
from requests import Response
from requests.exceptions import ConnectionError, RequestException, Timeout

from allocflow.core.errors import (
    ApiAuthError,
    ApiError,
    ApiRequestError,
    ApiTimeoutError,
    TransportError,
)
from allocflow.core.logger import get_logger

from .config import BackendConfig, load_timeout
from .models import Envelope

LOGGER = get_logger()

AUTHORIZATION_HEADER = "Authorization"
USER_AGENT = "AllocFlow-Importer/1.0"


@dataclass(slots=True)
class RequestDiagnostics:
    """Captured diagnostics for troubleshooting."""

    method: str
    url: str
    status: int | None


class HttpClient:
    """Request helper wrapping auth, envelope decoding, and diagnostics.

    Every call is attempted exactly once; failures surface to the caller,
    who decides whether to try again.

    requests does not guarantee that a ``Session`` is safe to share between
    threads, and the reference data fetches run on worker threads. Unless a
    session is passed in, each thread therefore gets its own session from
    ``session_factory``. All of them are closed by :meth:`close`.
    """

    def __init__(
        self,
        config: BackendConfig,
        *,
        session: requests.Session | None = None,
        session_factory: Callable[[], requests.Session] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._config = config
        self._shared = self._configure(session) if session is not None else None
        self._session_factory = session_factory or requests.Session
        self._local = threading.local()
        self._owned: list[requests.Session] = []
        self._lock = threading.Lock()
        self._logger = logger or LOGGER
        self._timeout = load_timeout(config)

    @property
    def session(self) -> requests.Session:
        """Session used by the calling thread."""

        if self._shared is not None:
            return self._shared
        session = getattr(self._local, "session", None)
        if session is None:
            session = self._configure(self._session_factory())
            self._local.session = session
            with self._lock:
                self._owned.append(session)
        return session

    def get_json(
        self,
        path: str,
        *,
        params: Mapping[str, object] | None = None,
        timeout: float | None = None,
    ) -> Any:
        """GET ``path`` and return the envelope's ``data`` member."""

        response = self._request("GET", path, params=params, timeout=timeout)
        return self._decode(response)

    def post_json(
        self,
        path: str,
        body: object,
        *,
        timeout: float | None = None,
    ) -> Any:
        """POST a JSON body and return the envelope's ``data`` member."""

        response = self._request("POST", path, json_body=body, timeout=timeout)
        return self._decode(response)

    def post_multipart(
        self,
        path: str,
        *,
        files: Mapping[str, tuple[str, bytes, str]],
        data: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> Any:
        """POST a multipart form and return the envelope's ``data`` member."""

        response = self._request("POST", path, files=files, data=data, timeout=timeout)
        return self._decode(response)

    def close(self) -> None:
        if self._shared is not None:
            self._shared.close()
        with self._lock:
            owned, self._owned = self._owned, []
        for session in owned:
            session.close()
        self._local = threading.local()

    # Internal helpers -------------------------------------------------

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, object] | None = None,
        json_body: object | None = None,
        files: Mapping[str, tuple[str, bytes, str]] | None = None,
        data: Mapping[str, str] | None = None,
        timeout: float | None = None,
        expected_status: Iterable[int] = (200, 201),
    ) -> Response:
        url = self._compose_url(path)
        headers: dict[str, str] = {"Accept": "application/json"}
        if self._config.api_token:
            headers[AUTHORIZATION_HEADER] = f"Bearer {self._config.api_token}"
        diagnostics = RequestDiagnostics(method=method, url=url, status=None)

        try:
            response = self.session.request(
                method,
                url,
                headers=headers,
                params=dict(params or {}),
                json=json_body,
                files=files,
                data=data,
                timeout=timeout or self._timeout,
            )
        except Timeout as exc:
            self._logger.warning("backend.http timeout method=%s url=%s", method, url, exc_info=exc)
            raise ApiTimeoutError(f"Request timeout after {timeout or self._timeout:.0f}s", payload={"url": url}) from exc
        except (ConnectionError, RequestException) as exc:
            self._logger.warning(
                "backend.http connection_error method=%s url=%s error=%s",
                method,
                url,
                type(exc).__name__,
                exc_info=exc,
            )
            raise TransportError(f"NetworkError: {type(exc).__name__} while calling {url}", payload={"url": url}) from exc

        diagnostics.status = response.status_code
        status = response.status_code
        if status in tuple(expected_status):
            return response

        payload = self._safe_json(response)
        if not isinstance(payload, dict):
            payload = {"body": payload}
        self._logger.error(
            "backend.http unexpected_status method=%s url=%s status=%s message=%s",
            diagnostics.method,
            diagnostics.url,
            diagnostics.status,
            payload.get("message"),
        )
        if status == 401:
            raise ApiAuthError("401 Unauthorized", status_code=status, payload=payload)
        if status == 403:
            raise ApiAuthError("403 Forbidden", status_code=status, payload=payload)
        if status == 413:
            raise ApiRequestError("413 Payload too large", status_code=status, payload=payload)
        message = payload.get("message")
        detail = f": {message}" if message else ""
        raise ApiRequestError(f"Unexpected status {status}{detail}", status_code=status, payload=payload)

    def _decode(self, response: Response) -> Any:
        try:
            payload = response.json()
        except ValueError as exc:
            body = self._excerpt(response)
            self._logger.error("backend.http malformed_body status=%s body=%s", response.status_code, body)
            raise ApiError(
                "Malformed response from server",
                status_code=response.status_code,
                payload={"body": body},
            ) from exc
        if isinstance(payload, dict) and "success" in payload:
            envelope = Envelope[Any].model_validate(payload)
            if not envelope.success:
                raise ApiError(
                    envelope.message or "Request failed",
                    status_code=response.status_code,
                    payload=payload,
                )
            return envelope.data
        return payload

    def _configure(self, session: requests.Session) -> requests.Session:
        session.verify = self._config.verify_tls
        session.trust_env = self._config.trust_env
        if self._config.proxies:
            session.proxies.update(self._config.proxies)
        session.headers.setdefault("User-Agent", USER_AGENT)
        return session

    def _compose_url(self, path: str) -> str:
        base = self._config.base_url.rstrip("/")
        if path.startswith("http://") or path.startswith("https://"):
            return path
        if not path.startswith("/"):
            path = f"/{path}"
        return f"{base}{path}"

    def _safe_json(self, response: Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return {"body": self._excerpt(response)}

    def _excerpt(self, response: Response) -> str:
        text = response.text
        if len(text) > 200:
            text = text[:200] + "..."
        return text


__all__ = ["HttpClient", "AUTHORIZATION_HEADER"]
