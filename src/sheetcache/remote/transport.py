"""HTTP transport for the Apps Script web app (internal use only)."""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, TypeVar

import requests

from sheetcache.errors import (
    ApiError,
    HttpErrorInfo,
    InvalidArgumentError,
    NetworkError,
    RateLimitError,
    ResponseFormatError,
    SheetCacheError,
    map_http_error,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Apps Script rejects CORS preflight; the web app reads the raw body instead.
POST_HEADERS: dict[str, str] = {"Content-Type": "text/plain;charset=utf-8"}


@dataclass(frozen=True)
class _RetryPolicy:
    max_retries: int = 2
    initial_delay_sec: float = 1.0


class ScriptTransport:
    """
    Request/response calls against one web app URL.

    Notes:
        - Reads are GET with the action as a query parameter.
        - Writes are POST with a JSON text body carrying "action".
        - Every failure is raised as a sheetcache error; retries cover
          rate limits, network errors and 5xx.
    """

    def __init__(
        self,
        url: str,
        *,
        session: Optional[requests.Session] = None,
        timeout_sec: float = 30.0,
        max_retries: int = 2,
    ) -> None:
        self.url = url
        self._session = session if session is not None else requests.Session()
        self._timeout_sec = timeout_sec
        self._retry_policy = _RetryPolicy(max_retries=max_retries)

    def get(self, action: str, params: Optional[Mapping[str, Any]] = None) -> dict[str, Any]:
        query: dict[str, Any] = {"action": action}
        if params:
            query.update(params)
        return self._execute(lambda: self._send("GET", params=query), action)

    def post(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        action = str(payload.get("action", ""))
        try:
            body = json.dumps(dict(payload))
        except (TypeError, ValueError) as exc:
            raise InvalidArgumentError(
                "Payload is not JSON serializable",
                details={"action": action},
                cause=exc,
            ) from exc
        return self._execute(
            lambda: self._send("POST", data=body.encode("utf-8"), headers=POST_HEADERS),
            action,
        )

    def close(self) -> None:
        self._session.close()

    # ----------------------------
    # Internals
    # ----------------------------
    def _send(self, method: str, **kwargs: Any) -> dict[str, Any]:
        response = self._session.request(method, self.url, timeout=self._timeout_sec, **kwargs)
        if not response.ok:
            body = response.text
            raise map_http_error(
                HttpErrorInfo(
                    status_code=response.status_code,
                    reason=response.reason,
                    message=f"Request failed ({response.status_code}). {body or 'No response body.'}",
                )
            )
        try:
            data = response.json()
        except ValueError as exc:
            raise ResponseFormatError(
                "Response is not JSON",
                details={"status_code": response.status_code},
                cause=exc,
            ) from exc
        if not isinstance(data, dict):
            raise ResponseFormatError(
                "Response is not a JSON object",
                details={"type": type(data).__name__},
            )
        return data

    def _execute(self, func: Callable[[], T], action: str) -> T:
        delay = self._retry_policy.initial_delay_sec
        for attempt in range(self._retry_policy.max_retries + 1):
            try:
                return func()
            except Exception as exc:
                mapped = self._map_exception(exc)
                if self._should_retry(mapped) and attempt < self._retry_policy.max_retries:
                    logger.info("Retrying %s after %s (attempt %d)", action, mapped, attempt + 1)
                    time.sleep(delay)
                    delay *= 2
                    continue
                if mapped is exc:
                    raise
                raise mapped from exc

        raise ApiError("Unexpected retry loop termination")

    def _should_retry(self, exc: Exception) -> bool:
        if isinstance(exc, (RateLimitError, NetworkError)):
            return True
        if isinstance(exc, ApiError):
            status_code = exc.details.get("status_code")
            return isinstance(status_code, int) and 500 <= status_code <= 599
        return False

    def _map_exception(self, exc: Exception) -> Exception:
        if isinstance(exc, SheetCacheError):
            return exc
        if isinstance(exc, (requests.exceptions.ConnectionError, requests.exceptions.Timeout)):
            return NetworkError("Network error", details={"url": self.url}, cause=exc)
        if isinstance(exc, requests.exceptions.RequestException):
            return NetworkError("Request error", details={"url": self.url}, cause=exc)
        return ApiError("Script request error", cause=exc)
