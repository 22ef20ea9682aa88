"""Direct Drive uploads for blobs (internal use only)."""

from __future__ import annotations

import io
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence, TypeVar

from sheetcache.auth import DRIVE_SCOPES, AuthInfo, OAuthClient
from sheetcache.errors import (
    ApiError,
    AuthError,
    HttpErrorInfo,
    InvalidArgumentError,
    NetworkError,
    RateLimitError,
    map_http_error,
)

from .fields import UPLOAD_FIELDS

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class _RetryPolicy:
    max_retries: int = 3
    initial_delay_sec: float = 1.0


class DriveBlobUploader:
    """
    Upload in-memory bytes into one Drive folder.

    Used when no blob web app is configured but OAuth credentials and a
    target folder are.
    """

    def __init__(
        self,
        auth_info: AuthInfo,
        folder_id: str,
        *,
        scopes: Optional[Sequence[str]] = None,
    ) -> None:
        if not folder_id:
            raise InvalidArgumentError("folder_id must be a non-empty string")
        self.folder_id = folder_id
        self._retry_policy = _RetryPolicy()
        client = OAuthClient(auth_info)
        self._service = client.build_drive_service(
            list(scopes) if scopes is not None else list(DRIVE_SCOPES)
        )

    @classmethod
    def from_service(cls, service: Any, folder_id: str) -> "DriveBlobUploader":
        """Create uploader from a pre-built Drive service (useful for tests)."""
        obj = cls.__new__(cls)
        obj.folder_id = folder_id
        obj._retry_policy = _RetryPolicy()
        obj._service = service
        return obj

    def upload_bytes(self, name: str, mime_type: str, data: bytes) -> dict[str, Any]:
        """
        Upload bytes and return {"fileId", "name", "mimeType", "url"}.

        Raises:
            InvalidArgumentError: empty name.
            sheetcache errors mapped from Drive HTTP failures.
        """
        if not name or not isinstance(name, str):
            raise InvalidArgumentError("name must be a non-empty string")

        try:
            from googleapiclient.http import MediaIoBaseUpload
        except Exception as exc:  # pragma: no cover
            raise AuthError(
                "google-api-python-client is not available",
                cause=exc,
            ) from exc

        media = MediaIoBaseUpload(io.BytesIO(data), mimetype=mime_type, resumable=False)
        body = {"name": name, "parents": [self.folder_id]}
        req = self._service.files().create(
            body=body,
            media_body=media,
            fields=UPLOAD_FIELDS,
            supportsAllDrives=True,
        )
        created = self._execute(req.execute)
        return {
            "fileId": created.get("id"),
            "name": created.get("name", name),
            "mimeType": created.get("mimeType", mime_type),
            "url": created.get("webViewLink") or created.get("webContentLink") or "",
        }

    def _execute(self, func: Callable[[], T]) -> T:
        delay = self._retry_policy.initial_delay_sec
        for attempt in range(self._retry_policy.max_retries + 1):
            try:
                return func()
            except Exception as exc:
                mapped = self._map_exception(exc)
                if self._should_retry(mapped) and attempt < self._retry_policy.max_retries:
                    logger.info("Retrying Drive upload after %s (attempt %d)", mapped, attempt + 1)
                    time.sleep(delay)
                    delay *= 2
                    continue
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
        try:
            from googleapiclient.errors import HttpError
        except Exception:  # pragma: no cover
            HttpError = None  # type: ignore[assignment]

        if HttpError is not None and isinstance(exc, HttpError):
            return map_http_error(_http_error_to_info(exc), cause=exc)

        if isinstance(exc, (OSError, TimeoutError)):
            return NetworkError("Network error", cause=exc)

        return ApiError("Drive API error", cause=exc)


def _http_error_to_info(exc: Any) -> HttpErrorInfo:
    status_code = getattr(getattr(exc, "resp", None), "status", None)
    reason = getattr(getattr(exc, "resp", None), "reason", None)

    message = None
    content = getattr(exc, "content", None)
    if isinstance(content, (bytes, bytearray)):
        try:
            payload = json.loads(content.decode("utf-8"))
        except ValueError:
            payload = {}
        err = payload.get("error", {}) if isinstance(payload, dict) else {}
        if isinstance(err, dict):
            message = err.get("message") or None
            errors = err.get("errors") or []
            if errors and isinstance(errors, list) and isinstance(errors[0], dict):
                if isinstance(errors[0].get("reason"), str):
                    reason = errors[0]["reason"]

    if not isinstance(status_code, int):
        status_code = 0

    return HttpErrorInfo(
        status_code=status_code,
        reason=reason if isinstance(reason, str) else None,
        message=message,
    )
