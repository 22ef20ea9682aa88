"""RemoteGateway: action-typed calls against the spreadsheet web app."""

from __future__ import annotations

import asyncio
import base64
import logging
import threading
from typing import Any, Mapping, Optional

from sheetcache.auth import OAuthClient
from sheetcache.config import SheetsConfig, is_valid_script_url
from sheetcache.errors import (
    NotConfiguredError,
    RemoteActionError,
    ResponseFormatError,
    SheetCacheError,
    SubmissionError,
)
from sheetcache.models import CollectionSpec, FetchResult, WriteAction, WriteResult

from .drive_blob import DriveBlobUploader
from .transport import ScriptTransport

logger = logging.getLogger(__name__)

UPLOAD_ACTION = "uploadImage"


class RemoteGateway:
    """
    Async facade over one Apps Script web app.

    Policy:
        - Reads and background writes never raise: they return FetchResult /
          WriteResult and log the failure.
        - When the endpoint is missing or malformed, every call short-circuits
          without touching the network.
        - User-initiated submits and uploads raise SubmissionError /
          NotConfiguredError so the caller can tell the user.
        - Blocking HTTP runs in a worker thread (asyncio.to_thread).
    """

    def __init__(
        self,
        config: SheetsConfig,
        *,
        script_url: Optional[str] = None,
        transport: Optional[ScriptTransport] = None,
        blob_transport: Optional[ScriptTransport] = None,
        blob_uploader: Optional[DriveBlobUploader] = None,
    ) -> None:
        self._config = config
        self._script_url = script_url if script_url is not None else config.script_url
        self._transport = transport
        self._blob_transport = blob_transport
        self._blob_uploader = blob_uploader
        self._lock = threading.Lock()

    @classmethod
    def for_calendar(cls, config: SheetsConfig) -> "RemoteGateway":
        """Gateway for the events / marketing calendar / bookings web app."""
        return cls(config, script_url=config.effective_calendar_url)

    @property
    def script_url(self) -> Optional[str]:
        return self._script_url

    def is_configured(self) -> bool:
        return self._config.use_remote and is_valid_script_url(self._script_url)

    # ----------------------------
    # Reads
    # ----------------------------
    async def list(self, collection: CollectionSpec) -> FetchResult:
        """Fetch every record of a collection."""
        result = await self.fetch(collection.list_action, collection.list_field)
        if result.ok and not isinstance(result.value, list):
            logger.error(
                "Error fetching %s: field %r is not a list",
                collection.name,
                collection.list_field,
            )
            return FetchResult.failure(f"{collection.list_field} is not a list")
        return result

    async def fetch(
        self,
        action: str,
        field: str,
        params: Optional[Mapping[str, Any]] = None,
        *,
        require_success: bool = False,
    ) -> FetchResult:
        """
        GET ?action=<action> and return the named payload field.

        With require_success=True a body without "success": true fails too.
        """
        if not self.is_configured():
            return FetchResult.not_configured()
        try:
            data = await asyncio.to_thread(self._get, action, params)
            value = _unwrap(data, field, action, require_success=require_success)
        except SheetCacheError as exc:
            logger.error("Error fetching %s: %s", action, exc)
            return FetchResult.failure(str(exc))
        return FetchResult.success(value)

    # ----------------------------
    # Background writes
    # ----------------------------
    async def upsert(self, collection: CollectionSpec, record: Mapping[str, Any]) -> WriteResult:
        item_id = str(record.get(collection.id_field, ""))
        if collection.upsert_action is None or collection.upsert_field is None:
            return WriteResult(status="skipped", action="upsert", item_id=item_id,
                               error=f"{collection.name} is read-only")
        if not self.is_configured():
            return WriteResult(status="skipped", action="upsert", item_id=item_id,
                               error="Remote endpoint is not configured")

        payload = {"action": collection.upsert_action, collection.upsert_field: dict(record)}
        return await self._write(payload, "upsert", item_id)

    async def delete(self, collection: CollectionSpec, item_id: str) -> WriteResult:
        if collection.delete_action is None:
            return WriteResult(status="skipped", action="delete", item_id=item_id,
                               error=f"{collection.name} does not support delete")
        if not self.is_configured():
            return WriteResult(status="skipped", action="delete", item_id=item_id,
                               error="Remote endpoint is not configured")

        payload = {"action": collection.delete_action, collection.delete_id_field: item_id}
        return await self._write(payload, "delete", item_id)

    # ----------------------------
    # User-initiated calls
    # ----------------------------
    async def submit(self, action: str, field: str, payload: Any) -> Any:
        """
        POST {"action": action, field: payload} and return "result".

        Raises:
            NotConfiguredError: endpoint missing or malformed.
            SubmissionError: transport failure or success != true.
        """
        if not self.is_configured():
            raise NotConfiguredError("Google Sheets not configured", details={"action": action})
        try:
            data = await asyncio.to_thread(self._post, {"action": action, field: payload})
        except SheetCacheError as exc:
            logger.error("Submit %s failed: %s", action, exc)
            raise SubmissionError("Submission failed", details={"action": action}, cause=exc) from exc
        if data.get("success") is not True:
            message = data.get("error") or "Submission failed"
            logger.error("Submit %s rejected: %s", action, message)
            raise SubmissionError(str(message), details={"action": action})
        return data.get("result")

    async def upload_blob(self, name: str, mime_type: str, data: bytes) -> Any:
        """
        Upload binary content (e.g., an image) and return the remote descriptor.

        Uses the blob web app when one is configured, otherwise a direct Drive
        upload when drive_folder_id and auth_info are set.

        Raises:
            NotConfiguredError: no blob endpoint available.
            SubmissionError: the upload failed.
        """
        blob_url = self._config.effective_blob_url
        if self._config.use_remote and is_valid_script_url(blob_url):
            payload = {
                "action": UPLOAD_ACTION,
                "filename": name,
                "mimeType": mime_type,
                "data": base64.b64encode(data).decode("ascii"),
            }
            try:
                response = await asyncio.to_thread(self._post_blob, payload)
            except SheetCacheError as exc:
                logger.error("Upload of %s failed: %s", name, exc)
                raise SubmissionError("Upload failed", details={"filename": name}, cause=exc) from exc
            if response.get("success") is not True:
                raise SubmissionError(str(response.get("error") or "Upload failed"),
                                      details={"filename": name})
            return response.get("result")

        if not self._drive_upload_available():
            raise NotConfiguredError("Drive upload not configured")
        try:
            return await asyncio.to_thread(self._upload_to_drive, name, mime_type, data)
        except SheetCacheError as exc:
            logger.error("Drive upload of %s failed: %s", name, exc)
            raise SubmissionError("Upload failed", details={"filename": name}, cause=exc) from exc

    def close(self) -> None:
        if self._transport is not None:
            self._transport.close()
        if self._blob_transport is not None and self._blob_transport is not self._transport:
            self._blob_transport.close()

    # ----------------------------
    # Internals (run in worker threads)
    # ----------------------------
    async def _write(self, payload: dict[str, Any], action: WriteAction, item_id: str) -> WriteResult:
        try:
            data = await asyncio.to_thread(self._post, payload)
        except SheetCacheError as exc:
            logger.error("Error on %s %s: %s", payload["action"], item_id, exc)
            return WriteResult(status="failed", action=action, item_id=item_id, error=str(exc))
        if data.get("success") is False:
            message = str(data.get("error") or f"{action} failed")
            logger.error("Error on %s %s: %s", payload["action"], item_id, message)
            return WriteResult(status="failed", action=action, item_id=item_id, error=message)
        return WriteResult(
            status="confirmed",
            action=action,
            item_id=item_id,
            value=data.get("result"),
        )

    def _get(self, action: str, params: Optional[Mapping[str, Any]]) -> dict[str, Any]:
        return self._get_transport().get(action, params)

    def _post(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        return self._get_transport().post(payload)

    def _post_blob(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        return self._get_blob_transport().post(payload)

    def _upload_to_drive(self, name: str, mime_type: str, data: bytes) -> dict[str, Any]:
        with self._lock:
            if self._blob_uploader is None:
                self._blob_uploader = DriveBlobUploader(
                    self._config.auth_info,  # type: ignore[arg-type]
                    self._config.drive_folder_id,  # type: ignore[arg-type]
                )
            uploader = self._blob_uploader
        return uploader.upload_bytes(name, mime_type, data)

    def _drive_upload_available(self) -> bool:
        if self._blob_uploader is not None:
            return True
        return bool(self._config.drive_folder_id and self._config.auth_info)

    def _get_transport(self) -> ScriptTransport:
        with self._lock:
            if self._transport is None:
                self._transport = self._build_transport(str(self._script_url).strip())
            return self._transport

    def _get_blob_transport(self) -> ScriptTransport:
        blob_url = str(self._config.effective_blob_url).strip()
        if self._blob_transport is None and blob_url == str(self._script_url).strip():
            return self._get_transport()
        with self._lock:
            if self._blob_transport is None:
                self._blob_transport = self._build_transport(blob_url)
            return self._blob_transport

    def _build_transport(self, url: str) -> ScriptTransport:
        session = None
        if self._config.auth_info is not None:
            session = OAuthClient(self._config.auth_info).build_session()
        return ScriptTransport(
            url,
            session=session,
            timeout_sec=self._config.timeout_sec,
            max_retries=self._config.max_retries,
        )


def _unwrap(data: dict[str, Any], field: str, action: str, *, require_success: bool = False) -> Any:
    success = data.get("success")
    if success is False or (require_success and success is not True):
        raise RemoteActionError(
            str(data.get("error") or "Request failed"),
            details={"action": action},
        )
    if field not in data:
        raise ResponseFormatError(
            f"Response has no {field!r} field",
            details={"action": action, "keys": sorted(data)},
        )
    return data[field]
