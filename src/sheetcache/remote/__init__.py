"""Public remote exports for sheetcache."""

from __future__ import annotations

from . import catalog
from .drive_blob import DriveBlobUploader
from .gateway import RemoteGateway
from .transport import ScriptTransport

__all__ = ["RemoteGateway", "ScriptTransport", "DriveBlobUploader", "catalog"]
