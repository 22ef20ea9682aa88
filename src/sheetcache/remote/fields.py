"""Field definitions for Drive API responses."""

from __future__ import annotations

UPLOAD_FIELDS: str = "id,name,mimeType,webViewLink,webContentLink"
