from __future__ import annotations

import mimetypes

DEFAULT_MIME: str = "application/octet-stream"


def guess_mime_type(path: str) -> str:
    """Guess a MIME type from a file name; falls back to octet-stream."""
    mime, _ = mimetypes.guess_type(path)
    return mime or DEFAULT_MIME
