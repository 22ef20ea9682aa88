from .ids import new_item_id
from .mime import DEFAULT_MIME, guess_mime_type
from .time import now_rfc3339, now_utc, parse_rfc3339, to_rfc3339

__all__ = [
    "new_item_id",
    "DEFAULT_MIME",
    "guess_mime_type",
    "now_utc",
    "now_rfc3339",
    "parse_rfc3339",
    "to_rfc3339",
]
