"""Public config exports for sheetcache."""

from __future__ import annotations

from . import keys
from .settings import SheetsConfig, is_valid_script_url

__all__ = ["SheetsConfig", "is_valid_script_url", "keys"]
