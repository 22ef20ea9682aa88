"""Marketing calendar rows (newsletter, posting schedule, press releases)."""

from __future__ import annotations

import re
from typing import Any, Mapping, Optional

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def parse_month(value: Any) -> Optional[int]:
    """
    Month number 1-12 from a sheet cell, or None.

    Reads the leading integer the way the sheet writes it ("03", "3", 3,
    "3 - March"); anything else, or a number out of range, gives None.
    """
    if value is None or isinstance(value, bool):
        return None
    match = _LEADING_INT.match(str(value))
    if match is None:
        return None
    month = int(match.group(1))
    return month if 1 <= month <= 12 else None


def decode_month_entry(row: Mapping[str, Any]) -> Optional[dict[str, Any]]:
    """Sheet row -> entry keyed by its month number; rows without a valid month give None."""
    month = parse_month(row.get("month"))
    if month is None:
        return None
    return {**row, "month": month}
