"""Public dashboard exports for sheetcache."""

from __future__ import annotations

from .events import EventPlanner
from .manager import DashboardManager
from .marketing import decode_month_entry, parse_month
from .quarterly import QuarterlyReports, next_quarter
from .todos import MajorTodos
from .watcher import SheetUpdateWatcher

__all__ = [
    "DashboardManager",
    "MajorTodos",
    "EventPlanner",
    "QuarterlyReports",
    "SheetUpdateWatcher",
    "next_quarter",
    "decode_month_entry",
    "parse_month",
]
