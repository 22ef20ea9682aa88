"""Local Store keys (one per managed collection/aggregate)."""

from __future__ import annotations

METRICS_CACHE_KEY: str = "nsh-strategy-metrics-cache-v1"
SNAPSHOTS_CACHE_KEY: str = "nsh-strategy-sections-cache-v1"
QUARTERLY_CACHE_KEY: str = "nsh-strategy-quarterly-cache-v1"
MAJOR_TODOS_CACHE_KEY: str = "nsh-strategy-major-todos-v1"
SHEET_LAST_SEEN_KEY: str = "nsh-sheet-last-seen-v1"

EVENTS_CACHE_KEY: str = "nsh-events-cache-v1"
FLYERS_CACHE_KEY: str = "nsh-event-flyers-v1"
NEWSLETTER_CACHE_KEY: str = "nsh-newsletter-cache-v1"
POSTING_CACHE_KEY: str = "nsh-posting-schedule-v1"
PRESS_RELEASE_CACHE_KEY: str = "nsh-press-release-cache-v1"
BOOKINGS_CACHE_KEY: str = "nsh-bookings-cache-v1"


def quarterly_suggestion_key(focus_area: str, quarter: str) -> str:
    """Key of the next-quarter suggestion stored after a quarterly submit."""
    return f"nsh-quarterly-next-{focus_area or 'area'}-{quarter or 'quarter'}"
