"""Collections served by the dashboard web apps."""

from __future__ import annotations

from sheetcache.config import keys
from sheetcache.models import CollectionSpec

MAJOR_TODOS = CollectionSpec(
    name="major_todos",
    cache_key=keys.MAJOR_TODOS_CACHE_KEY,
    list_action="getMajorTodos",
    list_field="todos",
    upsert_action="saveMajorTodo",
    upsert_field="todo",
    delete_action="deleteMajorTodo",
    conflict_fields=("done",),
)

# Calendar web app (events, marketing calendar, bookings).
EVENTS = CollectionSpec(
    name="events",
    cache_key=keys.EVENTS_CACHE_KEY,
    list_action="list",
    list_field="events",
    upsert_action="upsert",
    upsert_field="event",
    delete_action="delete",
    conflict_fields=("checklist", "planningChecklist", "planningNotes"),
)

NEWSLETTER = CollectionSpec(
    name="newsletter",
    cache_key=keys.NEWSLETTER_CACHE_KEY,
    list_action="newsletter_list",
    list_field="entries",
    upsert_action="newsletter_upsert",
    upsert_field="entry",
    id_field="month",
    conflict_fields=("completed",),
)

POSTING_SCHEDULE = CollectionSpec(
    name="posting_schedule",
    cache_key=keys.POSTING_CACHE_KEY,
    list_action="posting_list",
    list_field="entries",
    upsert_action="posting_upsert",
    upsert_field="entry",
    id_field="month",
    conflict_fields=("completed",),
)

PRESS_RELEASES = CollectionSpec(
    name="press_releases",
    cache_key=keys.PRESS_RELEASE_CACHE_KEY,
    list_action="press_release_list",
    list_field="entries",
    upsert_action="press_release_upsert",
    upsert_field="entry",
    id_field="month",
    conflict_fields=("completed",),
)

# Bookings rows are keyed by spreadsheet row index and cannot be deleted.
BOOKINGS = CollectionSpec(
    name="bookings",
    cache_key=keys.BOOKINGS_CACHE_KEY,
    list_action="bookings_list",
    list_field="entries",
    upsert_action="bookings_update",
    upsert_field="entry",
    id_field="rowIndex",
    conflict_fields=("posted", "photoPermission"),
)

MAIN_COLLECTIONS: tuple[CollectionSpec, ...] = (MAJOR_TODOS,)
CALENDAR_COLLECTIONS: tuple[CollectionSpec, ...] = (
    EVENTS,
    NEWSLETTER,
    POSTING_SCHEDULE,
    PRESS_RELEASES,
    BOOKINGS,
)
