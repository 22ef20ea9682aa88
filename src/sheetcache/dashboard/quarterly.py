"""Quarterly reflection reports: submit, review and next-quarter suggestions."""

from __future__ import annotations

import asyncio
import logging
import os
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping, Optional, Sequence

from sheetcache.config.keys import quarterly_suggestion_key
from sheetcache.errors import InvalidArgumentError, SubmissionError
from sheetcache.local import KeyValueStore
from sheetcache.remote import RemoteGateway
from sheetcache.sync import AggregateCache
from sheetcache.util.mime import guess_mime_type
from sheetcache.util.time import parse_rfc3339

logger = logging.getLogger(__name__)

SUBMIT_ACTION = "submitQuarterlyUpdate"
REVIEW_ACTION = "submitReviewUpdate"

NONE_NOTED = "None noted"
DEFAULT_GOAL_STATUS = "On Track"

CHALLENGE_KEYS: tuple[str, ...] = ("capacity", "budget", "scheduling", "coordination", "external", "other")
SUPPORT_KEYS: tuple[str, ...] = ("staff", "marketing", "board", "funding", "facilities", "other")
_NARRATIVE_FIELDS: tuple[str, ...] = ("wins", "supportNeeded", "decisionsNeeded", "nextQuarterFocus")

_NEXT_QUARTER = {"Q1": "Q2", "Q2": "Q3", "Q3": "Q4", "Q4": "Final"}


def next_quarter(quarter: str) -> Optional[str]:
    """Q1 -> Q2 ... Q4 -> "Final"; anything else -> None."""
    return _NEXT_QUARTER.get(quarter)


def _none_noted(value: Any) -> Any:
    return value if str(value or "").strip() else NONE_NOTED


def normalize_submission(form: Mapping[str, Any]) -> dict[str, Any]:
    """
    Fill blank narrative answers with "None noted".

    When no challenge/support checkbox is ticked, the matching override
    field carries "None noted" so the sheet column is never empty.
    """
    normalized = dict(form)
    for name in _NARRATIVE_FIELDS:
        normalized[name] = _none_noted(form.get(name))

    challenges = dict(form.get("challenges") or {})
    challenges["details"] = _none_noted(challenges.get("details"))
    normalized["challenges"] = challenges

    support_types = form.get("supportTypes") or {}
    has_challenges = any(challenges.get(k) for k in CHALLENGE_KEYS)
    has_support = any(support_types.get(k) for k in SUPPORT_KEYS)
    normalized["challengesCheckedOverride"] = "" if has_challenges else NONE_NOTED
    normalized["supportTypesCheckedOverride"] = "" if has_support else NONE_NOTED
    return normalized


def build_suggestion(form: Mapping[str, Any]) -> dict[str, Any]:
    """Next-quarter draft seeded from this quarter's priorities."""
    priorities = list(form.get("nextPriorities") or [])
    priorities += [""] * (3 - len(priorities))
    return {
        "primaryFocus": form.get("nextQuarterFocus") or priorities[0] or "",
        "goals": [
            {"goal": priorities[i] or "", "status": DEFAULT_GOAL_STATUS, "summary": ""}
            for i in range(3)
        ],
    }


def _submitted_at(entry: Mapping[str, Any]) -> datetime:
    raw = entry.get("submittedDate") or entry.get("createdAt") or ""
    try:
        return parse_rfc3339(str(raw))
    except ValueError:
        return datetime.min.replace(tzinfo=timezone.utc)


class QuarterlyReports:
    """
    Quarterly updates per focus area.

    The list of submitted updates is an AggregateCache (replaced wholesale on
    refresh); submits are user-initiated and raise on failure.
    """

    def __init__(self, updates: AggregateCache, gateway: RemoteGateway, store: KeyValueStore) -> None:
        self._updates = updates
        self._gateway = gateway
        self._store = store

    @property
    def updates(self) -> AggregateCache:
        return self._updates

    @property
    def entries(self) -> list[dict[str, Any]]:
        return list(self._updates.value or [])

    def latest_for(self, focus_area: str, quarter: str) -> Optional[dict[str, Any]]:
        matches = [
            e for e in self.entries
            if e.get("focusArea") == focus_area and e.get("quarter") == quarter
        ]
        if not matches:
            return None
        return max(matches, key=_submitted_at)

    def suggestion_for(self, focus_area: str, quarter: str) -> Optional[dict[str, Any]]:
        suggestion = self._store.read(quarterly_suggestion_key(focus_area, quarter))
        return suggestion if isinstance(suggestion, dict) else None

    async def submit(
        self,
        form: Mapping[str, Any],
        uploaded_files: Sequence[Any] = (),
        *,
        primary_only: bool = False,
    ) -> Any:
        """
        Submit a quarterly update, then reload the update list.

        primary_only=True sends the inline "primary focus" edit as-is.

        Raises:
            InvalidArgumentError: focusArea/quarter missing.
            NotConfiguredError / SubmissionError: from the gateway.
        """
        if not form.get("focusArea") or not form.get("quarter"):
            raise InvalidArgumentError("focusArea and quarter are required")

        if primary_only:
            payload = {**form, "primaryOnly": True}
        else:
            payload = {**normalize_submission(form), "uploadedFiles": list(uploaded_files)}

        result = await self._gateway.submit(SUBMIT_ACTION, "form", payload)

        if not primary_only:
            upcoming = next_quarter(str(form["quarter"]))
            if upcoming:
                self._store.write(
                    quarterly_suggestion_key(str(form["focusArea"]), upcoming),
                    build_suggestion(form),
                )

        await self._updates.refresh()
        return result

    async def save_review(self, review: Mapping[str, Any]) -> None:
        """
        Submit a co-champion review and fold it into the cached entry.

        Raises:
            NotConfiguredError / SubmissionError: from the gateway.
        """
        focus_area = review.get("focusArea")
        quarter = review.get("quarter")
        if not focus_area or not quarter:
            raise InvalidArgumentError("focusArea and quarter are required")

        await self._gateway.submit(REVIEW_ACTION, "review", dict(review))

        review_payload = {k: v for k, v in review.items() if k not in ("focusArea", "quarter")}
        entries = self.entries
        for i, entry in enumerate(entries):
            if entry.get("focusArea") == focus_area and entry.get("quarter") == quarter:
                payload = dict(entry.get("payload") or {})
                payload["review"] = review_payload
                entries[i] = {**entry, "payload": payload}
                break
        else:
            entries.append({
                "focusArea": focus_area,
                "quarter": quarter,
                "submittedDate": "",
                "payload": {"review": review_payload},
            })
        self._updates.set(entries)

    async def upload_files(self, paths: Iterable[str]) -> list[Any]:
        """
        Upload local files as attachments; all-or-nothing.

        Raises:
            SubmissionError: a file could not be read or uploaded.
            NotConfiguredError: no blob endpoint.
        """
        blobs: list[tuple[str, str, bytes]] = []
        for path in paths:
            try:
                with open(path, "rb") as f:
                    data = f.read()
            except OSError as exc:
                raise SubmissionError("Failed to read file", details={"path": path}, cause=exc) from exc
            blobs.append((os.path.basename(path), guess_mime_type(path), data))

        return list(await asyncio.gather(
            *(self._gateway.upload_blob(name, mime, data) for name, mime, data in blobs)
        ))
