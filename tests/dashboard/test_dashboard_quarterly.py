import os
import tempfile
import unittest
from unittest.mock import Mock

from sheetcache.config.keys import quarterly_suggestion_key
from sheetcache.dashboard.quarterly import (
    NONE_NOTED,
    QuarterlyReports,
    build_suggestion,
    next_quarter,
    normalize_submission,
)
from sheetcache.errors import InvalidArgumentError, SubmissionError
from sheetcache.local import MemoryStore
from sheetcache.models import FetchResult
from sheetcache.remote import RemoteGateway
from sheetcache.sync import AggregateCache


class TestQuarterlyHelpers(unittest.TestCase):
    def test_next_quarter(self) -> None:
        self.assertEqual(next_quarter("Q1"), "Q2")
        self.assertEqual(next_quarter("Q3"), "Q4")
        self.assertEqual(next_quarter("Q4"), "Final")
        self.assertIsNone(next_quarter("Final"))

    def test_normalize_fills_blank_answers(self) -> None:
        form = {
            "wins": "  ",
            "supportNeeded": "More volunteers",
            "challenges": {"budget": False, "details": ""},
            "supportTypes": {"staff": True},
        }

        normalized = normalize_submission(form)

        self.assertEqual(normalized["wins"], NONE_NOTED)
        self.assertEqual(normalized["supportNeeded"], "More volunteers")
        self.assertEqual(normalized["decisionsNeeded"], NONE_NOTED)
        self.assertEqual(normalized["challenges"]["details"], NONE_NOTED)
        self.assertEqual(normalized["challengesCheckedOverride"], NONE_NOTED)
        self.assertEqual(normalized["supportTypesCheckedOverride"], "")
        self.assertEqual(form["wins"], "  ")

    def test_build_suggestion(self) -> None:
        suggestion = build_suggestion({"nextPriorities": ["Grow camp"]})
        self.assertEqual(suggestion["primaryFocus"], "Grow camp")
        self.assertEqual(len(suggestion["goals"]), 3)
        self.assertEqual(suggestion["goals"][0], {"goal": "Grow camp", "status": "On Track", "summary": ""})
        self.assertEqual(suggestion["goals"][2]["goal"], "")


class TestQuarterlyReports(unittest.IsolatedAsyncioTestCase):
    def _reports(self, entries=None):
        store = MemoryStore()
        gateway = Mock(spec=RemoteGateway)
        gateway.submit.return_value = "ok"
        loader = Mock(return_value=None)

        async def load():
            loader()
            return FetchResult.success(list(entries or []))

        updates = AggregateCache("quarterly", store, load, accept=lambda v: isinstance(v, list))
        return QuarterlyReports(updates, gateway, store), gateway, store, loader

    async def test_submit_normalizes_stores_suggestion_and_refreshes(self) -> None:
        reports, gateway, store, loader = self._reports([{"focusArea": "Programs", "quarter": "Q1"}])
        form = {"focusArea": "Programs", "quarter": "Q1", "nextPriorities": ["A", "B"]}

        self.assertEqual(await reports.submit(form, [{"fileId": "f1"}]), "ok")

        action, field, payload = gateway.submit.call_args.args
        self.assertEqual((action, field), ("submitQuarterlyUpdate", "form"))
        self.assertEqual(payload["wins"], NONE_NOTED)
        self.assertEqual(payload["uploadedFiles"], [{"fileId": "f1"}])
        self.assertEqual(
            store.read(quarterly_suggestion_key("Programs", "Q2"))["primaryFocus"], "A"
        )
        self.assertEqual(reports.suggestion_for("Programs", "Q2")["goals"][1]["goal"], "B")
        loader.assert_called_once()
        self.assertEqual(len(reports.entries), 1)

    async def test_primary_only_submit_skips_normalization(self) -> None:
        reports, gateway, store, _ = self._reports()
        form = {"focusArea": "Programs", "quarter": "Q4", "primaryFocus": "X"}

        await reports.submit(form, primary_only=True)

        payload = gateway.submit.call_args.args[2]
        self.assertTrue(payload["primaryOnly"])
        self.assertNotIn("wins", payload)
        self.assertIsNone(reports.suggestion_for("Programs", "Final"))

    async def test_submit_requires_area_and_quarter(self) -> None:
        reports, gateway, _, _ = self._reports()
        with self.assertRaises(InvalidArgumentError):
            await reports.submit({"focusArea": "Programs"})
        gateway.submit.assert_not_called()

    async def test_failed_submit_propagates_and_stores_nothing(self) -> None:
        reports, gateway, store, loader = self._reports()
        gateway.submit.side_effect = SubmissionError("Submission failed")

        with self.assertRaises(SubmissionError):
            await reports.submit({"focusArea": "Programs", "quarter": "Q1"})

        self.assertIsNone(reports.suggestion_for("Programs", "Q2"))
        loader.assert_not_called()

    async def test_latest_for_picks_newest_submission(self) -> None:
        reports, _, _, _ = self._reports([
            {"focusArea": "Programs", "quarter": "Q1", "submittedDate": "2025-01-01T00:00:00Z", "n": 1},
            {"focusArea": "Programs", "quarter": "Q1", "submittedDate": "2025-03-01T00:00:00Z", "n": 2},
            {"focusArea": "Programs", "quarter": "Q1", "submittedDate": "garbage", "n": 3},
            {"focusArea": "Events", "quarter": "Q1", "submittedDate": "2026-01-01T00:00:00Z", "n": 4},
        ])
        await reports.updates.refresh()

        self.assertEqual(reports.latest_for("Programs", "Q1")["n"], 2)
        self.assertIsNone(reports.latest_for("Programs", "Q2"))

    async def test_save_review_merges_into_cached_entry(self) -> None:
        reports, gateway, _, _ = self._reports([
            {"focusArea": "Programs", "quarter": "Q1", "payload": {"wins": "w"}},
        ])
        await reports.updates.refresh()
        review = {"focusArea": "Programs", "quarter": "Q1", "reviewer": "co-champion", "notes": "ok"}

        await reports.save_review(review)

        gateway.submit.assert_called_once_with("submitReviewUpdate", "review", review)
        entry = reports.latest_for("Programs", "Q1")
        self.assertEqual(entry["payload"]["wins"], "w")
        self.assertEqual(entry["payload"]["review"], {"reviewer": "co-champion", "notes": "ok"})

    async def test_save_review_without_entry_appends_one(self) -> None:
        reports, _, _, _ = self._reports()
        await reports.save_review({"focusArea": "Events", "quarter": "Q2", "notes": "n"})
        self.assertEqual(reports.entries[0]["payload"], {"review": {"notes": "n"}})

    async def test_upload_files(self) -> None:
        reports, gateway, _, _ = self._reports()
        gateway.upload_blob.side_effect = lambda name, mime, data: {"name": name, "mimeType": mime}

        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "photo.png")
            with open(path, "wb") as f:
                f.write(b"\x89PNG")
            uploaded = await reports.upload_files([path])

        self.assertEqual(uploaded, [{"name": "photo.png", "mimeType": "image/png"}])
        gateway.upload_blob.assert_called_once_with("photo.png", "image/png", b"\x89PNG")

    async def test_upload_missing_file_raises(self) -> None:
        reports, gateway, _, _ = self._reports()
        with self.assertRaises(SubmissionError):
            await reports.upload_files(["/nonexistent/file.png"])
        gateway.upload_blob.assert_not_called()


if __name__ == "__main__":
    unittest.main()
