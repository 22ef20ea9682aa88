import json
import tempfile
import unittest
from pathlib import Path

from sheetcache.auth import AuthInfo
from sheetcache.config import SheetsConfig, is_valid_script_url, keys
from sheetcache.errors import ConfigurationError, InvalidArgumentError

VALID_URL = "https://script.google.com/macros/s/AKfy123/exec"


class TestScriptUrl(unittest.TestCase):
    def test_valid_exec_url(self) -> None:
        self.assertTrue(is_valid_script_url(VALID_URL))
        self.assertTrue(is_valid_script_url(f"  {VALID_URL}  "))
        self.assertTrue(is_valid_script_url(VALID_URL.upper().replace("AKFY123", "AKfy123")))

    def test_invalid_urls(self) -> None:
        self.assertFalse(is_valid_script_url(None))
        self.assertFalse(is_valid_script_url(""))
        self.assertFalse(is_valid_script_url("https://script.google.com/macros/s/AKfy123/dev"))
        self.assertFalse(is_valid_script_url("https://script.google.com/macros/library/d/AKfy123/1"))
        self.assertFalse(is_valid_script_url("http://script.google.com/macros/s/AKfy123/exec"))


class TestSheetsConfig(unittest.TestCase):
    def test_defaults(self) -> None:
        config = SheetsConfig()
        self.assertTrue(config.use_remote)
        self.assertEqual(config.timeout_sec, 30.0)
        self.assertEqual(config.sheet_poll_interval_sec, 3600)
        self.assertIsNone(config.tombstone_ttl_sec)
        self.assertFalse(config.is_remote_configured())

    def test_effective_urls_fall_back_to_script_url(self) -> None:
        config = SheetsConfig(script_url=VALID_URL)
        self.assertEqual(config.effective_calendar_url, VALID_URL)
        self.assertEqual(config.effective_blob_url, VALID_URL)

        other = "https://script.google.com/macros/s/Other/exec"
        config = SheetsConfig(script_url=VALID_URL, calendar_script_url=other, blob_url=other)
        self.assertEqual(config.effective_calendar_url, other)
        self.assertEqual(config.effective_blob_url, other)

    def test_warning_messages(self) -> None:
        self.assertEqual(SheetsConfig().warning(), "Google Sheets URL is missing.")
        self.assertEqual(
            SheetsConfig(script_url="https://script.google.com/macros/library/d/X/1").warning(),
            "Google Sheets URL is a library link. Use the Web App /exec URL instead.",
        )
        self.assertEqual(
            SheetsConfig(script_url="https://example.com").warning(),
            "Google Sheets URL must be the Web App /exec link.",
        )
        self.assertEqual(SheetsConfig(script_url=VALID_URL).warning(), "")
        self.assertEqual(SheetsConfig(use_remote=False).warning(), "")

    def test_use_remote_false_disables_remote(self) -> None:
        config = SheetsConfig(script_url=VALID_URL, use_remote=False)
        self.assertFalse(config.is_remote_configured())

    def test_invalid_values_raise(self) -> None:
        with self.assertRaises(InvalidArgumentError):
            SheetsConfig(timeout_sec=0)
        with self.assertRaises(InvalidArgumentError):
            SheetsConfig(max_retries=-1)
        with self.assertRaises(InvalidArgumentError):
            SheetsConfig(tombstone_ttl_sec=0)

    def test_from_dict(self) -> None:
        config = SheetsConfig.from_dict({
            "script_url": VALID_URL,
            "watched_sheets": {"Strategy": "sheet-1"},
            "auth_info": {
                "kind": "oauth",
                "data": {"client_secrets_file": "cs.json", "token_file": "tok.json"},
            },
        })
        self.assertEqual(config.watched_sheets, {"Strategy": "sheet-1"})
        self.assertIsInstance(config.auth_info, AuthInfo)

    def test_from_dict_rejects_unknown_keys(self) -> None:
        with self.assertRaises(InvalidArgumentError) as ctx:
            SheetsConfig.from_dict({"scriptUrl": VALID_URL})
        self.assertEqual(ctx.exception.details["keys"], ["scriptUrl"])

    def test_from_dict_rejects_bad_watched_sheets(self) -> None:
        with self.assertRaises(InvalidArgumentError):
            SheetsConfig.from_dict({"watched_sheets": ["sheet-1"]})

    def test_from_dict_rejects_bad_auth(self) -> None:
        with self.assertRaises(InvalidArgumentError):
            SheetsConfig.from_dict({"auth_info": {"kind": "oauth", "data": {}}})

    def test_from_json_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.json"
            path.write_text(json.dumps({"script_url": VALID_URL, "cache_dir": tmp}), encoding="utf-8")
            config = SheetsConfig.from_json_file(str(path))
        self.assertEqual(config.script_url, VALID_URL)

    def test_from_json_file_missing_raises_configuration_error(self) -> None:
        with self.assertRaises(ConfigurationError):
            SheetsConfig.from_json_file("/nonexistent/config.json")


class TestKeys(unittest.TestCase):
    def test_quarterly_suggestion_key(self) -> None:
        self.assertEqual(
            keys.quarterly_suggestion_key("Programs", "Q2"),
            "nsh-quarterly-next-Programs-Q2",
        )
        self.assertEqual(keys.quarterly_suggestion_key("", ""), "nsh-quarterly-next-area-quarter")


if __name__ == "__main__":
    unittest.main()
