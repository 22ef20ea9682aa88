import json
import unittest
from datetime import date
from unittest.mock import Mock, patch

import requests

from sheetcache.errors import (
    InvalidArgumentError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    ResponseFormatError,
)
from sheetcache.remote.transport import POST_HEADERS, ScriptTransport

URL = "https://script.google.com/macros/s/AKfy123/exec"


def _response(status: int = 200, payload=None, text: str = "") -> Mock:
    resp = Mock()
    resp.status_code = status
    resp.ok = 200 <= status < 400
    resp.reason = "reason"
    resp.text = text
    if payload is None:
        resp.json.side_effect = ValueError("no json")
    else:
        resp.json.return_value = payload
    return resp


class TestScriptTransport(unittest.TestCase):
    def _transport(self, *responses, max_retries: int = 2):
        session = Mock()
        session.request.side_effect = list(responses)
        return ScriptTransport(URL, session=session, timeout_sec=5, max_retries=max_retries), session

    def test_get_sends_action_as_query_parameter(self) -> None:
        transport, session = self._transport(_response(payload={"todos": []}))

        data = transport.get("getSheetLastUpdated", {"ids": "a,b"})

        self.assertEqual(data, {"todos": []})
        args, kwargs = session.request.call_args
        self.assertEqual(args, ("GET", URL))
        self.assertEqual(kwargs["params"], {"action": "getSheetLastUpdated", "ids": "a,b"})
        self.assertEqual(kwargs["timeout"], 5)

    def test_post_sends_plain_text_json_body(self) -> None:
        transport, session = self._transport(_response(payload={"success": True}))

        transport.post({"action": "saveMajorTodo", "todo": {"id": "1"}})

        args, kwargs = session.request.call_args
        self.assertEqual(args, ("POST", URL))
        self.assertEqual(kwargs["headers"], POST_HEADERS)
        self.assertEqual(kwargs["headers"]["Content-Type"], "text/plain;charset=utf-8")
        self.assertEqual(
            json.loads(kwargs["data"].decode("utf-8")),
            {"action": "saveMajorTodo", "todo": {"id": "1"}},
        )

    def test_http_error_is_mapped_with_body_in_message(self) -> None:
        transport, _ = self._transport(_response(404, text="Script not found"))

        with self.assertRaises(NotFoundError) as ctx:
            transport.get("getMetrics")
        self.assertEqual(str(ctx.exception), "Request failed (404). Script not found")

    def test_non_json_body_raises_response_format_error(self) -> None:
        transport, _ = self._transport(_response(200, payload=None, text="<html>"))
        with self.assertRaises(ResponseFormatError):
            transport.get("getMetrics")

    def test_non_object_body_raises_response_format_error(self) -> None:
        transport, _ = self._transport(_response(200, payload=[1, 2]))
        with self.assertRaises(ResponseFormatError):
            transport.get("getMetrics")

    @patch("sheetcache.remote.transport.time.sleep")
    def test_retries_5xx_then_succeeds(self, sleep: Mock) -> None:
        transport, session = self._transport(
            _response(503, text="busy"),
            _response(payload={"metrics": {}}),
        )

        self.assertEqual(transport.get("getMetrics"), {"metrics": {}})
        self.assertEqual(session.request.call_count, 2)
        sleep.assert_called_once_with(1.0)

    @patch("sheetcache.remote.transport.time.sleep")
    def test_rate_limit_exhausts_retries(self, sleep: Mock) -> None:
        transport, session = self._transport(
            _response(429), _response(429), max_retries=1,
        )
        with self.assertRaises(RateLimitError):
            transport.get("getMetrics")
        self.assertEqual(session.request.call_count, 2)

    @patch("sheetcache.remote.transport.time.sleep")
    def test_connection_error_maps_to_network_error(self, sleep: Mock) -> None:
        transport, _ = self._transport(
            requests.exceptions.ConnectionError("offline"), max_retries=0,
        )
        with self.assertRaises(NetworkError) as ctx:
            transport.get("getMetrics")
        self.assertIsInstance(ctx.exception.cause, requests.exceptions.ConnectionError)
        sleep.assert_not_called()

    def test_4xx_is_not_retried(self) -> None:
        transport, session = self._transport(_response(400, text="bad"))
        with self.assertRaises(InvalidArgumentError):
            transport.get("getMetrics")
        self.assertEqual(session.request.call_count, 1)

    def test_post_rejects_non_json_payload_before_sending(self) -> None:
        transport, session = self._transport()

        with self.assertRaises(InvalidArgumentError) as ctx:
            transport.post({"action": "saveMajorTodo", "todo": {"due": date(2025, 1, 1)}})

        self.assertEqual(ctx.exception.details, {"action": "saveMajorTodo"})
        self.assertIsInstance(ctx.exception.cause, TypeError)
        session.request.assert_not_called()


if __name__ == "__main__":
    unittest.main()
