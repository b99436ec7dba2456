import unittest
from unittest.mock import MagicMock, patch

import requests

from agentmem.live_sessions import LiveSessionClient


def _response(payload=None, ok=True, status_code=200, json_error=None):
    response = MagicMock()
    response.ok = ok
    response.status_code = status_code
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = payload
    return response


class LiveSessionClientTests(unittest.TestCase):
    def setUp(self) -> None:
        self.client = LiveSessionClient("http://localhost:23000/", timeout=2)

    def test_sessions_url(self) -> None:
        self.assertEqual(self.client.sessions_url, "http://localhost:23000/api/sessions")

    def test_parses_sessions(self) -> None:
        payload = {
            "sessions": [
                {
                    "id": "s1",
                    "name": "main",
                    "agentId": "agent-1",
                    "workingDirectory": "/home/user/repo",
                    "createdAt": "2025-10-01T00:00:00Z",
                    "status": "running",
                },
                {"id": "s2", "agentId": "agent-2"},
            ]
        }
        with patch("agentmem.live_sessions.requests.get", return_value=_response(payload)) as get:
            result = self.client.fetch_sessions()

        get.assert_called_once_with("http://localhost:23000/api/sessions", timeout=2)
        self.assertFalse(result.degraded)
        self.assertEqual([s.id for s in result.sessions], ["s1", "s2"])
        self.assertEqual(result.sessions[0].workingDirectory, "/home/user/repo")

    def test_keeps_sessions_with_numeric_created_at_or_null_fields(self) -> None:
        payload = {
            "sessions": [
                {"id": "s1", "agentId": "agent-1", "workingDirectory": "/w/one", "createdAt": 1730000000000},
                {
                    "id": "s2",
                    "name": None,
                    "status": None,
                    "agentId": "agent-1",
                    "workingDirectory": "/w/two",
                    "createdAt": "2025-01-01T00:00:00Z",
                },
            ]
        }
        with patch("agentmem.live_sessions.requests.get", return_value=_response(payload)):
            result = self.client.fetch_sessions()

        self.assertFalse(result.degraded)
        self.assertEqual([s.id for s in result.sessions], ["s1", "s2"])
        self.assertEqual(result.sessions[0].createdAt, 1730000000000)
        self.assertIsNone(result.sessions[1].name)

    def test_malformed_entries_are_dropped(self) -> None:
        payload = {"sessions": ["bogus", {"name": "no id"}, {"id": "s1"}]}
        with patch("agentmem.live_sessions.requests.get", return_value=_response(payload)):
            result = self.client.fetch_sessions()
        self.assertFalse(result.degraded)
        self.assertEqual([s.id for s in result.sessions], ["s1"])

    def test_missing_sessions_key_is_empty(self) -> None:
        with patch("agentmem.live_sessions.requests.get", return_value=_response({})):
            result = self.client.fetch_sessions()
        self.assertFalse(result.degraded)
        self.assertEqual(result.sessions, [])

    def test_connection_error_degrades(self) -> None:
        with patch(
            "agentmem.live_sessions.requests.get",
            side_effect=requests.ConnectionError("refused"),
        ):
            with self.assertLogs("agentmem.live_sessions", level="WARNING"):
                result = self.client.fetch_sessions()
        self.assertTrue(result.degraded)
        self.assertEqual(result.sessions, [])
        self.assertIn("refused", result.error)

    def test_timeout_degrades(self) -> None:
        with patch("agentmem.live_sessions.requests.get", side_effect=requests.Timeout("slow")):
            with self.assertLogs("agentmem.live_sessions", level="WARNING"):
                result = self.client.fetch_sessions()
        self.assertTrue(result.degraded)

    def test_non_success_status_degrades(self) -> None:
        with patch(
            "agentmem.live_sessions.requests.get",
            return_value=_response(ok=False, status_code=503),
        ):
            with self.assertLogs("agentmem.live_sessions", level="WARNING"):
                result = self.client.fetch_sessions()
        self.assertTrue(result.degraded)
        self.assertIn("503", result.error)

    def test_invalid_json_degrades(self) -> None:
        with patch(
            "agentmem.live_sessions.requests.get",
            return_value=_response(json_error=ValueError("Expecting value")),
        ):
            with self.assertLogs("agentmem.live_sessions", level="WARNING"):
                result = self.client.fetch_sessions()
        self.assertTrue(result.degraded)

    def test_non_list_sessions_degrades(self) -> None:
        with patch(
            "agentmem.live_sessions.requests.get",
            return_value=_response({"sessions": {"id": "s1"}}),
        ):
            with self.assertLogs("agentmem.live_sessions", level="WARNING"):
                result = self.client.fetch_sessions()
        self.assertTrue(result.degraded)


if __name__ == "__main__":
    unittest.main()
