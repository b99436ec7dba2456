import json
import unittest

from agentmem.date_utils import parse_timestamp_ms
from agentmem.parsers.platforms.claude_code.parser import METADATA_LINE_LIMIT, parse_claude_lines
from agentmem.parsers.platforms.codex.parser import parse_codex_lines
from agentmem.parsers.platforms.registry import parse_transcript_lines
from agentmem.parsers.transcripts import content_to_preview, truncate_preview


def _lines(*entries) -> list[str]:
    return [entry if isinstance(entry, str) else json.dumps(entry) for entry in entries]


class ClaudeTranscriptParserTests(unittest.TestCase):
    def _claude_session(self) -> list[str]:
        common = {
            "sessionId": "claude-session",
            "cwd": "/home/user/projects/rpg_tool",
            "gitBranch": "feature/backfill",
            "version": "0.42.0",
        }
        return _lines(
            {"type": "summary", "summary": "Backfill work"},
            {
                **common,
                "type": "user",
                "timestamp": "2025-10-01T17:11:14.306Z",
                "message": {"role": "user", "content": "Can you add the\nbackfill route?"},
            },
            {
                **common,
                "type": "assistant",
                "timestamp": "2025-10-01T17:11:18.000Z",
                "message": {"role": "assistant", "model": "claude-sonnet-4-5-20250929", "content": []},
            },
            {
                **common,
                "type": "assistant",
                "timestamp": "2025-10-01T17:11:20.000Z",
                "message": {"role": "assistant", "model": "claude-sonnet-4-5-20250929", "content": []},
            },
        )

    def test_extracts_session_metadata(self) -> None:
        result = parse_claude_lines(self._claude_session(), "/t/claude-session.jsonl")

        self.assertEqual(result.source, "claude")
        self.assertEqual(result.transcriptPath, "/t/claude-session.jsonl")
        self.assertEqual(result.sessionId, "claude-session")
        self.assertEqual(result.workingDirectory, "/home/user/projects/rpg_tool")
        self.assertEqual(result.gitBranch, "feature/backfill")
        self.assertEqual(result.toolVersion, "0.42.0")
        self.assertEqual(result.modelNames, "Sonnet 4.5")
        self.assertEqual(result.firstUserMessagePreview, "Can you add the backfill route?")
        self.assertEqual(result.messageCount, 4)
        self.assertEqual(result.firstMessageAt, parse_timestamp_ms("2025-10-01T17:11:14.306Z"))
        self.assertEqual(result.lastMessageAt - result.firstMessageAt, 5694)

    def test_first_seen_cwd_wins(self) -> None:
        lines = _lines(
            {"type": "user", "cwd": "/first", "message": {"content": "hi"}},
            {"type": "user", "cwd": "/second", "message": {"content": "again"}},
        )
        result = parse_claude_lines(lines, "/t/a.jsonl")
        self.assertEqual(result.workingDirectory, "/first")
        self.assertEqual(result.firstUserMessagePreview, "hi")

    def test_malformed_lines_are_skipped_but_counted(self) -> None:
        lines = _lines(
            "{not json",
            "[1, 2, 3]",
            {"type": "user", "cwd": "/repo", "message": {"content": "hello"}},
        )
        result = parse_claude_lines(lines, "/t/a.jsonl")
        self.assertEqual(result.messageCount, 3)
        self.assertEqual(result.workingDirectory, "/repo")
        self.assertIsNone(result.firstMessageAt)
        self.assertIsNone(result.lastMessageAt)

    def test_metadata_outside_file_head_is_ignored(self) -> None:
        filler = [{"type": "progress"} for _ in range(METADATA_LINE_LIMIT)]
        lines = _lines(*filler, {"type": "user", "cwd": "/late", "message": {"content": "late"}})
        result = parse_claude_lines(lines, "/t/a.jsonl")
        self.assertIsNone(result.workingDirectory)
        self.assertIsNone(result.firstUserMessagePreview)
        self.assertEqual(result.messageCount, METADATA_LINE_LIMIT + 1)

    def test_models_are_deduped_in_order(self) -> None:
        lines = _lines(
            {"type": "assistant", "message": {"model": "claude-haiku-4-5"}},
            {"type": "assistant", "message": {"model": "claude-sonnet-4-5"}},
            {"type": "assistant", "message": {"model": "claude-haiku-4-5-20251001"}},
        )
        result = parse_claude_lines(lines, "/t/a.jsonl")
        self.assertEqual(result.modelNames, "Haiku 4.5, Sonnet 4.5")

    def test_preview_uses_text_chunks_only(self) -> None:
        lines = _lines(
            {
                "type": "user",
                "message": {
                    "content": [
                        {"type": "tool_result", "content": "ignored"},
                        {"type": "text", "text": "Explain"},
                        {"type": "image", "source": {}},
                        {"type": "text", "text": "this diff"},
                    ]
                },
            },
        )
        result = parse_claude_lines(lines, "/t/a.jsonl")
        self.assertEqual(result.firstUserMessagePreview, "Explain this diff")

    def test_timestamps_are_ordered(self) -> None:
        lines = _lines(
            {"type": "user", "timestamp": "2025-10-02T00:00:00Z", "message": {"content": "x"}},
            {"type": "assistant", "timestamp": "2025-10-01T00:00:00Z", "message": {}},
        )
        result = parse_claude_lines(lines, "/t/a.jsonl")
        self.assertLessEqual(result.firstMessageAt, result.lastMessageAt)


class CodexTranscriptParserTests(unittest.TestCase):
    def _codex_session(self) -> list[str]:
        return _lines(
            {
                "timestamp": "2025-10-02T10:00:00.000Z",
                "type": "session_meta",
                "payload": {
                    "id": "abc-session",
                    "cwd": "/home/user/projects/sample",
                    "cli_version": "0.63.0",
                    "git": {"branch": "main"},
                },
            },
            {
                "timestamp": "2025-10-02T10:00:01.000Z",
                "type": "turn_context",
                "payload": {"cwd": "/elsewhere", "model": "gpt-5-codex"},
            },
            {
                "timestamp": "2025-10-02T10:00:02.000Z",
                "type": "response_item",
                "payload": {
                    "type": "message",
                    "role": "user",
                    "content": [{"type": "input_text", "text": "Implement API and tests"}],
                },
            },
            {
                "timestamp": "2025-10-02T10:05:00.000Z",
                "type": "turn_context",
                "payload": {"model": "gpt-5-codex"},
            },
        )

    def test_extracts_session_metadata(self) -> None:
        result = parse_codex_lines(self._codex_session(), "/t/rollout.jsonl")

        self.assertEqual(result.source, "codex")
        self.assertEqual(result.sessionId, "abc-session")
        self.assertEqual(result.workingDirectory, "/home/user/projects/sample")
        self.assertEqual(result.toolVersion, "0.63.0")
        self.assertEqual(result.gitBranch, "main")
        self.assertEqual(result.modelNames, "gpt-5-codex")
        self.assertEqual(result.firstUserMessagePreview, "Implement API and tests")
        self.assertEqual(result.messageCount, 4)
        self.assertEqual(result.lastMessageAt - result.firstMessageAt, 300_000)

    def test_turn_context_supplies_missing_cwd(self) -> None:
        lines = _lines({"type": "turn_context", "payload": {"cwd": "/from/turn", "model": "gpt-5"}})
        result = parse_codex_lines(lines, "/t/rollout.jsonl")
        self.assertEqual(result.workingDirectory, "/from/turn")

    def test_event_msg_is_preview_fallback(self) -> None:
        lines = _lines(
            {"type": "event_msg", "payload": {"type": "user_message", "message": "Fix\tthe build"}},
            {
                "type": "response_item",
                "payload": {"type": "message", "role": "user", "content": "Later message"},
            },
        )
        result = parse_codex_lines(lines, "/t/rollout.jsonl")
        self.assertEqual(result.firstUserMessagePreview, "Fix the build")

    def test_assistant_messages_do_not_set_preview(self) -> None:
        lines = _lines(
            {
                "type": "response_item",
                "payload": {"type": "message", "role": "assistant", "content": "Sure"},
            },
        )
        self.assertIsNone(parse_codex_lines(lines, "/t/rollout.jsonl").firstUserMessagePreview)

    def test_metadata_late_in_file_is_found(self) -> None:
        filler = [{"type": "event_msg", "payload": {"type": "token_count"}} for _ in range(200)]
        lines = _lines(*filler, {"type": "session_meta", "payload": {"id": "late", "cwd": "/late"}})
        result = parse_codex_lines(lines, "/t/rollout.jsonl")
        self.assertEqual(result.sessionId, "late")
        self.assertEqual(result.workingDirectory, "/late")

    def test_earliest_and_latest_timestamps_regardless_of_order(self) -> None:
        lines = _lines(
            {"timestamp": "2025-10-02T10:00:05Z", "type": "event_msg", "payload": {}},
            {"timestamp": "2025-10-02T10:00:00Z", "type": "event_msg", "payload": {}},
            {"timestamp": "2025-10-02T10:00:09Z", "type": "event_msg", "payload": {}},
        )
        result = parse_codex_lines(lines, "/t/rollout.jsonl")
        self.assertEqual(result.firstMessageAt, parse_timestamp_ms("2025-10-02T10:00:00Z"))
        self.assertEqual(result.lastMessageAt, parse_timestamp_ms("2025-10-02T10:00:09Z"))


class PreviewHelperTests(unittest.TestCase):
    def test_truncate_preview_collapses_whitespace_and_limits_length(self) -> None:
        self.assertEqual(truncate_preview("a\n\n\tb"), "a b")
        self.assertEqual(len(truncate_preview("x" * 250)), 100)
        self.assertIsNone(truncate_preview("\n\t"))
        self.assertIsNone(truncate_preview(None))

    def test_content_to_preview_ignores_non_text_content(self) -> None:
        self.assertIsNone(content_to_preview([{"type": "image"}]))
        self.assertIsNone(content_to_preview({"text": "dict content"}))


class ParserRegistryTests(unittest.TestCase):
    def test_dispatches_by_source(self) -> None:
        lines = _lines({"type": "session_meta", "payload": {"id": "s1"}})
        self.assertEqual(parse_transcript_lines("codex", lines, "/t/x.jsonl").sessionId, "s1")

    def test_unknown_source_raises(self) -> None:
        with self.assertRaises(ValueError):
            parse_transcript_lines("gemini", [], "/t/x.jsonl")


if __name__ == "__main__":
    unittest.main()
